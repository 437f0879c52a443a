from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple, Union

from mandelview.errors import ConfigurationError


@dataclass(frozen=True)
class Color:
    """
    An opaque RGB color with float components in [0, 1].
    Interpolation happens component-wise in this space; conversion to 8-bit
    happens only when a color is handed to a drawing surface.
    """

    r: float
    g: float
    b: float

    @classmethod
    def rgb(cls, r: int, g: int, b: int) -> "Color":
        return cls(r / 255.0, g / 255.0, b / 255.0)

    @classmethod
    def gray(cls, v: float) -> "Color":
        return cls(v, v, v)

    @classmethod
    def from_hex(cls, text: str) -> "Color":
        s = text.strip().lstrip("#")
        if len(s) != 6:
            raise ConfigurationError(f"Color must look like #rrggbb, got {text!r}.")
        try:
            r, g, b = (int(s[k:k + 2], 16) for k in (0, 2, 4))
        except ValueError as e:
            raise ConfigurationError(f"Invalid hex color {text!r}.") from e
        return cls.rgb(r, g, b)

    @classmethod
    def parse(cls, value: Union["Color", str, Sequence[int]]) -> "Color":
        if isinstance(value, Color):
            return value
        if isinstance(value, str):
            return cls.from_hex(value)
        if isinstance(value, (list, tuple)) and len(value) == 3:
            if not all(isinstance(v, int) and 0 <= v <= 255 for v in value):
                raise ConfigurationError(f"RGB components must be ints in 0..255, got {value!r}.")
            return cls.rgb(*value)
        raise ConfigurationError(f"Cannot interpret {value!r} as a color.")

    def interpolate(self, other: "Color", t: float) -> "Color":
        return Color(
            (1.0 - t) * self.r + t * other.r,
            (1.0 - t) * self.g + t * other.g,
            (1.0 - t) * self.b + t * other.b,
        )

    def to_tuple(self) -> Tuple[float, float, float]:
        return (self.r, self.g, self.b)

    def to_rgb8(self) -> Tuple[int, int, int]:
        return tuple(int(round(255 * min(1.0, max(0.0, c)))) for c in self.to_tuple())  # type: ignore[return-value]

    def to_hex(self) -> str:
        return "#{:02x}{:02x}{:02x}".format(*self.to_rgb8())


BLACK = Color(0.0, 0.0, 0.0)
WHITE = Color(1.0, 1.0, 1.0)

# positions of colors in the histogram
DEFAULT_BREAKPOINTS: Tuple[float, ...] = (0.0, 0.75, 0.85, 0.95, 0.99, 1.0)

DEFAULT_COLORS: Tuple[Color, ...] = (
    Color.gray(0.2),
    Color.gray(0.7),
    Color.rgb(55, 118, 145),
    Color.rgb(63, 74, 132),
    Color.rgb(145, 121, 82),
    Color.rgb(250, 250, 200),
)
