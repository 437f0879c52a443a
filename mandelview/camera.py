from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

HOME_CENTER = (-0.5, 0.0)
HOME_WIDTH = 3.0


class Complex(NamedTuple):
    re: float
    im: float

    def __add__(self, other: "Complex") -> "Complex":
        return Complex(self.re + other.re, self.im + other.im)

    def __mul__(self, other: "Complex") -> "Complex":
        return Complex(
            self.re * other.re - self.im * other.im,
            self.re * other.im + self.im * other.re,
        )

    def squared_modulus(self) -> float:
        return self.re * self.re + self.im * self.im


ORIGIN = Complex(0.0, 0.0)


@dataclass(frozen=True)
class Camera:
    """
    Rectangular viewport in the complex plane centred on (center_x, center_y).
    Horizontal extent is `width`, vertical extent is `width / aspect_ratio`.
    """

    center_x: float
    center_y: float
    width: float
    aspect_ratio: float

    def __post_init__(self) -> None:
        if not self.width > 0:
            raise ValueError("Camera width must be > 0.")
        if not self.aspect_ratio > 0:
            raise ValueError("Camera aspect ratio must be > 0.")

    @property
    def height(self) -> float:
        return self.width / self.aspect_ratio

    def to_complex(self, u: float, v: float) -> Complex:
        # v grows bottom-to-top; callers invert row indices before calling
        return Complex(
            self.center_x + (u - 0.5) * self.width,
            self.center_y + (v - 0.5) * self.height,
        )


def home_camera(canvas_width: int, canvas_height: int) -> Camera:
    return Camera(HOME_CENTER[0], HOME_CENTER[1], HOME_WIDTH, canvas_width / canvas_height)


HOME_CAMERA = Camera(HOME_CENTER[0], HOME_CENTER[1], HOME_WIDTH, 1.0)
