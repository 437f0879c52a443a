from __future__ import annotations

from typing import Iterator, List, Optional, Sequence, Tuple, overload

import numpy as np
from PIL import Image

from mandelview.color import Color

SUPERSAMPLED = "supersampled"
AVERAGED = "averaged"
POLICIES = (SUPERSAMPLED, AVERAGED)


def check_policy(policy: str) -> str:
    if policy not in POLICIES:
        raise ValueError(f"render policy must be one of: {', '.join(POLICIES)}")
    return policy


class SampleArena:
    """
    Contiguous storage for every sample of a frame.
    values[p, s] is the divergence of sample s of pixel p, colors[p, s] its RGB
    color (background black until assigned), assigned[p, s] whether it was colored.
    """

    def __init__(self, pixel_count: int, supersampling: int, values: Optional[np.ndarray] = None):
        n = supersampling * supersampling
        self.supersampling = supersampling
        if values is None:
            values = np.full((pixel_count, n), np.inf, dtype=np.float64)
        if values.shape != (pixel_count, n):
            raise ValueError(f"values must have shape {(pixel_count, n)}, got {values.shape}")
        self.values = values
        self.colors = np.zeros((pixel_count, n, 3), dtype=np.float64)
        self.assigned = np.zeros((pixel_count, n), dtype=bool)

    @property
    def pixel_count(self) -> int:
        return self.values.shape[0]

    @property
    def samples_per_pixel(self) -> int:
        return self.values.shape[1]


class SubPixel:
    __slots__ = ("_arena", "_pixel", "_sample")

    def __init__(self, arena: SampleArena, pixel: int, sample: int):
        self._arena = arena
        self._pixel = pixel
        self._sample = sample

    @property
    def value(self) -> float:
        return float(self._arena.values[self._pixel, self._sample])

    @property
    def color(self) -> Color:
        r, g, b = self._arena.colors[self._pixel, self._sample]
        return Color(float(r), float(g), float(b))

    @property
    def is_colored(self) -> bool:
        return bool(self._arena.assigned[self._pixel, self._sample])

    def set_color(self, color: Color) -> None:
        if self.is_colored:
            raise RuntimeError("sub-pixel color already assigned")
        self._arena.colors[self._pixel, self._sample] = color.to_tuple()
        self._arena.assigned[self._pixel, self._sample] = True

    def __repr__(self) -> str:
        return f"SubPixel(value={self.value}, color={self.color.to_hex()})"


class Pixel:
    def __init__(self, x: int, y: int, arena: SampleArena, index: int):
        self.x = x
        self.y = y
        self._arena = arena
        self._index = index

    @property
    def sub_pixels(self) -> Tuple[SubPixel, ...]:
        return tuple(SubPixel(self._arena, self._index, s) for s in range(self._arena.samples_per_pixel))

    @property
    def color(self) -> Color:
        """Mean of the sub-pixel colors."""
        r, g, b = self._arena.colors[self._index].mean(axis=0)
        return Color(float(r), float(g), float(b))

    def render(self, canvas, policy: str = SUPERSAMPLED) -> None:
        """Plot onto anything exposing set_pixel(x, y, color)."""
        if check_policy(policy) == AVERAGED:
            canvas.set_pixel(self.x, self.y, self.color)
            return
        s = self._arena.supersampling
        for k, sub in enumerate(self.sub_pixels):
            i, j = divmod(k, s)
            canvas.set_pixel(s * self.x + i, s * self.y + j, sub.color)

    def __repr__(self) -> str:
        return f"Pixel(x={self.x}, y={self.y}, color={self.color.to_hex()})"


class Frame(Sequence[Pixel]):
    """Ordered pixels of one render, column-major (x outer, y inner)."""

    def __init__(self, width: int, height: int, arena: SampleArena, pixels: List[Pixel], colored_count: int):
        self.width = width
        self.height = height
        self.arena = arena
        self.colored_count = colored_count
        self._pixels = pixels

    @property
    def supersampling(self) -> int:
        return self.arena.supersampling

    def __len__(self) -> int:
        return len(self._pixels)

    @overload
    def __getitem__(self, index: int) -> Pixel: ...
    @overload
    def __getitem__(self, index: slice) -> List[Pixel]: ...
    def __getitem__(self, index):
        return self._pixels[index]

    def __iter__(self) -> Iterator[Pixel]:
        return iter(self._pixels)

    def pixel_at(self, x: int, y: int) -> Pixel:
        return self._pixels[x * self.height + y]

    def image_size(self, policy: str = SUPERSAMPLED) -> Tuple[int, int]:
        if check_policy(policy) == AVERAGED:
            return self.width, self.height
        return self.width * self.supersampling, self.height * self.supersampling

    def to_array(self, policy: str = SUPERSAMPLED) -> np.ndarray:
        """uint8 (rows, cols, 3) buffer equivalent to rendering every pixel with `policy`."""
        s = self.supersampling
        if check_policy(policy) == AVERAGED:
            rgb = self.arena.colors.mean(axis=1).reshape(self.width, self.height, 3).transpose(1, 0, 2)
        else:
            # (x, y, i, j) -> rows y*s + j, cols x*s + i
            colors = self.arena.colors.reshape(self.width, self.height, s, s, 3)
            rgb = colors.transpose(1, 3, 0, 2, 4).reshape(self.height * s, self.width * s, 3)
        return np.rint(np.clip(rgb, 0.0, 1.0) * 255).astype(np.uint8)

    def to_image(self, policy: str = SUPERSAMPLED) -> Image.Image:
        return Image.fromarray(self.to_array(policy))

    def draw(self, canvas, policy: str = SUPERSAMPLED) -> None:
        for pix in self._pixels:
            pix.render(canvas, policy)

