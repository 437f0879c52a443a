from __future__ import annotations

from typing import Tuple

from PIL import Image

from mandelview.color import BLACK, Color


class ImageCanvas:
    """Drawing surface backed by a Pillow RGB image, one set_pixel call per plotted point."""

    def __init__(self, size: Tuple[int, int], background: Color = BLACK):
        self.image = Image.new("RGB", size, background.to_rgb8())

    @property
    def size(self) -> Tuple[int, int]:
        return self.image.size

    def set_pixel(self, x: int, y: int, color: Color) -> None:
        self.image.putpixel((x, y), color.to_rgb8())
