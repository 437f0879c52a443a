import math

import numpy as np
import pytest

from mandelview.color import BLACK, WHITE, Color
from mandelview.pixels import AVERAGED, Frame, Pixel, SampleArena, SubPixel


class RecordingCanvas:
    def __init__(self):
        self.points = {}

    def set_pixel(self, x, y, color):
        self.points[(x, y)] = color


def _arena():
    arena = SampleArena(1, 2, np.array([[1.0, 2.0, math.inf, 4.0]]))
    SubPixel(arena, 0, 0).set_color(WHITE)
    SubPixel(arena, 0, 3).set_color(Color(1.0, 0.0, 0.0))
    return arena


def test_arena_defaults():
    arena = SampleArena(2, 3)
    assert arena.values.shape == (2, 9)
    assert np.isinf(arena.values).all()
    assert arena.colors.shape == (2, 9, 3)


def test_arena_shape_checked():
    with pytest.raises(ValueError):
        SampleArena(2, 2, np.zeros((2, 3)))


def test_sub_pixel_defaults_to_black():
    sub = SubPixel(_arena(), 0, 2)
    assert sub.value == math.inf
    assert sub.color == BLACK
    assert not sub.is_colored


def test_sub_pixel_colored_once():
    sub = SubPixel(_arena(), 0, 0)
    assert sub.color == WHITE
    with pytest.raises(RuntimeError):
        sub.set_color(BLACK)


def test_pixel_average():
    pix = Pixel(0, 0, _arena(), 0)
    assert len(pix.sub_pixels) == 4
    assert pix.color == Color(0.5, 0.25, 0.25)


def test_supersampled_render_places_samples():
    canvas = RecordingCanvas()
    Pixel(3, 1, _arena(), 0).render(canvas)
    # sample k = i*2 + j plots at (2x + i, 2y + j)
    assert canvas.points == {
        (6, 2): WHITE,
        (6, 3): BLACK,
        (7, 2): BLACK,
        (7, 3): Color(1.0, 0.0, 0.0),
    }


def test_averaged_render():
    canvas = RecordingCanvas()
    Pixel(3, 1, _arena(), 0).render(canvas, AVERAGED)
    assert canvas.points == {(3, 1): Color(0.5, 0.25, 0.25)}


def test_unknown_policy():
    with pytest.raises(ValueError):
        Pixel(0, 0, _arena(), 0).render(RecordingCanvas(), "dithered")


def test_frame_image():
    arena = _arena()
    frame = Frame(1, 1, arena, [Pixel(0, 0, arena, 0)], 2)
    assert frame.image_size() == (2, 2)
    assert frame.image_size(AVERAGED) == (1, 1)
    img = frame.to_image()
    assert img.size == (2, 2)
    assert img.getpixel((0, 0)) == (255, 255, 255)
    assert img.getpixel((1, 1)) == (255, 0, 0)
    assert img.getpixel((1, 0)) == (0, 0, 0)
    assert frame.to_image(AVERAGED).getpixel((0, 0)) == (128, 64, 64)
