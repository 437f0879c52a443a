import math

import numpy as np
import pytest

from mandelview.camera import Camera, home_camera
from mandelview.canvas import ImageCanvas
from mandelview.color import BLACK, DEFAULT_COLORS, WHITE
from mandelview.frame import count_non_black_sub_pixels, get_pixels, render_frame, set_sub_pixels_colors
from mandelview.histogram import Histogram
from mandelview.pixels import SampleArena
from mandelview.renderers.escape_time import MandelbrotEvaluator


def _small_frame(**kwargs):
    params = dict(supersampling=2)
    params.update(kwargs)
    return render_frame(home_camera(6, 4), 6, 4, MandelbrotEvaluator(max_iterations=80), Histogram.default(), **params)


def test_set_colors_ranks_by_divergence():
    arena = SampleArena(4, 1, np.array([[3.0], [math.inf], [1.0], [3.0]]))
    colored = set_sub_pixels_colors(arena, Histogram([0.0, 1.0], [BLACK, WHITE]))
    assert colored == 3
    # ties keep evaluation order: pixel 0 before pixel 3
    assert arena.colors[:, 0, 0].tolist() == [0.5, 0.0, 0.0, 1.0]
    assert arena.assigned[:, 0].tolist() == [True, False, True, True]


def test_count_non_black():
    arena = SampleArena(2, 2, np.array([[1.0, math.inf, 2.0, math.inf], [math.inf] * 4]))
    assert count_non_black_sub_pixels(arena) == 2


def test_all_interior_skips_coloring():
    arena = SampleArena(3, 1)
    assert set_sub_pixels_colors(arena, Histogram.default()) == 0
    assert not arena.assigned.any()
    assert not arena.colors.any()


def test_end_to_end_four_by_four():
    frame = render_frame(home_camera(4, 4), 4, 4, MandelbrotEvaluator(), Histogram.default(), supersampling=1)
    assert len(frame) == 16
    corner = frame.pixel_at(0, 0)
    # c = -2 + 1.5i escapes on the first step: lowest rank
    assert corner.sub_pixels[0].value == 1.0
    assert corner.sub_pixels[0].color == DEFAULT_COLORS[0]
    inside = frame.pixel_at(2, 2)
    # c = -0.5 + 0i lies inside the set
    assert inside.sub_pixels[0].value == math.inf
    assert inside.sub_pixels[0].color == BLACK
    assert not inside.sub_pixels[0].is_colored


def test_fully_interior_view():
    frame = render_frame(Camera(0.0, 0.0, 0.01, 1.0), 5, 5, MandelbrotEvaluator(), Histogram.default(), supersampling=2)
    assert frame.colored_count == 0
    assert all(sub.color == BLACK for pix in frame for sub in pix.sub_pixels)
    assert not frame.to_array().any()


def test_render_is_deterministic():
    assert _small_frame().to_array().tobytes() == _small_frame().to_array().tobytes()


def test_worker_pool_gives_same_frame():
    assert _small_frame(workers=2).to_array().tobytes() == _small_frame().to_array().tobytes()


def test_pixels_are_column_major():
    frame = _small_frame()
    assert [(p.x, p.y) for p in frame] == [(x, y) for x in range(6) for y in range(4)]
    assert all(len(p.sub_pixels) == 4 for p in frame)


def test_colored_count_matches_escaped_samples():
    frame = _small_frame()
    assert frame.colored_count == count_non_black_sub_pixels(frame.arena)
    assert frame.colored_count == int(frame.arena.assigned.sum())


def test_get_pixels_indexing():
    arena = SampleArena(6, 1)
    pixels = get_pixels(arena, 3, 2)
    assert [(p.x, p.y) for p in pixels] == [(0, 0), (0, 1), (1, 0), (1, 1), (2, 0), (2, 1)]


@pytest.mark.parametrize("width,height,supersampling", [(0, 4, 1), (4, 0, 1), (4, 4, 0)])
def test_rejects_empty_canvas(width, height, supersampling):
    with pytest.raises(ValueError):
        render_frame(home_camera(4, 4), width, height, MandelbrotEvaluator(), Histogram.default(), supersampling=supersampling)


@pytest.mark.parametrize("policy", ["supersampled", "averaged"])
def test_drawing_matches_buffer(policy):
    frame = _small_frame()
    canvas = ImageCanvas(frame.image_size(policy))
    frame.draw(canvas, policy)
    np.testing.assert_array_equal(np.asarray(canvas.image), frame.to_array(policy))
