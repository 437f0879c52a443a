import math

import numpy as np
import pytest

from mandelview.camera import HOME_CAMERA, Camera, Complex
from mandelview.errors import ConfigurationError
from mandelview.renderers.escape_time import (
    MandelbrotEvaluator,
    column_bands,
    evaluate_samples,
    prepare_pixel,
)


@pytest.mark.parametrize("c", [Complex(0.0, 0.0), Complex(-1.0, 0.0), Complex(-0.5, 0.0), Complex(0.25, 0.0)])
def test_points_in_set_do_not_diverge(c):
    assert MandelbrotEvaluator().divergence(c) == math.inf


def test_far_point_escapes_immediately():
    assert MandelbrotEvaluator().divergence(Complex(3.0, 3.0)) == 1.0


def test_escape_count_grows_near_boundary():
    ev = MandelbrotEvaluator()
    far = ev.divergence(Complex(2.0, 2.0))
    near = ev.divergence(Complex(0.26, 0.0))
    assert far < near < math.inf


def test_iteration_limit_bounds_result():
    ev = MandelbrotEvaluator(max_iterations=5)
    # escapes only after many more than five steps
    assert ev.divergence(Complex(0.26, 0.0)) == math.inf


@pytest.mark.parametrize("kwargs", [{"max_iterations": 0}, {"escape_radius_squared": 0.0}])
def test_invalid_evaluator(kwargs):
    with pytest.raises(ConfigurationError):
        MandelbrotEvaluator(**kwargs)


def test_prepare_pixel_sample_order():
    cam = Camera(0.0, 0.0, 4.0, 1.0)
    ev = MandelbrotEvaluator()
    values = prepare_pixel(0, 0, camera=cam, evaluator=ev, width=1, height=1, supersampling=2)
    # i=0,j=0 samples the top-left corner (-2, 2); i=1,j=1 the view center
    assert values.shape == (4,)
    assert values[0] == ev.divergence(Complex(-2.0, 2.0))
    assert values[3] == math.inf


def test_column_bands_cover_width():
    assert column_bands(5, 2) == [(0, 2), (2, 4), (4, 5)]
    assert column_bands(3, 16) == [(0, 3)]


def test_evaluate_samples_layout():
    ev = MandelbrotEvaluator(max_iterations=50)
    values = evaluate_samples(HOME_CAMERA, 3, 2, 2, ev, band_width=2)
    assert values.shape == (6, 4)
    for x in range(3):
        for y in range(2):
            expected = prepare_pixel(x, y, camera=HOME_CAMERA, evaluator=ev, width=3, height=2, supersampling=2)
            np.testing.assert_array_equal(values[x * 2 + y], expected)


def test_process_pool_matches_serial():
    ev = MandelbrotEvaluator(max_iterations=60)
    serial = evaluate_samples(HOME_CAMERA, 8, 6, 2, ev)
    pooled = evaluate_samples(HOME_CAMERA, 8, 6, 2, ev, workers=2, band_width=3)
    np.testing.assert_array_equal(serial, pooled)


def _reference_divergence(c, max_iter=500):
    z = 0j
    n = 0
    while n < max_iter and z.real * z.real + z.imag * z.imag <= 4.0:
        z = z * z + c
        n += 1
    return math.inf if z.real * z.real + z.imag * z.imag <= 4.0 else float(n)


@pytest.mark.parametrize("re", [-2.0, -1.3, -0.75, -0.1, 0.3, 0.45])
@pytest.mark.parametrize("im", [-1.0, -0.3, 0.0, 0.65])
def test_matches_builtin_complex_iteration(re, im):
    assert MandelbrotEvaluator().divergence(Complex(re, im)) == _reference_divergence(complex(re, im))
