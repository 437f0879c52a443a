from __future__ import annotations

import logging
import time
from typing import List, Optional

import numpy as np

from mandelview.camera import Camera
from mandelview.histogram import Histogram
from mandelview.pixels import Frame, Pixel, SampleArena
from mandelview.renderers.escape_time import MandelbrotEvaluator, evaluate_samples, prepare_pixel
from mandelview.util.logging_setup import get_logger

# Dimension of the grid used to supersample each pixel.
SUPERSAMPLING = 3

__all__ = [
    "SUPERSAMPLING",
    "count_non_black_sub_pixels",
    "get_pixels",
    "prepare_pixel",
    "render_frame",
    "set_sub_pixels_colors",
]


def count_non_black_sub_pixels(arena: SampleArena) -> int:
    """Number of samples that escaped, i.e. whose divergence is finite."""
    return int(np.count_nonzero(arena.values != np.inf))


def set_sub_pixels_colors(arena: SampleArena, histogram: Histogram) -> int:
    """
    Rank every escaping sample of the frame by divergence and give the k-th
    one the k-th histogram color. Samples inside the set stay black.
    Returns the number of samples colored.
    """
    non_black = count_non_black_sub_pixels(arena)
    if non_black == 0:
        return 0

    flat_values = arena.values.reshape(-1)
    diverging = np.flatnonzero(flat_values != np.inf)
    # stable: equal divergence keeps evaluation order
    ranked = diverging[np.argsort(flat_values[diverging], kind="stable")]

    colors = histogram.generate_array(non_black)
    arena.colors.reshape(-1, 3)[ranked] = colors
    arena.assigned.reshape(-1)[ranked] = True
    return non_black


def get_pixels(arena: SampleArena, width: int, height: int) -> List[Pixel]:
    pixels: List[Pixel] = []
    for x in range(width):
        for y in range(height):
            pixels.append(Pixel(x, y, arena, x * height + y))
    return pixels


def render_frame(
    camera: Camera,
    width: int,
    height: int,
    evaluator: MandelbrotEvaluator,
    histogram: Histogram,
    *,
    supersampling: int = SUPERSAMPLING,
    workers: Optional[int] = None,
    progress: bool = False,
    log_queue=None,
    log_level: int = logging.INFO,
) -> Frame:
    if width < 1 or height < 1:
        raise ValueError("Canvas width/height must be positive.")
    if supersampling < 1:
        raise ValueError("supersampling must be >= 1.")

    logger = get_logger()
    start = time.time()
    logger.info(
        "Frame start size=%sx%s supersampling=%s center=(%s, %s) view_width=%s iter=%s",
        width, height, supersampling, camera.center_x, camera.center_y, camera.width, evaluator.max_iterations,
    )

    values = evaluate_samples(
        camera, width, height, supersampling, evaluator,
        workers=workers, progress=progress, log_queue=log_queue, log_level=log_level,
    )
    arena = SampleArena(width * height, supersampling, values)

    colored = set_sub_pixels_colors(arena, histogram)
    if colored == 0:
        logger.info("No sample escaped; frame left at background color")
    else:
        logger.info("Colored %s of %s samples", colored, arena.values.size)

    frame = Frame(width, height, arena, get_pixels(arena, width, height), colored)
    logger.info("Frame done time=%.2fs", time.time() - start)
    return frame
