from __future__ import annotations

import logging
import math
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
from tqdm import tqdm

from mandelview.camera import ORIGIN, Camera, Complex
from mandelview.errors import ConfigurationError
from mandelview.util.logging_setup import get_logger, logging_initialiser

DEFAULT_MAX_ITERATIONS = 500
DEFAULT_ESCAPE_RADIUS_SQUARED = 4.0


@dataclass(frozen=True)
class MandelbrotEvaluator:
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    escape_radius_squared: float = DEFAULT_ESCAPE_RADIUS_SQUARED

    def __post_init__(self) -> None:
        if self.max_iterations <= 0:
            raise ConfigurationError("max_iterations must be positive.")
        if not self.escape_radius_squared > 0:
            raise ConfigurationError("escape_radius_squared must be positive.")

    def divergence(self, c: Complex) -> float:
        """
        Iterate z -> z*z + c from z = 0 and return the number of steps taken
        before |z|^2 exceeds the escape threshold, or +inf when the orbit is
        still bounded after max_iterations steps.
        """
        z = ORIGIN
        r2 = self.escape_radius_squared
        max_iter = self.max_iterations
        n = 0
        while n < max_iter and z.squared_modulus() <= r2:
            z = z * z + c
            n += 1
        if z.squared_modulus() <= r2:
            return math.inf
        return float(n)



def prepare_pixel(
    x: int,
    y: int,
    *,
    camera: Camera,
    evaluator: MandelbrotEvaluator,
    width: int,
    height: int,
    supersampling: int,
) -> np.ndarray:
    """Divergence of each of the supersampling**2 samples of pixel (x, y), sample index i*S + j."""
    total_width = float(supersampling * width)
    total_height = float(supersampling * height)
    out = np.empty(supersampling * supersampling, dtype=np.float64)
    k = 0
    for i in range(supersampling):
        for j in range(supersampling):
            z = camera.to_complex(
                (supersampling * x + i) / total_width,
                1 - (supersampling * y + j) / total_height,  # invert y-axis
            )
            out[k] = evaluator.divergence(z)
            k += 1
    return out


def _evaluate_columns(
    x0: int,
    x1: int,
    *,
    camera: Camera,
    evaluator: MandelbrotEvaluator,
    width: int,
    height: int,
    supersampling: int,
) -> np.ndarray:
    block = np.empty(((x1 - x0) * height, supersampling * supersampling), dtype=np.float64)
    for xi, x in enumerate(range(x0, x1)):
        for y in range(height):
            block[xi * height + y] = prepare_pixel(
                x, y, camera=camera, evaluator=evaluator,
                width=width, height=height, supersampling=supersampling,
            )
    return block


_G = {}

def _init_worker(camera, evaluator, width, height, supersampling, log_queue, log_level):
    _G["camera"] = camera
    _G["evaluator"] = evaluator
    _G["width"] = width
    _G["height"] = height
    _G["supersampling"] = supersampling
    logging_initialiser(log_queue, log_level)

def _evaluate_band(x0_x1: Tuple[int, int]):
    x0, x1 = x0_x1
    block = _evaluate_columns(
        x0, x1,
        camera=_G["camera"], evaluator=_G["evaluator"],
        width=_G["width"], height=_G["height"], supersampling=_G["supersampling"],
    )
    get_logger().debug("Evaluated columns %s..%s", x0, x1 - 1)
    return x0, block


def column_bands(width: int, band_width: int) -> List[Tuple[int, int]]:
    bands: List[Tuple[int, int]] = []
    x = 0
    while x < width:
        x1 = min(width, x + band_width)
        bands.append((x, x1))
        x = x1
    return bands


def evaluate_samples(
    camera: Camera,
    width: int,
    height: int,
    supersampling: int,
    evaluator: MandelbrotEvaluator,
    *,
    workers: Optional[int] = None,
    progress: bool = False,
    log_queue=None,
    log_level: int = logging.INFO,
    band_width: int = 16,
) -> np.ndarray:
    """
    Divergence of every sample of the canvas as a (width*height, S*S) array.
    Row x*height + y holds pixel (x, y). With workers > 1 column bands are
    evaluated in a process pool; the result does not depend on the split.
    """
    logger = get_logger()
    values = np.empty((width * height, supersampling * supersampling), dtype=np.float64)
    bands = column_bands(width, band_width)

    if not workers or workers <= 1:
        for x0, x1 in tqdm(bands, desc="columns", unit="band", disable=not progress):
            values[x0 * height:x1 * height] = _evaluate_columns(
                x0, x1, camera=camera, evaluator=evaluator,
                width=width, height=height, supersampling=supersampling,
            )
        return values

    logger.info("Evaluating %s bands on %s worker processes", len(bands), workers)
    with ProcessPoolExecutor(
        max_workers=workers,
        initializer=_init_worker,
        initargs=(camera, evaluator, width, height, supersampling, log_queue, log_level),
    ) as pool:
        results = pool.map(_evaluate_band, bands)
        for x0, block in tqdm(results, total=len(bands), desc="columns", unit="band", disable=not progress):
            values[x0 * height:x0 * height + block.shape[0]] = block
    return values
