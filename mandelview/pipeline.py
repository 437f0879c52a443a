from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional

from PIL import Image

from mandelview.camera import Camera
from mandelview.canvas import ImageCanvas
from mandelview.frame import SUPERSAMPLING, render_frame
from mandelview.histogram import Histogram
from mandelview.pixels import SUPERSAMPLED, Frame
from mandelview.renderers.escape_time import MandelbrotEvaluator
from mandelview.util.logging_setup import get_logger


@dataclass(frozen=True)
class RenderRequest:
    """Everything one render reads. Reconfiguring means building a new request."""

    camera: Camera
    width: int
    height: int
    histogram: Histogram = field(default_factory=Histogram.default)
    evaluator: MandelbrotEvaluator = field(default_factory=MandelbrotEvaluator)
    supersampling: int = SUPERSAMPLING
    workers: Optional[int] = None


def render(request: RenderRequest, *, progress: bool = False, log_queue=None, log_level: int = logging.INFO) -> Frame:
    return render_frame(
        request.camera, request.width, request.height, request.evaluator, request.histogram,
        supersampling=request.supersampling, workers=request.workers,
        progress=progress, log_queue=log_queue, log_level=log_level,
    )


def compose_image(frame: Frame, policy: str = SUPERSAMPLED, *, per_pixel: bool = False) -> Image.Image:
    """Turn a frame into an image, either from the sample buffer or by plotting pixel by pixel."""
    if not per_pixel:
        return frame.to_image(policy)
    canvas = ImageCanvas(frame.image_size(policy))
    frame.draw(canvas, policy)
    return canvas.image


class RenderService:
    """
    Runs renders one at a time on a background thread.

    submit() hands back a Future; callers poll it or attach a done callback.
    A newer submission cancels older ones that have not started yet, so a
    burst of requests only renders the first and the last.
    """

    def __init__(self, *, progress: bool = False, log_queue=None, log_level: int = logging.INFO):
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="render")
        self._progress = progress
        self._log_queue = log_queue
        self._log_level = log_level
        self._lock = threading.Lock()
        self._pending: List[Future] = []
        self._latest: Optional[Future] = None

    def submit(self, request: RenderRequest) -> "Future[Frame]":
        logger = get_logger()
        with self._lock:
            for stale in self._pending:
                if stale.cancel():
                    logger.info("Discarded stale render request")
            fut = self._executor.submit(
                render, request,
                progress=self._progress, log_queue=self._log_queue, log_level=self._log_level,
            )
            self._pending = [fut]
            self._latest = fut
        return fut

    def is_latest(self, fut: Future) -> bool:
        with self._lock:
            return fut is self._latest

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "RenderService":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown(wait=True)
