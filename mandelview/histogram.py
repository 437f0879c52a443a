from __future__ import annotations

import math
from bisect import bisect_right
from typing import List, Sequence, Tuple

import numpy as np

from mandelview.color import DEFAULT_BREAKPOINTS, DEFAULT_COLORS, Color
from mandelview.errors import ConfigurationError


class Histogram:
    """
    Rank-based color distribution.

    The k-th of n diverging samples (ascending divergence) sits at position
    p = k / (n - 1) and takes the color interpolated between the two stops
    whose breakpoints enclose p. Breakpoints are percentiles of the sample
    count, not of the divergence scale.
    """

    def __init__(self, breakpoints: Sequence[float], colors: Sequence[Color]):
        self._breakpoints: Tuple[float, ...] = tuple(float(b) for b in breakpoints)
        self._colors: Tuple[Color, ...] = tuple(colors)
        _validate(self._breakpoints, self._colors)

    @classmethod
    def default(cls) -> "Histogram":
        return cls(DEFAULT_BREAKPOINTS, DEFAULT_COLORS)

    @property
    def breakpoints(self) -> Tuple[float, ...]:
        return self._breakpoints

    @property
    def colors(self) -> Tuple[Color, ...]:
        return self._colors

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Histogram):
            return NotImplemented
        return self._breakpoints == other._breakpoints and self._colors == other._colors

    def __hash__(self) -> int:
        return hash((self._breakpoints, self._colors))

    def __repr__(self) -> str:
        stops = ", ".join(f"{b:g}:{c.to_hex()}" for b, c in zip(self._breakpoints, self._colors))
        return f"Histogram({stops})"

    def with_color(self, index: int, color: Color) -> "Histogram":
        if not 0 <= index < len(self._colors):
            raise ConfigurationError(f"Color index {index} out of range 0..{len(self._colors) - 1}.")
        colors = list(self._colors)
        colors[index] = color
        return Histogram(self._breakpoints, colors)

    def with_breakpoints(self, breakpoints: Sequence[float]) -> "Histogram":
        return Histogram(breakpoints, self._colors)

    def locate(self, p: float) -> Tuple[int, float]:
        """Return the segment index i and interpolation parameter t for position p."""
        bps = self._breakpoints
        i = min(max(bisect_right(bps, p) - 1, 0), len(bps) - 2)
        lo, hi = bps[i], bps[i + 1]
        if hi == lo:
            return i, 0.0
        return i, min(1.0, (p - lo) / (hi - lo))

    def generate(self, n: int) -> List[Color]:
        return [Color(float(r), float(g), float(b)) for r, g, b in self.generate_array(n)]

    def generate_array(self, n: int) -> np.ndarray:
        if n < 1:
            raise ValueError("n must be >= 1")
        bps = np.asarray(self._breakpoints, dtype=np.float64)
        stops = np.asarray([c.to_tuple() for c in self._colors], dtype=np.float64)

        if n > 1:
            p = np.arange(n, dtype=np.float64) / (n - 1)
        else:
            p = np.zeros(1, dtype=np.float64)

        i = np.clip(np.searchsorted(bps, p, side="right") - 1, 0, len(bps) - 2)
        lo = bps[i]
        span = bps[i + 1] - lo
        t = np.divide(p - lo, span, out=np.zeros_like(p), where=span > 0)
        t = np.clip(t, 0.0, 1.0)[:, None]

        return (1.0 - t) * stops[i] + t * stops[i + 1]


def _validate(breakpoints: Tuple[float, ...], colors: Tuple[Color, ...]) -> None:
    if len(breakpoints) != len(colors):
        raise ConfigurationError(
            f"Histogram needs one color per breakpoint (got {len(breakpoints)} breakpoints, {len(colors)} colors)."
        )
    if len(breakpoints) < 2:
        raise ConfigurationError("Histogram needs at least two stops.")
    for c in colors:
        if not isinstance(c, Color):
            raise ConfigurationError(f"Histogram colors must be Color values, got {c!r}.")
    for b in breakpoints:
        if math.isnan(b) or b < 0.0 or b > 1.0:
            raise ConfigurationError(f"Breakpoint {b!r} outside [0, 1].")
    for a, b in zip(breakpoints, breakpoints[1:]):
        if b < a:
            raise ConfigurationError(f"Breakpoints must be sorted ascending ({a} > {b}).")
    if breakpoints[0] != 0.0 or breakpoints[-1] != 1.0:
        raise ConfigurationError("Breakpoints must start at 0.0 and end at 1.0.")
