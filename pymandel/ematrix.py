"""Escape-time evaluation of the power-iteration fractals.

Every cell is iterated independently under ``z -> z**p + c``. The viewport is
split into bands of rows that are evaluated with vectorized numpy operations on
a thread pool; numpy releases the GIL inside its loops so bands make progress
in parallel.

An escape matrix stores one float per cell: the (optionally smoothed) escape
count, or NaN for cells that never escaped.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional
import logging
import math
import os
import threading

import numpy as np

from .config import ROWS_PER_BAND
from .errors import FrameCancelled
from .params import FractalKind, FractalParams, escape_radius
from .viewport import Viewport

logger = logging.getLogger(__name__)


# =============================================================================
# Escape Matrix
# =============================================================================

@dataclass(frozen=True, eq=False)
class EscapeMatrix:
    """Escape values for every cell of a viewport.

    ``values`` holds the escape value of escaped cells and NaN for bounded
    cells. ``steps`` holds the integer escape step (0 for bounded cells).
    Both arrays are read-only; derived matrices are new objects.
    """
    values: np.ndarray
    steps: np.ndarray
    max_iterations: int
    smoothed: bool

    def __post_init__(self):
        self.values.setflags(write=False)
        self.steps.setflags(write=False)

    @property
    def shape(self) -> tuple:
        return self.values.shape

    @property
    def bounded(self) -> np.ndarray:
        return np.isnan(self.values)

    @property
    def escaped(self) -> np.ndarray:
        return ~np.isnan(self.values)

    def escape_at(self, col: int, row: int) -> Optional[float]:
        """Escape value of one cell, or None when the cell is bounded."""
        value = self.values[row, col]
        return None if math.isnan(value) else float(value)

    def with_values(self, values: np.ndarray) -> "EscapeMatrix":
        """Copy of this matrix with replacement escape values."""
        if values.shape != self.values.shape:
            raise ValueError(f"shape mismatch: {values.shape} != {self.values.shape}")
        return EscapeMatrix(values, self.steps, self.max_iterations, self.smoothed)

    def equals(self, other: "EscapeMatrix") -> bool:
        """Bit-for-bit comparison, treating bounded cells as equal."""
        return (
            self.shape == other.shape
            and self.max_iterations == other.max_iterations
            and self.smoothed == other.smoothed
            and np.array_equal(self.steps, other.steps)
            and np.array_equal(self.values, other.values, equal_nan=True)
        )


# =============================================================================
# Iteration
# =============================================================================

def _power(z: np.ndarray, p: float) -> np.ndarray:
    if p == 2.0:
        return z * z
    if float(p).is_integer():
        return z ** int(p)
    out = np.power(z, p)
    # Principal-branch power of zero is zero for any p > 1
    out[z == 0] = 0
    return out


def _smooth(steps: np.ndarray, modulus: np.ndarray, radius: float, p: float) -> np.ndarray:
    """Normalized iteration count ``n - log(log|z| / log R) / log p``."""
    n = steps.astype(np.float64)
    finite = np.isfinite(modulus)
    ratio = np.log(modulus[finite]) / math.log(radius)
    n[finite] -= np.log(ratio) / math.log(p)
    return n


def iterate(points: np.ndarray, params: FractalParams) -> tuple:
    """Evaluate the recurrence for a 1D array of plane points.

    Returns ``(values, steps)`` arrays shaped like ``points``. Cells that do
    not escape within ``params.max_iterations`` steps get NaN and 0.
    """
    p = params.exponent
    radius = escape_radius(params)
    radius_sq = radius * radius
    limit = params.max_iterations

    size = points.shape[0]
    values = np.full(size, np.nan, dtype=np.float64)
    steps = np.zeros(size, dtype=np.int32)

    index = np.arange(size)

    with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
        if params.kind is FractalKind.MANDELBROT:
            # z_1 = 0**p + c = c
            c = points.copy()
            z = points.copy()
        else:
            c = np.full(size, params.julia_c, dtype=np.complex128)
            z = _power(points.copy(), p) + c

        for n in range(1, limit + 1):
            mag_sq = z.real * z.real + z.imag * z.imag
            # NaN compares false, so non-finite orbits escape here as well
            out = ~(mag_sq <= radius_sq)
            if out.any():
                hit = index[out]
                steps[hit] = n
                if params.smoothing_enabled:
                    smoothed = _smooth(
                        np.full(hit.shape[0], n, dtype=np.int32), np.abs(z[out]), radius, p
                    )
                    values[hit] = np.clip(smoothed, 0.0, float(limit))
                else:
                    values[hit] = float(n)
                keep = ~out
                z = z[keep]
                c = c[keep]
                index = index[keep]
                if index.shape[0] == 0:
                    break
            if n < limit:
                z = _power(z, p) + c

    return values, steps


def escape_value(point: complex, params: FractalParams) -> Optional[float]:
    """Escape value of a single plane point, or None if it stays bounded."""
    values, _ = iterate(np.array([point], dtype=np.complex128), params)
    value = values[0]
    return None if math.isnan(value) else float(value)


# =============================================================================
# Matrix Construction
# =============================================================================

def _bands(height: int) -> list:
    return [(start, min(start + ROWS_PER_BAND, height)) for start in range(0, height, ROWS_PER_BAND)]


def default_workers() -> int:
    return max(1, os.cpu_count() or 1)


def compute_escape_matrix(viewport: Viewport, params: FractalParams,
                          workers: Optional[int] = None,
                          cancel: Optional[threading.Event] = None) -> EscapeMatrix:
    """Evaluate every cell of the viewport.

    The work is split into fixed bands of rows so the result is identical for
    any worker count. Setting ``cancel`` abandons the remaining bands and
    raises FrameCancelled.
    """
    grid = viewport.plane_grid()
    values = np.empty(grid.shape, dtype=np.float64)
    steps = np.empty(grid.shape, dtype=np.int32)
    workers = workers or default_workers()

    def run_band(band):
        if cancel is not None and cancel.is_set():
            raise FrameCancelled("escape matrix cancelled")
        start, stop = band
        band_values, band_steps = iterate(grid[start:stop].ravel(), params)
        values[start:stop] = band_values.reshape(stop - start, viewport.width)
        steps[start:stop] = band_steps.reshape(stop - start, viewport.width)

    bands = _bands(viewport.height)
    if workers == 1 or len(bands) == 1:
        for band in bands:
            run_band(band)
    else:
        with ThreadPoolExecutor(max_workers=min(workers, len(bands))) as pool:
            futures = [pool.submit(run_band, band) for band in bands]
            try:
                for future in futures:
                    future.result()
            except FrameCancelled:
                for future in futures:
                    future.cancel()
                raise

    logger.debug("escape matrix %dx%d, %d bounded",
                 viewport.width, viewport.height, int(np.isnan(values).sum()))
    return EscapeMatrix(values, steps, params.max_iterations, params.smoothing_enabled)
