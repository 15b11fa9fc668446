"""Gaussian smoothing of escape matrices.

The filter is a normalized convolution: each escaped cell becomes the weighted
mean of the escaped cells in its window, divided by the total weight that
actually landed. A neighbor only counts when it escaped no later than the cell
itself. Cells beyond the matrix edge, bounded cells and slower neighbors all
count as missing, so the kernel is clipped and renormalized at borders and
along the edge of the set alike. Bounded cells stay bounded.

Escape steps of escaped cells do not depend on the iteration limit, and any
cell that only escapes under a higher limit has a step above the old one. The
blurred value of a cell therefore never changes when the limit is raised.

Every output is a weighted mean of escaped neighbors with positive weights, so
no blurred value can leave the range of its neighborhood.
"""

import numpy as np

from .ematrix import EscapeMatrix


def gaussian_kernel(radius: int, sigma: float) -> np.ndarray:
    """Normalized 1D Gaussian taps for offsets ``-radius..radius``."""
    if radius <= 0 or sigma <= 0:
        return np.ones(1)
    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    kernel = np.exp(-(offsets * offsets) / (2.0 * sigma * sigma))
    return kernel / kernel.sum()


def blur(matrix: EscapeMatrix, radius: int, sigma: float) -> EscapeMatrix:
    """Return a blurred copy of ``matrix``."""
    kernel = gaussian_kernel(radius, sigma)
    if len(kernel) == 1:
        return matrix
    radius = len(kernel) // 2
    weights = np.outer(kernel, kernel)

    height, width = matrix.shape
    escaped = matrix.escaped
    steps = matrix.steps
    pad = ((radius, radius), (radius, radius))
    # Zero padding marks everything past the border as not escaped
    padded_values = np.pad(np.where(escaped, matrix.values, 0.0), pad)
    padded_escaped = np.pad(escaped, pad)
    padded_steps = np.pad(steps, pad)

    total = np.zeros(matrix.shape, dtype=np.float64)
    norm = np.zeros(matrix.shape, dtype=np.float64)
    for dy in range(2 * radius + 1):
        for dx in range(2 * radius + 1):
            window = (slice(dy, dy + height), slice(dx, dx + width))
            counts = padded_escaped[window] & (padded_steps[window] <= steps)
            weight = weights[dy, dx]
            total += np.where(counts, weight * padded_values[window], 0.0)
            norm += np.where(counts, weight, 0.0)

    out = np.full(matrix.shape, np.nan, dtype=np.float64)
    # An escaped cell always carries its own center weight, so norm > 0 there
    out[escaped] = total[escaped] / norm[escaped]
    return matrix.with_values(out)
