"""Phase-based coloring of escape values.

Color is computed by representing approximate RGB values with three sine
waves. A true hue wheel would place the waves a third of a turn apart; a sixth
of a turn gives the muted browns and blues used here instead.

The phase is a function of the escape value alone. Raising the iteration limit
therefore never recolors cells that had already escaped.
"""

from dataclasses import dataclass, field
import math

import numpy as np

INTERIOR = (0, 0, 0)


@dataclass(frozen=True)
class SineChannel:
    """One color channel: ``coef * sin(theta + phase) + offset``."""
    coef: float = 104.0
    phase: float = 0.0
    offset: float = 124.0

    def compute(self, theta: np.ndarray) -> np.ndarray:
        level = self.coef * np.sin(theta + self.phase) + self.offset
        return np.clip(level, 0.0, 255.0).astype(np.uint8)


def _sunset() -> tuple:
    return (
        SineChannel(phase=math.pi * 9.0 / 6.0),
        SineChannel(phase=math.pi * 10.0 / 6.0),
        SineChannel(phase=math.pi * 11.0 / 6.0),
    )


@dataclass(frozen=True)
class SinePalette:
    """Maps escape values to RGB through a periodic phase."""
    channels: tuple = field(default_factory=_sunset)
    frequency: float = 0.1
    interior: tuple = INTERIOR

    def phase(self, values: np.ndarray) -> np.ndarray:
        """Angle on the color cycle, in radians within [0, 2pi)."""
        return np.mod(values * self.frequency, 2.0 * math.pi)

    def palette(self, theta: np.ndarray) -> np.ndarray:
        """RGB for each phase angle, shaped ``theta.shape + (3,)``."""
        return np.stack([channel.compute(theta) for channel in self.channels], axis=-1)

    def colorize(self, values: np.ndarray) -> np.ndarray:
        """uint8 RGB grid for a matrix of escape values (NaN means bounded)."""
        bounded = np.isnan(values)
        theta = self.phase(np.where(bounded, 0.0, values))
        rgb = self.palette(theta)
        rgb[bounded] = self.interior
        return rgb

    def color(self, value) -> tuple:
        """RGB for a single escape value; None is the interior."""
        if value is None:
            return tuple(self.interior)
        rgb = self.palette(self.phase(np.array([value], dtype=np.float64)))[0]
        return tuple(int(channel) for channel in rgb)


DEFAULT_PALETTE = SinePalette()


# =============================================================================
# Color Depth Degradation
# =============================================================================

_CUBE_LEVELS = np.array([0, 95, 135, 175, 215, 255])


def _nearest_level(channel: np.ndarray) -> np.ndarray:
    return np.abs(channel[..., np.newaxis].astype(np.int16) - _CUBE_LEVELS).argmin(axis=-1)


def rgb_to_xterm256(grid: np.ndarray) -> np.ndarray:
    """Nearest xterm-256 color index for each RGB cell.

    Picks between the 6x6x6 color cube and the 24-step gray ramp.
    """
    r = _nearest_level(grid[..., 0])
    g = _nearest_level(grid[..., 1])
    b = _nearest_level(grid[..., 2])
    cube_index = 16 + 36 * r + 6 * g + b
    cube_rgb = np.stack([_CUBE_LEVELS[r], _CUBE_LEVELS[g], _CUBE_LEVELS[b]], axis=-1)

    mean = grid.astype(np.int32).mean(axis=-1)
    gray_step = np.clip(np.round((mean - 8) / 10), 0, 23).astype(np.int32)
    gray_level = 8 + 10 * gray_step
    gray_index = 232 + gray_step

    diff = grid.astype(np.int32)
    cube_err = ((diff - cube_rgb) ** 2).sum(axis=-1)
    gray_err = ((diff - gray_level[..., np.newaxis]) ** 2).sum(axis=-1)
    return np.where(gray_err < cube_err, gray_index, cube_index).astype(np.int16)
