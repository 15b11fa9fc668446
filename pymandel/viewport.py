"""Mapping between render-surface cells and the complex plane."""

from dataclasses import dataclass, replace
import math

import numpy as np

from .config import BASE_HALF_WIDTH, TERMINAL_CELL_ASPECT
from .errors import InvalidParameterError


@dataclass(frozen=True)
class Viewport:
    """A window onto the complex plane, measured in surface cells.

    ``zoom`` scales the half-width of the visible real range, so smaller values
    show a smaller region. ``cell_aspect`` is the height of a cell divided by
    its width; terminal cells are about twice as tall as they are wide, so each
    row covers ``cell_aspect`` times more of the imaginary axis than each column
    covers of the real axis.
    """
    center: complex = 0j
    zoom: float = 1.0
    width: int = 80
    height: int = 24
    cell_aspect: float = TERMINAL_CELL_ASPECT

    def __post_init__(self):
        object.__setattr__(self, "center", complex(self.center))
        if not (math.isfinite(self.center.real) and math.isfinite(self.center.imag)):
            raise InvalidParameterError(f"center must be finite, got {self.center}")
        if not (self.zoom > 0 and math.isfinite(self.zoom)):
            raise InvalidParameterError(f"zoom must be positive, got {self.zoom}")
        if self.width <= 0 or self.height <= 0:
            raise InvalidParameterError(
                f"dimensions must be positive, got {self.width}x{self.height}"
            )
        if not (self.cell_aspect > 0 and math.isfinite(self.cell_aspect)):
            raise InvalidParameterError(
                f"cell_aspect must be positive, got {self.cell_aspect}"
            )

    @property
    def half_width(self) -> float:
        return self.zoom * BASE_HALF_WIDTH

    @property
    def step(self) -> float:
        """Real-axis distance between horizontally adjacent cells."""
        return 2.0 * self.half_width / self.width

    @property
    def row_step(self) -> float:
        """Imaginary-axis distance between vertically adjacent cells."""
        return self.step * self.cell_aspect

    @property
    def origin(self) -> tuple:
        """The (col, row) cell that maps exactly onto ``center``."""
        return self.width // 2, self.height // 2

    def plane_point(self, col: int, row: int) -> complex:
        """Complex value at the given cell."""
        col0, row0 = self.origin
        return complex(
            self.center.real + (col - col0) * self.step,
            self.center.imag - (row - row0) * self.row_step,
        )

    def cell_at(self, point: complex) -> tuple:
        """Nearest (col, row) for a complex value. May lie outside the surface."""
        col0, row0 = self.origin
        col = round((point.real - self.center.real) / self.step) + col0
        row = round((self.center.imag - point.imag) / self.row_step) + row0
        return int(col), int(row)

    def plane_grid(self) -> np.ndarray:
        """Complex value of every cell, shaped ``(height, width)``."""
        col0, row0 = self.origin
        re = self.center.real + (np.arange(self.width) - col0) * self.step
        im = self.center.imag - (np.arange(self.height) - row0) * self.row_step
        grid = np.empty((self.height, self.width), dtype=np.complex128)
        grid.real = re[np.newaxis, :]
        grid.imag = im[:, np.newaxis]
        return grid

    def extent(self) -> tuple:
        """(re_min, re_max, im_min, im_max) covered by cell centers."""
        top_left = self.plane_point(0, 0)
        bottom_right = self.plane_point(self.width - 1, self.height - 1)
        return top_left.real, bottom_right.real, bottom_right.imag, top_left.imag

    # =========================================================================
    # Derived viewports
    # =========================================================================

    def panned(self, dx: float, dy: float) -> "Viewport":
        """Shift the center by fractions of the visible width and height.

        Positive ``dy`` moves up the imaginary axis.
        """
        visible_w = self.step * self.width
        visible_h = self.row_step * self.height
        return replace(self, center=self.center + complex(dx * visible_w, dy * visible_h))

    def zoomed(self, factor: float) -> "Viewport":
        """Zoom in by ``factor`` (values below 1 zoom out)."""
        if not factor > 0:
            raise InvalidParameterError(f"zoom factor must be positive, got {factor}")
        return replace(self, zoom=self.zoom / factor)

    def resized(self, width: int, height: int) -> "Viewport":
        return replace(self, width=width, height=height)

    def with_aspect(self, cell_aspect: float) -> "Viewport":
        return replace(self, cell_aspect=cell_aspect)

    def moved_to(self, center: complex) -> "Viewport":
        return replace(self, center=center)

    def to_dict(self) -> dict:
        return {
            "center": [self.center.real, self.center.imag],
            "zoom": self.zoom,
            "width": self.width,
            "height": self.height,
            "cell_aspect": self.cell_aspect,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Viewport":
        re, im = data["center"]
        return cls(
            center=complex(re, im),
            zoom=float(data["zoom"]),
            width=int(data["width"]),
            height=int(data["height"]),
            cell_aspect=float(data.get("cell_aspect", TERMINAL_CELL_ASPECT)),
        )
