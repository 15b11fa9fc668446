import numpy as np
import pytest

from pymandel.errors import InvalidParameterError
from pymandel.viewport import Viewport


def test_origin_cell_maps_to_center():
    viewport = Viewport(complex(-0.5, 0.25), 1.0, 80, 24)
    assert viewport.plane_point(40, 12) == complex(-0.5, 0.25)


def test_rows_cover_more_of_the_plane_than_columns():
    # Terminal cells are taller than wide: one row step must be cell_aspect
    # column steps, not the other way around.
    viewport = Viewport(0j, 1.0, 80, 24, cell_aspect=2.0)
    right = viewport.plane_point(41, 12) - viewport.plane_point(40, 12)
    down = viewport.plane_point(40, 13) - viewport.plane_point(40, 12)
    assert right.imag == 0.0
    assert down.real == 0.0
    assert right.real > 0
    assert down.imag < 0
    assert -down.imag == pytest.approx(2.0 * right.real)


def test_circle_renders_as_circle():
    viewport = Viewport(0j, 1.0, 200, 60, cell_aspect=2.0)
    inside = np.abs(viewport.plane_grid()) <= 0.99
    rows = np.flatnonzero(inside.any(axis=1))
    cols = np.flatnonzero(inside.any(axis=0))
    row_span = rows[-1] - rows[0] + 1
    col_span = cols[-1] - cols[0] + 1

    # Physical extents: a column is one unit wide, a row cell_aspect units tall
    assert abs(col_span - row_span * viewport.cell_aspect) <= viewport.cell_aspect
    assert col_span > row_span


def test_plane_grid_matches_plane_point():
    viewport = Viewport(complex(0.3, -0.7), 0.125, 33, 17)
    grid = viewport.plane_grid()
    assert grid.shape == (17, 33)
    for col, row in [(0, 0), (16, 8), (32, 16), (5, 11)]:
        assert grid[row, col] == viewport.plane_point(col, row)


def test_cell_at_inverts_plane_point():
    viewport = Viewport(complex(-1.25, 0.1), 0.5, 64, 20)
    for col in (0, 7, 32, 63):
        for row in (0, 10, 19):
            assert viewport.cell_at(viewport.plane_point(col, row)) == (col, row)


def test_zoom_scales_half_width():
    viewport = Viewport(0j, 1.0, 80, 24)
    re_min, re_max, _, _ = viewport.extent()
    zoomed = viewport.zoomed(2.0)
    z_min, z_max, _, _ = zoomed.extent()
    assert zoomed.zoom == 0.5
    assert zoomed.center == viewport.center
    assert (z_max - z_min) == pytest.approx((re_max - re_min) / 2)


def test_pan_moves_by_fraction_of_visible_area():
    viewport = Viewport(0j, 1.0, 80, 24, cell_aspect=2.0)
    right = viewport.panned(0.1, 0.0)
    up = viewport.panned(0.0, 0.1)
    assert right.center.real == pytest.approx(0.4)
    assert right.center.imag == 0.0
    assert up.center.imag == pytest.approx(0.1 * viewport.row_step * 24)
    assert (right.zoom, right.width, right.height) == (1.0, 80, 24)


@pytest.mark.parametrize("kwargs", [
    {"zoom": 0.0},
    {"zoom": -1.0},
    {"zoom": float("nan")},
    {"width": 0},
    {"height": -3},
    {"cell_aspect": 0.0},
    {"center": complex(float("inf"), 0)},
])
def test_invalid_viewport_rejected(kwargs):
    with pytest.raises(InvalidParameterError):
        Viewport(**kwargs)


def test_dict_round_trip():
    viewport = Viewport(complex(0.1, -0.2), 0.03, 120, 40, 2.3)
    assert Viewport.from_dict(viewport.to_dict()) == viewport
