import numpy as np
import pytest

from pymandel.ematrix import EscapeMatrix, compute_escape_matrix, escape_value, iterate
from pymandel.params import FractalKind, FractalParams, escape_radius
from pymandel.viewport import Viewport


@pytest.fixture
def terminal_view():
    return Viewport(complex(-0.5, 0.0), 1.0, 80, 24)


def test_example_scenario(terminal_view):
    params = FractalParams(exponent=2.0, max_iterations=100, smoothing_enabled=False)
    matrix = compute_escape_matrix(terminal_view, params)

    assert matrix.shape == (24, 80)
    assert terminal_view.plane_point(40, 12) == complex(-0.5, 0.0)
    assert matrix.escape_at(40, 12) is None
    assert matrix.bounded[12, 40]

    assert escape_value(complex(2.0, 2.0), params) == 1.0


def test_far_point_escapes_on_first_step():
    params = FractalParams(smoothing_enabled=False)
    viewport = Viewport(complex(2.0, 2.0), 1.0, 9, 5)
    matrix = compute_escape_matrix(viewport, params)
    assert matrix.steps[2, 4] == 1
    assert matrix.escape_at(4, 2) == 1.0


def test_deterministic(terminal_view):
    params = FractalParams(exponent=2.5, max_iterations=60)
    first = compute_escape_matrix(terminal_view, params)
    second = compute_escape_matrix(terminal_view, params)
    assert first.equals(second)


def test_worker_count_does_not_change_result(terminal_view):
    params = FractalParams(max_iterations=80)
    serial = compute_escape_matrix(terminal_view, params, workers=1)
    parallel = compute_escape_matrix(terminal_view, params, workers=4)
    assert serial.equals(parallel)


@pytest.mark.parametrize("exponent", [1.5, 2.0, 3.0, 4.7])
@pytest.mark.parametrize("smoothing", [True, False])
def test_values_within_iteration_budget(exponent, smoothing):
    params = FractalParams(exponent=exponent, max_iterations=50, smoothing_enabled=smoothing)
    matrix = compute_escape_matrix(Viewport(0j, 1.5, 60, 20), params)
    values = matrix.values[matrix.escaped]
    assert values.size > 0
    assert values.min() >= 0.0
    assert values.max() <= 50.0
    assert np.all(matrix.steps[matrix.escaped] >= 1)
    assert np.all(matrix.steps[matrix.bounded] == 0)


def test_unsmoothed_values_are_escape_steps(terminal_view):
    params = FractalParams(smoothing_enabled=False, max_iterations=40)
    matrix = compute_escape_matrix(terminal_view, params)
    escaped = matrix.escaped
    assert np.array_equal(matrix.values[escaped], matrix.steps[escaped].astype(float))


def test_raising_iteration_limit_keeps_escaped_values(terminal_view):
    low = compute_escape_matrix(terminal_view, FractalParams(max_iterations=30))
    high = compute_escape_matrix(terminal_view, FractalParams(max_iterations=200))

    escaped = low.escaped
    assert np.array_equal(low.values[escaped], high.values[escaped])
    assert np.array_equal(low.steps[escaped], high.steps[escaped])
    # Some previously bounded cells escape with the bigger budget
    assert (high.escaped & low.bounded).any()


def test_julia_exponent_replay():
    viewport = Viewport(0j, 0.8, 50, 20)
    base = FractalParams.julia(complex(-0.4, 0.6), exponent=3.0, max_iterations=80)
    first = compute_escape_matrix(viewport, base)
    compute_escape_matrix(viewport, base.with_changes(exponent=3.5))
    again = compute_escape_matrix(viewport, base.with_changes(exponent=3.5).with_changes(exponent=3.0))
    assert first.equals(again)


def test_julia_starts_from_plane_point():
    params = FractalParams.julia(complex(0.6, 0.4), exponent=2.5)
    _, steps = iterate(np.array([0j]), params)
    # z_1 = 0 ** p + c = c, which is well inside the escape radius
    assert steps[0] != 1


def test_overflow_counts_as_escape():
    params = FractalParams(exponent=1000.0, max_iterations=10)
    # z_1 = 1.9 stays inside the radius; 1.9 ** 1000 overflows
    assert escape_value(complex(1.9, 0.0), params) == 2.0


def test_escape_radius_follows_exponent():
    assert escape_radius(FractalParams(exponent=2.0)) == 2.0
    assert escape_radius(FractalParams(exponent=1.5)) == pytest.approx(4.0)
    assert escape_radius(FractalParams(exponent=3.0)) == 2.0
    assert escape_radius(FractalParams.julia(3.0 + 0j)) == 3.0


def test_escape_matrix_is_read_only(terminal_view):
    matrix = compute_escape_matrix(terminal_view, FractalParams(max_iterations=10))
    assert isinstance(matrix, EscapeMatrix)
    with pytest.raises(ValueError):
        matrix.values[0, 0] = 1.0


def test_mandelbrot_kind_default():
    assert FractalParams().kind is FractalKind.MANDELBROT
