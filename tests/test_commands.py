import pytest

from pymandel.backends.ansi import parse_keys
from pymandel.commands import (
    KEY_BINDINGS,
    Command,
    CommandInterpreter,
    apply_command,
    command_for_key,
)
from pymandel.config import (
    DEFAULT_MANDELBROT_CENTER,
    DEFAULT_MAX_ITERATIONS,
    EXPONENT_STEP,
    ITERATIONS_STEP,
)
from pymandel.params import FractalKind, FractalParams
from pymandel.rctx import Rctx
from pymandel.viewport import Viewport


@pytest.fixture
def rctx():
    with Rctx(Viewport(complex(-0.5, 0.0), 1.0, 40, 12), FractalParams()) as ctx:
        yield ctx


@pytest.fixture
def interpreter(rctx):
    return CommandInterpreter(rctx)


@pytest.mark.parametrize("command,direction", [
    (Command.PAN_LEFT, complex(-1, 0)),
    (Command.PAN_RIGHT, complex(1, 0)),
    (Command.PAN_UP, complex(0, 1)),
    (Command.PAN_DOWN, complex(0, -1)),
])
def test_pan_directions(command, direction):
    viewport = Viewport(0j, 1.0, 80, 24)
    moved, _ = apply_command(command, viewport, FractalParams())
    delta = moved.center - viewport.center
    assert delta.real * direction.real >= 0
    assert delta.imag * direction.imag >= 0
    assert abs(delta) > 0
    assert moved.zoom == viewport.zoom


def test_zoom_in_then_out_restores_zoom():
    viewport = Viewport(0j, 1.0, 80, 24)
    params = FractalParams()
    zoomed, _ = apply_command(Command.ZOOM_IN, viewport, params)
    assert zoomed.zoom < viewport.zoom
    back, _ = apply_command(Command.ZOOM_OUT, zoomed, params)
    assert back.zoom == viewport.zoom


def test_exponent_and_iteration_steps(interpreter, rctx):
    interpreter.handle(Command.INCREASE_EXPONENT)
    assert rctx.params.exponent == pytest.approx(2.0 + EXPONENT_STEP)
    interpreter.handle(Command.INCREASE_ITERATIONS)
    assert rctx.params.max_iterations == DEFAULT_MAX_ITERATIONS + ITERATIONS_STEP
    interpreter.handle(Command.DECREASE_ITERATIONS)
    assert rctx.params.max_iterations == DEFAULT_MAX_ITERATIONS


def test_exponent_at_one_is_rejected(rctx):
    rctx.update(params=rctx.params.with_changes(exponent=1.01))
    interpreter = CommandInterpreter(rctx)
    before = rctx.snapshot()

    assert interpreter.handle(Command.DECREASE_EXPONENT) is True
    assert rctx.snapshot() == before
    assert interpreter.rejected == 1


def test_stepping_exponent_down_stops_at_one(interpreter, rctx):
    for _ in range(79):
        interpreter.handle(Command.DECREASE_EXPONENT)
    assert rctx.params.exponent == 1.0125
    assert interpreter.rejected == 0

    interpreter.handle(Command.DECREASE_EXPONENT)
    assert rctx.params.exponent == 1.0125
    assert interpreter.rejected == 1

    interpreter.handle(Command.INCREASE_EXPONENT)
    assert rctx.params.exponent == 1.025


def test_iterations_cannot_drop_to_zero(rctx):
    rctx.update(params=rctx.params.with_changes(max_iterations=ITERATIONS_STEP))
    interpreter = CommandInterpreter(rctx)
    interpreter.handle(Command.DECREASE_ITERATIONS)
    assert rctx.params.max_iterations == ITERATIONS_STEP
    assert interpreter.rejected == 1


def test_switch_kind_round_trip(interpreter, rctx):
    rctx.update(viewport=rctx.viewport.moved_to(complex(-0.75, 0.1)))
    interpreter.handle(Command.SWITCH_FRACTAL_KIND)
    assert rctx.params.kind is FractalKind.JULIA
    assert rctx.params.julia_c == complex(-0.75, 0.1)

    rctx.update(viewport=rctx.viewport.moved_to(0j))
    interpreter.handle(Command.SWITCH_FRACTAL_KIND)
    assert rctx.params.kind is FractalKind.MANDELBROT
    assert rctx.viewport.center == complex(-0.75, 0.1)


def test_toggle_smoothing(interpreter, rctx):
    interpreter.handle(Command.TOGGLE_SMOOTHING)
    assert rctx.params.smoothing_enabled is False
    interpreter.handle(Command.TOGGLE_SMOOTHING)
    assert rctx.params.smoothing_enabled is True


def test_reset_restores_location(interpreter, rctx):
    for command in (Command.ZOOM_IN, Command.PAN_LEFT, Command.INCREASE_ITERATIONS):
        interpreter.handle(command)
    interpreter.handle(Command.RESET)
    assert rctx.viewport.center == DEFAULT_MANDELBROT_CENTER
    assert rctx.viewport.zoom == 1.0
    assert rctx.params.max_iterations == DEFAULT_MAX_ITERATIONS
    assert (rctx.viewport.width, rctx.viewport.height) == (40, 12)


def test_quit_and_screenshot(rctx):
    shots = []
    interpreter = CommandInterpreter(rctx, on_screenshot=shots.append)
    assert interpreter.handle(Command.SCREENSHOT) is True
    assert shots == [rctx.snapshot()]
    assert interpreter.handle(Command.QUIT) is False


def test_unbound_key_is_ignored(interpreter, rctx):
    before = rctx.snapshot()
    assert interpreter.handle_key("z") is True
    assert rctx.snapshot() == before


def test_every_command_except_quit_keeps_running(rctx):
    interpreter = CommandInterpreter(rctx)
    for command in Command:
        if command is not Command.QUIT:
            assert interpreter.handle(command) is True


def test_every_command_has_a_key():
    assert set(KEY_BINDINGS.values()) == set(Command)


# =============================================================================
# Key normalization across backends
# =============================================================================

def test_ansi_keys():
    assert parse_keys("\x1b[A\x1b[Dq+") == ["up", "left", "q", "+"]
    assert parse_keys("\x1b") == ["escape"]
    assert parse_keys("\x03") == ["ctrl-c"]
    assert parse_keys("\x1bq") == ["escape", "q"]
    assert parse_keys("\x1b[1;5Cw") == ["w"]
    assert parse_keys("\x1bOPa") == ["a"]
    assert [command_for_key(k) for k in parse_keys("\x1b[C=")] == [
        Command.PAN_RIGHT, Command.ZOOM_IN]


def test_curses_keys():
    curses = pytest.importorskip("curses")
    from pymandel.backends.tui import key_name

    assert key_name(curses.KEY_LEFT) == "left"
    assert key_name(ord("w")) == "w"
    assert key_name(27) == "escape"
    assert key_name(0) is None


def test_pygame_keys():
    pygame = pytest.importorskip("pygame")
    from pymandel.backends.window import key_name

    up = pygame.event.Event(pygame.KEYDOWN, key=pygame.K_UP, unicode="")
    plus = pygame.event.Event(pygame.KEYDOWN, key=pygame.K_KP_PLUS, unicode="+")
    letter = pygame.event.Event(pygame.KEYDOWN, key=pygame.K_x, unicode="x")
    close = pygame.event.Event(pygame.QUIT)

    assert key_name(up) == "up"
    assert key_name(plus) == "+"
    assert key_name(letter) == "x"
    assert command_for_key(key_name(close)) is Command.QUIT
