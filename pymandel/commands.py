"""Canonical commands and the interpreter that applies them.

Every backend turns its raw input events into canonical key names ("a",
"left", "+", ...). ``KEY_BINDINGS`` maps those names to commands, so all
backends share one set of bindings and one set of state transitions.
"""

from enum import Enum
from typing import Callable, Optional
import logging

from .config import (
    DEFAULT_JULIA_CENTER,
    DEFAULT_MANDELBROT_CENTER,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_ZOOM,
    EXPONENT_DECIMALS,
    EXPONENT_STEP,
    ITERATIONS_STEP,
    PAN_FRACTION,
    ZOOM_FACTOR,
)
from .errors import InvalidParameterError
from .params import FractalKind, FractalParams
from .rctx import Rctx
from .viewport import Viewport

logger = logging.getLogger(__name__)


class Command(Enum):
    PAN_LEFT = "pan_left"
    PAN_RIGHT = "pan_right"
    PAN_UP = "pan_up"
    PAN_DOWN = "pan_down"
    ZOOM_IN = "zoom_in"
    ZOOM_OUT = "zoom_out"
    INCREASE_EXPONENT = "increase_exponent"
    DECREASE_EXPONENT = "decrease_exponent"
    SWITCH_FRACTAL_KIND = "switch_fractal_kind"
    TOGGLE_SMOOTHING = "toggle_smoothing"
    INCREASE_ITERATIONS = "increase_iterations"
    DECREASE_ITERATIONS = "decrease_iterations"
    RESET = "reset"
    SCREENSHOT = "screenshot"
    QUIT = "quit"


# =============================================================================
# Key Bindings
# =============================================================================

KEY_BINDINGS = {
    "q": Command.QUIT,
    "escape": Command.QUIT,
    "ctrl-c": Command.QUIT,
    "close": Command.QUIT,

    # Zoom in/out - shift key is optional
    "+": Command.ZOOM_IN,
    "=": Command.ZOOM_IN,
    "-": Command.ZOOM_OUT,
    "_": Command.ZOOM_OUT,

    "a": Command.PAN_LEFT,
    "d": Command.PAN_RIGHT,
    "w": Command.PAN_UP,
    "s": Command.PAN_DOWN,
    "left": Command.PAN_LEFT,
    "right": Command.PAN_RIGHT,
    "up": Command.PAN_UP,
    "down": Command.PAN_DOWN,

    "t": Command.INCREASE_ITERATIONS,
    "g": Command.DECREASE_ITERATIONS,
    "y": Command.INCREASE_EXPONENT,
    "h": Command.DECREASE_EXPONENT,

    "x": Command.SWITCH_FRACTAL_KIND,
    "b": Command.TOGGLE_SMOOTHING,
    "m": Command.RESET,
    "p": Command.SCREENSHOT,
}

HELP_LINES = [
    "Keybindings:",
    "  w/a/s/d, arrows   Pan",
    "  + / -             Zoom in/out",
    "  y / h             Exponent +/-",
    "  t / g             Max iterations +/-",
    "  x                 Mandelbrot <-> Julia",
    "  b                 Toggle smoothing",
    "  m                 Reset location",
    "  p                 Screenshot",
    "  q / ESC           Quit",
]


def command_for_key(key: str) -> Optional[Command]:
    """Command bound to a canonical key name, if any."""
    return KEY_BINDINGS.get(key)


# =============================================================================
# State Transitions
# =============================================================================

def _step_exponent(viewport: Viewport, params: FractalParams, delta: float) -> tuple:
    # Keeps repeated steps on the decimal grid: 2.0 stepped down ends at exactly 1.0
    exponent = round(params.exponent + delta, EXPONENT_DECIMALS)
    return viewport, params.with_changes(exponent=exponent)


def _switch_kind(viewport: Viewport, params: FractalParams) -> tuple:
    if params.kind is FractalKind.MANDELBROT:
        # The current position generally maps to a similar looking Julia set,
        # so the view is kept and its center becomes the Julia constant.
        return viewport, params.with_changes(kind=FractalKind.JULIA, julia_c=viewport.center)
    # Back on the Mandelbrot set, return to the point the Julia set came from
    return viewport.moved_to(params.julia_c), params.with_changes(kind=FractalKind.MANDELBROT)


def _reset(viewport: Viewport, params: FractalParams) -> tuple:
    center = DEFAULT_MANDELBROT_CENTER if params.kind is FractalKind.MANDELBROT else DEFAULT_JULIA_CENTER
    viewport = Viewport(center, DEFAULT_ZOOM, viewport.width, viewport.height,
                        viewport.cell_aspect)
    return viewport, params.with_changes(max_iterations=DEFAULT_MAX_ITERATIONS)


_TRANSITIONS = {
    Command.PAN_LEFT: lambda v, p: (v.panned(-PAN_FRACTION, 0.0), p),
    Command.PAN_RIGHT: lambda v, p: (v.panned(PAN_FRACTION, 0.0), p),
    Command.PAN_UP: lambda v, p: (v.panned(0.0, PAN_FRACTION), p),
    Command.PAN_DOWN: lambda v, p: (v.panned(0.0, -PAN_FRACTION), p),
    Command.ZOOM_IN: lambda v, p: (v.zoomed(ZOOM_FACTOR), p),
    Command.ZOOM_OUT: lambda v, p: (v.zoomed(1.0 / ZOOM_FACTOR), p),
    Command.INCREASE_EXPONENT: lambda v, p: _step_exponent(v, p, EXPONENT_STEP),
    Command.DECREASE_EXPONENT: lambda v, p: _step_exponent(v, p, -EXPONENT_STEP),
    Command.INCREASE_ITERATIONS: lambda v, p: (
        v, p.with_changes(max_iterations=p.max_iterations + ITERATIONS_STEP)),
    Command.DECREASE_ITERATIONS: lambda v, p: (
        v, p.with_changes(max_iterations=p.max_iterations - ITERATIONS_STEP)),
    Command.TOGGLE_SMOOTHING: lambda v, p: (
        v, p.with_changes(smoothing_enabled=not p.smoothing_enabled)),
    Command.SWITCH_FRACTAL_KIND: _switch_kind,
    Command.RESET: _reset,
}


def apply_command(command: Command, viewport: Viewport, params: FractalParams) -> tuple:
    """New ``(viewport, params)`` after a state-changing command.

    Raises InvalidParameterError when the result would be invalid, e.g. an
    exponent at or below 1. QUIT and SCREENSHOT leave the state untouched.
    """
    transition = _TRANSITIONS.get(command)
    if transition is None:
        return viewport, params
    return transition(viewport, params)


# =============================================================================
# Interpreter
# =============================================================================

class CommandInterpreter:
    """Applies commands to a render context.

    Invalid mutations are rejected here: the previous state stays in place
    and nothing invalid ever reaches the pipeline.
    """

    def __init__(self, rctx: Rctx, on_screenshot: Optional[Callable] = None):
        self.rctx = rctx
        self.on_screenshot = on_screenshot
        self.rejected = 0

    def handle(self, command: Command) -> bool:
        """Apply ``command``; returns False when the explorer should stop."""
        if command is Command.QUIT:
            return False
        if command is Command.SCREENSHOT:
            if self.on_screenshot is not None:
                self.on_screenshot(self.rctx.snapshot())
            return True

        try:
            viewport, params = apply_command(command, self.rctx.viewport, self.rctx.params)
        except InvalidParameterError as err:
            self.rejected += 1
            logger.warning("Rejected %s: %s", command.value, err)
            return True

        self.rctx.update(viewport=viewport, params=params)
        logger.info("%s -> exponent=%.4f imax=%d center=%s zoom=%.3e",
                    command.value, params.exponent, params.max_iterations,
                    viewport.center, viewport.zoom)
        return True

    def handle_key(self, key: str) -> bool:
        command = command_for_key(key)
        if command is None:
            logger.debug("Unbound key: %r", key)
            return True
        return self.handle(command)
