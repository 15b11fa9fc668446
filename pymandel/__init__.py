"""Interactive escape-time fractal explorer for the terminal."""

from .commands import Command, CommandInterpreter, apply_command, command_for_key
from .ematrix import EscapeMatrix, compute_escape_matrix, escape_value
from .errors import BackendError, FrameCancelled, InvalidParameterError, PymandelError
from .params import FractalKind, FractalParams, escape_radius
from .rctx import Rctx, RenderSettings, render_frame
from .viewport import Viewport

__version__ = "0.1.0"
