"""Backend-independent event loop.

A backend owns the drawing surface and the raw input source. It reports its
size in cells, hands over canonical key names and draws finished frames; the
loop here does everything else, identically for every backend.
"""

import logging
import time

from .commands import CommandInterpreter
from .config import KEY_POLL_INTERVAL, TERMINAL_CELL_ASPECT
from .params import FractalKind
from .rctx import Frame, Rctx

logger = logging.getLogger(__name__)


class Backend:
    """Drawing surface plus raw key source.

    Subclasses translate their native key events into the canonical names
    used by ``commands.KEY_BINDINGS``; nothing else about input differs
    between backends.
    """

    name = "backend"
    cell_aspect = TERMINAL_CELL_ASPECT

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def size(self) -> tuple:
        """Fractal area as (columns, rows)."""
        raise NotImplementedError

    def read_keys(self, timeout: float) -> list:
        """Canonical key names received within ``timeout`` seconds."""
        raise NotImplementedError

    def draw(self, frame: Frame, status: list):
        raise NotImplementedError


def status_lines(frame: Frame) -> list:
    """Parameter read-out shown next to the fractal."""
    viewport, params = frame.snapshot.viewport, frame.snapshot.params
    lines = [
        f"kind   = {params.kind.value}",
        f"exp    = {params.exponent:.4e}",
        f"re     = {viewport.center.real:.4e}",
        f"im     = {viewport.center.imag:.4e}",
        f"iter   = {params.max_iterations}",
        f"zoom   = {viewport.zoom:.4e}",
        f"smooth = {'on' if params.smoothing_enabled else 'off'}",
        f"render = {frame.render_ms:.0f}ms",
    ]
    if params.kind is FractalKind.JULIA:
        c = params.julia_c
        lines.insert(1, f"c      = {c.real:.4f}{c.imag:+.4f}i")
    return lines


def run(backend: Backend, rctx: Rctx, interpreter: CommandInterpreter):
    """Drive ``backend`` until a quit command arrives."""
    rctx.set_cell_aspect(backend.cell_aspect)
    running = True
    frames = 0
    try:
        while running:
            columns, rows = backend.size()
            rctx.resize(columns, rows)
            if rctx.dirty:
                rctx.submit()

            frame = rctx.poll()
            if frame is not None:
                t0 = time.perf_counter()
                backend.draw(frame, status_lines(frame))
                frames += 1
                logger.debug("frame %d: render=%.1fms draw=%.1fms", frames,
                             frame.render_ms, (time.perf_counter() - t0) * 1000)

            for key in backend.read_keys(KEY_POLL_INTERVAL):
                running = interpreter.handle_key(key)
                if not running:
                    break
    finally:
        rctx.close()
    return frames
