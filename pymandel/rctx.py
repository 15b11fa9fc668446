"""The render context: current state plus the per-frame pipeline.

``render_frame`` is the whole pipeline as a pure function: escape matrix, then
the blur filter when smoothing is enabled, then the color map. ``Rctx`` owns
the mutable viewport and parameters, tracks whether anything changed since the
last frame, and can run the pipeline on a background worker so input is never
blocked by a slow frame.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional
import logging
import threading
import time

import numpy as np

from .blur import blur
from .config import BLUR_RADIUS, BLUR_SIGMA
from .ematrix import EscapeMatrix, compute_escape_matrix
from .errors import FrameCancelled
from .palette import DEFAULT_PALETTE, SinePalette
from .params import FractalParams
from .viewport import Viewport

logger = logging.getLogger(__name__)


# =============================================================================
# Pipeline
# =============================================================================

@dataclass(frozen=True)
class RenderSettings:
    """Rendering knobs that are not part of the explored fractal."""
    blur_radius: int = BLUR_RADIUS
    blur_sigma: float = BLUR_SIGMA
    workers: Optional[int] = None
    palette: SinePalette = field(default_factory=lambda: DEFAULT_PALETTE)


DEFAULT_SETTINGS = RenderSettings()


def filtered_matrix(viewport: Viewport, params: FractalParams,
                    settings: RenderSettings = DEFAULT_SETTINGS,
                    cancel: Optional[threading.Event] = None) -> EscapeMatrix:
    """Escape matrix after the (optional) blur filter."""
    matrix = compute_escape_matrix(viewport, params, settings.workers, cancel)
    if not params.smoothing_enabled:
        return matrix
    if cancel is not None and cancel.is_set():
        raise FrameCancelled("frame cancelled before blur")
    return blur(matrix, settings.blur_radius, settings.blur_sigma)


def render_frame(viewport: Viewport, params: FractalParams,
                 settings: RenderSettings = DEFAULT_SETTINGS,
                 cancel: Optional[threading.Event] = None) -> np.ndarray:
    """Render a color grid of shape ``(height, width, 3)``, dtype uint8."""
    matrix = filtered_matrix(viewport, params, settings, cancel)
    return settings.palette.colorize(matrix.values)


# =============================================================================
# State Dataclasses
# =============================================================================

@dataclass(frozen=True)
class Snapshot:
    """Immutable inputs of one frame."""
    viewport: Viewport
    params: FractalParams


@dataclass(frozen=True, eq=False)
class Frame:
    """A completed frame and the snapshot it was rendered from."""
    snapshot: Snapshot
    grid: np.ndarray
    render_ms: float


@dataclass
class _Job:
    snapshot: Snapshot
    cancel: threading.Event
    future: Future


# =============================================================================
# Render Context
# =============================================================================

class Rctx:
    """Owns the explorer state and produces frames for it."""

    def __init__(self, viewport: Viewport, params: FractalParams,
                 settings: RenderSettings = DEFAULT_SETTINGS):
        self._viewport = viewport
        self._params = params
        self.settings = settings
        self.dirty = True

        self._frame: Optional[Frame] = None
        self._job: Optional[_Job] = None
        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None

        # Timing
        self.frame_times = []

    @property
    def viewport(self) -> Viewport:
        return self._viewport

    @property
    def params(self) -> FractalParams:
        return self._params

    def snapshot(self) -> Snapshot:
        return Snapshot(self._viewport, self._params)

    def update(self, viewport: Optional[Viewport] = None,
               params: Optional[FractalParams] = None) -> bool:
        """Replace the state; returns True and marks dirty if anything changed."""
        with self._lock:
            new_viewport = self._viewport if viewport is None else viewport
            new_params = self._params if params is None else params
            if new_viewport == self._viewport and new_params == self._params:
                return False
            self._viewport = new_viewport
            self._params = new_params
            self.dirty = True
            return True

    def resize(self, width: int, height: int) -> bool:
        if (width, height) == (self._viewport.width, self._viewport.height):
            return False
        return self.update(viewport=self._viewport.resized(width, height))

    def set_cell_aspect(self, cell_aspect: float) -> bool:
        return self.update(viewport=self._viewport.with_aspect(cell_aspect))

    # =========================================================================
    # Synchronous Rendering
    # =========================================================================

    def _render(self, snapshot: Snapshot, cancel: Optional[threading.Event] = None) -> Frame:
        t0 = time.perf_counter()
        grid = render_frame(snapshot.viewport, snapshot.params, self.settings, cancel)
        render_ms = (time.perf_counter() - t0) * 1000
        return Frame(snapshot, grid, render_ms)

    def frame(self) -> Frame:
        """Current frame, recomputed only when the state changed."""
        snapshot = self.snapshot()
        if self._frame is None or self.dirty or self._frame.snapshot != snapshot:
            self._frame = self._render(snapshot)
            self.frame_times.append(self._frame.render_ms)
            self.dirty = False
        return self._frame

    # =========================================================================
    # Background Rendering
    # =========================================================================

    def submit(self) -> Future:
        """Start rendering the current state, cancelling any stale job."""
        snapshot = self.snapshot()
        if self._job is not None:
            if self._job.snapshot == snapshot and not self._job.future.cancelled():
                return self._job.future
            self._job.cancel.set()
            self._job.future.cancel()

        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="rctx")

        cancel = threading.Event()
        future = self._executor.submit(self._render, snapshot, cancel)
        self._job = _Job(snapshot, cancel, future)
        self.dirty = False
        return future

    def poll(self) -> Optional[Frame]:
        """Latest finished frame for the current state, or None.

        Frames rendered from an outdated snapshot are dropped so two
        parameter sets never meet on screen.
        """
        job = self._job
        if job is None or not job.future.done():
            return None
        self._job = None
        if job.future.cancelled():
            return None
        try:
            frame = job.future.result()
        except FrameCancelled:
            logger.debug("discarded cancelled frame")
            return None
        if frame.snapshot != self.snapshot():
            logger.debug("discarded stale frame")
            return None
        self._frame = frame
        self.frame_times.append(frame.render_ms)
        return frame

    @property
    def busy(self) -> bool:
        return self._job is not None

    def close(self):
        if self._job is not None:
            self._job.cancel.set()
            self._job = None
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False
