"""Screenshots and saved locations.

A screenshot re-renders the current snapshot at pixel resolution with square
cells and writes a PNG plus a JSON state file that can be loaded again with
``pymandel run --load``.
"""

from pathlib import Path
import json
import logging
import time

import numpy as np
from PIL import Image

from .config import EXPORT_PREFIX, EXPORT_SIZE
from .params import FractalParams
from .rctx import DEFAULT_SETTINGS, RenderSettings, Snapshot, render_frame
from .viewport import Viewport

logger = logging.getLogger(__name__)

STATE_VERSION = 1


def save_image(grid: np.ndarray, path) -> Path:
    """Write an RGB color grid as an image file."""
    path = Path(path)
    Image.fromarray(grid.astype(np.uint8), "RGB").save(path)
    return path


def save_state(viewport: Viewport, params: FractalParams, path) -> Path:
    path = Path(path)
    state = {
        "version": STATE_VERSION,
        "viewport": viewport.to_dict(),
        "params": params.to_dict(),
    }
    path.write_text(json.dumps(state, indent=2))
    return path


def load_state(path) -> tuple:
    """Read ``(viewport, params)`` from a JSON state file."""
    state = json.loads(Path(path).read_text())
    return Viewport.from_dict(state["viewport"]), FractalParams.from_dict(state["params"])


def export_viewport(viewport: Viewport, size: tuple = EXPORT_SIZE) -> Viewport:
    """Same center and zoom at pixel resolution with square cells."""
    width, height = size
    return Viewport(viewport.center, viewport.zoom, width, height, cell_aspect=1.0)


def save_screenshot(snapshot: Snapshot, directory=".", size: tuple = EXPORT_SIZE,
                    settings: RenderSettings = DEFAULT_SETTINGS) -> tuple:
    """Render ``snapshot`` to ``<dir>/mb-<secs>.png`` and save its state.

    Returns ``(png_path, json_path)``.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    stamp = int(time.time())
    png_path = directory / f"{EXPORT_PREFIX}-{stamp}.png"
    json_path = directory / f"{EXPORT_PREFIX}-{stamp}.json"

    viewport = export_viewport(snapshot.viewport, size)
    t0 = time.perf_counter()
    grid = render_frame(viewport, snapshot.params, settings)
    logger.info("Rendered %dx%d screenshot in %.1fms",
                size[0], size[1], (time.perf_counter() - t0) * 1000)

    save_image(grid, png_path)
    save_state(snapshot.viewport, snapshot.params, json_path)
    logger.info("Saved %s and %s", png_path, json_path)
    return png_path, json_path
