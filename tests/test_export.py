import json

from PIL import Image

from pymandel.export import export_viewport, load_state, save_screenshot, save_state
from pymandel.params import FractalParams
from pymandel.rctx import Snapshot
from pymandel.viewport import Viewport


def test_state_round_trip(tmp_path):
    viewport = Viewport(complex(-0.1, 0.65), 0.01, 80, 24)
    params = FractalParams.julia(complex(0.285, 0.01), exponent=2.5, max_iterations=300)
    path = save_state(viewport, params, tmp_path / "state.json")

    assert json.loads(path.read_text())["params"]["kind"] == "julia"
    assert load_state(path) == (viewport, params)


def test_export_viewport_uses_square_cells():
    viewport = Viewport(complex(0.3, 0.2), 0.5, 80, 24, cell_aspect=2.0)
    exported = export_viewport(viewport, (300, 200))
    assert exported.cell_aspect == 1.0
    assert (exported.width, exported.height) == (300, 200)
    assert exported.center == viewport.center
    assert exported.zoom == viewport.zoom


def test_screenshot_writes_image_and_state(tmp_path):
    viewport = Viewport(complex(-0.5, 0.0), 1.0, 80, 24)
    params = FractalParams(max_iterations=40)
    png_path, json_path = save_screenshot(Snapshot(viewport, params), tmp_path / "shots",
                                          size=(40, 30))

    assert png_path.name.startswith("mb-")
    assert png_path.suffix == ".png"
    assert json_path.with_suffix(".png") == png_path
    with Image.open(png_path) as image:
        assert image.size == (40, 30)
        assert image.mode == "RGB"
    assert load_state(json_path) == (viewport, params)
