import argparse
import logging
import sys

from .backends import create_backend
from .commands import CommandInterpreter
from .config import (
    BLUR_RADIUS,
    BLUR_SIGMA,
    DEFAULT_EXPONENT,
    DEFAULT_JULIA_C,
    DEFAULT_JULIA_CENTER,
    DEFAULT_MANDELBROT_CENTER,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_ZOOM,
    EXPORT_SIZE,
    TERMINAL_CELL_ASPECT,
)
from .errors import BackendError, InvalidParameterError
from .export import load_state, save_image, save_screenshot
from .frontend import run
from .params import FractalKind, FractalParams
from .rctx import Rctx, RenderSettings, render_frame
from .viewport import Viewport

SUBCOMMANDS = ("run", "render")


def _fractal_arguments(parser):
    parser.add_argument(
        "--kind",
        choices=[kind.value for kind in FractalKind],
        default=FractalKind.MANDELBROT.value,
        help="the fractal to start with",
    )
    parser.add_argument(
        "--exponent",
        type=float,
        default=DEFAULT_EXPONENT,
        help="the exponent p in z -> z^p + c, must be > 1",
    )
    parser.add_argument(
        "--julia-c",
        type=float,
        nargs=2,
        default=[DEFAULT_JULIA_C.real, DEFAULT_JULIA_C.imag],
        metavar=("RE", "IM"),
        help="the Julia set constant",
    )
    parser.add_argument(
        "--center",
        type=float,
        nargs=2,
        default=None,
        metavar=("RE", "IM"),
        help="the center of the view (defaults depend on --kind)",
    )
    parser.add_argument(
        "--zoom",
        type=float,
        default=DEFAULT_ZOOM,
        help="half-width of the visible real range, in units of 2",
    )
    parser.add_argument(
        "--imax",
        type=int,
        default=DEFAULT_MAX_ITERATIONS,
        help="the max iterations to perform",
    )
    parser.add_argument(
        "--no-smoothing",
        action="store_true",
        help="show raw iteration bands (disables the blur filter too)",
    )
    parser.add_argument(
        "--blur-radius",
        type=int,
        default=BLUR_RADIUS,
        help="gaussian blur radius in cells, 0 disables",
    )
    parser.add_argument(
        "--blur-sigma",
        type=float,
        default=BLUR_SIGMA,
        help="gaussian blur standard deviation in cells",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="threads for the escape matrix (defaults to the CPU count)",
    )
    parser.add_argument(
        "--load",
        default=None,
        metavar="STATE",
        help="start from a JSON state file written by a screenshot",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="more logging (repeat for debug output)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pymandel",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser(
        "run",
        help="explore interactively (default)",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    backend = run_parser.add_mutually_exclusive_group()
    backend.add_argument(
        "--tui",
        action="store_true",
        help="use the curses interface with a parameter sidebar",
    )
    backend.add_argument(
        "--window",
        action="store_true",
        help="use a pygame window instead of the terminal",
    )
    run_parser.add_argument(
        "--img-dir",
        default=".",
        help="directory for screenshots",
    )
    run_parser.add_argument(
        "--log-file",
        default=None,
        help="write log output here (the terminal is busy drawing)",
    )
    _fractal_arguments(run_parser)

    render_parser = subparsers.add_parser(
        "render",
        help="render a single image and exit",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    render_parser.add_argument(
        "-o",
        "--out-file",
        default="out.png",
        help="The output file to write to",
    )
    render_parser.add_argument(
        "--dims",
        type=int,
        default=list(EXPORT_SIZE),
        nargs=2,
        help="The dimensions of the output image, in pixels",
    )
    _fractal_arguments(render_parser)
    return parser


def _configure_logging(verbose: int, log_file=None, stream=True):
    level = logging.WARNING - 10 * min(verbose, 2)
    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    if log_file is not None:
        logging.basicConfig(filename=log_file, level=level, format=fmt)
    elif stream:
        logging.basicConfig(stream=sys.stderr, level=level, format=fmt)
    else:
        logging.getLogger("pymandel").addHandler(logging.NullHandler())


def initial_state(args, width: int, height: int, cell_aspect: float) -> tuple:
    """Viewport and params from the command line or a state file."""
    if args.load is not None:
        viewport, params = load_state(args.load)
        return viewport.resized(width, height).with_aspect(cell_aspect), params

    kind = FractalKind(args.kind)
    if args.center is not None:
        center = complex(*args.center)
    elif kind is FractalKind.MANDELBROT:
        center = DEFAULT_MANDELBROT_CENTER
    else:
        center = DEFAULT_JULIA_CENTER

    params = FractalParams(
        kind=kind,
        exponent=args.exponent,
        julia_c=complex(*args.julia_c) if kind is FractalKind.JULIA else None,
        max_iterations=args.imax,
        smoothing_enabled=not args.no_smoothing,
    )
    viewport = Viewport(center, args.zoom, width, height, cell_aspect)
    return viewport, params


def _settings(args) -> RenderSettings:
    return RenderSettings(
        blur_radius=args.blur_radius,
        blur_sigma=args.blur_sigma,
        workers=args.workers,
    )


def render_main(args) -> int:
    width, height = args.dims
    viewport, params = initial_state(args, width, height, cell_aspect=1.0)
    print(f"{params.kind.value} z^{params.exponent} + c")
    print(f"out_file: {args.out_file}")
    print(f"imax: {params.max_iterations}")
    print(f"dims: {width}x{height}")
    print(f"center: {viewport.center}")
    print(f"zoom: {viewport.zoom}")

    grid = render_frame(viewport, params, _settings(args))
    save_image(grid, args.out_file)
    return 0


def run_main(args) -> int:
    if args.window:
        backend = create_backend("window")
    elif args.tui:
        backend = create_backend("tui")
    else:
        backend = create_backend("ansi")

    viewport, params = initial_state(args, 80, 24, TERMINAL_CELL_ASPECT)
    rctx = Rctx(viewport, params, _settings(args))
    shots = []

    def screenshot(snapshot):
        shots.append(save_screenshot(snapshot, args.img_dir, settings=rctx.settings))

    interpreter = CommandInterpreter(rctx, on_screenshot=screenshot)
    with backend:
        frames = run(backend, rctx, interpreter)

    if rctx.frame_times:
        avg_ms = sum(rctx.frame_times) / len(rctx.frame_times)
        print(f"Rendered {frames} frames")
        print(f"Average frame time: {avg_ms:.1f}ms")
    for png_path, json_path in shots:
        print(f"Saved {png_path} ({json_path})")
    return 0


def main(argv=None):
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or argv[0] not in SUBCOMMANDS + ("-h", "--help"):
        argv.insert(0, "run")
    args = build_parser().parse_args(argv)

    if args.command == "render":
        _configure_logging(args.verbose)
        handler = render_main
    else:
        _configure_logging(args.verbose, args.log_file, stream=False)
        handler = run_main

    try:
        return handler(args)
    except InvalidParameterError as err:
        print(f"Invalid parameter: {err}", file=sys.stderr)
        return 2
    except BackendError as err:
        print(f"Backend failure: {err}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
