"""Tunable constants for the explorer."""

# =============================================================================
# Navigation
# =============================================================================

# Pan distance as a fraction of the visible width/height
PAN_FRACTION = 0.1
ZOOM_FACTOR = 2.0
EXPONENT_STEP = 0.0125
# Stepped exponents are rounded to this many decimals
EXPONENT_DECIMALS = 10
ITERATIONS_STEP = 25

# =============================================================================
# Defaults
# =============================================================================

DEFAULT_EXPONENT = 2.0
DEFAULT_MAX_ITERATIONS = 100
DEFAULT_ZOOM = 1.0
DEFAULT_JULIA_C = complex(0.6, 0.4)
DEFAULT_MANDELBROT_CENTER = complex(-0.5, 0.0)
DEFAULT_JULIA_CENTER = complex(0.0, 0.0)

# Half-width of the visible real range at zoom == 1
BASE_HALF_WIDTH = 2.0

# Terminal cells are roughly twice as tall as they are wide
TERMINAL_CELL_ASPECT = 2.0

# =============================================================================
# Rendering
# =============================================================================

BLUR_RADIUS = 1
BLUR_SIGMA = 0.6

# Rows per unit of parallel work. Fixed so results never depend on worker count.
ROWS_PER_BAND = 4

# =============================================================================
# Export
# =============================================================================

EXPORT_SIZE = (1200, 900)
EXPORT_PREFIX = "mb"

# =============================================================================
# Frontends
# =============================================================================

KEY_POLL_INTERVAL = 0.05
WINDOW_SIZE = (1200, 800)
WINDOW_CELL_PX = 4
SIDEBAR_WIDTH = 40
