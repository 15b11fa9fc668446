"""curses backend: parameter sidebar next to a 256-color fractal panel."""

import curses

from ..commands import HELP_LINES
from ..config import SIDEBAR_WIDTH
from ..errors import BackendError
from ..frontend import Backend
from ..palette import rgb_to_xterm256

CURSES_KEYS = {
    curses.KEY_LEFT: "left",
    curses.KEY_RIGHT: "right",
    curses.KEY_UP: "up",
    curses.KEY_DOWN: "down",
    27: "escape",
    3: "ctrl-c",
}


def key_name(code: int):
    """Canonical name for a curses key code, or None."""
    if code in CURSES_KEYS:
        return CURSES_KEYS[code]
    if 32 <= code < 127:
        return chr(code)
    return None


class TuiBackend(Backend):
    """Sidebar plus fractal panel, degraded to the xterm-256 palette."""

    name = "tui"

    def __init__(self):
        self.screen = None
        self._pairs = {}

    def __enter__(self):
        try:
            self.screen = curses.initscr()
            curses.noecho()
            curses.raw()
            curses.curs_set(0)
            self.screen.keypad(True)
            curses.start_color()
            curses.use_default_colors()
        except curses.error as err:
            self.__exit__(None, None, None)
            raise BackendError(f"cannot initialize curses: {err}")
        if curses.COLORS < 256:
            self.__exit__(None, None, None)
            raise BackendError(f"the tui backend needs 256 colors, terminal has {curses.COLORS}")
        return self

    def __exit__(self, *exc):
        if self.screen is not None:
            self.screen.keypad(False)
            curses.noraw()
            curses.echo()
            curses.endwin()
            self.screen = None
        return False

    def size(self) -> tuple:
        rows, columns = self.screen.getmaxyx()
        return max(columns - SIDEBAR_WIDTH, 1), max(rows, 1)

    def read_keys(self, timeout: float) -> list:
        self.screen.timeout(int(timeout * 1000))
        keys = []
        code = self.screen.getch()
        while code != -1:
            name = key_name(code)
            if name is not None:
                keys.append(name)
            self.screen.timeout(0)
            code = self.screen.getch()
        return keys

    def _pair(self, color: int) -> int:
        """Color pair painting ``color`` as background, allocated on demand."""
        pair = self._pairs.get(color)
        if pair is None:
            pair = len(self._pairs) + 1
            if pair >= curses.COLOR_PAIRS:
                # Out of pairs; reuse the closest allocated index
                nearest = min(self._pairs, key=lambda c: abs(c - color))
                return self._pairs[nearest]
            curses.init_pair(pair, -1, color)
            self._pairs[color] = pair
        return pair

    def draw(self, frame, status):
        indices = rgb_to_xterm256(frame.grid)
        rows, columns = indices.shape
        max_y, max_x = self.screen.getmaxyx()

        self._draw_sidebar(status, max_y)
        for y in range(min(rows, max_y)):
            for x, color in enumerate(indices[y].tolist()):
                sx = SIDEBAR_WIDTH + x
                if sx >= max_x or (y == max_y - 1 and sx == max_x - 1):
                    # Writing the bottom-right cell scrolls the screen
                    continue
                self.screen.addch(y, sx, " ", curses.color_pair(self._pair(color)))
        self.screen.refresh()

    def _draw_sidebar(self, status: list, max_y: int):
        width = SIDEBAR_WIDTH - 1
        lines = ["pymandel", ""] + list(status) + [""] + HELP_LINES
        max_x = self.screen.getmaxyx()[1]
        if max_x <= SIDEBAR_WIDTH:
            return
        for y in range(max_y):
            text = lines[y] if y < len(lines) else ""
            self.screen.addnstr(y, 0, text.ljust(width), width)
            self.screen.addch(y, width, curses.ACS_VLINE)
