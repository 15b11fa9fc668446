"""Raw-terminal backend painting truecolor cell backgrounds."""

import os
import select
import shutil
import sys
import termios
import tty

from ..errors import BackendError
from ..frontend import Backend

CSI = "\x1b["

# Escape sequences for the keys the explorer cares about
ESCAPE_SEQUENCES = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
}


def parse_keys(data: str) -> list:
    """Split raw terminal input into canonical key names."""
    keys = []
    i = 0
    while i < len(data):
        ch = data[i]
        if ch == "\x1b":
            seq = data[i:i + 3]
            if seq in ESCAPE_SEQUENCES:
                keys.append(ESCAPE_SEQUENCES[seq])
                i += 3
                continue
            if data[i + 1:i + 2] not in ("[", "O"):
                # A lone escape, possibly followed by an ordinary key
                keys.append("escape")
                i += 1
                continue
            # Unknown CSI/SS3 sequences are dropped whole
            i += 2
            while i < len(data) and not data[i].isalpha() and data[i] != "~":
                i += 1
            i += 1
            continue
        if ch == "\x03":
            keys.append("ctrl-c")
        elif ch in ("\r", "\n"):
            keys.append("enter")
        else:
            keys.append(ch)
        i += 1
    return keys


def frame_to_ansi(grid, status: list = ()) -> str:
    """Escape sequences that paint every cell of ``grid`` and the status text."""
    rows, cols = grid.shape[:2]
    buf = []
    for y in range(rows):
        buf.append(f"{CSI}{y + 1};1H")
        last = None
        for r, g, b in grid[y].tolist():
            if (r, g, b) != last:
                buf.append(f"{CSI}48;2;{r};{g};{b}m")
                last = (r, g, b)
            buf.append(" ")
    buf.append(f"{CSI}0m")
    for offset, label in enumerate(status):
        buf.append(f"{CSI}{offset + 1};1H{CSI}0m{label[:cols]}")
    return "".join(buf)


class AnsiBackend(Backend):
    """Full-screen truecolor drawing on a raw terminal."""

    name = "ansi"

    def __init__(self, stdin=None, stdout=None):
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self._saved_attrs = None

    def __enter__(self):
        if not self.stdin.isatty():
            raise BackendError("the ansi backend needs an interactive terminal")
        fd = self.stdin.fileno()
        self._saved_attrs = termios.tcgetattr(fd)
        tty.setraw(fd)
        # Alternate screen, hidden cursor
        self.stdout.write(f"{CSI}?1049h{CSI}?25l")
        self.stdout.flush()
        return self

    def __exit__(self, *exc):
        self.stdout.write(f"{CSI}0m{CSI}?25h{CSI}?1049l")
        self.stdout.flush()
        if self._saved_attrs is not None:
            termios.tcsetattr(self.stdin.fileno(), termios.TCSADRAIN, self._saved_attrs)
            self._saved_attrs = None
        return False

    def size(self) -> tuple:
        columns, rows = shutil.get_terminal_size()
        return max(columns, 1), max(rows, 1)

    def read_keys(self, timeout: float) -> list:
        fd = self.stdin.fileno()
        ready, _, _ = select.select([fd], [], [], timeout)
        if not ready:
            return []
        data = os.read(fd, 1024)
        if not data:
            # stdin closed
            return ["ctrl-c"]
        return parse_keys(data.decode("utf-8", errors="ignore"))

    def draw(self, frame, status):
        self.stdout.write(frame_to_ansi(frame.grid, status))
        self.stdout.flush()
