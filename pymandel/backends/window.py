"""pygame window backend with square cells."""

import os

# Force X11 backend for proper window decorations on Wayland
os.environ.setdefault("SDL_VIDEODRIVER", "x11")

import pygame

from ..config import WINDOW_CELL_PX, WINDOW_SIZE
from ..errors import BackendError
from ..frontend import Backend

FONT_SIZE = 20
PADDING = 10

PYGAME_KEYS = {
    pygame.K_LEFT: "left",
    pygame.K_RIGHT: "right",
    pygame.K_UP: "up",
    pygame.K_DOWN: "down",
    pygame.K_ESCAPE: "escape",
    pygame.K_KP_PLUS: "+",
    pygame.K_KP_MINUS: "-",
}


def key_name(event):
    """Canonical name for a pygame event, or None."""
    if event.type == pygame.QUIT:
        return "close"
    if event.type != pygame.KEYDOWN:
        return None
    if event.key in PYGAME_KEYS:
        return PYGAME_KEYS[event.key]
    if event.unicode and event.unicode.isprintable():
        return event.unicode
    return None


class WindowBackend(Backend):
    """Draws each cell as a ``cell_px`` square block in a resizable window."""

    name = "window"
    cell_aspect = 1.0

    def __init__(self, width: int = WINDOW_SIZE[0], height: int = WINDOW_SIZE[1],
                 cell_px: int = WINDOW_CELL_PX):
        self.width = width
        self.height = height
        self.cell_px = cell_px
        self.screen = None
        self.font = None

    def __enter__(self):
        pygame.init()
        pygame.key.set_repeat(150, 25)
        try:
            self.screen = pygame.display.set_mode((self.width, self.height), pygame.RESIZABLE)
        except pygame.error as err:
            pygame.quit()
            raise BackendError(f"cannot open window: {err}")
        pygame.display.set_caption("pymandel")
        self.font = pygame.font.SysFont("monospace", FONT_SIZE)
        return self

    def __exit__(self, *exc):
        pygame.quit()
        return False

    def size(self) -> tuple:
        width, height = pygame.display.get_surface().get_size()
        return max(width // self.cell_px, 1), max(height // self.cell_px, 1)

    def read_keys(self, timeout: float) -> list:
        pygame.time.wait(int(timeout * 1000))
        keys = []
        for event in pygame.event.get():
            name = key_name(event)
            if name is not None:
                keys.append(name)
        return keys

    def draw(self, frame, status):
        self.screen = pygame.display.get_surface()
        surface = pygame.surfarray.make_surface(frame.grid.swapaxes(0, 1))
        rows, columns = frame.grid.shape[:2]
        surface = pygame.transform.scale(surface, (columns * self.cell_px, rows * self.cell_px))
        self.screen.fill((0, 0, 0))
        self.screen.blit(surface, (0, 0))

        y = PADDING // 2
        for line in status:
            text = self.font.render(line, True, (255, 255, 255), (0, 0, 0))
            self.screen.blit(text, (PADDING, y))
            y += self.font.get_linesize()
        pygame.display.flip()
