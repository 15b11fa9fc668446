"""Drawing backends. Imported lazily so pygame and curses load only when used."""

BACKENDS = ("ansi", "tui", "window")


def create_backend(name: str):
    if name == "ansi":
        from .ansi import AnsiBackend
        return AnsiBackend()
    if name == "tui":
        from .tui import TuiBackend
        return TuiBackend()
    if name == "window":
        from .window import WindowBackend
        return WindowBackend()
    raise ValueError(f"Unknown backend: {name}")
