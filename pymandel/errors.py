"""Exceptions raised by pymandel."""


class PymandelError(Exception):
    """Base class for all pymandel errors."""


class InvalidParameterError(PymandelError, ValueError):
    """A viewport or fractal parameter is outside its valid range."""


class FrameCancelled(PymandelError):
    """An in-flight frame was discarded because newer state arrived."""


class BackendError(PymandelError):
    """The drawing surface or terminal could not be used."""
