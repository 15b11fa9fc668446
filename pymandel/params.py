"""Fractal parameters owned by the render context."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional
import math

from .config import DEFAULT_EXPONENT, DEFAULT_JULIA_C, DEFAULT_MAX_ITERATIONS
from .errors import InvalidParameterError


class FractalKind(Enum):
    MANDELBROT = "mandelbrot"
    JULIA = "julia"


@dataclass(frozen=True)
class FractalParams:
    """Everything besides the viewport that determines a frame."""
    kind: FractalKind = FractalKind.MANDELBROT
    exponent: float = DEFAULT_EXPONENT
    julia_c: Optional[complex] = None
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    smoothing_enabled: bool = True

    def __post_init__(self):
        if not isinstance(self.kind, FractalKind):
            raise InvalidParameterError(f"unknown fractal kind: {self.kind!r}")
        if not (self.exponent > 1 and math.isfinite(self.exponent)):
            raise InvalidParameterError(f"exponent must be > 1, got {self.exponent}")
        if isinstance(self.max_iterations, bool) or int(self.max_iterations) != self.max_iterations:
            raise InvalidParameterError(
                f"max_iterations must be an integer, got {self.max_iterations!r}"
            )
        if self.max_iterations <= 0:
            raise InvalidParameterError(
                f"max_iterations must be > 0, got {self.max_iterations}"
            )
        if self.julia_c is not None:
            c = complex(self.julia_c)
            if not (math.isfinite(c.real) and math.isfinite(c.imag)):
                raise InvalidParameterError(f"julia_c must be finite, got {c}")
            object.__setattr__(self, "julia_c", c)
        if self.kind is FractalKind.JULIA and self.julia_c is None:
            raise InvalidParameterError("a Julia set needs julia_c")

    @classmethod
    def julia(cls, c: complex = DEFAULT_JULIA_C, **kwargs) -> "FractalParams":
        return cls(kind=FractalKind.JULIA, julia_c=c, **kwargs)

    def with_changes(self, **changes) -> "FractalParams":
        """Validated copy with the given fields replaced."""
        return replace(self, **changes)

    @property
    def escape_radius(self) -> float:
        return escape_radius(self)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "exponent": self.exponent,
            "julia_c": None if self.julia_c is None else [self.julia_c.real, self.julia_c.imag],
            "max_iterations": self.max_iterations,
            "smoothing_enabled": self.smoothing_enabled,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FractalParams":
        julia_c = data.get("julia_c")
        try:
            kind = FractalKind(data["kind"])
        except ValueError:
            raise InvalidParameterError(f"unknown fractal kind: {data['kind']!r}")
        return cls(
            kind=kind,
            exponent=float(data["exponent"]),
            julia_c=None if julia_c is None else complex(*julia_c),
            max_iterations=int(data["max_iterations"]),
            smoothing_enabled=bool(data.get("smoothing_enabled", True)),
        )


def escape_radius(params: FractalParams) -> float:
    """Bailout radius beyond which an orbit of ``z**p + c`` must diverge.

    ``2 ** (1 / (p - 1))`` grows past 2 for exponents below 2; Julia sets also
    need the radius to exceed ``|c|``. For the Mandelbrot set the radius is not
    raised per point; any ``|c| > 2`` escapes on its first step.
    """
    p = params.exponent
    # Capped so the squared radius stays representable as p approaches 1
    radius = max(2.0, 2.0 ** min(1.0 / (p - 1.0), 256.0))
    if params.kind is FractalKind.JULIA:
        radius = max(radius, abs(params.julia_c))
    return radius
