"""
Exceptions raised by the calibration pipeline.

Two kinds of failure are reported by raising:
    - InvalidParameterError: a configuration value is outside its domain.
    - LockedError: configuration or reset was attempted while a component
      is processing a sample (typically from inside a listener callback).

A failed detection (noise too large to derive a usable threshold) is NOT
an exception: it is reported through the FAILED status, the ``on_error``
listener callback and a ``False`` return value from ``process``.
"""


import math
import numbers


class InvalidParameterError(ValueError):
    """Configuration value outside of its documented domain."""


class LockedError(RuntimeError):
    """Mutation attempted while the component is running."""

    def __init__(self, message: str = "instance is locked while running"):
        super().__init__(message)


def check_positive(name: str, value: float) -> float:
    """Return ``value`` as float if it is a finite number > 0, else raise."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidParameterError(f"{name} must be a real number, got {value!r}")
    value = float(value)
    if not math.isfinite(value) or value <= 0.0:
        raise InvalidParameterError(f"{name} must be positive and finite, got {value}")
    return value


def check_min_int(name: str, value: int, minimum: int) -> int:
    """Return ``value`` if it is an integer >= ``minimum``, else raise."""
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidParameterError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise InvalidParameterError(f"{name} must be >= {minimum}, got {value}")
    return int(value)
