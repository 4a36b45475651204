"""
Input validation shared by the calculators.

All public calculator operations validate up front and fail fast with
InvalidParameter; no partial computation is attempted.
"""

import numpy as np


class InvalidParameter(ValueError):
    """Calculator input outside its valid domain."""


def _require_finite(name: str, value: float) -> float:
    try:
        val = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidParameter(f"{name} must be a number, got {value!r}") from exc
    if not np.isfinite(val):
        raise InvalidParameter(f"{name} must be finite, got {val}")
    return val


def require_positive(name: str, value: float) -> float:
    val = _require_finite(name, value)
    if val <= 0.0:
        raise InvalidParameter(f"{name} must be > 0, got {val}")
    return val


def require_non_negative(name: str, value: float) -> float:
    val = _require_finite(name, value)
    if val < 0.0:
        raise InvalidParameter(f"{name} must be >= 0, got {val}")
    return val


def require_percentage(name: str, value: float, allow_zero: bool = True) -> float:
    """Percent input in [0, 100], or (0, 100] when allow_zero is False."""
    val = _require_finite(name, value)
    if val < 0.0 or val > 100.0 or (not allow_zero and val == 0.0):
        bounds = "[0, 100]" if allow_zero else "(0, 100]"
        raise InvalidParameter(f"{name} must be in {bounds}, got {val}")
    return val


def require_min_int(name: str, value: int, minimum: int) -> int:
    try:
        val = int(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise InvalidParameter(f"{name} must be an integer, got {value!r}") from exc
    if isinstance(value, bool) or val != value:
        raise InvalidParameter(f"{name} must be an integer, got {value!r}")
    if val < minimum:
        raise InvalidParameter(f"{name} must be >= {minimum}, got {val}")
    return val
