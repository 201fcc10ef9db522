"""Normalization helpers.

Centralizes defensive parsing so unparseable sensor data becomes ``None``
instead of ``0`` or ``NaN``.
"""

from __future__ import annotations

import math
from typing import Any

_PLACEHOLDERS = frozenset({"", "--", "nan", "NaN", "null", "None"})


def safe_float(value: Any) -> float | None:
    """Parse *value* as a finite float, returning ``None`` when it can't be.

    Booleans are rejected on purpose: ``True`` is not a reading.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if value in _PLACEHOLDERS:
            return None
    try:
        result = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(result):
        return None
    return result


def clamp(value: float, minimum: float, maximum: float) -> float:
    if minimum > maximum:
        raise ValueError(f"minimum {minimum} is greater than maximum {maximum}")
    return max(minimum, min(maximum, value))
