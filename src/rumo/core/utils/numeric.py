"""Lenient numeric coercion for user-entered and stored values."""

import math
from typing import Any


def safe_num(value: Any) -> float:
    """Coerce *value* to a finite float, falling back to 0.0.

    Strings may use a decimal comma ("1,5") and surrounding whitespace.
    None, empty strings, non-numeric text, NaN and infinities all become 0.0.
    """
    if value is None or isinstance(value, bool):
        return float(value or 0)
    if isinstance(value, int | float):
        number = float(value)
    else:
        text = str(value).strip().replace(",", ".")
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    return number if math.isfinite(number) else 0.0


def safe_pct(part: float, whole: float) -> float:
    """``part / whole * 100``, or 0.0 when *whole* is not positive."""
    if whole <= 0:
        return 0.0
    return part / whole * 100
