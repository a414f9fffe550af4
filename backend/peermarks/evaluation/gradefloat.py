"""Fixed precision handling of grade values.

Grades are stored and compared with five decimals so that floating point noise
never shows up as a changed grade.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

GRADE_FLOAT_PRECISION = 5
GRADE_FLOAT_EPSILON = 10 ** -(GRADE_FLOAT_PRECISION + 1)

_QUANTUM = Decimal(1).scaleb(-GRADE_FLOAT_PRECISION)


def grade_floatval(value: Optional[float]) -> Optional[float]:
    """Round a grade to five decimals, halves away from zero. None stays None."""
    if value is None:
        return None
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"Grade value must be finite, got {value!r}")
    # str() gives the shortest repr, so 1.000005 rounds up as written rather than as stored
    return float(Decimal(str(value)).quantize(_QUANTUM, rounding=ROUND_HALF_UP))


def grade_floats_different(first: Optional[float], second: Optional[float]) -> bool:
    first = grade_floatval(first)
    second = grade_floatval(second)
    if first is None or second is None:
        return (first is None) != (second is None)
    return abs(first - second) > GRADE_FLOAT_EPSILON
