from __future__ import annotations

import math

from ..runtime import KnArray, KnBool, KnNull, KnNumber, KnString, KnValue, EvalArithmeticError

def is_truthy(val: KnValue) -> bool:
    match val:
        case KnBool(value=b):
            return b
        case KnNull():
            return False
        case KnNumber(value=num):
            return num != 0
        case KnString(value=s):
            return bool(s)
        case KnArray(items=items):
            return bool(items)
        case _:
            return True

def check_finite(value: float) -> KnNumber:
    """Reject NaN and infinities produced by arithmetic."""
    if math.isnan(value):
        raise EvalArithmeticError("invalid number")

    if math.isinf(value):
        raise EvalArithmeticError("arithmetic overflow")

    return KnNumber(value)
