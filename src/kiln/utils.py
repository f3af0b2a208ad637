from __future__ import annotations

import os as _os
import sys
from typing import Optional

from .types import (
    KnValue,
    KnNull,
    KnNumber,
    KnString,
    KnBool,
    KnArray,
    KnFn,
    KnBuiltin,
    EvalError,
)

DEBUG_PY_TRACE_ENV = "KILN_DEBUG_PY_TRACE"


def debug_py_trace_enabled() -> bool:
    """True when Python tracebacks should accompany reported errors."""
    return _os.environ.get(DEBUG_PY_TRACE_ENV, "") not in ("", "0")


def numbers_equal(a: float, b: float) -> bool:
    return abs(a - b) < sys.float_info.epsilon


def values_equal(lhs: KnValue, rhs: KnValue) -> bool:
    match (lhs, rhs):
        case (KnNull(), KnNull()):
            return True
        case (KnNumber(value=a), KnNumber(value=b)):
            return numbers_equal(a, b)
        case (KnString(value=a), KnString(value=b)):
            return a == b
        case (KnBool(value=a), KnBool(value=b)):
            return a == b
        case (KnArray(items=items_a), KnArray(items=items_b)):
            return len(items_a) == len(items_b) and all(
                values_equal(a, b) for a, b in zip(items_a, items_b)
            )
        case (KnFn(), KnFn()):
            return _fns_equal(lhs, rhs)
        case _:
            # builtins never compare equal, not even to themselves
            return False


def _fns_equal(lhs: KnFn, rhs: KnFn) -> bool:
    if lhs is rhs:
        return True

    if lhs.params != rhs.params or lhs.body != rhs.body:
        return False

    closure_a, closure_b = lhs.closure, rhs.closure
    if closure_a.keys() != closure_b.keys():
        return False

    for name in closure_a:
        a, b = closure_a[name], closure_b[name]
        # builtin bindings come from one shared table
        if isinstance(a, KnBuiltin) or isinstance(b, KnBuiltin):
            if a is not b:
                return False
            continue
        if not values_equal(a, b):
            return False

    return True


def type_name(value: KnValue) -> str:
    match value:
        case KnNumber():
            return "number"
        case KnBool():
            return "boolean"
        case KnString():
            return "string"
        case KnArray():
            return "array"
        case KnFn():
            return "function"
        case KnBuiltin():
            return "builtin"
        case _:
            return "null"


def stringify(value: Optional[KnValue]) -> str:
    """Display form used by print and to_string: strings bare, the rest by repr."""
    if isinstance(value, KnString):
        return value.value

    if value is None:
        return "null"

    try:
        return repr(value)
    except RecursionError:
        raise EvalError("maximum nesting depth exceeded") from None


def render_result(value: Optional[KnValue]) -> str:
    """Program result as shown to the user; null renders as nothing."""
    if isinstance(value, KnNull) or value is None:
        return ""

    return stringify(value)
