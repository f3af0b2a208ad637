"""Built-in functions (print, len, math, strings...) registered via kiln.runtime."""

from __future__ import annotations

import math
import re
from typing import Callable, List, Sequence

from .runtime import register_stdlib, Frame, KnNull, KnNumber, KnString, KnBool, KnArray, KnValue
from .runtime import EvalError, EvalTypeError, EvalArityError, EvalIndexError, EvalArithmeticError
from .eval.helpers import check_finite
from .utils import stringify, type_name

_NUMERIC_TEXT = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

def _expect_number(fn_name: str, arg: KnValue) -> float:
    if isinstance(arg, KnNumber):
        return arg.value

    raise EvalTypeError(f"{fn_name} expects a number; got {type_name(arg)}")

def _expect_string(fn_name: str, arg: KnValue) -> str:
    if isinstance(arg, KnString):
        return arg.value

    raise EvalTypeError(f"{fn_name} expects a string; got {type_name(arg)}")

def _expect_array(fn_name: str, arg: KnValue) -> Sequence[KnValue]:
    if isinstance(arg, KnArray):
        return arg.items

    raise EvalTypeError(f"{fn_name} expects an array; got {type_name(arg)}")

def _expect_whole(fn_name: str, arg: KnValue) -> int:
    num = _expect_number(fn_name, arg)
    if not num.is_integer():
        raise EvalTypeError(f"{fn_name} expects a whole number; got {KnNumber(num)!r}")

    return int(num)

# ---------- I/O ----------

@register_stdlib("print")
def std_print(frame: Frame, args: List[KnValue]) -> KnNull:
    frame.out.write(" ".join(stringify(arg) for arg in args))
    return KnNull()

@register_stdlib("println")
def std_println(frame: Frame, args: List[KnValue]) -> KnNull:
    frame.out.write(" ".join(stringify(arg) for arg in args) + "\n")
    return KnNull()

# ---------- Collections ----------

@register_stdlib("len", arity=1)
def std_len(_frame: Frame, args: List[KnValue]) -> KnNumber:
    match args[0]:
        case KnArray(items=items):
            return KnNumber(float(len(items)))
        case KnString(value=s):
            return KnNumber(float(len(s)))
        case other:
            raise EvalTypeError(f"len expects an array or string; got {type_name(other)}")

@register_stdlib("push", arity=2)
def std_push(_frame: Frame, args: List[KnValue]) -> KnArray:
    items = _expect_array("push", args[0])
    return KnArray(tuple(items) + (args[1],))

@register_stdlib("pop", arity=1)
def std_pop(_frame: Frame, args: List[KnValue]) -> KnArray:
    items = _expect_array("pop", args[0])
    if not items:
        raise EvalIndexError("pop on empty array")

    return KnArray(tuple(items[:-1]))

@register_stdlib("first", arity=1)
def std_first(_frame: Frame, args: List[KnValue]) -> KnValue:
    items = _expect_array("first", args[0])
    return items[0] if items else KnNull()

@register_stdlib("last", arity=1)
def std_last(_frame: Frame, args: List[KnValue]) -> KnValue:
    items = _expect_array("last", args[0])
    return items[-1] if items else KnNull()

@register_stdlib("rest", arity=1)
def std_rest(_frame: Frame, args: List[KnValue]) -> KnValue:
    items = _expect_array("rest", args[0])
    if not items:
        return KnNull()

    return KnArray(tuple(items[1:]))

# ---------- Math ----------

def _round_half_away(x: float) -> float:
    return math.copysign(math.floor(abs(x) + 0.5), x)

def _register_unary_math(name: str, op: Callable[[float], float]) -> None:
    def std_math(_frame: Frame, args: List[KnValue]) -> KnNumber:
        x = _expect_number(name, args[0])
        try:
            result = float(op(x))
        except ValueError:
            raise EvalArithmeticError(f"{name}: argument out of domain") from None
        except OverflowError:
            raise EvalArithmeticError("arithmetic overflow") from None

        return check_finite(result)

    std_math.__name__ = f"std_{name}"
    register_stdlib(name, arity=1)(std_math)

for _name, _op in (
    ("abs", abs),
    ("sqrt", math.sqrt),
    ("floor", math.floor),
    ("ceil", math.ceil),
    ("round", _round_half_away),
    ("sin", math.sin),
    ("cos", math.cos),
    ("tan", math.tan),
):
    _register_unary_math(_name, _op)

@register_stdlib("pow", arity=2)
def std_pow(_frame: Frame, args: List[KnValue]) -> KnNumber:
    base = _expect_number("pow", args[0])
    exp = _expect_number("pow", args[1])

    try:
        result = math.pow(base, exp)
    except ValueError:
        raise EvalArithmeticError("pow: argument out of domain") from None
    except OverflowError:
        raise EvalArithmeticError("arithmetic overflow") from None

    return check_finite(result)

def _number_args(fn_name: str, args: List[KnValue]) -> List[float]:
    if not args:
        raise EvalArityError(f"{fn_name} expects at least one argument")

    values: Sequence[KnValue] = args
    if len(args) == 1 and isinstance(args[0], KnArray):
        values = args[0].items
        if not values:
            raise EvalArityError(f"{fn_name} of an empty array")

    return [_expect_number(fn_name, v) for v in values]

@register_stdlib("min")
def std_min(_frame: Frame, args: List[KnValue]) -> KnNumber:
    return KnNumber(min(_number_args("min", args)))

@register_stdlib("max")
def std_max(_frame: Frame, args: List[KnValue]) -> KnNumber:
    return KnNumber(max(_number_args("max", args)))

# ---------- Strings ----------

@register_stdlib("substr")
def std_substr(_frame: Frame, args: List[KnValue]) -> KnString:
    if len(args) not in (2, 3):
        raise EvalArityError(f"substr expects 2 or 3 argument(s); got {len(args)}")

    s = _expect_string("substr", args[0])
    start = _expect_whole("substr", args[1])
    if start < 0 or start > len(s):
        raise EvalIndexError(f"substr start {start} out of bounds for length {len(s)}")

    if len(args) == 2:
        return KnString(s[start:])

    length = _expect_whole("substr", args[2])
    if length < 0:
        raise EvalIndexError(f"substr length must not be negative; got {length}")

    return KnString(s[start:start + length])

@register_stdlib("upper", arity=1)
def std_upper(_frame: Frame, args: List[KnValue]) -> KnString:
    return KnString(_expect_string("upper", args[0]).upper())

@register_stdlib("lower", arity=1)
def std_lower(_frame: Frame, args: List[KnValue]) -> KnString:
    return KnString(_expect_string("lower", args[0]).lower())

@register_stdlib("trim", arity=1)
def std_trim(_frame: Frame, args: List[KnValue]) -> KnString:
    return KnString(_expect_string("trim", args[0]).strip())

@register_stdlib("split", arity=2)
def std_split(_frame: Frame, args: List[KnValue]) -> KnArray:
    s = _expect_string("split", args[0])
    sep = _expect_string("split", args[1])

    parts = list(s) if sep == "" else s.split(sep)
    return KnArray(tuple(KnString(p) for p in parts))

@register_stdlib("join", arity=2)
def std_join(_frame: Frame, args: List[KnValue]) -> KnString:
    items = _expect_array("join", args[0])
    sep = _expect_string("join", args[1])

    return KnString(sep.join(stringify(item) for item in items))

# ---------- Types ----------

@register_stdlib("type", arity=1)
def std_type(_frame: Frame, args: List[KnValue]) -> KnString:
    return KnString(type_name(args[0]))

@register_stdlib("to_string", arity=1)
def std_to_string(_frame: Frame, args: List[KnValue]) -> KnString:
    return KnString(stringify(args[0]))

@register_stdlib("to_number", arity=1)
def std_to_number(_frame: Frame, args: List[KnValue]) -> KnNumber:
    match args[0]:
        case KnNumber() as num:
            return num
        case KnBool(value=b):
            return KnNumber(1.0 if b else 0.0)
        case KnString(value=s):
            text = s.strip()
            if not _NUMERIC_TEXT.fullmatch(text):
                raise EvalError(f"Cannot convert '{s}' to number")
            return check_finite(float(text))
        case other:
            raise EvalTypeError(f"Cannot convert {type_name(other)} to number")
