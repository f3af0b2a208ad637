from __future__ import annotations

import math
from typing import Any, Callable, List

from ..runtime import (
    Frame,
    KnBool,
    KnNumber,
    KnString,
    KnValue,
    Outcome,
    EvalTypeError,
    EvalZeroDivisionError,
    is_signal,
)
from ..utils import numbers_equal, type_name, values_equal
from .helpers import check_finite, is_truthy

EvalFunc = Callable[[Any, Frame], Outcome]

def eval_prefix(children: List[Any], frame: Frame, eval_func: EvalFunc) -> Outcome:
    op, operand_node = children
    operand = eval_func(operand_node, frame)
    if is_signal(operand):
        return operand

    match str(op):
        case '!':
            return KnBool(not is_truthy(operand))
        case '-':
            if not isinstance(operand, KnNumber):
                raise EvalTypeError(f"Cannot negate {type_name(operand)}")
            return KnNumber(-operand.value)
        case _:
            raise EvalTypeError(f"Unknown prefix operator: {op}")

def eval_infix(children: List[Any], frame: Frame, eval_func: EvalFunc) -> Outcome:
    """Both operands are always evaluated, left first; && and || do not short-circuit."""
    left_node, op_tok, right_node = children

    lhs = eval_func(left_node, frame)
    if is_signal(lhs):
        return lhs

    rhs = eval_func(right_node, frame)
    if is_signal(rhs):
        return rhs

    return apply_infix(str(op_tok), lhs, rhs)

def apply_infix(op: str, lhs: KnValue, rhs: KnValue) -> KnValue:
    match (lhs, rhs):
        case (KnNumber(value=a), KnNumber(value=b)):
            return _number_infix(op, a, b)
        case (KnBool(value=a), KnBool(value=b)):
            return _bool_infix(op, a, b)
        case (KnString(value=a), KnString(value=b)):
            return _string_infix(op, a, b)
        case _ if op in ('==', '!='):
            same = type(lhs) is type(rhs) and values_equal(lhs, rhs)
            return KnBool(same if op == '==' else not same)
        case _:
            raise EvalTypeError(
                f"Type mismatch: cannot apply '{op}' to {type_name(lhs)} and {type_name(rhs)}"
            )

def _number_infix(op: str, a: float, b: float) -> KnValue:
    match op:
        case '+':
            return check_finite(a + b)
        case '-':
            return check_finite(a - b)
        case '*':
            return check_finite(a * b)
        case '/':
            if b == 0:
                raise EvalZeroDivisionError("Division by zero")
            return check_finite(a / b)
        case '%':
            if b == 0:
                raise EvalZeroDivisionError("Modulo by zero")
            # truncated remainder: the sign follows the dividend
            return check_finite(math.fmod(a, b))
        case '==':
            return KnBool(numbers_equal(a, b))
        case '!=':
            return KnBool(not numbers_equal(a, b))
        case '<':
            return KnBool(a < b)
        case '>':
            return KnBool(a > b)
        case '<=':
            return KnBool(a <= b)
        case '>=':
            return KnBool(a >= b)
        case _:
            raise EvalTypeError(f"Unknown operator for numbers: {op}")

def _bool_infix(op: str, a: bool, b: bool) -> KnValue:
    match op:
        case '==':
            return KnBool(a == b)
        case '!=':
            return KnBool(a != b)
        case '&&':
            return KnBool(a and b)
        case '||':
            return KnBool(a or b)
        case _:
            raise EvalTypeError(f"Unknown operator for booleans: {op}")

def _string_infix(op: str, a: str, b: str) -> KnValue:
    match op:
        case '+':
            return KnString(a + b)
        case '==':
            return KnBool(a == b)
        case '!=':
            return KnBool(a != b)
        case '<':
            return KnBool(a < b)
        case '>':
            return KnBool(a > b)
        case '<=':
            return KnBool(a <= b)
        case '>=':
            return KnBool(a >= b)
        case _:
            raise EvalTypeError(f"Unknown operator for strings: {op}")
