from __future__ import annotations

import math
from typing import Any, Optional

from lark import Token

from ..runtime import Frame, KnBool, KnNumber, KnString, EvalArithmeticError, EvalError
from ..tree import is_token, token_kind

def expect_ident_token(node: Any, context: str) -> str:
    if is_token(node) and token_kind(node) == 'IDENT':
        return str(node.value)

    raise EvalError(f"{context} must be an identifier")

def ident_token_value(node: Any) -> Optional[str]:
    if is_token(node) and token_kind(node) == 'IDENT':
        return str(node.value)

    return None

def token_number(t: Token, _: Frame) -> KnNumber:
    value = float(t.value)
    if not math.isfinite(value):
        raise EvalArithmeticError(f"Number literal out of range: {t}")

    return KnNumber(value)

def token_string(t: Token, _: Frame) -> KnString:
    return KnString(str(t.value))

def token_bool(t: Token, _: Frame) -> KnBool:
    return KnBool(token_kind(t) == 'TRUE')
