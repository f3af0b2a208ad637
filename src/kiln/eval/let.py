from __future__ import annotations

from typing import Any, Callable, List

from ..runtime import Frame, KnNull, Outcome, is_signal
from .common import expect_ident_token

EvalFunc = Callable[[Any, Frame], Outcome]

def eval_let_stmt(children: List[Any], frame: Frame, eval_func: EvalFunc) -> Outcome:
    """`let name = expr` binds in the current scope only; yields null."""
    name = expect_ident_token(children[0], "Let target")
    value = eval_func(children[1], frame)
    if is_signal(value):
        return value

    frame.define(name, value)
    return KnNull()

def eval_assign(children: List[Any], frame: Frame, eval_func: EvalFunc) -> Outcome:
    """`name = expr` rebinds an existing name; yields the assigned value."""
    name = expect_ident_token(children[0], "Assignment target")
    value = eval_func(children[1], frame)
    if is_signal(value):
        return value

    frame.assign(name, value)
    return value
