from __future__ import annotations

from typing import Any, Callable, Optional

from ..runtime import (
    BREAK,
    CONTINUE,
    BreakSignal,
    EvalError,
    Frame,
    KnNull,
    Outcome,
    ReturnSignal,
    Signal,
    is_signal,
)

EvalFunc = Callable[[Any, Frame], Outcome]

def eval_return_stmt(children: list[Any], frame: Frame, eval_func: EvalFunc) -> Outcome:
    if not children:
        return ReturnSignal(KnNull())

    value = eval_func(children[0], frame)
    if is_signal(value):
        return value

    return ReturnSignal(value)

def eval_break_stmt(_frame: Frame) -> Outcome:
    return BREAK

def eval_continue_stmt(_frame: Frame) -> Outcome:
    return CONTINUE

def stray_signal_error(signal: Signal, line: Optional[int]=None, column: Optional[int]=None) -> EvalError:
    """Error for break/continue that reached a program or function boundary."""
    keyword = "break" if isinstance(signal, BreakSignal) else "continue"
    return EvalError(f"{keyword} outside of loop", line, column)
