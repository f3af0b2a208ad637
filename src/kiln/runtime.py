from __future__ import annotations

import importlib
from typing import List, Optional

from .types import (
    KnNull, KnNumber, KnString, KnBool, KnArray, KnFn, KnBuiltin,
    KnValue, Frame, StdlibFn, Builtins,
    ReturnSignal, BreakSignal, ContinueSignal, BREAK, CONTINUE, Signal, Outcome, is_signal,
    KilnError, EvalError, EvalNameError, EvalTypeError, EvalArityError,
    EvalIndexError, EvalZeroDivisionError, EvalArithmeticError, LoopLimitError,
)
from .utils import type_name

_STDLIB_INITIALIZED = False

def init_stdlib() -> None:
    """Load the stdlib module (idempotent) so register_stdlib hooks run."""
    global _STDLIB_INITIALIZED

    if _STDLIB_INITIALIZED:
        return

    importlib.import_module("kiln.stdlib")
    _STDLIB_INITIALIZED = True

def register_stdlib(name: str, *, arity: Optional[int] = None):
    def dec(fn: StdlibFn):
        Builtins.table[name] = KnBuiltin(name=name, fn=fn, arity=arity)
        return fn

    return dec

def install_builtins(frame: Frame) -> None:
    """Bind every builtin the frame does not already shadow."""
    init_stdlib()

    for name, builtin in Builtins.table.items():
        if not frame.has(name):
            frame.vars[name] = builtin

def call_value(callee: KnValue, args: List[KnValue], frame: Frame, name: Optional[str] = None) -> KnValue:
    if isinstance(callee, KnBuiltin):
        return call_builtin(callee, args, frame)

    if isinstance(callee, KnFn):
        return call_knfn(callee, args, frame)

    label = name if name is not None else repr(callee)
    raise EvalTypeError(f"'{label}' is not a function (got {type_name(callee)})")

def call_builtin(builtin: KnBuiltin, args: List[KnValue], frame: Frame) -> KnValue:
    if builtin.arity is not None and len(args) != builtin.arity:
        raise EvalArityError(f"{builtin.name} expects {builtin.arity} argument(s); got {len(args)}")

    return builtin.fn(frame, args)

def call_knfn(fn: KnFn, args: List[KnValue], caller_frame: Frame) -> KnValue:
    """
    Call semantics:
    - arity must match len(fn.params) exactly
    - the callee scope starts from the closure snapshot, then binds the
      function's own name (so it can recurse), then the parameters
    - the scope is discarded afterwards; nothing is written back
    """
    from .evaluator import eval_node  # local import to avoid cycle

    if len(args) != len(fn.params):
        raise EvalArityError(f"Function '{fn.name}' expects {len(fn.params)} argument(s); got {len(args)}")

    callee_frame = Frame(fn.closure, out=caller_frame.out, source=caller_frame.source)
    callee_frame.define(fn.name, fn)

    for param, val in zip(fn.params, args):
        callee_frame.define(param, val)

    outcome = eval_node(fn.body, callee_frame)

    if isinstance(outcome, ReturnSignal):
        return outcome.value

    if isinstance(outcome, BreakSignal):
        raise EvalError("break outside of loop")

    if isinstance(outcome, ContinueSignal):
        raise EvalError("continue outside of loop")

    return outcome
