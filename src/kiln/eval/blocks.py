from __future__ import annotations

from typing import Any, Callable, List

from lark import Tree

from ..runtime import Frame, KnNull, KnValue, Outcome, ReturnSignal, is_signal
from ..tree import node_position
from .control import stray_signal_error

EvalFunc = Callable[[Any, Frame], Outcome]

def eval_program(children: List[Any], frame: Frame, eval_func: EvalFunc) -> KnValue:
    """Run top-level statements in order, returning the last value.

    A `return` at the top level ends the program with its value.
    """
    result: KnValue = KnNull()

    for child in children:
        outcome = eval_func(child, frame)

        if isinstance(outcome, ReturnSignal):
            return outcome.value

        if is_signal(outcome):
            line, column = node_position(child)
            raise stray_signal_error(outcome, line, column)

        result = outcome

    return result

def eval_block(n: Tree, frame: Frame, eval_func: EvalFunc) -> Outcome:
    """Run a `{ ... }` block in a snapshot of *frame*.

    On exit, function bindings the parent lacks leak out and rebinding of
    inherited names is written back. A signal stops the block early.
    """
    scope = frame.snapshot()
    result: Outcome = KnNull()

    for child in n.children:
        result = eval_func(child, scope)
        if is_signal(result):
            break

    scope.merge_into(frame, leak_functions=True)
    return result
