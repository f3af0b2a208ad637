from __future__ import annotations

from typing import Callable

from lark import Tree

from ..runtime import (
    Frame,
    KnNull,
    LoopLimitError,
    Outcome,
    ReturnSignal,
    BREAK,
    CONTINUE,
    is_signal,
)
from ..tree import Node, tree_children
from .helpers import is_truthy as _is_truthy

EvalFunc = Callable[[Node, Frame], Outcome]

MAX_LOOP_ITERATIONS = 10_000

def eval_if_stmt(n: Tree, frame: Frame, eval_func: EvalFunc) -> Outcome:
    children = tree_children(n)
    cond_node, then_node = children[0], children[1]
    else_node = children[2] if len(children) > 2 else None

    cond = eval_func(cond_node, frame)
    if is_signal(cond):
        return cond

    if _is_truthy(cond):
        return eval_func(then_node, frame)

    if else_node is not None:
        return eval_func(else_node, frame)

    return KnNull()

class _LoopCounter:
    """Counts body runs of one loop statement against MAX_LOOP_ITERATIONS."""

    def __init__(self) -> None:
        self.count = 0

    def tick(self) -> None:
        if self.count >= MAX_LOOP_ITERATIONS:
            raise LoopLimitError(f"Loop exceeded maximum of {MAX_LOOP_ITERATIONS} iterations")
        self.count += 1

def eval_while_stmt(n: Tree, frame: Frame, eval_func: EvalFunc) -> Outcome:
    cond_node, body_node = tree_children(n)
    scope = frame.snapshot()
    counter = _LoopCounter()
    result: Outcome = KnNull()

    while True:
        cond = eval_func(cond_node, scope)
        if is_signal(cond):
            result = cond
            break
        if not _is_truthy(cond):
            break

        counter.tick()
        outcome = eval_func(body_node, scope)

        if isinstance(outcome, ReturnSignal):
            result = outcome
            break
        if outcome is BREAK:
            break
        if outcome is CONTINUE:
            continue

        result = outcome

    scope.merge_into(frame, leak_functions=False)
    return result

def eval_for_stmt(n: Tree, frame: Frame, eval_func: EvalFunc) -> Outcome:
    """for (init; cond; increment) body

    init runs once in the loop's own scope. `continue` still runs the
    increment before the condition is tested again.
    """
    init_node, cond_node, incr_node, body_node = tree_children(n)
    scope = frame.snapshot()
    counter = _LoopCounter()
    result: Outcome = KnNull()

    init = eval_func(init_node, scope)
    if is_signal(init):
        scope.merge_into(frame, leak_functions=False)
        return init

    while True:
        cond = eval_func(cond_node, scope)
        if is_signal(cond):
            result = cond
            break
        if not _is_truthy(cond):
            break

        counter.tick()
        outcome = eval_func(body_node, scope)

        if isinstance(outcome, ReturnSignal):
            result = outcome
            break
        if outcome is BREAK:
            break
        if outcome is not CONTINUE:
            result = outcome

        step = eval_func(incr_node, scope)
        if is_signal(step):
            result = step
            break

    scope.merge_into(frame, leak_functions=False)
    return result
