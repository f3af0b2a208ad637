from __future__ import annotations

from typing import Callable, Optional
from lark import Token

from .runtime import (
    Frame,
    KnValue,
    KilnError,
    EvalError,
    Outcome,
    install_builtins,
)

from .tree import Node, Tree, is_token, node_position

from .eval.blocks import eval_block, eval_program
from .eval.chains import eval_array, eval_index
from .eval.common import token_bool, token_number, token_string
from .eval.control import eval_break_stmt, eval_continue_stmt, eval_return_stmt
from .eval.expr import eval_infix, eval_prefix
from .eval.fn import eval_call, eval_fn_def
from .eval.let import eval_assign, eval_let_stmt
from .eval.loops import eval_for_stmt, eval_if_stmt, eval_while_stmt

def _maybe_attach_location(exc: KilnError, node: Node) -> None:
    """Record where an error happened; the innermost positioned node wins."""
    if exc.line is not None:
        return

    line, column = node_position(node)
    if line is None:
        return

    exc.line = line
    exc.column = column

# ---------------- Public API ----------------

def evaluate(program: Node, frame: Optional[Frame]=None, source: Optional[str]=None) -> KnValue:
    """Evaluate a parsed program; builtins are bound first unless already shadowed."""
    if frame is None:
        frame = Frame(source=source)
    elif source is not None:
        frame.source = source

    install_builtins(frame)

    try:
        return eval_program(program.children, frame, eval_node)
    except KilnError as e:
        _maybe_attach_location(e, program)
        raise
    except RecursionError:
        raise EvalError("maximum recursion depth exceeded") from None

# ---------------- Core evaluator ----------------

def eval_node(n: Node, frame: Frame) -> Outcome:
    try:
        return _eval_node_inner(n, frame)
    except KilnError as e:
        _maybe_attach_location(e, n)
        raise

def _eval_node_inner(n: Node, frame: Frame) -> Outcome:
    if is_token(n):
        return _eval_token(n, frame)

    handler = _NODE_DISPATCH.get(n.data)
    if handler is not None:
        return handler(n, frame)

    raise EvalError(f"Unknown node: {n.data}")

# ---------------- Tokens ----------------

def _eval_token(t: Token, frame: Frame) -> Outcome:
    handler = _TOKEN_DISPATCH.get(t.type)
    if handler:
        return handler(t, frame)

    if t.type == 'IDENT':
        return frame.get(str(t.value))

    raise EvalError(f"Unhandled token {t.type}:{t.value}")

# ---------------- Dispatch ----------------

_NODE_DISPATCH: dict[str, Callable[[Tree, Frame], Outcome]] = {
    'program': lambda n, frame: eval_program(n.children, frame, eval_node),
    'block': lambda n, frame: eval_block(n, frame, eval_node),
    'letstmt': lambda n, frame: eval_let_stmt(n.children, frame, eval_node),
    'assign': lambda n, frame: eval_assign(n.children, frame, eval_node),
    'ifstmt': lambda n, frame: eval_if_stmt(n, frame, eval_node),
    'whilestmt': lambda n, frame: eval_while_stmt(n, frame, eval_node),
    'forstmt': lambda n, frame: eval_for_stmt(n, frame, eval_node),
    'fndef': lambda n, frame: eval_fn_def(n.children, frame, eval_node),
    'call': lambda n, frame: eval_call(n.children, frame, eval_node),
    'returnstmt': lambda n, frame: eval_return_stmt(n.children, frame, eval_node),
    'breakstmt': lambda _, frame: eval_break_stmt(frame),
    'continuestmt': lambda _, frame: eval_continue_stmt(frame),
    'prefix': lambda n, frame: eval_prefix(n.children, frame, eval_node),
    'infix': lambda n, frame: eval_infix(n.children, frame, eval_node),
    'array': lambda n, frame: eval_array(n.children, frame, eval_node),
    'index': lambda n, frame: eval_index(n.children, frame, eval_node),
}

_TOKEN_DISPATCH: dict[str, Callable[[Token, Frame], KnValue]] = {
    'NUMBER': token_number,
    'STRING': token_string,
    'TRUE': token_bool,
    'FALSE': token_bool,
}
