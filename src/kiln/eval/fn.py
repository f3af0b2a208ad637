from __future__ import annotations

from typing import Any, Callable, List

from ..runtime import Frame, KnFn, KnValue, Outcome, EvalError, call_value, is_signal
from ..tree import tree_children
from .common import expect_ident_token as _expect_ident_token, ident_token_value as _ident_token_value

EvalFunc = Callable[[Any, Frame], Outcome]

def extract_param_names(params_node: Any) -> List[str]:
    names: List[str] = []

    for p in tree_children(params_node):
        name = _ident_token_value(p)
        if name is None:
            raise EvalError(f"Unsupported parameter node in function definition: {p}")
        if name in names:
            raise EvalError(f"Duplicate parameter name: {name}")
        names.append(name)

    return names

def eval_fn_def(children: List[Any], frame: Frame, eval_func: EvalFunc) -> Outcome:
    """Bind a function capturing the current bindings by value; yields the function."""
    name = _expect_ident_token(children[0], "Function name")
    params = extract_param_names(children[1])
    body_node = children[2]

    fn_value = KnFn(name=name, params=tuple(params), body=body_node, closure=frame.closure())
    frame.define(name, fn_value)

    return fn_value

def eval_call(children: List[Any], frame: Frame, eval_func: EvalFunc) -> Outcome:
    name = _expect_ident_token(children[0], "Callee")
    callee = frame.get(name)

    args: List[KnValue] = []
    for arg_node in tree_children(children[1]):
        value = eval_func(arg_node, frame)
        if is_signal(value):
            return value
        args.append(value)

    return call_value(callee, args, frame, name=name)
