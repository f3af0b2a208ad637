from __future__ import annotations

from typing import Any, Callable, List, Sequence

from ..runtime import (
    Frame,
    KnArray,
    KnNumber,
    KnString,
    KnValue,
    Outcome,
    EvalIndexError,
    EvalTypeError,
    is_signal,
)
from ..utils import type_name

EvalFunc = Callable[[Any, Frame], Outcome]

def eval_array(children: List[Any], frame: Frame, eval_func: EvalFunc) -> Outcome:
    items: List[KnValue] = []

    for child in children:
        value = eval_func(child, frame)
        if is_signal(value):
            return value
        items.append(value)

    return KnArray(tuple(items))

def eval_index(children: List[Any], frame: Frame, eval_func: EvalFunc) -> Outcome:
    container_node, index_node = children

    container = eval_func(container_node, frame)
    if is_signal(container):
        return container

    index = eval_func(index_node, frame)
    if is_signal(index):
        return index

    return index_value(container, index)

def index_value(container: KnValue, index: KnValue) -> KnValue:
    """`container[index]` for arrays (element) and strings (one-character string)."""
    match container:
        case KnArray(items=items):
            pos = _resolve_index(index, items)
            return items[pos]
        case KnString(value=s):
            pos = _resolve_index(index, s)
            return KnString(s[pos])
        case _:
            raise EvalTypeError(f"Cannot index {type_name(container)}")

def _resolve_index(index: KnValue, seq: Sequence[Any]) -> int:
    if not isinstance(index, KnNumber):
        raise EvalTypeError(f"Index must be a number; got {type_name(index)}")

    if not index.value.is_integer():
        raise EvalIndexError(f"Index must be a whole number; got {index!r}")

    pos = int(index.value)
    if pos < 0 or pos >= len(seq):
        raise EvalIndexError(f"Index out of bounds: index {pos}, length {len(seq)}")

    return pos
