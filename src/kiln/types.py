from __future__ import annotations

import io
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Set, Tuple
from typing_extensions import Protocol, TypeAlias, TypeGuard
from .tree import Node

# ---------- Value Model ----------

@dataclass(frozen=True)
class KnNull:
    def __repr__(self) -> str:
        return "null"

@dataclass(frozen=True)
class KnNumber:
    value: float
    def __repr__(self) -> str:
        v = self.value
        return str(int(v)) if v.is_integer() else repr(v)

@dataclass(frozen=True)
class KnString:
    value: str
    def __repr__(self) -> str:
        return f'"{self.value}"'

@dataclass(frozen=True)
class KnBool:
    value: bool
    def __repr__(self) -> str:
        return "true" if self.value else "false"

@dataclass(frozen=True)
class KnArray:
    items: Tuple['KnValue', ...] = ()
    def __repr__(self) -> str:
        return "[" + ", ".join(repr(x) for x in self.items) + "]"

@dataclass(frozen=True)
class KnFn:
    name: str
    params: Tuple[str, ...]
    body: Node                           # AST node, owned by the function
    closure: Mapping[str, 'KnValue']     # environment snapshot at definition time
    def __repr__(self) -> str:
        return f"<fn {self.name}({', '.join(self.params)})>"

StdlibFn = Callable[['Frame', List['KnValue']], 'KnValue']

@dataclass(frozen=True, eq=False)
class KnBuiltin:
    name: str
    fn: StdlibFn
    arity: Optional[int] = None
    def __repr__(self) -> str:
        return f"<builtin {self.name}>"

KnValue: TypeAlias = (
    KnNull
    | KnNumber
    | KnString
    | KnBool
    | KnArray
    | KnFn
    | KnBuiltin
)

# ---------- Control signals ----------

@dataclass(frozen=True)
class ReturnSignal:
    """`return` travelling up to the nearest function call."""
    value: KnValue

@dataclass(frozen=True)
class BreakSignal:
    """`break` travelling up to the nearest loop."""

@dataclass(frozen=True)
class ContinueSignal:
    """`continue` travelling up to the nearest loop."""

BREAK = BreakSignal()
CONTINUE = ContinueSignal()

Signal: TypeAlias = ReturnSignal | BreakSignal | ContinueSignal
Outcome: TypeAlias = KnValue | Signal

def is_signal(value: object) -> TypeGuard[Signal]:
    return isinstance(value, (ReturnSignal, BreakSignal, ContinueSignal))

# ---------- Output sink ----------

class OutputSink(Protocol):
    def write(self, text: str) -> object: ...

# ---------- Environment ----------

class Frame:
    """One lexical scope: a name -> value mapping plus the run's output sink.

    Entering a nested scope copies the mapping (`snapshot`). `let` bindings
    stay in the scope that made them; plain rebinding of an inherited name is
    tracked so `merge_into` can write it back when the scope ends.
    """

    def __init__(self, bindings: Optional[Mapping[str, KnValue]]=None, out: Optional[OutputSink]=None, source: Optional[str]=None):
        self.vars: Dict[str, KnValue] = dict(bindings) if bindings else {}
        self.out: OutputSink = out if out is not None else io.StringIO()
        self.source = source
        self._declared: Set[str] = set()
        self._written: Dict[str, KnValue] = {}

    def define(self, name: str, val: KnValue) -> None:
        self.vars[name] = val
        self._declared.add(name)

    def has(self, name: str) -> bool:
        return name in self.vars

    def get(self, name: str) -> KnValue:
        if name in self.vars:
            return self.vars[name]

        raise EvalNameError(f"Identifier not found: {name}")

    def assign(self, name: str, val: KnValue) -> None:
        if name not in self.vars:
            raise EvalNameError(f"Cannot assign to undefined variable: {name}")

        self.vars[name] = val
        if name not in self._declared:
            self._written[name] = val

    def snapshot(self) -> 'Frame':
        """Enter a new scope by duplicating this one."""
        return Frame(self.vars, out=self.out, source=self.source)

    def closure(self) -> Mapping[str, KnValue]:
        """Frozen copy of the current bindings for a function value."""
        return MappingProxyType(dict(self.vars))

    def merge_into(self, parent: 'Frame', leak_functions: bool) -> None:
        """Leave this scope, propagating what may escape into *parent*."""
        for name, val in self._written.items():
            if name in parent.vars:
                parent.vars[name] = val
                if name not in parent._declared:
                    parent._written[name] = val

        if not leak_functions:
            return

        for name, val in self.vars.items():
            if isinstance(val, KnFn) and name not in parent.vars:
                parent.vars[name] = val

# ---------- Exceptions ----------

class KilnError(Exception):
    """Base for every error the language reports to its caller."""
    kind = "SYSTEM_ERROR"

    def __init__(self, message: str, line: Optional[int]=None, column: Optional[int]=None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    def __str__(self) -> str:
        if self.line is None:
            return self.message

        if self.column is None:
            return f"{self.message} (line {self.line})"

        return f"{self.message} (line {self.line}, col {self.column})"

class EvalError(KilnError):
    kind = "RUNTIME_ERROR"

class EvalNameError(EvalError):
    pass

class EvalTypeError(EvalError):
    pass

class EvalArityError(EvalError):
    pass

class EvalIndexError(EvalError):
    def __init__(self, message: str = "Index out of bounds"):
        super().__init__(message)

class EvalZeroDivisionError(EvalError):
    pass

class EvalArithmeticError(EvalError):
    pass

class LoopLimitError(EvalError):
    pass

class Builtins:
    table: Dict[str, KnBuiltin] = {}
