"""
Token Types for the Kiln lexer and parser

Shared between lexer and parser to avoid circular dependencies.
"""

from typing import Any
from dataclasses import dataclass
from enum import Enum, auto


class TT(Enum):
    """Token Types - mirrors grammar terminals"""

    # Literals
    NUMBER = auto()
    STRING = auto()
    IDENT = auto()

    # Keywords
    LET = auto()
    IF = auto()
    ELSE = auto()
    WHILE = auto()
    FOR = auto()
    FN = auto()
    RETURN = auto()
    BREAK = auto()
    CONTINUE = auto()

    # Boolean literals
    TRUE = auto()
    FALSE = auto()

    # Operators
    ASSIGN = auto()  # =
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    MOD = auto()
    NEG = auto()  # !

    # Comparison
    EQ = auto()
    NEQ = auto()
    LT = auto()
    GT = auto()
    LTE = auto()
    GTE = auto()

    # Logical
    AND = auto()  # &&
    OR = auto()  # ||

    # Punctuation
    LPAR = auto()
    RPAR = auto()
    LBRACE = auto()
    RBRACE = auto()
    LSQB = auto()
    RSQB = auto()
    COMMA = auto()
    SEMI = auto()

    # Special
    EOF = auto()


@dataclass(frozen=True)
class Tok:
    """Token with position info"""

    type: TT
    value: Any
    line: int = 0
    column: int = 0

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"
