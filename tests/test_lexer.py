from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

import pytest

from kiln.lexer_rd import LexError, tokenize, token_types
from kiln.token_types import TT


@dataclass(frozen=True)
class Case:
    """Unified lexer case payload."""

    name: str
    source: str
    expected: Optional[Tuple[Tuple[TT, object], ...]] = None
    expected_types: Optional[Tuple[TT, ...]] = None
    expected_positions: Optional[Tuple[Tuple[str, int, int], ...]] = None
    exc: Optional[type[Exception]] = None
    msg: Optional[str] = None
    err_line: Optional[int] = None
    err_col: Optional[int] = None


BASIC_TOKEN_CASES: List[Case] = [
    Case("number-int", "123", expected=((TT.NUMBER, 123.0),)),
    Case("number-float", "3.14", expected=((TT.NUMBER, 3.14),)),
    Case("number-leading-dot", ".5", expected=((TT.NUMBER, 0.5),)),
    Case("number-trailing-dot", "7.", expected=((TT.NUMBER, 7.0),)),
    Case("ident-single", "x", expected=((TT.IDENT, "x"),)),
    Case("ident-snake", "foo_bar2", expected=((TT.IDENT, "foo_bar2"),)),
    Case("ident-underscore", "_tmp", expected=((TT.IDENT, "_tmp"),)),
    Case("string-double", '"hello"', expected=((TT.STRING, "hello"),)),
    Case("string-empty", '""', expected=((TT.STRING, ""),)),
    Case("bool-true", "true", expected=((TT.TRUE, True),)),
    Case("bool-false", "false", expected=((TT.FALSE, False),)),
    Case("keyword-prefix-ident", "letter", expected=((TT.IDENT, "letter"),)),
]

OPERATOR_CASES: List[Case] = [
    Case("plus", "+", expected_types=(TT.PLUS,)),
    Case("minus", "-", expected_types=(TT.MINUS,)),
    Case("star", "*", expected_types=(TT.STAR,)),
    Case("slash", "/", expected_types=(TT.SLASH,)),
    Case("mod", "%", expected_types=(TT.MOD,)),
    Case("assign", "=", expected_types=(TT.ASSIGN,)),
    Case("eq", "==", expected_types=(TT.EQ,)),
    Case("neg", "!", expected_types=(TT.NEG,)),
    Case("neq", "!=", expected_types=(TT.NEQ,)),
    Case("lt", "<", expected_types=(TT.LT,)),
    Case("lte", "<=", expected_types=(TT.LTE,)),
    Case("gt", ">", expected_types=(TT.GT,)),
    Case("gte", ">=", expected_types=(TT.GTE,)),
    Case("and", "&&", expected_types=(TT.AND,)),
    Case("or", "||", expected_types=(TT.OR,)),
    Case(
        "delimiters",
        "(){}[],;",
        expected_types=(
            TT.LPAR, TT.RPAR, TT.LBRACE, TT.RBRACE,
            TT.LSQB, TT.RSQB, TT.COMMA, TT.SEMI,
        ),
    ),
    Case("eq-then-assign", "===", expected_types=(TT.EQ, TT.ASSIGN)),
]

KEYWORD_CASES: List[Case] = [
    Case("let", "let", expected_types=(TT.LET,)),
    Case("if", "if", expected_types=(TT.IF,)),
    Case("else", "else", expected_types=(TT.ELSE,)),
    Case("while", "while", expected_types=(TT.WHILE,)),
    Case("for", "for", expected_types=(TT.FOR,)),
    Case("fn", "fn", expected_types=(TT.FN,)),
    Case("return", "return", expected_types=(TT.RETURN,)),
    Case("break", "break", expected_types=(TT.BREAK,)),
    Case("continue", "continue", expected_types=(TT.CONTINUE,)),
    Case("case-sensitive", "Let", expected_types=(TT.IDENT,)),
]

CONSTRUCT_CASES: List[Case] = [
    Case(
        "arith",
        "1 + 2 * 3",
        expected_types=(TT.NUMBER, TT.PLUS, TT.NUMBER, TT.STAR, TT.NUMBER),
    ),
    Case(
        "let-stmt",
        "let x = 5;",
        expected_types=(TT.LET, TT.IDENT, TT.ASSIGN, TT.NUMBER, TT.SEMI),
    ),
    Case(
        "call",
        "f(a, 1)",
        expected_types=(TT.IDENT, TT.LPAR, TT.IDENT, TT.COMMA, TT.NUMBER, TT.RPAR),
    ),
    Case(
        "index",
        "xs[0]",
        expected_types=(TT.IDENT, TT.LSQB, TT.NUMBER, TT.RSQB),
    ),
    Case(
        "no-space-compare",
        "a<=b&&!c",
        expected_types=(TT.IDENT, TT.LTE, TT.IDENT, TT.AND, TT.NEG, TT.IDENT),
    ),
]

STRING_ESCAPE_CASES: List[Case] = [
    Case("newline", r'"hello\nworld"', expected=((TT.STRING, "hello\nworld"),)),
    Case("tab", r'"tab\there"', expected=((TT.STRING, "tab\there"),)),
    Case("carriage-return", r'"a\rb"', expected=((TT.STRING, "a\rb"),)),
    Case("quote", r'"quote\"here"', expected=((TT.STRING, 'quote"here'),)),
    Case("backslash", r'"backslash\\"', expected=((TT.STRING, "backslash\\"),)),
    Case("nul", r'"a\0b"', expected=((TT.STRING, "a\0b"),)),
    Case("raw-newline", '"two\nlines"', expected=((TT.STRING, "two\nlines"),)),
]

POSITION_CASES: List[Case] = [
    Case(
        "simple-lines",
        "x\ny\n  z",
        expected_positions=(("x", 1, 1), ("y", 2, 1), ("z", 3, 3)),
    ),
    Case(
        "same-line",
        "let abc = d;",
        expected_positions=(("abc", 1, 5), ("d", 1, 11)),
    ),
    Case(
        "after-block-comment",
        "/* one\n two */ w",
        expected_positions=(("w", 2, 9),),
    ),
]

LEX_ERROR_CASES: List[Case] = [
    Case(
        "unterminated-string",
        '"abc',
        exc=LexError,
        msg="Unterminated string starting at line 1",
        err_line=1,
        err_col=1,
    ),
    Case(
        "unterminated-string-line2",
        'x = 1\ny = "abc',
        exc=LexError,
        msg="Unterminated string",
        err_line=2,
        err_col=5,
    ),
    Case(
        "invalid-escape",
        r'"a\qb"',
        exc=LexError,
        msg="Invalid escape sequence '\\q'",
        err_line=1,
        err_col=4,
    ),
    Case(
        "unterminated-block-comment",
        "x\n/* never closed",
        exc=LexError,
        msg="Unterminated multi-line comment starting at line 2",
        err_line=2,
        err_col=1,
    ),
    Case(
        "lone-amp",
        "a & b",
        exc=LexError,
        msg="Did you mean '&&'?",
        err_line=1,
        err_col=3,
    ),
    Case(
        "lone-pipe",
        "a | b",
        exc=LexError,
        msg="Did you mean '||'?",
        err_line=1,
        err_col=3,
    ),
    Case(
        "unexpected-char",
        "x = @",
        exc=LexError,
        msg="Unexpected character '@'",
        err_line=1,
        err_col=5,
    ),
    Case(
        "bare-dot",
        "x = .",
        exc=LexError,
        msg="Invalid number '.'",
        err_line=1,
        err_col=5,
    ),
    Case(
        "non-ascii-ident",
        "café",
        exc=LexError,
        msg="Unexpected character",
        err_line=1,
        err_col=4,
    ),
]


def _non_eof_tokens(source: str) -> List[object]:
    return [token for token in tokenize(source) if token.type != TT.EOF]


@pytest.mark.parametrize("case", BASIC_TOKEN_CASES, ids=lambda case: case.name)
def test_basic_tokens(case: Case) -> None:
    tokens = _non_eof_tokens(case.source)

    assert case.expected is not None
    assert len(tokens) == len(case.expected)
    for token, (expected_type, expected_value) in zip(tokens, case.expected):
        assert token.type == expected_type
        assert token.value == expected_value


@pytest.mark.parametrize("case", OPERATOR_CASES, ids=lambda case: case.name)
def test_operators(case: Case) -> None:
    assert case.expected_types is not None
    assert token_types(case.source) == list(case.expected_types)


@pytest.mark.parametrize("case", KEYWORD_CASES, ids=lambda case: case.name)
def test_keywords(case: Case) -> None:
    assert case.expected_types is not None
    assert token_types(case.source) == list(case.expected_types)


@pytest.mark.parametrize("case", CONSTRUCT_CASES, ids=lambda case: case.name)
def test_constructs(case: Case) -> None:
    assert case.expected_types is not None
    assert token_types(case.source) == list(case.expected_types)


@pytest.mark.parametrize("case", STRING_ESCAPE_CASES, ids=lambda case: case.name)
def test_string_escapes(case: Case) -> None:
    tokens = [token for token in tokenize(case.source) if token.type == TT.STRING]
    assert case.expected is not None
    assert len(tokens) == 1
    assert tokens[0].value == case.expected[0][1]


def test_comments() -> None:
    source = "let x = 5; // trailing comment\n/* block */ let y = 10; /* a */ /* b */"
    expected_types = [
        TT.LET, TT.IDENT, TT.ASSIGN, TT.NUMBER, TT.SEMI,
        TT.LET, TT.IDENT, TT.ASSIGN, TT.NUMBER, TT.SEMI,
    ]
    assert token_types(source) == expected_types


def test_comment_only_source_is_just_eof() -> None:
    assert token_types("// nothing\n/* here */", keep_eof=True) == [TT.EOF]


def test_token_stream_ends_with_eof() -> None:
    tokens = tokenize("1 + 2 * 3")

    assert [token.type for token in tokens] == [
        TT.NUMBER, TT.PLUS, TT.NUMBER, TT.STAR, TT.NUMBER, TT.EOF,
    ]
    assert [token.value for token in tokens[:-1]] == [1.0, "+", 2.0, "*", 3.0]


@pytest.mark.parametrize("case", POSITION_CASES, ids=lambda case: case.name)
def test_position_tracking(case: Case) -> None:
    assert case.expected_positions is not None
    tokens = tokenize(case.source)
    positions = {str(token.value): (token.line, token.column) for token in tokens}

    for value, line, column in case.expected_positions:
        assert value in positions
        assert positions[value] == (line, column)


@pytest.mark.parametrize("case", LEX_ERROR_CASES, ids=lambda case: case.name)
def test_lex_errors(case: Case) -> None:
    assert case.exc is not None
    assert case.msg is not None
    with pytest.raises(case.exc) as exc_info:
        tokenize(case.source)

    err = exc_info.value
    assert case.msg in str(err)
    assert err.kind == "LEXER_ERROR"

    if case.err_line is not None:
        assert (
            err.line == case.err_line
        ), f"expected line {case.err_line}, got {err.line}"
    if case.err_col is not None:
        assert (
            err.column == case.err_col
        ), f"expected col {case.err_col}, got {err.column}"


def test_lex_error_str_includes_position() -> None:
    with pytest.raises(LexError) as exc_info:
        tokenize("let a = 1;\nlet b = #;")

    assert str(exc_info.value) == "Unexpected character '#' (line 2, col 9)"
