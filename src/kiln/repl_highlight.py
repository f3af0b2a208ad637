"""prompt_toolkit lexer for live Kiln syntax highlighting in the REPL."""

from __future__ import annotations

from typing import Callable

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer_rd import Lexer as KnLexer, LexError
from .token_types import TT, Tok

# Map highlight groups → prompt_toolkit style strings.
GROUP_STYLE = {
    "keyword": "bold ansicyan",
    "boolean": "ansicyan",
    "number": "ansimagenta",
    "string": "ansigreen",
    "identifier": "",
    "function": "bold ansiyellow",
    "operator": "",
    "punctuation": "",
    "comment": "italic ansigray",
    "error": "bold ansired",
}

_TT_GROUP = {
    TT.LET: "keyword",
    TT.IF: "keyword",
    TT.ELSE: "keyword",
    TT.WHILE: "keyword",
    TT.FOR: "keyword",
    TT.FN: "keyword",
    TT.RETURN: "keyword",
    TT.BREAK: "keyword",
    TT.CONTINUE: "keyword",
    TT.TRUE: "boolean",
    TT.FALSE: "boolean",
    TT.NUMBER: "number",
    TT.STRING: "string",
    TT.IDENT: "identifier",
    TT.ASSIGN: "operator",
    TT.PLUS: "operator",
    TT.MINUS: "operator",
    TT.STAR: "operator",
    TT.SLASH: "operator",
    TT.MOD: "operator",
    TT.NEG: "operator",
    TT.EQ: "operator",
    TT.NEQ: "operator",
    TT.LT: "operator",
    TT.GT: "operator",
    TT.LTE: "operator",
    TT.GTE: "operator",
    TT.AND: "operator",
    TT.OR: "operator",
    TT.LPAR: "punctuation",
    TT.RPAR: "punctuation",
    TT.LBRACE: "punctuation",
    TT.RBRACE: "punctuation",
    TT.LSQB: "punctuation",
    TT.RSQB: "punctuation",
    TT.COMMA: "punctuation",
    TT.SEMI: "punctuation",
}


def _token_width(text: str, start: int, tok: Tok) -> int:
    """Width of *tok* in *text*; STRING and NUMBER values do not keep their spelling."""
    n = len(text)

    if tok.type == TT.STRING:
        i = start + 1
        while i < n:
            if text[i] == "\\":
                i += 2
                continue
            if text[i] == '"':
                return i + 1 - start
            i += 1
        return n - start

    if tok.type == TT.NUMBER:
        i = start
        while i < n and (text[i].isdigit() or text[i] == "."):
            i += 1
        return i - start

    if tok.type in (TT.TRUE, TT.FALSE):
        return 4 if tok.type == TT.TRUE else 5

    return len(str(tok.value))


def _gap_spans(gap: str) -> StyleAndTextTuples:
    """Whitespace between tokens, with any comment styled."""
    for marker in ("//", "/*"):
        idx = gap.find(marker)
        if idx >= 0:
            spans: StyleAndTextTuples = []
            if idx:
                spans.append(("", gap[:idx]))
            spans.append((GROUP_STYLE["comment"], gap[idx:]))
            return spans

    return [("", gap)]


def _highlight_line(text: str) -> StyleAndTextTuples:
    """Tokenize a single line and return styled fragments."""
    if not text:
        return [("", "")]

    try:
        tokens = KnLexer(text).tokenize()
    except LexError:
        return [("", text)]

    result: StyleAndTextTuples = []
    pos = 0

    for i, tok in enumerate(tokens):
        if tok.type == TT.EOF:
            continue

        start = tok.column - 1
        if start > pos:
            result.extend(_gap_spans(text[pos:start]))

        width = _token_width(text, start, tok)
        group = _TT_GROUP.get(tok.type, "")
        # identifiers directly followed by '(' are calls
        if tok.type == TT.IDENT and i + 1 < len(tokens) and tokens[i + 1].type == TT.LPAR:
            group = "function"
        result.append((GROUP_STYLE.get(group, ""), text[start:start + width]))
        pos = start + width

    # Trailing text (spaces, comments).
    if pos < len(text):
        result.extend(_gap_spans(text[pos:]))

    return result if result else [("", text)]


class KilnLexer(Lexer):
    """prompt_toolkit Lexer that highlights Kiln source using the RD lexer."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = document.lines

        # Pre-compute highlights for all lines.
        cache: dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno not in cache:
                if lineno < len(lines):
                    cache[lineno] = _highlight_line(lines[lineno])
                else:
                    cache[lineno] = [("", "")]

            return cache[lineno]

        return get_line
