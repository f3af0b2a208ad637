"""
Lexer for Kiln - Recursive Descent Parser

Tokenizes Kiln source code into a stream of tokens.

Features:
- Single-pass tokenization
- Position tracking (line, column)
- Line (//) and block (/* */) comments
- String literals with a fixed escape set
"""

from typing import List

from .token_types import TT, Tok
from .types import KilnError

# ============================================================================
# Lexer Implementation
# ============================================================================

class LexError(KilnError):
    """Lexical analysis error"""
    kind = "LEXER_ERROR"


class Lexer:
    """
    Kiln lexer.

    Whitespace is insignificant; every character advances the column and a
    newline bumps the line and resets the column to 1.
    """

    KEYWORDS = {
        'let': TT.LET,
        'if': TT.IF,
        'else': TT.ELSE,
        'while': TT.WHILE,
        'for': TT.FOR,
        'fn': TT.FN,
        'return': TT.RETURN,
        'break': TT.BREAK,
        'continue': TT.CONTINUE,
        'true': TT.TRUE,
        'false': TT.FALSE,
    }

    # Operators whose second character is '=' when present
    EQ_PAIRS = {
        '=': (TT.ASSIGN, TT.EQ),
        '!': (TT.NEG, TT.NEQ),
        '<': (TT.LT, TT.LTE),
        '>': (TT.GT, TT.GTE),
    }

    # Operators that only exist doubled
    DOUBLED = {
        '&': TT.AND,
        '|': TT.OR,
    }

    SINGLE = {
        '+': TT.PLUS,
        '-': TT.MINUS,
        '*': TT.STAR,
        '/': TT.SLASH,
        '%': TT.MOD,
        '(': TT.LPAR,
        ')': TT.RPAR,
        '{': TT.LBRACE,
        '}': TT.RBRACE,
        '[': TT.LSQB,
        ']': TT.RSQB,
        ',': TT.COMMA,
        ';': TT.SEMI,
    }

    ESCAPES = {
        'n': '\n',
        't': '\t',
        'r': '\r',
        '\\': '\\',
        '"': '"',
        '0': '\0',
    }

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Tok] = []

        # Start of the token currently being scanned
        self.tok_line = 1
        self.tok_column = 1

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> List[Tok]:
        """Tokenize entire source, return token list"""
        while True:
            self.skip_trivia()
            if self.at_end():
                break
            self.scan_token()

        self.mark()
        self.emit(TT.EOF, None)
        return self.tokens

    def scan_token(self):
        """Scan next token"""
        self.mark()
        ch = self.peek()

        if ch == '"':
            self.scan_string()
            return

        if _is_digit(ch) or ch == '.':
            self.scan_number()
            return

        if _is_ident_start(ch):
            self.scan_identifier()
            return

        self.scan_operator()

    # ========================================================================
    # Whitespace and Comments
    # ========================================================================

    def skip_trivia(self):
        """Skip whitespace and comments until the next significant char"""
        while not self.at_end():
            ch = self.peek()

            if ch.isspace():
                self.advance()
                continue

            if ch == '/' and self.peek(1) == '/':
                self.skip_line_comment()
                continue

            if ch == '/' and self.peek(1) == '*':
                self.skip_block_comment()
                continue

            return

    def skip_line_comment(self):
        while not self.at_end() and self.peek() != '\n':
            self.advance()

    def skip_block_comment(self):
        start_line, start_col = self.line, self.column
        self.advance(2)  # /*

        while not self.at_end():
            if self.peek() == '*' and self.peek(1) == '/':
                self.advance(2)
                return
            self.advance()

        raise LexError(
            f"Unterminated multi-line comment starting at line {start_line}",
            start_line,
            start_col,
        )

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_string(self):
        """Scan string literal: "..." with backslash escapes"""
        start_line = self.line
        self.advance()  # opening quote
        chars: List[str] = []

        while not self.at_end():
            ch = self.peek()

            if ch == '"':
                self.advance()
                self.emit(TT.STRING, ''.join(chars))
                return

            if ch == '\\':
                self.advance()
                if self.at_end():
                    break

                esc = self.peek()
                if esc not in self.ESCAPES:
                    raise LexError(
                        f"Invalid escape sequence '\\{esc}'",
                        self.line,
                        self.column,
                    )
                chars.append(self.ESCAPES[esc])
                self.advance()
                continue

            chars.append(self.advance())

        raise LexError(
            f"Unterminated string starting at line {start_line}",
            self.tok_line,
            self.tok_column,
        )

    def scan_number(self):
        """Scan number literal: digits with at most one decimal point"""
        text = ''
        seen_dot = False

        while not self.at_end():
            ch = self.peek()
            if _is_digit(ch):
                text += self.advance()
            elif ch == '.' and not seen_dot:
                seen_dot = True
                text += self.advance()
            else:
                break

        if text == '.':
            raise LexError("Invalid number '.'", self.tok_line, self.tok_column)

        try:
            value = float(text)
        except ValueError:
            raise LexError(f"Invalid number '{text}'", self.tok_line, self.tok_column) from None

        self.emit(TT.NUMBER, value)

    def scan_identifier(self):
        """Scan identifier or keyword"""
        value = ''

        while not self.at_end() and _is_ident_char(self.peek()):
            value += self.advance()

        token_type = self.KEYWORDS.get(value, TT.IDENT)
        if token_type == TT.TRUE:
            self.emit(token_type, True)
        elif token_type == TT.FALSE:
            self.emit(token_type, False)
        else:
            self.emit(token_type, value)

    def scan_operator(self):
        """Scan operators and punctuation"""
        ch = self.peek()

        if ch in self.EQ_PAIRS:
            plain, with_eq = self.EQ_PAIRS[ch]
            self.advance()
            if self.peek() == '=':
                self.advance()
                self.emit(with_eq, ch + '=')
            else:
                self.emit(plain, ch)
            return

        if ch in self.DOUBLED:
            self.advance()
            if self.peek() != ch:
                raise LexError(
                    f"Unexpected character '{ch}'. Did you mean '{ch}{ch}'?",
                    self.tok_line,
                    self.tok_column,
                )
            self.advance()
            self.emit(self.DOUBLED[ch], ch + ch)
            return

        if ch in self.SINGLE:
            self.advance()
            self.emit(self.SINGLE[ch], ch)
            return

        raise LexError(f"Unexpected character '{ch}'", self.tok_line, self.tok_column)

    # ========================================================================
    # Utilities
    # ========================================================================

    def at_end(self) -> bool:
        return self.pos >= len(self.source)

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def advance(self, n: int = 1) -> str:
        """Consume n characters and return them as a string"""
        if n < 0:
            raise ValueError(f"advance() requires n >= 0, got {n}")
        result = ''
        for _ in range(n):
            if self.at_end():
                break
            ch = self.source[self.pos]
            result += ch
            self.pos += 1
            if ch == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        return result

    def mark(self):
        """Remember where the current token starts"""
        self.tok_line = self.line
        self.tok_column = self.column

    def emit(self, token_type: TT, value):
        """Emit a token positioned at its first character"""
        tok = Tok(
            type=token_type,
            value=value,
            line=self.tok_line,
            column=self.tok_column,
        )
        self.tokens.append(tok)


def _is_digit(ch: str) -> bool:
    return '0' <= ch <= '9'


def _is_ident_start(ch: str) -> bool:
    return ch.isascii() and (ch.isalpha() or ch == '_')


def _is_ident_char(ch: str) -> bool:
    return ch.isascii() and (ch.isalnum() or ch == '_')


def tokenize(source: str) -> List[Tok]:
    """Convenience function to tokenize source"""
    lexer = Lexer(source)
    return lexer.tokenize()


def token_types(source: str, keep_eof: bool = False) -> List[TT]:
    """Token type stream for *source*; handy for diagnostics and tests."""
    tokens = tokenize(source)
    if not keep_eof:
        tokens = [tok for tok in tokens if tok.type != TT.EOF]
    return [tok.type for tok in tokens]
