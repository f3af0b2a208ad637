"""
Recursive Descent Parser for Kiln

Structure:
- Lexer: Token stream from source (lexer_rd)
- Parser: Recursive descent for statements, precedence climbing for
  binary operators
- AST: lark Tree/Token nodes, positioned via Tree.meta
"""

from typing import Dict, List, Optional
from lark import Tree

from .token_types import TT, Tok
from .tree import Node, is_token, leaf, meta_from_tok
from .types import KilnError

# ============================================================================
# Parser
# ============================================================================

class ParseError(KilnError):
    """Parse error with position info"""
    kind = "PARSER_ERROR"

    def __init__(self, message: str, token: Optional[Tok] = None):
        super().__init__(
            message,
            token.line if token else None,
            token.column if token else None,
        )
        self.token = token


class Parser:
    """
    Recursive descent parser for Kiln.

    Expression precedence (lowest to highest):
    0. assignment (=), right-associative
    1. or (||)
    2. and (&&)
    3. compare (==, !=, <, >, <=, >=)
    4. add (+, -)
    5. mul (*, /, %)
    6. unary (-, !)
    7. index ([...]), chainable
    """

    PRECEDENCE: Dict[TT, int] = {
        TT.OR: 1,
        TT.AND: 2,
        TT.EQ: 3,
        TT.NEQ: 3,
        TT.LT: 3,
        TT.GT: 3,
        TT.LTE: 3,
        TT.GTE: 3,
        TT.PLUS: 4,
        TT.MINUS: 4,
        TT.STAR: 5,
        TT.SLASH: 5,
        TT.MOD: 5,
        TT.LSQB: 7,
    }

    PREFIX_PRECEDENCE = 6

    def __init__(self, tokens: List[Tok]):
        self.tokens = tokens
        self.pos = 0
        self.current = tokens[0] if tokens else Tok(TT.EOF, None, 1, 1)

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def peek(self, offset: int = 0) -> Tok:
        """Look ahead at token"""
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return self._eof()

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        prev = self.current
        self.pos += 1
        if self.pos < len(self.tokens):
            self.current = self.tokens[self.pos]
        else:
            self.current = self._eof()
        return prev

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self.current.type in types

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, token_type: TT, message: Optional[str] = None) -> Tok:
        """Consume token of expected type or raise error"""
        if not self.check(token_type):
            msg = message or f"Expected {token_type.name}, got {self.current.type.name}"
            raise ParseError(msg, self.current)
        return self.advance()

    def _eof(self) -> Tok:
        if self.tokens:
            last = self.tokens[-1]
            return Tok(TT.EOF, None, last.line, last.column)
        return Tok(TT.EOF, None, 1, 1)

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> Tree:
        """Parse entire program"""
        start = self.current
        stmts: List[Node] = []

        while not self.check(TT.EOF):
            stmts.append(self.parse_statement())

        return Tree('program', stmts, meta_from_tok(start))

    def parse_statement(self) -> Node:
        """Dispatch on the leading token; anything else is an expression statement"""
        tok_type = self.current.type

        if tok_type == TT.LET:
            return self.parse_let_stmt()
        if tok_type == TT.IF:
            return self.parse_if_stmt()
        if tok_type == TT.WHILE:
            return self.parse_while_stmt()
        if tok_type == TT.FOR:
            return self.parse_for_stmt()
        if tok_type == TT.FN:
            return self.parse_fn_stmt()
        if tok_type == TT.RETURN:
            return self.parse_return_stmt()
        if tok_type == TT.BREAK:
            return self.parse_break_stmt()
        if tok_type == TT.CONTINUE:
            return self.parse_continue_stmt()
        if tok_type == TT.LBRACE:
            return self.parse_block()

        expr = self.parse_expr()
        self.match(TT.SEMI)
        return expr

    # ========================================================================
    # Statements
    # ========================================================================

    def parse_let_stmt(self) -> Tree:
        """Parse let binding: let name = expr [;]"""
        let_tok = self.expect(TT.LET)
        name = self.expect(TT.IDENT, "Expected identifier after 'let'")
        self.expect(TT.ASSIGN, "Expected '=' after identifier")
        value = self.parse_expr()
        self.match(TT.SEMI)
        return Tree('letstmt', [leaf('IDENT', name), value], meta_from_tok(let_tok))

    def parse_if_stmt(self) -> Tree:
        """
        Parse if statement:
        if expr stmt [else stmt]
        """
        if_tok = self.expect(TT.IF)
        cond = self.parse_expr()
        then_branch = self.parse_statement()

        children: List[Node] = [cond, then_branch]
        if self.match(TT.ELSE):
            children.append(self.parse_statement())

        return Tree('ifstmt', children, meta_from_tok(if_tok))

    def parse_while_stmt(self) -> Tree:
        """Parse while loop: while expr stmt"""
        while_tok = self.expect(TT.WHILE)
        cond = self.parse_expr()
        body = self.parse_statement()
        return Tree('whilestmt', [cond, body], meta_from_tok(while_tok))

    def parse_for_stmt(self) -> Tree:
        """
        Parse for loop:
        for (init; cond; increment) stmt

        init is a full statement and consumes its own ';'. The increment may
        be an expression or a let binding.
        """
        for_tok = self.expect(TT.FOR)
        self.expect(TT.LPAR, "Expected '(' after 'for'")

        init = self.parse_statement()
        cond = self.parse_expr()
        self.expect(TT.SEMI, "Expected ';' after condition in for loop")

        if self.check(TT.LET):
            increment = self.parse_let_stmt()
        else:
            increment = self.parse_expr()

        self.expect(TT.RPAR, "Expected ')' in for loop")
        body = self.parse_statement()

        return Tree('forstmt', [init, cond, increment, body], meta_from_tok(for_tok))

    def parse_fn_stmt(self) -> Tree:
        """Parse function definition: fn name(params) stmt"""
        fn_tok = self.expect(TT.FN)
        name = self.expect(TT.IDENT, "Expected function name")
        self.expect(TT.LPAR, "Expected '(' after function name")
        params = self.parse_param_list()
        self.expect(TT.RPAR, "Expected ')' after parameters")
        body = self.parse_statement()

        return Tree('fndef', [leaf('IDENT', name), params, body], meta_from_tok(fn_tok))

    def parse_return_stmt(self) -> Tree:
        """Parse return statement: return [expr]"""
        ret_tok = self.expect(TT.RETURN)

        if self.check(TT.SEMI, TT.RBRACE, TT.EOF):
            self.match(TT.SEMI)
            return Tree('returnstmt', [], meta_from_tok(ret_tok))

        value = self.parse_expr()
        self.match(TT.SEMI)
        return Tree('returnstmt', [value], meta_from_tok(ret_tok))

    def parse_break_stmt(self) -> Tree:
        """Parse break statement"""
        tok = self.expect(TT.BREAK)
        self.match(TT.SEMI)
        return Tree('breakstmt', [], meta_from_tok(tok))

    def parse_continue_stmt(self) -> Tree:
        """Parse continue statement"""
        tok = self.expect(TT.CONTINUE)
        self.match(TT.SEMI)
        return Tree('continuestmt', [], meta_from_tok(tok))

    def parse_block(self) -> Tree:
        """Parse block: { stmt* }"""
        lbrace = self.expect(TT.LBRACE)
        stmts: List[Node] = []

        while not self.check(TT.RBRACE, TT.EOF):
            stmts.append(self.parse_statement())

        self.expect(TT.RBRACE, "Expected '}' to close block")
        return Tree('block', stmts, meta_from_tok(lbrace))

    # ========================================================================
    # Expressions
    # ========================================================================

    def parse_expr(self) -> Node:
        """Parse a full expression, assignment included"""
        return self.parse_assign_expr()

    def parse_assign_expr(self) -> Node:
        """Parse assignment: IDENT = expr (right-associative)"""
        start = self.current
        target = self.parse_binary(1)

        if not self.check(TT.ASSIGN):
            return target

        eq_tok = self.advance()
        if not (is_token(target) and target.type == 'IDENT'):
            raise ParseError("Invalid assignment target", eq_tok)

        value = self.parse_assign_expr()
        return Tree('assign', [target, value], meta_from_tok(start))

    def parse_binary(self, min_prec: int) -> Node:
        """
        Precedence climbing over PRECEDENCE.
        Binary operators are left-associative: the right operand is parsed
        with a minimum of precedence + 1. Indexing is a chainable postfix.
        """
        start = self.current
        left = self.parse_prefix()

        while True:
            prec = self.PRECEDENCE.get(self.current.type, 0)
            if prec == 0 or prec < min_prec:
                break

            if self.check(TT.LSQB):
                self.advance()
                index = self.parse_expr()
                self.expect(TT.RSQB, "Expected ']'")
                left = Tree('index', [left, index], meta_from_tok(start))
                continue

            op = self.advance()
            right = self.parse_binary(prec + 1)
            left = Tree('infix', [left, leaf(op.type.name, op), right], meta_from_tok(start))

        return left

    def parse_prefix(self) -> Node:
        """
        Parse prefix position:
        - Literals (numbers, strings, true, false)
        - Identifiers and calls
        - Array literals
        - Unary - and !
        - Parenthesized expressions
        - Blocks in expression position
        """
        tok = self.current

        if self.match(TT.NUMBER):
            return leaf('NUMBER', tok)

        if self.match(TT.STRING):
            return leaf('STRING', tok)

        if self.match(TT.TRUE):
            return leaf('TRUE', tok)
        if self.match(TT.FALSE):
            return leaf('FALSE', tok)

        if self.match(TT.IDENT):
            if self.check(TT.LPAR):
                return self.parse_call(tok)
            return leaf('IDENT', tok)

        if self.match(TT.LSQB):
            items = self.parse_delimited(TT.RSQB, "Expected ',' or ']' in array")
            self.expect(TT.RSQB, "Expected ']' to close array")
            return Tree('array', items, meta_from_tok(tok))

        if self.match(TT.MINUS, TT.NEG):
            operand = self.parse_binary(self.PREFIX_PRECEDENCE)
            return Tree('prefix', [leaf(tok.type.name, tok), operand], meta_from_tok(tok))

        if self.match(TT.LPAR):
            expr = self.parse_expr()
            self.expect(TT.RPAR, "Expected ')'")
            return expr

        if self.check(TT.LBRACE):
            return self.parse_block()

        if self.check(TT.EOF):
            raise ParseError("Unexpected end of input while parsing expression", tok)

        raise ParseError(f"Unexpected token '{tok.value}' in expression", tok)

    def parse_call(self, name: Tok) -> Tree:
        """Parse call arguments after an identifier: name(args)"""
        self.expect(TT.LPAR)
        args = self.parse_delimited(TT.RPAR, "Expected ',' or ')' in function call")
        self.expect(TT.RPAR, "Expected ')' after arguments")
        return Tree(
            'call',
            [leaf('IDENT', name), Tree('arglist', args, meta_from_tok(name))],
            meta_from_tok(name),
        )

    def parse_delimited(self, closer: TT, message: str) -> List[Node]:
        """Comma-separated expressions up to (not including) closer; a trailing comma is allowed"""
        items: List[Node] = []

        while not self.check(closer):
            items.append(self.parse_expr())
            if self.match(TT.COMMA):
                continue
            if not self.check(closer):
                raise ParseError(message, self.current)

        return items

    def parse_param_list(self) -> Tree:
        """Parse parameter names up to ')'"""
        start = self.current
        params: List[Node] = []

        while not self.check(TT.RPAR):
            name = self.expect(TT.IDENT, "Expected parameter name")
            params.append(leaf('IDENT', name))
            if self.match(TT.COMMA):
                continue
            if not self.check(TT.RPAR):
                raise ParseError("Expected ',' or ')' in parameter list", self.current)

        return Tree('paramlist', params, meta_from_tok(start))


# ============================================================================
# Public API
# ============================================================================

def parse(tokens: List[Tok]) -> Tree:
    """Parse a token list produced by the lexer"""
    try:
        return Parser(tokens).parse()
    except RecursionError:
        raise ParseError("maximum nesting depth exceeded") from None


def parse_source(source: str) -> Tree:
    """
    Parse Kiln source code to AST.

    Returns the lark Tree consumed by the evaluator.
    """
    from .lexer_rd import tokenize

    return parse(tokenize(source))
