"""Shared helpers for working with the lark Tree/Token nodes that make up the AST."""
from __future__ import annotations
from typing import List, Optional, Tuple
from typing_extensions import TypeAlias, TypeGuard

from lark import Token, Tree
from lark.tree import Meta

from .token_types import Tok


Node: TypeAlias = Tree | Token


def is_tree(node: object) -> TypeGuard[Tree]:
    return isinstance(node, Tree)

def is_token(node: object) -> TypeGuard[Token]:
    return isinstance(node, Token)

def tree_children(node: Node) -> List[Node]:
    if not is_tree(node):
        return []

    return list(node.children)

def token_kind(node: object) -> Optional[str]:
    if not is_token(node):
        return None

    return str(node.type)

def meta_from_tok(tok: Tok) -> Meta:
    """Build a lark Meta carrying the position of *tok*."""
    meta = Meta()
    meta.line = tok.line
    meta.column = tok.column
    meta.empty = False
    return meta

def leaf(type_: str, tok: Tok, value: object = None) -> Token:
    """lark Token for a lexer token, keeping its position."""
    payload = tok.value if value is None else value
    return Token(type_, payload, line=tok.line, column=tok.column)

def node_position(node: Node) -> Tuple[Optional[int], Optional[int]]:
    if is_token(node):
        return getattr(node, "line", None), getattr(node, "column", None)

    if is_tree(node):
        meta = node.meta
        if getattr(meta, "empty", True):
            return None, None
        return getattr(meta, "line", None), getattr(meta, "column", None)

    return None, None
