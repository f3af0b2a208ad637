"""Evaluator helper modules for the Kiln runtime."""

__all__ = [
    "blocks",
    "chains",
    "common",
    "control",
    "expr",
    "fn",
    "helpers",
    "let",
    "loops",
]
