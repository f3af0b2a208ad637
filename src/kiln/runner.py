from __future__ import annotations

import io
import sys
import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .evaluator import evaluate
from .lexer_rd import tokenize
from .parser_rd import parse
from .runtime import Frame, KnValue, KilnError, init_stdlib
from .types import OutputSink
from .utils import debug_py_trace_enabled, render_result

# Each Kiln call costs a couple dozen Python frames.
RECURSION_LIMIT = 5000

def _ensure_recursion_headroom() -> None:
    if sys.getrecursionlimit() < RECURSION_LIMIT:
        sys.setrecursionlimit(RECURSION_LIMIT)

def run(src: str, frame: Optional[Frame]=None, out: Optional[OutputSink]=None) -> KnValue:
    """Tokenize, parse and evaluate *src*.

    Raises LexError, ParseError or EvalError. Printed output goes to the
    frame's sink (*out* when a fresh frame is created here).
    """
    init_stdlib()
    _ensure_recursion_headroom()

    if frame is None:
        frame = Frame(out=out, source=src)
    else:
        frame.source = src

    tokens = tokenize(src)
    program = parse(tokens)
    return evaluate(program, frame)

@dataclass(frozen=True)
class ErrorInfo:
    """A language error flattened for embedding callers."""
    kind: str
    message: str
    line: Optional[int] = None
    column: Optional[int] = None

    @classmethod
    def from_exception(cls, exc: KilnError) -> 'ErrorInfo':
        return cls(kind=exc.kind, message=exc.message, line=exc.line, column=exc.column)

    def __str__(self) -> str:
        if self.line is None:
            return self.message

        return f"{self.message} (line {self.line}, col {self.column})"

@dataclass(frozen=True)
class RunResult:
    output: str
    result: Optional[KnValue] = None
    error: Optional[ErrorInfo] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def render(self) -> str:
        """Print output followed by the rendered result (or the error)."""
        if self.error is not None:
            tail = f"Error: {self.error}"
        else:
            tail = render_result(self.result)

        if self.output and tail and not self.output.endswith("\n"):
            return f"{self.output}\n{tail}"

        return self.output + tail

def run_source(src: str) -> RunResult:
    """Run *src* in a fresh environment without raising for language errors."""
    sink = io.StringIO()
    frame = Frame(out=sink, source=src)

    try:
        value = run(src, frame=frame)
    except KilnError as exc:
        return RunResult(output=sink.getvalue(), error=ErrorInfo.from_exception(exc))

    return RunResult(output=sink.getvalue(), result=value)

def _load_source(arg: Optional[str]) -> str:
    """
    Resolve CLI input into source text.
    - None or "-" => read stdin.
    - Existing path => read file contents.
    - Otherwise treat the argument as literal source.
    """

    if arg is None or arg == "-":
        data = sys.stdin.read()
        if not data:
            raise SystemExit("No input provided on stdin")
        return data

    candidate = Path(arg)
    if candidate.is_file():
        return candidate.read_text(encoding="utf-8")

    return arg

def _print_tokens(source: str) -> None:
    for tok in tokenize(source):
        print(repr(tok))

def _print_ast(source: str) -> None:
    print(parse(tokenize(source)).pretty(), end="")

def main(argv: Optional[List[str]]=None) -> None:
    args = sys.argv[1:] if argv is None else argv
    mode = "run"
    arg = None

    for token in args:
        if token == "--repl":
            mode = "repl"
            continue

        if token == "--ast":
            mode = "ast"
            continue

        if token == "--tokens":
            mode = "tokens"
            continue

        if arg is None:
            arg = token
        else:
            raise SystemExit(f"Unexpected argument: {token}")

    if mode == "repl" or (arg is None and sys.stdin.isatty()):
        from .repl import repl
        repl()
        return

    source = _load_source(arg)

    if mode == "tokens":
        _report_errors(_print_tokens, source)
        return

    if mode == "ast":
        _report_errors(_print_ast, source)
        return

    sink = io.StringIO()

    def _run() -> None:
        value = run(source, out=sink)
        text = RunResult(output=sink.getvalue(), result=value).render()
        if text:
            sys.stdout.write(text if text.endswith("\n") else text + "\n")

    _report_errors(_run, partial_output=sink)

def _report_errors(action, *args, partial_output: Optional[io.StringIO]=None) -> None:
    """Run a CLI action, mapping language errors to stderr and exit status 1."""
    try:
        action(*args)
    except KilnError as exc:
        if partial_output is not None and partial_output.getvalue():
            print(partial_output.getvalue())
        if debug_py_trace_enabled():
            traceback.print_exception(type(exc), exc, exc.__traceback__, file=sys.stderr)
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from None

if __name__ == "__main__":
    main()
