from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import (
    EvalArityError,
    EvalIndexError,
    EvalTypeError,
    run_program,
    run_runtime_case,
    run_with_output,
)

SCENARIOS = [
    pytest.param('"hello"', ("string", "hello"), None, id="literal"),
    pytest.param(r'"a\tb"', ("string", "a\tb"), None, id="escape-tab"),
    pytest.param(r'"say \"hi\""', ("string", 'say "hi"'), None, id="escape-quote"),
    pytest.param('"ab"[0]', ("string", "a"), None, id="index-first"),
    pytest.param('"ab"[1]', ("string", "b"), None, id="index-last"),
    pytest.param('let s = "xyz"; s[len(s) - 1]', ("string", "z"), None, id="index-computed"),
    pytest.param('"ab"[5]', None, EvalIndexError, id="index-out-of-bounds"),
    pytest.param('"ab"[-1]', None, EvalIndexError, id="index-negative"),
    pytest.param('"ab"[0.5]', None, EvalIndexError, id="index-fractional"),
    pytest.param('"ab"["0"]', None, EvalTypeError, id="index-string-key"),
    pytest.param('len("hello")', ("number", 5), None, id="len"),
    pytest.param('len("")', ("number", 0), None, id="len-empty"),
    pytest.param('upper("MiXed")', ("string", "MIXED"), None, id="upper"),
    pytest.param('lower("MiXed")', ("string", "mixed"), None, id="lower"),
    pytest.param('trim("  pad \t\n")', ("string", "pad"), None, id="trim"),
    pytest.param("upper(1)", None, EvalTypeError, id="upper-needs-string"),
    pytest.param('split("a,b,,c", ",")', ("array", ["a", "b", "", "c"]), None, id="split"),
    pytest.param('split("abc", "")', ("array", ["a", "b", "c"]), None, id="split-chars"),
    pytest.param('split("abc", "-")', ("array", ["abc"]), None, id="split-no-sep"),
    pytest.param('split("", ",")', ("array", [""]), None, id="split-empty"),
    pytest.param('join(["a", "b"], ", ")', ("string", "a, b"), None, id="join"),
    pytest.param('join([1, "a", true], "-")', ("string", "1-a-true"), None, id="join-mixed"),
    pytest.param('join([], ",")', ("string", ""), None, id="join-empty"),
    pytest.param('join("ab", ",")', None, EvalTypeError, id="join-needs-array"),
    pytest.param('substr("hello", 1, 3)', ("string", "ell"), None, id="substr"),
    pytest.param('substr("hello", 2)', ("string", "llo"), None, id="substr-to-end"),
    pytest.param('substr("hello", 3, 10)', ("string", "lo"), None, id="substr-clamped"),
    pytest.param('substr("hi", 2)', ("string", ""), None, id="substr-at-end"),
    pytest.param('substr("hello", 0, 0)', ("string", ""), None, id="substr-zero-length"),
    pytest.param('substr("hello", 6)', None, EvalIndexError, id="substr-start-past-end"),
    pytest.param('substr("hello", -1)', None, EvalIndexError, id="substr-negative-start"),
    pytest.param('substr("hello", 1, -1)', None, EvalIndexError, id="substr-negative-length"),
    pytest.param('substr("hello", 1.5)', None, EvalTypeError, id="substr-fractional"),
    pytest.param('substr("hello")', None, EvalArityError, id="substr-arity"),
    pytest.param("to_string(42)", ("string", "42"), None, id="to-string-number"),
    pytest.param("to_string(2.5)", ("string", "2.5"), None, id="to-string-float"),
    pytest.param("to_string(true)", ("string", "true"), None, id="to-string-bool"),
    pytest.param('to_string("s")', ("string", "s"), None, id="to-string-string"),
    pytest.param(
        'to_string([1, "a", [true]])',
        ("string", '[1, "a", [true]]'),
        None,
        id="to-string-array",
    ),
    pytest.param("to_string(print())", ("string", "null"), None, id="to-string-null"),
    pytest.param("to_string(len)", ("string", "<builtin len>"), None, id="to-string-builtin"),
    pytest.param(
        "fn add(a, b) { a + b } to_string(add)",
        ("string", "<fn add(a, b)>"),
        None,
        id="to-string-fn",
    ),
    pytest.param('type("x")', ("string", "string"), None, id="type-string"),
    pytest.param('"a" + to_string(1)', ("string", "a1"), None, id="concat-converted"),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SCENARIOS)
def test_strings(source: str, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


def test_string_index_error_names_index_and_length() -> None:
    with pytest.raises(EvalIndexError) as exc_info:
        run_program('"ab"[5]')

    assert exc_info.value.message == "Index out of bounds: index 5, length 2"


def test_print_writes_strings_bare() -> None:
    _, printed = run_with_output('print("a", "b"); print("c")')
    assert printed == "a bc"


def test_println_appends_newline() -> None:
    source = dedent(
        """\
        println("one");
        println("two", 2);
        println();
        """
    )
    _, printed = run_with_output(source)
    assert printed == "one\ntwo 2\n\n"


def test_print_shows_nested_strings_quoted() -> None:
    _, printed = run_with_output('print(["x", 1], "y")')
    assert printed == '["x", 1] y'


def test_strings_are_values() -> None:
    source = dedent(
        """\
        let a = "base";
        let b = a + "!";
        upper(b);
        a
        """
    )
    result, _ = run_with_output(source)
    assert result.value == "base"
