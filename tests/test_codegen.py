"""Printer tests: precedence, statement layout and re-parse stability."""

from __future__ import annotations

import pytest

from jsxlive.codegen import generate
from jsxlive.parser import parse


def _print(source: str) -> str:
    return generate(parse(source, "test.js").body)


class TestPrecedence:
    @pytest.mark.parametrize(
        "source",
        [
            "a * (b + c);",
            "(a + b) * c;",
            "a - (b - c);",
            "a ** b ** c;",
            "(a ** b) ** c;",
            "a ?? (b || c);",
            "typeof x === 'string';",
            "-(-x);",
            "x = y = 1;",
            "a ? b : c ? d : e;",
            "new (f())();",
        ],
    )
    def test_kept(self, source) -> None:
        assert _print(source) == source + "\n"

    def test_redundant_parens_dropped(self) -> None:
        assert _print("((a)) + ((b * c));") == "a + b * c;\n"

    def test_object_body_wrapped(self) -> None:
        assert _print("const f = x => ({a: x});") == "const f = (x) => ({ a: x });\n"

    def test_function_expression_call(self) -> None:
        assert _print("(function () {})();") == "(function() {})();\n"

    def test_template(self) -> None:
        assert _print("x = `a${b}c`;") == "x = `a${b}c`;\n"

    def test_strings_single_quoted(self) -> None:
        assert _print('x = "it\'s";') == "x = 'it\\'s';\n"


class TestStatements:
    def test_if_chain(self) -> None:
        source = "if (a) { b(); } else if (c) { d(); } else { e(); }"
        assert _print(source) == (
            "if (a) {\n  b();\n} else if (c) {\n  d();\n} else {\n  e();\n}\n"
        )

    def test_function_declaration(self) -> None:
        source = "function add(a, b = 1) { return a + b; }"
        assert _print(source) == "function add(a, b = 1) {\n  return a + b;\n}\n"

    def test_destructuring(self) -> None:
        assert _print("const [n, setN] = useState(0);") == "const [n, setN] = useState(0);\n"
        assert _print("const {a, b: c, ...rest} = o;") == "const { a, b: c, ...rest } = o;\n"

    def test_empty_program(self) -> None:
        assert _print("") == ""


class TestStability:
    @pytest.mark.parametrize(
        "source",
        [
            "const items = list.map((item, i) => item.done ? null : { i, ...item });",
            "for (let i = 0; i < 3; i++) { if (i % 2) continue; total += i; }",
            "for (const [k, v] of Object.entries(o)) { out.push(`${k}=${v}`); }",
            "switch (x) { case 1: y(); break; default: z(); }",
            "try { risky(); } catch (e) { log(e.message); } finally { done(); }",
            "class A extends B { static n = 1; render() { return this.props?.x; } }",
            "while (!ready && (a ?? b)) { tick(); }",
        ],
    )
    def test_reprint_is_fixed_point(self, source) -> None:
        once = _print(source)
        assert _print(once) == once
