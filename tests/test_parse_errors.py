"""Tests for parser error messages and positions."""

from __future__ import annotations

import pytest

from jsxlive.errors import ParseError
from jsxlive.parser import parse, parse_expression


class TestMarkupErrors:
    def test_mismatched_closing_tag(self) -> None:
        with pytest.raises(ParseError, match="expected corresponding closing tag for <div>"):
            parse("const a = <div></span>;")

    def test_mismatched_closing_tag_span(self) -> None:
        with pytest.raises(ParseError) as info:
            parse("const a = <div></span>;")
        assert info.value.span.start.column == 18

    def test_inner_element_closed_by_outer_tag(self) -> None:
        source = "export default function App() { return <div><p>x</div>; }"
        with pytest.raises(ParseError, match="expected corresponding closing tag for <p>") as info:
            parse(source)
        assert info.value.span.start.column == 51

    def test_mismatch_reported_before_later_markup(self) -> None:
        source = "const a = <ul><li>a</ul>;\nconst b = a > 1 ? {} : [];"
        with pytest.raises(ParseError, match="closing tag for <li>") as info:
            parse(source)
        assert info.value.span.start.line == 1

    def test_empty_attribute_expression(self) -> None:
        with pytest.raises(ParseError, match="non-empty expression"):
            parse("const a = <div id={} />;")

    def test_fragment_closed_by_named_tag(self) -> None:
        with pytest.raises(ParseError, match="expected '</>' to close fragment"):
            parse("const a = <></div>;")

    def test_spread_children(self) -> None:
        with pytest.raises(ParseError, match="spread children are not supported"):
            parse("const a = <div>{...items}</div>;")


class TestScriptErrors:
    def test_missing_paren(self) -> None:
        with pytest.raises(ParseError, match="expected '\\)'"):
            parse("if (a { }")

    def test_unexpected_token(self) -> None:
        with pytest.raises(ParseError, match="unexpected token"):
            parse("const a = ;")

    def test_unexpected_end(self) -> None:
        with pytest.raises(ParseError, match="unexpected end of input"):
            parse("const a =")

    def test_missing_semicolon(self) -> None:
        with pytest.raises(ParseError, match="expected ';'"):
            parse("a b")

    def test_generators_unsupported(self) -> None:
        with pytest.raises(ParseError, match="generator functions are not supported"):
            parse("function* gen() {}")

    def test_async_unsupported(self) -> None:
        with pytest.raises(ParseError, match="async functions are not supported"):
            parse("const f = async () => 1;")

    def test_trailing_tokens_after_expression(self) -> None:
        with pytest.raises(ParseError, match="unexpected token after expression"):
            parse_expression("<a /> b")


class TestFormatting:
    def test_caret_context(self) -> None:
        with pytest.raises(ParseError) as info:
            parse("const a = <div></span>;", "Card.jsx")
        text = info.value.format("Card.jsx")
        assert text.splitlines() == [
            "error: expected corresponding closing tag for <div>",
            "  --> Card.jsx:1:18",
            "  |",
            "1 | const a = <div></span>;",
            "  | " + " " * 17 + "^^^^",
        ]
