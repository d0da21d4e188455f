"""Lexer tests: script tokens, markup modes and positions."""

from __future__ import annotations

import pytest

from jsxlive.errors import LexError
from jsxlive.lexer import tokenize
from jsxlive.tokens import TokenType

from .conftest import assert_types, assert_values


class TestScriptTokens:
    def test_identifiers_and_keywords(self, lex) -> None:
        tokens = lex("const count = value")
        assert_types(
            tokens,
            [TokenType.KEYWORD, TokenType.IDENTIFIER, TokenType.PUNCT, TokenType.IDENTIFIER],
        )
        assert_values(tokens, ["const", "count", "=", "value"])

    def test_dollar_and_underscore_identifiers(self, lex) -> None:
        tokens = lex("$el _private")
        assert_values(tokens, ["$el", "_private"])

    def test_longest_punctuator_wins(self, lex) -> None:
        tokens = lex("a === b ?? c")
        assert_values(tokens, ["a", "===", "b", "??", "c"])

    def test_optional_chaining(self, lex) -> None:
        tokens = lex("a?.b")
        assert_values(tokens, ["a", "?.", "b"])

    def test_conditional_before_decimal(self, lex) -> None:
        tokens = lex("a?.5:1")
        assert_values(tokens, ["a", "?", ".5", ":", "1"])

    def test_arrow(self, lex) -> None:
        tokens = lex("x => x")
        assert_values(tokens, ["x", "=>", "x"])


class TestNumbers:
    def test_integer(self, lex) -> None:
        tokens = lex("42")
        assert_types(tokens, [TokenType.NUMBER])
        assert tokens[0].value == "42"

    def test_hex_normalised(self, lex) -> None:
        tokens = lex("0xff")
        assert tokens[0].value == "255"
        assert tokens[0].raw == "0xff"

    def test_separators(self, lex) -> None:
        tokens = lex("1_000")
        assert tokens[0].value == "1000"

    def test_exponent(self, lex) -> None:
        tokens = lex("1.5e3")
        assert tokens[0].value == "1.5e3"

    def test_identifier_after_number_is_error(self) -> None:
        with pytest.raises(LexError, match="identifier starts immediately"):
            tokenize("3in")


class TestStrings:
    def test_single_quoted(self, lex) -> None:
        tokens = lex("'hi'")
        assert_types(tokens, [TokenType.STRING])
        assert tokens[0].value == "hi"
        assert tokens[0].raw == "'hi'"

    def test_escapes_decoded(self, lex) -> None:
        tokens = lex(r'"a\nb\x41B\u{43}"')
        assert tokens[0].value == "a\nbABC"

    def test_unterminated(self) -> None:
        with pytest.raises(LexError, match="unterminated string literal"):
            tokenize("'abc")

    def test_invalid_hex_escape(self) -> None:
        with pytest.raises(LexError, match="invalid hexadecimal escape"):
            tokenize(r"'\xZZ'")


class TestTemplates:
    def test_plain_template(self, lex) -> None:
        tokens = lex("`hello`")
        assert_types(
            tokens, [TokenType.TEMPLATE_START, TokenType.TEMPLATE_CHUNK, TokenType.TEMPLATE_END]
        )
        assert tokens[1].value == "hello"

    def test_substitution(self, lex) -> None:
        tokens = lex("`a${b}c`")
        assert_types(
            tokens,
            [
                TokenType.TEMPLATE_START,
                TokenType.TEMPLATE_CHUNK,
                TokenType.TEMPLATE_EXPR_OPEN,
                TokenType.IDENTIFIER,
                TokenType.TEMPLATE_EXPR_CLOSE,
                TokenType.TEMPLATE_CHUNK,
                TokenType.TEMPLATE_END,
            ],
        )

    def test_braces_inside_substitution(self, lex) -> None:
        tokens = lex("`${ {a: 1}.a }`")
        closes = [t for t in tokens if t.type == TokenType.TEMPLATE_EXPR_CLOSE]
        assert len(closes) == 1

    def test_unterminated(self) -> None:
        with pytest.raises(LexError, match="unterminated template literal"):
            tokenize("`abc")


class TestMarkup:
    def test_element_after_return(self, lex) -> None:
        tokens = lex("return <div>hi</div>")
        assert_types(
            tokens,
            [
                TokenType.KEYWORD,
                TokenType.JSX_TAG_OPEN,
                TokenType.JSX_NAME,
                TokenType.JSX_TAG_END,
                TokenType.JSX_TEXT,
                TokenType.JSX_CLOSE_TAG_OPEN,
                TokenType.JSX_NAME,
                TokenType.JSX_TAG_END,
            ],
        )

    def test_less_than_after_identifier_is_comparison(self, lex) -> None:
        tokens = lex("a <b")
        assert_types(tokens, [TokenType.IDENTIFIER, TokenType.PUNCT, TokenType.IDENTIFIER])

    def test_less_than_after_paren_is_comparison(self, lex) -> None:
        tokens = lex("(a) <b")
        assert tokens[3].type == TokenType.PUNCT
        assert tokens[3].value == "<"

    def test_attributes(self, lex) -> None:
        tokens = lex('(<a href="x" disabled />)')
        assert_types(
            tokens,
            [
                TokenType.PUNCT,
                TokenType.JSX_TAG_OPEN,
                TokenType.JSX_NAME,
                TokenType.JSX_NAME,
                TokenType.JSX_EQUALS,
                TokenType.JSX_ATTR_STRING,
                TokenType.JSX_NAME,
                TokenType.JSX_SELF_CLOSE,
                TokenType.PUNCT,
            ],
        )

    def test_attribute_string_decodes_entities(self, lex) -> None:
        tokens = lex('(<a title="a &amp; b" />)')
        attr = next(t for t in tokens if t.type == TokenType.JSX_ATTR_STRING)
        assert attr.value == "a & b"
        assert attr.raw == '"a &amp; b"'

    def test_text_keeps_raw(self, lex) -> None:
        tokens = lex("(<p>a &lt; b</p>)")
        text = next(t for t in tokens if t.type == TokenType.JSX_TEXT)
        assert text.value == "a < b"
        assert text.raw == "a &lt; b"

    def test_expression_container(self, lex) -> None:
        tokens = lex("(<p>{ {a: 1}.a }</p>)")
        types = [t.type for t in tokens]
        assert types.count(TokenType.JSX_EXPR_OPEN) == 1
        assert types.count(TokenType.JSX_EXPR_CLOSE) == 1

    def test_fragment(self, lex) -> None:
        tokens = lex("(<></>)")
        assert_types(
            tokens,
            [
                TokenType.PUNCT,
                TokenType.JSX_TAG_OPEN,
                TokenType.JSX_TAG_END,
                TokenType.JSX_CLOSE_TAG_OPEN,
                TokenType.JSX_TAG_END,
                TokenType.PUNCT,
            ],
        )

    def test_bare_greater_than_in_text(self) -> None:
        with pytest.raises(LexError, match="did you mean '&gt;'"):
            tokenize("(<p>a > b</p>)")

    def test_unterminated_element(self) -> None:
        with pytest.raises(LexError, match="unterminated JSX element"):
            tokenize("(<div>text")


class TestPositions:
    def test_line_and_column(self, lex) -> None:
        tokens = lex("a\n  bb")
        assert tokens[1].span.start.line == 2
        assert tokens[1].span.start.column == 3
        assert tokens[1].span.start.offset == 4
        assert tokens[1].span.end.offset == 6

    def test_newline_before_flag(self, lex) -> None:
        tokens = lex("a\nb")
        assert not tokens[0].newline_before
        assert tokens[1].newline_before

    def test_comments_skipped(self, lex) -> None:
        tokens = lex("a // note\n/* block */ b")
        assert_values(tokens, ["a", "b"])

    def test_unterminated_comment(self) -> None:
        with pytest.raises(LexError, match="unterminated comment"):
            tokenize("/* open")

    def test_eof_token(self) -> None:
        tokens = tokenize("")
        assert [t.type for t in tokens] == [TokenType.EOF]
