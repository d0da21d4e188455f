"""Tests for JSX whitespace handling, JS quoting and CSS name casing."""

from __future__ import annotations

import pytest

from jsxlive.strings import (
    camel_case,
    clean_jsx_text,
    kebab_case,
    quote_js_string,
    significant_bounds,
)


class TestCleanJsxText:
    def test_single_line_kept(self) -> None:
        assert clean_jsx_text("  Count: ") == "  Count: "

    def test_lines_joined(self) -> None:
        assert clean_jsx_text("  Hello\n    world  ") == "  Hello world  "

    def test_layout_only_dropped(self) -> None:
        assert clean_jsx_text("\n    \n  ") == ""

    def test_blank_lines_removed(self) -> None:
        assert clean_jsx_text("\n  a\n\n  b\n") == "a b"

    def test_tabs(self) -> None:
        assert clean_jsx_text("a\tb") == "a b"


class TestSignificantBounds:
    def test_layout_runs_excluded(self) -> None:
        raw = "\n  Hi there \n"
        start, end = significant_bounds(raw)
        assert raw[start:end] == "Hi there"

    def test_same_line_spaces_kept(self) -> None:
        assert significant_bounds(" Hi ") == (0, 4)

    def test_whitespace_only(self) -> None:
        assert significant_bounds("  \n ") == (0, 0)
        assert significant_bounds("  ") == (0, 2)


class TestQuoteJsString:
    def test_escapes(self) -> None:
        assert quote_js_string("it's\n") == "'it\\'s\\n'"
        assert quote_js_string("a\\b") == "'a\\\\b'"
        assert quote_js_string("\x01") == "'\\x01'"

    def test_double_quotes(self) -> None:
        assert quote_js_string('say "hi"', '"') == '"say \\"hi\\""'
        assert quote_js_string('say "hi"') == "'say \"hi\"'"


class TestCssNames:
    @pytest.mark.parametrize(
        ("css", "key"),
        [
            ("color", "color"),
            ("background-color", "backgroundColor"),
            ("-webkit-transition", "WebkitTransition"),
            ("-ms-transform", "msTransform"),
        ],
    )
    def test_camel_case(self, css, key) -> None:
        assert camel_case(css) == key

    @pytest.mark.parametrize(
        ("key", "css"),
        [
            ("color", "color"),
            ("backgroundColor", "background-color"),
            ("WebkitTransition", "-webkit-transition"),
            ("msTransform", "-ms-transform"),
            ("--accent", "--accent"),
        ],
    )
    def test_kebab_case(self, key, css) -> None:
        assert kebab_case(key) == css
