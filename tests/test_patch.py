"""Tests for source-preserving text and style patches."""

from __future__ import annotations

import pytest

from jsxlive.patch import (
    EditKind,
    Strategy,
    StyleEdit,
    StyleMap,
    apply_edit,
    heuristic_patch_style,
    heuristic_patch_text,
    jsx_text,
    patch_style,
    patch_text,
)
from jsxlive.paths import parse_address

HEADING = parse_address("div[0] > h2[0]")


class TestPatchText:
    def test_only_the_literal_changes(self, counter_source) -> None:
        patched = patch_text(counter_source, HEADING, "Hi there!")
        assert patched == counter_source.replace("Hello, world!", "Hi there!")

    def test_comments_and_formatting_kept(self) -> None:
        source = (
            "export default function Card() {\n"
            "  // heading text\n"
            "  return (\n"
            "    <div>\n"
            "      {/* title */}\n"
            "      <h2>\n"
            "        Old   title\n"
            "      </h2>\n"
            "    </div>\n"
            "  );\n"
            "}\n"
        )
        patched = patch_text(source, HEADING, "New")
        assert patched == source.replace("Old   title", "New")

    def test_special_characters_written_as_expression(self, counter_source) -> None:
        patched = patch_text(counter_source, HEADING, "a < b")
        assert "<h2>{'a < b'}</h2>" in patched

    def test_targets_second_same_tag_sibling(self) -> None:
        source = "export default () => <div><p>one</p><p>two</p></div>;"
        patched = patch_text(source, parse_address("div > p[1]"), "TWO")
        assert patched == "export default () => <div><p>one</p><p>TWO</p></div>;"

    def test_missing_target_is_noop(self, counter_source) -> None:
        assert patch_text(counter_source, parse_address("div > h3"), "x") == counter_source

    def test_element_without_text_is_noop(self) -> None:
        source = "export default () => <div><p>{value}</p></div>;"
        assert patch_text(source, parse_address("div > p"), "x") == source

    def test_syntax_error_is_noop(self) -> None:
        source = "export default () => <div><h2>x</h2>;"
        assert patch_text(source, HEADING, "y") == source


class TestJsxText:
    def test_plain_text_kept(self) -> None:
        assert jsx_text("Hi there!") == "Hi there!"

    def test_unsafe_text_quoted(self) -> None:
        assert jsx_text("{x}") == "{'{x}'}"
        assert jsx_text("line\nbreak") == "{'line\\nbreak'}"
        assert jsx_text(" padded") == "{' padded'}"
        assert jsx_text("a &amp; b") == "{'a &amp; b'}"
        assert jsx_text("it's") == "it's"


class TestPatchStyle:
    def test_inserts_style_attribute(self, counter_source) -> None:
        patched = patch_style(counter_source, HEADING, "color", "red")
        assert "<h2 style={{color: 'red'}}>Hello, world!</h2>" in patched

    def test_upsert_is_idempotent(self, counter_source) -> None:
        once = patch_style(counter_source, HEADING, "color", "red")
        twice = patch_style(once, HEADING, "color", "red")
        assert twice == once

    def test_replaces_existing_property(self, counter_source) -> None:
        once = patch_style(counter_source, HEADING, "color", "red")
        again = patch_style(once, HEADING, "color", "blue")
        assert "<h2 style={{color: 'blue'}}>" in again
        assert "red" not in again

    def test_keeps_other_entries_verbatim(self) -> None:
        source = 'export default () => <p style={{ margin: 0, ...base, color: "blue" }}>x</p>;'
        patched = patch_style(source, parse_address("p"), "color", "red")
        assert patched == (
            "export default () => <p style={{margin: 0, ...base, color: 'red'}}>x</p>;"
        )

    def test_css_property_name_converted(self) -> None:
        source = "export default () => <p>x</p>;"
        patched = patch_style(source, parse_address("p"), "background-color", "#fff")
        assert "<p style={{backgroundColor: '#fff'}}>" in patched

    def test_quoted_css_key_replaced(self) -> None:
        source = "export default () => <p style={{'background-color': 'red'}}>x</p>;"
        patched = patch_style(source, parse_address("p"), "background-color", "blue")
        assert patched == "export default () => <p style={{backgroundColor: 'blue'}}>x</p>;"

    def test_string_style_converted_to_object(self) -> None:
        source = 'export default () => <p style="color: blue; margin-top: 2px">x</p>;'
        patched = patch_style(source, parse_address("p"), "color", "red")
        assert "<p style={{color: 'red', marginTop: '2px'}}>" in patched

    def test_non_object_style_is_noop(self) -> None:
        source = "export default () => <p style={styles}>x</p>;"
        assert patch_style(source, parse_address("p"), "color", "red") == source

    def test_self_closing_element(self) -> None:
        source = "export default () => <div><hr /></div>;"
        patched = patch_style(source, parse_address("div > hr"), "width", "50%")
        assert patched == "export default () => <div><hr style={{width: '50%'}} /></div>;"


class TestApplyEdit:
    def test_reports_applied(self, counter_source) -> None:
        result = apply_edit(counter_source, HEADING, EditKind.TEXT, "Hi")
        assert result.applied
        assert result.strategy is Strategy.STRUCTURAL

    def test_reports_not_applied(self, counter_source) -> None:
        result = apply_edit(counter_source, parse_address("nav"), EditKind.TEXT, "Hi")
        assert not result.applied
        assert result.document == counter_source

    def test_style_edit(self, counter_source) -> None:
        result = apply_edit(counter_source, HEADING, EditKind.STYLE, StyleEdit("color", "red"))
        assert result.applied

    def test_payload_type_checked(self, counter_source) -> None:
        with pytest.raises(TypeError):
            apply_edit(counter_source, HEADING, EditKind.STYLE, "color: red")
        with pytest.raises(TypeError):
            apply_edit(counter_source, HEADING, EditKind.TEXT, StyleEdit("color", "red"))


class TestStyleMap:
    def test_from_css_skips_blank_declarations(self) -> None:
        styles = StyleMap.from_css("color: red;; ;font-size: 12px;")
        assert [e.key for e in styles.entries] == ["color", "fontSize"]

    def test_quoted_keys(self) -> None:
        styles = StyleMap()
        styles.upsert("--accent", "teal")
        assert styles.serialize() == "'--accent': 'teal'"

    def test_css_and_camel_keys_match(self) -> None:
        styles = StyleMap.from_css("margin-top: 2px")
        assert styles.get("marginTop") is styles.get("margin-top")
        styles.upsert("margin-top", "4px")
        assert styles.serialize() == "marginTop: '4px'"


class TestHeuristic:
    def test_text_keeps_whitespace(self) -> None:
        source = "<h2>\n  Hello\n</h2>"
        assert heuristic_patch_text(source, "Hello", "Hi") == "<h2>\n  Hi\n</h2>"

    def test_text_first_occurrence_only(self) -> None:
        source = "<p>x</p><p>x</p>"
        assert heuristic_patch_text(source, "x", "y") == "<p>y</p><p>x</p>"

    def test_blank_old_text_is_noop(self) -> None:
        assert heuristic_patch_text("<p></p>", "  ", "y") == "<p></p>"

    def test_style_rewrites_every_occurrence(self) -> None:
        source = "<a style={{ color: 'red' }} /><b style={{ color: \"blue\" }} />"
        assert heuristic_patch_style(source, "color", "green") == (
            "<a style={{ color: 'green'}} /><b style={{ color: 'green'}} />"
        )
