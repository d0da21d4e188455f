"""Tests for the syntax tree dump."""

from __future__ import annotations

import io

from jsxlive.debug import dump_tree
from jsxlive.tree import parse_tree


def _dump(source: str) -> list[str]:
    buf = io.StringIO()
    dump_tree(parse_tree(source), file=buf)
    return buf.getvalue().splitlines()


class TestDumpTree:
    def test_header_and_root(self) -> None:
        lines = _dump('export default () => <p id="a">Hi {name}</p>;')
        assert lines[0] == "SyntaxTree [21:44]"
        assert lines[1] == "  Element <p> [21:44]"
        assert lines[2] == "    Attr id literal 'a'"
        assert lines[3].startswith("    Text('Hi")
        assert lines[4] == "    Expression {name} [34:40]"

    def test_counter(self, counter_source) -> None:
        lines = _dump(counter_source)
        assert lines[1].startswith("  Element <div> [")
        assert lines[2] == "    Attr className literal 'counter'"
        assert lines[3].startswith("    Element <h2> [")
        assert lines[4].startswith("      Text('Hello, world!') [")
        assert "Attr onClick expression '() => setCount(count + 1)'" in lines[-2]

    def test_fragment_and_boolean_attribute(self) -> None:
        lines = _dump("export default () => <><input disabled /></>;")
        assert lines[1].startswith("  Element <> [")
        assert lines[2].startswith("    Element <input> [")
        assert lines[3] == "      Attr disabled boolean"

    def test_offsets_slice_document(self, counter_source) -> None:
        line = next(ln for ln in _dump(counter_source) if "Element <h2>" in ln)
        start, end = line.rsplit("[", 1)[1].rstrip("]").split(":")
        assert counter_source[int(start) : int(end)] == "<h2>Hello, world!</h2>"
