"""Tests for the syntax tree of a component's returned markup."""

from __future__ import annotations

import pytest

from jsxlive.errors import NoReturnExpression, SourceSyntaxError
from jsxlive.tree import AttributeKind, ExpressionSlot, SyntaxElement, SyntaxText, parse_tree


class TestCounterTree:
    def test_root_and_children(self, counter_source) -> None:
        tree = parse_tree(counter_source)
        assert tree.root.tag == "div"
        assert [c.tag for c in tree.root.element_children] == ["h2", "p", "button"]

    def test_markup_offset(self, counter_source) -> None:
        tree = parse_tree(counter_source)
        assert tree.markup.startswith('<div className="counter">')
        assert tree.markup.endswith("</div>")
        assert counter_source[tree.base_offset :].startswith(tree.markup)

    def test_text_span_maps_to_document(self, counter_source) -> None:
        tree = parse_tree(counter_source)
        (text,) = tree.root.element_children[0].text_children
        start, end = tree.absolute(text.span)
        assert counter_source[start:end] == "Hello, world!"

    def test_literal_attribute(self, counter_source) -> None:
        attr = parse_tree(counter_source).root.attribute("className")
        assert attr is not None
        assert attr.kind is AttributeKind.LITERAL
        assert attr.value == "counter"

    def test_expression_attribute(self, counter_source) -> None:
        button = parse_tree(counter_source).root.element_children[2]
        attr = button.attribute("onClick")
        assert attr.kind is AttributeKind.EXPRESSION
        assert attr.value == "() => setCount(count + 1)"

    def test_mixed_children(self, counter_source) -> None:
        p = parse_tree(counter_source).root.element_children[1]
        text, slot = p.children
        assert isinstance(text, SyntaxText)
        assert text.value == "Count: "
        assert isinstance(slot, ExpressionSlot)
        assert slot.source == "count"

    def test_iter_elements_in_document_order(self, counter_source) -> None:
        tree = parse_tree(counter_source)
        assert [el.tag for el in tree.iter_elements()] == ["div", "h2", "p", "button"]


class TestComponentForms:
    def test_concise_arrow(self) -> None:
        tree = parse_tree("const App = () => <p>x</p>;")
        assert tree.root.tag == "p"

    def test_class_render_method(self) -> None:
        source = (
            "class Panel extends React.Component {\n"
            "  render() {\n"
            "    return <section><h3>Title</h3></section>;\n"
            "  }\n"
            "}\n"
            "export default Panel;\n"
        )
        assert parse_tree(source).root.tag == "section"

    def test_wrapped_in_memo(self) -> None:
        source = "const Inner = () => <em>x</em>;\nexport default React.memo(Inner);"
        assert parse_tree(source).root.tag == "em"

    def test_last_return_used(self) -> None:
        source = (
            "function App({ ready }) {\n"
            "  if (!ready) return null;\n"
            "  return <main />;\n"
            "}"
        )
        assert parse_tree(source).root.tag == "main"

    def test_fragment_root(self) -> None:
        tree = parse_tree("const App = () => <><a /><b /></>;")
        assert tree.root.is_fragment
        assert len(tree.root.element_children) == 2


class TestNodes:
    def test_multiline_text(self) -> None:
        source = "const App = () => (\n  <p>\n    Hello\n    world\n  </p>\n);"
        tree = parse_tree(source)
        (text,) = tree.root.text_children
        assert text.value == "Hello world"
        assert text.raw == "Hello\n    world"
        assert text.span.start.line == 2
        start, end = tree.absolute(text.span)
        assert source[start:end] == "Hello\n    world"

    def test_layout_whitespace_dropped(self) -> None:
        tree = parse_tree("const App = () => <div>\n  <br />\n</div>;")
        assert len(tree.root.children) == 1

    def test_boolean_and_spread_attributes(self) -> None:
        tree = parse_tree("const App = (props) => <input disabled {...props} />;")
        disabled, spread = tree.root.attributes
        assert disabled.kind is AttributeKind.BOOLEAN
        assert disabled.value is None
        assert spread.kind is AttributeKind.SPREAD
        assert spread.value == "props"

    def test_element_attribute(self) -> None:
        tree = parse_tree("const App = () => <Layout header=<h1>x</h1> />;")
        attr = tree.root.attribute("header")
        assert attr.kind is AttributeKind.ELEMENT
        assert attr.value == "<h1>x</h1>"

    def test_later_attribute_wins(self) -> None:
        tree = parse_tree('const App = () => <p id="a" id="b" />;')
        assert tree.root.attribute("id").value == "b"

    def test_elements_inside_expressions_are_slots(self) -> None:
        tree = parse_tree("const App = () => <ul>{items.map(i => <li>{i}</li>)}</ul>;")
        (slot,) = tree.root.children
        assert isinstance(slot, ExpressionSlot)
        assert not any(isinstance(c, SyntaxElement) for c in tree.root.children)


class TestErrors:
    def test_no_component(self) -> None:
        with pytest.raises(NoReturnExpression):
            parse_tree("const x = 1;")

    def test_returns_non_markup(self) -> None:
        with pytest.raises(NoReturnExpression):
            parse_tree("function App() { return null; }")

    def test_no_return(self) -> None:
        with pytest.raises(NoReturnExpression):
            parse_tree("function App() { const a = 1; }")

    def test_syntax_error(self) -> None:
        with pytest.raises(SourceSyntaxError):
            parse_tree("function App() { return <div>; }")
