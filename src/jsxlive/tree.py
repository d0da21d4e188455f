"""Syntax tree parser — the returned markup of a component as SyntaxNodes.

The editing path never executes code.  It finds the component through the
discovery chain, takes the expression its render path returns, and parses
that markup substring on its own so every span is relative to the markup.
``SyntaxTree.base_offset`` maps those spans back into the full document.
"""

from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass

from jsxlive.ast import (
    BlockStatement,
    Class,
    Expression,
    Function,
    JSXAttribute,
    JSXElement,
    JSXExpressionContainer,
    JSXFragment,
    JSXSpreadAttribute,
    JSXText,
    Literal,
    ReturnStatement,
)
from jsxlive.discovery import discover_component, unwrap_definition
from jsxlive.errors import NoComponentFound, NoReturnExpression
from jsxlive.parser import parse, parse_expression
from jsxlive.strings import clean_jsx_text, significant_bounds
from jsxlive.tokens import Position, Span


class AttributeKind(enum.Enum):
    LITERAL = "literal"
    EXPRESSION = "expression"
    ELEMENT = "element"
    BOOLEAN = "boolean"
    SPREAD = "spread"


@dataclass(frozen=True, slots=True)
class SyntaxAttribute:
    """One attribute of an opening tag.

    ``value`` is the decoded string for literals and the source text of the
    expression otherwise (None for boolean attributes).
    """

    name: str
    kind: AttributeKind
    value: str | None
    expression: Expression | None
    span: Span
    value_span: Span | None


@dataclass(frozen=True, slots=True)
class SyntaxText:
    """Text child; span covers the significant run only."""

    value: str
    raw: str
    span: Span


@dataclass(frozen=True, slots=True)
class ExpressionSlot:
    source: str
    expression: Expression
    span: Span


@dataclass(frozen=True, slots=True)
class SyntaxElement:
    """An element, or a fragment when ``tag`` is empty."""

    tag: str
    attributes: tuple[SyntaxAttribute, ...]
    children: tuple[SyntaxNode, ...]
    name_span: Span
    opening_span: Span
    span: Span
    self_closing: bool = False

    @property
    def is_fragment(self) -> bool:
        return self.tag == ""

    def attribute(self, name: str) -> SyntaxAttribute | None:
        """Last attribute with the given name (later attributes win)."""
        found = None
        for attr in self.attributes:
            if attr.name == name:
                found = attr
        return found

    @property
    def text_children(self) -> list[SyntaxText]:
        return [c for c in self.children if isinstance(c, SyntaxText)]

    @property
    def element_children(self) -> list[SyntaxElement]:
        return [c for c in self.children if isinstance(c, SyntaxElement)]


SyntaxNode = SyntaxElement | SyntaxText | ExpressionSlot


@dataclass(frozen=True, slots=True)
class SyntaxTree:
    root: SyntaxElement
    source: str
    markup: str
    base_offset: int

    def absolute(self, span: Span) -> tuple[int, int]:
        """Document offsets [start, end) of a markup-relative span."""
        return self.base_offset + span.start.offset, self.base_offset + span.end.offset

    def iter_elements(self) -> Iterator[SyntaxElement]:
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.element_children))


def parse_tree(source: str, filename: str = "component.jsx") -> SyntaxTree:
    """Parse the markup the component returns; raises SourceSyntaxError or NoReturnExpression."""
    program = parse(source, filename)
    try:
        binding = discover_component(program)
    except NoComponentFound as exc:
        raise NoReturnExpression("no component found") from exc

    definition = unwrap_definition(binding.definition, program)
    if definition is None:
        name = binding.name or "the component"
        raise NoReturnExpression(f"cannot find the definition of {name}")

    returned = _returned_expression(definition)
    if returned is None:
        raise NoReturnExpression()
    if not isinstance(returned, (JSXElement, JSXFragment)):
        raise NoReturnExpression("component does not return a JSX expression directly")

    base = returned.span.start.offset
    markup = source[base : returned.span.end.offset]
    node = parse_expression(markup, filename)
    if not isinstance(node, (JSXElement, JSXFragment)):
        raise NoReturnExpression("component does not return a JSX expression directly")
    return SyntaxTree(_convert(node, markup), source, markup, base)


def _returned_expression(definition: Function | Class) -> Expression | None:
    if isinstance(definition, Class):
        for member in reversed(definition.members):
            if (
                member.name == "render"
                and not member.static
                and isinstance(member.value, Function)
            ):
                return _returned_expression(member.value)
        return None
    body = definition.body
    if not isinstance(body, BlockStatement):
        return body
    for stmt in reversed(body.body):
        if isinstance(stmt, ReturnStatement):
            return stmt.argument
    return None


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------


def _convert(node: JSXElement | JSXFragment, markup: str) -> SyntaxElement:
    children = tuple(_convert_children(node.children, markup))
    if isinstance(node, JSXFragment):
        return SyntaxElement("", (), children, node.opening_span, node.opening_span, node.span)
    attributes = tuple(_convert_attribute(attr, markup) for attr in node.attributes)
    return SyntaxElement(
        node.name,
        attributes,
        children,
        node.name_span,
        node.opening_span,
        node.span,
        node.self_closing,
    )


def _convert_children(children: tuple, markup: str) -> Iterator[SyntaxNode]:
    for child in children:
        if isinstance(child, JSXText):
            text = _convert_text(child)
            if text is not None:
                yield text
        elif isinstance(child, JSXExpressionContainer):
            if child.expression is not None:
                source = _slice(markup, child.expression.span)
                yield ExpressionSlot(source, child.expression, child.span)
        else:
            yield _convert(child, markup)


def _convert_text(child: JSXText) -> SyntaxText | None:
    start, end = significant_bounds(child.raw)
    if start == end:
        return None
    begin = _advance(child.span.start, child.raw[:start])
    finish = _advance(begin, child.raw[start:end])
    return SyntaxText(clean_jsx_text(child.value), child.raw[start:end], Span(begin, finish))


def _convert_attribute(attr: JSXAttribute | JSXSpreadAttribute, markup: str) -> SyntaxAttribute:
    if isinstance(attr, JSXSpreadAttribute):
        source = _slice(markup, attr.argument.span)
        return SyntaxAttribute(
            "...", AttributeKind.SPREAD, source, attr.argument, attr.span, attr.span
        )
    value = attr.value
    if value is None:
        return SyntaxAttribute(attr.name, AttributeKind.BOOLEAN, None, None, attr.span, None)
    if isinstance(value, Literal):
        return SyntaxAttribute(
            attr.name, AttributeKind.LITERAL, str(value.value), None, attr.span, value.span
        )
    if isinstance(value, JSXExpressionContainer):
        expr = value.expression
        source = _slice(markup, expr.span) if expr is not None else ""
        return SyntaxAttribute(
            attr.name, AttributeKind.EXPRESSION, source, expr, attr.span, value.span
        )
    return SyntaxAttribute(
        attr.name, AttributeKind.ELEMENT, _slice(markup, value.span), value, attr.span, value.span
    )


def _slice(markup: str, span: Span) -> str:
    return markup[span.start.offset : span.end.offset]


def _advance(pos: Position, text: str) -> Position:
    """Position reached after consuming text from pos."""
    line, column = pos.line, pos.column
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\r" and i + 1 < len(text) and text[i + 1] == "\n":
            i += 1
            ch = "\n"
        if ch in "\r\n":
            line += 1
            column = 1
        else:
            column += 1
        i += 1
    return Position(line, column, pos.offset + len(text))
