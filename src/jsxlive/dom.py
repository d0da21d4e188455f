"""Minimal DOM model the renderer mounts into."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any


class Node:
    parent: Element | None = None

    def ancestors(self) -> Iterator[Element]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent


class TextNode(Node):
    def __init__(self, text: str) -> None:
        self.text = text
        self.parent = None

    def __repr__(self) -> str:
        return f"TextNode({self.text!r})"


class Element(Node):
    """An element with attributes, inline style, event handlers and children.

    ``style`` maps CSS property names (kebab-case) to values; ``handlers``
    maps lowercase event names (``click``) to script callables.
    """

    def __init__(self, tag: str, attributes: dict[str, str] | None = None) -> None:
        self.tag = tag
        self.attributes: dict[str, str] = dict(attributes or {})
        self.style: dict[str, str] = {}
        self.handlers: dict[str, Any] = {}
        self.children: list[Element | TextNode] = []
        self.parent = None

    def __repr__(self) -> str:
        return f"Element({self.tag!r}, children={len(self.children)})"

    def append(self, child: Element | TextNode) -> Element | TextNode:
        child.parent = self
        self.children.append(child)
        return child

    def clear(self) -> None:
        for child in self.children:
            child.parent = None
        self.children = []

    @property
    def element_children(self) -> list[Element]:
        return [c for c in self.children if isinstance(c, Element)]

    @property
    def text_content(self) -> str:
        parts: list[str] = []
        for child in self.children:
            parts.append(child.text if isinstance(child, TextNode) else child.text_content)
        return "".join(parts)

    def iter(self) -> Iterator[Element]:
        """This element and all descendant elements, in document order."""
        yield self
        for child in self.children:
            if isinstance(child, Element):
                yield from child.iter()

    def find(self, tag: str) -> Element | None:
        """First descendant element (or self) with the given tag."""
        tag = tag.lower()
        for el in self.iter():
            if el.tag.lower() == tag:
                return el
        return None

    def find_all(self, tag: str) -> list[Element]:
        tag = tag.lower()
        return [el for el in self.iter() if el.tag.lower() == tag]

    def contains(self, node: Node) -> bool:
        return node is self or any(a is self for a in node.ancestors())
