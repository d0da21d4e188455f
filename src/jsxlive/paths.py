"""Path resolver — structural addresses between the DOM and the syntax tree.

An address is the list of ``(tag, index)`` steps from the render root down to
an element, where ``index`` counts only preceding siblings with the same tag.
Fragments render no DOM, so the resolver looks through them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from jsxlive.dom import Element, Node
from jsxlive.tree import SyntaxElement, SyntaxTree


@dataclass(frozen=True, slots=True)
class AddressStep:
    tag: str
    index: int

    def __str__(self) -> str:
        return f"{self.tag}[{self.index}]"


StructuralAddress = tuple[AddressStep, ...]

_STEP_RE = re.compile(r"^\s*([A-Za-z][\w.:-]*)\s*(?:\[\s*(\d+)\s*\])?\s*$")


def address_of(node: Node, root: Element) -> StructuralAddress | None:
    """Address of node relative to root; text nodes resolve through their parent."""
    element = node if isinstance(node, Element) else node.parent
    if element is None or element is root or not root.contains(element):
        return None
    steps: list[AddressStep] = []
    current = element
    while current is not root:
        parent = current.parent
        if parent is None:
            return None
        tag = current.tag.lower()
        index = 0
        for sibling in parent.element_children:
            if sibling is current:
                break
            if sibling.tag.lower() == tag:
                index += 1
        steps.append(AddressStep(tag, index))
        current = parent
    return tuple(reversed(steps))


def resolve(address: StructuralAddress, tree: SyntaxTree) -> SyntaxElement | None:
    """Find the syntax element at address, or None when any step does not match."""
    if not address:
        return None
    candidates = _visible_elements(tree.root)
    node: SyntaxElement | None = None
    for step in address:
        matching = [el for el in candidates if el.tag.lower() == step.tag.lower()]
        if step.index >= len(matching):
            return None
        node = matching[step.index]
        candidates = _visible_children(node)
    return node


def _visible_elements(root: SyntaxElement) -> list[SyntaxElement]:
    """The elements a syntax node contributes at its own DOM level."""
    if root.is_fragment:
        return _visible_children(root)
    return [root]


def _visible_children(node: SyntaxElement) -> list[SyntaxElement]:
    out: list[SyntaxElement] = []
    for child in node.element_children:
        out.extend(_visible_elements(child))
    return out


def format_address(address: StructuralAddress) -> str:
    return " > ".join(str(step) for step in address)


def parse_address(text: str) -> StructuralAddress:
    """Parse ``div[0] > h2[0]``; a step without an index means index 0."""
    steps: list[AddressStep] = []
    for part in text.split(">"):
        match = _STEP_RE.match(part)
        if match is None:
            raise ValueError(f"invalid address step: {part.strip()!r}")
        steps.append(AddressStep(match.group(1).lower(), int(match.group(2) or 0)))
    return tuple(steps)


def find_node(address: StructuralAddress, root: Element) -> Element | None:
    """The DOM element at address under root (inverse of :func:`address_of`)."""
    if not address:
        return None
    current = root
    for step in address:
        matching = [el for el in current.element_children if el.tag.lower() == step.tag.lower()]
        if step.index >= len(matching):
            return None
        current = matching[step.index]
    return current
