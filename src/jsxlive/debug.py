"""Human-readable syntax tree dump (``jsxlive tree``)."""

from __future__ import annotations

import sys
from typing import TextIO

from jsxlive.tree import ExpressionSlot, SyntaxElement, SyntaxNode, SyntaxText, SyntaxTree


def dump_tree(tree: SyntaxTree, *, file: TextIO = sys.stderr) -> None:
    """Print *tree* with document offsets, one node per line."""
    start, end = tree.absolute(tree.root.span)
    file.write(f"SyntaxTree [{start}:{end}]\n")
    _dump_node(tree.root, tree, 1, file)


def _indent(depth: int) -> str:
    return "  " * depth


def _dump_node(node: SyntaxNode, tree: SyntaxTree, depth: int, f: TextIO) -> None:
    start, end = tree.absolute(node.span)
    if isinstance(node, SyntaxElement):
        name = f"<{node.tag}>" if node.tag else "<>"
        f.write(f"{_indent(depth)}Element {name} [{start}:{end}]\n")
        for attr in node.attributes:
            f.write(f"{_indent(depth + 1)}Attr {attr.name} {attr.kind.value}")
            if attr.value is not None:
                f.write(f" {attr.value!r}")
            f.write("\n")
        for child in node.children:
            _dump_node(child, tree, depth + 1, f)
    elif isinstance(node, SyntaxText):
        f.write(f"{_indent(depth)}Text({node.value!r}) [{start}:{end}]\n")
    elif isinstance(node, ExpressionSlot):
        f.write(f"{_indent(depth)}Expression {{{node.source}}} [{start}:{end}]\n")
