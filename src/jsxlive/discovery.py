"""Component discovery — decide which top-level binding is the component.

The chain is tried in order:

1. an explicit default export (declaration, expression, or an
   ``export { X as default }`` specifier);
2. the last top-level function, class or variable binding whose name starts
   with an uppercase letter, scanning in reverse source order;
3. otherwise ``NoComponentFound``.

The transpiler uses the result to decide what the module returns, and the
syntax tree parser uses it to find the markup that edits apply to.
"""

from __future__ import annotations

from dataclasses import dataclass

from jsxlive.ast import (
    CallExpression,
    Class,
    ClassDeclaration,
    ExportDefaultDeclaration,
    ExportNamedDeclaration,
    Expression,
    Function,
    FunctionDeclaration,
    Identifier,
    Program,
    Statement,
    VariableDeclaration,
)
from jsxlive.errors import NoComponentFound

DEFAULT_EXPORT = "default-export"
CAPITALIZED_BINDING = "capitalized-binding"

# Names that look like components but belong to the framework.
_RESERVED = frozenset({"React", "Fragment"})


@dataclass(frozen=True, slots=True)
class ComponentBinding:
    """Result of discovery.

    ``name`` is None for an anonymous default export.  ``definition`` is the
    value node that produces the component (function, class, or expression),
    when it can be found statically.
    """

    name: str | None
    definition: Expression | None
    via: str


def discover_component(program: Program) -> ComponentBinding:
    """Apply the discovery chain to a parsed module."""
    bindings = _top_level_bindings(program.body)

    for stmt in program.body:
        if isinstance(stmt, ExportDefaultDeclaration):
            decl = stmt.declaration
            if isinstance(decl, FunctionDeclaration):
                return ComponentBinding(decl.function.name, decl.function, DEFAULT_EXPORT)
            if isinstance(decl, ClassDeclaration):
                return ComponentBinding(decl.cls.name, decl.cls, DEFAULT_EXPORT)
            if isinstance(decl, Identifier):
                return ComponentBinding(decl.name, bindings.get(decl.name), DEFAULT_EXPORT)
            return ComponentBinding(None, decl, DEFAULT_EXPORT)
        if isinstance(stmt, ExportNamedDeclaration):
            for spec in stmt.specifiers:
                if spec.exported == "default":
                    return ComponentBinding(spec.local, bindings.get(spec.local), DEFAULT_EXPORT)

    for name in reversed(list(bindings)):
        if name[:1].isupper() and name not in _RESERVED:
            return ComponentBinding(name, bindings[name], CAPITALIZED_BINDING)

    raise NoComponentFound()


def unwrap_definition(
    definition: Expression | None, program: Program
) -> Function | Class | None:
    """Follow wrappers like ``memo(Inner)`` down to the rendering function or class."""
    bindings = _top_level_bindings(program.body)
    seen: set[str] = set()
    node = definition
    while node is not None:
        if isinstance(node, (Function, Class)):
            return node
        if isinstance(node, CallExpression) and node.arguments:
            node = node.arguments[0]
        elif isinstance(node, Identifier) and node.name not in seen:
            seen.add(node.name)
            node = bindings.get(node.name)
        else:
            return None
    return None


def _top_level_bindings(body: tuple[Statement, ...]) -> dict[str, Expression | None]:
    """Map each top-level binding name to its value node, in source order."""
    bindings: dict[str, Expression | None] = {}
    for stmt in body:
        if isinstance(stmt, ExportNamedDeclaration) and stmt.declaration is not None:
            stmt = stmt.declaration
        if isinstance(stmt, FunctionDeclaration) and stmt.function.name:
            bindings.pop(stmt.function.name, None)
            bindings[stmt.function.name] = stmt.function
        elif isinstance(stmt, ClassDeclaration) and stmt.cls.name:
            bindings.pop(stmt.cls.name, None)
            bindings[stmt.cls.name] = stmt.cls
        elif isinstance(stmt, VariableDeclaration):
            for decl in stmt.declarations:
                if isinstance(decl.target, Identifier):
                    bindings.pop(decl.target.name, None)
                    bindings[decl.target.name] = decl.init
    return bindings
