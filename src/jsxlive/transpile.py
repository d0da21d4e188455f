"""Transpiler — lowers component modules into plain executable statements.

Imports are discarded, exports become local bindings, markup becomes nested
factory calls, and the module ends with a terminal ``return`` of the
component chosen by :mod:`jsxlive.discovery`.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, fields, is_dataclass, replace
from typing import Any

from jsxlive.ast import (
    CallExpression,
    ClassDeclaration,
    ExportDefaultDeclaration,
    ExportNamedDeclaration,
    Expression,
    FunctionDeclaration,
    Identifier,
    ImportDeclaration,
    JSXAttribute,
    JSXElement,
    JSXExpressionContainer,
    JSXFragment,
    JSXSpreadAttribute,
    JSXText,
    Literal,
    MemberExpression,
    ObjectExpression,
    Program,
    Property,
    ReturnStatement,
    SpreadElement,
    Statement,
    VariableDeclaration,
    VariableDeclarator,
)
from jsxlive.discovery import discover_component
from jsxlive.errors import TranspilerNotReady
from jsxlive.parser import parse
from jsxlive.strings import clean_jsx_text, quote_js_string
from jsxlive.tokens import Span

logger = logging.getLogger(__name__)

JSX_FACTORY = "__jsx__"
JSX_FRAGMENT = "__jsx_fragment__"
DEFAULT_BINDING = "__default__"
TERMINAL_RETURN = "terminal-return"

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][\w$]*$")


@dataclass(frozen=True, slots=True)
class TranspiledModule:
    """Lowered module ready for the sandbox.

    ``via`` records how the returned component was chosen: an explicit
    top-level return, a default export, or a capitalized binding.
    """

    body: tuple[Statement, ...]
    component_name: str | None
    via: str
    source: str

    @property
    def code(self) -> str:
        """Lowered module rendered back to JavaScript text."""
        from jsxlive.codegen import generate

        return generate(self.body)


def transpile(source: str, filename: str = "component.jsx") -> TranspiledModule:
    """Parse and lower source; raises SourceSyntaxError or NoComponentFound."""
    program = parse(source, filename)
    return lower_program(program, source)


def lower_program(program: Program, source: str = "") -> TranspiledModule:
    body: list[Statement] = []
    for stmt in program.body:
        if isinstance(stmt, ImportDeclaration):
            continue
        if isinstance(stmt, ExportNamedDeclaration):
            if stmt.declaration is not None:
                body.append(lower(stmt.declaration))
            continue
        if isinstance(stmt, ExportDefaultDeclaration):
            decl = stmt.declaration
            if isinstance(decl, (FunctionDeclaration, ClassDeclaration)):
                body.append(lower(decl))
            else:
                target = Identifier(DEFAULT_BINDING, stmt.span)
                declarator = VariableDeclarator(target, lower(decl), stmt.span)
                body.append(VariableDeclaration("const", (declarator,), stmt.span))
            continue
        body.append(lower(stmt))

    if body and isinstance(body[-1], ReturnStatement):
        returned = body[-1].argument
        name = returned.name if isinstance(returned, Identifier) else None
        return TranspiledModule(tuple(body), name, TERMINAL_RETURN, source)

    binding = discover_component(program)
    name = DEFAULT_BINDING if _has_default_expression(program) else binding.name
    end = program.span.end
    body.append(ReturnStatement(Identifier(name, Span(end, end)), Span(end, end)))
    logger.debug("component %s chosen via %s", binding.name or "<anonymous>", binding.via)
    return TranspiledModule(tuple(body), binding.name, binding.via, source)


def _has_default_expression(program: Program) -> bool:
    return any(
        isinstance(stmt, ExportDefaultDeclaration)
        and not isinstance(stmt.declaration, (FunctionDeclaration, ClassDeclaration))
        for stmt in program.body
    )


# ---------------------------------------------------------------------------
# Markup lowering
# ---------------------------------------------------------------------------


def lower(node: Any) -> Any:
    """Return node with every markup expression replaced by factory calls."""
    if isinstance(node, JSXElement):
        return _lower_element(node)
    if isinstance(node, JSXFragment):
        return _lower_fragment(node)
    if isinstance(node, tuple):
        items = tuple(lower(item) for item in node)
        if all(new is old for new, old in zip(items, node)):
            return node
        return items
    if is_dataclass(node) and not isinstance(node, type):
        changes = {}
        for f in fields(node):
            value = getattr(node, f.name)
            new = lower(value)
            if new is not value:
                changes[f.name] = new
        return replace(node, **changes) if changes else node
    return node


def _lower_element(node: JSXElement) -> CallExpression:
    tag = _tag_expression(node.name, node.name_span)
    props = _props_expression(node.attributes, node.opening_span)
    args = (tag, props, *_lower_children(node.children))
    return CallExpression(Identifier(JSX_FACTORY, node.name_span), args, False, node.span)


def _lower_fragment(node: JSXFragment) -> CallExpression:
    tag = Identifier(JSX_FRAGMENT, node.opening_span)
    props = Literal(None, "null", node.opening_span)
    args = (tag, props, *_lower_children(node.children))
    return CallExpression(Identifier(JSX_FACTORY, node.opening_span), args, False, node.span)


def _tag_expression(name: str, span: Span) -> Expression:
    """Intrinsic tags become strings, component tags become references."""
    if name[:1].islower() or "-" in name or ":" in name:
        return Literal(name, quote_js_string(name, '"'), span)
    parts = name.split(".")
    expr: Expression = Identifier(parts[0], span)
    for part in parts[1:]:
        expr = MemberExpression(expr, Identifier(part, span), False, False, span)
    return expr


def _props_expression(
    attributes: tuple[JSXAttribute | JSXSpreadAttribute, ...], span: Span
) -> Expression:
    if not attributes:
        return Literal(None, "null", span)
    properties: list[Property | SpreadElement] = []
    for attr in attributes:
        if isinstance(attr, JSXSpreadAttribute):
            properties.append(SpreadElement(lower(attr.argument), attr.span))
            continue
        if _IDENTIFIER_RE.match(attr.name):
            key: Expression = Identifier(attr.name, attr.name_span)
        else:
            key = Literal(attr.name, quote_js_string(attr.name, '"'), attr.name_span)
        value = attr.value
        if value is None:
            lowered: Expression = Literal(True, "true", attr.span)
        elif isinstance(value, Literal):
            lowered = Literal(value.value, quote_js_string(str(value.value), '"'), value.span)
        elif isinstance(value, JSXExpressionContainer):
            lowered = lower(value.expression)
        else:
            lowered = lower(value)
        properties.append(Property(key, lowered, False, False, attr.span))
    return ObjectExpression(tuple(properties), span)


def _lower_children(children: tuple) -> list[Expression]:
    args: list[Expression] = []
    for child in children:
        if isinstance(child, JSXText):
            text = clean_jsx_text(child.value)
            if text:
                args.append(Literal(text, quote_js_string(text, '"'), child.span))
        elif isinstance(child, JSXExpressionContainer):
            if child.expression is not None:
                args.append(lower(child.expression))
        else:
            args.append(lower(child))
    return args


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

_WARM_UP_SOURCE = """\
function WarmUp({ label }) {
  return <>
    <span title="warm-up">{label}</span>
  </>;
}
export default WarmUp;
"""


class TranspilerService:
    """Injectable transpiler with an explicit asynchronous ``ready()``.

    Concurrent ``ready()`` callers share one initialization; a failed
    initialization is forgotten so the next call retries it.
    """

    def __init__(self, filename: str = "component.jsx") -> None:
        self._filename = filename
        self._ready = False
        self._init_task: asyncio.Task[None] | None = None

    @property
    def is_ready(self) -> bool:
        return self._ready

    async def ready(self) -> None:
        if self._ready:
            return
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._initialize())
        task = self._init_task
        try:
            await asyncio.shield(task)
        except Exception:
            if self._init_task is task:
                self._init_task = None
            raise

    async def _initialize(self) -> None:
        logger.debug("initializing transpiler")
        self.warm_up()
        self._ready = True
        logger.debug("transpiler ready")

    def warm_up(self) -> None:
        """Run the pipeline once over a known module."""
        module = transpile(_WARM_UP_SOURCE, "<warm-up>")
        if module.component_name != "WarmUp":
            raise RuntimeError("transpiler warm-up produced an unexpected module")

    async def transpile(self, source: str) -> TranspiledModule:
        if not self._ready:
            raise TranspilerNotReady()
        return transpile(source, self._filename)
