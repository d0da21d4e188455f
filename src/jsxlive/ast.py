"""AST node types for parsed component modules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from jsxlive.tokens import Span

# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Identifier:
    name: str
    span: Span


@dataclass(frozen=True, slots=True)
class Literal:
    """String, number, boolean or null literal."""

    value: str | int | float | bool | None
    raw: str
    span: Span


@dataclass(frozen=True, slots=True)
class TemplateLiteral:
    """Template literal; ``quasis`` has one more entry than ``expressions``."""

    quasis: tuple[str, ...]
    expressions: tuple[Expression, ...]
    span: Span


@dataclass(frozen=True, slots=True)
class SpreadElement:
    argument: Expression
    span: Span


@dataclass(frozen=True, slots=True)
class ArrayExpression:
    elements: tuple[Expression | SpreadElement | None, ...]
    span: Span


@dataclass(frozen=True, slots=True)
class Property:
    """Object literal entry; ``key`` is an Identifier or Literal unless computed."""

    key: Expression
    value: Expression
    computed: bool
    shorthand: bool
    span: Span


@dataclass(frozen=True, slots=True)
class ObjectExpression:
    properties: tuple[Property | SpreadElement, ...]
    span: Span


@dataclass(frozen=True, slots=True)
class Function:
    """Function expression, declaration body, method, or arrow function.

    For concise arrows (``x => x + 1``) ``body`` is an expression.
    """

    name: str | None
    params: tuple[Pattern, ...]
    body: BlockStatement | Expression
    arrow: bool
    span: Span


@dataclass(frozen=True, slots=True)
class UnaryExpression:
    operator: str
    argument: Expression
    span: Span


@dataclass(frozen=True, slots=True)
class UpdateExpression:
    operator: str
    prefix: bool
    argument: Expression
    span: Span


@dataclass(frozen=True, slots=True)
class BinaryExpression:
    operator: str
    left: Expression
    right: Expression
    span: Span


@dataclass(frozen=True, slots=True)
class LogicalExpression:
    """Short-circuiting ``&&``, ``||`` or ``??``."""

    operator: str
    left: Expression
    right: Expression
    span: Span


@dataclass(frozen=True, slots=True)
class AssignmentExpression:
    operator: str
    target: Pattern
    value: Expression
    span: Span


@dataclass(frozen=True, slots=True)
class ConditionalExpression:
    test: Expression
    consequent: Expression
    alternate: Expression
    span: Span


@dataclass(frozen=True, slots=True)
class SequenceExpression:
    expressions: tuple[Expression, ...]
    span: Span


@dataclass(frozen=True, slots=True)
class CallExpression:
    callee: Expression
    arguments: tuple[Expression | SpreadElement, ...]
    optional: bool
    span: Span


@dataclass(frozen=True, slots=True)
class MemberExpression:
    """``object.property`` or ``object[property]``; plain names are Identifiers."""

    object: Expression
    property: Expression
    computed: bool
    optional: bool
    span: Span


@dataclass(frozen=True, slots=True)
class ChainExpression:
    """Boundary of an optional chain: a nullish ``?.`` short-circuits to here."""

    expression: Expression
    span: Span


@dataclass(frozen=True, slots=True)
class NewExpression:
    callee: Expression
    arguments: tuple[Expression | SpreadElement, ...]
    span: Span


@dataclass(frozen=True, slots=True)
class ThisExpression:
    span: Span


@dataclass(frozen=True, slots=True)
class Super:
    span: Span


@dataclass(frozen=True, slots=True)
class ClassMember:
    """Method or field; ``kind`` is "constructor", "method" or "field"."""

    name: str
    value: Expression | None
    kind: str
    static: bool
    span: Span


@dataclass(frozen=True, slots=True)
class Class:
    name: str | None
    superclass: Expression | None
    members: tuple[ClassMember, ...]
    span: Span


# ---------------------------------------------------------------------------
# Binding patterns
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AssignmentPattern:
    """Binding with a default: ``target = default``."""

    target: Pattern
    default: Expression
    span: Span


@dataclass(frozen=True, slots=True)
class RestElement:
    argument: Pattern
    span: Span


@dataclass(frozen=True, slots=True)
class ArrayPattern:
    elements: tuple[Pattern | None, ...]
    span: Span


@dataclass(frozen=True, slots=True)
class PatternProperty:
    key: Expression
    value: Pattern
    computed: bool
    span: Span


@dataclass(frozen=True, slots=True)
class ObjectPattern:
    properties: tuple[PatternProperty | RestElement, ...]
    span: Span


# ---------------------------------------------------------------------------
# Markup
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class JSXText:
    """Text child; ``value`` is entity-decoded, ``raw`` is the verbatim source."""

    value: str
    raw: str
    span: Span


@dataclass(frozen=True, slots=True)
class JSXExpressionContainer:
    """``{expr}``; ``expression`` is None for empty or comment-only braces."""

    expression: Expression | None
    span: Span


@dataclass(frozen=True, slots=True)
class JSXAttribute:
    """``name``, ``name="..."``, ``name={...}`` or ``name=<el/>``."""

    name: str
    value: Literal | JSXExpressionContainer | JSXElement | JSXFragment | None
    name_span: Span
    span: Span


@dataclass(frozen=True, slots=True)
class JSXSpreadAttribute:
    argument: Expression
    span: Span


@dataclass(frozen=True, slots=True)
class JSXElement:
    name: str
    name_span: Span
    attributes: tuple[JSXAttribute | JSXSpreadAttribute, ...]
    children: tuple[JSXChild, ...]
    self_closing: bool
    opening_span: Span
    span: Span


@dataclass(frozen=True, slots=True)
class JSXFragment:
    children: tuple[JSXChild, ...]
    opening_span: Span
    span: Span


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class VariableDeclarator:
    target: Pattern
    init: Expression | None
    span: Span


@dataclass(frozen=True, slots=True)
class VariableDeclaration:
    kind: str
    declarations: tuple[VariableDeclarator, ...]
    span: Span


@dataclass(frozen=True, slots=True)
class FunctionDeclaration:
    function: Function
    span: Span


@dataclass(frozen=True, slots=True)
class ClassDeclaration:
    cls: Class
    span: Span


@dataclass(frozen=True, slots=True)
class ReturnStatement:
    argument: Expression | None
    span: Span


@dataclass(frozen=True, slots=True)
class IfStatement:
    test: Expression
    consequent: Statement
    alternate: Statement | None
    span: Span


@dataclass(frozen=True, slots=True)
class BlockStatement:
    body: tuple[Statement, ...]
    span: Span


@dataclass(frozen=True, slots=True)
class ExpressionStatement:
    expression: Expression
    span: Span


@dataclass(frozen=True, slots=True)
class ForStatement:
    init: VariableDeclaration | Expression | None
    test: Expression | None
    update: Expression | None
    body: Statement
    span: Span


@dataclass(frozen=True, slots=True)
class ForOfStatement:
    """``for (left of right)`` or, when ``each`` is "in", ``for (left in right)``."""

    each: str
    left: VariableDeclaration | Pattern
    right: Expression
    body: Statement
    span: Span


@dataclass(frozen=True, slots=True)
class WhileStatement:
    test: Expression
    body: Statement
    span: Span


@dataclass(frozen=True, slots=True)
class BreakStatement:
    span: Span


@dataclass(frozen=True, slots=True)
class ContinueStatement:
    span: Span


@dataclass(frozen=True, slots=True)
class ThrowStatement:
    argument: Expression
    span: Span


@dataclass(frozen=True, slots=True)
class TryStatement:
    block: BlockStatement
    param: Pattern | None
    handler: BlockStatement | None
    finalizer: BlockStatement | None
    span: Span


@dataclass(frozen=True, slots=True)
class SwitchCase:
    test: Expression | None
    body: tuple[Statement, ...]
    span: Span


@dataclass(frozen=True, slots=True)
class SwitchStatement:
    discriminant: Expression
    cases: tuple[SwitchCase, ...]
    span: Span


@dataclass(frozen=True, slots=True)
class EmptyStatement:
    span: Span


@dataclass(frozen=True, slots=True)
class ImportDeclaration:
    source: str
    span: Span


@dataclass(frozen=True, slots=True)
class ExportDefaultDeclaration:
    declaration: FunctionDeclaration | ClassDeclaration | Expression
    span: Span


@dataclass(frozen=True, slots=True)
class ExportSpecifier:
    local: str
    exported: str
    span: Span


@dataclass(frozen=True, slots=True)
class ExportNamedDeclaration:
    declaration: Statement | None
    specifiers: tuple[ExportSpecifier, ...]
    span: Span


@dataclass(frozen=True, slots=True)
class Program:
    """Root module node."""

    body: tuple[Statement, ...]
    span: Span


Expression = Union[
    Identifier,
    Literal,
    TemplateLiteral,
    ArrayExpression,
    ObjectExpression,
    Function,
    Class,
    UnaryExpression,
    UpdateExpression,
    BinaryExpression,
    LogicalExpression,
    AssignmentExpression,
    ConditionalExpression,
    SequenceExpression,
    CallExpression,
    MemberExpression,
    ChainExpression,
    NewExpression,
    ThisExpression,
    Super,
    JSXElement,
    JSXFragment,
]
Pattern = Union[
    Identifier, MemberExpression, ArrayPattern, ObjectPattern, AssignmentPattern, RestElement
]
JSXChild = Union[JSXText, JSXExpressionContainer, JSXElement, JSXFragment]
Statement = Union[
    VariableDeclaration,
    FunctionDeclaration,
    ClassDeclaration,
    ReturnStatement,
    IfStatement,
    BlockStatement,
    ExpressionStatement,
    ForStatement,
    ForOfStatement,
    WhileStatement,
    BreakStatement,
    ContinueStatement,
    ThrowStatement,
    TryStatement,
    SwitchStatement,
    EmptyStatement,
    ImportDeclaration,
    ExportDefaultDeclaration,
    ExportNamedDeclaration,
]
