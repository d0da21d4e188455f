"""JavaScript printer for lowered modules.

Only the node types the transpiler can emit are handled; markup must be
lowered before printing.  Operands are parenthesized by precedence, so the
output re-parses to the same tree even when the formatting differs.
"""

from __future__ import annotations

from collections.abc import Iterable

from jsxlive.ast import (
    ArrayExpression,
    ArrayPattern,
    AssignmentExpression,
    AssignmentPattern,
    BinaryExpression,
    BlockStatement,
    BreakStatement,
    CallExpression,
    ChainExpression,
    Class,
    ClassDeclaration,
    ConditionalExpression,
    ContinueStatement,
    EmptyStatement,
    ExpressionStatement,
    ForOfStatement,
    ForStatement,
    Function,
    FunctionDeclaration,
    Identifier,
    IfStatement,
    Literal,
    LogicalExpression,
    MemberExpression,
    NewExpression,
    ObjectExpression,
    ObjectPattern,
    PatternProperty,
    Property,
    RestElement,
    ReturnStatement,
    SequenceExpression,
    SpreadElement,
    Statement,
    Super,
    SwitchStatement,
    TemplateLiteral,
    ThisExpression,
    ThrowStatement,
    TryStatement,
    UnaryExpression,
    UpdateExpression,
    VariableDeclaration,
    WhileStatement,
)
from jsxlive.strings import quote_js_string

INDENT = "  "

_BINARY_PRECEDENCE = {
    "??": 4,
    "||": 4,
    "&&": 5,
    "|": 6,
    "^": 7,
    "&": 8,
    "==": 9,
    "!=": 9,
    "===": 9,
    "!==": 9,
    "<": 10,
    ">": 10,
    "<=": 10,
    ">=": 10,
    "instanceof": 10,
    "in": 10,
    "<<": 11,
    ">>": 11,
    ">>>": 11,
    "+": 12,
    "-": 12,
    "*": 13,
    "/": 13,
    "%": 13,
    "**": 14,
}

_SEQUENCE = 1
_ASSIGN = 2
_CONDITIONAL = 3
_UNARY = 15
_POSTFIX = 16
_CALL = 17
_PRIMARY = 18


def generate(statements: Iterable[Statement]) -> str:
    """Render statements as JavaScript source, one top-level statement per line."""
    out: list[str] = []
    for stmt in statements:
        _statement(stmt, 0, out)
    return "\n".join(out) + ("\n" if out else "")


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


def _statement(node: Statement, depth: int, out: list[str]) -> None:
    pad = INDENT * depth
    if isinstance(node, ExpressionStatement):
        text = expression(node.expression)
        # A leading brace or "function" would start a block or declaration.
        if text.startswith(("{", "function", "class")):
            text = f"({text})"
        out.append(pad + _indented(pad, text) + ";")
    elif isinstance(node, VariableDeclaration):
        out.append(pad + _indented(pad, _declaration(node)) + ";")
    elif isinstance(node, FunctionDeclaration):
        out.extend(_prefixed(pad, _function(node.function)))
    elif isinstance(node, ClassDeclaration):
        out.extend(_prefixed(pad, _class(node.cls)))
    elif isinstance(node, ReturnStatement):
        if node.argument is None:
            out.append(f"{pad}return;")
        else:
            out.append(pad + "return " + _indented(pad, expression(node.argument)) + ";")
    elif isinstance(node, BlockStatement):
        out.append(pad + "{")
        for child in node.body:
            _statement(child, depth + 1, out)
        out.append(pad + "}")
    elif isinstance(node, IfStatement):
        out.append(f"{pad}if ({expression(node.test)}) {_block(node.consequent, depth)}")
        alternate = node.alternate
        while alternate is not None:
            if isinstance(alternate, IfStatement):
                test = expression(alternate.test)
                out[-1] += f" else if ({test}) {_block(alternate.consequent, depth)}"
                alternate = alternate.alternate
            else:
                out[-1] += f" else {_block(alternate, depth)}"
                alternate = None
    elif isinstance(node, ForStatement):
        init = ""
        if isinstance(node.init, VariableDeclaration):
            init = _declaration(node.init)
        elif node.init is not None:
            init = expression(node.init)
        test = expression(node.test) if node.test is not None else ""
        update = expression(node.update) if node.update is not None else ""
        out.append(f"{pad}for ({init}; {test}; {update}) {_block(node.body, depth)}")
    elif isinstance(node, ForOfStatement):
        if isinstance(node.left, VariableDeclaration):
            left = _declaration(node.left)
        else:
            left = pattern(node.left)
        head = f"for ({left} {node.each} {expression(node.right)})"
        out.append(f"{pad}{head} {_block(node.body, depth)}")
    elif isinstance(node, WhileStatement):
        out.append(f"{pad}while ({expression(node.test)}) {_block(node.body, depth)}")
    elif isinstance(node, BreakStatement):
        out.append(f"{pad}break;")
    elif isinstance(node, ContinueStatement):
        out.append(f"{pad}continue;")
    elif isinstance(node, ThrowStatement):
        out.append(pad + "throw " + _indented(pad, expression(node.argument)) + ";")
    elif isinstance(node, TryStatement):
        text = f"{pad}try {_block(node.block, depth)}"
        if node.handler is not None:
            param = f" ({pattern(node.param)})" if node.param is not None else ""
            text += f" catch{param} {_block(node.handler, depth)}"
        if node.finalizer is not None:
            text += f" finally {_block(node.finalizer, depth)}"
        out.append(text)
    elif isinstance(node, SwitchStatement):
        out.append(f"{pad}switch ({expression(node.discriminant)}) {{")
        for case in node.cases:
            if case.test is None:
                out.append(f"{pad}{INDENT}default:")
            else:
                out.append(f"{pad}{INDENT}case {expression(case.test)}:")
            for child in case.body:
                _statement(child, depth + 2, out)
        out.append(pad + "}")
    elif isinstance(node, EmptyStatement):
        out.append(f"{pad};")
    else:
        raise TypeError(f"cannot print {type(node).__name__}")


def _block(node: Statement, depth: int) -> str:
    """Body of a compound statement, printed inline after its header."""
    lines: list[str] = []
    body = node.body if isinstance(node, BlockStatement) else (node,)
    for child in body:
        _statement(child, depth + 1, lines)
    if not lines:
        return "{}"
    return "{\n" + "\n".join(lines) + "\n" + INDENT * depth + "}"


def _prefixed(pad: str, text: str) -> list[str]:
    return [pad + line for line in text.split("\n")]


def _indented(pad: str, text: str) -> str:
    return text.replace("\n", "\n" + pad)


def _declaration(node: VariableDeclaration) -> str:
    parts = []
    for decl in node.declarations:
        text = pattern(decl.target)
        if decl.init is not None:
            text += " = " + _operand(decl.init, _ASSIGN)
        parts.append(text)
    return f"{node.kind} " + ", ".join(parts)


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


def expression(node: object) -> str:
    """Render one expression without surrounding parentheses."""
    return _expr(node)[0]


def _operand(node: object, minimum: int) -> str:
    text, precedence = _expr(node)
    return f"({text})" if precedence < minimum else text


def _expr(node: object) -> tuple[str, int]:
    if isinstance(node, Identifier):
        return node.name, _PRIMARY
    if isinstance(node, Literal):
        return _literal(node), _PRIMARY
    if isinstance(node, TemplateLiteral):
        return _template(node), _PRIMARY
    if isinstance(node, ThisExpression):
        return "this", _PRIMARY
    if isinstance(node, Super):
        return "super", _PRIMARY
    if isinstance(node, ArrayExpression):
        items = ["" if el is None else _element(el) for el in node.elements]
        if node.elements and node.elements[-1] is None:
            items.append("")
        return "[" + ", ".join(items) + "]", _PRIMARY
    if isinstance(node, ObjectExpression):
        if not node.properties:
            return "{}", _PRIMARY
        return "{ " + ", ".join(_property(p) for p in node.properties) + " }", _PRIMARY
    if isinstance(node, Function):
        if node.arrow:
            return _arrow(node), _ASSIGN
        return _function(node), _PRIMARY
    if isinstance(node, Class):
        return _class(node), _PRIMARY
    if isinstance(node, UnaryExpression):
        space = " " if node.operator.isalpha() else ""
        argument = _operand(node.argument, _UNARY)
        if not space and argument.startswith(node.operator[-1]):
            argument = f"({argument})"
        return f"{node.operator}{space}{argument}", _UNARY
    if isinstance(node, UpdateExpression):
        argument = _operand(node.argument, _POSTFIX)
        if node.prefix:
            return f"{node.operator}{argument}", _UNARY
        return f"{argument}{node.operator}", _POSTFIX
    if isinstance(node, (BinaryExpression, LogicalExpression)):
        precedence = _BINARY_PRECEDENCE[node.operator]
        if node.operator == "**":
            left = _operand(node.left, precedence + 1)
            right = _operand(node.right, precedence)
        else:
            left = _operand(node.left, precedence)
            right = _operand(node.right, precedence + 1)
        if node.operator == "??" or _mixes_nullish(node):
            left = _wrap_logical(node.left, left)
            right = _wrap_logical(node.right, right)
        return f"{left} {node.operator} {right}", precedence
    if isinstance(node, AssignmentExpression):
        target = pattern(node.target)
        return f"{target} {node.operator} {_operand(node.value, _ASSIGN)}", _ASSIGN
    if isinstance(node, ConditionalExpression):
        test = _operand(node.test, _CONDITIONAL + 1)
        consequent = _operand(node.consequent, _ASSIGN)
        alternate = _operand(node.alternate, _ASSIGN)
        return f"{test} ? {consequent} : {alternate}", _CONDITIONAL
    if isinstance(node, SequenceExpression):
        return ", ".join(_operand(e, _ASSIGN) for e in node.expressions), _SEQUENCE
    if isinstance(node, ChainExpression):
        return _expr(node.expression)
    if isinstance(node, MemberExpression):
        target = _operand(node.object, _CALL)
        if isinstance(node.object, Literal) and isinstance(node.object.value, int):
            target = f"({target})"
        if node.computed:
            dot = "?.[" if node.optional else "["
            return f"{target}{dot}{expression(node.property)}]", _CALL
        dot = "?." if node.optional else "."
        return f"{target}{dot}{expression(node.property)}", _CALL
    if isinstance(node, CallExpression):
        callee = _operand(node.callee, _CALL)
        if isinstance(node.callee, Function) and not node.callee.arrow:
            callee = f"({callee})"
        args = ", ".join(_element(a) for a in node.arguments)
        return f"{callee}{'?.' if node.optional else ''}({args})", _CALL
    if isinstance(node, NewExpression):
        callee = _operand(node.callee, _CALL)
        if isinstance(node.callee, CallExpression):
            callee = f"({callee})"
        args = ", ".join(_element(a) for a in node.arguments)
        return f"new {callee}({args})", _CALL
    raise TypeError(f"cannot print {type(node).__name__}")


def _mixes_nullish(node: BinaryExpression | LogicalExpression) -> bool:
    return node.operator in ("&&", "||") and any(
        isinstance(side, LogicalExpression) and side.operator == "??"
        for side in (node.left, node.right)
    )


def _wrap_logical(side: object, text: str) -> str:
    """``??`` cannot mix with ``&&``/``||`` without parentheses."""
    if isinstance(side, LogicalExpression) and not text.startswith("("):
        return f"({text})"
    return text


def _literal(node: Literal) -> str:
    value = node.value
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, str):
        return quote_js_string(value)
    if node.raw:
        return node.raw
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return repr(value)


def _template(node: TemplateLiteral) -> str:
    parts = ["`"]
    for i, quasi in enumerate(node.quasis):
        quasi = quasi.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")
        quasi = quasi.replace("\n", "\\n").replace("\r", "\\r")
        parts.append(quasi)
        if i < len(node.expressions):
            parts.append("${" + expression(node.expressions[i]) + "}")
    parts.append("`")
    return "".join(parts)


def _element(node: object) -> str:
    if isinstance(node, SpreadElement):
        return "..." + _operand(node.argument, _ASSIGN)
    return _operand(node, _ASSIGN)


def _key(key: object, computed: bool) -> str:
    if computed:
        return f"[{expression(key)}]"
    if isinstance(key, Literal) and isinstance(key.value, str):
        return quote_js_string(key.value)
    return expression(key)


def _property(node: Property | SpreadElement) -> str:
    if isinstance(node, SpreadElement):
        return _element(node)
    if node.shorthand:
        return expression(node.value)
    key = _key(node.key, node.computed)
    return f"{key}: {_operand(node.value, _ASSIGN)}"


def _params(params: tuple) -> str:
    return "(" + ", ".join(pattern(p) for p in params) + ")"


def _body(fn: Function) -> str:
    body = fn.body
    if not isinstance(body, BlockStatement):
        text = _operand(body, _ASSIGN)
        return f"({text})" if text.startswith("{") else text
    lines: list[str] = []
    for stmt in body.body:
        _statement(stmt, 1, lines)
    if not lines:
        return "{}"
    return "{\n" + "\n".join(lines) + "\n}"


def _arrow(fn: Function) -> str:
    return f"{_params(fn.params)} => {_body(fn)}"


def _function(fn: Function) -> str:
    name = f" {fn.name}" if fn.name else ""
    return f"function{name}{_params(fn.params)} {_body(fn)}"


def _class(cls: Class) -> str:
    head = "class"
    if cls.name:
        head += f" {cls.name}"
    if cls.superclass is not None:
        head += f" extends {_operand(cls.superclass, _CALL)}"
    if not cls.members:
        return head + " {}"
    lines = [head + " {"]
    for member in cls.members:
        static = "static " if member.static else ""
        if member.kind == "field":
            init = "" if member.value is None else f" = {_operand(member.value, _ASSIGN)}"
            lines.append(f"{INDENT}{static}{member.name}{init};")
            continue
        assert isinstance(member.value, Function)
        method = f"{static}{member.name}{_params(member.value.params)} {_body(member.value)}"
        lines.extend(_prefixed(INDENT, method))
    lines.append("}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------


def pattern(node: object) -> str:
    if isinstance(node, AssignmentPattern):
        return f"{pattern(node.target)} = {_operand(node.default, _ASSIGN)}"
    if isinstance(node, RestElement):
        return "..." + pattern(node.argument)
    if isinstance(node, ArrayPattern):
        items = ["" if el is None else pattern(el) for el in node.elements]
        return "[" + ", ".join(items) + "]"
    if isinstance(node, ObjectPattern):
        parts = []
        for prop in node.properties:
            if isinstance(prop, PatternProperty):
                parts.append(_pattern_property(prop))
            else:
                parts.append(pattern(prop))
        return "{ " + ", ".join(parts) + " }" if parts else "{}"
    return expression(node)


def _pattern_property(prop: PatternProperty) -> str:
    value = pattern(prop.value)
    if not prop.computed and isinstance(prop.key, Identifier):
        target = prop.value
        if isinstance(target, AssignmentPattern):
            target = target.target
        if isinstance(target, Identifier) and target.name == prop.key.name:
            return value
    return f"{_key(prop.key, prop.computed)}: {value}"
