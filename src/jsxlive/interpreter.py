"""Capability-scoped evaluator for lowered component modules.

The interpreter walks the AST directly.  The only names visible to evaluated
code are the bindings handed to :class:`Interpreter` plus the language
intrinsics built for that interpreter; Python objects are reachable only
through the value protocol below, never through attribute access.

Value mapping:

* ``undefined`` is :data:`UNDEFINED`, ``null`` is ``None``
* booleans, strings and numbers are ``bool``, ``str`` and ``int``/``float``
* arrays are ``list``, plain objects are :class:`JSObject` (a ``dict``)
* functions are :class:`JSFunction`, :class:`NativeFunction`, or any Python
  callable; classes are :class:`JSClass` or :class:`NativeClass`
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from functools import partial
from typing import Any

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
    ReturnStatement,
    RestElement,
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
from jsxlive.errors import ComponentRuntimeError

# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------


class _Undefined:
    __slots__ = ()

    def __repr__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()
MAX_SAFE_INTEGER = 2**53 - 1


class JSObject(dict):
    """Plain object; ``cls`` is set for class instances."""

    __slots__ = ("cls", "host")

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.cls: JSClass | NativeClass | None = None
        # Host-side state (e.g. a class component's updater), invisible to scripts
        self.host: Any = None


class JSFunction:
    """A closure over an AST function node."""

    def __init__(
        self,
        node: Function,
        closure: Scope,
        interpreter: Interpreter,
        name: str | None = None,
        home: JSClass | None = None,
    ) -> None:
        self.node = node
        self.closure = closure
        self.interpreter = interpreter
        self.name = name if name is not None else (node.name or "")
        self.home = home
        self.props: dict[str, Any] = {}

    def __call__(self, *args: Any) -> Any:
        return self.interpreter.call(self, UNDEFINED, list(args))

    def __repr__(self) -> str:
        return f"<function {self.name or 'anonymous'}>"


class BoundFunction:
    """Result of ``fn.bind(thisArg, ...args)``."""

    def __init__(self, target: Any, this: Any, args: list[Any], interpreter: Interpreter) -> None:
        self.target = target
        self.this = this
        self.args = args
        self.interpreter = interpreter
        self.name = f"bound {getattr(target, 'name', '')}"

    def __call__(self, *args: Any) -> Any:
        return self.interpreter.call(self.target, self.this, [*self.args, *args])


class NativeFunction:
    """Host function exposed to scripts, with optional static members."""

    def __init__(
        self,
        name: str,
        fn: Callable[..., Any],
        props: Mapping[str, Any] | None = None,
        instance_check: Callable[[Any], bool] | None = None,
        read_only: bool = False,
    ) -> None:
        self.name = name
        self.fn = fn
        self.props = dict(props or {})
        self.instance_check = instance_check
        self.read_only = read_only

    def __call__(self, *args: Any) -> Any:
        return self.fn(*args)

    def __repr__(self) -> str:
        return f"<native {self.name}>"


class JSClass:
    """A class defined by script code."""

    def __init__(
        self, name: str, superclass: JSClass | NativeClass | None, interpreter: Interpreter
    ) -> None:
        self.name = name
        self.superclass = superclass
        self.interpreter = interpreter
        self.constructor: JSFunction | None = None
        self.methods: dict[str, JSFunction] = {}
        self.statics: dict[str, Any] = {}
        self.fields: list[tuple[str, Any, Scope]] = []

    def construct(self, *args: Any) -> JSObject:
        return self.interpreter.construct(self, list(args))

    def is_subclass_of(self, other: Any) -> bool:
        cls: Any = self
        while cls is not None:
            if cls is other:
                return True
            cls = cls.superclass
        return False

    def __repr__(self) -> str:
        return f"<class {self.name or 'anonymous'}>"


class NativeClass:
    """Host class that scripts may instantiate or extend.

    Subclasses fill ``methods`` with callables taking ``(this, *args)`` and
    override ``init`` to set up instance state.
    """

    name = "Object"
    superclass: NativeClass | None = None
    callable_without_new = False
    read_only = False

    def __init__(self) -> None:
        self.methods: dict[str, Callable[..., Any]] = {}
        self.statics: dict[str, Any] = {}

    def init(self, interpreter: Interpreter, this: JSObject, args: list[Any]) -> None:
        pass

    def construct(self, interpreter: Interpreter, args: list[Any]) -> JSObject:
        obj = JSObject()
        obj.cls = self
        self.init(interpreter, obj, args)
        return obj

    def is_subclass_of(self, other: Any) -> bool:
        cls: Any = self
        while cls is not None:
            if cls is other:
                return True
            cls = cls.superclass
        return False

    def __repr__(self) -> str:
        return f"<class {self.name}>"


# ---------------------------------------------------------------------------
# Errors and control flow
# ---------------------------------------------------------------------------


class ScriptError(Exception):
    """An error raised by the evaluator that scripts can catch (TypeError etc.)."""

    def __init__(self, name: str, message: str) -> None:
        self.name = name
        self.message = message
        super().__init__(f"{name}: {message}")


class JSThrow(Exception):
    """A value thrown by a ``throw`` statement."""

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(describe_thrown(value))


class StepLimitExceeded(ComponentRuntimeError):
    """Raised when evaluation runs past its step budget; not catchable by scripts."""


class _ReturnSignal(Exception):
    def __init__(self, value: Any) -> None:
        self.value = value


class _BreakSignal(Exception):
    pass


class _ContinueSignal(Exception):
    pass


class _ShortCircuit(Exception):
    pass


def describe_thrown(value: Any) -> str:
    """Message shown for an uncaught thrown value."""
    if isinstance(value, JSObject) and "message" in value:
        name = value.get("name", "Error")
        message = to_string(value["message"])
        return f"{to_string(name)}: {message}" if message else to_string(name)
    return f"Uncaught {to_string(value)}"


# ---------------------------------------------------------------------------
# Scopes
# ---------------------------------------------------------------------------


class Scope:
    """Lexical environment."""

    __slots__ = ("vars", "consts", "parent")

    def __init__(self, parent: Scope | None = None) -> None:
        self.vars: dict[str, Any] = {}
        self.consts: set[str] = set()
        self.parent = parent

    def declare(self, name: str, value: Any, const: bool = False) -> None:
        self.vars[name] = value
        if const:
            self.consts.add(name)
        else:
            self.consts.discard(name)

    def lookup(self, name: str) -> Any:
        scope: Scope | None = self
        while scope is not None:
            if name in scope.vars:
                return scope.vars[name]
            scope = scope.parent
        raise ScriptError("ReferenceError", f"{name} is not defined")

    def has(self, name: str) -> bool:
        scope: Scope | None = self
        while scope is not None:
            if name in scope.vars:
                return True
            scope = scope.parent
        return False

    def assign(self, name: str, value: Any) -> None:
        scope: Scope | None = self
        while scope is not None:
            if name in scope.vars:
                if name in scope.consts:
                    raise ScriptError("TypeError", "Assignment to constant variable.")
                scope.vars[name] = value
                return
            scope = scope.parent
        raise ScriptError("ReferenceError", f"{name} is not defined")


_THIS = "this"
_HOME = "%home"
_NEW_TARGET = "%new"


@dataclass(frozen=True, slots=True)
class Limits:
    """Evaluation budgets; steps are counted per host-initiated call."""

    max_steps: int = 1_000_000
    max_call_depth: int = 64


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_callable(value: Any) -> bool:
    if isinstance(value, (JSClass, NativeClass)):
        return False
    return callable(value)


def normalize_number(value: int | float) -> int | float:
    if isinstance(value, float):
        if value.is_integer() and abs(value) <= MAX_SAFE_INTEGER:
            return int(value)
        return value
    if abs(value) > MAX_SAFE_INTEGER:
        try:
            return float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
    return value


def js_typeof(value: Any) -> str:
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "object"
    if isinstance(value, bool):
        return "boolean"
    if is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (JSClass, NativeClass)) or callable(value):
        return "function"
    return "object"


def truthy(value: Any) -> bool:
    if value is UNDEFINED or value is None or value is False:
        return False
    if is_number(value):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return True


def format_number(value: int | float) -> str:
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    text = repr(value)
    if "e" in text:
        mantissa, exp = text.split("e")
        sign = "-" if exp.startswith("-") else "+"
        text = f"{mantissa}e{sign}{exp.lstrip('+-').lstrip('0') or '0'}"
    return text


def to_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if is_number(value):
        return format_number(value)
    if isinstance(value, list):
        return ",".join("" if v is None or v is UNDEFINED else to_string(v) for v in value)
    if isinstance(value, JSObject) and value.cls is not None and "message" in value:
        return describe_thrown(value)
    if isinstance(value, dict):
        return "[object Object]"
    if isinstance(value, (JSClass, NativeClass)):
        return f"class {value.name} {{ }}"
    if callable(value):
        name = getattr(value, "name", "")
        return f"function {name}() {{ [native code] }}"
    to_js = getattr(type(value), "js_string", None)
    if to_js is not None:
        return to_js(value)
    return "[object Object]"


def to_number(value: Any) -> int | float:
    if isinstance(value, bool):
        return 1 if value else 0
    if is_number(value):
        return value
    if value is None:
        return 0
    if value is UNDEFINED:
        return math.nan
    if isinstance(value, str):
        text = value.strip()
        if text == "":
            return 0
        try:
            if text.lower().startswith(("0x", "0o", "0b")):
                return int(text, 0)
            if text in ("Infinity", "+Infinity"):
                return math.inf
            if text == "-Infinity":
                return -math.inf
            if not all(ch in "0123456789+-.eE" for ch in text):
                return math.nan
            return normalize_number(float(text))
        except ValueError:
            return math.nan
    if isinstance(value, list):
        if not value:
            return 0
        if len(value) == 1:
            return to_number(to_string(value[0]))
    return math.nan


def to_int32(value: Any) -> int:
    num = to_number(value)
    if isinstance(num, float) and (math.isnan(num) or math.isinf(num)):
        return 0
    n = int(num) & 0xFFFFFFFF
    return n - 0x100000000 if n >= 0x80000000 else n


def to_property_key(value: Any) -> str:
    if isinstance(value, str):
        return value
    return to_string(value)


def to_primitive(value: Any) -> Any:
    if isinstance(value, (list, dict)) or callable(value):
        return to_string(value)
    return value


def strict_equals(a: Any, b: Any) -> bool:
    if is_number(a) and is_number(b):
        return a == b
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    return a is b


def loose_equals(a: Any, b: Any) -> bool:
    if a is None or a is UNDEFINED or b is None or b is UNDEFINED:
        return (a is None or a is UNDEFINED) and (b is None or b is UNDEFINED)
    if js_typeof(a) == js_typeof(b) and not (is_number(a) and is_number(b)):
        return strict_equals(a, b)
    if isinstance(a, bool):
        return loose_equals(to_number(a), b)
    if isinstance(b, bool):
        return loose_equals(a, to_number(b))
    if is_number(a) and isinstance(b, str):
        return a == to_number(b)
    if isinstance(a, str) and is_number(b):
        return to_number(a) == b
    if is_number(a) and is_number(b):
        return a == b
    if isinstance(a, (list, dict)) and not isinstance(b, (list, dict)):
        return loose_equals(to_primitive(a), b)
    if isinstance(b, (list, dict)) and not isinstance(a, (list, dict)):
        return loose_equals(a, to_primitive(b))
    return a is b


def iterate(value: Any) -> list[Any]:
    """Materialise an iterable script value."""
    if isinstance(value, list):
        return list(value)
    if isinstance(value, str):
        return list(value)
    js_iter = getattr(type(value), "js_iterate", None)
    if js_iter is not None:
        return list(js_iter(value))
    raise ScriptError("TypeError", f"{to_string(value)} is not iterable")


def own_keys(value: Any) -> list[str]:
    if isinstance(value, dict):
        return [k for k in value.keys() if isinstance(k, str)]
    if isinstance(value, (list, str)):
        return [str(i) for i in range(len(value))]
    if isinstance(value, (JSFunction, NativeFunction)):
        return list(value.props)
    return []


def _index(key: str) -> int | None:
    if key.isdigit() and (key == "0" or not key.startswith("0")):
        return int(key)
    return None


# ---------------------------------------------------------------------------
# Interpreter
# ---------------------------------------------------------------------------


class Interpreter:
    """Tree-walking evaluator bound to a closed set of global bindings."""

    def __init__(
        self,
        bindings: Mapping[str, Any],
        limits: Limits | None = None,
        intrinsics: Callable[[Interpreter], Mapping[str, Any]] | None = None,
    ) -> None:
        self.limits = limits or Limits()
        from jsxlive.intrinsics import build_prototypes  # intrinsics imports this module

        self._protos: Prototypes = build_prototypes(self)
        self._steps = 0
        self._depth = 0
        self.global_scope = Scope()
        self.global_scope.declare(_THIS, UNDEFINED)
        self.global_scope.declare(_HOME, None)
        if intrinsics is not None:
            for name, value in intrinsics(self).items():
                self.global_scope.declare(name, value, const=True)
        for name, value in bindings.items():
            self.global_scope.declare(name, value, const=True)
        self._statement_handlers: dict[type, Callable[[Any, Scope], None]] = {
            VariableDeclaration: self._exec_variable_declaration,
            FunctionDeclaration: self._exec_noop,  # hoisted
            ClassDeclaration: self._exec_class_declaration,
            ReturnStatement: self._exec_return,
            IfStatement: self._exec_if,
            BlockStatement: self._exec_block,
            ExpressionStatement: self._exec_expression,
            ForStatement: self._exec_for,
            ForOfStatement: self._exec_for_of,
            WhileStatement: self._exec_while,
            BreakStatement: self._exec_break,
            ContinueStatement: self._exec_continue,
            ThrowStatement: self._exec_throw,
            TryStatement: self._exec_try,
            SwitchStatement: self._exec_switch,
            EmptyStatement: self._exec_noop,
        }
        self._expression_handlers: dict[type, Callable[[Any, Scope], Any]] = {
            Identifier: self._eval_identifier,
            Literal: self._eval_literal,
            TemplateLiteral: self._eval_template,
            ArrayExpression: self._eval_array,
            ObjectExpression: self._eval_object,
            Function: self._eval_function,
            Class: self._eval_class,
            UnaryExpression: self._eval_unary,
            UpdateExpression: self._eval_update,
            BinaryExpression: self._eval_binary,
            LogicalExpression: self._eval_logical,
            AssignmentExpression: self._eval_assignment,
            ConditionalExpression: self._eval_conditional,
            SequenceExpression: self._eval_sequence,
            CallExpression: self._eval_call,
            MemberExpression: self._eval_member,
            ChainExpression: self._eval_chain,
            NewExpression: self._eval_new,
            ThisExpression: self._eval_this,
        }

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def run(self, body: tuple[Statement, ...]) -> Any:
        """Evaluate a statement list as a function body and return its result."""
        self._steps = 0
        scope = Scope(self.global_scope)
        try:
            self._exec_statements(body, scope)
        except _ReturnSignal as ret:
            return ret.value
        except (_BreakSignal, _ContinueSignal):
            raise ScriptError("SyntaxError", "Illegal break or continue statement")
        return UNDEFINED

    def call(self, fn: Any, this: Any, args: list[Any]) -> Any:
        """Invoke any script-callable value."""
        if self._depth == 0:
            self._steps = 0
        if isinstance(fn, JSFunction):
            return self._call_function(fn, this, args)
        if isinstance(fn, BoundFunction):
            return self.call(fn.target, fn.this, [*fn.args, *args])
        if isinstance(fn, JSClass):
            raise ScriptError(
                "TypeError", f"Class constructor {fn.name} cannot be invoked without 'new'"
            )
        if isinstance(fn, NativeClass):
            if fn.callable_without_new:
                return fn.construct(self, args)
            raise ScriptError(
                "TypeError", f"Class constructor {fn.name} cannot be invoked without 'new'"
            )
        if callable(fn):
            try:
                return fn(*args)
            except (TypeError, ValueError, IndexError, KeyError, ZeroDivisionError) as exc:
                # Host function misuse surfaces as a catchable script error
                raise ScriptError("TypeError", str(exc)) from exc
        raise ScriptError("TypeError", f"{to_string(fn)} is not a function")

    def construct(self, callee: Any, args: list[Any]) -> Any:
        if isinstance(callee, JSClass):
            instance = JSObject()
            instance.cls = callee
            self._init_instance(callee, instance, args)
            return instance
        if isinstance(callee, NativeClass):
            return callee.construct(self, args)
        if isinstance(callee, JSFunction) and not callee.node.arrow:
            obj = JSObject()
            result = self._call_function(callee, obj, args)
            return result if isinstance(result, (dict, list)) else obj
        raise ScriptError("TypeError", f"{getattr(callee, 'name', 'value')} is not a constructor")

    # ------------------------------------------------------------------
    # Budgets
    # ------------------------------------------------------------------

    def _tick(self) -> None:
        self._steps += 1
        if self._steps > self.limits.max_steps:
            raise StepLimitExceeded(
                f"Execution exceeded {self.limits.max_steps} steps (possible infinite loop)"
            )

    def _call_function(self, fn: JSFunction, this: Any, args: list[Any]) -> Any:
        if self._depth >= self.limits.max_call_depth:
            raise ScriptError("RangeError", "Maximum call stack size exceeded")
        node = fn.node
        scope = Scope(fn.closure)
        if not node.arrow:
            scope.declare(_THIS, this)
            scope.declare(_HOME, fn.home)
            scope.declare("arguments", list(args))
        for i, param in enumerate(node.params):
            if isinstance(param, RestElement):
                self._bind(param.argument, list(args[i:]), scope, "let")
                break
            value = args[i] if i < len(args) else UNDEFINED
            self._bind(param, value, scope, "let")

        self._depth += 1
        try:
            if isinstance(node.body, BlockStatement):
                try:
                    self._exec_statements(node.body.body, scope)
                except _ReturnSignal as ret:
                    return ret.value
                return UNDEFINED
            return self._eval(node.body, scope)
        finally:
            self._depth -= 1

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _exec_statements(self, body: tuple[Statement, ...], scope: Scope) -> None:
        # Function declarations are hoisted to the top of their block
        for stmt in body:
            if isinstance(stmt, FunctionDeclaration):
                fn = stmt.function
                scope.declare(fn.name or "", JSFunction(fn, scope, self))
        for stmt in body:
            self._exec(stmt, scope)

    def _exec(self, stmt: Statement, scope: Scope) -> None:
        self._tick()
        handler = self._statement_handlers.get(type(stmt))
        if handler is None:
            raise ScriptError("SyntaxError", f"unsupported statement {type(stmt).__name__}")
        handler(stmt, scope)

    def _exec_noop(self, stmt: Any, scope: Scope) -> None:
        pass

    def _exec_variable_declaration(self, stmt: VariableDeclaration, scope: Scope) -> None:
        for decl in stmt.declarations:
            value = UNDEFINED if decl.init is None else self._eval(decl.init, scope)
            if isinstance(decl.target, Identifier):
                self._name_anonymous(value, decl.init, decl.target.name)
            self._bind(decl.target, value, scope, stmt.kind)

    def _name_anonymous(self, value: Any, init: Any, name: str) -> None:
        if isinstance(value, JSFunction) and isinstance(init, Function) and not value.name:
            value.name = name
        elif isinstance(value, JSClass) and isinstance(init, Class) and not value.name:
            value.name = name

    def _exec_class_declaration(self, stmt: ClassDeclaration, scope: Scope) -> None:
        cls = self._eval_class(stmt.cls, scope)
        scope.declare(stmt.cls.name or "", cls)

    def _exec_return(self, stmt: ReturnStatement, scope: Scope) -> None:
        value = UNDEFINED if stmt.argument is None else self._eval(stmt.argument, scope)
        raise _ReturnSignal(value)

    def _exec_if(self, stmt: IfStatement, scope: Scope) -> None:
        if truthy(self._eval(stmt.test, scope)):
            self._exec(stmt.consequent, scope)
        elif stmt.alternate is not None:
            self._exec(stmt.alternate, scope)

    def _exec_block(self, stmt: BlockStatement, scope: Scope) -> None:
        self._exec_statements(stmt.body, Scope(scope))

    def _exec_expression(self, stmt: ExpressionStatement, scope: Scope) -> None:
        self._eval(stmt.expression, scope)

    def _exec_for(self, stmt: ForStatement, scope: Scope) -> None:
        loop_scope = Scope(scope)
        if isinstance(stmt.init, VariableDeclaration):
            self._exec_variable_declaration(stmt.init, loop_scope)
        elif stmt.init is not None:
            self._eval(stmt.init, loop_scope)
        while stmt.test is None or truthy(self._eval(stmt.test, loop_scope)):
            # Fresh per-iteration copy so closures capture the current value
            body_scope = Scope(loop_scope.parent)
            body_scope.vars.update(loop_scope.vars)
            body_scope.consts.update(loop_scope.consts)
            try:
                self._exec(stmt.body, body_scope)
            except _BreakSignal:
                break
            except _ContinueSignal:
                pass
            finally:
                loop_scope.vars.update(body_scope.vars)
            if stmt.update is not None:
                self._eval(stmt.update, loop_scope)

    def _exec_for_of(self, stmt: ForOfStatement, scope: Scope) -> None:
        subject = self._eval(stmt.right, scope)
        if stmt.each == "of":
            items = iterate(subject)
        else:
            items = [] if subject is None or subject is UNDEFINED else own_keys(subject)
        for item in items:
            iter_scope = Scope(scope)
            if isinstance(stmt.left, VariableDeclaration):
                self._bind(stmt.left.declarations[0].target, item, iter_scope, stmt.left.kind)
            else:
                self._bind(stmt.left, item, iter_scope, None)
            try:
                self._exec(stmt.body, iter_scope)
            except _BreakSignal:
                break
            except _ContinueSignal:
                continue

    def _exec_while(self, stmt: WhileStatement, scope: Scope) -> None:
        while truthy(self._eval(stmt.test, scope)):
            try:
                self._exec(stmt.body, scope)
            except _BreakSignal:
                break
            except _ContinueSignal:
                continue

    def _exec_break(self, stmt: BreakStatement, scope: Scope) -> None:
        raise _BreakSignal()

    def _exec_continue(self, stmt: ContinueStatement, scope: Scope) -> None:
        raise _ContinueSignal()

    def _exec_throw(self, stmt: ThrowStatement, scope: Scope) -> None:
        raise JSThrow(self._eval(stmt.argument, scope))

    def _exec_try(self, stmt: TryStatement, scope: Scope) -> None:
        try:
            self._exec_block(stmt.block, scope)
        except (ScriptError, JSThrow) as exc:
            if stmt.handler is None:
                raise
            catch_scope = Scope(scope)
            if stmt.param is not None:
                self._bind(stmt.param, self._thrown_value(exc), catch_scope, "let")
            self._exec_statements(stmt.handler.body, catch_scope)
        finally:
            if stmt.finalizer is not None:
                self._exec_block(stmt.finalizer, scope)

    def _thrown_value(self, exc: ScriptError | JSThrow) -> Any:
        if isinstance(exc, JSThrow):
            return exc.value
        error_cls = self.global_scope.vars.get(exc.name)
        if isinstance(error_cls, NativeClass):
            return error_cls.construct(self, [exc.message])
        obj = JSObject(name=exc.name, message=exc.message)
        return obj

    def _exec_switch(self, stmt: SwitchStatement, scope: Scope) -> None:
        value = self._eval(stmt.discriminant, scope)
        switch_scope = Scope(scope)
        matched = False
        try:
            for case in stmt.cases:
                if not matched and case.test is not None:
                    matched = strict_equals(value, self._eval(case.test, switch_scope))
                if matched:
                    self._exec_statements(case.body, switch_scope)
            if not matched:
                seen_default = False
                for case in stmt.cases:
                    if case.test is None:
                        seen_default = True
                    if seen_default:
                        self._exec_statements(case.body, switch_scope)
        except _BreakSignal:
            pass

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------

    def _bind(self, target: Any, value: Any, scope: Scope, kind: str | None) -> None:
        """Bind (kind set) or assign (kind None) value to a pattern."""
        if isinstance(target, Identifier):
            if kind is None:
                scope.assign(target.name, value)
            else:
                scope.declare(target.name, value, const=kind == "const")
        elif isinstance(target, MemberExpression):
            obj = self._eval(target.object, scope)
            self.set_member(obj, self._member_key(target, scope), value)
        elif isinstance(target, AssignmentPattern):
            if value is UNDEFINED:
                value = self._eval(target.default, scope)
                if isinstance(target.target, Identifier):
                    self._name_anonymous(value, target.default, target.target.name)
            self._bind(target.target, value, scope, kind)
        elif isinstance(target, ArrayPattern):
            items = iterate(value)
            for i, element in enumerate(target.elements):
                if element is None:
                    continue
                if isinstance(element, RestElement):
                    self._bind(element.argument, items[i:], scope, kind)
                    break
                self._bind(element, items[i] if i < len(items) else UNDEFINED, scope, kind)
        elif isinstance(target, ObjectPattern):
            if value is None or value is UNDEFINED:
                raise ScriptError(
                    "TypeError",
                    f"Cannot destructure '{to_string(value)}' as it is {to_string(value)}.",
                )
            used: list[str] = []
            for prop in target.properties:
                if isinstance(prop, RestElement):
                    rest = JSObject(
                        (k, self.get_member(value, k)) for k in own_keys(value) if k not in used
                    )
                    self._bind(prop.argument, rest, scope, kind)
                    break
                key = self._pattern_key(prop, scope)
                used.append(key)
                self._bind(prop.value, self.get_member(value, key), scope, kind)
        elif isinstance(target, RestElement):
            self._bind(target.argument, value, scope, kind)
        else:
            raise ScriptError("SyntaxError", "invalid assignment target")

    def _pattern_key(self, prop: PatternProperty, scope: Scope) -> str:
        if prop.computed:
            return to_property_key(self._eval(prop.key, scope))
        if isinstance(prop.key, Identifier):
            return prop.key.name
        return to_property_key(prop.key.value)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _eval(self, node: Any, scope: Scope) -> Any:
        self._tick()
        handler = self._expression_handlers.get(type(node))
        if handler is None:
            raise ScriptError("SyntaxError", f"unsupported expression {type(node).__name__}")
        return handler(node, scope)

    def _eval_identifier(self, node: Identifier, scope: Scope) -> Any:
        if node.name == "undefined" and not scope.has("undefined"):
            return UNDEFINED
        return scope.lookup(node.name)

    def _eval_literal(self, node: Literal, scope: Scope) -> Any:
        return node.value

    def _eval_template(self, node: TemplateLiteral, scope: Scope) -> str:
        parts = [node.quasis[0]]
        for expr, quasi in zip(node.expressions, node.quasis[1:]):
            parts.append(to_string(self._eval(expr, scope)))
            parts.append(quasi)
        return "".join(parts)

    def _eval_array(self, node: ArrayExpression, scope: Scope) -> list[Any]:
        result: list[Any] = []
        for element in node.elements:
            if element is None:
                result.append(UNDEFINED)
            elif isinstance(element, SpreadElement):
                result.extend(iterate(self._eval(element.argument, scope)))
            else:
                result.append(self._eval(element, scope))
        return result

    def _eval_object(self, node: ObjectExpression, scope: Scope) -> JSObject:
        obj = JSObject()
        for prop in node.properties:
            if isinstance(prop, SpreadElement):
                source = self._eval(prop.argument, scope)
                if source is None or source is UNDEFINED:
                    continue
                for key in own_keys(source):
                    obj[key] = self.get_member(source, key)
                continue
            if prop.computed:
                key = to_property_key(self._eval(prop.key, scope))
            elif isinstance(prop.key, Identifier):
                key = prop.key.name
            else:
                key = to_property_key(prop.key.value)
            value = self._eval(prop.value, scope)
            self._name_anonymous(value, prop.value, key)
            obj[key] = value
        return obj

    def _eval_function(self, node: Function, scope: Scope) -> JSFunction:
        return JSFunction(node, scope, self)

    def _eval_class(self, node: Class, scope: Scope) -> JSClass:
        superclass = None
        if node.superclass is not None:
            superclass = self._eval(node.superclass, scope)
            if not isinstance(superclass, (JSClass, NativeClass)):
                raise ScriptError(
                    "TypeError",
                    f"Class extends value {to_string(superclass)} is not a constructor or null",
                )
        cls = JSClass(node.name or "", superclass, self)
        class_scope = Scope(scope)
        if node.name:
            class_scope.declare(node.name, cls, const=True)
        for member in node.members:
            if member.kind == "constructor":
                cls.constructor = JSFunction(member.value, class_scope, self, node.name, cls)
            elif member.kind == "method":
                fn = JSFunction(member.value, class_scope, self, member.name, cls)
                (cls.statics if member.static else cls.methods)[member.name] = fn
            elif member.static:
                static_scope = Scope(class_scope)
                static_scope.declare(_THIS, cls)
                static_scope.declare(_HOME, cls)
                value = UNDEFINED
                if member.value is not None:
                    value = self._eval(member.value, static_scope)
                cls.statics[member.name] = value
            else:
                cls.fields.append((member.name, member.value, class_scope))
        return cls

    def _init_instance(self, cls: JSClass, instance: JSObject, args: list[Any]) -> None:
        if cls.constructor is not None:
            if cls.superclass is None:
                self._init_fields(cls, instance)
            self._call_function(cls.constructor, instance, args)
            return
        if isinstance(cls.superclass, JSClass):
            self._init_instance(cls.superclass, instance, args)
        elif isinstance(cls.superclass, NativeClass):
            cls.superclass.init(self, instance, args)
        self._init_fields(cls, instance)

    def _init_fields(self, cls: JSClass, instance: JSObject) -> None:
        for name, value_node, class_scope in cls.fields:
            field_scope = Scope(class_scope)
            field_scope.declare(_THIS, instance)
            field_scope.declare(_HOME, cls)
            value = UNDEFINED if value_node is None else self._eval(value_node, field_scope)
            self._name_anonymous(value, value_node, name)
            instance[name] = value

    def _eval_unary(self, node: UnaryExpression, scope: Scope) -> Any:
        op = node.operator
        if op == "typeof":
            if isinstance(node.argument, Identifier) and not scope.has(node.argument.name):
                return "undefined"
            return js_typeof(self._eval(node.argument, scope))
        if op == "delete":
            if isinstance(node.argument, MemberExpression):
                obj = self._eval(node.argument.object, scope)
                key = self._member_key(node.argument, scope)
                if isinstance(obj, dict):
                    obj.pop(key, None)
            return True
        value = self._eval(node.argument, scope)
        if op == "!":
            return not truthy(value)
        if op == "-":
            return normalize_number(-to_number(value))
        if op == "+":
            return to_number(value)
        if op == "~":
            return ~to_int32(value)
        if op == "void":
            return UNDEFINED
        raise ScriptError("SyntaxError", f"unknown unary operator {op}")

    def _eval_update(self, node: UpdateExpression, scope: Scope) -> Any:
        old = to_number(self._eval(node.argument, scope))
        new = normalize_number(old + 1 if node.operator == "++" else old - 1)
        self._bind(node.argument, new, scope, None)
        return new if node.prefix else old

    def _eval_binary(self, node: BinaryExpression, scope: Scope) -> Any:
        left = self._eval(node.left, scope)
        right = self._eval(node.right, scope)
        return self.binary_op(node.operator, left, right)

    def binary_op(self, op: str, left: Any, right: Any) -> Any:
        if op == "+":
            left, right = to_primitive(left), to_primitive(right)
            if isinstance(left, str) or isinstance(right, str):
                return to_string(left) + to_string(right)
            return normalize_number(to_number(left) + to_number(right))
        if op in _ARITHMETIC:
            return _arithmetic(op, to_number(left), to_number(right))
        if op == "===":
            return strict_equals(left, right)
        if op == "!==":
            return not strict_equals(left, right)
        if op == "==":
            return loose_equals(left, right)
        if op == "!=":
            return not loose_equals(left, right)
        if op in ("<", ">", "<=", ">="):
            return _compare(op, to_primitive(left), to_primitive(right))
        if op in _BITWISE:
            return _bitwise(op, left, right)
        if op == "in":
            if not isinstance(right, (dict, list, JSFunction, NativeFunction)):
                raise ScriptError("TypeError", "Cannot use 'in' operator to search for a key")
            return to_property_key(left) in own_keys(right)
        if op == "instanceof":
            return self.instance_of(left, right)
        raise ScriptError("SyntaxError", f"unknown operator {op}")

    def instance_of(self, value: Any, cls: Any) -> bool:
        if isinstance(cls, NativeFunction) and cls.instance_check is not None:
            return cls.instance_check(value)
        if not isinstance(cls, (JSClass, NativeClass, JSFunction, NativeFunction)):
            raise ScriptError("TypeError", "Right-hand side of 'instanceof' is not callable")
        own = getattr(value, "cls", None)
        while own is not None:
            if own is cls:
                return True
            own = own.superclass
        return False

    def _eval_logical(self, node: LogicalExpression, scope: Scope) -> Any:
        left = self._eval(node.left, scope)
        if node.operator == "&&":
            return self._eval(node.right, scope) if truthy(left) else left
        if node.operator == "||":
            return left if truthy(left) else self._eval(node.right, scope)
        return self._eval(node.right, scope) if left is None or left is UNDEFINED else left

    def _eval_assignment(self, node: AssignmentExpression, scope: Scope) -> Any:
        op = node.operator
        if op == "=":
            value = self._eval(node.value, scope)
            if isinstance(node.target, Identifier):
                self._name_anonymous(value, node.value, node.target.name)
            self._bind(node.target, value, scope, None)
            return value
        current = self._eval(node.target, scope)
        if op in ("&&=", "||=", "??="):
            if op == "&&=" and not truthy(current):
                return current
            if op == "||=" and truthy(current):
                return current
            if op == "??=" and current is not None and current is not UNDEFINED:
                return current
            value = self._eval(node.value, scope)
        else:
            value = self.binary_op(op[:-1], current, self._eval(node.value, scope))
        self._bind(node.target, value, scope, None)
        return value

    def _eval_conditional(self, node: ConditionalExpression, scope: Scope) -> Any:
        if truthy(self._eval(node.test, scope)):
            return self._eval(node.consequent, scope)
        return self._eval(node.alternate, scope)

    def _eval_sequence(self, node: SequenceExpression, scope: Scope) -> Any:
        value = UNDEFINED
        for expr in node.expressions:
            value = self._eval(expr, scope)
        return value

    def _eval_arguments(self, args: tuple[Any, ...], scope: Scope) -> list[Any]:
        values: list[Any] = []
        for arg in args:
            if isinstance(arg, SpreadElement):
                values.extend(iterate(self._eval(arg.argument, scope)))
            else:
                values.append(self._eval(arg, scope))
        return values

    def _eval_call(self, node: CallExpression, scope: Scope) -> Any:
        callee = node.callee
        if isinstance(callee, Super):
            return self._call_super(node, scope)
        if isinstance(callee, MemberExpression):
            if isinstance(callee.object, Super):
                this = scope.lookup(_THIS)
                fn = self._super_member(callee, scope)
            else:
                this = self._eval(callee.object, scope)
                if callee.optional and (this is None or this is UNDEFINED):
                    raise _ShortCircuit()
                fn = self.get_member(this, self._member_key(callee, scope))
        else:
            this = UNDEFINED
            fn = self._eval(callee, scope)
        if node.optional and (fn is None or fn is UNDEFINED):
            raise _ShortCircuit()
        args = self._eval_arguments(node.arguments, scope)
        if not callable(fn) and not isinstance(fn, (JSClass, NativeClass)):
            raise ScriptError("TypeError", f"{_describe_callee(callee)} is not a function")
        return self.call(fn, this, args)

    def _call_super(self, node: CallExpression, scope: Scope) -> Any:
        home = scope.lookup(_HOME)
        this = scope.lookup(_THIS)
        if not isinstance(home, JSClass) or home.superclass is None:
            raise ScriptError("SyntaxError", "'super' keyword unexpected here")
        args = self._eval_arguments(node.arguments, scope)
        parent = home.superclass
        if isinstance(parent, JSClass):
            self._init_instance(parent, this, args)
        else:
            parent.init(self, this, args)
        self._init_fields(home, this)
        return UNDEFINED

    def _super_member(self, node: MemberExpression, scope: Scope) -> Any:
        home = scope.lookup(_HOME)
        if not isinstance(home, JSClass) or home.superclass is None:
            raise ScriptError("SyntaxError", "'super' keyword unexpected here")
        key = self._member_key(node, scope)
        found = _class_member(home.superclass, key)
        if found is None:
            return UNDEFINED
        if isinstance(found, JSFunction):
            return found
        return partial(found, scope.lookup(_THIS))

    def _eval_member(self, node: MemberExpression, scope: Scope) -> Any:
        if isinstance(node.object, Super):
            return self._super_member(node, scope)
        obj = self._eval(node.object, scope)
        if node.optional and (obj is None or obj is UNDEFINED):
            raise _ShortCircuit()
        return self.get_member(obj, self._member_key(node, scope))

    def _member_key(self, node: MemberExpression, scope: Scope) -> str:
        if node.computed:
            return to_property_key(self._eval(node.property, scope))
        return node.property.name

    def _eval_chain(self, node: ChainExpression, scope: Scope) -> Any:
        try:
            return self._eval(node.expression, scope)
        except _ShortCircuit:
            return UNDEFINED

    def _eval_new(self, node: NewExpression, scope: Scope) -> Any:
        callee = self._eval(node.callee, scope)
        args = self._eval_arguments(node.arguments, scope)
        if isinstance(callee, NativeFunction) and "%construct" in callee.props:
            return callee.props["%construct"](*args)
        return self.construct(callee, args)

    def _eval_this(self, node: ThisExpression, scope: Scope) -> Any:
        return scope.lookup(_THIS)

    # ------------------------------------------------------------------
    # Property access
    # ------------------------------------------------------------------

    def get_member(self, obj: Any, key: str) -> Any:
        if obj is None or obj is UNDEFINED:
            raise ScriptError(
                "TypeError", f"Cannot read properties of {to_string(obj)} (reading '{key}')"
            )
        if isinstance(obj, dict):
            if key in obj:
                return obj[key]
            cls = getattr(obj, "cls", None)
            if cls is not None:
                found = _class_member(cls, key)
                if found is not None:
                    return found if isinstance(found, JSFunction) else partial(found, obj)
            method = self._protos.object.get(key)
            return partial(method, obj) if method is not None else UNDEFINED
        if isinstance(obj, list):
            if key == "length":
                return len(obj)
            idx = _index(key)
            if idx is not None:
                return obj[idx] if idx < len(obj) else UNDEFINED
            method = self._protos.array.get(key)
            return partial(method, obj) if method is not None else UNDEFINED
        if isinstance(obj, str):
            if key == "length":
                return len(obj)
            idx = _index(key)
            if idx is not None:
                return obj[idx] if idx < len(obj) else UNDEFINED
            method = self._protos.string.get(key)
            return partial(method, obj) if method is not None else UNDEFINED
        if isinstance(obj, bool):
            method = self._protos.boolean.get(key)
            return partial(method, obj) if method is not None else UNDEFINED
        if is_number(obj):
            method = self._protos.number.get(key)
            return partial(method, obj) if method is not None else UNDEFINED
        if isinstance(obj, (JSClass, NativeClass)):
            if key == "name":
                return obj.name
            cls: Any = obj
            while cls is not None:
                if key in cls.statics:
                    return cls.statics[key]
                cls = cls.superclass
            return UNDEFINED
        js_get = getattr(type(obj), "js_get", None)
        if js_get is not None:
            return js_get(obj, key)
        if callable(obj):
            props = getattr(obj, "props", None)
            if isinstance(props, dict) and key in props:
                return props[key]
            if key == "name":
                return getattr(obj, "name", "")
            if key == "length" and isinstance(obj, JSFunction):
                optional = (RestElement, AssignmentPattern)
                return sum(1 for p in obj.node.params if not isinstance(p, optional))
            method = self._protos.function.get(key)
            return partial(method, obj) if method is not None else UNDEFINED
        return UNDEFINED

    def set_member(self, obj: Any, key: str, value: Any) -> None:
        if obj is None or obj is UNDEFINED:
            raise ScriptError(
                "TypeError", f"Cannot set properties of {to_string(obj)} (setting '{key}')"
            )
        if isinstance(obj, dict):
            obj[key] = value
            return
        if isinstance(obj, list):
            if key == "length":
                length = to_number(value)
                if not isinstance(length, int) or length < 0:
                    raise ScriptError("RangeError", "Invalid array length")
                del obj[length:]
                return
            idx = _index(key)
            if idx is None:
                raise ScriptError("TypeError", f"Cannot set property '{key}' on an array")
            while len(obj) <= idx:
                obj.append(UNDEFINED)
            obj[idx] = value
            return
        if isinstance(obj, (NativeClass, NativeFunction)) and obj.read_only:
            raise ScriptError(
                "TypeError", f"Cannot assign to read only property '{key}' of function '{obj.name}'"
            )
        if isinstance(obj, (JSClass, NativeClass)):
            obj.statics[key] = value
            return
        if isinstance(obj, (JSFunction, NativeFunction)):
            obj.props[key] = value
            return
        js_set = getattr(type(obj), "js_set", None)
        if js_set is not None:
            js_set(obj, key, value)
            return
        if isinstance(obj, (str, int, float, bool)):
            return
        raise ScriptError("TypeError", f"Cannot set property '{key}' of {to_string(obj)}")


@dataclass
class Prototypes:
    """Built-in methods looked up on primitive values, arrays and objects."""

    object: dict[str, Callable[..., Any]] = field(default_factory=dict)
    array: dict[str, Callable[..., Any]] = field(default_factory=dict)
    string: dict[str, Callable[..., Any]] = field(default_factory=dict)
    number: dict[str, Callable[..., Any]] = field(default_factory=dict)
    boolean: dict[str, Callable[..., Any]] = field(default_factory=dict)
    function: dict[str, Callable[..., Any]] = field(default_factory=dict)


def _class_member(cls: Any, key: str) -> Any:
    while cls is not None:
        if key in cls.methods:
            return cls.methods[key]
        cls = cls.superclass
    return None


def _describe_callee(node: Any) -> str:
    if isinstance(node, Identifier):
        return node.name
    if isinstance(node, MemberExpression) and not node.computed:
        return f"{_describe_callee(node.object)}.{node.property.name}"
    return "expression"


_ARITHMETIC = frozenset({"-", "*", "/", "%", "**"})
_BITWISE = frozenset({"&", "|", "^", "<<", ">>", ">>>"})


def _arithmetic(op: str, a: int | float, b: int | float) -> int | float:
    if op == "-":
        return normalize_number(a - b)
    if op == "*":
        try:
            return normalize_number(a * b)
        except OverflowError:
            return math.inf
    if op == "/":
        if b == 0:
            if a == 0 or (isinstance(a, float) and math.isnan(a)):
                return math.nan
            sign = math.copysign(1, a) * math.copysign(1, b)
            return math.inf if sign > 0 else -math.inf
        return normalize_number(a / b)
    if op == "%":
        if b == 0 or (isinstance(a, float) and math.isinf(a)):
            return math.nan
        if isinstance(b, float) and math.isinf(b):
            return a
        return normalize_number(math.fmod(a, b))
    try:
        if isinstance(b, float) or not 0 <= b <= 1024:
            result = float(a) ** b
        else:
            result = a**b
    except (OverflowError, ZeroDivisionError):
        return -math.inf if a < 0 and b % 2 == 1 else math.inf
    except (ValueError, TypeError):
        return math.nan
    # A negative base with a fractional exponent has no real result
    if isinstance(result, complex):
        return math.nan
    return normalize_number(result)


def _compare(op: str, a: Any, b: Any) -> bool:
    if not (isinstance(a, str) and isinstance(b, str)):
        a, b = to_number(a), to_number(b)
        if (isinstance(a, float) and math.isnan(a)) or (isinstance(b, float) and math.isnan(b)):
            return False
    if op == "<":
        return a < b
    if op == ">":
        return a > b
    if op == "<=":
        return a <= b
    return a >= b


def _bitwise(op: str, left: Any, right: Any) -> int:
    a = to_int32(left)
    if op == ">>>":
        return (a & 0xFFFFFFFF) >> (to_int32(right) & 31)
    b = to_int32(right)
    if op == "&":
        result = a & b
    elif op == "|":
        result = a | b
    elif op == "^":
        result = a ^ b
    elif op == "<<":
        result = a << (b & 31)
    else:
        result = a >> (b & 31)
    return to_int32(result)

