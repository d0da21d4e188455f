"""Component primitives — element factory, hooks, context and class bases.

These are the host capabilities injected into every sandbox run, both as
bare names (``useState``) and through the ``React`` namespace object.  Hook
state lives in the renderer; a hook reaches it through the render frame
installed in :data:`current_frame` while a component function runs.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Mapping
from contextvars import ContextVar
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Protocol

from jsxlive.interpreter import (
    UNDEFINED,
    Interpreter,
    JSClass,
    JSFunction,
    JSObject,
    NativeClass,
    NativeFunction,
    ScriptError,
    is_callable,
    strict_equals,
    to_string,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Element types
# ---------------------------------------------------------------------------


class _HostType:
    """Base for special element types; exposes a small property bag to scripts."""

    kind = "host"

    def __init__(self) -> None:
        self.props: dict[str, Any] = {}
        self.read_only = False

    def js_get(self, key: str) -> Any:
        return self.props.get(key, UNDEFINED)

    def js_set(self, key: str, value: Any) -> None:
        if self.read_only:
            raise ScriptError("TypeError", f"Cannot assign to read only property '{key}'")
        self.props[key] = value

    def js_string(self) -> str:
        return f"Symbol(react.{self.kind})"


class FragmentType(_HostType):
    kind = "fragment"


FRAGMENT = FragmentType()
FRAGMENT.read_only = True


class Context(_HostType):
    """Value created by ``createContext``."""

    kind = "context"

    def __init__(self, default: Any) -> None:
        super().__init__()
        self.default = default
        self.props["Provider"] = ProviderType(self)
        self.props["Consumer"] = ConsumerType(self)


class ProviderType(_HostType):
    kind = "provider"

    def __init__(self, context: Context) -> None:
        super().__init__()
        self.context = context


class ConsumerType(_HostType):
    kind = "consumer"

    def __init__(self, context: Context) -> None:
        super().__init__()
        self.context = context


class MemoType(_HostType):
    kind = "memo"

    def __init__(self, inner: Any, compare: Any) -> None:
        super().__init__()
        self.inner = inner
        self.compare = compare
        self.props["type"] = inner


class ForwardRefType(_HostType):
    kind = "forward_ref"

    def __init__(self, render: Any) -> None:
        super().__init__()
        self.render = render
        self.props["render"] = render


@dataclass(frozen=True, slots=True)
class VElement:
    """Immutable element description produced by ``createElement``.

    ``props["children"]`` follows the usual convention: absent for no
    children, the child itself for one, a list for several.
    """

    type: Any
    props: JSObject
    key: str | None = None
    ref: Any = None

    def js_get(self, key: str) -> Any:
        if key == "type":
            return self.type
        if key == "props":
            return self.props
        if key == "key":
            return self.key
        if key == "ref":
            return self.ref
        return UNDEFINED

    def js_string(self) -> str:
        return "[object Object]"

    @property
    def children(self) -> list[Any]:
        kids = self.props.get("children", UNDEFINED)
        if kids is UNDEFINED:
            return []
        return list(kids) if isinstance(kids, list) else [kids]


def _default_props(component: Any) -> Any:
    if isinstance(component, (JSFunction, NativeFunction)):
        return component.props.get("defaultProps", UNDEFINED)
    if isinstance(component, (JSClass, NativeClass)):
        cls: Any = component
        while cls is not None:
            if "defaultProps" in cls.statics:
                return cls.statics["defaultProps"]
            cls = cls.superclass
    if isinstance(component, _HostType):
        return component.props.get("defaultProps", UNDEFINED)
    return UNDEFINED


def create_element(type_: Any = UNDEFINED, config: Any = None, *children: Any) -> VElement:
    props = JSObject()
    key: str | None = None
    ref: Any = None
    if isinstance(config, dict):
        for name, value in config.items():
            if name == "key":
                key = None if value is None or value is UNDEFINED else to_string(value)
            elif name == "ref":
                ref = value
            else:
                props[name] = value
    if len(children) == 1:
        props["children"] = children[0]
    elif children:
        props["children"] = list(children)
    defaults = _default_props(type_)
    if isinstance(defaults, dict):
        for name, value in defaults.items():
            if props.get(name, UNDEFINED) is UNDEFINED:
                props[name] = value
    return VElement(type_, props, key, ref)


def clone_element(element: Any = UNDEFINED, config: Any = None, *children: Any) -> VElement:
    if not isinstance(element, VElement):
        raise ScriptError("TypeError", "cloneElement expects an element")
    props = JSObject(element.props)
    key, ref = element.key, element.ref
    if isinstance(config, dict):
        for name, value in config.items():
            if name == "key":
                key = None if value is None or value is UNDEFINED else to_string(value)
            elif name == "ref":
                ref = value
            else:
                props[name] = value
    if len(children) == 1:
        props["children"] = children[0]
    elif children:
        props["children"] = list(children)
    return VElement(element.type, props, key, ref)


def flatten_children(children: Any) -> list[Any]:
    """Children as a flat list, dropping holes (null, undefined, booleans)."""
    out: list[Any] = []
    if isinstance(children, list):
        for child in children:
            out.extend(flatten_children(child))
    elif children is None or children is UNDEFINED or isinstance(children, bool):
        pass
    else:
        out.append(children)
    return out


def _make_children() -> JSObject:
    def only(children: Any = UNDEFINED, *args: Any) -> Any:
        if not isinstance(children, VElement):
            raise ScriptError(
                "Error", "React.Children.only expected to receive a single element child."
            )
        return children

    def for_each(children: Any = UNDEFINED, fn: Any = UNDEFINED, *args: Any) -> Any:
        for i, child in enumerate(flatten_children(children)):
            fn(child, i)
        return UNDEFINED

    children = JSObject(
        map=NativeFunction(
            "map",
            lambda children=UNDEFINED, fn=UNDEFINED, *a: [
                fn(child, i) for i, child in enumerate(flatten_children(children))
            ],
        ),
        forEach=NativeFunction("forEach", for_each),
        count=NativeFunction(
            "count", lambda children=UNDEFINED, *a: len(flatten_children(children))
        ),
        toArray=NativeFunction(
            "toArray", lambda children=UNDEFINED, *a: flatten_children(children)
        ),
        only=NativeFunction("only", only),
    )
    for fn in children.values():
        fn.read_only = True
    return children


# ---------------------------------------------------------------------------
# Hooks
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class HookSlot:
    """Per-component storage for one hook call site."""

    kind: str
    value: Any = UNDEFINED
    deps: list[Any] | None = None
    effect: Any = None
    cleanup: Any = UNDEFINED
    layout: bool = False
    reducer: Any = None
    extra: dict[str, Any] = field(default_factory=dict)


class RenderFrame(Protocol):
    """What hooks need from the renderer while a component function runs."""

    def next_hook(self, kind: str, create: Callable[[], HookSlot]) -> HookSlot: ...

    def schedule_update(self) -> None: ...

    def queue_effect(self, slot: HookSlot) -> None: ...

    def read_context(self, context: Context) -> Any: ...


current_frame: ContextVar[RenderFrame | None] = ContextVar("current_frame", default=None)


def _frame() -> RenderFrame:
    frame = current_frame.get()
    if frame is None:
        raise ScriptError(
            "Error",
            "Invalid hook call. Hooks can only be called"
            " inside of the body of a function component.",
        )
    return frame


def same_value(a: Any, b: Any) -> bool:
    """``Object.is`` equality used for state bail-outs and dependency lists."""
    if isinstance(a, float) and isinstance(b, float) and math.isnan(a) and math.isnan(b):
        return True
    return strict_equals(a, b)


def deps_changed(previous: list[Any] | None, deps: Any) -> bool:
    if previous is None or not isinstance(deps, list):
        return True
    if len(previous) != len(deps):
        return True
    return any(not same_value(a, b) for a, b in zip(previous, deps))


def use_state(initial: Any = UNDEFINED, *args: Any) -> list[Any]:
    frame = _frame()

    def create() -> HookSlot:
        slot = HookSlot("state", initial() if is_callable(initial) else initial)
        schedule = frame.schedule_update

        def set_state(action: Any = UNDEFINED, *rest: Any) -> Any:
            value = action(slot.value) if is_callable(action) else action
            if not same_value(value, slot.value):
                slot.value = value
                schedule()
            return UNDEFINED

        slot.extra["setter"] = NativeFunction("setState", set_state)
        return slot

    slot = frame.next_hook("state", create)
    return [slot.value, slot.extra["setter"]]


def use_reducer(
    reducer: Any = UNDEFINED, initial: Any = UNDEFINED, init: Any = UNDEFINED, *args: Any
) -> list[Any]:
    frame = _frame()

    def create() -> HookSlot:
        value = init(initial) if is_callable(init) else initial
        slot = HookSlot("reducer", value)
        schedule = frame.schedule_update

        def dispatch(action: Any = UNDEFINED, *rest: Any) -> Any:
            value = slot.reducer(slot.value, action)
            if not same_value(value, slot.value):
                slot.value = value
                schedule()
            return UNDEFINED

        slot.extra["dispatch"] = NativeFunction("dispatch", dispatch)
        return slot

    slot = frame.next_hook("reducer", create)
    slot.reducer = reducer
    return [slot.value, slot.extra["dispatch"]]


def _use_effect(effect: Any, deps: Any, layout: bool) -> Any:
    frame = _frame()
    slot = frame.next_hook("effect", lambda: HookSlot("effect", layout=layout))
    if not is_callable(effect):
        raise ScriptError("TypeError", "useEffect expects a function")
    if deps_changed(slot.deps, deps) or slot.effect is None:
        slot.effect = effect
        slot.deps = list(deps) if isinstance(deps, list) else None
        frame.queue_effect(slot)
    return UNDEFINED


def use_effect(effect: Any = UNDEFINED, deps: Any = UNDEFINED, *args: Any) -> Any:
    return _use_effect(effect, deps, layout=False)


def use_layout_effect(effect: Any = UNDEFINED, deps: Any = UNDEFINED, *args: Any) -> Any:
    return _use_effect(effect, deps, layout=True)


def use_ref(initial: Any = UNDEFINED, *args: Any) -> JSObject:
    slot = _frame().next_hook("ref", lambda: HookSlot("ref", JSObject(current=initial)))
    return slot.value


def use_memo(factory: Any = UNDEFINED, deps: Any = UNDEFINED, *args: Any) -> Any:
    slot = _frame().next_hook("memo", lambda: HookSlot("memo"))
    if deps_changed(slot.deps, deps):
        slot.value = factory()
        slot.deps = list(deps) if isinstance(deps, list) else None
    return slot.value


def use_callback(callback: Any = UNDEFINED, deps: Any = UNDEFINED, *args: Any) -> Any:
    slot = _frame().next_hook("callback", lambda: HookSlot("callback"))
    if deps_changed(slot.deps, deps):
        slot.value = callback
        slot.deps = list(deps) if isinstance(deps, list) else None
    return slot.value


def use_context(context: Any = UNDEFINED, *args: Any) -> Any:
    if not isinstance(context, Context):
        raise ScriptError("TypeError", "useContext expects a context object")
    return _frame().read_context(context)


def create_context(default: Any = UNDEFINED, *args: Any) -> Context:
    return Context(default)


def memo(component: Any = UNDEFINED, compare: Any = UNDEFINED, *args: Any) -> MemoType:
    return MemoType(component, compare)


def forward_ref(render: Any = UNDEFINED, *args: Any) -> ForwardRefType:
    if not is_callable(render):
        raise ScriptError("TypeError", "forwardRef requires a render function")
    return ForwardRefType(render)


# ---------------------------------------------------------------------------
# Class components
# ---------------------------------------------------------------------------


class ComponentClass(NativeClass):
    """Base class scripts extend for class components.

    The renderer stores an updater callable in ``instance.host``; until then
    ``setState`` only logs a warning, matching an unmounted component.
    """

    name = "Component"

    def __init__(self, name: str = "Component", superclass: NativeClass | None = None) -> None:
        super().__init__()
        self.name = name
        self.superclass = superclass
        self.methods["setState"] = self._set_state
        self.methods["forceUpdate"] = self._force_update

    def init(self, interpreter: Interpreter, this: JSObject, args: list[Any]) -> None:
        props = args[0] if args else UNDEFINED
        this["props"] = props if isinstance(props, dict) else JSObject()
        this["context"] = args[1] if len(args) > 1 else UNDEFINED
        this["refs"] = JSObject()

    @staticmethod
    def _set_state(
        this: JSObject, partial: Any = UNDEFINED, callback: Any = UNDEFINED, *args: Any
    ) -> Any:
        if this.host is None:
            logger.warning("setState called on an unmounted component")
            return UNDEFINED
        this.host(partial, callback)
        return UNDEFINED

    @staticmethod
    def _force_update(this: JSObject, callback: Any = UNDEFINED, *args: Any) -> Any:
        if this.host is None:
            logger.warning("forceUpdate called on an unmounted component")
            return UNDEFINED
        this.host(None, callback)
        return UNDEFINED


COMPONENT = ComponentClass()
PURE_COMPONENT = ComponentClass("PureComponent", COMPONENT)
COMPONENT.read_only = PURE_COMPONENT.read_only = True


def is_class_component(value: Any) -> bool:
    return isinstance(value, JSClass) and value.is_subclass_of(COMPONENT)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


def _make_primitives() -> dict[str, Any]:
    defs: dict[str, Any] = {}

    def d(name: str, fn: Callable[..., Any]) -> None:
        defs[name] = NativeFunction(name, fn, read_only=True)

    # Elements
    d("createElement", create_element)
    d("cloneElement", clone_element)
    d("isValidElement", lambda value=UNDEFINED, *a: isinstance(value, VElement))
    defs["Fragment"] = FRAGMENT
    defs["Children"] = _make_children()

    # Hooks
    d("useState", use_state)
    d("useReducer", use_reducer)
    d("useEffect", use_effect)
    d("useLayoutEffect", use_layout_effect)
    d("useRef", use_ref)
    d("useMemo", use_memo)
    d("useCallback", use_callback)
    d("useContext", use_context)

    # Composition
    d("createContext", create_context)
    d("memo", memo)
    d("forwardRef", forward_ref)
    defs["Component"] = COMPONENT
    defs["PureComponent"] = PURE_COMPONENT

    defs["React"] = JSObject(defs)
    return defs


PRIMITIVES: Mapping[str, Any] = MappingProxyType(_make_primitives())
