"""Renderer — mounts a component into the DOM model and serializes HTML.

Each render rebuilds the container's children from scratch.  Hook state is
kept per component instance, identified by its position in the element tree
(keys replace indexes where given) together with its type; an instance whose
position or type disappears is unmounted and its effect cleanups run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from jsxlive.dom import Element, Node, TextNode
from jsxlive.errors import ComponentRuntimeError
from jsxlive.interpreter import (
    UNDEFINED,
    JSClass,
    JSObject,
    JSThrow,
    NativeFunction,
    ScriptError,
    is_callable,
    is_number,
    to_string,
)
from jsxlive.intrinsics import TimerQueue
from jsxlive.primitives import (
    ConsumerType,
    Context,
    ForwardRefType,
    FragmentType,
    HookSlot,
    MemoType,
    ProviderType,
    VElement,
    create_element,
    current_frame,
    is_class_component,
)
from jsxlive.sandbox import thrown_message
from jsxlive.strings import kebab_case

logger = logging.getLogger(__name__)

MAX_RENDERS_PER_FLUSH = 25

VOID_ELEMENTS = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source",
     "track", "wbr"}
)

# Numeric values for these style keys get no "px" suffix.
UNITLESS_STYLES = frozenset(
    {"opacity", "zIndex", "fontWeight", "lineHeight", "flex", "flexGrow", "flexShrink",
     "order", "zoom", "columnCount", "gridRow", "gridColumn", "tabSize"}
)

_ATTRIBUTE_ALIASES = {"className": "class", "htmlFor": "for"}


@contextmanager
def _script_errors() -> Iterator[None]:
    """Convert errors raised by component code into ComponentRuntimeError."""
    try:
        yield
    except JSThrow as exc:
        raise ComponentRuntimeError(thrown_message(exc.value)) from exc
    except ScriptError as exc:
        raise ComponentRuntimeError(exc.message) from exc
    except RecursionError as exc:
        raise ComponentRuntimeError("Maximum call stack size exceeded") from exc


# ---------------------------------------------------------------------------
# Instances and render frames
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class _Instance:
    type: Any
    hooks: list[HookSlot] = field(default_factory=list)
    obj: JSObject | None = None
    rendered: bool = False
    alive: bool = True
    prev_props: Any = UNDEFINED
    prev_state: Any = UNDEFINED


class _Frame:
    """Hook cursor for one component invocation."""

    def __init__(
        self, renderer: Renderer, instance: _Instance, contexts: dict[Context, Any]
    ) -> None:
        self.renderer = renderer
        self.instance = instance
        self.contexts = contexts
        self.index = 0
        self.effects: list[HookSlot] = []

    def next_hook(self, kind: str, create: Callable[[], HookSlot]) -> HookSlot:
        hooks = self.instance.hooks
        if self.index < len(hooks):
            slot = hooks[self.index]
            if slot.kind != kind:
                raise ScriptError(
                    "Error", "Rendered hooks in a different order than during the previous render."
                )
        elif self.instance.rendered:
            raise ScriptError("Error", "Rendered more hooks than during the previous render.")
        else:
            slot = create()
            hooks.append(slot)
        self.index += 1
        return slot

    def schedule_update(self) -> None:
        self.renderer._schedule(self.instance)

    def queue_effect(self, slot: HookSlot) -> None:
        self.effects.append(slot)

    def read_context(self, context: Context) -> Any:
        return self.contexts.get(context, context.default)

    def finish(self) -> None:
        if self.instance.rendered and self.index < len(self.instance.hooks):
            raise ScriptError("Error", "Rendered fewer hooks than expected.")
        self.instance.rendered = True


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------


class Renderer:
    """Mounts one root component and keeps it rendered as state changes."""

    def __init__(self, component: Any, timers: TimerQueue | None = None) -> None:
        self.component = component
        self.timers = timers
        self.root: Element | None = None
        self.render_count = 0
        self._instances: dict[tuple, _Instance] = {}
        self._visited: set[tuple] = set()
        self._dirty = False
        self._effects: list[HookSlot] = []
        self._class_callbacks: list[tuple[Any, Any, JSObject, list[Any]]] = []
        self._after_flush: list[Any] = []

    # -- public API -----------------------------------------------------

    def mount(self, container: Element | None = None) -> Element:
        self.root = container if container is not None else Element("div", {"id": "root"})
        self._dirty = True
        self.flush()
        return self.root

    def flush(self) -> int:
        """Re-render until no updates are pending; returns the render count."""
        renders = 0
        while self._dirty:
            if renders >= MAX_RENDERS_PER_FLUSH:
                self._dirty = False
                raise ComponentRuntimeError(
                    "Too many re-renders. React limits the number of renders to prevent an "
                    "infinite loop."
                )
            self._dirty = False
            self._render()
            renders += 1
        callbacks, self._after_flush = self._after_flush, []
        with _script_errors():
            for callback in callbacks:
                callback()
        return renders

    def dispatch(self, node: Node, event: str, **detail: Any) -> bool:
        """Fire an event at node, bubbling to ancestors; returns True if handled."""
        event = event.lower()
        target: Element | None = node if isinstance(node, Element) else node.parent
        state = {"stopped": False, "default_prevented": False}
        handled = False
        current = target
        while current is not None and not state["stopped"]:
            handler = current.handlers.get(event)
            if handler is not None:
                handled = True
                payload = _event_object(event, target, current, detail, state)
                with _script_errors():
                    handler(payload)
            if current is self.root:
                break
            current = current.parent
        if handled:
            self.flush()
        return handled

    def advance(self, ms: int) -> int:
        """Advance the component's virtual clock, running due timers."""
        if self.timers is None:
            return 0
        with _script_errors():
            ran = self.timers.advance(ms)
        self.flush()
        return ran

    def unmount(self) -> None:
        for path in list(self._instances):
            self._unmount(path)
        if self.root is not None:
            self.root.clear()

    # -- rendering ------------------------------------------------------

    def _schedule(self, instance: _Instance) -> None:
        if instance.alive:
            self._dirty = True

    def _render(self) -> None:
        assert self.root is not None
        self.render_count += 1
        self._visited = set()
        self._effects = []
        self._class_callbacks = []
        self.root.clear()
        with _script_errors():
            root = create_element(self.component)
            self._render_value(root, ("root",), self.root, {})
        for path in [p for p in self._instances if p not in self._visited]:
            self._unmount(path)
        logger.debug("render %d committed", self.render_count)
        with _script_errors():
            self._run_effects()

    def _render_value(
        self, value: Any, path: tuple, parent: Element, contexts: dict[Context, Any]
    ) -> None:
        if value is None or value is UNDEFINED or isinstance(value, bool):
            return
        if isinstance(value, str) or is_number(value):
            parent.append(TextNode(to_string(value)))
            return
        if isinstance(value, list):
            for i, child in enumerate(value):
                key = child.key if isinstance(child, VElement) and child.key is not None else None
                self._render_value(child, (*path, f"k:{key}" if key else i), parent, contexts)
            return
        if not isinstance(value, VElement):
            raise ScriptError(
                "Error",
                f"Objects are not valid as a React child (found: {to_string(value)}).",
            )
        self._render_element(value, path, parent, contexts)

    def _render_element(
        self, element: VElement, path: tuple, parent: Element, contexts: dict[Context, Any]
    ) -> None:
        kind = element.type
        children = element.props.get("children", UNDEFINED)
        if isinstance(kind, str):
            el = self._create_dom_element(kind, element)
            parent.append(el)
            self._render_value(children, (*path, kind), el, contexts)
        elif isinstance(kind, FragmentType):
            self._render_value(children, (*path, "#fragment"), parent, contexts)
        elif isinstance(kind, ProviderType):
            inner = dict(contexts)
            inner[kind.context] = element.props.get("value", UNDEFINED)
            self._render_value(children, (*path, "#provider"), parent, inner)
        elif isinstance(kind, ConsumerType):
            if not is_callable(children):
                raise ScriptError("TypeError", "Context.Consumer expects a function as its child")
            value = contexts.get(kind.context, kind.context.default)
            self._render_value(children(value), (*path, "#consumer"), parent, contexts)
        elif isinstance(kind, MemoType):
            inner = VElement(kind.inner, element.props, element.key, element.ref)
            self._render_element(inner, (*path, "#memo"), parent, contexts)
        elif isinstance(kind, ForwardRefType):
            self._render_function(kind, element, path, parent, contexts)
        elif is_class_component(kind):
            self._render_class(kind, element, path, parent, contexts)
        elif isinstance(kind, JSClass):
            raise ScriptError(
                "TypeError", f"Class constructor {kind.name} cannot be invoked without 'new'"
            )
        elif is_callable(kind):
            self._render_function(kind, element, path, parent, contexts)
        else:
            raise ScriptError(
                "Error",
                "Element type is invalid: expected a string (for built-in components) or a "
                f"class/function (for composite components) but got: {to_string(kind)}.",
            )

    def _instance(self, path: tuple, kind: Any) -> _Instance:
        instance = self._instances.get(path)
        if instance is not None and instance.type is not kind:
            self._unmount(path)
            instance = None
        if instance is None:
            instance = _Instance(kind)
            self._instances[path] = instance
        self._visited.add(path)
        return instance

    def _render_function(
        self,
        kind: Any,
        element: VElement,
        path: tuple,
        parent: Element,
        contexts: dict[Context, Any],
    ) -> None:
        instance = self._instance(path, kind)
        frame = _Frame(self, instance, contexts)
        token = current_frame.set(frame)
        try:
            if isinstance(kind, ForwardRefType):
                ref = element.ref if element.ref is not None else None
                output = kind.render(element.props, ref)
            else:
                output = kind(element.props)
            frame.finish()
        finally:
            current_frame.reset(token)
        self._render_value(output, (*path, "#out"), parent, contexts)
        self._effects.extend(frame.effects)

    def _render_class(
        self,
        cls: JSClass,
        element: VElement,
        path: tuple,
        parent: Element,
        contexts: dict[Context, Any],
    ) -> None:
        interp = cls.interpreter
        instance = self._instance(path, cls)
        first = instance.obj is None
        if first:
            obj = cls.construct(element.props)
            obj.host = self._make_updater(instance, obj)
            if "state" not in obj:
                obj["state"] = None
            instance.obj = obj
        else:
            obj = instance.obj
            obj["props"] = element.props
        render = interp.get_member(obj, "render")
        if not is_callable(render):
            raise ScriptError("TypeError", f"{cls.name} has no render() method")
        output = interp.call(render, obj, [])
        self._render_value(output, (*path, "#out"), parent, contexts)
        hook = "componentDidMount" if first else "componentDidUpdate"
        method = interp.get_member(obj, hook)
        if is_callable(method):
            args = [] if first else [instance.prev_props, instance.prev_state]
            self._class_callbacks.append((interp, method, obj, args))
        instance.prev_props = obj["props"]
        instance.prev_state = obj["state"]

    def _make_updater(self, instance: _Instance, obj: JSObject) -> Callable[[Any, Any], None]:
        interp = instance.type.interpreter

        def update(partial: Any, callback: Any) -> None:
            if not instance.alive:
                logger.warning("state update on an unmounted component ignored")
                return
            if is_callable(partial):
                partial = interp.call(partial, UNDEFINED, [obj["state"], obj["props"]])
            if isinstance(partial, dict):
                merged = JSObject(obj["state"] if isinstance(obj["state"], dict) else {})
                merged.update(partial)
                obj["state"] = merged
            if is_callable(callback):
                self._after_flush.append(lambda: interp.call(callback, obj, []))
            self._dirty = True

        return update

    def _create_dom_element(self, tag: str, element: VElement) -> Element:
        el = Element(tag)
        for name, value in element.props.items():
            if name == "children":
                continue
            if name == "style":
                if isinstance(value, dict):
                    for key, item in value.items():
                        if item is None or item is UNDEFINED or isinstance(item, bool):
                            continue
                        el.style[kebab_case(key)] = _style_value(key, item)
                elif isinstance(value, str):
                    el.attributes["style"] = value
                continue
            if name == "dangerouslySetInnerHTML":
                raise ScriptError("Error", "dangerouslySetInnerHTML is not supported")
            if name.startswith("on") and name[2:3].isupper():
                if is_callable(value):
                    el.handlers[name[2:].lower()] = value
                continue
            if value is None or value is UNDEFINED or value is False:
                continue
            if is_callable(value):
                continue
            attr = _ATTRIBUTE_ALIASES.get(name, name)
            el.attributes[attr] = "" if value is True else to_string(value)
        ref = element.ref
        if isinstance(ref, dict):
            ref["current"] = el
        elif is_callable(ref):
            self._after_flush.append(lambda: ref(el))
        return el

    # -- effects --------------------------------------------------------

    def _run_effects(self) -> None:
        layout = [s for s in self._effects if s.layout]
        passive = [s for s in self._effects if not s.layout]
        for slot in [*layout, *passive]:
            if is_callable(slot.cleanup):
                slot.cleanup()
            result = slot.effect()
            slot.cleanup = result if is_callable(result) else UNDEFINED
        for interp, method, obj, args in self._class_callbacks:
            interp.call(method, obj, args)

    def _unmount(self, path: tuple) -> None:
        instance = self._instances.pop(path, None)
        if instance is None:
            return
        instance.alive = False
        with _script_errors():
            for slot in instance.hooks:
                if slot.kind == "effect" and is_callable(slot.cleanup):
                    slot.cleanup()
                    slot.cleanup = UNDEFINED
            if instance.obj is not None:
                interp = instance.type.interpreter
                method = interp.get_member(instance.obj, "componentWillUnmount")
                if is_callable(method):
                    interp.call(method, instance.obj, [])
        logger.debug("unmounted component at %s", "/".join(map(str, path)))


def _style_value(key: str, value: Any) -> str:
    if is_number(value) and value != 0 and key not in UNITLESS_STYLES:
        return f"{to_string(value)}px"
    return to_string(value)


def _event_object(
    event: str,
    target: Element | None,
    current: Element,
    detail: dict[str, Any],
    state: dict[str, bool],
) -> JSObject:
    def element_view(el: Element | None) -> Any:
        if el is None:
            return None
        view = JSObject(el.attributes)
        view["tagName"] = el.tag.upper()
        view["textContent"] = el.text_content
        return view

    target_view = element_view(target)
    for key, value in detail.items():
        target_view[key] = value

    def stop(*args: Any) -> Any:
        state["stopped"] = True
        return UNDEFINED

    def prevent(*args: Any) -> Any:
        state["default_prevented"] = True
        return UNDEFINED

    return JSObject(
        type=event,
        target=target_view,
        currentTarget=element_view(current),
        stopPropagation=NativeFunction("stopPropagation", stop),
        preventDefault=NativeFunction("preventDefault", prevent),
    )


# ---------------------------------------------------------------------------
# HTML serialization
# ---------------------------------------------------------------------------


def _escape_html(text: str) -> str:
    """Escape text for HTML body content. Also encodes non-ASCII as entities."""
    result: list[str] = []
    for ch in text:
        if ch == "&":
            result.append("&amp;")
        elif ch == "<":
            result.append("&lt;")
        elif ch == ">":
            result.append("&gt;")
        elif ord(ch) > 0x7F:
            result.append(f"&#x{ord(ch):X};")
        else:
            result.append(ch)
    return "".join(result)


def _escape_attr(text: str) -> str:
    """Escape text for HTML attribute values."""
    result: list[str] = []
    for ch in text:
        if ch == "&":
            result.append("&amp;")
        elif ch == '"':
            result.append("&quot;")
        elif ch == "<":
            result.append("&lt;")
        elif ord(ch) > 0x7F:
            result.append(f"&#x{ord(ch):X};")
        else:
            result.append(ch)
    return "".join(result)


def to_html(node: Node) -> str:
    """Serialize a DOM node and its subtree."""
    if isinstance(node, TextNode):
        return _escape_html(node.text)
    assert isinstance(node, Element)
    parts = [f"<{node.tag}"]
    for name, value in node.attributes.items():
        if name == "style" and node.style:
            continue
        parts.append(f" {name}" if value == "" else f' {name}="{_escape_attr(value)}"')
    if node.style:
        css = "; ".join(f"{k}: {v}" for k, v in node.style.items())
        parts.append(f' style="{_escape_attr(css)}"')
    parts.append(">")
    if node.tag.lower() in VOID_ELEMENTS:
        return "".join(parts)
    for child in node.children:
        parts.append(to_html(child))
    parts.append(f"</{node.tag}>")
    return "".join(parts)


def render_page(body_html: str, title: str = "jsxlive") -> str:
    """Wrap rendered markup in a complete HTML document."""
    parts: list[str] = ["<!DOCTYPE html>\n"]
    parts.append("<html>\n")
    parts.append("<head>\n")
    parts.append('<meta charset="utf-8">\n')
    parts.append(f"<title>{_escape_html(title)}</title>\n")
    parts.append("</head>\n")
    parts.append("<body>\n")
    parts.append(body_html)
    parts.append("\n</body>\n")
    parts.append("</html>\n")
    return "".join(parts)
