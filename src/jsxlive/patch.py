"""Source patcher — surgical edits to the markup a component returns.

Structural edits locate the target through the syntax tree and replace one
exact character range, so formatting, comments and surrounding code are
preserved.  The heuristic functions at the bottom are the legacy
string-search strategy; they are lossy and only used as an opt-in fallback.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass

from jsxlive.ast import Identifier, Literal, ObjectExpression, Property
from jsxlive.errors import NoReturnExpression, PatchNotApplicable, SourceSyntaxError
from jsxlive.paths import StructuralAddress, format_address, resolve
from jsxlive.strings import camel_case, quote_js_string
from jsxlive.tree import AttributeKind, SyntaxAttribute, SyntaxElement, SyntaxTree, parse_tree

logger = logging.getLogger(__name__)


class EditKind(enum.Enum):
    TEXT = "text"
    STYLE = "style"


class Strategy(enum.Enum):
    STRUCTURAL = "structural"
    HEURISTIC = "heuristic"


@dataclass(frozen=True, slots=True)
class StyleEdit:
    property: str
    value: str


@dataclass(frozen=True, slots=True)
class PatchResult:
    document: str
    strategy: Strategy
    applied: bool


# ---------------------------------------------------------------------------
# Style maps
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class StyleEntry:
    """One entry of an inline style; ``verbatim`` keeps untouched source text."""

    key: str | None
    value: str | None = None
    verbatim: str | None = None

    def render(self) -> str:
        if self.verbatim is not None:
            return self.verbatim
        assert self.key is not None and self.value is not None
        return f"{_style_key(self.key)}: {quote_js_string(self.value)}"


class StyleMap:
    """Ordered inline-style entries with upsert by property."""

    def __init__(self, entries: list[StyleEntry] | None = None) -> None:
        self.entries = entries or []

    def get(self, key: str) -> StyleEntry | None:
        # Quoted CSS names and camelCase keys address the same property
        wanted = _style_property(key)
        for entry in reversed(self.entries):
            if entry.key is not None and _style_property(entry.key) == wanted:
                return entry
        return None

    def upsert(self, key: str, value: str) -> None:
        entry = self.get(key)
        if entry is None:
            self.entries.append(StyleEntry(_style_property(key), value))
        else:
            entry.key = _style_property(key)
            entry.value = value
            entry.verbatim = None

    def serialize(self) -> str:
        return ", ".join(entry.render() for entry in self.entries)

    @classmethod
    def from_object(cls, node: ObjectExpression, markup: str) -> StyleMap:
        entries: list[StyleEntry] = []
        for prop in node.properties:
            text = markup[prop.span.start.offset : prop.span.end.offset]
            key = _static_key(prop) if isinstance(prop, Property) else None
            value = None
            if isinstance(prop, Property) and isinstance(prop.value, Literal):
                value = str(prop.value.value)
            entries.append(StyleEntry(key, value, text))
        return cls(entries)

    @classmethod
    def from_css(cls, css: str) -> StyleMap:
        entries: list[StyleEntry] = []
        for declaration in css.split(";"):
            name, sep, value = declaration.partition(":")
            if not sep or not name.strip():
                continue
            entries.append(StyleEntry(_style_property(name.strip()), value.strip()))
        return cls(entries)


def _static_key(prop: Property) -> str | None:
    if prop.computed:
        return None
    if isinstance(prop.key, Identifier):
        return prop.key.name
    if isinstance(prop.key, Literal):
        return str(prop.key.value)
    return None


def _style_property(name: str) -> str:
    """Inline-style key for a CSS or camelCase property name."""
    if name.startswith("--"):
        return name
    return camel_case(name)


_IDENT_RE = re.compile(r"^[A-Za-z_$][\w$]*$")


def _style_key(key: str) -> str:
    return key if _IDENT_RE.match(key) else quote_js_string(key)


# ---------------------------------------------------------------------------
# Structural strategy
# ---------------------------------------------------------------------------


def _target(document: str, address: StructuralAddress) -> tuple[SyntaxTree, SyntaxElement]:
    tree = parse_tree(document)
    element = resolve(address, tree)
    if element is None:
        raise PatchNotApplicable(f"no element at {format_address(address)}")
    return tree, element


_ENTITY_RE = re.compile(r"&(#\d+|#x[0-9a-fA-F]+|[A-Za-z]+);")


def jsx_text(text: str) -> str:
    """Source for text that must render exactly as given inside an element."""
    unsafe = (
        any(ch in "{}<>\r\n" for ch in text)
        or text != text.strip()
        or _ENTITY_RE.search(text) is not None
    )
    if unsafe:
        return "{" + quote_js_string(text) + "}"
    return text


def patch_text(document: str, address: StructuralAddress, new_text: str) -> str:
    """Replace the first text child of the addressed element."""
    try:
        tree, element = _target(document, address)
        texts = element.text_children
        if not texts:
            raise PatchNotApplicable(f"{format_address(address)} has no text child")
        start, end = tree.absolute(texts[0].span)
    except (PatchNotApplicable, SourceSyntaxError, NoReturnExpression) as exc:
        logger.debug("text patch not applied: %s", exc)
        return document
    return document[:start] + jsx_text(new_text) + document[end:]


def patch_style(document: str, address: StructuralAddress, prop: str, value: str) -> str:
    """Set one inline-style property on the addressed element."""
    try:
        tree, element = _target(document, address)
        edit = _style_edit(tree, element, _style_property(prop), value)
    except (PatchNotApplicable, SourceSyntaxError, NoReturnExpression) as exc:
        logger.debug("style patch not applied: %s", exc)
        return document
    start, end, replacement = edit
    return document[:start] + replacement + document[end:]


def _style_edit(
    tree: SyntaxTree, element: SyntaxElement, key: str, value: str
) -> tuple[int, int, str]:
    attr = element.attribute("style")
    if attr is None:
        styles = StyleMap()
        styles.upsert(key, value)
        _, at = tree.absolute(element.name_span)
        return at, at, f" style={{{{{styles.serialize()}}}}}"
    styles = _read_style(attr, tree.markup)
    styles.upsert(key, value)
    start, end = tree.absolute(attr.span)
    return start, end, f"style={{{{{styles.serialize()}}}}}"


def _read_style(attr: SyntaxAttribute, markup: str) -> StyleMap:
    if attr.kind is AttributeKind.LITERAL:
        return StyleMap.from_css(attr.value or "")
    if attr.kind is AttributeKind.EXPRESSION and isinstance(attr.expression, ObjectExpression):
        return StyleMap.from_object(attr.expression, markup)
    raise PatchNotApplicable("style attribute is not an object literal")


def apply_edit(
    document: str,
    address: StructuralAddress,
    kind: EditKind,
    payload: str | StyleEdit,
) -> PatchResult:
    """Dispatch a structural edit; ``applied`` is False when nothing changed."""
    if kind is EditKind.TEXT:
        if not isinstance(payload, str):
            raise TypeError("text edits take a string payload")
        patched = patch_text(document, address, payload)
    elif kind is EditKind.STYLE:
        if not isinstance(payload, StyleEdit):
            raise TypeError("style edits take a StyleEdit payload")
        patched = patch_style(document, address, payload.property, payload.value)
    else:
        raise ValueError(f"unknown edit kind: {kind!r}")
    return PatchResult(patched, Strategy.STRUCTURAL, patched != document)


# ---------------------------------------------------------------------------
# Heuristic strategy
# ---------------------------------------------------------------------------


def heuristic_patch_text(document: str, old: str, new: str) -> str:
    """Replace the first ``>old<`` occurrence, keeping surrounding whitespace."""
    needle = old.strip()
    if not needle:
        return document
    pattern = re.compile(r">(\s*)" + re.escape(needle) + r"(\s*)<")
    return pattern.sub(lambda m: f">{m.group(1)}{new}{m.group(2)}<", document, count=1)


def heuristic_patch_style(document: str, prop: str, value: str) -> str:
    """Rewrite every ``prop: …`` occurrence in the document."""
    key = _style_property(prop)
    pattern = re.compile(re.escape(key) + r":\s*[^;,}]+")
    return pattern.sub(lambda m: f"{key}: {quote_js_string(value)}", document)
