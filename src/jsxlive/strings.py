"""Whitespace rules for JSX text, JS string quoting and CSS name casing."""

from __future__ import annotations

import re


def clean_jsx_text(value: str) -> str:
    """Collapse a JSX text child the way JSX compilers do.

    Algorithm:
    1. Split into lines and normalise tabs to spaces.
    2. Strip leading spaces from every line but the first.
    3. Strip trailing spaces from every line but the last.
    4. Drop lines that end up empty.
    5. Join the rest with a single space.

    Returns "" when nothing remains, in which case the child is dropped.
    """
    lines = re.split(r"\r\n|\n|\r", value)

    last_non_empty = -1
    for i, line in enumerate(lines):
        if not _is_blank(line):
            last_non_empty = i

    parts = []
    for i, line in enumerate(lines):
        trimmed = line.replace("\t", " ")
        if i != 0:
            trimmed = trimmed.lstrip(" ")
        if i != len(lines) - 1:
            trimmed = trimmed.rstrip(" ")
        if trimmed:
            if i != last_non_empty:
                trimmed += " "
            parts.append(trimmed)
    return "".join(parts)


def significant_bounds(raw: str) -> tuple[int, int]:
    """Return the [start, end) range of raw text that carries content.

    A leading or trailing whitespace run is excluded only when it contains a
    line break; such runs are layout, not text.  Whitespace-only input gives
    an empty range at 0 when it spans lines.
    """
    if _is_blank(raw, "\r\n"):
        if "\n" in raw or "\r" in raw:
            return 0, 0
        return 0, len(raw)

    start = 0
    while start < len(raw) and raw[start] in " \t\r\n":
        start += 1
    if "\n" not in raw[:start] and "\r" not in raw[:start]:
        start = 0

    end = len(raw)
    while end > 0 and raw[end - 1] in " \t\r\n":
        end -= 1
    if "\n" not in raw[end:] and "\r" not in raw[end:]:
        end = len(raw)

    return start, end


def quote_js_string(value: str, quote: str = "'") -> str:
    """Render value as a JavaScript string literal."""
    out = [quote]
    for ch in value:
        if ch == "\\":
            out.append("\\\\")
        elif ch == quote:
            out.append("\\" + quote)
        elif ch in _JS_ESCAPES:
            out.append(_JS_ESCAPES[ch])
        elif ord(ch) < 0x20:
            out.append(f"\\x{ord(ch):02x}")
        else:
            out.append(ch)
    out.append(quote)
    return "".join(out)


def camel_case(prop: str) -> str:
    """Convert a CSS property name to its inline-style key.

    ``background-color`` becomes ``backgroundColor``; vendor prefixes keep an
    initial capital except ``-ms-``.  Names without dashes pass through.
    """
    if "-" not in prop:
        return prop
    if prop.startswith("-ms-"):
        prop = prop[1:]
    elif prop.startswith("-"):
        prop = prop[1:]
        head, _, rest = prop.partition("-")
        return head.capitalize() + _CAMEL_RE.sub(lambda m: m.group(1).upper(), "-" + rest)
    return _CAMEL_RE.sub(lambda m: m.group(1).upper(), prop)


def kebab_case(key: str) -> str:
    """Convert an inline-style key to its CSS property name."""
    if key.startswith("--"):
        return key
    name = _KEBAB_RE.sub(lambda m: "-" + m.group(0).lower(), key)
    if key.startswith("ms") and len(key) > 2 and key[2].isupper():
        name = "-" + name
    return name


_JS_ESCAPES = {
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
    "\v": "\\v",
    "\0": "\\0",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}
_CAMEL_RE = re.compile(r"-([a-z0-9])")
_KEBAB_RE = re.compile(r"[A-Z]")


def _is_blank(line: str, extra: str = "") -> bool:
    """Return True if line contains only spaces and tabs (or is empty)."""
    return all(ch in " \t" + extra for ch in line)
