"""Language intrinsics available to every evaluated module.

Each :class:`~jsxlive.interpreter.Interpreter` builds its own copies, so
nothing a script does to ``Math`` or ``JSON`` leaks into the next run.
Host capabilities beyond these (the component primitives) are injected
separately by the sandbox.
"""

from __future__ import annotations

import heapq
import json
import logging
import math
import random
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Any

from jsxlive.interpreter import (
    MAX_SAFE_INTEGER,
    UNDEFINED,
    BoundFunction,
    Interpreter,
    JSClass,
    JSFunction,
    JSObject,
    NativeClass,
    NativeFunction,
    Prototypes,
    ScriptError,
    describe_thrown,
    is_callable,
    is_number,
    iterate,
    normalize_number,
    own_keys,
    strict_equals,
    to_int32,
    to_number,
    to_property_key,
    to_string,
    truthy,
)

logger = logging.getLogger(__name__)
console_logger = logging.getLogger("jsxlive.console")


def _is_nan(value: Any) -> bool:
    return isinstance(value, float) and math.isnan(value)


_MAX_INTEGER = 2**53 - 1
_MAX_STRING_LENGTH = 2**29 - 24


def _to_integer(value: Any) -> int:
    """Truncate to an integer; NaN is 0 and infinities clamp to the safe range."""
    n = to_number(value)
    if _is_nan(n):
        return 0
    if math.isinf(n):
        return _MAX_INTEGER if n > 0 else -_MAX_INTEGER
    return int(n)


def _integral(fn: Callable[[float], int]) -> Callable[[float], float]:
    """Rounding that passes infinities through instead of raising."""
    return lambda n: n if math.isinf(n) else fn(n)


# ---------------------------------------------------------------------------
# Console
# ---------------------------------------------------------------------------


def inspect_value(value: Any, nested: bool = False) -> str:
    """Format a value the way a browser console prints it."""
    if isinstance(value, str):
        return repr(value) if nested else value
    if isinstance(value, list):
        if not value:
            return "[]"
        return "[ " + ", ".join(inspect_value(v, True) for v in value) + " ]"
    if isinstance(value, JSObject) and value.cls is not None and "message" in value:
        return describe_thrown(value)
    if isinstance(value, dict):
        if not value:
            return "{}"
        items = ", ".join(f"{k}: {inspect_value(v, True)}" for k, v in value.items())
        return "{ " + items + " }"
    if isinstance(value, (JSFunction, NativeFunction, BoundFunction)):
        return f"[Function: {value.name or '(anonymous)'}]"
    if isinstance(value, (JSClass, NativeClass)):
        return f"[class {value.name}]"
    return to_string(value)


@dataclass(frozen=True, slots=True)
class ConsoleEntry:
    level: str
    text: str

    def __str__(self) -> str:
        return self.text if self.level == "log" else f"[{self.level}] {self.text}"


@dataclass
class Console:
    """Collects console output produced while a module runs."""

    entries: list[ConsoleEntry] = field(default_factory=list)

    def write(self, level: str, args: tuple[Any, ...]) -> Any:
        text = " ".join(inspect_value(arg) for arg in args)
        self.entries.append(ConsoleEntry(level, text))
        console_logger.debug("console.%s: %s", level, text)
        return UNDEFINED

    def as_object(self) -> JSObject:
        obj = JSObject()
        for level in ("log", "info", "warn", "error", "debug"):
            obj[level] = NativeFunction(level, lambda *args, _lvl=level: self.write(_lvl, args))
        return obj


# ---------------------------------------------------------------------------
# Timers
# ---------------------------------------------------------------------------


@dataclass(order=True)
class _Timer:
    due: int
    id: int
    callback: Any = field(compare=False)
    args: tuple[Any, ...] = field(compare=False)
    interval: int | None = field(compare=False, default=None)


class TimerQueue:
    """Virtual clock for ``setTimeout`` and friends.

    Nothing runs until the host calls :meth:`advance`, which fires every
    callback falling due within the elapsed time, in due order.
    """

    def __init__(self, interpreter: Interpreter) -> None:
        self._interpreter = interpreter
        self._heap: list[_Timer] = []
        self._cancelled: set[int] = set()
        self._next_id = 1
        self.now = 0

    def __len__(self) -> int:
        return sum(1 for t in self._heap if t.id not in self._cancelled)

    def schedule(self, callback: Any, delay: Any, args: tuple[Any, ...], repeat: bool) -> int:
        if not is_callable(callback):
            raise ScriptError("TypeError", "The \"callback\" argument must be of type function")
        ms = max(0, _to_integer(delay)) if delay is not UNDEFINED else 0
        timer_id = self._next_id
        self._next_id += 1
        interval = max(ms, 1) if repeat else None
        heapq.heappush(self._heap, _Timer(self.now + ms, timer_id, callback, args, interval))
        return timer_id

    def cancel(self, timer_id: Any) -> Any:
        if is_number(timer_id):
            self._cancelled.add(_to_integer(timer_id))
        return UNDEFINED

    def advance(self, ms: int) -> int:
        """Move the clock forward and run due callbacks; returns how many ran."""
        target = self.now + ms
        ran = 0
        while self._heap and self._heap[0].due <= target:
            timer = heapq.heappop(self._heap)
            if timer.id in self._cancelled:
                continue
            self.now = timer.due
            if timer.interval is not None:
                timer.due += timer.interval
                heapq.heappush(self._heap, timer)
            self._interpreter.call(timer.callback, UNDEFINED, list(timer.args))
            ran += 1
        self.now = target
        return ran

    def clear(self) -> None:
        self._heap.clear()
        self._cancelled.clear()


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ErrorClass(NativeClass):
    callable_without_new = True

    def __init__(self, name: str, superclass: NativeClass | None = None) -> None:
        super().__init__()
        self.name = name
        self.superclass = superclass
        self.methods["toString"] = lambda this, *args: describe_thrown(this)

    def init(self, interpreter: Interpreter, this: JSObject, args: list[Any]) -> None:
        message = args[0] if args else UNDEFINED
        this["name"] = self.name
        this["message"] = "" if message is UNDEFINED else to_string(message)


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


def _to_json_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, str)):
        return value
    if is_number(value):
        if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
            return None
        return value
    if isinstance(value, list):
        out = []
        for item in value:
            converted = _to_json_value(item)
            out.append(None if converted is UNDEFINED else converted)
        return out
    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            converted = _to_json_value(item)
            if converted is not UNDEFINED:
                result[key] = converted
        return result
    return UNDEFINED


def json_stringify(value: Any, replacer: Any = UNDEFINED, space: Any = UNDEFINED) -> Any:
    converted = _to_json_value(value)
    if converted is UNDEFINED:
        return UNDEFINED
    indent: int | str | None = None
    if is_number(space) and space > 0:
        indent = min(_to_integer(space), 10)
    elif isinstance(space, str) and space:
        indent = space[:10]
    separators = (",", ":") if indent is None else (",", ": ")
    return json.dumps(converted, indent=indent, separators=separators, ensure_ascii=False)


def json_parse(text: Any, *args: Any) -> Any:
    try:
        return json.loads(
            to_string(text),
            object_pairs_hook=JSObject,
            parse_float=lambda s: normalize_number(float(s)),
        )
    except json.JSONDecodeError as exc:
        raise ScriptError("SyntaxError", f"Unexpected token in JSON at position {exc.pos}") from exc


# ---------------------------------------------------------------------------
# Number parsing
# ---------------------------------------------------------------------------

_FLOAT_PREFIX_RE = re.compile(
    r"[+-]?(?:Infinity|\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?)"
)
_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def parse_int(text: Any = UNDEFINED, radix: Any = UNDEFINED, *rest: Any) -> int | float:
    s = to_string(text).strip()
    sign = 1
    if s[:1] in ("+", "-"):
        sign = -1 if s[0] == "-" else 1
        s = s[1:]
    base = 0 if radix is UNDEFINED else to_int32(radix)
    if base == 0:
        base = 10
        if s[:2].lower() == "0x":
            base, s = 16, s[2:]
    elif base == 16 and s[:2].lower() == "0x":
        s = s[2:]
    if base < 2 or base > 36:
        return math.nan
    valid = _DIGITS[:base]
    end = 0
    while end < len(s) and s[end].lower() in valid:
        end += 1
    if end == 0:
        return math.nan
    return normalize_number(sign * int(s[:end], base))


def parse_float(text: Any = UNDEFINED, *rest: Any) -> int | float:
    match = _FLOAT_PREFIX_RE.match(to_string(text).strip())
    if match is None:
        return math.nan
    token = match.group(0)
    if token.lstrip("+-") == "Infinity":
        return -math.inf if token.startswith("-") else math.inf
    return normalize_number(float(token))


def _number_to_string(value: int | float, radix: Any = UNDEFINED) -> str:
    if radix is UNDEFINED or to_number(radix) == 10:
        return to_string(value)
    base = _to_integer(radix)
    if base < 2 or base > 36:
        raise ScriptError("RangeError", "toString() radix must be between 2 and 36")
    if not isinstance(value, int):
        if _is_nan(value) or math.isinf(value):
            return to_string(value)
        value = int(value)
    if value == 0:
        return "0"
    digits = []
    n = abs(value)
    while n:
        n, rem = divmod(n, base)
        digits.append(_DIGITS[rem])
    return ("-" if value < 0 else "") + "".join(reversed(digits))


def _to_fixed(value: int | float, digits: Any = UNDEFINED) -> str:
    places = 0 if digits is UNDEFINED else _to_integer(digits)
    if places < 0 or places > 100:
        raise ScriptError("RangeError", "toFixed() digits argument must be between 0 and 100")
    if _is_nan(value) or math.isinf(value):
        return to_string(value)
    return f"{value:.{places}f}"


def _to_locale_string(value: int | float, *args: Any) -> str:
    if isinstance(value, int):
        return f"{value:,}"
    if _is_nan(value) or math.isinf(value):
        return to_string(value)
    return f"{value:,.3f}".rstrip("0").rstrip(".")


# ---------------------------------------------------------------------------
# Prototype methods
# ---------------------------------------------------------------------------


def build_prototypes(interp: Interpreter) -> Prototypes:
    """Method tables for built-in values; methods take the receiver first."""

    def call(fn: Any, *args: Any) -> Any:
        if not is_callable(fn):
            raise ScriptError("TypeError", f"{to_string(fn)} is not a function")
        return interp.call(fn, UNDEFINED, list(args))

    def relative(index: Any, length: int, default: int) -> int:
        if index is UNDEFINED:
            return default
        n = to_number(index)
        if _is_nan(n):
            return 0
        n = int(n) if not math.isinf(n) else (length if n > 0 else -length)
        return max(length + n, 0) if n < 0 else min(n, length)

    # -- arrays ---------------------------------------------------------

    def a_push(arr: list, *items: Any) -> int:
        arr.extend(items)
        return len(arr)

    def a_pop(arr: list, *args: Any) -> Any:
        return arr.pop() if arr else UNDEFINED

    def a_shift(arr: list, *args: Any) -> Any:
        return arr.pop(0) if arr else UNDEFINED

    def a_unshift(arr: list, *items: Any) -> int:
        arr[0:0] = items
        return len(arr)

    def a_slice(arr: list, start: Any = UNDEFINED, end: Any = UNDEFINED, *rest: Any) -> list:
        return arr[relative(start, len(arr), 0) : relative(end, len(arr), len(arr))]

    def a_splice(arr: list, start: Any = UNDEFINED, count: Any = UNDEFINED, *items: Any) -> list:
        begin = relative(start, len(arr), 0)
        if count is UNDEFINED:
            n = len(arr) - begin
        else:
            n = max(0, min(_to_integer(count), len(arr) - begin))
        removed = arr[begin : begin + n]
        arr[begin : begin + n] = items
        return removed

    def a_concat(arr: list, *others: Any) -> list:
        result = list(arr)
        for other in others:
            if isinstance(other, list):
                result.extend(other)
            else:
                result.append(other)
        return result

    def a_join(arr: list, sep: Any = UNDEFINED, *rest: Any) -> str:
        separator = "," if sep is UNDEFINED else to_string(sep)
        return separator.join(
            "" if v is None or v is UNDEFINED else to_string(v) for v in arr
        )

    def a_reverse(arr: list, *args: Any) -> list:
        arr.reverse()
        return arr

    def a_index_of(arr: list, target: Any = UNDEFINED, start: Any = UNDEFINED, *rest: Any) -> int:
        for i in range(relative(start, len(arr), 0), len(arr)):
            if strict_equals(arr[i], target):
                return i
        return -1

    def a_last_index_of(arr: list, target: Any = UNDEFINED, *args: Any) -> int:
        for i in range(len(arr) - 1, -1, -1):
            if strict_equals(arr[i], target):
                return i
        return -1

    def a_includes(arr: list, target: Any = UNDEFINED, *args: Any) -> bool:
        if _is_nan(target):
            return any(_is_nan(v) for v in arr)
        return any(strict_equals(v, target) for v in arr)

    def a_find(arr: list, fn: Any = UNDEFINED, *args: Any) -> Any:
        for i, v in enumerate(list(arr)):
            if truthy(call(fn, v, i, arr)):
                return v
        return UNDEFINED

    def a_find_index(arr: list, fn: Any = UNDEFINED, *args: Any) -> int:
        for i, v in enumerate(list(arr)):
            if truthy(call(fn, v, i, arr)):
                return i
        return -1

    def a_find_last(arr: list, fn: Any = UNDEFINED, *args: Any) -> Any:
        for i in range(len(arr) - 1, -1, -1):
            if truthy(call(fn, arr[i], i, arr)):
                return arr[i]
        return UNDEFINED

    def a_filter(arr: list, fn: Any = UNDEFINED, *args: Any) -> list:
        return [v for i, v in enumerate(list(arr)) if truthy(call(fn, v, i, arr))]

    def a_map(arr: list, fn: Any = UNDEFINED, *args: Any) -> list:
        return [call(fn, v, i, arr) for i, v in enumerate(list(arr))]

    def a_for_each(arr: list, fn: Any = UNDEFINED, *args: Any) -> Any:
        for i, v in enumerate(list(arr)):
            call(fn, v, i, arr)
        return UNDEFINED

    def a_reduce(arr: list, fn: Any = UNDEFINED, *initial: Any) -> Any:
        items = list(enumerate(arr))
        if initial:
            acc = initial[0]
        elif items:
            acc = items.pop(0)[1]
        else:
            raise ScriptError("TypeError", "Reduce of empty array with no initial value")
        for i, v in items:
            acc = call(fn, acc, v, i, arr)
        return acc

    def a_reduce_right(arr: list, fn: Any = UNDEFINED, *initial: Any) -> Any:
        items = list(reversed(list(enumerate(arr))))
        if initial:
            acc = initial[0]
        elif items:
            acc = items.pop(0)[1]
        else:
            raise ScriptError("TypeError", "Reduce of empty array with no initial value")
        for i, v in items:
            acc = call(fn, acc, v, i, arr)
        return acc

    def a_some(arr: list, fn: Any = UNDEFINED, *args: Any) -> bool:
        return any(truthy(call(fn, v, i, arr)) for i, v in enumerate(list(arr)))

    def a_every(arr: list, fn: Any = UNDEFINED, *args: Any) -> bool:
        return all(truthy(call(fn, v, i, arr)) for i, v in enumerate(list(arr)))

    def a_sort(arr: list, fn: Any = UNDEFINED, *args: Any) -> list:
        defined = [v for v in arr if v is not UNDEFINED]
        missing = len(arr) - len(defined)
        if fn is UNDEFINED:
            defined.sort(key=to_string)
        else:

            def compare(a: Any, b: Any) -> int:
                result = to_number(call(fn, a, b))
                if _is_nan(result) or result == 0:
                    return 0
                return -1 if result < 0 else 1

            defined.sort(key=cmp_to_key(compare))
        arr[:] = defined + [UNDEFINED] * missing
        return arr

    def a_flat(arr: list, depth: Any = UNDEFINED, *args: Any) -> list:
        levels = 1 if depth is UNDEFINED else to_number(depth)

        def flatten(items: list, level: float) -> list:
            out: list[Any] = []
            for item in items:
                if isinstance(item, list) and level > 0:
                    out.extend(flatten(item, level - 1))
                else:
                    out.append(item)
            return out

        return flatten(arr, levels)

    def a_flat_map(arr: list, fn: Any = UNDEFINED, *args: Any) -> list:
        return a_flat(a_map(arr, fn), 1)

    def a_fill(
        arr: list, value: Any = UNDEFINED, start: Any = UNDEFINED, end: Any = UNDEFINED
    ) -> list:
        for i in range(relative(start, len(arr), 0), relative(end, len(arr), len(arr))):
            arr[i] = value
        return arr

    def a_at(arr: list | str, index: Any = UNDEFINED, *args: Any) -> Any:
        n = _to_integer(index) if index is not UNDEFINED else 0
        if n < 0:
            n += len(arr)
        return arr[n] if 0 <= n < len(arr) else UNDEFINED

    def a_entries(arr: list, *args: Any) -> list:
        return [[i, v] for i, v in enumerate(arr)]

    def a_keys(arr: list, *args: Any) -> list:
        return list(range(len(arr)))

    # -- strings --------------------------------------------------------

    def s_char_at(s: str, index: Any = UNDEFINED, *args: Any) -> str:
        n = 0 if index is UNDEFINED else _to_integer(index)
        return s[n] if 0 <= n < len(s) else ""

    def s_char_code_at(s: str, index: Any = UNDEFINED, *args: Any) -> int | float:
        n = 0 if index is UNDEFINED else _to_integer(index)
        return ord(s[n]) if 0 <= n < len(s) else math.nan

    def s_index_of(s: str, sub: Any = UNDEFINED, start: Any = UNDEFINED, *args: Any) -> int:
        return s.find(to_string(sub), relative(start, len(s), 0))

    def s_last_index_of(s: str, sub: Any = UNDEFINED, *args: Any) -> int:
        return s.rfind(to_string(sub))

    def s_includes(s: str, sub: Any = UNDEFINED, *args: Any) -> bool:
        return to_string(sub) in s

    def s_starts_with(s: str, sub: Any = UNDEFINED, pos: Any = UNDEFINED, *args: Any) -> bool:
        return s.startswith(to_string(sub), relative(pos, len(s), 0))

    def s_ends_with(s: str, sub: Any = UNDEFINED, *args: Any) -> bool:
        return s.endswith(to_string(sub))

    def s_slice(s: str, start: Any = UNDEFINED, end: Any = UNDEFINED, *args: Any) -> str:
        return s[relative(start, len(s), 0) : relative(end, len(s), len(s))]

    def s_substring(s: str, start: Any = UNDEFINED, end: Any = UNDEFINED, *args: Any) -> str:
        def clamp(v: Any, default: int) -> int:
            if v is UNDEFINED:
                return default
            return max(0, min(_to_integer(v), len(s)))

        a, b = clamp(start, 0), clamp(end, len(s))
        return s[min(a, b) : max(a, b)]

    def s_substr(s: str, start: Any = UNDEFINED, length: Any = UNDEFINED, *args: Any) -> str:
        begin = relative(start, len(s), 0)
        if length is UNDEFINED:
            return s[begin:]
        return s[begin : begin + max(0, _to_integer(length))]

    def s_trim(s: str, *args: Any) -> str:
        return s.strip()

    def s_trim_start(s: str, *args: Any) -> str:
        return s.lstrip()

    def s_trim_end(s: str, *args: Any) -> str:
        return s.rstrip()

    def s_split(s: str, sep: Any = UNDEFINED, limit: Any = UNDEFINED, *args: Any) -> list:
        if sep is UNDEFINED:
            parts = [s]
        elif not isinstance(sep, str):
            raise ScriptError("TypeError", "split() only supports string separators")
        elif sep == "":
            parts = list(s)
        else:
            parts = s.split(sep)
        if limit is not UNDEFINED:
            parts = parts[: max(0, _to_integer(limit))]
        return parts

    def replacement(match: str, index: int, s: str, repl: Any) -> str:
        if is_callable(repl):
            return to_string(call(repl, match, index, s))
        return to_string(repl).replace("$&", match)

    def s_replace(s: str, pattern: Any = UNDEFINED, repl: Any = UNDEFINED, *args: Any) -> str:
        if not isinstance(pattern, str):
            raise ScriptError("TypeError", "replace() only supports string patterns")
        index = s.find(pattern)
        if index < 0:
            return s
        return s[:index] + replacement(pattern, index, s, repl) + s[index + len(pattern) :]

    def s_replace_all(s: str, pattern: Any = UNDEFINED, repl: Any = UNDEFINED, *args: Any) -> str:
        if not isinstance(pattern, str):
            raise ScriptError("TypeError", "replaceAll() only supports string patterns")
        if pattern == "":
            return s
        out: list[str] = []
        pos = 0
        while True:
            index = s.find(pattern, pos)
            if index < 0:
                break
            out.append(s[pos:index])
            out.append(replacement(pattern, index, s, repl))
            pos = index + len(pattern)
        out.append(s[pos:])
        return "".join(out)

    def s_repeat(s: str, count: Any = UNDEFINED, *args: Any) -> str:
        n = to_number(count) if count is not UNDEFINED else 0
        if _is_nan(n):
            n = 0
        if n < 0 or math.isinf(n):
            raise ScriptError("RangeError", f"Invalid count value: {to_string(count)}")
        if len(s) * n > _MAX_STRING_LENGTH:
            raise ScriptError("RangeError", "Invalid string length")
        return s * int(n)

    def pad(s: str, length: Any, fill: Any, left: bool) -> str:
        target = _to_integer(length) if length is not UNDEFINED else 0
        filler = " " if fill is UNDEFINED else to_string(fill)
        if target <= len(s) or not filler:
            return s
        if target > _MAX_STRING_LENGTH:
            raise ScriptError("RangeError", "Invalid string length")
        missing = target - len(s)
        padding = (filler * (missing // len(filler) + 1))[:missing]
        return padding + s if left else s + padding

    def s_pad_start(s: str, length: Any = UNDEFINED, fill: Any = UNDEFINED, *args: Any) -> str:
        return pad(s, length, fill, True)

    def s_pad_end(s: str, length: Any = UNDEFINED, fill: Any = UNDEFINED, *args: Any) -> str:
        return pad(s, length, fill, False)

    def s_concat(s: str, *others: Any) -> str:
        return s + "".join(to_string(o) for o in others)

    def s_locale_compare(s: str, other: Any = UNDEFINED, *args: Any) -> int:
        o = to_string(other)
        return 0 if s == o else (-1 if s < o else 1)

    def s_to_string(s: Any, *args: Any) -> str:
        return to_string(s)

    # -- functions ------------------------------------------------------

    def f_call(fn: Any, this: Any = UNDEFINED, *args: Any) -> Any:
        return interp.call(fn, this, list(args))

    def f_apply(fn: Any, this: Any = UNDEFINED, args: Any = UNDEFINED, *rest: Any) -> Any:
        values = [] if args is UNDEFINED or args is None else iterate(args)
        return interp.call(fn, this, values)

    def f_bind(fn: Any, this: Any = UNDEFINED, *args: Any) -> BoundFunction:
        return BoundFunction(fn, this, list(args), interp)

    # -- objects --------------------------------------------------------

    def o_has_own(obj: dict, key: Any = UNDEFINED, *args: Any) -> bool:
        return to_property_key(key) in obj

    return Prototypes(
        object={
            "hasOwnProperty": o_has_own,
            "toString": lambda obj, *a: to_string(obj),
            "valueOf": lambda obj, *a: obj,
        },
        array={
            "push": a_push,
            "pop": a_pop,
            "shift": a_shift,
            "unshift": a_unshift,
            "slice": a_slice,
            "splice": a_splice,
            "concat": a_concat,
            "join": a_join,
            "reverse": a_reverse,
            "indexOf": a_index_of,
            "lastIndexOf": a_last_index_of,
            "includes": a_includes,
            "find": a_find,
            "findIndex": a_find_index,
            "findLast": a_find_last,
            "filter": a_filter,
            "map": a_map,
            "forEach": a_for_each,
            "reduce": a_reduce,
            "reduceRight": a_reduce_right,
            "some": a_some,
            "every": a_every,
            "sort": a_sort,
            "flat": a_flat,
            "flatMap": a_flat_map,
            "fill": a_fill,
            "at": a_at,
            "entries": a_entries,
            "keys": a_keys,
            "toString": lambda arr, *a: to_string(arr),
        },
        string={
            "charAt": s_char_at,
            "charCodeAt": s_char_code_at,
            "indexOf": s_index_of,
            "lastIndexOf": s_last_index_of,
            "includes": s_includes,
            "startsWith": s_starts_with,
            "endsWith": s_ends_with,
            "slice": s_slice,
            "substring": s_substring,
            "substr": s_substr,
            "toUpperCase": lambda s, *a: s.upper(),
            "toLowerCase": lambda s, *a: s.lower(),
            "trim": s_trim,
            "trimStart": s_trim_start,
            "trimEnd": s_trim_end,
            "split": s_split,
            "replace": s_replace,
            "replaceAll": s_replace_all,
            "repeat": s_repeat,
            "padStart": s_pad_start,
            "padEnd": s_pad_end,
            "concat": s_concat,
            "at": a_at,
            "localeCompare": s_locale_compare,
            "toString": s_to_string,
        },
        number={
            "toFixed": _to_fixed,
            "toString": _number_to_string,
            "toLocaleString": _to_locale_string,
            "valueOf": lambda n, *a: n,
        },
        boolean={
            "toString": s_to_string,
            "valueOf": lambda b, *a: b,
        },
        function={
            "call": f_call,
            "apply": f_apply,
            "bind": f_bind,
            "toString": s_to_string,
        },
    )


# ---------------------------------------------------------------------------
# Globals
# ---------------------------------------------------------------------------


def _make_math() -> JSObject:
    def numeric(fn: Callable[[float], float]) -> Callable[..., Any]:
        def wrapper(x: Any = UNDEFINED, *rest: Any) -> Any:
            n = to_number(x)
            if _is_nan(n):
                return math.nan
            try:
                return normalize_number(fn(n))
            except OverflowError:
                return math.inf
            except ValueError:
                return math.nan

        return wrapper

    def js_round(x: Any = UNDEFINED, *rest: Any) -> Any:
        n = to_number(x)
        if _is_nan(n) or math.isinf(n):
            return n
        return normalize_number(math.floor(n + 0.5))

    def js_max(*args: Any) -> Any:
        values = [to_number(a) for a in args]
        if any(_is_nan(v) for v in values):
            return math.nan
        return max(values, default=-math.inf)

    def js_min(*args: Any) -> Any:
        values = [to_number(a) for a in args]
        if any(_is_nan(v) for v in values):
            return math.nan
        return min(values, default=math.inf)

    def js_pow(base: Any = UNDEFINED, exp: Any = UNDEFINED, *rest: Any) -> Any:
        b, e = to_number(base), to_number(exp)
        try:
            return normalize_number(math.pow(b, e))
        except (ValueError, OverflowError):
            return math.nan

    def js_sign(x: Any = UNDEFINED, *rest: Any) -> Any:
        n = to_number(x)
        if _is_nan(n) or n == 0:
            return n
        return 1 if n > 0 else -1

    return JSObject(
        PI=math.pi,
        E=math.e,
        LN2=math.log(2),
        LN10=math.log(10),
        SQRT2=math.sqrt(2),
        floor=numeric(_integral(math.floor)),
        ceil=numeric(_integral(math.ceil)),
        trunc=numeric(_integral(math.trunc)),
        abs=numeric(abs),
        sqrt=numeric(math.sqrt),
        cbrt=numeric(lambda n: math.copysign(abs(n) ** (1 / 3), n)),
        log=numeric(math.log),
        log2=numeric(math.log2),
        log10=numeric(math.log10),
        exp=numeric(math.exp),
        sin=numeric(math.sin),
        cos=numeric(math.cos),
        tan=numeric(math.tan),
        atan=numeric(math.atan),
        atan2=lambda y=UNDEFINED, x=UNDEFINED, *r: math.atan2(to_number(y), to_number(x)),
        hypot=lambda *args: normalize_number(math.hypot(*(to_number(a) for a in args))),
        round=js_round,
        max=js_max,
        min=js_min,
        pow=js_pow,
        sign=js_sign,
        random=lambda *args: random.random(),
    )


def _make_object(interp: Interpreter) -> NativeFunction:
    def assign(target: Any = UNDEFINED, *sources: Any) -> Any:
        if not isinstance(target, dict):
            raise ScriptError("TypeError", "Cannot convert undefined or null to object")
        for source in sources:
            if source is None or source is UNDEFINED:
                continue
            for key in own_keys(source):
                target[key] = interp.get_member(source, key)
        return target

    def keys(obj: Any = UNDEFINED, *args: Any) -> list:
        if obj is None or obj is UNDEFINED:
            raise ScriptError("TypeError", "Cannot convert undefined or null to object")
        return own_keys(obj)

    def values(obj: Any = UNDEFINED, *args: Any) -> list:
        return [interp.get_member(obj, k) for k in keys(obj)]

    def entries(obj: Any = UNDEFINED, *args: Any) -> list:
        return [[k, interp.get_member(obj, k)] for k in keys(obj)]

    def from_entries(items: Any = UNDEFINED, *args: Any) -> JSObject:
        result = JSObject()
        for pair in iterate(items):
            result[to_property_key(interp.get_member(pair, "0"))] = interp.get_member(pair, "1")
        return result

    def object_is(a: Any = UNDEFINED, b: Any = UNDEFINED, *args: Any) -> bool:
        if _is_nan(a) and _is_nan(b):
            return True
        return strict_equals(a, b)

    return NativeFunction(
        "Object",
        lambda value=UNDEFINED, *args: JSObject() if value is None or value is UNDEFINED else value,
        {
            "assign": NativeFunction("assign", assign),
            "keys": NativeFunction("keys", keys),
            "values": NativeFunction("values", values),
            "entries": NativeFunction("entries", entries),
            "fromEntries": NativeFunction("fromEntries", from_entries),
            "freeze": NativeFunction("freeze", lambda obj=UNDEFINED, *a: obj),
            "is": NativeFunction("is", object_is),
        },
        instance_check=lambda v: isinstance(v, (dict, list)) or callable(v),
    )


def _make_array(interp: Interpreter) -> NativeFunction:
    def create(*args: Any) -> list:
        if len(args) == 1 and is_number(args[0]):
            if not isinstance(args[0], int) or args[0] < 0:
                raise ScriptError("RangeError", "Invalid array length")
            return [UNDEFINED] * args[0]
        return list(args)

    def array_from(source: Any = UNDEFINED, fn: Any = UNDEFINED, *args: Any) -> list:
        if isinstance(source, dict) and "length" in source:
            length = max(0, _to_integer(source["length"]))
            if length > 2**32 - 1:
                raise ScriptError("RangeError", "Invalid array length")
            items = [source.get(str(i), UNDEFINED) for i in range(length)]
        else:
            items = iterate(source)
        if fn is UNDEFINED:
            return items
        return [interp.call(fn, UNDEFINED, [v, i]) for i, v in enumerate(items)]

    return NativeFunction(
        "Array",
        create,
        {
            "isArray": NativeFunction("isArray", lambda v=UNDEFINED, *a: isinstance(v, list)),
            "from": NativeFunction("from", array_from),
            "of": NativeFunction("of", lambda *items: list(items)),
            "%construct": create,
        },
        instance_check=lambda v: isinstance(v, list),
    )


def _make_number() -> NativeFunction:
    def is_integer(v: Any = UNDEFINED, *args: Any) -> bool:
        return is_number(v) and not _is_nan(v) and not math.isinf(v) and float(v).is_integer()

    def is_finite(v: Any = UNDEFINED, *args: Any) -> bool:
        return is_number(v) and not _is_nan(v) and not math.isinf(v)

    return NativeFunction(
        "Number",
        lambda v=0, *args: to_number(v),
        {
            "isInteger": NativeFunction("isInteger", is_integer),
            "isFinite": NativeFunction("isFinite", is_finite),
            "isNaN": NativeFunction("isNaN", lambda v=UNDEFINED, *a: _is_nan(v)),
            "parseInt": NativeFunction("parseInt", parse_int),
            "parseFloat": NativeFunction("parseFloat", parse_float),
            "MAX_SAFE_INTEGER": MAX_SAFE_INTEGER,
            "MIN_SAFE_INTEGER": -MAX_SAFE_INTEGER,
            "EPSILON": 2.0**-52,
        },
        instance_check=lambda v: False,
    )


def build_intrinsics(
    interp: Interpreter, console: Console, timers: TimerQueue | None = None
) -> dict[str, Any]:
    """Build the global intrinsic bindings for one interpreter."""
    error = ErrorClass("Error")
    intrinsics: dict[str, Any] = {
        "undefined": UNDEFINED,
        "NaN": math.nan,
        "Infinity": math.inf,
        "console": console.as_object(),
        "Math": _make_math(),
        "JSON": JSObject(
            stringify=NativeFunction("stringify", json_stringify),
            parse=NativeFunction("parse", json_parse),
        ),
        "Object": _make_object(interp),
        "Array": _make_array(interp),
        "Number": _make_number(),
        "String": NativeFunction(
            "String",
            lambda v="", *args: to_string(v),
            {
                "fromCharCode": NativeFunction(
                    "fromCharCode",
                    lambda *codes: "".join(chr(_to_integer(c) & 0xFFFF) for c in codes),
                )
            },
            instance_check=lambda v: False,
        ),
        "Boolean": NativeFunction("Boolean", lambda v=False, *args: truthy(v)),
        "parseInt": NativeFunction("parseInt", parse_int),
        "parseFloat": NativeFunction("parseFloat", parse_float),
        "isNaN": NativeFunction("isNaN", lambda v=UNDEFINED, *a: _is_nan(to_number(v))),
        "isFinite": NativeFunction(
            "isFinite",
            lambda v=UNDEFINED, *a: not _is_nan(to_number(v)) and not math.isinf(to_number(v)),
        ),
        "Error": error,
        "TypeError": ErrorClass("TypeError", error),
        "RangeError": ErrorClass("RangeError", error),
        "ReferenceError": ErrorClass("ReferenceError", error),
        "SyntaxError": ErrorClass("SyntaxError", error),
    }
    if timers is not None:

        def cancel(tid: Any = UNDEFINED, *args: Any) -> Any:
            return timers.cancel(tid)

        intrinsics.update(
            setTimeout=NativeFunction(
                "setTimeout", lambda fn=UNDEFINED, ms=0, *args: timers.schedule(fn, ms, args, False)
            ),
            setInterval=NativeFunction(
                "setInterval", lambda fn=UNDEFINED, ms=0, *args: timers.schedule(fn, ms, args, True)
            ),
            clearTimeout=NativeFunction("clearTimeout", cancel),
            clearInterval=NativeFunction("clearInterval", cancel),
        )
    logger.debug("built %d intrinsics", len(intrinsics))
    return intrinsics
