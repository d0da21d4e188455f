"""Sandbox executor — run a lowered module and extract its component."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any

from jsxlive.errors import ComponentRuntimeError, InvalidComponentType
from jsxlive.interpreter import (
    BoundFunction,
    Interpreter,
    JSClass,
    JSFunction,
    JSObject,
    JSThrow,
    Limits,
    NativeFunction,
    ScriptError,
    js_typeof,
    to_string,
)
from jsxlive.intrinsics import Console, TimerQueue, build_intrinsics
from jsxlive.primitives import FRAGMENT, PRIMITIVES, ForwardRefType, MemoType, create_element
from jsxlive.result import INVALID_COMPONENT, RUNTIME, Failure, Success
from jsxlive.transpile import JSX_FACTORY, JSX_FRAGMENT, TranspiledModule

logger = logging.getLogger(__name__)


def is_component(value: Any) -> bool:
    """True if value can be rendered as a component."""
    return isinstance(
        value, (JSFunction, JSClass, NativeFunction, BoundFunction, MemoType, ForwardRefType)
    )


def thrown_message(value: Any) -> str:
    """The message of a thrown value: ``error.message`` for errors."""
    if isinstance(value, dict) and "message" in value:
        return to_string(value["message"])
    return to_string(value)


def _copy_namespace(value: Any, copies: dict[int, JSObject]) -> Any:
    """Copy nested namespace objects; a shared namespace is copied once."""
    if not isinstance(value, dict):
        return value
    copy = copies.get(id(value))
    if copy is None:
        copy = copies[id(value)] = JSObject()
        for key, item in value.items():
            copy[key] = _copy_namespace(item, copies)
    return copy


def _fresh_bindings(primitives: Mapping[str, Any]) -> dict[str, Any]:
    # Namespace objects are copied and shared host values are read-only, so a
    # run cannot mutate the table
    copies: dict[int, JSObject] = {}
    bindings = {name: _copy_namespace(value, copies) for name, value in primitives.items()}
    factory = bindings.get("createElement")
    bindings[JSX_FACTORY] = factory if factory is not None else NativeFunction(
        "createElement", create_element
    )
    bindings[JSX_FRAGMENT] = bindings.get("Fragment", FRAGMENT)
    return bindings


class Sandbox:
    """Evaluates transpiled modules with a closed set of bindings.

    Every call builds a new interpreter, so no state survives between runs.
    """

    def __init__(
        self, primitives: Mapping[str, Any] | None = None, limits: Limits | None = None
    ) -> None:
        self.primitives = PRIMITIVES if primitives is None else primitives
        self.limits = limits or Limits()

    def execute(
        self, module: TranspiledModule, primitives: Mapping[str, Any] | None = None
    ) -> Success | Failure:
        start = time.perf_counter()
        console = Console()
        timers: list[TimerQueue] = []

        def intrinsics(interp: Interpreter) -> dict[str, Any]:
            queue = TimerQueue(interp)
            timers.append(queue)
            return build_intrinsics(interp, console, queue)

        bindings = _fresh_bindings(self.primitives if primitives is None else primitives)
        try:
            interp = Interpreter(bindings, self.limits, intrinsics)
            value = interp.run(module.body)
            if not is_component(value):
                raise InvalidComponentType(js_typeof(value))
        except InvalidComponentType as exc:
            return self._failure(exc.message, start, INVALID_COMPONENT)
        except JSThrow as exc:
            return self._failure(thrown_message(exc.value), start)
        except ScriptError as exc:
            return self._failure(exc.message, start)
        except ComponentRuntimeError as exc:
            return self._failure(exc.message, start)
        except RecursionError:
            return self._failure("Maximum call stack size exceeded", start)
        except (ArithmeticError, ValueError, TypeError, MemoryError) as exc:
            logger.warning("host error during module execution: %r", exc)
            return self._failure(str(exc) or type(exc).__name__, start)

        elapsed = time.perf_counter() - start
        logger.debug(
            "module executed in %.1f ms (%d console entries)", elapsed * 1000, len(console.entries)
        )
        return Success(value, elapsed, tuple(console.entries), timers[0] if timers else None)

    def _failure(self, message: str, start: float, kind: str = RUNTIME) -> Failure:
        elapsed = time.perf_counter() - start
        logger.debug("module failed after %.1f ms: %s", elapsed * 1000, message)
        return Failure(message, elapsed, kind)
