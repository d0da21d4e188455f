"""Execution results published by the sandbox and the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar

from jsxlive.intrinsics import ConsoleEntry, TimerQueue

# Failure kinds
SYNTAX = "syntax"
DISCOVERY = "discovery"
RUNTIME = "runtime"
INVALID_COMPONENT = "invalid-component"
EMPTY = "empty"
NOT_READY = "not-ready"


@dataclass(frozen=True, slots=True)
class Success:
    """A component value ready to render.

    ``timers`` is the virtual clock of the interpreter that produced the
    component; the renderer advances it.
    """

    component: Any
    elapsed: float
    console: tuple[ConsoleEntry, ...] = ()
    timers: TimerQueue | None = field(default=None, compare=False, repr=False)

    ok: ClassVar[bool] = True


@dataclass(frozen=True, slots=True)
class Failure:
    message: str
    elapsed: float = 0.0
    kind: str = RUNTIME

    ok: ClassVar[bool] = False


@dataclass(frozen=True, slots=True)
class Pending:
    sequence: int

    ok: ClassVar[bool] = False


ExecutionResult = Success | Failure | Pending
