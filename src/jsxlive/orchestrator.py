"""Execution orchestrator — debounced, last-write-wins execution of source.

Every change gets a sequence number and re-arms the debounce timer.  When
the timer fires the result becomes ``Pending`` and one attempt runs through
the transpiler service and the sandbox.  Attempts run one at a time: a new
attempt waits for the previous one and is skipped if a newer attempt was
queued meanwhile.  Running attempts are never cancelled; a finished attempt is
published only if its sequence is still the latest.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from jsxlive.errors import NoComponentFound, SourceSyntaxError, TranspilerNotReady
from jsxlive.result import (
    DISCOVERY,
    EMPTY,
    NOT_READY,
    RUNTIME,
    SYNTAX,
    ExecutionResult,
    Failure,
    Pending,
    Success,
)
from jsxlive.sandbox import Sandbox
from jsxlive.transpile import TranspilerService

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 300

Listener = Callable[[ExecutionResult], None]


class Orchestrator:
    """Turns a stream of source changes into a stable execution result."""

    def __init__(
        self,
        transpiler: TranspilerService,
        sandbox: Sandbox | None = None,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        filename: str = "component.jsx",
    ) -> None:
        self.transpiler = transpiler
        self.sandbox = sandbox or Sandbox()
        self.debounce = debounce_ms / 1000
        self.filename = filename
        self._result: ExecutionResult | None = None
        self._sequence = 0
        self._timer: asyncio.TimerHandle | None = None
        self._fired: asyncio.Future[None] | None = None
        self._inflight: set[asyncio.Task[None]] = set()
        self._last_attempt: asyncio.Task[None] | None = None
        self._listeners: list[Listener] = []

    @property
    def result(self) -> ExecutionResult | None:
        """Latest published result; None until the first attempt starts."""
        return self._result

    @property
    def sequence(self) -> int:
        return self._sequence

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def on_source_changed(self, text: str) -> int:
        """Record a change and (re)start the debounce window; returns its sequence."""
        loop = asyncio.get_running_loop()
        self._sequence += 1
        sequence = self._sequence
        if self._timer is not None:
            self._timer.cancel()
        if self._fired is None or self._fired.done():
            self._fired = loop.create_future()
        self._timer = loop.call_later(self.debounce, self._fire, sequence, text)
        logger.debug("change %d queued (%d chars)", sequence, len(text))
        return sequence

    def _fire(self, sequence: int, text: str) -> None:
        self._timer = None
        if self._fired is not None and not self._fired.done():
            self._fired.set_result(None)
        self._publish(Pending(sequence))
        previous = self._last_attempt
        task = asyncio.get_running_loop().create_task(self._attempt(sequence, text, previous))
        self._last_attempt = task
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _attempt(
        self, sequence: int, text: str, previous: asyncio.Task[None] | None
    ) -> None:
        if previous is not None and not previous.done():
            await asyncio.wait([previous])
        if self._last_attempt is not asyncio.current_task():
            logger.debug("skipping change %d, a newer attempt is queued", sequence)
            return
        try:
            result = await self.execute(text)
        except Exception as exc:
            logger.exception("attempt for change %d failed unexpectedly", sequence)
            result = Failure(str(exc) or type(exc).__name__, 0.0, RUNTIME)
        if sequence != self._sequence:
            logger.debug("discarding result of change %d (latest is %d)", sequence, self._sequence)
            return
        self._publish(result)

    async def execute(self, text: str) -> Success | Failure:
        """Run one attempt without debouncing or sequencing."""
        if not text.strip():
            return Failure("No code provided", 0.0, EMPTY)
        try:
            module = await self.transpiler.transpile(text)
        except TranspilerNotReady as exc:
            return Failure(exc.message, 0.0, NOT_READY)
        except SourceSyntaxError as exc:
            return Failure(exc.format(self.filename), 0.0, SYNTAX)
        except NoComponentFound as exc:
            return Failure(exc.message, 0.0, DISCOVERY)
        return self.sandbox.execute(module)

    def _publish(self, result: ExecutionResult) -> None:
        self._result = result
        logger.debug("result: %s", type(result).__name__)
        for listener in list(self._listeners):
            listener(result)

    async def wait_idle(self) -> None:
        """Wait for the pending timer and every in-flight attempt."""
        while self._timer is not None or self._inflight:
            if self._timer is not None and self._fired is not None:
                await asyncio.shield(self._fired)
            if self._inflight:
                await asyncio.gather(*self._inflight)

    def close(self) -> None:
        """Cancel the pending timer; in-flight attempts still complete."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._fired is not None and not self._fired.done():
            self._fired.set_result(None)
