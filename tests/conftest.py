"""Shared test fixtures and helpers."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from jsxlive.dom import Element
from jsxlive.interpreter import Interpreter
from jsxlive.intrinsics import Console, build_intrinsics
from jsxlive.lexer import tokenize
from jsxlive.parser import parse
from jsxlive.render import Renderer
from jsxlive.result import Failure, Success
from jsxlive.sandbox import Sandbox
from jsxlive.tokens import Token, TokenType
from jsxlive.transpile import transpile

COUNTER_SOURCE = """\
import React, { useState } from 'react';

// Sample counter
export default function Counter() {
  const [count, setCount] = useState(0);
  return (
    <div className="counter">
      <h2>Hello, world!</h2>
      <p>Count: {count}</p>
      <button onClick={() => setCount(count + 1)}>Increment</button>
    </div>
  );
}
"""


@pytest.fixture
def counter_source() -> str:
    return COUNTER_SOURCE


@pytest.fixture
def lex():
    """Return a helper that tokenizes source and returns tokens (excluding EOF)."""

    def _lex(source: str) -> list[Token]:
        tokens = tokenize(source)
        # Strip trailing EOF for convenience
        return [t for t in tokens if t.type != TokenType.EOF]

    return _lex


@pytest.fixture
def parse_source():
    """Return a helper that parses source and returns a Program."""

    def _parse(source: str, filename: str = "test.jsx"):
        return parse(source, filename)

    return _parse


@pytest.fixture
def evaluate() -> Callable[[str], object]:
    """Return a helper that runs script statements and returns the top-level result.

    The source must end with a ``return`` statement; console output goes to
    ``helper.console``.
    """
    console = Console()

    def _evaluate(source: str) -> object:
        program = parse(source, "test.js")
        interp = Interpreter({}, intrinsics=lambda i: build_intrinsics(i, console))
        return interp.run(program.body)

    _evaluate.console = console  # type: ignore[attr-defined]
    return _evaluate


@pytest.fixture
def execute() -> Callable[[str], Success | Failure]:
    """Return a helper that transpiles and executes a component module."""

    def _execute(source: str) -> Success | Failure:
        return Sandbox().execute(transpile(source, "test.jsx"))

    return _execute


@pytest.fixture
def mount(execute) -> Callable[[str], tuple[Renderer, Element]]:
    """Return a helper that executes source and mounts the component."""

    def _mount(source: str) -> tuple[Renderer, Element]:
        result = execute(source)
        assert isinstance(result, Success), getattr(result, "message", result)
        renderer = Renderer(result.component, result.timers)
        return renderer, renderer.mount()

    return _mount


def assert_types(tokens: list[Token], expected: list[TokenType]) -> None:
    """Assert that the token types match the expected list."""
    actual = [t.type for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def assert_values(tokens: list[Token], expected: list[str]) -> None:
    """Assert that the token values match the expected list."""
    actual = [t.value for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"
