"""Error types with formatted source context."""

from __future__ import annotations

from jsxlive.tokens import Position, Span


def _render_context(
    message: str,
    source: str,
    start: Position,
    end: Position | None,
    filename: str,
) -> str:
    lines = source.splitlines(keepends=True)
    line_idx = start.line - 1
    col = start.column

    # Build the source line (strip trailing newline for display)
    if 0 <= line_idx < len(lines):
        source_line = lines[line_idx].rstrip("\n").rstrip("\r")
    else:
        source_line = ""

    # Underline the full span when on one line, otherwise to end of line
    if end is None:
        underline_len = max(1, min(2, len(source_line) - col + 1))
    elif end.line == start.line:
        underline_len = max(1, end.column - col)
    else:
        underline_len = max(1, len(source_line) - col + 1)

    pad = " " * (col - 1)
    carets = "^" * underline_len

    line_num = str(start.line)
    gutter_width = len(line_num) + 1

    blank_gutter = " " * gutter_width + "|"
    line_gutter = f"{line_num:>{gutter_width - 1}} |"

    return (
        f"error: {message}\n"
        f"{' ' * gutter_width}--> {filename}:{start.line}:{col}\n"
        f"{blank_gutter}\n"
        f"{line_gutter} {source_line}\n"
        f"{blank_gutter} {pad}{carets}"
    )


class SourceSyntaxError(Exception):
    """Base for errors raised while reading component source."""

    message: str
    position: Position
    source: str

    def format(self, filename: str = "component.jsx") -> str:
        raise NotImplementedError


class LexError(SourceSyntaxError):
    """Raised on the first lexing error, with position and source context."""

    def __init__(self, message: str, position: Position, source: str) -> None:
        self.message = message
        self.position = position
        self.source = source
        super().__init__(self.format())

    def format(self, filename: str = "component.jsx") -> str:
        return _render_context(self.message, self.source, self.position, None, filename)


class ParseError(SourceSyntaxError):
    """Raised on the first parse error, with span and source context."""

    def __init__(self, message: str, span: Span, source: str) -> None:
        self.message = message
        self.span = span
        self.position = span.start
        self.source = source
        super().__init__(self.format())

    def format(self, filename: str = "component.jsx") -> str:
        return _render_context(
            self.message, self.source, self.span.start, self.span.end, filename
        )


class NoComponentFound(Exception):
    """Raised when no binding in a module qualifies as the component."""

    def __init__(self, message: str | None = None) -> None:
        self.message = message or (
            "No valid React component found. "
            "Make sure to export your component as default."
        )
        super().__init__(self.message)


class NoReturnExpression(Exception):
    """Raised when the component has no terminal markup expression to edit."""

    def __init__(self, message: str = "component does not return a JSX expression") -> None:
        self.message = message
        super().__init__(message)


class ComponentRuntimeError(Exception):
    """A failure raised while evaluating or rendering component code."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidComponentType(ComponentRuntimeError):
    """The module's result is not something that can be rendered as a component."""

    def __init__(self, actual_type: str) -> None:
        self.actual_type = actual_type
        super().__init__(
            f"Code must export a React component as default export. Got: {actual_type}"
        )


class PatchNotApplicable(Exception):
    """An edit cannot be expressed against the current source."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class TranspilerNotReady(Exception):
    """The transpiler service was used before ``ready()`` completed."""

    def __init__(self) -> None:
        self.message = "Transpiler not initialized. Call ready() first."
        super().__init__(self.message)


class StoreError(Exception):
    """Base for component store failures."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidComponentCode(StoreError):
    """Code rejected by the store's validation."""


class InvalidRecordId(StoreError):
    def __init__(self, message: str = "Valid component ID is required") -> None:
        super().__init__(message)


class RecordNotFound(StoreError):
    def __init__(self, message: str = "Component not found") -> None:
        super().__init__(message)
