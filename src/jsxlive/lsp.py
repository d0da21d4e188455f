"""Minimal LSP server for component sources — diagnostics only."""

from __future__ import annotations

from lsprotocol.types import (
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    Position,
    PublishDiagnosticsParams,
    Range,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer

from jsxlive.errors import (
    ComponentRuntimeError,
    LexError,
    NoComponentFound,
    ParseError,
    SourceSyntaxError,
)
from jsxlive.render import Renderer
from jsxlive.result import Failure
from jsxlive.sandbox import Sandbox
from jsxlive.transpile import transpile

server = LanguageServer("jsxlive-lsp", "0.1.0", text_document_sync_kind=TextDocumentSyncKind.Full)

SOURCE = "jsxlive"


def _document_start() -> Range:
    return Range(start=Position(line=0, character=0), end=Position(line=0, character=1))


def _syntax_range(exc: SourceSyntaxError) -> Range:
    if isinstance(exc, ParseError):
        return Range(
            start=Position(line=exc.span.start.line - 1, character=exc.span.start.column - 1),
            end=Position(line=exc.span.end.line - 1, character=exc.span.end.column - 1),
        )
    line = exc.position.line - 1
    col = exc.position.column - 1
    return Range(
        start=Position(line=line, character=col),
        end=Position(line=line, character=col + 1),
    )


def diagnose(source: str, filename: str) -> list[Diagnostic]:
    """Run the preview pipeline over source and collect diagnostics."""
    try:
        module = transpile(source, filename)
    except (LexError, ParseError) as exc:
        return [
            Diagnostic(
                range=_syntax_range(exc),
                message=exc.message,
                severity=DiagnosticSeverity.Error,
                source=SOURCE,
            )
        ]
    except NoComponentFound as exc:
        return [
            Diagnostic(
                range=_document_start(),
                message=exc.message,
                severity=DiagnosticSeverity.Error,
                source=SOURCE,
            )
        ]

    result = Sandbox().execute(module)
    message = result.message if isinstance(result, Failure) else None
    if message is None:
        renderer = Renderer(result.component, result.timers)
        try:
            renderer.mount()
        except ComponentRuntimeError as exc:
            message = exc.message
        else:
            renderer.unmount()
    if message is None:
        return []
    return [
        Diagnostic(
            range=_document_start(),
            message=message,
            severity=DiagnosticSeverity.Warning,
            source=SOURCE,
        )
    ]


def _validate(ls: LanguageServer, uri: str) -> None:
    """Run the pipeline and publish diagnostics."""
    doc = ls.workspace.get_text_document(uri)
    filename = uri.rsplit("/", 1)[-1] if "/" in uri else uri
    diagnostics = diagnose(doc.source, filename)
    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
    )


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


def main() -> None:
    server.start_io()
