"""Tests for the LSP server — diagnostic generation."""

from __future__ import annotations

import pytest
from lsprotocol.types import (
    DiagnosticSeverity,
    PublishDiagnosticsParams,
    TextDocumentItem,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer
from pygls.workspace import Workspace

from jsxlive.lsp import _validate, diagnose


@pytest.fixture
def lsp_env():
    """Create a LanguageServer with an initialized workspace and captured diagnostics."""
    ls = LanguageServer("test", "v0", text_document_sync_kind=TextDocumentSyncKind.Full)
    ws = Workspace(None)
    ls.protocol._workspace = ws

    published: list[PublishDiagnosticsParams] = []
    ls.text_document_publish_diagnostics = lambda params: published.append(params)

    def put(source: str, uri: str = "file:///test.jsx") -> None:
        ws.put_text_document(
            TextDocumentItem(uri=uri, language_id="jsxlive", version=0, text=source)
        )

    return ls, published, put


# ---------------------------------------------------------------------------
# Syntax errors → Error severity
# ---------------------------------------------------------------------------


class TestSyntaxDiagnostics:
    def test_invalid_character(self, lsp_env) -> None:
        ls, published, put = lsp_env
        put("export default () => <p />;\n\\\n")
        _validate(ls, "file:///test.jsx")

        assert len(published) == 1
        assert published[0].uri == "file:///test.jsx"
        diag = published[0].diagnostics[0]
        assert diag.severity == DiagnosticSeverity.Error
        assert diag.source == "jsxlive"
        assert diag.range.start.line == 1
        assert diag.range.start.character == 0
        assert diag.range.end.character == 1

    def test_mismatched_closing_tag(self, lsp_env) -> None:
        ls, published, put = lsp_env
        put("export default () => <div></span>;")
        _validate(ls, "file:///test.jsx")

        diag = published[0].diagnostics[0]
        assert diag.severity == DiagnosticSeverity.Error
        assert diag.message.startswith("expected corresponding closing tag")
        assert diag.range.start.line == 0
        assert diag.range.start.character > 20

    def test_error_on_third_line(self, lsp_env) -> None:
        ls, published, put = lsp_env
        put("export default () => (\n  <div>\n    </span>\n);\n")
        _validate(ls, "file:///test.jsx")

        diag = published[0].diagnostics[0]
        assert diag.severity == DiagnosticSeverity.Error
        assert diag.range.start.line == 2


# ---------------------------------------------------------------------------
# Discovery and runtime problems
# ---------------------------------------------------------------------------


class TestPipelineDiagnostics:
    def test_valid_document(self, lsp_env, counter_source) -> None:
        ls, published, put = lsp_env
        put(counter_source)
        _validate(ls, "file:///test.jsx")

        assert len(published) == 1
        assert published[0].diagnostics == []

    def test_no_component_is_error(self) -> None:
        [diag] = diagnose("const x = 1;", "test.jsx")
        assert diag.severity == DiagnosticSeverity.Error
        assert diag.message.startswith("No valid React component found")
        assert diag.range.start.line == 0
        assert diag.range.start.character == 0

    def test_thrown_error_is_warning(self) -> None:
        [diag] = diagnose("throw new Error('boom');\nexport default () => <p />;", "a.jsx")
        assert diag.severity == DiagnosticSeverity.Warning
        assert diag.message == "boom"
        assert diag.source == "jsxlive"

    def test_render_error_is_warning(self) -> None:
        source = "export default function App() { return missing.value; }"
        [diag] = diagnose(source, "a.jsx")
        assert diag.severity == DiagnosticSeverity.Warning
        assert diag.message == "missing is not defined"

    def test_documents_are_independent(self, lsp_env) -> None:
        ls, published, put = lsp_env
        put("const x = 1;", "file:///a.jsx")
        put("export default () => <p />;", "file:///b.jsx")
        _validate(ls, "file:///a.jsx")
        _validate(ls, "file:///b.jsx")

        assert [p.uri for p in published] == ["file:///a.jsx", "file:///b.jsx"]
        assert len(published[0].diagnostics) == 1
        assert published[1].diagnostics == []
