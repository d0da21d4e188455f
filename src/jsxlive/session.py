"""Editor session — the boundary the editing surface talks to.

A session owns the current document, the orchestrator that executes it, and
the mounted render root.  Edits are applied to the document text and fed
back through the orchestrator, which re-renders the root when the new
result arrives.
"""

from __future__ import annotations

import logging
from typing import Any

from jsxlive.dom import Element, Node, TextNode
from jsxlive.errors import ComponentRuntimeError, NoReturnExpression, SourceSyntaxError
from jsxlive.orchestrator import DEFAULT_DEBOUNCE_MS, Orchestrator
from jsxlive.patch import (
    EditKind,
    PatchResult,
    Strategy,
    StyleEdit,
    apply_edit,
    heuristic_patch_style,
    heuristic_patch_text,
)
from jsxlive.paths import StructuralAddress, address_of, find_node
from jsxlive.render import Renderer
from jsxlive.result import ExecutionResult, Failure, Pending, Success
from jsxlive.sandbox import Sandbox
from jsxlive.transpile import TranspilerService
from jsxlive.tree import SyntaxTree, parse_tree

logger = logging.getLogger(__name__)

ERROR_CLASS = "jsxlive-error"


class EditorSession:
    """Live preview plus source-preserving edits for one document."""

    def __init__(
        self,
        document: str = "",
        *,
        transpiler: TranspilerService | None = None,
        sandbox: Sandbox | None = None,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        heuristic_fallback: bool = False,
        filename: str = "component.jsx",
    ) -> None:
        self.transpiler = transpiler or TranspilerService(filename)
        self.orchestrator = Orchestrator(self.transpiler, sandbox, debounce_ms, filename)
        self.heuristic_fallback = heuristic_fallback
        self.filename = filename
        self.root: Element | None = None
        self.renderer: Renderer | None = None
        self.last_patch: PatchResult | None = None
        self._document = document
        self._tree: SyntaxTree | None = None
        self._tree_error: Exception | None = None
        self._tree_parsed = False
        self.orchestrator.subscribe(self._on_result)

    @property
    def document(self) -> str:
        return self._document

    async def ready(self) -> None:
        await self.transpiler.ready()

    async def wait_idle(self) -> None:
        await self.orchestrator.wait_idle()

    def close(self) -> None:
        self.orchestrator.close()
        if self.renderer is not None:
            self.renderer.unmount()
            self.renderer = None

    # -- execution ------------------------------------------------------

    def on_source_changed(self, text: str) -> int:
        self._document = text
        self._tree = None
        self._tree_error = None
        self._tree_parsed = False
        return self.orchestrator.on_source_changed(text)

    def current_result(self) -> ExecutionResult | None:
        return self.orchestrator.result

    def _on_result(self, result: ExecutionResult) -> None:
        if self.root is not None and not isinstance(result, Pending):
            self.mount(self.root)

    def mount(self, container: Element | None = None) -> Element:
        """Render the latest result into container (or the current root)."""
        root = container or self.root or Element("div", {"id": "root"})
        self.root = root
        result = self.current_result()
        if result is None or isinstance(result, Pending):
            return root
        if self.renderer is not None:
            self.renderer.unmount()
            self.renderer = None
        root.clear()
        if isinstance(result, Failure):
            _show_error(root, result.message)
            return root
        assert isinstance(result, Success)
        renderer = Renderer(result.component, result.timers)
        try:
            renderer.mount(root)
        except ComponentRuntimeError as exc:
            logger.debug("render failed: %s", exc.message)
            root.clear()
            _show_error(root, exc.message)
            return root
        self.renderer = renderer
        return root

    def dispatch(self, node: Node, event: str, **detail: Any) -> bool:
        if self.renderer is None:
            return False
        try:
            return self.renderer.dispatch(node, event, **detail)
        except ComponentRuntimeError as exc:
            logger.debug("event handler failed: %s", exc.message)
            if self.root is not None:
                self.root.clear()
                _show_error(self.root, exc.message)
            self.renderer = None
            return True

    # -- editing --------------------------------------------------------

    def syntax_tree(self) -> SyntaxTree:
        """Syntax tree of the current document, parsed once per document."""
        if not self._tree_parsed:
            self._tree_parsed = True
            try:
                self._tree = parse_tree(self._document, self.filename)
            except (SourceSyntaxError, NoReturnExpression) as exc:
                self._tree_error = exc
        if self._tree_error is not None:
            raise self._tree_error
        assert self._tree is not None
        return self._tree

    def select_element(self, node: Node) -> StructuralAddress | None:
        if self.root is None:
            return None
        return address_of(node, self.root)

    def apply_edit(
        self, address: StructuralAddress, kind: EditKind, payload: str | StyleEdit
    ) -> str:
        """Apply an edit and feed the resulting document back for execution."""
        result = apply_edit(self._document, address, kind, payload)
        if not result.applied and self.heuristic_fallback and not self._structural_ok():
            result = self._heuristic_edit(address, kind, payload)
        self.last_patch = result
        if result.applied:
            self.on_source_changed(result.document)
        return self._document

    def _structural_ok(self) -> bool:
        try:
            self.syntax_tree()
        except (SourceSyntaxError, NoReturnExpression):
            return False
        return True

    def _heuristic_edit(
        self, address: StructuralAddress, kind: EditKind, payload: str | StyleEdit
    ) -> PatchResult:
        if kind is EditKind.STYLE and isinstance(payload, StyleEdit):
            patched = heuristic_patch_style(self._document, payload.property, payload.value)
        else:
            node = find_node(address, self.root) if self.root is not None else None
            old = node.text_content if node is not None else ""
            patched = heuristic_patch_text(self._document, old, str(payload))
        logger.debug("structural edit unavailable, heuristic strategy used")
        return PatchResult(patched, Strategy.HEURISTIC, patched != self._document)


def _show_error(root: Element, message: str) -> None:
    pre = Element("pre", {"class": ERROR_CLASS})
    pre.append(TextNode(message))
    root.append(pre)
