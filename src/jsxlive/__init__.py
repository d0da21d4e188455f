"""Live component preview with source-preserving visual edits."""

from __future__ import annotations

__version__ = "0.1.0"


def preview(source: str, filename: str = "component.jsx", title: str | None = None) -> str:
    """Transpile, execute and render component source to HTML.

    Returns the rendered markup, or a full page when *title* is given.  A
    failed execution raises ComponentRuntimeError with the failure message.
    """
    from jsxlive.errors import ComponentRuntimeError
    from jsxlive.render import Renderer, render_page, to_html
    from jsxlive.result import Failure
    from jsxlive.sandbox import Sandbox
    from jsxlive.transpile import transpile

    result = Sandbox().execute(transpile(source, filename))
    if isinstance(result, Failure):
        raise ComponentRuntimeError(result.message)
    renderer = Renderer(result.component, result.timers)
    root = renderer.mount()
    try:
        body = "".join(to_html(child) for child in root.children)
    finally:
        renderer.unmount()
    return body if title is None else render_page(body, title)
