"""Command-line interface for jsxlive."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from jsxlive.errors import (
    ComponentRuntimeError,
    NoComponentFound,
    NoReturnExpression,
    SourceSyntaxError,
    StoreError,
)
from jsxlive.interpreter import Limits
from jsxlive.orchestrator import DEFAULT_DEBOUNCE_MS
from jsxlive.patch import EditKind, StyleEdit
from jsxlive.paths import StructuralAddress, format_address, parse_address
from jsxlive.result import ExecutionResult, Failure, Success

if TYPE_CHECKING:
    from jsxlive.store import FileStore

logger = logging.getLogger(__name__)

CONFIG_NAME = "jsxlive.toml"
DEFAULT_STORE = "jsxlive-store.json"
DEFAULT_TITLE = "jsxlive"
POLL_INTERVAL = 0.5


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Parsed CLI options."""

    command: str
    input_file: Path | None
    output_file: Path | None
    in_place: bool
    address: StructuralAddress
    text: str | None
    style: tuple[str, str] | None
    record_id: str | None
    title: str
    debounce_ms: int
    max_steps: int
    max_call_depth: int
    heuristic_fallback: bool
    store_path: Path
    verbose: bool

    @property
    def limits(self) -> Limits:
        return Limits(self.max_steps, self.max_call_depth)

    @property
    def filename(self) -> str:
        return str(self.input_file) if self.input_file is not None else "component.jsx"


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (separate function for testability)."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        metavar="FILE",
        help=f"Config file (default: auto-discover {CONFIG_NAME})",
    )
    common.add_argument("-v", "--verbose", action="store_true", help="Log debug output")

    p = argparse.ArgumentParser(
        prog="jsxlive",
        description="Live component preview and source-preserving editing",
    )
    sub = p.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", parents=[common], help="Render a component to HTML")
    render.add_argument("input", help="Component source file")
    render.add_argument("-o", "--output", help="Output file (default: stdout)")
    render.add_argument("--title", help=f"Page title (default: {DEFAULT_TITLE})")
    _add_limit_args(render)

    tree = sub.add_parser("tree", parents=[common], help="Dump the returned markup tree")
    tree.add_argument("input", help="Component source file")

    edit = sub.add_parser("edit", parents=[common], help="Edit text or style in place")
    edit.add_argument("input", help="Component source file")
    edit.add_argument(
        "--at", required=True, metavar="ADDRESS", help="Element address, e.g. 'div[0] > h2[0]'"
    )
    what = edit.add_mutually_exclusive_group(required=True)
    what.add_argument("--text", help="New text for the element")
    what.add_argument("--style", metavar="PROP=VALUE", help="Inline style property to set")
    where = edit.add_mutually_exclusive_group()
    where.add_argument("-o", "--output", help="Output file (default: stdout)")
    where.add_argument("--in-place", action="store_true", help="Rewrite the input file")
    edit.add_argument(
        "--heuristic-fallback",
        action="store_true",
        default=None,
        help="Fall back to string search when the markup cannot be parsed",
    )
    _add_limit_args(edit)

    watch = sub.add_parser("watch", parents=[common], help="Re-render on every change")
    watch.add_argument("input", help="Component source file")
    watch.add_argument("-o", "--output", help="Output file (default: stdout)")
    watch.add_argument("--title", help=f"Page title (default: {DEFAULT_TITLE})")
    watch.add_argument(
        "--debounce-ms",
        type=int,
        default=None,
        metavar="MS",
        help=f"Debounce window in milliseconds (default: {DEFAULT_DEBOUNCE_MS})",
    )
    _add_limit_args(watch)

    save = sub.add_parser("save", parents=[common], help="Save a component to the store")
    save.add_argument("input", help="Component source file")
    save.add_argument("--id", dest="record_id", help="Update this record instead of creating")
    save.add_argument("--store", metavar="FILE", help=f"Store file (default: {DEFAULT_STORE})")

    load = sub.add_parser("load", parents=[common], help="Print a saved component")
    load.add_argument("record_id", metavar="ID", help="Record id")
    load.add_argument("-o", "--output", help="Output file (default: stdout)")
    load.add_argument("--store", metavar="FILE", help=f"Store file (default: {DEFAULT_STORE})")
    return p


def _add_limit_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--max-steps", type=int, default=None, metavar="N", help="Step budget")
    p.add_argument(
        "--max-call-depth", type=int, default=None, metavar="N", help="Call depth budget"
    )


def parse_style_arg(s: str) -> tuple[str, str]:
    """Parse a PROP=VALUE string into (prop, value)."""
    name, sep, value = s.partition("=")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"invalid style format (expected PROP=VALUE): {s}")
    return name.strip(), value.strip()


def load_config(config_path: Path | None, input_dir: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict on missing/absent file."""
    path = config_path if config_path is not None else input_dir / CONFIG_NAME

    if not path.is_file():
        return {}

    with open(path, "rb") as f:
        return tomllib.load(f)


def _section(config: dict[str, Any], name: str) -> dict[str, Any]:
    value = config.get(name)
    return value if isinstance(value, dict) else {}


def _int_setting(section: dict[str, Any], key: str, default: int) -> int:
    value = section.get(key)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return default


def resolve_options(args: argparse.Namespace) -> CliOptions:
    """Merge config file and CLI args into CliOptions.

    Precedence: defaults < config file < CLI flags.
    """
    input_arg = getattr(args, "input", None)
    input_file = Path(input_arg) if input_arg else None
    input_dir = input_file.parent if input_file is not None else Path(".")
    if not input_dir.parts:
        input_dir = Path(".")

    config_path = Path(args.config) if args.config else None
    config = load_config(config_path, input_dir)
    orchestrator = _section(config, "orchestrator")
    sandbox = _section(config, "sandbox")
    editor = _section(config, "editor")
    store = _section(config, "store")
    render = _section(config, "render")

    defaults = Limits()
    debounce_ms = _int_setting(orchestrator, "debounce_ms", DEFAULT_DEBOUNCE_MS)
    max_steps = _int_setting(sandbox, "max_steps", defaults.max_steps)
    max_call_depth = _int_setting(sandbox, "max_call_depth", defaults.max_call_depth)
    if getattr(args, "debounce_ms", None) is not None:
        debounce_ms = args.debounce_ms
    if getattr(args, "max_steps", None) is not None:
        max_steps = args.max_steps
    if getattr(args, "max_call_depth", None) is not None:
        max_call_depth = args.max_call_depth

    heuristic_fallback = editor.get("heuristic_fallback") is True
    if getattr(args, "heuristic_fallback", None) is not None:
        heuristic_fallback = args.heuristic_fallback

    title = DEFAULT_TITLE
    if isinstance(render.get("title"), str):
        title = render["title"]
    if getattr(args, "title", None):
        title = args.title

    # The store path in a config file is relative to that file's directory
    store_path = Path(DEFAULT_STORE)
    if isinstance(store.get("path"), str):
        base = config_path.parent if config_path is not None else input_dir
        store_path = base / store["path"]
    if getattr(args, "store", None):
        store_path = Path(args.store)

    address: StructuralAddress = ()
    if getattr(args, "at", None):
        try:
            address = parse_address(args.at)
        except ValueError as exc:
            raise argparse.ArgumentTypeError(str(exc)) from None
    style = parse_style_arg(args.style) if getattr(args, "style", None) else None

    output = getattr(args, "output", None)
    return CliOptions(
        command=args.command,
        input_file=input_file,
        output_file=Path(output) if output else None,
        in_place=bool(getattr(args, "in_place", False)),
        address=address,
        text=getattr(args, "text", None),
        style=style,
        record_id=getattr(args, "record_id", None),
        title=title,
        debounce_ms=debounce_ms,
        max_steps=max_steps,
        max_call_depth=max_call_depth,
        heuristic_fallback=heuristic_fallback,
        store_path=store_path,
        verbose=args.verbose,
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _read_input(options: CliOptions) -> str:
    assert options.input_file is not None
    return options.input_file.read_text(encoding="utf-8")


def _write_output(options: CliOptions, text: str) -> None:
    if options.output_file:
        options.output_file.write_text(text, encoding="utf-8")
    else:
        sys.stdout.write(text)
        sys.stdout.flush()


def render_html(result: Success, title: str) -> str:
    """Mount a successful result and serialize it as a page."""
    from jsxlive.render import Renderer, render_page, to_html

    renderer = Renderer(result.component, result.timers)
    root = renderer.mount()
    try:
        body = "".join(to_html(child) for child in root.children)
    finally:
        renderer.unmount()
    return render_page(body, title)


def _execute(source: str, options: CliOptions) -> Success:
    """Transpile and run source; a sandbox failure raises ComponentRuntimeError."""
    from jsxlive.sandbox import Sandbox
    from jsxlive.transpile import transpile

    module = transpile(source, options.filename)
    result = Sandbox(limits=options.limits).execute(module)
    if isinstance(result, Failure):
        raise ComponentRuntimeError(result.message)
    for entry in result.console:
        print(str(entry), file=sys.stderr)
    return result


def compile_file(options: CliOptions) -> str:
    """Read, transpile, execute and render a component file to HTML."""
    source = _read_input(options)
    return render_html(_execute(source, options), options.title)


def dump_file(options: CliOptions) -> None:
    from jsxlive.debug import dump_tree
    from jsxlive.tree import parse_tree

    tree = parse_tree(_read_input(options), options.filename)
    dump_tree(tree, file=sys.stdout)


def edit_file(options: CliOptions) -> str | None:
    """Apply the requested edit; returns the new document or None when not applied."""
    from jsxlive.patch import apply_edit

    source = _read_input(options)
    kind, payload = _edit_payload(options)
    result = apply_edit(source, options.address, kind, payload)
    if result.applied:
        return result.document
    if options.heuristic_fallback:
        patched = _heuristic_edit(source, options, payload)
        if patched != source:
            logger.debug("structural edit unavailable, heuristic strategy used")
            return patched
    return None


def _edit_payload(options: CliOptions) -> tuple[EditKind, str | StyleEdit]:
    if options.style is not None:
        return EditKind.STYLE, StyleEdit(*options.style)
    assert options.text is not None
    return EditKind.TEXT, options.text


def _heuristic_edit(source: str, options: CliOptions, payload: str | StyleEdit) -> str:
    from jsxlive.patch import heuristic_patch_style, heuristic_patch_text
    from jsxlive.paths import find_node
    from jsxlive.render import Renderer

    if _markup_parses(source, options.filename):
        # The structural miss was a bad address, not unparsable markup
        return source

    if isinstance(payload, StyleEdit):
        return heuristic_patch_style(source, payload.property, payload.value)
    try:
        result = _execute(source, options)
        renderer = Renderer(result.component, result.timers)
        node = find_node(options.address, renderer.mount())
    except (SourceSyntaxError, NoComponentFound, ComponentRuntimeError) as exc:
        logger.debug("cannot render for heuristic edit: %s", exc)
        return source
    if node is None:
        return source
    return heuristic_patch_text(source, node.text_content, payload)


def _markup_parses(source: str, filename: str) -> bool:
    from jsxlive.tree import parse_tree

    try:
        parse_tree(source, filename)
    except (SourceSyntaxError, NoReturnExpression):
        return False
    return True


async def watch_loop(options: CliOptions, *, max_polls: int | None = None) -> None:
    """Poll input file for changes and write output on every resolved result."""
    from jsxlive.orchestrator import Orchestrator
    from jsxlive.sandbox import Sandbox
    from jsxlive.transpile import TranspilerService

    assert options.input_file is not None
    transpiler = TranspilerService(options.filename)
    await transpiler.ready()
    orchestrator = Orchestrator(
        transpiler, Sandbox(limits=options.limits), options.debounce_ms, options.filename
    )
    orchestrator.subscribe(lambda result: _emit(options, result))

    last_mtime = 0.0
    polls = 0
    print(f"Watching {options.input_file} for changes...", file=sys.stderr)
    try:
        while max_polls is None or polls < max_polls:
            polls += 1
            try:
                mtime = options.input_file.stat().st_mtime
            except OSError:
                await asyncio.sleep(POLL_INTERVAL)
                continue
            if mtime != last_mtime:
                last_mtime = mtime
                orchestrator.on_source_changed(_read_input(options))
            await asyncio.sleep(POLL_INTERVAL)
        await orchestrator.wait_idle()
    finally:
        orchestrator.close()


def _emit(options: CliOptions, result: ExecutionResult) -> None:
    if isinstance(result, Failure):
        print(result.message, file=sys.stderr)
    elif isinstance(result, Success):
        try:
            html = render_html(result, options.title)
        except ComponentRuntimeError as exc:
            print(exc.message, file=sys.stderr)
            return
        _write_output(options, html)
        print(f"Rendered {options.input_file}", file=sys.stderr)


def _store(options: CliOptions) -> FileStore:
    from jsxlive.store import FileStore

    return FileStore(options.store_path)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code (0/1/2). Does not call sys.exit()."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        options = resolve_options(args)
    except argparse.ArgumentTypeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=logging.DEBUG if options.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if options.command == "watch":
            try:
                asyncio.run(watch_loop(options))
            except KeyboardInterrupt:
                pass
            return 0
        if options.command == "render":
            _write_output(options, compile_file(options))
        elif options.command == "tree":
            dump_file(options)
        elif options.command == "edit":
            document = edit_file(options)
            if document is None:
                where = format_address(options.address)
                print(f"error: edit not applied at {where}", file=sys.stderr)
                return 1
            if options.in_place:
                assert options.input_file is not None
                options.input_file.write_text(document, encoding="utf-8")
            else:
                _write_output(options, document)
        elif options.command == "save":
            store = _store(options)
            code = _read_input(options)
            if options.record_id:
                record = store.update(options.record_id, code)
            else:
                record = store.create(code)
            print(record.id)
        elif options.command == "load":
            record = _store(options).get(options.record_id)
            _write_output(options, record.code)
    except SourceSyntaxError as exc:
        print(exc.format(options.filename), file=sys.stderr)
        return 1
    except (NoComponentFound, NoReturnExpression, StoreError) as exc:
        print(f"error: {exc.message}", file=sys.stderr)
        return 1
    except ComponentRuntimeError as exc:
        print(f"error: {exc.message}", file=sys.stderr)
        return 2
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    return 0
