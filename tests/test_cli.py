"""Tests for the CLI module: arg parsing, exit codes, commands end-to-end."""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

import pytest

from jsxlive import cli
from jsxlive.cli import build_parser, compile_file, main, parse_style_arg, resolve_options
from jsxlive.paths import format_address

COUNTER_HTML = (
    '<div class="counter"><h2>Hello, world!</h2><p>Count: 0</p>'
    "<button>Increment</button></div>"
)

INDIRECT = """\
export default function App() {
  const view = <h2 style={{ color: 'red' }}>Hello</h2>;
  return view;
}
"""


@pytest.fixture
def component(tmp_path: Path, counter_source: str) -> Path:
    path = tmp_path / "Counter.jsx"
    path.write_text(counter_source, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


class TestParseStyleArg:
    def test_simple(self) -> None:
        assert parse_style_arg("color=red") == ("color", "red")

    def test_value_with_equals_and_spaces(self) -> None:
        assert parse_style_arg(" background = url(a=b) ") == ("background", "url(a=b)")

    def test_empty_value(self) -> None:
        assert parse_style_arg("color=") == ("color", "")

    def test_no_equals_raises(self) -> None:
        with pytest.raises(argparse.ArgumentTypeError):
            parse_style_arg("color")


class TestArgParsing:
    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_render(self) -> None:
        ns = build_parser().parse_args(["render", "App.jsx", "-o", "out.html"])
        assert ns.command == "render"
        assert ns.input == "App.jsx"
        assert ns.output == "out.html"
        assert ns.max_steps is None

    def test_edit_requires_text_or_style(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["edit", "App.jsx", "--at", "div"])
        with pytest.raises(SystemExit):
            build_parser().parse_args(
                ["edit", "App.jsx", "--at", "div", "--text", "a", "--style", "color=red"]
            )

    def test_edit_output_and_in_place_exclusive(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(
                ["edit", "App.jsx", "--at", "div", "--text", "a", "-o", "x", "--in-place"]
            )

    def test_common_flags_after_command(self) -> None:
        ns = build_parser().parse_args(["tree", "App.jsx", "-v", "--config", "c.toml"])
        assert ns.verbose
        assert ns.config == "c.toml"

    def test_edit_options(self, tmp_path: Path) -> None:
        ns = build_parser().parse_args(
            ["edit", str(tmp_path / "App.jsx"), "--at", "div > p[1]", "--style", "color=red"]
        )
        opts = resolve_options(ns)
        assert format_address(opts.address) == "div[0] > p[1]"
        assert opts.style == ("color", "red")
        assert opts.text is None
        assert not opts.in_place

    def test_limits(self, tmp_path: Path) -> None:
        ns = build_parser().parse_args(
            ["render", str(tmp_path / "App.jsx"), "--max-steps", "10", "--max-call-depth", "3"]
        )
        limits = resolve_options(ns).limits
        assert limits.max_steps == 10
        assert limits.max_call_depth == 3


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------


class TestExitCodes:
    def test_success(self, component: Path, capsys) -> None:
        assert main(["render", str(component)]) == 0
        assert COUNTER_HTML in capsys.readouterr().out

    def test_syntax_error_returns_1(self, tmp_path: Path, capsys) -> None:
        path = tmp_path / "Broken.jsx"
        path.write_text("export default () => <div></span>;\n", encoding="utf-8")
        assert main(["render", str(path)]) == 1
        err = capsys.readouterr().err
        assert err.startswith("error: ")
        assert f"--> {path}:1:" in err

    def test_no_component_returns_1(self, tmp_path: Path, capsys) -> None:
        path = tmp_path / "none.jsx"
        path.write_text("const x = 1;\n", encoding="utf-8")
        assert main(["render", str(path)]) == 1
        assert "No valid React component found" in capsys.readouterr().err

    def test_thrown_error_returns_2(self, tmp_path: Path, capsys) -> None:
        path = tmp_path / "Throws.jsx"
        path.write_text(
            "throw new Error('boom');\nexport default () => <p />;\n", encoding="utf-8"
        )
        assert main(["render", str(path)]) == 2
        assert "error: boom" in capsys.readouterr().err

    def test_render_error_returns_2(self, tmp_path: Path, capsys) -> None:
        path = tmp_path / "App.jsx"
        path.write_text(
            "export default function App() { return missing.value; }\n", encoding="utf-8"
        )
        assert main(["render", str(path)]) == 2
        assert "missing is not defined" in capsys.readouterr().err

    def test_missing_input_returns_2(self, tmp_path: Path) -> None:
        assert main(["render", str(tmp_path / "absent.jsx")]) == 2

    def test_bad_address_returns_2(self, component: Path, capsys) -> None:
        assert main(["edit", str(component), "--at", "div > [1]", "--text", "x"]) == 2
        assert "invalid address step" in capsys.readouterr().err

    def test_bad_style_returns_2(self, component: Path) -> None:
        assert main(["edit", str(component), "--at", "div", "--style", "color"]) == 2


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class TestRender:
    def test_output_file_and_title(self, component: Path, tmp_path: Path) -> None:
        out = tmp_path / "out.html"
        assert main(["render", str(component), "-o", str(out), "--title", "A & B"]) == 0
        html = out.read_text(encoding="utf-8")
        assert html.startswith("<!DOCTYPE html>\n")
        assert "<title>A &amp; B</title>" in html
        assert COUNTER_HTML in html

    def test_console_goes_to_stderr(self, tmp_path: Path, capsys) -> None:
        path = tmp_path / "App.jsx"
        path.write_text(
            "console.log('loaded', 2);\nexport default () => <p>x</p>;\n", encoding="utf-8"
        )
        assert main(["render", str(path)]) == 0
        captured = capsys.readouterr()
        assert "loaded 2" in captured.err
        assert "<p>x</p>" in captured.out

    def test_compile_file(self, component: Path) -> None:
        opts = resolve_options(build_parser().parse_args(["render", str(component)]))
        assert COUNTER_HTML in compile_file(opts)


class TestTree:
    def test_dump_to_stdout(self, component: Path, capsys) -> None:
        assert main(["tree", str(component)]) == 0
        out = capsys.readouterr().out
        assert out.startswith("SyntaxTree [")
        assert "  Element <div> [" in out
        assert "Text('Hello, world!')" in out

    def test_no_markup_returns_1(self, tmp_path: Path, capsys) -> None:
        path = tmp_path / "App.jsx"
        path.write_text(INDIRECT, encoding="utf-8")
        assert main(["tree", str(path)]) == 1
        assert capsys.readouterr().err.startswith("error: ")


class TestEdit:
    def test_text_to_stdout(self, component: Path, counter_source: str, capsys) -> None:
        assert main(["edit", str(component), "--at", "div > h2", "--text", "Hi there!"]) == 0
        assert capsys.readouterr().out == counter_source.replace("Hello, world!", "Hi there!")
        assert component.read_text(encoding="utf-8") == counter_source

    def test_style_in_place(self, component: Path) -> None:
        argv = ["edit", str(component), "--at", "div > p", "--style", "font-weight=bold"]
        assert main([*argv, "--in-place"]) == 0
        assert "<p style={{fontWeight: 'bold'}}>" in component.read_text(encoding="utf-8")

    def test_not_applied_returns_1(self, component: Path, counter_source: str, capsys) -> None:
        assert main(["edit", str(component), "--at", "div > nav", "--text", "x"]) == 1
        assert "edit not applied at div[0] > nav[0]" in capsys.readouterr().err
        assert component.read_text(encoding="utf-8") == counter_source

    def test_heuristic_fallback(self, tmp_path: Path, capsys) -> None:
        path = tmp_path / "App.jsx"
        path.write_text(INDIRECT, encoding="utf-8")
        argv = ["edit", str(path), "--at", "h2", "--text", "Bye"]
        assert main(argv) == 1
        capsys.readouterr()
        assert main([*argv, "--heuristic-fallback"]) == 0
        assert capsys.readouterr().out == INDIRECT.replace(">Hello<", ">Bye<")

    def test_heuristic_fallback_from_config(self, tmp_path: Path, capsys) -> None:
        (tmp_path / "jsxlive.toml").write_text(
            "[editor]\nheuristic_fallback = true\n", encoding="utf-8"
        )
        path = tmp_path / "App.jsx"
        path.write_text(INDIRECT, encoding="utf-8")
        assert main(["edit", str(path), "--at", "h2", "--style", "color=blue"]) == 0
        assert "color: 'blue'" in capsys.readouterr().out


class TestStoreCommands:
    def test_save_and_load(self, component: Path, tmp_path: Path, capsys) -> None:
        store = tmp_path / "store.json"
        assert main(["save", str(component), "--store", str(store)]) == 0
        record_id = capsys.readouterr().out.strip()
        assert store.is_file()

        assert main(["load", record_id, "--store", str(store)]) == 0
        assert capsys.readouterr().out == component.read_text(encoding="utf-8")

    def test_save_updates_existing(self, component: Path, tmp_path: Path, capsys) -> None:
        store = tmp_path / "store.json"
        main(["save", str(component), "--store", str(store)])
        record_id = capsys.readouterr().out.strip()

        component.write_text(
            "export default function App() { return <p>v2</p>; }\n", encoding="utf-8"
        )
        argv = ["save", str(component), "--store", str(store), "--id", record_id]
        assert main(argv) == 0
        assert capsys.readouterr().out.strip() == record_id

        main(["load", record_id, "--store", str(store)])
        assert "v2" in capsys.readouterr().out

    def test_invalid_code_returns_1(self, tmp_path: Path, capsys) -> None:
        path = tmp_path / "blank.jsx"
        path.write_text("   \n", encoding="utf-8")
        assert main(["save", str(path), "--store", str(tmp_path / "s.json")]) == 1
        assert "error: Code is required" in capsys.readouterr().err

    def test_load_errors_return_1(self, tmp_path: Path, monkeypatch, capsys) -> None:
        monkeypatch.chdir(tmp_path)
        store = str(tmp_path / "s.json")
        assert main(["load", "not-a-uuid", "--store", store]) == 1
        assert "Valid component ID is required" in capsys.readouterr().err
        missing = "00000000-0000-4000-8000-000000000000"
        assert main(["load", missing, "--store", store]) == 1
        assert "Component not found" in capsys.readouterr().err


class TestWatch:
    @pytest.mark.asyncio
    async def test_renders_once_per_change(
        self, component: Path, tmp_path: Path, monkeypatch, capsys
    ) -> None:
        monkeypatch.setattr(cli, "POLL_INTERVAL", 0.01)
        out = tmp_path / "out.html"
        ns = build_parser().parse_args(
            ["watch", str(component), "-o", str(out), "--debounce-ms", "1"]
        )
        await cli.watch_loop(resolve_options(ns), max_polls=3)
        assert COUNTER_HTML in out.read_text(encoding="utf-8")
        err = capsys.readouterr().err
        assert f"Watching {component} for changes..." in err
        assert err.count("Rendered") == 1

    @pytest.mark.asyncio
    async def test_failure_reported(self, tmp_path: Path, monkeypatch, capsys) -> None:
        monkeypatch.setattr(cli, "POLL_INTERVAL", 0.01)
        path = tmp_path / "App.jsx"
        path.write_text("const x = 1;\n", encoding="utf-8")
        ns = build_parser().parse_args(["watch", str(path), "--debounce-ms", "1"])
        await cli.watch_loop(resolve_options(ns), max_polls=2)
        assert "No valid React component found" in capsys.readouterr().err

    def test_missing_file_keeps_polling(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setattr(cli, "POLL_INTERVAL", 0.0)
        ns = build_parser().parse_args(["watch", str(tmp_path / "absent.jsx")])
        asyncio.run(cli.watch_loop(resolve_options(ns), max_polls=2))
