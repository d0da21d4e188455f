"""Tests for TOML config file loading."""

from __future__ import annotations

from pathlib import Path

from jsxlive.cli import DEFAULT_STORE, build_parser, load_config, resolve_options
from jsxlive.interpreter import Limits
from jsxlive.orchestrator import DEFAULT_DEBOUNCE_MS


def _options(tmp_path: Path, *args: str, command: str = "watch"):
    doc = tmp_path / "App.jsx"
    doc.write_text("export default () => <p />;\n")
    return resolve_options(build_parser().parse_args([command, str(doc), *args]))


class TestLoadConfig:
    def test_missing_config_returns_empty(self, tmp_path: Path) -> None:
        assert load_config(None, tmp_path) == {}

    def test_explicit_path(self, tmp_path: Path) -> None:
        cfg = tmp_path / "custom.toml"
        cfg.write_text("[orchestrator]\ndebounce_ms = 100\n")
        result = load_config(cfg, tmp_path)
        assert result["orchestrator"] == {"debounce_ms": 100}

    def test_auto_discover_jsxlive_toml(self, tmp_path: Path) -> None:
        cfg = tmp_path / "jsxlive.toml"
        cfg.write_text('[render]\ntitle = "Preview"\n')
        result = load_config(None, tmp_path)
        assert result["render"] == {"title": "Preview"}

    def test_explicit_missing_path(self, tmp_path: Path) -> None:
        assert load_config(tmp_path / "nope.toml", tmp_path) == {}


class TestDefaults:
    def test_no_config(self, tmp_path: Path) -> None:
        opts = _options(tmp_path)
        assert opts.debounce_ms == DEFAULT_DEBOUNCE_MS
        assert opts.limits == Limits()
        assert opts.title == "jsxlive"
        assert not opts.heuristic_fallback
        assert opts.store_path == Path(DEFAULT_STORE)
        assert opts.filename == str(tmp_path / "App.jsx")


class TestConfigMerge:
    def test_config_values(self, tmp_path: Path) -> None:
        (tmp_path / "jsxlive.toml").write_text(
            "[orchestrator]\ndebounce_ms = 50\n"
            "[sandbox]\nmax_steps = 1000\nmax_call_depth = 20\n"
            '[render]\ntitle = "Preview"\n'
            "[editor]\nheuristic_fallback = true\n"
        )
        opts = _options(tmp_path)
        assert opts.debounce_ms == 50
        assert opts.limits == Limits(1000, 20)
        assert opts.title == "Preview"
        assert opts.heuristic_fallback

    def test_cli_overrides_config(self, tmp_path: Path) -> None:
        (tmp_path / "jsxlive.toml").write_text(
            '[orchestrator]\ndebounce_ms = 50\n[render]\ntitle = "Preview"\n'
            "[sandbox]\nmax_steps = 1000\n"
        )
        opts = _options(
            tmp_path, "--debounce-ms", "5", "--title", "Mine", "--max-steps", "7"
        )
        assert opts.debounce_ms == 5
        assert opts.title == "Mine"
        assert opts.max_steps == 7

    def test_wrong_types_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "jsxlive.toml").write_text(
            '[orchestrator]\ndebounce_ms = "fast"\n'
            "[sandbox]\nmax_steps = true\n"
            '[editor]\nheuristic_fallback = "yes"\n'
            "[render]\ntitle = 3\n"
        )
        opts = _options(tmp_path)
        assert opts.debounce_ms == DEFAULT_DEBOUNCE_MS
        assert opts.max_steps == Limits().max_steps
        assert not opts.heuristic_fallback
        assert opts.title == "jsxlive"

    def test_section_must_be_table(self, tmp_path: Path) -> None:
        (tmp_path / "jsxlive.toml").write_text("orchestrator = 5\n")
        assert _options(tmp_path).debounce_ms == DEFAULT_DEBOUNCE_MS


class TestStorePath:
    def test_relative_to_discovered_config(self, tmp_path: Path) -> None:
        (tmp_path / "jsxlive.toml").write_text('[store]\npath = "data/components.json"\n')
        opts = _options(tmp_path, command="save")
        assert opts.store_path == tmp_path / "data" / "components.json"

    def test_relative_to_explicit_config(self, tmp_path: Path) -> None:
        conf_dir = tmp_path / "conf"
        conf_dir.mkdir()
        cfg = conf_dir / "settings.toml"
        cfg.write_text('[store]\npath = "store.json"\n')
        opts = _options(tmp_path, "--config", str(cfg), command="save")
        assert opts.store_path == conf_dir / "store.json"

    def test_cli_flag_wins(self, tmp_path: Path) -> None:
        (tmp_path / "jsxlive.toml").write_text('[store]\npath = "a.json"\n')
        opts = _options(tmp_path, "--store", "b.json", command="save")
        assert opts.store_path == Path("b.json")
