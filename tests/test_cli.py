"""Tests for the pneuma CLI entry point."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from click.testing import CliRunner

from pneuma import __version__
from pneuma.cli import default_log_file, main

from .virtual_terminal import VirtualTerminal


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    site = tmp_path / "blog"
    (site / "content" / "posts").mkdir(parents=True)
    (site / "content" / "posts" / "hello.md").write_text("---\ntitle: Hello\n---\n", encoding="utf-8")
    path = tmp_path / "pneuma.json"
    path.write_text(json.dumps({
        "editor": "vim",
        "sites": [{"name": "blog", "path": str(site)}],
    }), encoding="utf-8")
    return path


@pytest.fixture
def terminals(monkeypatch) -> list[VirtualTerminal]:
    """Replace the process terminal with scripted virtual ones."""
    created: list[VirtualTerminal] = []

    def factory():
        terminal = VirtualTerminal(keys=["j", "q"])
        created.append(terminal)
        return terminal

    monkeypatch.setattr("pneuma.cli.ProcessTerminal", factory)
    return created


def invoke(*args: str, tmp_path: Path):
    runner = CliRunner()
    return runner.invoke(main, ["--log-file", str(tmp_path / "pneuma.log"), *args])


class TestMain:
    def test_version(self):
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help(self):
        result = CliRunner().invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "--site" in result.output

    def test_runs_until_quit(self, config_file, terminals, tmp_path):
        result = invoke("--config", str(config_file), tmp_path=tmp_path)
        assert result.exit_code == 0, result.output
        terminal = terminals[0]
        assert terminal.pending_input == 0
        assert terminal.stop_count == 1
        assert not terminal.started
        assert "Posts from the blog:" in terminal.output

    def test_missing_config(self, tmp_path, terminals):
        result = invoke("--config", str(tmp_path / "missing.json"), tmp_path=tmp_path)
        assert result.exit_code == 1
        assert "Configuration error" in result.output
        assert terminals == []

    def test_config_from_environment(self, config_file, terminals, tmp_path, monkeypatch):
        monkeypatch.setenv("PNEUMA_CONFIG", str(config_file))
        result = invoke(tmp_path=tmp_path)
        assert result.exit_code == 0, result.output

    def test_unknown_site(self, config_file, terminals, tmp_path):
        result = invoke("--config", str(config_file), "--site", "nope", tmp_path=tmp_path)
        assert result.exit_code == 1
        assert "Site 'nope' not found" in result.output
        assert terminals == []

    def test_named_site(self, config_file, terminals, tmp_path):
        result = invoke("--config", str(config_file), "--site", "blog", tmp_path=tmp_path)
        assert result.exit_code == 0, result.output

    def test_terminal_failure_is_fatal(self, config_file, tmp_path, monkeypatch):
        def broken():
            terminal = VirtualTerminal()
            terminal.fail_start = True
            return terminal

        monkeypatch.setattr("pneuma.cli.ProcessTerminal", broken)
        result = invoke("--config", str(config_file), tmp_path=tmp_path)
        assert result.exit_code == 1
        assert "pneuma: cannot enter raw mode" in result.output
        assert "Fatal error" in (tmp_path / "pneuma.log").read_text(encoding="utf-8")

    def test_log_level(self, config_file, terminals, tmp_path):
        result = invoke("--config", str(config_file), "--log-level", "debug", tmp_path=tmp_path)
        assert result.exit_code == 0, result.output
        log = (tmp_path / "pneuma.log").read_text(encoding="utf-8")
        assert "[INFO] pneuma.config: Loaded 1 site(s)" in log


class TestDefaultLogFile:
    def test_xdg_state_home(self, monkeypatch, tmp_path):
        monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path))
        assert default_log_file() == tmp_path / "pneuma" / "pneuma.log"

    def test_fallback(self, monkeypatch, tmp_path):
        monkeypatch.delenv("XDG_STATE_HOME", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))
        assert default_log_file() == tmp_path / ".local" / "state" / "pneuma" / "pneuma.log"
