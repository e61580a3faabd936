"""Tests for the deskpilot command-line interface."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest
import yaml

from deskpilot.__main__ import create_parser, main
from deskpilot.agent.history import RunHistoryStore, RunRecord


@pytest.fixture(autouse=True)
def _no_logging_setup(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("deskpilot.__main__.setup_logging", lambda config: None)


@pytest.fixture
def history(tmp_path: Path) -> RunHistoryStore:
    return RunHistoryStore(tmp_path / "xdg" / "deskpilot" / "history")


class TestParser:
    def test_history_defaults(self) -> None:
        args = create_parser().parse_args(["history"])
        assert args.command == "history"
        assert args.limit == 10
        assert args.show is None

    def test_project_option(self) -> None:
        args = create_parser().parse_args(["--project", "/work", "config"])
        assert args.project == Path("/work")


class TestCommands:
    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == 0
        assert "usage: deskpilot" in capsys.readouterr().out

    def test_config(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        config_file = tmp_path / ".deskpilot" / "config.yaml"
        config_file.parent.mkdir()
        config_file.write_text("llm:\n  model: gpt-4o\n", encoding="utf-8")

        assert main(["--project", str(tmp_path), "config"]) == 0

        printed = yaml.safe_load(capsys.readouterr().out)
        assert printed["llm"]["model"] == "gpt-4o"
        assert printed["agent"]["max_iterations"] == 10
        assert printed["integrations"] == {"servers": []}

    def test_history_empty(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["history"]) == 0
        assert capsys.readouterr().out == "No runs recorded.\n"

    def test_history_lists_runs(self, history: RunHistoryStore, capsys: pytest.CaptureFixture[str]) -> None:
        history.save(RunRecord("r1", datetime(2025, 3, 14, 9, 0), "open mail", "Done"))
        history.save(RunRecord("r2", datetime(2025, 3, 14, 10, 0), "new note", "Done"))

        assert main(["history", "-n", "1"]) == 0

        assert capsys.readouterr().out == 'r2  2025-03-14 10:00 "new note"\n'

    def test_history_show(self, history: RunHistoryStore, capsys: pytest.CaptureFixture[str]) -> None:
        history.save(RunRecord("r1", datetime(2025, 3, 14, 9, 0), "open mail", "Opened Mail"))

        assert main(["history", "--show", "r1"]) == 0
        assert yaml.safe_load(capsys.readouterr().out)["response"] == "Opened Mail"

        assert main(["history", "--show", "missing"]) == 1
        assert capsys.readouterr().out == "No run with id missing\n"

    def test_models(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        assert main(["models"]) == 0

        lines = {line.split()[0]: line for line in capsys.readouterr().out.splitlines()}
        assert lines["claude-sonnet-4-20250514"].endswith("ok")
        assert lines["gpt-4o"].endswith("no key")
