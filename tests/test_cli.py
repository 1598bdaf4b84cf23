"""
Tests for the command line interface.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import IDEA
from typer.testing import CliRunner

from ia import __version__
from ia.cli.main import _parse_answers, app
from ia.store import SQLiteAnalysisStore
from ia.types import AnalysisStatus

runner = CliRunner()


@pytest.fixture
def cli_env(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Environment for a mock-mode run with storage under temp_dir."""
    monkeypatch.chdir(temp_dir)
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("GEMINI_API_KEY", "")
    monkeypatch.setenv("MOCK_STAGE_DELAY_SECONDS", "0")
    monkeypatch.setenv("DATABASE_PATH", str(temp_dir / "analyses.db"))
    monkeypatch.setenv("EVENT_LOG_DIR", str(temp_dir / "events"))
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    return temp_dir


def test_version() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_parse_answers() -> None:
    assert _parse_answers(["target=대학생", "problem = 비 "]) == {"target": "대학생", "problem": "비"}
    assert _parse_answers(None) == {}


def test_analyze_mock_run(cli_env: Path) -> None:
    result = runner.invoke(app, ["analyze", IDEA, "--answer", "target=직장인"])

    assert result.exit_code == 0, result.output
    store = SQLiteAnalysisStore(cli_env / "analyses.db")
    try:
        records = store.list_recent()
    finally:
        store.close()
    assert len(records) == 1
    assert records[0].status is AnalysisStatus.COMPLETED
    assert records[0].score == 70
    assert records[0].follow_up_answers == {"target": "직장인"}
    assert (cli_env / "events" / "progress.jsonl").exists()


def test_analyze_rejects_bad_answer(cli_env: Path) -> None:
    result = runner.invoke(app, ["analyze", IDEA, "--answer", "no-separator"])
    assert result.exit_code != 0


def test_show_missing(cli_env: Path) -> None:
    result = runner.invoke(app, ["show", "analysis_missing"])
    assert result.exit_code == 1


def test_history_and_show(cli_env: Path) -> None:
    runner.invoke(app, ["analyze", IDEA])
    store = SQLiteAnalysisStore(cli_env / "analyses.db")
    try:
        analysis_id = store.list_recent()[0].id
    finally:
        store.close()

    history = runner.invoke(app, ["history"])
    assert history.exit_code == 0
    assert "Recent Analyses" in history.stdout

    shown = runner.invoke(app, ["show", analysis_id, "--json"])
    assert shown.exit_code == 0
    assert '"total_score": 70' in shown.stdout


def test_config(cli_env: Path) -> None:
    result = runner.invoke(app, ["config"])
    assert result.exit_code == 0
    assert "Idea Analysis Configuration" in result.stdout
