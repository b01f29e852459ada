"""Tests for the recall watch command."""

from __future__ import annotations

from unittest.mock import patch

from typer.testing import CliRunner

from conftest import user_line
from recall.cli.main import app

runner = CliRunner()


def test_watch_missing_sessions_dir(cli_env, tmp_path):
    result = runner.invoke(
        app, ["watch", "--sessions", str(tmp_path / "nowhere"), "--db", str(cli_env.db)]
    )
    assert result.exit_code == 1
    assert "Sessions directory not found" in result.output


def test_watch_indexes_then_stops_on_interrupt(cli_env):
    cli_env.write([user_line("Initial transcript content. " * 10)])
    with (
        patch("recall.cli.watch.SessionWatcher") as mock_watcher,
        patch("recall.cli.watch.time.sleep", side_effect=KeyboardInterrupt),
    ):
        result = runner.invoke(
            app, ["watch", "--sessions", str(cli_env.sessions), "--db", str(cli_env.db)]
        )
    assert result.exit_code == 0, result.output
    assert "Stopping" in result.output
    mock_watcher.return_value.start.assert_called_once()
    mock_watcher.return_value.stop.assert_called_once()
    assert cli_env.embedder.calls, "initial pass should index existing transcripts"


def test_watch_no_initial_skips_backfill(cli_env):
    cli_env.write([user_line("Initial transcript content. " * 10)])
    with (
        patch("recall.cli.watch.SessionWatcher"),
        patch("recall.cli.watch.time.sleep", side_effect=KeyboardInterrupt),
    ):
        result = runner.invoke(
            app,
            ["watch", "--no-initial", "--sessions", str(cli_env.sessions), "--db", str(cli_env.db)],
        )
    assert result.exit_code == 0, result.output
    assert cli_env.embedder.calls == []
