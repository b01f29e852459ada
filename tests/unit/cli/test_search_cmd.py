"""Tests for the recall search command."""

from __future__ import annotations

from typer.testing import CliRunner

from conftest import assistant_line, user_line
from recall.cli.main import app
from recall.db.connection import Database
from recall.db.schema import initialize

runner = CliRunner()


def _index(env) -> None:
    env.write([
        user_line("Which database should back the index? " * 4),
        assistant_line("SQLite with sqlite-vec, because it ships as one file. " * 4),
    ])
    result = runner.invoke(app, ["index", "--sessions", str(env.sessions), "--db", str(env.db)])
    assert result.exit_code == 0, result.output


def test_search_prints_ranked_results(cli_env):
    _index(cli_env)
    result = runner.invoke(app, ["search", "which database", "--db", str(cli_env.db)])
    assert result.exit_code == 0, result.output
    assert "Result 1" in result.output
    assert "match" in result.output
    assert "demo" in result.output


def test_search_type_filter_with_no_hits(cli_env):
    _index(cli_env)
    result = runner.invoke(
        app, ["search", "which database", "--type", "error-fix", "--db", str(cli_env.db)]
    )
    assert result.exit_code == 0, result.output
    assert "No results found" in result.output


def test_search_rejects_unknown_type(cli_env):
    result = runner.invoke(app, ["search", "q", "--type", "gossip", "--db", str(cli_env.db)])
    assert result.exit_code == 1
    assert "Unknown chunk type" in result.output


def test_search_without_index(cli_env):
    result = runner.invoke(app, ["search", "anything", "--db", str(cli_env.db)])
    assert result.exit_code == 1
    assert "No index found" in result.output


def test_search_empty_index(cli_env):
    with Database(cli_env.db) as conn:
        initialize(conn, 4)
    result = runner.invoke(app, ["search", "anything", "--db", str(cli_env.db)])
    assert result.exit_code == 0, result.output
    assert "No results found" in result.output


def test_search_embedding_error(cli_env):
    _index(cli_env)
    cli_env.embedder.fail_on = "boom"
    result = runner.invoke(app, ["search", "boom", "--db", str(cli_env.db)])
    assert result.exit_code == 1
    assert "fake embedding failure" in result.output
