"""Tests for the read-only commands: status, decisions, session (digest and summary)."""

from __future__ import annotations

from typer.testing import CliRunner

from conftest import assistant_line, user_line
from recall.cli.main import app

runner = CliRunner()


def _index(env) -> None:
    env.write([
        user_line("We decided to store vectors next to chunks because writes must be atomic. " * 3),
        assistant_line("Agreed; a single SQLite file keeps it simple. " * 4),
    ])
    result = runner.invoke(app, ["index", "--sessions", str(env.sessions), "--db", str(env.db)])
    assert result.exit_code == 0, result.output


# --- status ---

def test_status_shows_counts_and_projects(cli_env):
    _index(cli_env)
    result = runner.invoke(app, ["status", "--db", str(cli_env.db)])
    assert result.exit_code == 0, result.output
    assert "Sessions:" in result.output
    assert "Vectors:" in result.output
    assert "demo" in result.output


def test_status_without_index(cli_env):
    result = runner.invoke(app, ["status", "--db", str(cli_env.db)])
    assert result.exit_code == 1
    assert "No index found" in result.output


# --- decisions ---

def test_decisions_lists_decision_summaries(cli_env):
    _index(cli_env)
    result = runner.invoke(app, ["decisions", "--db", str(cli_env.db)])
    assert result.exit_code == 0, result.output
    assert "[sess-000] Decision: We decided to store vectors" in result.output


def test_decisions_unknown_project(cli_env):
    _index(cli_env)
    result = runner.invoke(app, ["decisions", "--project", "elsewhere", "--db", str(cli_env.db)])
    assert result.exit_code == 0
    assert "No decisions found for project 'elsewhere'" in result.output


# --- session ---

def test_session_prints_digest(cli_env):
    _index(cli_env)
    result = runner.invoke(app, ["session", "sess-0001", "--db", str(cli_env.db)])
    assert result.exit_code == 0, result.output
    assert "# Session: sess-0001" in result.output
    assert "## Decisions (1)" in result.output


def test_session_summary_flag(cli_env):
    _index(cli_env)
    result = runner.invoke(app, ["session", "sess-0001", "--summary", "--db", str(cli_env.db)])
    assert result.exit_code == 0, result.output
    assert "# Summary: sess-0001" in result.output
    assert "## Key Activities" in result.output
    assert "- [decision] Decision: We decided" in result.output
    assert "## Decisions (1)" not in result.output


def test_session_summary_not_found(cli_env):
    _index(cli_env)
    result = runner.invoke(app, ["session", "nope", "--summary", "--db", str(cli_env.db)])
    assert result.exit_code == 1
    assert "Session not found" in result.output


def test_session_not_found(cli_env):
    _index(cli_env)
    result = runner.invoke(app, ["session", "nope", "--db", str(cli_env.db)])
    assert result.exit_code == 1
    assert "Session not found" in result.output
