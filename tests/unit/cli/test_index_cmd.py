"""Tests for the recall index command."""

from __future__ import annotations

from typer.testing import CliRunner

from conftest import assistant_line, tool_result_line, user_line
from recall.cli.main import app
from recall.db.connection import Database
from recall.db.repository import Repository

runner = CliRunner()


def _lines(topic: str = "parser") -> list[dict]:
    return [
        user_line(f"We decided the {topic} should skip bad lines because they are rare. " * 3),
        assistant_line(f"Agreed, the {topic} will log and continue. " * 6),
        user_line("Go ahead and make the change. " * 4),
        assistant_line("Editing.", tools=[("Edit", {"file_path": f"src/{topic}.py"})]),
        tool_result_line("Updated."),
    ]


def _args(env, *extra: str) -> list[str]:
    return ["index", "--sessions", str(env.sessions), "--db", str(env.db), *extra]


def test_index_creates_db_and_reports_counts(cli_env):
    cli_env.write(_lines())
    result = runner.invoke(app, _args(cli_env))
    assert result.exit_code == 0, result.output
    assert "1 indexed" in result.output
    assert cli_env.db.exists()

    with Database(cli_env.db) as conn:
        repo = Repository(conn)
        assert repo.get_session("sess-0001") is not None
        assert repo.count_vectors() == repo.count_chunks() > 0


def test_index_twice_skips_unchanged(cli_env):
    cli_env.write(_lines())
    runner.invoke(app, _args(cli_env))
    result = runner.invoke(app, _args(cli_env))
    assert result.exit_code == 0, result.output
    assert "0 indexed" in result.output
    assert "1 skipped" in result.output


def test_index_reports_errors_and_exits_nonzero(cli_env):
    cli_env.write(_lines("alpha"), session="good")
    cli_env.write(_lines("omega"), session="bad")
    cli_env.embedder.fail_on = "omega"
    result = runner.invoke(app, _args(cli_env))
    assert result.exit_code == 1
    assert "1 indexed" in result.output
    assert "1 errors" in result.output


def test_index_missing_sessions_dir(cli_env, tmp_path):
    result = runner.invoke(
        app, ["index", "--sessions", str(tmp_path / "nowhere"), "--db", str(cli_env.db)]
    )
    assert result.exit_code == 1
    assert "Sessions directory not found" in result.output


def test_index_single_file(cli_env):
    path = cli_env.write(_lines())
    result = runner.invoke(app, _args(cli_env, "--file", str(path)))
    assert result.exit_code == 0, result.output
    assert "sess-0001.jsonl" in result.output
    assert "chunks" in result.output


def test_index_single_file_unchanged_then_forced(cli_env):
    path = cli_env.write(_lines())
    runner.invoke(app, _args(cli_env, "--file", str(path)))

    unchanged = runner.invoke(app, _args(cli_env, "--file", str(path)))
    assert unchanged.exit_code == 0
    assert "Unchanged" in unchanged.output

    forced = runner.invoke(app, _args(cli_env, "--file", str(path), "--force"))
    assert forced.exit_code == 0
    assert "chunks" in forced.output


def test_index_single_file_embedding_error(cli_env):
    path = cli_env.write(_lines())
    cli_env.embedder.fail_on = "parser"
    result = runner.invoke(app, _args(cli_env, "--file", str(path)))
    assert result.exit_code == 1
    assert "fake embedding failure" in result.output


def test_index_missing_file(cli_env, tmp_path):
    result = runner.invoke(app, _args(cli_env, "--file", str(tmp_path / "missing.jsonl")))
    assert result.exit_code == 1
    assert "not found" in result.output
