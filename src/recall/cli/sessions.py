"""recall decisions / recall session — read-only views of stored chunks."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from recall.cli.common import console, open_repo, resolve_config
from recall.cli.errors import err_no_db, err_session_not_found
from recall.rag.context import decisions_digest, session_context, session_summary


def decisions_cmd(
    project: Annotated[
        str | None,
        typer.Option("--project", "-p", help="Project name or path fragment."),
    ] = None,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-n", min=1, help="Maximum number of decisions."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the recall database."),
    ] = None,
) -> None:
    """List recorded decisions, newest first."""
    cfg = resolve_config(db=db)
    if not cfg.paths.db_path.exists():
        console.print(err_no_db(str(cfg.paths.db_path)))
        raise typer.Exit(1)

    repo, conn = open_repo(cfg, with_vectors=False)
    try:
        lines = decisions_digest(repo, project, limit or cfg.search.decisions_limit)
    finally:
        conn.close()

    if not lines:
        suffix = f" for project '{project}'" if project else ""
        console.print(f"[yellow]No decisions found{suffix}.[/]")
        return
    for line in lines:
        console.print(f"- {line}", markup=False)


def session_cmd(
    session_id: Annotated[str, typer.Argument(help="Session id (transcript file stem).")],
    summary: Annotated[
        bool,
        typer.Option("--summary", "-s", help="Short overview: key activities, files, tools."),
    ] = False,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the recall database."),
    ] = None,
) -> None:
    """Show decisions, code changes, error fixes, and files of one session."""
    cfg = resolve_config(db=db)
    if not cfg.paths.db_path.exists():
        console.print(err_no_db(str(cfg.paths.db_path)))
        raise typer.Exit(1)

    repo, conn = open_repo(cfg, with_vectors=False)
    try:
        if summary:
            text = session_summary(repo, session_id)
        else:
            text = session_context(repo, session_id)
    finally:
        conn.close()

    if text is None:
        console.print(err_session_not_found(session_id))
        raise typer.Exit(1)
    console.print(text, markup=False)
