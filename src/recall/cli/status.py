"""recall status — index overview."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.panel import Panel
from rich.table import Table

from recall.cli.common import console, open_repo, resolve_config
from recall.cli.errors import err_no_db


def status_cmd(
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the recall database."),
    ] = None,
) -> None:
    """Show indexed sessions, chunks, vectors, and projects."""
    cfg = resolve_config(db=db)
    if not cfg.paths.db_path.exists():
        console.print(err_no_db(str(cfg.paths.db_path)))
        raise typer.Exit(1)

    repo, conn = open_repo(cfg, with_vectors=False)
    try:
        sessions = repo.list_sessions()
        total_chunks = repo.count_chunks()
        total_vectors = repo.count_vectors()
        projects = repo.list_projects()
    finally:
        conn.close()

    size_mb = cfg.paths.db_path.stat().st_size / (1024 * 1024)
    lines = [
        f"Database:  {cfg.paths.db_path} ({size_mb:.1f} MB)",
        f"Sessions:  [bold]{len(sessions)}[/]  |  "
        f"Chunks: [bold]{total_chunks:,}[/]  |  "
        f"Vectors: [bold]{total_vectors:,}[/]",
        f"Model:     {cfg.embedding.model} ({cfg.embedding.dimensions} dims)",
    ]
    if sessions:
        lines.append(f"Latest:    [dim]{sessions[0].last_timestamp or sessions[0].indexed_at}[/]")
    console.print(Panel("\n".join(lines), title="[bold]Recall Index[/]", expand=False))

    if projects:
        table = Table(title="Projects")
        table.add_column("Project")
        table.add_column("Sessions", justify="right")
        for name, count in projects:
            table.add_row(name, str(count))
        console.print(table)
