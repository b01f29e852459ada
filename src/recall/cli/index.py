"""recall index — index session transcripts into the recall database.

  recall index                      all sessions under the sessions path
  recall index --file S.jsonl       one transcript (skipped if unchanged)
  recall index --file S.jsonl --force   rebuild one transcript unconditionally
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.progress import SpinnerColumn, TextColumn, Progress

from recall.cli.common import (
    build_embedder,
    console,
    open_repo,
    resolve_config,
    setup_logging,
)
from recall.cli.errors import err_embedding, err_no_sessions_dir
from recall.errors import EmbeddingError
from recall.ingest.chunker import SessionChunker
from recall.ingest.indexer import Indexer


def index_cmd(
    sessions: Annotated[
        Path | None,
        typer.Option("--sessions", help="Root of <project>/<session>.jsonl transcripts."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the recall database (created if missing)."),
    ] = None,
    file: Annotated[
        Path | None,
        typer.Option("--file", "-f", help="Index a single transcript instead of all."),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", help="Rebuild even if the transcript is unchanged."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show per-file debug logging."),
    ] = False,
) -> None:
    """Index Claude Code session transcripts."""
    setup_logging(verbose)
    cfg = resolve_config(db=db, sessions=sessions)

    if file is None and not cfg.paths.sessions_path.is_dir():
        console.print(err_no_sessions_dir(str(cfg.paths.sessions_path)))
        raise typer.Exit(1)
    if file is not None and not file.is_file():
        console.print(f"[red]Error:[/] Transcript not found: '{file}'")
        raise typer.Exit(1)

    repo, conn = open_repo(cfg)
    indexer = Indexer(
        repo,
        build_embedder(cfg),
        chunker=SessionChunker(
            min_chars=cfg.chunking.min_chars,
            max_chars=cfg.chunking.max_chars,
            tool_result_chars=cfg.chunking.tool_result_chars,
        ),
        sessions_path=cfg.paths.sessions_path,
    )

    try:
        if file is not None:
            _index_one(indexer, file, force)
            return

        console.print(f"Indexing sessions from: [bold]{cfg.paths.sessions_path}[/]")
        console.print(f"Database: [bold]{cfg.paths.db_path}[/]")
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            console=console,
        ) as prog:
            prog.add_task("Indexing…", total=None)
            result = indexer.index_all()
        console.print(
            f"[green]✓[/] Complete: {result.indexed} indexed, "
            f"{result.skipped} skipped, {result.errors} errors "
            f"({result.total} files)"
        )
        if result.errors:
            raise typer.Exit(1)
    finally:
        conn.close()


def _index_one(indexer: Indexer, file: Path, force: bool) -> None:
    try:
        result = indexer.reindex_file(file) if force else indexer.index_file(file)
    except EmbeddingError as exc:
        console.print(err_embedding(str(exc)))
        raise typer.Exit(1) from None
    if result.skipped:
        console.print(f"[dim]↷ Unchanged — {file.name} already indexed[/]")
    else:
        console.print(f"[green]✓[/] {file.name} → {result.chunk_count} chunks")
