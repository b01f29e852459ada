"""recall watch — keep the index current while sessions are being written."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Annotated

import typer

from recall.cli.common import (
    build_embedder,
    console,
    open_repo,
    resolve_config,
    setup_logging,
)
from recall.cli.errors import err_no_sessions_dir
from recall.ingest.chunker import SessionChunker
from recall.ingest.indexer import Indexer
from recall.ingest.watcher import SessionWatcher


def watch_cmd(
    sessions: Annotated[
        Path | None,
        typer.Option("--sessions", help="Root of <project>/<session>.jsonl transcripts."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the recall database (created if missing)."),
    ] = None,
    initial: Annotated[
        bool,
        typer.Option("--initial/--no-initial", help="Index everything once before watching."),
    ] = True,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging."),
    ] = False,
) -> None:
    """Watch the sessions directory and index transcripts as they change."""
    setup_logging(verbose)
    cfg = resolve_config(db=db, sessions=sessions)
    if not cfg.paths.sessions_path.is_dir():
        console.print(err_no_sessions_dir(str(cfg.paths.sessions_path)))
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
    watcher = SessionWatcher(
        indexer, cfg.paths.sessions_path, debounce_seconds=cfg.watch.debounce_seconds
    )

    try:
        if initial:
            indexer.index_all()
        watcher.start()
        console.print("[dim]Press Ctrl+C to stop.[/]")
        while True:
            time.sleep(1.0)
    except KeyboardInterrupt:
        console.print("\n[dim]Stopping…[/]")
    finally:
        watcher.stop()
        conn.close()
