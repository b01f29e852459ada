"""recall search — semantic search over indexed session chunks."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.panel import Panel

from recall.cli.common import build_embedder, console, open_repo, resolve_config
from recall.cli.errors import err_embedding, err_no_db, err_unknown_chunk_type
from recall.db.models import CHUNK_TYPES, SearchOptions
from recall.errors import EmbeddingError
from recall.rag.search import Searcher


def search_cmd(
    query: Annotated[str, typer.Argument(help="Natural-language query.")],
    project: Annotated[
        str | None,
        typer.Option("--project", "-p", help="Project name or path fragment."),
    ] = None,
    chunk_type: Annotated[
        str | None,
        typer.Option("--type", "-t", help=f"Chunk type: {', '.join(CHUNK_TYPES)}."),
    ] = None,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-n", min=1, help="Maximum number of results."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the recall database."),
    ] = None,
) -> None:
    """Search past sessions by meaning."""
    cfg = resolve_config(db=db)
    if chunk_type is not None and chunk_type not in CHUNK_TYPES:
        console.print(err_unknown_chunk_type(chunk_type, CHUNK_TYPES))
        raise typer.Exit(1)
    if not cfg.paths.db_path.exists():
        console.print(err_no_db(str(cfg.paths.db_path)))
        raise typer.Exit(1)

    repo, conn = open_repo(cfg)
    try:
        options = SearchOptions(
            project=project, chunk_type=chunk_type, limit=limit or cfg.search.limit
        )
        try:
            results = Searcher(repo, build_embedder(cfg)).search(query, options)
        except EmbeddingError as exc:
            console.print(err_embedding(str(exc)))
            raise typer.Exit(1) from None
    finally:
        conn.close()

    if not results:
        console.print("[yellow]No results found.[/]")
        return

    for i, r in enumerate(results, start=1):
        header = (
            f"[bold]{r.chunk.type}[/]  ·  {escape(r.session.project_name)}  ·  "
            f"session {r.chunk.session_id[:8]}"
        )
        console.print(
            Panel(
                f"{header}\n[dim]{escape(r.chunk.summary)}[/]\n\n{escape(r.chunk.content)}",
                title=f"Result {i} ({r.score * 100:.1f}% match)",
                expand=False,
            )
        )
