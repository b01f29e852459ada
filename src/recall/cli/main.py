"""Recall CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from recall.cli.index import index_cmd
from recall.cli.search import search_cmd
from recall.cli.sessions import decisions_cmd, session_cmd
from recall.cli.status import status_cmd
from recall.cli.watch import watch_cmd


def _installed_version() -> str:
    try:
        return importlib.metadata.version("session-recall")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"recall {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="recall",
    help=(
        "Recall — semantic search over Claude Code session transcripts.\n\n"
        "  recall index   Chunk, classify, and embed new or changed sessions.\n"
        "  recall search  Find past decisions, fixes, and discussions by meaning."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """Recall — semantic search over Claude Code session transcripts."""


app.command("index")(index_cmd)
app.command("search")(search_cmd)
app.command("status")(status_cmd)
app.command("decisions")(decisions_cmd)
app.command("session")(session_cmd)
app.command("watch")(watch_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed recall version."""
    typer.echo(f"recall {_installed_version()}")


if __name__ == "__main__":
    app()
