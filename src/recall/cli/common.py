"""Shared CLI plumbing: console, logging, config, and store/embedder wiring."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from recall.cli.errors import err_config, err_dimension_mismatch
from recall.config import ConfigError, RecallConfig, load_config
from recall.db.connection import Database
from recall.db.repository import Repository
from recall.db.schema import initialize
from recall.ingest.embedder import EmbeddingConfig, LiteLLMEmbedder

console = Console()


def setup_logging(verbose: bool) -> None:
    """Route library logging through rich; INFO by default, DEBUG with --verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
        force=True,
    )
    for noisy in ("LiteLLM", "litellm", "httpx", "watchdog"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def resolve_config(db: Path | None = None, sessions: Path | None = None) -> RecallConfig:
    """Load config and apply CLI flag overrides; exit 1 on an invalid config."""
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1) from None
    if db is not None:
        cfg.paths.db_path = db
    if sessions is not None:
        cfg.paths.sessions_path = sessions
    return cfg


def open_db(cfg: RecallConfig, with_vectors: bool = True) -> sqlite3.Connection:
    """Open (or create) the index database, run migrations, ensure the vec table."""
    conn = Database(cfg.paths.db_path).connect()
    try:
        initialize(conn, cfg.embedding.dimensions if with_vectors else None)
    except ValueError as exc:
        conn.close()
        console.print(err_dimension_mismatch(str(exc)))
        raise typer.Exit(1) from None
    return conn


def open_repo(cfg: RecallConfig, with_vectors: bool = True) -> tuple[Repository, sqlite3.Connection]:
    conn = open_db(cfg, with_vectors=with_vectors)
    return Repository(conn), conn


def build_embedder(cfg: RecallConfig) -> LiteLLMEmbedder:
    return LiteLLMEmbedder(
        EmbeddingConfig(
            model=cfg.embedding.model,
            dimensions=cfg.embedding.dimensions,
            api_base=cfg.embedding.api_base,
        )
    )
