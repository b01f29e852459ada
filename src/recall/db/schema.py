"""Database schema initialization."""

from __future__ import annotations

import sqlite3

from recall.db.migrations import MIGRATIONS, run_migrations

CURRENT_VERSION = MIGRATIONS[-1][0]


def initialize(conn: sqlite3.Connection, dimensions: int | None = None) -> None:
    """Run pending migrations and, when *dimensions* is given, ensure the vec table.

    Idempotent. The vec table is created lazily because its width depends on
    the embedding model in use.
    """
    run_migrations(conn)
    if dimensions is not None:
        from recall.db.vectors import ensure_vec_table

        ensure_vec_table(conn, dimensions)
