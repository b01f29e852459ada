"""sqlite-vec virtual table management for chunk embeddings."""

from __future__ import annotations

import re
import sqlite3

VEC_TABLE = "chunks_vec"

_DIMENSIONS_RE = re.compile(r"float\[(\d+)\]", re.IGNORECASE)


def vec_table_exists(conn: sqlite3.Connection) -> bool:
    """Return True if the chunks_vec virtual table has been created."""
    row = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=?", (VEC_TABLE,)
    ).fetchone()
    return row is not None


def vec_table_dimensions(conn: sqlite3.Connection) -> int | None:
    """Return the declared embedding width of chunks_vec, or None if it is missing."""
    row = conn.execute(
        "SELECT sql FROM sqlite_master WHERE type='table' AND name=?", (VEC_TABLE,)
    ).fetchone()
    if row is None:
        return None
    match = _DIMENSIONS_RE.search(row[0] or "")
    return int(match.group(1)) if match else None


def ensure_vec_table(conn: sqlite3.Connection, dimensions: int) -> str:
    """Create the chunks_vec virtual table if it doesn't already exist.

    Rows are keyed by chunk id so a vector can be written and deleted in the
    same transaction as its chunk row.

    Args:
        conn: Active database connection (sqlite-vec must be loaded).
        dimensions: Embedding vector dimensions (e.g. 1536 for text-embedding-3-small).

    Returns:
        The table name.

    Raises:
        ValueError: If *dimensions* is invalid or the existing table was
            created for a different embedding width.
    """
    if dimensions < 1:
        raise ValueError(f"dimensions must be >= 1, got {dimensions}")

    existing = vec_table_dimensions(conn)
    if existing is None and not vec_table_exists(conn):
        conn.execute(
            f"CREATE VIRTUAL TABLE {VEC_TABLE} USING vec0("
            f"chunk_id TEXT PRIMARY KEY, embedding float[{dimensions}])"
        )
        conn.commit()
    elif existing is not None and existing != dimensions:
        raise ValueError(
            f"Vector table '{VEC_TABLE}' stores {existing}-dimensional embeddings, "
            f"but the configured model produces {dimensions}. "
            "Use a fresh database for the new embedding model."
        )

    return VEC_TABLE
