"""Tests for the chunks_vec sqlite-vec virtual table."""

from __future__ import annotations

import pytest

from recall.db.connection import Database
from recall.db.migrations import run_migrations
from recall.db.vectors import (
    VEC_TABLE,
    ensure_vec_table,
    vec_table_dimensions,
    vec_table_exists,
)


@pytest.fixture
def bare_conn(tmp_path):
    conn = Database(tmp_path / "recall.db").connect()
    run_migrations(conn)
    yield conn
    conn.close()


def test_vec_table_missing_before_ensure(bare_conn):
    assert not vec_table_exists(bare_conn)
    assert vec_table_dimensions(bare_conn) is None


def test_ensure_vec_table_creates_table(bare_conn):
    table = ensure_vec_table(bare_conn, dimensions=1536)
    assert table == VEC_TABLE
    assert vec_table_exists(bare_conn)
    assert vec_table_dimensions(bare_conn) == 1536


def test_ensure_vec_table_idempotent(bare_conn):
    assert ensure_vec_table(bare_conn, 4) == ensure_vec_table(bare_conn, 4)


def test_ensure_vec_table_rejects_dimension_change(bare_conn):
    ensure_vec_table(bare_conn, 4)
    with pytest.raises(ValueError, match="4-dimensional"):
        ensure_vec_table(bare_conn, 768)


@pytest.mark.parametrize("dims", [0, -1])
def test_ensure_vec_table_rejects_invalid_dimensions(bare_conn, dims):
    with pytest.raises(ValueError):
        ensure_vec_table(bare_conn, dims)


def test_vec_table_accepts_json_vectors(bare_conn):
    ensure_vec_table(bare_conn, 4)
    bare_conn.execute(
        f"INSERT INTO {VEC_TABLE}(chunk_id, embedding) VALUES (?, ?)",
        ("c1", "[1.0, 0.0, 0.0, 0.0]"),
    )
    row = bare_conn.execute(
        f"SELECT chunk_id, distance FROM {VEC_TABLE} WHERE embedding MATCH ? AND k = 1",
        ("[1.0, 0.0, 0.0, 0.0]",),
    ).fetchone()
    assert row["chunk_id"] == "c1"
    assert row["distance"] == pytest.approx(0.0)
