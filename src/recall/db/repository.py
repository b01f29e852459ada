"""Repository for all recall database operations.

Single interface for: sessions, chunks, vec embeddings, and the hybrid
(nearest-neighbour + exact filter) query. A chunk row and its vector row are
always written and deleted inside the same transaction.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager

from recall.db.models import (
    CHUNK_TYPES,
    DECISION,
    Chunk,
    ChunkMetadata,
    MessageRange,
    SearchOptions,
    SearchResult,
    Session,
)
from recall.db.vectors import VEC_TABLE, vec_table_exists

_SESSION_COLUMNS = (
    "id, project_path, project_name, file_path, file_size, file_hash, message_count, "
    "first_timestamp, last_timestamp, chunk_count, indexed_at, updated_at"
)

_CHUNK_COLUMNS = (
    "c.id, c.session_id, c.type, c.content, c.summary, c.start_index, c.end_index, "
    "c.start_timestamp, c.end_timestamp, c.tools_used, c.files_referenced, c.tags, "
    "c.created_at"
)


class Repository:
    """Data access layer for sessions, chunks, and chunk embeddings.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with sqlite-vec loaded and schema
                initialised (see recall.db.schema.initialize).
        """
        self._conn = conn
        self._tx_depth = 0

    @property
    def conn(self) -> sqlite3.Connection:
        return self._conn

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Group writes into one transaction; nested use joins the outer one.

        Any exception rolls back every write made since the outermost
        ``transaction()`` was entered, then propagates.
        """
        if self._tx_depth:
            self._tx_depth += 1
            try:
                yield
            finally:
                self._tx_depth -= 1
            return

        self._tx_depth = 1
        try:
            yield
            self._conn.commit()
        except BaseException:
            self._conn.rollback()
            raise
        finally:
            self._tx_depth = 0

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def upsert_session(self, session: Session) -> None:
        """Insert a session record, or refresh every mutable field if it exists."""
        with self.transaction():
            self._conn.execute(
                """
                INSERT INTO sessions
                    (id, project_path, project_name, file_path, file_size, file_hash,
                     message_count, first_timestamp, last_timestamp, chunk_count)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    project_path = excluded.project_path,
                    project_name = excluded.project_name,
                    file_path = excluded.file_path,
                    file_size = excluded.file_size,
                    file_hash = excluded.file_hash,
                    message_count = excluded.message_count,
                    first_timestamp = excluded.first_timestamp,
                    last_timestamp = excluded.last_timestamp,
                    chunk_count = excluded.chunk_count,
                    indexed_at = datetime('now'),
                    updated_at = datetime('now')
                """,
                (
                    session.session_id,
                    session.project_path,
                    session.project_name,
                    session.file_path,
                    session.file_size,
                    session.file_hash,
                    session.message_count,
                    session.first_timestamp,
                    session.last_timestamp,
                    session.chunk_count,
                ),
            )

    def get_session(self, session_id: str) -> Session | None:
        """Return a session by ID, or None if not found."""
        row = self._conn.execute(
            f"SELECT {_SESSION_COLUMNS} FROM sessions WHERE id = ?", (session_id,)
        ).fetchone()
        return _row_to_session(row) if row else None

    def get_session_hash(self, session_id: str) -> str | None:
        """Return the stored fingerprint for *session_id*, or None if never indexed."""
        row = self._conn.execute(
            "SELECT file_hash FROM sessions WHERE id = ?", (session_id,)
        ).fetchone()
        return row["file_hash"] if row else None

    def list_sessions(self, project: str | None = None) -> list[Session]:
        """Return sessions, most recent activity first.

        Args:
            project: Optional project name (exact) or project path substring.
        """
        if project:
            rows = self._conn.execute(
                f"""
                SELECT {_SESSION_COLUMNS} FROM sessions
                WHERE project_name = ? OR project_path LIKE ?
                ORDER BY last_timestamp DESC
                """,
                (project, f"%{project}%"),
            ).fetchall()
        else:
            rows = self._conn.execute(
                f"SELECT {_SESSION_COLUMNS} FROM sessions ORDER BY last_timestamp DESC"
            ).fetchall()
        return [_row_to_session(r) for r in rows]

    def list_projects(self) -> list[tuple[str, int]]:
        """Return [(project_name, session_count), ...] ordered by name."""
        rows = self._conn.execute(
            """
            SELECT project_name, COUNT(*) AS n FROM sessions
            GROUP BY project_name ORDER BY project_name
            """
        ).fetchall()
        return [(r["project_name"], r["n"]) for r in rows]

    def delete_session(self, session_id: str) -> None:
        """Delete a session record together with its chunks and vectors."""
        with self.transaction():
            self.delete_session_chunks(session_id)
            self._conn.execute("DELETE FROM sessions WHERE id = ?", (session_id,))

    # ------------------------------------------------------------------
    # Chunks + vectors
    # ------------------------------------------------------------------

    def insert_chunks(self, chunks: list[Chunk]) -> None:
        """Insert or replace *chunks* and their vectors in a single transaction.

        A vector row is written only for chunks that carry an embedding. If any
        row fails, nothing from the batch is kept.
        """
        if not chunks:
            return
        has_vec = vec_table_exists(self._conn)
        with self.transaction():
            for chunk in chunks:
                self._conn.execute(
                    """
                    INSERT OR REPLACE INTO chunks
                        (id, session_id, type, content, summary, start_index, end_index,
                         start_timestamp, end_timestamp, tools_used, files_referenced, tags)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        chunk.id,
                        chunk.session_id,
                        chunk.type,
                        chunk.content,
                        chunk.summary,
                        chunk.message_range.start_index,
                        chunk.message_range.end_index,
                        chunk.message_range.start_timestamp,
                        chunk.message_range.end_timestamp,
                        json.dumps(chunk.metadata.tools_used),
                        json.dumps(chunk.metadata.files_referenced),
                        json.dumps(chunk.metadata.tags),
                    ),
                )
                if has_vec:
                    # vec0 has no REPLACE; clear any previous vector for this id.
                    self._conn.execute(
                        f"DELETE FROM {VEC_TABLE} WHERE chunk_id = ?", (chunk.id,)
                    )
                if chunk.embedding is not None:
                    if not has_vec:
                        raise RuntimeError(
                            f"Vector table '{VEC_TABLE}' does not exist. "
                            "Call ensure_vec_table() before inserting embeddings."
                        )
                    self._conn.execute(
                        f"INSERT INTO {VEC_TABLE}(chunk_id, embedding) VALUES (?, ?)",
                        (chunk.id, json.dumps(chunk.embedding)),
                    )

    def delete_session_chunks(self, session_id: str) -> int:
        """Delete every chunk of *session_id* and its vector in one transaction.

        Returns the number of chunks deleted.
        """
        chunk_ids = [
            r[0]
            for r in self._conn.execute(
                "SELECT id FROM chunks WHERE session_id = ?", (session_id,)
            ).fetchall()
        ]
        if not chunk_ids:
            return 0
        with self.transaction():
            if vec_table_exists(self._conn):
                self._conn.executemany(
                    f"DELETE FROM {VEC_TABLE} WHERE chunk_id = ?",
                    [(cid,) for cid in chunk_ids],
                )
            self._conn.execute("DELETE FROM chunks WHERE session_id = ?", (session_id,))
        return len(chunk_ids)

    def get_chunk(self, chunk_id: str) -> Chunk | None:
        """Return a chunk by ID, or None if not found."""
        row = self._conn.execute(
            f"""
            SELECT {_CHUNK_COLUMNS}, s.project_path FROM chunks c
            LEFT JOIN sessions s ON s.id = c.session_id
            WHERE c.id = ?
            """,
            (chunk_id,),
        ).fetchone()
        return _row_to_chunk(row) if row else None

    def get_chunks_by_session(self, session_id: str) -> list[Chunk]:
        """Return the chunks of *session_id* in transcript order."""
        rows = self._conn.execute(
            f"""
            SELECT {_CHUNK_COLUMNS}, s.project_path FROM chunks c
            JOIN sessions s ON s.id = c.session_id
            WHERE c.session_id = ?
            ORDER BY c.start_index
            """,
            (session_id,),
        ).fetchall()
        return [_row_to_chunk(r) for r in rows]

    def count_chunks_by_session(self, session_id: str) -> int:
        return self._conn.execute(
            "SELECT COUNT(*) FROM chunks WHERE session_id = ?", (session_id,)
        ).fetchone()[0]

    def count_chunks(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM chunks").fetchone()[0]

    def count_vectors(self) -> int:
        """Return the number of stored embeddings (0 if the vec table is missing)."""
        if not vec_table_exists(self._conn):
            return 0
        return self._conn.execute(f"SELECT COUNT(*) FROM {VEC_TABLE}").fetchone()[0]

    def has_vector(self, chunk_id: str) -> bool:
        if not vec_table_exists(self._conn):
            return False
        row = self._conn.execute(
            f"SELECT chunk_id FROM {VEC_TABLE} WHERE chunk_id = ?", (chunk_id,)
        ).fetchone()
        return row is not None

    def get_decisions(self, project: str | None = None, limit: int = 20) -> list[Chunk]:
        """Return decision chunks, newest first, optionally for one project."""
        sql = f"""
            SELECT {_CHUNK_COLUMNS}, s.project_path FROM chunks c
            JOIN sessions s ON s.id = c.session_id
            WHERE c.type = ?
        """
        params: list[object] = [DECISION]
        if project:
            sql += " AND (s.project_name = ? OR s.project_path LIKE ?)"
            params.extend([project, f"%{project}%"])
        sql += " ORDER BY c.created_at DESC, c.rowid DESC LIMIT ?"
        params.append(limit)
        return [_row_to_chunk(r) for r in self._conn.execute(sql, params).fetchall()]

    # ------------------------------------------------------------------
    # Hybrid query
    # ------------------------------------------------------------------

    def vector_search(
        self, query_vector: list[float], options: SearchOptions | None = None
    ) -> list[SearchResult]:
        """Nearest-neighbour search with exact-match post-filters.

        The ANN stage fetches ``options.limit`` candidates; the project and
        chunk type filters are applied to that candidate set afterwards, so a
        selective filter can return fewer than ``limit`` results even when more
        matching chunks exist further away.

        Score is ``1 - distance / 2`` clamped to [0, 1].
        """
        options = options or SearchOptions()
        if options.chunk_type is not None and options.chunk_type not in CHUNK_TYPES:
            raise ValueError(
                f"Unknown chunk type {options.chunk_type!r}; expected one of {CHUNK_TYPES}"
            )
        if options.limit < 1 or not vec_table_exists(self._conn):
            return []

        sql = f"""
            WITH knn AS (
                SELECT chunk_id, distance FROM {VEC_TABLE}
                WHERE embedding MATCH ? AND k = ?
            )
            SELECT {_CHUNK_COLUMNS},
                s.project_path, s.project_name, s.file_path, s.file_size, s.file_hash,
                s.message_count, s.first_timestamp AS s_first_ts,
                s.last_timestamp AS s_last_ts, s.chunk_count, s.indexed_at, s.updated_at,
                knn.distance
            FROM knn
            JOIN chunks c ON c.id = knn.chunk_id
            JOIN sessions s ON s.id = c.session_id
        """
        conditions: list[str] = []
        params: list[object] = [json.dumps(query_vector), options.limit]
        if options.chunk_type:
            conditions.append("c.type = ?")
            params.append(options.chunk_type)
        if options.project:
            conditions.append("(s.project_name = ? OR s.project_path LIKE ?)")
            params.extend([options.project, f"%{options.project}%"])
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        sql += " ORDER BY knn.distance LIMIT ?"
        params.append(options.limit)

        results: list[SearchResult] = []
        for row in self._conn.execute(sql, params).fetchall():
            session = Session(
                session_id=row["session_id"],
                project_path=row["project_path"],
                project_name=row["project_name"],
                file_path=row["file_path"],
                file_size=row["file_size"],
                file_hash=row["file_hash"],
                message_count=row["message_count"],
                first_timestamp=row["s_first_ts"],
                last_timestamp=row["s_last_ts"],
                chunk_count=row["chunk_count"],
                indexed_at=row["indexed_at"],
                updated_at=row["updated_at"],
            )
            results.append(
                SearchResult(
                    chunk=_row_to_chunk(row),
                    score=distance_to_score(row["distance"]),
                    session=session,
                )
            )
        return results


def distance_to_score(distance: float) -> float:
    """Map a cosine-like distance in [0, 2] to a similarity in [0, 1]."""
    return max(0.0, min(1.0, 1.0 - distance / 2))


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------

def _row_to_session(row: sqlite3.Row) -> Session:
    return Session(
        session_id=row["id"],
        project_path=row["project_path"],
        project_name=row["project_name"],
        file_path=row["file_path"],
        file_size=row["file_size"],
        file_hash=row["file_hash"],
        message_count=row["message_count"],
        first_timestamp=row["first_timestamp"],
        last_timestamp=row["last_timestamp"],
        chunk_count=row["chunk_count"],
        indexed_at=row["indexed_at"],
        updated_at=row["updated_at"],
    )


def _row_to_chunk(row: sqlite3.Row) -> Chunk:
    return Chunk(
        id=row["id"],
        session_id=row["session_id"],
        project_path=row["project_path"] or "",
        type=row["type"],
        content=row["content"],
        summary=row["summary"],
        message_range=MessageRange(
            start_index=row["start_index"],
            end_index=row["end_index"],
            start_timestamp=row["start_timestamp"],
            end_timestamp=row["end_timestamp"],
        ),
        metadata=ChunkMetadata(
            tools_used=json.loads(row["tools_used"]),
            files_referenced=json.loads(row["files_referenced"]),
            tags=json.loads(row["tags"]),
        ),
        created_at=row["created_at"],
    )
