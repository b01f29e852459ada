"""Incremental indexing pipeline: transcripts on disk → sessions, chunks, vectors.

Per file:
  1. Empty file → skipped.
  2. Fingerprint (size + mtime) equal to the stored one → skipped, nothing touched.
  3. Parse and chunk the transcript.
  4. Embed every chunk, one call at a time, in chunk order.
  5. In ONE transaction: delete the session's old chunks + vectors, upsert the
     session record, insert the new chunks + vectors.

An embedding failure aborts the file before step 5, so the previous chunks and
fingerprint stay as they were and the next run retries the whole file.
At most one indexing operation may run per session id at a time; callers that
index concurrently must serialise per session (see SessionWatcher).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from recall.db.models import Session
from recall.db.repository import Repository
from recall.ingest.chunker import SessionChunker
from recall.ingest.embedder import Embedder
from recall.ingest.fingerprint import FingerprintTracker, fingerprint
from recall.ingest.parser import (
    TRANSCRIPT_SUFFIX,
    parse_session_file,
    project_name_from_path,
    session_id_for,
)

logger = logging.getLogger(__name__)


@dataclass
class IndexResult:
    skipped: bool
    chunk_count: int


@dataclass
class BatchResult:
    total: int = 0
    indexed: int = 0
    skipped: int = 0
    errors: int = 0


class Indexer:
    """Keep the chunk corpus consistent with the transcripts on disk.

    Args:
        repo: Open Repository (vec table already ensured for the embedder's width).
        embedder: Embedding capability.
        chunker: Session chunker; defaults to SessionChunker().
        sessions_path: Root used by index_all() when no directory is given.
    """

    def __init__(
        self,
        repo: Repository,
        embedder: Embedder,
        chunker: SessionChunker | None = None,
        sessions_path: Path | None = None,
    ) -> None:
        self._repo = repo
        self._embedder = embedder
        self._chunker = chunker or SessionChunker()
        self._tracker = FingerprintTracker(repo)
        self.sessions_path = sessions_path

    @property
    def repo(self) -> Repository:
        return self._repo

    def index_file(self, path: Path | str) -> IndexResult:
        """Index *path* unless it is empty or unchanged since the last index."""
        path = Path(path)
        if path.stat().st_size == 0:
            logger.debug("Skipping empty transcript %s", path.name)
            return IndexResult(skipped=True, chunk_count=0)

        session_id = session_id_for(path)
        new_fingerprint = fingerprint(path)
        if not self._tracker.has_changed(session_id, new_fingerprint):
            logger.debug("Unchanged transcript %s", path.name)
            return IndexResult(skipped=True, chunk_count=0)

        count = self._rebuild(path, new_fingerprint)
        return IndexResult(skipped=False, chunk_count=count)

    def reindex_file(self, path: Path | str) -> IndexResult:
        """Rebuild *path* regardless of its fingerprint."""
        path = Path(path)
        count = self._rebuild(path, fingerprint(path))
        return IndexResult(skipped=False, chunk_count=count)

    def index_all(self, root: Path | str | None = None) -> BatchResult:
        """Index every transcript under *root* (``<root>/<project>/<session>.jsonl``).

        A failing file is logged and counted in ``errors``; the batch continues.
        """
        root = Path(root) if root is not None else self.sessions_path
        if root is None:
            raise ValueError("No sessions path given and none configured.")

        files = find_session_files(root)
        result = BatchResult(total=len(files))
        logger.info("Found %d session files in %s", len(files), root)

        for file in files:
            try:
                outcome = self.index_file(file)
            except Exception:
                result.errors += 1
                logger.exception("Error indexing %s", file.name)
                continue
            if outcome.skipped:
                result.skipped += 1
            else:
                result.indexed += 1

        logger.info(
            "Done. Indexed: %d, Skipped: %d, Errors: %d",
            result.indexed,
            result.skipped,
            result.errors,
        )
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _rebuild(self, path: Path, new_fingerprint: str) -> int:
        """Parse, chunk, embed, and atomically replace the session's data."""
        size = path.stat().st_size
        session = parse_session_file(path)
        chunks = self._chunker.chunk(session)

        for chunk in chunks:
            chunk.embedding = self._embedder.embed(chunk.content).vector

        record = Session(
            session_id=session.session_id,
            project_path=session.project_path,
            project_name=project_name_from_path(session.project_path),
            file_path=str(path),
            file_size=size,
            file_hash=new_fingerprint,
            message_count=session.message_count,
            first_timestamp=session.first_timestamp,
            last_timestamp=session.last_timestamp,
            chunk_count=len(chunks),
        )
        with self._repo.transaction():
            replaced = self._repo.delete_session_chunks(session.session_id)
            self._repo.upsert_session(record)
            self._repo.insert_chunks(chunks)

        logger.info(
            "Indexed %s → %d chunks%s",
            path.name,
            len(chunks),
            f" (replaced {replaced})" if replaced else "",
        )
        return len(chunks)


def find_session_files(root: Path | str) -> list[Path]:
    """Return transcript files one level below each project directory of *root*."""
    root = Path(root)
    try:
        project_dirs = sorted(p for p in root.iterdir() if p.is_dir())
    except OSError as exc:
        logger.error("Cannot read sessions path %s: %s", root, exc)
        return []

    files: list[Path] = []
    for project_dir in project_dirs:
        try:
            files.extend(
                sorted(
                    f
                    for f in project_dir.iterdir()
                    if f.is_file() and f.suffix == TRANSCRIPT_SUFFIX
                )
            )
        except OSError as exc:
            logger.warning("Skipping unreadable project directory %s: %s", project_dir, exc)
    return files
