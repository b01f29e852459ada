"""Cheap per-file change detection for transcripts.

The fingerprint covers file size and modification time only; the file body is
never read. An edit that preserves both is not detected.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

from recall.db.repository import Repository


def fingerprint(path: Path | str) -> str:
    """Return an opaque change signature for *path* (sha256 of size + mtime)."""
    stat = Path(path).stat()
    return hashlib.sha256(f"{stat.st_size}:{stat.st_mtime_ns}".encode()).hexdigest()


class FingerprintTracker:
    """Compare fresh fingerprints with the ones stored on session records."""

    def __init__(self, repo: Repository) -> None:
        self._repo = repo

    def has_changed(self, session_id: str, new_fingerprint: str) -> bool:
        """True if *session_id* was never indexed or its stored fingerprint differs."""
        stored = self._repo.get_session_hash(session_id)
        return stored is None or stored != new_fingerprint
