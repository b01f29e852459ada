"""Plain-text digests of stored sessions and decisions."""

from __future__ import annotations

from recall.db.models import CODE_CHANGE, CONVERSATION, DECISION, ERROR_FIX
from recall.db.repository import Repository

_MAX_FILES = 20
_SUMMARY_MAX_FILES = 10
_SUMMARY_MAX_ACTIVITIES = 5


def session_context(repo: Repository, session_id: str) -> str | None:
    """Summarise one session: dates, counts, decisions, changes, fixes, files.

    Returns None if the session does not exist.
    """
    session = repo.get_session(session_id)
    if session is None:
        return None

    chunks = repo.get_chunks_by_session(session_id)
    files = list(dict.fromkeys(f for c in chunks for f in c.metadata.files_referenced))

    lines = [
        f"# Session: {session.session_id}",
        f"Project: {session.project_name}",
        f"Date: {session.first_timestamp or '?'} → {session.last_timestamp or '?'}",
        f"Messages: {session.message_count} | Chunks: {session.chunk_count}",
    ]
    for title, chunk_type in (
        ("Decisions", DECISION),
        ("Code Changes", CODE_CHANGE),
        ("Error Fixes", ERROR_FIX),
    ):
        selected = [c for c in chunks if c.type == chunk_type]
        if selected:
            lines.extend(["", f"## {title} ({len(selected)})"])
            lines.extend(f"- {c.summary}" for c in selected)
    if files:
        lines.extend(["", "## Files Referenced"])
        lines.extend(f"- {f}" for f in files[:_MAX_FILES])
    return "\n".join(lines)


def session_summary(repo: Repository, session_id: str) -> str | None:
    """Short overview of one session: key activities, files, and tools.

    Key activities are the first non-conversation chunks in transcript order.
    Returns None if the session does not exist.
    """
    session = repo.get_session(session_id)
    if session is None:
        return None

    chunks = repo.get_chunks_by_session(session_id)
    files = list(dict.fromkeys(f for c in chunks for f in c.metadata.files_referenced))
    tools = list(dict.fromkeys(t for c in chunks for t in c.metadata.tools_used))
    key_chunks = [c for c in chunks if c.type != CONVERSATION][:_SUMMARY_MAX_ACTIVITIES]

    lines = [
        f"# Summary: {session.session_id}",
        f"Project: {session.project_name}",
        f"Date: {session.first_timestamp or '?'} → {session.last_timestamp or '?'}",
    ]
    if key_chunks:
        lines.extend(["", "## Key Activities"])
        lines.extend(f"- [{c.type}] {c.summary}" for c in key_chunks)
    if files:
        lines.extend(["", "## Files Changed"])
        lines.extend(f"- {f}" for f in files[:_SUMMARY_MAX_FILES])
    if tools:
        lines.extend(["", f"## Tools Used: {', '.join(tools)}"])
    return "\n".join(lines)


def decisions_digest(repo: Repository, project: str | None = None, limit: int = 20) -> list[str]:
    """Return one line per decision chunk, newest first."""
    return [f"[{c.session_id[:8]}] {c.summary}" for c in repo.get_decisions(project, limit)]
