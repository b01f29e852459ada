"""Transcript parser: JSONL session file → ordered, indexed entries."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from recall.ingest.entries import ROLE_ASSISTANT, ROLE_USER, Entry, blocks_from_raw

TRANSCRIPT_SUFFIX = ".jsonl"

_ROLE_BY_TYPE = {
    "user": ROLE_USER,
    "human": ROLE_USER,
    "assistant": ROLE_ASSISTANT,
}


@dataclass
class ParsedSession:
    session_id: str
    project_path: str
    file_path: str
    entries: list[Entry] = field(default_factory=list)
    first_timestamp: str = ""
    last_timestamp: str = ""

    @property
    def message_count(self) -> int:
        return len(self.entries)


def session_id_for(path: Path | str) -> str:
    """Session id of a transcript: its file name without the .jsonl suffix."""
    return Path(path).stem


def project_name_from_path(project_path: str) -> str:
    """Readable project name from an encoded project directory name.

    Example:
        "-Users-me-Apps-codepromptmaker" -> "codepromptmaker"
    """
    parts = [p for p in project_path.split("-") if p]
    return parts[-1] if parts else project_path


def parse_entry(line: str, index: int) -> Entry | None:
    """Parse one transcript line. Returns None for anything that is not a
    user/assistant message (blank, malformed, metadata, or sidechain lines)."""
    stripped = line.strip()
    if not stripped:
        return None
    try:
        raw = json.loads(stripped)
    except json.JSONDecodeError:
        return None
    if not isinstance(raw, dict):
        return None

    role = _ROLE_BY_TYPE.get(raw.get("type"))
    if role is None or raw.get("isSidechain"):
        return None

    message = raw.get("message")
    content = message.get("content") if isinstance(message, dict) else None
    timestamp = raw.get("timestamp")
    uuid = raw.get("uuid")
    return Entry(
        index=index,
        role=role,
        blocks=blocks_from_raw(content),
        timestamp=timestamp if isinstance(timestamp, str) and timestamp else None,
        uuid=uuid if isinstance(uuid, str) else None,
    )


def parse_session_file(path: Path | str) -> ParsedSession:
    """Parse a JSONL session transcript.

    Malformed lines are skipped silently; every physical line still consumes
    one index.
    """
    path = Path(path)
    session = ParsedSession(
        session_id=session_id_for(path),
        project_path=path.parent.name,
        file_path=str(path),
    )

    with path.open(encoding="utf-8", errors="replace") as fh:
        for index, line in enumerate(fh):
            entry = parse_entry(line, index)
            if entry is None:
                continue
            session.entries.append(entry)
            if entry.timestamp:
                if not session.first_timestamp:
                    session.first_timestamp = entry.timestamp
                session.last_timestamp = entry.timestamp

    return session
