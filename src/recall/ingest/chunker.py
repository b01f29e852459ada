"""Session chunker: transcript entries → classified, bounded-size chunks.

Entries are grouped into windows that start at each user message. Windows are
then merged until a group reaches ``min_chars`` of rendered content, with a
back-off so that no merged group exceeds ``max_chars``. A single window that
alone exceeds ``max_chars`` is emitted on its own, unsplit. Whatever is left in
the buffer at the end becomes the last chunk, whatever its size.

Each group is classified (first match wins):
  error-fix     error text in a tool result AND a code-mutating tool call
  code-change   a code-mutating tool call
  decision      decision / rationale keyword in user or assistant text
  architecture  >= 500 chars of assistant text with >= 2 architecture terms
  conversation  everything else
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Callable, Sequence

from recall.db.models import (
    ARCHITECTURE,
    CODE_CHANGE,
    CONVERSATION,
    DECISION,
    ERROR_FIX,
    Chunk,
    ChunkMetadata,
    MessageRange,
)
from recall.ingest.entries import Entry
from recall.ingest.parser import ParsedSession
from recall.ingest.redact import redact_secrets

MIN_CHUNK_CHARS = 200
MAX_CHUNK_CHARS = 3200
TOOL_RESULT_CHARS = 1000

ARCHITECTURE_MIN_CHARS = 500
ARCHITECTURE_MIN_TERMS = 2

DECISION_KEYWORDS: tuple[str, ...] = (
    # Danish
    "vi valgte", "vi vælger", "beslutning:", "fordi", "anbefaling:",
    # English
    "we chose", "we decided", "decision:", "because", "recommendation:",
    "reason:", "rationale:", "therefore", "thus we",
)

ARCHITECTURE_TERMS: tuple[str, ...] = (
    "pattern", "interface", "schema", "migration", "dependency",
    "architecture", "design", "api", "database", "service", "component",
    "module", "package", "repository", "singleton", "factory", "adapter",
    "middleware", "endpoint", "monorepo", "refactor",
)

TAG_VOCABULARY: tuple[str, ...] = (
    "typescript", "javascript", "python", "sql", "docker",
    "react", "node", "pnpm", "npm", "git", "api", "database",
    "sqlite", "mcp", "embedding", "vector", "search",
)

CODE_CHANGE_TOOLS: frozenset[str] = frozenset({"Write", "Edit", "MultiEdit", "NotebookEdit"})

ERROR_RE = re.compile(r"error|exception|failed|cannot|could not|not found", re.IGNORECASE)

SUMMARY_PREFIXES: dict[str, str] = {
    DECISION: "Decision:",
    CODE_CHANGE: "Code change:",
    ERROR_FIX: "Error fix:",
    ARCHITECTURE: "Architecture:",
    CONVERSATION: "Discussion:",
}

SUMMARY_MAX_CHARS = 250
_SUMMARY_USER_CHARS = 100
_SUMMARY_ASSISTANT_CHARS = 200


class SessionChunker:
    """Split a parsed session into classified chunks.

    Deterministic for a given entry list, apart from the random chunk ids.

    Args:
        min_chars: Rendered length a merged group must reach before it is emitted.
        max_chars: Upper bound for merged groups (single oversize windows excepted).
        tool_result_chars: Tool result text longer than this is truncated in content.
        redact: Applied to content and summary before they are attached to a chunk.
    """

    def __init__(
        self,
        min_chars: int = MIN_CHUNK_CHARS,
        max_chars: int = MAX_CHUNK_CHARS,
        tool_result_chars: int = TOOL_RESULT_CHARS,
        redact: Callable[[str], str] = redact_secrets,
    ) -> None:
        if min_chars < 1:
            raise ValueError("min_chars must be >= 1")
        if max_chars < min_chars:
            raise ValueError("max_chars must be >= min_chars")
        if tool_result_chars < 1:
            raise ValueError("tool_result_chars must be >= 1")
        self.min_chars = min_chars
        self.max_chars = max_chars
        self.tool_result_chars = tool_result_chars
        self._redact = redact

    def chunk(self, session: ParsedSession) -> list[Chunk]:
        """Return the chunks of *session* in transcript order."""
        entries = [e for e in session.entries if not e.is_sidechain]
        return [self._make_chunk(group, session) for group in self.group(entries)]

    # ------------------------------------------------------------------
    # Grouping
    # ------------------------------------------------------------------

    @staticmethod
    def windows(entries: Sequence[Entry]) -> list[list[Entry]]:
        """Split *entries* into turns: a new window opens at every user entry."""
        windows: list[list[Entry]] = []
        current: list[Entry] = []
        for entry in entries:
            if entry.is_user and current:
                windows.append(current)
                current = []
            current.append(entry)
        if current:
            windows.append(current)
        return windows

    def group(self, entries: Sequence[Entry]) -> list[list[Entry]]:
        """Merge/split windows into the entry groups that become chunks."""
        groups: list[list[Entry]] = []
        buffer: list[Entry] = []

        for window in self.windows(entries):
            if len(self.render(window)) > self.max_chars:
                if buffer:
                    groups.append(buffer)
                    buffer = []
                groups.append(window)
                continue

            buffer = buffer + window
            size = len(self.render(buffer))
            if size < self.min_chars:
                continue
            if size <= self.max_chars:
                groups.append(buffer)
                buffer = []
            else:
                previous = buffer[: len(buffer) - len(window)]
                if previous:
                    groups.append(previous)
                buffer = list(window)

        if buffer:
            groups.append(buffer)

        # A group with no renderable text (e.g. only tool calls) has nothing to
        # embed; it is folded into the next group so its metadata survives.
        merged: list[list[Entry]] = []
        carry: list[Entry] = []
        for group in groups:
            if self.render(group).strip():
                merged.append(carry + group)
                carry = []
            else:
                carry = carry + group
        if carry and merged:
            merged[-1] = merged[-1] + carry
        return merged

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, entries: Sequence[Entry]) -> str:
        """Tagged free-text rendering of *entries*; tool inputs are not included."""
        parts: list[str] = []
        for entry in entries:
            if entry.is_user:
                text = entry.text()
                if text:
                    parts.append(f"[User]\n{text}")
                # Redact before truncating so a cut cannot split a secret.
                results = self._redact(entry.tool_results())
                if results:
                    if len(results) > self.tool_result_chars:
                        results = f"{results[: self.tool_result_chars]}..."
                    parts.append(f"[Tool Result]\n{results}")
            elif entry.is_assistant:
                text = entry.text()
                if text:
                    parts.append(f"[Assistant]\n{text}")
        return "\n\n".join(parts)

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    @staticmethod
    def classify(entries: Sequence[Entry]) -> str:
        """Return the chunk type of *entries* (see module docstring for precedence)."""
        tools = {name for e in entries if e.is_assistant for name in e.tool_names()}
        has_code_change = not tools.isdisjoint(CODE_CHANGE_TOOLS)
        result_text = "\n".join(e.tool_results() for e in entries if e.is_user)
        has_error = ERROR_RE.search(result_text) is not None

        if has_error and has_code_change:
            return ERROR_FIX
        if has_code_change:
            return CODE_CHANGE

        assistant_text = "\n".join(e.text() for e in entries if e.is_assistant)
        user_text = "\n".join(e.text() for e in entries if e.is_user)
        if is_decision(user_text) or is_decision(assistant_text):
            return DECISION
        if is_architecture(assistant_text):
            return ARCHITECTURE
        return CONVERSATION

    # ------------------------------------------------------------------
    # Summary + metadata
    # ------------------------------------------------------------------

    @staticmethod
    def summarize(
        entries: Sequence[Entry],
        chunk_type: str,
        redact: Callable[[str], str] = redact_secrets,
    ) -> str:
        """One-line summary: type prefix plus the opening user (or assistant) text.

        Text is redacted before it is cut to length.
        """
        user_text = redact(" ".join(t for t in (e.text() for e in entries if e.is_user) if t))
        assistant_text = redact(
            " ".join(t for t in (e.text() for e in entries if e.is_assistant) if t)
        )
        lead = user_text[:_SUMMARY_USER_CHARS] or assistant_text[:_SUMMARY_ASSISTANT_CHARS]
        return f"{SUMMARY_PREFIXES[chunk_type]} {lead}"[:SUMMARY_MAX_CHARS]

    def metadata(self, entries: Sequence[Entry]) -> ChunkMetadata:
        tools: list[str] = []
        files: list[str] = []
        for entry in entries:
            if entry.is_assistant:
                tools.extend(entry.tool_names())
                files.extend(entry.file_paths())
        text = self.render(entries).lower()
        return ChunkMetadata(
            tools_used=list(dict.fromkeys(tools)),
            files_referenced=list(dict.fromkeys(files)),
            tags=[tag for tag in TAG_VOCABULARY if tag in text],
        )

    def _make_chunk(self, entries: list[Entry], session: ParsedSession) -> Chunk:
        chunk_type = self.classify(entries)
        timestamps = [e.timestamp for e in entries if e.timestamp]
        return Chunk(
            id=str(uuid.uuid4()),
            session_id=session.session_id,
            project_path=session.project_path,
            type=chunk_type,
            content=self._redact(self.render(entries)),
            summary=self._redact(self.summarize(entries, chunk_type, self._redact))[
                :SUMMARY_MAX_CHARS
            ],
            message_range=MessageRange(
                start_index=entries[0].index,
                end_index=entries[-1].index,
                start_timestamp=timestamps[0] if timestamps else "",
                end_timestamp=timestamps[-1] if timestamps else "",
            ),
            metadata=self.metadata(entries),
        )


def is_decision(text: str) -> bool:
    lower = text.lower()
    return any(keyword in lower for keyword in DECISION_KEYWORDS)


def is_architecture(text: str) -> bool:
    if len(text) < ARCHITECTURE_MIN_CHARS:
        return False
    lower = text.lower()
    return sum(1 for term in ARCHITECTURE_TERMS if term in lower) >= ARCHITECTURE_MIN_TERMS
