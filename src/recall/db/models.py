"""Domain models for the recall database layer."""

from __future__ import annotations

from dataclasses import dataclass, field

DECISION = "decision"
CODE_CHANGE = "code-change"
ERROR_FIX = "error-fix"
ARCHITECTURE = "architecture"
CONVERSATION = "conversation"

CHUNK_TYPES: tuple[str, ...] = (DECISION, CODE_CHANGE, ERROR_FIX, ARCHITECTURE, CONVERSATION)


@dataclass
class MessageRange:
    start_index: int
    end_index: int
    start_timestamp: str = ""
    end_timestamp: str = ""


@dataclass
class ChunkMetadata:
    tools_used: list[str] = field(default_factory=list)
    files_referenced: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


@dataclass
class Chunk:
    id: str
    session_id: str
    project_path: str
    type: str
    content: str
    summary: str
    message_range: MessageRange
    metadata: ChunkMetadata = field(default_factory=ChunkMetadata)
    embedding: list[float] | None = None  # attached by the indexer, never read back
    created_at: str | None = None


@dataclass
class Session:
    session_id: str
    project_path: str
    project_name: str
    file_path: str
    file_size: int
    file_hash: str
    message_count: int
    first_timestamp: str = ""
    last_timestamp: str = ""
    chunk_count: int = 0
    indexed_at: str | None = None
    updated_at: str | None = None


@dataclass
class SearchOptions:
    """Filters for a hybrid query.

    Attributes:
        project: Project name (exact) or a substring of the project path.
        chunk_type: One of CHUNK_TYPES.
        limit: Number of nearest-neighbour candidates; also the result cap.
    """

    project: str | None = None
    chunk_type: str | None = None
    limit: int = 5


@dataclass
class SearchResult:
    chunk: Chunk
    score: float
    session: Session
