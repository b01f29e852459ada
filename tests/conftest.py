"""Shared pytest fixtures."""

from __future__ import annotations

import hashlib
import json
import math
from pathlib import Path

import pytest

from recall.db.connection import Database
from recall.db.repository import Repository
from recall.db.schema import initialize
from recall.errors import EmbeddingError
from recall.ingest.embedder import EmbeddingResult

DIMS = 4


class FakeEmbedder:
    """Deterministic stand-in for LiteLLMEmbedder.

    Vectors are unit length. Texts listed in *vectors* get that exact vector;
    anything else gets one derived from its sha256. Set ``fail_on`` to a
    substring to raise EmbeddingError for matching texts.
    """

    model = "fake/embedder"
    dimensions = DIMS

    def __init__(self, vectors: dict[str, list[float]] | None = None) -> None:
        self.vectors = vectors or {}
        self.calls: list[str] = []
        self.fail_on: str | None = None

    def embed(self, text: str) -> EmbeddingResult:
        self.calls.append(text)
        if self.fail_on is not None and self.fail_on in text:
            raise EmbeddingError("fake embedding failure", model=self.model)
        vector = self.vectors.get(text) or _hash_vector(text)
        return EmbeddingResult(vector=_unit(vector), dimensions=DIMS, model=self.model)


def _hash_vector(text: str) -> list[float]:
    digest = hashlib.sha256(text.encode()).digest()
    return [digest[i] + 1.0 for i in range(DIMS)]


def _unit(vector: list[float]) -> list[float]:
    norm = math.sqrt(sum(x * x for x in vector))
    return [x / norm for x in vector]


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema and a 4-dim vec table, closed after test."""
    db = Database(tmp_path / "recall.db")
    conn = db.connect()
    initialize(conn, DIMS)
    yield conn
    conn.close()


@pytest.fixture
def repo(tmp_db):
    return Repository(tmp_db)


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


# ------------------------------------------------------------------
# Transcript helpers
# ------------------------------------------------------------------


def user_line(text: str, ts: str | None = "2025-01-01T10:00:00Z", **extra) -> dict:
    return {"type": "user", "timestamp": ts, "message": {"role": "user", "content": text}, **extra}


def assistant_line(
    text: str = "",
    tools: list[tuple[str, dict]] | None = None,
    ts: str | None = "2025-01-01T10:00:05Z",
    **extra,
) -> dict:
    content: list[dict] = []
    if text:
        content.append({"type": "text", "text": text})
    for name, tool_input in tools or []:
        content.append({"type": "tool_use", "id": f"tu-{name}", "name": name, "input": tool_input})
    return {
        "type": "assistant",
        "timestamp": ts,
        "message": {"role": "assistant", "content": content},
        **extra,
    }


def tool_result_line(text: str, ts: str | None = "2025-01-01T10:00:06Z") -> dict:
    return {
        "type": "user",
        "timestamp": ts,
        "message": {
            "role": "user",
            "content": [{"type": "tool_result", "tool_use_id": "tu-1", "content": text}],
        },
    }


@pytest.fixture
def write_transcript(tmp_path):
    """Return ``write(lines, project=..., session=...)`` → path of a JSONL transcript.

    Lines may be dicts (JSON-encoded) or raw strings (written as-is).
    """
    root = tmp_path / "projects"

    def write(
        lines: list[dict | str],
        project: str = "-Users-me-Apps-demo",
        session: str = "sess-0001",
    ) -> Path:
        project_dir = root / project
        project_dir.mkdir(parents=True, exist_ok=True)
        path = project_dir / f"{session}.jsonl"
        body = "\n".join(line if isinstance(line, str) else json.dumps(line) for line in lines)
        path.write_text(body + "\n", encoding="utf-8")
        return path

    write.root = root
    return write


# ------------------------------------------------------------------
# CLI wiring
# ------------------------------------------------------------------


@pytest.fixture
def cli_env(monkeypatch, tmp_path, fake_embedder, write_transcript):
    """Point the CLI at tmp_path: 4-dim config, no real config files, fake embedder.

    Returns a namespace with ``db`` (database path, not created), ``sessions``
    (transcript root), ``embedder``, and ``write`` (the write_transcript helper).
    """
    from types import SimpleNamespace

    from recall.config import EmbeddingCfg, RecallConfig

    def _config():
        return RecallConfig(embedding=EmbeddingCfg(model=FakeEmbedder.model, dimensions=DIMS))

    monkeypatch.setattr("recall.cli.common.load_config", _config)
    for module in ("recall.cli.index", "recall.cli.search", "recall.cli.watch"):
        monkeypatch.setattr(f"{module}.build_embedder", lambda cfg: fake_embedder)

    write_transcript.root.mkdir(parents=True, exist_ok=True)
    return SimpleNamespace(
        db=tmp_path / "cli" / "recall.db",
        sessions=write_transcript.root,
        embedder=fake_embedder,
        write=write_transcript,
    )
