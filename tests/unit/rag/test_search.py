"""Tests for Searcher: query embedding + hybrid store query."""

from __future__ import annotations

import pytest

from conftest import FakeEmbedder
from recall.db.models import (
    CODE_CHANGE,
    DECISION,
    Chunk,
    ChunkMetadata,
    MessageRange,
    SearchOptions,
    Session,
)
from recall.errors import EmbeddingError
from recall.rag.search import Searcher

QUERY = "why did we pick sqlite"


def _seed(repo):
    for sid, name in (("a", "alpha"), ("b", "beta")):
        repo.upsert_session(
            Session(
                session_id=sid,
                project_path=f"-Users-me-Apps-{name}",
                project_name=name,
                file_path=f"/tmp/{sid}.jsonl",
                file_size=1,
                file_hash="fp",
                message_count=2,
            )
        )
    specs = [
        ("c-dec", "a", DECISION, [1.0, 0.0, 0.0, 0.0]),
        ("c-code", "b", CODE_CHANGE, [0.8, 0.6, 0.0, 0.0]),
        ("c-far", "b", DECISION, [0.0, 0.0, 0.0, 1.0]),
    ]
    repo.insert_chunks([
        Chunk(
            id=cid,
            session_id=sid,
            project_path="",
            type=ctype,
            content=f"content {cid}",
            summary=f"summary {cid}",
            message_range=MessageRange(0, 1),
            metadata=ChunkMetadata(),
            embedding=vec,
        )
        for cid, sid, ctype, vec in specs
    ])


@pytest.fixture
def searcher(repo):
    _seed(repo)
    return Searcher(repo, FakeEmbedder({QUERY: [1.0, 0.0, 0.0, 0.0]}))


def test_search_ranks_by_similarity(searcher):
    results = searcher.search(QUERY, SearchOptions(limit=3))
    assert [r.chunk.id for r in results] == ["c-dec", "c-code", "c-far"]
    assert results[0].score == pytest.approx(1.0)
    assert all(0.0 <= r.score <= 1.0 for r in results)


def test_search_default_limit_is_five(searcher):
    assert len(searcher.search(QUERY)) == 3


def test_search_filters(searcher):
    assert [r.chunk.id for r in searcher.search(QUERY, SearchOptions(chunk_type=CODE_CHANGE))] == ["c-code"]
    assert [r.chunk.id for r in searcher.search(QUERY, SearchOptions(project="beta"))] == ["c-code", "c-far"]


def test_search_returns_session_metadata(searcher):
    result = searcher.search(QUERY, SearchOptions(limit=1))[0]
    assert result.session.project_name == "alpha"
    assert result.chunk.summary == "summary c-dec"


def test_blank_query_skips_embedding(repo):
    embedder = FakeEmbedder()
    assert Searcher(repo, embedder).search("   ") == []
    assert embedder.calls == []


def test_embedding_failure_propagates(repo):
    embedder = FakeEmbedder()
    embedder.fail_on = "sqlite"
    with pytest.raises(EmbeddingError):
        Searcher(repo, embedder).search(QUERY)
