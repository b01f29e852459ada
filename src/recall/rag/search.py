"""Retrieval: natural-language query → embedding → hybrid store query."""

from __future__ import annotations

import logging

from recall.db.models import SearchOptions, SearchResult
from recall.db.repository import Repository
from recall.ingest.embedder import Embedder

logger = logging.getLogger(__name__)


class Searcher:
    """Embed queries with the indexing model and run them against the store.

    Args:
        repo: Open Repository.
        embedder: Must be the same model (and width) used at index time.
    """

    def __init__(self, repo: Repository, embedder: Embedder) -> None:
        self._repo = repo
        self._embedder = embedder

    def search(self, query: str, options: SearchOptions | None = None) -> list[SearchResult]:
        """Return up to ``options.limit`` results, best match first.

        Filters are applied after the nearest-neighbour stage (see
        Repository.vector_search), so filtered searches may return fewer.
        """
        if not query.strip():
            return []
        options = options or SearchOptions()
        result = self._embedder.embed(query)
        results = self._repo.vector_search(result.vector, options)
        logger.debug("Query %r → %d results", query, len(results))
        return results
