"""Recall ingest pipeline — transcript parser, chunker, embedder, indexer, watcher."""

from recall.ingest.chunker import SessionChunker
from recall.ingest.embedder import EmbeddingConfig, LiteLLMEmbedder
from recall.ingest.indexer import BatchResult, Indexer, IndexResult
from recall.ingest.parser import ParsedSession, parse_session_file

__all__ = [
    "SessionChunker",
    "EmbeddingConfig",
    "LiteLLMEmbedder",
    "Indexer",
    "IndexResult",
    "BatchResult",
    "ParsedSession",
    "parse_session_file",
]
