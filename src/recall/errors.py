"""Exception types raised by the recall library."""

from __future__ import annotations


class RecallError(Exception):
    """Base class for recall failures."""


class EmbeddingError(RecallError):
    """The embedding capability failed; the enclosing file index is aborted."""

    def __init__(self, message: str, model: str = "") -> None:
        super().__init__(message)
        self.model = model
