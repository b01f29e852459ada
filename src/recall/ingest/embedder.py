"""Embedding capability backed by LiteLLM.

Any LiteLLM embedding model works, e.g. ``openai/text-embedding-3-small`` or a
local ``ollama/nomic-embed-text`` (set ``api_base`` for a non-default host).
Calls are synchronous and never retried; a failure surfaces as EmbeddingError.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Protocol

import litellm

from recall.errors import EmbeddingError

litellm.suppress_debug_info = True

_API_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "voyage": "VOYAGE_API_KEY",
}


@dataclass
class EmbeddingConfig:
    """Configuration for embedding generation."""

    model: str = "openai/text-embedding-3-small"
    dimensions: int = 1536
    api_base: str | None = None


@dataclass
class EmbeddingResult:
    vector: list[float]
    dimensions: int
    model: str


class Embedder(Protocol):
    """Anything that turns text into a fixed-width vector."""

    @property
    def model(self) -> str: ...

    @property
    def dimensions(self) -> int: ...

    def embed(self, text: str) -> EmbeddingResult: ...


class LiteLLMEmbedder:
    """Embed text with ``litellm.embedding()``.

    Args:
        config: Embedding configuration (model, dimensions, api_base).
    """

    def __init__(self, config: EmbeddingConfig | None = None) -> None:
        self._config = config or EmbeddingConfig()
        if self._config.dimensions < 1:
            raise ValueError("dimensions must be >= 1")

    @property
    def model(self) -> str:
        return self._config.model

    @property
    def dimensions(self) -> int:
        return self._config.dimensions

    def embed(self, text: str) -> EmbeddingResult:
        """Return the embedding of *text*.

        Raises:
            EmbeddingError: On a missing API key, a provider error, or a
                vector whose width differs from the configured dimensions.
        """
        self._check_api_key()
        kwargs: dict[str, object] = {"model": self._config.model, "input": [text]}
        if self._config.api_base:
            kwargs["api_base"] = self._config.api_base
        try:
            response = litellm.embedding(**kwargs)
            vector = [float(x) for x in response.data[0]["embedding"]]
        except Exception as exc:
            raise EmbeddingError(
                f"Embedding call to '{self._config.model}' failed: {exc}",
                model=self._config.model,
            ) from exc

        if len(vector) != self._config.dimensions:
            raise EmbeddingError(
                f"Model '{self._config.model}' returned {len(vector)} dimensions, "
                f"expected {self._config.dimensions}. Set embedding.dimensions to match.",
                model=self._config.model,
            )
        return EmbeddingResult(
            vector=vector, dimensions=len(vector), model=self._config.model
        )

    def _check_api_key(self) -> None:
        """Raise EmbeddingError if the model's provider needs a key that is not set."""
        provider = self._config.model.split("/")[0].lower() if "/" in self._config.model else ""
        required_env = _API_KEY_ENV.get(provider)
        if required_env and not os.environ.get(required_env):
            raise EmbeddingError(
                f"No API key found for provider '{provider}'. "
                f"Set the {required_env} environment variable.",
                model=self._config.model,
            )
