"""
Embedding providers.

Without an embedding key the service uses a deterministic 64-dim
pseudo-embedding so memory retrieval is reproducible offline. It carries no
semantic meaning.
"""

from __future__ import annotations

import logging
import math
from typing import Any, List, Optional, Protocol

from ai_form_builder.errors import UpstreamUnavailable
from ai_form_builder.settings import Settings

logger = logging.getLogger(__name__)

PSEUDO_EMBEDDING_DIM = 64


class Embedder(Protocol):
    def embed(self, text: str) -> List[float]: ...


def pseudo_embedding(text: str, dim: int = PSEUDO_EMBEDDING_DIM) -> List[float]:
    if not text or not text.strip():
        return []
    n = len(text)
    return [(math.sin(ord(text[i % n]) + i) + 1) * 0.5 for i in range(dim)]


class DeterministicEmbedder:
    def __init__(self, dim: int = PSEUDO_EMBEDDING_DIM) -> None:
        self.dim = dim

    def embed(self, text: str) -> List[float]:
        return pseudo_embedding(text, self.dim)


class DspyEmbedder:
    """Hosted embeddings through `dspy.Embedder` (LiteLLM `embedding`)."""

    def __init__(self, settings: Settings, *, embedder: Optional[Any] = None) -> None:
        self.settings = settings
        self._embedder = embedder

    def _get_embedder(self) -> Any:
        if self._embedder is not None:
            return self._embedder
        try:
            import dspy  # type: ignore
        except Exception as e:
            raise UpstreamUnavailable(f"DSPy import failed: {e}") from e
        self._embedder = dspy.Embedder(
            self.settings.embedding_model,
            caching=False,
            api_key=self.settings.embedding_api_key,
            timeout=self.settings.llm_timeout_sec,
        )
        return self._embedder

    def embed(self, text: str) -> List[float]:
        if not text or not text.strip():
            return []
        embedder = self._get_embedder()
        try:
            result = embedder(text)
        except Exception as e:
            raise UpstreamUnavailable(f"embedding request failed: {e}") from e
        vector = _as_float_list(result)
        if not vector:
            raise UpstreamUnavailable("embedding provider returned an empty vector")
        return vector


def _as_float_list(result: Any) -> List[float]:
    if hasattr(result, "tolist"):
        result = result.tolist()
    # A single string input may still come back as a batch of one.
    if isinstance(result, list) and result and isinstance(result[0], (list, tuple)):
        result = result[0]
    if not isinstance(result, (list, tuple)):
        return []
    return [float(x) for x in result]


def build_embedder(settings: Settings) -> Embedder:
    if not settings.embedding_enabled:
        logger.info("[memory] EMBEDDING_API_KEY not set; using deterministic pseudo-embeddings")
        return DeterministicEmbedder()
    return DspyEmbedder(settings)


__all__ = [
    "DeterministicEmbedder",
    "DspyEmbedder",
    "Embedder",
    "PSEUDO_EMBEDDING_DIM",
    "build_embedder",
    "pseudo_embedding",
]
