"""
Abstract base class for embedding providers.

Consolidated entities are re-indexed by embedding "<name>. <summary>";
search compares a query embedding against the stored vectors.
"""

import math
from abc import ABC, abstractmethod


class Embedder(ABC):
    """Abstract base for embedding providers."""

    model: str

    @abstractmethod
    async def embed(self, text: str, **kwargs) -> list[float]:
        """
        Generate embedding vector for text.

        Raises:
            ValidationError: If text is empty
            EmbeddingError: If embedding generation fails
        """

    @abstractmethod
    async def close(self):
        """Release provider connections."""


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine similarity of two vectors; 0.0 when either is empty, zero or mismatched."""
    if not a or not b or len(a) != len(b):
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)
