"""
Ollama embedder using the native ollama-python SDK.
"""

import ollama

from entity_memory.core.embeddings.base import Embedder
from entity_memory.utils.exceptions import EmbeddingError, ValidationError
from entity_memory.utils.logger import get_logger

logger = get_logger(__name__)


class OllamaEmbedder(Embedder):
    """Ollama embedder (nomic-embed-text, mxbai-embed-large, ...)."""

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "nomic-embed-text",
        timeout: float = 60.0,
    ):
        self.host = host
        self.model = model
        self.client = ollama.AsyncClient(host=host, timeout=timeout)

    async def embed(self, text: str, **kwargs) -> list[float]:
        if not text or not text.strip():
            raise ValidationError("Text cannot be empty")

        try:
            response = await self.client.embeddings(model=self.model, prompt=text, **kwargs)
        except Exception as e:
            logger.error(
                "Ollama embedding error: {}", e,
                extra={"model": self.model, "host": self.host, "error": str(e)},
            )
            raise EmbeddingError(f"Ollama embedding error: {e}") from e

        if not response or "embedding" not in response:
            raise EmbeddingError("Ollama returned invalid embedding response")
        return list(response["embedding"])

    async def close(self):
        """Ollama SDK handles cleanup internally."""
