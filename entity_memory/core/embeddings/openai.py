"""
OpenAI embedder using the official SDK.
"""

from openai import AsyncOpenAI

from entity_memory.core.embeddings.base import Embedder
from entity_memory.utils.exceptions import EmbeddingError, ValidationError
from entity_memory.utils.logger import get_logger

logger = get_logger(__name__)


class OpenAIEmbedder(Embedder):
    """OpenAI embedder (text-embedding-3-small, text-embedding-3-large, ...)."""

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        base_url: str | None = None,
        timeout: float = 60.0,
    ):
        self.model = model
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)

    async def embed(self, text: str, **kwargs) -> list[float]:
        if not text or not text.strip():
            raise ValidationError("Text cannot be empty")

        try:
            response = await self.client.embeddings.create(model=self.model, input=text, **kwargs)
        except Exception as e:
            logger.error(
                "OpenAI embedding error: {}", e,
                extra={"model": self.model, "error": str(e), "error_type": type(e).__name__},
            )
            raise EmbeddingError(f"OpenAI embedding error: {e}") from e

        if not response.data:
            raise EmbeddingError("OpenAI returned empty embedding response")
        return list(response.data[0].embedding)

    async def close(self):
        await self.client.close()
