"""
Tests for Ollama embedder.
"""

from unittest.mock import AsyncMock, patch

import pytest

from entity_memory.core.embeddings.ollama import OllamaEmbedder
from entity_memory.utils.exceptions import EmbeddingError, ValidationError


@pytest.fixture
def ollama_embedder():
    """Create Ollama embedder for testing."""
    return OllamaEmbedder(host="http://localhost:11434", model="nomic-embed-text", timeout=120.0)


@pytest.mark.unit
@pytest.mark.asyncio
class TestOllamaEmbedder:
    """Test Ollama embedder."""

    async def test_initialization(self, ollama_embedder):
        assert ollama_embedder.host == "http://localhost:11434"
        assert ollama_embedder.model == "nomic-embed-text"
        assert ollama_embedder.client is not None

    async def test_embed(self, ollama_embedder):
        with patch.object(ollama_embedder.client, "embeddings", new_callable=AsyncMock) as mock_embed:
            mock_embed.return_value = {"embedding": [0.1, 0.2, 0.3]}

            result = await ollama_embedder.embed("Sarah. Startup founder")

            assert result == [0.1, 0.2, 0.3]
            mock_embed.assert_called_once_with(model="nomic-embed-text", prompt="Sarah. Startup founder")

    async def test_embed_with_kwargs(self, ollama_embedder):
        with patch.object(ollama_embedder.client, "embeddings", new_callable=AsyncMock) as mock_embed:
            mock_embed.return_value = {"embedding": [0.1, 0.2]}

            await ollama_embedder.embed("test", keep_alive="5m")

            assert mock_embed.call_args.kwargs["keep_alive"] == "5m"

    async def test_embed_empty_text(self, ollama_embedder):
        with pytest.raises(ValidationError, match="Text cannot be empty"):
            await ollama_embedder.embed("   ")

    async def test_embed_invalid_response(self, ollama_embedder):
        with patch.object(ollama_embedder.client, "embeddings", new_callable=AsyncMock) as mock_embed:
            mock_embed.return_value = {"error": "model not found"}

            with pytest.raises(EmbeddingError, match="invalid embedding response"):
                await ollama_embedder.embed("test")

    async def test_embed_client_error(self, ollama_embedder):
        with patch.object(ollama_embedder.client, "embeddings", new_callable=AsyncMock) as mock_embed:
            mock_embed.side_effect = ConnectionError("connection refused")

            with pytest.raises(EmbeddingError, match="Ollama embedding error"):
                await ollama_embedder.embed("test")

    async def test_close(self, ollama_embedder):
        await ollama_embedder.close()


@pytest.mark.integration
@pytest.mark.asyncio
class TestOllamaEmbedderIntegration:
    """
    Integration tests for Ollama embedder.
    Requires running Ollama server with nomic-embed-text.
    Run with: pytest -m integration
    """

    async def test_real_embedding(self):
        embedder = OllamaEmbedder(model="nomic-embed-text")

        try:
            result = await embedder.embed("Sarah is a startup founder")
            assert len(result) > 0
        except EmbeddingError as e:
            pytest.skip(f"Ollama not available: {e}")
        finally:
            await embedder.close()
