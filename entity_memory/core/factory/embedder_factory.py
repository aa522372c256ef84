"""
Factory for creating embedder providers.
"""

from entity_memory.config import EmbedderConfig
from entity_memory.core.embeddings.base import Embedder
from entity_memory.core.embeddings.ollama import OllamaEmbedder
from entity_memory.core.embeddings.openai import OpenAIEmbedder
from entity_memory.core.factory.llm_factory import DEFAULT_OLLAMA_HOST
from entity_memory.utils.exceptions import ConfigurationError


class EmbedderFactory:
    """Factory for creating embedder providers from configuration."""

    @staticmethod
    def create(config: EmbedderConfig) -> Embedder | None:
        """
        Create embedder from configuration.

        Returns:
            Embedder instance, or None when re-indexing is disabled

        Raises:
            ConfigurationError: If the provider is unknown or OpenAI has no API key
        """
        if not config.enabled:
            return None

        if config.provider == "ollama":
            return OllamaEmbedder(
                host=config.base_url or DEFAULT_OLLAMA_HOST,
                model=config.model,
                timeout=config.timeout,
            )
        elif config.provider == "openai":
            if not config.api_key:
                raise ConfigurationError("OpenAI API key is required")
            return OpenAIEmbedder(
                api_key=config.api_key,
                model=config.model,
                base_url=config.base_url,
                timeout=config.timeout,
            )
        else:
            raise ConfigurationError(f"Unsupported embedder provider: {config.provider}")
