"""
Factory for creating LLM providers.
"""

from entity_memory.config import LLMConfig
from entity_memory.core.llm.base import LLMProvider
from entity_memory.core.llm.ollama import OllamaLLM
from entity_memory.core.llm.openai import OpenAILLM
from entity_memory.utils.exceptions import ConfigurationError

DEFAULT_OLLAMA_HOST = "http://localhost:11434"


class LLMFactory:
    """Factory for creating LLM providers from configuration."""

    @staticmethod
    def create(config: LLMConfig) -> LLMProvider:
        """
        Create LLM provider from configuration.

        Raises:
            ConfigurationError: If the provider is unknown or OpenAI has no API key
        """
        if config.provider == "ollama":
            return OllamaLLM(
                host=config.base_url or DEFAULT_OLLAMA_HOST,
                model=config.model,
                timeout=config.timeout,
            )
        elif config.provider == "openai":
            if not config.api_key:
                raise ConfigurationError("OpenAI API key is required")
            return OpenAILLM(
                api_key=config.api_key,
                model=config.model,
                base_url=config.base_url,
                timeout=config.timeout,
            )
        else:
            raise ConfigurationError(f"Unsupported LLM provider: {config.provider}")
