"""
LLM provider abstraction used by the collaborator adapters.

Supported providers:
- Ollama (native SDK)
- OpenAI (official SDK)
"""

from entity_memory.core.llm.base import LLMProvider
from entity_memory.core.llm.ollama import OllamaLLM
from entity_memory.core.llm.openai import OpenAILLM

__all__ = [
    "LLMProvider",
    "OllamaLLM",
    "OpenAILLM",
]
