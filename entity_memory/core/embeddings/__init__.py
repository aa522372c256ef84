"""
Embedder abstraction used to re-index consolidated entities.

Supported providers:
- Ollama (native SDK)
- OpenAI (official SDK)
"""

from entity_memory.core.embeddings.base import Embedder, cosine_similarity
from entity_memory.core.embeddings.ollama import OllamaEmbedder
from entity_memory.core.embeddings.openai import OpenAIEmbedder

__all__ = [
    "Embedder",
    "OllamaEmbedder",
    "OpenAIEmbedder",
    "cosine_similarity",
]
