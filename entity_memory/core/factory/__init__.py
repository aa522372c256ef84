"""
Factories for creating entity memory components from configuration.
"""

from entity_memory.core.factory.collaborator_factory import CollaboratorFactory, Collaborators
from entity_memory.core.factory.embedder_factory import EmbedderFactory
from entity_memory.core.factory.llm_factory import LLMFactory
from entity_memory.core.factory.store_factory import StoreFactory

__all__ = [
    "LLMFactory",
    "EmbedderFactory",
    "StoreFactory",
    "CollaboratorFactory",
    "Collaborators",
]
