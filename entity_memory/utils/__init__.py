"""Utility modules for the entity memory graph."""

from entity_memory.utils.exceptions import (
    CollaboratorError,
    ConfigurationError,
    EmbeddingError,
    EntityMemoryError,
    LLMError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from entity_memory.utils.id_generator import (
    generate_entity_id,
    generate_fact_id,
    generate_inference_id,
    generate_note_id,
    generate_relationship_id,
)
from entity_memory.utils.locks import KeyedLocks
from entity_memory.utils.logger import get_logger, setup_logging

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    # Locks
    "KeyedLocks",
    # ID Generators
    "generate_entity_id",
    "generate_fact_id",
    "generate_relationship_id",
    "generate_inference_id",
    "generate_note_id",
    # Exceptions
    "EntityMemoryError",
    "StoreError",
    "ValidationError",
    "NotFoundError",
    "ConfigurationError",
    "LLMError",
    "EmbeddingError",
    "CollaboratorError",
]
