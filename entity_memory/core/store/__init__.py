"""
Persistence layer for entities, facts, relationships, inferences and notes.
"""

from entity_memory.core.store.base import EntityMemoryStore
from entity_memory.core.store.sqlite_store import SQLiteEntityStore

__all__ = [
    "EntityMemoryStore",
    "SQLiteEntityStore",
]
