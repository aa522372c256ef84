"""
Factory for creating entity memory stores.
"""

from entity_memory.config import StoreConfig
from entity_memory.core.store.base import EntityMemoryStore
from entity_memory.core.store.sqlite_store import SQLiteEntityStore
from entity_memory.utils.exceptions import ConfigurationError


class StoreFactory:
    """Factory for creating stores from configuration."""

    @staticmethod
    async def create(config: StoreConfig) -> EntityMemoryStore:
        """
        Create and initialize a store.

        Raises:
            ConfigurationError: If the backend is unknown
            StoreError: If the schema cannot be created
        """
        if config.backend == "sqlite":
            store = SQLiteEntityStore(db_path=config.db_path)
        else:
            raise ConfigurationError(f"Unsupported store backend: {config.backend}")

        await store.initialize()
        return store
