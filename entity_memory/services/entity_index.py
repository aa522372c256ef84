"""
Read-through cache of an owner's known entities.

Maps owner -> lower-cased name -> entity refs. Loaded from the store on first
use per owner and invalidated whenever the owner's entity set changes shape
(create, supersede, archive, dismiss, confirm).
"""

import asyncio

from entity_memory.core.store.base import EntityMemoryStore
from entity_memory.models.entity import EntityFilter, EntityRef, EntityStatus, normalize_name
from entity_memory.utils.logger import get_logger

logger = get_logger(__name__)


class EntityIndex:
    """Owner-scoped name index over active entities."""

    def __init__(self, store: EntityMemoryStore, limit: int = 500):
        self.store = store
        self.limit = limit
        self._index: dict[str, dict[str, list[EntityRef]]] = {}
        self._loading: dict[str, asyncio.Lock] = {}

    async def get(self, owner_id: str) -> dict[str, list[EntityRef]]:
        """Name key -> refs for the owner, newest entity first within a name."""
        cached = self._index.get(owner_id)
        if cached is not None:
            return cached

        lock = self._loading.setdefault(owner_id, asyncio.Lock())
        async with lock:
            cached = self._index.get(owner_id)
            if cached is not None:
                return cached

            entities = await self.store.query_entities(
                owner_id,
                EntityFilter(statuses=[EntityStatus.ACTIVE], order_by="created_at", limit=self.limit),
            )
            by_name: dict[str, list[EntityRef]] = {}
            for entity in entities:
                by_name.setdefault(entity.name_key, []).append(
                    EntityRef(
                        id=entity.id,
                        name=entity.name,
                        kind=entity.kind,
                        created_at=entity.created_at,
                    )
                )
            for refs in by_name.values():
                refs.sort(key=lambda ref: ref.created_at, reverse=True)

            self._index[owner_id] = by_name
            logger.debug(
                "Loaded entity index for {}", owner_id,
                extra={"owner_id": owner_id, "names": len(by_name)},
            )
            return by_name

    async def lookup(self, owner_id: str, name: str) -> list[EntityRef]:
        return list((await self.get(owner_id)).get(normalize_name(name), []))

    async def known_refs(self, owner_id: str) -> list[EntityRef]:
        """Authoritative ref per name (newest active record)."""
        return [refs[0] for refs in (await self.get(owner_id)).values() if refs]

    async def known_names(self, owner_id: str, limit: int | None = None) -> list[str]:
        names = [ref.name for ref in await self.known_refs(owner_id)]
        return names[:limit] if limit else names

    def invalidate(self, owner_id: str) -> None:
        self._index.pop(owner_id, None)

    def clear(self) -> None:
        self._index.clear()
