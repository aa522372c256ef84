"""
Decay scheduler.

Lowers importance scores of entities that have not been mentioned for longer
than their tier's grace period, at most once per cycle per entity, and
archives entities whose score falls below the threshold. A fresh mention
refreshes the score back to at least the tier's base score.
"""

from datetime import datetime, timedelta

from entity_memory.config import DecayConfig
from entity_memory.core.store.base import EntityMemoryStore
from entity_memory.models.entity import Entity, EntityStatus, Importance, base_score
from entity_memory.models.results import DecayResult
from entity_memory.utils.locks import KeyedLocks
from entity_memory.utils.logger import get_logger

logger = get_logger(__name__)


class DecayScheduler:
    """Periodic importance decay and archival."""

    def __init__(
        self,
        store: EntityMemoryStore,
        config: DecayConfig | None = None,
        locks: KeyedLocks | None = None,
    ):
        self.store = store
        self.config = config or DecayConfig()
        self.locks = locks or KeyedLocks()

    def grace_days(self, importance: Importance) -> int | None:
        return self.config.grace_days.get(importance.value)

    def decay_increment(self, importance: Importance) -> float:
        return self.config.decay_increments.get(importance.value, 0.0)

    async def run_decay(self, owner_id: str, now: datetime | None = None) -> DecayResult:
        """
        One decay pass over the owner's eligible entities.

        Eligible: active, not critical, and last_decay_at unset or at least
        one cycle old. Running twice in a row decays nothing the second time.
        """
        now = now or datetime.now()
        cutoff = now - timedelta(days=self.config.cycle_days)
        result = DecayResult()

        candidates = await self.store.get_decay_candidates(owner_id, cutoff)
        for entity in candidates:
            result.processed += 1
            outcome = await self._decay_entity(entity, now, cutoff)
            if outcome == "decayed":
                result.decayed += 1
            elif outcome == "archived":
                result.decayed += 1
                result.archived += 1
            elif outcome == "refreshed":
                result.refreshed += 1
            else:
                result.skipped += 1

        logger.info(
            "Decay pass: {} decayed, {} archived", result.decayed, result.archived,
            extra={"owner_id": owner_id, **result.model_dump()},
        )
        return result

    async def _decay_entity(self, entity: Entity, now: datetime, cutoff: datetime) -> str:
        async with self.locks.hold(entity.id):
            current = await self.store.get_entity(entity.id)
            if current is None or current.status != EntityStatus.ACTIVE:
                return "skipped"
            if current.last_decay_at is not None and current.last_decay_at > cutoff:
                return "skipped"

            grace = self.grace_days(current.importance)
            if grace is None:
                return "skipped"

            expected = current.updated_at
            current.last_decay_at = now
            current.updated_at = max(now, expected)

            if current.days_since_mention(now) < grace:
                outcome = "refreshed"
            else:
                score = round(
                    max(0.0, current.importance_score - self.decay_increment(current.importance)),
                    4,
                )
                current.importance_score = score
                if score < self.config.archive_threshold:
                    current.status = EntityStatus.ARCHIVED
                    outcome = "archived"
                else:
                    outcome = "decayed"

            if not await self.store.update_entity(current, expected_updated_at=expected):
                return "skipped"

            if outcome == "archived":
                logger.info(
                    "Archived {} (score {})", current.name, current.importance_score,
                    extra={"entity_id": current.id, "owner_id": current.owner_id},
                )
            return outcome

    async def refresh_entity(self, entity_id: str, now: datetime | None = None) -> Entity | None:
        """
        Counteract decay after a fresh mention.

        Score becomes max(current, base score of the tier); last_decay_at and
        last_mentioned_at move to now. Dismissed entities are left untouched.
        """
        now = now or datetime.now()
        async with self.locks.hold(entity_id):
            entity = await self.store.get_entity(entity_id)
            if entity is None or entity.status == EntityStatus.DISMISSED:
                return None

            apply_refresh(entity, now)
            if not await self.store.update_entity(entity, expected_status=entity.status):
                return None
            return entity

    async def cleanup_expired_inferences(self, owner_id: str, now: datetime | None = None) -> int:
        """Mark expired inferences as expired (soft state change)."""
        expired = await self.store.expire_inferences(owner_id, now or datetime.now())
        if expired:
            logger.info(
                "Expired {} inferences", expired, extra={"owner_id": owner_id, "expired": expired}
            )
        return expired


def apply_refresh(entity: Entity, now: datetime) -> Entity:
    """In-memory refresh; ingestion applies it alongside the mention update."""
    entity.importance_score = max(entity.importance_score, base_score(entity.importance))
    entity.last_decay_at = now
    entity.last_mentioned_at = now
    entity.updated_at = max(now, entity.updated_at)
    return entity
