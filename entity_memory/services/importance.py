"""
Importance classification.

Quick heuristics resolve the obvious cases without a network call; the rest
go to the external classifier, whose verdict is written back as-is. Batches
pause between external calls to respect the collaborator's throughput.
"""

import asyncio
import re
from datetime import datetime

from entity_memory.config import ImportanceConfig
from entity_memory.core.collaborators.base import ImportanceOracle
from entity_memory.core.store.base import EntityMemoryStore
from entity_memory.models.entity import (
    Entity,
    EntityFilter,
    EntityKind,
    EntityStatus,
    Importance,
    base_score,
)
from entity_memory.models.extraction import ImportanceClassification
from entity_memory.models.results import ClassificationResult
from entity_memory.utils.locks import KeyedLocks
from entity_memory.utils.logger import get_logger

logger = get_logger(__name__)

FAMILY_PATTERN = re.compile(
    r"\b(mom|dad|mother|father|parent|wife|husband|partner|spouse|child|son|daughter)\b",
    re.IGNORECASE,
)
PET_PATTERN = re.compile(r"\b(pet|dog|cat)\b", re.IGNORECASE)
CLOSE_FRIEND_PATTERN = re.compile(r"best friend|close friend|bff", re.IGNORECASE)
SELF_NAMES = frozenset({"me", "i", "myself"})


def quick_classify(entity: Entity) -> Importance | None:
    """Heuristic tier, or None when the entity needs the external classifier."""
    relationship = entity.relationship or ""

    if FAMILY_PATTERN.search(relationship):
        return Importance.CRITICAL
    if entity.name.strip().lower() in SELF_NAMES:
        return Importance.CRITICAL
    if entity.kind == EntityKind.PET or PET_PATTERN.search(relationship):
        return Importance.HIGH
    if CLOSE_FRIEND_PATTERN.search(relationship):
        return Importance.HIGH
    if entity.mention_count >= 10:
        return Importance.HIGH
    if entity.mention_count <= 1:
        return Importance.LOW
    return None


class ImportanceClassifier:
    """Assigns importance tiers and scores to entities."""

    def __init__(
        self,
        store: EntityMemoryStore,
        oracle: ImportanceOracle | None = None,
        config: ImportanceConfig | None = None,
        timeout: float = 30.0,
        locks: KeyedLocks | None = None,
    ):
        self.store = store
        self.oracle = oracle
        self.config = config or ImportanceConfig()
        self.timeout = timeout
        self.locks = locks or KeyedLocks()

    async def classify_entity(
        self, entity: Entity, force: bool = False, now: datetime | None = None
    ) -> str:
        """
        Classify one entity and persist the verdict.

        Entities already tagged with a non-default tier are skipped unless
        force is set. Returns how it was resolved: "heuristic", "external" or "skipped".
        """
        if entity.status != EntityStatus.ACTIVE:
            return "skipped"
        if not force and entity.importance != Importance.MEDIUM:
            return "skipped"

        async with self.locks.hold(entity.id):
            current = await self.store.get_entity(entity.id)
            if current is None or current.status != EntityStatus.ACTIVE:
                return "skipped"

            tier = quick_classify(current)
            if tier is not None:
                score = base_score(tier)
                method = "heuristic"
            else:
                verdict = await self._ask_oracle(current)
                if verdict is None:
                    return "skipped"
                tier = verdict.importance
                score = min(max(verdict.importance_score, 0.0), 1.0)
                method = "external"

            expected = current.updated_at
            current.importance = tier
            current.importance_score = score
            current.updated_at = max(now or datetime.now(), expected)
            if not await self.store.update_entity(current, expected_updated_at=expected):
                logger.debug(
                    "Importance write lost a race for {}", current.id,
                    extra={"entity_id": current.id},
                )
                return "skipped"

            entity.importance = tier
            entity.importance_score = score
            entity.updated_at = current.updated_at
            logger.debug(
                "Classified {} as {} ({})", current.name, tier.value, method,
                extra={"entity_id": current.id, "score": score},
            )
            return method

    async def classify_batch(self, owner_id: str, now: datetime | None = None) -> ClassificationResult:
        """Classify the owner's default-tier entities, most mentioned first."""
        result = ClassificationResult()
        entities = await self.store.query_entities(
            owner_id,
            EntityFilter(
                statuses=[EntityStatus.ACTIVE],
                importance=[Importance.MEDIUM],
                order_by="mention_count",
                limit=self.config.batch_size,
            ),
        )

        for entity in entities:
            result.processed += 1
            method = await self.classify_entity(entity, now=now)
            if method == "heuristic":
                result.heuristic += 1
            elif method == "external":
                result.external += 1
                await asyncio.sleep(self.config.rate_limit_seconds)
            else:
                result.skipped += 1

        logger.info(
            "Importance classification: {} processed", result.processed,
            extra={"owner_id": owner_id, **result.model_dump()},
        )
        return result

    async def _ask_oracle(self, entity: Entity) -> ImportanceClassification | None:
        if self.oracle is None:
            return None
        try:
            return await asyncio.wait_for(self.oracle.classify(entity), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Importance classifier timed out for {}", entity.id,
                extra={"entity_id": entity.id, "timeout": self.timeout},
            )
        except Exception as e:
            logger.warning(
                "Importance classifier failed for {}: {}", entity.id, e,
                extra={"entity_id": entity.id, "error_type": type(e).__name__},
            )
        return None
