"""
Consolidator: compress accumulated mention context into summaries and topics.
"""

import asyncio
import re
from datetime import datetime, timedelta

from entity_memory.config import ConsolidationConfig
from entity_memory.core.collaborators.base import Compressor
from entity_memory.core.embeddings.base import Embedder
from entity_memory.core.store.base import EntityMemoryStore
from entity_memory.models.entity import Entity, EntityStatus
from entity_memory.models.extraction import CompressionRequest
from entity_memory.models.results import ConsolidationResult
from entity_memory.services.relationships import RelationshipService
from entity_memory.utils.locks import KeyedLocks
from entity_memory.utils.logger import get_logger

logger = get_logger(__name__)

TOPIC_KEYWORDS: dict[str, list[str]] = {
    "startup": ["startup", "founder", "funding", "seed", "series a", "vc", "venture"],
    "ai": ["ai", "machine learning", "ml", "llm", "gpt", "model", "neural"],
    "engineering": ["code", "engineering", "developer", "software", "programming", "tech"],
    "design": ["design", "ui", "ux", "figma", "prototype"],
    "business": ["business", "sales", "revenue", "customer", "client", "deal"],
    "product": ["product", "feature", "launch", "roadmap", "users"],
    "investment": ["invest", "investor", "investment", "portfolio", "fund"],
    "health": ["health", "doctor", "gym", "workout", "sick", "hospital", "therapy"],
    "travel": ["travel", "trip", "flight", "vacation", "visit", "hotel"],
    "family": ["family", "mom", "dad", "sister", "brother", "parent", "kids"],
    "work": ["work", "meeting", "project", "team", "office", "job"],
}

_TOPIC_PATTERNS = {
    topic: re.compile(r"\b(?:" + "|".join(re.escape(k) for k in keywords) + r")\b", re.IGNORECASE)
    for topic, keywords in TOPIC_KEYWORDS.items()
}


def extract_topics(context_notes: list[str], max_topics: int = 5) -> list[str]:
    """Topic tags whose keywords occur as whole words in the notes, in table order."""
    text = " ".join(context_notes)
    return [topic for topic, pattern in _TOPIC_PATTERNS.items() if pattern.search(text)][:max_topics]


def template_summary(entity: Entity) -> str:
    """Local fallback summary: name, relationship, mention count and the last three snippets."""
    summary = entity.name
    if entity.relationship:
        summary += f" ({entity.relationship})"
    summary += f" - mentioned {entity.mention_count} times"

    recent = [note[:100] for note in entity.context_notes[-3:]]
    if recent:
        summary += " Recent: " + "; ".join(recent)
    return summary


class Consolidator:
    """
    Periodic consolidation of entity context.

    Steps per entity:
    1. Topic tags from the context notes
    2. Summary via the compressor (when available and enough notes exist), else the template
    3. Re-index: embed "<name>. <summary>" and store the vector
    """

    def __init__(
        self,
        store: EntityMemoryStore,
        relationships: RelationshipService,
        compressor: Compressor | None = None,
        embedder: Embedder | None = None,
        config: ConsolidationConfig | None = None,
        timeout: float = 30.0,
        locks: KeyedLocks | None = None,
    ):
        self.store = store
        self.relationships = relationships
        self.compressor = compressor
        self.embedder = embedder
        self.config = config or ConsolidationConfig()
        self.timeout = timeout
        self.locks = locks or KeyedLocks()

    async def run(self, owner_id: str, now: datetime | None = None) -> ConsolidationResult:
        now = now or datetime.now()
        result = ConsolidationResult()
        candidates = await self.store.get_consolidation_candidates(
            owner_id,
            min_mentions=self.config.min_mentions,
            consolidated_before=now - timedelta(hours=self.config.interval_hours),
            limit=self.config.batch_size,
        )

        for entity in candidates:
            result.processed += 1
            outcome = await self.consolidate_entity(entity, now)
            if outcome is None:
                result.skipped += 1
                continue
            result.consolidated += 1
            if outcome["compressed"]:
                result.compressed += 1
                await asyncio.sleep(self.config.rate_limit_seconds)
            if outcome["reindexed"]:
                result.reindexed += 1

        logger.info(
            "Consolidation: {}/{} entities", result.consolidated, result.processed,
            extra={"owner_id": owner_id, **result.model_dump()},
        )
        return result

    async def consolidate_entity(self, entity: Entity, now: datetime | None = None) -> dict | None:
        """Consolidate one entity; None when it is no longer eligible or lost a write race."""
        now = now or datetime.now()
        async with self.locks.hold(entity.id):
            current = await self.store.get_entity(entity.id)
            if (
                current is None
                or current.status != EntityStatus.ACTIVE
                or current.mention_count < self.config.min_mentions
            ):
                return None

            topics = extract_topics(current.context_notes, self.config.max_topics)
            summary = await self._compress(current)
            compressed = summary is not None
            summary = summary or template_summary(current)

            embedding = await self._embed(current, summary)

            expected = current.updated_at
            current.summary = summary
            current.topics = topics
            current.last_consolidated_at = now
            current.updated_at = max(now, expected)
            if embedding:
                current.embedding = embedding

            if not await self.store.update_entity(current, expected_updated_at=expected):
                logger.debug(
                    "Consolidation write lost a race for {}", current.id,
                    extra={"entity_id": current.id},
                )
                return None

            return {"compressed": compressed, "reindexed": bool(embedding)}

    async def _compress(self, entity: Entity) -> str | None:
        if (
            not self.config.use_compressor
            or self.compressor is None
            or len(entity.context_notes) < self.config.min_notes_for_compressor
        ):
            return None

        request = CompressionRequest(
            entity_name=entity.name,
            entity_type=entity.kind.value,
            context_notes=entity.context_notes[-10:],
            relationships=await self.relationships.describe_for(entity.owner_id, entity.name),
        )
        try:
            summary = await asyncio.wait_for(self.compressor.compress(request), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Compressor timed out for {}, using template summary", entity.id,
                extra={"entity_id": entity.id, "timeout": self.timeout},
            )
            return None
        except Exception as e:
            logger.warning(
                "Compressor failed for {}, using template summary: {}", entity.id, e,
                extra={"entity_id": entity.id, "error_type": type(e).__name__},
            )
            return None
        return summary.strip() or None

    async def _embed(self, entity: Entity, summary: str) -> list[float] | None:
        if self.embedder is None:
            return None
        try:
            return await asyncio.wait_for(
                self.embedder.embed(f"{entity.name}. {summary}"), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Embedding timed out for {}", entity.id, extra={"entity_id": entity.id}
            )
        except Exception as e:
            logger.warning(
                "Embedding failed for {}: {}", entity.id, e,
                extra={"entity_id": entity.id, "error_type": type(e).__name__},
            )
        return None
