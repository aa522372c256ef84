"""
Inference engine.

Asks the reasoner for higher-order facts across the owner's most mentioned
entities ("Sarah and Tom are both at Acme, likely colleagues"), keeps the
confident ones, and expires them after a fixed period.
"""

import asyncio
from datetime import datetime, timedelta

from entity_memory.config import InferenceConfig
from entity_memory.core.collaborators.base import Reasoner
from entity_memory.core.store.base import EntityMemoryStore
from entity_memory.models.entity import EntityFilter, EntityStatus
from entity_memory.models.extraction import ProposedInference
from entity_memory.models.inference import Inference, InferenceStatus
from entity_memory.models.results import InferenceRunResult
from entity_memory.utils.id_generator import generate_inference_id
from entity_memory.utils.logger import get_logger

logger = get_logger(__name__)


class InferenceEngine:
    """Generates, deduplicates and serves inferences."""

    def __init__(
        self,
        store: EntityMemoryStore,
        reasoner: Reasoner | None = None,
        config: InferenceConfig | None = None,
        timeout: float = 30.0,
    ):
        self.store = store
        self.reasoner = reasoner
        self.config = config or InferenceConfig()
        self.timeout = timeout

    async def generate(self, owner_id: str, now: datetime | None = None) -> InferenceRunResult:
        """
        One inference pass for an owner.

        Needs a reasoner and at least two entities mentioned min_mentions
        times. Proposals below min_confidence, with empty text, or whose
        text matches an active inference are dropped.
        """
        now = now or datetime.now()
        result = InferenceRunResult()
        if self.reasoner is None:
            return result

        entities = await self.store.query_entities(
            owner_id,
            EntityFilter(
                statuses=[EntityStatus.ACTIVE],
                min_mentions=self.config.min_mentions,
                order_by="mention_count",
                limit=self.config.max_entities,
            ),
        )
        if len(entities) < 2:
            logger.debug(
                "Not enough entities for inference", extra={"owner_id": owner_id, "count": len(entities)}
            )
            return result

        relationships = await self.store.get_relationships(owner_id, active_only=True)
        notes = await self.store.get_recent_notes(owner_id, limit=self.config.recent_notes)

        proposals = await self._ask_reasoner(owner_id, entities, relationships, notes)
        if not proposals:
            return result

        existing = {i.text.strip().lower() for i in await self.store.get_active_inferences(owner_id)}
        for proposal in proposals:
            result.proposed += 1
            text = proposal.inference.strip()
            if not text or proposal.confidence < self.config.min_confidence:
                result.rejected += 1
                continue
            if text.lower() in existing:
                result.duplicates += 1
                continue

            inference = Inference(
                id=generate_inference_id(),
                owner_id=owner_id,
                inference_type=proposal.type,
                subject_entities=[name.strip() for name in proposal.entities if name.strip()],
                text=text,
                confidence=proposal.confidence,
                supporting_evidence=[proposal.reasoning] if proposal.reasoning else [],
                status=InferenceStatus.ACTIVE,
                expires_at=now + timedelta(days=self.config.expiry_days),
                created_at=now,
            )
            await self.store.add_inference(inference)
            existing.add(text.lower())
            result.created += 1

        logger.info(
            "Inference pass: {} created from {} proposals", result.created, result.proposed,
            extra={"owner_id": owner_id, **result.model_dump()},
        )
        return result

    async def get_inferences_for_context(
        self, owner_id: str, entity_names: list[str], now: datetime | None = None
    ) -> list[Inference]:
        """Active, unexpired inferences involving any of the names, most confident first."""
        now = now or datetime.now()
        if not entity_names:
            return []

        inferences = await self.store.get_active_inferences(owner_id)
        relevant = [i for i in inferences if not i.is_expired(now) and i.mentions_any(entity_names)]
        relevant.sort(key=lambda i: i.confidence, reverse=True)
        return relevant[: self.config.context_limit]

    async def _ask_reasoner(self, owner_id, entities, relationships, notes) -> list[ProposedInference]:
        try:
            return await asyncio.wait_for(
                self.reasoner.infer(entities, relationships, notes), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Reasoner timed out", extra={"owner_id": owner_id, "timeout": self.timeout}
            )
        except Exception as e:
            logger.warning(
                "Reasoner failed: {}", e,
                extra={"owner_id": owner_id, "error_type": type(e).__name__},
            )
        return []
