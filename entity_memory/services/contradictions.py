"""
Fact contradiction detection.

Surfaces facts whose value changed over time ("works_at: Beta" in January,
"works_at: Acme" now) so a chat layer can mention how the owner's world
evolved. Groups an owner's facts by entity name and predicate and compares
the latest value with the most recent differing earlier value.
"""

from datetime import timedelta

from entity_memory.core.store.base import EntityMemoryStore
from entity_memory.models.entity import normalize_name
from entity_memory.models.relationships import Fact
from entity_memory.models.results import FactContradiction
from entity_memory.utils.logger import get_logger

logger = get_logger(__name__)

MIN_CONFIDENCE = 0.8
MIN_DAYS_APART = 7
MAX_CONTEXT_ITEMS = 3


class ContradictionDetector:
    """Finds fact changes across an owner's supersession history."""

    def __init__(
        self,
        store: EntityMemoryStore,
        min_confidence: float = MIN_CONFIDENCE,
        min_days_apart: int = MIN_DAYS_APART,
    ):
        self.store = store
        self.min_confidence = min_confidence
        self.min_days_apart = min_days_apart

    async def detect(self, owner_id: str, entity_name: str | None = None) -> list[FactContradiction]:
        facts = await self.store.get_owner_facts(owner_id)

        groups: dict[tuple[str, str], list[tuple[str, Fact]]] = {}
        for name, fact in facts:
            if entity_name and normalize_name(name) != normalize_name(entity_name):
                continue
            groups.setdefault((normalize_name(name), fact.predicate), []).append((name, fact))

        contradictions = []
        for (_, predicate), entries in groups.items():
            name, latest = entries[-1]
            for _, earlier in reversed(entries[:-1]):
                if earlier.object_text.strip().lower() == latest.object_text.strip().lower():
                    continue
                if latest.created_at - earlier.created_at < timedelta(days=self.min_days_apart):
                    break
                confidence = min(earlier.confidence, latest.confidence)
                if confidence >= self.min_confidence:
                    contradictions.append(
                        FactContradiction(
                            entity_name=name,
                            predicate=predicate,
                            before=earlier.object_text,
                            after=latest.object_text,
                            before_at=earlier.created_at,
                            after_at=latest.created_at,
                            confidence=confidence,
                            summary=(
                                f"Your {predicate.replace('_', ' ')} for {name} changed from "
                                f'"{earlier.object_text}" to "{latest.object_text}"'
                            ),
                        )
                    )
                break

        contradictions.sort(key=lambda c: c.after_at, reverse=True)
        logger.debug(
            "Found {} fact contradictions", len(contradictions),
            extra={"owner_id": owner_id},
        )
        return contradictions


def format_for_context(contradictions: list[FactContradiction]) -> str | None:
    """Render up to three contradictions as a <user_evolutions> block, None when empty."""
    if not contradictions:
        return None

    lines = ["<user_evolutions>", "FACT CHANGES:"]
    for c in contradictions[:MAX_CONTEXT_ITEMS]:
        lines.append(f"- {c.summary}")
        lines.append(
            f'  ({c.before_at:%Y-%m-%d}: "{c.before}" -> {c.after_at:%Y-%m-%d}: "{c.after}")'
        )
    lines.append("</user_evolutions>")
    return "\n".join(lines)
