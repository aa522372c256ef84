"""
Relationship storage with family-based supersession.

Exclusive families (employment, residence, partnership, reporting) keep one
active relationship per owner and subject; a changed predicate or object
supersedes the previous record. Other families only deduplicate exact
subject/predicate/object triples.
"""

from datetime import datetime

from entity_memory.core.store.base import EntityMemoryStore
from entity_memory.models.entity import normalize_name
from entity_memory.models.relationships import (
    Fact,
    Relationship,
    RelationshipCandidate,
    RelationshipStatus,
    is_exclusive_family,
    normalize_predicate,
    predicate_family,
)
from entity_memory.utils.id_generator import generate_fact_id, generate_relationship_id
from entity_memory.utils.logger import get_logger

logger = get_logger(__name__)


class RelationshipService:
    """Stores extracted relationships and the subject facts they imply."""

    def __init__(self, store: EntityMemoryStore):
        self.store = store

    async def store_relationship(
        self,
        owner_id: str,
        candidate: RelationshipCandidate,
        subject_entity_id: str | None = None,
        object_entity_id: str | None = None,
        source_id: str | None = None,
        now: datetime | None = None,
        record_fact: bool = True,
    ) -> tuple[Relationship | None, list[Fact]]:
        """
        Store one relationship.

        Returns:
            (stored relationship, facts) or (None, []) when an identical active
            relationship already exists
        """
        now = now or datetime.now()
        predicate = normalize_predicate(candidate.predicate)
        if not predicate or not candidate.subject_name.strip() or not candidate.object_name.strip():
            return None, []

        family = predicate_family(predicate)
        existing = await self.store.get_relationships(
            owner_id, entity_name=candidate.subject_name, active_only=True, subject_only=True
        )
        same_family = [r for r in existing if r.family == family]

        object_key = normalize_name(candidate.object_name)
        for rel in same_family:
            if rel.predicate == predicate and normalize_name(rel.object_name) == object_key:
                return None, []

        relationship = Relationship(
            id=generate_relationship_id(),
            owner_id=owner_id,
            subject_name=" ".join(candidate.subject_name.split()),
            predicate=predicate,
            object_name=" ".join(candidate.object_name.split()),
            subject_entity_id=subject_entity_id,
            object_entity_id=object_entity_id,
            role=candidate.role,
            confidence=candidate.confidence,
            status=RelationshipStatus.ACTIVE,
            source_note=candidate.source_note,
            created_at=now,
            updated_at=now,
        )
        await self.store.add_relationship(relationship)

        if is_exclusive_family(family):
            for previous in same_family:
                if await self.store.retire_relationship(previous.id, relationship.id):
                    logger.info(
                        "Relationship superseded: {} {} {} -> {} {}",
                        previous.subject_name,
                        previous.predicate,
                        previous.object_name,
                        relationship.predicate,
                        relationship.object_name,
                        extra={"owner_id": owner_id, "family": family},
                    )

        facts = []
        if subject_entity_id and record_fact:
            fact = Fact(
                id=generate_fact_id(),
                owner_id=owner_id,
                entity_id=subject_entity_id,
                predicate=predicate,
                object_text=relationship.object_name,
                confidence=candidate.confidence,
                source_id=source_id,
                created_at=now,
            )
            await self.store.add_fact(fact)
            facts.append(fact)

        return relationship, facts

    async def get_relationships(
        self, owner_id: str, entity_name: str | None = None, include_superseded: bool = False
    ) -> list[Relationship]:
        return await self.store.get_relationships(
            owner_id, entity_name=entity_name, active_only=not include_superseded
        )

    async def describe_for(self, owner_id: str, entity_name: str) -> list[str]:
        """Active relationships of an entity as short lines, e.g. "works_at: Acme (CTO)"."""
        relationships = await self.store.get_relationships(
            owner_id, entity_name=entity_name, active_only=True, subject_only=True
        )
        return [
            f"{r.predicate}: {r.object_name}" + (f" ({r.role})" if r.role else "")
            for r in relationships
        ]
