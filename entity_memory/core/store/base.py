"""
Base interface for entity memory persistence.

Covers the five record kinds of the memory graph: entities, facts,
relationships, inferences and raw notes.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from entity_memory.models.entity import Entity, EntityFilter, EntityStatus
from entity_memory.models.inference import Inference
from entity_memory.models.relationships import Fact, Note, Relationship


class EntityMemoryStore(ABC):
    """
    Abstract base class for entity memory storage.

    Implementations raise StoreError for every backend failure. Automated
    writes never touch dismissed entities: update_entity refuses them unless
    allow_dismissed is set.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Create schema."""

    @abstractmethod
    async def close(self) -> None:
        """Close connections."""

    # ═══════════════════════════════════════════════════════════
    # ENTITIES
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def create_entity(self, entity: Entity) -> None:
        """Insert a new entity row."""

    @abstractmethod
    async def get_entity(self, entity_id: str) -> Entity | None:
        """Fetch an entity by ID regardless of status."""

    @abstractmethod
    async def update_entity(
        self,
        entity: Entity,
        expected_updated_at: datetime | None = None,
        allow_dismissed: bool = False,
        expected_status: EntityStatus | None = None,
    ) -> bool:
        """
        Persist all mutable fields of an existing entity.

        Args:
            entity: Entity carrying the new field values
            expected_updated_at: If set, only write when the stored updated_at
                still equals this value (check-and-set)
            allow_dismissed: Permit writing a row whose stored status is dismissed
            expected_status: If set, only write when the stored status still equals
                this value, so a stale copy never undoes a concurrent retire

        Returns:
            True if the row was written, False if a guard rejected the write
        """

    @abstractmethod
    async def retire_entity(self, entity_id: str, superseded_by_id: str, at: datetime) -> bool:
        """
        Mark an active entity superseded (compare-and-swap on status).

        Returns:
            True only for the single caller that moved the row from active to superseded
        """

    @abstractmethod
    async def find_entities_by_name(
        self,
        owner_id: str,
        name: str,
        statuses: list[EntityStatus] | None = None,
    ) -> list[Entity]:
        """Entities whose name matches case-insensitively, newest created first."""

    @abstractmethod
    async def query_entities(self, owner_id: str, entity_filter: EntityFilter) -> list[Entity]:
        """List entities for an owner matching a filter."""

    @abstractmethod
    async def get_decay_candidates(self, owner_id: str, cycle_cutoff: datetime) -> list[Entity]:
        """Active, non-critical entities whose last decay is null or at/before the cutoff."""

    @abstractmethod
    async def get_consolidation_candidates(
        self, owner_id: str, min_mentions: int, consolidated_before: datetime, limit: int
    ) -> list[Entity]:
        """Active entities with enough mentions and a stale (or missing) consolidation."""

    @abstractmethod
    async def list_owner_ids(self) -> list[str]:
        """All owners that have at least one entity."""

    # ═══════════════════════════════════════════════════════════
    # FACTS
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def add_fact(self, fact: Fact) -> None:
        """Append a fact. Facts are never updated in place."""

    @abstractmethod
    async def get_facts(self, entity_ids: list[str]) -> list[Fact]:
        """Facts attached to any of the entity IDs, newest first."""

    @abstractmethod
    async def get_owner_facts(self, owner_id: str) -> list[tuple[str, Fact]]:
        """All facts of an owner paired with their entity name, oldest first."""

    # ═══════════════════════════════════════════════════════════
    # RELATIONSHIPS
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def add_relationship(self, relationship: Relationship) -> None:
        """Insert a relationship row."""

    @abstractmethod
    async def retire_relationship(self, relationship_id: str, superseded_by_id: str) -> bool:
        """Mark an active relationship superseded (compare-and-swap on status)."""

    @abstractmethod
    async def get_relationships(
        self,
        owner_id: str,
        entity_name: str | None = None,
        active_only: bool = True,
        subject_only: bool = False,
    ) -> list[Relationship]:
        """
        Relationships for an owner, newest first.

        Args:
            entity_name: Restrict to relationships whose subject (or object,
                unless subject_only) matches case-insensitively
            active_only: Exclude superseded records
        """

    # ═══════════════════════════════════════════════════════════
    # INFERENCES
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def add_inference(self, inference: Inference) -> None:
        """Insert an inference."""

    @abstractmethod
    async def get_active_inferences(self, owner_id: str) -> list[Inference]:
        """Active inferences for an owner, highest confidence first."""

    @abstractmethod
    async def expire_inferences(self, owner_id: str, now: datetime) -> int:
        """Flip active inferences past expires_at to expired. Returns the count."""

    # ═══════════════════════════════════════════════════════════
    # NOTES
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def add_note(self, note: Note) -> None:
        """Record ingested text."""

    @abstractmethod
    async def get_recent_notes(self, owner_id: str, limit: int = 10) -> list[Note]:
        """Most recent notes for an owner, newest first."""
