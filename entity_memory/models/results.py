"""
Result and intermediate models passed between services.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from entity_memory.models.entity import Entity
from entity_memory.models.relationships import Fact, Relationship


class ChangeType(str, Enum):
    JOB = "job"
    LOCATION = "location"
    RELATIONSHIP = "relationship"
    STATUS = "status"

    @property
    def supersedes(self) -> bool:
        """Job, location and relationship changes replace the entity head; status is additive."""
        return self in SUPERSESSION_CHANGE_TYPES


SUPERSESSION_CHANGE_TYPES = frozenset({ChangeType.JOB, ChangeType.LOCATION, ChangeType.RELATIONSHIP})


class ChangeCandidate(BaseModel):
    """A likely state change for a known entity, flagged from note text."""

    entity_id: str
    entity_name: str
    change_type: ChangeType
    matched_text: str
    new_value: str | None = None
    role: str | None = None
    predicate: str | None = Field(
        default=None, description="Fact predicate implied by the change, e.g. works_at, moved_to"
    )
    context_window: str = ""
    source: str = "pattern"


class SupersessionResult(BaseModel):
    """Outcome of replacing an entity head."""

    old_entity: Entity
    new_entity: Entity
    retired: bool = Field(
        default=True, description="False when another writer retired the old head first"
    )
    facts: list[Fact] = Field(default_factory=list)


class IngestResult(BaseModel):
    """Entities, facts and relationships touched by one ingested note."""

    note_id: str | None = None
    entities: list[Entity] = Field(default_factory=list)
    facts: list[Fact] = Field(default_factory=list)
    relationships: list[Relationship] = Field(default_factory=list)
    changes: list[ChangeCandidate] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.entities or self.facts or self.relationships)


class DecayResult(BaseModel):
    processed: int = 0
    decayed: int = 0
    archived: int = 0
    refreshed: int = 0
    skipped: int = 0


class ClassificationResult(BaseModel):
    processed: int = 0
    heuristic: int = 0
    external: int = 0
    skipped: int = 0


class ConsolidationResult(BaseModel):
    processed: int = 0
    consolidated: int = 0
    compressed: int = 0
    reindexed: int = 0
    skipped: int = 0


class InferenceRunResult(BaseModel):
    proposed: int = 0
    created: int = 0
    duplicates: int = 0
    rejected: int = 0


class MaintenanceResult(BaseModel):
    """Summary of one run_memory_maintenance pass for an owner."""

    owner_id: str
    repaired_heads: int = 0
    decay: DecayResult = Field(default_factory=DecayResult)
    expired_inferences: int = 0
    classification: ClassificationResult = Field(default_factory=ClassificationResult)
    inference: InferenceRunResult = Field(default_factory=InferenceRunResult)
    errors: list[str] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: datetime | None = None


class FactContradiction(BaseModel):
    """A fact whose value changed over time (e.g. employer A, later employer B)."""

    entity_name: str
    predicate: str
    before: str
    after: str
    before_at: datetime
    after_at: datetime
    confidence: float
    summary: str
