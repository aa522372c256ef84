"""
Fact and relationship models.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class RelationshipStatus(str, Enum):
    ACTIVE = "active"
    SUPERSEDED = "superseded"


# Predicates within an exclusive family replace each other for the same subject:
# "Sarah works_at Beta" followed by "Sarah works_at Acme" supersedes the first.
EXCLUSIVE_FAMILIES: dict[str, frozenset[str]] = {
    "employment": frozenset({"works_at", "leads", "joined", "left"}),
    "residence": frozenset({"lives_in", "moved_to"}),
    "partnership": frozenset({"partner_of", "dating", "married_to"}),
    "reporting": frozenset({"reports_to"}),
}

SHARED_FAMILIES: dict[str, frozenset[str]] = {
    "social": frozenset({"knows", "friends_with"}),
    "management": frozenset({"manages"}),
    "investment": frozenset({"invested_in"}),
    "ownership": frozenset({"owns", "created"}),
}


def normalize_predicate(predicate: str) -> str:
    return "_".join((predicate or "").strip().lower().split())


def predicate_family(predicate: str) -> str:
    """Family name for a predicate; unknown predicates are their own family."""
    predicate = normalize_predicate(predicate)
    for family, members in {**EXCLUSIVE_FAMILIES, **SHARED_FAMILIES}.items():
        if predicate in members:
            return family
    return predicate


def is_exclusive_family(family: str) -> bool:
    return family in EXCLUSIVE_FAMILIES


class Fact(BaseModel):
    """
    Subject-predicate-object triple attached to an entity.

    Several facts may share (entity_id, predicate); the newest is authoritative
    for display and older ones stay for audit.
    """

    id: str
    owner_id: str
    entity_id: str
    predicate: str
    object_text: str
    confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    source_id: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)


class Relationship(BaseModel):
    """Relationship between two named things, versioned by supersession."""

    id: str
    owner_id: str
    subject_name: str
    predicate: str
    object_name: str
    subject_entity_id: str | None = None
    object_entity_id: str | None = None
    role: str | None = None
    confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    status: RelationshipStatus = RelationshipStatus.ACTIVE
    superseded_by_id: str | None = None
    source_note: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def family(self) -> str:
        return predicate_family(self.predicate)


class RelationshipCandidate(BaseModel):
    """Relationship proposed by extraction, before it is stored."""

    model_config = {"extra": "ignore"}

    subject_name: str
    predicate: str
    object_name: str
    subject_kind: str | None = None
    object_kind: str | None = None
    role: str | None = None
    confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    source_note: str | None = None


class Note(BaseModel):
    """Raw ingested text, kept so maintenance can read recent notes."""

    id: str
    owner_id: str
    text: str
    source_type: str = "note"
    source_id: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)
