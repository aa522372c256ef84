"""
Entity model with supersession chain and importance lifecycle.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class EntityKind(str, Enum):
    """Kinds of named entities tracked per owner."""

    PERSON = "person"
    PLACE = "place"
    PROJECT = "project"
    PET = "pet"
    ORGANIZATION = "organization"
    OTHER = "other"

    @classmethod
    def coerce(cls, value: Any) -> "EntityKind":
        """Map free-form type labels (e.g. "company") onto a kind, defaulting to OTHER."""
        if isinstance(value, cls):
            return value
        label = str(value or "").strip().lower()
        aliases = {
            "company": cls.ORGANIZATION,
            "org": cls.ORGANIZATION,
            "organisation": cls.ORGANIZATION,
            "people": cls.PERSON,
            "location": cls.PLACE,
            "city": cls.PLACE,
        }
        if label in aliases:
            return aliases[label]
        try:
            return cls(label)
        except ValueError:
            return cls.OTHER


class EntityStatus(str, Enum):
    """Entity lifecycle status."""

    ACTIVE = "active"
    SUPERSEDED = "superseded"
    ARCHIVED = "archived"
    DISMISSED = "dismissed"


class Importance(str, Enum):
    """Qualitative importance tier; drives decay grace and rate."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    TRIVIAL = "trivial"


IMPORTANCE_SCORES: dict[Importance, float] = {
    Importance.CRITICAL: 1.0,
    Importance.HIGH: 0.8,
    Importance.MEDIUM: 0.5,
    Importance.LOW: 0.3,
    Importance.TRIVIAL: 0.1,
}


def base_score(importance: Importance) -> float:
    """Base importance score for a tier."""
    return IMPORTANCE_SCORES.get(importance, IMPORTANCE_SCORES[Importance.MEDIUM])


class Entity(BaseModel):
    """
    A named person, place, project, pet or organization tracked for one owner.

    Features:
    - Mention history: monotonic mention_count plus a bounded FIFO of context snippets
    - Supersession: supersedes_id / superseded_by_id form a singly linked version chain
    - Importance: qualitative tier plus a decaying numeric score
    - Consolidation: summary and topic tags compressed from context notes
    """

    # Core identity
    id: str = Field(..., description="Unique entity ID (ent_xxx)")
    owner_id: str = Field(..., description="Owner user ID")
    name: str = Field(..., min_length=1, description="Display name")
    kind: EntityKind = Field(default=EntityKind.PERSON, description="Entity kind")
    relationship: str = Field(default="", description="Free-text relationship to the owner")
    confirmed: bool = Field(default=False, description="Owner validated the relationship")

    # Mention history
    mention_count: int = Field(default=1, ge=0, description="Number of mentions")
    first_mentioned_at: datetime = Field(default_factory=datetime.now)
    last_mentioned_at: datetime = Field(default_factory=datetime.now)
    context_notes: list[str] = Field(default_factory=list, description="Recent context snippets")
    sentiment_average: float | None = Field(default=None, ge=-1.0, le=1.0)

    # Consolidation
    summary: str | None = Field(default=None, description="Consolidated description")
    topics: list[str] = Field(default_factory=list, description="Topic tags")
    last_consolidated_at: datetime | None = None
    embedding: list[float] = Field(default_factory=list, description="Similarity-search vector")

    # Importance
    importance: Importance = Field(default=Importance.MEDIUM)
    importance_score: float = Field(default=0.5, ge=0.0, le=1.0)
    last_decay_at: datetime | None = None

    # Lifecycle / supersession
    status: EntityStatus = Field(default=EntityStatus.ACTIVE)
    supersedes_id: str | None = Field(default=None, description="Previous version ID")
    superseded_by_id: str | None = Field(default=None, description="Next version ID")
    superseded_at: datetime | None = None

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def name_key(self) -> str:
        """Case-insensitive lookup key for the name."""
        return normalize_name(self.name)

    def add_context(self, snippet: str | None, max_notes: int = 10) -> None:
        """Append a snippet, evicting the oldest beyond max_notes."""
        if snippet and snippet.strip():
            self.context_notes = [*self.context_notes, snippet.strip()][-max_notes:]

    def record_mention(
        self, snippet: str | None, at: datetime | None = None, max_notes: int = 10
    ) -> None:
        """Count one more mention."""
        at = at or datetime.now()
        self.mention_count += 1
        self.add_context(snippet, max_notes)
        self.last_mentioned_at = at
        self.updated_at = at

    def is_active(self) -> bool:
        return self.status == EntityStatus.ACTIVE

    def days_since_mention(self, now: datetime | None = None) -> float:
        """Days since the last mention (falls back to creation time)."""
        now = now or datetime.now()
        reference = self.last_mentioned_at or self.created_at
        return (now - reference).total_seconds() / 86400


class EntityRef(BaseModel):
    """Lightweight handle on a known entity, as cached by the entity index."""

    id: str
    name: str
    kind: EntityKind = EntityKind.OTHER
    created_at: datetime = Field(default_factory=datetime.now)


class EntityFilter(BaseModel):
    """Read-API filter for listing entities."""

    statuses: list[EntityStatus] = Field(default_factory=lambda: [EntityStatus.ACTIVE])
    kinds: list[EntityKind] | None = None
    name: str | None = None
    topic: str | None = None
    importance: list[Importance] | None = None
    min_mentions: int | None = None
    order_by: str = "mention_count"  # mention_count, importance_score, last_mentioned_at, created_at
    limit: int = Field(default=100, ge=1, le=1000)


def normalize_name(name: str) -> str:
    """Lower-case, whitespace-collapsed form of a name."""
    return " ".join((name or "").split()).lower()
