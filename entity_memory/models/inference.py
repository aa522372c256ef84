"""
Inference model: derived, expiring facts spanning several entities.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class InferenceType(str, Enum):
    CONNECTION = "connection"
    PATTERN = "pattern"
    PREDICTION = "prediction"
    OTHER = "other"


class InferenceStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"


class Inference(BaseModel):
    """
    A higher-order fact proposed by the reasoner, e.g. "Sarah and Tom are collaborating".

    Deduplicated by exact text per owner; expiry flips status to EXPIRED
    instead of deleting the row.
    """

    id: str
    owner_id: str
    inference_type: InferenceType = InferenceType.CONNECTION
    subject_entities: list[str] = Field(default_factory=list)
    text: str = Field(..., min_length=1)
    confidence: float = Field(default=0.6, ge=0.0, le=1.0)
    supporting_evidence: list[str] = Field(default_factory=list)
    status: InferenceStatus = InferenceStatus.ACTIVE
    expires_at: datetime | None = None
    created_at: datetime = Field(default_factory=datetime.now)

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or datetime.now()
        return self.expires_at is not None and self.expires_at <= now

    def mentions_any(self, names: list[str]) -> bool:
        """True when any of the names is a subject of this inference (case-insensitive)."""
        wanted = {n.strip().lower() for n in names if n and n.strip()}
        return any(subject.strip().lower() in wanted for subject in self.subject_entities)
