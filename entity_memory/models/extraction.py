"""
Structured outputs exchanged with the external collaborators.

These models double as LLM response formats, so fields carry descriptions
and unknown keys are ignored.
"""

from pydantic import BaseModel, Field

from entity_memory.models.entity import Importance
from entity_memory.models.inference import InferenceType


class ExtractedEntity(BaseModel):
    """Entity mention returned by text understanding."""

    model_config = {"extra": "ignore"}

    name: str = Field(..., description="Name as written in the text")
    type: str = Field(
        ..., description="One of: person, place, project, pet, organization, other"
    )
    relationship: str | None = Field(
        ..., description="Relationship to the writer (e.g. 'cofounder', 'sister'), or null"
    )
    context: str | None = Field(..., description="Short phrase describing this mention")
    sentiment: float | None = Field(
        ..., ge=-1.0, le=1.0, description="Sentiment of the mention from -1 to 1, or null"
    )


class ExtractedRelationship(BaseModel):
    """Relationship between two named things returned by text understanding."""

    model_config = {"extra": "ignore"}

    subject: str = Field(..., description="Subject name")
    predicate: str = Field(
        ...,
        description="snake_case predicate, e.g. works_at, leads, lives_in, knows, partner_of",
    )
    object: str = Field(..., description="Object name")
    role: str | None = Field(..., description="Role or title, if stated")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Confidence (0-1)")


class DetectedChange(BaseModel):
    """State change for a known entity returned by text understanding."""

    model_config = {"extra": "ignore"}

    entity_name: str = Field(..., description="Known entity the change applies to")
    change_type: str = Field(..., description="One of: job, location, relationship, status")
    new_value: str | None = Field(..., description="The new value, if stated")
    evidence: str = Field(..., description="Exact phrase from the text showing the change")


class ExtractionResult(BaseModel):
    """Full response of the text-understanding collaborator."""

    model_config = {"extra": "ignore"}

    entities: list[ExtractedEntity] = Field(default_factory=list)
    relationships: list[ExtractedRelationship] = Field(default_factory=list)
    changes_detected: list[DetectedChange] = Field(default_factory=list)


class ImportanceClassification(BaseModel):
    """Importance verdict from the external classifier."""

    model_config = {"extra": "ignore"}

    importance: Importance = Field(
        ..., description="One of: critical, high, medium, low, trivial"
    )
    importance_score: float = Field(..., ge=0.0, le=1.0, description="Score (0-1)")
    reasoning: str = Field(..., description="Brief reason for the tier")


class CompressionRequest(BaseModel):
    """Input to the compressor collaborator."""

    entity_name: str
    entity_type: str
    context_notes: list[str] = Field(default_factory=list)
    relationships: list[str] = Field(default_factory=list)


class CompressedSummary(BaseModel):
    """Compressor output."""

    model_config = {"extra": "ignore"}

    summary: str = Field(..., description="1-3 sentence description of the entity")


class ProposedInference(BaseModel):
    """Inference proposed by the reasoner."""

    model_config = {"extra": "ignore"}

    type: InferenceType = Field(..., description="One of: connection, pattern, prediction")
    entities: list[str] = Field(..., description="Names of the entities involved")
    inference: str = Field(..., description="The inferred fact, one sentence")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Confidence (0-1)")
    reasoning: str = Field(..., description="Evidence supporting the inference")


class InferenceBatch(BaseModel):
    """Reasoner output."""

    model_config = {"extra": "ignore"}

    inferences: list[ProposedInference] = Field(default_factory=list)
