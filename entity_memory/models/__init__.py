"""
Data models for the entity memory graph.

Core models:
- Entity, EntityKind, EntityStatus, Importance: tracked entities and their lifecycle
- Fact, Relationship, Note: triples, entity-to-entity links and raw ingested text
- Inference: derived, expiring cross-entity facts
- Extraction models: structured outputs of the external collaborators
- Result models: ingestion, supersession and maintenance summaries
"""

from entity_memory.models.entity import (
    IMPORTANCE_SCORES,
    Entity,
    EntityFilter,
    EntityKind,
    EntityRef,
    EntityStatus,
    Importance,
    base_score,
    normalize_name,
)
from entity_memory.models.extraction import (
    CompressedSummary,
    CompressionRequest,
    DetectedChange,
    ExtractedEntity,
    ExtractedRelationship,
    ExtractionResult,
    ImportanceClassification,
    InferenceBatch,
    ProposedInference,
)
from entity_memory.models.inference import Inference, InferenceStatus, InferenceType
from entity_memory.models.relationships import (
    EXCLUSIVE_FAMILIES,
    SHARED_FAMILIES,
    Fact,
    Note,
    Relationship,
    RelationshipCandidate,
    RelationshipStatus,
    is_exclusive_family,
    normalize_predicate,
    predicate_family,
)
from entity_memory.models.results import (
    SUPERSESSION_CHANGE_TYPES,
    ChangeCandidate,
    ChangeType,
    ClassificationResult,
    ConsolidationResult,
    DecayResult,
    FactContradiction,
    IngestResult,
    InferenceRunResult,
    MaintenanceResult,
    SupersessionResult,
)

__all__ = [
    # Entity models
    "Entity",
    "EntityKind",
    "EntityStatus",
    "EntityRef",
    "EntityFilter",
    "Importance",
    "IMPORTANCE_SCORES",
    "base_score",
    "normalize_name",
    # Fact / relationship models
    "Fact",
    "Note",
    "Relationship",
    "RelationshipCandidate",
    "RelationshipStatus",
    "EXCLUSIVE_FAMILIES",
    "SHARED_FAMILIES",
    "is_exclusive_family",
    "normalize_predicate",
    "predicate_family",
    # Inference models
    "Inference",
    "InferenceStatus",
    "InferenceType",
    # Collaborator models
    "ExtractedEntity",
    "ExtractedRelationship",
    "DetectedChange",
    "ExtractionResult",
    "ImportanceClassification",
    "CompressionRequest",
    "CompressedSummary",
    "ProposedInference",
    "InferenceBatch",
    # Result models
    "ChangeType",
    "ChangeCandidate",
    "SUPERSESSION_CHANGE_TYPES",
    "SupersessionResult",
    "IngestResult",
    "DecayResult",
    "ClassificationResult",
    "ConsolidationResult",
    "InferenceRunResult",
    "MaintenanceResult",
    "FactContradiction",
]
