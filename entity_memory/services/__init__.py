"""
Services for the entity memory graph.

High-level business logic services:
- MemoryGraph: Unified interface for ingestion, reads and maintenance
- ConflictDetector: State-change detection for known entities
- EntityExtractor: Local and collaborator-backed entity/relationship extraction
- SupersessionEngine: Append-only entity version chains
- RelationshipService: Relationship storage with family-based supersession
- ImportanceClassifier, DecayScheduler: Importance tiers and decay
- Consolidator: Summaries, topics and re-indexing
- InferenceEngine: Expiring cross-entity inferences
- ContradictionDetector: Fact changes over time
"""

from entity_memory.services.change_detection import (
    ChangeClassifier,
    ConflictDetector,
    RegexChangeClassifier,
)
from entity_memory.services.consolidation import Consolidator
from entity_memory.services.contradictions import ContradictionDetector, format_for_context
from entity_memory.services.decay import DecayScheduler
from entity_memory.services.entity_index import EntityIndex
from entity_memory.services.extraction import EntityExtractor
from entity_memory.services.importance import ImportanceClassifier, quick_classify
from entity_memory.services.inference import InferenceEngine
from entity_memory.services.memory_graph import MemoryGraph
from entity_memory.services.relationships import RelationshipService
from entity_memory.services.supersession import SupersessionEngine

__all__ = [
    "MemoryGraph",
    "ChangeClassifier",
    "ConflictDetector",
    "RegexChangeClassifier",
    "EntityExtractor",
    "EntityIndex",
    "SupersessionEngine",
    "RelationshipService",
    "ImportanceClassifier",
    "quick_classify",
    "DecayScheduler",
    "Consolidator",
    "InferenceEngine",
    "ContradictionDetector",
    "format_for_context",
]
