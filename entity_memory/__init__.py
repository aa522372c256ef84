"""
Entity memory graph.

Tracks the people, places, projects and organizations an owner writes about:
extracts them from free-text notes, keeps append-only version chains when
their state changes, scores and decays their importance, consolidates their
context into summaries and infers expiring cross-entity facts.

Usage:
    graph = await MemoryGraph.create(Config.from_env())
    result = await graph.ingest("user_1", "Sarah started at Acme as CTO")
"""

from entity_memory.config import Config
from entity_memory.models import Entity, EntityFilter, EntityStatus, Importance, IngestResult
from entity_memory.services.memory_graph import MemoryGraph

__version__ = "0.1.0"

__all__ = [
    "MemoryGraph",
    "Config",
    "Entity",
    "EntityFilter",
    "EntityStatus",
    "Importance",
    "IngestResult",
]
