"""
Interfaces of the external collaborators.

Each collaborator is optional: callers wrap every call in a timeout and fall
back to local heuristics (or skip the item) when it fails.
"""

from abc import ABC, abstractmethod

from entity_memory.models.entity import Entity
from entity_memory.models.extraction import (
    CompressionRequest,
    ExtractionResult,
    ImportanceClassification,
    ProposedInference,
)
from entity_memory.models.relationships import Note, Relationship


class TextUnderstanding(ABC):
    """Structured entity/relationship/change extraction from free text."""

    @abstractmethod
    async def extract(self, text: str, known_entities: list[str]) -> ExtractionResult:
        """
        Args:
            text: Raw note text
            known_entities: Names already tracked for the owner

        Raises:
            CollaboratorError: On any failure
        """


class ImportanceOracle(ABC):
    """Importance tier classification for entities the heuristics cannot decide."""

    @abstractmethod
    async def classify(self, entity: Entity) -> ImportanceClassification:
        """Raises CollaboratorError on failure."""


class Compressor(ABC):
    """Compresses an entity's accumulated context into a short summary."""

    @abstractmethod
    async def compress(self, request: CompressionRequest) -> str:
        """Raises CollaboratorError on failure."""


class Reasoner(ABC):
    """Proposes cross-entity inferences."""

    @abstractmethod
    async def infer(
        self,
        entities: list[Entity],
        relationships: list[Relationship],
        recent_notes: list[Note],
    ) -> list[ProposedInference]:
        """Raises CollaboratorError on failure."""
