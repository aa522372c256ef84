"""Shared fixtures.

Stores are backed by a temporary SQLite file per test; collaborators are
in-memory fakes so no network service is needed.
"""

from collections.abc import AsyncGenerator
from datetime import datetime

import pytest

from entity_memory.config import Config
from entity_memory.core.collaborators.base import (
    Compressor,
    ImportanceOracle,
    Reasoner,
    TextUnderstanding,
)
from entity_memory.core.embeddings.base import Embedder
from entity_memory.core.store.sqlite_store import SQLiteEntityStore
from entity_memory.models.entity import Entity, EntityKind, Importance
from entity_memory.models.extraction import (
    CompressionRequest,
    ExtractionResult,
    ImportanceClassification,
    ProposedInference,
)
from entity_memory.utils.exceptions import CollaboratorError
from entity_memory.utils.id_generator import generate_entity_id

OWNER = "user_1"
NOW = datetime(2026, 3, 1, 12, 0, 0)


class FakeTextUnderstanding(TextUnderstanding):
    """Returns a canned extraction result and records every call."""

    def __init__(self, result: ExtractionResult | None = None, error: Exception | None = None):
        self.result = result or ExtractionResult()
        self.error = error
        self.calls: list[tuple[str, list[str]]] = []

    async def extract(self, text, known_entities):
        self.calls.append((text, known_entities))
        if self.error:
            raise self.error
        return self.result


class FakeImportanceOracle(ImportanceOracle):
    def __init__(
        self,
        importance: Importance = Importance.HIGH,
        score: float = 0.75,
        error: Exception | None = None,
    ):
        self.importance = importance
        self.score = score
        self.error = error
        self.calls: list[str] = []

    async def classify(self, entity):
        self.calls.append(entity.id)
        if self.error:
            raise self.error
        return ImportanceClassification(
            importance=self.importance, importance_score=self.score, reasoning="fake"
        )


class FakeCompressor(Compressor):
    def __init__(self, summary: str = "Compressed summary", error: Exception | None = None):
        self.summary = summary
        self.error = error
        self.requests: list[CompressionRequest] = []

    async def compress(self, request):
        self.requests.append(request)
        if self.error:
            raise self.error
        return self.summary


class FakeReasoner(Reasoner):
    def __init__(self, proposals: list[ProposedInference] | None = None, error: Exception | None = None):
        self.proposals = proposals or []
        self.error = error
        self.calls = 0

    async def infer(self, entities, relationships, recent_notes):
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.proposals)


class FakeEmbedder(Embedder):
    """Deterministic bag-of-letters embedding."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.texts: list[str] = []

    async def embed(self, text, **kwargs):
        self.texts.append(text)
        if self.error:
            raise self.error
        vector = [0.0] * 26
        for char in text.lower():
            if "a" <= char <= "z":
                vector[ord(char) - ord("a")] += 1.0
        return vector

    async def close(self):
        pass


@pytest.fixture
def config(tmp_path) -> Config:
    """Config with a temporary database and no pauses between external calls."""
    config = Config()
    config.store.db_path = str(tmp_path / "entity_memory.db")
    config.importance.rate_limit_seconds = 0
    config.consolidation.rate_limit_seconds = 0
    config.collaborators.timeout = 2.0
    return config


@pytest.fixture
async def store(tmp_path) -> AsyncGenerator[SQLiteEntityStore, None]:
    """Initialized SQLite store on a temporary file."""
    store = SQLiteEntityStore(db_path=str(tmp_path / "store.db"))
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def make_entity():
    """Build (not persist) an entity with sensible defaults."""

    def _make(name: str = "Sarah", owner_id: str = OWNER, **overrides) -> Entity:
        at = overrides.pop("at", NOW)
        fields = {
            "id": generate_entity_id(),
            "owner_id": owner_id,
            "name": name,
            "kind": EntityKind.PERSON,
            "first_mentioned_at": at,
            "last_mentioned_at": at,
            "created_at": at,
            "updated_at": at,
        }
        fields.update(overrides)
        return Entity(**fields)

    return _make


@pytest.fixture
def failing_collaborator_error() -> CollaboratorError:
    return CollaboratorError("collaborator unavailable")
