"""
Tests for the Memory Graph facade.

Covers end-to-end ingestion scenarios (supersession, repeated mentions,
decay, archival, dismissal), the read API, user actions, maintenance and
lifecycle. Collaborators are in-memory fakes; the store is a real SQLite file.
"""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from loguru import logger

from entity_memory.config import Config
from entity_memory.core.factory.collaborator_factory import Collaborators
from entity_memory.core.store.base import EntityMemoryStore
from entity_memory.core.store.sqlite_store import SQLiteEntityStore
from entity_memory.models.entity import EntityKind, EntityStatus, Importance
from entity_memory.models.extraction import (
    DetectedChange,
    ExtractedEntity,
    ExtractionResult,
    ProposedInference,
)
from entity_memory.models.inference import Inference
from entity_memory.models.relationships import Fact
from entity_memory.services.memory_graph import MemoryGraph
from entity_memory.utils.exceptions import NotFoundError, StoreError, ValidationError
from tests.conftest import (
    NOW,
    OWNER,
    FakeEmbedder,
    FakeImportanceOracle,
    FakeReasoner,
    FakeTextUnderstanding,
)


@pytest.fixture
def graph(store, config) -> MemoryGraph:
    """Memory Graph without collaborators over the shared test store."""
    return MemoryGraph(store, config=config)


@pytest.fixture
def log_messages():
    """Every formatted log message, down to DEBUG, emitted during the test."""
    messages = []
    handler_id = logger.add(messages.append, level="DEBUG", format="{message}")
    yield messages
    logger.remove(handler_id)


async def _all_named(store, name):
    return await store.find_entities_by_name(OWNER, name)


@pytest.mark.integration
@pytest.mark.asyncio
class TestIngestionScenarios:
    """End-to-end ingestion behaviour."""

    async def test_job_change_supersedes(self, graph, store, make_entity):
        old = make_entity("Sarah", relationship="works at Beta", at=NOW - timedelta(days=30))
        await store.create_entity(old)

        result = await graph.ingest(OWNER, "Sarah started at Acme as CTO", now=NOW)

        new = await graph.get_authoritative_entity(OWNER, "Sarah")
        assert new.id != old.id
        assert new.supersedes_id == old.id
        assert new.status == EntityStatus.ACTIVE
        assert new.relationship == "works at Beta"
        assert (await store.get_entity(old.id)).status == EntityStatus.SUPERSEDED

        assert [c.change_type.value for c in result.changes] == ["job"]
        assert {(f.predicate, f.object_text) for f in result.facts} == {("works_at", "Acme"), ("role", "CTO")}
        assert {e.name for e in result.entities} == {"Sarah", "Acme"}
        acme = await graph.get_authoritative_entity(OWNER, "Acme")
        assert acme.kind == EntityKind.ORGANIZATION

    async def test_new_version_starts_with_triggering_context_only(self, graph, store, make_entity):
        old = make_entity("Sarah", context_notes=["old note about Beta"], at=NOW - timedelta(days=30))
        await store.create_entity(old)

        await graph.ingest(OWNER, "Sarah started at Acme as CTO", now=NOW)

        new = await graph.get_authoritative_entity(OWNER, "Sarah")
        assert new.context_notes == ["Sarah started at Acme as CTO"]
        assert (await store.get_entity(old.id)).context_notes == ["old note about Beta"]

    async def test_concurrent_change_and_mention_keep_chain_intact(self, graph, store, make_entity):
        old = make_entity("Sarah", at=NOW - timedelta(days=30))
        await store.create_entity(old)

        await asyncio.gather(
            graph.ingest(OWNER, "Sarah started at Acme", now=NOW),
            graph.ingest(OWNER, "coffee with Sarah", now=NOW),
        )

        active = await store.find_entities_by_name(OWNER, "Sarah", statuses=[EntityStatus.ACTIVE])
        assert len(active) == 1
        head = active[0]
        retired = await store.get_entity(old.id)
        assert retired.status == EntityStatus.SUPERSEDED
        assert retired.superseded_by_id == head.id
        assert head.supersedes_id == old.id

    async def test_mention_on_stale_head_moves_to_new_head(self, graph, store, make_entity, monkeypatch):
        old = make_entity("Sarah", at=NOW - timedelta(days=30))
        await store.create_entity(old)
        stale = old.model_copy(deep=True)
        await graph.ingest(OWNER, "Sarah started at Acme", now=NOW)

        resolve = graph.supersession.resolve
        calls = []

        async def resolve_stale_first(owner_id, name):
            calls.append(name)
            if len(calls) == 1:
                return stale
            return await resolve(owner_id, name)

        monkeypatch.setattr(graph.supersession, "resolve", resolve_stale_first)

        await graph.ingest(OWNER, "coffee with Sarah", now=NOW + timedelta(hours=1))

        assert len(calls) == 2
        retired = await store.get_entity(old.id)
        assert retired.status == EntityStatus.SUPERSEDED
        assert retired.mention_count == 1
        head = await graph.get_authoritative_entity(OWNER, "Sarah")
        assert head.id == retired.superseded_by_id
        assert head.mention_count == 2

    async def test_repeated_mentions_single_row(self, graph, store):
        for day in range(5):
            await graph.ingest(OWNER, "Had coffee with Sarah", now=NOW + timedelta(days=day))

        records = await _all_named(store, "Sarah")
        assert len(records) == 1
        assert records[0].mention_count == 5
        assert records[0].supersedes_id is None
        assert records[0].last_mentioned_at == NOW + timedelta(days=4)

    async def test_context_notes_capped(self, graph, store):
        for i in range(12):
            await graph.ingest(OWNER, f"Call {i} with Sarah", now=NOW + timedelta(minutes=i))

        sarah = (await _all_named(store, "Sarah"))[0]
        assert sarah.mention_count == 12
        assert len(sarah.context_notes) == 10
        assert sarah.context_notes[-1] == "Call 11 with Sarah"

    async def test_low_entity_decays_once(self, graph, store, make_entity):
        entity = make_entity(importance=Importance.LOW, importance_score=0.3, at=NOW - timedelta(days=20))
        await store.create_entity(entity)

        first = await graph.run_memory_maintenance(OWNER, now=NOW)
        second = await graph.run_memory_maintenance(OWNER, now=NOW)

        assert first.decay.decayed == 1
        assert second.decay.decayed == 0
        assert (await store.get_entity(entity.id)).importance_score == pytest.approx(0.15)

    async def test_archive_then_mention_reactivates(self, graph, store, make_entity):
        entity = make_entity(importance=Importance.LOW, importance_score=0.2, at=NOW - timedelta(days=20))
        await store.create_entity(entity)

        maintenance = await graph.run_memory_maintenance(OWNER, now=NOW)

        assert maintenance.decay.archived == 1
        assert (await store.get_entity(entity.id)).status == EntityStatus.ARCHIVED
        assert await graph.get_authoritative_entity(OWNER, "Sarah") is None

        await graph.ingest(OWNER, "ran into Sarah downtown", now=NOW + timedelta(days=1))

        revived = await store.get_entity(entity.id)
        assert revived.status == EntityStatus.ACTIVE
        assert revived.mention_count == 2
        assert revived.importance_score == 0.3
        assert len(await _all_named(store, "Sarah")) == 1

    async def test_dismissed_name_is_never_touched(self, graph, store, make_entity):
        bob = make_entity("Bob", mention_count=2)
        await store.create_entity(bob)
        await graph.dismiss_entity(OWNER, bob.id)
        before = await store.get_entity(bob.id)

        mention = await graph.ingest(OWNER, "Met Bob for lunch", now=NOW + timedelta(days=1))
        change = await graph.ingest(OWNER, "Bob moved to Denver", now=NOW + timedelta(days=2))
        relation = await graph.ingest(OWNER, "Bob works at Acme", now=NOW + timedelta(days=3))

        after = await store.get_entity(bob.id)
        assert after == before
        assert after.status == EntityStatus.DISMISSED
        assert len(await _all_named(store, "Bob")) == 1
        assert mention.entities == []
        assert all(e.name != "Bob" for e in change.entities + relation.entities)
        assert relation.relationships == []
        assert await graph.get_relationships(OWNER, "Bob") == []

    async def test_chain_keeps_one_active_head(self, graph, store, make_entity):
        await store.create_entity(make_entity("Sarah", at=NOW - timedelta(days=60)))

        await graph.ingest(OWNER, "Sarah started at Acme", now=NOW - timedelta(days=30))
        await graph.ingest(OWNER, "Sarah moved to Denver", now=NOW)

        active = await store.find_entities_by_name(OWNER, "Sarah", statuses=[EntityStatus.ACTIVE])
        assert len(active) == 1
        history = await graph.get_version_history(OWNER, active[0].id)
        assert len(history) == 3
        assert history[-1].id == active[0].id
        facts = await graph.get_entity_facts(OWNER, active[0].id)
        assert {(f.predicate, f.object_text) for f in facts} == {("works_at", "Acme"), ("lives_in", "Denver")}

    async def test_repeated_statement_is_not_a_change(self, graph, store, make_entity):
        await store.create_entity(make_entity("Sarah", at=NOW - timedelta(days=60)))

        await graph.ingest(OWNER, "Sarah started at Acme", now=NOW - timedelta(days=30))
        await graph.ingest(OWNER, "Sarah started at Acme", now=NOW)

        records = await _all_named(store, "Sarah")
        assert len(records) == 2
        head = await graph.get_authoritative_entity(OWNER, "Sarah")
        assert head.mention_count == 2

    async def test_relationship_and_subject_fact(self, graph):
        result = await graph.ingest(OWNER, "Sarah works at Acme", now=NOW)

        assert [(r.subject_name, r.predicate, r.object_name) for r in result.relationships] == [
            ("Sarah", "works_at", "Acme")
        ]
        sarah = await graph.get_authoritative_entity(OWNER, "Sarah")
        assert result.relationships[0].subject_entity_id == sarah.id
        assert [(f.predicate, f.object_text) for f in result.facts] == [("works_at", "Acme")]

    async def test_superseding_relationship_not_double_recorded(self, graph, store, make_entity):
        await store.create_entity(make_entity("Sarah", at=NOW - timedelta(days=5)))

        result = await graph.ingest(OWNER, "Sarah works at Acme", now=NOW)

        head = await graph.get_authoritative_entity(OWNER, "Sarah")
        facts = await store.get_facts([head.id])
        assert [(f.predicate, f.object_text) for f in facts] == [("works_at", "Acme")]
        assert len(result.relationships) == 1

    async def test_empty_input(self, graph):
        assert (await graph.ingest(OWNER, "   ")).is_empty
        assert (await graph.ingest("", "Met Sarah")).is_empty

    async def test_owners_are_isolated(self, graph):
        await graph.ingest(OWNER, "Met Sarah", now=NOW)
        await graph.ingest("user_2", "Met Sarah", now=NOW)

        mine = await graph.get_authoritative_entity(OWNER, "Sarah")
        theirs = await graph.get_authoritative_entity("user_2", "Sarah")
        assert mine.id != theirs.id
        assert await graph.get_entity("user_2", mine.id) is None


@pytest.mark.integration
@pytest.mark.asyncio
class TestCollaboratorIngestion:
    async def test_collaborator_change_and_contradiction(self, store, config, make_entity):
        old = make_entity("Sarah", at=NOW - timedelta(days=30))
        await store.create_entity(old)
        await store.add_fact(
            Fact(
                id="fact_beta",
                owner_id=OWNER,
                entity_id=old.id,
                predicate="works_at",
                object_text="Beta",
                confidence=0.8,
                created_at=NOW - timedelta(days=30),
            )
        )
        understanding = FakeTextUnderstanding(
            ExtractionResult(
                entities=[
                    ExtractedEntity(name="Sarah", type="person", relationship="friend", context=None, sentiment=0.6),
                    ExtractedEntity(name="Acme", type="company", relationship=None, context=None, sentiment=None),
                ],
                changes_detected=[
                    DetectedChange(
                        entity_name="Sarah", change_type="job", new_value="Acme", evidence="new gig at Acme"
                    ),
                    DetectedChange(entity_name="Sarah", change_type="haircut", new_value="short", evidence="x"),
                ],
            )
        )
        graph = MemoryGraph(store, config=config, collaborators=Collaborators(text_understanding=understanding))

        result = await graph.ingest(OWNER, "news from Sarah: new gig at Acme", now=NOW)

        assert [(c.source, c.predicate) for c in result.changes] == [("collaborator", "works_at")]
        assert understanding.calls[0][1] == ["Sarah"]
        head = await graph.get_authoritative_entity(OWNER, "Sarah")
        assert head.supersedes_id == old.id

        contradictions = await graph.detect_contradictions(OWNER)
        assert [(c.before, c.after) for c in contradictions] == [("Beta", "Acme")]
        block = graph.format_contradictions(contradictions)
        assert block.startswith("<user_evolutions>")

    async def test_braces_in_names_do_not_break_ingestion(self, store, config, log_messages):
        understanding = FakeTextUnderstanding(
            ExtractionResult(
                entities=[
                    ExtractedEntity(name="Acme {Labs}", type="company", relationship=None, context=None, sentiment=None),
                ]
            )
        )
        graph = MemoryGraph(store, config=config, collaborators=Collaborators(text_understanding=understanding))

        result = await graph.ingest(OWNER, "Sarah met Tom at Acme today", now=NOW)

        assert {e.name for e in result.entities} == {"Sarah", "Tom", "Acme", "Acme {Labs}"}
        assert [(r.subject_name, r.object_name) for r in result.relationships] == [("Sarah", "Tom")]
        assert any("Created entity Acme {Labs}" in message for message in log_messages)
        assert not any("Unexpected error" in message for message in log_messages)

    async def test_external_fields_update_existing_entity(self, store, config, make_entity):
        sarah = make_entity("Sarah", kind=EntityKind.OTHER, sentiment_average=0.2)
        await store.create_entity(sarah)
        understanding = FakeTextUnderstanding(
            ExtractionResult(
                entities=[
                    ExtractedEntity(
                        name="Sarah", type="person", relationship="sister", context="dinner", sentiment=0.8
                    )
                ]
            )
        )
        graph = MemoryGraph(store, config=config, collaborators=Collaborators(text_understanding=understanding))

        await graph.ingest(OWNER, "dinner with Sarah", now=NOW + timedelta(hours=1))

        updated = await store.get_entity(sarah.id)
        assert updated.kind == EntityKind.PERSON
        assert updated.relationship == "sister"
        assert updated.sentiment_average == pytest.approx(0.5)
        assert updated.context_notes == ["dinner"]

    async def test_confirmed_relationship_kept(self, store, config, make_entity):
        sarah = make_entity("Sarah", relationship="cofounder", confirmed=True)
        await store.create_entity(sarah)
        understanding = FakeTextUnderstanding(
            ExtractionResult(
                entities=[
                    ExtractedEntity(name="Sarah", type="person", relationship="colleague", context=None, sentiment=None)
                ]
            )
        )
        graph = MemoryGraph(store, config=config, collaborators=Collaborators(text_understanding=understanding))

        await graph.ingest(OWNER, "call with Sarah", now=NOW + timedelta(hours=1))

        assert (await store.get_entity(sarah.id)).relationship == "cofounder"

    async def test_collaborator_failure_still_ingests(self, store, config, failing_collaborator_error):
        understanding = FakeTextUnderstanding(error=failing_collaborator_error)
        graph = MemoryGraph(store, config=config, collaborators=Collaborators(text_understanding=understanding))

        result = await graph.ingest(OWNER, "Met Sarah", now=NOW)

        assert [e.name for e in result.entities] == ["Sarah"]


@pytest.mark.integration
@pytest.mark.asyncio
class TestReadAPI:
    async def test_topic_and_importance_queries(self, graph, store, make_entity):
        await store.create_entity(make_entity("Sarah", topics=["startup"], importance=Importance.HIGH, importance_score=0.8))
        await store.create_entity(make_entity("Mom", topics=["family"], importance=Importance.CRITICAL, importance_score=1.0))
        await store.create_entity(make_entity("Tom", topics=["startup"], importance=Importance.LOW, importance_score=0.3))

        by_topic = await graph.get_entities_by_topic(OWNER, "startup")
        by_importance = await graph.get_entities_by_importance(OWNER, [Importance.CRITICAL, Importance.HIGH])
        single_tier = await graph.get_entities_by_importance(OWNER, Importance.LOW)

        assert {e.name for e in by_topic} == {"Sarah", "Tom"}
        assert [e.name for e in by_importance] == ["Mom", "Sarah"]
        assert [e.name for e in single_tier] == ["Tom"]
        assert await graph.get_entities_by_topic(OWNER, " ") == []

    async def test_inferences_for_context(self, graph, store):
        await store.add_inference(
            Inference(id="inf_1", owner_id=OWNER, text="Sarah and Tom collaborate", subject_entities=["Sarah", "Tom"])
        )

        inferences = await graph.get_inferences_for_context(OWNER, ["Tom"], now=NOW)

        assert [i.id for i in inferences] == ["inf_1"]

    async def test_relationship_history(self, graph):
        await graph.ingest(OWNER, "Sarah works at Beta", now=NOW)
        await graph.ingest(OWNER, "Sarah works at Acme", now=NOW + timedelta(days=30))

        active = await graph.get_relationships(OWNER, "Sarah")
        history = await graph.get_relationships(OWNER, "Sarah", include_superseded=True)

        assert [r.object_name for r in active] == ["Acme"]
        assert {r.object_name for r in history} == {"Acme", "Beta"}


@pytest.mark.integration
@pytest.mark.asyncio
class TestSearch:
    async def test_ranked_by_similarity(self, store, config, make_entity):
        embedder = FakeEmbedder()
        sarah = make_entity("Sarah", embedding=await embedder.embed("Sarah startup founder"))
        tom = make_entity("Tom", embedding=await embedder.embed("Tom gym workouts"))
        await store.create_entity(sarah)
        await store.create_entity(tom)
        await store.create_entity(make_entity("Anna"))
        graph = MemoryGraph(store, config=config, embedder=embedder)

        results = await graph.search_entities(OWNER, "startup founder", limit=5)

        assert [entity.name for entity, _ in results] == ["Sarah", "Tom"]
        assert all(score == round(score, 4) for _, score in results)
        assert results[0][1] > results[1][1]

    async def test_min_score(self, store, config, make_entity):
        embedder = FakeEmbedder()
        await store.create_entity(make_entity("Sarah", embedding=await embedder.embed("aaaa")))
        graph = MemoryGraph(store, config=config, embedder=embedder)

        assert await graph.search_entities(OWNER, "zzzz", min_score=0.5) == []

    async def test_empty_query_rejected(self, graph):
        with pytest.raises(ValidationError):
            await graph.search_entities(OWNER, "  ")

    async def test_without_embedder(self, graph):
        assert await graph.search_entities(OWNER, "startup") == []

    async def test_embedder_failure(self, store, config, failing_collaborator_error):
        graph = MemoryGraph(store, config=config, embedder=FakeEmbedder(error=failing_collaborator_error))

        assert await graph.search_entities(OWNER, "startup") == []


@pytest.mark.integration
@pytest.mark.asyncio
class TestUserActions:
    async def test_dismiss_and_confirm(self, graph, store, make_entity):
        bob = make_entity("Bob")
        await store.create_entity(bob)

        dismissed = await graph.dismiss_entity(OWNER, bob.id)
        assert dismissed.status == EntityStatus.DISMISSED
        assert await graph.get_authoritative_entity(OWNER, "Bob") is None

        confirmed = await graph.confirm_entity(OWNER, bob.id, relationship=" old friend ")
        assert confirmed.status == EntityStatus.ACTIVE
        assert confirmed.confirmed
        assert confirmed.relationship == "old friend"

        await graph.ingest(OWNER, "Met Bob again", now=NOW + timedelta(days=1))
        assert (await store.get_entity(bob.id)).mention_count == 2

    async def test_dismiss_is_idempotent(self, graph, store, make_entity):
        bob = make_entity("Bob")
        await store.create_entity(bob)

        await graph.dismiss_entity(OWNER, bob.id)
        again = await graph.dismiss_entity(OWNER, bob.id)

        assert again.status == EntityStatus.DISMISSED

    async def test_confirm_archived(self, graph, store, make_entity):
        entity = make_entity(status=EntityStatus.ARCHIVED)
        await store.create_entity(entity)

        assert (await graph.confirm_entity(OWNER, entity.id)).status == EntityStatus.ACTIVE

    async def test_unknown_entity(self, graph, store, make_entity):
        other = make_entity("Bob", owner_id="user_2")
        await store.create_entity(other)

        with pytest.raises(NotFoundError):
            await graph.dismiss_entity(OWNER, "ent_missing")
        with pytest.raises(NotFoundError):
            await graph.confirm_entity(OWNER, other.id)
        with pytest.raises(ValidationError):
            await graph.dismiss_entity(OWNER, "")


@pytest.mark.integration
@pytest.mark.asyncio
class TestMaintenance:
    async def test_full_pass(self, store, config, make_entity):
        await store.create_entity(make_entity("Sarah", mention_count=4))
        await store.create_entity(make_entity("Tom", mention_count=3))
        await store.add_inference(
            Inference(id="inf_old", owner_id=OWNER, text="stale", expires_at=NOW - timedelta(days=1))
        )
        reasoner = FakeReasoner(
            [
                ProposedInference(
                    type="connection",
                    entities=["Sarah", "Tom"],
                    inference="Sarah and Tom work together",
                    confidence=0.8,
                    reasoning="shared meetings",
                )
            ]
        )
        graph = MemoryGraph(
            store,
            config=config,
            collaborators=Collaborators(importance_oracle=FakeImportanceOracle(), reasoner=reasoner),
        )

        result = await graph.run_memory_maintenance(OWNER, now=NOW)

        assert result.errors == []
        assert result.expired_inferences == 1
        assert result.classification.external == 2
        assert result.inference.created == 1
        assert result.finished_at is not None

        again = await graph.run_memory_maintenance(OWNER, now=NOW)
        assert again.decay.decayed == 0
        assert again.classification.processed == 0
        assert again.inference.duplicates == 1

    async def test_failing_step_recorded(self, graph, store, make_entity):
        await store.create_entity(make_entity("Sarah", mention_count=1))
        graph.decay.run_decay = AsyncMock(side_effect=RuntimeError("boom"))

        result = await graph.run_memory_maintenance(OWNER, now=NOW)

        assert result.errors == ["decay: boom"]
        assert result.classification.heuristic == 1

    async def test_repairs_duplicate_heads(self, graph, store, make_entity):
        await store.create_entity(make_entity("Sarah"))
        newest = make_entity("Sarah", at=NOW + timedelta(seconds=1))
        await store.create_entity(newest)

        result = await graph.run_memory_maintenance(OWNER, now=NOW + timedelta(seconds=2))

        assert result.repaired_heads == 1
        active = await store.find_entities_by_name(OWNER, "Sarah", statuses=[EntityStatus.ACTIVE])
        assert [e.id for e in active] == [newest.id]

    async def test_consolidate(self, store, config, make_entity):
        await store.create_entity(
            make_entity("Sarah", mention_count=4, context_notes=["startup pitch", "seed round"])
        )
        graph = MemoryGraph(store, config=config, embedder=FakeEmbedder())

        result = await graph.consolidate(OWNER, now=NOW)

        assert result.consolidated == 1
        assert result.reindexed == 1
        assert (await graph.get_authoritative_entity(OWNER, "Sarah")).topics == ["startup"]

    async def test_worker_runs_and_stops(self, graph):
        graph.run_memory_maintenance = AsyncMock()
        graph.consolidate = AsyncMock()

        graph.start_maintenance_worker(owner_ids=[OWNER], interval_hours=1)
        await asyncio.sleep(0.05)
        graph.stop_maintenance_worker()
        await asyncio.sleep(0)

        graph.run_memory_maintenance.assert_awaited_with(OWNER)
        graph.consolidate.assert_awaited_with(OWNER)


@pytest.mark.integration
@pytest.mark.asyncio
class TestLifecycle:
    async def test_background_ingestion(self, graph):
        task = graph.ingest_in_background(OWNER, "Had coffee with Sarah")

        result = await task

        assert [e.name for e in result.entities] == ["Sarah"]
        assert task not in graph._jobs

    async def test_close_waits_for_jobs(self, config):
        store = SQLiteEntityStore(db_path=config.store.db_path)
        await store.initialize()
        embedder = FakeEmbedder()
        graph = MemoryGraph(store, config=config, embedder=embedder)

        graph.ingest_in_background(OWNER, "Had coffee with Sarah")
        graph.start_maintenance_worker(owner_ids=[OWNER], interval_hours=1)
        await graph.close()

        assert graph._worker_task.done()
        reopened = SQLiteEntityStore(db_path=config.store.db_path)
        await reopened.initialize()
        try:
            assert len(await reopened.find_entities_by_name(OWNER, "Sarah")) == 1
        finally:
            await reopened.close()

    async def test_create_from_config(self, config):
        config.collaborators.enabled = False
        config.embedder.enabled = False

        graph = await MemoryGraph.create(config, configure_logging=False)
        try:
            assert graph.collaborators.text_understanding is None
            assert graph.embedder is None
            assert (await graph.ingest(OWNER, "Met Sarah")).entities[0].name == "Sarah"
        finally:
            await graph.close()


@pytest.mark.unit
@pytest.mark.asyncio
class TestStoreFailures:
    """Store outages surface as empty results, never exceptions."""

    @pytest.fixture
    def broken_graph(self) -> MemoryGraph:
        store = AsyncMock(spec=EntityMemoryStore)
        error = StoreError("database is locked")
        for method in (
            "add_note",
            "query_entities",
            "get_entity",
            "find_entities_by_name",
            "get_relationships",
            "get_active_inferences",
            "get_owner_facts",
            "get_decay_candidates",
        ):
            getattr(store, method).side_effect = error
        return MemoryGraph(store, config=Config())

    async def test_ingest_returns_empty(self, broken_graph):
        result = await broken_graph.ingest(OWNER, "Sarah started at Acme")

        assert result.is_empty

    async def test_reads_return_defaults(self, broken_graph):
        assert await broken_graph.get_entities(OWNER) == []
        assert await broken_graph.get_entity(OWNER, "ent_1") is None
        assert await broken_graph.get_authoritative_entity(OWNER, "Sarah") is None
        assert await broken_graph.get_entity_facts(OWNER, "ent_1") == []
        assert await broken_graph.get_relationships(OWNER) == []
        assert await broken_graph.get_inferences_for_context(OWNER, ["Sarah"]) == []
        assert await broken_graph.get_version_history(OWNER, "ent_1") == []
        assert await broken_graph.detect_contradictions(OWNER) == []

    async def test_maintenance_records_errors(self, broken_graph):
        result = await broken_graph.run_memory_maintenance(OWNER, now=NOW)

        assert any(error.startswith("repair_heads") for error in result.errors)
        assert any(error.startswith("decay") for error in result.errors)

    async def test_consolidate_returns_empty(self, broken_graph):
        broken_graph.store.get_consolidation_candidates.side_effect = StoreError("down")

        result = await broken_graph.consolidate(OWNER, now=NOW)

        assert result.processed == 0
