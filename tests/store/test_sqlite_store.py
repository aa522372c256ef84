"""
Tests for the SQLite entity store.
"""

from datetime import timedelta

import pytest

from entity_memory.core.store.sqlite_store import SQLiteEntityStore
from entity_memory.models import (
    EntityFilter,
    EntityStatus,
    Fact,
    Importance,
    Inference,
    InferenceStatus,
    Note,
    Relationship,
    RelationshipStatus,
)
from entity_memory.utils.exceptions import StoreError
from tests.conftest import NOW, OWNER


@pytest.mark.unit
@pytest.mark.asyncio
class TestEntityPersistence:
    """Create, read and update entities."""

    async def test_create_and_get(self, store, make_entity):
        entity = make_entity(
            "Sarah",
            context_notes=["met at the conference"],
            topics=["startup"],
            embedding=[0.1, 0.2],
            relationship="cofounder",
        )
        await store.create_entity(entity)

        loaded = await store.get_entity(entity.id)

        assert loaded is not None
        assert loaded.name == "Sarah"
        assert loaded.relationship == "cofounder"
        assert loaded.context_notes == ["met at the conference"]
        assert loaded.topics == ["startup"]
        assert loaded.embedding == [0.1, 0.2]
        assert loaded.created_at == NOW

    async def test_get_missing(self, store):
        assert await store.get_entity("ent_missing") is None

    async def test_update(self, store, make_entity):
        entity = make_entity()
        await store.create_entity(entity)

        entity.mention_count = 4
        entity.summary = "Sarah is a founder"
        assert await store.update_entity(entity) is True

        loaded = await store.get_entity(entity.id)
        assert loaded.mention_count == 4
        assert loaded.summary == "Sarah is a founder"

    async def test_update_refuses_dismissed(self, store, make_entity):
        entity = make_entity(status=EntityStatus.DISMISSED)
        await store.create_entity(entity)

        entity.mention_count = 9
        assert await store.update_entity(entity) is False
        assert (await store.get_entity(entity.id)).mention_count == 1

        assert await store.update_entity(entity, allow_dismissed=True) is True
        assert (await store.get_entity(entity.id)).mention_count == 9

    async def test_update_check_and_set(self, store, make_entity):
        entity = make_entity()
        await store.create_entity(entity)

        stale = entity.updated_at - timedelta(seconds=1)
        entity.importance_score = 0.1
        assert await store.update_entity(entity, expected_updated_at=stale) is False

        expected = entity.updated_at
        entity.updated_at = NOW + timedelta(minutes=1)
        assert await store.update_entity(entity, expected_updated_at=expected) is True
        assert (await store.get_entity(entity.id)).importance_score == 0.1

    async def test_update_guarded_on_expected_status(self, store, make_entity):
        entity = make_entity()
        await store.create_entity(entity)
        stale = entity.model_copy(deep=True)
        assert await store.retire_entity(entity.id, "ent_next", NOW) is True

        stale.mention_count = 5
        assert await store.update_entity(stale, expected_status=EntityStatus.ACTIVE) is False

        loaded = await store.get_entity(entity.id)
        assert loaded.status == EntityStatus.SUPERSEDED
        assert loaded.superseded_by_id == "ent_next"
        assert loaded.mention_count == 1


@pytest.mark.unit
@pytest.mark.asyncio
class TestRetire:
    """Status compare-and-swap used by supersession."""

    async def test_retire_active(self, store, make_entity):
        old = make_entity()
        new = make_entity(at=NOW + timedelta(seconds=1))
        await store.create_entity(old)
        await store.create_entity(new)

        assert await store.retire_entity(old.id, new.id, NOW) is True

        loaded = await store.get_entity(old.id)
        assert loaded.status == EntityStatus.SUPERSEDED
        assert loaded.superseded_by_id == new.id
        assert loaded.superseded_at == NOW

    async def test_second_retire_loses(self, store, make_entity):
        old = make_entity()
        await store.create_entity(old)

        assert await store.retire_entity(old.id, "ent_first", NOW) is True
        assert await store.retire_entity(old.id, "ent_second", NOW) is False
        assert (await store.get_entity(old.id)).superseded_by_id == "ent_first"

    async def test_retire_never_touches_dismissed(self, store, make_entity):
        entity = make_entity(status=EntityStatus.DISMISSED)
        await store.create_entity(entity)

        assert await store.retire_entity(entity.id, "ent_other", NOW) is False
        assert (await store.get_entity(entity.id)).status == EntityStatus.DISMISSED


@pytest.mark.unit
@pytest.mark.asyncio
class TestEntityQueries:
    async def test_find_by_name_newest_first(self, store, make_entity):
        older = make_entity("Sarah")
        newer = make_entity("sarah", at=NOW + timedelta(hours=1))
        other_owner = make_entity("Sarah", owner_id="user_2")
        for entity in (older, newer, other_owner):
            await store.create_entity(entity)

        found = await store.find_entities_by_name(OWNER, "SARAH")

        assert [e.id for e in found] == [newer.id, older.id]

    async def test_find_by_name_status_filter(self, store, make_entity):
        active = make_entity("Bob")
        archived = make_entity("Bob", status=EntityStatus.ARCHIVED, at=NOW + timedelta(hours=1))
        await store.create_entity(active)
        await store.create_entity(archived)

        found = await store.find_entities_by_name(OWNER, "Bob", statuses=[EntityStatus.ACTIVE])

        assert [e.id for e in found] == [active.id]

    async def test_query_filters_and_order(self, store, make_entity):
        await store.create_entity(make_entity("Sarah", mention_count=5, topics=["startup", "ai"]))
        await store.create_entity(make_entity("Tom", mention_count=2, topics=["health"]))
        await store.create_entity(
            make_entity("Old", mention_count=9, status=EntityStatus.ARCHIVED)
        )

        by_mentions = await store.query_entities(OWNER, EntityFilter())
        assert [e.name for e in by_mentions] == ["Sarah", "Tom"]

        by_topic = await store.query_entities(OWNER, EntityFilter(topic="AI"))
        assert [e.name for e in by_topic] == ["Sarah"]

        min_mentions = await store.query_entities(OWNER, EntityFilter(min_mentions=3))
        assert [e.name for e in min_mentions] == ["Sarah"]

        archived = await store.query_entities(
            OWNER, EntityFilter(statuses=[EntityStatus.ARCHIVED])
        )
        assert [e.name for e in archived] == ["Old"]

    async def test_query_by_importance(self, store, make_entity):
        await store.create_entity(make_entity("Mom", importance=Importance.CRITICAL, importance_score=1.0))
        await store.create_entity(make_entity("Tom", importance=Importance.LOW, importance_score=0.3))

        found = await store.query_entities(
            OWNER, EntityFilter(importance=[Importance.CRITICAL], order_by="importance_score")
        )

        assert [e.name for e in found] == ["Mom"]

    async def test_decay_candidates(self, store, make_entity):
        due = make_entity("Due", last_decay_at=None)
        recent = make_entity("Recent", last_decay_at=NOW - timedelta(days=2))
        old_cycle = make_entity("OldCycle", last_decay_at=NOW - timedelta(days=8))
        critical = make_entity("Mom", importance=Importance.CRITICAL)
        archived = make_entity("Gone", status=EntityStatus.ARCHIVED)
        for entity in (due, recent, old_cycle, critical, archived):
            await store.create_entity(entity)

        candidates = await store.get_decay_candidates(OWNER, NOW - timedelta(days=7))

        assert {e.name for e in candidates} == {"Due", "OldCycle"}

    async def test_consolidation_candidates(self, store, make_entity):
        await store.create_entity(make_entity("Fresh", mention_count=3))
        await store.create_entity(make_entity("Few", mention_count=2))
        await store.create_entity(
            make_entity("Done", mention_count=5, last_consolidated_at=NOW - timedelta(hours=1))
        )
        await store.create_entity(
            make_entity("Stale", mention_count=4, last_consolidated_at=NOW - timedelta(days=2))
        )

        candidates = await store.get_consolidation_candidates(
            OWNER, min_mentions=3, consolidated_before=NOW - timedelta(hours=24), limit=10
        )

        assert [e.name for e in candidates] == ["Stale", "Fresh"]

    async def test_list_owner_ids(self, store, make_entity):
        await store.create_entity(make_entity("Sarah", owner_id="user_b"))
        await store.create_entity(make_entity("Tom", owner_id="user_a"))

        assert await store.list_owner_ids() == ["user_a", "user_b"]


@pytest.mark.unit
@pytest.mark.asyncio
class TestFactsRelationshipsInferencesNotes:
    async def test_facts(self, store, make_entity):
        entity = make_entity("Sarah")
        await store.create_entity(entity)
        first = Fact(
            id="fact_1", owner_id=OWNER, entity_id=entity.id, predicate="works_at",
            object_text="Beta", created_at=NOW,
        )
        second = Fact(
            id="fact_2", owner_id=OWNER, entity_id=entity.id, predicate="works_at",
            object_text="Acme", created_at=NOW + timedelta(days=10),
        )
        await store.add_fact(first)
        await store.add_fact(second)

        assert [f.id for f in await store.get_facts([entity.id])] == ["fact_2", "fact_1"]
        assert await store.get_facts([]) == []

        owner_facts = await store.get_owner_facts(OWNER)
        assert [(name, f.id) for name, f in owner_facts] == [("Sarah", "fact_1"), ("Sarah", "fact_2")]

    async def test_relationships(self, store):
        relationship = Relationship(
            id="rel_1", owner_id=OWNER, subject_name="Sarah", predicate="works_at",
            object_name="Acme", role="CTO", created_at=NOW, updated_at=NOW,
        )
        await store.add_relationship(relationship)

        as_subject = await store.get_relationships(OWNER, entity_name="sarah", subject_only=True)
        as_object = await store.get_relationships(OWNER, entity_name="Acme")
        not_subject = await store.get_relationships(OWNER, entity_name="Acme", subject_only=True)

        assert [r.id for r in as_subject] == ["rel_1"]
        assert as_subject[0].role == "CTO"
        assert [r.id for r in as_object] == ["rel_1"]
        assert not_subject == []

        assert await store.retire_relationship("rel_1", "rel_2") is True
        assert await store.retire_relationship("rel_1", "rel_3") is False
        assert await store.get_relationships(OWNER) == []

        history = await store.get_relationships(OWNER, active_only=False)
        assert history[0].status == RelationshipStatus.SUPERSEDED
        assert history[0].superseded_by_id == "rel_2"

    async def test_relationship_lookup_folds_non_ascii_names(self, store):
        await store.add_relationship(
            Relationship(
                id="rel_1", owner_id=OWNER, subject_name="Élodie", predicate="lives_in",
                object_name="Zürich", created_at=NOW, updated_at=NOW,
            )
        )

        by_subject = await store.get_relationships(OWNER, entity_name="ÉLODIE", subject_only=True)
        by_object = await store.get_relationships(OWNER, entity_name="  ZÜRICH ")

        assert [r.id for r in by_subject] == ["rel_1"]
        assert [r.id for r in by_object] == ["rel_1"]
        assert by_subject[0].subject_name == "Élodie"

    async def test_inferences(self, store):
        await store.add_inference(
            Inference(
                id="inf_low", owner_id=OWNER, text="low", confidence=0.6,
                expires_at=NOW - timedelta(days=1), created_at=NOW,
            )
        )
        await store.add_inference(
            Inference(
                id="inf_high", owner_id=OWNER, text="high", confidence=0.9,
                expires_at=NOW + timedelta(days=30), created_at=NOW,
            )
        )

        active = await store.get_active_inferences(OWNER)
        assert [i.id for i in active] == ["inf_high", "inf_low"]

        assert await store.expire_inferences(OWNER, NOW) == 1
        assert await store.expire_inferences(OWNER, NOW) == 0

        active = await store.get_active_inferences(OWNER)
        assert [i.id for i in active] == ["inf_high"]
        assert active[0].status == InferenceStatus.ACTIVE

    async def test_recent_notes(self, store):
        for i in range(3):
            await store.add_note(
                Note(id=f"note_{i}", owner_id=OWNER, text=f"note {i}", created_at=NOW + timedelta(minutes=i))
            )

        notes = await store.get_recent_notes(OWNER, limit=2)

        assert [n.id for n in notes] == ["note_2", "note_1"]


@pytest.mark.unit
@pytest.mark.asyncio
class TestStoreErrors:
    async def test_sqlite_errors_are_wrapped(self, store, make_entity):
        entity = make_entity()
        await store.create_entity(entity)

        with pytest.raises(StoreError):
            await store.create_entity(entity)  # duplicate primary key

    async def test_in_memory_database(self):
        store = SQLiteEntityStore(db_path=":memory:")
        await store.initialize()
        try:
            assert await store.list_owner_ids() == []
        finally:
            await store.close()
