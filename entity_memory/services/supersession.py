"""
Supersession engine: append-only version chains for entities.

A state change (new job, new city, new partner) never overwrites the current
record. A new head is created with the identity fields copied forward, then
the old head is retired with a compare-and-swap on its status. If two writers
race, only one retires the old head; the loser's record stays as a duplicate
head until reads (newest active wins) or repair_heads resolve it.
"""

from datetime import datetime, timedelta

from entity_memory.core.store.base import EntityMemoryStore
from entity_memory.models.entity import (
    Entity,
    EntityFilter,
    EntityStatus,
    base_score,
)
from entity_memory.models.relationships import Fact
from entity_memory.models.results import ChangeCandidate, SupersessionResult
from entity_memory.services.entity_index import EntityIndex
from entity_memory.utils.exceptions import StoreError
from entity_memory.utils.id_generator import generate_entity_id, generate_fact_id
from entity_memory.utils.logger import get_logger

logger = get_logger(__name__)

PATTERN_FACT_CONFIDENCE = 0.7
EXTERNAL_FACT_CONFIDENCE = 0.8
NOTE_SNIPPET_LENGTH = 200


class SupersessionEngine:
    """
    Creates and retires entity versions.

    Features:
    - Authoritative head resolution (most recently created active record per name)
    - Supersession with CAS retirement of the old head
    - Additive (non-superseding) changes on the current head
    - Version history and duplicate-head repair
    """

    def __init__(
        self,
        store: EntityMemoryStore,
        index: EntityIndex | None = None,
        max_context_notes: int = 10,
    ):
        self.store = store
        self.index = index
        self.max_context_notes = max_context_notes

    # ═══════════════════════════════════════════════════════════
    # HEAD RESOLUTION
    # ═══════════════════════════════════════════════════════════

    async def resolve(self, owner_id: str, name: str) -> Entity | None:
        """
        Record that ingestion should act on for a name.

        Returns the newest active record, unless the newest live record is
        dismissed (the name is then suppressed and the dismissed record is
        returned so the caller can skip it). Falls back to the newest archived
        record when no active one exists.
        """
        records = await self.store.find_entities_by_name(
            owner_id,
            name,
            statuses=[EntityStatus.ACTIVE, EntityStatus.ARCHIVED, EntityStatus.DISMISSED],
        )
        if not records:
            return None

        newest = records[0]
        if newest.status == EntityStatus.DISMISSED:
            return newest
        return next((r for r in records if r.status == EntityStatus.ACTIVE), newest)

    async def get_authoritative(self, owner_id: str, name: str) -> Entity | None:
        """Most recently created active record for a name, or None."""
        records = await self.store.find_entities_by_name(
            owner_id, name, statuses=[EntityStatus.ACTIVE]
        )
        return records[0] if records else None

    # ═══════════════════════════════════════════════════════════
    # CHANGES
    # ═══════════════════════════════════════════════════════════

    async def is_real_change(self, entity: Entity, candidates: list[ChangeCandidate]) -> bool:
        """
        True when at least one supersession-worthy candidate states something new.

        A candidate whose value repeats the latest fact for the same predicate
        (e.g. "Sarah works at Acme" again) is not a change.
        """
        worthy = [c for c in candidates if c.change_type.supersedes]
        if not worthy:
            return False

        facts = await self.store.get_facts([entity.id])
        latest: dict[str, str] = {}
        for fact in facts:
            latest.setdefault(fact.predicate, fact.object_text.strip().lower())

        for candidate in worthy:
            if not candidate.new_value:
                return True
            predicate = candidate.predicate or candidate.change_type.value
            if latest.get(predicate) != candidate.new_value.strip().lower():
                return True
        return False

    async def supersede(
        self,
        entity: Entity,
        candidates: list[ChangeCandidate],
        source_id: str | None = None,
        now: datetime | None = None,
        text: str | None = None,
    ) -> SupersessionResult:
        """
        Replace the entity head with a new version reflecting the change.

        The new version starts a fresh mention history: its context notes hold
        only the triggering snippets, or the first 200 characters of the note
        text when no snippet was captured.

        Raises:
            StoreError: If the new version cannot be created (the old head is untouched)
        """
        now = now or datetime.now()
        created_at = max(now, entity.created_at + timedelta(microseconds=1))

        context_notes = self._snippets(candidates)
        if not context_notes and text and text.strip():
            context_notes = [text.strip()[:NOTE_SNIPPET_LENGTH]]

        new_entity = Entity(
            id=generate_entity_id(),
            owner_id=entity.owner_id,
            name=entity.name,
            kind=entity.kind,
            relationship=entity.relationship,
            confirmed=entity.confirmed,
            mention_count=1,
            first_mentioned_at=created_at,
            last_mentioned_at=created_at,
            context_notes=context_notes[-self.max_context_notes :],
            sentiment_average=entity.sentiment_average,
            topics=list(entity.topics),
            importance=entity.importance,
            importance_score=max(entity.importance_score, base_score(entity.importance)),
            last_decay_at=created_at,
            status=EntityStatus.ACTIVE,
            supersedes_id=entity.id,
            created_at=created_at,
            updated_at=created_at,
        )

        await self.store.create_entity(new_entity)

        retired = False
        try:
            retired = await self.store.retire_entity(entity.id, new_entity.id, created_at)
        except StoreError as e:
            logger.error(
                "Failed to retire superseded entity {}: {}", entity.id, e,
                extra={"entity_id": entity.id, "new_entity_id": new_entity.id},
            )

        if retired:
            entity.status = EntityStatus.SUPERSEDED
            entity.superseded_by_id = new_entity.id
            entity.superseded_at = created_at
            entity.updated_at = created_at
        else:
            logger.info(
                "Entity {} was not retired; newest head wins on read", entity.id,
                extra={"entity_id": entity.id, "new_entity_id": new_entity.id},
            )

        facts = await self._record_facts(new_entity, candidates, source_id, created_at)
        self._invalidate(entity.owner_id)

        logger.info(
            "Superseded {}: {} -> {}", entity.name, entity.id, new_entity.id,
            extra={
                "owner_id": entity.owner_id,
                "change_types": sorted({c.change_type.value for c in candidates}),
                "retired": retired,
            },
        )
        return SupersessionResult(
            old_entity=entity, new_entity=new_entity, retired=retired, facts=facts
        )

    async def apply_additive(
        self,
        entity: Entity,
        candidates: list[ChangeCandidate],
        source_id: str | None = None,
        now: datetime | None = None,
    ) -> tuple[Entity | None, list[Fact]]:
        """
        Record a non-superseding change on the existing head.

        Returns:
            (updated entity, recorded facts); entity is None when the write was
            refused because the record was dismissed or retired meanwhile
        """
        now = now or datetime.now()
        snippets = self._snippets(candidates)
        entity.record_mention(snippets[0] if snippets else None, now, self.max_context_notes)
        for snippet in snippets[1:]:
            entity.add_context(snippet, self.max_context_notes)

        if not await self.store.update_entity(entity, expected_status=entity.status):
            logger.info(
                "Skipped additive change for {}: dismissed or retired meanwhile", entity.id,
                extra={"entity_id": entity.id},
            )
            return None, []

        facts = await self._record_facts(entity, candidates, source_id, now)
        return entity, facts

    # ═══════════════════════════════════════════════════════════
    # HISTORY / REPAIR
    # ═══════════════════════════════════════════════════════════

    async def get_version_history(self, entity_id: str) -> list[Entity]:
        """Full chain containing the entity, oldest version first."""
        entity = await self.store.get_entity(entity_id)
        if entity is None:
            return []

        seen = {entity.id}
        chain = [entity]

        current = entity
        while current.supersedes_id and current.supersedes_id not in seen:
            previous = await self.store.get_entity(current.supersedes_id)
            if previous is None:
                break
            seen.add(previous.id)
            chain.insert(0, previous)
            current = previous

        current = entity
        while current.superseded_by_id and current.superseded_by_id not in seen:
            following = await self.store.get_entity(current.superseded_by_id)
            if following is None:
                break
            seen.add(following.id)
            chain.append(following)
            current = following

        return chain

    async def repair_heads(self, owner_id: str, now: datetime | None = None) -> int:
        """
        Retire every older duplicate active head in favour of the newest per name.

        Duplicates come from lost supersession races or from a create that
        succeeded while the retire failed.
        """
        now = now or datetime.now()
        active = await self.store.query_entities(
            owner_id,
            EntityFilter(statuses=[EntityStatus.ACTIVE], order_by="created_at", limit=1000),
        )

        by_name: dict[str, list[Entity]] = {}
        for entity in active:
            by_name.setdefault(entity.name_key, []).append(entity)

        repaired = 0
        for records in by_name.values():
            if len(records) < 2:
                continue
            records.sort(key=lambda e: e.created_at, reverse=True)
            head = records[0]
            for older in records[1:]:
                if await self.store.retire_entity(older.id, head.id, now):
                    repaired += 1

        if repaired:
            self._invalidate(owner_id)
            logger.info(
                "Repaired {} duplicate entity heads", repaired,
                extra={"owner_id": owner_id, "repaired": repaired},
            )
        return repaired

    # ═══════════════════════════════════════════════════════════
    # HELPERS
    # ═══════════════════════════════════════════════════════════

    async def _record_facts(
        self,
        entity: Entity,
        candidates: list[ChangeCandidate],
        source_id: str | None,
        at: datetime,
    ) -> list[Fact]:
        facts = []
        seen = set()
        for candidate in candidates:
            confidence = (
                EXTERNAL_FACT_CONFIDENCE
                if candidate.source == "collaborator"
                else PATTERN_FACT_CONFIDENCE
            )
            pairs = [(candidate.predicate or candidate.change_type.value, candidate.new_value)]
            if candidate.role:
                pairs.append(("role", candidate.role))

            for predicate, value in pairs:
                if not value or (predicate, value.lower()) in seen:
                    continue
                seen.add((predicate, value.lower()))
                fact = Fact(
                    id=generate_fact_id(),
                    owner_id=entity.owner_id,
                    entity_id=entity.id,
                    predicate=predicate,
                    object_text=value,
                    confidence=confidence,
                    source_id=source_id,
                    created_at=at,
                )
                await self.store.add_fact(fact)
                facts.append(fact)
        return facts

    @staticmethod
    def _snippets(candidates: list[ChangeCandidate]) -> list[str]:
        snippets = []
        for candidate in candidates:
            snippet = (candidate.context_window or candidate.matched_text).strip()
            if snippet and snippet not in snippets:
                snippets.append(snippet)
        return snippets

    def _invalidate(self, owner_id: str) -> None:
        if self.index is not None:
            self.index.invalidate(owner_id)
