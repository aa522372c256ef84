"""
Memory Graph - the entry point of the entity memory subsystem.

Brings together:
- Note ingestion (conflict detection, extraction, supersession, upserts)
- Read API for entities, facts, relationships and inferences
- Explicit user actions (dismiss, confirm)
- Maintenance (decay, classification, inference, consolidation) and its worker

Memory is best-effort enrichment: store failures during ingestion and reads
are logged and surface as empty results rather than exceptions.
"""

import asyncio
from datetime import datetime
from typing import Any

from entity_memory.config import Config
from entity_memory.core.embeddings.base import Embedder, cosine_similarity
from entity_memory.core.factory.collaborator_factory import CollaboratorFactory, Collaborators
from entity_memory.core.factory.embedder_factory import EmbedderFactory
from entity_memory.core.factory.store_factory import StoreFactory
from entity_memory.core.store.base import EntityMemoryStore
from entity_memory.models.entity import (
    Entity,
    EntityFilter,
    EntityStatus,
    Importance,
    normalize_name,
)
from entity_memory.models.inference import Inference
from entity_memory.models.relationships import Fact, Note, Relationship
from entity_memory.models.results import (
    ChangeCandidate,
    ChangeType,
    ConsolidationResult,
    FactContradiction,
    IngestResult,
    MaintenanceResult,
)
from entity_memory.services.change_detection import (
    ChangeClassifier,
    ConflictDetector,
    RegexChangeClassifier,
)
from entity_memory.services.consolidation import Consolidator
from entity_memory.services.contradictions import ContradictionDetector, format_for_context
from entity_memory.services.decay import DecayScheduler, apply_refresh
from entity_memory.services.entity_index import EntityIndex
from entity_memory.services.extraction import EntityExtractor, EntityMention, NoteExtraction
from entity_memory.services.importance import ImportanceClassifier
from entity_memory.services.inference import InferenceEngine
from entity_memory.services.relationships import RelationshipService
from entity_memory.services.supersession import SupersessionEngine
from entity_memory.utils.exceptions import NotFoundError, StoreError, ValidationError
from entity_memory.utils.id_generator import generate_entity_id, generate_note_id
from entity_memory.utils.locks import KeyedLocks
from entity_memory.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

# Fact predicate assumed for collaborator-reported changes
_CHANGE_PREDICATES = {
    ChangeType.JOB: "works_at",
    ChangeType.LOCATION: "lives_in",
    ChangeType.RELATIONSHIP: "partner_of",
    ChangeType.STATUS: "status",
}

# Resolve-and-write attempts for one mention when the head changes underneath it
_MENTION_WRITE_ATTEMPTS = 3


class MemoryGraph:
    """
    Entity memory graph for many owners.

    Features:
    - Ingest notes with change detection and append-only supersession
    - Owner-scoped reads with authoritative-head resolution
    - Importance decay, classification, consolidation and inference
    - Background ingestion jobs and a periodic maintenance worker
    """

    def __init__(
        self,
        store: EntityMemoryStore,
        config: Config | None = None,
        collaborators: Collaborators | None = None,
        embedder: Embedder | None = None,
        change_classifier: ChangeClassifier | None = None,
    ):
        """
        Initialize the Memory Graph.

        Args:
            store: Initialized entity store
            config: Configuration object (defaults when omitted)
            collaborators: External collaborators; any of them may be absent
            embedder: Embedder used for re-indexing and similarity search
            change_classifier: Change classifier (regex templates by default)
        """
        self.store = store
        self.config = config or Config()
        self.collaborators = collaborators or Collaborators()
        self.embedder = embedder

        timeout = self.config.collaborators.timeout
        ingestion = self.config.ingestion
        classifier = change_classifier or RegexChangeClassifier()

        self.locks = KeyedLocks()
        self.index = EntityIndex(store)
        self.detector = ConflictDetector(classifier, context_window=ingestion.context_window)
        self.extractor = EntityExtractor(
            text_understanding=self.collaborators.text_understanding,
            timeout=timeout,
            context_window=ingestion.context_window,
            change_classifier=classifier,
        )
        self.supersession = SupersessionEngine(
            store, index=self.index, max_context_notes=ingestion.max_context_notes
        )
        self.relationships = RelationshipService(store)
        self.importance = ImportanceClassifier(
            store,
            oracle=self.collaborators.importance_oracle,
            config=self.config.importance,
            timeout=timeout,
            locks=self.locks,
        )
        self.decay = DecayScheduler(store, config=self.config.decay, locks=self.locks)
        self.consolidator = Consolidator(
            store,
            self.relationships,
            compressor=self.collaborators.compressor,
            embedder=embedder,
            config=self.config.consolidation,
            timeout=timeout,
            locks=self.locks,
        )
        self.inference = InferenceEngine(
            store,
            reasoner=self.collaborators.reasoner,
            config=self.config.inference,
            timeout=timeout,
        )
        self.contradictions = ContradictionDetector(store)

        self._jobs: set[asyncio.Task] = set()
        self._worker_task: asyncio.Task | None = None

    @classmethod
    async def create(
        cls, config: Config | None = None, configure_logging: bool = True
    ) -> "MemoryGraph":
        """Build a Memory Graph with store, collaborators and embedder from configuration."""
        config = config or Config()
        if configure_logging:
            setup_logging(
                level=config.logging.level,
                log_to_file=config.logging.log_to_file,
                log_dir=config.logging.log_dir,
                file_rotation=config.logging.file_rotation,
                file_retention=config.logging.file_retention,
                compression=config.logging.compression,
                serialize=config.logging.serialize,
            )

        store = await StoreFactory.create(config.store)
        collaborators = CollaboratorFactory.create(config)
        embedder = EmbedderFactory.create(config.embedder)
        logger.info(
            "Memory Graph ready",
            extra={
                "db_path": config.store.db_path,
                "collaborators": config.collaborators.enabled,
                "embedder": embedder is not None,
            },
        )
        return cls(store, config=config, collaborators=collaborators, embedder=embedder)

    # ═══════════════════════════════════════════════════════════
    # INGESTION
    # ═══════════════════════════════════════════════════════════

    async def ingest(
        self,
        owner_id: str,
        text: str,
        source_type: str = "note",
        source_id: str | None = None,
        now: datetime | None = None,
    ) -> IngestResult:
        """
        Ingest one note, meeting transcript or message.

        Args:
            owner_id: Owner the note belongs to
            text: Raw note text
            source_type: Kind of source (note, meeting, message, ...)
            source_id: Caller-side identifier of the source

        Returns:
            IngestResult with touched entities, recorded facts, stored
            relationships and detected changes (empty on store failure)
        """
        if not owner_id or not text or not text.strip():
            return IngestResult()

        now = now or datetime.now()
        try:
            return await self._ingest(owner_id, text.strip(), source_type, source_id, now)
        except StoreError as e:
            logger.error(
                "Ingestion failed, store unavailable: {}", e,
                extra={"operation": "ingest", "owner_id": owner_id, "error": str(e)},
            )
        except Exception as e:
            logger.error(
                "Unexpected error during ingestion: {}", e,
                extra={"operation": "ingest", "owner_id": owner_id, "error_type": type(e).__name__},
            )
        return IngestResult()

    def ingest_in_background(
        self,
        owner_id: str,
        text: str,
        source_type: str = "note",
        source_id: str | None = None,
    ) -> asyncio.Task:
        """Fire-and-forget ingestion bounded by the ingestion job timeout; close() awaits it."""
        task = asyncio.create_task(self._ingest_job(owner_id, text, source_type, source_id))
        self._jobs.add(task)
        task.add_done_callback(self._jobs.discard)
        return task

    async def _ingest_job(
        self, owner_id: str, text: str, source_type: str, source_id: str | None
    ) -> IngestResult:
        try:
            return await asyncio.wait_for(
                self.ingest(owner_id, text, source_type, source_id),
                timeout=self.config.ingestion.job_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Background ingestion timed out",
                extra={"owner_id": owner_id, "timeout": self.config.ingestion.job_timeout},
            )
            return IngestResult()

    async def _ingest(
        self, owner_id: str, text: str, source_type: str, source_id: str | None, now: datetime
    ) -> IngestResult:
        note = Note(
            id=generate_note_id(),
            owner_id=owner_id,
            text=text,
            source_type=source_type,
            source_id=source_id,
            created_at=now,
        )
        await self.store.add_note(note)
        source_ref = source_id or note.id

        known = await self.index.get(owner_id)
        changes = self.detector.detect(text, [ref for refs in known.values() for ref in refs])

        extraction = await self.extractor.extract(
            text,
            known_names=await self.index.known_names(
                owner_id, limit=self.config.ingestion.known_entity_limit
            ),
            use_external=self.config.ingestion.use_external_extraction,
        )
        changes.extend(await self._collaborator_changes(owner_id, extraction, changes))

        result = IngestResult(note_id=note.id, changes=changes)
        touched: dict[str, Entity] = {}
        suppressed: set[str] = set()

        # 1. State changes of known entities
        by_name: dict[str, list[ChangeCandidate]] = {}
        for candidate in changes:
            by_name.setdefault(normalize_name(candidate.entity_name), []).append(candidate)

        for key, candidates in by_name.items():
            entity = await self.supersession.resolve(owner_id, candidates[0].entity_name)
            if entity is None:
                continue
            if entity.status == EntityStatus.DISMISSED:
                suppressed.add(key)
                continue
            if entity.status != EntityStatus.ACTIVE:
                continue

            if await self.supersession.is_real_change(entity, candidates):
                outcome = await self.supersession.supersede(
                    entity, candidates, source_ref, now, text=text
                )
                touched[key] = outcome.new_entity
                result.facts.extend(outcome.facts)
            else:
                apply_refresh(entity, now)
                updated, facts = await self.supersession.apply_additive(
                    entity, candidates, source_ref, now
                )
                if updated is None:
                    suppressed.add(key)
                    continue
                touched[key] = updated
                result.facts.extend(facts)

        # 2. Every other mention: refresh the authoritative head or create one
        index_stale = False
        for mention in extraction.mentions:
            key = normalize_name(mention.name)
            if key in touched or key in suppressed:
                continue
            entity, is_new = await self._upsert_mention(owner_id, mention, now)
            if entity is None:
                suppressed.add(key)
                continue
            touched[key] = entity
            index_stale = index_stale or is_new

        if index_stale:
            self.index.invalidate(owner_id)

        # 3. Relationships between touched entities
        recorded = {(f.entity_id, f.predicate, f.object_text.lower()) for f in result.facts}
        for candidate in extraction.relationships:
            subject_key = normalize_name(candidate.subject_name)
            object_key = normalize_name(candidate.object_name)
            if subject_key in suppressed or object_key in suppressed:
                continue
            subject = touched.get(subject_key)
            obj = touched.get(object_key)
            record_fact = subject is not None and (
                subject.id,
                candidate.predicate,
                candidate.object_name.lower(),
            ) not in recorded
            relationship, facts = await self.relationships.store_relationship(
                owner_id,
                candidate,
                subject_entity_id=subject.id if subject else None,
                object_entity_id=obj.id if obj else None,
                source_id=source_ref,
                now=now,
                record_fact=record_fact,
            )
            if relationship is not None:
                result.relationships.append(relationship)
                result.facts.extend(facts)

        result.entities = list(touched.values())
        logger.info(
            "Ingested note {}", note.id,
            extra={
                "owner_id": owner_id,
                "entities": len(result.entities),
                "facts": len(result.facts),
                "relationships": len(result.relationships),
                "changes": len(changes),
                "external": extraction.used_external,
            },
        )
        return result

    async def _collaborator_changes(
        self, owner_id: str, extraction: NoteExtraction, pattern_changes: list[ChangeCandidate]
    ) -> list[ChangeCandidate]:
        """Changes reported by text understanding, mapped onto known entities."""
        seen = {
            (c.entity_id, c.change_type, (c.new_value or "").lower()) for c in pattern_changes
        }
        candidates = []
        for change in extraction.changes:
            try:
                change_type = ChangeType(change.change_type.strip().lower())
            except ValueError:
                logger.debug("Dropping change with unknown type: {!r}", change.change_type)
                continue

            refs = await self.index.lookup(owner_id, change.entity_name)
            if not refs:
                continue
            ref = refs[0]

            value = change.new_value.strip() if change.new_value else None
            key = (ref.id, change_type, (value or "").lower())
            if key in seen:
                continue
            seen.add(key)

            candidates.append(
                ChangeCandidate(
                    entity_id=ref.id,
                    entity_name=ref.name,
                    change_type=change_type,
                    matched_text=change.evidence,
                    new_value=value,
                    predicate=_CHANGE_PREDICATES[change_type],
                    context_window=change.evidence,
                    source="collaborator",
                )
            )
        return candidates

    async def _upsert_mention(
        self, owner_id: str, mention: EntityMention, now: datetime
    ) -> tuple[Entity | None, bool]:
        """
        Apply one mention to the authoritative record for its name.

        The write is guarded on the status that was read. When a concurrent
        supersession retires the head first, the name is resolved again and the
        mention lands on the new head.

        Returns:
            (entity, index_changed); entity is None when the name is dismissed
        """
        for _ in range(_MENTION_WRITE_ATTEMPTS):
            entity = await self.supersession.resolve(owner_id, mention.name)

            if entity is None:
                entity = Entity(
                    id=generate_entity_id(),
                    owner_id=owner_id,
                    name=mention.name,
                    kind=mention.kind,
                    relationship=mention.relationship or "",
                    first_mentioned_at=now,
                    last_mentioned_at=now,
                    context_notes=[mention.context] if mention.context else [],
                    sentiment_average=mention.sentiment,
                    created_at=now,
                    updated_at=now,
                )
                await self.store.create_entity(entity)
                logger.debug(
                    "Created entity {}", entity.name,
                    extra={"entity_id": entity.id, "owner_id": owner_id, "kind": entity.kind.value},
                )
                return entity, True

            if entity.status == EntityStatus.DISMISSED:
                return None, False

            read_status = entity.status
            reactivated = read_status == EntityStatus.ARCHIVED
            if reactivated:
                entity.status = EntityStatus.ACTIVE
            self._apply_mention(entity, mention, now)

            if await self.store.update_entity(entity, expected_status=read_status):
                if reactivated:
                    logger.info(
                        "Reactivated archived entity {}", entity.name,
                        extra={"entity_id": entity.id, "owner_id": owner_id},
                    )
                return entity, reactivated

            logger.debug(
                "Head of {} changed during mention write, resolving again", mention.name,
                extra={"entity_id": entity.id, "owner_id": owner_id},
            )

        return None, False

    def _apply_mention(self, entity: Entity, mention: EntityMention, now: datetime) -> None:
        entity.record_mention(mention.context, now, self.config.ingestion.max_context_notes)
        apply_refresh(entity, now)

        if mention.relationship and not entity.confirmed:
            entity.relationship = mention.relationship
        if mention.source != "local":
            entity.kind = mention.kind
        if mention.sentiment is not None:
            if entity.sentiment_average is None:
                entity.sentiment_average = mention.sentiment
            else:
                previous = entity.mention_count - 1
                entity.sentiment_average = round(
                    (entity.sentiment_average * previous + mention.sentiment) / entity.mention_count,
                    4,
                )

    # ═══════════════════════════════════════════════════════════
    # READ API
    # ═══════════════════════════════════════════════════════════

    async def get_entities(
        self, owner_id: str, entity_filter: EntityFilter | None = None
    ) -> list[Entity]:
        return await self._read(
            "get_entities",
            self.store.query_entities(owner_id, entity_filter or EntityFilter()),
            [],
        )

    async def get_entity(self, owner_id: str, entity_id: str) -> Entity | None:
        entity = await self._read("get_entity", self.store.get_entity(entity_id), None)
        if entity is None or entity.owner_id != owner_id:
            return None
        return entity

    async def get_authoritative_entity(self, owner_id: str, name: str) -> Entity | None:
        """The single current record for a name (newest active wins)."""
        return await self._read(
            "get_authoritative_entity", self.supersession.get_authoritative(owner_id, name), None
        )

    async def get_entity_facts(self, owner_id: str, entity_id: str) -> list[Fact]:
        """Facts of every version in the entity's supersession chain, newest first."""
        chain = await self.get_version_history(owner_id, entity_id)
        if not chain:
            return []
        return await self._read(
            "get_entity_facts", self.store.get_facts([e.id for e in chain]), []
        )

    async def get_relationships(
        self, owner_id: str, entity_name: str | None = None, include_superseded: bool = False
    ) -> list[Relationship]:
        return await self._read(
            "get_relationships",
            self.relationships.get_relationships(owner_id, entity_name, include_superseded),
            [],
        )

    async def get_inferences_for_context(
        self, owner_id: str, entity_names: list[str], now: datetime | None = None
    ) -> list[Inference]:
        return await self._read(
            "get_inferences_for_context",
            self.inference.get_inferences_for_context(owner_id, entity_names, now),
            [],
        )

    async def get_entities_by_topic(self, owner_id: str, topic: str, limit: int = 20) -> list[Entity]:
        if not topic or not topic.strip():
            return []
        return await self.get_entities(
            owner_id, EntityFilter(topic=topic, order_by="mention_count", limit=limit)
        )

    async def get_entities_by_importance(
        self, owner_id: str, importance: Importance | list[Importance], limit: int = 20
    ) -> list[Entity]:
        tiers = importance if isinstance(importance, list) else [importance]
        return await self.get_entities(
            owner_id, EntityFilter(importance=tiers, order_by="importance_score", limit=limit)
        )

    async def search_entities(
        self, owner_id: str, query: str, limit: int = 10, min_score: float = 0.0
    ) -> list[tuple[Entity, float]]:
        """
        Rank the owner's re-indexed entities by cosine similarity to the query.

        Returns:
            List of (Entity, score) tuples, best first; empty without an embedder
        """
        if not query or not query.strip():
            raise ValidationError("query cannot be empty")
        if self.embedder is None:
            return []

        try:
            query_embedding = await asyncio.wait_for(
                self.embedder.embed(query), timeout=self.config.collaborators.timeout
            )
        except asyncio.TimeoutError:
            logger.warning("Query embedding timed out", extra={"owner_id": owner_id})
            return []
        except Exception as e:
            logger.warning(
                "Query embedding failed: {}", e,
                extra={"owner_id": owner_id, "error_type": type(e).__name__},
            )
            return []

        entities = await self.get_entities(owner_id, EntityFilter(limit=1000))
        scored = []
        for entity in entities:
            if not entity.embedding:
                continue
            score = round(cosine_similarity(query_embedding, entity.embedding), 4)
            if score >= min_score:
                scored.append((entity, score))

        scored.sort(key=lambda pair: pair[1], reverse=True)
        return scored[:limit]

    async def get_version_history(self, owner_id: str, entity_id: str) -> list[Entity]:
        """Supersession chain containing the entity, oldest first."""
        chain = await self._read(
            "get_version_history", self.supersession.get_version_history(entity_id), []
        )
        return [e for e in chain if e.owner_id == owner_id]

    async def detect_contradictions(
        self, owner_id: str, entity_name: str | None = None
    ) -> list[FactContradiction]:
        return await self._read(
            "detect_contradictions", self.contradictions.detect(owner_id, entity_name), []
        )

    @staticmethod
    def format_contradictions(contradictions: list[FactContradiction]) -> str | None:
        return format_for_context(contradictions)

    async def _read(self, operation: str, pending, default: Any) -> Any:
        try:
            return await pending
        except StoreError as e:
            logger.error(
                "{} failed, store unavailable: {}", operation, e,
                extra={"operation": operation, "error": str(e)},
            )
            return default

    # ═══════════════════════════════════════════════════════════
    # USER ACTIONS
    # ═══════════════════════════════════════════════════════════

    async def dismiss_entity(self, owner_id: str, entity_id: str) -> Entity:
        """
        Dismiss an entity; later mentions of its name are ignored.

        Raises:
            NotFoundError: If the entity does not exist for the owner
        """
        entity = await self._require_entity(owner_id, entity_id)
        if entity.status == EntityStatus.DISMISSED:
            return entity

        async with self.locks.hold(entity.id):
            entity.status = EntityStatus.DISMISSED
            entity.updated_at = max(datetime.now(), entity.updated_at)
            await self.store.update_entity(entity)

        self.index.invalidate(owner_id)
        logger.info(
            "Dismissed entity {}", entity.name,
            extra={"entity_id": entity.id, "owner_id": owner_id},
        )
        return entity

    async def confirm_entity(
        self, owner_id: str, entity_id: str, relationship: str | None = None
    ) -> Entity:
        """
        Confirm an entity, reactivating it when dismissed or archived.

        Raises:
            NotFoundError: If the entity does not exist for the owner
        """
        entity = await self._require_entity(owner_id, entity_id)

        async with self.locks.hold(entity.id):
            if entity.status in (EntityStatus.DISMISSED, EntityStatus.ARCHIVED):
                entity.status = EntityStatus.ACTIVE
            entity.confirmed = True
            if relationship and relationship.strip():
                entity.relationship = relationship.strip()
            entity.updated_at = max(datetime.now(), entity.updated_at)
            await self.store.update_entity(entity, allow_dismissed=True)

        self.index.invalidate(owner_id)
        logger.info(
            "Confirmed entity {}", entity.name,
            extra={"entity_id": entity.id, "owner_id": owner_id},
        )
        return entity

    async def _require_entity(self, owner_id: str, entity_id: str) -> Entity:
        if not entity_id:
            raise ValidationError("entity_id is required")
        entity = await self.store.get_entity(entity_id)
        if entity is None or entity.owner_id != owner_id:
            raise NotFoundError(f"Entity not found: {entity_id}")
        return entity

    # ═══════════════════════════════════════════════════════════
    # MAINTENANCE
    # ═══════════════════════════════════════════════════════════

    async def run_memory_maintenance(
        self, owner_id: str, now: datetime | None = None
    ) -> MaintenanceResult:
        """
        Full maintenance pass for one owner.

        Order: duplicate-head repair, decay, inference cleanup, importance
        classification, inference generation. A failing step is logged and
        recorded in errors; later steps still run.
        """
        now = now or datetime.now()
        result = MaintenanceResult(owner_id=owner_id, started_at=now)
        logger.info("Starting memory maintenance", extra={"owner_id": owner_id})

        try:
            result.repaired_heads = await self.supersession.repair_heads(owner_id, now)
        except Exception as e:
            self._record_failure(result, "repair_heads", e)

        try:
            result.decay = await self.decay.run_decay(owner_id, now)
            if result.decay.archived:
                self.index.invalidate(owner_id)
        except Exception as e:
            self._record_failure(result, "decay", e)

        try:
            result.expired_inferences = await self.decay.cleanup_expired_inferences(owner_id, now)
        except Exception as e:
            self._record_failure(result, "inference_cleanup", e)

        try:
            result.classification = await self.importance.classify_batch(owner_id, now)
        except Exception as e:
            self._record_failure(result, "importance_classification", e)

        try:
            result.inference = await self.inference.generate(owner_id, now)
        except Exception as e:
            self._record_failure(result, "inference_generation", e)

        result.finished_at = datetime.now()
        logger.info(
            "Memory maintenance complete",
            extra={
                "owner_id": owner_id,
                "decayed": result.decay.decayed,
                "archived": result.decay.archived,
                "inferences": result.inference.created,
                "errors": len(result.errors),
            },
        )
        return result

    async def consolidate(self, owner_id: str, now: datetime | None = None) -> ConsolidationResult:
        try:
            return await self.consolidator.run(owner_id, now)
        except Exception as e:
            logger.error(
                "Consolidation failed: {}", e,
                extra={"owner_id": owner_id, "error_type": type(e).__name__},
            )
            return ConsolidationResult()

    @staticmethod
    def _record_failure(result: MaintenanceResult, step: str, error: Exception) -> None:
        logger.error(
            "Maintenance step {} failed: {}", step, error,
            extra={"owner_id": result.owner_id, "step": step, "error_type": type(error).__name__},
        )
        result.errors.append(f"{step}: {error}")

    def start_maintenance_worker(
        self, owner_ids: list[str] | None = None, interval_hours: float | None = None
    ):
        """
        Start the background maintenance worker.

        Args:
            owner_ids: Owners to maintain (every owner in the store when omitted)
            interval_hours: Hours between runs (configured interval when omitted)
        """
        if self._worker_task is None or self._worker_task.done():
            interval = interval_hours or self.config.maintenance.interval_hours
            self._worker_task = asyncio.create_task(self._maintenance_worker(owner_ids, interval))

    def stop_maintenance_worker(self):
        """Stop the background maintenance worker."""
        if self._worker_task and not self._worker_task.done():
            self._worker_task.cancel()

    async def _maintenance_worker(self, owner_ids: list[str] | None, interval_hours: float):
        """Periodically maintain (and consolidate) every owner."""
        while True:
            try:
                owners = owner_ids or await self.store.list_owner_ids()
                logger.info("Starting periodic maintenance for {} owners", len(owners))

                for owner_id in owners:
                    try:
                        await asyncio.wait_for(
                            self._maintain_owner(owner_id),
                            timeout=self.config.maintenance.job_timeout,
                        )
                    except asyncio.TimeoutError:
                        logger.warning(
                            "Maintenance timed out",
                            extra={
                                "owner_id": owner_id,
                                "timeout": self.config.maintenance.job_timeout,
                            },
                        )

                logger.info("Periodic maintenance complete")
                await asyncio.sleep(interval_hours * 3600)

            except asyncio.CancelledError:
                logger.info("Background maintenance worker stopped")
                break
            except Exception as e:
                logger.error("Error in maintenance worker: {}", e)
                await asyncio.sleep(interval_hours * 3600)

    async def _maintain_owner(self, owner_id: str) -> None:
        await self.run_memory_maintenance(owner_id)
        if self.config.maintenance.consolidate:
            await self.consolidate(owner_id)

    # ═══════════════════════════════════════════════════════════
    # LIFECYCLE
    # ═══════════════════════════════════════════════════════════

    async def close(self) -> None:
        """Wait for background ingestion, stop the worker and close connections."""
        logger.info("Shutting down Memory Graph")

        if self._jobs:
            await asyncio.gather(*list(self._jobs), return_exceptions=True)

        self.stop_maintenance_worker()
        if self._worker_task:
            try:
                await self._worker_task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.warning("Error during worker shutdown: {}", e)

        await self.store.close()
        await self.collaborators.close()
        if self.embedder:
            await self.embedder.close()

        logger.info("Memory Graph shutdown complete")
