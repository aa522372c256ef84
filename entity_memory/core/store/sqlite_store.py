"""
SQLite entity memory store using aiosqlite.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite

from entity_memory.core.store.base import EntityMemoryStore
from entity_memory.models.entity import (
    Entity,
    EntityFilter,
    EntityKind,
    EntityStatus,
    Importance,
    normalize_name,
)
from entity_memory.models.inference import Inference, InferenceStatus, InferenceType
from entity_memory.models.relationships import Fact, Note, Relationship, RelationshipStatus
from entity_memory.utils.exceptions import StoreError
from entity_memory.utils.logger import get_logger

logger = get_logger(__name__)

_ENTITY_ORDERING = {
    "mention_count": "mention_count DESC",
    "importance_score": "importance_score DESC",
    "last_mentioned_at": "last_mentioned_at DESC",
    "created_at": "created_at DESC",
}


def _ts(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SQLiteEntityStore(EntityMemoryStore):
    """
    SQLite-based store for the entity memory graph.

    Features:
    - WAL journal for concurrent readers
    - JSON columns for context notes, topics, embeddings and inference subjects
    - Conditional UPDATEs for supersession (status CAS) and batch jobs (updated_at CAS)
    """

    def __init__(self, db_path: str = "data/entity_memory.db"):
        """
        Initialize SQLite store.

        Args:
            db_path: Path to SQLite database file (":memory:" for an in-memory database)
        """
        self.db_path = db_path
        self.connection: aiosqlite.Connection | None = None

        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    async def connect(self) -> None:
        """Establish connection to SQLite."""
        if self.connection is not None:
            return
        try:
            self.connection = await aiosqlite.connect(self.db_path)
            self.connection.row_factory = aiosqlite.Row
            await self.connection.execute("PRAGMA journal_mode = WAL")
            await self.connection.commit()
        except aiosqlite.Error as e:
            self.connection = None
            logger.error("SQLite connect failed: {}", e, extra={"db_path": self.db_path})
            raise StoreError(f"Cannot open SQLite database: {e}", context={"db_path": self.db_path}) from e

    async def initialize(self) -> None:
        """Initialize database schema."""
        await self.connect()

        await self._execute(
            """
            CREATE TABLE IF NOT EXISTS entities (
                id TEXT PRIMARY KEY,
                owner_id TEXT NOT NULL,
                name TEXT NOT NULL,
                name_key TEXT NOT NULL,
                kind TEXT NOT NULL,
                relationship TEXT DEFAULT '',
                confirmed INTEGER DEFAULT 0,
                mention_count INTEGER DEFAULT 1,
                first_mentioned_at TEXT NOT NULL,
                last_mentioned_at TEXT NOT NULL,
                context_notes TEXT DEFAULT '[]',
                sentiment_average REAL,
                summary TEXT,
                topics TEXT DEFAULT '[]',
                last_consolidated_at TEXT,
                embedding TEXT,
                importance TEXT NOT NULL,
                importance_score REAL NOT NULL,
                last_decay_at TEXT,
                status TEXT NOT NULL,
                supersedes_id TEXT,
                superseded_by_id TEXT,
                superseded_at TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """
        )

        await self._execute(
            """
            CREATE TABLE IF NOT EXISTS facts (
                id TEXT PRIMARY KEY,
                owner_id TEXT NOT NULL,
                entity_id TEXT NOT NULL,
                predicate TEXT NOT NULL,
                object_text TEXT NOT NULL,
                confidence REAL DEFAULT 0.7,
                source_id TEXT,
                created_at TEXT NOT NULL
            )
        """
        )

        await self._execute(
            """
            CREATE TABLE IF NOT EXISTS relationships (
                id TEXT PRIMARY KEY,
                owner_id TEXT NOT NULL,
                subject_name TEXT NOT NULL,
                subject_key TEXT NOT NULL,
                predicate TEXT NOT NULL,
                object_name TEXT NOT NULL,
                object_key TEXT NOT NULL,
                subject_entity_id TEXT,
                object_entity_id TEXT,
                role TEXT,
                confidence REAL DEFAULT 0.7,
                status TEXT NOT NULL,
                superseded_by_id TEXT,
                source_note TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """
        )

        await self._execute(
            """
            CREATE TABLE IF NOT EXISTS inferences (
                id TEXT PRIMARY KEY,
                owner_id TEXT NOT NULL,
                inference_type TEXT NOT NULL,
                subject_entities TEXT DEFAULT '[]',
                text TEXT NOT NULL,
                confidence REAL NOT NULL,
                supporting_evidence TEXT DEFAULT '[]',
                status TEXT NOT NULL,
                expires_at TEXT,
                created_at TEXT NOT NULL
            )
        """
        )

        await self._execute(
            """
            CREATE TABLE IF NOT EXISTS notes (
                id TEXT PRIMARY KEY,
                owner_id TEXT NOT NULL,
                text TEXT NOT NULL,
                source_type TEXT NOT NULL,
                source_id TEXT,
                created_at TEXT NOT NULL
            )
        """
        )

        for statement in (
            "CREATE INDEX IF NOT EXISTS idx_entities_owner_name ON entities(owner_id, name_key)",
            "CREATE INDEX IF NOT EXISTS idx_entities_owner_status ON entities(owner_id, status)",
            "CREATE INDEX IF NOT EXISTS idx_facts_entity ON facts(entity_id)",
            "CREATE INDEX IF NOT EXISTS idx_facts_owner ON facts(owner_id)",
            "CREATE INDEX IF NOT EXISTS idx_relationships_owner ON relationships(owner_id, status)",
            "CREATE INDEX IF NOT EXISTS idx_relationships_subject ON relationships(owner_id, subject_key)",
            "CREATE INDEX IF NOT EXISTS idx_relationships_object ON relationships(owner_id, object_key)",
            "CREATE INDEX IF NOT EXISTS idx_inferences_owner ON inferences(owner_id, status)",
            "CREATE INDEX IF NOT EXISTS idx_notes_owner ON notes(owner_id, created_at)",
        ):
            await self._execute(statement)

        await self._commit()

    async def close(self) -> None:
        """Close database connection."""
        if self.connection:
            await self.connection.close()
            self.connection = None

    # ═══════════════════════════════════════════════════════════
    # ENTITIES
    # ═══════════════════════════════════════════════════════════

    async def create_entity(self, entity: Entity) -> None:
        await self._execute(
            """
            INSERT INTO entities (
                id, owner_id, name, name_key, kind, relationship, confirmed,
                mention_count, first_mentioned_at, last_mentioned_at, context_notes,
                sentiment_average, summary, topics, last_consolidated_at, embedding,
                importance, importance_score, last_decay_at, status,
                supersedes_id, superseded_by_id, superseded_at, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entity.id,
                entity.owner_id,
                entity.name,
                entity.name_key,
                entity.kind.value,
                entity.relationship,
                int(entity.confirmed),
                entity.mention_count,
                entity.first_mentioned_at.isoformat(),
                entity.last_mentioned_at.isoformat(),
                json.dumps(entity.context_notes),
                entity.sentiment_average,
                entity.summary,
                json.dumps(entity.topics),
                _ts(entity.last_consolidated_at),
                json.dumps(entity.embedding) if entity.embedding else None,
                entity.importance.value,
                entity.importance_score,
                _ts(entity.last_decay_at),
                entity.status.value,
                entity.supersedes_id,
                entity.superseded_by_id,
                _ts(entity.superseded_at),
                entity.created_at.isoformat(),
                entity.updated_at.isoformat(),
            ),
            commit=True,
        )

    async def get_entity(self, entity_id: str) -> Entity | None:
        row = await self._fetchone("SELECT * FROM entities WHERE id = ?", (entity_id,))
        return self._row_to_entity(row) if row else None

    async def update_entity(
        self,
        entity: Entity,
        expected_updated_at: datetime | None = None,
        allow_dismissed: bool = False,
        expected_status: EntityStatus | None = None,
    ) -> bool:
        query = """
            UPDATE entities SET
                name = ?, name_key = ?, kind = ?, relationship = ?, confirmed = ?,
                mention_count = ?, first_mentioned_at = ?, last_mentioned_at = ?,
                context_notes = ?, sentiment_average = ?, summary = ?, topics = ?,
                last_consolidated_at = ?, embedding = ?, importance = ?, importance_score = ?,
                last_decay_at = ?, status = ?, supersedes_id = ?, superseded_by_id = ?,
                superseded_at = ?, updated_at = ?
            WHERE id = ?
        """
        params: list[Any] = [
            entity.name,
            entity.name_key,
            entity.kind.value,
            entity.relationship,
            int(entity.confirmed),
            entity.mention_count,
            entity.first_mentioned_at.isoformat(),
            entity.last_mentioned_at.isoformat(),
            json.dumps(entity.context_notes),
            entity.sentiment_average,
            entity.summary,
            json.dumps(entity.topics),
            _ts(entity.last_consolidated_at),
            json.dumps(entity.embedding) if entity.embedding else None,
            entity.importance.value,
            entity.importance_score,
            _ts(entity.last_decay_at),
            entity.status.value,
            entity.supersedes_id,
            entity.superseded_by_id,
            _ts(entity.superseded_at),
            entity.updated_at.isoformat(),
            entity.id,
        ]

        if expected_updated_at is not None:
            query += " AND updated_at = ?"
            params.append(expected_updated_at.isoformat())
        if expected_status is not None:
            query += " AND status = ?"
            params.append(expected_status.value)
        if not allow_dismissed:
            query += " AND status != ?"
            params.append(EntityStatus.DISMISSED.value)

        cursor = await self._execute(query, params, commit=True)
        return cursor.rowcount == 1

    async def retire_entity(self, entity_id: str, superseded_by_id: str, at: datetime) -> bool:
        cursor = await self._execute(
            """
            UPDATE entities
            SET status = ?, superseded_by_id = ?, superseded_at = ?, updated_at = ?
            WHERE id = ? AND status = ?
            """,
            (
                EntityStatus.SUPERSEDED.value,
                superseded_by_id,
                at.isoformat(),
                at.isoformat(),
                entity_id,
                EntityStatus.ACTIVE.value,
            ),
            commit=True,
        )
        return cursor.rowcount == 1

    async def find_entities_by_name(
        self,
        owner_id: str,
        name: str,
        statuses: list[EntityStatus] | None = None,
    ) -> list[Entity]:
        query = "SELECT * FROM entities WHERE owner_id = ? AND name_key = ?"
        params: list[Any] = [owner_id, normalize_name(name)]
        if statuses:
            query += f" AND status IN ({','.join('?' * len(statuses))})"
            params.extend(s.value for s in statuses)
        query += " ORDER BY created_at DESC"

        rows = await self._fetchall(query, params)
        return [self._row_to_entity(row) for row in rows]

    async def query_entities(self, owner_id: str, entity_filter: EntityFilter) -> list[Entity]:
        query = "SELECT * FROM entities WHERE owner_id = ?"
        params: list[Any] = [owner_id]

        if entity_filter.statuses:
            query += f" AND status IN ({','.join('?' * len(entity_filter.statuses))})"
            params.extend(s.value for s in entity_filter.statuses)

        if entity_filter.kinds:
            query += f" AND kind IN ({','.join('?' * len(entity_filter.kinds))})"
            params.extend(k.value for k in entity_filter.kinds)

        if entity_filter.importance:
            query += f" AND importance IN ({','.join('?' * len(entity_filter.importance))})"
            params.extend(i.value for i in entity_filter.importance)

        if entity_filter.name:
            query += " AND name_key = ?"
            params.append(normalize_name(entity_filter.name))

        if entity_filter.topic:
            query += " AND EXISTS (SELECT 1 FROM json_each(entities.topics) WHERE lower(json_each.value) = ?)"
            params.append(entity_filter.topic.strip().lower())

        if entity_filter.min_mentions is not None:
            query += " AND mention_count >= ?"
            params.append(entity_filter.min_mentions)

        ordering = _ENTITY_ORDERING.get(entity_filter.order_by, _ENTITY_ORDERING["mention_count"])
        query += f" ORDER BY {ordering}, created_at DESC LIMIT ?"
        params.append(entity_filter.limit)

        rows = await self._fetchall(query, params)
        return [self._row_to_entity(row) for row in rows]

    async def get_decay_candidates(self, owner_id: str, cycle_cutoff: datetime) -> list[Entity]:
        rows = await self._fetchall(
            """
            SELECT * FROM entities
            WHERE owner_id = ? AND status = ? AND importance != ?
              AND (last_decay_at IS NULL OR last_decay_at <= ?)
            ORDER BY last_mentioned_at ASC
            """,
            (
                owner_id,
                EntityStatus.ACTIVE.value,
                Importance.CRITICAL.value,
                cycle_cutoff.isoformat(),
            ),
        )
        return [self._row_to_entity(row) for row in rows]

    async def get_consolidation_candidates(
        self, owner_id: str, min_mentions: int, consolidated_before: datetime, limit: int
    ) -> list[Entity]:
        rows = await self._fetchall(
            """
            SELECT * FROM entities
            WHERE owner_id = ? AND status = ? AND mention_count >= ?
              AND (last_consolidated_at IS NULL OR last_consolidated_at < ?)
            ORDER BY mention_count DESC
            LIMIT ?
            """,
            (
                owner_id,
                EntityStatus.ACTIVE.value,
                min_mentions,
                consolidated_before.isoformat(),
                limit,
            ),
        )
        return [self._row_to_entity(row) for row in rows]

    async def list_owner_ids(self) -> list[str]:
        rows = await self._fetchall("SELECT DISTINCT owner_id FROM entities ORDER BY owner_id")
        return [row["owner_id"] for row in rows]

    # ═══════════════════════════════════════════════════════════
    # FACTS
    # ═══════════════════════════════════════════════════════════

    async def add_fact(self, fact: Fact) -> None:
        await self._execute(
            """
            INSERT INTO facts (
                id, owner_id, entity_id, predicate, object_text, confidence, source_id, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                fact.id,
                fact.owner_id,
                fact.entity_id,
                fact.predicate,
                fact.object_text,
                fact.confidence,
                fact.source_id,
                fact.created_at.isoformat(),
            ),
            commit=True,
        )

    async def get_facts(self, entity_ids: list[str]) -> list[Fact]:
        if not entity_ids:
            return []
        rows = await self._fetchall(
            f"""
            SELECT * FROM facts
            WHERE entity_id IN ({','.join('?' * len(entity_ids))})
            ORDER BY created_at DESC
            """,
            entity_ids,
        )
        return [self._row_to_fact(row) for row in rows]

    async def get_owner_facts(self, owner_id: str) -> list[tuple[str, Fact]]:
        rows = await self._fetchall(
            """
            SELECT f.*, e.name AS entity_name
            FROM facts f JOIN entities e ON e.id = f.entity_id
            WHERE f.owner_id = ?
            ORDER BY f.created_at ASC
            """,
            (owner_id,),
        )
        return [(row["entity_name"], self._row_to_fact(row)) for row in rows]

    # ═══════════════════════════════════════════════════════════
    # RELATIONSHIPS
    # ═══════════════════════════════════════════════════════════

    async def add_relationship(self, relationship: Relationship) -> None:
        await self._execute(
            """
            INSERT INTO relationships (
                id, owner_id, subject_name, subject_key, predicate, object_name, object_key,
                subject_entity_id, object_entity_id, role, confidence, status, superseded_by_id,
                source_note, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                relationship.id,
                relationship.owner_id,
                relationship.subject_name,
                normalize_name(relationship.subject_name),
                relationship.predicate,
                relationship.object_name,
                normalize_name(relationship.object_name),
                relationship.subject_entity_id,
                relationship.object_entity_id,
                relationship.role,
                relationship.confidence,
                relationship.status.value,
                relationship.superseded_by_id,
                relationship.source_note,
                relationship.created_at.isoformat(),
                relationship.updated_at.isoformat(),
            ),
            commit=True,
        )

    async def retire_relationship(self, relationship_id: str, superseded_by_id: str) -> bool:
        cursor = await self._execute(
            """
            UPDATE relationships
            SET status = ?, superseded_by_id = ?, updated_at = ?
            WHERE id = ? AND status = ?
            """,
            (
                RelationshipStatus.SUPERSEDED.value,
                superseded_by_id,
                datetime.now().isoformat(),
                relationship_id,
                RelationshipStatus.ACTIVE.value,
            ),
            commit=True,
        )
        return cursor.rowcount == 1

    async def get_relationships(
        self,
        owner_id: str,
        entity_name: str | None = None,
        active_only: bool = True,
        subject_only: bool = False,
    ) -> list[Relationship]:
        query = "SELECT * FROM relationships WHERE owner_id = ?"
        params: list[Any] = [owner_id]

        if active_only:
            query += " AND status = ?"
            params.append(RelationshipStatus.ACTIVE.value)

        if entity_name:
            key = normalize_name(entity_name)
            if subject_only:
                query += " AND subject_key = ?"
                params.append(key)
            else:
                query += " AND (subject_key = ? OR object_key = ?)"
                params.extend([key, key])

        query += " ORDER BY created_at DESC"
        rows = await self._fetchall(query, params)
        return [self._row_to_relationship(row) for row in rows]

    # ═══════════════════════════════════════════════════════════
    # INFERENCES
    # ═══════════════════════════════════════════════════════════

    async def add_inference(self, inference: Inference) -> None:
        await self._execute(
            """
            INSERT INTO inferences (
                id, owner_id, inference_type, subject_entities, text, confidence,
                supporting_evidence, status, expires_at, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                inference.id,
                inference.owner_id,
                inference.inference_type.value,
                json.dumps(inference.subject_entities),
                inference.text,
                inference.confidence,
                json.dumps(inference.supporting_evidence),
                inference.status.value,
                _ts(inference.expires_at),
                inference.created_at.isoformat(),
            ),
            commit=True,
        )

    async def get_active_inferences(self, owner_id: str) -> list[Inference]:
        rows = await self._fetchall(
            """
            SELECT * FROM inferences
            WHERE owner_id = ? AND status = ?
            ORDER BY confidence DESC, created_at DESC
            """,
            (owner_id, InferenceStatus.ACTIVE.value),
        )
        return [self._row_to_inference(row) for row in rows]

    async def expire_inferences(self, owner_id: str, now: datetime) -> int:
        cursor = await self._execute(
            """
            UPDATE inferences SET status = ?
            WHERE owner_id = ? AND status = ? AND expires_at IS NOT NULL AND expires_at <= ?
            """,
            (
                InferenceStatus.EXPIRED.value,
                owner_id,
                InferenceStatus.ACTIVE.value,
                now.isoformat(),
            ),
            commit=True,
        )
        return max(cursor.rowcount, 0)

    # ═══════════════════════════════════════════════════════════
    # NOTES
    # ═══════════════════════════════════════════════════════════

    async def add_note(self, note: Note) -> None:
        await self._execute(
            """
            INSERT INTO notes (id, owner_id, text, source_type, source_id, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                note.id,
                note.owner_id,
                note.text,
                note.source_type,
                note.source_id,
                note.created_at.isoformat(),
            ),
            commit=True,
        )

    async def get_recent_notes(self, owner_id: str, limit: int = 10) -> list[Note]:
        rows = await self._fetchall(
            "SELECT * FROM notes WHERE owner_id = ? ORDER BY created_at DESC LIMIT ?",
            (owner_id, limit),
        )
        return [
            Note(
                id=row["id"],
                owner_id=row["owner_id"],
                text=row["text"],
                source_type=row["source_type"],
                source_id=row["source_id"],
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    # ═══════════════════════════════════════════════════════════
    # HELPERS
    # ═══════════════════════════════════════════════════════════

    async def _execute(
        self, query: str, params: Any = (), commit: bool = False
    ) -> aiosqlite.Cursor:
        await self.connect()
        try:
            cursor = await self.connection.execute(query, params)
            if commit:
                await self.connection.commit()
            return cursor
        except aiosqlite.Error as e:
            logger.error(
                "SQLite error: {}", e,
                extra={"db_path": self.db_path, "statement": query.split()[0], "error": str(e)},
            )
            raise StoreError(f"SQLite error: {e}", context={"db_path": self.db_path}) from e

    async def _commit(self) -> None:
        try:
            await self.connection.commit()
        except aiosqlite.Error as e:
            raise StoreError(f"SQLite commit failed: {e}") from e

    async def _fetchone(self, query: str, params: Any = ()) -> aiosqlite.Row | None:
        cursor = await self._execute(query, params)
        try:
            return await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StoreError(f"SQLite fetch failed: {e}") from e

    async def _fetchall(self, query: str, params: Any = ()) -> list[aiosqlite.Row]:
        cursor = await self._execute(query, params)
        try:
            return list(await cursor.fetchall())
        except aiosqlite.Error as e:
            raise StoreError(f"SQLite fetch failed: {e}") from e

    def _row_to_entity(self, row: aiosqlite.Row) -> Entity:
        return Entity(
            id=row["id"],
            owner_id=row["owner_id"],
            name=row["name"],
            kind=EntityKind(row["kind"]),
            relationship=row["relationship"] or "",
            confirmed=bool(row["confirmed"]),
            mention_count=row["mention_count"],
            first_mentioned_at=datetime.fromisoformat(row["first_mentioned_at"]),
            last_mentioned_at=datetime.fromisoformat(row["last_mentioned_at"]),
            context_notes=json.loads(row["context_notes"] or "[]"),
            sentiment_average=row["sentiment_average"],
            summary=row["summary"],
            topics=json.loads(row["topics"] or "[]"),
            last_consolidated_at=_dt(row["last_consolidated_at"]),
            embedding=json.loads(row["embedding"]) if row["embedding"] else [],
            importance=Importance(row["importance"]),
            importance_score=row["importance_score"],
            last_decay_at=_dt(row["last_decay_at"]),
            status=EntityStatus(row["status"]),
            supersedes_id=row["supersedes_id"],
            superseded_by_id=row["superseded_by_id"],
            superseded_at=_dt(row["superseded_at"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _row_to_fact(self, row: aiosqlite.Row) -> Fact:
        return Fact(
            id=row["id"],
            owner_id=row["owner_id"],
            entity_id=row["entity_id"],
            predicate=row["predicate"],
            object_text=row["object_text"],
            confidence=row["confidence"],
            source_id=row["source_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _row_to_relationship(self, row: aiosqlite.Row) -> Relationship:
        return Relationship(
            id=row["id"],
            owner_id=row["owner_id"],
            subject_name=row["subject_name"],
            predicate=row["predicate"],
            object_name=row["object_name"],
            subject_entity_id=row["subject_entity_id"],
            object_entity_id=row["object_entity_id"],
            role=row["role"],
            confidence=row["confidence"],
            status=RelationshipStatus(row["status"]),
            superseded_by_id=row["superseded_by_id"],
            source_note=row["source_note"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _row_to_inference(self, row: aiosqlite.Row) -> Inference:
        return Inference(
            id=row["id"],
            owner_id=row["owner_id"],
            inference_type=InferenceType(row["inference_type"]),
            subject_entities=json.loads(row["subject_entities"] or "[]"),
            text=row["text"],
            confidence=row["confidence"],
            supporting_evidence=json.loads(row["supporting_evidence"] or "[]"),
            status=InferenceStatus(row["status"]),
            expires_at=_dt(row["expires_at"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )
