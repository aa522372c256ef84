"""
Entity and relationship extraction.

Two complementary paths funnel into the same result:
- local lexical heuristics (always available, synchronous)
- the external text-understanding collaborator (optional, higher precision)

Results are merged by name; external fields win when present.
"""

import asyncio
import re

from pydantic import BaseModel, Field

from entity_memory.core.collaborators.base import TextUnderstanding
from entity_memory.models.entity import EntityKind, normalize_name
from entity_memory.models.extraction import DetectedChange, ExtractionResult
from entity_memory.models.relationships import RelationshipCandidate, normalize_predicate
from entity_memory.models.results import ChangeType
from entity_memory.services.change_detection import ChangeClassifier, RegexChangeClassifier
from entity_memory.utils.logger import get_logger

logger = get_logger(__name__)

SKIP_WORDS = frozenset(
    {
        # days and months
        "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
        "january", "february", "march", "april", "may", "june", "july", "august",
        "september", "october", "november", "december",
        # relative time
        "today", "tomorrow", "yesterday", "tonight", "morning", "evening", "weekend",
        # determiners, pronouns, question words
        "the", "this", "that", "these", "those", "a", "an", "i", "i'm", "i've", "i'll",
        "me", "my", "we", "our", "you", "your", "he", "she", "they", "his", "her",
        "their", "it", "its", "what", "when", "where", "why", "how", "which", "who",
        # conversational filler
        "hello", "hi", "hey", "thanks", "please", "sorry", "really", "actually",
        "maybe", "perhaps", "probably", "definitely", "good", "great", "nice", "bad",
        "well", "just", "also", "still", "and", "but", "so", "then", "if", "ok", "okay",
        "yes", "no", "not", "after", "before", "during", "had", "have", "met", "went",
        "got", "feeling", "feel", "need", "note", "notes", "meeting", "call",
    }
)

_NAME = r"[A-Z][\w'-]*(?:\s+[A-Z][\w'-]*)*"
_CAPITALIZED_RUN = re.compile(r"\b[A-Z][a-z][\w'-]*(?:\s+[A-Z][\w'-]*)*")
_POSSESSIVE = re.compile(r"['’]s$")

MAX_NAME_LENGTH = 80

_VALUE_KINDS = {
    ChangeType.JOB: EntityKind.ORGANIZATION,
    ChangeType.LOCATION: EntityKind.PLACE,
    ChangeType.RELATIONSHIP: EntityKind.PERSON,
}


class RelationshipTemplate:
    """Lexical template for one predicate with kind hints for both ends."""

    def __init__(
        self,
        predicate: str,
        pattern: str,
        subject_kind: EntityKind = EntityKind.PERSON,
        object_kind: EntityKind = EntityKind.PERSON,
    ):
        self.predicate = predicate
        self.regex = re.compile(pattern)
        self.subject_kind = subject_kind
        self.object_kind = object_kind


RELATIONSHIP_TEMPLATES: list[RelationshipTemplate] = [
    RelationshipTemplate(
        "works_at",
        rf"(?P<subject>{_NAME})\s+(?i:works|working)\s+(?i:at|for)\s+(?P<object>{_NAME})",
        object_kind=EntityKind.ORGANIZATION,
    ),
    RelationshipTemplate(
        "leads",
        rf"(?P<subject>{_NAME})\s+(?i:is)\s+(?i:the\s+)?"
        r"(?P<role>(?i:CEO|CTO|CFO|COO|founder|cofounder|co-founder))\s+(?i:of|at)\s+"
        rf"(?P<object>{_NAME})",
        object_kind=EntityKind.ORGANIZATION,
    ),
    RelationshipTemplate(
        "knows", rf"(?P<subject>{_NAME})\s+(?i:knows|met)\s+(?P<object>{_NAME})"
    ),
    RelationshipTemplate(
        "partner_of",
        rf"(?P<subject>{_NAME})\s+(?i:is\s+)?(?i:married|engaged)\s+(?i:to)\s+(?P<object>{_NAME})",
    ),
    RelationshipTemplate(
        "lives_in",
        rf"(?P<subject>{_NAME})\s+(?i:lives|living)\s+(?i:in|at)\s+(?P<object>{_NAME})",
        object_kind=EntityKind.PLACE,
    ),
    RelationshipTemplate(
        "friends_with",
        rf"(?P<subject>{_NAME})\s+(?i:is\s+)?(?i:friends?\s+with|close\s+to)\s+(?P<object>{_NAME})",
    ),
    RelationshipTemplate(
        "reports_to",
        rf"(?P<subject>{_NAME})\s+(?i:reports|reporting)\s+(?i:to)\s+(?P<object>{_NAME})",
    ),
    RelationshipTemplate(
        "manages", rf"(?P<subject>{_NAME})\s+(?i:manages|managing)\s+(?P<object>{_NAME})"
    ),
    RelationshipTemplate(
        "invested_in",
        rf"(?P<subject>{_NAME})\s+(?i:invested|investing)\s+(?i:in)\s+(?P<object>{_NAME})",
        object_kind=EntityKind.ORGANIZATION,
    ),
]


class EntityMention(BaseModel):
    """One entity mentioned by a note, after merging both extraction paths."""

    name: str
    kind: EntityKind = EntityKind.PERSON
    relationship: str | None = None
    context: str | None = None
    sentiment: float | None = None
    source: str = "local"


class NoteExtraction(BaseModel):
    """Merged extraction output for one note."""

    mentions: list[EntityMention] = Field(default_factory=list)
    relationships: list[RelationshipCandidate] = Field(default_factory=list)
    changes: list[DetectedChange] = Field(default_factory=list)
    used_external: bool = False

    def mention_for(self, name: str) -> EntityMention | None:
        key = normalize_name(name)
        return next((m for m in self.mentions if normalize_name(m.name) == key), None)


def clean_name(raw: str | None) -> str | None:
    """Trim skip words at either end and possessives; None when nothing name-like is left."""
    if not raw:
        return None
    words = _POSSESSIVE.sub("", raw.strip()).split()
    while words and words[0].lower() in SKIP_WORDS:
        words.pop(0)
    while words and _POSSESSIVE.sub("", words[-1]).lower() in SKIP_WORDS:
        words.pop()
    name = " ".join(_POSSESSIVE.sub("", w) for w in words).strip(" .,;:!?\"'")
    if len(name) < 2 or len(name) > MAX_NAME_LENGTH:
        return None
    return name


class EntityExtractor:
    """
    Extracts entity mentions and relationships from note text.

    The local path is a heuristic stand-in; the collaborator, when configured,
    refines kinds, relationships and sentiment and reports explicit changes.
    """

    def __init__(
        self,
        text_understanding: TextUnderstanding | None = None,
        timeout: float = 30.0,
        context_window: int = 50,
        change_classifier: ChangeClassifier | None = None,
    ):
        self.text_understanding = text_understanding
        self.change_classifier = change_classifier or RegexChangeClassifier()
        self.timeout = timeout
        self.context_window = context_window

    async def extract(
        self, text: str, known_names: list[str] | None = None, use_external: bool = True
    ) -> NoteExtraction:
        local = self.extract_local(text)
        if not use_external or self.text_understanding is None:
            return local

        external = await self._extract_external(text, known_names or [])
        if external is None:
            return local
        return self.merge(local, external, text)

    def extract_local(self, text: str) -> NoteExtraction:
        if not text or not text.strip():
            return NoteExtraction()

        relationships = self._extract_relationships(text)
        hints: dict[str, EntityKind] = {}
        for change in self.change_classifier.find_changes(text):
            value = clean_name(change.value)
            if value and change.change_type in _VALUE_KINDS:
                hints[normalize_name(value)] = _VALUE_KINDS[change.change_type]
        for rel in relationships:
            hints.setdefault(normalize_name(rel.subject_name), EntityKind.coerce(rel.subject_kind))
            hints[normalize_name(rel.object_name)] = EntityKind.coerce(rel.object_kind)

        mentions: dict[str, EntityMention] = {}
        for match in _CAPITALIZED_RUN.finditer(text):
            name = clean_name(match.group(0))
            if not name:
                continue
            key = normalize_name(name)
            if key in mentions:
                continue
            mentions[key] = EntityMention(
                name=name,
                kind=hints.get(key, EntityKind.PERSON),
                context=self._window(text, match.start(), match.end()),
            )

        # Relationship ends the capitalized scan missed (e.g. "iPhone")
        for rel in relationships:
            for name in (rel.subject_name, rel.object_name):
                key = normalize_name(name)
                if key not in mentions:
                    index = text.find(name)
                    mentions[key] = EntityMention(
                        name=name,
                        kind=hints.get(key, EntityKind.PERSON),
                        context=self._window(text, max(index, 0), max(index, 0) + len(name)),
                    )

        return NoteExtraction(mentions=list(mentions.values()), relationships=relationships)

    def merge(self, local: NoteExtraction, external: ExtractionResult, text: str) -> NoteExtraction:
        """Merge external results into local ones by case-insensitive name."""
        mentions = {normalize_name(m.name): m.model_copy() for m in local.mentions}

        for item in external.entities:
            name = clean_name(item.name)
            if not name:
                logger.debug("Dropping malformed extracted entity: {!r}", item.name)
                continue
            key = normalize_name(name)
            existing = mentions.get(key)
            merged = existing or EntityMention(name=name, source="external")
            if item.type:
                merged.kind = EntityKind.coerce(item.type)
            if item.relationship and item.relationship.strip():
                merged.relationship = item.relationship.strip()
            if item.context and item.context.strip():
                merged.context = item.context.strip()
            if item.sentiment is not None:
                merged.sentiment = item.sentiment
            if merged.context is None:
                index = text.lower().find(key)
                if index >= 0:
                    merged.context = self._window(text, index, index + len(key))
            merged.source = "merged" if existing else "external"
            mentions[key] = merged

        relationships = {
            (normalize_name(r.subject_name), r.predicate, normalize_name(r.object_name)): r
            for r in local.relationships
        }
        for item in external.relationships:
            subject = clean_name(item.subject)
            obj = clean_name(item.object)
            predicate = normalize_predicate(item.predicate)
            if not subject or not obj or not predicate:
                continue
            key = (normalize_name(subject), predicate, normalize_name(obj))
            relationships[key] = RelationshipCandidate(
                subject_name=subject,
                predicate=predicate,
                object_name=obj,
                subject_kind=self._kind_of(mentions, subject),
                object_kind=self._kind_of(mentions, obj),
                role=item.role,
                confidence=item.confidence,
                source_note=text[:200],
            )

        changes = [c for c in external.changes_detected if c.entity_name and c.entity_name.strip()]

        return NoteExtraction(
            mentions=list(mentions.values()),
            relationships=list(relationships.values()),
            changes=changes,
            used_external=True,
        )

    async def _extract_external(self, text: str, known_names: list[str]) -> ExtractionResult | None:
        try:
            return await asyncio.wait_for(
                self.text_understanding.extract(text, known_names), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Text understanding timed out, using local extraction",
                extra={"timeout": self.timeout},
            )
        except Exception as e:
            logger.warning(
                "Text understanding failed, using local extraction: {}", e,
                extra={"error_type": type(e).__name__},
            )
        return None

    def _extract_relationships(self, text: str) -> list[RelationshipCandidate]:
        found: dict[tuple[str, str, str], RelationshipCandidate] = {}
        for template in RELATIONSHIP_TEMPLATES:
            for match in template.regex.finditer(text):
                subject = clean_name(match.group("subject"))
                obj = clean_name(match.group("object"))
                if not subject or not obj:
                    continue
                key = (normalize_name(subject), template.predicate, normalize_name(obj))
                found.setdefault(
                    key,
                    RelationshipCandidate(
                        subject_name=subject,
                        predicate=template.predicate,
                        object_name=obj,
                        subject_kind=template.subject_kind.value,
                        object_kind=template.object_kind.value,
                        role=match.groupdict().get("role"),
                        confidence=0.7,
                        source_note=text[:200],
                    ),
                )
        return list(found.values())

    def _window(self, text: str, start: int, end: int) -> str:
        return text[max(0, start - self.context_window) : min(len(text), end + self.context_window)].strip()

    @staticmethod
    def _kind_of(mentions: dict[str, EntityMention], name: str) -> str | None:
        mention = mentions.get(normalize_name(name))
        return mention.kind.value if mention else None
