"""
Conflict detection: flag likely state changes for entities the owner already knows.

Fast local filter, no network calls. Lexical templates are grouped into four
families (job, location, relationship, status) behind a pluggable
ChangeClassifier, so a model-backed classifier can replace the regexes
without touching call sites.
"""

import re
from abc import ABC, abstractmethod

from pydantic import BaseModel

from entity_memory.models.entity import EntityRef, normalize_name
from entity_memory.models.results import ChangeCandidate, ChangeType
from entity_memory.utils.logger import get_logger

logger = get_logger(__name__)

# Capitalized run: "Acme", "Acme Corp", "New York".
_VALUE = r"(?P<value>[A-Z][\w&'-]*(?:\s+[A-Z][\w&'-]*)*)"
_SUBJECT = r"(?P<subject>\w+)"
_ROLE_SUFFIX = r"(?:\s+(?i:as)\s+(?i:(?:an?|the)\s+)?(?P<role>[\w-]+))?"


class ChangeMatch(BaseModel):
    """One template hit in the text."""

    change_type: ChangeType
    subject: str
    matched_text: str
    start: int
    end: int
    value: str | None = None
    role: str | None = None
    predicate: str | None = None


class ChangeClassifier(ABC):
    """Finds change statements in free text."""

    @abstractmethod
    def find_changes(self, text: str) -> list[ChangeMatch]:
        """All change statements in the text, in order of appearance per template."""


class ChangeTemplate:
    """Compiled lexical template of one change family."""

    def __init__(self, change_type: ChangeType, pattern: str, predicate: str | None = None):
        self.change_type = change_type
        self.regex = re.compile(pattern)
        self.predicate = predicate

    def finditer(self, text: str):
        for match in self.regex.finditer(text):
            groups = match.groupdict()
            yield ChangeMatch(
                change_type=self.change_type,
                subject=groups["subject"],
                matched_text=match.group(0),
                start=match.start(),
                end=match.end(),
                value=groups.get("value"),
                role=groups.get("role"),
                predicate=self.predicate,
            )


DEFAULT_TEMPLATES: list[ChangeTemplate] = [
    # job
    ChangeTemplate(
        ChangeType.JOB,
        _SUBJECT
        + r"\s+(?i:(?:started|starting|is\s+now|now)\s+(?:at|with)|joined|joining)\s+"
        + _VALUE
        + _ROLE_SUFFIX,
        predicate="works_at",
    ),
    ChangeTemplate(
        ChangeType.JOB,
        _SUBJECT + r"\s+(?i:left|leaving|quit|quitting)\s+" + _VALUE,
        predicate="left",
    ),
    ChangeTemplate(
        ChangeType.JOB,
        _SUBJECT
        + r"\s+(?i:is|became|becomes)\s+(?i:the\s+)?(?i:new\s+)?(?P<role>(?!(?i:now)\b)\w+)\s+(?i:at|of)\s+"
        + _VALUE,
        predicate="works_at",
    ),
    ChangeTemplate(
        ChangeType.JOB,
        _SUBJECT
        + r"\s+(?i:got|getting)\s+(?i:a\s+)?(?i:new\s+)?(?i:job)\s+(?i:at|with)\s+"
        + _VALUE,
        predicate="works_at",
    ),
    ChangeTemplate(
        ChangeType.JOB,
        _SUBJECT + r"\s+(?i:works|working)\s+(?i:at|for)\s+" + _VALUE,
        predicate="works_at",
    ),
    # location
    ChangeTemplate(
        ChangeType.LOCATION,
        _SUBJECT + r"\s+(?i:moved|moving|relocated|relocating)\s+(?i:to)\s+" + _VALUE,
        predicate="lives_in",
    ),
    ChangeTemplate(
        ChangeType.LOCATION,
        _SUBJECT
        + r"\s+(?i:is\s+now\s+(?:in|living\s+in|based\s+in)|now\s+lives\s+in|is\s+living\s+in)\s+"
        + _VALUE,
        predicate="lives_in",
    ),
    # relationship
    ChangeTemplate(
        ChangeType.RELATIONSHIP,
        _SUBJECT
        + r"\s+(?i:(?:got\s+)?(?:married|engaged))(?:\s+(?i:to)\s+"
        + _VALUE
        + r")?",
        predicate="partner_of",
    ),
    ChangeTemplate(
        ChangeType.RELATIONSHIP,
        _SUBJECT + r"\s+(?i:and)\s+" + _VALUE + r"\s+(?i:broke\s+up|divorced|separated)",
        predicate="separated_from",
    ),
    ChangeTemplate(
        ChangeType.RELATIONSHIP,
        r"(?P<value>\w+)\s+(?i:and)\s+"
        + _SUBJECT
        + r"\s+(?i:broke\s+up|divorced|separated)",
        predicate="separated_from",
    ),
    ChangeTemplate(
        ChangeType.RELATIONSHIP,
        _SUBJECT
        + r"\s+(?i:broke\s+up\s+with|divorced|separated\s+from)\s+"
        + _VALUE,
        predicate="separated_from",
    ),
    ChangeTemplate(
        ChangeType.RELATIONSHIP,
        _SUBJECT + r"\s+(?i:is\s+)?(?i:now\s+)?(?i:dating|seeing)\s+" + _VALUE,
        predicate="dating",
    ),
    # status
    ChangeTemplate(
        ChangeType.STATUS,
        _SUBJECT + r"\s+(?i:is\s+)?(?i:now\s+)?(?P<value>(?i:pregnant|expecting))",
        predicate="status",
    ),
    ChangeTemplate(
        ChangeType.STATUS,
        _SUBJECT + r"\s+(?i:had|having)\s+(?i:a\s+)?(?P<value>(?i:baby))",
        predicate="status",
    ),
    ChangeTemplate(
        ChangeType.STATUS,
        _SUBJECT + r"\s+(?P<value>(?i:graduated|retiring|retired))",
        predicate="status",
    ),
]


class RegexChangeClassifier(ChangeClassifier):
    """Default classifier backed by compiled lexical templates."""

    def __init__(self, templates: list[ChangeTemplate] | None = None):
        self.templates = templates if templates is not None else DEFAULT_TEMPLATES

    def find_changes(self, text: str) -> list[ChangeMatch]:
        matches = []
        for template in self.templates:
            matches.extend(template.finditer(text))
        return matches


class ConflictDetector:
    """
    Scans note text against known entities.

    Every match is surfaced, including one candidate per entity when several
    known entities share a name; disambiguation happens downstream.
    """

    def __init__(self, classifier: ChangeClassifier | None = None, context_window: int = 50):
        self.classifier = classifier or RegexChangeClassifier()
        self.context_window = context_window

    def detect(self, text: str, known_entities: list[EntityRef]) -> list[ChangeCandidate]:
        if not text or not text.strip() or not known_entities:
            return []

        text_lower = text.lower()
        mentioned = [
            ref for ref in known_entities if ref.name and ref.name.lower() in text_lower
        ]
        if not mentioned:
            return []

        matches = self.classifier.find_changes(text)
        candidates = []
        for ref in mentioned:
            for match in matches:
                if not self._is_about(match.subject, ref.name):
                    continue
                candidates.append(
                    ChangeCandidate(
                        entity_id=ref.id,
                        entity_name=ref.name,
                        change_type=match.change_type,
                        matched_text=match.matched_text,
                        new_value=match.value,
                        role=match.role,
                        predicate=match.predicate,
                        context_window=self._window(text, match.start, match.end),
                    )
                )
                logger.debug(
                    "Detected {} change for {}: {}", match.change_type.value, ref.name, match.matched_text,
                    extra={"entity_id": ref.id, "change_type": match.change_type.value},
                )
        return candidates

    def _window(self, text: str, start: int, end: int) -> str:
        return text[max(0, start - self.context_window) : min(len(text), end + self.context_window)]

    @staticmethod
    def _is_about(subject: str, name: str) -> bool:
        subject_key = normalize_name(subject)
        name_key = normalize_name(name)
        if not subject_key:
            return False
        return subject_key == name_key or subject_key in name_key.split()
