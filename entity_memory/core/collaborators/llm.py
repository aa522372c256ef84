"""
LLM-backed collaborator adapters.

Every adapter turns provider failures into CollaboratorError so callers
have one failure type to degrade on.
"""

from entity_memory.config import LLMConfig
from entity_memory.core.collaborators.base import (
    Compressor,
    ImportanceOracle,
    Reasoner,
    TextUnderstanding,
)
from entity_memory.core.collaborators.prompts import (
    COMPRESSION_PROMPT,
    EXTRACTION_PROMPT,
    IMPORTANCE_PROMPT,
    INFERENCE_PROMPT,
)
from entity_memory.core.llm.base import LLMProvider
from entity_memory.models.entity import Entity
from entity_memory.models.extraction import (
    CompressedSummary,
    CompressionRequest,
    ExtractionResult,
    ImportanceClassification,
    InferenceBatch,
    ProposedInference,
)
from entity_memory.models.relationships import Note, Relationship
from entity_memory.utils.exceptions import CollaboratorError, EntityMemoryError
from entity_memory.utils.logger import get_logger

logger = get_logger(__name__)


class _LLMCollaborator:
    """Shared plumbing: one structured completion per call."""

    name = "collaborator"

    def __init__(self, llm: LLMProvider, config: LLMConfig | None = None):
        self.llm = llm
        self.config = config or LLMConfig()

    async def _ask(self, prompt: str, response_format, max_tokens: int | None = None):
        try:
            return await self.llm.complete(
                prompt,
                response_format=response_format,
                max_tokens=max_tokens or self.config.max_tokens,
                temperature=self.config.temperature,
            )
        except EntityMemoryError as e:
            logger.warning(
                "{} call failed: {}", self.name, e,
                extra={"collaborator": self.name, "error_type": type(e).__name__},
            )
            raise CollaboratorError(f"{self.name} failed: {e}", context=e.context) from e


class LLMTextUnderstanding(_LLMCollaborator, TextUnderstanding):
    name = "text_understanding"

    async def extract(self, text: str, known_entities: list[str]) -> ExtractionResult:
        known_context = (
            f"\nKnown entities (reference these if mentioned): {', '.join(known_entities)}\n"
            if known_entities
            else ""
        )
        prompt = EXTRACTION_PROMPT.format(known_context=known_context, text=text)
        return await self._ask(prompt, ExtractionResult)


class LLMImportanceOracle(_LLMCollaborator, ImportanceOracle):
    name = "importance_classifier"

    async def classify(self, entity: Entity) -> ImportanceClassification:
        prompt = IMPORTANCE_PROMPT.format(
            name=entity.name,
            kind=entity.kind.value,
            relationship=entity.relationship or "unknown",
            mention_count=entity.mention_count,
            context=" | ".join(entity.context_notes[-3:]) or "none",
        )
        return await self._ask(prompt, ImportanceClassification, max_tokens=256)


class LLMCompressor(_LLMCollaborator, Compressor):
    name = "compressor"

    async def compress(self, request: CompressionRequest) -> str:
        relationship_context = (
            "Known relationships:\n" + "\n".join(f"- {r}" for r in request.relationships) + "\n"
            if request.relationships
            else ""
        )
        notes = "\n".join(
            f"{i}. {note}" for i, note in enumerate(request.context_notes[:10], start=1)
        )
        prompt = COMPRESSION_PROMPT.format(
            name=request.entity_name,
            kind=request.entity_type,
            relationship_context=relationship_context,
            notes=notes,
        )
        result: CompressedSummary = await self._ask(prompt, CompressedSummary, max_tokens=300)
        summary = result.summary.strip()
        if not summary:
            raise CollaboratorError("compressor returned an empty summary")
        return summary


class LLMReasoner(_LLMCollaborator, Reasoner):
    name = "reasoner"

    async def infer(
        self,
        entities: list[Entity],
        relationships: list[Relationship],
        recent_notes: list[Note],
    ) -> list[ProposedInference]:
        entity_lines = "\n".join(
            f"- {e.name} ({e.kind.value}): "
            f"{e.summary or ' '.join(e.context_notes[-2:]) or 'No context'}"
            for e in entities
        )
        relationship_context = (
            "\nKnown relationships:\n"
            + "\n".join(f"- {r.subject_name} {r.predicate} {r.object_name}" for r in relationships)
            + "\n"
            if relationships
            else ""
        )
        notes_context = (
            "\nRecent notes:\n"
            + "\n".join(f"{i}. {n.text[:200]}" for i, n in enumerate(recent_notes[:5], start=1))
            + "\n"
            if recent_notes
            else ""
        )
        prompt = INFERENCE_PROMPT.format(
            entities=entity_lines,
            relationship_context=relationship_context,
            notes_context=notes_context,
        )
        batch: InferenceBatch = await self._ask(prompt, InferenceBatch)
        return batch.inferences
