"""
Factory wiring LLM-backed collaborators from configuration.
"""

from entity_memory.config import Config
from entity_memory.core.collaborators.base import (
    Compressor,
    ImportanceOracle,
    Reasoner,
    TextUnderstanding,
)
from entity_memory.core.collaborators.llm import (
    LLMCompressor,
    LLMImportanceOracle,
    LLMReasoner,
    LLMTextUnderstanding,
)
from entity_memory.core.factory.llm_factory import LLMFactory
from entity_memory.core.llm.base import LLMProvider


class Collaborators:
    """The four external collaborators; any of them may be absent."""

    def __init__(
        self,
        text_understanding: TextUnderstanding | None = None,
        importance_oracle: ImportanceOracle | None = None,
        compressor: Compressor | None = None,
        reasoner: Reasoner | None = None,
        llm: LLMProvider | None = None,
    ):
        self.text_understanding = text_understanding
        self.importance_oracle = importance_oracle
        self.compressor = compressor
        self.reasoner = reasoner
        self.llm = llm

    async def close(self):
        if self.llm:
            await self.llm.close()


class CollaboratorFactory:
    """Builds every collaborator on top of one shared LLM provider."""

    @staticmethod
    def create(config: Config, llm: LLMProvider | None = None) -> Collaborators:
        if not config.collaborators.enabled:
            return Collaborators()

        llm = llm or LLMFactory.create(config.llm)
        return Collaborators(
            text_understanding=LLMTextUnderstanding(llm, config.llm),
            importance_oracle=LLMImportanceOracle(llm, config.llm),
            compressor=LLMCompressor(llm, config.llm),
            reasoner=LLMReasoner(llm, config.llm),
            llm=llm,
        )
