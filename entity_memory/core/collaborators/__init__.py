"""
External collaborators: text understanding, importance classification,
context compression and cross-entity reasoning.
"""

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

__all__ = [
    "TextUnderstanding",
    "ImportanceOracle",
    "Compressor",
    "Reasoner",
    "LLMTextUnderstanding",
    "LLMImportanceOracle",
    "LLMCompressor",
    "LLMReasoner",
]
