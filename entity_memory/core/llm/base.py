"""
Abstract base class for LLM providers.

The collaborator adapters only need one capability: turn a prompt into
either free text or a validated pydantic model.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel


class LLMProvider(ABC):
    """
    Abstract base for LLM text generation providers.

    Responsibilities:
    - Text completion
    - Structured output validated against a pydantic model
    """

    model: str

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        response_format: type[BaseModel] | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.0,
        system_prompt: str | None = None,
        **kwargs,
    ) -> BaseModel | str:
        """
        Generate completion from prompt.

        Args:
            prompt: The user prompt
            response_format: Optional pydantic model for structured output
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            system_prompt: Optional system instruction
            **kwargs: Provider-specific parameters

        Returns:
            Instance of response_format if provided, else string

        Raises:
            ValidationError: If the prompt is empty
            LLMError: If the provider call or output parsing fails
        """

    @abstractmethod
    async def close(self):
        """Release provider connections."""

    @staticmethod
    def build_messages(prompt: str, system_prompt: str | None = None) -> list[dict[str, str]]:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        return messages
