"""
OpenAI LLM provider using the official SDK.
"""

from openai import AsyncOpenAI
from pydantic import BaseModel

from entity_memory.core.llm.base import LLMProvider
from entity_memory.utils.exceptions import LLMError, ValidationError
from entity_memory.utils.logger import get_logger

logger = get_logger(__name__)


class OpenAILLM(LLMProvider):
    """
    OpenAI LLM provider.

    Structured outputs go through the beta parse API so the response is
    validated against the pydantic model by the SDK.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        timeout: float = 60.0,
    ):
        self.model = model
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)

    async def complete(
        self,
        prompt: str,
        response_format: type[BaseModel] | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.0,
        system_prompt: str | None = None,
        **kwargs,
    ) -> BaseModel | str:
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt cannot be empty")

        params = {
            "model": self.model,
            "messages": self.build_messages(prompt, system_prompt),
            "temperature": temperature,
            "max_tokens": max_tokens,
            **kwargs,
        }

        try:
            if response_format:
                response = await self.client.beta.chat.completions.parse(
                    **params, response_format=response_format
                )
                parsed = response.choices[0].message.parsed
                if not parsed:
                    raise LLMError(
                        "OpenAI returned empty parsed response",
                        context={"model": self.model, "format": response_format.__name__},
                    )
                return parsed

            response = await self.client.chat.completions.create(**params)
            content = response.choices[0].message.content
            if not content:
                raise LLMError("OpenAI returned empty content", context={"model": self.model})
            return content
        except LLMError:
            raise
        except Exception as e:
            logger.error(
                "OpenAI API error: {}", e,
                extra={"model": self.model, "error": str(e), "error_type": type(e).__name__},
            )
            raise LLMError(f"OpenAI API error: {e}") from e

    async def close(self):
        await self.client.close()
