"""
Ollama LLM provider using the native ollama-python SDK.
"""

import json

import ollama
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from entity_memory.core.llm.base import LLMProvider
from entity_memory.utils.exceptions import LLMError, ValidationError
from entity_memory.utils.logger import get_logger

logger = get_logger(__name__)


class OllamaLLM(LLMProvider):
    """
    Ollama LLM provider.

    Uses JSON mode for structured outputs; the prompt is extended with an
    example object built from the model's JSON schema so small local models
    return data rather than the schema itself.
    """

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "llama3.1:8b",
        timeout: float = 60.0,
    ):
        self.host = host
        self.model = model
        self.timeout = timeout
        self.client = ollama.AsyncClient(host=host, timeout=timeout)

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

        options = {
            "temperature": temperature,
            "num_predict": max_tokens,
            **kwargs.pop("options", {}),
        }

        format_type = None
        if response_format:
            format_type = "json"
            prompt = self._with_json_instructions(prompt, response_format)

        try:
            response = await self.client.chat(
                model=self.model,
                messages=self.build_messages(prompt, system_prompt),
                format=format_type,
                options=options,
                **kwargs,
            )
        except Exception as e:
            logger.error(
                "Ollama chat error: {}", e,
                extra={"model": self.model, "host": self.host, "error": str(e)},
            )
            raise LLMError(f"Ollama chat error: {e}") from e

        content = response["message"]["content"]

        if not response_format:
            return content

        cleaned = self._extract_json(content)
        try:
            return response_format.model_validate_json(cleaned)
        except PydanticValidationError as e:
            raise LLMError(
                f"Failed to parse structured output as {response_format.__name__}: {e}",
                context={"raw": content[:500], "model": self.model},
            ) from e

    @staticmethod
    def _with_json_instructions(prompt: str, response_format: type[BaseModel]) -> str:
        schema = response_format.model_json_schema()
        example = _example_for(schema, schema.get("$defs", {}))

        return f"""{prompt}

You MUST respond with valid JSON matching this structure:
{json.dumps(example, indent=2)}

IMPORTANT:
- Replace placeholder values like "<field_name>" with actual content
- Return ONLY valid JSON, no markdown formatting or extra text
- Do not return the schema itself, return actual data"""

    @staticmethod
    def _extract_json(content: str) -> str:
        """Strip markdown code fences around a JSON payload."""
        content = content.strip()
        if "```json" in content:
            content = content.split("```json")[1].split("```")[0].strip()
        elif "```" in content:
            content = content.split("```")[1].split("```")[0].strip()
        return content

    async def close(self):
        """Ollama SDK handles cleanup internally."""


def _example_for(schema: dict, defs: dict, name: str = "value"):
    """Build a placeholder example value for a JSON schema node."""
    if "$ref" in schema:
        return _example_for(defs.get(schema["$ref"].split("/")[-1], {}), defs, name)
    if "anyOf" in schema:
        options = [option for option in schema["anyOf"] if option.get("type") != "null"]
        return _example_for(options[0], defs, name) if options else None
    if "enum" in schema:
        return schema["enum"][0]

    field_type = schema.get("type", "string")
    if field_type == "object":
        return {
            key: _example_for(value, defs, key)
            for key, value in schema.get("properties", {}).items()
        }
    if field_type == "array":
        return [_example_for(schema.get("items", {}), defs, name)]
    if field_type in ("number", "integer"):
        return 0.5 if field_type == "number" else 1
    if field_type == "boolean":
        return True
    return f"<{name}>"
