"""
Structured generation - prompt in, schema-validated value out.

This is the one call shape every planning stage uses:
    generate(prompt, system_instruction, output_schema) -> value

output_schema is any type pydantic can validate (a BaseModel subclass,
List[Model], ...). The JSON Schema derived from it is appended to the
system instruction, the reply is parsed as JSON and validated. Empty
replies, unparseable JSON and schema mismatches all raise GenerationError.
"""
import json
import re
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from autoshorts.core.errors import GenerationError
from autoshorts.core.logging import get_logger
from autoshorts.llm.base import LLMAdapter

logger = get_logger("llm.structured")

# JSON-mode providers only return objects, so arrays travel under this key
ARRAY_WRAPPER_KEY = "items"

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def parse_json_payload(text: str) -> Any:
    """Parse model output as JSON, tolerating a surrounding markdown fence."""
    cleaned = text.strip()
    match = _FENCE_RE.match(cleaned)
    if match:
        cleaned = match.group(1)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise GenerationError(f"Generation returned invalid JSON: {e}") from e


class StructuredGenerator:
    """Wraps an LLMAdapter with schema-aware JSON generation."""

    def __init__(
        self,
        llm: LLMAdapter,
        temperature: float = 0.2,
        max_tokens: int = 2000,
    ):
        self._llm = llm
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def llm(self) -> LLMAdapter:
        return self._llm

    async def generate(
        self,
        prompt: str,
        system_instruction: str,
        output_schema: Any,
        temperature: Optional[float] = None,
    ) -> Any:
        """
        Run one structured generation call.

        Args:
            prompt: Task prompt (data + instructions)
            system_instruction: Role/system message
            output_schema: Type the reply must validate against

        Returns:
            Validated value of output_schema

        Raises:
            GenerationError: on backend failure, empty text, bad JSON or
                a reply that does not conform to the schema
        """
        adapter = TypeAdapter(output_schema)
        schema = adapter.json_schema()
        is_array = schema.get("type") == "array"
        if is_array:
            schema = {
                "type": "object",
                "properties": {ARRAY_WRAPPER_KEY: schema},
                "required": [ARRAY_WRAPPER_KEY],
                "$defs": schema.pop("$defs", {}),
            }

        system_prompt = (
            f"{system_instruction.strip()}\n\n"
            "Respond with a single JSON document that conforms to this JSON Schema. "
            "Do not add commentary.\n"
            f"{json.dumps(schema, indent=2)}"
        )

        try:
            response = await self._llm.generate(
                prompt,
                system_prompt=system_prompt,
                max_tokens=self._max_tokens,
                temperature=self._temperature if temperature is None else temperature,
                json_mode=True,
            )
        except GenerationError:
            raise
        except Exception as e:
            logger.error(f"Structured generation call failed: {e}")
            raise GenerationError(f"Text generation failed: {e}") from e

        text = (response.content or "").strip()
        if not text:
            raise GenerationError("No text returned from the generation backend")

        data = parse_json_payload(text)
        if is_array and isinstance(data, dict):
            if ARRAY_WRAPPER_KEY not in data:
                raise GenerationError(f"Generation reply is missing the '{ARRAY_WRAPPER_KEY}' array")
            data = data[ARRAY_WRAPPER_KEY]

        try:
            return adapter.validate_python(data)
        except ValidationError as e:
            logger.warning(f"Generation reply failed schema validation: {e.error_count()} error(s)")
            raise GenerationError(f"Generation reply does not match schema: {e}") from e
