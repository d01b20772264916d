"""
Structured Generation
Turns a prompt plus a pydantic schema into a validated object, with provider fallback.
"""
import asyncio
import json
import re
from typing import Any, Optional, Sequence

from pydantic import TypeAdapter

from .base import BaseLLMProvider, Message, Role
from .fallback import AllProvidersFailedError, FallbackAttempt, run_with_fallback
from ..core.logging import llm_logger

STRUCTURED_SYSTEM_PROMPT = """You are a structured data generator.
Respond with exactly one JSON value named "{schema_name}" ({schema_description}).
It must validate against the JSON Schema below. Output JSON only: no prose, no markdown fences.

JSON Schema:
{schema_json}"""

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


class StructuredGenerationError(RuntimeError):
    """The backend failed, timed out, or returned output that does not match the schema."""


def extract_json_text(raw: str) -> str:
    """Strip markdown fences and surrounding chatter from a model response."""
    text = raw.strip()
    match = _FENCE_RE.search(text)
    if match:
        text = match.group(1).strip()
    if text and text[0] not in "{[":
        start = text.find("{")
        end = text.rfind("}")
        if start != -1 and end > start:
            text = text[start:end + 1]
    return text


class StructuredGenerator:
    """
    Structured-generation backend used by the planner, decision engine and page analyzer.

    `generate(schema, prompt)` returns an instance of `schema` (a pydantic model
    or any type `TypeAdapter` accepts, e.g. an annotated discriminated union)
    or raises StructuredGenerationError.
    """

    def __init__(
        self,
        provider: BaseLLMProvider,
        fallbacks: Sequence[BaseLLMProvider] = (),
        timeout_seconds: Optional[float] = None,
        temperature: Optional[float] = None,
    ):
        self.provider = provider
        self.fallbacks = list(fallbacks)
        self.timeout_seconds = timeout_seconds
        self.temperature = temperature
        self.logger = llm_logger()

    @property
    def providers(self) -> Sequence[BaseLLMProvider]:
        return [self.provider, *self.fallbacks]

    async def generate(
        self,
        schema: Any,
        prompt: str,
        schema_name: str = "Result",
        schema_description: str = "",
    ) -> Any:
        adapter = TypeAdapter(schema)
        messages = [
            Message(role=Role.SYSTEM, content=STRUCTURED_SYSTEM_PROMPT.format(
                schema_name=schema_name,
                schema_description=schema_description or schema_name,
                schema_json=json.dumps(adapter.json_schema(), indent=2),
            )),
            Message(role=Role.USER, content=prompt),
        ]

        async def run(provider: BaseLLMProvider) -> Any:
            return await self._generate_once(provider, adapter, messages, schema_name)

        async def on_error(attempt: FallbackAttempt):
            self.logger.warning(
                f"{schema_name} generation failed on {attempt.provider} ({attempt.reason.value})"
            )

        try:
            outcome = await run_with_fallback(run, self.providers, on_error=on_error)
        except StructuredGenerationError:
            raise
        except AllProvidersFailedError as e:
            raise StructuredGenerationError(f"{e}. Last error: {e.attempts[-1].error}") from e

        if outcome.had_fallback:
            self.logger.info(f"{schema_name} generated by fallback provider {outcome.provider}")
        return outcome.result

    async def _generate_once(
        self,
        provider: BaseLLMProvider,
        adapter: TypeAdapter,
        messages: Sequence[Message],
        schema_name: str,
    ) -> Any:
        call = provider.generate(list(messages), temperature=self.temperature, json_mode=True)
        try:
            if self.timeout_seconds:
                response = await asyncio.wait_for(call, timeout=self.timeout_seconds)
            else:
                response = await call
        except asyncio.TimeoutError as e:
            raise StructuredGenerationError(
                f"{provider.name} timed out after {self.timeout_seconds}s generating {schema_name}"
            ) from e
        except Exception as e:
            raise StructuredGenerationError(f"{provider.name} failed generating {schema_name}: {e}") from e

        if response.is_error:
            raise StructuredGenerationError(response.content or f"{provider.name} returned an error")
        if not response.content:
            raise StructuredGenerationError(f"{provider.name} returned an empty response for {schema_name}")

        try:
            payload = json.loads(extract_json_text(response.content))
            return adapter.validate_python(payload)
        except ValueError as e:
            # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors
            raise StructuredGenerationError(f"{schema_name} output did not match schema: {e}") from e
