"""
Google Gemini LLM Provider
Uses the google-genai SDK (async client) for Gemini models.
"""
from typing import List, Optional, Tuple
from google import genai
from google.genai import types

from .base import BaseLLMProvider, Message, LLMResponse, Role
from ..config import config


class GeminiProvider(BaseLLMProvider):
    """Google Gemini LLM Provider"""

    def __init__(self, model: Optional[str] = None, api_key: Optional[str] = None):
        self._model = model or config.llm.gemini.model
        api_key = api_key or config.llm.gemini.api_key

        if not api_key:
            raise ValueError("Google API key not configured")

        self._client = genai.Client(api_key=api_key)

    @property
    def name(self) -> str:
        return "gemini"

    @property
    def model(self) -> str:
        return self._model

    def _convert_messages(self, messages: List[Message]) -> Tuple[Optional[str], List[types.Content]]:
        """Split out the system instruction and convert the rest to Gemini contents"""
        system_instruction = None
        contents = []

        for msg in messages:
            if msg.role == Role.SYSTEM:
                system_instruction = msg.content
            else:
                contents.append(types.Content(
                    role="model" if msg.role == Role.ASSISTANT else "user",
                    parts=[types.Part(text=msg.content)]
                ))

        return system_instruction, contents

    async def generate(
        self,
        messages: List[Message],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Generate response using Gemini"""
        system_instruction, contents = self._convert_messages(messages)

        gen_config = types.GenerateContentConfig(
            temperature=temperature if temperature is not None else config.llm.gemini.temperature,
            max_output_tokens=max_tokens or config.llm.gemini.max_tokens,
            system_instruction=system_instruction,
            response_mime_type="application/json" if json_mode else None,
        )

        try:
            response = await self._client.aio.models.generate_content(
                model=self._model,
                contents=contents,
                config=gen_config
            )
        except Exception as e:
            return LLMResponse(
                content=f"Error calling Gemini API: {str(e)}",
                finish_reason="error"
            )

        content = None
        if response.candidates and response.candidates[0].content and response.candidates[0].content.parts:
            for part in response.candidates[0].content.parts:
                if part.text:
                    content = (content or "") + part.text

        usage = response.usage_metadata
        return LLMResponse(
            content=content,
            finish_reason="stop",
            usage={
                "prompt_tokens": (usage.prompt_token_count or 0) if usage else 0,
                "completion_tokens": (usage.candidates_token_count or 0) if usage else 0,
            }
        )
