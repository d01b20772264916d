"""
OpenAI-Compatible LLM Provider
A unified provider for any API following the OpenAI format.
Supports: OpenAI, DeepSeek, Ollama, vLLM, Azure OpenAI, etc.
"""
from typing import List, Optional, Dict, Any
from openai import AsyncOpenAI

from .base import BaseLLMProvider, Message, LLMResponse
from ..config import config


class OpenAICompatibleProvider(BaseLLMProvider):
    """
    Unified provider for OpenAI-compatible chat completion APIs.

    JSON mode maps to `response_format={"type": "json_object"}`, which
    OpenAI, DeepSeek and recent Ollama builds all honour.
    """

    def __init__(
        self,
        provider_name: str,
        model: str,
        api_key: Optional[str],
        base_url: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 4096,
    ):
        self._name = provider_name
        self._model = model
        self._default_temperature = temperature
        self._default_max_tokens = max_tokens

        if not api_key:
            raise ValueError(f"{provider_name} API key not configured")

        client_kwargs: Dict[str, Any] = {"api_key": api_key}
        if base_url:
            client_kwargs["base_url"] = base_url

        self._client = AsyncOpenAI(**client_kwargs)

    @property
    def name(self) -> str:
        return self._name

    @property
    def model(self) -> str:
        return self._model

    def _convert_messages(self, messages: List[Message]) -> List[Dict[str, Any]]:
        return [{"role": msg.role.value, "content": msg.content} for msg in messages]

    async def generate(
        self,
        messages: List[Message],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Generate response using OpenAI-compatible API"""
        kwargs: Dict[str, Any] = {
            "model": self._model,
            "messages": self._convert_messages(messages),
            "temperature": temperature if temperature is not None else self._default_temperature,
            "max_tokens": max_tokens if max_tokens is not None else self._default_max_tokens,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self._client.chat.completions.create(**kwargs)
        except Exception as e:
            return LLMResponse(
                content=f"Error calling {self._name} API: {str(e)}",
                finish_reason="error"
            )

        choice = response.choices[0]
        return LLMResponse(
            content=choice.message.content,
            finish_reason=choice.finish_reason or "stop",
            usage={
                "prompt_tokens": response.usage.prompt_tokens if response.usage else 0,
                "completion_tokens": response.usage.completion_tokens if response.usage else 0,
            }
        )


def create_openai_provider(
    model: Optional[str] = None,
    api_key: Optional[str] = None,
) -> OpenAICompatibleProvider:
    """Create an OpenAI provider instance"""
    return OpenAICompatibleProvider(
        provider_name="openai",
        model=model or config.llm.openai.model,
        api_key=api_key or config.llm.openai.api_key,
        temperature=config.llm.openai.temperature,
        max_tokens=config.llm.openai.max_tokens,
    )


def create_deepseek_provider(
    model: Optional[str] = None,
    api_key: Optional[str] = None,
) -> OpenAICompatibleProvider:
    """Create a DeepSeek provider instance"""
    return OpenAICompatibleProvider(
        provider_name="deepseek",
        model=model or config.llm.deepseek.model,
        api_key=api_key or config.llm.deepseek.api_key,
        base_url=config.llm.deepseek.base_url,
        temperature=config.llm.deepseek.temperature,
        max_tokens=config.llm.deepseek.max_tokens,
    )


def create_ollama_provider(
    model: Optional[str] = None,
    base_url: Optional[str] = None,
) -> OpenAICompatibleProvider:
    """Create an Ollama provider instance (local models)"""
    return OpenAICompatibleProvider(
        provider_name="ollama",
        model=model or config.llm.ollama.model,
        api_key="ollama",  # Ollama ignores the key but the client requires one
        base_url=base_url or config.llm.ollama.base_url,
    )
