"""Providers module initialization"""
from typing import Optional

from .base import BaseLLMProvider, LLMResponse, Message, Role
from .gemini import GeminiProvider
from .openai_compatible import (
    OpenAICompatibleProvider,
    create_openai_provider,
    create_deepseek_provider,
    create_ollama_provider,
)
from .structured import StructuredGenerator, StructuredGenerationError
from ..config import config

SUPPORTED_PROVIDERS = ["gemini", "openai", "deepseek", "ollama"]


def create_provider(provider_name: Optional[str] = None, model: Optional[str] = None) -> BaseLLMProvider:
    """Create LLM provider based on name or config"""
    provider = (provider_name or config.llm.default_provider).lower()

    if provider == "gemini":
        return GeminiProvider(model=model)
    elif provider == "openai":
        return create_openai_provider(model=model)
    elif provider == "deepseek":
        return create_deepseek_provider(model=model)
    elif provider == "ollama":
        return create_ollama_provider(model=model)
    raise ValueError(f"Unknown provider '{provider}'. Choose from: {SUPPORTED_PROVIDERS}")


def create_structured_generator(provider: BaseLLMProvider) -> StructuredGenerator:
    """Wrap a provider with the configured fallback chain and timeout."""
    fallbacks = []
    for name in config.llm.fallback_chain:
        if name.lower() == provider.name:
            continue
        try:
            fallbacks.append(create_provider(name))
        except ValueError:
            # Unconfigured fallback (usually a missing API key) is skipped
            continue
    return StructuredGenerator(
        provider,
        fallbacks=fallbacks,
        timeout_seconds=config.llm.timeout_seconds,
    )


__all__ = [
    "BaseLLMProvider",
    "LLMResponse",
    "Message",
    "Role",
    "GeminiProvider",
    "OpenAICompatibleProvider",
    "StructuredGenerator",
    "StructuredGenerationError",
    "SUPPORTED_PROVIDERS",
    "create_provider",
    "create_structured_generator",
    "create_openai_provider",
    "create_deepseek_provider",
    "create_ollama_provider",
]
