"""
Base LLM Provider Interface
Abstract base class for all LLM providers.
"""
from abc import ABC, abstractmethod
from typing import List, Dict, Optional
from pydantic import BaseModel
from enum import Enum


class Role(str, Enum):
    """Message roles"""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """Chat message"""
    role: Role
    content: str


class LLMResponse(BaseModel):
    """Response from LLM"""
    content: Optional[str] = None
    finish_reason: str = "stop"
    usage: Dict[str, int] = {}

    @property
    def is_error(self) -> bool:
        return self.finish_reason == "error"


class BaseLLMProvider(ABC):
    """Abstract base class for LLM providers"""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name"""
        pass

    @property
    @abstractmethod
    def model(self) -> str:
        """Model identifier"""
        pass

    @abstractmethod
    async def generate(
        self,
        messages: List[Message],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """
        Generate a response from the LLM.

        Args:
            messages: Conversation (system prompt first)
            temperature: Sampling temperature, provider default when None
            max_tokens: Maximum tokens in response
            json_mode: Ask the backend to emit a single JSON object

        Returns:
            LLMResponse; API failures come back with finish_reason="error"
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, model={self.model!r})"
