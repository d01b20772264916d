"""
Provider Fallback
Error classification and automatic retry with alternative LLM providers.
"""
import asyncio
import json
from typing import (
    TypeVar, Generic, Callable, Awaitable,
    List, Optional, Sequence, Tuple
)
from dataclasses import dataclass, field
from enum import Enum
import logging

from pydantic import ValidationError

from .base import BaseLLMProvider

logger = logging.getLogger(__name__)

T = TypeVar('T')


class FailoverReason(str, Enum):
    """Reasons for failing over to another provider."""
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    SERVER_ERROR = "server_error"
    AUTH_ERROR = "auth_error"
    INVALID_REQUEST = "invalid_request"
    NETWORK_ERROR = "network_error"
    SCHEMA_VIOLATION = "schema_violation"
    UNKNOWN = "unknown"


@dataclass
class FallbackAttempt:
    """Record of a failed provider attempt."""
    provider: str
    model: str
    error: str
    reason: FailoverReason
    status_code: Optional[int] = None
    attempt_number: int = 0


@dataclass
class FallbackResult(Generic[T]):
    """Result of a fallback execution."""
    result: T
    provider: str
    model: str
    attempts: List[FallbackAttempt] = field(default_factory=list)

    @property
    def had_fallback(self) -> bool:
        return len(self.attempts) > 0


class AllProvidersFailedError(RuntimeError):
    """Raised when every provider in the chain failed with a retryable error."""

    def __init__(self, attempts: List[FallbackAttempt]):
        self.attempts = attempts
        summary = "; ".join(f"{a.provider}: {a.reason.value}" for a in attempts)
        super().__init__(f"All {len(attempts)} provider attempts failed ({summary})")


def classify_error(error: BaseException) -> Tuple[FailoverReason, Optional[int]]:
    """
    Classify an error to determine if it's retryable.

    Returns:
        Tuple of (FailoverReason, status_code or None)
    """
    cause = error.__cause__ or error
    if isinstance(cause, (ValidationError, json.JSONDecodeError)):
        return FailoverReason.SCHEMA_VIOLATION, None
    if isinstance(cause, asyncio.TimeoutError):
        return FailoverReason.TIMEOUT, None

    error_str = str(error).lower()

    if "rate" in error_str and "limit" in error_str:
        return FailoverReason.RATE_LIMIT, 429
    if "quota" in error_str or "429" in error_str:
        return FailoverReason.RATE_LIMIT, 429

    if "timeout" in error_str or "timed out" in error_str:
        return FailoverReason.TIMEOUT, None

    if "401" in error_str or "403" in error_str:
        return FailoverReason.AUTH_ERROR, 401
    if "auth" in error_str or "api key" in error_str:
        return FailoverReason.AUTH_ERROR, 401

    for code in (500, 502, 503, 504):
        if str(code) in error_str:
            return FailoverReason.SERVER_ERROR, code

    if "connection" in error_str or "network" in error_str:
        return FailoverReason.NETWORK_ERROR, None

    if "400" in error_str or "invalid" in error_str:
        return FailoverReason.INVALID_REQUEST, 400

    return FailoverReason.UNKNOWN, None


def is_retryable(reason: FailoverReason) -> bool:
    """Check if an error reason is retryable with a different provider."""
    return reason in {
        FailoverReason.RATE_LIMIT,
        FailoverReason.TIMEOUT,
        FailoverReason.SERVER_ERROR,
        FailoverReason.NETWORK_ERROR,
        FailoverReason.SCHEMA_VIOLATION,
    }


async def run_with_fallback(
    run_fn: Callable[[BaseLLMProvider], Awaitable[T]],
    providers: Sequence[BaseLLMProvider],
    on_error: Optional[Callable[[FallbackAttempt], Awaitable[None]]] = None
) -> FallbackResult[T]:
    """
    Run a function against each provider in turn until one succeeds.

    Args:
        run_fn: Async function that takes a provider and returns a result
        providers: Providers in order of preference (primary first)
        on_error: Optional callback for each failed attempt

    Returns:
        FallbackResult with the result and attempt history

    Raises:
        The original exception when it is not retryable,
        AllProvidersFailedError when the chain is exhausted.
    """
    if not providers:
        raise ValueError("run_with_fallback requires at least one provider")

    attempts: List[FallbackAttempt] = []

    for attempt_num, provider in enumerate(providers):
        try:
            logger.debug(
                f"Trying provider {provider.name} "
                f"(model: {provider.model}, attempt {attempt_num + 1})"
            )
            result = await run_fn(provider)
            return FallbackResult(
                result=result,
                provider=provider.name,
                model=provider.model,
                attempts=attempts
            )

        except Exception as e:
            reason, status_code = classify_error(e)
            attempt = FallbackAttempt(
                provider=provider.name,
                model=provider.model,
                error=str(e),
                reason=reason,
                status_code=status_code,
                attempt_number=attempt_num + 1
            )
            attempts.append(attempt)

            logger.warning(
                f"Provider {provider.name} failed: {e} "
                f"(reason: {reason.value})"
            )

            if on_error:
                await on_error(attempt)

            if not is_retryable(reason):
                raise

    raise AllProvidersFailedError(attempts)
