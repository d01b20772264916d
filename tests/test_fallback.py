"""
Tests for Provider Fallback
"""
import asyncio
import json

import pytest
from pydantic import BaseModel, ValidationError

from conftest import FakeProvider


class TestErrorClassification:
    """Test error classification for fallback."""

    def test_rate_limit_detection(self):
        """Test detecting rate limit errors."""
        from web_research.providers.fallback import classify_error, FailoverReason

        error = Exception("Rate limit exceeded")
        reason, code = classify_error(error)
        assert reason == FailoverReason.RATE_LIMIT

        error = Exception("Error 429: Too many requests")
        reason, code = classify_error(error)
        assert reason == FailoverReason.RATE_LIMIT
        assert code == 429

    def test_timeout_detection(self):
        """Test detecting timeout errors."""
        from web_research.providers.fallback import classify_error, FailoverReason

        reason, _ = classify_error(Exception("Request timeout"))
        assert reason == FailoverReason.TIMEOUT

        reason, _ = classify_error(asyncio.TimeoutError())
        assert reason == FailoverReason.TIMEOUT

    def test_server_error_detection(self):
        """Test detecting server errors."""
        from web_research.providers.fallback import classify_error, FailoverReason

        for code in [500, 502, 503, 504]:
            reason, detected_code = classify_error(Exception(f"Server error: {code}"))
            assert reason == FailoverReason.SERVER_ERROR
            assert detected_code == code

    def test_auth_error_detection(self):
        """Test detecting auth errors."""
        from web_research.providers.fallback import classify_error, FailoverReason

        reason, _ = classify_error(Exception("Error 401: Unauthorized"))
        assert reason == FailoverReason.AUTH_ERROR

    def test_schema_violation_detection(self):
        """Wrapped JSON and validation errors are schema violations."""
        from web_research.providers.fallback import classify_error, FailoverReason

        class Point(BaseModel):
            x: int

        try:
            Point(x="not a number")
        except ValidationError as e:
            wrapped = RuntimeError("output did not match")
            wrapped.__cause__ = e
        assert classify_error(wrapped)[0] == FailoverReason.SCHEMA_VIOLATION

        try:
            json.loads("{not json")
        except json.JSONDecodeError as e:
            wrapped = RuntimeError("output did not match")
            wrapped.__cause__ = e
        assert classify_error(wrapped)[0] == FailoverReason.SCHEMA_VIOLATION

    def test_retryable_errors(self):
        """Test retryable error detection."""
        from web_research.providers.fallback import is_retryable, FailoverReason

        # Retryable
        assert is_retryable(FailoverReason.RATE_LIMIT) is True
        assert is_retryable(FailoverReason.TIMEOUT) is True
        assert is_retryable(FailoverReason.SERVER_ERROR) is True
        assert is_retryable(FailoverReason.NETWORK_ERROR) is True
        assert is_retryable(FailoverReason.SCHEMA_VIOLATION) is True

        # Not retryable
        assert is_retryable(FailoverReason.AUTH_ERROR) is False
        assert is_retryable(FailoverReason.INVALID_REQUEST) is False


class TestRunWithFallback:
    """Test running with fallback."""

    @pytest.mark.asyncio
    async def test_success_first_try(self):
        """Test success on first try (no fallback)."""
        from web_research.providers.fallback import run_with_fallback

        async def mock_run(provider):
            return f"Success with {provider.name}"

        result = await run_with_fallback(mock_run, [FakeProvider(name="gemini")])

        assert result.result == "Success with gemini"
        assert result.provider == "gemini"
        assert result.had_fallback is False
        assert len(result.attempts) == 0

    @pytest.mark.asyncio
    async def test_fallback_on_error(self):
        """Test fallback when first provider fails."""
        from web_research.providers.fallback import run_with_fallback

        async def mock_run(provider):
            if provider.name == "gemini":
                raise Exception("Rate limit exceeded")
            return f"Success with {provider.name}"

        seen = []

        async def on_error(attempt):
            seen.append(attempt.provider)

        result = await run_with_fallback(
            mock_run,
            [FakeProvider(name="gemini"), FakeProvider(name="openai"), FakeProvider(name="deepseek")],
            on_error=on_error,
        )

        assert result.result == "Success with openai"
        assert result.had_fallback is True
        assert len(result.attempts) == 1
        assert result.attempts[0].provider == "gemini"
        assert seen == ["gemini"]

    @pytest.mark.asyncio
    async def test_all_providers_fail(self):
        """Test when all providers fail."""
        from web_research.providers.fallback import run_with_fallback, AllProvidersFailedError

        async def mock_run(provider):
            raise Exception("Server error 500")

        with pytest.raises(AllProvidersFailedError, match="All 2 provider attempts failed") as excinfo:
            await run_with_fallback(mock_run, [FakeProvider(name="gemini"), FakeProvider(name="openai")])
        assert [a.provider for a in excinfo.value.attempts] == ["gemini", "openai"]

    @pytest.mark.asyncio
    async def test_non_retryable_error(self):
        """Test that non-retryable errors don't trigger fallback."""
        from web_research.providers.fallback import run_with_fallback

        calls = []

        async def mock_run(provider):
            calls.append(provider.name)
            raise Exception("Error 401: Invalid API key")

        with pytest.raises(Exception, match="401"):
            await run_with_fallback(mock_run, [FakeProvider(name="gemini"), FakeProvider(name="openai")])
        assert calls == ["gemini"]

    @pytest.mark.asyncio
    async def test_empty_chain_rejected(self):
        from web_research.providers.fallback import run_with_fallback

        async def mock_run(provider):
            return "never"

        with pytest.raises(ValueError):
            await run_with_fallback(mock_run, [])
