"""Tests for the Groq client's error mapping and retry policy."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from groq import APIConnectionError, APIStatusError, RateLimitError
from pydantic import SecretStr

from threadsense.clients.llm_client import GroqClient, LLMRateLimitError
from threadsense.errors import FailureKind, MalformedResponseError, ServiceError
from threadsense.models.llm import LLMConfig
from threadsense.prompts.templates import PromptTemplates
from threadsense.utils.rate_limiter import RateLimiter

_REQUEST = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")


def _completion(text: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


def _client(create: AsyncMock, **kwargs) -> GroqClient:
    client = GroqClient(SecretStr("test-key"), config=LLMConfig(model="test-model"), **kwargs)
    client._client = MagicMock()
    client._client.chat.completions.create = create
    return client


class TestGroqClient:
    async def test_returns_text_with_system_prompt(self):
        create = AsyncMock(return_value=_completion("hello"))
        assert await _client(create).generate("prompt") == "hello"

        kwargs = create.await_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["messages"][0] == {"role": "system", "content": PromptTemplates.SYSTEM_ANALYST}
        assert kwargs["messages"][1] == {"role": "user", "content": "prompt"}

    async def test_none_content_is_empty(self):
        create = AsyncMock(return_value=_completion(None))
        assert await _client(create).generate("p") == ""

    async def test_rate_limit(self):
        response = httpx.Response(429, headers={"retry-after": "7"}, request=_REQUEST)
        create = AsyncMock(side_effect=RateLimitError("slow down", response=response, body=None))
        with pytest.raises(LLMRateLimitError) as excinfo:
            await _client(create).generate("p")
        assert excinfo.value.retry_after == 7.0
        assert excinfo.value.kind is FailureKind.SERVICE_UNAVAILABLE
        assert create.await_count == 1

    async def test_retry_after_holds_back_later_calls(self):
        response = httpx.Response(429, headers={"retry-after": "30"}, request=_REQUEST)
        create = AsyncMock(
            side_effect=[RateLimitError("slow down", response=response, body=None), _completion("ok")]
        )
        client = _client(create)
        with pytest.raises(LLMRateLimitError):
            await client.generate("p")
        with pytest.raises(LLMRateLimitError) as excinfo:
            await client.generate("p")
        assert 0 < excinfo.value.retry_after <= 30
        assert create.await_count == 1

    async def test_rate_limit_without_retry_after_does_not_block(self):
        response = httpx.Response(429, request=_REQUEST)
        create = AsyncMock(
            side_effect=[RateLimitError("slow down", response=response, body=None), _completion("ok")]
        )
        client = _client(create)
        with pytest.raises(LLMRateLimitError) as excinfo:
            await client.generate("p")
        assert excinfo.value.retry_after is None
        assert await client.generate("p") == "ok"

    async def test_no_choices_is_malformed(self):
        create = AsyncMock(return_value=SimpleNamespace(choices=[]))
        with pytest.raises(MalformedResponseError):
            await _client(create).generate("p")

    async def test_status_error_is_not_retried(self):
        response = httpx.Response(500, request=_REQUEST)
        create = AsyncMock(side_effect=APIStatusError("server error", response=response, body=None))
        with pytest.raises(ServiceError) as excinfo:
            await _client(create).generate("p")
        assert excinfo.value.kind is FailureKind.SERVICE_UNAVAILABLE
        assert create.await_count == 1

    async def test_connection_error_retried_once(self):
        create = AsyncMock(
            side_effect=[APIConnectionError(request=_REQUEST), _completion("recovered")]
        )
        assert await _client(create).generate("p") == "recovered"
        assert create.await_count == 2

    async def test_connection_error_gives_up(self):
        create = AsyncMock(side_effect=APIConnectionError(request=_REQUEST))
        with pytest.raises(ServiceError) as excinfo:
            await _client(create).generate("p")
        assert excinfo.value.kind is FailureKind.NETWORK
        assert create.await_count == 2

    async def test_uses_rate_limiter(self):
        limiter = RateLimiter(max_requests=5)
        create = AsyncMock(return_value=_completion("ok"))
        client = _client(create, rate_limiter=limiter)
        await client.generate("a")
        await client.generate("b")
        assert limiter.remaining == 3


class TestRateLimiter:
    async def test_no_wait_under_limit(self):
        limiter = RateLimiter(max_requests=2, window_seconds=60)
        assert await limiter.acquire() == 0.0
        assert await limiter.acquire() == 0.0
        assert limiter.remaining == 0

    async def test_waits_when_window_full(self):
        limiter = RateLimiter(max_requests=1, window_seconds=0.05)
        await limiter.acquire()
        waited = await limiter.acquire()
        assert 0.0 < waited <= 0.05

    def test_rejects_zero(self):
        with pytest.raises(ValueError):
            RateLimiter(max_requests=0)
