"""Shared test fixtures for threadsense."""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from threadsense.clients.llm_client import LLMClient
from threadsense.errors import FailureKind, ServiceError
from threadsense.models.forum import Post, Thread

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)

Responder = Callable[[str], str]


class FakeLLM(LLMClient):
    """Scripted generative client.

    ``responses`` is either a list consumed in call order (the last entry is
    repeated once exhausted) or a callable mapping the prompt to a response.
    Every prompt is recorded in ``prompts``.
    """

    def __init__(self, responses: list[Any] | Responder | None = None) -> None:
        self._responses = responses if responses is not None else ["{}"]
        self.prompts: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if callable(self._responses):
            reply = self._responses(prompt)
        else:
            index = min(len(self.prompts) - 1, len(self._responses) - 1)
            reply = self._responses[index]
        if isinstance(reply, BaseException):
            raise reply
        if not isinstance(reply, str):
            return json.dumps(reply)
        return reply


class FailingLLM(LLMClient):
    """Raises ServiceError on every call."""

    def __init__(self, kind: FailureKind = FailureKind.SERVICE_UNAVAILABLE) -> None:
        self.kind = kind
        self.calls = 0

    async def generate(self, prompt: str) -> str:
        self.calls += 1
        raise ServiceError("503 service unavailable", kind=self.kind)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def by_task(**replies: Any) -> Responder:
    """Route a prompt to a reply by a marker phrase in its first line."""
    markers = {
        "sentiment": "Analyze the sentiment",
        "trending": "identify trending topics",
        "recommendations": "Based on this community data",
        "moderation": "for moderation",
        "summary": "Summarize this community discussion",
        "reply": "Generate a thoughtful reply",
        "health": "community health report",
        "improve": "Original Title",
        "ideas": "Generate 3 different thread suggestions",
    }

    def respond(prompt: str) -> str:
        for task, marker in markers.items():
            if marker in prompt and task in replies:
                reply = replies[task]
                return reply if isinstance(reply, str) else json.dumps(reply)
        return ""

    return respond


def make_thread(**overrides: Any) -> Thread:
    data: dict[str, Any] = {
        "id": "t1",
        "title": "Deploying the docs site",
        "body": "Notes on the deployment pipeline for the documentation site.",
        "replyCount": 2,
        "viewCount": 30,
        "createdAt": (NOW - timedelta(days=3)).isoformat(),
        "user": {"id": "u1", "username": "ada"},
        "tags": [],
    }
    data.update(overrides)
    return Thread.model_validate(data)


def make_posts(count: int, thread_id: str = "t1") -> list[Post]:
    return [
        Post.model_validate(
            {
                "id": f"p{i}",
                "content": f"Reply number {i} with some useful detail.",
                "threadId": thread_id,
                "user": {"id": f"u{i % 3}", "username": f"member{i}"},
            }
        )
        for i in range(count)
    ]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fixed_now() -> Callable[[], datetime]:
    return lambda: NOW


@pytest.fixture
def failing_llm() -> FailingLLM:
    return FailingLLM()


SENTIMENT_POSITIVE = {
    "overall": "positive",
    "score": 0.6,
    "summary": "Members are upbeat about the release.",
    "topics": [
        {"topic": "release", "sentiment": "positive", "mentions": 4},
        {"topic": "docs", "sentiment": "neutral", "mentions": 2},
        {"topic": "bugs", "sentiment": "negative", "mentions": 1},
    ],
}

MODERATION_CLEAN = {
    "flagged": False,
    "severity": "none",
    "categories": [],
    "reasoning": "Ordinary technical discussion.",
    "suggestedAction": "approve",
}

RECOMMENDATIONS = [
    {
        "type": "action",
        "priority": "high",
        "title": "Answer open questions",
        "description": "Several questions have no replies.",
        "actionItems": ["Triage unanswered threads"],
    },
    {
        "type": "insight",
        "priority": "low",
        "title": "Docs are popular",
        "description": "Documentation threads draw the most views.",
    },
]

TRENDING = [
    {"topic": "release", "mentions": 5, "trend": "rising", "sentiment": "positive", "relatedThreads": ["t1", "zzz"]},
    {"topic": "docs", "mentions": 3, "trend": "stable", "sentiment": "neutral", "relatedThreads": []},
]
