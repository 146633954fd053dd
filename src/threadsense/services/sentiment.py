"""Sentiment analysis over a set of threads or posts."""

import json
from collections.abc import Sequence

from threadsense.errors import FailureKind
from threadsense.models.forum import Post, Thread
from threadsense.models.llm import OverallSentiment, SentimentResult
from threadsense.parsing import JsonShape, ParseFailure
from threadsense.prompts.templates import PromptTemplates
from threadsense.services.base import BaseAdapter
from threadsense.utils.sanitizer import InputSanitizer

EMPTY_SUMMARY = "No threads available for analysis."
FALLBACK_SUMMARY = "Unable to analyze sentiment at this time."

_EXCERPT = 200


def neutral_sentiment(summary: str = FALLBACK_SUMMARY) -> SentimentResult:
    return SentimentResult(overall=OverallSentiment.NEUTRAL, score=0.0, summary=summary, topics=[])


def _serialize(item: Thread | Post) -> dict:
    if isinstance(item, Thread):
        return {
            "title": InputSanitizer.sanitize(item.title, _EXCERPT),
            "body": InputSanitizer.sanitize(item.body, _EXCERPT),
            "tags": [t.name for t in item.tags],
        }
    return {
        "author": item.author_name,
        "content": InputSanitizer.sanitize(item.body, _EXCERPT),
    }


class SentimentService(BaseAdapter):
    """Scores the overall mood of a batch of forum content."""

    task = "sentiment"

    async def analyze(self, items: Sequence[Thread | Post]) -> SentimentResult:
        if not items:
            self._log_fallback(
                ParseFailure(reason="empty batch", kind=FailureKind.INVALID_INPUT)
            )
            return neutral_sentiment(EMPTY_SUMMARY)

        payload = json.dumps([_serialize(i) for i in items], indent=2)
        prompt = PromptTemplates.SENTIMENT.format(items=payload)

        result = self._validate(
            await self._generate_json(prompt, JsonShape.OBJECT), SentimentResult
        )
        if isinstance(result, ParseFailure):
            self._log_fallback(result, item_count=len(items))
            return neutral_sentiment()
        return result
