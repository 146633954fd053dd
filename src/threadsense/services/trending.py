"""Trending-topic detection across a batch of threads."""

import json
from collections.abc import Sequence

from threadsense.logger import get_logger
from threadsense.models.forum import Thread
from threadsense.models.llm import TrendingTopic
from threadsense.parsing import JsonShape, ParseFailure
from threadsense.prompts.templates import PromptTemplates
from threadsense.services.base import BaseAdapter
from threadsense.utils.sanitizer import InputSanitizer

logger = get_logger(__name__)

MAX_TOPICS = 7


class TrendingService(BaseAdapter):
    task = "trending_topics"

    async def detect(self, threads: Sequence[Thread]) -> list[TrendingTopic]:
        if not threads:
            return []

        payload = json.dumps(
            [
                {
                    "id": t.id,
                    "title": InputSanitizer.sanitize(t.title, 200),
                    "tags": [tag.name for tag in t.tags],
                    "createdAt": t.created_at.isoformat() if t.created_at else None,
                }
                for t in threads
            ],
            indent=2,
        )
        prompt = PromptTemplates.TRENDING_TOPICS.format(threads=payload)

        result = self._validate_items(
            await self._generate_json(prompt, JsonShape.ARRAY), TrendingTopic, MAX_TOPICS
        )
        if isinstance(result, ParseFailure):
            self._log_fallback(result, thread_count=len(threads))
            return []

        # Drop references to threads the model made up.
        known = {t.id for t in threads}
        topics = [
            t.model_copy(update={"related_threads": [i for i in t.related_threads if i in known]})
            for t in result
        ]
        logger.debug("trending_detected", topic_count=len(topics))
        return topics
