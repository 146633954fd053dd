"""Community-manager recommendations, given an already computed sentiment."""

from collections.abc import Sequence

from threadsense.models.forum import Thread
from threadsense.models.llm import Recommendation, SentimentResult
from threadsense.parsing import JsonShape, ParseFailure
from threadsense.prompts.templates import PromptTemplates
from threadsense.services.base import BaseAdapter

MAX_RECOMMENDATIONS = 5


class RecommendationService(BaseAdapter):
    task = "recommendations"

    async def generate(
        self, threads: Sequence[Thread], sentiment: SentimentResult
    ) -> list[Recommendation]:
        prompt = PromptTemplates.RECOMMENDATIONS.format(
            overall=sentiment.overall.value,
            score=round(sentiment.score, 2),
            summary=sentiment.summary or "n/a",
            thread_count=len(threads),
            topics=", ".join(t.topic for t in sentiment.topics) or "none",
        )

        result = self._validate_items(
            await self._generate_json(prompt, JsonShape.ARRAY), Recommendation, MAX_RECOMMENDATIONS
        )
        if isinstance(result, ParseFailure):
            self._log_fallback(result, thread_count=len(threads))
            return []
        return result
