"""Narrative community health report."""

from collections.abc import Sequence

from threadsense.models.forum import Thread
from threadsense.models.llm import (
    OverallSentiment,
    Priority,
    Recommendation,
    SentimentResult,
    TrendingTopic,
)
from threadsense.parsing import ParseFailure
from threadsense.prompts.templates import PromptTemplates
from threadsense.services.base import BaseAdapter

EMPTY_COMMUNITY_REPORT = (
    "Your community is in its early stages with no threads yet. This is a great opportunity "
    "to establish a strong foundation by creating welcoming content, setting clear guidelines, "
    "and encouraging initial discussions."
)


def _avg_engagement(threads: Sequence[Thread]) -> tuple[int, float]:
    total_posts = sum(t.reply_count for t in threads)
    return total_posts, (total_posts / len(threads) if threads else 0.0)


def templated_report(
    threads: Sequence[Thread],
    sentiment: SentimentResult,
    topics: Sequence[TrendingTopic],
    recommendations: Sequence[Recommendation],
) -> str:
    if not threads:
        return EMPTY_COMMUNITY_REPORT

    total_posts, avg = _avg_engagement(threads)
    mood = {
        OverallSentiment.POSITIVE: ("healthy", "strong member satisfaction and engagement"),
        OverallSentiment.NEGATIVE: ("needs attention", "areas that may need attention from moderators"),
    }.get(sentiment.overall, ("stable", "balanced discussions with room for growth"))

    if avg > 3:
        level, verdict = "high", "excellent"
    elif avg > 1:
        level, verdict = "moderate", "good"
    else:
        level, verdict = "low", "developing"

    high = sum(1 for r in recommendations if r.priority is Priority.HIGH)
    closing = (
        f"Consider addressing the {high} high-priority recommendations to further improve community health."
        if recommendations
        else "Continue monitoring engagement patterns and member feedback to maintain community growth."
    )

    return (
        f"Your community shows {mood[0]} activity with {len(threads)} threads generating "
        f"{total_posts} total posts ({avg:.1f} average per thread). The sentiment analysis "
        f"indicates {sentiment.overall.value} community mood, suggesting {mood[1]}.\n\n"
        f"With {level} engagement levels and {len(topics)} trending topics, your community "
        f"demonstrates {verdict} member participation. {closing}"
    )


class HealthReportService(BaseAdapter):
    task = "health_report"

    async def report(
        self,
        threads: Sequence[Thread],
        sentiment: SentimentResult,
        topics: Sequence[TrendingTopic] = (),
        recommendations: Sequence[Recommendation] = (),
    ) -> str:
        if not threads:
            return EMPTY_COMMUNITY_REPORT

        total_posts, avg = _avg_engagement(threads)
        prompt = PromptTemplates.HEALTH_REPORT.format(
            thread_count=len(threads),
            post_count=total_posts,
            avg_engagement=f"{avg:.1f}",
            score=round(sentiment.score, 2),
            overall=sentiment.overall.value,
            topic_count=len(topics),
            recommendation_count=len(recommendations),
            summary=sentiment.summary or "n/a",
            top_topics="\n".join(
                f"- {t.topic} ({t.mentions} mentions, {t.trend.value})" for t in list(topics)[:5]
            ) or "- none",
            high_priority="\n".join(
                f"- {r.title}" for r in recommendations if r.priority is Priority.HIGH
            ) or "- none",
        )

        result = await self._generate(prompt)
        if isinstance(result, ParseFailure):
            self._log_fallback(result, thread_count=len(threads))
            return templated_report(threads, sentiment, topics, recommendations)
        return result.value
