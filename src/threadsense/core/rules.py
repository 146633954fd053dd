"""Fixed rules turning scores into suggested moderator actions and insight lines."""

from collections.abc import Sequence
from datetime import datetime

from threadsense.core.scoring import reply_count, thread_age_days
from threadsense.models.forum import Post, Thread
from threadsense.models.insights import (
    ActionType,
    EngagementLevel,
    EngagementReport,
    SentimentSnapshot,
    SuggestedAction,
    ToxicityReport,
)
from threadsense.models.llm import OverallSentiment, Priority, Severity

MAX_INSIGHTS = 4

_SEVERITY_PRIORITY = {
    Severity.HIGH: Priority.HIGH,
    Severity.MEDIUM: Priority.MEDIUM,
    Severity.LOW: Priority.LOW,
    Severity.NONE: Priority.LOW,
}


def suggested_actions(
    thread: Thread,
    posts: Sequence[Post],
    sentiment: SentimentSnapshot,
    toxicity: ToxicityReport,
    engagement: EngagementReport,
    now: datetime | None = None,
) -> tuple[SuggestedAction, ...]:
    actions: list[SuggestedAction] = []
    positive = sentiment.overall is OverallSentiment.POSITIVE

    if toxicity.flagged:
        categories = ", ".join(toxicity.categories) or "unspecified issues"
        actions.append(
            SuggestedAction(
                type=ActionType.MODERATE,
                priority=_SEVERITY_PRIORITY[toxicity.severity],
                reason=f"Content flagged for: {categories}",
            )
        )

    if engagement.score > 0.8 and positive:
        actions.append(
            SuggestedAction(
                type=ActionType.FEATURE,
                priority=Priority.MEDIUM,
                reason="High engagement and positive sentiment - consider featuring",
            )
        )

    age = thread_age_days(thread, now)
    if age is not None and age > 30 and engagement.score < 0.2:
        actions.append(
            SuggestedAction(
                type=ActionType.ARCHIVE,
                priority=Priority.LOW,
                reason="Old thread with low engagement - consider archiving",
            )
        )

    if positive and reply_count(thread, posts) > 5:
        actions.append(
            SuggestedAction(
                type=ActionType.PROMOTE,
                priority=Priority.MEDIUM,
                reason="Active discussion with positive sentiment",
            )
        )

    return tuple(actions)


def ai_insights(
    thread: Thread,
    posts: Sequence[Post],
    sentiment: SentimentSnapshot,
    engagement: EngagementReport,
) -> tuple[str, ...]:
    """First four matching rules, in priority order."""
    insights: list[str] = []

    if engagement.level is EngagementLevel.HIGH:
        insights.append("This thread is generating high community engagement")
    elif engagement.level is EngagementLevel.LOW:
        insights.append("Consider improving the title or adding more context to boost engagement")

    if sentiment.overall is OverallSentiment.POSITIVE:
        insights.append("Community sentiment is positive - members are finding this helpful")
    elif sentiment.overall is OverallSentiment.NEGATIVE:
        insights.append("Negative sentiment detected - may need moderator attention")

    replies = reply_count(thread, posts)
    if replies == 0:
        insights.append("No replies yet - consider promoting or improving visibility")
    elif replies > 10:
        insights.append("Active discussion with many participants")

    if "?" in thread.title or "?" in (thread.body or ""):
        insights.append("Question format detected - likely seeking community help")

    return tuple(insights[:MAX_INSIGHTS])
