"""Heuristic scorers: pure functions over thread/post numbers, no I/O."""

from collections.abc import Sequence
from datetime import datetime, timezone

from threadsense.models.forum import Post, Thread
from threadsense.models.insights import (
    EngagementLevel,
    EngagementReport,
    GrowthTrend,
    HealthStatus,
    Trend,
)
from threadsense.models.llm import OverallSentiment

BASE_SCORE = 0.5

# (entry reply count, bonus, factor); the first tier carries no reply bonus.
_REPLY_TIERS: tuple[tuple[int, float, str | None], ...] = (
    (1, 0.0, None),
    (4, 0.1, "Good reply activity"),
    (11, 0.3, "High reply activity"),
)
_RATIO_THRESHOLD = 20
_RATIO_BONUS = 0.2
_RECENCY_BONUS = 0.1
_PINNED_BONUS = 0.2
_QUESTION_BONUS = 0.1

_SECONDS_PER_DAY = 86_400


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def thread_age_days(thread: Thread, now: datetime | None = None) -> float | None:
    """Age in days, or None when the thread carries no creation time."""
    if thread.created_at is None:
        return None
    now = now or datetime.now(timezone.utc)
    created = thread.created_at
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return (now - created).total_seconds() / _SECONDS_PER_DAY


def reply_count(thread: Thread, posts: Sequence[Post] = ()) -> int:
    return len(posts) or thread.reply_count


def _reply_bonus(replies: int, views: int) -> tuple[float, list[str]]:
    """Reply-tier bonus plus the view-to-reply ratio bonus.

    The ratio is taken at the entry count of each tier the thread has reached
    and the best tier wins, so a new reply never lowers the score.
    """
    best: tuple[float, list[str]] = (0.0, [])
    for entry, bonus, label in _REPLY_TIERS:
        if replies < entry:
            break
        factors = [label] if label else []
        total = bonus
        if views / entry > _RATIO_THRESHOLD:
            total += _RATIO_BONUS
            factors.append("High view-to-reply ratio")
        if total >= best[0]:
            best = (total, factors)
    return best


def engagement_level(score: float) -> EngagementLevel:
    if score > 0.7:
        return EngagementLevel.HIGH
    if score > 0.4:
        return EngagementLevel.MEDIUM
    return EngagementLevel.LOW


def engagement_score(
    thread: Thread, posts: Sequence[Post] = (), now: datetime | None = None
) -> EngagementReport:
    score, factors = BASE_SCORE, []

    bonus, reply_factors = _reply_bonus(reply_count(thread, posts), thread.view_count)
    score += bonus
    factors.extend(reply_factors)

    age = thread_age_days(thread, now)
    if age is not None and age < 1:
        score += _RECENCY_BONUS
        factors.append("Recent activity")

    if thread.pinned:
        score += _PINNED_BONUS
        factors.append("Pinned thread")

    if "?" in thread.title:
        score += _QUESTION_BONUS
        factors.append("Question format encourages responses")

    score = _clamp(score, 0.0, 1.0)
    return EngagementReport(score=score, level=engagement_level(score), factors=tuple(factors))


def health_score(thread_count: int, total_replies: int, sentiment_score: float) -> float:
    """Unweighted mean of normalised engagement, sentiment and activity."""
    avg_replies = total_replies / thread_count if thread_count > 0 else 0.0
    engagement = min(1.0, avg_replies / 5)
    sentiment = (_clamp(sentiment_score, -1.0, 1.0) + 1) / 2
    activity = min(1.0, thread_count / 20)
    return _clamp((engagement + sentiment + activity) / 3, 0.0, 1.0)


def health_status(score: float) -> HealthStatus:
    if score > 0.8:
        return HealthStatus.EXCELLENT
    if score > 0.6:
        return HealthStatus.HEALTHY
    if score > 0.4:
        return HealthStatus.CONCERNING
    return HealthStatus.CRITICAL


def sentiment_trend(overall: OverallSentiment) -> Trend:
    # Single-snapshot heuristic; no history is kept between calls.
    if overall is OverallSentiment.POSITIVE:
        return Trend.IMPROVING
    if overall is OverallSentiment.NEGATIVE:
        return Trend.DECLINING
    return Trend.STABLE


def engagement_trend(average_replies: float) -> GrowthTrend:
    if average_replies > 2:
        return GrowthTrend.GROWING
    if average_replies > 1:
        return GrowthTrend.STABLE
    return GrowthTrend.DECLINING
