"""Insight engine: per-thread analysis and community health snapshots.

Orchestrates the adapters, scorers, cache and suggestion generator. The
public methods are total: whatever the generative service or the input does,
callers get a structurally valid record back, at worst with confidence fields
at their floor values.
"""

import asyncio
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from threadsense.clients.base import AbstractForumClient
from threadsense.clients.llm_client import LLMClient
from threadsense.core import rules, scoring
from threadsense.core.cache import AnalysisCache
from threadsense.core.suggestions import find_related_threads, smart_suggestions
from threadsense.errors import FailureKind, InvalidInputError, classify_failure
from threadsense.logger import get_logger
from threadsense.models.forum import Post, Thread
from threadsense.models.insights import (
    CommunityHealthMetrics,
    ContentQuality,
    ContextualReply,
    EngagementLevel,
    EngagementReport,
    EngagementStats,
    GrowthTrend,
    HealthStatus,
    OverallHealth,
    ReplyKind,
    SentimentDistribution,
    SentimentSnapshot,
    SmartSuggestion,
    ThreadAnalysis,
    ToxicityReport,
    Trend,
)
from threadsense.models.llm import (
    ContentImprovement,
    ImprovementKind,
    ModerationResult,
    Polarity,
    ReplyTone,
    SentimentResult,
    ThreadDraftSuggestion,
    ThreadType,
)
from threadsense.services import (
    ContentImprovementService,
    ModerationService,
    RecommendationService,
    ReplyService,
    SentimentService,
    SummaryService,
    ThreadSuggestionService,
)
from threadsense.services.moderation import FALLBACK_REASONING
from threadsense.services.replies import FALLBACK_REPLY
from threadsense.services.summary import FALLBACK_SUMMARY
from threadsense.utils.sanitizer import bounded_concat

logger = get_logger(__name__)

ThreadLike = Thread | Mapping[str, Any]
PostLike = Post | Mapping[str, Any]

DEFAULT_CONTENT_BUDGET = 2000
BASELINE_CONTENT_QUALITY = 0.8

FALLBACK_REPLIES = (
    "Thank you for sharing this. I'd like to add some thoughts on this topic.",
    "This is a great point. Have you considered exploring this from a different angle?",
    "I appreciate your perspective. Here's what I've learned from similar situations.",
)

_MIN_OPTION_LEN = 10
_MIN_CONTEXTUAL_LEN = 20


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def neutral_health() -> CommunityHealthMetrics:
    """Snapshot for an empty batch: mid score, zero counts, no recommendations."""
    return CommunityHealthMetrics(
        overall=OverallHealth(score=0.5, status=HealthStatus.HEALTHY, trend=Trend.STABLE),
        sentiment=SentimentDistribution(),
        engagement=EngagementStats(),
        content_quality=ContentQuality(score=0.5),
        recommendations=(),
    )


def _overall_trend(sentiment: Trend, engagement: GrowthTrend) -> Trend:
    if sentiment is Trend.IMPROVING and engagement is not GrowthTrend.DECLINING:
        return Trend.IMPROVING
    if sentiment is Trend.DECLINING and engagement is not GrowthTrend.GROWING:
        return Trend.DECLINING
    return Trend.STABLE


class InsightEngine:
    """Community intelligence over forum threads and posts.

    Construct once at the composition root and share: the analysis cache is
    the only mutable state and lives on the instance.
    """

    def __init__(
        self,
        llm: LLMClient,
        cache: AnalysisCache | None = None,
        forum: AbstractForumClient | None = None,
        content_char_budget: int = DEFAULT_CONTENT_BUDGET,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._cache = cache if cache is not None else AnalysisCache()
        self._forum = forum
        self._budget = content_char_budget
        self._now = now

        self.sentiment = SentimentService(llm)
        self.moderation = ModerationService(llm)
        self.summaries = SummaryService(llm)
        self.recommendations = RecommendationService(llm)
        self.replies = ReplyService(llm)
        self.improvement = ContentImprovementService(llm)
        self.thread_ideas = ThreadSuggestionService(llm)

    @property
    def cache(self) -> AnalysisCache:
        return self._cache

    # --- Input coercion ---

    @staticmethod
    def _parse_thread(thread: ThreadLike) -> Thread:
        if isinstance(thread, Thread):
            return thread
        try:
            return Thread.model_validate(thread)
        except ValidationError as e:
            raise InvalidInputError(f"thread rejected with {e.error_count()} validation error(s)") from e

    @classmethod
    def _coerce_thread(cls, thread: ThreadLike) -> Thread | None:
        try:
            return cls._parse_thread(thread)
        except InvalidInputError as e:
            logger.info("invalid_input", kind=classify_failure(e).value, reason=str(e))
            return None

    @staticmethod
    def _coerce_posts(posts: Iterable[PostLike] | None) -> list[Post]:
        coerced: list[Post] = []
        for post in posts or ():
            if isinstance(post, Post):
                coerced.append(post)
                continue
            try:
                coerced.append(Post.model_validate(post))
            except ValidationError:
                logger.info("post_skipped", kind=FailureKind.INVALID_INPUT.value)
        return coerced

    # --- Per-thread analysis ---

    async def analyze_thread(
        self, thread: ThreadLike, posts: Iterable[PostLike] | None = None
    ) -> ThreadAnalysis:
        """Analyse one thread and its replies. Never raises."""
        parsed = self._coerce_thread(thread)
        if parsed is None:
            raw_id = thread.get("id") if isinstance(thread, Mapping) else None
            return self._fallback_analysis(str(raw_id or ""))

        post_list = self._coerce_posts(posts)
        key = AnalysisCache.key(parsed.id, len(post_list))
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("analysis_cache_hit", thread_id=parsed.id, post_count=len(post_list))
            return cached

        try:
            analysis = await self._analyze(parsed, post_list)
        except Exception as e:
            logger.error(
                "thread_analysis_failed",
                thread_id=parsed.id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return self._fallback_analysis(parsed.id)

        self._cache.put(key, analysis)
        logger.info(
            "thread_analyzed",
            thread_id=parsed.id,
            post_count=len(post_list),
            sentiment=analysis.sentiment.overall.value,
            flagged=analysis.toxicity.flagged,
            engagement=analysis.engagement.level.value,
        )
        return analysis

    async def _analyze(self, thread: Thread, posts: list[Post]) -> ThreadAnalysis:
        combined = bounded_concat(
            [thread.title, thread.body, *(p.body for p in posts)], self._budget
        )
        # Independent reads of the same input; issued together.
        summary, sentiment, moderation = await asyncio.gather(
            self.summaries.summarize(thread, posts),
            self.sentiment.analyze([thread, *posts]),
            self.moderation.analyze(combined, thread.author_name),
        )

        now = self._now()
        snapshot = self._sentiment_snapshot(sentiment)
        toxicity = self._toxicity_report(moderation)
        engagement = scoring.engagement_score(thread, posts, now=now)

        return ThreadAnalysis(
            thread_id=thread.id,
            summary=summary.strip() or FALLBACK_SUMMARY,
            sentiment=snapshot,
            toxicity=toxicity,
            engagement=engagement,
            related_threads=find_related_threads(thread),
            suggested_actions=rules.suggested_actions(
                thread, posts, snapshot, toxicity, engagement, now=now
            ),
            ai_insights=rules.ai_insights(thread, posts, snapshot, engagement),
            computed_at=now,
        )

    @staticmethod
    def _sentiment_snapshot(sentiment: SentimentResult) -> SentimentSnapshot:
        return SentimentSnapshot(
            overall=sentiment.overall,
            score=sentiment.score,
            # Magnitude of the score; a neutral or failed read is zero-confidence.
            confidence=min(1.0, abs(sentiment.score)),
        )

    @staticmethod
    def _toxicity_report(moderation: ModerationResult) -> ToxicityReport:
        return ToxicityReport(
            flagged=moderation.flagged,
            severity=moderation.severity,
            categories=tuple(dict.fromkeys(c.strip() for c in moderation.categories if c.strip())),
            reasoning=moderation.reasoning,
        )

    def _fallback_analysis(self, thread_id: str) -> ThreadAnalysis:
        return ThreadAnalysis(
            thread_id=thread_id,
            summary=FALLBACK_SUMMARY,
            sentiment=SentimentSnapshot(),
            toxicity=ToxicityReport(reasoning=FALLBACK_REASONING),
            engagement=EngagementReport(
                score=0.5,
                level=EngagementLevel.MEDIUM,
                factors=("Standard community engagement",),
            ),
            ai_insights=("AI analysis temporarily unavailable",),
            computed_at=self._now(),
        )

    # --- Community health ---

    async def analyze_community_health(
        self,
        threads: Iterable[ThreadLike] | None,
        sentiment: SentimentResult | None = None,
    ) -> CommunityHealthMetrics:
        """Reduce a batch of threads to one health snapshot. Never raises.

        Pass ``sentiment`` when it was already computed for the same batch.
        """
        batch = [t for t in map(self._coerce_thread, threads or ()) if t is not None]
        if not batch:
            return neutral_health()

        try:
            return await self._community_health(batch, sentiment)
        except Exception as e:
            logger.error(
                "community_health_failed",
                thread_count=len(batch),
                error=str(e),
                error_type=type(e).__name__,
            )
            return neutral_health()

    async def _community_health(
        self, threads: list[Thread], sentiment: SentimentResult | None = None
    ) -> CommunityHealthMetrics:
        if sentiment is None:
            sentiment = await self.sentiment.analyze(threads)
        # Recommendations consume the sentiment, so they run after it.
        recommendations = await self.recommendations.generate(threads, sentiment)

        count = len(threads)
        total_replies = sum(t.reply_count for t in threads)
        average_replies = total_replies / count
        average_views = sum(t.view_count for t in threads) / count
        active_users = len({t.author_id for t in threads if t.author_id})

        score = scoring.health_score(count, total_replies, sentiment.score)
        sentiment_trend = scoring.sentiment_trend(sentiment.overall)
        engagement_trend = scoring.engagement_trend(average_replies)

        toxic = sum(
            1
            for t in threads
            if (cached := self._cache.latest_for(t.id)) is not None and cached.toxicity.flagged
        )
        helpful = sum(1 for t in threads if t.reply_count > 3)

        metrics = CommunityHealthMetrics(
            overall=OverallHealth(
                score=score,
                status=scoring.health_status(score),
                trend=_overall_trend(sentiment_trend, engagement_trend),
            ),
            sentiment=SentimentDistribution(
                positive=sum(1 for t in sentiment.topics if t.sentiment is Polarity.POSITIVE),
                neutral=sum(1 for t in sentiment.topics if t.sentiment is Polarity.NEUTRAL),
                negative=sum(1 for t in sentiment.topics if t.sentiment is Polarity.NEGATIVE),
                trend=sentiment_trend,
            ),
            engagement=EngagementStats(
                average_replies=average_replies,
                average_views=average_views,
                active_users=active_users,
                trend=engagement_trend,
            ),
            content_quality=ContentQuality(
                score=BASELINE_CONTENT_QUALITY * (1 - toxic / count),
                toxic_content=toxic,
                helpful_content=helpful,
                trend=Trend.STABLE,
            ),
            recommendations=tuple(recommendations),
        )
        logger.info(
            "community_health_computed",
            thread_count=count,
            score=round(score, 3),
            status=metrics.overall.status.value,
        )
        return metrics

    # --- Suggestions ---

    async def generate_smart_suggestions(self, thread_id: str, limit: int = 5) -> list[SmartSuggestion]:
        thread: Thread | None = None
        if self._forum is not None and thread_id:
            try:
                thread = await self._forum.get_thread(thread_id)
            except Exception as e:
                logger.warning("suggestion_thread_lookup_failed", thread_id=thread_id, error=str(e))
        return smart_suggestions(thread_id, thread, limit)

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.info("analysis_cache_cleared")

    # --- Authoring helpers ---

    async def generate_smart_reply_options(self, thread_content: str, post_content: str) -> list[str]:
        context = f"Thread: {thread_content}\nPost: {post_content}"
        replies = await asyncio.gather(
            *(self.replies.generate(context, tone) for tone in
              (ReplyTone.HELPFUL, ReplyTone.PROFESSIONAL, ReplyTone.FRIENDLY))
        )
        options = [r for r in replies if len(r) > _MIN_OPTION_LEN and r != FALLBACK_REPLY]
        return options or list(FALLBACK_REPLIES)

    async def generate_contextual_replies(
        self,
        thread_title: str,
        thread_content: str,
        recent_posts: Sequence[PostLike] = (),
    ) -> list[ContextualReply]:
        posts = self._coerce_posts(recent_posts)
        history = "\n".join(f"{p.author_name}: {p.body}" for p in posts[-3:])
        context = f'Thread: "{thread_title}"\nContent: {thread_content}\nRecent Discussion: {history}'

        plan: list[tuple[str, ReplyTone, ReplyKind, float]] = [
            (context, ReplyTone.HELPFUL, ReplyKind.DIRECT_ANSWER, 0.85)
        ]
        if len(thread_content) > 200 or len(posts) > 2:
            plan.append((context, ReplyTone.PROFESSIONAL, ReplyKind.EXPERT_INSIGHT, 0.80))
        plan.append((context, ReplyTone.FRIENDLY, ReplyKind.SUPPORTIVE_COMMENT, 0.75))
        if posts:
            last = posts[-1]
            plan.append(
                (
                    f"Responding to: {last.author_name}: {last.body}",
                    ReplyTone.HELPFUL,
                    ReplyKind.FOLLOW_UP_QUESTION,
                    0.70,
                )
            )

        contents = await asyncio.gather(*(self.replies.generate(ctx, tone) for ctx, tone, _, _ in plan))
        replies = [
            ContextualReply(content=content, tone=tone, type=kind, confidence=confidence)
            for content, (_, tone, kind, confidence) in zip(contents, plan)
            if len(content) > _MIN_CONTEXTUAL_LEN and content != FALLBACK_REPLY
        ]
        if replies:
            return replies

        fallback_shape = (
            (ReplyTone.HELPFUL, ReplyKind.SUPPORTIVE_COMMENT),
            (ReplyTone.FRIENDLY, ReplyKind.FOLLOW_UP_QUESTION),
            (ReplyTone.PROFESSIONAL, ReplyKind.EXPERT_INSIGHT),
        )
        return [
            ContextualReply(content=text, tone=tone, type=kind, confidence=0.6)
            for text, (tone, kind) in zip(FALLBACK_REPLIES, fallback_shape)
        ]

    async def improve_thread_content(
        self, title: str, body: str, kind: ImprovementKind = ImprovementKind.PROFESSIONAL
    ) -> ContentImprovement:
        return await self.improvement.improve(title, body, kind)

    async def generate_thread_suggestions(
        self, topic: str, thread_type: ThreadType = ThreadType.DISCUSSION
    ) -> list[ThreadDraftSuggestion]:
        return await self.thread_ideas.suggest(topic, thread_type)
