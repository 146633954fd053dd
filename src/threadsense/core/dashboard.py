"""Dashboard refresh: one pass over the latest threads producing every panel."""

import asyncio

import httpx
from pydantic import ValidationError

from threadsense.clients.base import AbstractForumClient
from threadsense.clients.forum_client import ForumClientError
from threadsense.clients.llm_client import LLMClient
from threadsense.core.engine import InsightEngine, neutral_health
from threadsense.logger import get_logger
from threadsense.models.forum import Thread
from threadsense.models.insights import DashboardInsights, ThreadAnalysis, ThreadSummary
from threadsense.models.llm import Priority, Recommendation, RecommendationType
from threadsense.services import HealthReportService, TrendingService
from threadsense.services.health_report import EMPTY_COMMUNITY_REPORT
from threadsense.services.sentiment import neutral_sentiment

logger = get_logger(__name__)

SUMMARIZED_THREADS = 5

EMPTY_COMMUNITY_SENTIMENT = (
    "Your community is just getting started! As more discussions develop, insights into "
    "community sentiment and engagement patterns will become available."
)

ONBOARDING_RECOMMENDATIONS: tuple[Recommendation, ...] = (
    Recommendation(
        type=RecommendationType.ACTION,
        priority=Priority.HIGH,
        title="Welcome New Community Members",
        description=(
            "Create a welcoming environment for your first community members by setting up "
            "introduction threads and community guidelines."
        ),
        action_items=[
            "Create a 'Welcome & Introductions' thread",
            "Post community guidelines and rules",
            "Share your community's purpose and goals",
            "Encourage members to introduce themselves",
        ],
    ),
    Recommendation(
        type=RecommendationType.INSIGHT,
        priority=Priority.MEDIUM,
        title="Seed Initial Discussions",
        description=(
            "Start meaningful conversations to encourage engagement and show the type of "
            "content you want to see."
        ),
        action_items=[
            "Post thought-provoking questions",
            "Share relevant news or updates",
            "Create polls to gather member opinions",
            "Start topic-specific discussion threads",
        ],
    ),
    Recommendation(
        type=RecommendationType.ACTION,
        priority=Priority.LOW,
        title="Set Up Community Structure",
        description="Organize your community with proper categories and moderation tools to scale effectively.",
        action_items=[
            "Create topic categories or tags",
            "Set up moderation guidelines",
            "Configure notification settings",
            "Plan regular community events or discussions",
        ],
    ),
)


class DashboardService:
    """Feeds the insights dashboard from the forum and the engine.

    All dependencies are injected; the engine supplies the shared adapters
    and the analysis cache.
    """

    def __init__(
        self,
        forum: AbstractForumClient,
        engine: InsightEngine,
        llm: LLMClient,
        thread_limit: int = 100,
    ) -> None:
        self._forum = forum
        self._engine = engine
        self._trending = TrendingService(llm)
        self._health_report = HealthReportService(llm)
        self._thread_limit = thread_limit
        self._last: DashboardInsights | None = None

    @property
    def last_insights(self) -> DashboardInsights | None:
        return self._last

    async def refresh(self, limit: int | None = None) -> DashboardInsights:
        """Recompute every dashboard panel from the latest threads."""
        logger.info("dashboard_refresh_start")
        try:
            page = await self._forum.list_threads(limit=limit or self._thread_limit)
        except (ForumClientError, httpx.HTTPError, ValidationError) as e:
            logger.error("dashboard_refresh_failed", error=str(e), error_type=type(e).__name__)
            return DashboardInsights(error=str(e))

        threads = page.threads
        insights = await (self._populated(threads) if threads else self._empty())
        self._last = insights
        logger.info(
            "dashboard_refresh_complete",
            thread_count=insights.thread_count,
            topics=len(insights.trending_topics),
            recommendations=len(insights.recommendations),
        )
        return insights

    async def _empty(self) -> DashboardInsights:
        logger.info("dashboard_empty_community")
        return DashboardInsights(
            thread_count=0,
            sentiment=neutral_sentiment(EMPTY_COMMUNITY_SENTIMENT),
            recommendations=ONBOARDING_RECOMMENDATIONS,
            health=neutral_health(),
            health_report=EMPTY_COMMUNITY_REPORT,
        )

    async def _populated(self, threads: list[Thread]) -> DashboardInsights:
        engine = self._engine
        sentiment, topics = await asyncio.gather(
            engine.sentiment.analyze(threads),
            self._trending.detect(threads),
        )

        # Health reuses the sentiment above and produces the recommendations.
        top = threads[:SUMMARIZED_THREADS]
        health, summaries = await asyncio.gather(
            engine.analyze_community_health(threads, sentiment),
            asyncio.gather(*(engine.summaries.summarize(t) for t in top)),
        )
        recommendations = health.recommendations

        report = await self._health_report.report(threads, sentiment, topics, recommendations)

        return DashboardInsights(
            thread_count=len(threads),
            sentiment=sentiment,
            trending_topics=tuple(topics),
            recommendations=recommendations,
            thread_summaries=tuple(
                ThreadSummary(thread_id=t.id, title=t.title, summary=s)
                for t, s in zip(top, summaries)
            ),
            health=health,
            health_report=report,
        )

    async def analyze_thread_by_id(self, thread_id: str) -> ThreadAnalysis | None:
        """Fetch a thread with its posts and analyse it; None if it does not exist."""
        try:
            thread = await self._forum.get_thread(thread_id)
            if thread is None:
                return None
            posts = await self._forum.list_posts(thread_id)
        except (ForumClientError, httpx.HTTPError, ValidationError) as e:
            logger.error("thread_fetch_failed", thread_id=thread_id, error=str(e))
            return None
        return await self._engine.analyze_thread(thread, posts)
