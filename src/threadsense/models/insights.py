"""Structured insight records handed to the dashboard layer.

All records are frozen: a new analysis produces a new object. Dump with
``model_dump(by_alias=True)`` to get the camelCase keys the UI expects.
"""

from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from threadsense.models.llm import (
    OverallSentiment,
    Priority,
    Recommendation,
    ReplyTone,
    SentimentResult,
    Severity,
    TrendingTopic,
)


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EngagementLevel(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ActionType(StrEnum):
    MODERATE = "moderate"
    PROMOTE = "promote"
    ARCHIVE = "archive"
    FEATURE = "feature"


class HealthStatus(StrEnum):
    EXCELLENT = "excellent"
    HEALTHY = "healthy"
    CONCERNING = "concerning"
    CRITICAL = "critical"


class Trend(StrEnum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class GrowthTrend(StrEnum):
    GROWING = "growing"
    STABLE = "stable"
    DECLINING = "declining"


class SuggestionType(StrEnum):
    RELATED_THREAD = "related_thread"
    HELPFUL_RESOURCE = "helpful_resource"
    SIMILAR_DISCUSSION = "similar_discussion"
    EXPERT_USER = "expert_user"


class ReplyKind(StrEnum):
    DIRECT_ANSWER = "direct_answer"
    FOLLOW_UP_QUESTION = "follow_up_question"
    SUPPORTIVE_COMMENT = "supportive_comment"
    EXPERT_INSIGHT = "expert_insight"


# --- Per-thread analysis ---


class SentimentSnapshot(_Record):
    overall: OverallSentiment = OverallSentiment.NEUTRAL
    score: float = Field(default=0.0, ge=-1.0, le=1.0)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class ToxicityReport(_Record):
    flagged: bool = False
    severity: Severity = Severity.NONE
    categories: tuple[str, ...] = ()
    reasoning: str = ""


class EngagementReport(_Record):
    score: float = Field(..., ge=0.0, le=1.0)
    level: EngagementLevel
    factors: tuple[str, ...] = ()


class RelatedThread(_Record):
    id: str
    title: str
    similarity: float = Field(..., ge=0.0, le=1.0)
    reason: str


class SuggestedAction(_Record):
    type: ActionType
    priority: Priority
    reason: str


class ThreadAnalysis(_Record):
    """Everything the dashboard shows about one thread and its replies."""

    thread_id: str
    summary: str = Field(..., min_length=1)
    sentiment: SentimentSnapshot
    toxicity: ToxicityReport
    engagement: EngagementReport
    related_threads: tuple[RelatedThread, ...] = Field(default=(), max_length=5)
    suggested_actions: tuple[SuggestedAction, ...] = ()
    ai_insights: tuple[str, ...] = Field(default=(), max_length=4)
    computed_at: datetime = Field(default_factory=_utcnow)


# --- Community health ---


class OverallHealth(_Record):
    score: float = Field(..., ge=0.0, le=1.0)
    status: HealthStatus
    trend: Trend = Trend.STABLE


class SentimentDistribution(_Record):
    positive: int = 0
    neutral: int = 0
    negative: int = 0
    trend: Trend = Trend.STABLE


class EngagementStats(_Record):
    average_replies: float = 0.0
    average_views: float = 0.0
    active_users: int = 0
    trend: GrowthTrend = GrowthTrend.STABLE


class ContentQuality(_Record):
    score: float = Field(default=0.5, ge=0.0, le=1.0)
    toxic_content: int = 0
    helpful_content: int = 0
    trend: Trend = Trend.STABLE


class CommunityHealthMetrics(_Record):
    overall: OverallHealth
    sentiment: SentimentDistribution = Field(default_factory=SentimentDistribution)
    engagement: EngagementStats = Field(default_factory=EngagementStats)
    content_quality: ContentQuality = Field(default_factory=ContentQuality)
    recommendations: tuple[Recommendation, ...] = ()


# --- Suggestions and replies ---


class SmartSuggestion(_Record):
    id: str
    type: SuggestionType
    title: str
    description: str
    relevance_score: float = Field(..., ge=0.0, le=1.0)
    metadata: dict[str, Any] = Field(default_factory=dict)


class ContextualReply(_Record):
    content: str
    tone: ReplyTone
    type: ReplyKind
    confidence: float = Field(..., ge=0.0, le=1.0)


# --- Dashboard ---


class ThreadSummary(_Record):
    thread_id: str
    title: str
    summary: str


class DashboardInsights(_Record):
    """Result of one dashboard refresh."""

    thread_count: int = 0
    sentiment: SentimentResult | None = None
    trending_topics: tuple[TrendingTopic, ...] = ()
    recommendations: tuple[Recommendation, ...] = ()
    thread_summaries: tuple[ThreadSummary, ...] = ()
    health: CommunityHealthMetrics | None = None
    health_report: str = ""
    generated_at: datetime = Field(default_factory=_utcnow)
    error: str | None = None
