"""Pydantic models for generative-text task results.

Each adapter validates the model's JSON against one of these before anything
downstream sees it. Unknown keys are ignored; missing required keys fail.
"""

from enum import StrEnum
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError, field_validator


class LLMConfig(BaseModel):
    model: str = "llama-3.3-70b-versatile"
    temperature: float = Field(default=0.4, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=1024, gt=0)
    timeout_seconds: float = Field(default=30.0, gt=0)


class Polarity(StrEnum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class OverallSentiment(StrEnum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    MIXED = "mixed"


class Severity(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


class Priority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TopicTrend(StrEnum):
    RISING = "rising"
    STABLE = "stable"
    FALLING = "falling"


class ModerationAction(StrEnum):
    REMOVE = "remove"
    REVIEW = "review"
    APPROVE = "approve"
    FLAG = "flag"


class RecommendationType(StrEnum):
    ACTION = "action"
    INSIGHT = "insight"
    WARNING = "warning"


class ReplyTone(StrEnum):
    PROFESSIONAL = "professional"
    FRIENDLY = "friendly"
    HELPFUL = "helpful"


class ImprovementKind(StrEnum):
    PROFESSIONAL = "professional"
    CLARITY = "clarity"
    ENGAGEMENT = "engagement"
    GRAMMAR = "grammar"


class ThreadType(StrEnum):
    QUESTION = "question"
    DISCUSSION = "discussion"
    ANNOUNCEMENT = "announcement"
    HELP = "help"


def _lower(value: object) -> object:
    return value.strip().lower() if isinstance(value, str) else value


# Models answer "Positive" as often as "positive".
Loose = BeforeValidator(_lower)


def _topic_polarity(value: object) -> object:
    value = _lower(value)
    return Polarity.NEUTRAL if value == "mixed" else value


class TopicSentiment(BaseModel):
    topic: str
    sentiment: Annotated[Polarity, BeforeValidator(_topic_polarity)] = Polarity.NEUTRAL
    mentions: int = Field(default=1, ge=0)


class SentimentResult(BaseModel):
    """Sentiment over a set of threads or posts."""

    overall: Annotated[OverallSentiment, Loose]
    score: float
    summary: str = ""
    topics: list[TopicSentiment] = Field(default_factory=list)

    @field_validator("topics", mode="before")
    @classmethod
    def _drop_malformed_topics(cls, v: object) -> list[TopicSentiment]:
        if not isinstance(v, list):
            return []
        topics = []
        for raw in v:
            try:
                topics.append(TopicSentiment.model_validate(raw))
            except ValidationError:
                continue
        return topics

    @field_validator("score")
    @classmethod
    def _clamp_score(cls, v: float) -> float:
        return max(-1.0, min(1.0, v))

    @field_validator("topics")
    @classmethod
    def _cap_topics(cls, v: list[TopicSentiment]) -> list[TopicSentiment]:
        return v[:10]


class TrendingTopic(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    topic: str
    mentions: int = Field(default=0, ge=0)
    trend: Annotated[TopicTrend, Loose] = TopicTrend.STABLE
    sentiment: Annotated[Polarity, Loose] = Polarity.NEUTRAL
    related_threads: list[str] = Field(default_factory=list, alias="relatedThreads")


class Recommendation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Annotated[RecommendationType, Loose]
    priority: Annotated[Priority, Loose] = Priority.MEDIUM
    title: str = Field(..., min_length=1)
    description: str = ""
    action_items: list[str] | None = Field(default=None, alias="actionItems")


class ModerationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    flagged: bool
    severity: Annotated[Severity, Loose] = Severity.NONE
    categories: list[str] = Field(default_factory=list)
    reasoning: str = ""
    suggested_action: Annotated[ModerationAction, Loose] = Field(
        default=ModerationAction.REVIEW, alias="suggestedAction"
    )


class ContentImprovement(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    improved_title: str = Field(..., min_length=1, alias="improvedTitle")
    improved_body: str = Field(..., min_length=1, alias="improvedBody")
    suggestions: list[str] = Field(..., min_length=1)


class ThreadDraftSuggestion(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    body: str = Field(..., min_length=1)
