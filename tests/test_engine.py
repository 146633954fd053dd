"""Tests for the insight engine: per-thread analysis and community health."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from conftest import (
    MODERATION_CLEAN,
    NOW,
    RECOMMENDATIONS,
    SENTIMENT_POSITIVE,
    FailingLLM,
    FakeLLM,
    by_task,
    make_posts,
    make_thread,
)

from threadsense.core.cache import AnalysisCache
from threadsense.core.engine import FALLBACK_REPLIES, InsightEngine
from threadsense.errors import InvalidInputError
from threadsense.models.insights import (
    ActionType,
    EngagementLevel,
    GrowthTrend,
    HealthStatus,
    ReplyKind,
    SuggestionType,
    Trend,
)
from threadsense.models.llm import ImprovementKind, OverallSentiment, Severity
from threadsense.services.summary import FALLBACK_SUMMARY

FLAGGED = {
    "flagged": True,
    "severity": "high",
    "categories": ["harassment", "harassment", " "],
    "reasoning": "Personal attacks.",
    "suggestedAction": "remove",
}


def _healthy_llm() -> FakeLLM:
    return FakeLLM(
        by_task(
            summary="Members compare deployment setups.",
            sentiment=SENTIMENT_POSITIVE,
            moderation=MODERATION_CLEAN,
            recommendations=RECOMMENDATIONS,
            reply="Here is a detailed and useful reply to the thread.",
        )
    )


def _engine(llm, clock=None, **kwargs) -> InsightEngine:
    cache = AnalysisCache(clock=clock) if clock is not None else None
    return InsightEngine(llm, cache=cache, now=lambda: NOW, **kwargs)


class TestAnalyzeThread:
    async def test_full_analysis(self, clock):
        llm = _healthy_llm()
        thread = make_thread(
            title="How are you deploying the docs?",
            tags=[{"id": "g1", "name": "devops"}],
        )
        analysis = await _engine(llm, clock).analyze_thread(thread, make_posts(7))

        assert analysis.thread_id == "t1"
        assert analysis.summary == "Members compare deployment setups."
        assert analysis.sentiment.overall is OverallSentiment.POSITIVE
        assert analysis.sentiment.confidence == pytest.approx(0.6)
        assert analysis.toxicity.flagged is False
        assert analysis.related_threads[0].id == "related-t1-0"
        assert ActionType.PROMOTE in {a.type for a in analysis.suggested_actions}
        assert analysis.computed_at == NOW
        assert llm.calls == 3

    async def test_invariants_hold(self, clock):
        llm = FakeLLM(by_task(sentiment={"overall": "positive", "score": 7}))
        thread = make_thread(
            title="Why why why? testing tooling pipelines deployment servers clusters",
            tags=[{"id": str(i), "name": f"tag{i}"} for i in range(6)],
            replyCount=50,
            viewCount=10_000,
            pinned=True,
        )
        analysis = await _engine(llm, clock).analyze_thread(thread, make_posts(12))
        assert -1.0 <= analysis.sentiment.score <= 1.0
        assert 0.0 <= analysis.engagement.score <= 1.0
        assert len(analysis.related_threads) <= 5
        assert len(analysis.ai_insights) <= 4

    async def test_cache_hit_skips_generation(self, clock):
        llm = _healthy_llm()
        engine = _engine(llm, clock)
        thread, posts = make_thread(), make_posts(2)

        first = await engine.analyze_thread(thread, posts)
        calls = llm.calls
        clock.advance(120)
        second = await engine.analyze_thread(thread, posts)

        assert second is first
        assert llm.calls == calls

    async def test_expired_entry_regenerates(self, clock):
        llm = _healthy_llm()
        engine = _engine(llm, clock)
        thread, posts = make_thread(), make_posts(2)

        await engine.analyze_thread(thread, posts)
        calls = llm.calls
        clock.advance(301)
        await engine.analyze_thread(thread, posts)

        assert llm.calls == calls * 2

    async def test_new_post_changes_key(self, clock):
        llm = _healthy_llm()
        engine = _engine(llm, clock)
        thread = make_thread()
        await engine.analyze_thread(thread, make_posts(2))
        calls = llm.calls
        await engine.analyze_thread(thread, make_posts(3))
        assert llm.calls == calls * 2

    async def test_service_down_still_returns_analysis(self):
        llm = FailingLLM()
        analysis = await InsightEngine(llm).analyze_thread(make_thread(), make_posts(1))
        assert analysis.summary == FALLBACK_SUMMARY
        assert analysis.toxicity.flagged is False
        assert analysis.sentiment.score == 0.0
        assert analysis.sentiment.confidence == 0.0
        assert llm.calls == 3

    async def test_accepts_raw_api_payloads(self, clock):
        llm = _healthy_llm()
        raw_thread = {"id": "t9", "title": "Raw", "body": "b", "replyCount": None, "user": {"id": "u"}}
        raw_posts = [{"id": "p1", "content": "hi"}, {"no_id": True}]
        analysis = await _engine(llm, clock).analyze_thread(raw_thread, raw_posts)
        assert analysis.thread_id == "t9"
        assert analysis.summary == "Members compare deployment setups."

    async def test_invalid_thread_returns_fallback_without_calls(self):
        llm = _healthy_llm()
        analysis = await InsightEngine(llm).analyze_thread({"id": "", "title": "x"})
        assert analysis.summary == FALLBACK_SUMMARY
        assert analysis.engagement.level is EngagementLevel.MEDIUM
        assert llm.calls == 0

    def test_rejected_thread_is_invalid_input(self):
        with pytest.raises(InvalidInputError, match="validation error"):
            InsightEngine._parse_thread({"title": "no id"})

    async def test_flagged_content_suggests_moderation(self, clock):
        llm = FakeLLM(by_task(summary="s", sentiment=SENTIMENT_POSITIVE, moderation=FLAGGED))
        analysis = await _engine(llm, clock).analyze_thread(make_thread())
        assert analysis.toxicity.flagged is True
        assert analysis.toxicity.severity is Severity.HIGH
        assert analysis.toxicity.categories == ("harassment",)
        moderate = analysis.suggested_actions[0]
        assert moderate.type is ActionType.MODERATE
        assert moderate.reason == "Content flagged for: harassment"

    async def test_moderation_input_is_bounded(self, clock):
        llm = _healthy_llm()
        posts = make_posts(1)
        thread = make_thread(body="x" * 5000)
        await _engine(llm, clock, content_char_budget=300).analyze_thread(thread, posts)
        moderation_prompt = next(p for p in llm.prompts if "for moderation" in p)
        assert "x" * 301 not in moderation_prompt
        assert posts[0].body in moderation_prompt

    async def test_internal_error_is_not_cached(self, clock, monkeypatch):
        engine = _engine(_healthy_llm(), clock)
        monkeypatch.setattr(
            "threadsense.core.engine.find_related_threads",
            lambda thread: (_ for _ in ()).throw(RuntimeError("bad")),
        )
        analysis = await engine.analyze_thread(make_thread())
        assert analysis.summary == FALLBACK_SUMMARY
        assert len(engine.cache) == 0

    async def test_clear_cache(self, clock):
        engine = _engine(_healthy_llm(), clock)
        await engine.analyze_thread(make_thread())
        engine.clear_cache()
        assert len(engine.cache) == 0


class TestCommunityHealth:
    async def test_empty_batch_is_neutral(self):
        llm = FakeLLM()
        metrics = await InsightEngine(llm).analyze_community_health([])
        assert metrics.overall.score == 0.5
        assert metrics.overall.status is HealthStatus.HEALTHY
        assert metrics.recommendations == ()
        assert metrics.engagement.active_users == 0
        assert metrics.sentiment.positive == 0
        assert llm.calls == 0

    async def test_aggregates_batch(self):
        llm = _healthy_llm()
        threads = [
            make_thread(id="a", replyCount=4, viewCount=10, user={"id": "u1"}),
            make_thread(id="b", replyCount=2, viewCount=30, user={"id": "u1"}),
            make_thread(id="c", replyCount=0, viewCount=20, user={"id": "u2"}),
        ]
        metrics = await InsightEngine(llm).analyze_community_health(threads)

        assert metrics.engagement.average_replies == pytest.approx(2.0)
        assert metrics.engagement.average_views == pytest.approx(20.0)
        assert metrics.engagement.active_users == 2
        assert metrics.engagement.trend is GrowthTrend.STABLE
        assert (metrics.sentiment.positive, metrics.sentiment.neutral, metrics.sentiment.negative) == (1, 1, 1)
        assert metrics.sentiment.trend is Trend.IMPROVING
        assert metrics.overall.trend is Trend.IMPROVING
        # engagement 0.4, sentiment 0.8, activity 0.15
        assert metrics.overall.score == pytest.approx((0.4 + 0.8 + 0.15) / 3)
        assert metrics.overall.status is HealthStatus.CONCERNING
        assert metrics.content_quality.helpful_content == 1
        assert metrics.content_quality.score == pytest.approx(0.8)
        assert len(metrics.recommendations) == 2

    async def test_recommendations_see_the_sentiment(self):
        llm = _healthy_llm()
        await InsightEngine(llm).analyze_community_health([make_thread()])
        rec_prompt = next(p for p in llm.prompts if "Based on this community data" in p)
        assert "Sentiment: positive (score: 0.6)" in rec_prompt
        assert llm.prompts.index(rec_prompt) == 1

    async def test_toxic_cached_analyses_lower_quality(self, clock):
        llm = FakeLLM(by_task(summary="s", sentiment=SENTIMENT_POSITIVE, moderation=FLAGGED))
        engine = _engine(llm, clock)
        threads = [make_thread(id="a"), make_thread(id="b")]
        await engine.analyze_thread(threads[0])
        metrics = await engine.analyze_community_health(threads)
        assert metrics.content_quality.toxic_content == 1
        assert metrics.content_quality.score == pytest.approx(0.4)

    async def test_service_down_still_returns_metrics(self):
        metrics = await InsightEngine(FailingLLM()).analyze_community_health([make_thread()])
        assert metrics.recommendations == ()
        assert 0.0 <= metrics.overall.score <= 1.0

    async def test_reuses_given_sentiment(self):
        llm = _healthy_llm()
        engine = InsightEngine(llm)
        sentiment = await engine.sentiment.analyze([make_thread()])
        calls = llm.calls
        await engine.analyze_community_health([make_thread()], sentiment)
        assert llm.calls == calls + 1


class TestSuggestionsAndReplies:
    async def test_smart_suggestions_without_forum(self):
        suggestions = await InsightEngine(FakeLLM()).generate_smart_suggestions("t1")
        assert [s.relevance_score for s in suggestions] == [0.9, 0.8, 0.7]

    async def test_smart_suggestions_with_forum_thread(self):
        forum = AsyncMock()
        forum.get_thread.return_value = make_thread(tags=[{"id": "g", "name": "python"}])
        engine = InsightEngine(FakeLLM(), forum=forum)
        suggestions = await engine.generate_smart_suggestions("t1", limit=10)
        assert suggestions[0].relevance_score == 0.9
        assert any(s.type is SuggestionType.RELATED_THREAD and "python" in s.title for s in suggestions)
        forum.get_thread.assert_awaited_once_with("t1")

    async def test_smart_suggestions_survive_forum_errors(self):
        forum = AsyncMock()
        forum.get_thread.side_effect = RuntimeError("down")
        suggestions = await InsightEngine(FakeLLM(), forum=forum).generate_smart_suggestions("t1", limit=2)
        assert len(suggestions) == 2

    async def test_reply_options(self):
        engine = InsightEngine(_healthy_llm())
        options = await engine.generate_smart_reply_options("thread", "post")
        assert len(options) == 3

    async def test_reply_options_fallback(self):
        options = await InsightEngine(FailingLLM()).generate_smart_reply_options("thread", "post")
        assert options == list(FALLBACK_REPLIES)

    async def test_contextual_replies_with_history(self):
        engine = InsightEngine(_healthy_llm())
        replies = await engine.generate_contextual_replies("Title", "short", make_posts(3))
        assert [r.type for r in replies] == [
            ReplyKind.DIRECT_ANSWER,
            ReplyKind.EXPERT_INSIGHT,
            ReplyKind.SUPPORTIVE_COMMENT,
            ReplyKind.FOLLOW_UP_QUESTION,
        ]

    async def test_contextual_replies_fallback(self):
        replies = await InsightEngine(FailingLLM()).generate_contextual_replies("Title", "short")
        assert len(replies) == 3
        assert all(r.confidence == 0.6 for r in replies)

    async def test_improvement_falls_back_to_rules_when_service_down(self):
        result = await InsightEngine(FailingLLM()).improve_thread_content(
            "release notes", "We shipped it.", ImprovementKind.ENGAGEMENT
        )
        assert result.improved_title == "Release notes"
        assert result.improved_body.endswith("What are your thoughts on this?")

    async def test_improvement_survives_deeply_nested_output(self):
        result = await InsightEngine(FakeLLM(['{"a": ' * 50_000])).improve_thread_content(
            "release notes", "We shipped it."
        )
        assert result.improved_title == "Release notes"

    async def test_thread_ideas_survive_deeply_nested_output(self):
        ideas = await InsightEngine(FakeLLM(["[" * 100_000])).generate_thread_suggestions("testing")
        assert ideas


async def test_old_quiet_thread_is_not_archived_at_base_engagement():
    llm = FakeLLM(by_task(summary="s", sentiment={"overall": "negative", "score": -0.9}, moderation=MODERATION_CLEAN))
    engine = InsightEngine(llm, now=lambda: NOW)
    thread = make_thread(replyCount=0, viewCount=0, createdAt=(NOW - timedelta(days=40)).isoformat())
    analysis = await engine.analyze_thread(thread)
    assert ActionType.ARCHIVE not in {a.type for a in analysis.suggested_actions}
    assert "Negative sentiment detected - may need moderator attention" in analysis.ai_insights
