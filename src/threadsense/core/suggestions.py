"""Related-content suggestions from tag and keyword overlap.

Deterministic and local: no generative call is made here.
"""

import re
from collections.abc import Iterable

from threadsense.models.forum import Thread
from threadsense.models.insights import RelatedThread, SmartSuggestion, SuggestionType

MAX_RELATED = 5

STOP_WORDS = frozenset(
    """the a an and or but in on at to for of with by is are was were be been have has had
    do does did will would could should may might can this that these those""".split()
)

_NON_WORD = re.compile(r"[^\w\s]")

_TAG_BASE, _KEYWORD_BASE, _STEP = 0.8, 0.7, 0.1
_PER_SOURCE = 2
_KEYWORD_WINDOW = 10

STANDING_SUGGESTIONS: tuple[tuple[SuggestionType, str, str, float, dict], ...] = (
    (
        SuggestionType.RELATED_THREAD,
        "Best practices for community engagement",
        "Learn how to create engaging discussions that drive participation",
        0.9,
        {"category": "community", "engagement": "high"},
    ),
    (
        SuggestionType.HELPFUL_RESOURCE,
        "Community Guidelines and Best Practices",
        "Essential reading for new community members",
        0.8,
        {"type": "resource", "importance": "high"},
    ),
    (
        SuggestionType.SIMILAR_DISCUSSION,
        "Weekly Community Roundup",
        "Stay updated with the latest community discussions and highlights",
        0.7,
        {"frequency": "weekly", "type": "roundup"},
    ),
)


def extract_keywords(text: str) -> list[str]:
    """Lowercased, punctuation-stripped, stop-word-filtered words longer than 3 chars (first 10)."""
    words = _NON_WORD.sub(" ", text.lower()).split()
    return [w for w in words if len(w) > 3 and w not in STOP_WORDS][:_KEYWORD_WINDOW]


def _unique(values: Iterable[str], exclude: set[str]) -> list[str]:
    seen, out = set(exclude), []
    for value in values:
        folded = value.casefold()
        if folded in seen:
            continue
        seen.add(folded)
        out.append(value)
    return out


def _candidates(thread: Thread) -> tuple[list[str], list[str]]:
    tags = _unique((t.name for t in thread.tags if t.name.strip()), set())[:_PER_SOURCE]
    keywords = _unique(
        extract_keywords(f"{thread.title} {thread.body or ''}"),
        {t.casefold() for t in tags},
    )[:_PER_SOURCE]
    return tags, keywords


def find_related_threads(thread: Thread, limit: int = MAX_RELATED) -> tuple[RelatedThread, ...]:
    tags, keywords = _candidates(thread)

    related = [
        RelatedThread(
            id=f"related-{thread.id}-{i}",
            title=f"Other discussions about {tag}",
            similarity=round(_TAG_BASE - _STEP * i, 2),
            reason=f'Shares the "{tag}" tag',
        )
        for i, tag in enumerate(tags)
    ]
    related += [
        RelatedThread(
            id=f"keyword-{thread.id}-{i}",
            title=f"Similar discussions about {kw}",
            similarity=round(_KEYWORD_BASE - _STEP * i, 2),
            reason=f'Contains similar keywords: "{kw}"',
        )
        for i, kw in enumerate(keywords)
    ]

    related.sort(key=lambda r: r.similarity, reverse=True)
    return tuple(related[: min(limit, MAX_RELATED)])


def standing_suggestions(thread_id: str) -> list[SmartSuggestion]:
    return [
        SmartSuggestion(
            id=f"suggestion-{i}-{thread_id}",
            type=kind,
            title=title,
            description=description,
            relevance_score=score,
            metadata=dict(metadata),
        )
        for i, (kind, title, description, score, metadata) in enumerate(STANDING_SUGGESTIONS, 1)
    ]


def smart_suggestions(
    thread_id: str, thread: Thread | None = None, limit: int = 5
) -> list[SmartSuggestion]:
    """Thread-specific suggestions (when the thread is known) plus standing resources."""
    suggestions: list[SmartSuggestion] = []
    if thread is not None:
        for related in find_related_threads(thread):
            from_tag = related.id.startswith("related-")
            suggestions.append(
                SmartSuggestion(
                    id=related.id,
                    type=SuggestionType.RELATED_THREAD if from_tag else SuggestionType.SIMILAR_DISCUSSION,
                    title=related.title,
                    description=related.reason,
                    relevance_score=related.similarity,
                    metadata={"source": "tag" if from_tag else "keyword"},
                )
            )
    suggestions += standing_suggestions(thread_id)
    suggestions.sort(key=lambda s: s.relevance_score, reverse=True)
    return suggestions[: max(0, limit)]
