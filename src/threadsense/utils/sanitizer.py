"""Preparing forum content before it is embedded in a prompt.

Thread and post bodies are untrusted user text. They are NFKC-normalised,
stripped of instruction-override phrases and role markers, and bounded in
length so a single long post cannot crowd everything else out of a prompt.
"""

import re
import unicodedata
from collections.abc import Iterable


class InputSanitizer:
    """Filters prompt-injection patterns out of user-generated forum content."""

    _INJECTION_PATTERNS: list[re.Pattern[str]] = [
        # Instruction overrides
        re.compile(r"ignore\s+(all\s+)?(the\s+)?(previous|prior|above)\s+instructions", re.IGNORECASE),
        re.compile(r"disregard\s+(all\s+)?(prior|previous|above)", re.IGNORECASE),
        re.compile(r"override\s+(your\s+)?(system|instructions|rules)", re.IGNORECASE),
        # Role manipulation
        re.compile(r"you\s+are\s+now\s+a", re.IGNORECASE),
        re.compile(r"pretend\s+(you\s+are|to\s+be)", re.IGNORECASE),
        re.compile(r"enter\s+(developer|debug|admin|god)\s+mode", re.IGNORECASE),
        # Prompt extraction
        re.compile(r"(reveal|show|print|repeat)\s+your\s+(system\s+)?(prompt|instructions)", re.IGNORECASE),
        # Role markers
        re.compile(r"<\s*/?\s*system\s*>", re.IGNORECASE),
        re.compile(r"\[/?INST\]", re.IGNORECASE),
        re.compile(r"<<\s*/?SYS\s*>>", re.IGNORECASE),
        re.compile(r"<\s*\|im_start\|.*?\|im_end\|?\s*>", re.IGNORECASE | re.DOTALL),
        re.compile(r"###\s*(System|Human|Assistant)\s*:", re.IGNORECASE),
        # Attempts to dictate the JSON we parse
        re.compile(r"(respond|reply|answer)\s+with\s+(only|exactly|just)", re.IGNORECASE),
        re.compile(r"set\s+\"?(flagged|severity|score)\"?\s*(to|=|:)", re.IGNORECASE),
    ]

    _MAX_CONTENT_LENGTH = 10_000

    @classmethod
    def sanitize(cls, text: str | None, max_length: int | None = None) -> str:
        """Normalise, filter and truncate a piece of user content."""
        if not text:
            return ""

        limit = cls._MAX_CONTENT_LENGTH if max_length is None else max_length
        text = unicodedata.normalize("NFKC", text[: limit * 2])

        for pattern in cls._INJECTION_PATTERNS:
            text = pattern.sub("[FILTERED]", text)

        return text.strip()[:limit]

    @classmethod
    def is_suspicious(cls, text: str | None) -> bool:
        if not text:
            return False
        normalized = unicodedata.normalize("NFKC", text)
        return any(pattern.search(normalized) for pattern in cls._INJECTION_PATTERNS)


def bounded_concat(parts: Iterable[str | None], budget: int, sep: str = " ") -> str:
    """Join ``parts`` into at most ``budget`` characters.

    When the parts do not fit, the longest ones are truncated first: every
    part is cut to a common cap chosen so the short parts survive intact.
    """
    pieces = [p.strip() for p in parts if p and p.strip()]
    if not pieces:
        return ""

    joined = sep.join(pieces)
    if len(joined) <= budget:
        return joined

    available = budget - len(sep) * (len(pieces) - 1)
    if available < len(pieces):
        return joined[:budget]

    remaining = available
    cap = max(len(p) for p in pieces)
    ordered = sorted(len(p) for p in pieces)
    for i, length in enumerate(ordered):
        share = remaining // (len(ordered) - i)
        if length > share:
            cap = share
            break
        remaining -= length

    return sep.join(p[:cap] for p in pieces)
