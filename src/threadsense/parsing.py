"""Tagged JSON extraction from free-text model output.

Models wrap JSON in prose and markdown fences, or return no JSON at all.
``extract_json`` never raises: it returns either ``Parsed`` or
``ParseFailure`` and adapters branch on the variant.
"""

import json
import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from threadsense.errors import FailureKind

_FENCE = re.compile(r"```(?:json)?\s*|\s*```", re.IGNORECASE)
_EXCERPT_LEN = 200


class JsonShape(StrEnum):
    OBJECT = "object"
    ARRAY = "array"


@dataclass(frozen=True, slots=True)
class Parsed:
    value: Any


@dataclass(frozen=True, slots=True)
class ParseFailure:
    reason: str
    excerpt: str = ""
    kind: FailureKind = FailureKind.MALFORMED_RESPONSE


ParseResult = Parsed | ParseFailure


def _matches(value: Any, shape: JsonShape) -> bool:
    if shape is JsonShape.OBJECT:
        return isinstance(value, dict)
    return isinstance(value, list)


def extract_json(text: str | None, shape: JsonShape = JsonShape.OBJECT) -> ParseResult:
    """Return the first well-formed JSON value of ``shape`` found in ``text``."""
    if not text or not text.strip():
        return ParseFailure("empty response")

    cleaned = _FENCE.sub("", text).strip()
    excerpt = cleaned[:_EXCERPT_LEN]

    try:
        whole = json.loads(cleaned)
    except RecursionError:
        return ParseFailure("JSON nested too deeply", excerpt)
    except ValueError:
        pass
    else:
        if _matches(whole, shape):
            return Parsed(whole)

    opener = "{" if shape is JsonShape.OBJECT else "["
    decoder = json.JSONDecoder()
    idx = cleaned.find(opener)
    while idx != -1:
        try:
            value, _ = decoder.raw_decode(cleaned, idx)
        except RecursionError:
            return ParseFailure("JSON nested too deeply", excerpt)
        except ValueError:
            idx = cleaned.find(opener, idx + 1)
            continue
        if _matches(value, shape):
            return Parsed(value)
        idx = cleaned.find(opener, idx + 1)

    return ParseFailure(f"no JSON {shape.value} in response", excerpt)
