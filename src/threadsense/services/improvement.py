"""Rewriting a draft thread, with a rule-based rewrite when the model fails."""

import re

from threadsense.models.llm import ContentImprovement, ImprovementKind
from threadsense.parsing import JsonShape, ParseFailure
from threadsense.prompts.templates import PromptTemplates
from threadsense.services.base import BaseAdapter
from threadsense.utils.sanitizer import InputSanitizer

_QUESTION_WORDS = ("how", "what", "why", "when", "where")

_CONTRACTIONS = {
    "can't": "cannot",
    "won't": "will not",
    "don't": "do not",
    "doesn't": "does not",
    "isn't": "is not",
    "aren't": "are not",
    "wasn't": "was not",
    "weren't": "were not",
    "haven't": "have not",
    "hasn't": "has not",
    "hadn't": "had not",
    "wouldn't": "would not",
    "shouldn't": "should not",
    "couldn't": "could not",
}

_KIND_NOTES = {
    ImprovementKind.PROFESSIONAL: "Applied professional formatting and language",
    ImprovementKind.CLARITY: "Improved sentence structure and clarity",
    ImprovementKind.GRAMMAR: "Fixed capitalization and punctuation",
}


def _improve_title(title: str, notes: list[str]) -> str:
    if not title:
        return title
    improved = title[0].upper() + title[1:]
    improved = re.sub(r"!{2,}", "!", improved)
    improved = re.sub(r"\?{2,}", "?", improved)
    if improved.lower().startswith(_QUESTION_WORDS) and not improved.endswith("?"):
        improved += "?"
        notes.append("Added question mark to clarify this is a question")
    return improved


def _improve_body(body: str, kind: ImprovementKind, notes: list[str]) -> str:
    if not body:
        return body
    improved = re.sub(r"(^|\. )([a-z])", lambda m: m.group(1) + m.group(2).upper(), body)

    if kind is ImprovementKind.PROFESSIONAL:
        fixed = 0
        for contraction, expansion in _CONTRACTIONS.items():
            pattern = re.compile(rf"\b{re.escape(contraction)}\b", re.IGNORECASE)
            improved, n = pattern.subn(expansion, improved)
            fixed += bool(n)
        if fixed:
            notes.append(f"Expanded {fixed} contractions for professional tone")

    improved = re.sub(r"\s+([,.!?])", r"\1", improved)
    improved = re.sub(r"([.!?])([A-Z])", r"\1 \2", improved)
    return re.sub(r"\s+", " ", improved).strip()


def rule_based_improvement(title: str, body: str, kind: ImprovementKind) -> ContentImprovement:
    """Deterministic cleanup used when the generative rewrite is unavailable."""
    notes: list[str] = []
    improved_title = _improve_title(title, notes)
    improved_body = _improve_body(body, kind, notes)

    if kind is ImprovementKind.ENGAGEMENT:
        if "?" not in improved_body and "?" not in improved_title:
            improved_body = f"{improved_body} What are your thoughts on this?".strip()
            notes.append("Added engaging question to encourage responses")
    else:
        notes.append(_KIND_NOTES[kind])

    if improved_title == title and improved_body == body:
        notes.append("Content is already well-formatted")

    return ContentImprovement(
        improved_title=improved_title or "Untitled",
        improved_body=improved_body or "(empty)",
        suggestions=notes or ["Content reviewed and optimized"],
    )


class ContentImprovementService(BaseAdapter):
    task = "content_improvement"

    async def improve(
        self, title: str, body: str, kind: ImprovementKind = ImprovementKind.PROFESSIONAL
    ) -> ContentImprovement:
        prompt = PromptTemplates.IMPROVE_CONTENT.format(
            instruction=PromptTemplates.IMPROVEMENT_INSTRUCTIONS[kind.value],
            title=InputSanitizer.sanitize(title, 300),
            body=InputSanitizer.sanitize(body),
        )

        result = self._validate(
            await self._generate_json(prompt, JsonShape.OBJECT), ContentImprovement
        )
        if isinstance(result, ParseFailure):
            self._log_fallback(result, improvement_kind=kind.value)
            return rule_based_improvement(title, body, kind)
        return result
