"""Moderation / toxicity screening of a block of content."""

from threadsense.errors import FailureKind
from threadsense.models.llm import ModerationAction, ModerationResult, Severity
from threadsense.parsing import JsonShape, ParseFailure
from threadsense.prompts.templates import PromptTemplates
from threadsense.services.base import BaseAdapter
from threadsense.utils.sanitizer import InputSanitizer

FALLBACK_REASONING = "Unable to analyze content at this time."


def unflagged(reasoning: str = FALLBACK_REASONING) -> ModerationResult:
    return ModerationResult(
        flagged=False,
        severity=Severity.NONE,
        categories=[],
        reasoning=reasoning,
        suggested_action=ModerationAction.REVIEW,
    )


class ModerationService(BaseAdapter):
    task = "moderation"

    async def analyze(self, content: str, author: str = "Unknown") -> ModerationResult:
        # Injection attempts are themselves worth a moderator's look, so the
        # check runs on the raw text before it is filtered.
        suspicious = InputSanitizer.is_suspicious(content)
        cleaned = InputSanitizer.sanitize(content)
        if not cleaned:
            self._log_fallback(ParseFailure(reason="empty content", kind=FailureKind.INVALID_INPUT))
            return unflagged("No content to analyze.")

        prompt = PromptTemplates.MODERATION.format(
            content=cleaned, author=InputSanitizer.sanitize(author, 100) or "Unknown"
        )
        result = self._validate(
            await self._generate_json(prompt, JsonShape.OBJECT), ModerationResult
        )
        if isinstance(result, ParseFailure):
            self._log_fallback(result, content_len=len(cleaned), suspicious=suspicious)
            return unflagged()

        if result.flagged and result.severity is Severity.NONE:
            result = result.model_copy(update={"severity": Severity.LOW})
        if not result.flagged and result.severity is not Severity.NONE:
            result = result.model_copy(update={"severity": Severity.NONE})
        return result
