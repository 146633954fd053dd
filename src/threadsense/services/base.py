"""Shared plumbing for the prompt/response adapters.

Every adapter funnels its outcome through the same tagged result: the raw
call, JSON extraction and schema validation each produce either ``Parsed``
or ``ParseFailure``, and a single fallback branch in the adapter handles all
failure kinds alike.
"""

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from threadsense.clients.llm_client import LLMClient
from threadsense.errors import FailureKind, classify_failure
from threadsense.logger import get_logger
from threadsense.parsing import JsonShape, ParseFailure, Parsed, ParseResult, extract_json

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class BaseAdapter:
    """Calls the generative collaborator once and never lets an error escape."""

    task: str = "generic"

    def __init__(self, llm: LLMClient) -> None:
        self._llm = llm

    async def _generate(self, prompt: str) -> ParseResult:
        """Raw text as ``Parsed(str)``, or the classified failure."""
        try:
            text = await self._llm.generate(prompt)
        except Exception as e:
            return ParseFailure(reason=str(e) or type(e).__name__, kind=classify_failure(e))

        text = (text or "").strip()
        if not text:
            return ParseFailure(reason="empty response")
        return Parsed(text)

    async def _generate_json(self, prompt: str, shape: JsonShape) -> ParseResult:
        result = await self._generate(prompt)
        if isinstance(result, ParseFailure):
            return result
        return extract_json(result.value, shape)

    @staticmethod
    def _validate(result: ParseResult, model: type[ModelT]) -> ModelT | ParseFailure:
        if isinstance(result, ParseFailure):
            return result
        try:
            return model.model_validate(result.value)
        except ValidationError as e:
            return ParseFailure(
                reason=f"{e.error_count()} validation error(s) for {model.__name__}",
                kind=FailureKind.MALFORMED_RESPONSE,
            )

    @staticmethod
    def _validate_items(
        result: ParseResult, model: type[ModelT], limit: int
    ) -> list[ModelT] | ParseFailure:
        """Validate a JSON array item by item, dropping malformed entries."""
        if isinstance(result, ParseFailure):
            return result

        items: list[ModelT] = []
        for raw in result.value:
            try:
                items.append(model.model_validate(raw))
            except ValidationError:
                continue
        if result.value and not items:
            return ParseFailure(reason=f"no valid {model.__name__} entries")
        return items[:limit]

    def _log_fallback(self, failure: ParseFailure, **context: Any) -> None:
        log = logger.info if failure.kind is FailureKind.INVALID_INPUT else logger.warning
        log(
            "adapter_fallback",
            task=self.task,
            kind=failure.kind.value,
            reason=failure.reason[:200],
            **context,
        )
