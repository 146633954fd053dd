"""Generative-text collaborator.

The engine depends only on ``LLMClient.generate(prompt) -> str``; anything
that goes wrong inside a provider surfaces as ``ServiceError``, or as
``MalformedResponseError`` when the provider answers with no completion.
GroqClient is the concrete implementation for Groq's inference API.
"""

import logging
import time
from abc import ABC, abstractmethod

from groq import APIConnectionError, APIStatusError, AsyncGroq, RateLimitError
from pydantic import SecretStr
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from threadsense.errors import FailureKind, MalformedResponseError, ServiceError
from threadsense.logger import get_logger
from threadsense.models.llm import LLMConfig
from threadsense.prompts.templates import PromptTemplates
from threadsense.utils.rate_limiter import RateLimiter

logger = get_logger(__name__)
_std_logger = logging.getLogger(__name__)


class LLMRateLimitError(ServiceError):
    """Raised when the provider's rate or token limit is exceeded."""

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        super().__init__(message, kind=FailureKind.SERVICE_UNAVAILABLE)


def _is_transient(error: BaseException) -> bool:
    return isinstance(error, ServiceError) and error.kind is FailureKind.NETWORK


class LLMClient(ABC):
    """Abstract interface for generative-text providers."""

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Return the model's raw text for ``prompt``. Raises ServiceError or MalformedResponseError."""
        ...


class GroqClient(LLMClient):
    """Concrete LLM client using Groq inference API."""

    def __init__(
        self,
        api_key: SecretStr,
        config: LLMConfig | None = None,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self._config = config or LLMConfig()
        self._client = AsyncGroq(
            api_key=api_key.get_secret_value(),
            timeout=self._config.timeout_seconds,
            max_retries=0,
        )
        self._rate_limiter = rate_limiter
        self._cooldown_until = 0.0

    @staticmethod
    def _retry_after(e: RateLimitError) -> float | None:
        if getattr(e, "response", None) is None:
            return None
        raw = e.response.headers.get("retry-after")
        try:
            return float(raw) if raw else None
        except ValueError:
            return None

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(min=1, max=5),
        retry=retry_if_exception(_is_transient),
        before_sleep=before_sleep_log(_std_logger, logging.WARNING),
        reraise=True,
    )
    async def generate(self, prompt: str) -> str:
        # Inside a provider-requested cooldown no request is sent.
        cooldown = self._cooldown_until - time.monotonic()
        if cooldown > 0:
            raise LLMRateLimitError(f"rate limited for another {cooldown:.1f}s", retry_after=cooldown)

        if self._rate_limiter is not None:
            waited = await self._rate_limiter.acquire()
            if waited:
                logger.debug("llm_throttled", waited_seconds=round(waited, 2))

        try:
            response = await self._client.chat.completions.create(
                model=self._config.model,
                messages=[
                    {"role": "system", "content": PromptTemplates.SYSTEM_ANALYST},
                    {"role": "user", "content": prompt},
                ],
                temperature=self._config.temperature,
                max_tokens=self._config.max_output_tokens,
            )
        except RateLimitError as e:
            retry_after = self._retry_after(e)
            if retry_after:
                self._cooldown_until = time.monotonic() + retry_after
            logger.warning(
                "llm_rate_limited", model=self._config.model, retry_after=retry_after, error=str(e)
            )
            raise LLMRateLimitError(str(e), retry_after=retry_after) from e
        except APIConnectionError as e:
            logger.warning("llm_connection_error", model=self._config.model, error=str(e))
            raise ServiceError(str(e), kind=FailureKind.NETWORK) from e
        except APIStatusError as e:
            logger.error("llm_status_error", model=self._config.model, status=e.status_code)
            raise ServiceError(f"{e.status_code}: {e.message}") from e

        if not response.choices:
            raise MalformedResponseError("completion has no choices")
        result = response.choices[0].message.content or ""
        logger.debug("llm_generate", model=self._config.model, output_len=len(result))
        return result
