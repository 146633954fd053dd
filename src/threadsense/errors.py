"""Failure taxonomy for the insight engine.

Every failure an adapter swallows is classified into one of these kinds
before it is logged, so operators can tell a provider outage apart from a
model that answered with garbage.
"""

import asyncio
import json
from enum import StrEnum

import httpx
from pydantic import ValidationError


class FailureKind(StrEnum):
    SERVICE_UNAVAILABLE = "service_unavailable"
    NETWORK = "network"
    MALFORMED_RESPONSE = "malformed_response"
    INVALID_INPUT = "invalid_input"
    UNKNOWN = "unknown"


class ServiceError(Exception):
    """Raised by the generative-text collaborator when a call cannot complete."""

    def __init__(
        self, message: str, kind: FailureKind = FailureKind.SERVICE_UNAVAILABLE
    ) -> None:
        self.kind = kind
        super().__init__(message)


class MalformedResponseError(ValueError):
    """The generative service answered, but not with the payload a task needs."""


class InvalidInputError(ValueError):
    """Input to an analysis is missing an identifier or otherwise unusable."""


_UNAVAILABLE_MARKERS = (
    "429",
    "quota",
    "rate limit",
    "resource_exhausted",
    "503",
    "unavailable",
    "401",
    "403",
    "unauthorized",
    "api key",
)


def classify_failure(error: BaseException) -> FailureKind:
    """Map an exception raised inside an adapter to a FailureKind."""
    if isinstance(error, ServiceError):
        return error.kind
    if isinstance(error, (MalformedResponseError, json.JSONDecodeError, ValidationError)):
        return FailureKind.MALFORMED_RESPONSE
    if isinstance(error, InvalidInputError):
        return FailureKind.INVALID_INPUT
    if isinstance(
        error,
        (httpx.TransportError, httpx.TimeoutException, ConnectionError, TimeoutError, asyncio.TimeoutError),
    ):
        return FailureKind.NETWORK

    message = str(error).lower()
    if any(marker in message for marker in _UNAVAILABLE_MARKERS):
        return FailureKind.SERVICE_UNAVAILABLE
    return FailureKind.UNKNOWN
