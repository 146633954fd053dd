"""Tests for failure classification."""

from __future__ import annotations

import json

import httpx
from pydantic import BaseModel, ValidationError

from threadsense.clients.llm_client import LLMRateLimitError
from threadsense.errors import (
    FailureKind,
    InvalidInputError,
    MalformedResponseError,
    ServiceError,
    classify_failure,
)


class _Model(BaseModel):
    x: int


def _validation_error() -> ValidationError:
    try:
        _Model.model_validate({})
    except ValidationError as e:
        return e
    raise AssertionError("expected a validation error")


class TestClassifyFailure:
    def test_service_error_keeps_its_kind(self):
        assert classify_failure(ServiceError("x", kind=FailureKind.NETWORK)) is FailureKind.NETWORK
        assert classify_failure(ServiceError("x")) is FailureKind.SERVICE_UNAVAILABLE

    def test_rate_limit_is_unavailable(self):
        assert classify_failure(LLMRateLimitError("slow down", retry_after=3)) is FailureKind.SERVICE_UNAVAILABLE

    def test_shape_errors_are_malformed(self):
        assert classify_failure(MalformedResponseError("bad")) is FailureKind.MALFORMED_RESPONSE
        assert classify_failure(json.JSONDecodeError("x", "doc", 0)) is FailureKind.MALFORMED_RESPONSE
        assert classify_failure(_validation_error()) is FailureKind.MALFORMED_RESPONSE

    def test_invalid_input(self):
        assert classify_failure(InvalidInputError("no id")) is FailureKind.INVALID_INPUT

    def test_transport_errors_are_network(self):
        assert classify_failure(httpx.ConnectError("refused")) is FailureKind.NETWORK
        assert classify_failure(TimeoutError()) is FailureKind.NETWORK

    def test_message_markers(self):
        assert classify_failure(RuntimeError("HTTP 429 Too Many Requests")) is FailureKind.SERVICE_UNAVAILABLE
        assert classify_failure(RuntimeError("invalid api key")) is FailureKind.SERVICE_UNAVAILABLE

    def test_unknown(self):
        assert classify_failure(RuntimeError("boom")) is FailureKind.UNKNOWN
