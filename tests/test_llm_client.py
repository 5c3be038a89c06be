"""Tests for the HTTP client of the generative language API."""

from __future__ import annotations

import json

import httpx
import pytest

from splitsmart.domain import (
    InvalidResponseError,
    InvalidURLError,
    LLMHTTPError,
    LLMTimeoutError,
    RateLimitExceededError,
    ResponseParseError,
    UnauthorizedError,
)
from splitsmart.runtime.llm_client import LLMClient
from splitsmart.runtime.settings import LLMSettings


def candidate(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def client_for(handler) -> LLMClient:
    return LLMClient(transport=httpx.MockTransport(handler))


def test_generate_posts_body_and_returns_candidate_text() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=candidate('{"category": "FOOD"}'))

    text = client_for(handler).generate({"contents": []}, "secret-key")

    assert text == '{"category": "FOOD"}'
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path.endswith("/gemini-1.5-flash-latest:generateContent")
    assert request.url.params["key"] == "secret-key"
    assert json.loads(request.content) == {"contents": []}


def test_url_uses_configured_model_and_endpoint() -> None:
    client = LLMClient(LLMSettings(model="m1", endpoint="http://localhost:9000/models/"))
    assert client.url == "http://localhost:9000/models/m1:generateContent"


@pytest.mark.parametrize(
    ("status", "error"),
    [
        (401, UnauthorizedError),
        (403, UnauthorizedError),
        (429, RateLimitExceededError),
        (500, LLMHTTPError),
        (404, LLMHTTPError),
    ],
)
def test_http_errors_are_mapped(status: int, error: type[Exception]) -> None:
    client = client_for(lambda request: httpx.Response(status, text="nope"))
    with pytest.raises(error):
        client.generate({}, "key")


def test_http_error_keeps_status_and_truncated_body() -> None:
    client = client_for(lambda request: httpx.Response(502, text="x" * 1000))

    with pytest.raises(LLMHTTPError) as exc_info:
        client.generate({}, "key")

    assert exc_info.value.status_code == 502
    assert len(exc_info.value.body) == 300


def test_missing_candidates_is_a_parse_error() -> None:
    client = client_for(lambda request: httpx.Response(200, json={}))
    with pytest.raises(ResponseParseError):
        client.generate({}, "key")


def test_non_json_body_is_an_invalid_response() -> None:
    client = client_for(lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(InvalidResponseError):
        client.generate({}, "key")


def test_timeout_is_mapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(LLMTimeoutError):
        client_for(handler).generate({}, "key")


def test_connection_failure_is_an_invalid_response() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(InvalidResponseError):
        client_for(handler).generate({}, "key")


def test_empty_key_never_sends_a_request() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=candidate("{}"))

    with pytest.raises(UnauthorizedError):
        client_for(handler).generate({}, "")
    assert calls == []


def test_non_http_endpoint_is_rejected() -> None:
    client = LLMClient(LLMSettings(endpoint="ftp://example.com/models"))
    with pytest.raises(InvalidURLError):
        client.generate({}, "key")
