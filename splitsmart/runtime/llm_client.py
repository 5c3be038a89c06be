"""HTTP client for the generative language API used by both LLM engines."""

from __future__ import annotations

import time
from typing import Any

import httpx

from splitsmart.domain.errors import (
    InvalidResponseError,
    InvalidURLError,
    LLMHTTPError,
    LLMTimeoutError,
    RateLimitExceededError,
    ResponseParseError,
    UnauthorizedError,
)
from splitsmart.runtime.logging import get_logger
from splitsmart.runtime.settings import LLMSettings

logger = get_logger(__name__)

# Error bodies can echo prompt text; keep log lines short.
MAX_LOGGED_BODY = 300


class LLMClient:
    """POST ``{endpoint}/{model}:generateContent`` and return the first candidate's text."""

    def __init__(self, settings: LLMSettings | None = None, transport: httpx.BaseTransport | None = None) -> None:
        self.settings = settings or LLMSettings()
        self.transport = transport

    @property
    def url(self) -> str:
        endpoint = self.settings.endpoint.rstrip("/")
        if not endpoint.startswith(("http://", "https://")):
            raise InvalidURLError(f"LLM endpoint must be an http(s) URL, got {endpoint!r}")
        return f"{endpoint}/{self.settings.model}:generateContent"

    def generate(self, body: dict[str, Any], api_key: str) -> str:
        """Send a request body and return the model's text output.

        Raises a ClassificationError subclass for every failure mode.
        """
        if not api_key:
            raise UnauthorizedError("No LLM API key available")
        url = self.url

        try:
            start_time = time.time()
            with httpx.Client(transport=self.transport, timeout=self.settings.timeout_seconds) as client:
                response = client.post(url, params={"key": api_key}, json=body)
            elapsed_time = time.time() - start_time
            logger.debug("LLM %s returned %d in %.2f seconds", self.settings.model, response.status_code, elapsed_time)
        except httpx.TimeoutException as e:
            logger.warning("LLM request timed out after %.1f seconds", self.settings.timeout_seconds)
            raise LLMTimeoutError(f"LLM request timed out after {self.settings.timeout_seconds}s") from e
        except httpx.RequestError as e:
            logger.warning("Failed to reach LLM service: %s", type(e).__name__)
            raise InvalidResponseError(f"Failed to reach LLM service: {type(e).__name__}") from e

        self._raise_for_status(response)
        return self._extract_text(response)

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        if 200 <= status < 300:
            return
        body = response.text[:MAX_LOGGED_BODY]
        logger.error("LLM service error: %s - %s", status, body)
        if status in (401, 403):
            raise UnauthorizedError(f"LLM service rejected the API key ({status})")
        if status == 429:
            raise RateLimitExceededError("LLM service quota exceeded (429)")
        raise LLMHTTPError(status, body)

    def _extract_text(self, response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError as e:
            raise InvalidResponseError("LLM service returned a non-JSON body") from e

        try:
            text = payload["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise ResponseParseError("LLM response has no candidate text") from e
        if not isinstance(text, str):
            raise ResponseParseError("LLM candidate text is not a string")
        return text
