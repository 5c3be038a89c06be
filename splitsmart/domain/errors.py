"""Error taxonomy for classification and its external collaborators.

Strategies and engines catch ``ClassificationError`` at their boundary and turn
it into a low-confidence result; these exceptions never reach the caller of a
classification run.
"""

from __future__ import annotations


class ClassificationError(RuntimeError):
    """Base class for failures while classifying receipt items."""


class InvalidURLError(ClassificationError):
    """The configured LLM endpoint could not be turned into a request URL."""


class InvalidResponseError(ClassificationError):
    """The LLM service answered with something other than a usable payload."""


class RateLimitExceededError(ClassificationError):
    """The per-receipt call budget or the remote quota is exhausted."""


class UnauthorizedError(ClassificationError):
    """No API key is available, or the service rejected it."""


class LLMHTTPError(ClassificationError):
    """The LLM service returned a non-success HTTP status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"LLM service HTTP error {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class ResponseParseError(ClassificationError):
    """The model output could not be parsed into classifications."""


class InvalidCategoryError(ClassificationError):
    """The model returned a category outside the closed enumeration."""

    def __init__(self, category: str) -> None:
        super().__init__(f"Invalid category returned: {category}")
        self.category = category


class LLMTimeoutError(ClassificationError):
    """The LLM request did not complete within its timeout."""


class SecretStoreError(RuntimeError):
    """The credential store could not be read or written."""
