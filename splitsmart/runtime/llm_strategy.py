"""Per-item LLM classification, the last resort of the strategy chain."""

from __future__ import annotations

from splitsmart.domain.classification import ClassificationMethod, ClassificationResult, ItemCategory
from splitsmart.domain.errors import ClassificationError, RateLimitExceededError, SecretStoreError, UnauthorizedError
from splitsmart.domain.receipt import ReceiptContext, ReceiptItem
from splitsmart.receipt.llm_prompts import build_item_prompt, item_request_body, parse_item_response
from splitsmart.runtime.llm_client import LLMClient
from splitsmart.runtime.logging import get_logger
from splitsmart.runtime.rate_limiter import RateLimiter
from splitsmart.runtime.secrets import SecretProvider

logger = get_logger(__name__)


class LLMClassificationStrategy:
    """Ask the LLM about one line; failures come back as UNKNOWN with zero confidence."""

    name = "LLMClassificationStrategy"

    def __init__(
        self,
        client: LLMClient,
        secrets: SecretProvider,
        rate_limiter: RateLimiter,
        enabled: bool = True,
    ) -> None:
        self.client = client
        self.secrets = secrets
        self.rate_limiter = rate_limiter
        self.enabled = enabled

    def can_classify(self, item: ReceiptItem, position: int, context: ReceiptContext) -> bool:
        if not self.enabled or not self.rate_limiter.can_make_call():
            return False
        try:
            return self.secrets.has_key()
        except SecretStoreError as e:
            logger.warning("Cannot check LLM API key: %s", e)
            return False

    def classify(self, item: ReceiptItem, position: int, context: ReceiptContext) -> ClassificationResult:
        try:
            result = self._classify(item, position, context)
        except (ClassificationError, SecretStoreError) as e:
            logger.warning("LLM classification failed for %r: %s", item.name, e)
            return ClassificationResult(
                category=ItemCategory.UNKNOWN,
                confidence=0.0,
                method=ClassificationMethod.LLM,
                reasoning=f"LLM classification failed: {e}",
            )
        logger.debug("LLM classified %r as %s (%.2f)", item.name, result.category.value, result.confidence)
        return result

    def _classify(self, item: ReceiptItem, position: int, context: ReceiptContext) -> ClassificationResult:
        if not self.rate_limiter.try_acquire():
            raise RateLimitExceededError(f"LLM call budget of {self.rate_limiter.max_calls} used up")
        api_key = self.secrets.get_key()
        if not api_key:
            raise UnauthorizedError("No LLM API key available")

        body = item_request_body(build_item_prompt(item, position, context))
        return parse_item_response(self.client.generate(body, api_key))
