"""Whole-receipt LLM engine: one call classifies every line."""

from __future__ import annotations

from collections.abc import Sequence

from splitsmart.domain.classification import ClassifiedReceipt
from splitsmart.domain.errors import ClassificationError, SecretStoreError, UnauthorizedError
from splitsmart.domain.receipt import ReceiptContext, ReceiptItem
from splitsmart.receipt.assembly import assemble_receipt
from splitsmart.receipt.config import DEFAULT_CONFIG, ClassificationConfig
from splitsmart.receipt.keyword_fallback import build_fallback_receipt
from splitsmart.receipt.llm_prompts import batch_request_body, build_batch_prompt, parse_batch_response
from splitsmart.receipt.validator import ReceiptValidator
from splitsmart.runtime.llm_client import LLMClient
from splitsmart.runtime.logging import get_logger
from splitsmart.runtime.secrets import SecretProvider

logger = get_logger(__name__)


class BatchLLMClassifier:
    """Classify a receipt with a single LLM call; falls back to local keywords on any failure.

    A receipt is always produced. When the fallback is used the receipt is
    marked NEEDS_REVIEW with exactly one FALLBACK_USED issue.
    """

    def __init__(
        self,
        client: LLMClient,
        secrets: SecretProvider,
        config: ClassificationConfig = DEFAULT_CONFIG,
    ) -> None:
        self.client = client
        self.secrets = secrets
        self.config = config

    def classify_receipt(self, items: Sequence[ReceiptItem], context: ReceiptContext) -> ClassifiedReceipt:
        if not items:
            return assemble_receipt([], [])

        try:
            receipt = self._classify_with_llm(items, context)
        except (ClassificationError, SecretStoreError) as e:
            logger.warning("Batch LLM classification failed, using keyword fallback: %s", e)
            return build_fallback_receipt(items, str(e))

        if self.config.enable_validation:
            receipt = ReceiptValidator(self.config).validate(receipt, context)
        logger.info(
            "Batch classified %d line(s): confidence %.0f%%, status %s",
            len(items),
            receipt.total_confidence * 100,
            receipt.validation_status.value,
        )
        return receipt

    def _classify_with_llm(self, items: Sequence[ReceiptItem], context: ReceiptContext) -> ClassifiedReceipt:
        api_key = self.secrets.get_key()
        if not api_key:
            raise UnauthorizedError("No LLM API key available")

        body = batch_request_body(build_batch_prompt(items, context))
        text = self.client.generate(body, api_key)
        return assemble_receipt(items, parse_batch_response(text, len(items)))
