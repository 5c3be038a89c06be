"""Local keyword classifier used when the batch LLM engine is unavailable."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from splitsmart.domain.classification import (
    ClassificationMethod,
    ClassificationResult,
    ClassifiedReceipt,
    IssueType,
    ItemCategory,
    ValidationIssue,
    ValidationStatus,
)
from splitsmart.domain.receipt import ReceiptItem
from splitsmart.receipt.assembly import assemble_receipt
from splitsmart.receipt.text_features import starts_with_quantity


def classify_by_keyword(item: ReceiptItem) -> ClassificationResult:
    name = item.name.lower()

    def result(category: ItemCategory, confidence: float, reasoning: str) -> ClassificationResult:
        return ClassificationResult(category, confidence, ClassificationMethod.HEURISTIC, reasoning)

    if "tax" in name:
        return result(ItemCategory.TAX, 0.9, "Fallback: tax keyword")
    if "tip" in name:
        return result(ItemCategory.TIP, 0.9, "Fallback: tip keyword")
    if "subtotal" in name or "sub total" in name:
        return result(ItemCategory.SUBTOTAL, 0.9, "Fallback: subtotal keyword")
    if "total" in name:
        return result(ItemCategory.TOTAL, 0.9, "Fallback: total keyword")
    if starts_with_quantity(item):
        return result(ItemCategory.FOOD, 0.7, "Fallback: quantity prefix")
    return result(ItemCategory.UNKNOWN, 0.3, "Fallback: no keyword matched")


def build_fallback_receipt(items: Sequence[ReceiptItem], reason: str) -> ClassifiedReceipt:
    """Classify locally and flag the receipt for review with a single fallback issue."""
    receipt = assemble_receipt(items, [classify_by_keyword(item) for item in items])
    issue = ValidationIssue(
        type=IssueType.FALLBACK_USED,
        message=f"Automatic classification failed ({reason}); basic keyword matching was used",
        severity=ValidationStatus.NEEDS_REVIEW,
    )
    return replace(receipt, validation_status=ValidationStatus.NEEDS_REVIEW, validation_issues=(issue,))
