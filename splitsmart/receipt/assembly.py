"""Assemble per-item classifications into a ClassifiedReceipt."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from splitsmart.domain.classification import (
    ClassificationResult,
    ClassifiedReceipt,
    ClassifiedReceiptItem,
    IssueType,
    ItemCategory,
    ValidationIssue,
    ValidationStatus,
    most_severe,
)
from splitsmart.domain.receipt import ReceiptItem

SINGLETON_FIELDS: dict[ItemCategory, str] = {
    ItemCategory.TAX: "tax",
    ItemCategory.TIP: "tip",
    ItemCategory.GRATUITY: "gratuity",
    ItemCategory.SUBTOTAL: "subtotal",
    ItemCategory.TOTAL: "total",
}

VALID_CONFIDENCE = 0.9
WARNING_CONFIDENCE = 0.7


def partition_items(items: Iterable[ClassifiedReceiptItem]) -> dict[str, Any]:
    """Bucket items by category into ClassifiedReceipt field values.

    Each item lands in exactly one bucket. When several items claim a
    singleton category the most confident one (earliest on ties) takes the
    slot and the rest go to ``unknown_items`` with their category unchanged.
    """
    ordered = sorted(items, key=lambda item: item.position)
    food: list[ClassifiedReceiptItem] = []
    discounts: list[ClassifiedReceiptItem] = []
    other_charges: list[ClassifiedReceiptItem] = []
    unknown: list[ClassifiedReceiptItem] = []
    singletons: dict[str, ClassifiedReceiptItem] = {}

    for item in ordered:
        category = item.category
        if category in SINGLETON_FIELDS:
            slot = SINGLETON_FIELDS[category]
            current = singletons.get(slot)
            if current is None:
                singletons[slot] = item
            elif item.classification_confidence > current.classification_confidence:
                unknown.append(current)
                singletons[slot] = item
            else:
                unknown.append(item)
        elif category is ItemCategory.FOOD:
            food.append(item)
        elif category is ItemCategory.DISCOUNT:
            discounts.append(item)
        elif category in (ItemCategory.SERVICE_CHARGE, ItemCategory.DELIVERY_FEE):
            other_charges.append(item)
        else:
            unknown.append(item)

    return {
        "food_items": tuple(food),
        "discounts": tuple(discounts),
        "other_charges": tuple(other_charges),
        "unknown_items": tuple(sorted(unknown, key=lambda item: item.position)),
        **{slot: singletons.get(slot) for slot in SINGLETON_FIELDS.values()},
    }


def mean_confidence(items: Sequence[ClassifiedReceiptItem]) -> float:
    if not items:
        return 0.0
    return sum(item.classification_confidence for item in items) / len(items)


def initial_status(total_confidence: float, has_tax: bool, has_total: bool) -> ValidationStatus:
    """Status before validation: VALID needs high confidence plus tax and total lines."""
    if total_confidence >= VALID_CONFIDENCE and has_tax and has_total:
        return ValidationStatus.VALID
    if total_confidence >= WARNING_CONFIDENCE:
        return ValidationStatus.WARNING
    return ValidationStatus.NEEDS_REVIEW


def low_confidence_issue(items: Sequence[ClassifiedReceiptItem]) -> ValidationIssue | None:
    """LOW_CONFIDENCE issue naming every item that needs review, or None."""
    pending = [item for item in items if item.needs_review]
    if not pending:
        return None
    return ValidationIssue(
        type=IssueType.LOW_CONFIDENCE,
        message=f"{len(pending)} item(s) classified with low confidence",
        severity=ValidationStatus.NEEDS_REVIEW,
        affected_item_ids=tuple(item.id for item in pending),
    )


def assemble_receipt(items: Sequence[ReceiptItem], results: Sequence[ClassificationResult]) -> ClassifiedReceipt:
    """Build the receipt from items and their results (same order, same length)."""
    if len(items) != len(results):
        raise ValueError(f"Got {len(results)} classifications for {len(items)} items")

    classified = [
        ClassifiedReceiptItem.from_result(item, position, result)
        for position, (item, result) in enumerate(zip(items, results))
    ]
    buckets = partition_items(classified)
    total_confidence = mean_confidence(classified)
    return ClassifiedReceipt(
        **buckets,
        total_confidence=total_confidence,
        validation_status=initial_status(
            total_confidence,
            has_tax=buckets["tax"] is not None,
            has_total=buckets["total"] is not None,
        ),
    )


def apply_correction(
    receipt: ClassifiedReceipt,
    item_id: str,
    category: ItemCategory,
    corrected_by: str,
) -> ClassifiedReceipt:
    """Re-partition ``receipt`` after a manual category correction of one item.

    The status is recomputed from the new confidence and the LOW_CONFIDENCE
    issue is rebuilt; other issues are kept as they were until the receipt is
    validated again.
    """
    items = receipt.all_items
    for index, item in enumerate(items):
        if item.id == item_id:
            items[index] = item.corrected(category, corrected_by)
            break
    else:
        raise KeyError(f"No item with id {item_id} on receipt {receipt.id}")

    buckets = partition_items(items)
    total_confidence = mean_confidence(items)
    issues = [issue for issue in receipt.validation_issues if issue.type is not IssueType.LOW_CONFIDENCE]
    pending = low_confidence_issue(items)
    if pending is not None:
        issues.append(pending)
    status = initial_status(
        total_confidence,
        has_tax=buckets["tax"] is not None,
        has_total=buckets["total"] is not None,
    )
    return replace(
        receipt,
        **buckets,
        total_confidence=total_confidence,
        validation_status=most_severe(status, *(issue.severity for issue in issues)),
        validation_issues=tuple(issues),
        updated_at=datetime.now(timezone.utc),
    )
