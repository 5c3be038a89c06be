"""Render a ClassifiedReceipt as a text summary or a JSON-ready dict."""

from __future__ import annotations

from typing import Any

from splitsmart.domain.classification import ClassifiedReceipt, ClassifiedReceiptItem, ValidationIssue


def _format_lines_aligned(rows: list[tuple[str, str, str]], indent: str = "  ") -> list[str]:
    """
    Format (label, amount, note) rows with aligned amounts.

    Args:
        rows: List of (label, amount_text, note) tuples
        indent: Indentation prefix for each line

    Returns:
        List of formatted lines
    """
    if not rows:
        return []

    max_label_len = max(len(label) for label, _, _ in rows)
    max_amount_len = max(len(amount) for _, amount, _ in rows)

    lines = []
    for label, amount, note in rows:
        base = f"{indent}{label.ljust(max_label_len)}  {amount.rjust(max_amount_len)}"
        lines.append(f"{base}  ; {note}" if note else base)
    return lines


def _row(item: ClassifiedReceiptItem) -> tuple[str, str, str]:
    note = f"{item.category.display_name}, {item.classification_confidence:.0%} {item.classification_method.value.lower()}"
    if item.needs_review:
        note += ", review"
    return item.name, f"{item.price:.2f}", note


def format_classified_receipt(receipt: ClassifiedReceipt) -> str:
    """Human-readable summary: every line in receipt order, then checks and issues."""
    lines = [
        f"Receipt {receipt.id}",
        f"Status: {receipt.validation_status.value} ({receipt.status_color}), "
        f"confidence {receipt.total_confidence:.0%}",
        "",
    ]
    lines.extend(_format_lines_aligned([_row(item) for item in receipt.all_items]))
    lines.append("")
    lines.append(f"Food sum: {receipt.food_items_sum():.2f}")
    lines.append(f"Charges: {receipt.total_charges():.2f}")
    lines.append(f"Discounts: {receipt.total_discounts():.2f}")
    lines.append(f"Expected total: {receipt.expected_total():.2f}")
    if receipt.total is not None:
        match = "yes" if receipt.sum_matches_total() else "no"
        lines.append(f"Total: {receipt.total.price:.2f} (matches: {match})")

    if receipt.validation_issues:
        lines.append("")
        lines.append("Issues:")
        for issue in receipt.validation_issues:
            lines.append(f"  [{issue.severity.value}] {issue.type.value}: {issue.message}")
    return "\n".join(lines)


def _item_to_dict(item: ClassifiedReceiptItem | None) -> dict[str, Any] | None:
    if item is None:
        return None
    return {
        "id": item.id,
        "name": item.name,
        "price": str(item.price),
        "category": item.category.value,
        "confidence": item.classification_confidence,
        "method": item.classification_method.value,
        "position": item.position,
        "needs_review": item.needs_review,
        "reasoning": item.reasoning,
        "corrected_by": item.corrected_by,
    }


def _issue_to_dict(issue: ValidationIssue) -> dict[str, Any]:
    return {
        "type": issue.type.value,
        "message": issue.message,
        "severity": issue.severity.value,
        "affected_item_ids": list(issue.affected_item_ids),
    }


def classified_receipt_to_dict(receipt: ClassifiedReceipt) -> dict[str, Any]:
    """JSON-ready representation; money is rendered as decimal strings."""
    return {
        "id": receipt.id,
        "food_items": [_item_to_dict(item) for item in receipt.food_items],
        "tax": _item_to_dict(receipt.tax),
        "tip": _item_to_dict(receipt.tip),
        "gratuity": _item_to_dict(receipt.gratuity),
        "subtotal": _item_to_dict(receipt.subtotal),
        "total": _item_to_dict(receipt.total),
        "discounts": [_item_to_dict(item) for item in receipt.discounts],
        "other_charges": [_item_to_dict(item) for item in receipt.other_charges],
        "unknown_items": [_item_to_dict(item) for item in receipt.unknown_items],
        "total_confidence": receipt.total_confidence,
        "validation_status": receipt.validation_status.value,
        "validation_issues": [_issue_to_dict(issue) for issue in receipt.validation_issues],
        "sum_matches_total": receipt.sum_matches_total(),
        "expected_total": str(receipt.expected_total()),
        "requires_user_review": receipt.requires_user_review,
    }
