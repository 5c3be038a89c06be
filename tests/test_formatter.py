"""Tests for receipt text and JSON rendering."""

from __future__ import annotations

from decimal import Decimal

from splitsmart.domain import ClassificationMethod, ClassificationResult, ItemCategory, ReceiptItem
from splitsmart.receipt.assembly import assemble_receipt
from splitsmart.receipt.formatter import classified_receipt_to_dict, format_classified_receipt


def _burger_receipt(tip_confidence: float = 0.95):
    items = [
        ReceiptItem("2 Burgers", Decimal("20.00")),
        ReceiptItem("Tax", Decimal("1.60")),
        ReceiptItem("Tip", Decimal("4.00")),
        ReceiptItem("Total", Decimal("25.60")),
    ]
    results = [
        ClassificationResult(ItemCategory.FOOD, 0.95, ClassificationMethod.GEOMETRIC),
        ClassificationResult(ItemCategory.TAX, 0.95, ClassificationMethod.HEURISTIC),
        ClassificationResult(ItemCategory.TIP, tip_confidence, ClassificationMethod.HEURISTIC),
        ClassificationResult(ItemCategory.TOTAL, 0.95, ClassificationMethod.GEOMETRIC),
    ]
    return assemble_receipt(items, results)


def test_text_summary_lists_lines_in_order_with_aligned_notes() -> None:
    text = format_classified_receipt(_burger_receipt())
    item_lines = [line for line in text.splitlines() if "; " in line]

    assert [line.split()[0] for line in item_lines] == ["2", "Tax", "Tip", "Total"]
    assert len({line.index(";") for line in item_lines}) == 1
    assert "; Tax, 95% heuristic" in text
    assert "Expected total: 25.60" in text
    assert "Total: 25.60 (matches: yes)" in text


def test_text_summary_marks_lines_for_review() -> None:
    text = format_classified_receipt(_burger_receipt(tip_confidence=0.4))
    tip_line = next(line for line in text.splitlines() if line.strip().startswith("Tip"))
    assert tip_line.endswith(", review")


def test_dict_rendering() -> None:
    data = classified_receipt_to_dict(_burger_receipt())

    assert data["food_items"][0]["price"] == "20.00"
    assert data["tax"]["category"] == "TAX"
    assert data["gratuity"] is None
    assert data["expected_total"] == "25.60"
    assert data["sum_matches_total"] is True
    assert data["requires_user_review"] is False
    assert data["validation_issues"] == []
