"""Classification from the line's position on the receipt.

Receipts have a stable layout: a header (merchant, address), the item block,
then a summary block where subtotal, tax, tip and total appear in roughly that
order with the total printed last.
"""

from __future__ import annotations

from decimal import Decimal

from splitsmart.domain.classification import ClassificationMethod, ClassificationResult, ItemCategory
from splitsmart.domain.receipt import ReceiptContext, ReceiptItem
from splitsmart.receipt.keywords import KeywordTables, default_keyword_tables
from splitsmart.receipt.text_features import (
    LARGE_PRICE_LIMIT,
    SMALL_PRICE_LIMIT,
    contains_any,
    starts_with_quantity,
)

HEADER_FRACTION = 0.2
SUMMARY_FRACTION = 0.8
TOTAL_MATCH_DELTA = Decimal("1.00")


def _result(category: ItemCategory, confidence: float, reasoning: str) -> ClassificationResult:
    return ClassificationResult(
        category=category,
        confidence=confidence,
        method=ClassificationMethod.GEOMETRIC,
        reasoning=reasoning,
    )


class GeometricStrategy:
    name = "GeometricStrategy"

    def __init__(self, keywords: KeywordTables | None = None) -> None:
        self.keywords = keywords or default_keyword_tables()

    def can_classify(self, item: ReceiptItem, position: int, context: ReceiptContext) -> bool:
        return True

    def classify(self, item: ReceiptItem, position: int, context: ReceiptContext) -> ClassificationResult:
        count = max(context.item_count, position + 1)
        header_end = int(count * HEADER_FRACTION)
        summary_start = int(count * SUMMARY_FRACTION)

        if position < header_end:
            return _result(ItemCategory.UNKNOWN, 0.3, "In header zone (merchant info)")
        if position >= summary_start:
            return self._classify_summary_zone(item, count - 1 - position, context)
        return self._classify_item_zone(item)

    def _is_subtotal(self, name: str) -> bool:
        return contains_any(name, self.keywords.subtotal)

    def _is_tip(self, name: str) -> bool:
        return contains_any(name, self.keywords.tip) or contains_any(name, self.keywords.gratuity)

    def _classify_summary_zone(
        self, item: ReceiptItem, from_end: int, context: ReceiptContext
    ) -> ClassificationResult:
        name = item.name
        kw = self.keywords

        if from_end == 0:
            expected = context.total_amount
            if expected is not None and abs(item.price - expected) <= TOTAL_MATCH_DELTA:
                return _result(ItemCategory.TOTAL, 0.95, "Last line and matches expected total")
            return _result(ItemCategory.TOTAL, 0.85, "Last line is usually the total")

        if from_end == 1:
            if self._is_tip(name):
                category = ItemCategory.GRATUITY if contains_any(name, kw.gratuity) else ItemCategory.TIP
                return _result(category, 0.80, "Second-to-last line with tip keyword")
            if contains_any(name, kw.tax):
                return _result(ItemCategory.TAX, 0.80, "Second-to-last line with tax keyword")
            return _result(ItemCategory.UNKNOWN, 0.5, "Second-to-last line, no clear keyword")

        if from_end == 2:
            if self._is_subtotal(name):
                return _result(ItemCategory.SUBTOTAL, 0.85, "Third-to-last line with subtotal keyword")
            if contains_any(name, kw.tax):
                return _result(ItemCategory.TAX, 0.75, "Third-to-last line with tax keyword")
            if contains_any(name, kw.gratuity) or "service" in name.lower():
                return _result(ItemCategory.GRATUITY, 0.70, "Third-to-last line with service keyword")
            return _result(ItemCategory.UNKNOWN, 0.4, "Third-to-last line, no clear keyword")

        if from_end <= 5:
            if self._is_subtotal(name):
                return _result(ItemCategory.SUBTOTAL, 0.80, "Summary zone with subtotal keyword")
            if contains_any(name, kw.discount):
                return _result(ItemCategory.DISCOUNT, 0.75, "Summary zone with discount keyword")
            if contains_any(name, kw.delivery):
                return _result(ItemCategory.DELIVERY_FEE, 0.75, "Summary zone with delivery keyword")
            if contains_any(name, kw.service_charge):
                return _result(ItemCategory.SERVICE_CHARGE, 0.70, "Summary zone with service fee keyword")
            return _result(ItemCategory.UNKNOWN, 0.3, "Summary zone, no clear keyword")

        return _result(ItemCategory.UNKNOWN, 0.2, "Summary zone, far from the end")

    def _classify_item_zone(self, item: ReceiptItem) -> ClassificationResult:
        name = item.name
        kw = self.keywords

        if self._is_subtotal(name):
            return _result(ItemCategory.SUBTOTAL, 0.70, "Subtotal keyword in item zone")
        if contains_any(name, kw.tax):
            return _result(ItemCategory.TAX, 0.60, "Tax keyword in item zone")
        if contains_any(name, kw.tip):
            return _result(ItemCategory.TIP, 0.60, "Tip keyword in item zone")
        if contains_any(name, kw.discount):
            return _result(ItemCategory.DISCOUNT, 0.75, "Discount keyword in item zone")
        if contains_any(name, kw.delivery):
            return _result(ItemCategory.DELIVERY_FEE, 0.70, "Delivery keyword in item zone")
        if contains_any(name, kw.service_charge):
            return _result(ItemCategory.SERVICE_CHARGE, 0.70, "Service fee keyword in item zone")

        if starts_with_quantity(item):
            return _result(ItemCategory.FOOD, 0.85, "Item zone with quantity prefix")
        if SMALL_PRICE_LIMIT <= item.price <= LARGE_PRICE_LIMIT:
            return _result(ItemCategory.FOOD, 0.75, "Item zone with typical item price")
        if Decimal("0") < item.price < SMALL_PRICE_LIMIT:
            return _result(ItemCategory.UNKNOWN, 0.4, "Item zone but very small price")
        if item.price > LARGE_PRICE_LIMIT:
            return _result(ItemCategory.UNKNOWN, 0.3, "Item zone but unusually large price")
        return _result(ItemCategory.FOOD, 0.65, "Item zone")
