"""Pattern-based classification: keywords, percentages, quantities, abbreviations and price sign."""

from __future__ import annotations

from decimal import Decimal

from splitsmart.domain.classification import ClassificationMethod, ClassificationResult, ItemCategory
from splitsmart.domain.receipt import ReceiptContext, ReceiptItem
from splitsmart.receipt.keywords import KeywordTables, default_keyword_tables
from splitsmart.receipt.text_features import (
    LARGE_PRICE_LIMIT,
    SMALL_PRICE_LIMIT,
    contains_any,
    contains_percentage,
    extract_percentage,
    extract_quantity,
    has_short_name,
    is_all_uppercase,
    is_negative_price,
    is_small_price,
    starts_with_quantity,
)

# Fragments that mark a percentage line as an auto-added charge.
PERCENT_GRATUITY_FRAGMENTS = ("grat", "party", "auto", "service")
EXPLICIT_DISCOUNT_FRAGMENTS = ("discount", "coupon", "promo", "refund", "credit")
TAX_ABBREVIATIONS = frozenset({"tax", "vat", "gst", "hst", "tx"})
TIP_ABBREVIATIONS = frozenset({"tip"})
SUMMARY_FRAGMENTS = ("total", "subtotal", "tax", "tip")

# A small line on a receipt above this total is more likely tax than an item.
SMALL_PRICE_TAX_TOTAL = Decimal("10.00")
# A large line within this distance of the expected total is the total itself.
TOTAL_PROXIMITY = Decimal("5.00")
POS_CODE_MAX_LEN = 15


def _result(category: ItemCategory, confidence: float, reasoning: str) -> ClassificationResult:
    return ClassificationResult(
        category=category,
        confidence=confidence,
        method=ClassificationMethod.HEURISTIC,
        reasoning=reasoning,
    )


class PatternHeuristicStrategy:
    """Classify by textual patterns; checks run from most to least specific, first match wins."""

    name = "PatternHeuristicStrategy"

    def __init__(self, keywords: KeywordTables | None = None) -> None:
        self.keywords = keywords or default_keyword_tables()

    def can_classify(self, item: ReceiptItem, position: int, context: ReceiptContext) -> bool:
        return True

    def classify(self, item: ReceiptItem, position: int, context: ReceiptContext) -> ClassificationResult:
        # A negative price is a discount whatever the name says, so it is checked first.
        for check in (
            self._classify_negative_price,
            self._classify_percentage,
            self._classify_quantity,
            self._classify_keyword,
            self._classify_abbreviation,
        ):
            result = check(item)
            if result is not None:
                return result

        result = self._classify_price_magnitude(item, context)
        if result is not None:
            return result

        return _result(ItemCategory.UNKNOWN, 0.1, "No clear pattern detected")

    def _classify_percentage(self, item: ReceiptItem) -> ClassificationResult | None:
        if not contains_percentage(item):
            return None

        name = item.name.lower()
        percentage = extract_percentage(item)

        if any(fragment in name for fragment in PERCENT_GRATUITY_FRAGMENTS):
            return _result(ItemCategory.GRATUITY, 0.95, "Contains percentage and gratuity keywords")
        if contains_any(name, self.keywords.tax):
            return _result(ItemCategory.TAX, 0.90, "Contains percentage and tax keywords")
        if contains_any(name, self.keywords.discount):
            return _result(ItemCategory.DISCOUNT, 0.88, "Contains percentage and discount keywords")

        if percentage is not None and 15 <= percentage <= 25:
            return _result(ItemCategory.GRATUITY, 0.80, "Percentage in typical gratuity range (15-25%)")
        if percentage is not None and 5 <= percentage < 15:
            return _result(ItemCategory.TAX, 0.70, "Percentage in typical tax range (5-15%)")
        return None

    def _classify_quantity(self, item: ReceiptItem) -> ClassificationResult | None:
        if not starts_with_quantity(item):
            return None
        quantity = extract_quantity(item) or 1
        return _result(ItemCategory.FOOD, 0.90, f"Starts with quantity indicator ({quantity})")

    def _classify_negative_price(self, item: ReceiptItem) -> ClassificationResult | None:
        if not is_negative_price(item):
            return None
        name = item.name.lower()
        if any(fragment in name for fragment in EXPLICIT_DISCOUNT_FRAGMENTS):
            return _result(ItemCategory.DISCOUNT, 0.95, "Negative price with discount keyword")
        return _result(ItemCategory.DISCOUNT, 0.85, "Negative price indicates discount/refund")

    def _classify_keyword(self, item: ReceiptItem) -> ClassificationResult | None:
        name = item.name
        kw = self.keywords

        if contains_any(name, kw.tax):
            return _result(ItemCategory.TAX, 0.92, "Contains tax keyword")
        if contains_any(name, kw.tip) and not contains_percentage(item):
            return _result(ItemCategory.TIP, 0.90, "Contains tip keyword (no percentage)")
        if contains_any(name, kw.gratuity):
            return _result(ItemCategory.GRATUITY, 0.93, "Contains gratuity/auto-tip keyword")
        if contains_any(name, kw.total) and "sub" not in name.lower() and not contains_any(name, kw.subtotal):
            return _result(ItemCategory.TOTAL, 0.88, "Contains total keyword")
        if contains_any(name, kw.subtotal):
            return _result(ItemCategory.SUBTOTAL, 0.90, "Contains subtotal keyword")
        if contains_any(name, kw.discount):
            return _result(ItemCategory.DISCOUNT, 0.85, "Contains discount keyword")
        if contains_any(name, kw.delivery):
            return _result(ItemCategory.DELIVERY_FEE, 0.88, "Contains delivery/shipping keyword")
        if contains_any(name, kw.service_charge):
            return _result(ItemCategory.SERVICE_CHARGE, 0.85, "Contains service charge keyword")
        return None

    def _classify_abbreviation(self, item: ReceiptItem) -> ClassificationResult | None:
        name = item.name.lower()

        if has_short_name(item):
            if name in TAX_ABBREVIATIONS:
                return _result(ItemCategory.TAX, 0.85, "Short tax abbreviation")
            if name in TIP_ABBREVIATIONS:
                return _result(ItemCategory.TIP, 0.85, "Short tip abbreviation")
            return _result(ItemCategory.UNKNOWN, 0.3, "Very short name, likely POS code")

        if is_all_uppercase(item) and len(item.name) < POS_CODE_MAX_LEN:
            if any(fragment in name for fragment in SUMMARY_FRAGMENTS):
                return None
            return _result(ItemCategory.FOOD, 0.60, "All-caps POS code, likely food item")

        return None

    def _classify_price_magnitude(self, item: ReceiptItem, context: ReceiptContext) -> ClassificationResult | None:
        expected_total = context.total_amount

        if is_small_price(item):
            if expected_total is not None and expected_total > SMALL_PRICE_TAX_TOTAL:
                return _result(ItemCategory.TAX, 0.50, "Very small price, possibly tax")
            return _result(ItemCategory.UNKNOWN, 0.3, "Very small price, unclear category")

        if item.price > LARGE_PRICE_LIMIT:
            if expected_total is not None and abs(item.price - expected_total) < TOTAL_PROXIMITY:
                return _result(ItemCategory.TOTAL, 0.75, "Large price close to expected total")
            return _result(ItemCategory.SUBTOTAL, 0.55, "Large price, possibly subtotal")

        if SMALL_PRICE_LIMIT <= item.price <= LARGE_PRICE_LIMIT:
            return _result(ItemCategory.FOOD, 0.55, "Price in typical food item range")

        return None
