"""Classification from the item's price relative to the receipt subtotal and total."""

from __future__ import annotations

from decimal import Decimal

from splitsmart.domain.classification import ClassificationMethod, ClassificationResult, ItemCategory
from splitsmart.domain.receipt import ReceiptContext, ReceiptItem
from splitsmart.receipt.keywords import KeywordTables, default_keyword_tables
from splitsmart.receipt.text_features import contains_any, ratio

AUTO_CHARGE_KEYWORDS = ("auto", "party")
EXACT_TAX_NAMES = frozenset({"tax", "sales tax", "vat"})
EXACT_TIP_NAMES = frozenset({"tip", "gratuity"})

STANDARD_TIP_RATES = (0.15, 0.18, 0.20, 0.22, 0.25)
TYPICAL_TIP_RANGE = (0.10, 0.30)
LOOSE_TIP_RANGE = (0.05, 0.40)
LOOSE_TAX_LIMIT = 0.20


def _result(category: ItemCategory, confidence: float, reasoning: str) -> ClassificationResult:
    return ClassificationResult(
        category=category,
        confidence=min(confidence, 1.0),
        method=ClassificationMethod.PRICE_RELATIONSHIP,
        reasoning=reasoning,
    )


def _base_amount(context: ReceiptContext) -> Decimal | None:
    """Amount rates are measured against: the subtotal, else the total."""
    for amount in (context.subtotal_amount, context.total_amount):
        if amount is not None and amount > 0:
            return amount
    return None


def _is_subtotal_name(name: str) -> bool:
    return "sub" in name and "total" in name


def _is_total_name(name: str) -> bool:
    return "total" in name and "sub" not in name


class PriceRelationshipStrategy:
    """Check tax, tip and summary lines against the amounts they should relate to."""

    name = "PriceRelationshipStrategy"

    def __init__(self, keywords: KeywordTables | None = None) -> None:
        self.keywords = keywords or default_keyword_tables()

    def can_classify(self, item: ReceiptItem, position: int, context: ReceiptContext) -> bool:
        return _base_amount(context) is not None

    def classify(self, item: ReceiptItem, position: int, context: ReceiptContext) -> ClassificationResult:
        base = _base_amount(context)
        if base is None:
            return _result(ItemCategory.UNKNOWN, 0.0, "No subtotal or total to compare against")

        name = item.name.lower()
        rate = ratio(item.price, base)

        for check in (
            lambda: self._validate_tax_rate(name, rate, context),
            lambda: self._validate_tip_rate(name, rate),
            lambda: self._validate_total(name, item.price, context),
            lambda: self._validate_subtotal(name, item.price, context),
            lambda: self._classify_by_magnitude(name, rate),
        ):
            result = check()
            if result is not None:
                return result

        return _result(ItemCategory.UNKNOWN, 0.1, "No price relationship detected")

    def _validate_tax_rate(self, name: str, rate: float, context: ReceiptContext) -> ClassificationResult | None:
        if not contains_any(name, self.keywords.tax):
            return None

        low, high = context.expected_tax_range
        if low <= rate <= high:
            center = (low + high) / 2
            half_width = (high - low) / 2 or 1.0
            confidence = max(0.5, 1.0 - abs(rate - center) / half_width)
            if name in EXACT_TAX_NAMES:
                confidence += 0.15
            return _result(
                ItemCategory.TAX,
                confidence,
                f"Tax rate {rate:.1%} within expected range {low:.0%}-{high:.0%}",
            )
        if 0 < rate < LOOSE_TAX_LIMIT:
            return _result(ItemCategory.TAX, 0.60, f"Tax rate {rate:.1%} outside typical range but plausible")
        return _result(ItemCategory.TAX, 0.50, f"Tax keyword but unusual rate {rate:.1%}")

    def _is_tip_line(self, name: str) -> bool:
        return contains_any(name, self.keywords.tip) or contains_any(name, self.keywords.gratuity)

    def _validate_tip_rate(self, name: str, rate: float) -> ClassificationResult | None:
        if not self._is_tip_line(name):
            return None

        is_gratuity = contains_any(name, self.keywords.gratuity)
        is_auto = is_gratuity or contains_any(name, AUTO_CHARGE_KEYWORDS)
        category = ItemCategory.GRATUITY if is_auto else ItemCategory.TIP

        low, high = TYPICAL_TIP_RANGE
        if low <= rate <= high:
            nearest = min(STANDARD_TIP_RATES, key=lambda standard: abs(rate - standard))
            confidence = max(0.6, 1.0 - abs(rate - nearest) * 10)
            if name in EXACT_TIP_NAMES:
                confidence += 0.10
            return _result(category, confidence, f"Tip rate {rate:.1%} near standard {nearest:.0%}")

        loose_low, loose_high = LOOSE_TIP_RANGE
        if loose_low <= rate <= loose_high:
            category = ItemCategory.GRATUITY if is_gratuity else ItemCategory.TIP
            return _result(category, 0.55, f"Tip rate {rate:.1%} outside typical range")
        return None

    def _validate_total(self, name: str, price: Decimal, context: ReceiptContext) -> ClassificationResult | None:
        expected = context.total_amount
        if not _is_total_name(name) or expected is None or expected <= 0:
            return None

        difference = ratio(abs(price - expected), expected)
        if difference < 0.01:
            return _result(ItemCategory.TOTAL, 0.95, f"Matches expected total (diff {difference:.1%})")
        if difference < 0.05:
            return _result(ItemCategory.TOTAL, 0.75, f"Close to expected total (diff {difference:.1%})")
        return None

    def _validate_subtotal(self, name: str, price: Decimal, context: ReceiptContext) -> ClassificationResult | None:
        expected = context.subtotal_amount
        if not _is_subtotal_name(name) or expected is None or expected <= 0:
            return None

        difference = ratio(abs(price - expected), expected)
        if difference < 0.02:
            return _result(ItemCategory.SUBTOTAL, 0.92, f"Matches expected subtotal (diff {difference:.1%})")
        if difference < 0.05:
            return _result(ItemCategory.SUBTOTAL, 0.70, f"Close to expected subtotal (diff {difference:.1%})")
        return None

    def _classify_by_magnitude(self, name: str, rate: float) -> ClassificationResult | None:
        has_tip_word = self._is_tip_line(name)

        if 0.02 <= rate < 0.15:
            if 0.05 <= rate <= 0.12 and not has_tip_word:
                return _result(ItemCategory.TAX, 0.55, f"Price is {rate:.1%} of subtotal, typical tax amount")
            if rate < 0.05:
                return _result(
                    ItemCategory.SERVICE_CHARGE, 0.50, f"Price is {rate:.1%} of subtotal, possibly a service fee"
                )

        if 0.15 <= rate <= 0.30 and has_tip_word:
            return _result(ItemCategory.TIP, 0.60, f"Price is {rate:.1%} of subtotal, typical tip amount")

        if rate >= 0.50 and "total" in name:
            if "sub" in name or rate < 0.80:
                return _result(ItemCategory.SUBTOTAL, 0.65, f"Large share ({rate:.0%}) with total keyword")
            return _result(ItemCategory.TOTAL, 0.65, f"Large share ({rate:.0%}) with total keyword")

        if 0.05 <= rate <= 0.50:
            return _result(ItemCategory.FOOD, 0.50, f"Price is {rate:.1%} of subtotal, typical item share")

        return None
