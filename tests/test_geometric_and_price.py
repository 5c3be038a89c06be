"""Tests for the position-based and price-relationship strategies."""

from __future__ import annotations

from decimal import Decimal

import pytest

from splitsmart.domain import ClassificationMethod, ItemCategory, ReceiptContext, ReceiptItem, ReceiptType
from splitsmart.receipt.strategies import GeometricStrategy, PriceRelationshipStrategy

GEOMETRIC = GeometricStrategy()
PRICE = PriceRelationshipStrategy()

RESTAURANT = ReceiptContext(
    total_amount=Decimal("25.60"),
    subtotal_amount=Decimal("20.00"),
    item_count=4,
    receipt_type=ReceiptType.RESTAURANT,
)


def _geo(name: str, price: str, position: int, item_count: int, total: str | None = None):
    context = ReceiptContext(
        total_amount=Decimal(total) if total is not None else None,
        item_count=item_count,
    )
    return GEOMETRIC.classify(ReceiptItem(name, Decimal(price)), position, context)


def test_header_zone_is_unknown() -> None:
    result = _geo("Luigi's Trattoria", "0.00", 0, 10)
    assert (result.category, result.confidence) == (ItemCategory.UNKNOWN, 0.3)
    assert result.method is ClassificationMethod.GEOMETRIC


def test_last_line_is_total() -> None:
    assert _geo("Amount", "50.00", 9, 10, total="50.50").confidence == 0.95
    far = _geo("Amount", "50.00", 9, 10, total="80.00")
    assert (far.category, far.confidence) == (ItemCategory.TOTAL, 0.85)


@pytest.mark.parametrize(
    ("name", "category", "confidence"),
    [
        ("Tip", ItemCategory.TIP, 0.80),
        ("Gratuity", ItemCategory.GRATUITY, 0.80),
        ("Tax", ItemCategory.TAX, 0.80),
        ("Napkins", ItemCategory.UNKNOWN, 0.5),
    ],
)
def test_second_to_last_line(name: str, category: ItemCategory, confidence: float) -> None:
    result = _geo(name, "3.00", 8, 10)
    assert (result.category, result.confidence) == (category, confidence)


def test_deeper_summary_zone() -> None:
    assert _geo("Subtotal", "40.00", 17, 20).category is ItemCategory.SUBTOTAL
    assert _geo("Subtotal", "40.00", 17, 20).confidence == 0.85
    assert _geo("Discount", "-2.00", 16, 20).category is ItemCategory.DISCOUNT


@pytest.mark.parametrize(
    ("name", "price", "category", "confidence"),
    [
        ("2 Tacos", "8.00", ItemCategory.FOOD, 0.85),
        ("Burrito", "9.50", ItemCategory.FOOD, 0.75),
        ("Mints", "0.50", ItemCategory.UNKNOWN, 0.4),
        ("Catering", "150.00", ItemCategory.UNKNOWN, 0.3),
        ("Promo", "-2.00", ItemCategory.DISCOUNT, 0.75),
        ("Tax", "2.00", ItemCategory.TAX, 0.60),
    ],
)
def test_item_zone(name: str, price: str, category: ItemCategory, confidence: float) -> None:
    result = _geo(name, price, 4, 10)
    assert (result.category, result.confidence) == (category, confidence)


def test_price_strategy_needs_an_amount() -> None:
    item = ReceiptItem("Tax", Decimal("1.60"))
    assert not PRICE.can_classify(item, 0, ReceiptContext())
    assert PRICE.can_classify(item, 0, ReceiptContext(total_amount=Decimal("10")))


def test_exact_tax_name_is_confident() -> None:
    result = PRICE.classify(ReceiptItem("Tax", Decimal("1.60")), 1, RESTAURANT)
    assert result.category is ItemCategory.TAX
    assert result.confidence >= 0.85
    assert result.method is ClassificationMethod.PRICE_RELATIONSHIP


def test_tax_confidence_rises_toward_range_midpoint() -> None:
    def confidence(price: str) -> float:
        return PRICE.classify(ReceiptItem("State Tax", Decimal(price)), 1, RESTAURANT).confidence

    at_edge, inside, near_center, center = (confidence(p) for p in ("1.20", "1.40", "1.60", "1.70"))
    assert at_edge >= 0.5
    assert at_edge <= inside < near_center <= center
    assert center > 0.99


def test_tax_outside_range_is_still_tax() -> None:
    result = PRICE.classify(ReceiptItem("Tax", Decimal("3.00")), 1, RESTAURANT)
    assert (result.category, result.confidence) == (ItemCategory.TAX, 0.60)


def test_tip_rate() -> None:
    result = PRICE.classify(ReceiptItem("Tip", Decimal("4.00")), 2, RESTAURANT)
    assert result.category is ItemCategory.TIP
    assert result.confidence >= 0.55

    auto = PRICE.classify(ReceiptItem("Auto Gratuity", Decimal("3.60")), 2, RESTAURANT)
    assert auto.category is ItemCategory.GRATUITY

    loose = PRICE.classify(ReceiptItem("Tip", Decimal("7.00")), 2, RESTAURANT)
    assert (loose.category, loose.confidence) == (ItemCategory.TIP, 0.55)


@pytest.mark.parametrize("name", ["Potato Gratin", "Multiple Tacos", "Self-Service Salad"])
def test_tip_check_needs_a_tip_keyword(name: str) -> None:
    result = PRICE.classify(ReceiptItem(name, Decimal("4.00")), 1, RESTAURANT)
    assert (result.category, result.confidence) == (ItemCategory.FOOD, 0.50)


def test_plural_tip_keyword_still_counts() -> None:
    assert PRICE.classify(ReceiptItem("Tips", Decimal("4.00")), 2, RESTAURANT).category is ItemCategory.TIP


@pytest.mark.parametrize(
    ("name", "price", "category", "confidence"),
    [
        ("Total", "25.60", ItemCategory.TOTAL, 0.95),
        ("Total", "26.50", ItemCategory.TOTAL, 0.75),
        ("Subtotal", "20.00", ItemCategory.SUBTOTAL, 0.92),
        ("Sub Total", "20.80", ItemCategory.SUBTOTAL, 0.70),
    ],
)
def test_summary_sums(name: str, price: str, category: ItemCategory, confidence: float) -> None:
    result = PRICE.classify(ReceiptItem(name, Decimal(price)), 3, RESTAURANT)
    assert (result.category, result.confidence) == (category, confidence)


@pytest.mark.parametrize(
    ("name", "price", "category"),
    [
        ("Charge", "1.60", ItemCategory.TAX),
        ("Fee", "0.60", ItemCategory.SERVICE_CHARGE),
        ("Pasta", "6.00", ItemCategory.FOOD),
        ("Nothing", "0.10", ItemCategory.UNKNOWN),
    ],
)
def test_price_magnitude(name: str, price: str, category: ItemCategory) -> None:
    assert PRICE.classify(ReceiptItem(name, Decimal(price)), 1, RESTAURANT).category is category
