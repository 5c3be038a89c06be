"""Build the receipt-wide context snapshot from extracted items."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from decimal import Decimal

from splitsmart.domain.receipt import ReceiptContext, ReceiptItem, ReceiptType
from splitsmart.receipt.text_features import contains_any

RESTAURANT_KEYWORDS = (
    "burger",
    "pizza",
    "fries",
    "drink",
    "soda",
    "entree",
    "appetizer",
    "dessert",
    "meal",
    "sandwich",
)
GROCERY_KEYWORDS = ("milk", "bread", "eggs", "produce", "meat", "organic", "fresh")
DELIVERY_TYPE_KEYWORDS = ("delivery", "shipping", "postage")

# Long receipts without restaurant signals are usually grocery runs.
GROCERY_ITEM_COUNT = 10


def detect_receipt_type(items: Sequence[ReceiptItem]) -> ReceiptType:
    """Guess the receipt type from item names."""
    names = [item.name for item in items]
    restaurant_hits = sum(1 for name in names if contains_any(name, RESTAURANT_KEYWORDS))
    grocery_hits = sum(1 for name in names if contains_any(name, GROCERY_KEYWORDS))
    delivery_hits = sum(1 for name in names if contains_any(name, DELIVERY_TYPE_KEYWORDS))

    if delivery_hits > 0:
        return ReceiptType.DELIVERY
    if restaurant_hits >= 2:
        return ReceiptType.RESTAURANT
    if grocery_hits >= 2:
        return ReceiptType.GROCERY
    if len(items) > GROCERY_ITEM_COUNT:
        return ReceiptType.GROCERY
    return ReceiptType.UNKNOWN


def build_receipt_context(
    items: Sequence[ReceiptItem],
    *,
    total: Decimal | None = None,
    subtotal: Decimal | None = None,
    receipt_type: ReceiptType | None = None,
    merchant_name: str | None = None,
    detected_language: str | None = None,
    receipt_date: date | None = None,
) -> ReceiptContext:
    """Snapshot the receipt before classification; the type is detected when not supplied."""
    return ReceiptContext(
        total_amount=total,
        subtotal_amount=subtotal,
        item_count=len(items),
        receipt_type=receipt_type if receipt_type is not None else detect_receipt_type(items),
        detected_language=detected_language,
        merchant_name=merchant_name,
        date=receipt_date,
    )
