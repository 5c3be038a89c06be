"""Data models for extracted receipt lines and their receipt-wide context."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date as date_type
from decimal import Decimal
from enum import Enum


@dataclass(frozen=True)
class ReceiptItem:
    """A single OCR-extracted line: raw text plus the price printed beside it."""

    name: str
    price: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", self.name.strip())
        if not isinstance(self.price, Decimal):
            object.__setattr__(self, "price", Decimal(str(self.price)))
        if not self.price.is_finite():
            raise ValueError(f"Price of {self.name!r} is not a finite amount: {self.price}")


class ReceiptType(str, Enum):
    """Kind of merchant the receipt came from; calibrates rate expectations."""

    RESTAURANT = "RESTAURANT"
    GROCERY = "GROCERY"
    RETAIL = "RETAIL"
    DELIVERY = "DELIVERY"
    UNKNOWN = "UNKNOWN"

    @property
    def typical_tax_range(self) -> tuple[float, float]:
        """Typical tax rate range as fractions of the subtotal."""
        return _TAX_RANGES[self]

    @property
    def typical_tip_range(self) -> tuple[float, float]:
        """Typical tip rate range as fractions of the subtotal."""
        return _TIP_RANGES[self]

    @property
    def expects_tip(self) -> bool:
        return self in (ReceiptType.RESTAURANT, ReceiptType.DELIVERY)

    @property
    def expects_service_charge(self) -> bool:
        # Auto-gratuity for large parties, delivery/service fees for delivery.
        return self in (ReceiptType.RESTAURANT, ReceiptType.DELIVERY)


_TAX_RANGES: dict[ReceiptType, tuple[float, float]] = {
    ReceiptType.RESTAURANT: (0.05, 0.12),
    ReceiptType.GROCERY: (0.00, 0.10),  # some items are tax-exempt
    ReceiptType.RETAIL: (0.05, 0.15),
    ReceiptType.DELIVERY: (0.05, 0.12),
    ReceiptType.UNKNOWN: (0.00, 0.20),
}

_TIP_RANGES: dict[ReceiptType, tuple[float, float]] = {
    ReceiptType.RESTAURANT: (0.15, 0.25),
    ReceiptType.DELIVERY: (0.10, 0.20),
    ReceiptType.GROCERY: (0.00, 0.30),
    ReceiptType.RETAIL: (0.00, 0.30),
    ReceiptType.UNKNOWN: (0.00, 0.30),
}


@dataclass(frozen=True)
class ReceiptContext:
    """Read-only snapshot of receipt-wide facts, built once before classification."""

    total_amount: Decimal | None = None
    subtotal_amount: Decimal | None = None
    item_count: int = 0
    receipt_type: ReceiptType = ReceiptType.UNKNOWN
    detected_language: str | None = None  # ISO code, e.g. "en"
    merchant_name: str | None = None
    date: date_type | None = None

    @property
    def is_restaurant(self) -> bool:
        return self.receipt_type is ReceiptType.RESTAURANT

    @property
    def is_grocery(self) -> bool:
        return self.receipt_type is ReceiptType.GROCERY

    @property
    def expects_tip(self) -> bool:
        return self.receipt_type.expects_tip

    @property
    def expects_service_charge(self) -> bool:
        return self.receipt_type.expects_service_charge

    @property
    def expected_tax_range(self) -> tuple[float, float]:
        return self.receipt_type.typical_tax_range

    @property
    def expected_tip_range(self) -> tuple[float, float]:
        return self.receipt_type.typical_tip_range
