"""Pure text and price features of a receipt line used by the strategies."""

from __future__ import annotations

import re
from collections.abc import Iterable
from decimal import Decimal

from splitsmart.domain.receipt import ReceiptItem

_PERCENT_RE = re.compile(r"(\d+(?:\.\d+)?)\s*%")
_QUANTITY_RE = re.compile(r"^(\d+)x?\s+", re.IGNORECASE)

SMALL_PRICE_LIMIT = Decimal("1.00")
LARGE_PRICE_LIMIT = Decimal("100.00")


def contains_keyword(text: str, keyword: str) -> bool:
    """Case-insensitive keyword containment.

    Short ASCII keywords (<= 3 chars) must match as a whole word, optionally
    followed by a plural "s" or a digit suffix ("TAX1"), so OFF does not match
    in COFFEE and TIP still matches in TIPS.
    """
    text_lower = text.lower()
    kw = keyword.lower().strip()
    if not kw:
        return False
    if len(kw) <= 3 and kw.isascii():
        return re.search(r"\b" + re.escape(kw) + r"(?:s|\d+)?\b", text_lower) is not None
    return kw in text_lower


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(contains_keyword(text, kw) for kw in keywords)


def has_short_name(item: ReceiptItem) -> bool:
    """Very short names are usually abbreviations or POS codes."""
    return len(item.name) <= 3


def is_all_uppercase(item: ReceiptItem) -> bool:
    return item.name == item.name.upper() and not any(ch.islower() for ch in item.name)


def is_negative_price(item: ReceiptItem) -> bool:
    return item.price < 0


def is_small_price(item: ReceiptItem) -> bool:
    return Decimal("0") < item.price < SMALL_PRICE_LIMIT


def contains_percentage(item: ReceiptItem) -> bool:
    return "%" in item.name


def extract_percentage(item: ReceiptItem) -> float | None:
    match = _PERCENT_RE.search(item.name)
    if match is None:
        return None
    return float(match.group(1))


def starts_with_quantity(item: ReceiptItem) -> bool:
    """Names like "2 Burgers" or "3x Fries"."""
    return _QUANTITY_RE.match(item.name) is not None


def extract_quantity(item: ReceiptItem) -> int | None:
    match = _QUANTITY_RE.match(item.name)
    if match is None:
        return None
    return int(match.group(1))


def ratio(part: Decimal, whole: Decimal) -> float:
    """``part / whole`` as a float; callers guarantee ``whole > 0``."""
    return float(part / whole)
