"""Keyword tables for receipt line classification.

Built-in tables cover the common English labels plus a few other languages.
Project configs can extend any table (see runtime.keyword_rules); extensions
are appended, built-ins are never removed.

To add keywords:
1. Add them to config/keywords.toml under [keywords], e.g. tax = ["moms"]
2. Keywords are case-insensitive; keywords of 3 chars or fewer match whole words only
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, fields
from functools import lru_cache
from typing import Any

TAX_KEYWORDS = ("tax", "vat", "gst", "hst", "pst", "sales tax", "consumption tax", "tva", "iva", "mwst", "税")
TIP_KEYWORDS = ("tip", "pourboire", "propina", "trinkgeld", "チップ")
GRATUITY_KEYWORDS = ("gratuity", "auto grat", "service charge", "large party", "party charge")
TOTAL_KEYWORDS = ("total", "amount due", "balance", "grand total")
SUBTOTAL_KEYWORDS = ("subtotal", "sub total", "sub-total", "items total")
DISCOUNT_KEYWORDS = ("discount", "coupon", "promo", "sale", "off", "savings")
DELIVERY_KEYWORDS = ("delivery", "shipping", "postage", "freight")
SERVICE_CHARGE_KEYWORDS = ("service fee", "processing fee", "convenience fee", "handling")


@dataclass(frozen=True)
class KeywordTables:
    """Per-category keyword tuples, matched in the order the strategies check them."""

    tax: tuple[str, ...] = TAX_KEYWORDS
    tip: tuple[str, ...] = TIP_KEYWORDS
    gratuity: tuple[str, ...] = GRATUITY_KEYWORDS
    total: tuple[str, ...] = TOTAL_KEYWORDS
    subtotal: tuple[str, ...] = SUBTOTAL_KEYWORDS
    discount: tuple[str, ...] = DISCOUNT_KEYWORDS
    delivery: tuple[str, ...] = DELIVERY_KEYWORDS
    service_charge: tuple[str, ...] = SERVICE_CHARGE_KEYWORDS


def _normalize_keywords(raw: Any) -> tuple[str, ...]:
    """Normalize a keywords value from TOML into a tuple of lower-case strings."""
    if isinstance(raw, str):
        value = raw.strip().lower()
        return (value,) if value else tuple()
    if isinstance(raw, list):
        return tuple(str(v).strip().lower() for v in raw if str(v).strip())
    return tuple()


def build_keyword_tables(configs: Sequence[Mapping[str, Any]] | None = None) -> KeywordTables:
    """Merge built-in tables with in-memory configs (later configs append after earlier ones)."""
    merged: dict[str, list[str]] = {f.name: list(getattr(KeywordTables(), f.name)) for f in fields(KeywordTables)}

    for config in configs or ():
        keywords = config.get("keywords", {})
        if not isinstance(keywords, Mapping):
            continue
        for table_name, raw in keywords.items():
            table = merged.get(str(table_name).strip())
            if table is None:
                continue
            for kw in _normalize_keywords(raw):
                if kw not in table:
                    table.append(kw)

    return KeywordTables(**{name: tuple(values) for name, values in merged.items()})


@lru_cache(maxsize=1)
def default_keyword_tables() -> KeywordTables:
    """Built-in-only tables (no file I/O)."""
    return build_keyword_tables()
