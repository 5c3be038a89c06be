"""Tests for text features, keyword tables and receipt type detection."""

from __future__ import annotations

from decimal import Decimal

import pytest

from splitsmart.domain import ReceiptItem, ReceiptType
from splitsmart.receipt.keywords import build_keyword_tables
from splitsmart.receipt.receipt_context import build_receipt_context, detect_receipt_type
from splitsmart.receipt.text_features import (
    contains_keyword,
    extract_percentage,
    extract_quantity,
    is_all_uppercase,
    is_small_price,
    starts_with_quantity,
)
from splitsmart.runtime.keyword_rules import load_keyword_tables


@pytest.mark.parametrize(
    ("text", "keyword", "expected"),
    [
        ("COFFEE", "off", False),
        ("10% OFF", "off", True),
        ("TIPS", "tip", True),
        ("TAX1", "tax", True),
        ("Taxi fare", "tax", False),
        ("Sales Tax", "sales tax", True),
        ("消費税", "税", True),
    ],
)
def test_contains_keyword(text: str, keyword: str, expected: bool) -> None:
    assert contains_keyword(text, keyword) is expected


def test_percentage_and_quantity_extraction() -> None:
    assert extract_percentage(ReceiptItem("Large Party (20.00%)", Decimal("12"))) == 20.0
    assert extract_percentage(ReceiptItem("Burger", Decimal("12"))) is None
    assert extract_quantity(ReceiptItem("3x Fries", Decimal("9"))) == 3
    assert starts_with_quantity(ReceiptItem("2 Burgers", Decimal("20")))
    assert not starts_with_quantity(ReceiptItem("Burger 2", Decimal("20")))


def test_price_and_case_features() -> None:
    assert is_small_price(ReceiptItem("Mints", Decimal("0.50")))
    assert not is_small_price(ReceiptItem("Refund", Decimal("-0.50")))
    assert is_all_uppercase(ReceiptItem("BRGR DLX 2", Decimal("10")))
    assert not is_all_uppercase(ReceiptItem("Brgr", Decimal("10")))


def test_build_keyword_tables_appends_extensions() -> None:
    tables = build_keyword_tables([{"keywords": {"tax": ["Moms", "tax"], "bogus": ["x"]}}])
    assert tables.tax[-1] == "moms"
    assert tables.tax.count("tax") == 1
    assert "bogus" not in tables.__dataclass_fields__


def test_load_keyword_tables_reads_project_file(isolated_config) -> None:
    isolated_config.mkdir(parents=True)
    (isolated_config / "keywords.toml").write_text('[keywords]\ndelivery = ["lieferung"]\n', encoding="utf-8")

    tables = load_keyword_tables()

    assert "lieferung" in tables.delivery
    assert "delivery" in tables.delivery


def test_load_keyword_tables_without_file_uses_builtins() -> None:
    assert load_keyword_tables() == build_keyword_tables()


@pytest.mark.parametrize(
    ("names", "expected"),
    [
        (["Burger", "Fries", "Soda"], ReceiptType.RESTAURANT),
        (["Milk", "Bread", "Apples"], ReceiptType.GROCERY),
        (["Widget", "Shipping"], ReceiptType.DELIVERY),
        (["Widget"], ReceiptType.UNKNOWN),
        ([f"Thing {n}" for n in range(11)], ReceiptType.GROCERY),
    ],
)
def test_detect_receipt_type(names: list[str], expected: ReceiptType) -> None:
    items = [ReceiptItem(name, Decimal("1.00")) for name in names]
    assert detect_receipt_type(items) is expected


def test_build_receipt_context_keeps_explicit_type() -> None:
    items = [ReceiptItem("Milk", Decimal("3")), ReceiptItem("Bread", Decimal("4"))]
    context = build_receipt_context(items, total=Decimal("7"), receipt_type=ReceiptType.RETAIL)

    assert context.item_count == 2
    assert context.receipt_type is ReceiptType.RETAIL
    assert context.total_amount == Decimal("7")
    assert build_receipt_context(items).receipt_type is ReceiptType.GROCERY
