"""Shared pytest fixtures for splitsmart tests."""

from __future__ import annotations

from decimal import Decimal

import pytest

from splitsmart.domain import ReceiptContext, ReceiptItem, ReceiptType
from splitsmart.runtime.keyword_rules import load_keyword_tables
from splitsmart.runtime.paths import reset_paths


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config directory at a temp dir and clear env overrides."""
    config_dir = tmp_path / "config"
    monkeypatch.setenv("SPLITSMART_CONFIG_DIR", str(config_dir))
    for name in ("SPLITSMART_LLM_API_KEY", "SPLITSMART_ENGINE", "SPLITSMART_PRESET"):
        monkeypatch.delenv(name, raising=False)
    reset_paths()
    load_keyword_tables.cache_clear()
    yield config_dir
    reset_paths()
    load_keyword_tables.cache_clear()


@pytest.fixture
def burger_items() -> list[ReceiptItem]:
    return [
        ReceiptItem("2 Burgers", Decimal("20.00")),
        ReceiptItem("Tax", Decimal("1.60")),
        ReceiptItem("Tip", Decimal("4.00")),
        ReceiptItem("Total", Decimal("25.60")),
    ]


@pytest.fixture
def burger_context() -> ReceiptContext:
    return ReceiptContext(
        total_amount=Decimal("25.60"),
        subtotal_amount=Decimal("20.00"),
        item_count=4,
        receipt_type=ReceiptType.RESTAURANT,
    )
