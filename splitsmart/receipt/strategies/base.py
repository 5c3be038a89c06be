"""Common contract for classification strategies."""

from __future__ import annotations

from typing import Protocol

from splitsmart.domain.classification import ClassificationResult
from splitsmart.domain.receipt import ReceiptContext, ReceiptItem


class ClassificationStrategy(Protocol):
    """A single classification technique with a narrow signal source.

    ``can_classify`` is a cheap precondition check. ``classify`` always returns
    a result; UNKNOWN with a low confidence means "no opinion".
    """

    def can_classify(self, item: ReceiptItem, position: int, context: ReceiptContext) -> bool: ...

    def classify(self, item: ReceiptItem, position: int, context: ReceiptContext) -> ClassificationResult: ...


def strategy_name(strategy: ClassificationStrategy) -> str:
    """Name used in logs and chain traces."""
    return getattr(strategy, "name", None) or type(strategy).__name__
