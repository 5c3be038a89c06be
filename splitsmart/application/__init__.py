"""Classification workflows."""

from splitsmart.application.classification import (
    ClassificationOutcome,
    ClassificationRequest,
    build_strategy_chain,
    classify_receipt,
    parse_receipt_payload,
    with_engine,
)

__all__ = [
    "ClassificationRequest",
    "ClassificationOutcome",
    "build_strategy_chain",
    "classify_receipt",
    "parse_receipt_payload",
    "with_engine",
]
