"""Pure receipt classification logic: strategies, chain, assembly and validation."""

from splitsmart.receipt.assembly import apply_correction, assemble_receipt
from splitsmart.receipt.config import PRESETS, ClassificationConfig, get_preset
from splitsmart.receipt.formatter import classified_receipt_to_dict, format_classified_receipt
from splitsmart.receipt.keyword_fallback import build_fallback_receipt
from splitsmart.receipt.receipt_context import build_receipt_context, detect_receipt_type
from splitsmart.receipt.strategy_chain import ChainStep, ClassificationStrategyChain
from splitsmart.receipt.validator import ReceiptValidator

__all__ = [
    "ChainStep",
    "ClassificationConfig",
    "ClassificationStrategyChain",
    "PRESETS",
    "ReceiptValidator",
    "apply_correction",
    "assemble_receipt",
    "build_fallback_receipt",
    "build_receipt_context",
    "classified_receipt_to_dict",
    "detect_receipt_type",
    "format_classified_receipt",
    "get_preset",
]
