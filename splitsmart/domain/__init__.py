"""Core domain models for receipt classification.

This module provides the value types shared by every layer:
- ReceiptItem, ReceiptContext, ReceiptType: classification inputs
- ItemCategory, ClassificationResult, ClassifiedReceipt: classification outputs
- ClassificationError and subclasses: failure taxonomy

Usage:
    from splitsmart.domain import ReceiptItem, ReceiptContext, ClassifiedReceipt
"""

from splitsmart.domain.classification import (
    ClassificationMethod,
    ClassificationResult,
    ClassifiedReceipt,
    ClassifiedReceiptItem,
    IssueType,
    ItemCategory,
    ValidationIssue,
    ValidationStatus,
    most_severe,
)
from splitsmart.domain.errors import (
    ClassificationError,
    InvalidCategoryError,
    InvalidResponseError,
    InvalidURLError,
    LLMHTTPError,
    LLMTimeoutError,
    RateLimitExceededError,
    ResponseParseError,
    SecretStoreError,
    UnauthorizedError,
)
from splitsmart.domain.receipt import ReceiptContext, ReceiptItem, ReceiptType

__all__ = [
    "ReceiptItem",
    "ReceiptContext",
    "ReceiptType",
    "ItemCategory",
    "ClassificationMethod",
    "ClassificationResult",
    "ClassifiedReceiptItem",
    "ClassifiedReceipt",
    "IssueType",
    "ValidationIssue",
    "ValidationStatus",
    "most_severe",
    "ClassificationError",
    "InvalidURLError",
    "InvalidResponseError",
    "RateLimitExceededError",
    "UnauthorizedError",
    "LLMHTTPError",
    "ResponseParseError",
    "InvalidCategoryError",
    "LLMTimeoutError",
    "SecretStoreError",
]
