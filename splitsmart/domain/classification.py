"""Classification results and the classified-receipt aggregate."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Literal

from splitsmart.domain.errors import InvalidCategoryError
from splitsmart.domain.receipt import ReceiptItem

HIGH_CONFIDENCE = 0.8
REVIEW_THRESHOLD = 0.7

ConfidenceLevel = Literal["high", "medium", "low"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class ItemCategory(str, Enum):
    """Semantic category of a receipt line."""

    FOOD = "FOOD"
    TAX = "TAX"
    TIP = "TIP"
    GRATUITY = "GRATUITY"  # auto-added, mandatory
    SUBTOTAL = "SUBTOTAL"
    TOTAL = "TOTAL"
    DISCOUNT = "DISCOUNT"
    SERVICE_CHARGE = "SERVICE_CHARGE"
    DELIVERY_FEE = "DELIVERY_FEE"
    UNKNOWN = "UNKNOWN"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def icon(self) -> str:
        return _ICONS[self]

    @property
    def is_additional_charge(self) -> bool:
        """Charges distributed proportionally on top of food items."""
        return self in (
            ItemCategory.TAX,
            ItemCategory.TIP,
            ItemCategory.GRATUITY,
            ItemCategory.SERVICE_CHARGE,
            ItemCategory.DELIVERY_FEE,
        )

    @property
    def is_summary_line(self) -> bool:
        return self in (ItemCategory.SUBTOTAL, ItemCategory.TOTAL)

    @classmethod
    def parse(cls, value: str) -> ItemCategory:
        """Strict lookup by wire value; raises InvalidCategoryError otherwise."""
        try:
            return cls(value)
        except ValueError:
            raise InvalidCategoryError(value) from None

    @classmethod
    def coerce(cls, value: str) -> ItemCategory:
        """Lenient lookup: normalizes case and separators, unknown strings map to UNKNOWN."""
        normalized = value.strip().upper().replace("-", "_").replace(" ", "_")
        try:
            return cls(normalized)
        except ValueError:
            return cls.UNKNOWN


_DISPLAY_NAMES: dict[ItemCategory, str] = {
    ItemCategory.FOOD: "Food Item",
    ItemCategory.TAX: "Tax",
    ItemCategory.TIP: "Tip",
    ItemCategory.GRATUITY: "Auto-Gratuity",
    ItemCategory.SUBTOTAL: "Subtotal",
    ItemCategory.TOTAL: "Total",
    ItemCategory.DISCOUNT: "Discount",
    ItemCategory.SERVICE_CHARGE: "Service Charge",
    ItemCategory.DELIVERY_FEE: "Delivery Fee",
    ItemCategory.UNKNOWN: "Unknown",
}

_ICONS: dict[ItemCategory, str] = {
    ItemCategory.FOOD: "fork.knife",
    ItemCategory.TAX: "percent",
    ItemCategory.TIP: "dollarsign.circle",
    ItemCategory.GRATUITY: "dollarsign.circle.fill",
    ItemCategory.SUBTOTAL: "sum",
    ItemCategory.TOTAL: "checkmark.circle.fill",
    ItemCategory.DISCOUNT: "tag.fill",
    ItemCategory.SERVICE_CHARGE: "briefcase",
    ItemCategory.DELIVERY_FEE: "shippingbox",
    ItemCategory.UNKNOWN: "questionmark.circle",
}


class ClassificationMethod(str, Enum):
    """Provenance of a classification; always set by the producing strategy."""

    GEOMETRIC = "GEOMETRIC"
    HEURISTIC = "HEURISTIC"
    PRICE_RELATIONSHIP = "PRICE_RELATIONSHIP"
    LLM = "LLM"
    MANUAL = "MANUAL"


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of a single strategy invocation for one item."""

    category: ItemCategory
    confidence: float  # 0.0 to 1.0
    method: ClassificationMethod
    reasoning: str | None = None

    @property
    def is_high_confidence(self) -> bool:
        return self.confidence >= HIGH_CONFIDENCE

    @property
    def needs_review(self) -> bool:
        return self.confidence < REVIEW_THRESHOLD


@dataclass(frozen=True)
class ClassifiedReceiptItem:
    """A receipt line with its category and classification metadata."""

    name: str
    price: Decimal
    category: ItemCategory
    classification_confidence: float
    classification_method: ClassificationMethod
    original_text: str
    position: int  # 0-based line index in the receipt
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)
    corrected_by: str | None = None
    corrected_at: datetime | None = None
    reasoning: str | None = None

    @classmethod
    def from_result(cls, item: ReceiptItem, position: int, result: ClassificationResult) -> ClassifiedReceiptItem:
        return cls(
            name=item.name,
            price=item.price,
            category=result.category,
            classification_confidence=result.confidence,
            classification_method=result.method,
            original_text=item.name,
            position=position,
            reasoning=result.reasoning,
        )

    def corrected(self, category: ItemCategory, by: str) -> ClassifiedReceiptItem:
        """Return a manually corrected copy; identity is preserved."""
        now = _now()
        return replace(
            self,
            category=category,
            classification_confidence=1.0,
            classification_method=ClassificationMethod.MANUAL,
            updated_at=now,
            corrected_by=by,
            corrected_at=now,
            reasoning=f"Manually corrected by {by}",
        )

    @property
    def needs_review(self) -> bool:
        if self.classification_method is ClassificationMethod.MANUAL:
            return False
        return self.classification_confidence < REVIEW_THRESHOLD

    @property
    def confidence_level(self) -> ConfidenceLevel:
        if self.classification_method is ClassificationMethod.MANUAL:
            return "high"
        if self.classification_confidence >= 0.9:
            return "high"
        if self.classification_confidence >= 0.7:
            return "medium"
        return "low"

    def __str__(self) -> str:
        return (
            f"{self.name} ${self.price:.2f} -> {self.category.value} "
            f"({self.classification_confidence:.2f}, {self.classification_method.value}, pos {self.position})"
        )


class ValidationStatus(str, Enum):
    VALID = "VALID"
    WARNING = "WARNING"  # minor issues, likely correct
    INVALID = "INVALID"  # major issues
    NEEDS_REVIEW = "NEEDS_REVIEW"  # ambiguous, user should verify

    @property
    def severity_rank(self) -> int:
        return _STATUS_RANK[self]


_STATUS_RANK: dict[ValidationStatus, int] = {
    ValidationStatus.VALID: 0,
    ValidationStatus.NEEDS_REVIEW: 1,
    ValidationStatus.WARNING: 2,
    ValidationStatus.INVALID: 3,
}


def most_severe(*statuses: ValidationStatus) -> ValidationStatus:
    """Pick the most severe status (INVALID > WARNING > NEEDS_REVIEW > VALID)."""
    return max(statuses, key=lambda status: status.severity_rank, default=ValidationStatus.VALID)


class IssueType(str, Enum):
    SUM_MISMATCH = "SUM_MISMATCH"
    SUBTOTAL_MISMATCH = "SUBTOTAL_MISMATCH"
    INVALID_TAX_RATE = "INVALID_TAX_RATE"
    INVALID_TIP_RATE = "INVALID_TIP_RATE"
    DUPLICATE_CATEGORY = "DUPLICATE_CATEGORY"
    MISSING_TOTAL = "MISSING_TOTAL"
    MISSING_FOOD = "MISSING_FOOD"
    NEGATIVE_PRICE = "NEGATIVE_PRICE"
    OUTLIER_PRICE = "OUTLIER_PRICE"
    LOW_CONFIDENCE = "LOW_CONFIDENCE"
    FALLBACK_USED = "FALLBACK_USED"

    @property
    def display_message(self) -> str:
        return _ISSUE_MESSAGES[self]


_ISSUE_MESSAGES: dict[IssueType, str] = {
    IssueType.SUM_MISMATCH: "Items + charges don't match total",
    IssueType.SUBTOTAL_MISMATCH: "Subtotal doesn't match item sum",
    IssueType.INVALID_TAX_RATE: "Tax rate seems unusual",
    IssueType.INVALID_TIP_RATE: "Tip amount seems unusual",
    IssueType.DUPLICATE_CATEGORY: "Multiple items with same category",
    IssueType.MISSING_TOTAL: "No total found",
    IssueType.MISSING_FOOD: "No food items found",
    IssueType.NEGATIVE_PRICE: "Unexpected negative price",
    IssueType.OUTLIER_PRICE: "Price seems unusually high/low",
    IssueType.LOW_CONFIDENCE: "Some items need review",
    IssueType.FALLBACK_USED: "Automatic classification unavailable, basic fallback used",
}


@dataclass(frozen=True)
class ValidationIssue:
    type: IssueType
    message: str
    severity: ValidationStatus
    affected_item_ids: tuple[str, ...] = ()

    @property
    def display_message(self) -> str:
        return self.type.display_message


@dataclass(frozen=True)
class ClassifiedReceipt:
    """Aggregate root: every classified item sits in exactly one partition."""

    food_items: tuple[ClassifiedReceiptItem, ...] = ()
    tax: ClassifiedReceiptItem | None = None
    tip: ClassifiedReceiptItem | None = None
    gratuity: ClassifiedReceiptItem | None = None
    subtotal: ClassifiedReceiptItem | None = None
    total: ClassifiedReceiptItem | None = None
    discounts: tuple[ClassifiedReceiptItem, ...] = ()
    other_charges: tuple[ClassifiedReceiptItem, ...] = ()  # service charges, delivery fees
    unknown_items: tuple[ClassifiedReceiptItem, ...] = ()
    total_confidence: float = 0.0  # mean of per-item confidences
    validation_status: ValidationStatus = ValidationStatus.NEEDS_REVIEW
    validation_issues: tuple[ValidationIssue, ...] = ()
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    @property
    def all_items(self) -> list[ClassifiedReceiptItem]:
        items = [*self.food_items, *self.discounts, *self.other_charges, *self.unknown_items]
        for single in (self.tax, self.tip, self.gratuity, self.subtotal, self.total):
            if single is not None:
                items.append(single)
        return sorted(items, key=lambda item: item.position)

    @property
    def items_needing_review(self) -> list[ClassifiedReceiptItem]:
        return [item for item in self.all_items if item.needs_review]

    @property
    def requires_user_review(self) -> bool:
        return (
            self.validation_status in (ValidationStatus.INVALID, ValidationStatus.NEEDS_REVIEW)
            or bool(self.items_needing_review)
        )

    @property
    def status_color(self) -> str:
        return {
            ValidationStatus.VALID: "green",
            ValidationStatus.WARNING: "yellow",
            ValidationStatus.INVALID: "red",
            ValidationStatus.NEEDS_REVIEW: "orange",
        }[self.validation_status]

    def food_items_sum(self) -> Decimal:
        return sum((item.price for item in self.food_items), Decimal("0"))

    def total_charges(self) -> Decimal:
        """Tax + tip + gratuity + service charges + delivery fees."""
        charges = sum((item.price for item in self.other_charges), Decimal("0"))
        for single in (self.tax, self.tip, self.gratuity):
            if single is not None:
                charges += single.price
        return charges

    def total_discounts(self) -> Decimal:
        # Magnitudes: discount lines are usually printed as negative prices.
        return sum((abs(item.price) for item in self.discounts), Decimal("0"))

    def expected_total(self) -> Decimal:
        return self.food_items_sum() + self.total_charges() - self.total_discounts()

    def sum_matches_total(self, tolerance: float = 0.01) -> bool:
        """Whether food + charges - discounts is within ``tolerance`` (fraction) of the total line."""
        if self.total is None or self.total.price == 0:
            return False
        difference = abs(self.total.price - self.expected_total())
        return difference / abs(self.total.price) <= Decimal(str(tolerance))

    def __str__(self) -> str:
        def _money(item: ClassifiedReceiptItem | None) -> str:
            return f"${item.price:.2f}" if item is not None else "none"

        return (
            f"ClassifiedReceipt(food={len(self.food_items)}, tax={_money(self.tax)}, tip={_money(self.tip)}, "
            f"gratuity={_money(self.gratuity)}, total={_money(self.total)}, "
            f"confidence={self.total_confidence:.0%}, status={self.validation_status.value}, "
            f"issues={len(self.validation_issues)})"
        )
