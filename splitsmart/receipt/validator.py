"""Cross-checks on an assembled receipt.

The validator only annotates: it adds ValidationIssues and raises the
receipt's status, it never moves or re-categorizes items.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import replace
from decimal import Decimal

from splitsmart.domain.classification import (
    ClassifiedReceipt,
    ClassifiedReceiptItem,
    IssueType,
    ItemCategory,
    ValidationIssue,
    ValidationStatus,
    most_severe,
)
from splitsmart.domain.receipt import ReceiptContext, ReceiptType
from splitsmart.receipt.assembly import SINGLETON_FIELDS, low_confidence_issue
from splitsmart.receipt.config import DEFAULT_CONFIG, ClassificationConfig

SUBTOTAL_TOLERANCE = Decimal("0.02")


def _issue(
    issue_type: IssueType,
    message: str,
    severity: ValidationStatus,
    items: list[ClassifiedReceiptItem] | tuple[ClassifiedReceiptItem, ...] = (),
) -> ValidationIssue:
    return ValidationIssue(
        type=issue_type,
        message=message,
        severity=severity,
        affected_item_ids=tuple(item.id for item in items),
    )


class ReceiptValidator:
    def __init__(self, config: ClassificationConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def validate(self, receipt: ClassifiedReceipt, context: ReceiptContext | None = None) -> ClassifiedReceipt:
        """Return ``receipt`` with issues appended and status raised to the most severe one."""
        context = context or ReceiptContext()
        issues: list[ValidationIssue] = []
        issues.extend(self._check_total(receipt))
        issues.extend(self._check_subtotal(receipt))
        issues.extend(self._check_tax_rate(receipt, context))
        issues.extend(self._check_tip_rate(receipt, context))
        issues.extend(self._check_duplicates(receipt))
        issues.extend(self._check_prices(receipt))
        issues.extend(self._check_food(receipt))
        issues.extend(self._check_confidence(receipt))

        status = most_severe(receipt.validation_status, *(issue.severity for issue in issues))
        return replace(
            receipt,
            validation_issues=receipt.validation_issues + tuple(issues),
            validation_status=status,
        )

    def _rate_base(self, receipt: ClassifiedReceipt, context: ReceiptContext) -> Decimal | None:
        if receipt.subtotal is not None and receipt.subtotal.price > 0:
            return receipt.subtotal.price
        if context.subtotal_amount is not None and context.subtotal_amount > 0:
            return context.subtotal_amount
        food_sum = receipt.food_items_sum()
        return food_sum if food_sum > 0 else None

    def _check_total(self, receipt: ClassifiedReceipt) -> list[ValidationIssue]:
        if receipt.total is None:
            return [_issue(IssueType.MISSING_TOTAL, "No total line was identified", ValidationStatus.WARNING)]
        if receipt.sum_matches_total(self.config.sum_validation_tolerance):
            return []

        expected = receipt.expected_total()
        total = receipt.total.price
        if total == 0:
            difference = None
            severity = ValidationStatus.INVALID
        else:
            difference = abs(total - expected) / abs(total)
            severe = difference > Decimal(str(self.config.severe_sum_tolerance))
            severity = ValidationStatus.INVALID if severe else ValidationStatus.WARNING
        detail = f" ({difference:.1%} off)" if difference is not None else ""
        return [
            _issue(
                IssueType.SUM_MISMATCH,
                f"Items and charges add up to ${expected:.2f} but total is ${total:.2f}{detail}",
                severity,
                (receipt.total,),
            )
        ]

    def _check_subtotal(self, receipt: ClassifiedReceipt) -> list[ValidationIssue]:
        if receipt.subtotal is None or not receipt.food_items:
            return []
        food_sum = receipt.food_items_sum()
        subtotal = receipt.subtotal.price
        # Some receipts print the subtotal after discounts.
        candidates = (food_sum, food_sum - receipt.total_discounts())
        if any(abs(subtotal - candidate) <= SUBTOTAL_TOLERANCE for candidate in candidates):
            return []
        return [
            _issue(
                IssueType.SUBTOTAL_MISMATCH,
                f"Subtotal ${subtotal:.2f} does not match item sum ${food_sum:.2f}",
                ValidationStatus.WARNING,
                (receipt.subtotal,),
            )
        ]

    def _check_tax_rate(self, receipt: ClassifiedReceipt, context: ReceiptContext) -> list[ValidationIssue]:
        base = self._rate_base(receipt, context)
        if receipt.tax is None or base is None:
            return []
        rate = float(receipt.tax.price / base)
        if context.receipt_type is ReceiptType.UNKNOWN:
            low, high = self.config.tax_rate_min, self.config.tax_rate_max
        else:
            low, high = context.expected_tax_range
        if low <= rate <= high:
            return []
        return [
            _issue(
                IssueType.INVALID_TAX_RATE,
                f"Tax rate {rate:.1%} outside expected {low:.0%}-{high:.0%} "
                f"for {context.receipt_type.value.lower()} receipts",
                ValidationStatus.WARNING,
                (receipt.tax,),
            )
        ]

    def _check_tip_rate(self, receipt: ClassifiedReceipt, context: ReceiptContext) -> list[ValidationIssue]:
        base = self._rate_base(receipt, context)
        if receipt.tip is None or base is None:
            return []
        rate = float(receipt.tip.price / base)
        if self.config.tip_rate_min <= rate <= self.config.tip_rate_max:
            return []
        return [
            _issue(
                IssueType.INVALID_TIP_RATE,
                f"Tip rate {rate:.1%} outside expected "
                f"{self.config.tip_rate_min:.0%}-{self.config.tip_rate_max:.0%}",
                ValidationStatus.WARNING,
                (receipt.tip,),
            )
        ]

    def _check_duplicates(self, receipt: ClassifiedReceipt) -> list[ValidationIssue]:
        extras: dict[ItemCategory, list[ClassifiedReceiptItem]] = defaultdict(list)
        for item in receipt.unknown_items:
            if item.category in SINGLETON_FIELDS:
                extras[item.category].append(item)

        issues = []
        for category, items in extras.items():
            holder = getattr(receipt, SINGLETON_FIELDS[category])
            affected = ([holder] if holder is not None else []) + items
            issues.append(
                _issue(
                    IssueType.DUPLICATE_CATEGORY,
                    f"{len(affected)} lines classified as {category.display_name}",
                    ValidationStatus.WARNING,
                    affected,
                )
            )
        return issues

    def _check_prices(self, receipt: ClassifiedReceipt) -> list[ValidationIssue]:
        issues = []
        negative = [
            item for item in receipt.all_items if item.price < 0 and item.category is not ItemCategory.DISCOUNT
        ]
        if negative:
            issues.append(
                _issue(
                    IssueType.NEGATIVE_PRICE,
                    f"{len(negative)} non-discount line(s) with a negative price",
                    ValidationStatus.WARNING,
                    negative,
                )
            )

        if receipt.total is not None and receipt.total.price > 0:
            outliers = [item for item in receipt.food_items if item.price > receipt.total.price]
            if outliers:
                issues.append(
                    _issue(
                        IssueType.OUTLIER_PRICE,
                        f"{len(outliers)} item(s) priced above the receipt total",
                        ValidationStatus.WARNING,
                        outliers,
                    )
                )
        return issues

    def _check_food(self, receipt: ClassifiedReceipt) -> list[ValidationIssue]:
        if receipt.food_items:
            return []
        return [_issue(IssueType.MISSING_FOOD, "No food items were identified", ValidationStatus.INVALID)]

    def _check_confidence(self, receipt: ClassifiedReceipt) -> list[ValidationIssue]:
        issue = low_confidence_issue(receipt.all_items)
        return [issue] if issue is not None else []
