"""Tests for the strategy chain decision rules."""

from __future__ import annotations

from decimal import Decimal

from splitsmart.domain import ClassificationMethod, ClassificationResult, ItemCategory, ReceiptContext, ReceiptItem
from splitsmart.receipt.config import ClassificationConfig
from splitsmart.receipt.strategies import GeometricStrategy, PatternHeuristicStrategy, PriceRelationshipStrategy
from splitsmart.receipt.strategy_chain import NO_CONFIDENT_RESULT, ChainStep, ClassificationStrategyChain

ITEM = ReceiptItem("Mystery", Decimal("5.00"))
CONTEXT = ReceiptContext(item_count=1)


class FixedStrategy:
    def __init__(self, name: str, confidence: float, category: ItemCategory = ItemCategory.FOOD, applicable=True):
        self.name = name
        self.result = ClassificationResult(category, confidence, ClassificationMethod.HEURISTIC, name)
        self.applicable = applicable
        self.calls = 0

    def can_classify(self, item, position, context) -> bool:
        return self.applicable

    def classify(self, item, position, context) -> ClassificationResult:
        self.calls += 1
        return self.result


def test_first_high_confidence_result_short_circuits() -> None:
    a = FixedStrategy("A", 0.9)
    b = FixedStrategy("B", 0.95)

    result = ClassificationStrategyChain([a, b]).classify(ITEM, 0, CONTEXT)

    assert result is a.result
    assert b.calls == 0


def test_all_zero_confidence_gives_unknown() -> None:
    chain = ClassificationStrategyChain([FixedStrategy("A", 0.0), FixedStrategy("B", 0.0)])

    result = chain.classify(ITEM, 0, CONTEXT)

    assert result.category is ItemCategory.UNKNOWN
    assert result.confidence == 0.0
    assert result.reasoning == NO_CONFIDENT_RESULT


def test_empty_chain_gives_unknown() -> None:
    result = ClassificationStrategyChain([]).classify(ITEM, 0, CONTEXT)
    assert (result.category, result.confidence) == (ItemCategory.UNKNOWN, 0.0)


def test_medium_candidate_keeps_searching_and_last_positive_result_is_accepted() -> None:
    a = FixedStrategy("A", 0.7, ItemCategory.FOOD)
    b = FixedStrategy("B", 0.5, ItemCategory.TAX)

    result = ClassificationStrategyChain([a, b]).classify(ITEM, 0, CONTEXT)

    assert b.calls == 1
    assert result is b.result


def test_best_result_wins_when_last_strategy_has_no_opinion() -> None:
    a = FixedStrategy("A", 0.7, ItemCategory.FOOD)
    b = FixedStrategy("B", 0.0, ItemCategory.UNKNOWN)

    assert ClassificationStrategyChain([a, b]).classify(ITEM, 0, CONTEXT) is a.result


def test_skipped_strategies_are_not_called() -> None:
    a = FixedStrategy("A", 0.3)
    b = FixedStrategy("B", 0.99, applicable=False)

    result = ClassificationStrategyChain([a, b]).classify(ITEM, 0, CONTEXT)

    assert b.calls == 0
    assert result is a.result


def test_thresholds_come_from_config() -> None:
    a = FixedStrategy("A", 0.75)
    b = FixedStrategy("B", 0.76)
    strict = ClassificationConfig(high_confidence_threshold=0.9, medium_confidence_threshold=0.7)
    lenient = ClassificationConfig(high_confidence_threshold=0.7, medium_confidence_threshold=0.5)

    assert ClassificationStrategyChain([a, b], strict).classify(ITEM, 0, CONTEXT) is b.result
    assert ClassificationStrategyChain([a, b], lenient).classify(ITEM, 0, CONTEXT) is a.result


def test_observer_sees_every_step() -> None:
    steps: list[ChainStep] = []
    chain = ClassificationStrategyChain(
        [FixedStrategy("A", 0.65), FixedStrategy("B", 0.9, applicable=False), FixedStrategy("C", 0.85)],
        observer=steps.append,
    )

    chain.classify(ITEM, 0, CONTEXT)

    assert [(step.strategy, step.decision) for step in steps] == [
        ("A", "candidate"),
        ("B", "skipped"),
        ("C", "accepted"),
    ]
    assert steps[1].result is None


def test_classify_all_is_deterministic_and_ordered(burger_items, burger_context) -> None:
    chain = ClassificationStrategyChain(
        [GeometricStrategy(), PatternHeuristicStrategy(), PriceRelationshipStrategy()]
    )

    sequential = chain.classify_all(burger_items, burger_context)
    parallel = chain.classify_all(burger_items, burger_context, max_workers=4)

    assert [r.category for r in sequential] == [
        ItemCategory.FOOD,
        ItemCategory.TAX,
        ItemCategory.TIP,
        ItemCategory.TOTAL,
    ]
    assert parallel == sequential
