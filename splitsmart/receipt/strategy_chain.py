"""Chain of responsibility over classification strategies.

Strategies are tried in order; the first sufficiently confident result wins.
Tracing goes to the module logger and to an optional observer callback, and
never affects the decision.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Literal

from splitsmart.domain.classification import ClassificationMethod, ClassificationResult, ItemCategory
from splitsmart.domain.receipt import ReceiptContext, ReceiptItem
from splitsmart.receipt.config import DEFAULT_CONFIG, ClassificationConfig
from splitsmart.receipt.strategies.base import ClassificationStrategy, strategy_name

logger = logging.getLogger(__name__)

NO_CONFIDENT_RESULT = "No strategy produced confident classification"

ChainDecision = Literal["skipped", "accepted", "candidate", "continue"]


@dataclass(frozen=True)
class ChainStep:
    """One strategy invocation (or skip) while classifying an item."""

    item: ReceiptItem
    position: int
    index: int
    strategy: str
    decision: ChainDecision
    result: ClassificationResult | None = None


ChainObserver = Callable[[ChainStep], None]


class ClassificationStrategyChain:
    def __init__(
        self,
        strategies: Sequence[ClassificationStrategy],
        config: ClassificationConfig = DEFAULT_CONFIG,
        observer: ChainObserver | None = None,
    ) -> None:
        self.strategies = list(strategies)
        self.config = config
        self.observer = observer

    def _emit(self, step: ChainStep) -> None:
        if step.result is not None:
            logger.debug(
                "[%d] %s -> %s (%.2f) %s: %s",
                step.position,
                step.strategy,
                step.result.category.value,
                step.result.confidence,
                step.decision,
                step.item.name,
            )
        else:
            logger.debug("[%d] %s %s: %s", step.position, step.strategy, step.decision, step.item.name)
        if self.observer is not None:
            self.observer(step)

    def classify(self, item: ReceiptItem, position: int, context: ReceiptContext) -> ClassificationResult:
        """Classify one item; never raises for "no answer", returns UNKNOWN/0.0 instead."""
        high = self.config.high_confidence_threshold
        medium = self.config.medium_confidence_threshold
        best: ClassificationResult | None = None
        last_index = len(self.strategies) - 1

        for index, strategy in enumerate(self.strategies):
            name = strategy_name(strategy)
            if not strategy.can_classify(item, position, context):
                self._emit(ChainStep(item, position, index, name, "skipped"))
                continue

            result = strategy.classify(item, position, context)
            if best is None or result.confidence > best.confidence:
                best = result

            is_last = index == last_index
            if result.confidence >= high:
                self._emit(ChainStep(item, position, index, name, "accepted", result))
                return result
            if result.confidence >= medium and not is_last:
                self._emit(ChainStep(item, position, index, name, "candidate", result))
                continue
            if is_last and result.confidence > 0:
                self._emit(ChainStep(item, position, index, name, "accepted", result))
                return result
            self._emit(ChainStep(item, position, index, name, "continue", result))

        if best is not None and best.confidence > 0:
            return best

        return ClassificationResult(
            category=ItemCategory.UNKNOWN,
            confidence=0.0,
            method=ClassificationMethod.HEURISTIC,
            reasoning=NO_CONFIDENT_RESULT,
        )

    def classify_all(
        self,
        items: Sequence[ReceiptItem],
        context: ReceiptContext,
        max_workers: int | None = None,
    ) -> list[ClassificationResult]:
        """Classify every item, preserving input order.

        With ``max_workers`` > 1 items are classified on a thread pool; shared
        strategy state (the LLM call budget) must be safe for concurrent use.
        """
        if not max_workers or max_workers <= 1 or len(items) <= 1:
            return [self.classify(item, position, context) for position, item in enumerate(items)]

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [
                executor.submit(self.classify, item, position, context) for position, item in enumerate(items)
            ]
            return [future.result() for future in futures]
