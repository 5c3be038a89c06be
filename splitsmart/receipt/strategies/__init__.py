"""Classification strategies, tried in order by the strategy chain."""

from splitsmart.receipt.strategies.base import ClassificationStrategy, strategy_name
from splitsmart.receipt.strategies.geometric import GeometricStrategy
from splitsmart.receipt.strategies.pattern_heuristic import PatternHeuristicStrategy
from splitsmart.receipt.strategies.price_relationship import PriceRelationshipStrategy

__all__ = [
    "ClassificationStrategy",
    "strategy_name",
    "GeometricStrategy",
    "PatternHeuristicStrategy",
    "PriceRelationshipStrategy",
]
