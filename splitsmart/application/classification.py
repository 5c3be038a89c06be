"""Receipt classification workflow: pick the engine, run it, validate."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from splitsmart.domain.classification import ClassifiedReceipt
from splitsmart.domain.receipt import ReceiptContext, ReceiptItem, ReceiptType
from splitsmart.receipt.assembly import assemble_receipt
from splitsmart.receipt.keywords import KeywordTables
from splitsmart.receipt.receipt_context import build_receipt_context
from splitsmart.receipt.strategies import GeometricStrategy, PatternHeuristicStrategy, PriceRelationshipStrategy
from splitsmart.receipt.strategies.base import ClassificationStrategy
from splitsmart.receipt.strategy_chain import ChainObserver, ClassificationStrategyChain
from splitsmart.receipt.validator import ReceiptValidator
from splitsmart.runtime.batch_classifier import BatchLLMClassifier
from splitsmart.runtime.keyword_rules import load_keyword_tables
from splitsmart.runtime.llm_client import LLMClient
from splitsmart.runtime.llm_strategy import LLMClassificationStrategy
from splitsmart.runtime.logging import get_logger
from splitsmart.runtime.rate_limiter import RateLimiter
from splitsmart.runtime.secrets import SecretProvider, default_secret_provider
from splitsmart.runtime.settings import ClassificationEngine, EngineConfig, load_engine_config

logger = get_logger(__name__)


@dataclass(frozen=True)
class ClassificationRequest:
    """Inputs for one classification run."""

    items: Sequence[ReceiptItem]
    context: ReceiptContext | None = None
    config: EngineConfig | None = None
    secrets: SecretProvider | None = None
    transport: httpx.BaseTransport | None = None
    keywords: KeywordTables | None = None
    max_workers: int | None = None
    observer: ChainObserver | None = None


@dataclass(frozen=True)
class ClassificationOutcome:
    """Outcome of a classification run."""

    receipt: ClassifiedReceipt
    engine: ClassificationEngine
    context: ReceiptContext


def build_strategy_chain(
    config: EngineConfig,
    secrets: SecretProvider,
    *,
    transport: httpx.BaseTransport | None = None,
    keywords: KeywordTables | None = None,
    observer: ChainObserver | None = None,
) -> ClassificationStrategyChain:
    """Geometric, pattern, price-relationship, then LLM; a fresh call budget per chain."""
    classification = config.classification
    keywords = keywords or load_keyword_tables()

    strategies: list[ClassificationStrategy] = []
    if classification.enable_heuristic_classification:
        strategies.extend(
            [
                GeometricStrategy(keywords),
                PatternHeuristicStrategy(keywords),
                PriceRelationshipStrategy(keywords),
            ]
        )
    strategies.append(
        LLMClassificationStrategy(
            client=LLMClient(config.llm, transport=transport),
            secrets=secrets,
            rate_limiter=RateLimiter(classification.max_llm_calls_per_receipt),
            enabled=classification.enable_llm_classification,
        )
    )
    return ClassificationStrategyChain(strategies, classification, observer=observer)


def classify_receipt(request: ClassificationRequest) -> ClassificationOutcome:
    """Run classification: load config once -> build context -> run engine -> validate."""
    config = request.config or load_engine_config()
    secrets = request.secrets or default_secret_provider()
    items = list(request.items)
    context = request.context or build_receipt_context(items)

    logger.info(
        "Classifying %d line(s) with %s engine (preset %s, %s receipt)",
        len(items),
        config.engine.value,
        config.preset,
        context.receipt_type.value.lower(),
    )

    if config.engine is ClassificationEngine.BATCH_LLM:
        classifier = BatchLLMClassifier(
            client=LLMClient(config.llm, transport=request.transport),
            secrets=secrets,
            config=config.classification,
        )
        receipt = classifier.classify_receipt(items, context)
        return ClassificationOutcome(receipt=receipt, engine=config.engine, context=context)

    chain = build_strategy_chain(
        config,
        secrets,
        transport=request.transport,
        keywords=request.keywords,
        observer=request.observer,
    )
    results = chain.classify_all(items, context, max_workers=request.max_workers)
    receipt = assemble_receipt(items, results)
    if config.classification.enable_validation:
        receipt = ReceiptValidator(config.classification).validate(receipt, context)

    logger.info(
        "Classified %d line(s): confidence %.0f%%, status %s, %d issue(s)",
        len(items),
        receipt.total_confidence * 100,
        receipt.validation_status.value,
        len(receipt.validation_issues),
    )
    return ClassificationOutcome(receipt=receipt, engine=config.engine, context=context)


def _decimal(value: Any, field_name: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"{field_name} is not a number: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"{field_name} is not a finite amount: {value!r}")
    return amount


def _optional_decimal(payload: Mapping[str, Any], key: str) -> Decimal | None:
    value = payload.get(key)
    return None if value is None else _decimal(value, key)


def parse_receipt_payload(payload: Mapping[str, Any]) -> tuple[list[ReceiptItem], ReceiptContext]:
    """Turn ``{"items": [{"name", "price"}], "context": {...}}`` into classification inputs.

    Context keys (all optional): total, subtotal, receipt_type, merchant_name,
    language, date (ISO). A missing receipt_type is detected from the items.
    """
    raw_items = payload.get("items")
    if not isinstance(raw_items, list):
        raise ValueError("'items' must be a list of {name, price} objects")

    items = []
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, Mapping) or "name" not in raw or "price" not in raw:
            raise ValueError(f"Item {index + 1} must have 'name' and 'price'")
        items.append(ReceiptItem(name=str(raw["name"]), price=_decimal(raw["price"], f"items[{index}].price")))

    raw_context = payload.get("context") or {}
    if not isinstance(raw_context, Mapping):
        raise ValueError("'context' must be an object")

    receipt_type = None
    if raw_context.get("receipt_type"):
        try:
            receipt_type = ReceiptType(str(raw_context["receipt_type"]).strip().upper())
        except ValueError:
            raise ValueError(f"Unknown receipt_type {raw_context['receipt_type']!r}") from None

    receipt_date = None
    if raw_context.get("date"):
        receipt_date = date.fromisoformat(str(raw_context["date"]))

    context = build_receipt_context(
        items,
        total=_optional_decimal(raw_context, "total"),
        subtotal=_optional_decimal(raw_context, "subtotal"),
        receipt_type=receipt_type,
        merchant_name=raw_context.get("merchant_name"),
        detected_language=raw_context.get("language"),
        receipt_date=receipt_date,
    )
    return items, context


def with_engine(config: EngineConfig, engine: str | None) -> EngineConfig:
    """Override the configured engine for a single run."""
    if not engine:
        return config
    return replace(config, engine=ClassificationEngine.parse(engine))
