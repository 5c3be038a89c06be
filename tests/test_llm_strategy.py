"""Tests for the per-item LLM strategy."""

from __future__ import annotations

from decimal import Decimal

import httpx

from splitsmart.domain import ClassificationMethod, ItemCategory, ReceiptContext, ReceiptItem
from splitsmart.runtime.llm_client import LLMClient
from splitsmart.runtime.llm_strategy import LLMClassificationStrategy
from splitsmart.runtime.rate_limiter import RateLimiter
from splitsmart.runtime.secrets import InMemorySecretProvider

ITEM = ReceiptItem("Mystery Line", Decimal("3.00"))
CONTEXT = ReceiptContext(total_amount=Decimal("30.00"), item_count=5)


def answering(text: str, calls: list | None = None) -> LLMClient:
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})

    return LLMClient(transport=httpx.MockTransport(handler))


def test_classify_returns_model_answer_and_spends_budget() -> None:
    limiter = RateLimiter(5)
    strategy = LLMClassificationStrategy(
        answering('{"category": "SERVICE_CHARGE", "confidence": 0.8, "reasoning": "fee"}'),
        InMemorySecretProvider("key"),
        limiter,
    )

    assert strategy.can_classify(ITEM, 2, CONTEXT)
    result = strategy.classify(ITEM, 2, CONTEXT)

    assert result.category is ItemCategory.SERVICE_CHARGE
    assert result.confidence == 0.8
    assert result.method is ClassificationMethod.LLM
    assert limiter.calls == 1


def test_failures_become_unknown_with_zero_confidence() -> None:
    strategy = LLMClassificationStrategy(
        answering('{"category": "SNACK", "confidence": 0.9}'),
        InMemorySecretProvider("key"),
        RateLimiter(5),
    )

    result = strategy.classify(ITEM, 2, CONTEXT)

    assert result.category is ItemCategory.UNKNOWN
    assert result.confidence == 0.0
    assert result.method is ClassificationMethod.LLM
    assert result.reasoning.startswith("LLM classification failed")


def test_exhausted_budget_fails_without_calling_service() -> None:
    calls: list = []
    strategy = LLMClassificationStrategy(
        answering('{"category": "FOOD", "confidence": 0.9}', calls),
        InMemorySecretProvider("key"),
        RateLimiter(1),
    )

    first = strategy.classify(ITEM, 0, CONTEXT)
    second = strategy.classify(ITEM, 1, CONTEXT)

    assert first.category is ItemCategory.FOOD
    assert second.confidence == 0.0
    assert len(calls) == 1


def test_can_classify_requires_key_budget_and_enabled() -> None:
    client = answering("{}")

    assert not LLMClassificationStrategy(client, InMemorySecretProvider(), RateLimiter(5)).can_classify(
        ITEM, 0, CONTEXT
    )
    assert not LLMClassificationStrategy(client, InMemorySecretProvider("key"), RateLimiter(0)).can_classify(
        ITEM, 0, CONTEXT
    )
    assert not LLMClassificationStrategy(
        client, InMemorySecretProvider("key"), RateLimiter(5), enabled=False
    ).can_classify(ITEM, 0, CONTEXT)
