"""Prompt construction and response parsing for LLM classification.

Both engines share the category list and the output handling here; the
per-item prompt asks for a single ``{category, confidence, reasoning}`` object,
the batch prompt for ``{classifications: [...]}`` covering every line.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Sequence
from decimal import Decimal
from typing import Any

from splitsmart.domain.classification import ClassificationMethod, ClassificationResult, ItemCategory
from splitsmart.domain.errors import ResponseParseError
from splitsmart.domain.receipt import ReceiptContext, ReceiptItem

logger = logging.getLogger(__name__)

MISSING_CLASSIFICATION_CONFIDENCE = 0.3

CATEGORY_DESCRIPTIONS: dict[ItemCategory, str] = {
    ItemCategory.FOOD: "Food and beverage items ordered by customers",
    ItemCategory.TAX: "Sales tax, VAT, GST, HST or other government taxes",
    ItemCategory.TIP: "Optional gratuity added by the customer",
    ItemCategory.GRATUITY: 'Mandatory auto-added gratuity (e.g. "Large Party 20%")',
    ItemCategory.SUBTOTAL: "Sum of the items before tax and tip",
    ItemCategory.TOTAL: "Final amount paid (subtotal + tax + tip + fees - discounts)",
    ItemCategory.DISCOUNT: 'Coupons, promotions and price reductions (usually negative or "off")',
    ItemCategory.SERVICE_CHARGE: "Mandatory non-tip fees (processing, convenience, service fee)",
    ItemCategory.DELIVERY_FEE: "Delivery or shipping charges",
    ItemCategory.UNKNOWN: "Cannot determine the category with confidence",
}

SAFETY_SETTINGS = [
    {"category": category, "threshold": "BLOCK_NONE"}
    for category in (
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?```$", re.DOTALL)


def _money(amount: Decimal | None) -> str:
    return f"${amount:.2f}" if amount is not None else "unknown"


def _category_lines() -> str:
    return "\n".join(f"- {category.value}: {text}" for category, text in CATEGORY_DESCRIPTIONS.items())


def build_item_prompt(item: ReceiptItem, position: int, context: ReceiptContext) -> str:
    """Prompt for classifying a single line with deterministic settings."""
    position_text = f"{position + 1} of {context.item_count}" if context.item_count > 0 else "unknown"
    merchant_line = f"- Merchant: {context.merchant_name}\n" if context.merchant_name else ""
    return (
        "You are a receipt line classifier. Classify the receipt line below into exactly one category.\n"
        "\n"
        "Categories:\n"
        f"{_category_lines()}\n"
        "\n"
        "Receipt context:\n"
        f"- Receipt type: {context.receipt_type.value}\n"
        f"- Total lines: {context.item_count}\n"
        f"- Expected total: {_money(context.total_amount)}\n"
        f"- Expected subtotal: {_money(context.subtotal_amount)}\n"
        f"{merchant_line}"
        "\n"
        "Line to classify:\n"
        f'- Name: "{item.name}"\n'
        f"- Price: ${item.price:.2f}\n"
        f"- Position: {position_text}\n"
        "\n"
        "Rules:\n"
        "1. TAX is government-mandated (tax, vat, gst, hst); TIP is customer gratuity (tip, pourboire, propina).\n"
        "2. TIP is optional; GRATUITY is auto-added and mandatory (auto grat, large party, service charge with %).\n"
        "3. SUBTOTAL excludes tax and tip; TOTAL includes everything.\n"
        "4. SERVICE_CHARGE is a non-tip fee; GRATUITY is a tip.\n"
        "5. Position matters: TOTAL is usually last, TAX and TIP near the end, SUBTOTAL before them.\n"
        "\n"
        "Respond ONLY with valid JSON (no markdown, no explanation):\n"
        '{"category": "<CATEGORY>", "confidence": <0.0-1.0>, "reasoning": "<brief explanation>"}\n'
    )


def build_batch_prompt(items: Sequence[ReceiptItem], context: ReceiptContext) -> str:
    """Prompt covering every line of the receipt, numbered from 1."""
    item_lines = "\n".join(f'{number}. "{item.name}" - ${item.price:.2f}' for number, item in enumerate(items, 1))
    total_line = f"- Expected total: {_money(context.total_amount)}\n" if context.total_amount is not None else ""
    return (
        "You are an expert receipt classification system. Classify every line of this receipt.\n"
        "\n"
        "RECEIPT CONTEXT:\n"
        f"- Merchant: {context.merchant_name or 'Unknown merchant'}\n"
        f"- Type: {context.receipt_type.value.lower()} receipt\n"
        f"- Total lines: {len(items)}\n"
        f"{total_line}"
        "\n"
        "LINES TO CLASSIFY:\n"
        f"{item_lines}\n"
        "\n"
        "CATEGORIES:\n"
        f"{_category_lines()}\n"
        "\n"
        "RULES:\n"
        "1. Quantity prefixes (\"1 Pad Thai\", \"2x Soda\") mark FOOD lines.\n"
        "2. A percentage in the name usually means GRATUITY or TAX, not FOOD "
        '("Large Party (20.00%)" is GRATUITY).\n'
        '3. "Service fee" is SERVICE_CHARGE and "Delivery" is DELIVERY_FEE, not FOOD.\n'
        '4. "Subtotal" or "Sub Total" is SUBTOTAL, not FOOD or TOTAL.\n'
        "5. The last line is usually TOTAL.\n"
        "6. Consider the receipt type (restaurant, grocery, retail) and neighbouring lines.\n"
        "\n"
        "OUTPUT FORMAT:\n"
        "Return ONLY a JSON object (no markdown, no explanation):\n"
        '{"classifications": [{"itemNumber": 1, "category": "FOOD", "confidence": 0.95, '
        '"reasoning": "Dish with quantity prefix"}]}\n'
        "\n"
        f"Provide a classification for ALL {len(items)} lines. Confidence is between 0.0 and 1.0: "
        "above 0.90 when certain, 0.70-0.90 when fairly sure, below 0.70 only when truly ambiguous.\n"
    )


def item_request_body(prompt: str) -> dict[str, Any]:
    return {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {
            "temperature": 0.0,
            "topK": 1,
            "topP": 1,
            "maxOutputTokens": 200,
            "responseMimeType": "application/json",
        },
        "safetySettings": SAFETY_SETTINGS,
    }


def batch_request_body(prompt: str) -> dict[str, Any]:
    return {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {
            "temperature": 0.3,
            "topK": 40,
            "topP": 0.95,
            "maxOutputTokens": 2048,
            "responseMimeType": "application/json",
        },
        "safetySettings": SAFETY_SETTINGS,
    }


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence (```json ... ```) if present."""
    stripped = text.strip()
    match = _FENCE_RE.match(stripped)
    if match:
        return match.group(1).strip()
    return stripped


def _load_json(text: str) -> Any:
    try:
        return json.loads(strip_code_fences(text))
    except json.JSONDecodeError as exc:
        raise ResponseParseError(f"Model output is not valid JSON: {exc}") from exc


def _clamp(value: Any) -> float:
    try:
        confidence = float(value)
    except (TypeError, ValueError) as exc:
        raise ResponseParseError(f"Confidence is not a number: {value!r}") from exc
    return min(max(confidence, 0.0), 1.0)


def parse_item_response(text: str) -> ClassificationResult:
    """Parse a single-line answer; the category must be one of the closed set."""
    payload = _load_json(text)
    if not isinstance(payload, dict) or not isinstance(payload.get("category"), str):
        raise ResponseParseError("Expected an object with a string 'category'")
    if "confidence" not in payload:
        raise ResponseParseError("Missing 'confidence'")

    reasoning = payload.get("reasoning")
    return ClassificationResult(
        category=ItemCategory.parse(payload["category"].strip().upper()),
        confidence=_clamp(payload["confidence"]),
        method=ClassificationMethod.LLM,
        reasoning=str(reasoning) if reasoning is not None else None,
    )


def parse_batch_response(text: str, item_count: int) -> list[ClassificationResult]:
    """Parse a whole-receipt answer into one result per line, in line order.

    Lines the model skipped get UNKNOWN at a low confidence. Unrecognized
    categories are coerced to UNKNOWN rather than failing the whole batch.
    """
    payload = _load_json(text)
    if isinstance(payload, dict):
        entries = payload.get("classifications")
    else:
        entries = payload
    if not isinstance(entries, list) or not entries:
        raise ResponseParseError("Expected a non-empty 'classifications' list")

    by_number: dict[int, ClassificationResult] = {}
    for entry in entries:
        if not isinstance(entry, dict):
            raise ResponseParseError(f"Classification entry is not an object: {entry!r}")
        try:
            number = int(entry["itemNumber"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ResponseParseError(f"Classification entry without a valid itemNumber: {entry!r}") from exc
        reasoning = entry.get("reasoning")
        by_number[number] = ClassificationResult(
            category=ItemCategory.coerce(str(entry.get("category", ""))),
            confidence=_clamp(entry.get("confidence", 0.0)),
            method=ClassificationMethod.LLM,
            reasoning=str(reasoning) if reasoning is not None else None,
        )

    results = []
    for number in range(1, item_count + 1):
        result = by_number.get(number)
        if result is None:
            logger.warning("No classification for line %d, defaulting to UNKNOWN", number)
            result = ClassificationResult(
                category=ItemCategory.UNKNOWN,
                confidence=MISSING_CLASSIFICATION_CONFIDENCE,
                method=ClassificationMethod.LLM,
                reasoning="Model returned no classification for this line",
            )
        results.append(result)
    return results
