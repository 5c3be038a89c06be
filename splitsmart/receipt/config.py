"""Classification tuning knobs and named presets."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from typing import Any


@dataclass(frozen=True)
class ClassificationConfig:
    enable_llm_classification: bool = True
    enable_heuristic_classification: bool = True
    enable_validation: bool = True

    # Chain thresholds
    high_confidence_threshold: float = 0.8
    medium_confidence_threshold: float = 0.6

    # LLM budget
    max_llm_calls_per_receipt: int = 5

    # Validation (fractions)
    sum_validation_tolerance: float = 0.01
    severe_sum_tolerance: float = 0.10
    tax_rate_min: float = 0.0
    tax_rate_max: float = 0.20
    tip_rate_min: float = 0.10
    tip_rate_max: float = 0.30


DEFAULT_CONFIG = ClassificationConfig()

CONSERVATIVE_CONFIG = ClassificationConfig(
    enable_llm_classification=False,
    high_confidence_threshold=0.9,
    medium_confidence_threshold=0.7,
    sum_validation_tolerance=0.02,
)

AGGRESSIVE_CONFIG = ClassificationConfig(
    high_confidence_threshold=0.7,
    medium_confidence_threshold=0.5,
    max_llm_calls_per_receipt=10,
    sum_validation_tolerance=0.03,
)

# Non-LLM strategies almost never short-circuit, so the LLM sees nearly every item.
LLM_FIRST_CONFIG = ClassificationConfig(
    high_confidence_threshold=0.99,
    medium_confidence_threshold=0.95,
    max_llm_calls_per_receipt=50,
    sum_validation_tolerance=0.03,
)

PRESETS: dict[str, ClassificationConfig] = {
    "default": DEFAULT_CONFIG,
    "conservative": CONSERVATIVE_CONFIG,
    "aggressive": AGGRESSIVE_CONFIG,
    "llm_first": LLM_FIRST_CONFIG,
}


def get_preset(name: str) -> ClassificationConfig:
    """Look up a preset by name (case-insensitive, "-" accepted for "_")."""
    key = name.strip().lower().replace("-", "_")
    try:
        return PRESETS[key]
    except KeyError:
        raise ValueError(f"Unknown classification preset {name!r}; expected one of {sorted(PRESETS)}") from None


def apply_overrides(config: ClassificationConfig, overrides: Mapping[str, Any]) -> ClassificationConfig:
    """Return ``config`` with known fields replaced; unknown keys raise ValueError."""
    known = {f.name: f for f in fields(ClassificationConfig)}
    changes: dict[str, Any] = {}
    for key, value in overrides.items():
        if key not in known:
            raise ValueError(f"Unknown classification setting {key!r}")
        current = getattr(config, key)
        if isinstance(current, bool):
            if not isinstance(value, bool):
                raise ValueError(f"{key} must be a boolean")
            changes[key] = value
        elif isinstance(current, int):
            changes[key] = int(value)
        else:
            changes[key] = float(value)
    return replace(config, **changes)
