"""Engine selection and LLM settings.

Loaded once at the start of a classification run and passed explicitly to the
engine; nothing here is mutated while a run is in progress.

Example config/classification.toml:

    [engine]
    name = "strategy_chain"   # or "batch_llm"
    preset = "default"        # default, conservative, aggressive, llm_first

    [llm]
    model = "gemini-1.5-flash-latest"
    timeout_seconds = 30.0

    [overrides]
    max_llm_calls_per_receipt = 8
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from splitsmart.receipt.config import ClassificationConfig, apply_overrides, get_preset
from splitsmart.runtime.keyword_rules import load_toml
from splitsmart.runtime.paths import get_paths

ENGINE_ENV = "SPLITSMART_ENGINE"
PRESET_ENV = "SPLITSMART_PRESET"

DEFAULT_MODEL = "gemini-1.5-flash-latest"
DEFAULT_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models"
DEFAULT_TIMEOUT_SECONDS = 30.0


class ClassificationEngine(str, Enum):
    STRATEGY_CHAIN = "strategy_chain"
    BATCH_LLM = "batch_llm"

    @classmethod
    def parse(cls, value: str) -> ClassificationEngine:
        normalized = value.strip().lower().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            choices = ", ".join(engine.value for engine in cls)
            raise ValueError(f"Unknown classification engine {value!r}; expected one of {choices}") from None


@dataclass(frozen=True)
class LLMSettings:
    model: str = DEFAULT_MODEL
    endpoint: str = DEFAULT_ENDPOINT
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS


@dataclass(frozen=True)
class EngineConfig:
    """Everything a classification run needs to know about how to classify."""

    engine: ClassificationEngine = ClassificationEngine.STRATEGY_CHAIN
    preset: str = "default"
    classification: ClassificationConfig = field(default_factory=ClassificationConfig)
    llm: LLMSettings = field(default_factory=LLMSettings)


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = data.get(name, {})
    if not isinstance(value, Mapping):
        raise ValueError(f"[{name}] must be a table")
    return value


def build_engine_config(data: Mapping[str, Any], environ: Mapping[str, str] | None = None) -> EngineConfig:
    """Build an EngineConfig from parsed TOML data plus environment overrides."""
    environ = os.environ if environ is None else environ
    engine_section = _section(data, "engine")
    llm_section = _section(data, "llm")
    overrides = _section(data, "overrides")

    engine_name = environ.get(ENGINE_ENV) or str(engine_section.get("name", ClassificationEngine.STRATEGY_CHAIN.value))
    preset = environ.get(PRESET_ENV) or str(engine_section.get("preset", "default"))

    classification = apply_overrides(get_preset(preset), overrides)
    llm = LLMSettings(
        model=str(llm_section.get("model", DEFAULT_MODEL)),
        endpoint=str(llm_section.get("endpoint", DEFAULT_ENDPOINT)).rstrip("/"),
        timeout_seconds=float(llm_section.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS)),
    )
    return EngineConfig(
        engine=ClassificationEngine.parse(engine_name),
        preset=preset.strip().lower().replace("-", "_"),
        classification=classification,
        llm=llm,
    )


def load_engine_config(path: Path | None = None, environ: Mapping[str, str] | None = None) -> EngineConfig:
    """Read config/classification.toml (missing file means defaults) and the environment."""
    config_path = path if path is not None else get_paths().classification_config
    return build_engine_config(load_toml(config_path), environ)
