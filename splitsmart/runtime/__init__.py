"""Runtime infrastructure for splitsmart.

This package provides process/runtime services including:
- Logging setup via get_logger()
- Path resolution via get_paths(), ProjectPaths
- Engine configuration via load_engine_config(), EngineConfig
- API key storage via default_secret_provider()
- LLM access via LLMClient, LLMClassificationStrategy, BatchLLMClassifier

Usage:
    from splitsmart.runtime import get_logger, get_paths, load_engine_config

    logger = get_logger(__name__)
    config = load_engine_config()
    print(config.engine, get_paths().config)
"""

from splitsmart.runtime.batch_classifier import BatchLLMClassifier
from splitsmart.runtime.keyword_rules import load_keyword_tables
from splitsmart.runtime.llm_client import LLMClient
from splitsmart.runtime.llm_strategy import LLMClassificationStrategy
from splitsmart.runtime.logging import (
    DEFAULT_LOG_LEVEL,
    LOG_FORMAT,
    LOG_FORMAT_DEBUG,
    configure_logging,
    get_logger,
    parse_log_level,
    set_log_level,
)
from splitsmart.runtime.paths import ProjectPaths, get_paths, reset_paths
from splitsmart.runtime.rate_limiter import RateLimiter
from splitsmart.runtime.secrets import (
    EnvSecretProvider,
    FileSecretProvider,
    InMemorySecretProvider,
    SecretProvider,
    default_secret_provider,
)
from splitsmart.runtime.settings import (
    ClassificationEngine,
    EngineConfig,
    LLMSettings,
    build_engine_config,
    load_engine_config,
)

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "set_log_level",
    "parse_log_level",
    "DEFAULT_LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FORMAT_DEBUG",
    # Paths
    "get_paths",
    "reset_paths",
    "ProjectPaths",
    # Settings
    "ClassificationEngine",
    "EngineConfig",
    "LLMSettings",
    "build_engine_config",
    "load_engine_config",
    "load_keyword_tables",
    # Secrets
    "SecretProvider",
    "InMemorySecretProvider",
    "EnvSecretProvider",
    "FileSecretProvider",
    "default_secret_provider",
    # LLM
    "RateLimiter",
    "LLMClient",
    "LLMClassificationStrategy",
    "BatchLLMClassifier",
]
