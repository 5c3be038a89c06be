"""Tests for splitsmart logging configuration."""

from __future__ import annotations

import logging

from splitsmart.runtime.logging import get_logger, parse_log_level


def test_parse_log_level() -> None:
    assert parse_log_level("debug") == logging.DEBUG
    assert parse_log_level(" WARN ") == logging.WARNING
    assert parse_log_level("loud") == logging.INFO
    assert parse_log_level(None) == logging.INFO


def test_loggers_live_under_the_package_namespace() -> None:
    assert get_logger("splitsmart.runtime.llm_client").name == "splitsmart.runtime.llm_client"
    assert get_logger("plugins.extra").name == "splitsmart.plugins.extra"
