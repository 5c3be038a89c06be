"""Runtime loader for keyword table extensions."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from splitsmart.receipt.keywords import KeywordTables, build_keyword_tables
from splitsmart.runtime.paths import get_paths


def load_toml(path: Path) -> dict[str, Any]:
    """Load TOML file and return parsed dict; missing files map to empty dict."""
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    if not path.exists():
        return {}

    with open(path, "rb") as f:
        data = tomllib.load(f)
    return data if isinstance(data, dict) else {}


@lru_cache(maxsize=8)
def load_keyword_tables(rule_paths: tuple[str, ...] | None = None) -> KeywordTables:
    """Load keyword extensions from runtime-configured files into in-memory tables."""
    if rule_paths is None:
        rule_files = [get_paths().keyword_rules]
    else:
        rule_files = [Path(path) for path in rule_paths]

    return build_keyword_tables(tuple(load_toml(path) for path in rule_files))
