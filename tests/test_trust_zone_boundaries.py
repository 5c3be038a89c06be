"""Trust-zone dependency rules between splitsmart packages.

- Pure (domain, receipt): value types and classification logic, no I/O.
- Privileged (runtime): network, secrets, filesystem and environment access.
- Orchestrator (application, cli): wires the other zones together.
"""

from __future__ import annotations

import ast
import importlib.util
from pathlib import Path

_ROOT = Path(__file__).resolve().parents[1] / "splitsmart"
_ZONES: dict[tuple[str, ...], str] = {
    ("domain",): "Pure",
    ("receipt",): "Pure",
    ("runtime",): "Privileged",
    ("application",): "Orchestrator",
    ("cli",): "Orchestrator",
}
_ALLOWED_TARGET_ZONES = {
    "Privileged": {"Privileged", "Pure"},
    "Orchestrator": {"Privileged", "Orchestrator", "Pure"},
    "Pure": {"Pure"},
}
_IO_LIBRARIES = {"httpx", "fastapi", "starlette", "uvicorn", "os", "getpass", "tomllib", "tomli"}


def _zone_for_parts(parts: tuple[str, ...]) -> str | None:
    for prefix, zone in _ZONES.items():
        if parts[: len(prefix)] == prefix:
            return zone
    return None


def _module_name_for_file(path: Path) -> str:
    parts = list(path.relative_to(_ROOT).with_suffix("").parts)
    if parts and parts[-1] == "__init__":
        parts = parts[:-1]
    return ".".join(["splitsmart", *parts])


def _imported_modules(path: Path) -> list[str]:
    module_name = _module_name_for_file(path)
    current_package = module_name if path.name == "__init__.py" else module_name.rsplit(".", 1)[0]
    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))

    imports: list[str] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            imports.extend(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom):
            if node.level == 0:
                if node.module:
                    imports.append(node.module)
                continue
            rel_name = "." * node.level + (node.module or "")
            imports.append(importlib.util.resolve_name(rel_name, current_package))
    return imports


def _zoned_files() -> list[tuple[Path, str]]:
    files = []
    for path in sorted(_ROOT.rglob("*.py")):
        zone = _zone_for_parts(path.relative_to(_ROOT).parts)
        if zone is not None:
            files.append((path, zone))
    return files


def test_every_package_has_a_zone() -> None:
    packages = {path.name for path in _ROOT.iterdir() if (path / "__init__.py").exists()}
    assert packages == {parts[0] for parts in _ZONES}


def test_trust_zone_import_boundaries() -> None:
    violations: list[str] = []

    for path, source_zone in _zoned_files():
        for module in _imported_modules(path):
            if not module.startswith("splitsmart."):
                continue
            target_zone = _zone_for_parts(tuple(module.split(".")[1:]))
            if target_zone is not None and target_zone not in _ALLOWED_TARGET_ZONES[source_zone]:
                violations.append(f"{path.relative_to(_ROOT)}: {source_zone} imports {module} ({target_zone})")

    assert not violations, "Trust-zone import violations:\n" + "\n".join(violations)


def test_pure_zone_does_no_io() -> None:
    violations: list[str] = []

    for path, zone in _zoned_files():
        if zone != "Pure":
            continue
        for module in _imported_modules(path):
            if module.split(".")[0] in _IO_LIBRARIES:
                violations.append(f"{path.relative_to(_ROOT)}: {module}")

    assert not violations, "Pure modules importing I/O libraries:\n" + "\n".join(violations)
