"""API key storage for the LLM service.

Classification code only sees the SecretProvider contract; tests substitute
InMemorySecretProvider.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

from splitsmart.domain.errors import SecretStoreError
from splitsmart.runtime.paths import get_paths

API_KEY_ENV = "SPLITSMART_LLM_API_KEY"


class SecretProvider(Protocol):
    def has_key(self) -> bool: ...

    def get_key(self) -> str | None: ...

    def set_key(self, key: str) -> None: ...

    def delete_key(self) -> None: ...


class InMemorySecretProvider:
    def __init__(self, key: str | None = None) -> None:
        self._key = key

    def has_key(self) -> bool:
        return bool(self._key)

    def get_key(self) -> str | None:
        return self._key or None

    def set_key(self, key: str) -> None:
        self._key = key

    def delete_key(self) -> None:
        self._key = None


class EnvSecretProvider:
    """Read-only provider backed by SPLITSMART_LLM_API_KEY."""

    def __init__(self, environ: Mapping[str, str] | None = None, variable: str = API_KEY_ENV) -> None:
        self._environ = os.environ if environ is None else environ
        self.variable = variable

    def has_key(self) -> bool:
        return bool(self.get_key())

    def get_key(self) -> str | None:
        value = self._environ.get(self.variable, "").strip()
        return value or None

    def set_key(self, key: str) -> None:
        raise SecretStoreError(f"API key comes from ${self.variable}; unset it to manage a stored key")

    def delete_key(self) -> None:
        raise SecretStoreError(f"API key comes from ${self.variable}; unset it to manage a stored key")


class FileSecretProvider:
    """Key stored in a file readable only by the owner (0600)."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path if path is not None else get_paths().api_key_file

    def has_key(self) -> bool:
        return self.get_key() is not None

    def get_key(self) -> str | None:
        if not self.path.exists():
            return None
        try:
            value = self.path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise SecretStoreError(f"Cannot read API key file {self.path}: {exc}") from exc
        return value or None

    def set_key(self, key: str) -> None:
        key = key.strip()
        if not key:
            raise SecretStoreError("Refusing to store an empty API key")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(key)
            os.chmod(self.path, 0o600)
        except OSError as exc:
            raise SecretStoreError(f"Cannot write API key file {self.path}: {exc}") from exc

    def delete_key(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            raise SecretStoreError(f"Cannot delete API key file {self.path}: {exc}") from exc


def default_secret_provider(environ: Mapping[str, str] | None = None) -> SecretProvider:
    """Environment variable when set, otherwise the key file under the config directory."""
    env_provider = EnvSecretProvider(environ)
    if env_provider.has_key():
        return env_provider
    return FileSecretProvider()
