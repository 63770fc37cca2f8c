"""Verifier storage - keeps the pending PKCE code verifier across the browser round trip."""

from __future__ import annotations

import json
import logging
import os
import stat
from pathlib import Path
from typing import Protocol

from .constants import CODE_VERIFIER_KEY, SESSION_FILE
from .errors import MissingVerifierError
from .pkce import derive_code_challenge, generate_code_verifier

logger = logging.getLogger(__name__)


class Storage(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def clear(self, key: str) -> None: ...


class MemoryStorage:
    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def clear(self, key: str) -> None:
        self._data.pop(key, None)


class FileStorage:
    """JSON file backed key-value store, readable only by the current user.

    A missing or unreadable file reads as empty. Write failures propagate.
    """

    def __init__(self, path: Path = SESSION_FILE) -> None:
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        try:
            if not self.path.exists():
                return {}
            data = json.loads(self.path.read_text())
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2))
        if os.name != "nt":
            self.path.chmod(stat.S_IRUSR | stat.S_IWUSR)

    def get(self, key: str) -> str | None:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def clear(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


class VerifierStore:
    """Single-slot store for the code verifier of the pending authorization.

    Generating a new challenge overwrites any earlier verifier, so only the
    most recent authorization request can be completed.
    """

    def __init__(self, storage: Storage, key: str = CODE_VERIFIER_KEY) -> None:
        self.storage = storage
        self.key = key

    def generate_code_challenge(self) -> str:
        verifier = generate_code_verifier()
        self.storage.set(self.key, verifier)
        logger.debug("Stored new code verifier under %r", self.key)
        return derive_code_challenge(verifier)

    def get_code_verifier(self) -> str:
        verifier = self.storage.get(self.key)
        if verifier is None:
            raise MissingVerifierError()
        return verifier

    def clear(self) -> None:
        self.storage.clear(self.key)


_default_store: VerifierStore | None = None


def default_store() -> VerifierStore:
    global _default_store
    if _default_store is None:
        _default_store = VerifierStore(FileStorage())
    return _default_store


def generate_code_challenge() -> str:
    return default_store().generate_code_challenge()


def get_code_verifier() -> str:
    return default_store().get_code_verifier()
