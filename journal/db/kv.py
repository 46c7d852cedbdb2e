"""
Key-value stores behind the flat backend.

Semantics follow browser local storage: string keys, string values,
whole-value get/set, and an optional byte quota.
"""
from __future__ import annotations

import abc
import os
import re
from pathlib import Path
from typing import Optional

_SAFE_KEY_RE = re.compile(r"^[A-Za-z0-9_.\-]+$")


class QuotaExceededError(OSError):
    """Raised when a write would push the store past its byte quota."""


class KeyValueStore(abc.ABC):
    @abc.abstractmethod
    def get_item(self, key: str) -> Optional[str]: ...

    @abc.abstractmethod
    def set_item(self, key: str, value: str) -> None: ...

    @abc.abstractmethod
    def remove_item(self, key: str) -> None: ...

    @abc.abstractmethod
    def keys(self) -> list[str]: ...


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store. `quota_bytes` caps the UTF-8 size of all values."""

    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        self._data: dict[str, str] = {}
        self.quota_bytes = quota_bytes

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            used = sum(len(v.encode("utf-8")) for k, v in self._data.items() if k != key)
            if used + len(value.encode("utf-8")) > self.quota_bytes:
                raise QuotaExceededError(
                    f"Writing '{key}' exceeds the {self.quota_bytes}-byte quota."
                )
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class FileKeyValueStore(KeyValueStore):
    """One UTF-8 file per key under `directory`; writes replace the file atomically."""

    def __init__(self, directory: str | os.PathLike) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY_RE.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        self.directory.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(f".{path.name}.tmp")
        tmp.write_text(value, encoding="utf-8")
        os.replace(tmp, path)

    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def keys(self) -> list[str]:
        if not self.directory.exists():
            return []
        return sorted(p.stem for p in self.directory.glob("*.json"))
