"""
Composition root for storage: picks the backend from settings.

The backend is built once, owned by the caller (the FastAPI lifespan or
a script), initialized before use and closed on shutdown.
"""
from __future__ import annotations

from typing import Optional

from fastapi import Request

from journal.core.config import Settings
from journal.core.events import ChangeNotifier
from journal.db.backend import StorageBackend
from journal.db.flat import FlatBackend
from journal.db.kv import FileKeyValueStore, KeyValueStore, MemoryKeyValueStore
from journal.db.relational import RelationalBackend
from journal.services.store import RecordStore


def build_backend(
    settings: Settings,
    notifier: Optional[ChangeNotifier] = None,
) -> StorageBackend:
    if settings.STORAGE_BACKEND == "flat":
        kv: KeyValueStore
        if settings.FLAT_STORE_KIND == "memory":
            kv = MemoryKeyValueStore(quota_bytes=settings.FLAT_QUOTA_BYTES)
        else:
            kv = FileKeyValueStore(settings.FLAT_STORE_DIR)
        return FlatBackend(kv, prefix=settings.FLAT_KEY_PREFIX, notifier=notifier)
    return RelationalBackend(settings.DATABASE_URL, echo=settings.SQL_ECHO, notifier=notifier)


def get_store(request: Request) -> RecordStore:
    """FastAPI dependency: the RecordStore created by the application lifespan."""
    return request.app.state.store
