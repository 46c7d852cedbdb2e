"""
Record Store: CRUD facade over a StorageBackend and the schema projector.

Rules:
- Reads never raise storage errors. They log a warning and return an
  empty result (empty list, None, 0).
- Writes raise typed errors (journal.core.errors); no retries here.
- Every read-modify-write on a collection runs under that collection's
  asyncio.Lock, including the insert-time reconciliation rules and bulk
  cleanup. Reads take no lock.
- An unknown collection name raises UnknownCollectionError on every path.

Public API
----------
insert(collection, content)                     -> id
insert_outcome(collection, content)             -> InsertOutcome
insert_chat(user_message, ai_response, session) -> id
get_all(collection)                             -> list[Record]
get_recent(collection, within_days)             -> list[Record]
get_latest(collection, limit=5)                 -> list[Record]
get_by_id(collection, id)                       -> Record | None
count(collection)                               -> int
update(collection, id, content)                 -> bool
delete(collection, id)                          -> DeleteResult
clear(collection)                               -> bool
move(source, target, id, content=None)          -> new id
cleanup(collection, policy=None)                -> CleanupReport
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Optional, Union

from journal.core.errors import ConstraintViolationError, RecordNotFoundError, StorageError
from journal.db.backend import Record, RecordId, StorageBackend, utcnow
from journal.models.collection import Collection
from journal.services.projection import Content, build_columns, dump_content, parse_content
from journal.services.reconcile import (
    CleanupPolicy,
    CleanupReport,
    InsertOutcome,
    cleanup_collection,
    resolve_insert,
)

logger = logging.getLogger(__name__)

CollectionName = Union[str, Collection]


@dataclass
class DeleteResult:
    deleted_count: int


class RecordStore:
    def __init__(
        self,
        backend: StorageBackend,
        clock: Callable[[], datetime] = utcnow,
        cleanup_policy: Optional[CleanupPolicy] = None,
    ) -> None:
        self.backend = backend
        self.clock = clock
        self.cleanup_policy = cleanup_policy or CleanupPolicy()
        self._locks: dict[Collection, asyncio.Lock] = {}

    def _lock(self, collection: Collection) -> asyncio.Lock:
        lock = self._locks.get(collection)
        if lock is None:
            lock = self._locks[collection] = asyncio.Lock()
        return lock

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert_outcome(self, collection: CollectionName, content: Content) -> InsertOutcome:
        """Insert through the collection's reconciliation rule and report what happened."""
        col = Collection.resolve(collection)
        payload = parse_content(content)
        text = dump_content(content)
        async with self._lock(col):
            outcome = await resolve_insert(self.backend, col, payload, text, self.clock())
        logger.debug("insert %s -> %s #%s", col.value, outcome.action, outcome.record_id)
        return outcome

    async def insert(self, collection: CollectionName, content: Content) -> RecordId:
        return (await self.insert_outcome(collection, content)).record_id

    async def insert_chat(
        self,
        user_message: str,
        ai_response: str,
        session_id: Optional[str] = None,
    ) -> RecordId:
        """Append one chat turn. Without a session id the turn gets its own session."""
        if session_id is None:
            session_id = str(int(self.clock().timestamp() * 1000))
        payload = {
            "user_message": user_message,
            "ai_response": ai_response,
            "session_id": session_id,
        }
        return await self.insert(Collection.chat_history, payload)

    async def update(self, collection: CollectionName, record_id: RecordId, content: Content) -> bool:
        """
        Replace content wholesale and re-derive the projection.
        No reconciliation runs here. False when the id does not exist.
        """
        col = Collection.resolve(collection)
        if col is Collection.chat_history:
            raise ConstraintViolationError(col.value, "chat_history is append-only.")
        payload = parse_content(content)
        text = dump_content(content)
        async with self._lock(col):
            columns = build_columns(col, text, payload, self.clock())
            return await self.backend.update_by_id(col, record_id, columns)

    async def delete(self, collection: CollectionName, record_id: RecordId) -> DeleteResult:
        col = Collection.resolve(collection)
        async with self._lock(col):
            deleted = await self.backend.delete_by_id(col, record_id)
        return DeleteResult(deleted_count=deleted)

    async def clear(self, collection: CollectionName) -> bool:
        col = Collection.resolve(collection)
        async with self._lock(col):
            cleared = await self.backend.clear(col)
        logger.info("Cleared %s", col.value)
        return cleared

    async def move(
        self,
        source: CollectionName,
        target: CollectionName,
        record_id: RecordId,
        content: Optional[Content] = None,
    ) -> RecordId:
        """
        Re-file a record under another collection: insert into `target`
        (through its reconciliation rule), then delete from `source`.
        `content` replaces the payload when the shape differs between the two.
        """
        src = Collection.resolve(source)
        dst = Collection.resolve(target)
        if src is dst:
            raise ConstraintViolationError(src.value, "Source and target collections are the same.")
        record = await self.backend.get_by_id(src, record_id)
        if record is None:
            raise RecordNotFoundError(src.value, record_id)

        new_id = await self.insert(dst, content if content is not None else record.content)
        await self.delete(src, record.id)
        logger.info("Moved %s #%s to %s #%s", src.value, record.id, dst.value, new_id)
        return new_id

    async def cleanup(
        self,
        collection: CollectionName,
        policy: Optional[CleanupPolicy] = None,
    ) -> CleanupReport:
        col = Collection.resolve(collection)
        async with self._lock(col):
            return await cleanup_collection(self.backend, col, policy or self.cleanup_policy)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _degraded(self, collection: Collection, op: str, call, default: Any) -> Any:
        try:
            return await call
        except StorageError as exc:
            logger.warning("%s(%s) failed, returning empty result: %s", op, collection.value, exc.message)
            return default

    async def get_all(self, collection: CollectionName) -> list[Record]:
        col = Collection.resolve(collection)
        return await self._degraded(col, "get_all", self.backend.get_all(col), [])

    async def get_recent(self, collection: CollectionName, within_days: int) -> list[Record]:
        col = Collection.resolve(collection)
        cutoff = self.clock() - timedelta(days=within_days)
        return await self._degraded(col, "get_recent", self.backend.get_since(col, cutoff), [])

    async def get_latest(self, collection: CollectionName, limit: int = 5) -> list[Record]:
        col = Collection.resolve(collection)
        return await self._degraded(col, "get_latest", self.backend.get_latest(col, limit), [])

    async def get_by_id(self, collection: CollectionName, record_id: RecordId) -> Optional[Record]:
        col = Collection.resolve(collection)
        return await self._degraded(col, "get_by_id", self.backend.get_by_id(col, record_id), None)

    async def count(self, collection: CollectionName) -> int:
        col = Collection.resolve(collection)
        return await self._degraded(col, "count", self.backend.count(col), 0)
