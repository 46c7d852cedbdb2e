"""
Flat backend: one serialized JSON array per collection in a key-value store.

No transactions and no typed columns: every write reads the whole array,
mutates it in memory and writes the whole array back. Callers must
serialize writers per collection (the Record Store holds a lock).
Each successful write publishes a StorageChange.

Row layout (one array element):
    {"id": "<ms><rand>", "content": "<json text>", <projected columns>,
     "created_at": "<iso>", "updated_at": "<iso>"}
"""
from __future__ import annotations

import asyncio
import json
import logging
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Any, Optional

from journal.core.errors import StorageIOError, UninitializedStorageError
from journal.core.events import ChangeNotifier, StorageChange
from journal.db.backend import Record, RecordId, StorageBackend, same_id
from journal.db.kv import KeyValueStore
from journal.models.collection import ALL_COLLECTIONS, Collection
from journal.services.projection import check_constraints, expand

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def generate_id() -> str:
    """Millisecond timestamp followed by 9 random base-36 characters."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{int(time.time() * 1000)}{suffix}"


def _parse_ts(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return _EPOCH
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _to_json_value(value: Any) -> Any:
    return value.isoformat() if isinstance(value, datetime) else value


class FlatBackend(StorageBackend):
    name = "flat"

    def __init__(
        self,
        kv: KeyValueStore,
        prefix: str = "aijournal_",
        notifier: Optional[ChangeNotifier] = None,
    ) -> None:
        super().__init__(notifier)
        self.kv = kv
        self.prefix = prefix
        self._ready = False

    @property
    def is_ready(self) -> bool:
        return self._ready

    async def initialize(self) -> None:
        """Seed an empty array for every collection that has no key yet."""
        for collection in ALL_COLLECTIONS:
            key = self._key(collection)
            try:
                existing = await asyncio.to_thread(self.kv.get_item, key)
                if existing is None:
                    await asyncio.to_thread(self.kv.set_item, key, "[]")
            except (OSError, ValueError) as exc:
                raise StorageIOError(f"Cannot initialize flat store: {exc}", collection.value) from exc
        self._ready = True
        logger.info("Flat storage ready (prefix=%s)", self.prefix)

    async def close(self) -> None:
        self._ready = False

    # ------------------------------------------------------------------
    # Whole-collection I/O
    # ------------------------------------------------------------------

    def _key(self, collection: Collection) -> str:
        return f"{self.prefix}{collection.value}"

    async def _read(self, collection: Collection) -> list[dict[str, Any]]:
        if not self._ready:
            raise UninitializedStorageError(self.name)
        try:
            raw = await asyncio.to_thread(self.kv.get_item, self._key(collection))
        except (OSError, ValueError) as exc:
            raise StorageIOError(f"Reading {collection.value} failed: {exc}", collection.value) from exc
        if not raw:
            return []
        try:
            rows = json.loads(raw)
        except ValueError as exc:
            raise StorageIOError(f"{collection.value} holds corrupt data: {exc}", collection.value) from exc
        if not isinstance(rows, list):
            raise StorageIOError(f"{collection.value} is not a JSON array.", collection.value)
        return [row for row in rows if isinstance(row, dict)]

    async def _write(self, collection: Collection, rows: list[dict[str, Any]]) -> None:
        if not self._ready:
            raise UninitializedStorageError(self.name)
        try:
            text = json.dumps(rows, ensure_ascii=False)
            await asyncio.to_thread(self.kv.set_item, self._key(collection), text)
        except (OSError, TypeError, ValueError) as exc:
            raise StorageIOError(f"Writing {collection.value} failed: {exc}", collection.value) from exc
        self.notifier.publish(StorageChange(collection=collection.value, size=len(rows)))

    def _to_record(self, collection: Collection, row: dict[str, Any]) -> Record:
        content = row.get("content")
        if not isinstance(content, str):
            content = json.dumps(content if content is not None else {}, ensure_ascii=False)
        return Record(
            id=row.get("id"),
            collection=collection.value,
            content=content,
            fields=expand(collection, row),
            created_at=_parse_ts(row.get("created_at")) or _EPOCH,
            updated_at=_parse_ts(row.get("updated_at")),
        )

    @staticmethod
    def _to_row(columns: dict[str, Any]) -> dict[str, Any]:
        return {key: _to_json_value(value) for key, value in columns.items()}

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_all(self, collection: Collection) -> list[Record]:
        records = [self._to_record(collection, row) for row in await self._read(collection)]
        # Newest first; among equal timestamps the later-appended row comes first.
        return sorted(reversed(records), key=lambda r: r.created_at, reverse=True)

    async def count(self, collection: Collection) -> int:
        return len(await self._read(collection))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert_raw(self, collection: Collection, columns: dict[str, Any]) -> RecordId:
        check_constraints(collection, columns)
        rows = await self._read(collection)
        record_id = generate_id()
        rows.append({"id": record_id, **self._to_row(columns)})
        await self._write(collection, rows)
        return record_id

    async def update_by_id(
        self, collection: Collection, record_id: RecordId, columns: dict[str, Any]
    ) -> bool:
        check_constraints(collection, columns)
        rows = await self._read(collection)
        for row in rows:
            if same_id(row.get("id"), record_id):
                row.update(self._to_row(columns))
                await self._write(collection, rows)
                return True
        return False

    async def delete_by_id(self, collection: Collection, record_id: RecordId) -> int:
        rows = await self._read(collection)
        kept = [row for row in rows if not same_id(row.get("id"), record_id)]
        deleted = len(rows) - len(kept)
        if deleted:
            await self._write(collection, kept)
        return deleted

    async def clear(self, collection: Collection) -> bool:
        await self._write(collection, [])
        return True

    async def replace_all(self, collection: Collection, records: list[Record]) -> None:
        rows = []
        for record in records:
            row: dict[str, Any] = {
                "id": record.id,
                "content": record.content,
                **record.fields,
                "created_at": _to_json_value(record.created_at),
            }
            if record.updated_at is not None:
                row["updated_at"] = _to_json_value(record.updated_at)
            rows.append(row)
        await self._write(collection, rows)
