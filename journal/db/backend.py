"""
Storage backend contract shared by the relational and flat engines.

The Record Store is written against this narrow interface only; which
engine sits behind it is decided at composition time (see factory.py).

Failure semantics
-----------------
- Any call before initialize()  -> UninitializedStorageError
- Constraint rejected a write   -> ConstraintViolationError
- Underlying I/O failed         -> StorageIOError
- Missing id on update/delete   -> False / 0, never an exception
"""
from __future__ import annotations

import abc
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Union

from journal.core.events import ChangeNotifier
from journal.models.collection import Collection
from journal.services.projection import parse_content

RecordId = Union[int, str]


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def same_id(left: RecordId, right: RecordId) -> bool:
    """Ids from different call sites may be int or str; compare as strings."""
    return str(left) == str(right)


@dataclass
class Record:
    """Uniform record shape returned by both backends."""
    id: RecordId
    collection: str
    content: str
    fields: dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def payload(self) -> dict[str, Any]:
        """Parsed content. Raises SerializationError on corrupt content."""
        return parse_content(self.content)


class StorageBackend(abc.ABC):
    """Durable get/set of named record collections."""

    name: str = "storage"

    def __init__(self, notifier: Optional[ChangeNotifier] = None) -> None:
        self.notifier = notifier or ChangeNotifier()

    # --- lifecycle ---

    @property
    @abc.abstractmethod
    def is_ready(self) -> bool: ...

    @abc.abstractmethod
    async def initialize(self) -> None: ...

    @abc.abstractmethod
    async def close(self) -> None: ...

    async def __aenter__(self) -> "StorageBackend":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # --- reads ---

    @abc.abstractmethod
    async def get_all(self, collection: Collection) -> list[Record]:
        """All records, newest created_at first."""

    async def get_since(self, collection: Collection, cutoff: datetime) -> list[Record]:
        return [
            r for r in await self.get_all(collection)
            if r.created_at is not None and r.created_at >= cutoff
        ]

    async def get_latest(self, collection: Collection, limit: int) -> list[Record]:
        return (await self.get_all(collection))[:limit]

    async def get_by_id(self, collection: Collection, record_id: RecordId) -> Optional[Record]:
        for record in await self.get_all(collection):
            if same_id(record.id, record_id):
                return record
        return None

    async def count(self, collection: Collection) -> int:
        return len(await self.get_all(collection))

    # --- writes ---

    @abc.abstractmethod
    async def insert_raw(self, collection: Collection, columns: dict[str, Any]) -> RecordId:
        """Persist one row (content + projected columns + timestamps); return its id."""

    @abc.abstractmethod
    async def update_by_id(
        self, collection: Collection, record_id: RecordId, columns: dict[str, Any]
    ) -> bool:
        """Overwrite the given columns of one row. False when the id does not exist."""

    @abc.abstractmethod
    async def delete_by_id(self, collection: Collection, record_id: RecordId) -> int:
        """Return the number of rows removed."""

    @abc.abstractmethod
    async def clear(self, collection: Collection) -> bool: ...

    @abc.abstractmethod
    async def replace_all(self, collection: Collection, records: list[Record]) -> None:
        """Make the collection hold exactly `records` (ids and timestamps kept), in one write."""
