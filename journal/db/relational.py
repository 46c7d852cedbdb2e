"""
Relational backend: SQLAlchemy (asyncio) over an embedded SQL engine.

One ORM table per collection (journal.models), typed columns and CHECK
constraints. Every statement runs in its own session; replace_all runs
its delete + re-insert inside a single transaction.

Timestamps are stored as naive UTC and handed back UTC-aware.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from journal.core.errors import (
    ConstraintViolationError,
    StorageIOError,
    UninitializedStorageError,
)
from journal.core.events import ChangeNotifier
from journal.db.backend import Record, RecordId, StorageBackend
from journal.db.base import Base
from journal.models import MODEL_BY_COLLECTION
from journal.models.collection import Collection
from journal.services.projection import column_names

logger = logging.getLogger(__name__)


def _naive_utc(value: Any) -> Any:
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _aware_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _coerce_pk(record_id: RecordId) -> Optional[int]:
    try:
        return int(str(record_id).strip())
    except ValueError:
        return None


class RelationalBackend(StorageBackend):
    name = "relational"

    def __init__(
        self,
        url: str,
        echo: bool = False,
        notifier: Optional[ChangeNotifier] = None,
    ) -> None:
        super().__init__(notifier)
        self.url = url
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._sessions: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_ready(self) -> bool:
        return self._sessions is not None

    async def initialize(self) -> None:
        """Open the engine and create any missing tables."""
        if self._engine is not None:
            return
        engine = create_async_engine(self.url, echo=self.echo)
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            await engine.dispose()
            raise StorageIOError(f"Cannot open database: {exc}") from exc
        self._engine = engine
        self._sessions = async_sessionmaker(engine, expire_on_commit=False)
        logger.info("Relational storage ready (%s)", engine.url.render_as_string(hide_password=True))

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._sessions = None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _session(self, collection: Collection) -> AsyncIterator[AsyncSession]:
        if self._sessions is None:
            raise UninitializedStorageError(self.name)
        try:
            async with self._sessions() as session:
                yield session
        except IntegrityError as exc:
            raise ConstraintViolationError(
                collection.value,
                f"Write rejected by {collection.value} constraints: {exc.orig}",
            ) from exc
        except SQLAlchemyError as exc:
            raise StorageIOError(
                f"{collection.value} operation failed: {exc}", collection.value
            ) from exc

    @staticmethod
    def _model(collection: Collection):
        return MODEL_BY_COLLECTION[collection]

    def _values(self, collection: Collection, columns: dict[str, Any]) -> dict[str, Any]:
        table_columns = self._model(collection).__table__.columns.keys()
        return {k: _naive_utc(v) for k, v in columns.items() if k in table_columns}

    def _to_record(self, collection: Collection, row: Any) -> Record:
        return Record(
            id=row.id,
            collection=collection.value,
            content=row.content,
            fields={name: getattr(row, name) for name in column_names(collection)},
            created_at=_aware_utc(row.created_at),
            updated_at=_aware_utc(getattr(row, "updated_at", None)),
        )

    def _ordered(self, collection: Collection):
        model = self._model(collection)
        return select(model).order_by(model.created_at.desc(), model.id.desc())

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_all(self, collection: Collection) -> list[Record]:
        async with self._session(collection) as session:
            rows = (await session.execute(self._ordered(collection))).scalars().all()
        return [self._to_record(collection, row) for row in rows]

    async def get_since(self, collection: Collection, cutoff: datetime) -> list[Record]:
        model = self._model(collection)
        stmt = self._ordered(collection).where(model.created_at >= _naive_utc(cutoff))
        async with self._session(collection) as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [self._to_record(collection, row) for row in rows]

    async def get_latest(self, collection: Collection, limit: int) -> list[Record]:
        async with self._session(collection) as session:
            rows = (await session.execute(self._ordered(collection).limit(limit))).scalars().all()
        return [self._to_record(collection, row) for row in rows]

    async def get_by_id(self, collection: Collection, record_id: RecordId) -> Optional[Record]:
        pk = _coerce_pk(record_id)
        if pk is None:
            return None
        async with self._session(collection) as session:
            row = await session.get(self._model(collection), pk)
        return self._to_record(collection, row) if row is not None else None

    async def count(self, collection: Collection) -> int:
        model = self._model(collection)
        async with self._session(collection) as session:
            result = await session.execute(select(func.count()).select_from(model))
            return result.scalar_one()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert_raw(self, collection: Collection, columns: dict[str, Any]) -> RecordId:
        model = self._model(collection)
        async with self._session(collection) as session:
            row = model(**self._values(collection, columns))
            session.add(row)
            await session.commit()
            return row.id

    async def update_by_id(
        self, collection: Collection, record_id: RecordId, columns: dict[str, Any]
    ) -> bool:
        pk = _coerce_pk(record_id)
        if pk is None:
            return False
        model = self._model(collection)
        stmt = update(model).where(model.id == pk).values(**self._values(collection, columns))
        async with self._session(collection) as session:
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount > 0

    async def delete_by_id(self, collection: Collection, record_id: RecordId) -> int:
        pk = _coerce_pk(record_id)
        if pk is None:
            return 0
        model = self._model(collection)
        async with self._session(collection) as session:
            result = await session.execute(delete(model).where(model.id == pk))
            await session.commit()
            return result.rowcount

    async def clear(self, collection: Collection) -> bool:
        async with self._session(collection) as session:
            await session.execute(delete(self._model(collection)))
            await session.commit()
        return True

    async def replace_all(self, collection: Collection, records: list[Record]) -> None:
        model = self._model(collection)
        async with self._session(collection) as session:
            await session.execute(delete(model))
            for record in records:
                columns = {
                    "id": _coerce_pk(record.id),
                    "content": record.content,
                    **record.fields,
                    "created_at": record.created_at,
                    "updated_at": record.updated_at,
                }
                session.add(model(**self._values(collection, columns)))
            await session.commit()
