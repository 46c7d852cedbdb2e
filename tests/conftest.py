"""
Shared pytest fixtures.

Both backends run against throwaway storage: the relational one on a
SQLite file under tmp_path (aiosqlite), the flat one on an in-memory
key-value store. `store` is parametrized so each store test runs once
per backend.
"""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from journal.core.config import Settings
from journal.db.flat import FlatBackend
from journal.db.kv import MemoryKeyValueStore
from journal.db.relational import RelationalBackend
from journal.main import create_app
from journal.models.collection import Collection
from journal.services.projection import build_columns, dump_content
from journal.services.store import RecordStore

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Returns `now`, then moves it forward by `step` so successive writes are ordered."""

    def __init__(self, start: datetime = T0, step: timedelta = timedelta(seconds=1)):
        self.start = start
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now += self.step
        return current

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def sqlite_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'journal.db'}"


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
async def relational_backend(tmp_path):
    backend = RelationalBackend(sqlite_url(tmp_path))
    await backend.initialize()
    yield backend
    await backend.close()


@pytest.fixture()
async def flat_backend():
    backend = FlatBackend(MemoryKeyValueStore())
    await backend.initialize()
    yield backend
    await backend.close()


@pytest.fixture(params=["relational", "flat"])
async def backend(request, tmp_path):
    if request.param == "relational":
        backend = RelationalBackend(sqlite_url(tmp_path))
    else:
        backend = FlatBackend(MemoryKeyValueStore())
    await backend.initialize()
    yield backend
    await backend.close()


@pytest.fixture(params=["relational", "flat"])
def unopened_backend(request, tmp_path):
    """A backend whose initialize() was never called."""
    if request.param == "relational":
        return RelationalBackend(sqlite_url(tmp_path))
    return FlatBackend(MemoryKeyValueStore())


@pytest.fixture()
def store(backend, clock):
    return RecordStore(backend, clock=clock)


@pytest.fixture()
def seed(backend):
    """Write a row straight to the backend, bypassing the insert-time rules."""
    async def _seed(collection: Collection, payload, created_at: datetime):
        text = payload if isinstance(payload, str) else dump_content(payload)
        if isinstance(payload, str):
            columns = {"content": text, "created_at": created_at}
        else:
            columns = build_columns(collection, text, payload, created_at, created_at=created_at)
        return await backend.insert_raw(collection, columns)

    return _seed


@pytest.fixture(params=["relational", "flat"])
def client(request, tmp_path):
    if request.param == "relational":
        app_settings = Settings(_env_file=None, STORAGE_BACKEND="relational", DATABASE_URL=sqlite_url(tmp_path))
    else:
        app_settings = Settings(_env_file=None, STORAGE_BACKEND="flat", FLAT_STORE_KIND="memory")
    app = create_app(app_settings)
    with TestClient(app) as c:
        yield c
