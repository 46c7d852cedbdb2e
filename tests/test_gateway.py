"""
Aggregation gateway tests: cross-collection fan-out, stats, maintenance.
"""
from datetime import timedelta

from journal.core.errors import StorageIOError
from journal.db.flat import FlatBackend
from journal.db.kv import MemoryKeyValueStore
from journal.models.collection import ALL_COLLECTIONS, Collection
from journal.services import gateway
from journal.services.store import RecordStore

ALL_NAMES = {c.value for c in ALL_COLLECTIONS}


class BrokenCollectionBackend(FlatBackend):
    """Flat backend whose reads of one collection always fail."""

    def __init__(self, broken: Collection, error: Exception):
        super().__init__(MemoryKeyValueStore())
        self.broken = broken
        self.error = error

    async def get_all(self, collection):
        if collection is self.broken:
            raise self.error
        return await super().get_all(collection)


async def _populate(store):
    await store.insert("personal_info", {"name": "Alice"})
    await store.insert("preferences", {"category": "music", "item": "jazz", "preference_type": "like"})
    await store.insert("moods", {"mood_type": "calm", "mood_score": 6})
    await store.insert("thoughts", {"title": "Idea"})
    await store.insert("food_records", {"food_name": "rice"})
    await store.insert("food_records", {"food_name": "soup"})
    await store.insert_chat("hi", "hello", "s1")


class TestViews:
    async def test_get_all_tables(self, store):
        await _populate(store)
        tables = await gateway.get_all_tables(store)
        assert set(tables) == ALL_NAMES
        assert len(tables["food_records"]) == 2
        assert tables["milestones"] == []
        assert tables["personal_info"][0].fields["name"] == "Alice"

    async def test_get_recent_tables(self, store, clock):
        await store.insert("thoughts", {"title": "old"})
        clock.advance(days=30)
        await store.insert("thoughts", {"title": "new"})
        await store.insert("moods", {"mood_score": 7})

        recent = await gateway.get_recent_tables(store, days=7)
        assert set(recent) == ALL_NAMES
        assert [r.fields["title"] for r in recent["thoughts"]] == ["new"]
        assert len(recent["moods"]) == 1

    async def test_get_stats(self, store):
        await _populate(store)
        stats = await gateway.get_stats(store)
        assert stats == {
            "personal_info": 1,
            "preferences": 1,
            "milestones": 0,
            "moods": 1,
            "thoughts": 1,
            "food_records": 2,
            "chat_history": 1,
        }

    async def test_clear_then_stats(self, store):
        await _populate(store)
        await store.clear("thoughts")
        assert await store.get_all("thoughts") == []
        assert (await gateway.get_stats(store))["thoughts"] == 0

    async def test_failing_collection_reads_as_empty(self):
        backend = BrokenCollectionBackend(Collection.moods, StorageIOError("disk unreadable", "moods"))
        await backend.initialize()
        store = RecordStore(backend)
        await store.insert("thoughts", {"title": "still here"})

        tables = await gateway.get_all_tables(store)
        assert tables["moods"] == []
        assert len(tables["thoughts"]) == 1


class TestMaintenance:
    async def test_run_cleanup_all(self, store, seed, clock):
        await seed(Collection.food_records, {"food_name": "rice", "date": "2026-02-01"}, clock.start - timedelta(days=2))
        await seed(Collection.food_records, {"food_name": "rice", "date": "2026-02-01"}, clock.start - timedelta(days=1))
        await seed(Collection.thoughts, {"title": "same"}, clock.start - timedelta(days=2))
        await seed(Collection.thoughts, {"title": "same"}, clock.start - timedelta(days=1))

        reports = await gateway.run_cleanup(store)
        by_name = {r.collection: r for r in reports}
        assert set(by_name) == ALL_NAMES
        assert by_name["food_records"].removed == 1
        assert by_name["thoughts"].removed == 1
        assert sum(r.removed for r in reports) == 2

    async def test_run_cleanup_subset(self, store):
        reports = await gateway.run_cleanup(store, ["moods", Collection.thoughts])
        assert [r.collection for r in reports] == ["moods", "thoughts"]

    async def test_cleanup_failure_is_isolated(self, clock):
        backend = BrokenCollectionBackend(Collection.moods, RuntimeError("disk on fire"))
        await backend.initialize()
        store = RecordStore(backend, clock=clock)
        await store.insert("food_records", {"food_name": "rice"})
        await store.insert("food_records", {"food_name": "rice"})

        reports = {r.collection: r for r in await gateway.run_cleanup(store)}
        assert reports["moods"].error == "disk on fire"
        assert reports["food_records"].error is None
        assert reports["food_records"].removed == 1

    async def test_clear_all(self, store):
        await _populate(store)
        results = await gateway.clear_all(store)
        assert results == {name: True for name in ALL_NAMES}
        assert sum((await gateway.get_stats(store)).values()) == 0
