"""
Record Store tests, run against both backends.

Covers:
- insert / get_all / get_by_id / get_latest / count
- get_recent windowing
- update (content replace, re-projection, append-only chat)
- delete with mixed id representations, clear
- move between collections
- constraint violations, unknown collections
- read degradation and write failures before initialize()
- per-collection write serialization
"""
import asyncio

import pytest

from journal.core.errors import (
    ConstraintViolationError,
    RecordNotFoundError,
    SerializationError,
    UninitializedStorageError,
    UnknownCollectionError,
)
from journal.models.collection import Collection
from journal.services.store import RecordStore


class TestInsertAndRead:
    async def test_insert_preference_roundtrip(self, store, clock):
        content = {"category": "music", "item": "jazz", "preference_type": "like", "intensity": 8}
        record_id = await store.insert("preferences", content)

        records = await store.get_all("preferences")
        assert len(records) == 1
        record = records[0]
        assert str(record.id) == str(record_id)
        assert record.payload() == content
        assert record.fields["preference_type"] == "like"
        assert record.fields["intensity"] == 8
        assert record.fields["notes"] is None
        assert record.created_at == clock.start
        assert record.updated_at == clock.start

    async def test_unknown_fields_are_kept(self, store):
        content = {"food_name": "ramen", "calories": "600", "broth": "tonkotsu", "spicy": True}
        await store.insert(Collection.food_records, content)
        record = (await store.get_all(Collection.food_records))[0]
        assert record.payload() == content
        assert "broth" not in record.fields
        assert record.fields["calories"] == 600

    async def test_json_text_content_is_stored_verbatim(self, store):
        text = '{"food_name": "toast",  "meal_time": "breakfast"}'
        await store.insert("food_records", text)
        record = (await store.get_all("food_records"))[0]
        assert record.content == text
        assert record.fields["meal_time"] == "breakfast"

    async def test_invalid_content_is_rejected(self, store):
        with pytest.raises(SerializationError):
            await store.insert("thoughts", "not json")
        assert await store.count("thoughts") == 0

    async def test_newest_first(self, store):
        for name in ("rice", "noodles", "bread"):
            await store.insert("food_records", {"food_name": name})
        names = [r.fields["food_name"] for r in await store.get_all("food_records")]
        assert names == ["bread", "noodles", "rice"]

    async def test_get_latest(self, store):
        for i in range(7):
            await store.insert("food_records", {"food_name": f"snack {i}"})
        latest = await store.get_latest("food_records")
        assert [r.fields["food_name"] for r in latest] == [f"snack {i}" for i in (6, 5, 4, 3, 2)]
        assert len(await store.get_latest("food_records", limit=2)) == 2

    async def test_get_by_id_and_count(self, store):
        first = await store.insert("food_records", {"food_name": "apple"})
        await store.insert("food_records", {"food_name": "pear"})
        record = await store.get_by_id("food_records", str(first))
        assert record is not None
        assert record.fields["food_name"] == "apple"
        assert await store.get_by_id("food_records", "does-not-exist") is None
        assert await store.count("food_records") == 2

    async def test_get_recent(self, store, clock):
        await store.insert("moods", {"mood_type": "tired", "mood_score": 4})
        clock.advance(days=10)
        await store.insert("moods", {"mood_type": "happy", "mood_score": 8})

        recent = await store.get_recent("moods", 7)
        assert [r.fields["mood_type"] for r in recent] == ["happy"]
        assert len(await store.get_recent("moods", 30)) == 2

    async def test_insert_chat_defaults_session_to_epoch_ms(self, store, clock):
        record_id = await store.insert_chat("hello", "hi there")
        record = await store.get_by_id("chat_history", record_id)
        assert record.fields["session_id"] == str(int(clock.start.timestamp() * 1000))
        assert record.updated_at is None

        await store.insert_chat("again", "sure", session_id="abc")
        assert (await store.get_all("chat_history"))[0].fields["session_id"] == "abc"


class TestUpdate:
    async def test_update_replaces_content_and_reprojects(self, store):
        record_id = await store.insert("food_records", {"food_name": "soup", "calories": 200, "location": "home"})
        new_content = {"food_name": "soup", "calories": "250", "chef": "grandma"}
        assert await store.update("food_records", record_id, new_content) is True

        record = await store.get_by_id("food_records", record_id)
        assert record.payload() == new_content
        assert record.fields["calories"] == 250
        assert record.fields["location"] is None
        assert record.updated_at > record.created_at

    async def test_update_missing_id(self, store):
        assert await store.update("food_records", "12345", {"food_name": "x"}) is False

    async def test_update_does_not_reconcile(self, store):
        first = await store.insert("preferences", {"category": "food", "item": "durian", "preference_type": "like"})
        second = await store.insert("preferences", {"category": "food", "item": "mango", "preference_type": "like"})
        await store.update("preferences", second, {"category": "food", "item": "durian", "preference_type": "dislike"})
        assert await store.count("preferences") == 2
        assert (await store.get_by_id("preferences", first)).fields["preference_type"] == "like"

    async def test_chat_history_is_append_only(self, store):
        record_id = await store.insert_chat("hi", "hello", "s1")
        with pytest.raises(ConstraintViolationError):
            await store.update("chat_history", record_id, {"user_message": "edited"})


class TestDeleteAndClear:
    async def test_delete_removes_exactly_one(self, store):
        ids = [await store.insert("food_records", {"food_name": f"dish {i}"}) for i in range(3)]
        result = await store.delete("food_records", str(ids[1]))
        assert result.deleted_count == 1
        remaining = {str(r.id) for r in await store.get_all("food_records")}
        assert remaining == {str(ids[0]), str(ids[2])}

    async def test_delete_missing_is_a_noop(self, store):
        await store.insert("food_records", {"food_name": "dish"})
        result = await store.delete("food_records", "999999")
        assert result.deleted_count == 0
        assert await store.count("food_records") == 1

    async def test_clear(self, store):
        await store.insert("thoughts", {"title": "idea", "content": "write more"})
        await store.insert("thoughts", {"title": "another", "content": "read more"})
        assert await store.clear("thoughts") is True
        assert await store.get_all("thoughts") == []
        assert await store.count("thoughts") == 0


class TestMove:
    async def test_move_to_another_collection(self, store):
        record_id = await store.insert("thoughts", {"title": "Run a marathon", "content": "by autumn"})
        new_id = await store.move("thoughts", "milestones", record_id)

        assert await store.count("thoughts") == 0
        moved = await store.get_by_id("milestones", new_id)
        assert moved.fields["title"] == "Run a marathon"
        assert moved.payload()["content"] == "by autumn"

    async def test_move_with_replacement_content(self, store):
        record_id = await store.insert("thoughts", {"title": "Learn piano"})
        new_id = await store.move(
            "thoughts", "milestones", record_id,
            content={"title": "Learn piano", "status": "planned"},
        )
        assert (await store.get_by_id("milestones", new_id)).fields["status"] == "planned"

    async def test_move_missing_record(self, store):
        with pytest.raises(RecordNotFoundError):
            await store.move("thoughts", "milestones", "424242")

    async def test_move_to_same_collection(self, store):
        record_id = await store.insert("thoughts", {"title": "x"})
        with pytest.raises(ConstraintViolationError):
            await store.move("thoughts", "thoughts", record_id)


class TestErrors:
    @pytest.mark.parametrize("content", [
        {"mood_score": 11},
        {"mood_score": "0"},
    ])
    async def test_mood_score_range(self, store, content):
        with pytest.raises(ConstraintViolationError):
            await store.insert("moods", content)
        assert await store.count("moods") == 0

    async def test_preference_polarity_enum(self, store):
        with pytest.raises(ConstraintViolationError):
            await store.insert("preferences", {"item": "tea", "preference_type": "love"})

    async def test_milestone_status_enum(self, store):
        with pytest.raises(ConstraintViolationError):
            await store.insert("milestones", {"title": "Ship it", "status": "someday"})

    async def test_out_of_range_numbers_are_stored_with_fallbacks(self, store):
        content = {"food_name": "x", "calories": "99999999999999999999", "taste_rating": 10 ** 30}
        record_id = await store.insert("food_records", content)
        record = await store.get_by_id("food_records", record_id)
        assert record.payload() == content
        assert record.fields["calories"] is None
        assert record.fields["taste_rating"] == 5

        await store.insert("personal_info", {"name": "Bo", "heart_rate": -(2 ** 64), "height": "1e999"})
        info = (await store.get_all("personal_info"))[0]
        assert info.fields["heart_rate"] is None
        assert info.fields["height"] is None

    async def test_unknown_collection(self, store):
        with pytest.raises(UnknownCollectionError):
            await store.insert("dreams", {"title": "flying"})
        with pytest.raises(UnknownCollectionError):
            await store.get_all("dreams")


class TestUninitialized:
    async def test_reads_degrade_and_writes_raise(self, unopened_backend, clock):
        store = RecordStore(unopened_backend, clock=clock)
        assert await store.get_all("moods") == []
        assert await store.get_recent("moods", 7) == []
        assert await store.get_by_id("moods", "1") is None
        assert await store.count("moods") == 0

        with pytest.raises(UninitializedStorageError):
            await store.insert("moods", {"mood_score": 5})
        with pytest.raises(UninitializedStorageError):
            await store.delete("moods", "1")
        with pytest.raises(UninitializedStorageError):
            await store.clear("moods")


class TestConcurrency:
    async def test_concurrent_inserts_are_not_lost(self, store):
        await asyncio.gather(*(
            store.insert("food_records", {"food_name": f"bite {i}"}) for i in range(20)
        ))
        assert await store.count("food_records") == 20

    async def test_concurrent_preference_statements_collapse(self, store):
        await asyncio.gather(*(
            store.insert("preferences", {"category": "food", "item": "durian", "preference_type": "like"})
            for _ in range(5)
        ))
        assert await store.count("preferences") == 1

