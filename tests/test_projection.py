"""
Tests for the schema projector (pure functions, no storage).
"""
import json
from datetime import datetime, timezone

import pytest

from journal.core.errors import ConstraintViolationError, SerializationError
from journal.models.collection import ALL_COLLECTIONS, Collection
from journal.services.projection import (
    build_columns,
    check_constraints,
    coerce_bool,
    column_names,
    dump_content,
    expand,
    parse_content,
    project,
    try_parse_float,
    try_parse_int,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
LATER = datetime(2026, 3, 2, 8, 30, tzinfo=timezone.utc)


class TestParsers:
    @pytest.mark.parametrize("raw,expected", [
        (8, 8), ("8", 8), ("8/10", 8), (" 42 kcal", 42), ("7.9", 7), (7.9, 7),
        ("-3", -3), ("eight", None), ("", None), (None, None), ([1], None),
        (2 ** 63 - 1, 2 ** 63 - 1), (-(2 ** 63), -(2 ** 63)),
        ("99999999999999999999", None), (2 ** 63, None), ("-9223372036854775809", None),
        (1e300, None), (float("inf"), None),
    ])
    def test_try_parse_int(self, raw, expected):
        assert try_parse_int(raw) == expected

    @pytest.mark.parametrize("raw,expected", [
        ("175cm", 175.0), ("62.5", 62.5), (70, 70.0), (".5", 0.5), ("n/a", None),
        (float("nan"), None), ("1e999", None), ("-1e999kg", None), (10 ** 400, None),
    ])
    def test_try_parse_float(self, raw, expected):
        assert try_parse_float(raw) == expected

    @pytest.mark.parametrize("raw,expected", [
        (True, 1), (False, 0), ("yes", 1), ("No", 0), ("0", 0), (1, 1), (0, 0), ("sure", 1),
    ])
    def test_coerce_bool(self, raw, expected):
        assert coerce_bool(raw) == expected


class TestProject:
    def test_whitelisted_keys_only(self):
        content = {"category": "music", "item": "jazz", "preference_type": "like", "mood": "great"}
        fields = project(Collection.preferences, content, NOW)
        assert fields == {
            "category": "music",
            "item": "jazz",
            "preference_type": "like",
            "updated_at": NOW,
        }

    def test_absent_values_are_skipped(self):
        fields = project(Collection.moods, {"mood_type": "", "description": None, "weather": "rain"}, NOW)
        assert "mood_type" not in fields
        assert "description" not in fields
        assert fields["weather"] == "rain"

    def test_numeric_coercion_and_fallbacks(self):
        fields = project(Collection.food_records, {"calories": "350 kcal", "taste_rating": "great"}, NOW)
        assert fields["calories"] == 350
        assert fields["taste_rating"] == 5

        fields = project(Collection.milestones, {"priority": "high"}, NOW)
        assert fields["priority"] == 3

        fields = project(Collection.preferences, {"intensity": "very"}, NOW)
        assert fields["intensity"] == 5

    def test_unparseable_number_without_fallback_is_none(self):
        fields = project(Collection.personal_info, {"age": "thirty", "height": "tall"}, NOW)
        assert fields["age"] is None
        assert fields["height"] is None

    def test_out_of_range_numbers_fall_back(self):
        fields = project(Collection.food_records, {"calories": "99999999999999999999", "taste_rating": 1e300}, NOW)
        assert fields["calories"] is None
        assert fields["taste_rating"] == 5

        fields = project(Collection.personal_info, {"height": "1e999", "age": 2 ** 70}, NOW)
        assert fields["height"] is None
        assert fields["age"] is None

    def test_enum_is_normalized(self):
        fields = project(Collection.preferences, {"preference_type": " Like "}, NOW)
        assert fields["preference_type"] == "like"

    def test_boolean_column(self):
        assert project(Collection.thoughts, {"is_favorite": True}, NOW)["is_favorite"] == 1
        assert project(Collection.thoughts, {"is_favorite": "false"}, NOW)["is_favorite"] == 0

    def test_non_string_text_is_serialized(self):
        fields = project(Collection.thoughts, {"tags": ["idea", "work"]}, NOW)
        assert json.loads(fields["tags"]) == ["idea", "work"]

    def test_chat_history_has_no_updated_at(self):
        fields = project(Collection.chat_history, {"user_message": "hi", "ai_response": "hello"}, NOW)
        assert "updated_at" not in fields

    def test_accepts_json_text(self):
        fields = project(Collection.moods, '{"mood_score": "7", "date": "2026-03-01"}', NOW)
        assert fields["mood_score"] == 7
        assert fields["date"] == "2026-03-01"

    @pytest.mark.parametrize("collection", ALL_COLLECTIONS)
    def test_projection_is_pure(self, collection):
        content = {
            "name": "Alice", "age": "30", "category": "food", "item": "durian",
            "preference_type": "LIKE", "title": "Marathon", "status": "planned",
            "mood_score": "8", "is_favorite": "yes", "food_name": "ramen",
            "calories": "600", "user_message": "hi", "extra": {"nested": True},
        }
        first = project(collection, content, NOW)
        second = project(collection, content, LATER)
        first.pop("updated_at", None)
        second.pop("updated_at", None)
        assert first == second


class TestContent:
    def test_parse_rejects_non_objects(self):
        with pytest.raises(SerializationError):
            parse_content("[1, 2]")
        with pytest.raises(SerializationError):
            parse_content("not json")
        with pytest.raises(SerializationError):
            parse_content(42)

    def test_dump_keeps_json_text_verbatim(self):
        text = '{"b": 1,   "a": "x"}'
        assert dump_content(text) == text

    def test_dump_rejects_invalid_text(self):
        with pytest.raises(SerializationError):
            dump_content("{oops")

    def test_dump_rejects_unserializable_values(self):
        with pytest.raises(SerializationError):
            dump_content({"when": object()})


class TestColumns:
    def test_expand_fills_every_column(self):
        fields = expand(Collection.preferences, {"item": "jazz"})
        assert set(fields) == set(column_names(Collection.preferences))
        assert fields["item"] == "jazz"
        assert fields["category"] is None

    def test_build_columns(self):
        payload = {"title": "Run", "status": "planned"}
        columns = build_columns(Collection.milestones, json.dumps(payload), payload, NOW, created_at=NOW)
        assert columns["content"] == json.dumps(payload)
        assert columns["status"] == "planned"
        assert columns["priority"] is None
        assert columns["created_at"] == NOW
        assert columns["updated_at"] == NOW

    def test_build_columns_for_chat(self):
        payload = {"user_message": "hi"}
        columns = build_columns(Collection.chat_history, json.dumps(payload), payload, NOW)
        assert "updated_at" not in columns
        assert "created_at" not in columns


class TestConstraints:
    def test_valid_values_pass(self):
        check_constraints(Collection.moods, {"mood_score": 10})
        check_constraints(Collection.milestones, {"status": "in_progress"})
        check_constraints(Collection.preferences, {"preference_type": None})

    @pytest.mark.parametrize("collection,fields,field", [
        (Collection.preferences, {"preference_type": "love"}, "preference_type"),
        (Collection.milestones, {"status": "someday"}, "status"),
        (Collection.moods, {"mood_score": 0}, "mood_score"),
        (Collection.moods, {"mood_score": 11}, "mood_score"),
    ])
    def test_violations(self, collection, fields, field):
        with pytest.raises(ConstraintViolationError) as exc_info:
            check_constraints(collection, fields)
        assert exc_info.value.details["field"] == field
        assert exc_info.value.details["collection"] == collection.value
