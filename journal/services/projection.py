"""
Schema projector: derives typed, queryable columns from a content payload.

Rules:
- The content payload is the source of truth; columns are a projection.
- A fixed whitelist per collection; unknown keys stay in the payload only.
- Numeric parsing never raises. A value that does not parse falls back to
  the column's declared fallback (None unless stated otherwise).
  Integers outside the signed 64-bit range and non-finite decimals count
  as unparseable.
- A key counts as absent when it is missing, None or an empty string.

Public API
----------
project(collection, content, now)          -> dict   (present, coerced columns [+ updated_at])
expand(collection, fields)                 -> dict   (every whitelisted column, absent -> None)
build_columns(collection, text, payload, now, created_at) -> dict  (backend write mapping)
check_constraints(collection, fields)      -> None   (raises ConstraintViolationError)
parse_content(content)                     -> dict   (raises SerializationError)
dump_content(content)                      -> str
"""
from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Union

from journal.core.errors import ConstraintViolationError, SerializationError
from journal.models.collection import Collection

Content = Union[str, Mapping[str, Any]]


# ---------------------------------------------------------------------------
# Column declarations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ColumnSpec:
    name: str
    kind: str = "text"                  # text | integer | real | boolean | enum
    fallback: Any = None                # used when a present value fails to parse
    choices: tuple[str, ...] = ()
    minimum: Optional[int] = None
    maximum: Optional[int] = None


def _text(*names: str) -> tuple[ColumnSpec, ...]:
    return tuple(ColumnSpec(name) for name in names)


PROJECTIONS: dict[Collection, tuple[ColumnSpec, ...]] = {
    Collection.personal_info: (
        ColumnSpec("name"),
        ColumnSpec("age", "integer"),
        *_text("gender", "occupation", "health_status", "chronic_diseases",
               "medical_history", "family_medical_history"),
        ColumnSpec("height", "real"),
        ColumnSpec("weight", "real"),
        ColumnSpec("bmi", "real"),
        ColumnSpec("blood_pressure"),
        ColumnSpec("heart_rate", "integer"),
        *_text("blood_sugar", "blood_type", "vision", "hearing", "allergies",
               "medications", "supplements", "exercise_habits", "sleep_pattern",
               "smoking_status", "drinking_habits", "diet_restrictions",
               "mental_health", "stress_level", "education", "relationship_status",
               "family_info", "contact_info", "emergency_contact",
               "insurance_info", "doctor_info"),
    ),
    Collection.preferences: (
        ColumnSpec("category"),
        ColumnSpec("item"),
        ColumnSpec("preference_type", "enum", choices=("like", "dislike")),
        ColumnSpec("intensity", "integer", fallback=5),
        ColumnSpec("notes"),
    ),
    Collection.milestones: (
        ColumnSpec("title"),
        ColumnSpec("description"),
        ColumnSpec("category"),
        ColumnSpec(
            "status", "enum",
            choices=("planned", "in_progress", "completed", "cancelled"),
        ),
        ColumnSpec("target_date"),
        ColumnSpec("completed_date"),
        ColumnSpec("priority", "integer", fallback=3),
    ),
    Collection.moods: (
        ColumnSpec("mood_score", "integer", minimum=1, maximum=10),
        *_text("mood_type", "description", "triggers", "weather", "location", "date"),
    ),
    Collection.thoughts: (
        *_text("title", "category", "tags", "inspiration_source"),
        ColumnSpec("is_favorite", "boolean"),
    ),
    Collection.food_records: (
        *_text("food_name", "quantity", "meal_time"),
        ColumnSpec("calories", "integer"),
        ColumnSpec("taste_rating", "integer", fallback=5),
        ColumnSpec("location"),
        ColumnSpec("mood"),
    ),
    Collection.chat_history: _text("user_message", "ai_response", "session_id"),
}

# chat_history is append-only and carries no updated_at column.
TIMESTAMPED: frozenset[Collection] = frozenset(
    c for c in Collection if c is not Collection.chat_history
)


def column_names(collection: Collection) -> tuple[str, ...]:
    return tuple(col.name for col in PROJECTIONS[collection])


# ---------------------------------------------------------------------------
# Explicit parsers (never raise)
# ---------------------------------------------------------------------------

_LEADING_INT_RE = re.compile(r"[+-]?\d+")
_LEADING_FLOAT_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
# SQLite INTEGER is a signed 64-bit value.
_INT_MIN, _INT_MAX = -(2 ** 63), 2 ** 63 - 1
_TRUE_WORDS = {"true", "1", "yes", "y", "on"}
_FALSE_WORDS = {"false", "0", "no", "n", "off"}


def try_parse_int(value: Any) -> Optional[int]:
    """Leading-integer parse: 8 -> 8, "8/10" -> 8, "7.5" -> 7, "eight" -> None."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        result = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            return None
        result = int(value)
    elif isinstance(value, str):
        match = _LEADING_INT_RE.match(value.strip())
        if not match:
            return None
        try:
            result = int(match.group())
        except ValueError:
            # digit string beyond the interpreter's int conversion limit
            return None
    else:
        return None
    return result if _INT_MIN <= result <= _INT_MAX else None


def try_parse_float(value: Any) -> Optional[float]:
    """Leading-decimal parse: "175cm" -> 175.0, "n/a" -> None."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        try:
            result = float(value)
        except OverflowError:
            return None
        return result if math.isfinite(result) else None
    if isinstance(value, str):
        match = _LEADING_FLOAT_RE.match(value.strip())
        if not match:
            return None
        result = float(match.group())
        return result if math.isfinite(result) else None
    return None


def coerce_bool(value: Any) -> int:
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return 1
        # Any other non-empty word counts as true.
        return 0 if word in _FALSE_WORDS or not word else 1
    return 1 if value else 0


def is_absent(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)


def _coerce(col: ColumnSpec, value: Any) -> Any:
    if col.kind == "integer":
        parsed = try_parse_int(value)
        return col.fallback if parsed is None else parsed
    if col.kind == "real":
        parsed = try_parse_float(value)
        return col.fallback if parsed is None else parsed
    if col.kind == "boolean":
        return coerce_bool(value)
    if col.kind == "enum":
        return _as_text(value).strip().lower()
    return _as_text(value)


# ---------------------------------------------------------------------------
# Payload (de)serialization
# ---------------------------------------------------------------------------

def parse_content(content: Content) -> dict[str, Any]:
    """Return the payload as a dict. Raises SerializationError if it is not a JSON object."""
    if isinstance(content, Mapping):
        return dict(content)
    if not isinstance(content, str):
        raise SerializationError(f"Unsupported content type {type(content).__name__}.")
    try:
        data = json.loads(content)
    except ValueError as exc:
        raise SerializationError(f"Content is not valid JSON: {exc}", raw=content) from exc
    if not isinstance(data, dict):
        raise SerializationError("Content must be a JSON object.", raw=content)
    return data


def dump_content(content: Content) -> str:
    """Canonical payload text. JSON strings are validated and kept verbatim."""
    if isinstance(content, str):
        parse_content(content)
        return content
    try:
        return json.dumps(dict(content), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"Content is not JSON-serializable: {exc}") from exc


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------

def project(
    collection: Collection,
    content: Content,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """
    Read the collection's whitelist out of `content` and coerce each value.
    Pure: the same content yields the same columns (updated_at aside).
    """
    data = parse_content(content)
    fields: dict[str, Any] = {}
    for col in PROJECTIONS[collection]:
        value = data.get(col.name)
        if is_absent(value):
            continue
        fields[col.name] = _coerce(col, value)
    if collection in TIMESTAMPED:
        fields["updated_at"] = now or datetime.now(tz=timezone.utc)
    return fields


def expand(collection: Collection, fields: Mapping[str, Any]) -> dict[str, Any]:
    """Uniform record shape: every whitelisted column, None where absent."""
    return {name: fields.get(name) for name in column_names(collection)}


def build_columns(
    collection: Collection,
    text: str,
    payload: Mapping[str, Any],
    now: datetime,
    created_at: Optional[datetime] = None,
) -> dict[str, Any]:
    """Full column mapping handed to a backend for insert or replace-style update."""
    projected = project(collection, payload, now)
    columns: dict[str, Any] = {"content": text, **expand(collection, projected)}
    if "updated_at" in projected:
        columns["updated_at"] = projected["updated_at"]
    if created_at is not None:
        columns["created_at"] = created_at
    return columns


def check_constraints(collection: Collection, fields: Mapping[str, Any]) -> None:
    """Enforce the enum/range rules declared above (the relational CHECKs)."""
    for col in PROJECTIONS[collection]:
        value = fields.get(col.name)
        if value is None:
            continue
        if col.choices and value not in col.choices:
            raise ConstraintViolationError(
                collection.value,
                f"{col.name}={value!r} is not one of {', '.join(col.choices)}.",
                field=col.name,
            )
        if col.minimum is not None and value < col.minimum:
            raise ConstraintViolationError(
                collection.value,
                f"{col.name}={value!r} is below the minimum of {col.minimum}.",
                field=col.name,
            )
        if col.maximum is not None and value > col.maximum:
            raise ConstraintViolationError(
                collection.value,
                f"{col.name}={value!r} is above the maximum of {col.maximum}.",
                field=col.name,
            )
