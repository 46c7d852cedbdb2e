"""
Reconciliation engine: keeps one current record per logical fact.

Two entry points, both called by the Record Store while it holds the
collection lock:

resolve_insert(backend, collection, payload, text, now) -> InsertOutcome
    Insert-time singularity / contradiction rules:
      preferences   one row per (category, item); last statement wins
      personal_info one row; later inserts shallow-merge into it
      moods         one row per calendar date; later inserts merge
      milestones    same title -> bump recency, content untouched
      thoughts      same title or same text -> bump recency
    Other collections are plain inserts.

cleanup_collection(backend, collection, policy) -> CleanupReport
    Bulk dedup: fingerprint every record, keep the newest per
    fingerprint, write the retained set back in one replace_all.
    For preferences, like/dislike conflicts are counted and resolved
    in favour of the newest statement.

Fingerprints are heuristics, not identity: two distinct milestones that
share a title collapse. CleanupPolicy.strict_fingerprints switches
milestones and thoughts to a full content hash.
"""
from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from journal.core.errors import SerializationError
from journal.db.backend import Record, RecordId, StorageBackend
from journal.models.collection import Collection
from journal.services.projection import build_columns, dump_content, is_absent, project

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class InsertOutcome:
    record_id: RecordId
    action: str  # inserted | reaffirmed | replaced | merged | bumped


@dataclass
class CleanupPolicy:
    dedupe_chat: bool = True
    chat_cross_session: bool = False
    strict_fingerprints: bool = False

    @classmethod
    def from_settings(cls, settings) -> "CleanupPolicy":
        return cls(
            dedupe_chat=settings.CLEANUP_DEDUPE_CHAT,
            chat_cross_session=settings.CLEANUP_CHAT_CROSS_SESSION,
            strict_fingerprints=settings.CLEANUP_STRICT_FINGERPRINTS,
        )


@dataclass
class CleanupReport:
    collection: str
    before: int = 0
    after: int = 0
    conflicts: int = 0
    error: Optional[str] = field(default=None)

    @property
    def removed(self) -> int:
        return self.before - self.after

    def to_dict(self) -> dict[str, Any]:
        return {
            "collection": self.collection,
            "before": self.before,
            "after": self.after,
            "removed": self.removed,
            "conflicts": self.conflicts,
            "error": self.error,
        }


# ---------------------------------------------------------------------------
# Tiny utilities
# ---------------------------------------------------------------------------

def _norm(value: Any) -> str:
    """Whitespace-collapsed, case-folded text; '' for absent values."""
    if is_absent(value):
        return ""
    text = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)
    return " ".join(text.split()).casefold()


def _digest(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()[:16]


def _canonical(data: dict[str, Any]) -> str:
    return json.dumps(data, ensure_ascii=False, sort_keys=True, default=str)


def _payload_or_fields(record: Record) -> dict[str, Any]:
    """Parsed content, or the projected columns when content is corrupt."""
    try:
        return record.payload()
    except SerializationError:
        logger.warning("Unparseable content in %s #%s; using projected columns", record.collection, record.id)
        return {k: v for k, v in record.fields.items() if v is not None}


def _present(payload: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in payload.items() if not is_absent(v)}


def _record_date(data: dict[str, Any], record: Record) -> str:
    if not is_absent(data.get("date")):
        return str(data["date"]).strip()
    return record.created_at.date().isoformat() if record.created_at else ""


# ---------------------------------------------------------------------------
# Insert-time rules
# ---------------------------------------------------------------------------

async def _insert_new(
    backend: StorageBackend, collection: Collection, payload: dict, text: str, now: datetime
) -> InsertOutcome:
    columns = build_columns(collection, text, payload, now, created_at=now)
    record_id = await backend.insert_raw(collection, columns)
    return InsertOutcome(record_id=record_id, action="inserted")


async def _overwrite(
    backend: StorageBackend, collection: Collection, record: Record,
    payload: dict, now: datetime,
) -> None:
    """Replace content + projection and move the record to the top of recency."""
    columns = build_columns(collection, dump_content(payload), payload, now, created_at=now)
    await backend.update_by_id(collection, record.id, columns)


async def _bump(backend: StorageBackend, collection: Collection, record: Record, now: datetime) -> None:
    await backend.update_by_id(collection, record.id, {"created_at": now, "updated_at": now})


async def _resolve_preference(backend, collection, payload, text, now) -> Optional[InsertOutcome]:
    item = _norm(payload.get("item"))
    if not item:
        return None
    category = _norm(payload.get("category"))
    matches = [
        r for r in await backend.get_all(collection)
        if _norm(_payload_or_fields(r).get("item")) == item
        and _norm(_payload_or_fields(r).get("category")) == category
    ]
    if not matches:
        return None

    current, stale = matches[0], matches[1:]
    new_type = project(collection, payload, now).get("preference_type")
    action = "reaffirmed" if current.fields.get("preference_type") == new_type else "replaced"
    columns = build_columns(collection, text, payload, now, created_at=now)
    await backend.update_by_id(collection, current.id, columns)
    for record in stale:
        await backend.delete_by_id(collection, record.id)
    logger.info(
        "Preference %s/%s %s (was %s, now %s; %d stale removed)",
        category, item, action, current.fields.get("preference_type"), new_type, len(stale),
    )
    return InsertOutcome(record_id=current.id, action=action)


async def _resolve_personal_info(backend, collection, payload, text, now) -> Optional[InsertOutcome]:
    existing = await backend.get_all(collection)
    if not existing:
        return None
    subject = existing[0]
    merged = {**_payload_or_fields(subject), **_present(payload)}
    await _overwrite(backend, collection, subject, merged, now)
    logger.info("Merged %d field(s) into personal_info #%s", len(_present(payload)), subject.id)
    return InsertOutcome(record_id=subject.id, action="merged")


async def _resolve_mood(backend, collection, payload, text, now) -> Optional[InsertOutcome]:
    target_date = str(payload["date"]).strip() if not is_absent(payload.get("date")) else now.date().isoformat()
    for record in await backend.get_all(collection):
        data = _payload_or_fields(record)
        if _record_date(data, record) == target_date:
            await _overwrite(backend, collection, record, {**data, **_present(payload)}, now)
            logger.info("Merged mood for %s into #%s", target_date, record.id)
            return InsertOutcome(record_id=record.id, action="merged")
    return None


def _same_narrative(collection: Collection, incoming: dict, existing: dict) -> bool:
    title = _norm(incoming.get("title"))
    if title and title == _norm(existing.get("title")):
        return True
    body_key = "content" if collection is Collection.thoughts else "description"
    body = _norm(incoming.get(body_key))
    return bool(body) and body == _norm(existing.get(body_key))


async def _resolve_narrative(backend, collection, payload, text, now) -> Optional[InsertOutcome]:
    for record in await backend.get_all(collection):
        if _same_narrative(collection, payload, _payload_or_fields(record)):
            await _bump(backend, collection, record, now)
            logger.info("Duplicate %s entry; bumped #%s", collection.value, record.id)
            return InsertOutcome(record_id=record.id, action="bumped")
    return None


_INSERT_RULES = {
    Collection.preferences: _resolve_preference,
    Collection.personal_info: _resolve_personal_info,
    Collection.moods: _resolve_mood,
    Collection.milestones: _resolve_narrative,
    Collection.thoughts: _resolve_narrative,
}


async def resolve_insert(
    backend: StorageBackend,
    collection: Collection,
    payload: dict[str, Any],
    text: str,
    now: datetime,
) -> InsertOutcome:
    """Apply the collection's singularity rule, falling back to a plain insert."""
    rule = _INSERT_RULES.get(collection)
    if rule is not None:
        outcome = await rule(backend, collection, payload, text, now)
        if outcome is not None:
            return outcome
    return await _insert_new(backend, collection, payload, text, now)


# ---------------------------------------------------------------------------
# Bulk cleanup
# ---------------------------------------------------------------------------

def fingerprint(collection: Collection, record: Record, policy: CleanupPolicy) -> str:
    """Collection-specific dedup key. Unparseable content keys on its raw text."""
    try:
        data = record.payload()
    except SerializationError as exc:
        logger.warning("Fingerprint fallback for %s #%s: %s", collection.value, record.id, exc.message)
        return f"raw_{record.content}"

    if collection is Collection.personal_info and _norm(data.get("name")):
        return f"name_{_norm(data['name'])}"
    if collection is Collection.preferences and _norm(data.get("item")):
        return f"pref_{_norm(data.get('category'))}_{_norm(data['item'])}"
    if collection in (Collection.milestones, Collection.thoughts) and policy.strict_fingerprints:
        return f"hash_{_digest(_canonical(data))}"
    if collection is Collection.milestones and _norm(data.get("title")):
        return f"title_{_norm(data['title'])}"
    if collection is Collection.moods:
        return f"mood_{_norm(data.get('mood_type'))}_{_record_date(data, record)}"
    if collection is Collection.thoughts:
        if _norm(data.get("content")):
            return f"content_{_digest(_norm(data['content'])[:50])}"
        if _norm(data.get("title")):
            return f"title_{_norm(data['title'])}"
    if collection is Collection.food_records:
        return f"food_{_norm(data.get('food_name'))}_{_record_date(data, record)}"
    if collection is Collection.chat_history:
        exchange = f"{data.get('user_message') or ''}\x1f{data.get('ai_response') or ''}"
        key = f"chat_{_digest(exchange)}"
        if not policy.chat_cross_session:
            key += f"_{data.get('session_id') or 'default'}"
        return key
    return f"json_{_canonical(data)}"


def _newest(records: list[Record]) -> Record:
    """Max created_at; on ties the last one seen wins."""
    best = records[0]
    for record in records[1:]:
        if record.created_at >= best.created_at:
            best = record
    return best


def _polarity(record: Record) -> Optional[str]:
    value = record.fields.get("preference_type")
    return str(value).lower() if value is not None else None


async def cleanup_collection(
    backend: StorageBackend,
    collection: Collection,
    policy: Optional[CleanupPolicy] = None,
) -> CleanupReport:
    policy = policy or CleanupPolicy()
    records = await backend.get_all(collection)
    report = CleanupReport(collection=collection.value, before=len(records), after=len(records))
    if not records:
        return report
    if collection is Collection.chat_history and not policy.dedupe_chat:
        return report

    # Oldest first, so "last seen" on a timestamp tie is the later insert.
    groups: dict[str, list[Record]] = {}
    for record in reversed(records):
        groups.setdefault(fingerprint(collection, record, policy), []).append(record)

    keep_ids: set[str] = set()
    for key, members in groups.items():
        winner = _newest(members)
        if collection is Collection.preferences and {"like", "dislike"} <= {_polarity(m) for m in members}:
            report.conflicts += 1
            logger.warning("Conflicting preference %s; keeping %s from #%s", key, _polarity(winner), winner.id)
        keep_ids.add(str(winner.id))

    retained = [r for r in records if str(r.id) in keep_ids]
    report.after = len(retained)
    if report.removed:
        await backend.replace_all(collection, retained)
        logger.info(
            "Cleanup %s: %d duplicate(s) removed, %d kept, %d conflict(s)",
            collection.value, report.removed, report.after, report.conflicts,
        )
    return report
