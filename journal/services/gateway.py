"""
Aggregation gateway: cross-collection views composed from the Record Store.

Read fan-outs run concurrently (asyncio.gather). A failing collection
contributes an empty result for its key, never a failed call; the store
already degrades storage errors on reads.

Maintenance fan-outs (cleanup, clear) run one collection at a time and
isolate failures per collection.

Public API
----------
get_all_tables(store)                        -> dict[str, list[Record]]
get_recent_tables(store, days)               -> dict[str, list[Record]]
get_stats(store)                             -> dict[str, int]
run_cleanup(store, collections, policy)      -> list[CleanupReport]
clear_all(store)                             -> dict[str, bool]
"""
from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

from journal.core.errors import StorageError
from journal.db.backend import Record
from journal.models.collection import ALL_COLLECTIONS, Collection
from journal.services.reconcile import CleanupPolicy, CleanupReport
from journal.services.store import CollectionName, RecordStore

logger = logging.getLogger(__name__)

DEFAULT_RECENT_DAYS = 7


async def get_all_tables(store: RecordStore) -> dict[str, list[Record]]:
    results = await asyncio.gather(*(store.get_all(c) for c in ALL_COLLECTIONS))
    return {c.value: records for c, records in zip(ALL_COLLECTIONS, results)}


async def get_recent_tables(
    store: RecordStore, days: int = DEFAULT_RECENT_DAYS
) -> dict[str, list[Record]]:
    results = await asyncio.gather(*(store.get_recent(c, days) for c in ALL_COLLECTIONS))
    return {c.value: records for c, records in zip(ALL_COLLECTIONS, results)}


async def get_stats(store: RecordStore) -> dict[str, int]:
    counts = await asyncio.gather(*(store.count(c) for c in ALL_COLLECTIONS))
    return {c.value: n for c, n in zip(ALL_COLLECTIONS, counts)}


async def run_cleanup(
    store: RecordStore,
    collections: Optional[Iterable[CollectionName]] = None,
    policy: Optional[CleanupPolicy] = None,
) -> list[CleanupReport]:
    """Dedup each collection in turn. One collection failing does not stop the rest."""
    targets = (
        [Collection.resolve(c) for c in collections]
        if collections is not None
        else list(ALL_COLLECTIONS)
    )
    reports: list[CleanupReport] = []
    for collection in targets:
        try:
            report = await store.cleanup(collection, policy)
        except Exception as exc:
            logger.exception("Cleanup of %s failed", collection.value)
            report = CleanupReport(collection=collection.value, error=str(exc))
        reports.append(report)

    removed = sum(r.removed for r in reports)
    failed = [r.collection for r in reports if r.error]
    logger.info("Cleanup finished: %d record(s) removed, failed=%s", removed, failed or "none")
    return reports


async def clear_all(store: RecordStore) -> dict[str, bool]:
    results: dict[str, bool] = {}
    for collection in ALL_COLLECTIONS:
        try:
            results[collection.value] = await store.clear(collection)
        except StorageError:
            logger.exception("Clearing %s failed", collection.value)
            results[collection.value] = False
    return results
