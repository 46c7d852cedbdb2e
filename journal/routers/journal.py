"""
Cross-collection views.

GET /journal/all         — Every collection, newest first
GET /journal/recent      — Every collection, last N days
GET /journal/stats       — Record counts per collection
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from journal.db.factory import get_store
from journal.schemas.records import RecordResponse, StatsResponse, TablesResponse
from journal.services import gateway
from journal.services.store import RecordStore

router = APIRouter(prefix="/journal", tags=["journal"])


def _tables(data) -> TablesResponse:
    return TablesResponse(
        tables={name: [RecordResponse.from_record(r) for r in records] for name, records in data.items()}
    )


@router.get("/all", response_model=TablesResponse, summary="All records of every collection")
async def all_tables(store: RecordStore = Depends(get_store)):
    """A collection whose read fails shows up as an empty list."""
    return _tables(await gateway.get_all_tables(store))


@router.get("/recent", response_model=TablesResponse, summary="Recent records of every collection")
async def recent_tables(
    request: Request,
    days: Optional[int] = Query(default=None, ge=0, description="Window in days. Defaults to RECENT_DAYS_DEFAULT."),
    store: RecordStore = Depends(get_store),
):
    if days is None:
        days = request.app.state.settings.RECENT_DAYS_DEFAULT
    return _tables(await gateway.get_recent_tables(store, days))


@router.get("/stats", response_model=StatsResponse, summary="Record counts per collection")
async def stats(store: RecordStore = Depends(get_store)):
    counts = await gateway.get_stats(store)
    return StatsResponse(counts=counts, total=sum(counts.values()))
