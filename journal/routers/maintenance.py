"""
Maintenance router.

POST   /maintenance/cleanup — Deduplicate collections (isolated per collection)
DELETE /maintenance/data    — Clear every collection
"""
from __future__ import annotations

from dataclasses import replace
from typing import Optional

from fastapi import APIRouter, Depends

from journal.db.factory import get_store
from journal.schemas.maintenance import (
    CleanupReportResponse,
    CleanupRequest,
    CleanupResponse,
    ClearAllResponse,
)
from journal.services import gateway
from journal.services.store import RecordStore

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@router.post("/cleanup", response_model=CleanupResponse, summary="Run bulk deduplication")
async def cleanup(payload: Optional[CleanupRequest] = None, store: RecordStore = Depends(get_store)):
    """
    Keeps the newest record per fingerprint. For preferences, like/dislike
    contradictions are counted in `conflicts` and the newest statement wins.
    A collection that fails reports `error` and does not stop the others.
    """
    payload = payload or CleanupRequest()
    overrides = payload.model_dump(exclude={"collections"}, exclude_none=True)
    policy = replace(store.cleanup_policy, **overrides)
    reports = await gateway.run_cleanup(store, payload.collections, policy)
    return CleanupResponse(
        removed=sum(r.removed for r in reports),
        reports=[CleanupReportResponse(**r.to_dict()) for r in reports],
    )


@router.delete("/data", response_model=ClearAllResponse, summary="Delete all journal data")
async def clear_data(store: RecordStore = Depends(get_store)):
    return ClearAllResponse(results=await gateway.clear_all(store))
