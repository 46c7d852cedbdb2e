"""
Collections router: CRUD over one named collection.

GET    /collections                    — Record counts per collection
GET    /collections/{name}             — Records, newest first (optional days / limit)
GET    /collections/{name}/{id}        — Single record
POST   /collections/{name}             — Insert (runs the collection's reconciliation rule)
PUT    /collections/{name}/{id}        — Replace content
DELETE /collections/{name}/{id}        — Delete one record
DELETE /collections/{name}             — Clear the collection
POST   /collections/{name}/{id}/move   — Re-file a record under another collection
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from journal.core.errors import RecordNotFoundError
from journal.db.factory import get_store
from journal.models.collection import Collection
from journal.schemas.common import ErrorResponse
from journal.schemas.records import (
    ClearResponse,
    ContentRequest,
    DeleteResponse,
    InsertResponse,
    MoveRequest,
    RecordListResponse,
    RecordResponse,
    StatsResponse,
    UpdateResponse,
)
from journal.services import gateway
from journal.services.store import RecordStore

router = APIRouter(prefix="/collections", tags=["collections"])


@router.get("", response_model=StatsResponse, summary="Record counts per collection")
async def list_collections(store: RecordStore = Depends(get_store)):
    counts = await gateway.get_stats(store)
    return StatsResponse(counts=counts, total=sum(counts.values()))


@router.get(
    "/{name}",
    response_model=RecordListResponse,
    summary="List records of one collection (newest first)",
    responses={404: {"model": ErrorResponse, "description": "Unknown collection."}},
)
async def list_records(
    name: str,
    days: Optional[int] = Query(
        default=None, ge=0, description="Only records created within the last N days."
    ),
    limit: Optional[int] = Query(default=None, ge=1, le=500, description="Newest N records."),
    store: RecordStore = Depends(get_store),
):
    """
    Storage failures degrade to an empty list. `days` is applied first,
    then `limit`.
    """
    collection = Collection.resolve(name)
    if days is not None:
        records = await store.get_recent(collection, days)
        if limit is not None:
            records = records[:limit]
    elif limit is not None:
        records = await store.get_latest(collection, limit)
    else:
        records = await store.get_all(collection)
    return RecordListResponse(
        collection=collection.value,
        total=len(records),
        items=[RecordResponse.from_record(r) for r in records],
    )


@router.get(
    "/{name}/{record_id}",
    response_model=RecordResponse,
    summary="Retrieve a single record",
    responses={404: {"model": ErrorResponse, "description": "Unknown collection or record."}},
)
async def get_record(name: str, record_id: str, store: RecordStore = Depends(get_store)):
    record = await store.get_by_id(name, record_id)
    if record is None:
        raise RecordNotFoundError(Collection.resolve(name).value, record_id)
    return RecordResponse.from_record(record)


@router.post(
    "/{name}",
    response_model=InsertResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Insert a content payload",
    responses={
        201: {"description": "Stored. `action` tells whether it was inserted or reconciled."},
        422: {"model": ErrorResponse, "description": "Constraint violation or invalid payload."},
    },
)
async def insert_record(name: str, payload: ContentRequest, store: RecordStore = Depends(get_store)):
    """
    Reconciliation per collection:
    - **preferences** — one record per (category, item); the latest statement wins.
    - **personal_info** — single record; later inserts merge into it.
    - **moods** — one record per date; later inserts merge into it.
    - **milestones / thoughts** — same title (or text) bumps the existing record.
    """
    outcome = await store.insert_outcome(name, payload.content)
    return InsertResponse(id=outcome.record_id, collection=Collection.resolve(name).value, action=outcome.action)


@router.put(
    "/{name}/{record_id}",
    response_model=UpdateResponse,
    summary="Replace a record's content",
)
async def update_record(
    name: str, record_id: str, payload: ContentRequest, store: RecordStore = Depends(get_store)
):
    """`updated` is false when the id does not exist. chat_history is append-only."""
    updated = await store.update(name, record_id, payload.content)
    return UpdateResponse(updated=updated)


@router.delete("/{name}/{record_id}", response_model=DeleteResponse, summary="Delete one record")
async def delete_record(name: str, record_id: str, store: RecordStore = Depends(get_store)):
    result = await store.delete(name, record_id)
    return DeleteResponse(deleted_count=result.deleted_count)


@router.delete("/{name}", response_model=ClearResponse, summary="Remove every record of a collection")
async def clear_collection(name: str, store: RecordStore = Depends(get_store)):
    collection = Collection.resolve(name)
    return ClearResponse(collection=collection.value, cleared=await store.clear(collection))


@router.post(
    "/{name}/{record_id}/move",
    response_model=InsertResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Move a record to another collection",
    responses={404: {"model": ErrorResponse, "description": "Unknown collection or record."}},
)
async def move_record(
    name: str, record_id: str, payload: MoveRequest, store: RecordStore = Depends(get_store)
):
    new_id = await store.move(name, payload.target, record_id, payload.content)
    return InsertResponse(id=new_id, collection=Collection.resolve(payload.target).value, action="moved")
