"""
Record request / response schemas.

POST /collections/{name}          → ContentRequest → InsertResponse
PUT  /collections/{name}/{id}     → ContentRequest → UpdateResponse
POST /collections/{name}/{id}/move → MoveRequest   → InsertResponse
POST /chat                        → ChatRequest    → InsertResponse
GET  /collections/{name}          → RecordListResponse
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

from journal.core.errors import SerializationError
from journal.db.backend import Record


class ContentRequest(BaseModel):
    """A content payload as produced by upstream analysis."""
    content: dict[str, Any] = Field(
        description="Free-form JSON object. Unknown keys are kept verbatim.",
        examples=[{"category": "music", "item": "jazz", "preference_type": "like", "intensity": 8}],
    )


class ChatRequest(BaseModel):
    user_message: str
    ai_response: str
    session_id: Optional[str] = Field(
        default=None,
        description="Conversation id. Defaults to the current epoch milliseconds.",
    )


class MoveRequest(BaseModel):
    """Re-file a record under another collection."""
    target: str = Field(examples=["milestones"])
    content: Optional[dict[str, Any]] = Field(
        default=None,
        description="Replacement payload for the target collection. Defaults to the original content.",
    )


class RecordResponse(BaseModel):
    id: Union[int, str]
    collection: str
    content: str = Field(description="Canonical payload text, exactly as stored.")
    data: Optional[dict[str, Any]] = Field(
        default=None,
        description="Parsed payload; null when the stored text is not a JSON object.",
    )
    fields: dict[str, Any] = Field(description="Projected columns derived from the payload.")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Record) -> "RecordResponse":
        try:
            data = record.payload()
        except SerializationError:
            data = None
        return cls(
            id=record.id,
            collection=record.collection,
            content=record.content,
            data=data,
            fields=record.fields,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class RecordListResponse(BaseModel):
    collection: str
    total: int
    items: list[RecordResponse]


class InsertResponse(BaseModel):
    id: Union[int, str]
    collection: str
    action: str = Field(
        default="inserted",
        description="inserted | reaffirmed | replaced | merged | bumped",
    )


class UpdateResponse(BaseModel):
    updated: bool


class DeleteResponse(BaseModel):
    deleted_count: int


class ClearResponse(BaseModel):
    collection: str
    cleared: bool


class TablesResponse(BaseModel):
    """Every collection keyed by name."""
    tables: dict[str, list[RecordResponse]]


class StatsResponse(BaseModel):
    counts: dict[str, int]
    total: int
