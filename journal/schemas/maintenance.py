"""
Maintenance request / response schemas.

POST   /maintenance/cleanup → CleanupRequest → CleanupResponse
DELETE /maintenance/data    → ClearAllResponse
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class CleanupRequest(BaseModel):
    """Unset policy flags fall back to the configured defaults."""
    collections: Optional[list[str]] = Field(
        default=None,
        description="Collections to clean. Omit for all.",
        examples=[["preferences", "moods"]],
    )
    dedupe_chat: Optional[bool] = None
    chat_cross_session: Optional[bool] = Field(
        default=None,
        description="Collapse identical chat turns across different sessions.",
    )
    strict_fingerprints: Optional[bool] = Field(
        default=None,
        description="Match milestones and thoughts on a full content hash instead of title.",
    )


class CleanupReportResponse(BaseModel):
    collection: str
    before: int
    after: int
    removed: int
    conflicts: int
    error: Optional[str] = None


class CleanupResponse(BaseModel):
    removed: int
    reports: list[CleanupReportResponse]


class ClearAllResponse(BaseModel):
    results: dict[str, bool]
