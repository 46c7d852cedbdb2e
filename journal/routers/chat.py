"""
Chat router.

POST /chat — Append one chat turn to chat_history
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, status

from journal.db.factory import get_store
from journal.models.collection import Collection
from journal.schemas.records import ChatRequest, InsertResponse
from journal.services.store import RecordStore

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("", response_model=InsertResponse, status_code=status.HTTP_201_CREATED)
async def append_chat(payload: ChatRequest, store: RecordStore = Depends(get_store)):
    record_id = await store.insert_chat(payload.user_message, payload.ai_response, payload.session_id)
    return InsertResponse(id=record_id, collection=Collection.chat_history.value)
