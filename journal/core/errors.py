"""
Exception hierarchy for the journal store.

Rule: every error has a machine-readable `code` string so callers (and
HTTP clients) can branch on it without parsing English messages.

Read paths never raise storage errors to the caller; they log and return
an empty result. Write paths raise a `StorageError` subclass.
"""
from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class JournalException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class StorageError(JournalException):
    """Base class for failures raised by a storage backend."""
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "STORAGE_ERROR"


class UninitializedStorageError(StorageError):
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "STORAGE_UNINITIALIZED"

    def __init__(self, backend: str):
        super().__init__(
            message=f"{backend} storage has not been initialized.",
            details={"backend": backend},
        )


class ConstraintViolationError(StorageError):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "CONSTRAINT_VIOLATION"

    def __init__(self, collection: str, message: str, field: str | None = None):
        details: dict[str, Any] = {"collection": collection}
        if field:
            details["field"] = field
        super().__init__(message=message, details=details)


class StorageIOError(StorageError):
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "STORAGE_IO_ERROR"

    def __init__(self, message: str, collection: str | None = None):
        super().__init__(
            message=message,
            details={"collection": collection} if collection else {},
        )


class SerializationError(JournalException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "SERIALIZATION_ERROR"

    def __init__(self, message: str, raw: str | None = None):
        super().__init__(
            message=message,
            details={"raw": raw[:200]} if raw else {},
        )


class RecordNotFoundError(JournalException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "RECORD_NOT_FOUND"

    def __init__(self, collection: str, record_id: Any):
        super().__init__(
            message=f"Record {record_id} not found in {collection}.",
            details={"collection": collection, "id": str(record_id)},
        )


class UnknownCollectionError(JournalException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "UNKNOWN_COLLECTION"

    def __init__(self, name: str):
        super().__init__(
            message=f"Unknown collection '{name}'.",
            details={"collection": name},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def journal_exception_handler(request: Request, exc: JournalException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
