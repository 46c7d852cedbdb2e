import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from journal.core.config import Settings, settings as default_settings
from journal.core.errors import (
    JournalException,
    journal_exception_handler,
    validation_exception_handler,
    unhandled_exception_handler,
)
from journal.core.events import ChangeNotifier
from journal.db.factory import build_backend
from journal.routers import chat as chat_router
from journal.routers import collections as collections_router
from journal.routers import journal as journal_router
from journal.routers import maintenance as maintenance_router
from journal.services.reconcile import CleanupPolicy
from journal.services.store import RecordStore

logger = logging.getLogger(__name__)


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    app_settings = app_settings or default_settings
    logging.basicConfig(
        level=app_settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        notifier = ChangeNotifier()
        backend = build_backend(app_settings, notifier=notifier)
        await backend.initialize()
        app.state.settings = app_settings
        app.state.notifier = notifier
        app.state.store = RecordStore(
            backend,
            cleanup_policy=CleanupPolicy.from_settings(app_settings),
        )
        logger.info("Journal store started (backend=%s, env=%s)", backend.name, app_settings.APP_ENV)
        try:
            yield
        finally:
            await backend.close()
            logger.info("Journal store stopped")

    app = FastAPI(
        title="AI Journal Store API",
        description=(
            "**Persistence and reconciliation layer for AI-extracted journal data.**\n\n"
            "Stores personal info, preferences, milestones, moods, thoughts, food records "
            "and chat history, keeping one current record per logical fact.\n\n"
            "All error responses follow the `{code, message, details}` envelope."
        ),
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers (most specific first) ---
    app.add_exception_handler(JournalException, journal_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --- Routers ---
    app.include_router(collections_router.router)
    app.include_router(chat_router.router)
    app.include_router(journal_router.router)
    app.include_router(maintenance_router.router)

    @app.get("/health", tags=["health"], summary="Health check")
    async def health(request: Request):
        """
        Returns `{"status": "ok", "storage": "ok"}` when the backend is
        initialized. Returns HTTP 503 otherwise.
        """
        store: RecordStore = request.app.state.store
        if not store.backend.is_ready:
            return JSONResponse(
                status_code=503,
                content={"status": "error", "storage": "uninitialized"},
            )
        return {
            "status": "ok",
            "storage": "ok",
            "backend": store.backend.name,
            "env": app_settings.APP_ENV,
        }

    return app


app = create_app()
