"""FastAPI application factory."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from tos.api.errors import install_error_handlers
from tos.api.routes import health, tos as tos_routes
from tos.config import APP_VERSION, Settings, get_settings
from tos.db.engine import build_engine, init_store
from tos.store.base import RecordStore
from tos.store.fallback import FallbackRecordStore
from tos.store.memory_store import MemoryRecordStore
from tos.store.sql_store import SqlRecordStore

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> RecordStore:
    """SQL store for settings.database_url, wrapped with the in-memory fallback if enabled."""
    engine = build_engine(settings)
    try:
        init_store(engine)
    except Exception as exc:
        # The fallback keeps the API answering while the database is down
        logger.error("Failed to initialize database schema: %s", exc)

    store: RecordStore = SqlRecordStore(engine)
    if settings.use_memory_fallback:
        store = FallbackRecordStore(store, MemoryRecordStore.with_sample_data())
    return store


def create_app(
    store: Optional[RecordStore] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Build and return the FastAPI app.

    Args:
        store: record store to serve from. Built from settings when omitted.
        settings: defaults to get_settings().

    Run with: uvicorn tos.api.main:create_app --factory
    """
    settings = settings or get_settings()
    store = store or build_store(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "TOS API starting (environment=%s, database connected=%s)",
            settings.environment,
            store.ping(),
        )
        yield

    app = FastAPI(
        title="TOS Pile Status API",
        description="Ore storage pile status records with ranked stock id search",
        version=APP_VERSION,
        lifespan=lifespan,
    )
    app.state.store = store

    install_error_handlers(app, development=settings.is_development)
    app.include_router(health.router, tags=["health"])
    app.include_router(tos_routes.router, prefix="/tos", tags=["tos"])

    return app
