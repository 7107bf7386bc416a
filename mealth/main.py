"""
Mealth FastAPI application.

Entry point for the API server.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from livesync.seed import SeedOnceGuard
from livesync.store import DocumentStore, MemoryDocumentStore
from mealth import config, db
from mealth.routes import live as live_routes
from mealth.routes import session as session_routes

logger = logging.getLogger(__name__)


async def open_store() -> DocumentStore:
    """Build the document store selected by STORE_BACKEND."""
    if config.settings.STORE_BACKEND == "postgres":
        from livesync.postgres_store import PostgresDocumentStore

        store = PostgresDocumentStore(await db.init_pool())
        await store.start()
        return store
    return MemoryDocumentStore()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Handles startup and shutdown logic:
    - Configure logging
    - Open the document store (and the database pool behind it)
    - Close both on shutdown
    """
    logging.basicConfig(
        level=config.settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app.state.store = await open_store()
    # Shared so public collections are seeded once per process, not per connection
    app.state.seed_guard = SeedOnceGuard()
    logger.info("main: document store ready backend=%s", config.settings.STORE_BACKEND)

    yield

    await app.state.seed_guard.wait()
    await app.state.store.close()
    await db.close_pool()
    logger.info("main: document store closed")


app = FastAPI(
    title="Mealth",
    docs_url=None,
    redoc_url=None,
    lifespan=lifespan,
)

# Register routes
app.include_router(session_routes.router)
app.include_router(live_routes.router)


@app.get("/health")
async def health():
    """Health check endpoint for uptime monitoring."""
    return {"status": "ok"}
