"""Relay API: FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map RelayError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized and cleanup scheduler started in the lifespan;
      on shutdown (SIGTERM via uvicorn) the scheduler stops before the pool closes

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
      (ADR: FastAPI 0.128)
    - Scheduler sessions come from the same DatabaseSessionManager as requests,
      so DB failures surface as DatabaseError in both paths
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from relay.api.error_handlers import register_error_handlers
from relay.api.routes import broadcasts, health, help_requests, invites, mailbox
from relay.config import get_settings
from relay.infrastructure.database import init_db
from relay.infrastructure.observability import setup_logging
from relay.services.cleanup_scheduler import CleanupScheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    scheduler = None
    if settings.cleanup_scheduler_enabled:
        scheduler = CleanupScheduler(manager.session, settings)
        scheduler.start()
    logger.info("Relay API started")
    yield
    logger.info("Relay API shutting down")
    if scheduler is not None:
        await scheduler.stop()
    await manager.dispose()


app = FastAPI(title="Relay API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Content-Type", "X-Group-Id"],
)

# Routes: explicit registration
app.include_router(health.router)
app.include_router(mailbox.router)
app.include_router(help_requests.router)
app.include_router(broadcasts.router)
app.include_router(invites.router)

register_error_handlers(app)
