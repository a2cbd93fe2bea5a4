"""EntryPass API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery — ExMA anti-pattern)
    - Global error handlers map EntryPassError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Code store and lifecycle engine built on startup via lifespan, held on app.state

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - auto_create_schema only for local SQLite / demos; deployments run alembic upgrade head
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from entrypass.api.error_handlers import register_error_handlers
from entrypass.api.routes import codes, health
from entrypass.config import get_settings
from entrypass.db.base import Base
from entrypass.infrastructure.database import init_db
from entrypass.infrastructure.observability import setup_logging
from entrypass.services.store_factory import build_engine
import entrypass.models  # noqa: F401

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = None
    if settings.store_backend == "sql":
        db = init_db(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )
        if settings.auto_create_schema:
            async with db.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
    app.state.lifecycle_engine = build_engine(settings, db)
    logger.info(f"EntryPass API started (store={settings.store_backend})")
    yield
    if db is not None:
        await db.dispose()
    logger.info("EntryPass API shutting down")


app = FastAPI(
    title="EntryPass API", version="1.0.0", lifespan=lifespan,
)

# CORS — configured from settings, not hardcoded
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Routes — explicit registration (ExMA: no convention-over-config)
app.include_router(health.router)
app.include_router(codes.router)
