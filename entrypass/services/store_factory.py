"""Store Factory — builds the configured CodeStore and the LifecycleEngine around it.

Invariants:
    - Exactly one engine per application instance, held on app.state (not a module global)
    - STORE_BACKEND=sql requires an initialized DatabaseSessionManager

Design Decisions:
    - Explicit factory over DI container: two backends, one switch (ADR: ExMA no magic)
"""

import logging

from entrypass.config import Settings
from entrypass.core.repository_protocols import CodeStore
from entrypass.infrastructure.database import DatabaseSessionManager
from entrypass.infrastructure.memory_code_store import InMemoryCodeStore
from entrypass.infrastructure.sql_code_store import SqlCodeStore
from entrypass.services.lifecycle_engine import LifecycleEngine

logger = logging.getLogger(__name__)


def build_code_store(
    settings: Settings, db: DatabaseSessionManager | None = None,
) -> CodeStore:
    if settings.store_backend == "memory":
        logger.warning("Using in-memory code store — records are lost on restart")
        return InMemoryCodeStore()
    if db is None:
        raise RuntimeError("Database not initialized")
    return SqlCodeStore(db, batch_size=settings.import_batch_size)


def build_engine(
    settings: Settings, db: DatabaseSessionManager | None = None,
) -> LifecycleEngine:
    return LifecycleEngine(
        build_code_store(settings, db), window=settings.validity_window,
    )
