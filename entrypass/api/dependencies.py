"""Route Dependencies — engine and clock providers for FastAPI Depends().

Invariants:
    - The engine comes from app.state (built in lifespan), never a module global
    - The wall clock is read here, at the boundary, and nowhere in core/ or services/

Design Decisions:
    - Clock as a dependency: tests override get_now to pin time (ADR: deterministic expiry tests)
"""

from datetime import datetime, timezone

from fastapi import Request

from entrypass.services.lifecycle_engine import LifecycleEngine


def get_engine(request: Request) -> LifecycleEngine:
    engine = getattr(request.app.state, "lifecycle_engine", None)
    if engine is None:
        raise RuntimeError("Lifecycle engine not initialized")
    return engine


def get_now() -> datetime:
    return datetime.now(timezone.utc)
