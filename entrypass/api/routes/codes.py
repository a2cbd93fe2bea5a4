"""Code Routes — activate, verify, confirm-use, import and lookup for admission codes.

Invariants:
    - Every lifecycle outcome (including NotFound and Rejected) is HTTP 200 with a status field
    - Only StorageUnavailableError produces a non-2xx (503, via the global handler)
    - `now` is taken from get_now() once per request and passed down
    - Routes contain no lifecycle logic — they translate engine results to schemas

Design Decisions:
    - POST for verify (not GET): scanner payloads stay out of URLs and access logs
    - looks_like_code built from settings.code_pattern at the import surface, not in the engine
"""

from datetime import datetime

from fastapi import APIRouter, Depends

from entrypass.api.dependencies import get_engine, get_now
from entrypass.config import get_settings
from entrypass.core.domain_types import CodeStatus
from entrypass.core.normalize_import import pattern_predicate
from entrypass.schemas.codes import (
    ActivateResponse, CodeRequest, ConfirmUseResponse, ImportRequest,
    ImportResponse, PassResponse, VerifyResponse,
)
from entrypass.services.lifecycle_engine import LifecycleEngine

router = APIRouter(prefix="/api/v1/codes", tags=["codes"])


@router.post("/activate", response_model=ActivateResponse)
async def activate_code(
    body: CodeRequest,
    engine: LifecycleEngine = Depends(get_engine),
    now: datetime = Depends(get_now),
):
    """Guest claims a pass. Idempotent: a second call reports AlreadyActivated."""
    result = await engine.activate(body.code, now)
    return ActivateResponse(
        code=body.code,
        status=result.outcome.value,
        activated_at=result.record.activated_at if result.record else None,
    )


@router.post("/verify", response_model=VerifyResponse)
async def verify_code(
    body: CodeRequest,
    engine: LifecycleEngine = Depends(get_engine),
    now: datetime = Depends(get_now),
):
    """Scanner polls a pass status. No side effects."""
    status = await engine.verify(body.code, now)
    return VerifyResponse(code=body.code, status=status.value)


@router.post("/confirm-use", response_model=ConfirmUseResponse)
async def confirm_use(
    body: CodeRequest,
    engine: LifecycleEngine = Depends(get_engine),
    now: datetime = Depends(get_now),
):
    """Bouncer admits the bearer. Exactly one concurrent confirmation wins."""
    result = await engine.confirm_use(body.code, now)
    return ConfirmUseResponse(
        code=body.code,
        status=result.outcome.value,
        reason=result.reason.value if result.reason else None,
    )


@router.post("/import", response_model=ImportResponse)
async def import_codes(
    body: ImportRequest,
    engine: LifecycleEngine = Depends(get_engine),
):
    """Provision codes from pre-split lines. Bad or duplicate lines are skipped."""
    looks_like_code = None
    if body.detect_header:
        looks_like_code = pattern_predicate(get_settings().code_pattern)
    result = await engine.bulk_import(body.lines, looks_like_code)
    return ImportResponse(imported=result.imported, skipped=result.skipped)


@router.get("/{code}", response_model=PassResponse)
async def get_pass(
    code: str,
    engine: LifecycleEngine = Depends(get_engine),
    now: datetime = Depends(get_now),
):
    """Pass details with countdown for the guest surface."""
    view = await engine.lookup(code, now)
    if view is None:
        return PassResponse(code=code, status=CodeStatus.NOT_FOUND.value)
    return PassResponse(
        code=view.record.code,
        status=view.status.value,
        activated_at=view.record.activated_at,
        used_at=view.record.used_at,
        expires_at=view.expires_at,
        remaining_seconds=view.remaining_seconds,
    )
