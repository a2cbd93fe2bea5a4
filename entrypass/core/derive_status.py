"""Status Derivation — pure mapping from (record, now) to the visible pass status.

Invariants:
    - All functions are PURE: no IO, no async, no clock reads
    - Decision order is fixed, first match wins:
        absent → NotFound, used_at → Used, no activated_at → Unused,
        now - activated_at >= window → Expired, otherwise Active
    - Used dominates Expired; the expiry boundary is inclusive (>=)
    - Naive datetimes are interpreted as UTC

Design Decisions:
    - Expired is derived, never stored: time passing needs no write
    - `now` always injected by the caller (ADR: deterministic, testable without freezegun)
"""

from datetime import datetime, timedelta, timezone

from entrypass.core.domain_types import (
    CodeRecord, CodeStatus, PassView, RejectionReason, VALIDITY_WINDOW,
)


def as_utc(moment: datetime) -> datetime:
    """Normalize to an aware UTC datetime (SQLite hands back naive values)."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def derive_status(
    record: CodeRecord | None,
    now: datetime,
    window: timedelta = VALIDITY_WINDOW,
) -> CodeStatus:
    if record is None:
        return CodeStatus.NOT_FOUND
    if record.used_at is not None:
        return CodeStatus.USED
    if record.activated_at is None:
        return CodeStatus.UNUSED
    if as_utc(now) - as_utc(record.activated_at) >= window:
        return CodeStatus.EXPIRED
    return CodeStatus.ACTIVE


def rejection_reason_for(status: CodeStatus) -> RejectionReason | None:
    """Map a non-Active status to the reason confirm_use reports. None for Active."""
    return {
        CodeStatus.NOT_FOUND: RejectionReason.NOT_FOUND,
        CodeStatus.UNUSED: RejectionReason.NOT_ACTIVATED,
        CodeStatus.EXPIRED: RejectionReason.EXPIRED,
        CodeStatus.USED: RejectionReason.ALREADY_USED,
    }.get(status)


def build_pass_view(
    record: CodeRecord, now: datetime, window: timedelta = VALIDITY_WINDOW,
) -> PassView:
    """Record + derived status + countdown. Countdown is None until activated."""
    status = derive_status(record, now, window)
    if record.activated_at is None:
        return PassView(record=record, status=status)
    expires_at = as_utc(record.activated_at) + window
    remaining = 0
    if status == CodeStatus.ACTIVE:
        remaining = int((expires_at - as_utc(now)).total_seconds())
    return PassView(
        record=record, status=status,
        expires_at=expires_at, remaining_seconds=remaining,
    )
