"""Lifecycle Engine — guarded pass transitions on top of an injected CodeStore.

Invariants:
    - The engine never mutates a record; every write goes through a store compare-and-set
    - `now` is always a parameter — the engine never reads the clock
    - activate never resets activated_at; confirm_use only writes when status is Active
    - Exactly one of N concurrent confirm_use calls on an Active code returns Confirmed;
      the store's CAS decides, the pre-check only types the rejection reason
    - StorageUnavailableError propagates untouched — no implicit retry, no assumed success;
      every operation logs it at ERROR with its operation name first
    - bulk_import: imported + skipped == len(lines)

Design Decisions:
    - Optimistic check, atomic write, reconcile on conflict (over a per-code lock):
      correctness comes from per-key atomicity in the store, not in-process serialization
    - Store injected in the constructor, never a module-level singleton (ADR: race tests
      swap in a yielding test double)
"""

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timedelta

from entrypass.core.derive_status import (
    as_utc, build_pass_view, derive_status, rejection_reason_for,
)
from entrypass.core.domain_types import (
    ActivationResult, CodeRecord, CodeStatus, ConfirmResult, ImportResult,
    MarkUsedOutcome, PassView, RejectionReason, VALIDITY_WINDOW,
)
from entrypass.core.normalize_import import LooksLikeCode, normalize_code, prepare_import
from entrypass.core.repository_protocols import CodeStore
from entrypass.core.errors import StorageUnavailableError

logger = logging.getLogger(__name__)


class LifecycleEngine:
    """Status derivation and the three guarded operations for admission codes."""

    def __init__(self, store: CodeStore, window: timedelta = VALIDITY_WINDOW):
        self.store = store
        self.window = window

    def derive_status(self, record: CodeRecord | None, now: datetime) -> CodeStatus:
        return derive_status(record, now, self.window)

    async def activate(self, code: str, now: datetime) -> ActivationResult:
        """Claim a pass. Activated and AlreadyActivated both mean 'show the pass'."""
        code = normalize_code(code)
        with _storage_failure_logged("activate", code):
            result = await self.store.try_activate(code, as_utc(now))
        if result.performed_transition:
            logger.info(
                "Pass activated",
                extra={"code": code, "outcome": result.outcome.value},
            )
        else:
            logger.info(
                f"Activation not performed: {result.outcome.value}",
                extra={"code": code, "outcome": result.outcome.value},
            )
        return result

    async def verify(self, code: str, now: datetime) -> CodeStatus:
        """Read-only status check. Safe to poll."""
        code = normalize_code(code)
        with _storage_failure_logged("verify", code):
            record = await self.store.get(code)
        return self.derive_status(record, now)

    async def lookup(self, code: str, now: datetime) -> PassView | None:
        """Record plus derived status and countdown, or None when unknown."""
        code = normalize_code(code)
        with _storage_failure_logged("lookup", code):
            record = await self.store.get(code)
        if record is None:
            return None
        return build_pass_view(record, now, self.window)

    async def confirm_use(self, code: str, now: datetime) -> ConfirmResult:
        """Admit the bearer: check Active, then compare-and-set used_at."""
        code = normalize_code(code)
        with _storage_failure_logged("confirm_use", code):
            status = self.derive_status(await self.store.get(code), now)
            reason = rejection_reason_for(status)
            if reason is not None:
                return self._rejected(code, reason)

            outcome = await self.store.try_mark_used(code, as_utc(now))

        if outcome == MarkUsedOutcome.ALREADY_USED:
            # Another confirmation won between our status check and the write
            return self._rejected(code, RejectionReason.ALREADY_USED)
        if outcome == MarkUsedOutcome.NOT_FOUND:
            return self._rejected(code, RejectionReason.NOT_FOUND)

        logger.info("Entry confirmed", extra={"code": code, "outcome": "Confirmed"})
        return ConfirmResult.confirmed()

    async def bulk_import(
        self,
        lines: Sequence[str],
        looks_like_code: LooksLikeCode | None = None,
    ) -> ImportResult:
        """Provision codes. Duplicates (in input or in storage) count as skipped."""
        prepared = prepare_import(lines, looks_like_code)
        if prepared.header is not None:
            logger.info(f"Discarded header line {prepared.header!r}")

        created = 0
        if prepared.codes:
            with _storage_failure_logged("bulk_import"):
                batch = await self.store.try_create_many(prepared.codes)
            created = batch.created

        result = ImportResult(imported=created, skipped=len(lines) - created)
        logger.info(
            f"Imported {result.imported} codes, skipped {result.skipped}",
            extra={"imported": result.imported, "skipped": result.skipped},
        )
        return result

    def _rejected(self, code: str, reason: RejectionReason) -> ConfirmResult:
        logger.info(
            f"Entry rejected: {reason.value}",
            extra={"code": code, "outcome": "Rejected", "reason": reason.value},
        )
        return ConfirmResult.rejected(reason)


@contextmanager
def _storage_failure_logged(operation: str, code: str | None = None) -> Iterator[None]:
    """Log a StorageUnavailableError at ERROR with its operation, then re-raise."""
    try:
        yield
    except StorageUnavailableError as e:
        logger.error(
            f"{operation} failed: storage unavailable",
            extra={"code": code, "operation": operation, "error_code": e.code},
        )
        raise
