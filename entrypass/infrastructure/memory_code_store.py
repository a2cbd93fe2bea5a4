"""In-Memory Code Store — process-local CodeStore for tests and single-process runs.

Invariants:
    - Every primitive runs entirely under one threading.Lock: the check and the write
      of a compare-and-set can never interleave with another caller's
    - Records are immutable snapshots; a transition replaces the dict entry
    - Same observable semantics as SqlCodeStore (trim, skip empty, duplicate = no-op)

Design Decisions:
    - threading.Lock over asyncio.Lock: no await inside the critical section, and the store
      stays correct when driven from worker threads as well as from the event loop
    - Deliberate exception to durable storage (ADR: state lost on restart, acceptable for
      demos and race tests — select with STORE_BACKEND=memory)
"""

import threading
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime, timezone

from entrypass.core.derive_status import as_utc
from entrypass.core.domain_types import (
    ActivationOutcome, ActivationResult, CodeRecord, CreateManyResult,
    MarkUsedOutcome, MAX_CODE_LENGTH, PassCode,
)
from entrypass.core.normalize_import import normalize_code


class InMemoryCodeStore:
    """Dict-backed store keyed by code."""

    def __init__(self) -> None:
        self._records: dict[str, CodeRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    async def get(self, code: str) -> CodeRecord | None:
        with self._lock:
            return self._records.get(code)

    async def try_create_many(self, codes: Iterable[str]) -> CreateManyResult:
        created = 0
        skipped = 0
        now = datetime.now(timezone.utc)
        with self._lock:
            for raw in codes:
                code = normalize_code(raw)
                if not code or len(code) > MAX_CODE_LENGTH or code in self._records:
                    skipped += 1
                    continue
                self._records[code] = CodeRecord(code=PassCode(code), created_at=now)
                created += 1
        return CreateManyResult(created=created, skipped=skipped)

    async def try_activate(self, code: str, now: datetime) -> ActivationResult:
        with self._lock:
            record = self._records.get(code)
            if record is None:
                return ActivationResult(ActivationOutcome.NOT_FOUND)
            if record.activated_at is not None:
                return ActivationResult(ActivationOutcome.ALREADY_ACTIVATED, record)
            updated = replace(record, activated_at=as_utc(now))
            self._records[code] = updated
            return ActivationResult(ActivationOutcome.ACTIVATED, updated)

    async def try_mark_used(self, code: str, now: datetime) -> MarkUsedOutcome:
        with self._lock:
            record = self._records.get(code)
            if record is None:
                return MarkUsedOutcome.NOT_FOUND
            if record.used_at is not None:
                return MarkUsedOutcome.ALREADY_USED
            self._records[code] = replace(record, used_at=as_utc(now))
            return MarkUsedOutcome.SUCCESS

    async def health_check(self) -> bool:
        return True
