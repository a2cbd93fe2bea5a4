"""Domain Types — records, statuses and typed outcomes for the pass lifecycle.

Invariants:
    - CodeRecord is immutable (frozen dataclass) — a snapshot, never mutated in place
    - Every outcome an operation can produce is an Enum member — no raw string matching
    - NotFound is a value in every outcome enum, never an exception
    - Enum values are the exact strings exposed over the wire

Design Decisions:
    - str Enums: serialize to JSON without custom encoders (ADR: uniform response shape)
    - Frozen dataclasses over ORM objects in core: the engine never sees a session-bound row
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

PassCode = NewType("PassCode", str)

# Storage key width (code_records.code)
MAX_CODE_LENGTH = 128

# Admission window measured from activation
VALIDITY_WINDOW = timedelta(minutes=15)


# ─── Enums ───────────────────────────────────────────────────────

class CodeStatus(str, Enum):
    """Externally visible status, derived from a record and the current time."""
    NOT_FOUND = "NotFound"
    UNUSED = "Unused"
    ACTIVE = "Active"
    EXPIRED = "Expired"
    USED = "Used"


class ActivationOutcome(str, Enum):
    """Result of an activation attempt."""
    ACTIVATED = "Activated"
    ALREADY_ACTIVATED = "AlreadyActivated"
    NOT_FOUND = "NotFound"


class MarkUsedOutcome(str, Enum):
    """Result of the store-level used_at compare-and-set."""
    SUCCESS = "Success"
    ALREADY_USED = "AlreadyUsed"
    NOT_FOUND = "NotFound"


class ConfirmOutcome(str, Enum):
    CONFIRMED = "Confirmed"
    REJECTED = "Rejected"


class RejectionReason(str, Enum):
    """Why a confirmation was refused."""
    ALREADY_USED = "AlreadyUsed"
    NOT_ACTIVATED = "NotActivated"
    EXPIRED = "Expired"
    NOT_FOUND = "NotFound"


# ─── Records & Results ───────────────────────────────────────────

@dataclass(frozen=True)
class CodeRecord:
    """One admission code. Timestamps are timezone-aware UTC."""
    code: PassCode
    activated_at: datetime | None = None
    used_at: datetime | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class ActivationResult:
    """Activated / AlreadyActivated carry the stored record; NotFound carries None."""
    outcome: ActivationOutcome
    record: CodeRecord | None = None

    @property
    def performed_transition(self) -> bool:
        return self.outcome == ActivationOutcome.ACTIVATED


@dataclass(frozen=True)
class ConfirmResult:
    outcome: ConfirmOutcome
    reason: RejectionReason | None = None

    @classmethod
    def confirmed(cls) -> "ConfirmResult":
        return cls(ConfirmOutcome.CONFIRMED)

    @classmethod
    def rejected(cls, reason: RejectionReason) -> "ConfirmResult":
        return cls(ConfirmOutcome.REJECTED, reason)


@dataclass(frozen=True)
class CreateManyResult:
    """Store-level counts for a batch of creations."""
    created: int = 0
    skipped: int = 0


@dataclass(frozen=True)
class ImportResult:
    """Engine-level counts: imported + skipped == number of input lines."""
    imported: int = 0
    skipped: int = 0


@dataclass(frozen=True)
class PassView:
    """Read model for polling surfaces: record plus its derived status."""
    record: CodeRecord
    status: CodeStatus
    expires_at: datetime | None = None
    remaining_seconds: int | None = None
