"""Boundary Protocols — contract between the lifecycle engine and the code store.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - The store is the only component that mutates a CodeRecord
    - try_activate / try_mark_used behave as single compare-and-set operations per key
    - Absence is returned as a value (None / NOT_FOUND), never raised
    - Any failure to complete a call is raised as StorageUnavailableError

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy (ADR: ExMA anti-pattern)
    - Async in Protocol: implementations do IO; the engine awaits them around pure logic
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

from entrypass.core.domain_types import (
    ActivationResult, CodeRecord, CreateManyResult, MarkUsedOutcome,
)


class CodeStore(Protocol):
    """Contract for code record persistence — implemented by shell."""

    async def get(self, code: str) -> CodeRecord | None: ...

    async def try_create_many(self, codes: Iterable[str]) -> CreateManyResult: ...

    async def try_activate(self, code: str, now: datetime) -> ActivationResult: ...

    async def try_mark_used(self, code: str, now: datetime) -> MarkUsedOutcome: ...

    async def health_check(self) -> bool: ...
