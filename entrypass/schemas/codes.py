"""Code Schemas — Pydantic models with field-level validation for the pass API.

Invariants:
    - CodeRequest.code: stripped, 1-128 chars after stripping
    - ImportRequest.lines: raw lines, validated per line by the engine (bad lines are
      skipped, never rejected as a whole)
    - Response status fields use the wire strings from core/domain_types enums

Design Decisions:
    - Literal types for status fields: response shape documented in OpenAPI without extra enums
    - field_validator for side-effect-free transforms (strip) — keeps models pure
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from entrypass.core.domain_types import MAX_CODE_LENGTH


class CodeRequest(BaseModel):
    """A single scanned or typed code."""
    code: str = Field(min_length=1, max_length=MAX_CODE_LENGTH + 64)

    @field_validator("code")
    @classmethod
    def strip_code(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("code cannot be empty or whitespace")
        if len(v) > MAX_CODE_LENGTH:
            raise ValueError(f"code cannot exceed {MAX_CODE_LENGTH} characters")
        return v


class ActivateResponse(BaseModel):
    code: str
    status: Literal["Activated", "AlreadyActivated", "NotFound"]
    activated_at: datetime | None = None


class VerifyResponse(BaseModel):
    code: str
    status: Literal["Unused", "Active", "Expired", "Used", "NotFound"]


class ConfirmUseResponse(BaseModel):
    code: str
    status: Literal["Confirmed", "Rejected"]
    reason: Literal["AlreadyUsed", "NotActivated", "Expired", "NotFound"] | None = None


class ImportRequest(BaseModel):
    """Bulk provisioning — one code per line, optional leading header."""
    lines: list[str] = Field(max_length=100_000)
    detect_header: bool = True


class ImportResponse(BaseModel):
    imported: int
    skipped: int


class PassResponse(BaseModel):
    """Polling view of one pass, for the guest surface countdown."""
    code: str
    status: Literal["Unused", "Active", "Expired", "Used", "NotFound"]
    activated_at: datetime | None = None
    used_at: datetime | None = None
    expires_at: datetime | None = None
    remaining_seconds: int | None = None
