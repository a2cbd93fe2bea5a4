"""CodeRecord ORM — one row per admission code.

Invariants:
    - code is the primary key: case-sensitive, immutable, unique
    - activated_at / used_at are NULL until their one-way transition
    - Rows are only mutated through the guarded UPDATEs in SqlCodeStore

Design Decisions:
    - Natural key over surrogate UUID: every lookup is by code, uniqueness is the invariant
    - No status column: status is derived from timestamps + now (expiry needs no write)
"""

from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from entrypass.db.base import Base


class CodeRecordModel(Base):
    """Persistent admission code."""
    __tablename__ = "code_records"

    code: Mapped[str] = mapped_column(String(128), primary_key=True)
    activated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    used_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
