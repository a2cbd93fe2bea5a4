"""SQL Code Store — CodeStore implementation on SQLAlchemy async (PostgreSQL / SQLite).

Invariants:
    - Compare-and-set is a single guarded UPDATE: `... WHERE code = :c AND <field> IS NULL`
      — the database row lock decides the winner, the returned row count reports it
    - The read-back after a lost UPDATE only types the loss: a row whose field is still NULL
      (created after the UPDATE ran) is reported as NotFound, never as "already"
    - Creation is `INSERT ... ON CONFLICT (code) DO NOTHING RETURNING code`: duplicates are
      no-ops, never errors, never overwrites
    - One short session (transaction) per primitive; import batches commit per chunk
    - Timestamps written as UTC; naive values read back are interpreted as UTC

Design Decisions:
    - Guarded UPDATE over SELECT ... FOR UPDATE: one round-trip, no lock held across awaits
      (ADR: optimistic check, atomic write)
    - RETURNING over rowcount: rowcount is unreliable for multi-row inserts on some drivers
    - Only dialects with ON CONFLICT + RETURNING are accepted (postgresql, sqlite >= 3.35)
"""

import logging
from collections.abc import Iterable, Iterator
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from entrypass.core.derive_status import as_utc
from entrypass.core.domain_types import (
    ActivationOutcome, ActivationResult, CodeRecord, CreateManyResult,
    MarkUsedOutcome, MAX_CODE_LENGTH, PassCode,
)
from entrypass.core.normalize_import import normalize_code
from entrypass.infrastructure.database import DatabaseSessionManager
from entrypass.models.code_record import CodeRecordModel

logger = logging.getLogger(__name__)

_INSERT_BY_DIALECT = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def to_record(row: CodeRecordModel) -> CodeRecord:
    """Detach an ORM row into an immutable core record."""
    return CodeRecord(
        code=PassCode(row.code),
        activated_at=as_utc(row.activated_at) if row.activated_at else None,
        used_at=as_utc(row.used_at) if row.used_at else None,
        created_at=as_utc(row.created_at) if row.created_at else None,
    )


def _chunks(items: list[str], size: int) -> Iterator[list[str]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


class SqlCodeStore:
    """Durable code store. Safe to share across requests; holds no per-call state."""

    def __init__(self, db: DatabaseSessionManager, batch_size: int = 500):
        insert_fn = _INSERT_BY_DIALECT.get(db.dialect_name)
        if insert_fn is None:
            raise ValueError(
                f"Unsupported database dialect for code store: {db.dialect_name}",
            )
        self._db = db
        self._insert = insert_fn
        self._batch_size = batch_size

    async def get(self, code: str) -> CodeRecord | None:
        async with self._db.session() as db:
            row = await self._select(db, code)
            return to_record(row) if row else None

    async def try_create_many(self, codes: Iterable[str]) -> CreateManyResult:
        unique: dict[str, None] = {}
        skipped = 0
        for raw in codes:
            code = normalize_code(raw)
            if not code or len(code) > MAX_CODE_LENGTH or code in unique:
                skipped += 1
                continue
            unique[code] = None

        created = 0
        now = datetime.now(timezone.utc)
        async with self._db.session() as db:
            for chunk in _chunks(list(unique), self._batch_size):
                stmt = (
                    self._insert(CodeRecordModel)
                    .values([{"code": c, "created_at": now} for c in chunk])
                    .on_conflict_do_nothing(index_elements=["code"])
                    .returning(CodeRecordModel.code)
                )
                result = await db.execute(stmt)
                inserted = len(result.all())
                await db.commit()
                created += inserted
                skipped += len(chunk) - inserted
        logger.debug(
            f"Created {created} code records, skipped {skipped}",
            extra={"imported": created, "skipped": skipped},
        )
        return CreateManyResult(created=created, skipped=skipped)

    async def try_activate(self, code: str, now: datetime) -> ActivationResult:
        async with self._db.session() as db:
            result = await db.execute(
                update(CodeRecordModel)
                .where(
                    CodeRecordModel.code == code,
                    CodeRecordModel.activated_at.is_(None),
                )
                .values(activated_at=as_utc(now))
                .returning(CodeRecordModel)
                .execution_options(synchronize_session=False)
            )
            row = result.scalar_one_or_none()
            await db.commit()
            if row is not None:
                return ActivationResult(ActivationOutcome.ACTIVATED, to_record(row))

            # The guarded UPDATE decided; a row created after it is still unclaimed
            existing = await self._select(db, code)
            if existing is None or existing.activated_at is None:
                return ActivationResult(ActivationOutcome.NOT_FOUND)
            return ActivationResult(
                ActivationOutcome.ALREADY_ACTIVATED, to_record(existing),
            )

    async def try_mark_used(self, code: str, now: datetime) -> MarkUsedOutcome:
        async with self._db.session() as db:
            result = await db.execute(
                update(CodeRecordModel)
                .where(
                    CodeRecordModel.code == code,
                    CodeRecordModel.used_at.is_(None),
                )
                .values(used_at=as_utc(now))
                .returning(CodeRecordModel.code)
                .execution_options(synchronize_session=False)
            )
            won = result.scalar_one_or_none() is not None
            await db.commit()
            if won:
                return MarkUsedOutcome.SUCCESS

            existing = await self._select(db, code)
            if existing is None or existing.used_at is None:
                return MarkUsedOutcome.NOT_FOUND
            return MarkUsedOutcome.ALREADY_USED

    async def health_check(self) -> bool:
        return await self._db.health_check()

    @staticmethod
    async def _select(db: AsyncSession, code: str) -> CodeRecordModel | None:
        result = await db.execute(
            select(CodeRecordModel).where(CodeRecordModel.code == code),
        )
        return result.scalar_one_or_none()
