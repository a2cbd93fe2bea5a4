"""ORM Models — SQLAlchemy declarative models.

Invariants:
    - All models inherit from Base (db/base.py)

Design Decisions:
    - One file per entity for locality (ADR: ExMA max 3-4 files to understand a feature)
    - Models imported here so Base.metadata is complete before create_all / autogenerate
"""

from entrypass.models.code_record import CodeRecordModel  # noqa: F401
