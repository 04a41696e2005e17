"""
Module: ledger_kernel.db.base
Responsibility: Declarative base and column types for the ledger ORM models.
    Provides the UUID primary key convention and an exact decimal column type.
Architecture position: Kernel > DB.  Lowest-level import target within the
    persistence boundary.  MUST NOT import from models/, selectors/, domain/,
    or outer layers.

Invariants enforced:
    - Decimal precision: money and rate columns are ExactDecimal, which is
      Numeric(38, 9) on PostgreSQL and a string on SQLite, so amounts never
      round-trip through float.
    - UUID primary keys stored as String(36) for portability.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, Date, DateTime, Numeric, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID stored as its 36-character string form."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return value if isinstance(value, PyUUID) else PyUUID(str(value))
        return None


class ExactDecimal(TypeDecorator):
    """
    Decimal column that never passes through float.

    Contract:
        Numeric(precision, scale) where the dialect stores decimals natively;
        on SQLite (no native decimal) the value is stored as its string form.

    Guarantees:
        - process_result_value always returns a Decimal (or None).
    """

    impl = Numeric
    cache_ok = True

    def __init__(self, precision: int = 38, scale: int = 9):
        super().__init__(precision, scale)
        self.precision = precision
        self.scale = scale

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(self.precision + 2))
        return dialect.type_descriptor(Numeric(self.precision, self.scale))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        if dialect.name == "sqlite":
            return str(value)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value if isinstance(value, Decimal) else Decimal(str(value))


class Base(DeclarativeBase):
    """
    Declarative base for the ledger tables.

    Guarantees:
        - id is a uuid4-generated UUID stored as String(36).
        - Decimal maps to ExactDecimal(38, 9).
        - int maps to BigInteger.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: ExactDecimal(38, 9),
        date: Date(),
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )


UUID = PyUUID
