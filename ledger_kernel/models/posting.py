"""
Module: ledger_kernel.models.posting
Responsibility: ORM persistence for posting groups (gl_headers), their lines
    (gl_transactions) and the transaction type catalogue (tbl_trans_type).
Architecture position: Kernel > Models.  May import from db/base.py only.
    Read by selectors/snapshot_selector.py; this engine never writes these
    tables outside of test fixtures.

Invariants enforced:
    None at the database level.  Line single-sidedness, stored-rate
    conversion and group balance are checked per report by the domain
    invariant checker, because stored rows may have been edited out of band.

Audit relevance:
    ``exchange_rate`` on each line is the rate snapshot taken at posting
    time; historical reports convert with it, never with the current
    currency table rate.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import BigInteger, Date, DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import Base, ExactDecimal, UUIDString


class HeaderStatus(str, Enum):
    """Stored lifecycle status of a gl_headers row."""

    DRAFT = "draft"
    POSTED = "posted"
    VOID = "void"


class TransactionType(Base):
    """Transaction type catalogue (e.g. GENT, IPTC, BANK)."""

    __tablename__ = "tbl_trans_type"

    transaction_type_code: Mapped[str] = mapped_column(
        String(20), nullable=False, unique=True,
    )

    description: Mapped[str | None] = mapped_column(String(200), nullable=True)

    def __repr__(self) -> str:
        return f"<TransactionType {self.transaction_type_code}>"


class GLHeader(Base):
    """
    Posting group header.

    ``seq`` is the creation order and breaks ties between headers sharing a
    transaction date.
    """

    __tablename__ = "gl_headers"

    __table_args__ = (
        Index("idx_gl_header_date", "transaction_date"),
        Index("idx_gl_header_status", "status"),
        Index("idx_gl_header_order", "transaction_date", "seq"),
    )

    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)

    description: Mapped[str] = mapped_column(String(1000), nullable=False, default="")

    status: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default=HeaderStatus.DRAFT.value,
    )

    type_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("tbl_trans_type.id"),
        nullable=True,
    )

    seq: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    transaction_type: Mapped["TransactionType | None"] = relationship(lazy="joined")

    lines: Mapped[list["GLTransaction"]] = relationship(
        back_populates="header",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="GLTransaction.line_no",
    )

    def __repr__(self) -> str:
        return f"<GLHeader {self.id} {self.transaction_date} status={self.status}>"


class GLTransaction(Base):
    """
    One ledger line.

    Base amounts are ``debit``/``credit``; document-currency amounts are
    ``debit_doc_currency``/``credit_doc_currency`` in ``currency_id``.
    """

    __tablename__ = "gl_transactions"

    __table_args__ = (
        Index("idx_gl_txn_header", "header_id"),
        Index("idx_gl_txn_account", "account_id"),
    )

    header_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("gl_headers.id"),
        nullable=False,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("chart_of_accounts.id"),
        nullable=False,
    )

    currency_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("currencies.id"),
        nullable=False,
    )

    debit: Mapped[Decimal] = mapped_column(ExactDecimal(38, 9), nullable=False, default=Decimal("0"))
    credit: Mapped[Decimal] = mapped_column(ExactDecimal(38, 9), nullable=False, default=Decimal("0"))
    debit_doc_currency: Mapped[Decimal] = mapped_column(
        ExactDecimal(38, 9), nullable=False, default=Decimal("0"),
    )
    credit_doc_currency: Mapped[Decimal] = mapped_column(
        ExactDecimal(38, 9), nullable=False, default=Decimal("0"),
    )

    exchange_rate: Mapped[Decimal] = mapped_column(
        ExactDecimal(38, 18), nullable=False, default=Decimal("1"),
    )

    line_no: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    header: Mapped["GLHeader"] = relationship(back_populates="lines")

    def __repr__(self) -> str:
        return (
            f"<GLTransaction {self.account_id} "
            f"Dr {self.debit} Cr {self.credit}>"
        )
