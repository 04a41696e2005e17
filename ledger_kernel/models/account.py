"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for the chart of accounts and its
    subcategory labels.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import Base, UUIDString


class Subcategory(Base):
    """Grouping label shown next to accounts on listings."""

    __tablename__ = "subcategories"

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    def __repr__(self) -> str:
        return f"<Subcategory {self.name}>"


class ChartOfAccount(Base):
    """
    One account of the chart of accounts.

    Guarantees:
        - code is unique.
        - currency_id references the account's own (book) currency.

    Non-goals:
        - Account hierarchy; accounts are flat, grouped only by subcategory.
    """

    __tablename__ = "chart_of_accounts"

    __table_args__ = (
        Index("idx_coa_code", "code", unique=True),
        Index("idx_coa_flags", "is_cash_book", "is_bank"),
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False)

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    currency_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("currencies.id"),
        nullable=False,
    )

    subcategory_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("subcategories.id"),
        nullable=True,
    )

    is_cash_book: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_bank: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    zakat_eligible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    subcategory: Mapped["Subcategory | None"] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return f"<ChartOfAccount {self.code}: {self.name}>"
