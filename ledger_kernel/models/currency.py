"""
Module: ledger_kernel.models.currency
Responsibility: ORM persistence for the currency table.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    None at the row level.  Table-wide rules (exactly one base currency,
    positive rates) are validated when the selector builds a CurrencyTable.
"""

from decimal import Decimal

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base, ExactDecimal


class Currency(Base):
    """
    One currency and its rate relative to the base currency.

    ``exchange_rate_note`` holds the conversion direction ("multiply" or
    "divide"); it is NULL for the base currency.
    """

    __tablename__ = "currencies"

    code: Mapped[str] = mapped_column(String(3), nullable=False, unique=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    rate: Mapped[Decimal] = mapped_column(
        ExactDecimal(38, 18),
        nullable=False,
        default=Decimal("1"),
    )

    is_base: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    exchange_rate_note: Mapped[str | None] = mapped_column(String(10), nullable=True)

    def __repr__(self) -> str:
        return f"<Currency {self.code} rate={self.rate}>"
