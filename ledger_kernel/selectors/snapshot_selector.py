"""
Module: ledger_kernel.selectors.snapshot_selector
Responsibility: Loads one read-consistent LedgerSnapshot from the store in a
    single batched fetch and converts ORM rows into frozen domain records.
Architecture position: Kernel > Selectors.  Imports models/ and domain/.
    The only read path report services use.

Invariants enforced:
    - One fetch per report: currencies, accounts, and every header (with its
      lines) matching the status and date filters.  No per-account queries.
    - Size bound checked with a COUNT before lines are materialised.
    - Read only: never adds, flushes or commits.

Failure modes:
    - SnapshotTooLargeError if the matching line count exceeds max_lines.
    - ConfigurationError if the stored currency table is invalid.
    - MissingReferenceError if a line points at an unknown account/currency.
    - SQLAlchemy errors propagate untouched.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from ledger_kernel.domain.ledger import (
    AccountRef,
    GroupStatus,
    LedgerSnapshot,
    Line,
    PostingGroup,
)
from ledger_kernel.domain.values import (
    ConversionDirection,
    CurrencyDefinition,
    CurrencyTable,
)
from ledger_kernel.exceptions import (
    ConfigurationError,
    InvalidReportParameterError,
    SnapshotTooLargeError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import ChartOfAccount
from ledger_kernel.models.currency import Currency
from ledger_kernel.models.posting import GLHeader, GLTransaction
from ledger_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.snapshot")


def _direction(row: Currency) -> ConversionDirection:
    if row.exchange_rate_note is None:
        return ConversionDirection.NONE
    try:
        return ConversionDirection(row.exchange_rate_note.strip().lower())
    except ValueError as e:
        raise ConfigurationError(
            f"unknown exchange_rate_note {row.exchange_rate_note!r}", row.code,
        ) from e


def _to_currency(row: Currency) -> CurrencyDefinition:
    return CurrencyDefinition(
        currency_id=row.id,
        code=row.code,
        rate=row.rate,
        is_base=row.is_base,
        direction=_direction(row),
        name=row.name or "",
    )


def _to_account(row: ChartOfAccount) -> AccountRef:
    return AccountRef(
        account_id=row.id,
        code=row.code,
        name=row.name,
        currency_id=row.currency_id,
        is_cash_book=row.is_cash_book,
        is_bank=row.is_bank,
        zakat_eligible=row.zakat_eligible,
        is_active=row.is_active,
        subcategory=row.subcategory.name if row.subcategory is not None else None,
    )


def _to_line(row: GLTransaction) -> Line:
    return Line(
        line_id=row.id,
        group_id=row.header_id,
        account_id=row.account_id,
        currency_id=row.currency_id,
        debit_base=row.debit or Decimal("0"),
        credit_base=row.credit or Decimal("0"),
        debit_doc=row.debit_doc_currency or Decimal("0"),
        credit_doc=row.credit_doc_currency or Decimal("0"),
        exchange_rate=row.exchange_rate,
        line_no=row.line_no,
        description=row.description,
    )


def _to_group(row: GLHeader) -> PostingGroup:
    txn_type = row.transaction_type
    return PostingGroup(
        group_id=row.id,
        transaction_date=row.transaction_date,
        status=GroupStatus(row.status),
        lines=tuple(_to_line(line) for line in row.lines),
        sequence=row.seq,
        description=row.description or "",
        type_code=txn_type.transaction_type_code if txn_type is not None else None,
        type_description=txn_type.description if txn_type is not None else None,
    )


class SnapshotSelector(BaseSelector):
    """
    Builds a LedgerSnapshot for one report run.

    Contract:
        ``load`` returns every account and currency, plus every header whose
        status is in ``status_filter`` and whose transaction date is on or
        before ``as_of`` (all dates when ``as_of`` is None). Earlier headers
        are included because opening balances need them.
    """

    def currency_table(self) -> CurrencyTable:
        rows = self.session.scalars(select(Currency).order_by(Currency.code)).all()
        return CurrencyTable.of(_to_currency(r) for r in rows)

    def accounts(self) -> tuple[AccountRef, ...]:
        rows = self.session.scalars(
            select(ChartOfAccount).order_by(ChartOfAccount.code)
        ).unique().all()
        return tuple(_to_account(r) for r in rows)

    def count_lines(
        self,
        status_filter: Iterable[GroupStatus],
        as_of: date | None = None,
    ) -> int:
        stmt = (
            select(func.count(GLTransaction.id))
            .join(GLHeader, GLTransaction.header_id == GLHeader.id)
            .where(GLHeader.status.in_([GroupStatus(s).value for s in status_filter]))
        )
        if as_of is not None:
            stmt = stmt.where(GLHeader.transaction_date <= as_of)
        return self.session.scalar(stmt) or 0

    def load(
        self,
        status_filter: Iterable[GroupStatus],
        as_of: date | None = None,
        max_lines: int | None = None,
    ) -> LedgerSnapshot:
        """
        Fetch one snapshot.

        Raises:
            InvalidReportParameterError: status_filter is empty.
            SnapshotTooLargeError: more than ``max_lines`` lines match.
        """
        statuses = frozenset(GroupStatus(s) for s in status_filter)
        if not statuses:
            raise InvalidReportParameterError(
                "status_filter", "at least one status must be selected",
            )

        if max_lines is not None:
            line_count = self.count_lines(statuses, as_of)
            if line_count > max_lines:
                raise SnapshotTooLargeError(line_count, max_lines)

        stmt = (
            select(GLHeader)
            .where(GLHeader.status.in_([s.value for s in statuses]))
            .options(selectinload(GLHeader.lines))
            .order_by(GLHeader.transaction_date, GLHeader.seq, GLHeader.id)
        )
        if as_of is not None:
            stmt = stmt.where(GLHeader.transaction_date <= as_of)
        headers = self.session.scalars(stmt).unique().all()

        snapshot = LedgerSnapshot.build(
            accounts=self.accounts(),
            groups=(_to_group(h) for h in headers),
            currencies=self.currency_table(),
            max_lines=max_lines,
        )

        logger.info(
            "snapshot_loaded",
            extra={
                "statuses": sorted(s.value for s in statuses),
                "as_of": as_of,
                "group_count": len(snapshot.groups),
                "line_count": snapshot.line_count,
            },
        )
        return snapshot
