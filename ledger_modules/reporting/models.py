"""
Reporting Domain Models (``ledger_modules.reporting.models``).

Responsibility
--------------
Frozen dataclass value objects for every report the engine produces:
trial balance, account ledger (general ledger, cash book, bank book),
commission extraction, zakat base, and the cash/bank book balance summary.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Built by the
pure functions in ``statements.py`` and returned by ``ReportingService``.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* Rows are ordered tuples; nothing is formatted or rounded for display.

Audit relevance
---------------
* ``ReportMetadata`` carries the generation timestamp, the date window and
  the status filter the figures were computed under.
* ``excluded_group_ids`` lists every posting group left out because it
  failed the double-entry check.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_kernel.domain.values import Balance


# =========================================================================
# Enums
# =========================================================================


class ReportType(str, Enum):
    """Types of reports."""

    TRIAL_BALANCE = "trial_balance"
    GENERAL_LEDGER = "general_ledger"
    CASH_BOOK = "cash_book"
    BANK_BOOK = "bank_book"
    COMMISSION = "commission"
    ZAKAT = "zakat"
    BOOK_BALANCES = "book_balances"


class DisplayMode(str, Enum):
    """Which amount columns an account ledger carries."""

    BASE_ONLY = "base_only"
    BASE_AND_DOCUMENT = "base_and_document"


class BookKind(str, Enum):
    """Which book an account ledger is rendered as."""

    GENERAL = "general"
    CASH = "cash"
    BANK = "bank"


class AmountMode(str, Enum):
    """Which customer amount the commission report shows."""

    BASE = "base"
    DOCUMENT = "document"


class LedgerRowKind(str, Enum):
    OPENING = "opening"
    LINE = "line"
    TOTALS = "totals"
    CLOSING = "closing"


# =========================================================================
# Report Metadata (common to all reports)
# =========================================================================


@dataclass(frozen=True)
class ReportMetadata:
    """Metadata attached to every report."""

    report_type: ReportType
    entity_name: str
    currency: str
    as_of_date: date
    generated_at: str  # ISO format timestamp from injected clock
    period_start: date | None = None
    period_end: date | None = None
    status_filter: tuple[str, ...] = ()


# =========================================================================
# Trial Balance
# =========================================================================


@dataclass(frozen=True)
class TrialBalanceLineItem:
    """A single account in the trial balance."""

    account_id: UUID
    account_code: str
    account_name: str
    subcategory: str | None
    debit_balance: Decimal
    credit_balance: Decimal
    net_balance: Decimal  # debit positive, credit negative


@dataclass(frozen=True)
class TrialBalanceReport:
    """Complete trial balance report."""

    metadata: ReportMetadata
    lines: tuple[TrialBalanceLineItem, ...]
    total_debits: Decimal
    total_credits: Decimal
    is_balanced: bool  # total_debits == total_credits
    excluded_group_ids: tuple[UUID, ...] = ()


# =========================================================================
# Account Ledger (general ledger, cash book, bank book)
# =========================================================================


@dataclass(frozen=True)
class LedgerRow:
    """
    One row of an account ledger.

    Opening and Closing rows carry only the balance (and the opening
    amount on its natural side); Line rows carry the line's amounts and
    the running balance after it. Document columns are None in
    BASE_ONLY mode.
    """

    kind: LedgerRowKind
    transaction_date: date | None
    description: str
    debit: Decimal
    credit: Decimal
    balance: Decimal
    group_id: UUID | None = None
    line_id: UUID | None = None
    type_code: str | None = None
    document_currency: str | None = None
    debit_doc: Decimal | None = None
    credit_doc: Decimal | None = None
    document_balance: Decimal | None = None
    exchange_rate: Decimal | None = None


@dataclass(frozen=True)
class AccountLedgerReport:
    """Running-balance listing of one account over a date range."""

    metadata: ReportMetadata
    book: BookKind
    display_mode: DisplayMode
    account_id: UUID
    account_code: str
    account_name: str
    rows: tuple[LedgerRow, ...]
    opening_balance: Decimal
    period_debits: Decimal
    period_credits: Decimal
    closing_balance: Decimal
    opening_document_balances: tuple[Balance, ...] = ()
    closing_document_balances: tuple[Balance, ...] = ()
    excluded_group_ids: tuple[UUID, ...] = ()


# =========================================================================
# Commission
# =========================================================================


@dataclass(frozen=True)
class CommissionLine:
    """Customer, supplier and commission legs of one posting group."""

    group_id: UUID
    transaction_date: date
    type_code: str | None
    type_description: str | None
    description: str
    customer_account_id: UUID
    customer_name: str
    supplier_account_id: UUID | None
    supplier_name: str
    customer_currency: str
    customer_amount: Decimal
    amount_currency: str  # base code in BASE mode, customer currency in DOCUMENT
    commission: Decimal  # base currency


@dataclass(frozen=True)
class CommissionReport:
    """Commission extracted from posted groups over a date range."""

    metadata: ReportMetadata
    amount_mode: AmountMode
    commission_account_id: UUID
    transaction_type_codes: tuple[str, ...]
    lines: tuple[CommissionLine, ...]
    total_commission: Decimal
    skipped_group_ids: tuple[UUID, ...] = ()  # no customer or commission leg
    excluded_group_ids: tuple[UUID, ...] = ()


# =========================================================================
# Zakat
# =========================================================================


@dataclass(frozen=True)
class ZakatLine:
    account_id: UUID
    account_code: str
    account_name: str
    subcategory: str | None
    balance: Decimal


@dataclass(frozen=True)
class ZakatReport:
    """
    Zakat base and payable.

    A negative base is reported as-is; the payable follows its sign.
    """

    metadata: ReportMetadata
    lines: tuple[ZakatLine, ...]
    zakat_base: Decimal
    zakat_rate: Decimal
    zakat_payable: Decimal
    excluded_group_ids: tuple[UUID, ...] = ()


# =========================================================================
# Cash / bank book balances
# =========================================================================


@dataclass(frozen=True)
class BookBalanceItem:
    account_id: UUID
    account_code: str
    account_name: str
    kind: BookKind
    base_balance: Decimal
    document_balances: tuple[Balance, ...]


@dataclass(frozen=True)
class BookBalancesReport:
    """Balance of every active cash and bank book."""

    metadata: ReportMetadata
    cash_books: tuple[BookBalanceItem, ...]
    bank_books: tuple[BookBalanceItem, ...]
    total_cash_base: Decimal
    total_bank_base: Decimal
    excluded_group_ids: tuple[UUID, ...] = ()
