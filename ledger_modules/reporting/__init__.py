"""
Reporting Module (``ledger_modules.reporting``).

Responsibility
--------------
Read-only module that generates the ledger reports: trial balance,
general ledger, cash book, bank book, commission report, zakat base and
the cash/bank book balance summary.

Architecture position
---------------------
**Modules layer** -- pure builders in ``statements.py`` over a kernel
``LedgerSnapshot``, and a thin ``ReportingService`` that loads the
snapshot from the store.

Invariants enforced
-------------------
* No posting groups are written by this module.
* Every balance derives from the kernel ``BalanceCalculator``; groups are
  checked for double-entry balance before they contribute.

Audit relevance
---------------
Reports are deterministic over a snapshot; metadata records the status
filter, date window and generation timestamp.
"""

from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.models import (
    AccountLedgerReport,
    AmountMode,
    BookBalanceItem,
    BookBalancesReport,
    BookKind,
    CommissionLine,
    CommissionReport,
    DisplayMode,
    LedgerRow,
    LedgerRowKind,
    ReportMetadata,
    ReportType,
    TrialBalanceLineItem,
    TrialBalanceReport,
    ZakatLine,
    ZakatReport,
)
from ledger_modules.reporting.service import ReportingService
from ledger_modules.reporting.statements import (
    ZAKAT_RATE,
    build_account_ledger,
    build_book_balances,
    build_trial_balance,
    build_zakat_base,
    extract_commissions,
    render_to_dict,
)

__all__ = [
    # Service
    "ReportingService",
    # Config
    "ReportingConfig",
    # Builders
    "build_trial_balance",
    "build_account_ledger",
    "extract_commissions",
    "build_zakat_base",
    "build_book_balances",
    "render_to_dict",
    "ZAKAT_RATE",
    # Models
    "ReportType",
    "DisplayMode",
    "BookKind",
    "AmountMode",
    "LedgerRowKind",
    "ReportMetadata",
    "TrialBalanceLineItem",
    "TrialBalanceReport",
    "LedgerRow",
    "AccountLedgerReport",
    "CommissionLine",
    "CommissionReport",
    "ZakatLine",
    "ZakatReport",
    "BookBalanceItem",
    "BookBalancesReport",
]
