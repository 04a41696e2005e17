"""
Reporting Service (``ledger_modules.reporting.service``).

Responsibility
--------------
Orchestrates report generation -- trial balance, general ledger, cash and
bank books, commission extraction, zakat base, and the book balance
summary -- by loading one snapshot through ``SnapshotSelector`` and
handing it to the pure builders in ``statements.py``.  This is a
**read-only** service.

Architecture position
---------------------
**Modules layer** -- thin glue.  Constructor: ``session`` + ``clock`` +
``config``.  No financial logic lives here.

Invariants enforced
-------------------
* Read-only -- the session is never flushed or committed.
* One batched snapshot fetch per report.
* Each report reads the status filter configured for it.

Failure modes
-------------
* Store query failure  -> SQLAlchemy exception propagates.
* Invalid report parameters  -> ``InvalidReportParameterError``.
* Stored currency table invalid, or base currency differs from
  ``config.base_currency``  -> ``ConfigurationError``.
* Unbalanced group under the RAISE policy  -> ``UnbalancedGroupError``.

Audit relevance
---------------
A structured ``*_generated`` event is logged for every report, carrying
report type, dates, statuses and excluded group count.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.ledger import POSTED_ONLY, GroupStatus, LedgerSnapshot
from ledger_kernel.exceptions import ConfigurationError, InvalidReportParameterError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.selectors.snapshot_selector import SnapshotSelector
from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.models import (
    AccountLedgerReport,
    AmountMode,
    BookBalancesReport,
    BookKind,
    CommissionReport,
    DisplayMode,
    ReportMetadata,
    ReportType,
    TrialBalanceReport,
    ZakatReport,
)
from ledger_modules.reporting.statements import (
    build_account_ledger,
    build_book_balances,
    build_trial_balance,
    build_zakat_base,
    extract_commissions,
    render_to_dict,
)

logger = get_logger("modules.reporting.service")

_BOOK_REPORT_TYPES = {
    BookKind.GENERAL: ReportType.GENERAL_LEDGER,
    BookKind.CASH: ReportType.CASH_BOOK,
    BookKind.BANK: ReportType.BANK_BOOK,
}


class ReportingService:
    """
    Report generation service.

    Contract
    --------
    * Every public method returns a frozen report dataclass.
    * All methods are **read-only**.

    Guarantees
    ----------
    * Report generation delegates to pure functions in ``statements.py``.
    * Clock is injectable; ``generated_at`` and default dates come from it.

    Non-goals
    ---------
    * Does NOT post entries (see ``compose_bank_entry`` for the pure side
      of bank entry creation).
    * Does NOT render spreadsheets or PDFs; ``to_dict`` is the hand-off.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or ReportingConfig.with_defaults()
        self._selector = SnapshotSelector(session)

        logger.info(
            "reporting_service_initialized",
            extra={
                "entity_name": self._config.entity_name,
                "unbalanced_group_policy": self._config.unbalanced_group_policy.value,
            },
        )

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _load_snapshot(
        self,
        status_filter: Iterable[GroupStatus],
        as_of: date,
    ) -> LedgerSnapshot:
        snapshot = self._selector.load(
            status_filter,
            as_of=as_of,
            max_lines=self._config.max_snapshot_lines,
        )
        expected = self._config.base_currency
        actual = snapshot.currencies.base.code
        if expected is not None and expected != actual:
            raise ConfigurationError(
                f"configured base currency {expected} does not match the "
                f"currency table base {actual}",
                actual,
            )
        return snapshot

    def _build_metadata(
        self,
        report_type: ReportType,
        snapshot: LedgerSnapshot,
        as_of_date: date,
        status_filter: Iterable[GroupStatus],
        period_start: date | None = None,
        period_end: date | None = None,
    ) -> ReportMetadata:
        """Build report metadata with injected clock timestamp."""
        return ReportMetadata(
            report_type=report_type,
            entity_name=self._config.entity_name,
            currency=snapshot.currencies.base.code,
            as_of_date=as_of_date,
            generated_at=self._clock.now().isoformat(),
            period_start=period_start,
            period_end=period_end,
            status_filter=tuple(sorted(GroupStatus(s).value for s in status_filter)),
        )

    def _account_ledger(
        self,
        book: BookKind,
        account_id: UUID,
        start: date,
        end: date,
        display_mode: DisplayMode,
    ) -> AccountLedgerReport:
        report_type = _BOOK_REPORT_TYPES[book]
        statuses = self._config.ledger_statuses
        with LogContext.bind(report_type=report_type.value, account_id=str(account_id)):
            snapshot = self._load_snapshot(statuses, end)
            metadata = self._build_metadata(
                report_type, snapshot, end, statuses, period_start=start, period_end=end,
            )
            report = build_account_ledger(
                snapshot,
                account_id,
                start,
                end,
                statuses,
                display_mode,
                book,
                metadata,
                policy=self._config.unbalanced_group_policy,
            )
            logger.info(
                f"{report_type.value}_generated",
                extra={
                    "start_date": start.isoformat(),
                    "end_date": end.isoformat(),
                    "row_count": len(report.rows),
                    "closing_balance": report.closing_balance,
                    "excluded_group_count": len(report.excluded_group_ids),
                },
            )
        return report

    # =========================================================================
    # Public API
    # =========================================================================

    def trial_balance(self, as_of_date: date | None = None) -> TrialBalanceReport:
        """
        Generate a trial balance as of the end of ``as_of_date``.

        Args:
            as_of_date: Cutoff date (defaults to the clock's today).

        Returns:
            TrialBalanceReport read under ``config.trial_balance_statuses``.
        """
        as_of = as_of_date or self._clock.today()
        statuses = self._config.trial_balance_statuses
        with LogContext.bind(report_type=ReportType.TRIAL_BALANCE.value):
            snapshot = self._load_snapshot(statuses, as_of)
            metadata = self._build_metadata(
                ReportType.TRIAL_BALANCE, snapshot, as_of, statuses,
            )
            report = build_trial_balance(snapshot, as_of, statuses, self._config, metadata)
            logger.info(
                "trial_balance_generated",
                extra={
                    "as_of_date": as_of.isoformat(),
                    "line_count": len(report.lines),
                    "is_balanced": report.is_balanced,
                    "excluded_group_count": len(report.excluded_group_ids),
                },
            )
        return report

    def general_ledger(
        self,
        account_id: UUID,
        start_date: date,
        end_date: date,
        display_mode: DisplayMode = DisplayMode.BASE_ONLY,
    ) -> AccountLedgerReport:
        """Running-balance ledger of any account."""
        return self._account_ledger(
            BookKind.GENERAL, account_id, start_date, end_date, display_mode,
        )

    def cash_book(
        self,
        account_id: UUID,
        start_date: date,
        end_date: date,
        display_mode: DisplayMode = DisplayMode.BASE_AND_DOCUMENT,
    ) -> AccountLedgerReport:
        """Running-balance ledger of a cash book account."""
        return self._account_ledger(
            BookKind.CASH, account_id, start_date, end_date, display_mode,
        )

    def bank_book(
        self,
        account_id: UUID,
        start_date: date,
        end_date: date,
        display_mode: DisplayMode = DisplayMode.BASE_AND_DOCUMENT,
    ) -> AccountLedgerReport:
        """Running-balance ledger of a bank account."""
        return self._account_ledger(
            BookKind.BANK, account_id, start_date, end_date, display_mode,
        )

    def commission_report(
        self,
        start_date: date,
        end_date: date,
        amount_mode: AmountMode = AmountMode.BASE,
        transaction_type_codes: Iterable[str] | None = None,
        commission_account_id: UUID | None = None,
        partner_account_id: UUID | None = None,
    ) -> CommissionReport:
        """
        Extract commission from posted groups in a date range.

        ``transaction_type_codes`` and ``commission_account_id`` default to
        the configured values.

        Raises:
            InvalidReportParameterError: no commission account given or
                configured.
        """
        account_id = commission_account_id or self._config.commission_account_id
        if account_id is None:
            raise InvalidReportParameterError(
                "commission_account_id", "no commission account configured",
            )
        codes = tuple(transaction_type_codes or self._config.commission_type_codes)

        with LogContext.bind(report_type=ReportType.COMMISSION.value):
            snapshot = self._load_snapshot(POSTED_ONLY, end_date)
            metadata = self._build_metadata(
                ReportType.COMMISSION,
                snapshot,
                end_date,
                POSTED_ONLY,
                period_start=start_date,
                period_end=end_date,
            )
            report = extract_commissions(
                snapshot,
                start_date,
                end_date,
                codes,
                account_id,
                amount_mode,
                metadata,
                partner_account_id,
                policy=self._config.unbalanced_group_policy,
            )
            logger.info(
                "commission_report_generated",
                extra={
                    "start_date": start_date.isoformat(),
                    "end_date": end_date.isoformat(),
                    "line_count": len(report.lines),
                    "skipped_group_count": len(report.skipped_group_ids),
                    "total_commission": report.total_commission,
                    "excluded_group_count": len(report.excluded_group_ids),
                },
            )
        return report

    def zakat_report(self, as_of_date: date | None = None) -> ZakatReport:
        """Zakat base and payable as of the end of ``as_of_date``."""
        as_of = as_of_date or self._clock.today()
        with LogContext.bind(report_type=ReportType.ZAKAT.value):
            snapshot = self._load_snapshot(POSTED_ONLY, as_of)
            metadata = self._build_metadata(ReportType.ZAKAT, snapshot, as_of, POSTED_ONLY)
            report = build_zakat_base(
                snapshot, as_of, metadata, policy=self._config.unbalanced_group_policy,
            )
            logger.info(
                "zakat_report_generated",
                extra={
                    "as_of_date": as_of.isoformat(),
                    "account_count": len(report.lines),
                    "zakat_base": report.zakat_base,
                    "zakat_payable": report.zakat_payable,
                    "excluded_group_count": len(report.excluded_group_ids),
                },
            )
        return report

    def book_balances(self, as_of_date: date | None = None) -> BookBalancesReport:
        """Cash and bank book balances as of the end of ``as_of_date``."""
        as_of = as_of_date or self._clock.today()
        statuses = self._config.book_balance_statuses
        with LogContext.bind(report_type=ReportType.BOOK_BALANCES.value):
            snapshot = self._load_snapshot(statuses, as_of)
            metadata = self._build_metadata(
                ReportType.BOOK_BALANCES, snapshot, as_of, statuses,
            )
            report = build_book_balances(
                snapshot,
                as_of,
                statuses,
                metadata,
                policy=self._config.unbalanced_group_policy,
            )
            logger.info(
                "book_balances_generated",
                extra={
                    "as_of_date": as_of.isoformat(),
                    "cash_book_count": len(report.cash_books),
                    "bank_book_count": len(report.bank_books),
                    "excluded_group_count": len(report.excluded_group_ids),
                },
            )
        return report

    def to_dict(self, report: object) -> dict:
        """
        Convert any report to a plain dict for JSON serialization.

        Delegates to the pure render_to_dict function.
        """
        return render_to_dict(report)
