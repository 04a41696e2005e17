"""
Pure report builders.

These functions turn a LedgerSnapshot into report dataclasses. ZERO I/O.
ZERO side effects. Every balance comes from the kernel BalanceCalculator;
nothing here sums lines into balances on its own.

Functions in this module follow the ledger_kernel/domain/ purity convention:
- No database access
- No clock access (metadata is passed in)
- No file I/O
- Deterministic: same snapshot and metadata always produce equal reports
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_kernel.domain.balances import (
    BalanceCalculator,
    validate_range,
    validate_status_filter,
)
from ledger_kernel.domain.conversion import quantize
from ledger_kernel.domain.group_check import UnbalancedGroupPolicy, vet_groups
from ledger_kernel.domain.ledger import (
    POSTED_ONLY,
    ZERO,
    AccountRef,
    GroupStatus,
    LedgerSnapshot,
    Line,
    PostingGroup,
)
from ledger_kernel.domain.values import Balance
from ledger_kernel.exceptions import InvalidReportParameterError
from ledger_kernel.logging_config import get_logger
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
    TrialBalanceLineItem,
    TrialBalanceReport,
    ZakatLine,
    ZakatReport,
)

logger = get_logger("modules.reporting.statements")

ZAKAT_RATE = Decimal("0.025")

OPENING_LABEL = "Opening Balance"
TOTALS_LABEL = "Total"
CLOSING_LABEL = "Closing Balance"


# =========================================================================
# Helpers
# =========================================================================


def day_after(d: date) -> date:
    """Exclusive upper bound for "as of end of day d"."""
    return d + timedelta(days=1)


def split_natural_side(amount: Decimal) -> tuple[Decimal, Decimal]:
    """Put a signed balance in the debit column (>0) or credit column (<0)."""
    if amount > 0:
        return amount, ZERO
    if amount < 0:
        return ZERO, -amount
    return ZERO, ZERO


def narration(line: Line, group: PostingGroup) -> str:
    """A line's own description, falling back to its group's."""
    return line.description or group.description


def _check_book(account: AccountRef, book: BookKind) -> None:
    if book == BookKind.CASH and not account.is_cash_book:
        raise InvalidReportParameterError(
            "account_id", f"account {account.code} is not a cash book",
        )
    if book == BookKind.BANK and not account.is_bank:
        raise InvalidReportParameterError(
            "account_id", f"account {account.code} is not a bank book",
        )


# =========================================================================
# 1. TRIAL BALANCE
# =========================================================================


def build_trial_balance(
    snapshot: LedgerSnapshot,
    as_of: date,
    status_filter: Iterable[GroupStatus],
    config: ReportingConfig,
    metadata: ReportMetadata,
) -> TrialBalanceReport:
    """
    Net balance of every account as of the end of ``as_of``.

    Positive nets go to the debit column, negative nets to the credit
    column. Zero rows are dropped unless ``config.include_zero_balances``;
    inactive accounts are dropped unless ``config.include_inactive``.
    """
    calculator = BalanceCalculator(snapshot, config.unbalanced_group_policy)
    accounts = [
        a for a in snapshot.accounts if a.is_active or config.include_inactive
    ]
    balances = calculator.balances_as_of(
        day_after(as_of), status_filter, [a.account_id for a in accounts],
    )

    items: list[TrialBalanceLineItem] = []
    for account in accounts:
        net = balances[account.account_id]
        if net == 0 and not config.include_zero_balances:
            continue
        debit, credit = split_natural_side(net)
        items.append(
            TrialBalanceLineItem(
                account_id=account.account_id,
                account_code=account.code,
                account_name=account.name,
                subcategory=account.subcategory,
                debit_balance=debit,
                credit_balance=credit,
                net_balance=net,
            )
        )

    total_debits = sum((item.debit_balance for item in items), ZERO)
    total_credits = sum((item.credit_balance for item in items), ZERO)

    return TrialBalanceReport(
        metadata=metadata,
        lines=tuple(items),
        total_debits=total_debits,
        total_credits=total_credits,
        is_balanced=(total_debits == total_credits),
        excluded_group_ids=calculator.excluded_group_ids,
    )


# =========================================================================
# 2. ACCOUNT LEDGER (general ledger / cash book / bank book)
# =========================================================================


def build_account_ledger(
    snapshot: LedgerSnapshot,
    account_id: UUID,
    start: date,
    end: date,
    status_filter: Iterable[GroupStatus],
    display_mode: DisplayMode,
    book: BookKind,
    metadata: ReportMetadata,
    *,
    policy: UnbalancedGroupPolicy = UnbalancedGroupPolicy.RAISE,
) -> AccountLedgerReport:
    """
    Opening row, one row per line with its running balance, a Totals row
    and a Closing row.

    The Totals row adds the opening balance on its natural side to the
    period debits or credits, so its debit minus credit is the closing
    balance.

    Raises:
        InvalidReportParameterError: start > end, empty status filter, or
            a CASH/BANK book requested for an account without that flag.
        MissingReferenceError: the account is not in the snapshot.
    """
    statuses = validate_status_filter(status_filter)
    validate_range(start, end)
    account = snapshot.account(account_id)
    _check_book(account, book)
    display_mode = DisplayMode(display_mode)
    with_document = display_mode == DisplayMode.BASE_AND_DOCUMENT
    account_currency = snapshot.account_currency(account).code

    calculator = BalanceCalculator(snapshot, policy)
    opening = calculator.opening_balance(account_id, start, statuses)
    steps = calculator.running_balances(
        account_id, start, end, statuses, include_document=with_document,
    )

    opening_docs: tuple[Balance, ...] = ()
    closing_docs: tuple[Balance, ...] = ()
    if with_document:
        opening_docs = calculator.document_balances(account_id, start, statuses)
        closing_docs = calculator.document_balances(account_id, day_after(end), statuses)

    def _doc_amount(balances: tuple[Balance, ...]) -> Decimal | None:
        if not with_document:
            return None
        for balance in balances:
            if balance.currency_code == account_currency:
                return balance.amount
        return ZERO

    opening_debit, opening_credit = split_natural_side(opening)
    rows: list[LedgerRow] = [
        LedgerRow(
            kind=LedgerRowKind.OPENING,
            transaction_date=start,
            description=OPENING_LABEL,
            debit=opening_debit,
            credit=opening_credit,
            balance=opening,
            document_currency=account_currency if with_document else None,
            document_balance=_doc_amount(opening_docs),
        )
    ]

    period_debits = ZERO
    period_credits = ZERO
    for step in steps:
        line = step.line
        period_debits += line.debit_base
        period_credits += line.credit_base
        rows.append(
            LedgerRow(
                kind=LedgerRowKind.LINE,
                transaction_date=step.group.transaction_date,
                description=narration(line, step.group),
                debit=line.debit_base,
                credit=line.credit_base,
                balance=step.balance,
                group_id=step.group.group_id,
                line_id=line.line_id,
                type_code=step.group.type_code,
                document_currency=step.document_currency,
                debit_doc=line.debit_doc if with_document else None,
                credit_doc=line.credit_doc if with_document else None,
                document_balance=step.document_balance,
                exchange_rate=line.exchange_rate if with_document else None,
            )
        )

    closing = steps[-1].balance if steps else opening
    totals_debit = period_debits + opening_debit
    totals_credit = period_credits + opening_credit
    rows.append(
        LedgerRow(
            kind=LedgerRowKind.TOTALS,
            transaction_date=None,
            description=TOTALS_LABEL,
            debit=totals_debit,
            credit=totals_credit,
            balance=totals_debit - totals_credit,
        )
    )
    closing_debit, closing_credit = split_natural_side(closing)
    rows.append(
        LedgerRow(
            kind=LedgerRowKind.CLOSING,
            transaction_date=end,
            description=CLOSING_LABEL,
            debit=closing_debit,
            credit=closing_credit,
            balance=closing,
            document_currency=account_currency if with_document else None,
            document_balance=_doc_amount(closing_docs),
        )
    )

    return AccountLedgerReport(
        metadata=metadata,
        book=book,
        display_mode=display_mode,
        account_id=account.account_id,
        account_code=account.code,
        account_name=account.name,
        rows=tuple(rows),
        opening_balance=opening,
        period_debits=period_debits,
        period_credits=period_credits,
        closing_balance=closing,
        opening_document_balances=opening_docs,
        closing_document_balances=closing_docs,
        excluded_group_ids=calculator.excluded_group_ids,
    )


# =========================================================================
# 3. COMMISSION EXTRACTION
# =========================================================================


def _first(lines: Iterable[Line], predicate) -> Line | None:
    return next((line for line in lines if predicate(line)), None)


def extract_commissions(
    snapshot: LedgerSnapshot,
    start: date,
    end: date,
    transaction_type_codes: Iterable[str],
    commission_account_id: UUID,
    amount_mode: AmountMode,
    metadata: ReportMetadata,
    partner_account_id: UUID | None = None,
    *,
    policy: UnbalancedGroupPolicy = UnbalancedGroupPolicy.RAISE,
) -> CommissionReport:
    """
    Split each posted group of the selected types into customer, supplier
    and commission legs.

    * customer: first line with a base debit, not on the commission account
    * supplier: first line with a base credit, not on the commission account
    * commission: first line on the commission account

    Groups lacking a customer or a commission leg are skipped and listed
    in ``skipped_group_ids``. ``commission`` is the commission leg's base
    amount on whichever side it sits. ``customer_amount`` is the gross
    customer debit in BASE mode and the customer's document amount in
    DOCUMENT mode.

    With ``partner_account_id`` only groups whose customer or supplier leg
    is on that account are kept.
    """
    validate_range(start, end)
    codes = tuple(sorted({c.strip().upper() for c in transaction_type_codes}))
    if not codes:
        raise InvalidReportParameterError(
            "transaction_type_codes", "at least one type code must be selected",
        )
    amount_mode = AmountMode(amount_mode)
    if not snapshot.account(commission_account_id).is_active:
        raise InvalidReportParameterError(
            "commission_account_id", "commission account is inactive",
        )
    if partner_account_id is not None:
        snapshot.account(partner_account_id)
    base_code = snapshot.currencies.base.code

    candidates = [
        g
        for g in snapshot.groups_with_status(POSTED_ONLY)
        if start <= g.transaction_date <= end
        and g.type_code is not None
        and g.type_code.upper() in codes
    ]
    accepted, excluded = vet_groups(candidates, snapshot.currencies, policy)

    lines: list[CommissionLine] = []
    skipped: list[UUID] = []
    for group in accepted:
        customer = _first(
            group.lines,
            lambda l: l.debit_base > 0 and l.account_id != commission_account_id,
        )
        supplier = _first(
            group.lines,
            lambda l: l.credit_base > 0 and l.account_id != commission_account_id,
        )
        commission = _first(group.lines, lambda l: l.account_id == commission_account_id)
        if customer is None or commission is None:
            skipped.append(group.group_id)
            continue
        if partner_account_id is not None and partner_account_id not in (
            customer.account_id,
            supplier.account_id if supplier is not None else None,
        ):
            continue

        customer_currency = snapshot.currency_of(customer).code
        if amount_mode == AmountMode.BASE:
            customer_amount = customer.debit_base
            amount_currency = base_code
        else:
            customer_amount = customer.doc_amount
            amount_currency = customer_currency

        lines.append(
            CommissionLine(
                group_id=group.group_id,
                transaction_date=group.transaction_date,
                type_code=group.type_code,
                type_description=group.type_description,
                description=group.description,
                customer_account_id=customer.account_id,
                customer_name=snapshot.account(customer.account_id).name,
                supplier_account_id=supplier.account_id if supplier is not None else None,
                supplier_name=(
                    snapshot.account(supplier.account_id).name if supplier is not None else ""
                ),
                customer_currency=customer_currency,
                customer_amount=customer_amount,
                amount_currency=amount_currency,
                commission=commission.base_amount,
            )
        )

    if skipped:
        logger.debug(
            "commission_groups_skipped",
            extra={"skipped_count": len(skipped)},
        )

    return CommissionReport(
        metadata=metadata,
        amount_mode=amount_mode,
        commission_account_id=commission_account_id,
        transaction_type_codes=codes,
        lines=tuple(lines),
        total_commission=sum((l.commission for l in lines), ZERO),
        skipped_group_ids=tuple(skipped),
        excluded_group_ids=excluded,
    )


# =========================================================================
# 4. ZAKAT BASE
# =========================================================================


def build_zakat_base(
    snapshot: LedgerSnapshot,
    as_of: date,
    metadata: ReportMetadata,
    *,
    policy: UnbalancedGroupPolicy = UnbalancedGroupPolicy.RAISE,
) -> ZakatReport:
    """
    Posted balances of active zakat-eligible accounts as of end of ``as_of``.

    ``zakat_payable = zakat_base * ZAKAT_RATE`` quantized to the base
    currency's minor unit. A negative base is not clamped.
    """
    calculator = BalanceCalculator(snapshot, policy)
    accounts = [a for a in snapshot.accounts if a.is_active and a.zakat_eligible]
    balances = calculator.balances_as_of(
        day_after(as_of), POSTED_ONLY, [a.account_id for a in accounts],
    )

    lines = tuple(
        ZakatLine(
            account_id=a.account_id,
            account_code=a.code,
            account_name=a.name,
            subcategory=a.subcategory,
            balance=balances[a.account_id],
        )
        for a in accounts
    )
    zakat_base = sum((l.balance for l in lines), ZERO)
    payable = quantize(zakat_base * ZAKAT_RATE, snapshot.currencies.base.minor_unit)

    return ZakatReport(
        metadata=metadata,
        lines=lines,
        zakat_base=zakat_base,
        zakat_rate=ZAKAT_RATE,
        zakat_payable=payable,
        excluded_group_ids=calculator.excluded_group_ids,
    )


# =========================================================================
# 5. CASH / BANK BOOK BALANCES
# =========================================================================


def build_book_balances(
    snapshot: LedgerSnapshot,
    as_of: date,
    status_filter: Iterable[GroupStatus],
    metadata: ReportMetadata,
    *,
    policy: UnbalancedGroupPolicy = UnbalancedGroupPolicy.RAISE,
) -> BookBalancesReport:
    """
    Base and per-currency document balance of every active cash and bank
    book as of end of ``as_of``. An account flagged as a bank is listed
    with the bank books only.
    """
    statuses = validate_status_filter(status_filter)
    calculator = BalanceCalculator(snapshot, policy)
    books = [
        a for a in snapshot.accounts
        if a.is_active and (a.is_cash_book or a.is_bank)
    ]
    cutoff = day_after(as_of)
    balances = calculator.balances_as_of(cutoff, statuses, [a.account_id for a in books])

    cash: list[BookBalanceItem] = []
    bank: list[BookBalanceItem] = []
    for account in books:
        kind = BookKind.BANK if account.is_bank else BookKind.CASH
        item = BookBalanceItem(
            account_id=account.account_id,
            account_code=account.code,
            account_name=account.name,
            kind=kind,
            base_balance=balances[account.account_id],
            document_balances=calculator.document_balances(
                account.account_id, cutoff, statuses,
            ),
        )
        (bank if kind == BookKind.BANK else cash).append(item)

    return BookBalancesReport(
        metadata=metadata,
        cash_books=tuple(cash),
        bank_books=tuple(bank),
        total_cash_base=sum((i.base_balance for i in cash), ZERO),
        total_bank_base=sum((i.base_balance for i in bank), ZERO),
        excluded_group_ids=calculator.excluded_group_ids,
    )


# =========================================================================
# Rendering helper
# =========================================================================


def render_to_dict(obj: object) -> dict | list | str | int | float | bool | None:
    """
    Convert any report dataclass to plain dicts, lists and strings.

    Handles:
    - Decimal -> str (preserving precision)
    - UUID -> str
    - date -> ISO format string
    - Enum -> .value
    - Nested frozen dataclasses -> nested dicts
    - Tuples -> lists; frozensets -> sorted lists
    - None preserved
    """
    if obj is None:
        return None
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [render_to_dict(item) for item in obj]
    if isinstance(obj, (set, frozenset)):
        return sorted(render_to_dict(item) for item in obj)
    if isinstance(obj, dict):
        return {str(k): render_to_dict(v) for k, v in obj.items()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: render_to_dict(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)
