"""
Entries -- pure composition of posting groups.

Responsibility:
    Builds balanced posting groups from form-level inputs so that whatever
    writes them to the store receives data the invariant checker accepts.
    Currently one shape: the two-line bank entry.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O. Writes nothing.

Invariants enforced:
    DOUBLE_ENTRY_BALANCE and STORED_RATE_CONVERSION hold by construction:
    both lines carry the same base amount from ``to_base`` and the same
    stored rate.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from ledger_kernel.domain.conversion import to_base
from ledger_kernel.domain.ledger import AccountRef, GroupStatus, Line, PostingGroup, ZERO
from ledger_kernel.domain.values import CurrencyTable
from ledger_kernel.exceptions import InvalidReportParameterError

BANK_ENTRY_TYPE_CODE = "BANK"
DEFAULT_BANK_NARRATION = "Bank Entry"


def compose_bank_entry(
    bank_account: AccountRef,
    counter_account: AccountRef,
    amount: Decimal,
    transaction_date: date,
    currencies: CurrencyTable,
    *,
    rate: Decimal | None = None,
    narration: str | None = None,
    status: GroupStatus = GroupStatus.POSTED,
    sequence: int = 0,
    group_id: UUID | None = None,
) -> PostingGroup:
    """
    Compose a balanced two-line bank entry.

    ``amount`` is a signed document amount in the bank book's currency:
    positive is a receipt (debit the bank book, credit the counter account),
    negative a payment. Both lines are in the bank book's currency at
    ``rate`` (default: the table rate).

    Raises:
        InvalidReportParameterError: bank_account is not a bank book.
        ValueError: amount is zero.
        ConfigurationError: the rate is zero or negative.
    """
    if not bank_account.is_bank:
        raise InvalidReportParameterError(
            "bank_account", f"account {bank_account.code} is not a bank book",
        )
    amount = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    if amount == 0:
        raise ValueError("bank entry amount must be nonzero")

    currency = currencies.get(bank_account.currency_id, referenced_by="bank entry")
    effective_rate = currency.rate if rate is None else Decimal(str(rate))
    doc = abs(amount)
    base = to_base(
        doc, currency, rate=effective_rate, minor_unit=currencies.base.minor_unit,
    )
    receipt = amount > 0

    gid = group_id or uuid4()
    bank_line = Line(
        line_id=uuid4(),
        group_id=gid,
        account_id=bank_account.account_id,
        currency_id=currency.currency_id,
        debit_base=base if receipt else ZERO,
        credit_base=ZERO if receipt else base,
        debit_doc=doc if receipt else ZERO,
        credit_doc=ZERO if receipt else doc,
        exchange_rate=effective_rate,
        line_no=1,
    )
    counter_line = Line(
        line_id=uuid4(),
        group_id=gid,
        account_id=counter_account.account_id,
        currency_id=currency.currency_id,
        debit_base=ZERO if receipt else base,
        credit_base=base if receipt else ZERO,
        debit_doc=ZERO if receipt else doc,
        credit_doc=doc if receipt else ZERO,
        exchange_rate=effective_rate,
        line_no=2,
    )
    return PostingGroup(
        group_id=gid,
        transaction_date=transaction_date,
        status=status,
        lines=(bank_line, counter_line),
        sequence=sequence,
        description=narration or DEFAULT_BANK_NARRATION,
        type_code=BANK_ENTRY_TYPE_CODE,
    )
