"""
Ledger Invariants Contract.

These invariants are structural law for every balance the engine produces.
No ReportingConfig switch may override them; configuration only decides
what happens to a report once a violation has been detected.

This module exists solely to declare these invariants explicitly. The
enforcement is distributed across the currency table, the snapshot
constructor, the group checker, and the balance calculator.
"""

from decimal import Decimal
from enum import Enum, unique


@unique
class LedgerInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel.

    Each value names one structural guarantee that the kernel provides
    unconditionally.
    """

    DOUBLE_ENTRY_BALANCE = "double_entry_balance"
    """Base debits equal base credits in every posting group, within
    BALANCE_TOLERANCE. Enforced by group_check.check_group whenever a
    report includes a group."""

    SINGLE_SIDED_LINE = "single_sided_line"
    """A line is either a debit or a credit, in base and in document
    currency. Enforced by group_check.check_line_sides."""

    STORED_RATE_CONVERSION = "stored_rate_conversion"
    """A line's base amount equals its document amount converted with the
    line's stored exchange rate. Enforced by group_check.check_line_conversion."""

    SINGLE_BASE_CURRENCY = "single_base_currency"
    """Exactly one base currency exists and its rate is 1. Enforced by
    CurrencyTable construction."""

    REFERENTIAL_INTEGRITY = "referential_integrity"
    """Every line's account, currency and group are present in the snapshot.
    Enforced by LedgerSnapshot construction."""

    DETERMINISTIC_REPLAY = "deterministic_replay"
    """Running balances replay lines in (date, group sequence, group id,
    line number, line id) order. Enforced by balances.replay_key."""


ALL_LEDGER_INVARIANTS: frozenset[LedgerInvariant] = frozenset(LedgerInvariant)

# One minor currency unit: the absolute tolerance for group balance and for
# stored-versus-converted line amounts.
BALANCE_TOLERANCE: Decimal = Decimal("0.01")

# The kernel package may not import from these packages.
# Enforced by tests/architecture/test_kernel_boundary.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "ledger_modules",
)
