"""
Pure domain layer.

Frozen records and pure functions with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Wall-clock time
- I/O
"""

from ledger_kernel.domain.balances import (
    BalanceCalculator,
    RunningBalance,
    replay_key,
)
from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from ledger_kernel.domain.conversion import (
    conversion_tolerance,
    from_base,
    quantize,
    to_base,
)
from ledger_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from ledger_kernel.domain.entries import compose_bank_entry
from ledger_kernel.domain.group_check import (
    UnbalancedGroupPolicy,
    check_group,
    group_lines,
    vet_groups,
)
from ledger_kernel.domain.ledger import (
    DRAFT_AND_POSTED,
    POSTED_ONLY,
    AccountRef,
    GroupStatus,
    LedgerSnapshot,
    Line,
    PostingGroup,
    status_filter,
)
from ledger_kernel.domain.values import (
    Balance,
    BalancePair,
    ConversionDirection,
    CurrencyDefinition,
    CurrencyTable,
)

__all__ = [
    # Time
    "Clock",
    "SystemClock",
    "DeterministicClock",
    # Currency
    "CurrencyInfo",
    "CurrencyRegistry",
    "ConversionDirection",
    "CurrencyDefinition",
    "CurrencyTable",
    "to_base",
    "from_base",
    "quantize",
    "conversion_tolerance",
    # Ledger
    "AccountRef",
    "GroupStatus",
    "Line",
    "PostingGroup",
    "LedgerSnapshot",
    "POSTED_ONLY",
    "DRAFT_AND_POSTED",
    "status_filter",
    # Invariants
    "UnbalancedGroupPolicy",
    "check_group",
    "group_lines",
    "vet_groups",
    # Balances
    "Balance",
    "BalancePair",
    "BalanceCalculator",
    "RunningBalance",
    "replay_key",
    # Entries
    "compose_bank_entry",
]
