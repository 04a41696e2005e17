"""
Ledger -- the append-only transaction log as frozen domain records.

Responsibility:
    Defines the ledger line model (AccountRef, PostingGroup, Line) and the
    LedgerSnapshot that bundles one read-consistent view of the log with the
    currency table it was posted under.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    The selector layer converts ORM rows into these records; report builders
    consume them. Nothing here knows about SQLAlchemy.

Invariants enforced:
    REFERENTIAL_INTEGRITY -- every line's account, currency and group exist
        in the snapshot (MissingReferenceError otherwise).
    A posting group owns its lines exclusively; lines are stored in
    line_no order on their group.

Failure modes:
    - MissingReferenceError for a dangling account/currency/group reference.
    - SnapshotTooLargeError when the caller's line bound is exceeded.
    - ValueError for negative amounts on construction.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_kernel.domain.values import CurrencyDefinition, CurrencyTable
from ledger_kernel.exceptions import MissingReferenceError, SnapshotTooLargeError
from ledger_kernel.logging_config import get_logger

logger = get_logger("domain.ledger")

ZERO = Decimal("0")


class GroupStatus(str, Enum):
    """Lifecycle status of a posting group."""

    DRAFT = "draft"
    POSTED = "posted"
    VOID = "void"


def status_filter(*statuses: GroupStatus | str) -> frozenset[GroupStatus]:
    """Build a status filter from enum members or their string values."""
    return frozenset(GroupStatus(s) for s in statuses)


POSTED_ONLY: frozenset[GroupStatus] = frozenset({GroupStatus.POSTED})
DRAFT_AND_POSTED: frozenset[GroupStatus] = frozenset(
    {GroupStatus.DRAFT, GroupStatus.POSTED}
)


@dataclass(frozen=True, slots=True)
class AccountRef:
    """Chart-of-accounts entry as seen by the engine. Referenced, never mutated."""

    account_id: UUID
    code: str
    name: str
    currency_id: UUID
    is_cash_book: bool = False
    is_bank: bool = False
    zakat_eligible: bool = False
    is_active: bool = True
    subcategory: str | None = None


@dataclass(frozen=True, slots=True)
class Line:
    """
    One debit-or-credit entry against one account within a posting group.

    Base amounts are in the base currency; document amounts are in the
    line's own currency. ``exchange_rate`` is the rate snapshot taken at
    posting time and is what historical conversion uses.
    """

    line_id: UUID
    group_id: UUID
    account_id: UUID
    currency_id: UUID
    debit_base: Decimal = ZERO
    credit_base: Decimal = ZERO
    debit_doc: Decimal = ZERO
    credit_doc: Decimal = ZERO
    exchange_rate: Decimal = Decimal("1")
    line_no: int = 0
    description: str | None = None

    def __post_init__(self) -> None:
        for name in ("debit_base", "credit_base", "debit_doc", "credit_doc", "exchange_rate"):
            value = getattr(self, name)
            if not isinstance(value, Decimal):
                value = Decimal(str(value))
                object.__setattr__(self, name, value)
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")

    @property
    def net_base(self) -> Decimal:
        """Signed base delta: debit positive, credit negative."""
        return self.debit_base - self.credit_base

    @property
    def net_doc(self) -> Decimal:
        """Signed document-currency delta."""
        return self.debit_doc - self.credit_doc

    @property
    def doc_amount(self) -> Decimal:
        """The nonzero document amount, whichever side it is on."""
        return self.debit_doc if self.debit_doc else self.credit_doc

    @property
    def base_amount(self) -> Decimal:
        """The nonzero base amount, whichever side it is on."""
        return self.debit_base if self.debit_base else self.credit_base


@dataclass(frozen=True, slots=True)
class PostingGroup:
    """
    Posting group ("header") -- the atomic unit of double-entry.

    ``sequence`` is the group's creation order and is the stable tie-break
    between groups sharing a transaction date.
    """

    group_id: UUID
    transaction_date: date
    status: GroupStatus
    lines: tuple[Line, ...]
    sequence: int = 0
    description: str = ""
    type_code: str | None = None
    type_description: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.status, str) and not isinstance(self.status, GroupStatus):
            object.__setattr__(self, "status", GroupStatus(self.status))
        ordered = tuple(sorted(self.lines, key=lambda l: (l.line_no, str(l.line_id))))
        for line in ordered:
            if line.group_id != self.group_id:
                raise ValueError(
                    f"line {line.line_id} belongs to group {line.group_id}, "
                    f"not {self.group_id}"
                )
        object.__setattr__(self, "lines", ordered)

    @property
    def total_debit_base(self) -> Decimal:
        return sum((l.debit_base for l in self.lines), ZERO)

    @property
    def total_credit_base(self) -> Decimal:
        return sum((l.credit_base for l in self.lines), ZERO)


@dataclass(frozen=True)
class LedgerSnapshot:
    """
    One read-consistent view of the ledger, supplied by the caller.

    Contract:
        Holds accounts, posting groups (with their lines) and the currency
        table. Report builders and the balance calculator read only from a
        snapshot; two reports over the same snapshot see the same data.

    Guarantees:
        - Every line's account and currency are present.
        - Lookups by id are O(1).
        - Line count does not exceed ``max_lines`` when a bound is given.

    Non-goals:
        - Does NOT check the double-entry invariant; that runs per report in
          group_check, because stored data may have been edited out of band
          and only the groups a report includes must be vetted.
    """

    accounts: tuple[AccountRef, ...]
    groups: tuple[PostingGroup, ...]
    currencies: CurrencyTable
    max_lines: int | None = None
    _accounts_by_id: dict[UUID, AccountRef] = field(
        init=False, repr=False, compare=False,
    )
    _groups_by_id: dict[UUID, PostingGroup] = field(
        init=False, repr=False, compare=False,
    )

    def __post_init__(self) -> None:
        accounts = tuple(sorted(self.accounts, key=lambda a: (a.code, str(a.account_id))))
        groups = tuple(
            sorted(self.groups, key=lambda g: (g.transaction_date, g.sequence, str(g.group_id)))
        )
        object.__setattr__(self, "accounts", accounts)
        object.__setattr__(self, "groups", groups)

        line_count = sum(len(g.lines) for g in groups)
        if self.max_lines is not None and line_count > self.max_lines:
            raise SnapshotTooLargeError(line_count, self.max_lines)

        accounts_by_id = {a.account_id: a for a in accounts}
        for account in accounts:
            self.currencies.get(account.currency_id, referenced_by=f"account {account.code}")
        for group in groups:
            for line in group.lines:
                if line.account_id not in accounts_by_id:
                    raise MissingReferenceError(
                        "Account", line.account_id, f"line {line.line_id}",
                    )
                self.currencies.get(line.currency_id, referenced_by=f"line {line.line_id}")

        object.__setattr__(self, "_accounts_by_id", accounts_by_id)
        object.__setattr__(self, "_groups_by_id", {g.group_id: g for g in groups})

        logger.debug(
            "snapshot_built",
            extra={
                "account_count": len(accounts),
                "group_count": len(groups),
                "line_count": line_count,
            },
        )

    @classmethod
    def build(
        cls,
        accounts: Iterable[AccountRef],
        groups: Iterable[PostingGroup],
        currencies: CurrencyTable | Iterable[CurrencyDefinition],
        max_lines: int | None = None,
    ) -> LedgerSnapshot:
        table = currencies if isinstance(currencies, CurrencyTable) else CurrencyTable.of(currencies)
        return cls(
            accounts=tuple(accounts),
            groups=tuple(groups),
            currencies=table,
            max_lines=max_lines,
        )

    @property
    def line_count(self) -> int:
        return sum(len(g.lines) for g in self.groups)

    @property
    def accounts_by_id(self) -> Mapping[UUID, AccountRef]:
        return self._accounts_by_id

    def account(self, account_id: UUID) -> AccountRef:
        try:
            return self._accounts_by_id[account_id]
        except KeyError:
            raise MissingReferenceError("Account", account_id, "caller") from None

    def group(self, group_id: UUID) -> PostingGroup:
        try:
            return self._groups_by_id[group_id]
        except KeyError:
            raise MissingReferenceError("PostingGroup", group_id, "caller") from None

    def currency_of(self, line: Line) -> CurrencyDefinition:
        return self.currencies.get(line.currency_id, referenced_by=f"line {line.line_id}")

    def account_currency(self, account: AccountRef) -> CurrencyDefinition:
        return self.currencies.get(account.currency_id, referenced_by=f"account {account.code}")

    def groups_with_status(self, statuses: frozenset[GroupStatus]) -> tuple[PostingGroup, ...]:
        return tuple(g for g in self.groups if g.status in statuses)
