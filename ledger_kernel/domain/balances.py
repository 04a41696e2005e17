"""
Balances -- opening, running and closing balances over a ledger snapshot.

Responsibility:
    The single balance engine every report is built on. Replaces per-report
    aggregation loops with one calculator parameterised by account, date
    range and status filter.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O. Holds an index over
    one LedgerSnapshot; never fetches.

Invariants enforced:
    DETERMINISTIC_REPLAY -- lines replay in (transaction_date, group
        sequence, group id, line_no, line id) order, so a running balance is
        reproducible from scratch.
    DOUBLE_ENTRY_BALANCE -- every group that contributes to a figure is
        vetted by group_check first (once per calculator).

Failure modes:
    - InvalidReportParameterError for an empty status filter or start > end.
    - MissingReferenceError for an account not in the snapshot.
    - InvariantViolationError subclasses under UnbalancedGroupPolicy.RAISE.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from ledger_kernel.domain.group_check import UnbalancedGroupPolicy, vet_groups
from ledger_kernel.domain.ledger import (
    ZERO,
    GroupStatus,
    LedgerSnapshot,
    Line,
    PostingGroup,
)
from ledger_kernel.domain.values import Balance, BalancePair
from ledger_kernel.exceptions import InvalidReportParameterError
from ledger_kernel.invariants import BALANCE_TOLERANCE


@dataclass(frozen=True, slots=True)
class RunningBalance:
    """One step of a running-balance replay: the line and the balance after it."""

    line: Line
    group: PostingGroup
    balance: Decimal
    document_balance: Decimal | None = None
    document_currency: str | None = None

    @property
    def delta(self) -> Decimal:
        return self.line.net_base


def replay_key(group: PostingGroup, line: Line) -> tuple:
    """Deterministic ordering key for running balances."""
    return (
        group.transaction_date,
        group.sequence,
        str(group.group_id),
        line.line_no,
        str(line.line_id),
    )


def validate_status_filter(statuses: Iterable[GroupStatus]) -> frozenset[GroupStatus]:
    """Normalise a status filter; an empty filter is a caller error."""
    normalized = frozenset(GroupStatus(s) for s in statuses)
    if not normalized:
        raise InvalidReportParameterError(
            "status_filter", "at least one status must be selected",
        )
    return normalized


def validate_range(start: date, end: date) -> None:
    if start > end:
        raise InvalidReportParameterError(
            "date_range", f"start {start} is after end {end}",
        )


class BalanceCalculator:
    """
    Balance engine over one LedgerSnapshot.

    Contract:
        Every figure is a sum of ``debit_base - credit_base`` over lines whose
        group status is in the caller's filter and whose transaction date is
        in the requested window. The status filter is always explicit; the
        calculator has no default policy.

    Guarantees:
        - Lines are indexed per account once, in replay order (O(n log n)).
        - ``balances_as_of`` covers all accounts in a single pass.
        - Repeated calls on the same snapshot return equal results.

    Non-goals:
        - Does NOT format, paginate or round for display.
    """

    def __init__(
        self,
        snapshot: LedgerSnapshot,
        policy: UnbalancedGroupPolicy = UnbalancedGroupPolicy.RAISE,
        tolerance: Decimal = BALANCE_TOLERANCE,
    ):
        self._snapshot = snapshot
        self._policy = UnbalancedGroupPolicy(policy)
        self._tolerance = tolerance
        self._vetted: dict[UUID, bool] = {}

        by_account: dict[UUID, list[tuple[tuple, Line, PostingGroup]]] = defaultdict(list)
        for group in snapshot.groups:
            for line in group.lines:
                by_account[line.account_id].append((replay_key(group, line), line, group))
        self._by_account: dict[UUID, tuple[tuple[Line, PostingGroup], ...]] = {
            account_id: tuple((line, group) for _, line, group in sorted(entries, key=lambda e: e[0]))
            for account_id, entries in by_account.items()
        }

    @property
    def snapshot(self) -> LedgerSnapshot:
        return self._snapshot

    @property
    def excluded_group_ids(self) -> tuple[UUID, ...]:
        """Groups dropped so far under UnbalancedGroupPolicy.EXCLUDE."""
        return tuple(sorted((gid for gid, ok in self._vetted.items() if not ok), key=str))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _include(self, group: PostingGroup) -> bool:
        """Vet a group once; False means it is excluded from every figure."""
        verdict = self._vetted.get(group.group_id)
        if verdict is None:
            accepted, _ = vet_groups(
                (group,), self._snapshot.currencies, self._policy, self._tolerance,
            )
            verdict = bool(accepted)
            self._vetted[group.group_id] = verdict
        return verdict

    def _account_lines(self, account_id: UUID) -> tuple[tuple[Line, PostingGroup], ...]:
        self._snapshot.account(account_id)
        return self._by_account.get(account_id, ())

    def _selected(
        self,
        account_id: UUID,
        statuses: frozenset[GroupStatus],
        start: date | None,
        end_exclusive: date | None,
    ) -> Iterable[tuple[Line, PostingGroup]]:
        for line, group in self._account_lines(account_id):
            if group.status not in statuses:
                continue
            if start is not None and group.transaction_date < start:
                continue
            if end_exclusive is not None and group.transaction_date >= end_exclusive:
                # Index is date ordered: nothing later can qualify.
                break
            if not self._include(group):
                continue
            yield line, group

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def opening_balance(
        self,
        account_id: UUID,
        as_of_exclusive: date,
        status_filter: Iterable[GroupStatus],
    ) -> Decimal:
        """
        Net base balance of lines dated strictly before ``as_of_exclusive``.

        Returns Decimal("0") when nothing matches.
        """
        statuses = validate_status_filter(status_filter)
        return sum(
            (line.net_base for line, _ in self._selected(account_id, statuses, None, as_of_exclusive)),
            ZERO,
        )

    def document_opening_balances(
        self,
        account_id: UUID,
        as_of_exclusive: date,
        status_filter: Iterable[GroupStatus],
    ) -> dict[str, Decimal]:
        """Net document-currency balance per currency code before a date."""
        statuses = validate_status_filter(status_filter)
        totals: dict[str, Decimal] = {}
        for line, _ in self._selected(account_id, statuses, None, as_of_exclusive):
            code = self._snapshot.currency_of(line).code
            totals[code] = totals.get(code, ZERO) + line.net_doc
        return dict(sorted(totals.items()))

    def document_balances(
        self,
        account_id: UUID,
        as_of_exclusive: date,
        status_filter: Iterable[GroupStatus],
    ) -> tuple[Balance, ...]:
        """Balance per document currency, sorted by currency code."""
        return tuple(
            Balance(amount, code)
            for code, amount in self.document_opening_balances(
                account_id, as_of_exclusive, status_filter,
            ).items()
        )

    def balance_pair(
        self,
        account_id: UUID,
        as_of_exclusive: date,
        status_filter: Iterable[GroupStatus],
    ) -> BalancePair:
        """
        Base balance alongside the balance in the account's own currency.

        Lines held in other document currencies do not count toward the
        document side.
        """
        statuses = validate_status_filter(status_filter)
        currency = self._snapshot.account_currency(self._snapshot.account(account_id))
        base = self.opening_balance(account_id, as_of_exclusive, statuses)
        document = self.document_opening_balances(
            account_id, as_of_exclusive, statuses,
        ).get(currency.code, ZERO)
        return BalancePair(
            base=Balance(base, self._snapshot.currencies.base.code),
            document=Balance(document, currency.code),
        )

    def running_balances(
        self,
        account_id: UUID,
        start: date,
        end: date,
        status_filter: Iterable[GroupStatus],
        *,
        include_document: bool = False,
    ) -> tuple[RunningBalance, ...]:
        """
        Replay in-range lines on top of the opening balance at ``start``.

        ``start`` and ``end`` are inclusive. With ``include_document`` each
        step also carries the running balance in the line's own currency,
        starting from that currency's opening document balance.
        """
        statuses = validate_status_filter(status_filter)
        validate_range(start, end)

        balance = self.opening_balance(account_id, start, statuses)
        doc_balances = (
            self.document_opening_balances(account_id, start, statuses)
            if include_document
            else {}
        )
        end_exclusive = date.fromordinal(end.toordinal() + 1)

        steps: list[RunningBalance] = []
        for line, group in self._selected(account_id, statuses, start, end_exclusive):
            balance += line.net_base
            if include_document:
                code = self._snapshot.currency_of(line).code
                doc_balances[code] = doc_balances.get(code, ZERO) + line.net_doc
                steps.append(
                    RunningBalance(line, group, balance, doc_balances[code], code)
                )
            else:
                steps.append(RunningBalance(line, group, balance))
        return tuple(steps)

    def closing_balance(
        self,
        account_id: UUID,
        start: date,
        end: date,
        status_filter: Iterable[GroupStatus],
    ) -> Decimal:
        """Last running balance, or the opening balance if the range is empty."""
        steps = self.running_balances(account_id, start, end, status_filter)
        if steps:
            return steps[-1].balance
        return self.opening_balance(account_id, start, status_filter)

    def balances_as_of(
        self,
        as_of_exclusive: date,
        status_filter: Iterable[GroupStatus],
        account_ids: Iterable[UUID] | None = None,
    ) -> dict[UUID, Decimal]:
        """
        Net base balance of every account before ``as_of_exclusive``.

        One pass over the snapshot's groups. Accounts with no qualifying
        lines are present with Decimal("0") when named in ``account_ids``
        (or, when ``account_ids`` is None, when they exist in the snapshot).
        """
        statuses = validate_status_filter(status_filter)
        if account_ids is None:
            wanted = [a.account_id for a in self._snapshot.accounts]
        else:
            wanted = list(account_ids)
            for account_id in wanted:
                self._snapshot.account(account_id)
        totals: dict[UUID, Decimal] = {account_id: ZERO for account_id in wanted}

        for group in self._snapshot.groups:
            if group.transaction_date >= as_of_exclusive:
                break
            if group.status not in statuses:
                continue
            if not self._include(group):
                continue
            for line in group.lines:
                if line.account_id in totals:
                    totals[line.account_id] += line.net_base
        return totals
