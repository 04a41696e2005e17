"""
Group check -- header grouping and the double-entry invariant checker.

Responsibility:
    Groups lines by posting group and verifies, for every group a report is
    about to include, that:

      * each line is single-sided in base and in document currency,
      * each line's base amount matches its converted document amount,
      * the group's base debits equal its base credits.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    DOUBLE_ENTRY_BALANCE, SINGLE_SIDED_LINE, STORED_RATE_CONVERSION, all
    within BALANCE_TOLERANCE (one minor unit).

Failure modes:
    - UnbalancedGroupError, or its line-level subclasses MixedSideLineError
      and LineConversionMismatchError.
      The checker never corrects data; the caller chooses (via
      UnbalancedGroupPolicy) whether a report aborts or drops the group.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_kernel.domain.conversion import to_base
from ledger_kernel.domain.ledger import Line, PostingGroup, ZERO
from ledger_kernel.domain.values import CurrencyTable
from ledger_kernel.exceptions import (
    InvariantViolationError,
    LineConversionMismatchError,
    MixedSideLineError,
    UnbalancedGroupError,
)
from ledger_kernel.invariants import BALANCE_TOLERANCE
from ledger_kernel.logging_config import get_logger

logger = get_logger("domain.group_check")


class UnbalancedGroupPolicy(str, Enum):
    """What a report does with a group that fails the invariant check."""

    RAISE = "raise"
    EXCLUDE = "exclude"


def group_lines(lines: Iterable[Line]) -> dict[UUID, tuple[Line, ...]]:
    """Group lines by posting group, preserving line_no order within each."""
    grouped: dict[UUID, list[Line]] = defaultdict(list)
    for line in lines:
        grouped[line.group_id].append(line)
    return {
        gid: tuple(sorted(ls, key=lambda l: (l.line_no, str(l.line_id))))
        for gid, ls in grouped.items()
    }


def _totals(line: Line, totals: tuple[Decimal, Decimal] | None) -> tuple[Decimal, Decimal]:
    if totals is not None:
        return totals
    return line.debit_base, line.credit_base


def check_line_sides(line: Line, totals: tuple[Decimal, Decimal] | None = None) -> None:
    """
    At most one of debit/credit may be nonzero, per basis.

    ``totals`` is the enclosing group's (debits, credits) in base currency;
    without it the error reports the line's own amounts.
    """
    for basis, debit, credit in (
        ("base", line.debit_base, line.credit_base),
        ("document", line.debit_doc, line.credit_doc),
    ):
        if debit and credit:
            raise MixedSideLineError(
                line.group_id, line.line_id, basis, *_totals(line, totals),
            )


def check_line_conversion(
    line: Line,
    currencies: CurrencyTable,
    tolerance: Decimal = BALANCE_TOLERANCE,
    totals: tuple[Decimal, Decimal] | None = None,
) -> None:
    """Stored base net must equal the document net at the line's stored rate."""
    currency = currencies.get(line.currency_id, referenced_by=f"line {line.line_id}")
    expected = to_base(
        line.net_doc,
        currency,
        rate=line.exchange_rate,
        minor_unit=currencies.base.minor_unit,
    )
    if abs(expected - line.net_base) > tolerance:
        raise LineConversionMismatchError(
            line.group_id,
            line.line_id,
            expected,
            line.net_base,
            *_totals(line, totals),
        )


def check_group(
    group: PostingGroup,
    currencies: CurrencyTable,
    tolerance: Decimal = BALANCE_TOLERANCE,
) -> None:
    """
    Verify every invariant of one posting group.

    Every failure is an UnbalancedGroupError carrying the group id and the
    group's base debit and credit totals.

    Raises:
        MixedSideLineError: a line is both debit and credit.
        LineConversionMismatchError: base and document amounts disagree.
        UnbalancedGroupError: Σ debit_base != Σ credit_base beyond tolerance.
    """
    debits = sum((line.debit_base for line in group.lines), ZERO)
    credits = sum((line.credit_base for line in group.lines), ZERO)
    for line in group.lines:
        check_line_sides(line, (debits, credits))
        check_line_conversion(line, currencies, tolerance, (debits, credits))

    if abs(debits - credits) > tolerance:
        raise UnbalancedGroupError(group.group_id, debits, credits)


def vet_groups(
    groups: Iterable[PostingGroup],
    currencies: CurrencyTable,
    policy: UnbalancedGroupPolicy = UnbalancedGroupPolicy.RAISE,
    tolerance: Decimal = BALANCE_TOLERANCE,
) -> tuple[tuple[PostingGroup, ...], tuple[UUID, ...]]:
    """
    Check groups before a report includes them.

    Returns (accepted groups, excluded group ids). Under RAISE the first
    violation propagates; under EXCLUDE violating groups are dropped and
    logged.
    """
    accepted: list[PostingGroup] = []
    excluded: list[UUID] = []
    for group in groups:
        try:
            check_group(group, currencies, tolerance)
        except InvariantViolationError as exc:
            if policy == UnbalancedGroupPolicy.RAISE:
                logger.error(
                    "group_invariant_violated",
                    extra={"group_id": str(group.group_id), "error_code": exc.code},
                )
                raise
            logger.warning(
                "unbalanced_group_excluded",
                extra={
                    "group_id": str(group.group_id),
                    "error_code": exc.code,
                    "detail": str(exc),
                },
            )
            excluded.append(group.group_id)
            continue
        accepted.append(group)
    return tuple(accepted), tuple(excluded)
