"""
Tests for the ledger snapshot and its frozen records.

Covers referential integrity at construction, the optional line bound,
deterministic ordering of accounts and groups, and line validation.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

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
from ledger_kernel.exceptions import MissingReferenceError, SnapshotTooLargeError


class TestStatusFilter:
    def test_accepts_strings_and_members(self):
        assert status_filter("draft", GroupStatus.POSTED) == DRAFT_AND_POSTED

    def test_unknown_status_raises(self):
        with pytest.raises(ValueError):
            status_filter("archived")

    def test_posted_only(self):
        assert POSTED_ONLY == frozenset({GroupStatus.POSTED})


class TestLine:
    def test_amounts_coerced_to_decimal(self):
        line = Line(uuid4(), uuid4(), uuid4(), uuid4(), debit_base="10.5", debit_doc=10.5)
        assert line.debit_base == Decimal("10.5")
        assert isinstance(line.debit_doc, Decimal)

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError, match="credit_base"):
            Line(uuid4(), uuid4(), uuid4(), uuid4(), credit_base=Decimal("-1"))

    def test_net_and_side_amounts(self):
        line = Line(
            uuid4(), uuid4(), uuid4(), uuid4(),
            credit_base=Decimal("36.70"), credit_doc=Decimal("10"),
        )
        assert line.net_base == Decimal("-36.70")
        assert line.net_doc == Decimal("-10")
        assert line.base_amount == Decimal("36.70")
        assert line.doc_amount == Decimal("10")


class TestPostingGroup:
    def test_lines_sorted_by_line_no(self):
        gid = uuid4()
        second = Line(uuid4(), gid, uuid4(), uuid4(), line_no=2)
        first = Line(uuid4(), gid, uuid4(), uuid4(), line_no=1)
        group = PostingGroup(gid, date(2024, 1, 1), "posted", (second, first))
        assert group.lines == (first, second)
        assert group.status is GroupStatus.POSTED

    def test_foreign_line_rejected(self):
        line = Line(uuid4(), uuid4(), uuid4(), uuid4())
        with pytest.raises(ValueError, match="belongs to group"):
            PostingGroup(uuid4(), date(2024, 1, 1), GroupStatus.POSTED, (line,))


class TestLedgerSnapshot:
    def test_build_and_lookup(self, ledger):
        cash = ledger.account("1000", "Cash", is_cash_book=True)
        sales = ledger.account("4000", "Sales")
        group = ledger.post(
            date(2024, 1, 5), ledger.leg(cash, debit=100), ledger.leg(sales, credit=100),
        )
        snapshot = ledger.snapshot()

        assert snapshot.line_count == 2
        assert snapshot.account(cash.account_id) is cash
        assert snapshot.group(group.group_id) is group
        assert snapshot.account_currency(cash).code == "AED"
        assert snapshot.currency_of(group.lines[0]).code == "AED"

    def test_accounts_sorted_by_code(self, ledger):
        ledger.account("4000")
        ledger.account("1000")
        snapshot = ledger.snapshot()
        assert [a.code for a in snapshot.accounts] == ["1000", "4000"]

    def test_groups_sorted_by_date_then_sequence(self, ledger):
        a = ledger.account("1000")
        b = ledger.account("2000")
        late = ledger.post(date(2024, 2, 1), ledger.leg(a, debit=1), ledger.leg(b, credit=1), sequence=1)
        second = ledger.post(date(2024, 1, 1), ledger.leg(a, debit=1), ledger.leg(b, credit=1), sequence=9)
        first = ledger.post(date(2024, 1, 1), ledger.leg(a, debit=1), ledger.leg(b, credit=1), sequence=3)
        snapshot = ledger.snapshot()
        assert snapshot.groups == (first, second, late)

    def test_groups_with_status(self, ledger):
        a = ledger.account("1000")
        b = ledger.account("2000")
        posted = ledger.post(date(2024, 1, 1), ledger.leg(a, debit=1), ledger.leg(b, credit=1))
        ledger.post(
            date(2024, 1, 1), ledger.leg(a, debit=1), ledger.leg(b, credit=1),
            status=GroupStatus.DRAFT,
        )
        assert ledger.snapshot().groups_with_status(POSTED_ONLY) == (posted,)

    def test_line_with_unknown_account_raises(self, ledger):
        a = ledger.account("1000")
        stranger = ledger.account("9999")
        ledger.accounts.remove(stranger)
        ledger.post(date(2024, 1, 1), ledger.leg(a, debit=1), ledger.leg(stranger, credit=1))

        with pytest.raises(MissingReferenceError) as exc_info:
            ledger.snapshot()
        assert exc_info.value.entity == "Account"
        assert exc_info.value.entity_id == stranger.account_id

    def test_account_with_unknown_currency_raises(self, ledger):
        ledger.accounts.append(AccountRef(uuid4(), "1100", "Orphan", currency_id=uuid4()))
        with pytest.raises(MissingReferenceError) as exc_info:
            ledger.snapshot()
        assert exc_info.value.entity == "Currency"

    def test_unknown_lookup_raises(self, ledger):
        snapshot = ledger.snapshot()
        with pytest.raises(MissingReferenceError):
            snapshot.account(uuid4())
        with pytest.raises(MissingReferenceError):
            snapshot.group(uuid4())

    def test_line_bound(self, ledger):
        a = ledger.account("1000")
        b = ledger.account("2000")
        for day in range(1, 4):
            ledger.post(date(2024, 1, day), ledger.leg(a, debit=1), ledger.leg(b, credit=1))

        assert ledger.snapshot(max_lines=6).line_count == 6
        with pytest.raises(SnapshotTooLargeError) as exc_info:
            ledger.snapshot(max_lines=5)
        assert exc_info.value.line_count == 6
        assert exc_info.value.max_lines == 5
        assert exc_info.value.code == "SNAPSHOT_TOO_LARGE"

    def test_build_accepts_currency_iterable(self, ledger):
        snapshot = LedgerSnapshot.build([], [], [ledger.aed, ledger.usd])
        assert snapshot.currencies.base.code == "AED"
        assert snapshot.line_count == 0
