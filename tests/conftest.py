"""
Pytest fixtures for the ledger balance engine test suite.

Provides:
- Structured logging configuration and log capture
- An in-memory domain ledger builder (no database)
- Database sessions for selector and service tests
- A deterministic clock

Environment Variables:
- DATABASE_URL: connection URL for store-backed tests.  Defaults to an
  in-memory SQLite database; set a ``postgresql+psycopg://`` URL to run the
  same tests against PostgreSQL.
"""

import json
import logging
import os
from datetime import UTC, date, datetime
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

from ledger_kernel.db.base import Base
from ledger_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.domain.conversion import to_base
from ledger_kernel.domain.ledger import (
    AccountRef,
    GroupStatus,
    LedgerSnapshot,
    Line,
    PostingGroup,
)
from ledger_kernel.domain.values import (
    ConversionDirection,
    CurrencyDefinition,
    CurrencyTable,
)
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from ledger_kernel.models import (
    ChartOfAccount,
    Currency,
    GLHeader,
    GLTransaction,
    Subcategory,
    TransactionType,
)

DEFAULT_DATABASE_URL = "sqlite://"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture ledger_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, ...):
            ...
            logs = captured_logs()
            assert any(r["message"] == "trial_balance_generated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("ledger_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    return DeterministicClock(datetime(2024, 1, 31, 18, 0, 0, tzinfo=UTC))


# =============================================================================
# Domain ledger builder (pure, no database)
# =============================================================================


class LedgerBuilder:
    """
    Builds AccountRefs, PostingGroups and a LedgerSnapshot for pure tests.

    Currencies: AED base, USD multiply at 3.67, KWD divide at 0.083.
    ``leg`` amounts are document amounts; the base amount is derived with
    ``to_base`` unless ``base`` is given explicitly.
    """

    def __init__(self):
        self.aed = CurrencyDefinition(
            uuid4(), "AED", Decimal("1"), is_base=True,
            direction=ConversionDirection.NONE, name="UAE Dirham",
        )
        self.usd = CurrencyDefinition(
            uuid4(), "USD", Decimal("3.67"),
            direction=ConversionDirection.MULTIPLY, name="US Dollar",
        )
        self.kwd = CurrencyDefinition(
            uuid4(), "KWD", Decimal("0.083"),
            direction=ConversionDirection.DIVIDE, name="Kuwaiti Dinar",
        )
        self.currencies = CurrencyTable.of([self.aed, self.usd, self.kwd])
        self.accounts: list[AccountRef] = []
        self.groups: list[PostingGroup] = []
        self._seq = 0

    def account(
        self,
        code: str,
        name: str | None = None,
        currency: CurrencyDefinition | None = None,
        **flags,
    ) -> AccountRef:
        account = AccountRef(
            account_id=uuid4(),
            code=code,
            name=name or f"Account {code}",
            currency_id=(currency or self.aed).currency_id,
            **flags,
        )
        self.accounts.append(account)
        return account

    @staticmethod
    def leg(
        account: AccountRef,
        debit=None,
        credit=None,
        *,
        currency: CurrencyDefinition | None = None,
        rate=None,
        base=None,
        description: str | None = None,
    ) -> dict:
        return {
            "account": account,
            "debit": Decimal(str(debit)) if debit is not None else None,
            "credit": Decimal(str(credit)) if credit is not None else None,
            "currency": currency,
            "rate": Decimal(str(rate)) if rate is not None else None,
            "base": Decimal(str(base)) if base is not None else None,
            "description": description,
        }

    def group(
        self,
        on: date,
        *legs: dict,
        status: GroupStatus = GroupStatus.POSTED,
        type_code: str | None = None,
        type_description: str | None = None,
        description: str = "",
        sequence: int | None = None,
    ) -> PostingGroup:
        """Build a group without adding it to the ledger."""
        if sequence is None:
            self._seq += 1
            sequence = self._seq
        group_id = uuid4()
        lines = []
        for line_no, spec in enumerate(legs, start=1):
            currency = spec["currency"] or self.aed
            rate = spec["rate"] if spec["rate"] is not None else currency.rate
            doc = spec["debit"] if spec["debit"] is not None else spec["credit"]
            base = spec["base"]
            if base is None:
                base = to_base(doc, currency, rate=rate, minor_unit=self.aed.minor_unit)
            is_debit = spec["debit"] is not None
            lines.append(
                Line(
                    line_id=uuid4(),
                    group_id=group_id,
                    account_id=spec["account"].account_id,
                    currency_id=currency.currency_id,
                    debit_base=base if is_debit else Decimal("0"),
                    credit_base=Decimal("0") if is_debit else base,
                    debit_doc=doc if is_debit else Decimal("0"),
                    credit_doc=Decimal("0") if is_debit else doc,
                    exchange_rate=rate,
                    line_no=line_no,
                    description=spec["description"],
                )
            )
        return PostingGroup(
            group_id=group_id,
            transaction_date=on,
            status=status,
            lines=tuple(lines),
            sequence=sequence,
            description=description,
            type_code=type_code,
            type_description=type_description,
        )

    def post(self, on: date, *legs: dict, **kwargs) -> PostingGroup:
        """Build a group and add it to the ledger."""
        group = self.group(on, *legs, **kwargs)
        self.groups.append(group)
        return group

    def add(self, group: PostingGroup) -> PostingGroup:
        self.groups.append(group)
        return group

    def snapshot(self, max_lines: int | None = None) -> LedgerSnapshot:
        return LedgerSnapshot.build(
            self.accounts, self.groups, self.currencies, max_lines=max_lines,
        )


@pytest.fixture
def ledger() -> LedgerBuilder:
    """Fresh in-memory ledger with AED/USD/KWD currencies and no accounts."""
    return LedgerBuilder()


# =============================================================================
# Database fixtures
# =============================================================================


def get_database_url() -> str:
    return os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)


@pytest.fixture(scope="session")
def db_engine():
    """Create the engine and tables once per test session."""
    engine = init_engine_from_url(get_database_url())
    drop_tables()
    create_tables()
    yield engine
    drop_tables()
    reset_engine()


def _truncate_all_tables() -> None:
    engine = get_engine()
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def session(db_engine) -> Generator[Session, None, None]:
    """A session whose data is removed after the test."""
    sess = get_session()
    try:
        yield sess
    finally:
        sess.rollback()
        sess.close()
        _truncate_all_tables()


class LedgerStore:
    """Inserts ledger rows through the ORM for selector and service tests."""

    def __init__(self, session: Session):
        self.session = session
        self._seq = 0
        self._types: dict[str, TransactionType] = {}
        self.aed = self.currency("AED", Decimal("1"), is_base=True, note=None)
        self.usd = self.currency("USD", Decimal("3.67"), note="multiply")

    def currency(self, code: str, rate: Decimal, *, is_base: bool = False, note: str | None = "multiply") -> Currency:
        row = Currency(
            id=uuid4(), code=code, name=code, rate=rate,
            is_base=is_base, exchange_rate_note=note,
        )
        self.session.add(row)
        self.session.flush()
        return row

    def subcategory(self, name: str) -> Subcategory:
        row = Subcategory(id=uuid4(), name=name)
        self.session.add(row)
        self.session.flush()
        return row

    def account(
        self,
        code: str,
        name: str | None = None,
        currency: Currency | None = None,
        subcategory: Subcategory | None = None,
        **flags,
    ) -> ChartOfAccount:
        row = ChartOfAccount(
            id=uuid4(),
            code=code,
            name=name or f"Account {code}",
            currency_id=(currency or self.aed).id,
            subcategory_id=subcategory.id if subcategory is not None else None,
            **flags,
        )
        self.session.add(row)
        self.session.flush()
        return row

    def transaction_type(self, code: str, description: str | None = None) -> TransactionType:
        if code not in self._types:
            row = TransactionType(id=uuid4(), transaction_type_code=code, description=description or code)
            self.session.add(row)
            self.session.flush()
            self._types[code] = row
        return self._types[code]

    def post(
        self,
        on: date,
        *legs: tuple,
        status: str = "posted",
        type_code: str | None = None,
        description: str = "",
    ) -> GLHeader:
        """
        Insert a header and its lines.

        Each leg is ``(account, debit, credit)`` in base currency, or
        ``(account, debit, credit, currency, rate, debit_doc, credit_doc)``.
        """
        self._seq += 1
        header = GLHeader(
            id=uuid4(),
            transaction_date=on,
            description=description,
            status=status,
            seq=self._seq,
            type_id=self.transaction_type(type_code).id if type_code else None,
        )
        for line_no, leg in enumerate(legs, start=1):
            account, debit, credit = leg[:3]
            if len(leg) > 3:
                currency, rate, debit_doc, credit_doc = leg[3:]
            else:
                currency, rate, debit_doc, credit_doc = self.aed, Decimal("1"), debit, credit
            header.lines.append(
                GLTransaction(
                    id=uuid4(),
                    account_id=account.id,
                    currency_id=currency.id,
                    debit=Decimal(str(debit)),
                    credit=Decimal(str(credit)),
                    debit_doc_currency=Decimal(str(debit_doc)),
                    credit_doc_currency=Decimal(str(credit_doc)),
                    exchange_rate=Decimal(str(rate)),
                    line_no=line_no,
                )
            )
        self.session.add(header)
        self.session.flush()
        return header


@pytest.fixture
def store(session) -> LedgerStore:
    """ORM row factory bound to the test session (AED base, USD multiply)."""
    return LedgerStore(session)
