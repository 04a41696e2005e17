"""
Values -- Immutable, self-validating reference values.

Responsibility:
    Provides the currency table the whole engine is parameterised by
    (CurrencyDefinition, CurrencyTable) and the derived Balance values the
    calculator returns.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by conversion, ledger, balances. No outward dependencies except
    ledger_kernel.domain.currency (CurrencyRegistry) and exceptions.

Invariants enforced:
    SINGLE_BASE_CURRENCY -- exactly one base currency, with rate 1.
    Rates are positive Decimals; NONE direction only on the base currency.

Failure modes:
    - ConfigurationError on construction of an invalid CurrencyTable.
    - MissingReferenceError on lookup of an unknown currency id or code.

Audit relevance:
    The table is an explicit, immutable context value threaded into every
    conversion. There is no module-level "current base currency"; two
    reports run with two different tables never interfere.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from uuid import UUID

from ledger_kernel.domain.currency import CurrencyRegistry
from ledger_kernel.exceptions import ConfigurationError, MissingReferenceError


class ConversionDirection(str, Enum):
    """How a document amount becomes a base amount."""

    MULTIPLY = "multiply"
    DIVIDE = "divide"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class CurrencyDefinition:
    """
    One row of the currency table.

    Contract:
        ``rate`` is the exchange rate relative to the base currency and is
        applied according to ``direction``. The base currency converts 1:1.

    Guarantees:
        - Immutable and hashable (frozen dataclass with slots)
        - code is uppercase and stripped
        - rate is always a Decimal (never float)

    Non-goals:
        - Does NOT validate table-level rules (single base); see CurrencyTable.
    """

    currency_id: UUID
    code: str
    rate: Decimal
    is_base: bool = False
    direction: ConversionDirection = ConversionDirection.MULTIPLY
    name: str = ""

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "code", CurrencyRegistry.normalize(self.code))
        except ValueError as e:
            raise ConfigurationError(f"invalid currency code {self.code!r}") from e
        if not isinstance(self.rate, Decimal):
            try:
                object.__setattr__(self, "rate", Decimal(str(self.rate)))
            except (InvalidOperation, ValueError) as e:
                raise ConfigurationError(
                    f"rate {self.rate!r} is not a decimal", self.code,
                ) from e
        if isinstance(self.direction, str) and not isinstance(
            self.direction, ConversionDirection
        ):
            try:
                direction = ConversionDirection(self.direction.strip().lower())
            except ValueError as e:
                raise ConfigurationError(
                    f"unknown conversion direction {self.direction!r}", self.code,
                ) from e
            object.__setattr__(self, "direction", direction)

    @property
    def decimal_places(self) -> int:
        return CurrencyRegistry.get_decimal_places(self.code)

    @property
    def minor_unit(self) -> Decimal:
        return CurrencyRegistry.get_minor_unit(self.code)

    def __str__(self) -> str:
        return self.code


@dataclass(frozen=True)
class CurrencyTable:
    """
    Immutable currency table passed explicitly to conversion and balances.

    Contract:
        Built once per report from the caller's snapshot. Validates every
        table-level invariant at construction so that conversion never has
        to second-guess its inputs.

    Guarantees:
        - Exactly one base currency, rate == 1
        - Every rate > 0
        - NONE direction only on the base currency
        - Lookups by id and by code are O(1)

    Raises:
        ConfigurationError: on any violation above, or on duplicate codes.
    """

    currencies: tuple[CurrencyDefinition, ...]
    _by_id: dict[UUID, CurrencyDefinition] = field(
        init=False, repr=False, compare=False,
    )
    _by_code: dict[str, CurrencyDefinition] = field(
        init=False, repr=False, compare=False,
    )

    def __post_init__(self) -> None:
        currencies = tuple(self.currencies)
        object.__setattr__(self, "currencies", currencies)

        bases = [c for c in currencies if c.is_base]
        if not bases:
            raise ConfigurationError("currency table has no base currency")
        if len(bases) > 1:
            codes = ", ".join(c.code for c in bases)
            raise ConfigurationError(
                f"currency table has {len(bases)} base currencies ({codes})"
            )

        by_id: dict[UUID, CurrencyDefinition] = {}
        by_code: dict[str, CurrencyDefinition] = {}
        for c in currencies:
            if c.is_base and c.rate != Decimal("1"):
                raise ConfigurationError(
                    f"base currency rate must be 1, got {c.rate}", c.code,
                )
            if c.rate <= 0:
                raise ConfigurationError(
                    f"rate must be positive, got {c.rate}", c.code,
                )
            if c.direction == ConversionDirection.NONE and not c.is_base:
                raise ConfigurationError(
                    "conversion direction NONE is only valid for the base "
                    "currency",
                    c.code,
                )
            if c.code in by_code:
                raise ConfigurationError("duplicate currency code", c.code)
            by_id[c.currency_id] = c
            by_code[c.code] = c

        object.__setattr__(self, "_by_id", by_id)
        object.__setattr__(self, "_by_code", by_code)

    @classmethod
    def of(cls, currencies: Iterable[CurrencyDefinition]) -> CurrencyTable:
        return cls(currencies=tuple(currencies))

    @property
    def base(self) -> CurrencyDefinition:
        """The single base currency."""
        return next(c for c in self.currencies if c.is_base)

    def get(self, currency_id: UUID, referenced_by: object = None) -> CurrencyDefinition:
        """Look up a currency by id; unknown ids are a data-integrity defect."""
        try:
            return self._by_id[currency_id]
        except KeyError:
            raise MissingReferenceError(
                "Currency", currency_id, referenced_by or "caller",
            ) from None

    def by_code(self, code: str) -> CurrencyDefinition:
        try:
            return self._by_code[CurrencyRegistry.normalize(code)]
        except KeyError:
            raise MissingReferenceError("Currency", code, "caller") from None

    def __contains__(self, currency_id: object) -> bool:
        return currency_id in self._by_id

    def __iter__(self) -> Iterator[CurrencyDefinition]:
        return iter(self.currencies)

    def __len__(self) -> int:
        return len(self.currencies)


@dataclass(frozen=True, slots=True)
class Balance:
    """A derived amount paired with its currency code. Never persisted."""

    amount: Decimal
    currency_code: str

    @classmethod
    def zero(cls, currency_code: str) -> Balance:
        return cls(Decimal("0"), currency_code)

    @property
    def is_debit(self) -> bool:
        return self.amount > 0

    @property
    def is_credit(self) -> bool:
        return self.amount < 0

    def __str__(self) -> str:
        return f"{self.amount} {self.currency_code}"


@dataclass(frozen=True, slots=True)
class BalancePair:
    """Base-currency and document-currency balance of the same position."""

    base: Balance
    document: Balance
