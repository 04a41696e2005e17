"""
Conversion -- document-currency to base-currency arithmetic.

Responsibility:
    The one place where an amount changes currency. Every base figure the
    engine reports either was stored by the posting side or is recomputed
    here from a document amount and a rate.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Decimal-only arithmetic, quantized to the base currency's minor unit
      with ROUND_HALF_UP.
    - Division by a zero rate is a ConfigurationError, never 0 or Infinity.

Failure modes:
    - ConfigurationError for a zero or negative rate, or for a NONE
      direction on a non-base currency.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, DivisionByZero, InvalidOperation

from ledger_kernel.domain.values import ConversionDirection, CurrencyDefinition
from ledger_kernel.exceptions import ConfigurationError

DEFAULT_ROUNDING = ROUND_HALF_UP


def quantize(amount: Decimal, minor_unit: Decimal) -> Decimal:
    """Round to a minor unit with the engine's rounding mode."""
    return amount.quantize(minor_unit, rounding=DEFAULT_ROUNDING)


def _effective_rate(currency: CurrencyDefinition, rate: Decimal | None) -> Decimal:
    effective = currency.rate if rate is None else rate
    if not isinstance(effective, Decimal):
        effective = Decimal(str(effective))
    if effective == 0:
        raise ConfigurationError(
            f"exchange rate is zero under {currency.direction.value}",
            currency.code,
        )
    if effective < 0:
        raise ConfigurationError(
            f"exchange rate must be positive, got {effective}", currency.code,
        )
    return effective


def to_base(
    amount: Decimal,
    currency: CurrencyDefinition,
    *,
    rate: Decimal | None = None,
    minor_unit: Decimal = Decimal("0.01"),
) -> Decimal:
    """
    Convert a document-currency amount to the base currency.

    ``rate`` overrides the table rate; callers pass a line's stored
    exchange_rate so historical reports ignore later rate edits.
    ``minor_unit`` is the base currency's minor unit.

    Raises:
        ConfigurationError: rate is zero or negative, or the direction is
            NONE on a non-base currency.
    """
    if currency.is_base:
        return amount

    effective = _effective_rate(currency, rate)
    if currency.direction == ConversionDirection.MULTIPLY:
        return quantize(amount * effective, minor_unit)
    if currency.direction == ConversionDirection.DIVIDE:
        try:
            return quantize(amount / effective, minor_unit)
        except (DivisionByZero, InvalidOperation) as e:
            raise ConfigurationError(
                f"cannot divide by rate {effective}", currency.code,
            ) from e
    raise ConfigurationError(
        "conversion direction NONE is only valid for the base currency",
        currency.code,
    )


def from_base(
    amount: Decimal,
    currency: CurrencyDefinition,
    *,
    rate: Decimal | None = None,
    minor_unit: Decimal | None = None,
) -> Decimal:
    """
    Convert a base amount back into the document currency.

    Inverse of :func:`to_base`; ``minor_unit`` defaults to the document
    currency's own precision.
    """
    if currency.is_base:
        return amount

    unit = minor_unit if minor_unit is not None else currency.minor_unit
    effective = _effective_rate(currency, rate)
    if currency.direction == ConversionDirection.MULTIPLY:
        return quantize(amount / effective, unit)
    if currency.direction == ConversionDirection.DIVIDE:
        return quantize(amount * effective, unit)
    raise ConfigurationError(
        "conversion direction NONE is only valid for the base currency",
        currency.code,
    )


def conversion_tolerance(
    currency: CurrencyDefinition,
    *,
    rate: Decimal | None = None,
    minor_unit: Decimal = Decimal("0.01"),
) -> Decimal:
    """
    Largest drift a to_base/from_base round trip may show.

    Each leg rounds by at most half a minor unit; the base leg's rounding
    error is scaled by the rate on the way back.
    """
    if currency.is_base:
        return Decimal("0")
    effective = _effective_rate(currency, rate)
    half = minor_unit / 2
    doc_half = currency.minor_unit / 2
    if currency.direction == ConversionDirection.MULTIPLY:
        return half / effective + doc_half
    return half * effective + doc_half
