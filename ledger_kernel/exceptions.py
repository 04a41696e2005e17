"""
Typed Exception Hierarchy for the Ledger Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Balance figures feed statutory reports (trial balance, zakat). A report that
silently coerces bad data into a default value is worse than a report that
refuses to run, so every failure the engine can detect has its own class:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        report = build_trial_balance(snapshot, as_of, statuses, config, meta)
    except UnbalancedGroupError as e:
        log.warning("group %s off by %s", e.group_id, e.imbalance)
        api_response(code=e.code, group=str(e.group_id))

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from LedgerEngineError:

    LedgerEngineError (base)
    |
    +-- ConfigurationError
    |
    +-- InvariantViolationError
    |   +-- UnbalancedGroupError
    |       +-- MixedSideLineError
    |       +-- LineConversionMismatchError
    |
    +-- MissingReferenceError
    |
    +-- SnapshotTooLargeError
    |
    +-- InvalidReportParameterError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Configuration   | CONFIGURATION_ERROR         | Zero rate under DIVIDE, no/several base
                |                             | currencies, NONE direction on non-base
----------------|-----------------------------|-----------------------------------------
Invariant       | UNBALANCED_GROUP            | Group debits != credits beyond tolerance
                | MIXED_SIDE_LINE             | Line carries both a debit and a credit
                | LINE_CONVERSION_MISMATCH    | Base amount != converted document amount
----------------|-----------------------------|-----------------------------------------
Integrity       | MISSING_REFERENCE           | Line references unknown account/currency
----------------|-----------------------------|-----------------------------------------
Resource        | SNAPSHOT_TOO_LARGE          | Snapshot exceeds configured line bound
----------------|-----------------------------|-----------------------------------------
Parameters      | INVALID_REPORT_PARAMETER    | Empty status filter, inverted date range,
                |                             | account is not a cash/bank book

None of these are transient. The engine performs no I/O, so there is no
retryable class here; database errors belong to SQLAlchemy and propagate
unchanged from the selector layer.

===============================================================================
DESIGN DECISIONS
===============================================================================

1. WHY INHERIT FROM Exception (not ValueError, etc.)?
   Domain exceptions should be catchable as a group. Inheriting from
   built-in types mixes domain errors with programming errors.

2. WHY code CLASS ATTRIBUTE (not instance)?
   Codes are static per exception type and available without instantiation.

3. WHY Decimal AMOUNTS AS ATTRIBUTES?
   The caller decides whether to exclude a group or abort a report; it needs
   the exact imbalance, not a parsed message.

===============================================================================
"""

from decimal import Decimal
from uuid import UUID


class LedgerEngineError(Exception):
    """
    Base exception for all ledger engine errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_ENGINE_ERROR"


# Configuration


class ConfigurationError(LedgerEngineError):
    """Reference data (currency table) is unusable. Fatal, never retried."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, reason: str, currency_code: str | None = None):
        self.reason = reason
        self.currency_code = currency_code
        if currency_code:
            super().__init__(f"Configuration error for {currency_code}: {reason}")
        else:
            super().__init__(f"Configuration error: {reason}")


# Invariant violations


class InvariantViolationError(LedgerEngineError):
    """Base exception for stored data that breaks a double-entry invariant."""

    code: str = "INVARIANT_VIOLATION"


class UnbalancedGroupError(InvariantViolationError):
    """
    Posting group fails the double-entry check.

    ``debits`` and ``credits`` are the group's base-currency totals and
    ``imbalance`` their absolute difference. The line-level subclasses
    below carry the same fields, so one ``except UnbalancedGroupError``
    catches every way a group can break.
    """

    code: str = "UNBALANCED_GROUP"

    def __init__(
        self,
        group_id: UUID,
        debits: Decimal,
        credits: Decimal,
        message: str | None = None,
    ):
        self.group_id = group_id
        self.debits = debits
        self.credits = credits
        self.imbalance = abs(debits - credits)
        super().__init__(
            message
            or f"Unbalanced posting group {group_id}: debits={debits}, "
            f"credits={credits}, imbalance={self.imbalance}"
        )


class MixedSideLineError(UnbalancedGroupError):
    """A line carries a nonzero debit and a nonzero credit at the same time."""

    code: str = "MIXED_SIDE_LINE"

    def __init__(
        self,
        group_id: UUID,
        line_id: UUID,
        basis: str,
        debits: Decimal,
        credits: Decimal,
    ):
        self.line_id = line_id
        self.basis = basis
        super().__init__(
            group_id,
            debits,
            credits,
            f"Line {line_id} in group {group_id} has both a debit and a "
            f"credit in {basis} currency",
        )


class LineConversionMismatchError(UnbalancedGroupError):
    """Stored base amount disagrees with the converted document amount."""

    code: str = "LINE_CONVERSION_MISMATCH"

    def __init__(
        self,
        group_id: UUID,
        line_id: UUID,
        expected_base: Decimal,
        stored_base: Decimal,
        debits: Decimal,
        credits: Decimal,
    ):
        self.line_id = line_id
        self.expected_base = expected_base
        self.stored_base = stored_base
        super().__init__(
            group_id,
            debits,
            credits,
            f"Line {line_id} in group {group_id}: stored base net "
            f"{stored_base} != converted document net {expected_base}",
        )


# Referential integrity


class MissingReferenceError(LedgerEngineError):
    """A record references an entity that is absent from the snapshot."""

    code: str = "MISSING_REFERENCE"

    def __init__(self, entity: str, entity_id: object, referenced_by: object):
        self.entity = entity
        self.entity_id = entity_id
        self.referenced_by = referenced_by
        super().__init__(
            f"{entity} {entity_id} referenced by {referenced_by} "
            "is not present in the snapshot"
        )


# Resource bounds


class SnapshotTooLargeError(LedgerEngineError):
    """Snapshot holds more lines than the caller allowed."""

    code: str = "SNAPSHOT_TOO_LARGE"

    def __init__(self, line_count: int, max_lines: int):
        self.line_count = line_count
        self.max_lines = max_lines
        super().__init__(
            f"Snapshot has {line_count} lines, limit is {max_lines}"
        )


# Report parameters


class InvalidReportParameterError(LedgerEngineError):
    """A report was requested with parameters it cannot honour."""

    code: str = "INVALID_REPORT_PARAMETER"

    def __init__(self, parameter: str, reason: str):
        self.parameter = parameter
        self.reason = reason
        super().__init__(f"Invalid report parameter '{parameter}': {reason}")
