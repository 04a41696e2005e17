"""
Ledger Kernel

Balance engine over an append-only, multi-currency, double-entry ledger:
- Explicit currency table with stored-rate conversion
- Per-report double-entry invariant checking
- Deterministic opening, running and closing balances
- Read-only snapshot loading from the ledger store
"""

__version__ = "0.1.0"
