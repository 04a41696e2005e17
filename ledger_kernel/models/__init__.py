"""ORM models for the ledger store."""

from ledger_kernel.models.account import ChartOfAccount, Subcategory
from ledger_kernel.models.currency import Currency
from ledger_kernel.models.posting import (
    GLHeader,
    GLTransaction,
    HeaderStatus,
    TransactionType,
)

__all__ = [
    "Currency",
    "ChartOfAccount",
    "Subcategory",
    "TransactionType",
    "GLHeader",
    "GLTransaction",
    "HeaderStatus",
]
