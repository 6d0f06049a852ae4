"""Input validation package."""

from ledgerbook.validation.validator import (
    CustomerFields,
    LedgerValidator,
    TransactionFields,
)

__all__ = ["CustomerFields", "LedgerValidator", "TransactionFields"]
