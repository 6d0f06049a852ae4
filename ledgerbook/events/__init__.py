"""Ledger events and structured logging package."""

from ledgerbook.events.logger import (
    LedgerEventLogger,
    LedgerListener,
    configure_logging,
)

__all__ = ["LedgerEventLogger", "LedgerListener", "configure_logging"]
