"""
Data Models Package

This package contains all Pydantic models used in Ledgerbook.
All data flowing through the ledger must conform to these schemas.
"""

from ledgerbook.models.ledger import (
    Customer,
    CustomerView,
    PeriodReport,
    ReportPeriod,
    SortOrder,
    Transaction,
    TransactionType,
    ValidationIssue,
    local_now,
)
from ledgerbook.models.events import (
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventType,
)
from ledgerbook.models.money import (
    format_amount,
    from_minor_units,
    to_minor_units,
)

__all__ = [
    # Ledger models
    "Customer",
    "CustomerView",
    "PeriodReport",
    "ReportPeriod",
    "SortOrder",
    "Transaction",
    "TransactionType",
    "ValidationIssue",
    "local_now",
    # Event models
    "LedgerEvent",
    "LedgerEventBuilder",
    "LedgerEventType",
    # Money helpers
    "format_amount",
    "from_minor_units",
    "to_minor_units",
]
