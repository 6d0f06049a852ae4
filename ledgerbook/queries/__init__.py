"""Read-side views over the ledger."""

from ledgerbook.queries.projection import (
    CustomerViewProjection,
    matches_search,
    sort_customers,
)
from ledgerbook.queries.reports import ReportAggregator, period_start

__all__ = [
    "CustomerViewProjection",
    "ReportAggregator",
    "matches_search",
    "period_start",
    "sort_customers",
]
