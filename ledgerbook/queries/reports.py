"""
Report Aggregator

Sums credits and payments recorded since the start of a period.

DESIGN DECISION: Reports are recomputed on every request.
There is no running total to keep in sync, so there is nothing
to invalidate when a transaction is added or deleted.

Periods are open-ended: they run from their start up to and
including "now" (and anything dated later).
"""

from datetime import datetime, timedelta, tzinfo
from typing import Callable, Optional, Union

from ledgerbook.models.ledger import (
    PeriodReport,
    ReportPeriod,
    TransactionType,
    local_now,
)
from ledgerbook.storage import LedgerStoreInterface
from ledgerbook.validation import LedgerValidator


def _midnight(day: datetime, tz: Optional[tzinfo]) -> datetime:
    if tz is None:
        # Naive local midnight, then let the OS zone rules fill in the offset
        return datetime(day.year, day.month, day.day).astimezone()
    return datetime(day.year, day.month, day.day, tzinfo=tz)


def period_start(
    period: ReportPeriod,
    now: datetime,
    tz: Optional[tzinfo] = None,
) -> datetime:
    """
    Start of the period containing `now`.

    - TODAY: midnight today
    - THIS_WEEK: midnight on Monday of the current ISO week
    - THIS_MONTH: midnight on the first of the month

    Args:
        tz: Zone the calendar is read in. None means the process-local zone.
    """
    local = now.astimezone(tz)

    if period == ReportPeriod.TODAY:
        return _midnight(local, tz)
    if period == ReportPeriod.THIS_WEEK:
        return _midnight(local - timedelta(days=local.weekday()), tz)
    return _midnight(local.replace(day=1), tz)


class ReportAggregator:
    """Computes period reports from stored transactions."""

    def __init__(
        self,
        store: LedgerStoreInterface,
        clock: Optional[Callable[[], datetime]] = None,
        tz: Optional[tzinfo] = None,
        validator: Optional[LedgerValidator] = None,
    ):
        self._store = store
        self._clock = clock or local_now
        self._tz = tz
        self._validator = validator or LedgerValidator()

    def aggregate(self, period: Union[ReportPeriod, str]) -> PeriodReport:
        """
        Totals for every transaction dated on or after the period start.

        Raises:
            ValidationError: If period is not a known report window
        """
        period = self._validator.validate_period(period)
        now = self._clock()
        start = period_start(period, now, self._tz)

        credits = 0
        payments = 0
        count = 0
        for txn in self._store.query_transactions(date_from=start):
            if txn.type == TransactionType.CREDIT:
                credits += txn.amount_minor
            else:
                payments += txn.amount_minor
            count += 1

        return PeriodReport(
            period=period,
            start=start,
            generated_at=now,
            total_credits_minor=credits,
            total_payments_minor=payments,
            transaction_count=count,
        )
