"""
Shared pytest fixtures.

Engines run against both store backends, with a controllable clock
so timestamps and report windows are deterministic.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import pytest

from ledgerbook.config import DisplaySettings
from ledgerbook.engine import LedgerEngine
from ledgerbook.exceptions import StorageError
from ledgerbook.storage import InMemoryLedgerStore, LedgerStoreInterface, SQLiteLedgerStore
from ledgerbook.storage.interface import CustomerSortKey


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FailingStore(LedgerStoreInterface):
    """
    Delegating store that raises StorageError from chosen methods.

    Used to check that a failure halfway through a unit of work
    leaves nothing behind.
    """

    def __init__(self, inner: LedgerStoreInterface):
        self.inner = inner
        self.fail_on: set[str] = set()

    def _maybe_fail(self, name: str) -> None:
        if name in self.fail_on:
            raise StorageError(f"Injected failure in {name}")

    def atomic(self):
        return self.inner.atomic()

    def create_customer(self, customer):
        self._maybe_fail("create_customer")
        return self.inner.create_customer(customer)

    def get_customer(self, customer_id: UUID):
        return self.inner.get_customer(customer_id)

    def update_customer(self, customer):
        self._maybe_fail("update_customer")
        return self.inner.update_customer(customer)

    def delete_customer(self, customer_id: UUID) -> bool:
        self._maybe_fail("delete_customer")
        return self.inner.delete_customer(customer_id)

    def query_customers(self, predicate=None, sort=CustomerSortKey.NAME):
        return self.inner.query_customers(predicate, sort)

    def create_transaction(self, txn):
        self._maybe_fail("create_transaction")
        return self.inner.create_transaction(txn)

    def get_transaction(self, transaction_id: UUID):
        return self.inner.get_transaction(transaction_id)

    def delete_transaction(self, transaction_id: UUID) -> bool:
        self._maybe_fail("delete_transaction")
        return self.inner.delete_transaction(transaction_id)

    def query_transactions(self, predicate=None, customer_id=None, date_from=None, newest_first=False):
        return self.inner.query_transactions(predicate, customer_id, date_from, newest_first)

    def close(self) -> None:
        self.inner.close()


FIXED_NOW = datetime(2026, 10, 22, 15, 30, tzinfo=timezone.utc)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(FIXED_NOW)


@pytest.fixture
def display() -> DisplaySettings:
    return DisplaySettings(
        currency_symbol="₹",
        statement_date_format="%d/%m/%Y",
        timezone="UTC",
    )


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path) -> LedgerStoreInterface:
    """Every store backend, one test run each."""
    if request.param == "sqlite":
        backend = SQLiteLedgerStore(tmp_path / "ledger.db")
    else:
        backend = InMemoryLedgerStore()
    yield backend
    backend.close()


def make_engine(
    store: LedgerStoreInterface,
    clock: FakeClock,
    display: DisplaySettings,
    events=None,
) -> LedgerEngine:
    return LedgerEngine(store, clock=clock, display=display, events=events)


@pytest.fixture
def engine(store, clock, display) -> LedgerEngine:
    return make_engine(store, clock, display)


@pytest.fixture
def failing_store(store) -> FailingStore:
    return FailingStore(store)


@pytest.fixture
def failing_engine(failing_store, clock, display) -> LedgerEngine:
    return make_engine(failing_store, clock, display)


def customer_balance(engine: LedgerEngine, customer_id, store: Optional[LedgerStoreInterface] = None) -> int:
    """Full summation of a customer's transactions, in minor units."""
    store = store or engine.store
    return sum(t.signed_minor for t in store.query_transactions(customer_id=customer_id))
