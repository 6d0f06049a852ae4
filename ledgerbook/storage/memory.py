"""
In-Memory Storage Implementation

Dict-backed store for tests and for hosts that persist elsewhere.

DESIGN DECISION: Copy-on-write snapshots.
A writer stages its unit of work on a private copy of the current state
and publishes it on commit by swapping a single reference. Readers grab
whichever snapshot is current when they start, so they never see a
transaction without its balance update (or the reverse) and never block.
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, Optional
from uuid import UUID

from ledgerbook.exceptions import DuplicateError, NotFoundError
from ledgerbook.models.ledger import Customer, Transaction, ensure_aware
from ledgerbook.storage.interface import (
    CustomerPredicate,
    CustomerSortKey,
    LedgerStoreInterface,
    TransactionPredicate,
    customer_sort_key,
    transaction_sort_key,
)


@dataclass
class _State:
    customers: dict[UUID, Customer] = field(default_factory=dict)
    transactions: dict[UUID, Transaction] = field(default_factory=dict)

    def copy(self) -> "_State":
        # Models are frozen, so shallow dict copies are enough.
        return _State(dict(self.customers), dict(self.transactions))


class InMemoryLedgerStore(LedgerStoreInterface):
    """
    In-memory implementation of ledger storage.

    One writer at a time (guarded by a lock); any number of readers.
    """

    def __init__(self):
        self._committed = _State()
        self._write_lock = threading.RLock()
        self._local = threading.local()

    # -------------------------------------------------------------------------
    # Units of work
    # -------------------------------------------------------------------------

    def _pending(self) -> Optional[_State]:
        return getattr(self._local, "pending", None)

    def _snapshot(self) -> _State:
        """State visible to the calling thread."""
        pending = self._pending()
        return pending if pending is not None else self._committed

    @contextmanager
    def atomic(self) -> Iterator[None]:
        if self._pending() is not None:
            # Join the unit this thread already has open
            yield
            return

        with self._write_lock:
            self._local.pending = self._committed.copy()
            try:
                yield
                self._committed = self._local.pending
            finally:
                self._local.pending = None

    # -------------------------------------------------------------------------
    # Customers
    # -------------------------------------------------------------------------

    def create_customer(self, customer: Customer) -> Customer:
        with self.atomic():
            state = self._snapshot()
            if customer.id in state.customers:
                raise DuplicateError(f"Customer already exists: {customer.id}")
            state.customers[customer.id] = customer
        return customer

    def get_customer(self, customer_id: UUID) -> Optional[Customer]:
        return self._snapshot().customers.get(customer_id)

    def update_customer(self, customer: Customer) -> Customer:
        with self.atomic():
            state = self._snapshot()
            if customer.id not in state.customers:
                raise NotFoundError(f"Customer not found: {customer.id}")
            state.customers[customer.id] = customer
        return customer

    def delete_customer(self, customer_id: UUID) -> bool:
        with self.atomic():
            state = self._snapshot()
            if state.customers.pop(customer_id, None) is None:
                return False
            state.transactions = {
                txn_id: txn
                for txn_id, txn in state.transactions.items()
                if txn.customer_id != customer_id
            }
        return True

    def query_customers(
        self,
        predicate: Optional[CustomerPredicate] = None,
        sort: CustomerSortKey = CustomerSortKey.NAME,
    ) -> list[Customer]:
        customers = self._snapshot().customers.values()
        if predicate is not None:
            customers = [c for c in customers if predicate(c)]
        return sorted(customers, key=customer_sort_key(sort))

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def create_transaction(self, txn: Transaction) -> Transaction:
        with self.atomic():
            state = self._snapshot()
            if txn.id in state.transactions:
                raise DuplicateError(f"Transaction already exists: {txn.id}")
            if txn.customer_id not in state.customers:
                raise NotFoundError(f"Customer not found: {txn.customer_id}")
            state.transactions[txn.id] = txn
        return txn

    def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        return self._snapshot().transactions.get(transaction_id)

    def delete_transaction(self, transaction_id: UUID) -> bool:
        with self.atomic():
            state = self._snapshot()
            return state.transactions.pop(transaction_id, None) is not None

    def query_transactions(
        self,
        predicate: Optional[TransactionPredicate] = None,
        customer_id: Optional[UUID] = None,
        date_from: Optional[datetime] = None,
        newest_first: bool = False,
    ) -> list[Transaction]:
        results = []
        for txn in self._snapshot().transactions.values():
            if customer_id is not None and txn.customer_id != customer_id:
                continue
            if date_from is not None and txn.date < ensure_aware(date_from):
                continue
            if predicate is not None and not predicate(txn):
                continue
            results.append(txn)

        return sorted(results, key=transaction_sort_key, reverse=newest_first)
