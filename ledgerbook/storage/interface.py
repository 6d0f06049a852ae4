"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the engine decoupled from the persistence mechanism
2. Use in-memory storage for testing
3. Swap SQLite for another database later

The interface is intentionally simple - we're not building a full ORM.
Ownership and cascade delete are explicit contract clauses here,
not relationship magic.

CRITICAL: atomic() is what keeps a customer's balance in step with
its transactions. The engine wraps "insert transaction" and
"update customer balance" in one unit; a store must apply both or neither.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime
from enum import Enum
from typing import Callable, Optional
from uuid import UUID

from ledgerbook.exceptions import (
    DuplicateError,
    NotFoundError,
    StorageConnectionError,
    StorageError,
)
from ledgerbook.models.ledger import Customer, Transaction

CustomerPredicate = Callable[[Customer], bool]
TransactionPredicate = Callable[[Transaction], bool]


class CustomerSortKey(str, Enum):
    """Orderings the store can return customers in."""
    NAME = "name"
    CREATED = "created"


def customer_sort_key(sort: CustomerSortKey) -> Callable[[Customer], tuple]:
    """
    Key function shared by stores that sort in Python.

    The id is the final tie-break so equal names still order deterministically.
    """
    if sort == CustomerSortKey.CREATED:
        return lambda c: (c.created_date, str(c.id))
    return lambda c: (c.name, str(c.id))


def transaction_sort_key(txn: Transaction) -> tuple:
    return (txn.date, str(txn.id))


class LedgerStoreInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    Any storage implementation (in-memory, SQLite, etc.)
    must implement these methods.

    Records are frozen models; callers make new versions with model_copy()
    and hand them back through update_customer().
    """

    # -------------------------------------------------------------------------
    # Units of work
    # -------------------------------------------------------------------------

    @abstractmethod
    def atomic(self) -> AbstractContextManager[None]:
        """
        Group writes into one all-or-nothing unit.

        Usage:
            with store.atomic():
                store.create_transaction(txn)
                store.update_customer(customer)

        If the block raises, every write inside it is rolled back and the
        exception propagates. Nested blocks join the outermost one.

        Raises:
            StorageError: If the unit cannot be committed
        """
        pass

    # -------------------------------------------------------------------------
    # Customers
    # -------------------------------------------------------------------------

    @abstractmethod
    def create_customer(self, customer: Customer) -> Customer:
        """
        Insert a new customer.

        Raises:
            DuplicateError: If a customer with this id exists
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def get_customer(self, customer_id: UUID) -> Optional[Customer]:
        """
        Retrieve a customer by id.

        Returns:
            The customer if found, None otherwise
        """
        pass

    @abstractmethod
    def update_customer(self, customer: Customer) -> Customer:
        """
        Replace a stored customer with the given version.

        Raises:
            NotFoundError: If the customer doesn't exist
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete_customer(self, customer_id: UUID) -> bool:
        """
        Delete a customer and, in the same unit, all of its transactions.

        Returns:
            True if a customer was deleted, False if it did not exist
        """
        pass

    @abstractmethod
    def query_customers(
        self,
        predicate: Optional[CustomerPredicate] = None,
        sort: CustomerSortKey = CustomerSortKey.NAME,
    ) -> list[Customer]:
        """
        List customers matching a predicate.

        Args:
            predicate: Keep only customers for which this returns True
            sort: Ordering of the result (id breaks ties)

        Returns:
            Matching customers from one consistent snapshot
        """
        pass

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @abstractmethod
    def create_transaction(self, txn: Transaction) -> Transaction:
        """
        Insert a new transaction.

        Raises:
            DuplicateError: If a transaction with this id exists
            NotFoundError: If the owning customer doesn't exist
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        """
        Retrieve a transaction by id.

        Returns:
            The transaction if found, None otherwise
        """
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: UUID) -> bool:
        """
        Delete a transaction record. Balance bookkeeping is the engine's job.

        Returns:
            True if deleted, False if it did not exist
        """
        pass

    @abstractmethod
    def query_transactions(
        self,
        predicate: Optional[TransactionPredicate] = None,
        customer_id: Optional[UUID] = None,
        date_from: Optional[datetime] = None,
        newest_first: bool = False,
    ) -> list[Transaction]:
        """
        List transactions with optional filters.

        Args:
            predicate: Keep only transactions for which this returns True
            customer_id: Only this customer's transactions
            date_from: Inclusive lower bound on the transaction date
            newest_first: Order by date descending instead of ascending

        Returns:
            Matching transactions ordered by date, id breaking ties
        """
        pass

    def close(self) -> None:
        """Release backend resources. Default: nothing to release."""
        pass


__all__ = [
    "CustomerPredicate",
    "CustomerSortKey",
    "DuplicateError",
    "LedgerStoreInterface",
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
    "TransactionPredicate",
    "customer_sort_key",
    "transaction_sort_key",
]
