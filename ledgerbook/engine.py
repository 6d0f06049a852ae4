"""
Ledger Engine for Ledgerbook

This module ties together all the components and defines the
operations UI collaborators call:
1. Customers: add, update, delete
2. Transactions: add, delete (each one moves the customer's balance)
3. Views: customer list, period report, statement

DESIGN DECISION: The engine enforces the boundaries:
- It is the ONLY writer of a customer's total due
- A transaction and its balance change are one atomic store unit
- Mutations of the same customer never interleave
- Every failure reaches the caller as a typed LedgerError

The running balance is maintained incrementally. Full summation exists
only in verify_balance(), which is diagnostic and never writes.
"""

import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator, Optional, Union
from uuid import UUID

from ledgerbook.config import DisplaySettings, Settings, get_settings
from ledgerbook.events import LedgerEventLogger, configure_logging
from ledgerbook.exceptions import LedgerError, NotFoundError
from ledgerbook.export import CustomerStatement, build_statement
from ledgerbook.models.events import LedgerEventBuilder
from ledgerbook.models.ledger import (
    Customer,
    CustomerView,
    PeriodReport,
    ReportPeriod,
    SortOrder,
    Transaction,
    TransactionType,
    ensure_aware,
    local_now,
)
from ledgerbook.models.money import AmountInput
from ledgerbook.queries import CustomerViewProjection, ReportAggregator
from ledgerbook.storage import LedgerStoreInterface, create_store
from ledgerbook.validation import LedgerValidator

EntityId = Union[UUID, str]


def _as_uuid(value: EntityId, kind: str) -> UUID:
    """An id that cannot be parsed cannot exist."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise NotFoundError(f"{kind} not found: {value!r}")


class LedgerEngine:
    """
    Business logic over a ledger store.

    All operations are synchronous and return a value or raise:
    - ValidationError: bad input, nothing touched
    - NotFoundError: referenced customer/transaction missing, nothing touched
    - StorageError: persistence failed, the unit of work was rolled back
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        validator: Optional[LedgerValidator] = None,
        events: Optional[LedgerEventLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
        display: Optional[DisplaySettings] = None,
    ):
        """
        Args:
            store: Where customers and transactions live
            validator: Input validation. Default LedgerValidator()
            events: Event logger/dispatcher. Default LedgerEventLogger()
            clock: Returns "now". Default: current local time
            display: Currency symbol, date format and report zone.
                     Loaded from settings if None.
        """
        self._store = store
        self._validator = validator or LedgerValidator()
        self._events = events or LedgerEventLogger()
        self._clock = clock or local_now
        self._display = display or get_settings().display

        self._projection = CustomerViewProjection(store, validator=self._validator)
        self._reports = ReportAggregator(
            store,
            clock=self._now,
            tz=self._display.tzinfo,
            validator=self._validator,
        )

        self._locks: dict[UUID, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @property
    def store(self) -> LedgerStoreInterface:
        return self._store

    @property
    def events(self) -> LedgerEventLogger:
        return self._events

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _now(self) -> datetime:
        return ensure_aware(self._clock())

    @contextmanager
    def _customer_lock(self, customer_id: UUID) -> Iterator[None]:
        """
        Critical section for every mutation of one customer.

        The lock is dropped again if the customer turns out not to exist.
        """
        with self._locks_guard:
            lock = self._locks.setdefault(customer_id, threading.Lock())
        try:
            with lock:
                yield
        except NotFoundError:
            self._forget_lock(customer_id)
            raise

    def _forget_lock(self, customer_id: UUID) -> None:
        with self._locks_guard:
            self._locks.pop(customer_id, None)

    @contextmanager
    def _reporting(self, operation: str, **details) -> Iterator[None]:
        """Log typed failures on the way out to the caller."""
        try:
            yield
        except LedgerError as e:
            self._events.log_failure(operation, e, details)
            raise

    def _require_customer(self, customer_id: UUID) -> Customer:
        customer = self._store.get_customer(customer_id)
        if customer is None:
            raise NotFoundError(f"Customer not found: {customer_id}")
        return customer

    # -------------------------------------------------------------------------
    # Customers
    # -------------------------------------------------------------------------

    def add_customer(
        self,
        name: str,
        phone: str,
        address: Optional[str] = None,
        photo: Optional[bytes] = None,
    ) -> Customer:
        """
        Create a customer with nothing due.

        Raises:
            ValidationError: If name or phone is empty after trimming
        """
        with self._reporting("add_customer"):
            fields = self._validator.validate_customer(name, phone, address, photo)
            now = self._now()
            customer = Customer(
                name=fields.name,
                phone=fields.phone,
                address=fields.address,
                photo=fields.photo,
                total_due_minor=0,
                created_date=now,
                last_updated=now,
            )
            with self._customer_lock(customer.id):
                self._store.create_customer(customer)

        self._events.emit(LedgerEventBuilder.customer_added(customer))
        return customer

    def update_customer(
        self,
        customer_id: EntityId,
        name: str,
        phone: str,
        address: Optional[str] = None,
        photo: Optional[bytes] = None,
    ) -> Customer:
        """
        Replace a customer's details.

        The balance, creation date and transactions are untouched.
        Passing None for address or photo clears it.

        Raises:
            ValidationError: If name or phone is empty after trimming
            NotFoundError: If the customer doesn't exist
        """
        with self._reporting("update_customer", customer_id=str(customer_id)):
            fields = self._validator.validate_customer(name, phone, address, photo)
            customer_id = _as_uuid(customer_id, "Customer")

            with self._customer_lock(customer_id):
                with self._store.atomic():
                    customer = self._require_customer(customer_id)
                    updated = customer.model_copy(update={
                        "name": fields.name,
                        "phone": fields.phone,
                        "address": fields.address,
                        "photo": fields.photo,
                        "last_updated": self._now(),
                    })
                    self._store.update_customer(updated)

        self._events.emit(LedgerEventBuilder.customer_updated(updated))
        return updated

    def delete_customer(self, customer_id: EntityId) -> None:
        """
        Delete a customer and all of its transactions in one unit.

        Raises:
            NotFoundError: If the customer doesn't exist
        """
        with self._reporting("delete_customer", customer_id=str(customer_id)):
            customer_id = _as_uuid(customer_id, "Customer")

            with self._customer_lock(customer_id):
                with self._store.atomic():
                    customer = self._require_customer(customer_id)
                    removed = len(self._store.query_transactions(customer_id=customer_id))
                    self._store.delete_customer(customer_id)
            self._forget_lock(customer_id)

        self._events.emit(LedgerEventBuilder.customer_deleted(customer, removed))

    def get_customer(self, customer_id: EntityId) -> Customer:
        """
        Raises:
            NotFoundError: If the customer doesn't exist
        """
        return self._require_customer(_as_uuid(customer_id, "Customer"))

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def add_transaction(
        self,
        customer_id: EntityId,
        type: Union[TransactionType, str],
        amount: AmountInput,
        note: Optional[str] = None,
        date: Optional[datetime] = None,
    ) -> Transaction:
        """
        Record a credit or payment and move the customer's balance.

        Credit adds the amount to total due, payment subtracts it.
        The transaction insert and the balance update commit together.

        Args:
            date: When it happened. Defaults to now.

        Raises:
            ValidationError: Bad type, non-positive or malformed amount
            NotFoundError: If the customer doesn't exist
            StorageError: If the unit of work could not be committed
        """
        with self._reporting("add_transaction", customer_id=str(customer_id)):
            fields = self._validator.validate_transaction(type, amount, note, date)
            customer_id = _as_uuid(customer_id, "Customer")

            with self._customer_lock(customer_id):
                with self._store.atomic():
                    customer = self._require_customer(customer_id)
                    now = self._now()
                    txn = Transaction(
                        customer_id=customer.id,
                        type=fields.type,
                        amount_minor=fields.amount_minor,
                        date=fields.date or now,
                        note=fields.note,
                    )
                    self._store.create_transaction(txn)

                    updated = customer.model_copy(update={
                        "total_due_minor": customer.total_due_minor + txn.signed_minor,
                        "last_updated": now,
                    })
                    self._store.update_customer(updated)

        self._events.emit(LedgerEventBuilder.transaction_added(txn, updated))
        return txn

    def delete_transaction(self, transaction_id: EntityId) -> Customer:
        """
        Delete a transaction, undoing exactly its own effect on the balance.

        Other transactions of the customer don't matter: a credit of X is
        reversed by subtracting X, a payment of X by adding X.

        Returns:
            The customer with the corrected balance

        Raises:
            NotFoundError: If the transaction or its customer no longer exists
            StorageError: If the unit of work could not be committed
        """
        with self._reporting("delete_transaction", transaction_id=str(transaction_id)):
            transaction_id = _as_uuid(transaction_id, "Transaction")

            txn = self._store.get_transaction(transaction_id)
            if txn is None:
                raise NotFoundError(f"Transaction not found: {transaction_id}")

            with self._customer_lock(txn.customer_id):
                with self._store.atomic():
                    # Re-read under the lock; it may have gone meanwhile
                    txn = self._store.get_transaction(transaction_id)
                    if txn is None:
                        raise NotFoundError(f"Transaction not found: {transaction_id}")
                    customer = self._store.get_customer(txn.customer_id)
                    if customer is None:
                        raise NotFoundError(
                            f"Customer {txn.customer_id} of transaction {transaction_id} not found"
                        )

                    updated = customer.model_copy(update={
                        "total_due_minor": customer.total_due_minor - txn.signed_minor,
                        "last_updated": self._now(),
                    })
                    self._store.update_customer(updated)
                    self._store.delete_transaction(transaction_id)

        self._events.emit(LedgerEventBuilder.transaction_deleted(txn, updated))
        return updated

    def get_transactions(
        self,
        customer_id: EntityId,
        newest_first: bool = True,
    ) -> list[Transaction]:
        """
        A customer's transactions, newest first by default (the detail
        screen order).

        Raises:
            NotFoundError: If the customer doesn't exist
        """
        customer = self.get_customer(customer_id)
        return self._store.query_transactions(
            customer_id=customer.id,
            newest_first=newest_first,
        )

    def verify_balance(self, customer_id: EntityId) -> bool:
        """
        Check the running balance against a full summation of the
        customer's transactions. Never writes.
        """
        customer_id = _as_uuid(customer_id, "Customer")
        with self._customer_lock(customer_id):
            customer = self._require_customer(customer_id)
            summed = sum(
                txn.signed_minor
                for txn in self._store.query_transactions(customer_id=customer_id)
            )
        return summed == customer.total_due_minor

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def customer_view(
        self,
        search_text: str = "",
        sort_order: Union[SortOrder, str] = SortOrder.MOST_DUE,
    ) -> CustomerView:
        """
        Filtered, sorted customer list plus shop-wide outstanding total.

        Raises:
            ValidationError: If sort_order is not a known ordering
        """
        with self._reporting("customer_view", sort_order=str(sort_order)):
            return self._projection.project(search_text, sort_order)

    def report(self, period: Union[ReportPeriod, str]) -> PeriodReport:
        """
        Credits, payments and net change since the start of a period.

        Raises:
            ValidationError: If period is not a known report window
        """
        with self._reporting("report", period=str(period)):
            return self._reports.aggregate(period)

    def statement(self, customer_id: EntityId) -> CustomerStatement:
        """
        Statement content for one customer, oldest transaction first.

        Raises:
            NotFoundError: If the customer doesn't exist
        """
        customer_id = _as_uuid(customer_id, "Customer")
        with self._customer_lock(customer_id):
            customer = self._require_customer(customer_id)
            transactions = self._store.query_transactions(customer_id=customer_id)
        return build_statement(
            customer,
            transactions,
            date_format=self._display.statement_date_format,
            generated_at=self._now(),
            tz=self._display.tzinfo,
        )


def create_ledger(
    settings: Optional[Settings] = None,
    store: Optional[LedgerStoreInterface] = None,
) -> LedgerEngine:
    """
    Factory function to create a fully wired engine.

    Args:
        settings: Application settings. Loaded from the environment if None.
        store: Use this store instead of the configured backend.

    Returns:
        LedgerEngine with logging configured
    """
    settings = settings or get_settings()
    app = settings.app
    configure_logging(level=app.log_level, json_logs=app.log_json)

    return LedgerEngine(
        store=store or create_store(settings.storage),
        display=settings.display,
    )
