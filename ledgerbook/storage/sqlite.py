"""
SQLite Storage Implementation

DESIGN DECISION: SQLite is the durable backend because:
1. No database server to run in a shop
2. Real transactions, so a unit of work is all-or-nothing
3. ON DELETE CASCADE gives us customer → transactions cleanup for free

Each thread gets its own connection. Writers take BEGIN IMMEDIATE, so
SQLite itself serializes them; WAL mode lets readers keep reading
the last committed state while a writer is busy.

Timestamps are stored as UTC ISO-8601 strings with microseconds so that
string order is time order and date range queries can run in SQL.
Use InMemoryLedgerStore for a non-durable store; ":memory:" databases
are per connection and therefore per thread.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional, Union
from uuid import UUID

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ledgerbook.exceptions import (
    DuplicateError,
    NotFoundError,
    StorageConnectionError,
    StorageError,
)
from ledgerbook.models.ledger import (
    Customer,
    Transaction,
    TransactionType,
    ensure_aware,
)
from ledgerbook.storage.interface import (
    CustomerPredicate,
    CustomerSortKey,
    LedgerStoreInterface,
    TransactionPredicate,
)

logger = logging.getLogger(__name__)

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS customers (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL CHECK(length(name) > 0),
        phone TEXT NOT NULL CHECK(length(phone) > 0),
        address TEXT,
        photo BLOB,
        total_due_minor INTEGER NOT NULL DEFAULT 0,
        created_date TEXT NOT NULL,
        last_updated TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS transactions (
        id TEXT PRIMARY KEY,
        customer_id TEXT NOT NULL
            REFERENCES customers(id) ON DELETE CASCADE,
        type TEXT NOT NULL CHECK(type IN ('credit', 'payment')),
        amount_minor INTEGER NOT NULL CHECK(amount_minor > 0),
        date TEXT NOT NULL,
        note TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_transactions_customer_id ON transactions(customer_id)",
    "CREATE INDEX IF NOT EXISTS idx_transactions_date ON transactions(date)",
    "CREATE INDEX IF NOT EXISTS idx_customers_name ON customers(name)",
)

CUSTOMER_COLUMNS = (
    "id, name, phone, address, photo, total_due_minor, created_date, last_updated"
)
TRANSACTION_COLUMNS = "id, customer_id, type, amount_minor, date, note"

CUSTOMER_ORDER = {
    CustomerSortKey.NAME: "name, id",
    CustomerSortKey.CREATED: "created_date, id",
}


def _to_db_time(value: datetime) -> str:
    return ensure_aware(value).astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_db_time(value: str) -> datetime:
    return datetime.fromisoformat(value).astimezone()


class SQLiteLedgerStore(LedgerStoreInterface):
    """
    SQLite implementation of ledger storage.

    Customers and transactions are rows in two tables joined by
    customer_id; deleting a customer row cascades to its transactions.
    """

    def __init__(
        self,
        db_path: Union[str, Path],
        busy_timeout: float = 10.0,
    ):
        """
        Initialize the store and create the schema if needed.

        Args:
            db_path: Path to the SQLite database file
            busy_timeout: Seconds to wait on a locked database

        Raises:
            StorageConnectionError: If the database cannot be opened
        """
        self.db_path = Path(db_path)
        self._busy_timeout = busy_timeout
        self._local = threading.local()
        self._connections: list[sqlite3.Connection] = []
        self._connections_lock = threading.Lock()

        self._ensure_db_directory()
        self._init_schema()

    # -------------------------------------------------------------------------
    # Connection management
    # -------------------------------------------------------------------------

    def _ensure_db_directory(self) -> None:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageConnectionError(
                f"Cannot create database directory {self.db_path.parent}: {e}"
            ) from e

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type(sqlite3.OperationalError),
        reraise=True,
    )
    def _open_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self.db_path,
            timeout=self._busy_timeout,
            isolation_level=None,  # we issue BEGIN/COMMIT ourselves
            check_same_thread=False,  # only close() crosses threads
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    def connect(self) -> sqlite3.Connection:
        """
        Connection for the calling thread, opened on first use.

        Opening is retried with backoff; the engine never retries writes.
        """
        conn = getattr(self._local, "conn", None)
        if conn is None:
            try:
                conn = self._open_connection()
            except sqlite3.Error as e:
                raise StorageConnectionError(
                    f"Failed to open database {self.db_path}: {e}"
                ) from e
            self._local.conn = conn
            self._local.depth = 0
            with self._connections_lock:
                self._connections.append(conn)
        return conn

    def _init_schema(self) -> None:
        with self.atomic():
            conn = self.connect()
            for statement in SCHEMA:
                self._execute(conn, statement)
        logger.debug("Ledger schema initialized at %s", self.db_path)

    def close(self) -> None:
        with self._connections_lock:
            for conn in self._connections:
                conn.close()
            self._connections.clear()
        self._local = threading.local()

    # -------------------------------------------------------------------------
    # Units of work
    # -------------------------------------------------------------------------

    @contextmanager
    def atomic(self) -> Iterator[None]:
        conn = self.connect()
        if self._local.depth:
            # Join the unit this thread already has open
            self._local.depth += 1
            try:
                yield
            finally:
                self._local.depth -= 1
            return

        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as e:
            raise StorageError(f"Failed to start unit of work: {e}") from e

        self._local.depth = 1
        try:
            yield
        except BaseException:
            self._rollback(conn)
            raise
        else:
            try:
                conn.execute("COMMIT")
            except sqlite3.Error as e:
                self._rollback(conn)
                raise StorageError(f"Failed to commit unit of work: {e}") from e
        finally:
            self._local.depth = 0

    def _rollback(self, conn: sqlite3.Connection) -> None:
        if conn.in_transaction:
            try:
                conn.execute("ROLLBACK")
            except sqlite3.Error as e:
                logger.error("Rollback failed: %s", e, exc_info=True)

    def _execute(
        self,
        conn: sqlite3.Connection,
        sql: str,
        params: tuple = (),
    ) -> sqlite3.Cursor:
        """Run one statement, translating sqlite3 errors into StorageError."""
        try:
            return conn.execute(sql, params)
        except sqlite3.IntegrityError as e:
            if "UNIQUE" in str(e):
                raise DuplicateError(f"Duplicate record: {e}") from e
            raise StorageError(f"Constraint violated: {e}") from e
        except OverflowError as e:
            # sqlite3 INTEGER is 64-bit
            raise StorageError(f"Value out of range for database: {e}") from e
        except sqlite3.Error as e:
            raise StorageError(f"Database error: {e}") from e

    # -------------------------------------------------------------------------
    # Row mapping
    # -------------------------------------------------------------------------

    def _customer_to_row(self, customer: Customer) -> tuple:
        return (
            str(customer.id),
            customer.name,
            customer.phone,
            customer.address,
            customer.photo,
            customer.total_due_minor,
            _to_db_time(customer.created_date),
            _to_db_time(customer.last_updated),
        )

    def _row_to_customer(self, row: sqlite3.Row) -> Customer:
        return Customer(
            id=UUID(row["id"]),
            name=row["name"],
            phone=row["phone"],
            address=row["address"],
            photo=row["photo"],
            total_due_minor=row["total_due_minor"],
            created_date=_from_db_time(row["created_date"]),
            last_updated=_from_db_time(row["last_updated"]),
        )

    def _row_to_transaction(self, row: sqlite3.Row) -> Transaction:
        return Transaction(
            id=UUID(row["id"]),
            customer_id=UUID(row["customer_id"]),
            type=TransactionType(row["type"]),
            amount_minor=row["amount_minor"],
            date=_from_db_time(row["date"]),
            note=row["note"],
        )

    # -------------------------------------------------------------------------
    # Customers
    # -------------------------------------------------------------------------

    def create_customer(self, customer: Customer) -> Customer:
        with self.atomic():
            self._execute(
                self.connect(),
                f"INSERT INTO customers ({CUSTOMER_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                self._customer_to_row(customer),
            )
        return customer

    def get_customer(self, customer_id: UUID) -> Optional[Customer]:
        row = self._execute(
            self.connect(),
            f"SELECT {CUSTOMER_COLUMNS} FROM customers WHERE id = ?",
            (str(customer_id),),
        ).fetchone()
        return self._row_to_customer(row) if row else None

    def update_customer(self, customer: Customer) -> Customer:
        row = self._customer_to_row(customer)
        with self.atomic():
            cursor = self._execute(
                self.connect(),
                """
                UPDATE customers
                SET name = ?, phone = ?, address = ?, photo = ?,
                    total_due_minor = ?, created_date = ?, last_updated = ?
                WHERE id = ?
                """,
                row[1:] + row[:1],
            )
            if cursor.rowcount == 0:
                raise NotFoundError(f"Customer not found: {customer.id}")
        return customer

    def delete_customer(self, customer_id: UUID) -> bool:
        with self.atomic():
            cursor = self._execute(
                self.connect(),
                "DELETE FROM customers WHERE id = ?",
                (str(customer_id),),
            )
        return cursor.rowcount > 0

    def query_customers(
        self,
        predicate: Optional[CustomerPredicate] = None,
        sort: CustomerSortKey = CustomerSortKey.NAME,
    ) -> list[Customer]:
        rows = self._execute(
            self.connect(),
            f"SELECT {CUSTOMER_COLUMNS} FROM customers ORDER BY {CUSTOMER_ORDER[sort]}",
        ).fetchall()

        customers = [self._row_to_customer(row) for row in rows]
        if predicate is not None:
            customers = [c for c in customers if predicate(c)]
        return customers

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def create_transaction(self, txn: Transaction) -> Transaction:
        with self.atomic():
            conn = self.connect()
            owner = self._execute(
                conn,
                "SELECT 1 FROM customers WHERE id = ?",
                (str(txn.customer_id),),
            ).fetchone()
            if owner is None:
                raise NotFoundError(f"Customer not found: {txn.customer_id}")

            self._execute(
                conn,
                f"INSERT INTO transactions ({TRANSACTION_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
                (
                    str(txn.id),
                    str(txn.customer_id),
                    txn.type.value,
                    txn.amount_minor,
                    _to_db_time(txn.date),
                    txn.note,
                ),
            )
        return txn

    def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        row = self._execute(
            self.connect(),
            f"SELECT {TRANSACTION_COLUMNS} FROM transactions WHERE id = ?",
            (str(transaction_id),),
        ).fetchone()
        return self._row_to_transaction(row) if row else None

    def delete_transaction(self, transaction_id: UUID) -> bool:
        with self.atomic():
            cursor = self._execute(
                self.connect(),
                "DELETE FROM transactions WHERE id = ?",
                (str(transaction_id),),
            )
        return cursor.rowcount > 0

    def query_transactions(
        self,
        predicate: Optional[TransactionPredicate] = None,
        customer_id: Optional[UUID] = None,
        date_from: Optional[datetime] = None,
        newest_first: bool = False,
    ) -> list[Transaction]:
        clauses = []
        params: list = []
        if customer_id is not None:
            clauses.append("customer_id = ?")
            params.append(str(customer_id))
        if date_from is not None:
            clauses.append("date >= ?")
            params.append(_to_db_time(date_from))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        direction = "DESC" if newest_first else "ASC"
        rows = self._execute(
            self.connect(),
            f"SELECT {TRANSACTION_COLUMNS} FROM transactions {where} "
            f"ORDER BY date {direction}, id {direction}",
            tuple(params),
        ).fetchall()

        transactions = [self._row_to_transaction(row) for row in rows]
        if predicate is not None:
            transactions = [t for t in transactions if predicate(t)]
        return transactions
