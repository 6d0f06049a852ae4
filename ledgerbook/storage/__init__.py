"""
Storage Services Package

Provides the abstract ledger store interface and its implementations.
Backends are interchangeable; the engine only sees LedgerStoreInterface.
"""

from typing import Optional

from ledgerbook.config import StorageSettings
from ledgerbook.storage.interface import (
    CustomerSortKey,
    DuplicateError,
    LedgerStoreInterface,
    NotFoundError,
    StorageConnectionError,
    StorageError,
)
from ledgerbook.storage.memory import InMemoryLedgerStore
from ledgerbook.storage.sqlite import SQLiteLedgerStore


def create_store(settings: Optional[StorageSettings] = None) -> LedgerStoreInterface:
    """
    Build the store selected by configuration.

    Args:
        settings: Storage settings. Loaded from the environment if None.
    """
    settings = settings or StorageSettings()
    if settings.backend == "sqlite":
        return SQLiteLedgerStore(
            settings.database_path,
            busy_timeout=settings.busy_timeout_seconds,
        )
    return InMemoryLedgerStore()


__all__ = [
    # Interface
    "CustomerSortKey",
    "LedgerStoreInterface",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
    # Implementations
    "InMemoryLedgerStore",
    "SQLiteLedgerStore",
    "create_store",
]
