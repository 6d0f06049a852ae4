"""
Ledger Event Models

After every successful mutation the engine emits one event.
Events serve two purposes:
1. Structured log lines for debugging
2. A signal for UI collaborators to re-query their views

DESIGN DECISION: Events are notifications, not history. Nothing is
persisted, and the ledger never replays them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from ledgerbook.models.ledger import Customer, Transaction, local_now
from ledgerbook.models.money import format_amount


class LedgerEventType(str, Enum):
    """Types of ledger events."""
    # Customers
    CUSTOMER_ADDED = "customer_added"
    CUSTOMER_UPDATED = "customer_updated"
    CUSTOMER_DELETED = "customer_deleted"

    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_DELETED = "transaction_deleted"


class LedgerEvent(BaseModel):
    """A single ledger event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=local_now,
        description="When the event occurred"
    )
    event_type: LedgerEventType

    # Context - what entity is this about?
    entity_type: str = Field(
        ...,
        pattern="^(customer|transaction)$",
        description="Type of entity the event relates to"
    )
    entity_id: UUID
    customer_id: UUID = Field(
        ...,
        description="Customer whose ledger changed"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id),
            "customer_id": str(self.customer_id),
            "description": self.description,
            "details": self.details,
        }


class LedgerEventBuilder:
    """
    Helper class to build ledger events with common patterns.

    Usage:
        event = LedgerEventBuilder.customer_added(customer)
        event = LedgerEventBuilder.transaction_added(txn, customer)
    """

    @staticmethod
    def customer_added(customer: Customer) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.CUSTOMER_ADDED,
            entity_type="customer",
            entity_id=customer.id,
            customer_id=customer.id,
            description=f"Customer added: {customer.name}",
        )

    @staticmethod
    def customer_updated(customer: Customer) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.CUSTOMER_UPDATED,
            entity_type="customer",
            entity_id=customer.id,
            customer_id=customer.id,
            description=f"Customer updated: {customer.name}",
        )

    @staticmethod
    def customer_deleted(customer: Customer, transaction_count: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.CUSTOMER_DELETED,
            entity_type="customer",
            entity_id=customer.id,
            customer_id=customer.id,
            description=f"Customer deleted: {customer.name}",
            details={
                "transactions_removed": transaction_count,
                "total_due": format_amount(customer.total_due),
            },
        )

    @staticmethod
    def transaction_added(txn: Transaction, customer: Customer) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=txn.id,
            customer_id=customer.id,
            description=f"{txn.type.label} of {format_amount(txn.amount)} for {customer.name}",
            details={
                "type": txn.type.value,
                "amount": format_amount(txn.amount),
                "total_due": format_amount(customer.total_due),
            },
        )

    @staticmethod
    def transaction_deleted(txn: Transaction, customer: Customer) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=txn.id,
            customer_id=customer.id,
            description=f"{txn.type.label} of {format_amount(txn.amount)} removed for {customer.name}",
            details={
                "type": txn.type.value,
                "amount": format_amount(txn.amount),
                "total_due": format_amount(customer.total_due),
            },
        )
