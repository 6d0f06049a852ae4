"""
Core Data Models for Ledgerbook

These models define the schemas for all data flowing through the ledger.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be safe to hand to callers (frozen, so only the engine makes new versions)

DESIGN DECISION: Money is stored as integer minor units.
The Decimal properties are views for callers and display code.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ledgerbook.models.money import from_minor_units


def local_now() -> datetime:
    """Current time as an aware datetime in the process-local zone."""
    return datetime.now().astimezone()


def ensure_aware(value: datetime) -> datetime:
    """Interpret naive datetimes in the process-local zone."""
    if value.tzinfo is None or value.utcoffset() is None:
        return value.astimezone()
    return value


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """
    Kind of ledger entry.

    CREDIT: goods or services given on account, the customer owes more.
    PAYMENT: money received, the customer owes less.
    """
    CREDIT = "credit"
    PAYMENT = "payment"

    @property
    def sign(self) -> int:
        """+1 for credit, -1 for payment."""
        return 1 if self is TransactionType.CREDIT else -1

    @property
    def label(self) -> str:
        return self.value.capitalize()


class SortOrder(str, Enum):
    """Orderings offered by the customer list."""
    MOST_DUE = "most_due"
    RECENTLY_UPDATED = "recently_updated"
    NAME_ASCENDING = "name_ascending"


class ReportPeriod(str, Enum):
    """Report windows. Each runs from its start up to now."""
    TODAY = "today"
    THIS_WEEK = "this_week"
    THIS_MONTH = "this_month"


# =============================================================================
# LEDGER ENTITIES
# =============================================================================

class Customer(BaseModel):
    """
    A customer who buys on account.

    CRITICAL: total_due_minor is a running accumulator owned by the engine.
    It always equals credits minus payments over the customer's existing
    transactions.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique customer ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display name"
    )
    phone: str = Field(
        ...,
        min_length=1,
        max_length=40,
        description="Phone number, used for search"
    )
    address: Optional[str] = Field(
        default=None,
        max_length=500
    )
    photo: Optional[bytes] = Field(
        default=None,
        repr=False,
        description="Opaque image blob, display only"
    )
    total_due_minor: int = Field(
        default=0,
        description="Amount owed in minor units (negative = shop owes customer)"
    )
    created_date: datetime = Field(
        default_factory=local_now,
        description="Set once at creation"
    )
    last_updated: datetime = Field(
        default_factory=local_now,
        description="Bumped on every mutation"
    )

    @field_validator('address')
    @classmethod
    def blank_address_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @field_validator('created_date', 'last_updated')
    @classmethod
    def make_aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    @property
    def total_due(self) -> Decimal:
        """Amount owed, two decimal places."""
        return from_minor_units(self.total_due_minor)

    @property
    def has_due(self) -> bool:
        return self.total_due_minor > 0


class Transaction(BaseModel):
    """
    A single credit or payment against one customer.

    The customer_id is a back-reference; the customer's lifetime
    governs the transaction's lifetime.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    customer_id: UUID = Field(
        ...,
        description="Owning customer"
    )
    type: TransactionType
    amount_minor: int = Field(
        ...,
        gt=0,
        description="Amount in minor units, always positive"
    )
    date: datetime = Field(
        default_factory=local_now,
        description="When the transaction happened"
    )
    note: Optional[str] = Field(
        default=None,
        max_length=1000
    )

    @field_validator('note')
    @classmethod
    def blank_note_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @field_validator('date')
    @classmethod
    def make_aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    @property
    def amount(self) -> Decimal:
        return from_minor_units(self.amount_minor)

    @property
    def signed_minor(self) -> int:
        """Effect of this transaction on the customer's balance."""
        return self.type.sign * self.amount_minor

    @property
    def signed_amount(self) -> Decimal:
        return from_minor_units(self.signed_minor)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found in caller input."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'invalid_format')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )


# =============================================================================
# DERIVED VIEWS
# =============================================================================

class CustomerView(BaseModel):
    """
    Display-ready customer list.

    total_outstanding_minor covers every customer, not just the
    filtered ones: it is shop-wide exposure regardless of search.
    """

    customers: list[Customer] = Field(default_factory=list)
    total_outstanding_minor: int = 0
    search_text: str = ""
    sort_order: SortOrder = SortOrder.MOST_DUE

    @property
    def total_outstanding(self) -> Decimal:
        return from_minor_units(self.total_outstanding_minor)

    @property
    def count(self) -> int:
        return len(self.customers)


class PeriodReport(BaseModel):
    """Credits and payments recorded since the start of a period."""

    period: ReportPeriod
    start: datetime = Field(
        ...,
        description="Inclusive lower bound of the window"
    )
    generated_at: datetime
    total_credits_minor: int = 0
    total_payments_minor: int = 0
    transaction_count: int = Field(default=0, ge=0)

    @property
    def total_credits(self) -> Decimal:
        return from_minor_units(self.total_credits_minor)

    @property
    def total_payments(self) -> Decimal:
        return from_minor_units(self.total_payments_minor)

    @property
    def net_change(self) -> Decimal:
        return from_minor_units(self.total_credits_minor - self.total_payments_minor)
