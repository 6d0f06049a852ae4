"""
Customer Statement Export

Builds the line-by-line content of a customer statement. Turning it into
a PDF or a share sheet is the renderer's job; this module only decides
what each line says.

Lines run oldest first, the order a printed statement is read in.
"""

from datetime import datetime, tzinfo
from decimal import Decimal
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from ledgerbook.models.ledger import Customer, Transaction, TransactionType, local_now
from ledgerbook.models.money import format_amount

NOTE_PLACEHOLDER = "-"
DEFAULT_DATE_FORMAT = "%d/%m/%Y"


class StatementLine(BaseModel):
    """One transaction as it appears on a statement."""

    transaction_id: str
    date: datetime
    type: TransactionType
    type_label: str
    signed_amount: Decimal = Field(
        ...,
        description="+amount for credit, -amount for payment"
    )
    note: str = Field(
        ...,
        description="Transaction note, or the placeholder when there is none"
    )
    date_text: str
    amount_text: str

    def as_columns(self, currency_symbol: str = "") -> list[str]:
        """[date, type, amount, note] ready for a table row."""
        return [
            self.date_text,
            self.type_label,
            format_amount(self.signed_amount, currency_symbol),
            self.note,
        ]


class CustomerStatement(BaseModel):
    """Everything a renderer needs for one customer's statement."""

    customer_id: str
    customer_name: str
    customer_phone: str
    customer_address: Optional[str] = None
    total_due: Decimal
    generated_at: datetime
    lines: list[StatementLine] = Field(default_factory=list)

    @property
    def title(self) -> str:
        return f"Customer Statement - {self.customer_name}"


def build_statement_line(
    txn: Transaction,
    date_format: str = DEFAULT_DATE_FORMAT,
    tz: Optional[tzinfo] = None,
) -> StatementLine:
    signed = txn.signed_amount
    local_date = txn.date.astimezone(tz)
    return StatementLine(
        transaction_id=str(txn.id),
        date=local_date,
        type=txn.type,
        type_label=txn.type.label,
        signed_amount=signed,
        note=txn.note or NOTE_PLACEHOLDER,
        date_text=local_date.strftime(date_format),
        amount_text=f"{signed:+.2f}",
    )


def build_statement(
    customer: Customer,
    transactions: Iterable[Transaction],
    date_format: str = DEFAULT_DATE_FORMAT,
    generated_at: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> CustomerStatement:
    """
    Assemble a statement for one customer.

    Transactions may come in any order; lines are sorted oldest first.
    Dates are shown in tz (None = process-local zone).
    """
    ordered = sorted(transactions, key=lambda t: (t.date, str(t.id)))
    return CustomerStatement(
        customer_id=str(customer.id),
        customer_name=customer.name,
        customer_phone=customer.phone,
        customer_address=customer.address,
        total_due=customer.total_due,
        generated_at=generated_at or local_now(),
        lines=[build_statement_line(txn, date_format, tz) for txn in ordered],
    )


def render_statement_text(statement: CustomerStatement, currency_symbol: str = "") -> str:
    """
    Plain-text statement: header block, then one tab-separated row per
    transaction.
    """
    rows = [
        "Customer Statement",
        f"Name: {statement.customer_name}",
        f"Phone: {statement.customer_phone}",
    ]
    if statement.customer_address:
        rows.append(f"Address: {statement.customer_address}")
    rows.append(f"Total Due: {format_amount(statement.total_due, currency_symbol)}")
    rows.append("")
    rows.append("Date\tType\tAmount\tNote")
    rows.extend("\t".join(line.as_columns(currency_symbol)) for line in statement.lines)
    return "\n".join(rows) + "\n"
