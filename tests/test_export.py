"""
Tests for customer statement export.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from ledgerbook.exceptions import NotFoundError
from ledgerbook.export import build_statement, render_statement_text
from ledgerbook.models import Customer, Transaction, TransactionType

GENERATED = datetime(2026, 10, 22, 18, 0, tzinfo=timezone.utc)


@pytest.fixture
def customer():
    return Customer(
        name="Asha Stores",
        phone="9000000001",
        address="12 Market Road",
        total_due_minor=30000,
    )


@pytest.fixture
def transactions(customer):
    base = datetime(2026, 10, 5, 10, 0, tzinfo=timezone.utc)
    return [
        Transaction(
            customer_id=customer.id,
            type=TransactionType.PAYMENT,
            amount_minor=20000,
            date=base + timedelta(days=3),
        ),
        Transaction(
            customer_id=customer.id,
            type=TransactionType.CREDIT,
            amount_minor=50000,
            date=base,
            note="Rice 25kg",
        ),
    ]


class TestBuildStatement:
    """Tests for statement content."""

    def test_lines_oldest_first(self, customer, transactions):
        """Test that lines are sorted by date regardless of input order."""
        statement = build_statement(customer, transactions, generated_at=GENERATED, tz=timezone.utc)
        assert [line.type for line in statement.lines] == [
            TransactionType.CREDIT,
            TransactionType.PAYMENT,
        ]

    def test_line_content(self, customer, transactions):
        """Test the per-line fields a renderer reads."""
        statement = build_statement(customer, transactions, "%Y-%m-%d", GENERATED, timezone.utc)
        credit, payment = statement.lines

        assert credit.date_text == "2026-10-05"
        assert credit.type_label == "Credit"
        assert credit.signed_amount == Decimal("500.00")
        assert credit.amount_text == "+500.00"
        assert credit.note == "Rice 25kg"

        assert payment.signed_amount == Decimal("-200.00")
        assert payment.amount_text == "-200.00"
        assert payment.note == "-"

    def test_header_fields(self, customer, transactions):
        """Test customer details and totals on the statement."""
        statement = build_statement(customer, transactions, generated_at=GENERATED, tz=timezone.utc)
        assert statement.title == "Customer Statement - Asha Stores"
        assert statement.customer_phone == "9000000001"
        assert statement.total_due == Decimal("300.00")
        assert statement.generated_at == GENERATED

    def test_no_transactions(self, customer):
        """Test a statement for a customer with no history."""
        statement = build_statement(customer, [], generated_at=GENERATED)
        assert statement.lines == []


class TestRenderStatementText:
    """Tests for plain-text rendering."""

    def test_render(self, customer, transactions):
        """Test header block and tab-separated rows."""
        statement = build_statement(customer, transactions, generated_at=GENERATED, tz=timezone.utc)
        text = render_statement_text(statement, "₹")
        lines = text.splitlines()

        assert lines[0] == "Customer Statement"
        assert "Address: 12 Market Road" in lines
        assert "Total Due: ₹300.00" in lines
        assert lines[-2] == "05/10/2026\tCredit\t₹500.00\tRice 25kg"
        assert lines[-1] == "08/10/2026\tPayment\t-₹200.00\t-"

    def test_render_without_address(self):
        """Test that an empty address line is left out."""
        customer = Customer(name="Ravi", phone="555")
        statement = build_statement(customer, [], generated_at=GENERATED)
        assert "Address" not in render_statement_text(statement)


class TestEngineStatement:
    """Tests for LedgerEngine.statement()."""

    def test_statement_for_unknown_customer(self, engine):
        """Test that a missing customer raises NotFoundError."""
        with pytest.raises(NotFoundError):
            engine.statement("0b0e7a52-7d42-4c55-9a0e-2a8a6f1ad001")

    def test_statement_uses_display_date_format(self, engine, display):
        """Test that dates follow the configured format."""
        customer = engine.add_customer("Ravi", "555")
        engine.add_transaction(customer.id, "credit", "12.50")

        statement = engine.statement(customer.id)

        assert statement.lines[0].date_text == "22/10/2026"
        assert statement.total_due == Decimal("12.50")
