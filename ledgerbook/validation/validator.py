"""
Input Validation

Every engine operation validates its input before touching storage,
so a rejected call never mutates anything.

Checks are collected rather than raised one at a time: the caller gets
every problem with the input in a single ValidationError, each as a
ValidationIssue naming the offending field.

IMPORTANT: Validation NEVER silently fixes issues beyond trimming
whitespace. An amount with three decimal places is rejected,
not rounded.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from ledgerbook.exceptions import ValidationError
from ledgerbook.models.ledger import (
    ReportPeriod,
    SortOrder,
    TransactionType,
    ValidationIssue,
    ensure_aware,
)
from ledgerbook.models.money import AmountInput, from_minor_units, to_minor_units

MAX_NAME_LENGTH = 200
MAX_PHONE_LENGTH = 40
MAX_ADDRESS_LENGTH = 500
MAX_NOTE_LENGTH = 1000
# 10 trillion in major units
MAX_AMOUNT_MINOR = 10 ** 15


@dataclass(frozen=True)
class CustomerFields:
    """Cleaned customer input."""
    name: str
    phone: str
    address: Optional[str]
    photo: Optional[bytes]


@dataclass(frozen=True)
class TransactionFields:
    """Cleaned transaction input."""
    type: TransactionType
    amount_minor: int
    note: Optional[str]
    date: Optional[datetime] = None


def _clean_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class LedgerValidator:
    """
    Validates caller input for ledger operations.

    Each validate_* method returns cleaned values or raises
    ValidationError carrying every issue found.
    """

    def _check_required_text(
        self,
        field: str,
        value: object,
        max_length: int,
    ) -> list[ValidationIssue]:
        if not isinstance(value, str) or not value.strip():
            return [ValidationIssue(
                field=field,
                issue_type="missing",
                message=f"{field.capitalize()} is required",
            )]
        if len(value.strip()) > max_length:
            return [ValidationIssue(
                field=field,
                issue_type="too_long",
                message=f"{field.capitalize()} must be at most {max_length} characters",
            )]
        return []

    def _check_optional_text(
        self,
        field: str,
        value: object,
        max_length: int,
    ) -> list[ValidationIssue]:
        if value is None:
            return []
        if not isinstance(value, str):
            return [ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"{field.capitalize()} must be text",
            )]
        if len(value.strip()) > max_length:
            return [ValidationIssue(
                field=field,
                issue_type="too_long",
                message=f"{field.capitalize()} must be at most {max_length} characters",
            )]
        return []

    def validate_customer(
        self,
        name: str,
        phone: str,
        address: Optional[str] = None,
        photo: Optional[bytes] = None,
    ) -> CustomerFields:
        """
        Validate customer fields.

        Name and phone must be non-empty after trimming.
        """
        issues = []
        issues += self._check_required_text("name", name, MAX_NAME_LENGTH)
        issues += self._check_required_text("phone", phone, MAX_PHONE_LENGTH)
        issues += self._check_optional_text("address", address, MAX_ADDRESS_LENGTH)

        if photo is not None and not isinstance(photo, (bytes, bytearray)):
            issues.append(ValidationIssue(
                field="photo",
                issue_type="invalid_format",
                message="Photo must be raw image bytes",
            ))

        if issues:
            raise ValidationError.from_issues(issues)

        return CustomerFields(
            name=name.strip(),
            phone=phone.strip(),
            address=_clean_optional(address),
            photo=bytes(photo) if photo is not None else None,
        )

    def validate_transaction(
        self,
        type: Union[TransactionType, str],
        amount: AmountInput,
        note: Optional[str] = None,
        date: Optional[datetime] = None,
    ) -> TransactionFields:
        """
        Validate transaction fields.

        Checks:
        - type is credit or payment (enum or its string value, any case)
        - amount is a finite number with at most two decimal places
        - amount is greater than zero and at most MAX_AMOUNT_MINOR
        - note fits
        - date, when given, is a datetime (naive means local time)
        """
        issues = []

        txn_type = None
        if isinstance(type, TransactionType):
            txn_type = type
        elif isinstance(type, str):
            try:
                txn_type = TransactionType(type.strip().lower())
            except ValueError:
                pass
        if txn_type is None:
            allowed = ", ".join(t.value for t in TransactionType)
            issues.append(ValidationIssue(
                field="type",
                issue_type="invalid_value",
                message=f"Transaction type must be one of: {allowed}",
            ))

        amount_minor = None
        try:
            amount_minor = to_minor_units(amount)
        except (ValueError, TypeError) as e:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message=str(e),
            ))
        else:
            if amount_minor <= 0:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="Amount must be greater than zero",
                ))
            elif amount_minor > MAX_AMOUNT_MINOR:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="too_large",
                    message=f"Amount must be at most {from_minor_units(MAX_AMOUNT_MINOR)}",
                ))

        issues += self._check_optional_text("note", note, MAX_NOTE_LENGTH)

        if date is not None and not isinstance(date, datetime):
            issues.append(ValidationIssue(
                field="date",
                issue_type="invalid_format",
                message="Date must be a datetime",
            ))

        if issues:
            raise ValidationError.from_issues(issues)

        return TransactionFields(
            type=txn_type,
            amount_minor=amount_minor,
            note=_clean_optional(note),
            date=ensure_aware(date) if date is not None else None,
        )

    def _check_choice(self, field: str, label: str, value: object, enum_type):
        """Coerce value to a member of enum_type, accepting the member or its value."""
        if isinstance(value, enum_type):
            return value
        if isinstance(value, str):
            try:
                return enum_type(value.strip().lower())
            except ValueError:
                pass
        allowed = ", ".join(member.value for member in enum_type)
        raise ValidationError.from_issues([ValidationIssue(
            field=field,
            issue_type="invalid_value",
            message=f"{label} must be one of: {allowed}",
        )])

    def validate_sort_order(self, sort_order: Union[SortOrder, str]) -> SortOrder:
        return self._check_choice("sort_order", "Sort order", sort_order, SortOrder)

    def validate_period(self, period: Union[ReportPeriod, str]) -> ReportPeriod:
        return self._check_choice("period", "Report period", period, ReportPeriod)

    def validate_pin(self, pin: str, min_length: int) -> str:
        """
        Validate a new PIN: digits only, at least min_length of them.
        """
        if not isinstance(pin, str) or not pin.isdigit() or not pin.isascii():
            raise ValidationError.from_issues([ValidationIssue(
                field="pin",
                issue_type="invalid_format",
                message="PIN must contain digits only",
            )])
        if len(pin) < min_length:
            raise ValidationError.from_issues([ValidationIssue(
                field="pin",
                issue_type="too_short",
                message=f"PIN must be at least {min_length} digits",
            )])
        return pin
