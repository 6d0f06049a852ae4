"""
Error taxonomy for Ledgerbook.

Every failure the engine reports to its caller is one of these.
Callers decide what to show the user; the core only rejects bad
calls deterministically and never leaves a half-applied change behind.
"""

from typing import Optional

from ledgerbook.models.ledger import ValidationIssue


class LedgerError(Exception):
    """Base exception for all ledger failures."""
    pass


class ValidationError(LedgerError):
    """
    Caller supplied invalid input.

    Raised before any storage access, so no state has been mutated.
    """

    def __init__(self, message: str, issues: Optional[list[ValidationIssue]] = None):
        super().__init__(message)
        self.issues = issues or []

    @classmethod
    def from_issues(cls, issues: list[ValidationIssue]) -> "ValidationError":
        message = "; ".join(issue.message for issue in issues)
        return cls(message, issues)

    @property
    def fields(self) -> list[str]:
        """Names of the fields that failed validation."""
        return [issue.field for issue in self.issues]


class NotFoundError(LedgerError):
    """Referenced customer or transaction does not exist."""
    pass


class StorageError(LedgerError):
    """Base exception for storage operations."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class StorageConnectionError(StorageError):
    """Could not open the storage backend."""
    pass
