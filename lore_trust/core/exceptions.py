"""
Application-level exceptions.

Empty results (no score row, empty graph) are never exceptions; callers get None.
Data-access failures are wrapped in RepositoryError with the failing operation
and account attached, and propagate unchanged otherwise.
"""

from __future__ import annotations


class LoreTrustError(Exception):
    """Base class for lore-trust errors."""


class RepositoryError(LoreTrustError):
    """A persistence read or write failed."""

    def __init__(self, operation: str, account_id: str | None = None, message: str | None = None) -> None:
        self.operation = operation
        self.account_id = account_id
        detail = message or "data access failed"
        if account_id:
            text = f"{operation} (account {account_id}): {detail}"
        else:
            text = f"{operation}: {detail}"
        super().__init__(text)


class OperationCancelledError(RepositoryError):
    """The caller's cancellation event was set before the database call ran."""

    def __init__(self, operation: str, account_id: str | None = None) -> None:
        super().__init__(operation, account_id, "cancelled by caller")
