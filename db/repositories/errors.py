"""
Repository-layer exceptions for per-user sales record storage.
"""

from __future__ import annotations


class SalesRepositoryError(Exception):
    """Base exception for sales repository failures."""


class AuthRequiredError(SalesRepositoryError):
    """Raised when an operation is attempted without a user identity."""


class SalesPersistenceError(SalesRepositoryError):
    """Raised when the backing store cannot load, save or delete records."""


class RecordIdConflictError(SalesPersistenceError):
    """Raised when an appended record id is already taken for the user."""
