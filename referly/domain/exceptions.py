"""
Domain exceptions - Semantic error types for the account lifecycle.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
"""


class AccountError(Exception):
    """Base class for account domain errors."""

    pass


class ValidationError(AccountError):
    """Required input is missing or malformed."""

    pass


class ConflictError(AccountError):
    """Email is already registered to another account."""

    pass


class InvalidCredentialError(AccountError):
    """OTP or password mismatch, or unknown email (deliberately generic)."""

    pass


class InvalidStateError(AccountError):
    """Operation is not allowed in the account's current lifecycle state."""

    pass


class NotFoundError(AccountError):
    """No account (or sub-record) exists for the given identity."""

    pass


class StoreError(AccountError):
    """The underlying record store failed."""

    pass
