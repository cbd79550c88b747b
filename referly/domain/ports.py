"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the account record types and the interfaces (ports)
that the domain requires from infrastructure. Adapters implement these
protocols.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol


class AccountState(str, Enum):
    """
    Account lifecycle states.

    State Transitions (forward-only):
    - PENDING -> VERIFIED (correct OTP submitted)
    - VERIFIED -> ACTIVE (password set)

    Only ACTIVE accounts can log in. The state is derived from
    is_verified and password_hash rather than stored separately.
    """

    PENDING = "pending"
    VERIFIED = "verified"
    ACTIVE = "active"


class InsertResult(Enum):
    """Result of inserting a new account."""

    CREATED = "created"
    EMAIL_TAKEN = "email_taken"
    REFERRAL_CODE_TAKEN = "referral_code_taken"


class UpdateResult(Enum):
    """Result of a conditional update on an existing account."""

    UPDATED = "updated"
    NOT_FOUND = "not_found"
    NOT_VERIFIED = "not_verified"
    EMAIL_TAKEN = "email_taken"


@dataclass(frozen=True)
class Address:
    line1: str | None = None
    line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


@dataclass(frozen=True)
class Account:
    """Snapshot of a persisted account record."""

    id: str
    first_name: str
    last_name: str
    email: str
    phone_number: str
    referral_code: str
    otp: str | None = None
    password_hash: str | None = None
    is_verified: bool = False
    referred_by: str | None = None
    coins: int = 0
    address: Address | None = None
    created_at: datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def state(self) -> AccountState:
        if not self.is_verified:
            return AccountState.PENDING
        if self.password_hash is None:
            return AccountState.VERIFIED
        return AccountState.ACTIVE


class AccountStore(Protocol):
    """Port interface for account persistence."""

    def insert(self, account: Account) -> InsertResult:
        """
        Atomically insert a new account.

        The store enforces uniqueness of email and referral_code. When both
        collide, EMAIL_TAKEN wins so the caller never retries a duplicate
        registration.

        Returns:
            CREATED on success, otherwise which unique constraint rejected it
        """
        ...

    def get_by_id(self, account_id: str) -> Account | None:
        """Fetch an account by id, None if absent or malformed id."""
        ...

    def get_by_email(self, email: str) -> Account | None:
        """Fetch an account by normalized email."""
        ...

    def get_by_referral_code(self, referral_code: str) -> Account | None:
        """Fetch the account that owns a referral code."""
        ...

    def credit_coins(self, referral_code: str, amount: int) -> bool:
        """
        Atomically add coins to the account owning referral_code.

        Must be a single increment (no read-modify-write) so concurrent
        credits to the same account are never lost.

        Returns:
            True if an account was credited, False if the code is unknown
        """
        ...

    def consume_otp(self, email: str, otp: str) -> str | None:
        """
        Verify a pending OTP and mark the account verified.

        Comparison and the is_verified/otp update happen under one lock so
        a code can only be consumed once.

        Returns:
            Account id on success, None on unknown email or mismatch
        """
        ...

    def set_password_hash(self, account_id: str, password_hash: str) -> UpdateResult:
        """
        Store a password hash, only if the account is verified.

        Returns:
            UPDATED, NOT_FOUND or NOT_VERIFIED
        """
        ...

    def update_profile(self, account_id: str, changes: dict[str, str]) -> UpdateResult:
        """
        Apply a partial update of first_name, last_name, email, phone_number.

        Returns:
            UPDATED, NOT_FOUND or EMAIL_TAKEN
        """
        ...

    def set_address(self, account_id: str, address: Address) -> UpdateResult:
        """
        Replace the address sub-record.

        Returns:
            UPDATED or NOT_FOUND
        """
        ...

    def ping(self) -> None:
        """Raise StoreError if the store is unreachable."""
        ...


class CredentialHasher(Protocol):
    """Port interface for one-way password hashing."""

    def hash(self, password: str) -> str:
        ...

    def verify(self, password: str, password_hash: str | None) -> bool:
        """
        Compare password against password_hash.

        A None hash must still cost the same as a real comparison and
        return False.
        """
        ...


class CodeGenerator(Protocol):
    """Port interface for random referral codes and OTPs."""

    def generate_referral_code(self) -> str:
        ...

    def generate_otp(self) -> str:
        ...


class OtpSender(Protocol):
    """Port interface for out-of-band OTP delivery."""

    def send_otp(self, email: str, otp: str) -> None:
        """
        Deliver otp to the owner of email.

        Args:
            email: Recipient email address
            otp: 6-digit one-time password
        """
        ...
