"""
In-memory account store adapter - Implements AccountStore protocol.

Keeps accounts in process memory behind a single lock, so every
operation is atomic with respect to concurrent requests. Used for local
development (STORE_BACKEND=memory) and for tests that need no database.
Data does not survive a restart.
"""

import secrets
import threading
from dataclasses import replace
from datetime import datetime, timezone

from referly.domain.ports import Account, Address, InsertResult, UpdateResult


class InMemoryAccountStore:
    """
    Implements AccountStore protocol with dictionaries and a lock.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Accounts are frozen dataclasses, so returned snapshots can never be
    mutated behind the store's back.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_id: dict[str, Account] = {}
        self._id_by_email: dict[str, str] = {}
        self._id_by_code: dict[str, str] = {}

    def insert(self, account: Account) -> InsertResult:
        with self._lock:
            if account.email in self._id_by_email:
                return InsertResult.EMAIL_TAKEN
            if account.referral_code in self._id_by_code:
                return InsertResult.REFERRAL_CODE_TAKEN
            stored = replace(account, created_at=datetime.now(timezone.utc))
            self._by_id[stored.id] = stored
            self._id_by_email[stored.email] = stored.id
            self._id_by_code[stored.referral_code] = stored.id
            return InsertResult.CREATED

    def get_by_id(self, account_id: str) -> Account | None:
        with self._lock:
            return self._by_id.get(account_id)

    def get_by_email(self, email: str) -> Account | None:
        with self._lock:
            account_id = self._id_by_email.get(email)
            return self._by_id.get(account_id) if account_id else None

    def get_by_referral_code(self, referral_code: str) -> Account | None:
        with self._lock:
            account_id = self._id_by_code.get(referral_code)
            return self._by_id.get(account_id) if account_id else None

    def credit_coins(self, referral_code: str, amount: int) -> bool:
        with self._lock:
            account_id = self._id_by_code.get(referral_code)
            if account_id is None:
                return False
            account = self._by_id[account_id]
            self._by_id[account_id] = replace(account, coins=account.coins + amount)
            return True

    def consume_otp(self, email: str, otp: str) -> str | None:
        with self._lock:
            account_id = self._id_by_email.get(email)
            account = self._by_id.get(account_id) if account_id else None
            stored_otp = account.otp if account is not None and account.otp else "000000"
            otp_valid = secrets.compare_digest(stored_otp.encode(), otp.encode())

            if account is None or account.otp is None or not otp_valid:
                return None
            self._by_id[account.id] = replace(account, is_verified=True, otp=None)
            return account.id

    def set_password_hash(self, account_id: str, password_hash: str) -> UpdateResult:
        with self._lock:
            account = self._by_id.get(account_id)
            if account is None:
                return UpdateResult.NOT_FOUND
            if not account.is_verified:
                return UpdateResult.NOT_VERIFIED
            self._by_id[account_id] = replace(account, password_hash=password_hash)
            return UpdateResult.UPDATED

    def update_profile(self, account_id: str, changes: dict[str, str]) -> UpdateResult:
        with self._lock:
            account = self._by_id.get(account_id)
            if account is None:
                return UpdateResult.NOT_FOUND
            new_email = changes.get("email", account.email)
            if new_email != account.email:
                if new_email in self._id_by_email:
                    return UpdateResult.EMAIL_TAKEN
                del self._id_by_email[account.email]
                self._id_by_email[new_email] = account_id
            self._by_id[account_id] = replace(account, **changes)
            return UpdateResult.UPDATED

    def set_address(self, account_id: str, address: Address) -> UpdateResult:
        with self._lock:
            account = self._by_id.get(account_id)
            if account is None:
                return UpdateResult.NOT_FOUND
            self._by_id[account_id] = replace(account, address=address)
            return UpdateResult.UPDATED

    def ping(self) -> None:
        return None
