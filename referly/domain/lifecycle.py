"""
Account lifecycle domain service - activation state machine and referrals.

Lifecycle (Forward-Only Transitions)
====================================

States (derived from is_verified and password_hash):
- PENDING: Created by register(); OTP outstanding, no password
- VERIFIED: Correct OTP submitted; OTP cleared, no password yet
- ACTIVE: Password set; the only state from which login succeeds

Valid Transitions:
    PENDING  -> VERIFIED  (verify_otp with the current OTP)
    VERIFIED -> ACTIVE    (set_password)

There are no backward transitions. Enforcement happens at the store level
through conditional updates (consume_otp only matches a pending OTP,
set_password_hash only matches a verified account).

Referral Credit
===============

When a registration presents a referral code owned by an existing account,
the new account is created with referred_by set and the bonus pre-credited,
then the referrer is credited through a single atomic increment. The two
writes are independent: if the referrer credit fails, the new account is
kept and the failure is logged for reconciliation.
"""

import logging
import uuid
from dataclasses import dataclass, field

from .codes import RandomCodeGenerator
from .exceptions import (
    ConflictError,
    InvalidCredentialError,
    InvalidStateError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from .ports import (
    Account,
    AccountStore,
    CodeGenerator,
    CredentialHasher,
    InsertResult,
    OtpSender,
    UpdateResult,
)

logger = logging.getLogger(__name__)

# Longest password bcrypt accepts
MAX_PASSWORD_BYTES = 72


def normalize_email(email: str) -> str:
    """
    Normalize email address for consistent storage and lookup.

    Applies: strip whitespace + lowercase
    """
    return email.strip().lower()


@dataclass(frozen=True)
class RegistrationResult:
    account_id: str
    otp: str
    referral_code: str


@dataclass(frozen=True)
class LoginResult:
    account_id: str
    full_name: str
    email: str
    phone_number: str


@dataclass
class AccountLifecycle:
    """
    Domain service for registration, verification, activation and login.

    Orchestrates code generation, referral resolution, password hashing
    and persistence through the injected ports.
    """

    store: AccountStore
    hasher: CredentialHasher
    otp_sender: OtpSender
    codes: CodeGenerator = field(default_factory=RandomCodeGenerator)
    referral_bonus: int = 100
    referral_code_attempts: int = 5

    def __post_init__(self) -> None:
        if self.referral_bonus <= 0:
            raise ValueError("referral_bonus must be positive")

    def register(
        self,
        first_name: str,
        last_name: str,
        email: str,
        phone_number: str,
        referral_code_used: str | None = None,
    ) -> RegistrationResult:
        """
        Create a pending account and issue its OTP.

        Args:
            first_name: Required, non-blank
            last_name: Required, non-blank
            email: Required, normalized before storage
            phone_number: Required, non-blank
            referral_code_used: Optional referral code of another account;
                unknown codes are ignored

        Returns:
            RegistrationResult with the new id, OTP and own referral code

        Raises:
            ValidationError: A required field is missing or blank
            ConflictError: The email is already registered
            StoreError: No unique referral code could be allocated
        """
        first_name, last_name, email, phone_number = _require(
            first_name, last_name, email, phone_number
        )
        email = normalize_email(email)

        referrer = None
        if referral_code_used and referral_code_used.strip():
            referrer = self.store.get_by_referral_code(referral_code_used.strip())
            if referrer is None:
                logger.info("Ignoring unknown referral code on registration")

        otp = self.codes.generate_otp()
        account_id = str(uuid.uuid4())

        for attempt in range(1, self.referral_code_attempts + 1):
            account = Account(
                id=account_id,
                first_name=first_name,
                last_name=last_name,
                email=email,
                phone_number=phone_number,
                referral_code=self.codes.generate_referral_code(),
                otp=otp,
                referred_by=referrer.referral_code if referrer else None,
                coins=self.referral_bonus if referrer else 0,
            )
            result = self.store.insert(account)
            if result is InsertResult.CREATED:
                break
            if result is InsertResult.EMAIL_TAKEN:
                raise ConflictError(email)
            logger.warning("Referral code collision, retrying (attempt %d)", attempt)
        else:
            raise StoreError(
                f"Could not allocate a unique referral code in {self.referral_code_attempts} attempts"
            )

        if referrer is not None:
            self._credit_referrer(referrer.referral_code, account.id)

        self.otp_sender.send_otp(email, otp)
        return RegistrationResult(
            account_id=account.id, otp=otp, referral_code=account.referral_code
        )

    def verify_otp(self, email: str, otp: str) -> str:
        """
        Confirm the pending OTP for email and mark the account verified.

        Returns:
            The verified account id

        Raises:
            ValidationError: email or otp is blank
            InvalidCredentialError: Unknown email or OTP mismatch
        """
        email, otp = _require(email, otp)
        account_id = self.store.consume_otp(normalize_email(email), otp)
        if account_id is None:
            raise InvalidCredentialError("Invalid OTP")
        logger.info("Account %s verified", account_id)
        return account_id

    def set_password(self, account_id: str, password: str) -> None:
        """
        Activate a verified account by storing its password hash.

        Raises:
            ValidationError: account_id or password is blank, or the password
                is longer than MAX_PASSWORD_BYTES when UTF-8 encoded
            NotFoundError: No such account
            InvalidStateError: Account has not been verified yet
        """
        if not account_id or not password:
            raise ValidationError("All fields are required")
        if len(password.encode()) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

        result = self.store.set_password_hash(account_id, self.hasher.hash(password))
        if result is UpdateResult.NOT_FOUND:
            raise NotFoundError(account_id)
        if result is UpdateResult.NOT_VERIFIED:
            raise InvalidStateError(account_id)
        logger.info("Account %s activated", account_id)

    def login(self, email: str, password: str) -> LoginResult:
        """
        Authenticate an active account.

        Unknown email, unset password and wrong password all raise the same
        InvalidCredentialError, and the hasher runs in every case so the
        three are indistinguishable from outside.
        """
        if not email or not email.strip() or not password:
            raise ValidationError("Email and password required")

        account = self.store.get_by_email(normalize_email(email))
        stored_hash = account.password_hash if account is not None else None
        password_valid = self.hasher.verify(password, stored_hash)

        if account is None:
            logger.debug("Login rejected: unknown email")
            raise InvalidCredentialError("Invalid credentials")
        if stored_hash is None or not account.is_verified:
            logger.debug("Login rejected: account %s not active", account.id)
            raise InvalidCredentialError("Invalid credentials")
        if not password_valid:
            logger.debug("Login rejected: password mismatch for %s", account.id)
            raise InvalidCredentialError("Invalid credentials")

        return LoginResult(
            account_id=account.id,
            full_name=account.full_name,
            email=account.email,
            phone_number=account.phone_number,
        )

    def _credit_referrer(self, referral_code: str, new_account_id: str) -> None:
        # Best effort: the new account stays even if this credit fails.
        try:
            credited = self.store.credit_coins(referral_code, self.referral_bonus)
        except StoreError:
            logger.exception(
                "Referral credit failed for code %s (new account %s)",
                referral_code,
                new_account_id,
            )
            return
        if not credited:
            logger.error(
                "Referral credit found no account for code %s (new account %s)",
                referral_code,
                new_account_id,
            )


def _require(*values: str | None) -> tuple[str, ...]:
    """Strip every value, raising ValidationError if any is missing or blank."""
    stripped = tuple((value or "").strip() for value in values)
    if not all(stripped):
        raise ValidationError("All fields are required")
    return stripped
