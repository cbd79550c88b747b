"""Profile domain service - name, contact and address records."""

from dataclasses import dataclass

from .exceptions import ConflictError, NotFoundError, ValidationError
from .lifecycle import normalize_email
from .ports import Address, AccountStore, UpdateResult

PROFILE_FIELDS = ("first_name", "last_name", "email", "phone_number")


@dataclass(frozen=True)
class Profile:
    full_name: str
    email: str
    phone_number: str


@dataclass
class ProfileService:
    """Read and update profile data of existing accounts, in any lifecycle state."""

    store: AccountStore

    def get_profile(self, account_id: str) -> Profile:
        account = self.store.get_by_id(account_id)
        if account is None:
            raise NotFoundError(account_id)
        return Profile(
            full_name=account.full_name,
            email=account.email,
            phone_number=account.phone_number,
        )

    def update_profile(self, account_id: str, **fields: str | None) -> Profile:
        """
        Partially update first_name, last_name, email and phone_number.

        Fields passed as None are left unchanged. A changed email is
        normalized and must not belong to another account.

        Raises:
            ValidationError: Unknown field, or a supplied field is blank
            NotFoundError: No such account
            ConflictError: The new email is already registered
        """
        unknown = set(fields) - set(PROFILE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown profile fields: {', '.join(sorted(unknown))}")

        changes: dict[str, str] = {}
        for name, value in fields.items():
            if value is None:
                continue
            value = value.strip()
            if not value:
                raise ValidationError(f"{name} must not be empty")
            changes[name] = normalize_email(value) if name == "email" else value

        if changes:
            result = self.store.update_profile(account_id, changes)
            if result is UpdateResult.NOT_FOUND:
                raise NotFoundError(account_id)
            if result is UpdateResult.EMAIL_TAKEN:
                raise ConflictError(changes["email"])

        return self.get_profile(account_id)

    def add_or_update_address(self, account_id: str, address: Address) -> Address:
        """Replace the whole address sub-record."""
        if self.store.set_address(account_id, address) is UpdateResult.NOT_FOUND:
            raise NotFoundError(account_id)
        return address

    def get_address(self, account_id: str) -> Address:
        account = self.store.get_by_id(account_id)
        if account is None or account.address is None:
            raise NotFoundError(account_id)
        return account.address
