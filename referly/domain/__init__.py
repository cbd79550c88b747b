"""
Domain layer - Pure business logic with zero framework imports.

This package contains the account lifecycle state machine, the referral
credit rules and the profile service. It defines its own port interfaces
for infrastructure abstraction, ensuring true hexagonal architecture
decoupling.
"""

from .codes import RandomCodeGenerator
from .exceptions import (
    AccountError,
    ConflictError,
    InvalidCredentialError,
    InvalidStateError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from .lifecycle import AccountLifecycle, LoginResult, RegistrationResult
from .ports import (
    Account,
    AccountState,
    AccountStore,
    Address,
    CodeGenerator,
    CredentialHasher,
    InsertResult,
    OtpSender,
    UpdateResult,
)
from .profile import Profile, ProfileService

__all__ = [
    "Account",
    "AccountError",
    "AccountLifecycle",
    "AccountState",
    "AccountStore",
    "Address",
    "CodeGenerator",
    "ConflictError",
    "CredentialHasher",
    "InsertResult",
    "InvalidCredentialError",
    "InvalidStateError",
    "LoginResult",
    "NotFoundError",
    "OtpSender",
    "Profile",
    "ProfileService",
    "RandomCodeGenerator",
    "RegistrationResult",
    "StoreError",
    "UpdateResult",
    "ValidationError",
]
