"""
bcrypt credential hasher - Implements CredentialHasher protocol.

Timing Oracle Prevention:
------------------------
verify() always runs bcrypt.checkpw(). When the account has no password
hash (unknown email, or password not yet set) the comparison runs against
a dummy hash of the same cost, so response time does not reveal which
case occurred.

Passwords longer than 72 bytes can never match (bcrypt refuses to hash
them), so verify() sends them down the same dummy-hash path instead of
letting bcrypt raise.
"""

import bcrypt

# bcrypt input limit
MAX_PASSWORD_BYTES = 72


class BcryptCredentialHasher:
    """
    Implements CredentialHasher protocol via bcrypt.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, cost: int = 10) -> None:
        """
        Initialize hasher with bcrypt work factor.

        Args:
            cost: bcrypt cost factor (log2 rounds), at least 10 in production
        """
        self._cost = cost
        self._dummy_hash = bcrypt.hashpw(
            b"dummy_password_for_timing_safety", bcrypt.gensalt(cost)
        )

    def hash(self, password: str) -> str:
        """
        Hash a password.

        Raises:
            ValueError: password is longer than MAX_PASSWORD_BYTES
        """
        encoded = password.encode()
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self._cost)).decode()

    def verify(self, password: str, password_hash: str | None) -> bool:
        encoded = password.encode()
        if password_hash is None or len(encoded) > MAX_PASSWORD_BYTES:
            bcrypt.checkpw(encoded[:MAX_PASSWORD_BYTES], self._dummy_hash)
            return False
        try:
            return bcrypt.checkpw(encoded, password_hash.encode())
        except ValueError:
            # Stored value is not a bcrypt hash
            return False
