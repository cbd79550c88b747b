"""Random referral codes and one-time passwords."""

import secrets
import string

REFERRAL_CODE_ALPHABET = string.ascii_uppercase + string.digits
REFERRAL_CODE_LENGTH = 8
OTP_MIN = 100000
OTP_MAX = 999999


class RandomCodeGenerator:
    """
    Implements CodeGenerator protocol via the secrets module.

    Codes are not unique by construction; uniqueness is enforced by the
    store and the caller retries with a fresh code on collision.
    """

    def generate_referral_code(self) -> str:
        """8 characters drawn uniformly from A-Z and 0-9."""
        return "".join(
            secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(REFERRAL_CODE_LENGTH)
        )

    def generate_otp(self) -> str:
        """
        6-digit numeric code in [100000, 999999].

        Returned as a string because it is compared as a string.
        """
        return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))
