"""
Console OTP sender adapter - Implements OtpSender protocol.

This module provides a console-based implementation of the domain's
OTP delivery port, logging one-time passwords for development use.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleOtpSender:
    """
    Implements OtpSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - an SMS or email adapter replaces it
    in production.
    """

    def send_otp(self, email: str, otp: str) -> None:
        """
        Log the OTP (simulates out-of-band delivery).

        Args:
            email: Recipient email address (normalized by domain layer)
            otp: 6-digit one-time password
        """
        logger.info("[OTP] Email: %s Code: %s", email, otp)
