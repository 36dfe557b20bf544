"""
Console email sender adapter - Implements EmailSender protocol.

This module provides a console-based implementation of the domain's
email sender port, logging verification codes for local development.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleEmailSender:
    """
    Implements EmailSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - logs the code and the verification link.
    """

    def __init__(self, verify_url_base: str) -> None:
        self._verify_url_base = verify_url_base.rstrip("/")

    def send_verification_code(self, email: str, code: str) -> None:
        """
        Log verification code to console (simulates email delivery).

        The code is logged at INFO level to be visible in container logs.

        Args:
            email: Recipient email address (normalized by domain layer)
            code: 4-digit verification code
        """
        logger.info(
            "[VERIFICATION] Email: %s Code: %s Link: %s/%s",
            email,
            code,
            self._verify_url_base,
            email,
        )
