"""
Unit tests for ConsoleEmailSender adapter.

Tests verify the console email sender implements EmailSender protocol
and logs verification codes in the correct format.
"""

import logging
from concurrent.futures import ThreadPoolExecutor

import pytest

from otpgate.adapters.smtp.console import ConsoleEmailSender

VERIFY_URL_BASE = "http://localhost:8000/v1/verify"


class TestConsoleEmailSenderProtocol:
    """Tests for EmailSender protocol compliance."""

    def test_implements_email_sender_protocol(self) -> None:
        """ConsoleEmailSender implements EmailSender protocol."""
        from otpgate.domain.ports import EmailSender

        sender = ConsoleEmailSender(VERIFY_URL_BASE)
        assert callable(sender.send_verification_code)

        def accepts_email_sender(s: EmailSender) -> None:
            pass

        accepts_email_sender(sender)

    def test_no_explicit_inheritance(self) -> None:
        """ConsoleEmailSender uses structural subtyping, not inheritance."""
        bases = ConsoleEmailSender.__bases__
        assert bases == (object,), f"Expected only object as base, got {bases}"


class TestSendVerificationCode:
    """Tests for send_verification_code method."""

    def test_send_verification_code_logs_message(self, caplog: pytest.LogCaptureFixture) -> None:
        """Verification code is logged at INFO level."""
        sender = ConsoleEmailSender(VERIFY_URL_BASE)

        with caplog.at_level(logging.INFO):
            sender.send_verification_code("test@example.com", "1234")

        assert len(caplog.records) == 1
        assert caplog.records[0].levelno == logging.INFO

    def test_send_verification_code_format(self, caplog: pytest.LogCaptureFixture) -> None:
        """Log line carries email, code and verification link."""
        sender = ConsoleEmailSender(VERIFY_URL_BASE)

        with caplog.at_level(logging.INFO):
            sender.send_verification_code("user@example.com", "5678")

        assert "[VERIFICATION]" in caplog.text
        assert "Email: user@example.com" in caplog.text
        assert "Code: 5678" in caplog.text
        assert f"Link: {VERIFY_URL_BASE}/user@example.com" in caplog.text

    def test_trailing_slash_in_base_is_dropped(self, caplog: pytest.LogCaptureFixture) -> None:
        sender = ConsoleEmailSender(VERIFY_URL_BASE + "/")

        with caplog.at_level(logging.INFO):
            sender.send_verification_code("user@example.com", "5678")

        assert "verify//" not in caplog.text

    def test_send_verification_code_returns_none(self) -> None:
        """Method returns None (fire-and-forget)."""
        sender = ConsoleEmailSender(VERIFY_URL_BASE)
        result = sender.send_verification_code("test@example.com", "1234")
        assert result is None

    def test_send_verification_code_with_various_emails(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Method handles various email formats correctly."""
        sender = ConsoleEmailSender(VERIFY_URL_BASE)
        emails = [
            "simple@example.com",
            "user.name@domain.org",
            "user+tag@example.com",
        ]

        with caplog.at_level(logging.INFO):
            for email in emails:
                sender.send_verification_code(email, "1234")

        assert len(caplog.records) == 3
        for email in emails:
            assert email in caplog.text


class TestThreadSafety:
    """Tests for thread-safe logging."""

    def test_concurrent_logging_is_thread_safe(self, caplog: pytest.LogCaptureFixture) -> None:
        """Multiple concurrent calls don't corrupt log output."""
        sender = ConsoleEmailSender(VERIFY_URL_BASE)
        emails = [f"user{i}@example.com" for i in range(10)]
        codes = [str(1000 + i) for i in range(10)]

        with caplog.at_level(logging.INFO), ThreadPoolExecutor(max_workers=5) as executor:
            futures = [
                executor.submit(sender.send_verification_code, email, code)
                for email, code in zip(emails, codes, strict=True)
            ]
            for f in futures:
                f.result()

        assert len(caplog.records) == 10
        for record in caplog.records:
            assert "[VERIFICATION]" in record.message
            assert "Email:" in record.message
            assert "Code:" in record.message
