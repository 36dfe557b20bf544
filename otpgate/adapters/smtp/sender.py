"""
SMTP email sender adapter - Implements EmailSender protocol.

Delivers the verification code as an HTML email over SMTP. A fresh
connection is opened per message and every socket operation is bounded
by the configured timeout. Transport failures surface as
MailDeliveryFailed.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from otpgate.config.settings import Settings
from otpgate.domain.exceptions import MailDeliveryFailed

logger = logging.getLogger(__name__)

SUBJECT = "Email Verification OTP"


class SmtpEmailSender:
    """
    Implements EmailSender protocol via smtplib.

    Supports both SSL (port 465) and STARTTLS (port 587) connections.
    """

    def __init__(self, settings: Settings) -> None:
        self._host = settings.smtp_host
        self._port = settings.smtp_port
        self._username = settings.smtp_username
        self._password = settings.smtp_password
        self._from_address = settings.smtp_from_address
        self._use_ssl = settings.smtp_use_ssl
        self._use_tls = settings.smtp_use_tls
        self._timeout = settings.smtp_timeout_seconds
        self._verify_url_base = settings.verify_url_base.rstrip("/")

    def build_message(self, email: str, code: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["From"] = self._from_address
        msg["To"] = email
        msg["Subject"] = SUBJECT

        link = f"{self._verify_url_base}/{email}"
        text = f"Your OTP is {code}\n\nVerify your account at {link}\n"
        html = (
            f"<h1>Your OTP is {code}</h1>\n"
            f'<a href="{link}">Click this link to go to the verification page</a>\n'
        )
        msg.attach(MIMEText(text, "plain"))
        msg.attach(MIMEText(html, "html"))
        return msg

    def send_verification_code(self, email: str, code: str) -> None:
        """
        Send verification code to email address.

        Raises:
            MailDeliveryFailed: On SMTP errors, network errors or timeout
        """
        msg = self.build_message(email, code)

        try:
            if self._use_ssl:
                smtp_server = smtplib.SMTP_SSL(self._host, self._port, timeout=self._timeout)
            else:
                smtp_server = smtplib.SMTP(self._host, self._port, timeout=self._timeout)

            with smtp_server:
                if self._use_tls and not self._use_ssl:
                    smtp_server.starttls()
                if self._username and self._password:
                    smtp_server.login(self._username, self._password)
                smtp_server.sendmail(self._from_address, [email], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Error sending verification email to %s: %s", email, e)
            raise MailDeliveryFailed() from e

        logger.info("Verification email sent successfully to %s", email)
