"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the records the domain works with and the interfaces
(ports) it requires from infrastructure. Adapters implement these protocols.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol


class AccountState(str, Enum):
    """
    Account lifecycle states.

    State Transitions (forward-only):
    - UNREGISTERED -> PENDING_VERIFICATION (registration)
    - PENDING_VERIFICATION -> VERIFIED (successful OTP verification)

    Terminal States:
    - VERIFIED: no deactivation is modelled

    UNREGISTERED is never stored; it is the absence of an account row.
    """

    UNREGISTERED = "UNREGISTERED"
    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    VERIFIED = "VERIFIED"


@dataclass(frozen=True)
class Account:
    """Stored account. password_hash is never the raw password."""

    id: str
    email: str
    password_hash: str
    first_name: str
    last_name: str
    verified: bool
    created_at: datetime

    @property
    def state(self) -> AccountState:
        if self.verified:
            return AccountState.VERIFIED
        return AccountState.PENDING_VERIFICATION


@dataclass(frozen=True)
class OtpRecord:
    """Stored verification challenge. Only the hash is persisted."""

    account_id: str
    otp_hash: str
    created_at: datetime
    expires_at: datetime


class AccountRepository(Protocol):
    """Port interface for account persistence."""

    def create_account(
        self,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        otp_hash: str,
        otp_ttl_seconds: int,
    ) -> tuple[Account, OtpRecord] | None:
        """
        Atomically create an unverified account and its first OTP record.

        Both rows are written in a single storage transaction. A UNIQUE
        constraint on email makes concurrent registrations safe.

        Args:
            email: Normalized email address
            password_hash: bcrypt hashed password
            first_name: Descriptive only
            last_name: Descriptive only
            otp_hash: bcrypt hashed verification code
            otp_ttl_seconds: Lifetime of the OTP record

        Returns:
            (account, otp_record) on success, None if the email is taken
        """
        ...

    def get_by_email(self, email: str) -> Account | None:
        """Load an account by normalized email."""
        ...

    def get_by_id(self, account_id: str) -> Account | None:
        """Load an account by id. Malformed ids behave as unknown ids."""
        ...

    def mark_verified(self, account_id: str) -> bool:
        """
        Flip verified to true.

        Returns:
            True if this call flipped the flag, False if it was already set
            or the account does not exist
        """
        ...

    def ping(self) -> None:
        """Raise if storage is unreachable."""
        ...


class OtpRepository(Protocol):
    """Port interface for OTP record persistence."""

    def replace_otp(self, account_id: str, otp_hash: str, ttl_seconds: int) -> OtpRecord:
        """
        Delete any existing record for the account, then insert a new one.

        Concurrent callers for the same account are serialised; the last
        writer wins.
        """
        ...

    def get_active_otp(self, account_id: str) -> OtpRecord | None:
        """Load the live (unexpired) record for the account, if any."""
        ...

    def delete_otp(self, account_id: str) -> None:
        """Delete the record for the account. Missing records are ignored."""
        ...

    def purge_expired_otps(self) -> int:
        """Delete every expired record. Returns the number removed."""
        ...


class EmailSender(Protocol):
    """Port interface for email delivery."""

    def send_verification_code(self, email: str, code: str) -> None:
        """
        Send verification code to email address.

        Args:
            email: Recipient email address
            code: 4-digit verification code

        Raises:
            MailDeliveryFailed: If the transport rejects or times out
        """
        ...
