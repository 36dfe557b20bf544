"""
OTP issuer - Mints, validates and consumes one-time verification codes.

Codes are 4-digit numeric strings in 1000-9999. Only the bcrypt hash is
persisted; the plaintext is returned once from issue() for delivery and
never stored.

Single live challenge per account is kept by delete-then-create in the
repository. Two concurrent issue() calls for one account are serialised
by storage and the last writer wins, so a code delivered by the earlier
call silently stops validating.
"""

import secrets
from dataclasses import dataclass

from .exceptions import OtpNotFound
from .hashing import CredentialHasher
from .ports import OtpRecord, OtpRepository

OTP_MIN = 1000
OTP_MAX = 9999


@dataclass(frozen=True)
class IssuedOtp:
    """Transient pairing of a delivered plaintext and its stored record."""

    plaintext: str
    record: OtpRecord


def generate_code() -> str:
    """Return a cryptographically random code in OTP_MIN..OTP_MAX inclusive."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


@dataclass
class OtpIssuer:
    """Issues and checks OTP records for accounts."""

    repository: OtpRepository
    hasher: CredentialHasher
    ttl_seconds: int = 3600

    def mint(self) -> tuple[str, str]:
        """Generate a code and its hash without persisting anything."""
        code = generate_code()
        return code, self.hasher.hash(code)

    def issue(self, account_id: str) -> IssuedOtp:
        """Replace the account's challenge with a fresh one."""
        code, otp_hash = self.mint()
        record = self.repository.replace_otp(account_id, otp_hash, self.ttl_seconds)
        return IssuedOtp(plaintext=code, record=record)

    def active_record(self, account_id: str) -> OtpRecord | None:
        return self.repository.get_active_otp(account_id)

    def validate(self, account_id: str, submitted: str) -> bool:
        """
        Check a submitted code against the live challenge.

        Raises:
            OtpNotFound: If no live record exists (expired or consumed)
            HashingError: If the hasher fails
        """
        record = self.repository.get_active_otp(account_id)
        if record is None:
            raise OtpNotFound()
        return self.hasher.verify(submitted, record.otp_hash)

    def consume(self, account_id: str) -> None:
        self.repository.delete_otp(account_id)
