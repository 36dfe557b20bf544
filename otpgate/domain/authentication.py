"""
Authentication domain service - Account State Machine implementation.

This module contains the core business logic for registration, email
verification by one-time password, and login.

Account State Machine (Forward-Only Transitions)
===============================================

States:
- UNREGISTERED: No account row for the email
- PENDING_VERIFICATION: Account created, email not yet proven
- VERIFIED: Terminal state after a successful OTP match

Valid Transitions:
    UNREGISTERED -> PENDING_VERIFICATION  (register)
    PENDING_VERIFICATION -> VERIFIED      (verify with matching OTP)

Login while PENDING_VERIFICATION never yields a session token. It either
reports the outstanding code (VerificationPending) or issues a new one
(VerificationCodeResent), so every unverified login leaves exactly one
live OTP record behind, unless delivery of the new code fails; then the
record is dropped and the next login issues another.

Every operation returns an AuthResult. Collaborator failures
(MailDeliveryFailed, StorageError, HashingError) are raised. This layer
never logs.
"""

from dataclasses import dataclass
from functools import lru_cache

from .exceptions import (
    AccountNotFound,
    AlreadyVerified,
    DuplicateEmail,
    InvalidCredentials,
    InvalidOtp,
    MissingIdentifier,
    OtpNotFound,
    PasswordTooLong,
    SessionInvalid,
    VerificationCodeResent,
    VerificationPending,
)
from .hashing import BCRYPT_MAX_BYTES, CredentialHasher
from .otp import OtpIssuer
from .ports import Account, AccountRepository, EmailSender
from .results import AuthResult, Login, Registration, Verification, VerificationStatus
from .sessions import SessionTokenService


@lru_cache
def _dummy_hash(hasher: CredentialHasher) -> str:
    """bcrypt digest compared against when the email is unknown."""
    return hasher.hash("dummy_password_for_timing_safety")


@dataclass
class AuthenticationService:
    """
    Domain service for the account lifecycle.

    Orchestrates registration, verification and login over injected
    storage, OTP, session and mail collaborators.
    """

    accounts: AccountRepository
    otp_issuer: OtpIssuer
    sessions: SessionTokenService
    email_sender: EmailSender
    hasher: CredentialHasher

    def register(
        self, email: str, password: str, first_name: str = "", last_name: str = ""
    ) -> AuthResult[Registration]:
        """
        Create an unverified account and send its first verification code.

        The account and OTP record are written in one storage transaction.
        If delivery fails the OTP record is discarded, the account is kept,
        and MailDeliveryFailed propagates; the next login re-issues a code.

        Returns:
            Registration on success, DuplicateEmail or PasswordTooLong otherwise

        Raises:
            MailDeliveryFailed: If the notifier could not send the code
        """
        normalized_email = self._normalize_email(email)
        if len(password.encode()) > BCRYPT_MAX_BYTES:
            return AuthResult.fail(PasswordTooLong())

        if self.accounts.get_by_email(normalized_email) is not None:
            return AuthResult.fail(DuplicateEmail())

        password_hash = self.hasher.hash(password)
        code, otp_hash = self.otp_issuer.mint()

        created = self.accounts.create_account(
            normalized_email,
            password_hash,
            first_name,
            last_name,
            otp_hash,
            self.otp_issuer.ttl_seconds,
        )
        # Lost a concurrent race on the UNIQUE email constraint
        if created is None:
            return AuthResult.fail(DuplicateEmail())

        account, _ = created
        self._deliver(account, code)
        return AuthResult.ok(
            Registration(
                account_id=account.id,
                email=account.email,
                expires_in_seconds=self.otp_issuer.ttl_seconds,
            )
        )

    def verify(
        self, otp: str, account_id: str | None = None, email: str | None = None
    ) -> AuthResult[Verification]:
        """
        Consume a verification code and mark the account verified.

        The account is looked up by id when given, otherwise by email.

        Returns:
            Verification on success; MissingIdentifier, AccountNotFound,
            AlreadyVerified, OtpNotFound or InvalidOtp otherwise
        """
        if not otp or (not account_id and not email):
            return AuthResult.fail(MissingIdentifier())

        if account_id:
            account = self.accounts.get_by_id(account_id)
        else:
            account = self.accounts.get_by_email(self._normalize_email(email or ""))

        if account is None:
            return AuthResult.fail(AccountNotFound("User with that email does not exist."))
        if account.verified:
            return AuthResult.fail(AlreadyVerified())

        try:
            matched = self.otp_issuer.validate(account.id, otp)
        except OtpNotFound as e:
            return AuthResult.fail(e)
        if not matched:
            return AuthResult.fail(InvalidOtp())

        # A concurrent verify may have flipped the flag first
        if not self.accounts.mark_verified(account.id):
            return AuthResult.fail(AlreadyVerified())
        self.otp_issuer.consume(account.id)

        return AuthResult.ok(Verification(account_id=account.id, email=account.email))

    def login(self, email: str, password: str) -> AuthResult[Login]:
        """
        Check credentials and issue a session token for verified accounts.

        Unknown emails still run bcrypt against a dummy digest so response
        time does not reveal account existence.

        Returns:
            Login on success; AccountNotFound, InvalidCredentials,
            VerificationPending or VerificationCodeResent otherwise

        Raises:
            MailDeliveryFailed: If a re-issued code could not be sent
        """
        account = self.accounts.get_by_email(self._normalize_email(email))
        # Registration refuses such passwords, so they can never match
        too_long = len(password.encode()) > BCRYPT_MAX_BYTES

        if account is None:
            if not too_long:
                self.hasher.verify(password, _dummy_hash(self.hasher))
            return AuthResult.fail(AccountNotFound())

        if too_long or not self.hasher.verify(password, account.password_hash):
            return AuthResult.fail(InvalidCredentials())

        if not account.verified:
            if self.otp_issuer.active_record(account.id) is not None:
                return AuthResult.fail(VerificationPending())
            issued = self.otp_issuer.issue(account.id)
            self._deliver(account, issued.plaintext)
            return AuthResult.fail(VerificationCodeResent())

        token = self.sessions.issue(account.id)
        return AuthResult.ok(
            Login(
                account_id=account.id,
                token=token,
                expires_in_seconds=self.sessions.expire_seconds,
            )
        )

    def verification_status(self, email: str) -> AuthResult[VerificationStatus]:
        """Report whether an account is awaiting verification with a live code."""
        account = self.accounts.get_by_email(self._normalize_email(email))
        if account is None:
            return AuthResult.fail(AccountNotFound("User not found."))
        if account.verified:
            return AuthResult.fail(AlreadyVerified())

        record = self.otp_issuer.active_record(account.id)
        if record is None:
            return AuthResult.fail(OtpNotFound("Token not found."))
        return AuthResult.ok(
            VerificationStatus(
                account_id=account.id, email=account.email, expires_at=record.expires_at
            )
        )

    def get_profile(self, account_id: str) -> AuthResult[Account]:
        account = self.accounts.get_by_id(account_id)
        if account is None:
            return AuthResult.fail(AccountNotFound("User not found."))
        return AuthResult.ok(account)

    def authenticate(self, token: str) -> AuthResult[Account]:
        """
        Resolve a session token to its account.

        Returns:
            Account on success; SessionExpired, SessionInvalid otherwise.
            A valid token whose account no longer exists is SessionInvalid.
        """
        verified = self.sessions.verify(token)
        if not verified.is_ok:
            return AuthResult.fail(verified.error)

        account = self.accounts.get_by_id(verified.unwrap())
        if account is None:
            return AuthResult.fail(SessionInvalid())
        return AuthResult.ok(account)

    def _deliver(self, account: Account, code: str) -> None:
        """Send the code; on any failure drop the undeliverable challenge and re-raise."""
        try:
            self.email_sender.send_verification_code(account.email, code)
        except Exception:
            self.otp_issuer.consume(account.id)
            raise

    def _normalize_email(self, email: str) -> str:
        """
        Normalize email address for consistent storage and lookup.

        Applies: strip whitespace + lowercase
        """
        return email.strip().lower()
