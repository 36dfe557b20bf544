"""
Domain layer - Pure business logic with zero framework imports.

This package contains the core business logic for the account
authentication state machine: credential hashing, OTP issuance, session
tokens, and the register / verify / login lifecycle. It defines its own
port interfaces for infrastructure abstraction.
"""

from .authentication import AuthenticationService
from .exceptions import (
    AccountNotFound,
    AlreadyVerified,
    AuthError,
    AuthServiceError,
    ConflictError,
    DuplicateEmail,
    HashingError,
    InternalError,
    InvalidCredentials,
    InvalidOtp,
    MailDeliveryFailed,
    MissingIdentifier,
    NotFoundError,
    OtpNotFound,
    PasswordTooLong,
    SessionExpired,
    SessionInvalid,
    StorageError,
    UpstreamError,
    ValidationError,
    VerificationCodeResent,
    VerificationPending,
)
from .hashing import CredentialHasher
from .otp import IssuedOtp, OtpIssuer
from .ports import Account, AccountRepository, AccountState, EmailSender, OtpRecord, OtpRepository
from .results import AuthResult, Login, Registration, Verification, VerificationStatus
from .sessions import SessionTokenService

__all__ = [
    "Account",
    "AccountNotFound",
    "AccountRepository",
    "AccountState",
    "AlreadyVerified",
    "AuthError",
    "AuthResult",
    "AuthServiceError",
    "AuthenticationService",
    "ConflictError",
    "CredentialHasher",
    "DuplicateEmail",
    "EmailSender",
    "HashingError",
    "InternalError",
    "InvalidCredentials",
    "InvalidOtp",
    "IssuedOtp",
    "Login",
    "MailDeliveryFailed",
    "MissingIdentifier",
    "NotFoundError",
    "OtpIssuer",
    "OtpNotFound",
    "OtpRecord",
    "OtpRepository",
    "PasswordTooLong",
    "Registration",
    "SessionExpired",
    "SessionInvalid",
    "SessionTokenService",
    "StorageError",
    "UpstreamError",
    "ValidationError",
    "Verification",
    "VerificationCodeResent",
    "VerificationPending",
    "VerificationStatus",
]
