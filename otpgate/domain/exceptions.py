"""
Domain exceptions - Semantic error types for the authentication lifecycle.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.

Taxonomy:
- ValidationError: missing or malformed input
- ConflictError: duplicate email, already verified
- NotFoundError: account or active challenge absent
- AuthError: bad credentials, invalid OTP, blocked login, bad session
- UpstreamError: mail or storage failure
- InternalError: unexpected failure (e.g. hasher)

Business failures are returned inside AuthResult. UpstreamError and
InternalError are raised, never returned.
"""


class AuthServiceError(Exception):
    """Base class for authentication domain errors."""

    message = "Authentication request failed."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(AuthServiceError):
    """Missing or malformed input."""

    message = "Invalid request."


class MissingIdentifier(ValidationError):
    """Neither an account id nor an email was supplied."""

    message = "Please provide both email and OTP."


class PasswordTooLong(ValidationError):
    """Password exceeds the 72-byte bcrypt input limit."""

    message = "Password must be at most 72 bytes long."


class ConflictError(AuthServiceError):
    """Request conflicts with the current account state."""

    pass


class DuplicateEmail(ConflictError):
    """An account with this email already exists (verified or not)."""

    message = (
        "A user with that email address already exists. Please try again with a "
        "different email address or log in to your existing account."
    )


class AlreadyVerified(ConflictError):
    """Account has already completed email verification."""

    message = "Email has already been verified."


class NotFoundError(AuthServiceError):
    """Requested entity does not exist."""

    pass


class AccountNotFound(NotFoundError):
    """No account matches the supplied identifier."""

    message = (
        "The email address provided does not match any existing accounts. "
        "Please double-check the email address or create a new account."
    )


class OtpNotFound(NotFoundError):
    """No active verification challenge (expired or already consumed)."""

    message = "Token not found or has expired."


class AuthError(AuthServiceError):
    """Authentication failed."""

    pass


class InvalidCredentials(AuthError):
    """Password does not match the stored hash."""

    message = (
        "Incorrect email or password. Please make sure you have entered the "
        "correct email and password combination."
    )


class InvalidOtp(AuthError):
    """Submitted code does not match the active challenge."""

    message = "Invalid OTP."


class VerificationPending(AuthError):
    """Login blocked: account unverified and a code is already outstanding."""

    message = (
        "Your account has not been fully verified yet. Please check your email for "
        "a verification code and enter it to complete the verification process."
    )


class VerificationCodeResent(AuthError):
    """Login blocked: account unverified and a fresh code was just sent."""

    message = (
        "Your verification code has expired. A new verification code has been "
        "sent to your email."
    )


class SessionExpired(AuthError):
    """Session token signature is valid but its expiry has passed."""

    message = "Session has expired. Please log in again."


class SessionInvalid(AuthError):
    """Session token is malformed, tampered with, or signed with another key."""

    message = "Invalid session."


class UpstreamError(AuthServiceError):
    """A collaborator (mail transport, storage) failed."""

    message = "An upstream service failed."


class MailDeliveryFailed(UpstreamError):
    """Verification email could not be delivered."""

    message = "Verification email could not be sent."


class StorageError(UpstreamError):
    """Account or OTP storage failed."""

    message = "Storage is unavailable."


class InternalError(AuthServiceError):
    """Unexpected internal failure."""

    message = "Internal server error."


class HashingError(InternalError):
    """Credential hasher raised; distinct from a mismatch."""

    message = "Credential hashing failed."
