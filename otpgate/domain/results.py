"""
Result types returned by every state-machine operation.

AuthResult is a small sum type: exactly one of value or error is set.
Expected business failures travel as errors inside the result so the
boundary layer decides how to render and log them.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Generic, TypeVar

from .exceptions import AuthServiceError

T = TypeVar("T")


@dataclass(frozen=True)
class AuthResult(Generic[T]):
    """Success value or typed domain error."""

    value: T | None = None
    error: AuthServiceError | None = None

    def __post_init__(self) -> None:
        if (self.value is None) == (self.error is None):
            raise ValueError("AuthResult requires exactly one of value or error")

    @classmethod
    def ok(cls, value: T) -> "AuthResult[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, error: AuthServiceError) -> "AuthResult[T]":
        return cls(error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


@dataclass(frozen=True)
class Registration:
    """Outcome of a successful register()."""

    account_id: str
    email: str
    expires_in_seconds: int
    message: str = (
        "Registration successful! A verification email has been sent to your email "
        "address. Please follow the instructions in the email to complete the "
        "verification process and log in to your account."
    )


@dataclass(frozen=True)
class Verification:
    """Outcome of a successful verify()."""

    account_id: str
    email: str
    redirect: str = "/"
    message: str = "Email verification successful! You can now log in to your account."


@dataclass(frozen=True)
class Login:
    """Outcome of a successful login(). Only issued for verified accounts."""

    account_id: str
    token: str
    expires_in_seconds: int
    redirect: str = "/"
    message: str = "Login successful."


@dataclass(frozen=True)
class VerificationStatus:
    """Outcome of verification_status(): account awaiting a live challenge."""

    account_id: str
    email: str
    expires_at: datetime
