"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RegisterRequest(BaseModel):
    """Request model for user registration."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    password: str = Field(
        ..., min_length=8, max_length=72, description="User password (8-72 characters)"
    )
    first_name: str = Field("", alias="firstName", max_length=100)
    last_name: str = Field("", alias="lastName", max_length=100)


class RegisterResponse(BaseModel):
    """Response model for successful registration."""

    success: bool = True
    id: str = Field(..., description="Account id, usable to verify by id")
    message: str
    email: str
    expires_in_seconds: int


class VerifyRequest(BaseModel):
    """Request model for email verification. Identify by id or by email."""

    id: str | None = Field(None, description="Account id returned at registration")
    email: EmailStr | None = None
    otp: str = Field(
        ...,
        min_length=4,
        max_length=4,
        pattern=r"^\d{4}$",
        description="4-digit verification code",
    )


class ActionResponse(BaseModel):
    """Response model for verify and login."""

    success: bool = True
    message: str
    redirect: str


class LoginRequest(BaseModel):
    """Request model for login."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=255)


class VerificationStatusResponse(BaseModel):
    """Response model for a pending verification."""

    success: bool = True
    email: str
    expires_at: datetime


class UserView(BaseModel):
    """Public account fields. Never includes the password hash."""

    id: str
    email: str
    first_name: str
    last_name: str
    verified: bool
    created_at: datetime


class ProfileResponse(BaseModel):
    """Response model for profile lookup."""

    success: bool = True
    user: UserView


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
