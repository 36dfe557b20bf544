"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes, plus the
session cookie helpers.
"""

import logging

from fastapi import Depends, HTTPException, Request, Response, status

from otpgate.config.settings import Settings, get_settings
from otpgate.domain.authentication import AuthenticationService
from otpgate.domain.exceptions import SessionExpired
from otpgate.domain.hashing import CredentialHasher
from otpgate.domain.otp import OtpIssuer
from otpgate.domain.ports import Account, EmailSender
from otpgate.domain.sessions import SessionTokenService

logger = logging.getLogger(__name__)


def get_repository(request: Request):
    """
    Get the account repository from app state.

    The repository is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.repository


def get_email_sender(request: Request) -> EmailSender:
    """Get the configured email sender from app state."""
    return request.app.state.email_sender


def get_auth_service(
    request: Request, settings: Settings = Depends(get_settings)
) -> AuthenticationService:
    """
    Create authentication service with injected dependencies.

    Wires together storage, hashing, OTP issuance, session tokens and mail.
    """
    repository = get_repository(request)
    hasher = CredentialHasher(rounds=settings.bcrypt_cost)
    return AuthenticationService(
        accounts=repository,
        otp_issuer=OtpIssuer(
            repository=repository, hasher=hasher, ttl_seconds=settings.otp_ttl_seconds
        ),
        sessions=SessionTokenService(
            secret_key=settings.secret_key, expire_seconds=settings.token_expire_seconds
        ),
        email_sender=get_email_sender(request),
        hasher=hasher,
    )


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    """
    Write the session token as an httpOnly cookie.

    max_age matches the token expiry so both lapse together.
    """
    response.set_cookie(
        settings.session_cookie_name,
        value=token,
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
        max_age=settings.token_expire_seconds,
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        settings.session_cookie_name,
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
    )


def get_current_account(
    request: Request,
    settings: Settings = Depends(get_settings),
    service: AuthenticationService = Depends(get_auth_service),
) -> Account:
    """
    Resolve the session cookie to an account or fail with 401.

    An expired session also clears the cookie so the client re-prompts
    for login. Tampered tokens and vanished accounts are plain 401s.
    """
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Please log in to continue.",
        )

    result = service.authenticate(token)
    if result.is_ok:
        return result.unwrap()

    error = result.error
    logger.info("Session rejected: %s", type(error).__name__)
    headers = None
    if isinstance(error, SessionExpired):
        cleared = Response()
        clear_session_cookie(cleared, settings)
        headers = {"set-cookie": cleared.headers["set-cookie"]}
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=error.message,
        headers=headers,
    )


def redirect_if_logged_in(
    request: Request,
    settings: Settings = Depends(get_settings),
    service: AuthenticationService = Depends(get_auth_service),
) -> None:
    """
    Send clients that already hold a valid session back to the home page.

    Guards the anonymous-only routes (register, verify, login). A missing,
    expired or tampered cookie lets the request through unchanged.
    """
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        return

    result = service.authenticate(token)
    if result.is_ok:
        logger.info("Already logged in: %s", result.unwrap().id)
        raise HTTPException(
            status_code=status.HTTP_303_SEE_OTHER,
            detail="Already logged in.",
            headers={"Location": "/"},
        )
