"""
API v1 routes.

Defines REST endpoints for registration, email verification, login,
logout and profile lookup.

Clients that already hold a valid session are redirected home (303) from
register, verify and login.

Status convention: every login failure is 401 (including an unknown
email) with its own message; verification failures are 400; lookups of
absent resources are 404.

Handlers doing bcrypt or storage work are plain def so they run in the
threadpool instead of blocking the event loop.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import RedirectResponse as HttpRedirect

from otpgate.api.dependencies import (
    clear_session_cookie,
    get_auth_service,
    get_current_account,
    redirect_if_logged_in,
    set_session_cookie,
)
from otpgate.api.models import (
    ActionResponse,
    ErrorResponse,
    LoginRequest,
    ProfileResponse,
    RegisterRequest,
    RegisterResponse,
    UserView,
    VerificationStatusResponse,
    VerifyRequest,
)
from otpgate.config.settings import Settings, get_settings
from otpgate.domain.authentication import AuthenticationService
from otpgate.domain.exceptions import AccountNotFound, AuthServiceError, OtpNotFound
from otpgate.domain.ports import Account

logger = logging.getLogger(__name__)

router = APIRouter(tags=["v1"])


def _reject(operation: str, error: AuthServiceError, status_code: int) -> HTTPException:
    """Log a business failure and build the HTTP error carrying its message."""
    logger.info("%s rejected: %s", operation, type(error).__name__)
    return HTTPException(status_code=status_code, detail=error.message)


@router.post(
    "/register",
    response_model=RegisterResponse,
    dependencies=[Depends(redirect_if_logged_in)],
    status_code=status.HTTP_201_CREATED,
    responses={
        303: {"description": "Already logged in; redirected home"},
        400: {"model": ErrorResponse, "description": "Email already registered"},
        422: {"description": "Validation error"},
        500: {"model": ErrorResponse, "description": "Mail or storage failure"},
    },
    summary="Register a new user",
    description="Submit email, password and names to begin registration. "
    "A 4-digit verification code will be sent to the provided email.",
)
def register(
    request_data: RegisterRequest,
    service: AuthenticationService = Depends(get_auth_service),
) -> RegisterResponse:
    """
    Register a new user and send verification code.

    - **email**: Valid email address to register
    - **password**: Password (8-72 characters)
    - **firstName** / **lastName**: Optional display names
    """
    result = service.register(
        request_data.email,
        request_data.password,
        request_data.first_name,
        request_data.last_name,
    )
    if not result.is_ok:
        raise _reject("register", result.error, status.HTTP_400_BAD_REQUEST)

    registration = result.unwrap()
    logger.info("Registered account %s", registration.account_id)
    return RegisterResponse(
        id=registration.account_id,
        message=registration.message,
        email=registration.email,
        expires_in_seconds=registration.expires_in_seconds,
    )


@router.get(
    "/verify/{email}",
    response_model=VerificationStatusResponse,
    dependencies=[Depends(redirect_if_logged_in)],
    responses={
        303: {"description": "Already logged in; redirected home"},
        400: {"model": ErrorResponse, "description": "Email already verified"},
        404: {"model": ErrorResponse, "description": "User or active code not found"},
    },
    summary="Check pending verification",
    description="Report whether the account is awaiting verification with a live code.",
)
def verification_status(
    email: str,
    service: AuthenticationService = Depends(get_auth_service),
) -> VerificationStatusResponse:
    result = service.verification_status(email)
    if not result.is_ok:
        error = result.error
        if isinstance(error, (AccountNotFound, OtpNotFound)):
            raise _reject("verification_status", error, status.HTTP_404_NOT_FOUND)
        raise _reject("verification_status", error, status.HTTP_400_BAD_REQUEST)

    pending = result.unwrap()
    return VerificationStatusResponse(email=pending.email, expires_at=pending.expires_at)


@router.post(
    "/verify/email",
    response_model=ActionResponse,
    dependencies=[Depends(redirect_if_logged_in)],
    responses={
        303: {"description": "Already logged in; redirected home"},
        400: {
            "model": ErrorResponse,
            "description": "Invalid or expired code, unknown account, or already verified",
        },
        422: {"description": "Validation error"},
    },
    summary="Verify email with one-time code",
    description="Submit the 4-digit code received by email, identifying the "
    "account by id or by email.",
)
def verify_email(
    request_data: VerifyRequest,
    service: AuthenticationService = Depends(get_auth_service),
) -> ActionResponse:
    """
    Verify account email with the emailed code.

    - **id** or **email**: Account identifier (id takes precedence)
    - **otp**: 4-digit verification code
    """
    result = service.verify(
        request_data.otp, account_id=request_data.id, email=request_data.email
    )
    if not result.is_ok:
        raise _reject("verify_email", result.error, status.HTTP_400_BAD_REQUEST)

    verification = result.unwrap()
    logger.info("Verified account %s", verification.account_id)
    return ActionResponse(message=verification.message, redirect=verification.redirect)


@router.post(
    "/login",
    response_model=ActionResponse,
    dependencies=[Depends(redirect_if_logged_in)],
    responses={
        303: {"description": "Already logged in; redirected home"},
        401: {
            "model": ErrorResponse,
            "description": "Unknown email, wrong password, or verification outstanding",
        },
        422: {"description": "Validation error"},
    },
    summary="Log in",
    description="Check credentials and set the session cookie. Unverified "
    "accounts are told to use their outstanding code or are sent a new one.",
)
def login(
    request_data: LoginRequest,
    response: Response,
    settings: Settings = Depends(get_settings),
    service: AuthenticationService = Depends(get_auth_service),
) -> ActionResponse:
    result = service.login(request_data.email, request_data.password)
    if not result.is_ok:
        raise _reject("login", result.error, status.HTTP_401_UNAUTHORIZED)

    login_result = result.unwrap()
    set_session_cookie(response, login_result.token, settings)
    return ActionResponse(message=login_result.message, redirect=login_result.redirect)


@router.get(
    "/logout",
    status_code=status.HTTP_302_FOUND,
    response_class=HttpRedirect,
    summary="Log out",
    description="Clear the session cookie and redirect to the home page.",
)
async def logout(settings: Settings = Depends(get_settings)) -> HttpRedirect:
    redirect = HttpRedirect(url="/", status_code=status.HTTP_302_FOUND)
    clear_session_cookie(redirect, settings)
    return redirect


@router.get(
    "/profile/{account_id}",
    response_model=ProfileResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Missing, invalid or expired session"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
    summary="Get user profile",
    description="Return the public account fields. Requires a session cookie.",
)
def profile(
    account_id: str,
    _: Account = Depends(get_current_account),
    service: AuthenticationService = Depends(get_auth_service),
) -> ProfileResponse:
    result = service.get_profile(account_id)
    if not result.is_ok:
        raise _reject("profile", result.error, status.HTTP_404_NOT_FOUND)

    account = result.unwrap()
    return ProfileResponse(
        user=UserView(
            id=account.id,
            email=account.email,
            first_name=account.first_name,
            last_name=account.last_name,
            verified=account.verified,
            created_at=account.created_at,
        )
    )
