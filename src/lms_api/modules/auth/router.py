"""
Authentication Router

Endpoints:
- POST /auth/register - Create an account and sign in
- POST /auth/login - Sign in
- POST /auth/forgot-password - Email a temporary password
- PUT /auth/change-password - Change password (authenticated)
- GET /auth/profile - Current user's profile (authenticated)
- PUT /auth/profile - Update name/email (authenticated)
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from lms_api.core.auth import CurrentUser, get_current_user
from lms_api.core.database import get_db
from lms_api.core.email import EmailNotifier, get_notifier
from lms_api.core.errors import ServiceError, handle_service_error, internal_error
from lms_api.core.rate_limit import rate_limit
from lms_api.core.security import (
    CredentialVault,
    SessionIssuer,
    get_credential_vault,
    get_session_issuer,
)
from lms_api.modules.auth import service
from lms_api.modules.auth.schemas import (
    AuthResponse,
    ChangePasswordRequest,
    ChangePasswordResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    UpdateProfileRequest,
    UserProfileResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_LOGIN = (10, 60)  # 10 attempts per minute per IP
RATE_LIMIT_FORGOT_PASSWORD = (3, 3600)  # 3 reset emails per hour per IP


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    vault: CredentialVault = Depends(get_credential_vault),
    issuer: SessionIssuer = Depends(get_session_issuer),
) -> AuthResponse:
    """
    Register a new user.

    Raises:
        HTTPException 409: Email already registered
    """
    try:
        result = await service.register_user(db, data, vault, issuer)
    except ServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Unexpected error during registration: {e}")
        raise internal_error() from e

    return AuthResponse(**result)


@router.post("/login", response_model=LoginResponse)
@rate_limit(*RATE_LIMIT_LOGIN)
async def login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
    vault: CredentialVault = Depends(get_credential_vault),
    issuer: SessionIssuer = Depends(get_session_issuer),
) -> LoginResponse:
    """
    Authenticate user and return a JWT.

    Raises:
        HTTPException 401: Invalid credentials
    """
    try:
        result = await service.login_user(db, credentials, vault, issuer)
    except ServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Unexpected error during login: {e}")
        raise internal_error() from e

    return LoginResponse(**result)


@router.post("/forgot-password", response_model=MessageResponse)
@rate_limit(*RATE_LIMIT_FORGOT_PASSWORD)
async def forgot_password(
    request: Request,
    data: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
    vault: CredentialVault = Depends(get_credential_vault),
    notifier: EmailNotifier = Depends(get_notifier),
) -> MessageResponse:
    """
    Email a temporary password.

    Raises:
        HTTPException 404: No user with this email
        HTTPException 502: The email could not be sent
    """
    try:
        result = await service.forgot_password(db, data.email, vault, notifier)
    except ServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Unexpected error during forgot-password: {e}")
        raise internal_error() from e

    return MessageResponse(**result)


@router.put("/change-password", response_model=ChangePasswordResponse)
async def change_password(
    data: ChangePasswordRequest,
    db: AsyncSession = Depends(get_db),
    vault: CredentialVault = Depends(get_credential_vault),
    issuer: SessionIssuer = Depends(get_session_issuer),
    user: CurrentUser = Depends(get_current_user),
) -> ChangePasswordResponse:
    """
    Change the current user's password.

    Raises:
        HTTPException 401: Current password is incorrect
    """
    try:
        result = await service.change_password(db, user.id, data, vault, issuer)
    except ServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Unexpected error changing password: {e}")
        raise internal_error() from e

    return ChangePasswordResponse(**result)


@router.get("/profile", response_model=UserProfileResponse)
async def get_profile(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> UserProfileResponse:
    """Get the current user's profile."""
    try:
        return await service.get_profile(db, user.id)
    except ServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Unexpected error fetching profile: {e}")
        raise internal_error() from e


@router.put("/profile", response_model=AuthResponse)
async def update_profile(
    data: UpdateProfileRequest,
    db: AsyncSession = Depends(get_db),
    issuer: SessionIssuer = Depends(get_session_issuer),
    user: CurrentUser = Depends(get_current_user),
) -> AuthResponse:
    """
    Update the current user's name and/or email.

    Raises:
        HTTPException 409: Email already used by another user
    """
    try:
        result = await service.update_profile(db, user.id, data, issuer)
    except ServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Unexpected error updating profile: {e}")
        raise internal_error() from e

    return AuthResponse(**result)
