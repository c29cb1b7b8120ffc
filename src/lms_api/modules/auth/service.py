"""
Authentication Service Layer

Registration, login, password rotation and profile management.

Security considerations:
- Login failures are indistinguishable: unknown email, wrong password and an
  expired temporary password all raise the same UnauthorizedError, and an
  unknown email still costs one bcrypt verification
- Passwords are hashed off the event loop and never logged or returned
- The forgot-password flow must deliver the temporary password; if the
  email cannot be sent the new password is rolled back and DeliveryError
  is raised, so the old password keeps working
"""

import asyncio
import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from lms_api.core.email import EmailNotifier
from lms_api.core.errors import (
    ConflictError,
    DeliveryError,
    DuplicateKeyError,
    NotFoundError,
    UnauthorizedError,
)
from lms_api.core.security import CredentialVault, SessionIssuer, generate_temporary_password
from lms_api.modules.auth.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    UpdateProfileRequest,
    UserProfileResponse,
)
from lms_api.modules.shared import as_utc, normalize_email, utcnow
from lms_api.modules.users.models import User
from lms_api.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

USER_EXISTS_MESSAGE = "User with this email already exists."


def _summary(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "is_admin": user.is_admin,
        "is_instructor": user.is_instructor,
    }


def _issue_token(issuer: SessionIssuer, user: User) -> str:
    return issuer.issue(
        user.id,
        user.role.value,
        extra_claims={"email": user.email, "name": user.name},
    )


def _temporary_password_expired(user: User) -> bool:
    if not user.is_temporary_password or user.temporary_password_expires_at is None:
        return False
    return as_utc(user.temporary_password_expires_at) <= utcnow()


async def _get_user_or_404(db: AsyncSession, user_id: str) -> User:
    user = await UserRepository.get_by_id(db, user_id)
    if not user:
        logger.warning(f"User not found: {user_id}")
        raise NotFoundError("User", user_id)
    return user


async def register_user(
    db: AsyncSession,
    data: RegisterRequest,
    vault: CredentialVault,
    issuer: SessionIssuer,
) -> dict[str, Any]:
    """
    Register a new user and sign them in.

    Returns:
        Identity summary plus a session token

    Raises:
        ConflictError: If the email is already registered
    """
    email = normalize_email(data.email)

    if await UserRepository.email_exists(db, email):
        logger.warning(f"Registration rejected, email already registered: {email}")
        raise ConflictError(USER_EXISTS_MESSAGE)

    password_hash = await asyncio.to_thread(vault.hash, data.password)

    try:
        user = await UserRepository.create(
            db,
            name=data.name,
            email=email,
            password_hash=password_hash,
            role=data.role,
        )
        await db.commit()
    except DuplicateKeyError as e:
        await db.rollback()
        raise ConflictError(USER_EXISTS_MESSAGE) from e

    logger.info(f"Registered user {user.id} ({user.role.value})")
    return {**_summary(user), "token": _issue_token(issuer, user)}


async def login_user(
    db: AsyncSession,
    data: LoginRequest,
    vault: CredentialVault,
    issuer: SessionIssuer,
) -> dict[str, Any]:
    """
    Authenticate a user.

    Returns:
        Identity summary, a session token and ``require_password_change``,
        which is True while the stored password is a temporary one

    Raises:
        UnauthorizedError: For any credential mismatch
    """
    user = await UserRepository.get_by_email(db, data.email)

    if not user:
        await asyncio.to_thread(vault.verify_dummy, data.password)
        logger.warning("Login attempt for unknown email")
        raise UnauthorizedError()

    if not await asyncio.to_thread(vault.verify, data.password, user.password_hash):
        logger.warning(f"Invalid password for user: {user.id}")
        raise UnauthorizedError()

    if _temporary_password_expired(user):
        logger.warning(f"Expired temporary password used for user: {user.id}")
        raise UnauthorizedError()

    logger.info(f"User logged in: {user.id} (role: {user.role.value})")
    return {
        **_summary(user),
        "token": _issue_token(issuer, user),
        "require_password_change": user.is_temporary_password,
    }


async def forgot_password(
    db: AsyncSession,
    email: str,
    vault: CredentialVault,
    notifier: EmailNotifier,
) -> dict[str, str]:
    """
    Replace a user's password with a temporary one and email it to them.

    Raises:
        NotFoundError: If no user has this email
        DeliveryError: If the email could not be sent (password unchanged)
    """
    user = await UserRepository.get_by_email(db, email)
    if not user:
        logger.warning("Forgot-password request for unknown email")
        raise NotFoundError("User")

    temp_password = generate_temporary_password()
    password_hash = await asyncio.to_thread(vault.hash, temp_password)

    user_id = user.id
    to_email = user.email
    user_name = user.name

    await UserRepository.update(
        db,
        user,
        password_hash=password_hash,
        is_temporary_password=True,
        temporary_password_expires_at=vault.temporary_password_expiry(),
    )

    try:
        await notifier.send_temporary_password(
            to_email=to_email,
            user_name=user_name,
            temp_password=temp_password,
            expires_in_hours=int(vault.temporary_password_ttl.total_seconds() // 3600),
        )
    except DeliveryError:
        await db.rollback()
        logger.error(f"Temporary password email failed for user {user_id}; password unchanged")
        raise

    await db.commit()
    logger.info(f"Temporary password issued for user {user_id}")

    return {"message": "Temporary password sent to your email"}


async def change_password(
    db: AsyncSession,
    user_id: str,
    data: ChangePasswordRequest,
    vault: CredentialVault,
    issuer: SessionIssuer,
) -> dict[str, Any]:
    """
    Change the current user's password and clear any temporary flag.

    Returns:
        Identity summary plus a fresh session token

    Raises:
        NotFoundError: If the user no longer exists
        UnauthorizedError: If the current password does not verify
    """
    user = await _get_user_or_404(db, user_id)

    if not await asyncio.to_thread(vault.verify, data.current_password, user.password_hash):
        logger.warning(f"Change password rejected for user {user_id}: wrong current password")
        raise UnauthorizedError("Current password is incorrect.")

    password_hash = await asyncio.to_thread(vault.hash, data.new_password)
    await UserRepository.update(
        db,
        user,
        password_hash=password_hash,
        is_temporary_password=False,
        temporary_password_expires_at=None,
    )
    await db.commit()

    logger.info(f"Password changed for user {user_id}")
    return {**_summary(user), "token": _issue_token(issuer, user)}


async def get_profile(db: AsyncSession, user_id: str) -> UserProfileResponse:
    """Get the current user's profile. Raises NotFoundError if absent."""
    user = await _get_user_or_404(db, user_id)
    return UserProfileResponse.model_validate(user)


async def update_profile(
    db: AsyncSession,
    user_id: str,
    data: UpdateProfileRequest,
    issuer: SessionIssuer,
) -> dict[str, Any]:
    """
    Update the current user's name and/or email.

    A fresh token is issued because the token carries both values.

    Raises:
        NotFoundError: If the user no longer exists
        ConflictError: If the new email belongs to another user
    """
    user = await _get_user_or_404(db, user_id)

    changes: dict[str, Any] = {}
    if data.name is not None and data.name != user.name:
        changes["name"] = data.name

    if data.email is not None:
        new_email = normalize_email(data.email)
        if new_email != user.email:
            existing = await UserRepository.get_by_email(db, new_email)
            if existing and existing.id != user.id:
                logger.warning(f"Profile update rejected for {user_id}: email taken")
                raise ConflictError(USER_EXISTS_MESSAGE)
            changes["email"] = new_email

    if changes:
        try:
            await UserRepository.update(db, user, **changes)
            await db.commit()
        except DuplicateKeyError as e:
            await db.rollback()
            raise ConflictError(USER_EXISTS_MESSAGE) from e
        logger.info(f"Updated profile for user {user_id}: {sorted(changes)}")

    return {**_summary(user), "token": _issue_token(issuer, user)}
