"""
User Repository

Database operations for user management.

Writes flush but never commit; the calling service owns the transaction.
Email lookups and writes always use the normalized form.
"""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lms_api.core.errors import DuplicateKeyError
from lms_api.modules.shared import (
    clamp_pagination,
    fetch_page,
    is_unique_violation,
    normalize_email,
)
from lms_api.modules.users.models import User, UserRole

logger = logging.getLogger(__name__)

# Columns safe to return from listings; password_hash is deliberately absent
USER_PUBLIC_COLUMNS = (
    User.id,
    User.name,
    User.email,
    User.role,
    User.is_temporary_password,
    User.profile,
    User.created_at,
    User.updated_at,
)


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: UserRole,
        profile: dict | None = None,
        is_temporary_password: bool = False,
        temporary_password_expires_at: datetime | None = None,
    ) -> User:
        """
        Create a new user record.

        Args:
            db: Database session
            name: Display name
            email: User's email address (unique, normalized before insert)
            password_hash: Hashed password
            role: User's role
            profile: Instructor profile (optional)
            is_temporary_password: Whether the password is system-generated
            temporary_password_expires_at: Expiry of a temporary password

        Returns:
            Created User instance

        Raises:
            DuplicateKeyError: If the unique email index rejects the insert
        """
        user = User(
            name=name,
            email=normalize_email(email),
            password_hash=password_hash,
            role=role,
            profile=dict(profile) if profile is not None else None,
            is_temporary_password=is_temporary_password,
            temporary_password_expires_at=temporary_password_expires_at,
        )

        db.add(user)
        try:
            await db.flush()
        except IntegrityError as e:
            if is_unique_violation(e, "email"):
                logger.warning(f"Duplicate user email rejected by unique index: {user.email}")
                raise DuplicateKeyError("user") from e
            raise

        logger.info(f"Created user: {user.id} - {user.email} ({user.role.value})")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: str) -> User | None:
        """
        Get a user by ID.

        Args:
            db: Database session
            user_id: User UUID

        Returns:
            User instance or None if not found
        """
        return await db.get(User, str(user_id))

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        """
        Get a user by email address (case-insensitive, trimmed).

        Args:
            db: Database session
            email: Email address

        Returns:
            User instance or None if not found
        """
        result = await db.execute(select(User).where(User.email == normalize_email(email)))
        return result.scalar_one_or_none()

    @staticmethod
    async def email_exists(db: AsyncSession, email: str) -> bool:
        """
        Check if an email address is already registered.

        Args:
            db: Database session
            email: Email address to check

        Returns:
            True if email exists, False otherwise
        """
        user = await UserRepository.get_by_email(db, email)
        return user is not None

    @staticmethod
    async def update(db: AsyncSession, user: User, **fields: Any) -> User:
        """
        Apply field changes to a user and flush them.

        Raises:
            DuplicateKeyError: If a changed email collides with another user
        """
        if "email" in fields and fields["email"] is not None:
            fields["email"] = normalize_email(fields["email"])

        for key, value in fields.items():
            if not hasattr(user, key):
                raise AttributeError(f"User has no field '{key}'")
            setattr(user, key, value)

        try:
            await db.flush()
        except IntegrityError as e:
            if is_unique_violation(e, "email"):
                raise DuplicateKeyError("user") from e
            raise

        return user

    @staticmethod
    async def list(
        db: AsyncSession,
        *,
        role: UserRole | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[dict[str, Any]], int]:
        """
        List users newest first, without password hashes.

        Returns:
            Tuple of (user rows, total count)
        """
        page, page_size = clamp_pagination(page, page_size)

        stmt = select(*USER_PUBLIC_COLUMNS).order_by(User.created_at.desc(), User.id)
        if role is not None:
            stmt = stmt.where(User.role == role)

        return await fetch_page(db, stmt, page, page_size)
