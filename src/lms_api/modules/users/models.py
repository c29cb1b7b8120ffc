"""
User Models

Database models for user management and authentication.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Boolean, DateTime, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from lms_api.modules.shared import BaseModel


class UserRole(str, Enum):
    """User roles in the system."""

    ADMIN = "admin"
    INSTRUCTOR = "instructor"
    STUDENT = "student"


class User(BaseModel):
    """
    User model for authentication and authorization.

    The role is the single source of truth for privileges; ``is_admin`` and
    ``is_instructor`` are derived from it. Users are never hard-deleted.
    """

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    # Stored normalized (trimmed, lowercased)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    role: Mapped[UserRole] = mapped_column(
        SAEnum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.STUDENT,
    )

    # Password management
    is_temporary_password: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    temporary_password_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Instructor profile, copied from the approved application
    profile: Mapped[dict | None] = mapped_column(
        JSON,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role.value})>"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_instructor(self) -> bool:
        return self.role == UserRole.INSTRUCTOR
