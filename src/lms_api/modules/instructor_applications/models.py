"""
Instructor Applications Models

Database model for instructor applications. An application holds its own
copy of the applicant's name, email, password hash and profile until an
admin approves it, at which point a User is created from it.
"""

import enum
from datetime import datetime

from sqlalchemy import JSON, DateTime, Enum, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from lms_api.modules.shared import BaseModel


class ApplicationStatus(str, enum.Enum):
    """Status of an instructor application."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ExperienceLevel(str, enum.Enum):
    """Teaching/industry experience ranges."""

    ONE_TO_TWO = "1-2 years"
    THREE_TO_FIVE = "3-5 years"
    SIX_TO_TEN = "6-10 years"
    OVER_TEN = "10+ years"


class InstructorApplication(BaseModel):
    """
    Instructor application.

    Mutated exactly once by approval or rejection; hard-deletable by an
    admin at any status.
    """

    __tablename__ = "instructor_applications"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)

    # {bio, expertise, experience, education, linkedin_url, github_url, portfolio_url}
    profile: Mapped[dict] = mapped_column(JSON, nullable=False)

    # Status tracking
    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(
            ApplicationStatus,
            name="instructor_application_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=ApplicationStatus.PENDING,
    )

    # Decision audit
    approved_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_instructor_applications_email", "email", unique=True),
        Index("ix_instructor_applications_status", "status"),
        Index("ix_instructor_applications_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<InstructorApplication(id={self.id}, email={self.email}, "
            f"status={self.status.value})>"
        )
