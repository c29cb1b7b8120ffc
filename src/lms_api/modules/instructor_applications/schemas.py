"""
Instructor Applications Schemas

Pydantic schemas for request validation and response serialization.
Response schemas never carry the password hash.
"""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from lms_api.modules.instructor_applications.models import ApplicationStatus, ExperienceLevel

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 72

LINKEDIN_URL_RE = re.compile(r"^https?://(www\.)?linkedin\.com/.*$")
GITHUB_URL_RE = re.compile(r"^https?://(www\.)?github\.com/.*$")
PORTFOLIO_URL_RE = re.compile(r"^https?://.+$")


def _check_url(value: str | None, pattern: re.Pattern, label: str) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value:
        # Empty strings are treated as "not provided"
        return None
    if not pattern.match(value):
        raise ValueError(f"Please add a valid {label} URL")
    return value


class InstructorProfile(BaseModel):
    """Profile section of an instructor application."""

    bio: str = Field(..., min_length=1, max_length=5000)
    expertise: str = Field(..., min_length=1, max_length=500)
    experience: ExperienceLevel
    education: str = Field(..., min_length=1, max_length=1000)
    linkedin_url: str | None = Field(None, max_length=500)
    github_url: str | None = Field(None, max_length=500)
    portfolio_url: str | None = Field(None, max_length=500)

    @field_validator("bio", "expertise", "education")
    @classmethod
    def strip_required_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("linkedin_url")
    @classmethod
    def validate_linkedin_url(cls, v: str | None) -> str | None:
        return _check_url(v, LINKEDIN_URL_RE, "LinkedIn")

    @field_validator("github_url")
    @classmethod
    def validate_github_url(cls, v: str | None) -> str | None:
        return _check_url(v, GITHUB_URL_RE, "GitHub")

    @field_validator("portfolio_url")
    @classmethod
    def validate_portfolio_url(cls, v: str | None) -> str | None:
        return _check_url(v, PORTFOLIO_URL_RE, "portfolio")


class InstructorApplicationCreate(BaseModel):
    """Request body for POST /instructor-applications."""

    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)
    profile: InstructorProfile

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v


class ApplicationSubmitResponse(BaseModel):
    """Response after submitting an instructor application."""

    success: bool = True
    message: str = "Instructor application submitted successfully"
    application_id: str


class InstructorApplicationResponse(BaseModel):
    """Admin view of an application (no password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    profile: dict
    status: ApplicationStatus
    approved_by: str | None = None
    approved_at: datetime | None = None
    rejected_by: str | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None
    created_at: datetime
    updated_at: datetime


class InstructorApplicationListResponse(BaseModel):
    """Paginated list of applications."""

    applications: list[InstructorApplicationResponse]
    page: int
    page_size: int
    pages: int
    total: int
    has_next_page: bool
    has_prev_page: bool


class RejectApplicationRequest(BaseModel):
    """Request body for rejecting an application."""

    reason: str | None = Field(None, max_length=1000)

    @field_validator("reason")
    @classmethod
    def blank_reason_is_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class ApprovedUserSummary(BaseModel):
    """Public fields of the user created by an approval."""

    id: str
    name: str
    email: str
    role: str


class ApproveApplicationResponse(BaseModel):
    success: bool = True
    message: str = "Instructor application approved successfully"
    user: ApprovedUserSummary


class ApplicationActionResponse(BaseModel):
    """Confirmation for reject and delete."""

    success: bool = True
    message: str
    application_id: str
