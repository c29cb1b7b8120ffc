"""Authentication schemas."""

from datetime import datetime
from typing import Annotated

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)

from lms_api.modules.instructor_applications.schemas import (
    MAX_PASSWORD_LENGTH,
    MIN_PASSWORD_LENGTH,
)
from lms_api.modules.users.models import UserRole


def _strip_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Name must not be blank")
    return v


DisplayName = Annotated[str, Field(min_length=1, max_length=200), AfterValidator(_strip_name)]


class RegisterRequest(BaseModel):
    """Registration request schema. Admin accounts cannot self-register."""

    name: DisplayName
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)
    role: UserRole

    @field_validator("role")
    @classmethod
    def role_not_admin(cls, v: UserRole) -> UserRole:
        if v == UserRole.ADMIN:
            raise ValueError("Admin accounts cannot be created through registration")
        return v


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=MAX_PASSWORD_LENGTH)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ChangePasswordRequest(BaseModel):
    """Change password request; confirm_password must repeat new_password."""

    current_password: str = Field(..., min_length=1, max_length=MAX_PASSWORD_LENGTH)
    new_password: str = Field(
        ..., min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH
    )
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self) -> "ChangePasswordRequest":
        if self.new_password != self.confirm_password:
            raise ValueError("confirm_password must match new_password")
        return self


class UpdateProfileRequest(BaseModel):
    """Profile update; omitted fields are left unchanged."""

    name: DisplayName | None = None
    email: EmailStr | None = None


class UserSummary(BaseModel):
    """Public identity fields returned with a session token."""

    id: str
    name: str
    email: str
    role: UserRole
    is_admin: bool
    is_instructor: bool


class AuthResponse(UserSummary):
    """Identity summary plus a session token."""

    token: str
    token_type: str = "bearer"


class LoginResponse(AuthResponse):
    require_password_change: bool = False


class ChangePasswordResponse(AuthResponse):
    message: str = "Password changed successfully"


class MessageResponse(BaseModel):
    message: str


class UserProfileResponse(BaseModel):
    """Full profile of the current user (no password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    role: UserRole
    is_admin: bool
    is_instructor: bool
    is_temporary_password: bool
    profile: dict | None = None
    created_at: datetime
    updated_at: datetime
