"""Authentication module."""

from lms_api.modules.auth.router import router
from lms_api.modules.auth.schemas import LoginRequest, LoginResponse, RegisterRequest

__all__ = ["router", "LoginRequest", "LoginResponse", "RegisterRequest"]
