"""
Authentication and Authorization Module

Provides authentication dependencies for FastAPI endpoints.
This module handles JWT token validation and role-based access control
using the session issuer defined in security.py.

The services behind these dependencies assume the caller has already been
authenticated; every privileged route must declare one of them.
"""

import logging
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from lms_api.core.security import SessionIssuer, get_session_issuer
from lms_api.modules.users.models import UserRole

logger = logging.getLogger(__name__)

# Security scheme for OpenAPI documentation
security = HTTPBearer(
    auto_error=False,
    description="JWT Bearer token for authentication",
)


@dataclass
class CurrentUser:
    """
    Represents an authenticated platform user.

    Populated from JWT claims after token validation.

    Attributes:
        id: User's unique identifier
        role: User's role (admin, instructor or student)
        email: User's email address
        name: User's display name (optional)
    """

    id: str
    role: UserRole
    email: str = ""
    name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, email={self.email}, role={self.role.value})"


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def _validate_token(token: str, issuer: SessionIssuer) -> CurrentUser:
    """
    Validate a JWT token and extract user claims.

    Raises:
        HTTPException 401: If the token is invalid, expired or has bad claims
    """
    payload = issuer.decode(token)

    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired authentication token.")

    token_type = payload.get("type", "access")
    if token_type != "access":
        logger.warning(f"Invalid token type: {token_type}")
        raise _unauthorized("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    user_id = payload.get("sub")
    try:
        if not user_id:
            raise ValueError("Missing 'sub' claim in token")
        role = UserRole(payload.get("role", ""))
    except ValueError as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _unauthorized(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e

    return CurrentUser(
        id=user_id,
        role=role,
        email=payload.get("email", ""),
        name=payload.get("name"),
    )


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    issuer: SessionIssuer = Depends(get_session_issuer),
) -> CurrentUser:
    """
    FastAPI dependency that validates the bearer token and returns the caller.

    The user id is also stored on ``request.state`` so per-user rate limit
    keys can be derived from it.

    Raises:
        HTTPException 401: If the token is missing, invalid, or expired
    """
    if credentials is None:
        raise _unauthorized("NOT_AUTHENTICATED", "Authentication is required.")

    user = _validate_token(credentials.credentials, issuer)
    request.state.user_id = user.id

    logger.debug(f"Authenticated user: {user.id}")
    return user


async def get_current_admin_user(
    user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """
    FastAPI dependency restricting an endpoint to platform admins.

    Usage:
        @router.get("/admin/endpoint")
        async def admin_endpoint(
            admin: CurrentUser = Depends(get_current_admin_user)
        ):
            ...

    Raises:
        HTTPException 401: If the token is missing, invalid, or expired
        HTTPException 403: If the user is not an admin
    """
    if not user.is_admin:
        logger.warning(
            f"Access denied: User {user.id} has role '{user.role.value}', but 'admin' is required"
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "ADMIN_ACCESS_REQUIRED",
                "message": "Admin access is required for this endpoint.",
            },
        )

    return user


__all__ = [
    "CurrentUser",
    "get_current_admin_user",
    "get_current_user",
]
