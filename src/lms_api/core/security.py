"""
Security Utilities

Password hashing (passlib, bcrypt scheme) and session token issuance (JWT).

Credential vault:
- Every hash uses a fresh random salt; the work factor is tunable
- Verification is constant-time and never raises for malformed stored hashes
- Plain passwords are never logged or returned

Session issuer:
- Signed, time-bounded access tokens binding a user id and role
- The signing key comes from configuration at construction time; a missing
  key is a fatal startup error, not a per-request one
"""

import secrets
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from lms_api.core.config import settings
from lms_api.core.errors import ConfigurationError, InvalidInputError

DEFAULT_BCRYPT_ROUNDS = 12
BCRYPT_MAX_PASSWORD_BYTES = 72
TEMPORARY_PASSWORD_BYTES = 12  # 16 URL-safe characters


@lru_cache
def _crypt_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def hash_password(password: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """
    Hash a password with bcrypt; passlib generates a fresh salt per call.

    Args:
        password: Plain text password
        rounds: bcrypt cost factor (log2 of the iteration count)

    Returns:
        The bcrypt hash as a string

    Raises:
        InvalidInputError: If the password is empty or longer than 72 bytes
    """
    if not password:
        raise InvalidInputError("Password must not be empty.")

    encoded = password.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
        raise InvalidInputError(
            f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes long."
        )

    return _crypt_context(rounds).hash(password)


def verify_password(password: str, hashed_password: str | None) -> bool:
    """
    Verify a plain password against a stored bcrypt hash.

    Returns False on any mismatch, including empty input and malformed or
    missing stored hashes.
    """
    if not password or not hashed_password:
        return False

    try:
        return _crypt_context(DEFAULT_BCRYPT_ROUNDS).verify(password, hashed_password)
    except (ValueError, TypeError):
        # Unidentifiable or malformed stored hash
        return False


@lru_cache
def _dummy_hash(rounds: int) -> str:
    # Hashed at the vault's cost factor
    return hash_password(secrets.token_urlsafe(TEMPORARY_PASSWORD_BYTES), rounds=rounds)


def generate_temporary_password() -> str:
    """Generate a random temporary password for the forgot-password flow."""
    return secrets.token_urlsafe(TEMPORARY_PASSWORD_BYTES)


@dataclass(frozen=True)
class CredentialVault:
    """
    Password hashing policy built once from configuration.

    Attributes:
        rounds: bcrypt cost factor
        temporary_password_ttl: How long a system-generated password stays valid
    """

    rounds: int = DEFAULT_BCRYPT_ROUNDS
    temporary_password_ttl: timedelta = field(default_factory=lambda: timedelta(hours=24))

    def hash(self, password: str) -> str:
        return hash_password(password, rounds=self.rounds)

    def verify(self, password: str, hashed_password: str | None) -> bool:
        return verify_password(password, hashed_password)

    def verify_dummy(self, password: str) -> bool:
        """Spend one verification for an unknown account; always False."""
        verify_password(password, _dummy_hash(self.rounds))
        return False

    def temporary_password_expiry(self) -> datetime:
        return datetime.now(UTC) + self.temporary_password_ttl


@dataclass(frozen=True)
class SessionConfig:
    """Signing configuration for session tokens."""

    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 30


class SessionIssuer:
    """Mints signed, time-bounded session tokens."""

    def __init__(self, config: SessionConfig):
        if not config.secret_key or not config.secret_key.strip():
            raise ConfigurationError(
                "JWT_SECRET_KEY is not configured; session tokens cannot be signed."
            )
        self._config = config

    @property
    def algorithm(self) -> str:
        return self._config.algorithm

    def issue(
        self,
        identity_id: str,
        role: str,
        expires_delta: timedelta | None = None,
        extra_claims: dict[str, Any] | None = None,
    ) -> str:
        """
        Create a signed access token.

        Args:
            identity_id: User id, stored in the ``sub`` claim
            role: User role, stored in the ``role`` claim
            expires_delta: Token lifetime (defaults to the configured lifetime)
            extra_claims: Additional non-secret claims (email, name)

        Returns:
            The encoded JWT
        """
        now = datetime.now(UTC)
        if expires_delta is None:
            expires_delta = timedelta(minutes=self._config.access_token_expire_minutes)

        claims: dict[str, Any] = {}
        if extra_claims:
            claims.update(extra_claims)
        claims.update(
            {
                "sub": str(identity_id),
                "role": role,
                "type": "access",
                "iat": now,
                "exp": now + expires_delta,
            }
        )

        return jwt.encode(claims, self._config.secret_key, algorithm=self._config.algorithm)

    def decode(self, token: str) -> dict[str, Any] | None:
        """
        Decode and validate a token.

        Returns:
            The claims, or None if the signature, expiry or format is invalid
        """
        try:
            return jwt.decode(token, self._config.secret_key, algorithms=[self._config.algorithm])
        except JWTError:
            return None


@lru_cache
def get_session_issuer() -> SessionIssuer:
    """Process-wide session issuer built from settings."""
    return SessionIssuer(
        SessionConfig(
            secret_key=settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
            access_token_expire_minutes=settings.access_token_expire_minutes,
        )
    )


@lru_cache
def get_credential_vault() -> CredentialVault:
    """Process-wide credential vault built from settings."""
    return CredentialVault(
        rounds=settings.bcrypt_rounds,
        temporary_password_ttl=timedelta(hours=settings.temporary_password_expire_hours),
    )


__all__ = [
    "CredentialVault",
    "SessionConfig",
    "SessionIssuer",
    "generate_temporary_password",
    "get_credential_vault",
    "get_session_issuer",
    "hash_password",
    "verify_password",
]
