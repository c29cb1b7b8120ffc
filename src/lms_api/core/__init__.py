"""
Core module - Configuration, database, security, errors, and utilities.
"""

from lms_api.core.config import get_settings, settings
from lms_api.core.database import Base, close_db, get_db, init_db
from lms_api.core.errors import ConfigurationError, ServiceError
from lms_api.core.security import (
    CredentialVault,
    SessionIssuer,
    get_credential_vault,
    get_session_issuer,
    hash_password,
    verify_password,
)

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Database
    "Base",
    "get_db",
    "init_db",
    "close_db",
    # Errors
    "ConfigurationError",
    "ServiceError",
    # Security
    "CredentialVault",
    "SessionIssuer",
    "get_credential_vault",
    "get_session_issuer",
    "hash_password",
    "verify_password",
]
