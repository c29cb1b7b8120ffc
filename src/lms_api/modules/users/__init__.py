"""
Users module - User identities and the identity store.
"""

from lms_api.modules.users.models import User, UserRole
from lms_api.modules.users.repository import UserRepository

__all__ = ["User", "UserRole", "UserRepository"]
