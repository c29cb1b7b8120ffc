"""
Seed Platform Admin User

Creates the initial admin user so applications can be reviewed.
Run this script once to set up the admin account.

Usage:
    ADMIN_SEED_EMAIL=admin@example.com ADMIN_SEED_PASSWORD='...' \\
        python scripts/seed_platform_admin.py
"""

import asyncio
import os
import sys

from lms_api.core.database import async_session_maker, engine
from lms_api.core.errors import DuplicateKeyError, InvalidInputError
from lms_api.core.security import get_credential_vault
from lms_api.modules.users.models import UserRole
from lms_api.modules.users.repository import UserRepository


async def seed_platform_admin() -> int:
    """Create the admin user if it doesn't exist. Returns a process exit code."""
    email = os.getenv("ADMIN_SEED_EMAIL")
    password = os.getenv("ADMIN_SEED_PASSWORD")
    name = os.getenv("ADMIN_SEED_NAME", "Platform Admin")

    if not email or not password:
        print("ADMIN_SEED_EMAIL and ADMIN_SEED_PASSWORD must be set.")
        return 1

    vault = get_credential_vault()

    try:
        async with async_session_maker() as db:
            existing_user = await UserRepository.get_by_email(db, email)

            if existing_user:
                print(f"Admin already exists: {existing_user.email}")
                print(f"  ID: {existing_user.id}")
                print(f"  Role: {existing_user.role.value}")
                return 0

            try:
                admin_user = await UserRepository.create(
                    db,
                    name=name,
                    email=email,
                    password_hash=vault.hash(password),
                    role=UserRole.ADMIN,
                )
                await db.commit()
            except (DuplicateKeyError, InvalidInputError) as e:
                await db.rollback()
                print(f"Could not create admin: {e.message}")
                return 1

            print("Admin created successfully!")
            print(f"  Email: {admin_user.email}")
            print(f"  Name: {admin_user.name}")
            print(f"  ID: {admin_user.id}")
    finally:
        await engine.dispose()

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(seed_platform_admin()))
