"""
Shared test fixtures.

Tests run against a throwaway SQLite database (aiosqlite) per test, built
from the ORM metadata. Email delivery is replaced by an AsyncMock so no
test ever talks to Resend.
"""

import os

# Must be set before lms_api modules read settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("PYTHON_ENV", "test")

from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from lms_api.core.database import Base, get_db  # noqa: E402
from lms_api.core.email import EmailNotifier, get_notifier  # noqa: E402
from lms_api.core.rate_limit import reset_memory_store  # noqa: E402
from lms_api.core.security import (  # noqa: E402
    CredentialVault,
    SessionConfig,
    SessionIssuer,
    get_credential_vault,
    get_session_issuer,
)
from lms_api.modules.instructor_applications.models import InstructorApplication  # noqa: E402,F401
from lms_api.modules.users.models import User, UserRole  # noqa: E402
from lms_api.modules.users.repository import UserRepository  # noqa: E402

TEST_SECRET_KEY = "test-secret-key-not-for-production"


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    """Every test starts with empty in-memory rate limit counters."""
    reset_memory_store()
    yield
    reset_memory_store()


# ============================================
# Database
# ============================================


@pytest.fixture
async def engine(tmp_path):
    """File-backed SQLite engine so separate sessions see each other's commits."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ============================================
# Security and notifications
# ============================================


@pytest.fixture
def vault():
    """Credential vault with the cheapest bcrypt cost factor."""
    return CredentialVault(rounds=4)


@pytest.fixture
def issuer():
    return SessionIssuer(SessionConfig(secret_key=TEST_SECRET_KEY))


@pytest.fixture
def mock_notifier():
    """Notifier whose send_* coroutines are recorded instead of delivered."""
    return AsyncMock(spec=EmailNotifier)


# ============================================
# Users and tokens
# ============================================


@pytest.fixture
def create_user(session_factory, vault):
    """Factory that commits a user with a real bcrypt hash."""

    async def _create_user(
        email: str = "user@example.com",
        password: str = "password123",
        role: UserRole = UserRole.STUDENT,
        name: str = "Test User",
    ) -> User:
        async with session_factory() as session:
            user = await UserRepository.create(
                session,
                name=name,
                email=email,
                password_hash=vault.hash(password),
                role=role,
            )
            await session.commit()
            return user

    return _create_user


@pytest.fixture
def admin_id():
    return "00000000-0000-0000-0000-000000000001"


@pytest.fixture
def admin_headers(issuer, admin_id):
    token = issuer.issue(admin_id, UserRole.ADMIN.value, extra_claims={"email": "admin@lms.dev"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def student_headers(issuer):
    token = issuer.issue(
        "00000000-0000-0000-0000-000000000002",
        UserRole.STUDENT.value,
        extra_claims={"email": "student@example.com"},
    )
    return {"Authorization": f"Bearer {token}"}


# ============================================
# HTTP client
# ============================================


@pytest.fixture
async def client(session_factory, vault, issuer, mock_notifier):
    """AsyncClient bound to the app with database, security and email overridden."""
    from lms_api.main import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_credential_vault] = lambda: vault
    app.dependency_overrides[get_session_issuer] = lambda: issuer
    app.dependency_overrides[get_notifier] = lambda: mock_notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
