"""
Fixtures for instructor applications tests.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from lms_api.modules.instructor_applications.models import (
    ApplicationStatus,
    ExperienceLevel,
    InstructorApplication,
)
from lms_api.modules.instructor_applications.schemas import (
    InstructorApplicationCreate,
    InstructorProfile,
)


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def application_id():
    return str(uuid4())


@pytest.fixture
def profile_payload():
    return {
        "bio": "Ten years building compilers.",
        "expertise": "Compilers, Rust",
        "experience": "6-10 years",
        "education": "MSc Computer Science",
        "linkedin_url": "https://www.linkedin.com/in/ada",
        "github_url": "https://github.com/ada",
        "portfolio_url": None,
    }


@pytest.fixture
def application_payload(profile_payload):
    """JSON body for POST /instructor-applications."""
    return {
        "name": "Ada Lovelace",
        "email": "Ada@Example.com",
        "password": "analytical-engine",
        "profile": profile_payload,
    }


@pytest.fixture
def sample_application_create():
    """Create a sample application create request."""
    return InstructorApplicationCreate(
        name="Ada Lovelace",
        email="Ada@Example.com",
        password="analytical-engine",
        profile=InstructorProfile(
            bio="Ten years building compilers.",
            expertise="Compilers, Rust",
            experience=ExperienceLevel.SIX_TO_TEN,
            education="MSc Computer Science",
            linkedin_url="https://www.linkedin.com/in/ada",
        ),
    )


@pytest.fixture
def sample_pending_application(application_id):
    """Create a sample pending application."""
    app = MagicMock(spec=InstructorApplication)
    app.id = application_id
    app.name = "Ada Lovelace"
    app.email = "ada@example.com"
    app.password_hash = "$2b$04$storedhashstoredhashstoredhashstoredhashstoredhas"
    app.profile = {
        "bio": "Ten years building compilers.",
        "expertise": "Compilers, Rust",
        "experience": "6-10 years",
        "education": "MSc Computer Science",
    }
    app.status = ApplicationStatus.PENDING
    app.approved_by = None
    app.approved_at = None
    app.rejected_by = None
    app.rejected_at = None
    app.rejection_reason = None
    app.created_at = datetime.now(UTC) - timedelta(days=1)
    return app


@pytest.fixture
def sample_approved_application(sample_pending_application, admin_id):
    app = sample_pending_application
    app.status = ApplicationStatus.APPROVED
    app.approved_by = admin_id
    app.approved_at = datetime.now(UTC)
    return app


@pytest.fixture
def submit_application(client, application_payload):
    """Submit an application over HTTP and return its id."""

    async def _submit(**overrides) -> str:
        payload = {**application_payload, **overrides}
        response = await client.post("/api/v1/instructor-applications", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["application_id"]

    return _submit
