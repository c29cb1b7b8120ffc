"""
Instructor Applications Public Router

Endpoint for prospective instructors to apply. No authentication required.

Endpoints:
- POST /instructor-applications - Submit an application
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from lms_api.core.database import get_db
from lms_api.core.email import EmailNotifier, get_notifier
from lms_api.core.errors import ServiceError, handle_service_error, internal_error
from lms_api.core.rate_limit import rate_limit
from lms_api.core.security import CredentialVault, get_credential_vault
from lms_api.modules.instructor_applications import service
from lms_api.modules.instructor_applications.schemas import (
    ApplicationSubmitResponse,
    InstructorApplicationCreate,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# 5 submissions per hour per client IP
RATE_LIMIT_SUBMIT = (5, 3600)


@router.post(
    "",
    response_model=ApplicationSubmitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Instructor Application",
    description="""
Submit a new instructor application.

The application is stored as `pending` until an admin approves or rejects it.
The admin mailbox is notified; a failed notification does not fail the
submission.

**Duplicate Prevention:**
- The email must not belong to an existing user
- Only one application per email
""",
    responses={
        409: {
            "description": "Email already registered or already applied",
            "content": {
                "application/json": {
                    "example": {
                        "detail": {
                            "error": "CONFLICT",
                            "message": "Application with this email already exists.",
                        }
                    }
                }
            },
        },
        429: {"description": "Too many submissions from this client"},
    },
)
@rate_limit(*RATE_LIMIT_SUBMIT)
async def submit_application(
    request: Request,
    data: InstructorApplicationCreate,
    db: AsyncSession = Depends(get_db),
    vault: CredentialVault = Depends(get_credential_vault),
    notifier: EmailNotifier = Depends(get_notifier),
) -> ApplicationSubmitResponse:
    """
    Submit a new instructor application.

    Raises:
        HTTPException 409: If the email is already used by a user or application
    """
    try:
        application_id = await service.submit_application(db, data, vault, notifier)
    except ServiceError as e:
        logger.warning(f"Application submission rejected: {e.message}")
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Unexpected error submitting application: {e}")
        raise internal_error() from e

    return ApplicationSubmitResponse(application_id=application_id)
