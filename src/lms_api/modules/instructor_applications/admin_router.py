"""
Instructor Applications Admin Router

API endpoints for administrators to review instructor applications.
All endpoints require authentication and the admin role.

Endpoints:
- GET /instructor-applications - List applications with status filter and pagination
- GET /instructor-applications/{id} - Get application details
- PUT /instructor-applications/{id}/approve - Approve and create the instructor account
- PUT /instructor-applications/{id}/reject - Reject application
- DELETE /instructor-applications/{id} - Delete application

Security:
- Valid JWT with admin role required
- Password hashes are never returned
- Rate limiting on approve/reject per admin
"""

import logging

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from lms_api.core.auth import CurrentUser, get_current_admin_user
from lms_api.core.database import get_db
from lms_api.core.email import EmailNotifier, get_notifier
from lms_api.core.errors import ServiceError, handle_service_error, internal_error
from lms_api.core.rate_limit import admin_action_key, rate_limit
from lms_api.modules.instructor_applications import service
from lms_api.modules.instructor_applications.models import ApplicationStatus
from lms_api.modules.instructor_applications.schemas import (
    ApplicationActionResponse,
    ApprovedUserSummary,
    ApproveApplicationResponse,
    InstructorApplicationListResponse,
    InstructorApplicationResponse,
    RejectApplicationRequest,
)
from lms_api.modules.shared import MAX_PAGE_SIZE

logger = logging.getLogger(__name__)

router = APIRouter()

# Rate limits for admin action endpoints (prevent abuse)
RATE_LIMIT_APPROVE = (10, 60)  # 10 approvals per minute
RATE_LIMIT_REJECT = (10, 60)  # 10 rejections per minute


@router.get(
    "",
    response_model=InstructorApplicationListResponse,
    summary="List Instructor Applications",
)
async def list_applications(
    status: ApplicationStatus | None = Query(
        None,
        description="Filter by application status",
    ),
    page: int = Query(1, ge=1, description="Page number (1-based)"),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE, description="Applications per page"),
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> InstructorApplicationListResponse:
    """List applications newest first."""
    try:
        result = await service.list_applications(db, status=status, page=page, page_size=limit)
    except ServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error listing applications: {e}")
        raise internal_error() from e

    logger.info(
        f"Admin {admin.id} listed applications: "
        f"total={result['total']}, returned={len(result['applications'])}"
    )
    return InstructorApplicationListResponse(**result)


@router.get(
    "/{application_id}",
    response_model=InstructorApplicationResponse,
    summary="Get Instructor Application",
)
async def get_application(
    application_id: str,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> InstructorApplicationResponse:
    """Get one application by ID."""
    try:
        application = await service.get_application(db, application_id)
    except ServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error fetching application {application_id}: {e}")
        raise internal_error() from e

    return InstructorApplicationResponse(**application)


@router.put(
    "/{application_id}/approve",
    response_model=ApproveApplicationResponse,
    summary="Approve Instructor Application",
    description="""
Approve a pending application.

Creates an instructor account from the application (same name, email,
password and profile) and marks the application `approved` in one
transaction. The applicant is notified by email.

**Errors:**
- 404: application not found
- 409 `INVALID_STATE`: application already approved or rejected
- 409 `CONFLICT`: a user with this email already exists (application stays pending)
""",
)
@rate_limit(*RATE_LIMIT_APPROVE, key_func=admin_action_key)
async def approve_application(
    request: Request,
    application_id: str,
    db: AsyncSession = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> ApproveApplicationResponse:
    """Approve application and create the instructor user."""
    try:
        user = await service.approve_application(db, application_id, admin.id, notifier)
    except ServiceError as e:
        logger.warning(f"Cannot approve application {application_id}: {e.message}")
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error approving application: {e}")
        raise internal_error() from e

    logger.info(f"Admin {admin.id} approved application {application_id}. User: {user['id']}")
    return ApproveApplicationResponse(user=ApprovedUserSummary(**user))


@router.put(
    "/{application_id}/reject",
    response_model=ApplicationActionResponse,
    summary="Reject Instructor Application",
)
@rate_limit(*RATE_LIMIT_REJECT, key_func=admin_action_key)
async def reject_application(
    request: Request,
    application_id: str,
    data: RejectApplicationRequest | None = None,
    db: AsyncSession = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> ApplicationActionResponse:
    """Reject a pending application with an optional reason."""
    reason = data.reason if data else None
    try:
        result = await service.reject_application(db, application_id, admin.id, reason, notifier)
    except ServiceError as e:
        logger.warning(f"Cannot reject application {application_id}: {e.message}")
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error rejecting application: {e}")
        raise internal_error() from e

    return ApplicationActionResponse(**result)


@router.delete(
    "/{application_id}",
    response_model=ApplicationActionResponse,
    summary="Delete Instructor Application",
)
async def delete_application(
    application_id: str,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> ApplicationActionResponse:
    """Hard delete an application regardless of status."""
    try:
        result = await service.delete_application(db, application_id)
    except ServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error deleting application {application_id}: {e}")
        raise internal_error() from e

    logger.info(f"Admin {admin.id} deleted application {application_id}")
    return ApplicationActionResponse(**result)
