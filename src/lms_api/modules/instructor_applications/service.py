"""
Instructor Applications Service Layer

Business logic for the instructor onboarding workflow.
Orchestrates repository operations, password hashing and email notifications.

Lifecycle:
    pending -> approved   (a User with role instructor is created)
    pending -> rejected
    approved and rejected are terminal.

Guarantees:
- At most one application and at most one user per normalized email. The
  pre-checks give friendly errors; the unique indexes are the real guard and
  a DuplicateKeyError from them is reported as the same ConflictError.
- Approve and reject use a compare-and-set on status, so of two concurrent
  decisions only one wins; the loser gets InvalidStateError.
- Approval is all-or-nothing: if the user cannot be created the application
  stays pending.
- Notifications are best-effort. A failed email is logged and never undoes
  or fails a committed transition.
- Passwords and hashes are never logged or returned.
"""

import asyncio
import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from lms_api.core.email import EmailNotifier
from lms_api.core.errors import (
    ConflictError,
    DuplicateKeyError,
    InvalidStateError,
    NotFoundError,
)
from lms_api.core.security import CredentialVault
from lms_api.modules.instructor_applications import repository
from lms_api.modules.instructor_applications.models import ApplicationStatus
from lms_api.modules.instructor_applications.schemas import InstructorApplicationCreate
from lms_api.modules.shared import clamp_pagination, normalize_email, page_metadata, utcnow
from lms_api.modules.users.models import UserRole
from lms_api.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

USER_EXISTS_MESSAGE = "User with this email already exists."
APPLICATION_EXISTS_MESSAGE = "Application with this email already exists."


def _not_pending(application_id: str, status: ApplicationStatus, action: str) -> InvalidStateError:
    return InvalidStateError(
        f"Cannot {action} application {application_id}: it has already been {status.value}.",
        current_state=status.value,
    )


async def submit_application(
    db: AsyncSession,
    data: InstructorApplicationCreate,
    vault: CredentialVault,
    notifier: EmailNotifier,
) -> str:
    """
    Submit a new instructor application.

    Args:
        db: Database session
        data: Validated application data
        vault: Password hashing policy
        notifier: Email notifier for the admin notification

    Returns:
        The new application's ID

    Raises:
        ConflictError: If a user or an application already uses the email
    """
    email = normalize_email(data.email)
    logger.info(f"Processing instructor application for {email}")

    if await UserRepository.email_exists(db, email):
        logger.warning(f"Application rejected, user already exists: {email}")
        raise ConflictError(USER_EXISTS_MESSAGE)

    if await repository.get_by_email(db, email):
        logger.warning(f"Application rejected, duplicate application: {email}")
        raise ConflictError(APPLICATION_EXISTS_MESSAGE)

    password_hash = await asyncio.to_thread(vault.hash, data.password)
    profile = data.profile.model_dump(mode="json")

    try:
        application = await repository.create(
            db,
            name=data.name,
            email=email,
            password_hash=password_hash,
            profile=profile,
        )
        application_id = application.id
        await db.commit()
    except DuplicateKeyError as e:
        await db.rollback()
        raise ConflictError(APPLICATION_EXISTS_MESSAGE) from e

    logger.info(f"Created instructor application {application_id} for {email}")

    # Notify admin (non-blocking)
    try:
        await notifier.send_application_submitted(
            applicant_name=data.name,
            applicant_email=email,
            expertise=profile["expertise"],
            experience=profile["experience"],
        )
    except Exception as e:
        logger.error(f"Failed to send admin notification email: {e}", exc_info=True)
        # Don't fail the request - email is non-critical

    return application_id


async def get_application(db: AsyncSession, application_id: str) -> dict[str, Any]:
    """
    Get one application without its password hash.

    Raises:
        NotFoundError: If the application doesn't exist
    """
    application = await repository.get_public_by_id(db, application_id)
    if application is None:
        raise NotFoundError("Application", application_id)
    return application


async def list_applications(
    db: AsyncSession,
    status: ApplicationStatus | None = None,
    page: int = 1,
    page_size: int = 10,
) -> dict[str, Any]:
    """
    List applications newest first with pagination metadata.

    Page size is capped at 100.
    """
    page, page_size = clamp_pagination(page, page_size)
    applications, total = await repository.list_applications(
        db, status=status, page=page, page_size=page_size
    )
    return {"applications": applications, **page_metadata(page, page_size, total)}


async def approve_application(
    db: AsyncSession,
    application_id: str,
    approver_id: str,
    notifier: EmailNotifier,
) -> dict[str, str]:
    """
    Approve an application and promote the applicant to an instructor.

    The status change and the user creation are one transaction:
    1. Compare-and-set the status from pending to approved
    2. Create the user with role instructor, reusing the stored password
       hash and a copy of the profile
    3. Commit
    The approval email is sent after the commit.

    Args:
        db: Database session
        application_id: ID of the application
        approver_id: ID of the approving admin
        notifier: Email notifier

    Returns:
        Public fields of the created user (id, name, email, role)

    Raises:
        NotFoundError: If the application doesn't exist
        InvalidStateError: If the application is not pending, including when
            a concurrent decision won the race
        ConflictError: If a user with the email already exists; the
            application stays pending
    """
    logger.info(f"Admin {approver_id} approving application {application_id}")

    application = await repository.get_by_id(db, application_id)
    if not application:
        logger.warning(f"Application not found: {application_id}")
        raise NotFoundError("Application", application_id)

    if application.status != ApplicationStatus.PENDING:
        logger.warning(f"Cannot approve application {application_id}: status={application.status}")
        raise _not_pending(application_id, application.status, "approve")

    # Captured before any rollback expires the instance
    name = application.name
    email = application.email
    password_hash = application.password_hash
    profile = dict(application.profile) if application.profile else None

    # Email conflicts with existing users surface from the users unique index
    changed = await repository.mark_decision(
        db,
        application_id,
        ApplicationStatus.APPROVED,
        decided_by=approver_id,
        decided_at=utcnow(),
    )
    if not changed:
        await db.rollback()
        current = await repository.get_by_id(db, application_id, refresh=True)
        if current is None:
            raise NotFoundError("Application", application_id)
        logger.warning(
            f"Lost approval race for application {application_id}: status={current.status}"
        )
        raise _not_pending(application_id, current.status, "approve")

    try:
        user = await UserRepository.create(
            db,
            name=name,
            email=email,
            password_hash=password_hash,
            role=UserRole.INSTRUCTOR,
            profile=profile,
        )
        user_summary = {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "role": user.role.value,
        }
        await db.commit()
    except DuplicateKeyError as e:
        await db.rollback()
        logger.warning(
            f"Approval of {application_id} rolled back: user email {email} already taken"
        )
        raise ConflictError(USER_EXISTS_MESSAGE) from e

    logger.info(f"Application {application_id} approved. Instructor user: {user_summary['id']}")

    # Send approval email (non-blocking)
    try:
        await notifier.send_application_approved(to_email=email, applicant_name=name)
        logger.info(f"Sent approval email to {email}")
    except Exception as e:
        logger.error(f"Failed to send approval email: {e}", exc_info=True)

    return user_summary


async def reject_application(
    db: AsyncSession,
    application_id: str,
    rejecter_id: str,
    reason: str | None,
    notifier: EmailNotifier,
) -> dict[str, str]:
    """
    Reject an application. No user is created.

    Args:
        db: Database session
        application_id: ID of the application
        rejecter_id: ID of the rejecting admin
        reason: Optional reason shown to the applicant
        notifier: Email notifier

    Returns:
        Confirmation with the application ID

    Raises:
        NotFoundError: If the application doesn't exist
        InvalidStateError: If the application is not pending
    """
    logger.info(f"Admin {rejecter_id} rejecting application {application_id}")

    application = await repository.get_by_id(db, application_id)
    if not application:
        logger.warning(f"Application not found: {application_id}")
        raise NotFoundError("Application", application_id)

    if application.status != ApplicationStatus.PENDING:
        logger.warning(f"Cannot reject application {application_id}: status={application.status}")
        raise _not_pending(application_id, application.status, "reject")

    name = application.name
    email = application.email

    changed = await repository.mark_decision(
        db,
        application_id,
        ApplicationStatus.REJECTED,
        decided_by=rejecter_id,
        decided_at=utcnow(),
        rejection_reason=reason,
    )
    if not changed:
        await db.rollback()
        current = await repository.get_by_id(db, application_id, refresh=True)
        if current is None:
            raise NotFoundError("Application", application_id)
        logger.warning(
            f"Lost rejection race for application {application_id}: status={current.status}"
        )
        raise _not_pending(application_id, current.status, "reject")

    await db.commit()
    logger.info(f"Application {application_id} rejected")

    # Send rejection email (non-blocking)
    try:
        await notifier.send_application_rejected(
            to_email=email,
            applicant_name=name,
            rejection_reason=reason,
        )
        logger.info(f"Sent rejection email to {email}")
    except Exception as e:
        logger.error(f"Failed to send rejection email: {e}", exc_info=True)

    return {
        "message": "Instructor application rejected successfully",
        "application_id": application_id,
    }


async def delete_application(db: AsyncSession, application_id: str) -> dict[str, str]:
    """
    Hard delete an application regardless of its status.

    Raises:
        NotFoundError: If the application doesn't exist
    """
    deleted = await repository.delete_by_id(db, application_id)
    if not deleted:
        logger.warning(f"Application not found for deletion: {application_id}")
        raise NotFoundError("Application", application_id)

    await db.commit()
    logger.info(f"Deleted application {application_id}")

    return {
        "message": "Instructor application deleted successfully",
        "application_id": application_id,
    }
