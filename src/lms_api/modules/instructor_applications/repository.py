"""
Instructor Applications Repository

Database operations for instructor applications. All operations are async
and follow the repository pattern: data access only, no business logic.

Design Principles:
- Writes flush but never commit; the service owns the transaction so that
  approval can promote the applicant and mark the application in one unit
- The unique email index is the authoritative duplicate guard
- Status decisions use compare-and-set so concurrent admins cannot both win
- Listings use an explicit column projection without the password hash
"""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lms_api.core.errors import DuplicateKeyError
from lms_api.modules.shared import (
    clamp_pagination,
    fetch_page,
    is_unique_violation,
    normalize_email,
)

from .models import ApplicationStatus, InstructorApplication

logger = logging.getLogger(__name__)

APPLICATION_PUBLIC_COLUMNS = (
    InstructorApplication.id,
    InstructorApplication.name,
    InstructorApplication.email,
    InstructorApplication.profile,
    InstructorApplication.status,
    InstructorApplication.approved_by,
    InstructorApplication.approved_at,
    InstructorApplication.rejected_by,
    InstructorApplication.rejected_at,
    InstructorApplication.rejection_reason,
    InstructorApplication.created_at,
    InstructorApplication.updated_at,
)


async def create(
    db: AsyncSession,
    *,
    name: str,
    email: str,
    password_hash: str,
    profile: dict,
) -> InstructorApplication:
    """
    Create a new pending application.

    Raises:
        DuplicateKeyError: If the unique email index rejects the insert
    """
    application = InstructorApplication(
        name=name,
        email=normalize_email(email),
        password_hash=password_hash,
        profile=profile,
        status=ApplicationStatus.PENDING,
    )

    db.add(application)
    try:
        await db.flush()
    except IntegrityError as e:
        if is_unique_violation(e, "email"):
            logger.warning(
                f"Duplicate application email rejected by unique index: {application.email}"
            )
            raise DuplicateKeyError("application") from e
        raise

    return application


async def get_by_id(
    db: AsyncSession, id: str, *, refresh: bool = False
) -> InstructorApplication | None:
    """Get application by ID. ``refresh`` bypasses any stale identity-map copy."""
    return await db.get(InstructorApplication, str(id), populate_existing=refresh)


async def get_public_by_id(db: AsyncSession, id: str) -> dict[str, Any] | None:
    """Get an application projection without the password hash."""
    result = await db.execute(
        select(*APPLICATION_PUBLIC_COLUMNS).where(InstructorApplication.id == str(id))
    )
    row = result.one_or_none()
    return dict(row._mapping) if row else None


async def get_by_email(db: AsyncSession, email: str) -> InstructorApplication | None:
    """Get application by email (case-insensitive, trimmed)."""
    result = await db.execute(
        select(InstructorApplication).where(
            InstructorApplication.email == normalize_email(email)
        )
    )
    return result.scalar_one_or_none()


async def list_applications(
    db: AsyncSession,
    *,
    status: ApplicationStatus | None = None,
    page: int = 1,
    page_size: int = 10,
) -> tuple[list[dict[str, Any]], int]:
    """
    List applications newest first, optionally filtered by status.

    Returns:
        Tuple of (application rows without password hash, total count)
    """
    page, page_size = clamp_pagination(page, page_size)

    stmt = select(*APPLICATION_PUBLIC_COLUMNS).order_by(
        InstructorApplication.created_at.desc(), InstructorApplication.id
    )
    if status is not None:
        stmt = stmt.where(InstructorApplication.status == status)

    return await fetch_page(db, stmt, page, page_size)


# Valid status transitions - prevents invalid state changes
VALID_STATUS_TRANSITIONS: dict[ApplicationStatus, set[ApplicationStatus]] = {
    ApplicationStatus.PENDING: {
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
    },
    # Terminal states - no transitions allowed
    ApplicationStatus.APPROVED: set(),
    ApplicationStatus.REJECTED: set(),
}


class InvalidStatusTransitionError(ValueError):
    """Raised when an invalid status transition is attempted."""

    def __init__(
        self,
        current_status: ApplicationStatus,
        new_status: ApplicationStatus,
    ):
        self.current_status = current_status
        self.new_status = new_status
        valid_transitions = VALID_STATUS_TRANSITIONS.get(current_status, set())
        super().__init__(
            f"Invalid status transition: {current_status.value} -> {new_status.value}. "
            f"Valid transitions: {sorted(s.value for s in valid_transitions)}"
        )


def validate_transition(current_status: ApplicationStatus, new_status: ApplicationStatus) -> None:
    """Raise InvalidStatusTransitionError unless the transition is allowed."""
    if new_status not in VALID_STATUS_TRANSITIONS.get(current_status, set()):
        raise InvalidStatusTransitionError(current_status, new_status)


async def mark_decision(
    db: AsyncSession,
    id: str,
    new_status: ApplicationStatus,
    *,
    decided_by: str,
    decided_at: datetime,
    rejection_reason: str | None = None,
) -> bool:
    """
    Compare-and-set an application's status from ``pending``.

    The UPDATE only matches a row whose stored status is still pending, so
    of two concurrent decisions exactly one changes a row.

    Args:
        db: Database session
        id: Application ID
        new_status: APPROVED or REJECTED
        decided_by: ID of the deciding admin
        decided_at: Decision timestamp
        rejection_reason: Optional reason (rejections only)

    Returns:
        True if this call performed the transition, False otherwise

    Raises:
        InvalidStatusTransitionError: If new_status is not reachable from pending
    """
    validate_transition(ApplicationStatus.PENDING, new_status)

    values: dict[str, Any] = {"status": new_status, "updated_at": decided_at}
    if new_status == ApplicationStatus.APPROVED:
        values.update(approved_by=decided_by, approved_at=decided_at)
    else:
        values.update(
            rejected_by=decided_by,
            rejected_at=decided_at,
            rejection_reason=rejection_reason,
        )

    result = await db.execute(
        update(InstructorApplication)
        .where(
            InstructorApplication.id == str(id),
            InstructorApplication.status == ApplicationStatus.PENDING,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def delete_by_id(db: AsyncSession, id: str) -> bool:
    """Hard delete an application. Returns True if a row was removed."""
    result = await db.execute(
        delete(InstructorApplication)
        .where(InstructorApplication.id == str(id))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
