"""
Shared module - Base model and helpers used by every domain module.
"""

import math
import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import DateTime, Select, String, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapped, mapped_column

from lms_api.core.database import Base

MAX_PAGE_SIZE = 100


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from backends without timezone support."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def normalize_email(email: str) -> str:
    """Trim and lowercase an email address for storage and lookups."""
    return email.strip().lower()


def is_unique_violation(error: IntegrityError, column: str) -> bool:
    """Whether an IntegrityError came from the unique index on ``column``."""
    message = str(error.orig).lower()
    return column in message and ("unique" in message or "duplicate" in message)


class BaseModel(Base):
    """
    Abstract base for domain tables.

    Provides a string UUID primary key and audit timestamps. Timestamps are
    set on the Python side so they are available right after a flush.
    """

    __abstract__ = True

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )


def clamp_pagination(page: int, page_size: int) -> tuple[int, int]:
    """Clamp page to >= 1 and page size to 1..MAX_PAGE_SIZE."""
    return max(page, 1), min(max(page_size, 1), MAX_PAGE_SIZE)


async def fetch_page(
    db: AsyncSession,
    stmt: Select,
    page: int,
    page_size: int,
) -> tuple[list[dict[str, Any]], int]:
    """
    Run a column-projection query for one page.

    Args:
        db: Database session
        stmt: Select over explicit columns, already filtered and ordered
        page: 1-based page number
        page_size: Rows per page

    Returns:
        Tuple of (rows as dicts, total matching rows)
    """
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = (await db.execute(count_stmt)).scalar_one()

    result = await db.execute(stmt.offset((page - 1) * page_size).limit(page_size))
    rows = [dict(row._mapping) for row in result]
    return rows, total


def page_metadata(page: int, page_size: int, total: int) -> dict[str, Any]:
    pages = math.ceil(total / page_size) if total else 0
    return {
        "page": page,
        "page_size": page_size,
        "total": total,
        "pages": pages,
        "has_next_page": page < pages,
        "has_prev_page": page > 1,
    }


__all__ = [
    "MAX_PAGE_SIZE",
    "BaseModel",
    "as_utc",
    "clamp_pagination",
    "fetch_page",
    "is_unique_violation",
    "normalize_email",
    "page_metadata",
    "utcnow",
]
