"""create users and instructor_applications

Revision ID: 0001
Revises:
Create Date: 2026-10-18 12:00:00.000000

This migration:
1. Creates the user_role and instructor_application_status enum types
2. Creates the users table with a unique index on email
3. Creates the instructor_applications table with indexes on email
   (unique), status and created_at
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

user_role = sa.Enum("admin", "instructor", "student", name="user_role")
application_status = sa.Enum(
    "pending", "approved", "rejected", name="instructor_application_status"
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create users and instructor_applications."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False),
        *_timestamps(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column(
            "is_temporary_password",
            sa.Boolean(),
            server_default=sa.false(),
            nullable=False,
        ),
        sa.Column("temporary_password_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("profile", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_users")),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "instructor_applications",
        sa.Column("id", sa.String(length=36), nullable=False),
        *_timestamps(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("profile", sa.JSON(), nullable=False),
        sa.Column("status", application_status, nullable=False),
        sa.Column("approved_by", sa.String(length=36), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_by", sa.String(length=36), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_instructor_applications")),
    )
    op.create_index(
        "ix_instructor_applications_email",
        "instructor_applications",
        ["email"],
        unique=True,
    )
    op.create_index(
        "ix_instructor_applications_status",
        "instructor_applications",
        ["status"],
    )
    op.create_index(
        "ix_instructor_applications_created_at",
        "instructor_applications",
        ["created_at"],
    )


def downgrade() -> None:
    """Drop both tables and their enum types."""
    op.drop_index("ix_instructor_applications_created_at", table_name="instructor_applications")
    op.drop_index("ix_instructor_applications_status", table_name="instructor_applications")
    op.drop_index("ix_instructor_applications_email", table_name="instructor_applications")
    op.drop_table("instructor_applications")

    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")

    application_status.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
