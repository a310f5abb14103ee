"""create users and school registrations

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2026-02-16 10:00:00.000000

This migration:
1. Creates the user_role and registration_status enum types
2. Creates the users table (school_id NULL for platform roles)
3. Creates the school_registrations table with its listing indexes
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0a1b2c3d4e5f"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

USER_ROLES = (
    "system_admin",
    "school_admin",
    "department_head",
    "teacher",
    "student",
    "parent",
    "platform_operator",
)
REGISTRATION_STATUSES = ("pending", "approved", "rejected")


def upgrade() -> None:
    """Create users and school_registrations tables."""
    user_role_enum = postgresql.ENUM(*USER_ROLES, name="user_role", create_type=False)
    user_role_enum.create(op.get_bind(), checkfirst=True)

    registration_status_enum = postgresql.ENUM(
        *REGISTRATION_STATUSES, name="registration_status", create_type=False
    )
    registration_status_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("school_id", sa.Uuid(), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("role", user_role_enum, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
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
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_school_id", "users", ["school_id"])

    op.create_table(
        "school_registrations",
        sa.Column("id", sa.Uuid(), nullable=False),
        # Organisation profile
        sa.Column("school_name", sa.String(length=200), nullable=False),
        sa.Column("contact_name", sa.String(length=200), nullable=False),
        sa.Column("contact_email", sa.String(length=255), nullable=False),
        sa.Column("contact_phone", sa.String(length=20), nullable=True),
        # Locale
        sa.Column("country_code", sa.String(length=2), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=False),
        sa.Column("address", sa.String(length=500), nullable=True),
        sa.Column("timezone", sa.String(length=64), nullable=False, server_default="UTC"),
        sa.Column("language", sa.String(length=8), nullable=False, server_default="en"),
        # Tenant request
        sa.Column("requested_subdomain", sa.String(length=63), nullable=False),
        sa.Column("estimated_students", sa.Integer(), nullable=False),
        # Workflow
        sa.Column(
            "status",
            registration_status_enum,
            nullable=False,
            server_default="pending",
        ),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("decided_by", sa.String(length=64), nullable=True),
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
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "(status = 'rejected') = (rejection_reason IS NOT NULL)",
            name="ck_school_registrations_reason_iff_rejected",
        ),
    )
    op.create_index(
        "ix_school_registrations_status_created_at",
        "school_registrations",
        ["status", "created_at"],
    )
    op.create_index(
        "ix_school_registrations_requested_subdomain",
        "school_registrations",
        ["requested_subdomain"],
    )


def downgrade() -> None:
    """Drop school_registrations and users tables and their enum types."""
    op.drop_index("ix_school_registrations_requested_subdomain", table_name="school_registrations")
    op.drop_index("ix_school_registrations_status_created_at", table_name="school_registrations")
    op.drop_table("school_registrations")

    op.drop_index("ix_users_school_id", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    sa.Enum(name="registration_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="user_role").drop(op.get_bind(), checkfirst=True)
