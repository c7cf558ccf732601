"""create users, password reset records and request log

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from src.domain.entities.column_types import UTCDateTime

# revision identifiers, used by Alembic.
revision: str = "3f1c2a9d7b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=254), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("password_changed_at", UTCDateTime(), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "password_reset_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("email", sa.String(length=254), nullable=False),
        sa.Column("credential_hash", sa.String(length=255), nullable=False),
        sa.Column(
            "phase",
            sa.Enum(
                "otp_pending",
                "token_pending",
                "consumed",
                name="reset_phase",
                native_enum=False,
                length=20,
            ),
            nullable=False,
        ),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("expires_at", UTCDateTime(), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("used", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("origin_ip", sa.String(length=64), nullable=False),
    )
    op.create_index("ix_password_reset_records_user_id", "password_reset_records", ["user_id"])
    op.create_index("ix_password_reset_records_email", "password_reset_records", ["email"])
    op.create_index(
        "uq_password_reset_records_active_email",
        "password_reset_records",
        ["email"],
        unique=True,
        postgresql_where=sa.text("used = false"),
        sqlite_where=sa.text("used = 0"),
    )

    op.create_table(
        "password_reset_request_log",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=254), nullable=False),
        sa.Column("origin_ip", sa.String(length=64), nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=False),
    )
    op.create_index(
        "ix_reset_request_log_email_created",
        "password_reset_request_log",
        ["email", "created_at"],
    )
    op.create_index(
        "ix_reset_request_log_ip_created",
        "password_reset_request_log",
        ["origin_ip", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_reset_request_log_ip_created", table_name="password_reset_request_log")
    op.drop_index("ix_reset_request_log_email_created", table_name="password_reset_request_log")
    op.drop_table("password_reset_request_log")
    op.drop_index("uq_password_reset_records_active_email", table_name="password_reset_records")
    op.drop_index("ix_password_reset_records_email", table_name="password_reset_records")
    op.drop_index("ix_password_reset_records_user_id", table_name="password_reset_records")
    op.drop_table("password_reset_records")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
