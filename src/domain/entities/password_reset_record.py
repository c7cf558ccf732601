"""Persistent state of a single password-reset attempt.

A record is created when a code is issued and then moves through three
phases. The credential hash is replaced exactly once, when the code is
exchanged for a reset token, and the record is closed for good when the
token is consumed or a newer request supersedes it.

    OTP_PENDING --verify ok--> TOKEN_PENDING --finalize ok--> CONSUMED
        |                            |
        +-- superseded / exhausted --+--> used = True
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, Enum as SAEnum, ForeignKey, Index, Integer, String, text
from sqlmodel import Column, Field, SQLModel

from src.domain.entities.column_types import UTCDateTime


class ResetPhase(str, Enum):
    """Which secret ``credential_hash`` currently holds."""

    OTP_PENDING = "otp_pending"
    TOKEN_PENDING = "token_pending"
    CONSUMED = "consumed"


class PasswordResetRecord(SQLModel, table=True):
    """One issued reset code and, after verification, its reset token.

    At most one unused record may exist per email; the partial unique index
    below backs that up at the database level.

    Attributes:
        id: Primary key, never reused.
        user_id: Account the reset applies to.
        email: Normalized address at the time of the request.
        credential_hash: Bcrypt hash of the OTP or, later, the reset token.
        phase: Current step of the reset.
        created_at: When the code was issued.
        expires_at: Expiry of the current credential.
        attempts: Failed verifications, never decreases.
        used: Terminal flag, set when consumed or invalidated.
        origin_ip: Address the request came from.
    """

    __tablename__ = "password_reset_records"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(
        sa_column=Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    email: str = Field(sa_column=Column(String(254), nullable=False, index=True))
    credential_hash: str = Field(sa_column=Column(String(255), nullable=False))
    phase: ResetPhase = Field(
        default=ResetPhase.OTP_PENDING,
        sa_column=Column(
            SAEnum(
                ResetPhase,
                name="reset_phase",
                native_enum=False,
                length=20,
                values_callable=lambda enum: [member.value for member in enum],
            ),
            nullable=False,
        ),
    )
    created_at: datetime = Field(sa_column=Column(UTCDateTime, nullable=False))
    expires_at: datetime = Field(sa_column=Column(UTCDateTime, nullable=False))
    attempts: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    used: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    origin_ip: str = Field(default="unknown", sa_column=Column(String(64), nullable=False))

    __table_args__ = (
        Index(
            "uq_password_reset_records_active_email",
            "email",
            unique=True,
            postgresql_where=text("used = false"),
            sqlite_where=text("used = 0"),
        ),
    )

    def __repr__(self) -> str:
        return (
            f"PasswordResetRecord(id={self.id}, user_id={self.user_id}, phase={self.phase}, "
            f"attempts={self.attempts}, used={self.used})"
        )


class ResetRequestLogEntry(SQLModel, table=True):
    """One admitted reset request, logged for cooldown and hourly caps.

    Entries are written for registered and unregistered emails alike so that
    throttling behaves identically for both.
    """

    __tablename__ = "password_reset_request_log"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(sa_column=Column(String(254), nullable=False))
    origin_ip: str = Field(sa_column=Column(String(64), nullable=False))
    created_at: datetime = Field(sa_column=Column(UTCDateTime, nullable=False))

    __table_args__ = (
        Index("ix_reset_request_log_email_created", "email", "created_at"),
        Index("ix_reset_request_log_ip_created", "origin_ip", "created_at"),
    )
