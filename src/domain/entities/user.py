from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, String
from sqlmodel import Column, Field, SQLModel

from src.domain.entities.column_types import UTCDateTime


class User(SQLModel, table=True):
    """Represents an account whose password can be reset.

    Only the attributes the reset and login flows need are modelled. The
    email is stored already normalized (trimmed, lower-cased); callers go
    through ``src.domain.value_objects.Email`` before touching this table.

    Attributes:
        id: The unique identifier for the user (primary key).
        email: Unique, normalized email address.
        hashed_password: Bcrypt hash of the current password.
        is_active: Inactive accounts are treated like unknown emails.
        created_at: When the account was created.
        password_changed_at: When the password was last replaced by a reset.
    """

    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(
        sa_column=Column(String(254), unique=True, index=True, nullable=False),
    )
    hashed_password: str = Field(sa_column=Column(String(255), nullable=False))
    is_active: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, default=True),
    )
    created_at: datetime = Field(sa_column=Column(UTCDateTime, nullable=False))
    password_changed_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(UTCDateTime, nullable=True),
    )
