"""Factory for generating fake user data for testing."""

from datetime import datetime, timezone
from typing import Optional

from faker import Faker
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.entities.user import User

fake = Faker()

DEFAULT_PASSWORD = "OldPass1234"


def create_fake_user(
    email: Optional[str] = None,
    hashed_password: Optional[str] = None,
    is_active: bool = True,
    created_at: Optional[datetime] = None,
) -> User:
    """Create an unsaved User with a unique, normalized email."""
    return User(
        email=(email or fake.unique.email()).strip().lower(),
        hashed_password=hashed_password or "not-a-real-hash",
        is_active=is_active,
        created_at=created_at or datetime.now(timezone.utc),
    )


async def persist_user(
    session: AsyncSession,
    hasher,
    email: Optional[str] = None,
    password: str = DEFAULT_PASSWORD,
    is_active: bool = True,
) -> User:
    """Insert and commit a user whose password is ``password``."""
    user = create_fake_user(email=email, hashed_password=hasher.hash(password), is_active=is_active)
    session.add(user)
    await session.commit()
    return user
