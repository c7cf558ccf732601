import os

# Settings are read at import time, so the environment is fixed first
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

from src.infrastructure.database.async_db import build_engine  # noqa: E402
from src.infrastructure.services.audit_sink import InMemoryAuditSink  # noqa: E402
from src.infrastructure.services.credential_hasher import BcryptCredentialHasher  # noqa: E402
from tests.utils.fakes import FakeClock, FixedCodeGenerator, RecordingEmailSender  # noqa: E402
from tests.utils.services import build_reset_services  # noqa: E402


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """A fresh SQLite database per test, so conditional updates run on a real engine."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'resetgate-test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def code_generator():
    return FixedCodeGenerator()


@pytest.fixture(scope="session")
def hasher():
    # Minimum work factor keeps the suite fast
    return BcryptCredentialHasher(rounds=4)


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
def audit_sink():
    return InMemoryAuditSink()


@pytest.fixture
def services(db_session, clock, code_generator, hasher, email_sender, audit_sink):
    return build_reset_services(db_session, clock, code_generator, hasher, email_sender, audit_sink)
