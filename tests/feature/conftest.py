import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.core.ratelimiter import limiter
from src.infrastructure.database.async_db import get_async_db
from src.infrastructure.dependency_injection.auth_dependencies import (
    get_audit_sink,
    get_clock,
    get_code_generator,
    get_credential_hasher,
    get_email_sender,
)
from src.main import app


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """slowapi keeps counters in process memory; start every test clean."""
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def test_app(session_factory, clock, code_generator, hasher, email_sender, audit_sink):
    async def override_get_async_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_db] = override_get_async_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_code_generator] = lambda: code_generator
    app.dependency_overrides[get_credential_hasher] = lambda: hasher
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    app.dependency_overrides[get_audit_sink] = lambda: audit_sink
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def async_client(test_app):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as ac:
        yield ac
