"""Concurrent verification against one reset record.

Each simulated request gets its own session and connection, as it would
under FastAPI, so the database decides which conditional update wins.
"""

import asyncio

import pytest
from sqlalchemy import select

from src.core.exceptions import (
    AttemptsExhaustedError,
    InvalidCredentialError,
    NoActiveRequestError,
    ResetTokenAlreadyIssuedError,
)
from src.domain.entities.password_reset_record import PasswordResetRecord
from tests.factories.user import persist_user
from tests.utils.fakes import FIXED_OTP
from tests.utils.services import build_reset_services

EMAIL = "alice@example.com"
IP = "203.0.113.7"


class TestConcurrentVerification:
    @pytest.fixture
    def service_deps(self, clock, code_generator, hasher, email_sender, audit_sink):
        return clock, code_generator, hasher, email_sender, audit_sink

    async def _issue_code(self, session_factory, hasher, service_deps):
        async with session_factory() as session:
            await persist_user(session, hasher, email=EMAIL)
            await build_reset_services(session, *service_deps).issuer.request_reset(EMAIL, IP)

    async def _verify(self, session_factory, service_deps, code):
        async with session_factory() as session:
            services = build_reset_services(session, *service_deps)
            try:
                return await services.verifier.verify(EMAIL, code)
            except Exception as e:  # noqa: BLE001 - outcomes are tallied by type
                return e

    async def _attempts(self, session_factory) -> int:
        async with session_factory() as session:
            result = await session.execute(select(PasswordResetRecord.attempts))
            return result.scalar_one()

    @pytest.mark.asyncio
    async def test_parallel_wrong_guesses_never_exceed_limit(self, session_factory, hasher, service_deps):
        # Arrange
        await self._issue_code(session_factory, hasher, service_deps)

        # Act
        outcomes = await asyncio.gather(
            *(self._verify(session_factory, service_deps, "000000") for _ in range(12))
        )

        # Assert
        wrong = [o for o in outcomes if isinstance(o, InvalidCredentialError)]
        refused = [o for o in outcomes if isinstance(o, (AttemptsExhaustedError, NoActiveRequestError))]
        assert len(wrong) == 5
        assert len(wrong) + len(refused) == 12
        assert sorted(o.remaining_attempts for o in wrong) == [0, 1, 2, 3, 4]
        assert await self._attempts(session_factory) == 5

    @pytest.mark.asyncio
    async def test_parallel_correct_guesses_issue_one_token(self, session_factory, hasher, service_deps):
        await self._issue_code(session_factory, hasher, service_deps)

        outcomes = await asyncio.gather(
            *(self._verify(session_factory, service_deps, FIXED_OTP) for _ in range(4))
        )

        grants = [o for o in outcomes if not isinstance(o, Exception)]
        losers = [o for o in outcomes if isinstance(o, (ResetTokenAlreadyIssuedError, NoActiveRequestError))]
        assert len(grants) == 1
        assert len(losers) == 3
