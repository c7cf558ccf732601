"""Per-email cooldown between reset requests."""

import math

import structlog

from src.domain.interfaces.repositories import IResetRequestLogRepository
from src.domain.interfaces.services import IClock
from src.domain.value_objects.reset_policy import ResetPolicy
from src.domain.value_objects.reset_results import CooldownDecision

logger = structlog.get_logger(__name__)


class CooldownGuard:
    """Decides whether enough time has passed since the last request for an email.

    The decision is a pure read of the request log and is evaluated
    server-side before anything is written, so a client cannot shorten the
    cooldown.
    """

    def __init__(self, request_log: IResetRequestLogRepository, clock: IClock, policy: ResetPolicy):
        self._request_log = request_log
        self._clock = clock
        self._policy = policy

    async def check_cooldown(self, email: str) -> CooldownDecision:
        """Checks the cooldown for an already normalized email.

        Returns:
            ``allowed`` when no prior request exists or at least ``cooldown``
            has elapsed; otherwise the whole seconds left, in ``(0, cooldown]``.
        """
        last_request_at = await self._request_log.last_request_at(email)
        if last_request_at is None:
            return CooldownDecision(allowed=True)

        cooldown = self._policy.cooldown.total_seconds()
        elapsed = (self._clock.now() - last_request_at).total_seconds()
        if elapsed >= cooldown:
            return CooldownDecision(allowed=True)

        # A clock that stepped backwards still yields a bounded wait
        wait_seconds = min(self._policy.cooldown_seconds, max(1, math.ceil(cooldown - elapsed)))
        logger.debug("Cooldown active", wait_seconds=wait_seconds)
        return CooldownDecision(allowed=False, wait_seconds=wait_seconds)
