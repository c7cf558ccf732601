"""Hourly request caps per email and per origin address."""

import structlog

from src.domain.interfaces.repositories import IResetRequestLogRepository
from src.domain.interfaces.services import IClock
from src.domain.value_objects.reset_policy import ResetPolicy
from src.domain.value_objects.reset_results import RateLimitDecision

logger = structlog.get_logger(__name__)

EMAIL_RATE_LIMITED = "email_rate_limited"
IP_RATE_LIMITED = "ip_rate_limited"


class ResetRateLimiter:
    """Rolling-window caps backed by the persisted request log.

    Counting is a query over the log, so the caps hold across processes and
    restarts. The caller runs ``check_and_count`` inside a transaction; the
    request is appended to the log only when both windows admit it.
    """

    def __init__(self, request_log: IResetRequestLogRepository, clock: IClock, policy: ResetPolicy):
        self._request_log = request_log
        self._clock = clock
        self._policy = policy

    async def check_and_count(self, email: str, ip: str) -> RateLimitDecision:
        now = self._clock.now()
        since = now - self._policy.rate_window

        email_count = await self._request_log.count_for_email_since(email, since)
        if email_count >= self._policy.max_requests_per_email:
            return RateLimitDecision(allowed_by_email=False, allowed_by_ip=True, reason=EMAIL_RATE_LIMITED)

        ip_count = await self._request_log.count_for_ip_since(ip, since)
        if ip_count >= self._policy.max_requests_per_ip:
            return RateLimitDecision(allowed_by_email=True, allowed_by_ip=False, reason=IP_RATE_LIMITED)

        await self._request_log.append(email, ip, now)
        logger.debug("Reset request counted", email_count=email_count + 1, ip_count=ip_count + 1)
        return RateLimitDecision(allowed_by_email=True, allowed_by_ip=True)
