"""Per-IP throttling for the credential-checking endpoints.

Verify, finalize and login share one slowapi limiter keyed by client
address. The reset-request endpoint is not decorated: its cadence is governed
by the persisted cooldown and hourly caps in the domain layer.
"""

from slowapi import Limiter
from starlette.requests import Request

from src.core.config.settings import settings


def client_ip_key(request: Request) -> str:
    """Rate-limit key: the direct peer address, or ``unknown``."""
    return request.client.host if request.client and request.client.host else "unknown"


def get_limiter() -> Limiter:
    """Factory function for the rate limiter.

    Returns:
        Limiter: A configured slowapi.Limiter instance.
    """
    return Limiter(
        key_func=client_ip_key,
        enabled=settings.RATE_LIMIT_ENABLED,
        default_limits=[],
        storage_uri=settings.RATE_LIMIT_STORAGE_URL,
        strategy=settings.RATE_LIMIT_STRATEGY,
    )


# Shared instance so every router decorates against the same storage
limiter = get_limiter()
AUTH_RATE_LIMIT = settings.RATE_LIMIT_AUTH
