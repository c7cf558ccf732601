"""Request helpers shared by the auth routes."""

import uuid

from fastapi import Request


def client_ip_of(request: Request) -> str:
    return request.client.host if request.client and request.client.host else "unknown"


def correlation_id_of(request: Request) -> str:
    """Returns the id set by the correlation middleware, or a fresh one."""
    return getattr(request.state, "correlation_id", None) or str(uuid.uuid4())
