"""Middleware configuration for the FastAPI application.

Registers CORS, slowapi and a correlation-id middleware.
"""

import uuid

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi.middleware import SlowAPIMiddleware

from src.core.config.settings import settings

CORRELATION_HEADER = "X-Correlation-ID"


def configure_middleware(app: FastAPI) -> None:
    """Configure all middleware for the FastAPI application.

    Args:
        app (FastAPI): The FastAPI application instance
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(SlowAPIMiddleware)

    app.middleware("http")(correlation_id_middleware)


async def correlation_id_middleware(request: Request, call_next):
    """Attaches a correlation id to the request, the log context and the response.

    A client-supplied id is reused only when it parses as a UUID.
    """
    supplied = request.headers.get(CORRELATION_HEADER, "")
    try:
        correlation_id = str(uuid.UUID(supplied))
    except ValueError:
        correlation_id = str(uuid.uuid4())

    request.state.correlation_id = correlation_id
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)
    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.unbind_contextvars("correlation_id")
    response.headers[CORRELATION_HEADER] = correlation_id
    return response
