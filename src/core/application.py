"""Application factory for creating and configuring the FastAPI application.

Creates a FastAPI application with middleware, exception handlers and
routers registered.
"""

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from src.adapters.api.v1 import api_router
from src.core.config.settings import settings
from src.core.handlers import register_exception_handlers
from src.core.lifecycle import create_lifespan_manager
from src.core.middleware import configure_middleware
from src.core.ratelimiter import limiter


def create_application() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: The configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Password reset with one-time codes and single-use reset tokens.",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=create_lifespan_manager(),
        default_response_class=JSONResponse,
    )

    # slowapi's middleware and decorators look the limiter up on app state
    app.state.limiter = limiter

    configure_middleware(app)

    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api/v1")

    return app
