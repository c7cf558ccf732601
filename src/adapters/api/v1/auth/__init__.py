from __future__ import annotations

"""Authentication router package, bundles the reset and login endpoints."""

from fastapi import APIRouter

from .routes import forgot_password as forgot_password_route
from .routes import login as login_route
from .routes import reset_password as reset_password_route
from .routes import verify_otp as verify_otp_route

router = APIRouter(prefix="/auth", tags=["auth"])

# Delegate to sub-routers ----------------------------------------------------

router.include_router(forgot_password_route.router, prefix="/forgot-password")
router.include_router(verify_otp_route.router, prefix="/verify-otp")
router.include_router(reset_password_route.router, prefix="/reset-password")
router.include_router(login_route.router, prefix="/login")

__all__ = ["router"]
