"""Authentication API schemas package."""

# flake8: noqa: F401 - re-export

from .requests import ForgotPasswordRequest, LoginRequest, ResetPasswordRequest, VerifyOtpRequest
from .responses import ForgotPasswordResponse, LoginResponse, MessageResponse, VerifyOtpResponse

__all__ = [
    "ForgotPasswordRequest",
    "VerifyOtpRequest",
    "ResetPasswordRequest",
    "LoginRequest",
    "ForgotPasswordResponse",
    "VerifyOtpResponse",
    "MessageResponse",
    "LoginResponse",
]
