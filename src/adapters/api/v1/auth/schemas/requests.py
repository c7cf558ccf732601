"""Request payloads for the reset and login endpoints.

Emails are accepted as plain strings and validated by the domain
``Email`` value object, so normalization rules live in one place. Field
names are camelCase on the wire.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ForgotPasswordRequest(CamelModel):
    """Payload expected by ``POST /auth/forgot-password``."""

    email: str = Field(..., min_length=1, max_length=320, examples=["john@example.com"])


class VerifyOtpRequest(CamelModel):
    """Payload expected by ``POST /auth/verify-otp``."""

    email: str = Field(..., min_length=1, max_length=320, examples=["john@example.com"])
    otp: str = Field(..., min_length=1, max_length=32, examples=["482913"])


class ResetPasswordRequest(CamelModel):
    """Payload expected by ``POST /auth/reset-password``.

    Password length is checked by the finalizer so that a short password
    gets the same message as everywhere else.
    """

    email: str = Field(..., min_length=1, max_length=320)
    reset_token: str = Field(..., min_length=1, max_length=256)
    new_password: str = Field(..., min_length=1, max_length=1024)


class LoginRequest(CamelModel):
    email: str = Field(..., min_length=1, max_length=320)
    password: str = Field(..., min_length=1, max_length=1024)
