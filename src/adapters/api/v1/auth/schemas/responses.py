"""Response bodies. Every success body carries ``ok: true``."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    ok: bool = True


class ForgotPasswordResponse(CamelResponse):
    message: str
    cooldown_seconds: int = Field(..., examples=[60])


class VerifyOtpResponse(CamelResponse):
    reset_token: str
    expires_in: int = Field(..., examples=[300])


class MessageResponse(CamelResponse):
    message: str


class LoginResponse(CamelResponse):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
