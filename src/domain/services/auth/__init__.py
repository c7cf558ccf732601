"""Login domain service."""

from .user_authentication import LoginResult, UserAuthenticationService

__all__ = ["LoginResult", "UserAuthenticationService"]
