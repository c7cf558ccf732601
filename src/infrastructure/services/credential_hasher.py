"""Bcrypt hashing for reset credentials and passwords.

Uses passlib's ``CryptContext`` so the work factor can be raised later and
old hashes are still accepted.
"""

import structlog
from passlib.context import CryptContext

from src.domain.interfaces.services import ICredentialHasher

logger = structlog.get_logger(__name__)


class BcryptCredentialHasher(ICredentialHasher):
    """Salted bcrypt hashing with constant-time verification.

    Args:
        rounds: bcrypt work factor. Tests use the minimum (4) to stay fast.
    """

    def __init__(self, rounds: int = 12):
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, secret: str) -> str:
        return self._context.hash(secret)

    def verify(self, secret: str, hashed: str) -> bool:
        if not secret or not hashed:
            return False
        try:
            return self._context.verify(secret, hashed)
        except (ValueError, TypeError):
            # Unrecognized or corrupted hash
            logger.warning("Credential hash could not be verified")
            return False
