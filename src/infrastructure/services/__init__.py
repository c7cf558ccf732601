"""Infrastructure Services.

Concrete implementations of the domain service ports.

Service Categories:
- Time and randomness: SystemClock, SecureCodeGenerator
- Hashing: BcryptCredentialHasher (passlib)
- Delivery: SmtpEmailSender (FastMail over SMTP)
- Auditing: StructlogAuditSink, InMemoryAuditSink
- Login tokens: JwtAccessTokenService (python-jose)
"""

from .audit_sink import InMemoryAuditSink, StructlogAuditSink
from .clock import SystemClock
from .code_generator import SecureCodeGenerator
from .credential_hasher import BcryptCredentialHasher
from .token_service import JwtAccessTokenService

__all__ = [
    "SystemClock",
    "SecureCodeGenerator",
    "BcryptCredentialHasher",
    "StructlogAuditSink",
    "InMemoryAuditSink",
    "JwtAccessTokenService",
]
