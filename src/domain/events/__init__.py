"""Domain Events.

Audit events emitted by the password-reset and login flows.
"""

from .password_reset_events import AuditEventName, SecurityAuditEvent

__all__ = ["AuditEventName", "SecurityAuditEvent"]
