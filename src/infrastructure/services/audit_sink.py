"""Audit sink infrastructure services.

``StructlogAuditSink`` writes each event as one structured log line on the
``security.audit`` logger, ready for shipping to a SIEM. ``InMemoryAuditSink``
keeps events in memory for development and tests.
"""

from typing import List, Optional

import structlog

from src.domain.events.password_reset_events import AuditEventName, SecurityAuditEvent
from src.domain.interfaces.services import IAuditSink

logger = structlog.get_logger(__name__)


class StructlogAuditSink(IAuditSink):
    def __init__(self, logger_name: str = "security.audit"):
        self._audit_logger = structlog.get_logger(logger_name)

    async def publish(self, event: SecurityAuditEvent) -> None:
        self._audit_logger.info(
            event.name.value,
            audit_event=event.name.value,
            occurred_at=event.occurred_at.isoformat(),
            correlation_id=event.correlation_id,
            **event.fields,
        )


class InMemoryAuditSink(IAuditSink):
    """In-memory audit sink for development and testing.

    Stores every published event for inspection and can optionally mirror
    them to another sink.
    """

    def __init__(self, forward_to: Optional[IAuditSink] = None):
        self._published_events: List[SecurityAuditEvent] = []
        self._forward_to = forward_to

        logger.info("InMemoryAuditSink initialized")

    async def publish(self, event: SecurityAuditEvent) -> None:
        self._published_events.append(event)
        if self._forward_to is not None:
            await self._forward_to.publish(event)

    def get_published_events(self, name: Optional[AuditEventName] = None) -> List[SecurityAuditEvent]:
        """Get published events, optionally only those with the given name."""
        if name is None:
            return list(self._published_events)
        return [event for event in self._published_events if event.name == name]

    def names(self) -> List[AuditEventName]:
        return [event.name for event in self._published_events]

    def clear_events(self) -> None:
        self._published_events.clear()
