"""Best-effort audit emission for the reset flow."""

from typing import Any, Optional

import structlog

from src.domain.events.password_reset_events import AuditEventName, SecurityAuditEvent
from src.domain.interfaces.services import IAuditSink, IClock

logger = structlog.get_logger(__name__)


class ResetAuditTrail:
    """Wraps an ``IAuditSink`` so that a failing sink never fails a request.

    The reset components report every rejection and transition through
    ``record``. Sink errors are logged and dropped.
    """

    def __init__(self, sink: IAuditSink, clock: IClock):
        self._sink = sink
        self._clock = clock

    async def record(
        self,
        name: AuditEventName,
        correlation_id: Optional[str] = None,
        **fields: Any,
    ) -> None:
        event = SecurityAuditEvent(
            name=name,
            occurred_at=self._clock.now(),
            fields=fields,
            correlation_id=correlation_id,
        )
        try:
            await self._sink.publish(event)
        except Exception as e:  # noqa: BLE001 - audit is fire-and-forget
            logger.error(
                "Failed to publish audit event",
                audit_event=name.value,
                error_type=type(e).__name__,
                correlation_id=correlation_id,
            )
