"""
Logging configuration module for structured logging.

This module configures the application's logging system using structlog,
with JSON output for production and human-readable console output for
development. Audit events are emitted on the ``security.audit`` logger by
``src.infrastructure.services.audit_sink.StructlogAuditSink``.
"""

import logging

import structlog


def configure_logging(log_level: str = "INFO", json_logs: bool = False) -> None:
    """
    Configures the application's logging system.

    Sets up structlog with:
    1. Context variables merged into every event (``correlation_id``)
    2. ISO format timestamps
    3. Log level and logger name
    4. JSON or console rendering
    5. Standard library logger factory, so records honour ``log_level``
    """
    logging.basicConfig(format="%(message)s", level=getattr(logging, log_level.upper(), logging.INFO))

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# Application-wide logger for startup and lifecycle messages
logger = structlog.get_logger("resetgate")
