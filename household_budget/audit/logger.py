"""
Audit Logger

DESIGN DECISION: Every change to the budget, every login attempt and
every backup operation is logged.
This provides:
1. Traceability of edits to a document that is rewritten on every save
2. Debugging capability for failed imports and syncs
3. A short activity history the settings page can show

The audit logger:
- Renders events through structlog (JSON lines, console in debug mode)
- Never raises into the caller if logging fails
- Keeps the most recent events in memory
"""

import logging
from collections import deque
from typing import Optional
from uuid import UUID, uuid4

import structlog

from household_budget.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


def configure_logging(debug: bool = False) -> None:
    """
    Route structlog through the standard library logger.

    JSON lines by default; debug mode switches to the console renderer
    and lowers the level to DEBUG.
    """
    logging.basicConfig(format="%(message)s")
    logging.getLogger().setLevel(logging.DEBUG if debug else logging.INFO)
    renderer = structlog.dev.ConsoleRenderer() if debug else structlog.processors.JSONRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Logs events to the structured local log and remembers the latest
    `history_size` of them.
    """

    def __init__(self, history_size: int = 200):
        self._logger = structlog.get_logger("household_budget.audit")
        self._history: deque[AuditEvent] = deque(maxlen=history_size)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be rendered.
        """
        self._history.append(event)
        log_dict = event.to_log_dict()

        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Log failure but don't raise
            self._logger.error(
                "audit_render_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

        return True

    def recent_events(self, limit: int = 20) -> list[AuditEvent]:
        """Most recent events, newest first."""
        return list(reversed(self._history))[:limit]

    def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a multi-step action (e.g., a Drive sync).
    """
    return uuid4()
