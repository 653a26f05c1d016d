"""
Audit Logger

DESIGN DECISION: Every significant ledger action is logged.
This provides:
1. Traceability of mutations and derived actions
2. Debugging capability when persistence or delivery fails
3. A short in-process history the UI can show

The audit logger:
- Is synchronous; it sits on the mutation path, which never suspends
- Never raises; a logging failure must not fail a mutation
"""

from collections import deque
from typing import Optional

import structlog

from pocketledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
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
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events to the structured local log and keeps the most
    recent ones in memory.
    """

    def __init__(self, max_history: int = 200):
        """
        Initialize audit logger.

        Args:
            max_history: How many recent events to keep for recent_events().
                         0 disables the in-memory history.
        """
        self._history: deque[AuditEvent] = deque(maxlen=max_history or None)
        self._keep_history = max_history > 0
        self._logger = structlog.get_logger("pocketledger.audit")
        self._failed_writes = 0

    def log(self, event: AuditEvent) -> None:
        """Log an audit event."""
        if self._keep_history:
            self._history.append(event)

        log_dict = event.to_log_dict()
        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            # A broken log handler must not break the ledger
            self._failed_writes += 1

    @property
    def failed_writes(self) -> int:
        """Events that reached the history but not the log output."""
        return self._failed_writes

    def recent_events(self, limit: int = 50) -> list[AuditEvent]:
        """Most recent events, newest first."""
        return list(reversed(self._history))[:limit]

    def log_persistence_failed(self, error_message: str) -> None:
        self.log(AuditEventBuilder.persistence_failed(error_message))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error that has no dedicated event type."""
        self._logger.error(
            "ledger_error",
            error_type=error_type,
            error_message=error_message,
            details=details or {},
        )
