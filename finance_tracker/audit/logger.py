"""
Audit Logger

DESIGN DECISION: Every write to storage and every failure is logged.
This provides:
1. Complete traceability
2. Debugging capability when a backend misbehaves
3. A diagnostic trail for operations that failed and changed nothing

The audit logger:
- Is async so it can sit inside the repository's awaited flows
- Gracefully handles failures (doesn't crash the app if logging fails)
"""

import logging
import sys
from typing import Optional

import structlog

from finance_tracker.models.audit import AuditEvent, AuditEventBuilder


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


def configure_logging(level: str = "INFO") -> None:
    """
    Route stdlib logging (and so structlog) to stderr.

    Safe to call more than once; only the level changes after the first call.
    """
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)
    root.setLevel(level.upper())


class AuditLogger:
    """
    Central audit logging service.

    Events go to the structured local log. Severity picks the log level.
    """

    def __init__(self, logger: Optional[structlog.stdlib.BoundLogger] = None):
        self._logger = logger or structlog.get_logger("finance_tracker.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be written.
        """
        log_dict = event.to_log_dict()

        try:
            if event.severity.value in ("error", "critical"):
                self._logger.error("audit_event", **log_dict)
            elif event.severity.value == "warning":
                self._logger.warning("audit_event", **log_dict)
            elif event.severity.value == "debug":
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Logging must never break the main flow
            print(f"WARNING: Failed to write audit event: {e}", file=sys.stderr)
            return False

        return True

    async def log_data_loaded(self, transaction_count: int, exchange_rate: str) -> None:
        await self.log(AuditEventBuilder.data_loaded(transaction_count, exchange_rate))

    async def log_load_failed(self, error_message: str) -> None:
        await self.log(AuditEventBuilder.load_failed(error_message))

    async def log_validation_failed(
        self,
        operation: str,
        issues: list[dict],
        entity_id: Optional[str] = None,
    ) -> None:
        """Log a payload that was rejected before reaching storage."""
        await self.log(
            AuditEventBuilder.validation_failed(
                operation=operation,
                issues=issues,
                entity_id=entity_id,
            )
        )

    async def log_transaction_added(
        self,
        transaction_id: str,
        description: str,
        amount: str,
    ) -> None:
        await self.log(
            AuditEventBuilder.transaction_added(transaction_id, description, amount)
        )

    async def log_transaction_updated(self, transaction_id: str, fields: list[str]) -> None:
        await self.log(AuditEventBuilder.transaction_updated(transaction_id, fields))

    async def log_transaction_deleted(self, transaction_id: str, existed: bool) -> None:
        await self.log(AuditEventBuilder.transaction_deleted(transaction_id, existed))

    async def log_exchange_rate_updated(self, old_rate: str, new_rate: str) -> None:
        await self.log(AuditEventBuilder.exchange_rate_updated(old_rate, new_rate))

    async def log_save_failed(
        self,
        operation: str,
        error_message: str,
        entity_id: Optional[str] = None,
    ) -> None:
        """Log a storage operation that failed and left state untouched."""
        await self.log(
            AuditEventBuilder.save_failed(
                operation=operation,
                error_message=error_message,
                entity_id=entity_id,
            )
        )
