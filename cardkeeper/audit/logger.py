"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Traceability of every write a user makes
2. Debugging capability when the hosted backend misbehaves
3. A record of storage cleanups after failed uploads

The audit logger:
- Is async so flows can await it like any other step
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
- Logs locally only; nothing is written back to the backend
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from cardkeeper.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


def configure_logging(level: str = "INFO") -> None:
    """
    Configure stdlib logging and structlog for JSON output on stderr.

    Safe to call more than once; later calls only change the level.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )
    logging.getLogger().setLevel(getattr(logging, level.upper(), logging.INFO))

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

    Writes each AuditEvent to the structured local log at a level
    matching its severity.
    """

    def __init__(self, logger_name: str = "cardkeeper.audit"):
        self._logger = structlog.get_logger(logger_name)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the log write itself failed. Never raises.
        """
        try:
            log_dict = event.to_log_dict()
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
            return True
        except Exception as e:
            try:
                sys.stderr.write(f"audit log write failed: {e}\n")
            except Exception:
                pass
            return False

    async def log_signed_in(self, user_id: UUID, email: Optional[str]) -> None:
        await self.log(AuditEventBuilder.signed_in(user_id=user_id, email=email))

    async def log_signed_up(self, email: str) -> None:
        await self.log(AuditEventBuilder.signed_up(email=email))

    async def log_signed_out(self, user_id: Optional[UUID]) -> None:
        await self.log(AuditEventBuilder.signed_out(user_id=user_id))

    async def log_unauthenticated(self, operation: str) -> None:
        """Log a data operation attempted without a session."""
        await self.log(AuditEventBuilder.unauthenticated(operation=operation))

    async def log_validation_failed(self, form: str, issues: list[dict]) -> None:
        """Log a rejected form submission."""
        await self.log(AuditEventBuilder.validation_failed(form=form, issues=issues))

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        user_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed backend call."""
        event = AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            user_id=user_id,
        )
        await self.log(event)

    async def log_upload_compensated(
        self,
        file_path: str,
        user_id: UUID,
        removed: bool,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log the cleanup of a statement binary whose row insert failed."""
        event = AuditEventBuilder.upload_compensated(
            file_path=file_path,
            user_id=user_id,
            removed=removed,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_auth_failed(self, action: str, email: str, error_message: str) -> None:
        """Log an auth action the provider rejected."""
        await self.log(AuditEventBuilder.auth_failed(
            action=action,
            email=email,
            error_message=error_message,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a multi-step user action (e.g., statement
    upload) and pass it through all subsequent operations.
    """
    return uuid4()
