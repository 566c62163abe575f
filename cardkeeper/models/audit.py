"""
Audit Models for Card Keeper

Every user-visible action (sign-in, card edits, reminder toggles,
statement uploads) produces an AuditEvent. Events are written to the
structured log stream; they are never edited after the fact.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Session
    USER_SIGNED_IN = "user_signed_in"
    USER_SIGNED_UP = "user_signed_up"
    USER_SIGNED_OUT = "user_signed_out"
    AUTH_FAILED = "auth_failed"
    UNAUTHENTICATED_ACCESS = "unauthenticated_access"

    # Cards
    CARD_CREATED = "card_created"
    CARD_UPDATED = "card_updated"
    CARD_DELETED = "card_deleted"

    # Reminders
    REMINDER_CREATED = "reminder_created"
    REMINDER_UPDATED = "reminder_updated"
    REMINDER_DELETED = "reminder_deleted"
    REMINDER_PAID_TOGGLED = "reminder_paid_toggled"

    # Statements
    STATEMENT_UPLOADED = "statement_uploaded"
    STATEMENT_DELETED = "statement_deleted"
    STATEMENT_URL_ISSUED = "statement_url_issued"
    UPLOAD_COMPENSATED = "upload_compensated"

    # Failures
    VALIDATION_FAILED = "validation_failed"
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """A single audit event."""

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about, and for whom?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'card', 'reminder', 'statement')"
    )
    entity_id: Optional[UUID] = None
    user_id: Optional[UUID] = None

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., upload and its cleanup)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "user_id": str(self.user_id) if self.user_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.card_deleted(card_id, user_id)
        event = AuditEventBuilder.reminder_toggled(reminder_id, user_id, True)
    """

    @staticmethod
    def signed_in(user_id: UUID, email: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SIGNED_IN,
            user_id=user_id,
            description="User signed in",
            details={"email": email},
            is_user_action=True,
        )

    @staticmethod
    def signed_up(email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SIGNED_UP,
            description="New account registered",
            details={"email": email},
            is_user_action=True,
        )

    @staticmethod
    def signed_out(user_id: Optional[UUID]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SIGNED_OUT,
            user_id=user_id,
            description="User signed out",
            is_user_action=True,
        )

    @staticmethod
    def auth_failed(action: str, email: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTH_FAILED,
            severity=AuditSeverity.WARNING,
            description=f"{action} rejected by the auth provider",
            details={"action": action, "email": email},
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def unauthenticated(operation: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.UNAUTHENTICATED_ACCESS,
            severity=AuditSeverity.WARNING,
            description=f"Blocked {operation}: no active session",
            details={"operation": operation},
        )

    @staticmethod
    def card_saved(
        card_id: UUID,
        user_id: UUID,
        card_name: str,
        created: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.CARD_CREATED if created
                else AuditEventType.CARD_UPDATED
            ),
            entity_type="card",
            entity_id=card_id,
            user_id=user_id,
            description=f"Card {'added' if created else 'updated'}: {card_name}",
            details={"card_name": card_name},
            is_user_action=True,
        )

    @staticmethod
    def card_deleted(card_id: UUID, user_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CARD_DELETED,
            entity_type="card",
            entity_id=card_id,
            user_id=user_id,
            description="Card deleted",
            is_user_action=True,
        )

    @staticmethod
    def reminder_saved(
        reminder_id: UUID,
        user_id: UUID,
        amount: str,
        created: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.REMINDER_CREATED if created
                else AuditEventType.REMINDER_UPDATED
            ),
            entity_type="reminder",
            entity_id=reminder_id,
            user_id=user_id,
            description=f"Reminder {'added' if created else 'updated'}: ₹{amount}",
            details={"amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def reminder_deleted(reminder_id: UUID, user_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMINDER_DELETED,
            entity_type="reminder",
            entity_id=reminder_id,
            user_id=user_id,
            description="Reminder deleted",
            is_user_action=True,
        )

    @staticmethod
    def reminder_toggled(
        reminder_id: UUID,
        user_id: UUID,
        is_paid: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMINDER_PAID_TOGGLED,
            entity_type="reminder",
            entity_id=reminder_id,
            user_id=user_id,
            description=f"Reminder marked {'paid' if is_paid else 'unpaid'}",
            details={"is_paid": is_paid},
            is_user_action=True,
        )

    @staticmethod
    def statement_uploaded(
        statement_id: UUID,
        user_id: UUID,
        file_name: str,
        file_size: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATEMENT_UPLOADED,
            entity_type="statement",
            entity_id=statement_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Statement uploaded: {file_name}",
            details={
                "file_name": file_name,
                "file_size_bytes": file_size,
            },
            is_user_action=True,
        )

    @staticmethod
    def statement_deleted(statement_id: UUID, user_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATEMENT_DELETED,
            entity_type="statement",
            entity_id=statement_id,
            user_id=user_id,
            description="Statement deleted",
            is_user_action=True,
        )

    @staticmethod
    def statement_url_issued(
        statement_id: UUID,
        user_id: UUID,
        expires_in: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATEMENT_URL_ISSUED,
            entity_type="statement",
            entity_id=statement_id,
            user_id=user_id,
            description=f"Signed URL issued for {expires_in}s",
            details={"expires_in": expires_in},
        )

    @staticmethod
    def upload_compensated(
        file_path: str,
        user_id: UUID,
        removed: bool,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.UPLOAD_COMPENSATED,
            severity=AuditSeverity.WARNING if removed else AuditSeverity.ERROR,
            entity_type="statement",
            user_id=user_id,
            correlation_id=correlation_id,
            description=(
                "Orphaned statement file removed after failed record insert"
                if removed
                else "Failed to remove orphaned statement file"
            ),
            details={"file_path": file_path, "removed": removed},
            error_message=error_message,
        )

    @staticmethod
    def validation_failed(form: str, issues: list[dict]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="form",
            description=f"{form} validation failed with {len(issues)} issues",
            details={"form": form, "issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        user_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            description=f"Backend operation failed: {operation}",
            details={"operation": operation},
            error_message=error_message,
        )
