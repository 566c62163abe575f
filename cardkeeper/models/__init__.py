"""
Data Models Package

This package contains the Pydantic models for every row the backend
returns and every event the application records.
"""

from cardkeeper.models.card import (
    CARD_COLORS,
    CARD_NETWORKS,
    DEFAULT_CARD_COLOR,
    CreditCard,
)
from cardkeeper.models.reminder import PaymentReminder, ReminderStatus
from cardkeeper.models.session import UserSession
from cardkeeper.models.statement import BillStatement, StatementFile
from cardkeeper.models.validation import ValidationIssue, ValidationResult
from cardkeeper.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Card models
    "CARD_COLORS",
    "CARD_NETWORKS",
    "DEFAULT_CARD_COLOR",
    "CreditCard",
    # Reminder models
    "PaymentReminder",
    "ReminderStatus",
    # Statement models
    "BillStatement",
    "StatementFile",
    # Session
    "UserSession",
    # Validation
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
