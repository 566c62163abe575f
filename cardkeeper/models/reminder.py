"""
Payment Reminder Models

Many reminders reference one card. Deleting a card is expected to
cascade to its reminders through the database's foreign key rules;
the client does not delete them itself.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator


class ReminderStatus(str, Enum):
    """Display status of a reminder relative to today."""
    PAID = "paid"
    OVERDUE = "overdue"
    DUE_TODAY = "due_today"
    DUE_SOON = "due_soon"
    UPCOMING = "upcoming"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class PaymentReminder(BaseModel):
    """A payment-due reminder for one of the user's cards."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID
    user_id: UUID
    credit_card_id: UUID

    due_date: date
    amount: Decimal
    is_paid: bool = False
    notes: Optional[str] = None

    created_at: Optional[datetime] = None

    @field_validator('is_paid', mode='before')
    @classmethod
    def null_is_unpaid(cls, v):
        return False if v is None else v

    @field_validator('notes')
    @classmethod
    def blank_notes_are_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None
