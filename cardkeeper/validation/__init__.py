"""Form validation package."""

from cardkeeper.validation.forms import (
    MIN_REMINDER_AMOUNT,
    CreditCardForm,
    ReminderForm,
    StatementUploadForm,
)
from cardkeeper.validation.validator import FormValidator, issues_from_error

__all__ = [
    "MIN_REMINDER_AMOUNT",
    "CreditCardForm",
    "FormValidator",
    "ReminderForm",
    "StatementUploadForm",
    "issues_from_error",
]
