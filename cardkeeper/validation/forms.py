"""
Form Schemas

Declarative per-form field constraints, shared by the create and edit
pages. Each form model normalizes raw widget input (strings from text
boxes, dates from date pickers) into typed values, or fails with one
message per offending field.

DESIGN DECISION: Every field has a default and defaults are validated,
so a missing key produces the same friendly message as an empty one
instead of pydantic's generic "Field required".

No cross-field rules live here. A due date before the bill date is
accepted; see `cardkeeper.calculations.bill_cycle_days`.
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from cardkeeper.models.card import DEFAULT_CARD_COLOR


DATE_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")
LAST_FOUR_PATTERN = re.compile(r"^[0-9]+$")

MIN_REMINDER_AMOUNT = Decimal("0.01")


# =============================================================================
# FIELD COERCION HELPERS
# =============================================================================

def required_text(value: Any, message: str) -> str:
    """Non-empty string after stripping whitespace."""
    if value is None or not str(value).strip():
        raise PydanticCustomError("missing", message)
    return str(value).strip()


def optional_date(value: Any, label: str) -> Optional[date]:
    """Empty, or a real calendar date written as YYYY-MM-DD."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None

    message = f"{label} must be in YYYY-MM-DD format"
    if not DATE_PATTERN.match(text):
        raise PydanticCustomError("invalid_format", message)
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise PydanticCustomError("invalid_format", message)


def required_date(value: Any, label: str) -> date:
    parsed = optional_date(value, label)
    if parsed is None:
        raise PydanticCustomError("missing", f"{label} is required")
    return parsed


def coerce_amount(
    value: Any,
    label: str,
    minimum: Decimal = Decimal("0"),
    minimum_message: Optional[str] = None,
) -> Decimal:
    """
    Coerce text input to Decimal.

    Blank input counts as zero, matching how a cleared number box behaves.
    """
    if value is None:
        value = 0
    if isinstance(value, str):
        value = value.strip().replace(",", "") or "0"

    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise PydanticCustomError("not_a_number", f"{label} must be a number")

    if not amount.is_finite():
        raise PydanticCustomError("not_a_number", f"{label} must be a number")

    if amount < minimum:
        raise PydanticCustomError(
            "below_minimum",
            minimum_message or f"{label} must be a positive number",
        )
    return amount


# =============================================================================
# CREDIT CARD FORM
# =============================================================================

class CreditCardForm(BaseModel):
    """Add/edit card form."""
    model_config = ConfigDict(validate_default=True, extra="ignore")

    card_name: str = ""
    last_four_digits: str = ""
    card_network: str = ""
    bank_name: str = ""
    color: str = DEFAULT_CARD_COLOR
    card_image: Optional[str] = None

    last_bill_date: Optional[date] = None
    last_due_date: Optional[date] = None
    joining_date: Optional[date] = None
    expiry_date: Optional[date] = None

    credit_limit: Decimal = Field(default=Decimal("0"))
    current_balance: Decimal = Field(default=Decimal("0"))
    joining_fees: Decimal = Field(default=Decimal("0"))
    annual_fees: Decimal = Field(default=Decimal("0"))

    @field_validator('card_name', mode='before')
    @classmethod
    def validate_card_name(cls, v):
        return required_text(v, "Card name is required")

    @field_validator('card_network', mode='before')
    @classmethod
    def validate_card_network(cls, v):
        return required_text(v, "Card network is required")

    @field_validator('bank_name', mode='before')
    @classmethod
    def validate_bank_name(cls, v):
        return required_text(v, "Bank name is required")

    @field_validator('color', mode='before')
    @classmethod
    def validate_color(cls, v):
        return required_text(v, "Card color is required")

    @field_validator('card_image', mode='before')
    @classmethod
    def blank_image_is_none(cls, v):
        if v is None or not str(v).strip():
            return None
        return str(v).strip()

    @field_validator('last_four_digits', mode='before')
    @classmethod
    def validate_last_four(cls, v):
        text = "" if v is None else str(v).strip()
        if len(text) != 4:
            raise PydanticCustomError(
                "invalid_length",
                "Last four digits must be exactly 4 digits",
            )
        if not LAST_FOUR_PATTERN.match(text):
            raise PydanticCustomError(
                "invalid_format",
                "Last four digits must contain only digits",
            )
        return text

    @field_validator('last_bill_date', mode='before')
    @classmethod
    def validate_last_bill_date(cls, v):
        return optional_date(v, "Last bill date")

    @field_validator('last_due_date', mode='before')
    @classmethod
    def validate_last_due_date(cls, v):
        return optional_date(v, "Last due date")

    @field_validator('joining_date', mode='before')
    @classmethod
    def validate_joining_date(cls, v):
        return optional_date(v, "Joining date")

    @field_validator('expiry_date', mode='before')
    @classmethod
    def validate_expiry_date(cls, v):
        return optional_date(v, "Expiry date")

    @field_validator('credit_limit', mode='before')
    @classmethod
    def validate_credit_limit(cls, v):
        return coerce_amount(v, "Credit limit")

    @field_validator('current_balance', mode='before')
    @classmethod
    def validate_current_balance(cls, v):
        return coerce_amount(v, "Current balance")

    @field_validator('joining_fees', mode='before')
    @classmethod
    def validate_joining_fees(cls, v):
        return coerce_amount(v, "Joining fees")

    @field_validator('annual_fees', mode='before')
    @classmethod
    def validate_annual_fees(cls, v):
        return coerce_amount(v, "Annual fees")


# =============================================================================
# PAYMENT REMINDER FORM
# =============================================================================

class ReminderForm(BaseModel):
    """Add/edit payment reminder form."""
    model_config = ConfigDict(validate_default=True, extra="ignore")

    credit_card_id: UUID = Field(default=None)
    due_date: date = Field(default=None)
    amount: Decimal = Field(default=Decimal("0"))
    notes: Optional[str] = None
    is_paid: bool = False

    @field_validator('credit_card_id', mode='before')
    @classmethod
    def validate_card(cls, v):
        if isinstance(v, UUID):
            return v
        text = required_text(v, "Please select a credit card")
        try:
            return UUID(text)
        except ValueError:
            raise PydanticCustomError("invalid_format", "Please select a credit card")

    @field_validator('due_date', mode='before')
    @classmethod
    def validate_due_date(cls, v):
        return required_date(v, "Due date")

    @field_validator('amount', mode='before')
    @classmethod
    def validate_amount(cls, v):
        return coerce_amount(
            v,
            "Amount",
            minimum=MIN_REMINDER_AMOUNT,
            minimum_message="Amount must be greater than 0",
        )

    @field_validator('notes', mode='before')
    @classmethod
    def blank_notes_are_none(cls, v):
        if v is None or not str(v).strip():
            return None
        return str(v).strip()

    @field_validator('is_paid', mode='before')
    @classmethod
    def null_is_unpaid(cls, v):
        return False if v is None else v


# =============================================================================
# STATEMENT UPLOAD FORM
# =============================================================================

class StatementUploadForm(BaseModel):
    """
    Metadata entered in the upload dialog.

    The file itself is checked by FormValidator.validate_statement,
    because its limits come from settings.
    """
    model_config = ConfigDict(validate_default=True, extra="ignore")

    bill_date: date = Field(default=None)
    due_date: date = Field(default=None)
    amount: Decimal = Field(default=None)

    @field_validator('bill_date', mode='before')
    @classmethod
    def validate_bill_date(cls, v):
        return required_date(v, "Bill date")

    @field_validator('due_date', mode='before')
    @classmethod
    def validate_due_date(cls, v):
        return required_date(v, "Due date")

    @field_validator('amount', mode='before')
    @classmethod
    def validate_amount(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            raise PydanticCustomError("missing", "Amount is required")
        return coerce_amount(v, "Amount")
