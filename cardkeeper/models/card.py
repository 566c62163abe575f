"""
Credit Card Models

A CreditCard is a row of the `credit_cards` table as the backend returns
it. Input constraints (exactly four digits, non-negative money, date
format) are enforced by the form schemas in `cardkeeper.validation`,
not here: rows written by older versions of the app must still load.

DESIGN DECISION: `bill_cycle_days` and `available_credit` are stored
alongside the user-entered fields. They are computed once at submission
time and never recomputed on read.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator


# =============================================================================
# UI OPTIONS
# =============================================================================

CARD_NETWORKS: dict[str, str] = {
    "visa": "Visa",
    "mastercard": "Mastercard",
    "amex": "American Express",
    "discover": "Discover",
    "rupay": "RuPay",
    "other": "Other",
}

CARD_COLORS: dict[str, str] = {
    "#1e293b": "Navy",
    "#0f172a": "Dark Blue",
    "#18181b": "Dark Gray",
    "#171717": "Black",
    "#701a75": "Purple",
    "#9f1239": "Red",
    "#1e40af": "Blue",
    "#065f46": "Green",
}

DEFAULT_CARD_COLOR = "#1e293b"


# =============================================================================
# CORE CARD MODEL
# =============================================================================

class CreditCard(BaseModel):
    """
    A credit card owned by the signed-in user.

    Money is held as Decimal. `available_credit` may be negative when the
    card is over its limit; nothing clamps it.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    # Identity
    id: UUID
    user_id: UUID

    # Descriptive fields
    card_name: str
    last_four_digits: str
    card_network: str
    bank_name: str
    color: str = DEFAULT_CARD_COLOR
    card_image: Optional[str] = None

    # Dates
    joining_date: Optional[date] = None
    expiry_date: Optional[date] = None
    last_bill_date: Optional[date] = None
    last_due_date: Optional[date] = None

    # Money
    credit_limit: Decimal = Decimal("0")
    current_balance: Decimal = Decimal("0")
    joining_fees: Decimal = Decimal("0")
    annual_fees: Decimal = Decimal("0")

    # Derived at submission time
    bill_cycle_days: Optional[int] = None
    available_credit: Optional[Decimal] = None

    created_at: Optional[datetime] = None

    @field_validator(
        'joining_date', 'expiry_date', 'last_bill_date', 'last_due_date',
        mode='before',
    )
    @classmethod
    def blank_date_is_none(cls, v):
        if v == "":
            return None
        return v

    @field_validator(
        'credit_limit', 'current_balance', 'joining_fees', 'annual_fees',
        mode='before',
    )
    @classmethod
    def null_money_is_zero(cls, v):
        if v is None or v == "":
            return Decimal("0")
        return v

    @property
    def network_label(self) -> str:
        """Human label for the card network."""
        return CARD_NETWORKS.get(self.card_network.lower(), self.card_network)

    @property
    def masked_number(self) -> str:
        """Card number as shown on the card face."""
        return f"•••• •••• •••• {self.last_four_digits}"

    @property
    def display_available_credit(self) -> Decimal:
        """
        Stored available credit, or limit minus balance for rows
        written before the derived field existed.
        """
        if self.available_credit is not None:
            return self.available_credit
        return self.credit_limit - self.current_balance
