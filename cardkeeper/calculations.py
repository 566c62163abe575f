"""
Derived-Field Calculator

Pure functions, no side effects, no I/O.

`bill_cycle_days` and `available_credit` are evaluated once when a card
form is submitted and stored next to the user-entered values. They are
not recomputed on read, so a row edited outside this code path keeps
whatever derived values it was last saved with.

Neither result is clamped: a due date before the bill date gives a
negative cycle, and a balance above the limit gives negative available
credit. Both are shown to the user as-is.
"""

import calendar
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional, Union

from cardkeeper.models.reminder import ReminderStatus
from cardkeeper.validation.forms import CreditCardForm


DateLike = Union[date, datetime, str, None]
Number = Union[Decimal, int, float]


def as_date(value: DateLike) -> Optional[date]:
    """Accept a date, a datetime, an ISO string or blank."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    return date.fromisoformat(text)


def bill_cycle_days(last_bill_date: DateLike, last_due_date: DateLike) -> Optional[int]:
    """
    Whole days from the last bill date to the last due date.

    Returns None when either date is missing.
    """
    bill = as_date(last_bill_date)
    due = as_date(last_due_date)
    if bill is None or due is None:
        return None
    return (due - bill).days


def available_credit(credit_limit: Number, current_balance: Number) -> Number:
    """Credit limit minus current balance, unclamped."""
    return credit_limit - current_balance


def apply_derived_fields(form: CreditCardForm) -> dict:
    """
    Build the write payload for a validated card form.

    The derived fields are computed from this submission only, on both
    create and edit.
    """
    payload = form.model_dump()
    payload["bill_cycle_days"] = bill_cycle_days(form.last_bill_date, form.last_due_date)
    payload["available_credit"] = available_credit(form.credit_limit, form.current_balance)
    return payload


# =============================================================================
# DISPLAY HELPERS
# =============================================================================

def utilization_percent(current_balance: Number, credit_limit: Number) -> float:
    """Balance as a percentage of the limit; 0 when there is no limit."""
    if not credit_limit:
        return 0.0
    return float(current_balance) / float(credit_limit) * 100


def is_due_date_approaching(
    due_date: DateLike,
    today: Optional[date] = None,
    window_days: int = 7,
) -> bool:
    """True when the due date is 1 to `window_days` days away."""
    due = as_date(due_date)
    if due is None:
        return False
    today = today or date.today()
    days_left = (due - today).days
    return 0 < days_left <= window_days


def reminder_status(
    due_date: DateLike,
    is_paid: bool,
    today: Optional[date] = None,
    due_soon_days: int = 3,
) -> ReminderStatus:
    """Classify a reminder relative to today."""
    if is_paid:
        return ReminderStatus.PAID

    due = as_date(due_date)
    today = today or date.today()

    if due < today:
        return ReminderStatus.OVERDUE
    if due == today:
        return ReminderStatus.DUE_TODAY
    if due < today + timedelta(days=due_soon_days):
        return ReminderStatus.DUE_SOON
    return ReminderStatus.UPCOMING


def default_statement_dates(
    last_bill_date: DateLike,
    last_due_date: DateLike,
    today: Optional[date] = None,
) -> Optional[tuple[date, date]]:
    """
    Suggest bill and due dates for this month's statement.

    The bill date falls on the same day of the month as the card's last
    bill (clamped to the month's last day), and the due date keeps the
    card's cycle length. None when the card has no cycle on record.
    """
    bill = as_date(last_bill_date)
    cycle = bill_cycle_days(last_bill_date, last_due_date)
    if bill is None or cycle is None:
        return None

    today = today or date.today()
    last_day = calendar.monthrange(today.year, today.month)[1]
    this_bill = date(today.year, today.month, min(bill.day, last_day))
    return this_bill, this_bill + timedelta(days=cycle)
