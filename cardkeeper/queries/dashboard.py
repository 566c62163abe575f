"""
Dashboard Aggregation

DESIGN DECISION: The dashboard shows only numbers computed here from
rows already fetched for the user. Nothing is estimated or projected;
an empty account shows zeros and an empty reminder list.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from cardkeeper.calculations import utilization_percent
from cardkeeper.models.card import CreditCard
from cardkeeper.models.reminder import PaymentReminder


class DashboardSummary(BaseModel):
    """Totals across every card plus the next reminders to act on."""

    card_count: int = 0
    total_balance: Decimal = Decimal("0")
    total_limit: Decimal = Decimal("0")
    total_available: Decimal = Decimal("0")
    upcoming_reminders: list[PaymentReminder] = Field(default_factory=list)

    @property
    def utilization(self) -> float:
        return utilization_percent(self.total_balance, self.total_limit)

    @property
    def has_cards(self) -> bool:
        return self.card_count > 0


def upcoming_reminders(
    reminders: Iterable[PaymentReminder],
    today: Optional[date] = None,
    limit: int = 3,
    grace_days: int = 7,
) -> list[PaymentReminder]:
    """
    Unpaid reminders still worth showing, earliest due date first.

    A reminder stays on the dashboard until `grace_days` after its due
    date, so a recently missed payment is still visible.
    """
    today = today or date.today()
    pending = [
        r for r in reminders
        if not r.is_paid and today < r.due_date + timedelta(days=grace_days)
    ]
    pending.sort(key=lambda r: r.due_date)
    return pending[:limit]


def build_dashboard(
    cards: Iterable[CreditCard],
    reminders: Iterable[PaymentReminder],
    today: Optional[date] = None,
    reminder_limit: int = 3,
    grace_days: int = 7,
) -> DashboardSummary:
    """Aggregate cards and reminders into a DashboardSummary."""
    cards = list(cards)

    total_balance = sum((c.current_balance for c in cards), Decimal("0"))
    total_limit = sum((c.credit_limit for c in cards), Decimal("0"))

    return DashboardSummary(
        card_count=len(cards),
        total_balance=total_balance,
        total_limit=total_limit,
        total_available=total_limit - total_balance,
        upcoming_reminders=upcoming_reminders(
            reminders,
            today=today,
            limit=reminder_limit,
            grace_days=grace_days,
        ),
    )
