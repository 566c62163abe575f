"""Display formatting in the Indian convention (₹, lakh grouping, DD-Mon-YYYY)."""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from cardkeeper.calculations import DateLike, as_date


def _group_indian(digits: str) -> str:
    # Last three digits, then groups of two: 12,34,567
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_currency(amount: Union[Decimal, int, float, None]) -> str:
    """Whole rupees with Indian digit grouping, e.g. ₹12,34,567."""
    value = Decimal(str(amount or 0)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}₹{_group_indian(str(abs(value)))}"


def format_date(value: DateLike) -> str:
    """DD-Mon-YYYY, or N/A when there is no date."""
    parsed = as_date(value)
    if parsed is None:
        return "N/A"
    return parsed.strftime("%d-%b-%Y")


def format_expiry_date(value: DateLike) -> str:
    """MM/YY as printed on the card."""
    parsed: Optional[date] = as_date(value)
    if parsed is None:
        return "MM/YY"
    return parsed.strftime("%m/%y")


def format_cycle(days: Optional[int]) -> str:
    if days is None:
        return "N/A"
    return f"{days} days"
