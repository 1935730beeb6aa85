"""
Calendar -- Billing-cycle month arithmetic.

Responsibility:
    Advances instants by whole calendar months, reconstructs anchor-aligned
    period starts for any month, and measures spans in seconds.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O, no clock access.

Invariants enforced:
    - Month addition clamps to the target month's last day; it never
      overflows into the following month (Jan 31 + 1 month -> Feb 28/29).
    - Anchor days beyond a month's length clamp to its last day.

Non-goals:
    - Does not range-check anchor days. That is the validator's job
      (proration_engines.validation.validate_anchor_day).
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, tzinfo

from proration_kernel.domain.values import (
    BillingCycle,
    days_from_seconds,
    seconds_between,
)


def as_instant(value: date | datetime) -> datetime:
    """Promote a ``date`` to midnight; pass a ``datetime`` through."""
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def start_of_day(moment: datetime) -> datetime:
    """Truncate to midnight, keeping tzinfo."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Return (year, month) moved by ``delta`` months."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(moment: datetime, months: int) -> datetime:
    """Calendar-correct month addition with end-of-month clamping."""
    year, month = shift_month(moment.year, moment.month, months)
    day = min(moment.day, days_in_month(year, month))
    return moment.replace(year=year, month=month, day=day)


def period_end(start: date | datetime, cycle: BillingCycle) -> datetime:
    """End of the billing period that begins at ``start``."""
    return start_of_day(add_months(as_instant(start), BillingCycle(cycle).months))


def anchor_date(
    year: int,
    month: int,
    anchor_day: int,
    tz: tzinfo | None = None,
) -> datetime:
    """Midnight on the anchor day of the given month, clamped to month end."""
    day = min(anchor_day, days_in_month(year, month))
    return datetime(year, month, day, tzinfo=tz)


__all__ = [
    "add_months",
    "anchor_date",
    "as_instant",
    "days_from_seconds",
    "days_in_month",
    "period_end",
    "seconds_between",
    "shift_month",
    "start_of_day",
]
