"""
Module: proration_engines.validation
Responsibility:
    Pre-flight input checks that gate every proration calculation: date
    ordering, anchor-day range and non-negative prices.

Architecture position:
    Engines -- pure, side-effect free.

Contract:
    Every validator returns an ordered list of human-readable messages.
    Nothing is raised for bad input. A non-empty list means the caller must
    not invoke any calculator on the same inputs and should surface the
    messages instead (proration_services.ProrationService does this).
"""

from __future__ import annotations

from datetime import date, datetime

from proration_kernel.domain.calendar import as_instant
from proration_kernel.domain.values import Plan

MIN_ANCHOR_DAY = 1
MAX_ANCHOR_DAY = 31


def validate_anchor_day(anchor_day: int) -> list[str]:
    """Anchor day must be an integer in [1, 31]."""
    if (
        isinstance(anchor_day, bool)
        or not isinstance(anchor_day, int)
        or not MIN_ANCHOR_DAY <= anchor_day <= MAX_ANCHOR_DAY
    ):
        return [
            f"Billing anchor day must be between {MIN_ANCHOR_DAY} and {MAX_ANCHOR_DAY}"
        ]
    return []


def validate_plan_prices(*plans: Plan) -> list[str]:
    return [f"{plan.name} price must be non-negative" for plan in plans if plan.price < 0]


def validate_period(
    period_start: date | datetime,
    period_end: date | datetime,
) -> list[str]:
    if as_instant(period_start) >= as_instant(period_end):
        return ["Period start date must be before period end date"]
    return []


def validate_single_period_plan_change(
    period_start: date | datetime,
    period_end: date | datetime,
    change_date: date | datetime,
    old_plan: Plan,
    new_plan: Plan,
) -> list[str]:
    """Checks for a plan change inside the currently open period."""
    errors = validate_period(period_start, period_end)
    change = as_instant(change_date)
    if change < as_instant(period_start):
        errors.append("Change date must be after period start date")
    if change > as_instant(period_end):
        errors.append("Change date must be before period end date")
    errors.extend(validate_plan_prices(old_plan, new_plan))
    return errors


def validate_service_event(
    event_date: date | datetime,
    current_period_end: date | datetime,
    anchor_day: int,
    plan: Plan,
    label: str = "Service start",
) -> list[str]:
    """Checks for a service start or cancellation ``label`` date."""
    errors: list[str] = []
    if as_instant(event_date) > as_instant(current_period_end):
        errors.append(f"{label} date must be before period end date")
    errors.extend(validate_anchor_day(anchor_day))
    errors.extend(validate_plan_prices(plan))
    return errors


def validate_multi_period_plan_change(
    effective_change_date: date | datetime,
    current_date: date | datetime,
    anchor_day: int,
    old_plan: Plan,
    new_plan: Plan,
) -> list[str]:
    """Checks for a retroactive plan change spanning several periods."""
    errors: list[str] = []
    if as_instant(effective_change_date) > as_instant(current_date):
        errors.append("Effective change date must be on or before the current date")
    errors.extend(validate_anchor_day(anchor_day))
    errors.extend(validate_plan_prices(old_plan, new_plan))
    return errors
