"""
Pure domain layer.

Value objects and calendar arithmetic with NO dependencies on:
- Persistence
- Time/clock
- I/O

All domain objects are immutable and deterministic.
"""

from proration_kernel.domain.calendar import (
    add_months,
    anchor_date,
    as_instant,
    days_from_seconds,
    period_end,
    seconds_between,
    start_of_day,
)
from proration_kernel.domain.values import (
    CYCLE_LABELS,
    CYCLE_MONTHS,
    BillingCycle,
    BillingPeriod,
    Invoice,
    InvoiceLine,
    PartialPosition,
    PeriodAdjustment,
    Plan,
    PlanChangeResult,
    ProratedPeriod,
    ServiceEndResult,
    ServiceStartResult,
    SinglePeriodPlanChangeResult,
)

__all__ = [
    # Value objects
    "BillingCycle",
    "CYCLE_MONTHS",
    "CYCLE_LABELS",
    "Plan",
    "BillingPeriod",
    "PartialPosition",
    "PeriodAdjustment",
    "ProratedPeriod",
    # Results
    "ServiceEndResult",
    "ServiceStartResult",
    "PlanChangeResult",
    "SinglePeriodPlanChangeResult",
    "Invoice",
    "InvoiceLine",
    # Calendar
    "add_months",
    "anchor_date",
    "as_instant",
    "days_from_seconds",
    "period_end",
    "seconds_between",
    "start_of_day",
]
