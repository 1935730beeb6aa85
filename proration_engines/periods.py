"""
Module: proration_engines.periods
Responsibility:
    Reconstruct the ordered billing periods spanning an effective event
    date through the period currently being invoiced. The first start is
    anchor-aligned; every later boundary is period_end() of the one before.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Built on proration_kernel.domain.calendar.

Invariants enforced:
    - period_contiguity: period[i].end == period[i + 1].start, strictly
      increasing, and period.end == period_end(period.start, cycle).
    - bounded_generation: both walks stop within ``max_iterations`` steps
      or raise PeriodGenerationError. Never silently truncated.

Failure modes:
    - PeriodGenerationError when either walk hits the iteration cap.
    - TypeError when naive and timezone-aware instants are mixed.

Usage:
    from proration_engines.periods import generate_billing_periods

    periods = generate_billing_periods(
        effective_date=datetime(2024, 1, 15),
        current_period_end=datetime(2024, 3, 15),
        cycle=BillingCycle.MONTHLY,
        anchor_day=1,
    )
    # -> Jan 1..Feb 1, Feb 1..Mar 1, Mar 1..Apr 1
"""

from __future__ import annotations

from datetime import date, datetime

from proration_engines.tracer import traced_engine
from proration_kernel.domain.calendar import (
    anchor_date,
    as_instant,
    period_end,
    shift_month,
)
from proration_kernel.domain.values import BillingCycle, BillingPeriod
from proration_kernel.exceptions import PeriodGenerationError
from proration_kernel.logging_config import get_logger

logger = get_logger("engines.periods")

DEFAULT_MAX_ITERATIONS = 100


def _cap_exceeded(
    direction: str,
    max_iterations: int,
    cycle: BillingCycle,
    anchor_day: int,
) -> PeriodGenerationError:
    logger.error("period_generation_cap_exceeded", extra={
        "direction": direction,
        "max_iterations": max_iterations,
        "cycle": cycle.value,
        "anchor_day": anchor_day,
    })
    return PeriodGenerationError(
        direction=direction,
        iterations=max_iterations,
        cycle=cycle.value,
        anchor_day=anchor_day,
    )


@traced_engine(
    "periods",
    "1.0",
    fingerprint_fields=("effective_date", "current_period_end", "cycle", "anchor_day"),
)
def generate_billing_periods(
    effective_date: date | datetime,
    current_period_end: date | datetime,
    cycle: BillingCycle,
    anchor_day: int,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> tuple[BillingPeriod, ...]:
    """
    Enumerate billing periods overlapping [effective_date, current_period_end].

    Preconditions:
        - ``anchor_day`` is in [1, 31] (checked by the validator).
        - ``effective_date <= current_period_end``.
    Postconditions:
        - Non-empty, chronological, contiguous. Each period overlaps
          [effective_date, current_period_end); the first one contains
          ``effective_date``. The walk stops once a period start reaches or
          passes ``current_period_end``.
    Raises:
        PeriodGenerationError: if either walk exceeds ``max_iterations``.
    """
    effective = as_instant(effective_date)
    boundary = as_instant(current_period_end)
    cycle = BillingCycle(cycle)
    months = cycle.months
    tz = effective.tzinfo

    logger.debug("period_generation_started", extra={
        "effective_date": effective.isoformat(),
        "current_period_end": boundary.isoformat(),
        "cycle": cycle.value,
        "anchor_day": anchor_day,
    })

    # Walk back from the anchor in the effective month to a start <= effective.
    year, month = effective.year, effective.month
    start = anchor_date(year, month, anchor_day, tz)
    steps = 0
    while start > effective:
        steps += 1
        if steps > max_iterations:
            raise _cap_exceeded("backward", max_iterations, cycle, anchor_day)
        year, month = shift_month(year, month, -months)
        start = anchor_date(year, month, anchor_day, tz)

    # Walk forward one period at a time. A clamped start (Feb 29 for anchor
    # 31) can end before the effective date; such a period is skipped.
    periods: list[BillingPeriod] = []
    steps = 0
    while True:
        steps += 1
        if steps > max_iterations:
            raise _cap_exceeded("forward", max_iterations, cycle, anchor_day)
        end = period_end(start, cycle)
        if end > effective:
            periods.append(BillingPeriod(start=start, end=end))
        start = end
        if start >= boundary and periods:
            break

    logger.info("period_generation_completed", extra={
        "cycle": cycle.value,
        "anchor_day": anchor_day,
        "period_count": len(periods),
        "first_start": periods[0].start.isoformat(),
        "last_end": periods[-1].end.isoformat(),
    })

    return tuple(periods)
