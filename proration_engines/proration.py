"""
Module: proration_engines.proration
Responsibility:
    Allocate plan prices across billing periods at second granularity and
    aggregate the per-period amounts into scenario results: service end,
    service start, retroactive (multi-period) plan change and in-period
    (single-period) plan change.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Composes proration_engines.periods for period reconstruction.

Invariants enforced:
    - second_granularity: every ratio is elapsed seconds / period seconds.
      Day counts exist only as display properties on the results.
    - per_period_rounding: each amount is rounded to 2 places (ROUND_HALF_UP,
      i.e. half away from zero) where it is first computed; totals are the
      rounded sum of those rounded amounts, never a single late rounding.
    - Purity: identical inputs produce identical results.

Failure modes:
    - PeriodGenerationError propagated from the period generator.

Advance billing:
    The multi-period plan-change path corrects every included period through
    to its full end, whatever ``current_period_end`` is, because each of
    those periods was already invoiced in advance under the old plan.  The
    single-period path only prorates up to the period end it is given.

Usage:
    from proration_engines.proration import compute_plan_change

    result = compute_plan_change(
        change_date=datetime(2024, 1, 15),
        current_period_end=datetime(2024, 3, 15),
        cycle=BillingCycle.MONTHLY,
        anchor_day=1,
        old_plan=Plan("Pro", Decimal("99")),
        new_plan=Plan("Enterprise", Decimal("299")),
    )
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from proration_engines.periods import DEFAULT_MAX_ITERATIONS, generate_billing_periods
from proration_engines.tracer import traced_engine
from proration_kernel.domain.calendar import as_instant, seconds_between
from proration_kernel.domain.values import (
    BillingCycle,
    BillingPeriod,
    PartialPosition,
    PeriodAdjustment,
    Plan,
    PlanChangeResult,
    ProratedPeriod,
    ServiceEndResult,
    ServiceStartResult,
    SinglePeriodPlanChangeResult,
)
from proration_kernel.logging_config import get_logger

logger = get_logger("engines.proration")

_TWO_PLACES = Decimal("0.01")


def round_money(value: Decimal) -> Decimal:
    """Round to cents, half away from zero."""
    return value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def sum_money(amounts: Iterable[Decimal]) -> Decimal:
    """Rounded sum of already-rounded amounts."""
    return round_money(sum(amounts, Decimal("0")))


def prorate(price: Decimal, seconds: int, total_seconds: int) -> Decimal:
    """``price * seconds / total_seconds`` rounded to cents."""
    return round_money(price * Decimal(seconds) / Decimal(total_seconds))


def _clamp(moment: datetime, period: BillingPeriod) -> datetime:
    return min(max(moment, period.start), period.end)


def _prorated_periods(
    event: datetime,
    periods: Iterable[BillingPeriod],
    price: Decimal,
) -> tuple[ProratedPeriod, ...]:
    """Split each period at ``event``; the span after it is prorated."""
    rows: list[ProratedPeriod] = []
    for number, period in enumerate(periods, start=1):
        total = period.total_seconds
        unprorated = seconds_between(period.start, _clamp(event, period))
        prorated = total - unprorated
        rows.append(
            ProratedPeriod(
                period_number=number,
                start=period.start,
                end=period.end,
                total_seconds=total,
                prorated_seconds=prorated,
                unprorated_seconds=unprorated,
                amount=prorate(price, prorated, total),
                is_partial=prorated < total,
                partial_position=(
                    PartialPosition.START if 0 < unprorated < total
                    else PartialPosition.NONE
                ),
            )
        )
    return tuple(rows)


@traced_engine(
    "proration",
    "1.0",
    fingerprint_fields=("cancel_date", "current_period_end", "cycle", "anchor_day", "plan"),
)
def compute_service_end(
    cancel_date: date | datetime,
    current_period_end: date | datetime,
    cycle: BillingCycle,
    anchor_day: int,
    plan: Plan,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> ServiceEndResult:
    """
    Credit the unused remainder of every period from cancellation onwards.

    Per period: used = start -> max(start, cancel_date), credited = rest;
    credit = price * credited / total, rounded per period.
    """
    cancel = as_instant(cancel_date)
    periods = generate_billing_periods(
        cancel, current_period_end, cycle, anchor_day, max_iterations=max_iterations
    )
    rows = _prorated_periods(cancel, periods, plan.price)
    total_credit = sum_money(row.amount for row in rows)

    logger.info("service_end_computed", extra={
        "plan": plan.name,
        "period_count": len(rows),
        "total_credit": str(total_credit),
    })

    return ServiceEndResult(periods=rows, total_credit=total_credit)


@traced_engine(
    "proration",
    "1.0",
    fingerprint_fields=("start_date", "current_period_end", "cycle", "anchor_day", "plan"),
)
def compute_service_start(
    start_date: date | datetime,
    current_period_end: date | datetime,
    cycle: BillingCycle,
    anchor_day: int,
    plan: Plan,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> ServiceStartResult:
    """
    Charge for the active remainder of every period from service start onwards.

    Per period: inactive = start -> max(start, start_date), charged = rest;
    charge = price * charged / total, rounded per period.
    """
    started = as_instant(start_date)
    periods = generate_billing_periods(
        started, current_period_end, cycle, anchor_day, max_iterations=max_iterations
    )
    rows = _prorated_periods(started, periods, plan.price)
    total_charge = sum_money(row.amount for row in rows)

    logger.info("service_start_computed", extra={
        "plan": plan.name,
        "period_count": len(rows),
        "total_charge": str(total_charge),
    })

    return ServiceStartResult(periods=rows, total_charge=total_charge)


@traced_engine(
    "proration",
    "1.0",
    fingerprint_fields=(
        "change_date", "current_period_end", "cycle", "anchor_day", "old_plan", "new_plan",
    ),
)
def compute_plan_change(
    change_date: date | datetime,
    current_period_end: date | datetime,
    cycle: BillingCycle,
    anchor_day: int,
    old_plan: Plan,
    new_plan: Plan,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> PlanChangeResult:
    """
    Retroactive plan change across every period since ``change_date``.

    Per period the affected span runs from max(start, change_date) to the
    period's full end (advance billing):
        credit_from_old_plan = old price * affected / total
        charge_for_new_plan  = new price * affected / total
        net_adjustment       = charge - credit
    Only the first period can be partial, and only when the change falls
    strictly inside it (partial_position = start).
    """
    change = as_instant(change_date)
    periods = generate_billing_periods(
        change, current_period_end, cycle, anchor_day, max_iterations=max_iterations
    )

    adjustments: list[PeriodAdjustment] = []
    for number, period in enumerate(periods, start=1):
        total = period.total_seconds
        affected = seconds_between(max(period.start, change), period.end)
        credit = prorate(old_plan.price, affected, total)
        charge = prorate(new_plan.price, affected, total)
        starts_inside = number == 1 and period.start < change < period.end
        adjustments.append(
            PeriodAdjustment(
                period_number=number,
                start=period.start,
                end=period.end,
                total_seconds=total,
                affected_seconds=affected,
                credit_from_old_plan=credit,
                charge_for_new_plan=charge,
                net_adjustment=charge - credit,
                is_partial=affected < total,
                partial_position=(
                    PartialPosition.START if starts_inside else PartialPosition.NONE
                ),
            )
        )

    total_credits = sum_money(a.credit_from_old_plan for a in adjustments)
    total_charges = sum_money(a.charge_for_new_plan for a in adjustments)
    net = sum_money(a.net_adjustment for a in adjustments)
    is_upgrade = new_plan.is_upgrade_from(old_plan)

    logger.info("plan_change_computed", extra={
        "old_plan": old_plan.name,
        "new_plan": new_plan.name,
        "period_count": len(adjustments),
        "total_credits": str(total_credits),
        "total_charges": str(total_charges),
        "net_adjustment": str(net),
        "is_upgrade": is_upgrade,
    })

    return PlanChangeResult(
        periods=tuple(adjustments),
        total_credits=total_credits,
        total_charges=total_charges,
        net_adjustment=net,
        is_upgrade=is_upgrade,
    )


@traced_engine(
    "proration",
    "1.0",
    fingerprint_fields=("period_start", "period_end", "change_date", "old_plan", "new_plan"),
)
def compute_single_period_plan_change(
    period_start: date | datetime,
    period_end: date | datetime,
    change_date: date | datetime,
    old_plan: Plan,
    new_plan: Plan,
) -> SinglePeriodPlanChangeResult:
    """
    Plan change inside the currently open period.

        old_plan_credit = old price - old price * used / total
        new_plan_charge = new price * remaining / total
        net_amount      = new_plan_charge - old_plan_credit

    Used by callers whenever the change date is not earlier than the open
    period's start.
    """
    period = BillingPeriod(start=as_instant(period_start), end=as_instant(period_end))
    change = as_instant(change_date)
    total = period.total_seconds
    used = seconds_between(period.start, change)
    remaining = seconds_between(change, period.end)

    old_used_amount = old_plan.price * Decimal(used) / Decimal(total)
    old_plan_credit = round_money(old_plan.price - old_used_amount)
    new_plan_charge = prorate(new_plan.price, remaining, total)
    net_amount = round_money(new_plan_charge - old_plan_credit)
    is_upgrade = new_plan.is_upgrade_from(old_plan)

    logger.info("single_period_plan_change_computed", extra={
        "old_plan": old_plan.name,
        "new_plan": new_plan.name,
        "old_plan_credit": str(old_plan_credit),
        "new_plan_charge": str(new_plan_charge),
        "net_amount": str(net_amount),
        "is_upgrade": is_upgrade,
    })

    return SinglePeriodPlanChangeResult(
        period=period,
        seconds_used=used,
        seconds_remaining=remaining,
        old_plan_credit=old_plan_credit,
        new_plan_charge=new_plan_charge,
        net_amount=net_amount,
        is_upgrade=is_upgrade,
    )
