"""
Module: proration_engines.invoice
Responsibility:
    Turn proration scenario results into normalized line-item invoices:
    credits as negative amounts, charges as positive amounts, with
    subtotal / credits / total.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - subtotal == sum of charge line amounts.
    - credits  == sum of credit line magnitudes.
    - total    == subtotal - credits.
    - Amounts are already rounded to 2 places; totals are re-rounded after
      summation.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from proration_engines.proration import round_money, sum_money
from proration_kernel.domain.values import (
    Invoice,
    InvoiceLine,
    Plan,
    PlanChangeResult,
    ServiceEndResult,
    ServiceStartResult,
    SinglePeriodPlanChangeResult,
)
from proration_kernel.logging_config import get_logger

logger = get_logger("engines.invoice")


def _credit_line(description: str, magnitude: Decimal) -> InvoiceLine:
    return InvoiceLine(
        description=description,
        unit_price=-magnitude,
        amount=-magnitude,
        is_credit=True,
    )


def _charge_line(description: str, amount: Decimal) -> InvoiceLine:
    return InvoiceLine(
        description=description,
        unit_price=amount,
        amount=amount,
        is_credit=False,
    )


def _build_invoice(lines: Sequence[InvoiceLine], period_start, period_end) -> Invoice:
    subtotal = sum_money(line.amount for line in lines if not line.is_credit)
    credits = sum_money(-line.amount for line in lines if line.is_credit)
    total = round_money(subtotal - credits)

    logger.info("invoice_composed", extra={
        "line_count": len(lines),
        "subtotal": str(subtotal),
        "credits": str(credits),
        "total": str(total),
    })

    return Invoice(
        lines=tuple(lines),
        subtotal=subtotal,
        credits=credits,
        total=total,
        period_start=period_start,
        period_end=period_end,
    )


def compose_service_end_invoice(result: ServiceEndResult, plan: Plan) -> Invoice:
    """One credit line per period for the unused portion after cancellation."""
    lines = [
        _credit_line(
            f"{plan.name} - Credit for unused portion, period {row.period_number} "
            f"({row.days_prorated} of {row.days_in_period} days)",
            row.amount,
        )
        for row in result.periods
    ]
    return _build_invoice(lines, result.periods[0].start, result.periods[-1].end)


def compose_service_start_invoice(result: ServiceStartResult, plan: Plan) -> Invoice:
    """One prorated charge line per period after a mid-period start."""
    lines = [
        _charge_line(
            f"{plan.name} - Prorated, period {row.period_number} "
            f"({row.days_prorated} of {row.days_in_period} days)",
            row.amount,
        )
        for row in result.periods
    ]
    return _build_invoice(lines, result.periods[0].start, result.periods[-1].end)


def compose_plan_change_invoice(
    result: PlanChangeResult,
    old_plan: Plan,
    new_plan: Plan,
) -> Invoice:
    """A credit line and a charge line for every corrected period."""
    lines: list[InvoiceLine] = []
    for adj in result.periods:
        span = f"({adj.days_affected} of {adj.days_in_period} days)"
        lines.append(_credit_line(
            f"{old_plan.name} - Credit, period {adj.period_number} {span}",
            adj.credit_from_old_plan,
        ))
        lines.append(_charge_line(
            f"{new_plan.name} - Charge, period {adj.period_number} {span}",
            adj.charge_for_new_plan,
        ))
    return _build_invoice(lines, result.periods[0].start, result.periods[-1].end)


def compose_single_period_plan_change_invoice(
    result: SinglePeriodPlanChangeResult,
    old_plan: Plan,
    new_plan: Plan,
) -> Invoice:
    """Credit for the unused old plan plus the prorated new-plan charge."""
    days = result.new_plan_days_remaining
    lines = [
        _credit_line(
            f"{old_plan.name} - Credit for unused portion, period 1 ({days} days)",
            result.old_plan_credit,
        ),
        _charge_line(
            f"{new_plan.name} - Prorated charge, period 1 ({days} days)",
            result.new_plan_charge,
        ),
    ]
    return _build_invoice(lines, result.period.start, result.period.end)
