"""
Values -- Immutable, self-validating proration value objects.

Responsibility:
    Provides the types every proration computation speaks: BillingCycle,
    Plan, BillingPeriod, the per-period allocation records and the
    scenario results, plus the invoice structures built from them.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every engine. No outward dependencies.

Invariants enforced:
    - Money is Decimal, never float. Plan prices are coerced at construction.
    - BillingPeriod.end > BillingPeriod.start (positive_period).
    - 0 <= affected_seconds <= total_seconds on every period record.

Failure modes:
    - ValueError on construction with float prices, unknown cycles or
      non-positive periods.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum

SECONDS_PER_DAY = 86_400


def days_from_seconds(seconds: int) -> int:
    """Whole days for display, nearest day (half up)."""
    return int(
        (Decimal(seconds) / Decimal(SECONDS_PER_DAY)).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
    )


def seconds_between(start: datetime, end: datetime) -> int:
    """
    Whole elapsed seconds from ``start`` to ``end`` (negative if reversed).

    Aware instants are converted to UTC first, so a span crossing a DST
    transition counts the seconds that actually elapsed.
    """
    if start.tzinfo is not None:
        start = start.astimezone(UTC)
    if end.tzinfo is not None:
        end = end.astimezone(UTC)
    return int((end - start).total_seconds())


class BillingCycle(str, Enum):
    """Recurring billing cycle lengths."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMIANNUAL = "semiannual"
    ANNUAL = "annual"

    @property
    def months(self) -> int:
        """Fixed number of calendar months in one cycle."""
        return CYCLE_MONTHS[self]

    @property
    def label(self) -> str:
        """Human-readable cycle name."""
        return CYCLE_LABELS[self]


CYCLE_MONTHS: dict[BillingCycle, int] = {
    BillingCycle.MONTHLY: 1,
    BillingCycle.QUARTERLY: 3,
    BillingCycle.SEMIANNUAL: 6,
    BillingCycle.ANNUAL: 12,
}

CYCLE_LABELS: dict[BillingCycle, str] = {
    BillingCycle.MONTHLY: "Monthly",
    BillingCycle.QUARTERLY: "Quarterly",
    BillingCycle.SEMIANNUAL: "Semi-Annual",
    BillingCycle.ANNUAL: "Annual",
}


class PartialPosition(str, Enum):
    """
    Where the unaffected span of a partially prorated period lies.

    Every event is prorated from the event instant to the period end, so the
    calculators only produce START and NONE. END is reserved for a span that
    stops inside a period and keeps its place in serialized results.
    """

    START = "start"
    END = "end"
    NONE = "none"


def to_price(value: Decimal | str | int) -> Decimal:
    """Coerce a price to Decimal. Floats are rejected."""
    if isinstance(value, float):
        raise ValueError("Price must be Decimal, str or int, not float")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid price: {value!r}") from None


@dataclass(frozen=True)
class Plan:
    """
    A priced subscription plan.

    Contract:
        Value type. Upgrade / downgrade is decided purely by strict price
        comparison.
    Guarantees:
        - ``price`` is a Decimal. Sign is not checked here; a negative
          price is reported by validate_plan_prices, not raised.
        - ``cycle`` is a BillingCycle (strings are coerced).
    """

    name: str
    price: Decimal
    cycle: BillingCycle = BillingCycle.MONTHLY

    def __post_init__(self) -> None:
        object.__setattr__(self, "price", to_price(self.price))
        object.__setattr__(self, "cycle", BillingCycle(self.cycle))

    def is_upgrade_from(self, other: Plan) -> bool:
        """True when this plan costs strictly more than ``other``."""
        return self.price > other.price


@dataclass(frozen=True)
class BillingPeriod:
    """A single billing period [start, end)."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        # INVARIANT: positive_period -- division by period length is total
        if self.end <= self.start:
            raise ValueError(
                f"Billing period end {self.end.isoformat()} must be after "
                f"start {self.start.isoformat()}"
            )

    @property
    def total_seconds(self) -> int:
        return seconds_between(self.start, self.end)

    @property
    def days(self) -> int:
        """Period length in whole days (display only)."""
        return days_from_seconds(self.total_seconds)


# ============================================================================
# Per-period allocation records
# ============================================================================


@dataclass(frozen=True)
class PeriodAdjustment:
    """
    Plan-change correction for one billing period.

    Contract:
        ``credit_from_old_plan`` is what was charged under the old plan but
        should not have been; ``charge_for_new_plan`` is what should have
        been charged under the new plan. Both are rounded independently.
    Guarantees:
        - 0 <= affected_seconds <= total_seconds.
        - net_adjustment == charge_for_new_plan - credit_from_old_plan.
    """

    period_number: int
    start: datetime
    end: datetime
    total_seconds: int
    affected_seconds: int
    credit_from_old_plan: Decimal
    charge_for_new_plan: Decimal
    net_adjustment: Decimal
    is_partial: bool
    partial_position: PartialPosition

    def __post_init__(self) -> None:
        # INVARIANT: affected_within_period
        if not 0 <= self.affected_seconds <= self.total_seconds:
            raise ValueError(
                f"affected_seconds {self.affected_seconds} outside "
                f"[0, {self.total_seconds}] for period {self.period_number}"
            )

    @property
    def days_in_period(self) -> int:
        return days_from_seconds(self.total_seconds)

    @property
    def days_affected(self) -> int:
        return days_from_seconds(self.affected_seconds)


@dataclass(frozen=True)
class ProratedPeriod:
    """
    Service start / end allocation for one billing period.

    ``prorated_seconds`` is the billed span (credited for a cancellation,
    charged for a late start); ``unprorated_seconds`` is the rest (used or
    inactive time). ``amount`` is the rounded prorated price.
    """

    period_number: int
    start: datetime
    end: datetime
    total_seconds: int
    prorated_seconds: int
    unprorated_seconds: int
    amount: Decimal
    is_partial: bool
    partial_position: PartialPosition

    def __post_init__(self) -> None:
        if not 0 <= self.prorated_seconds <= self.total_seconds:
            raise ValueError(
                f"prorated_seconds {self.prorated_seconds} outside "
                f"[0, {self.total_seconds}] for period {self.period_number}"
            )

    @property
    def days_in_period(self) -> int:
        return days_from_seconds(self.total_seconds)

    @property
    def days_prorated(self) -> int:
        return days_from_seconds(self.prorated_seconds)

    @property
    def percentage_prorated(self) -> Decimal:
        """Share of the period that is billed, in percent (2 places)."""
        return (
            Decimal(self.prorated_seconds) * Decimal("100") / Decimal(self.total_seconds)
        ).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


# ============================================================================
# Scenario results
# ============================================================================


@dataclass(frozen=True)
class ServiceEndResult:
    """Credits owed after cancelling service mid-period."""

    periods: tuple[ProratedPeriod, ...]
    total_credit: Decimal


@dataclass(frozen=True)
class ServiceStartResult:
    """Charges owed after starting service mid-period."""

    periods: tuple[ProratedPeriod, ...]
    total_charge: Decimal


@dataclass(frozen=True)
class PlanChangeResult:
    """Retroactive multi-period plan-change corrections."""

    periods: tuple[PeriodAdjustment, ...]
    total_credits: Decimal
    total_charges: Decimal
    net_adjustment: Decimal
    is_upgrade: bool

    @property
    def total_periods_affected(self) -> int:
        return len(self.periods)


@dataclass(frozen=True)
class SinglePeriodPlanChangeResult:
    """Plan change inside the currently open billing period."""

    period: BillingPeriod
    seconds_used: int
    seconds_remaining: int
    old_plan_credit: Decimal
    new_plan_charge: Decimal
    net_amount: Decimal
    is_upgrade: bool

    @property
    def total_seconds(self) -> int:
        return self.period.total_seconds

    @property
    def old_plan_days_used(self) -> int:
        return days_from_seconds(self.seconds_used)

    @property
    def new_plan_days_remaining(self) -> int:
        return days_from_seconds(self.seconds_remaining)


# ============================================================================
# Invoice
# ============================================================================


@dataclass(frozen=True)
class InvoiceLine:
    """One invoice line. Credits carry negative amounts."""

    description: str
    unit_price: Decimal
    amount: Decimal
    is_credit: bool
    quantity: int = 1


@dataclass(frozen=True)
class Invoice:
    """Normalized line-item invoice for a proration scenario."""

    lines: tuple[InvoiceLine, ...]
    subtotal: Decimal
    credits: Decimal
    total: Decimal
    period_start: datetime
    period_end: datetime
