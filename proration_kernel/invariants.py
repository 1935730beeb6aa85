"""
Proration Invariants Contract.

These invariants are structural law. No configuration set or caller option
may override them. This module exists solely to declare them explicitly;
enforcement lives in the period generator, the proration calculator and the
value objects of ``proration_kernel.domain.values``.
"""

from enum import Enum, unique


@unique
class ProrationInvariant(str, Enum):
    """Non-configurable invariants enforced by the engines."""

    PERIOD_CONTIGUITY = "period_contiguity"
    """Generated billing periods are contiguous and strictly increasing:
    period[i].end == period[i + 1].start. Enforced by
    proration_engines.periods."""

    BOUNDED_GENERATION = "bounded_generation"
    """Period walks terminate within the iteration cap or raise
    PeriodGenerationError. Never silently truncated."""

    POSITIVE_PERIOD = "positive_period"
    """Every BillingPeriod has end > start, so allocation division is total.
    Enforced by BillingPeriod construction."""

    SECOND_GRANULARITY = "second_granularity"
    """Allocation ratios use elapsed seconds. Day counts are display-only
    and never feed back into amounts."""

    PER_PERIOD_ROUNDING = "per_period_rounding"
    """Each monetary amount is rounded to 2 places (half away from zero)
    when first computed; totals are the rounded sum of rounded values."""

    AFFECTED_WITHIN_PERIOD = "affected_within_period"
    """0 <= affected_seconds <= total_seconds for every period adjustment."""

    PURITY = "purity"
    """Engines perform no I/O and never read the wall clock. Every input
    instant is passed in explicitly."""


# All invariants as a frozenset for programmatic checks.
ALL_PRORATION_INVARIANTS: frozenset[ProrationInvariant] = frozenset(ProrationInvariant)

# The kernel package may not import from these packages.
# Enforced by tests/architecture/test_layer_boundaries.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "proration_engines",
    "proration_services",
    "proration_config",
)

# Engines may not import from these packages.
FORBIDDEN_ENGINE_IMPORTS: tuple[str, ...] = (
    "proration_services",
    "proration_config",
)
