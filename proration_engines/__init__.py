"""
Module: proration_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    proration engines.  This is the canonical import surface for
    proration_services and for host applications.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import proration_kernel (and sibling engine modules).
    MUST NOT import proration_services or proration_config.

Invariants enforced:
    - Purity: engines never call ``datetime.now()`` or ``date.today()``.
      Every instant is passed in explicitly by the caller.
    - Decimal-only arithmetic: all monetary amounts use ``Decimal``.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Every calculator invocation is traced via ``@traced_engine`` (see
    ``proration_engines.tracer``), emitting PRORATION_ENGINE_TRACE records.

Usage:
    from proration_engines import (
        compute_plan_change,
        compose_plan_change_invoice,
        validate_multi_period_plan_change,
    )
"""

from proration_engines.invoice import (
    compose_plan_change_invoice,
    compose_service_end_invoice,
    compose_service_start_invoice,
    compose_single_period_plan_change_invoice,
)
from proration_engines.periods import DEFAULT_MAX_ITERATIONS, generate_billing_periods
from proration_engines.proration import (
    compute_plan_change,
    compute_service_end,
    compute_service_start,
    compute_single_period_plan_change,
    prorate,
    round_money,
)
from proration_engines.tracer import compute_input_fingerprint, traced_engine
from proration_engines.validation import (
    validate_anchor_day,
    validate_multi_period_plan_change,
    validate_period,
    validate_plan_prices,
    validate_service_event,
    validate_single_period_plan_change,
)

__all__ = [
    # Periods
    "DEFAULT_MAX_ITERATIONS",
    "generate_billing_periods",
    # Proration
    "compute_plan_change",
    "compute_service_end",
    "compute_service_start",
    "compute_single_period_plan_change",
    "prorate",
    "round_money",
    # Invoice
    "compose_plan_change_invoice",
    "compose_service_end_invoice",
    "compose_service_start_invoice",
    "compose_single_period_plan_change_invoice",
    # Validation
    "validate_anchor_day",
    "validate_multi_period_plan_change",
    "validate_period",
    "validate_plan_prices",
    "validate_service_event",
    "validate_single_period_plan_change",
    # Tracing
    "compute_input_fingerprint",
    "traced_engine",
]
