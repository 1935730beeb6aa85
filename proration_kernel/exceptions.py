"""
Typed exception hierarchy for the proration kernel.

Every exception carries a ``code`` class attribute (machine-readable,
API-safe) and stores its context as attributes, so callers catch by type
and read structured data instead of parsing messages.

    ProrationKernelError (base)
    |
    +-- InternalInvariantViolation
    |   +-- PeriodGenerationError
    |
    +-- PlanCatalogError
    |   +-- UnknownPlanError
    |
    +-- ConfigurationError

Category      | Code                            | When Raised
--------------|---------------------------------|--------------------------------------
Invariant     | INTERNAL_INVARIANT_VIOLATION    | Algorithmic guarantee broken
              | PERIOD_GENERATION_CAP_EXCEEDED  | Period walk did not terminate in cap
--------------|---------------------------------|--------------------------------------
Catalog       | UNKNOWN_PLAN                    | Plan name not in configured catalog
--------------|---------------------------------|--------------------------------------
Config        | INVALID_PRORATION_CONFIG        | YAML configuration set is malformed

Bad user input (dates out of order, anchor day out of range, negative
prices) is NOT an exception. It is reported by ``proration_engines.validation``
as an ordered list of messages, and callers must short-circuit on a
non-empty list before calling any calculator.

An ``InternalInvariantViolation`` is different in kind: it signals an
algorithmic bug rather than bad input. It aborts the calculation, produces
no result, and must never be folded into the validation message list.
"""


class ProrationKernelError(Exception):
    """
    Base exception for all proration kernel errors.

    All subclasses must have a ``code`` class attribute.
    """

    code: str = "PRORATION_KERNEL_ERROR"


# Internal invariant violations


class InternalInvariantViolation(ProrationKernelError):
    """A structural guarantee of the engine failed to hold."""

    code: str = "INTERNAL_INVARIANT_VIOLATION"


class PeriodGenerationError(InternalInvariantViolation):
    """Billing-period walk hit its iteration cap without terminating."""

    code: str = "PERIOD_GENERATION_CAP_EXCEEDED"

    def __init__(
        self,
        direction: str,
        iterations: int,
        cycle: str,
        anchor_day: int,
    ):
        self.direction = direction
        self.iterations = iterations
        self.cycle = cycle
        self.anchor_day = anchor_day
        super().__init__(
            f"Billing period generation exceeded {iterations} iterations "
            f"walking {direction} (cycle={cycle}, anchor_day={anchor_day})"
        )


# Plan catalog


class PlanCatalogError(ProrationKernelError):
    """Base exception for plan catalog lookups."""

    code: str = "PLAN_CATALOG_ERROR"


class UnknownPlanError(PlanCatalogError):
    """Plan name is not present in the configured catalog."""

    code: str = "UNKNOWN_PLAN"

    def __init__(self, plan_name: str, available: tuple[str, ...] = ()):
        self.plan_name = plan_name
        self.available = available
        super().__init__(
            f"Unknown plan: {plan_name!r} (available: {', '.join(available) or 'none'})"
        )


# Configuration


class ConfigurationError(ProrationKernelError):
    """Proration configuration set is malformed."""

    code: str = "INVALID_PRORATION_CONFIG"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid proration configuration {source}: {reason}")
