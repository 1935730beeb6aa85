"""
proration_services.proration_service -- Validate, calculate and invoice proration scenarios.

Responsibility:
    Runs one proration scenario end to end over an explicit, immutable input
    snapshot: validator -> calculator -> invoice composer.  Resolves plans
    from the configured catalog and supplies the configured engine
    parameters.

Architecture position:
    Services -- orchestration over the pure engines.
    Composes proration_engines (validation, proration, invoice) and reads
    configuration only through proration_config.get_active_config().

Invariants enforced:
    - Validation gate: a non-empty validation list short-circuits the
      scenario; no calculator sees inputs that failed validation.
    - Purity of results: every outcome is freshly built and frozen. The
      service holds configuration only, never per-call state.

Failure modes:
    - PeriodGenerationError propagates unchanged.  It is an internal
      invariant violation, deliberately kept apart from validation messages.
    - UnknownPlanError from ``plan()`` for names absent from the catalog.

Usage:
    service = ProrationService()
    outcome = service.multi_period_plan_change(MultiPeriodInput(
        effective_change_date=datetime(2024, 1, 15),
        current_date=datetime(2024, 3, 15),
        billing_cycle=BillingCycle.MONTHLY,
        billing_anchor_day=1,
        old_plan=service.plan("Pro"),
        new_plan=service.plan("Enterprise"),
    ))
    if not outcome.is_valid:
        show(outcome.errors)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Generic, TypeVar

from proration_config import ProrationConfig, get_active_config
from proration_engines.invoice import (
    compose_plan_change_invoice,
    compose_service_end_invoice,
    compose_service_start_invoice,
    compose_single_period_plan_change_invoice,
)
from proration_engines.proration import (
    compute_plan_change,
    compute_service_end,
    compute_service_start,
    compute_single_period_plan_change,
)
from proration_engines.validation import (
    validate_anchor_day,
    validate_multi_period_plan_change,
    validate_service_event,
    validate_single_period_plan_change,
)
from proration_kernel.domain.calendar import as_instant
from proration_kernel.domain.values import BillingCycle, Invoice, Plan
from proration_kernel.exceptions import UnknownPlanError
from proration_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.proration")

R = TypeVar("R")


# ============================================================================
# Input snapshots
# ============================================================================


@dataclass(frozen=True)
class ServiceEndInput:
    """Cancellation of service on ``cancel_date``."""

    cancel_date: date | datetime
    current_period_end: date | datetime
    cycle: BillingCycle
    anchor_day: int
    plan: Plan


@dataclass(frozen=True)
class ServiceStartInput:
    """Service starting on ``start_date``."""

    start_date: date | datetime
    current_period_end: date | datetime
    cycle: BillingCycle
    anchor_day: int
    plan: Plan


@dataclass(frozen=True)
class SinglePeriodPlanChangeInput:
    """Plan change within the currently open period."""

    period_start: date | datetime
    period_end: date | datetime
    change_date: date | datetime
    old_plan: Plan
    new_plan: Plan


@dataclass(frozen=True)
class MultiPeriodInput:
    """Retroactive plan change discovered on ``current_date``."""

    effective_change_date: date | datetime
    current_date: date | datetime
    billing_cycle: BillingCycle
    billing_anchor_day: int
    old_plan: Plan
    new_plan: Plan


@dataclass(frozen=True)
class PlanChangeRequest:
    """
    A plan change whose path is not yet known.

    ``open_period_start`` / ``open_period_end`` bound the period currently
    being invoiced.  A change on or after ``open_period_start`` takes the
    single-period path; an earlier one takes the multi-period path up to
    ``current_date``.
    """

    change_date: date | datetime
    current_date: date | datetime
    open_period_start: date | datetime
    open_period_end: date | datetime
    billing_cycle: BillingCycle
    billing_anchor_day: int
    old_plan: Plan
    new_plan: Plan

    @property
    def is_retroactive(self) -> bool:
        return as_instant(self.change_date) < as_instant(self.open_period_start)


@dataclass(frozen=True)
class ProrationOutcome(Generic[R]):
    """Validation messages, or a result and its invoice."""

    errors: tuple[str, ...] = ()
    result: R | None = None
    invoice: Invoice | None = None

    @property
    def is_valid(self) -> bool:
        return not self.errors


# ============================================================================
# Service
# ============================================================================


class ProrationService:
    """
    Scenario orchestration for the proration engines.

    Contract:
        Each public scenario method validates its snapshot first.  On any
        validation message it returns an outcome carrying only the messages;
        otherwise it returns the calculator result and composed invoice.
    Non-goals:
        - Does not persist invoices or execute payments.
        - Does not cache results; identical snapshots are recomputed.
    """

    def __init__(self, config: ProrationConfig | None = None):
        self._config = config or get_active_config()

    @property
    def config(self) -> ProrationConfig:
        return self._config

    @property
    def plans(self) -> tuple[Plan, ...]:
        return self._config.plans

    def plan(self, name: str) -> Plan:
        """Resolve a plan from the configured catalog."""
        plan = self._config.find_plan(name)
        if plan is None:
            raise UnknownPlanError(name, self._config.plan_names)
        return plan

    @property
    def _max_iterations(self) -> int:
        return self._config.engine.max_period_iterations

    def _rejected(self, scenario: str, errors: list[str]) -> ProrationOutcome:
        logger.warning("proration_validation_failed", extra={
            "scenario": scenario,
            "error_count": len(errors),
            "errors": errors,
        })
        return ProrationOutcome(errors=tuple(errors))

    def _completed(self, scenario: str, result, invoice: Invoice) -> ProrationOutcome:
        logger.info("proration_scenario_completed", extra={
            "scenario": scenario,
            "line_count": len(invoice.lines),
            "invoice_total": str(invoice.total),
        })
        return ProrationOutcome(result=result, invoice=invoice)

    def service_end(
        self,
        snapshot: ServiceEndInput,
        correlation_id: str | None = None,
    ) -> ProrationOutcome:
        with LogContext.bind(correlation_id=correlation_id, scenario="service_end"):
            errors = validate_service_event(
                snapshot.cancel_date,
                snapshot.current_period_end,
                snapshot.anchor_day,
                snapshot.plan,
                label="Cancellation",
            )
            if errors:
                return self._rejected("service_end", errors)

            result = compute_service_end(
                snapshot.cancel_date,
                snapshot.current_period_end,
                snapshot.cycle,
                snapshot.anchor_day,
                snapshot.plan,
                max_iterations=self._max_iterations,
            )
            invoice = compose_service_end_invoice(result, snapshot.plan)
            return self._completed("service_end", result, invoice)

    def service_start(
        self,
        snapshot: ServiceStartInput,
        correlation_id: str | None = None,
    ) -> ProrationOutcome:
        with LogContext.bind(correlation_id=correlation_id, scenario="service_start"):
            errors = validate_service_event(
                snapshot.start_date,
                snapshot.current_period_end,
                snapshot.anchor_day,
                snapshot.plan,
                label="Service start",
            )
            if errors:
                return self._rejected("service_start", errors)

            result = compute_service_start(
                snapshot.start_date,
                snapshot.current_period_end,
                snapshot.cycle,
                snapshot.anchor_day,
                snapshot.plan,
                max_iterations=self._max_iterations,
            )
            invoice = compose_service_start_invoice(result, snapshot.plan)
            return self._completed("service_start", result, invoice)

    def single_period_plan_change(
        self,
        snapshot: SinglePeriodPlanChangeInput,
        correlation_id: str | None = None,
    ) -> ProrationOutcome:
        with LogContext.bind(correlation_id=correlation_id, scenario="plan_change_single"):
            errors = validate_single_period_plan_change(
                snapshot.period_start,
                snapshot.period_end,
                snapshot.change_date,
                snapshot.old_plan,
                snapshot.new_plan,
            )
            if errors:
                return self._rejected("plan_change_single", errors)

            result = compute_single_period_plan_change(
                snapshot.period_start,
                snapshot.period_end,
                snapshot.change_date,
                snapshot.old_plan,
                snapshot.new_plan,
            )
            invoice = compose_single_period_plan_change_invoice(
                result, snapshot.old_plan, snapshot.new_plan
            )
            return self._completed("plan_change_single", result, invoice)

    def multi_period_plan_change(
        self,
        snapshot: MultiPeriodInput,
        correlation_id: str | None = None,
    ) -> ProrationOutcome:
        with LogContext.bind(correlation_id=correlation_id, scenario="plan_change_multi"):
            errors = validate_multi_period_plan_change(
                snapshot.effective_change_date,
                snapshot.current_date,
                snapshot.billing_anchor_day,
                snapshot.old_plan,
                snapshot.new_plan,
            )
            if errors:
                return self._rejected("plan_change_multi", errors)

            result = compute_plan_change(
                snapshot.effective_change_date,
                snapshot.current_date,
                snapshot.billing_cycle,
                snapshot.billing_anchor_day,
                snapshot.old_plan,
                snapshot.new_plan,
                max_iterations=self._max_iterations,
            )
            invoice = compose_plan_change_invoice(
                result, snapshot.old_plan, snapshot.new_plan
            )
            return self._completed("plan_change_multi", result, invoice)

    def plan_change(
        self,
        request: PlanChangeRequest,
        correlation_id: str | None = None,
    ) -> ProrationOutcome:
        """Route a plan change to the single- or multi-period path."""
        if request.is_retroactive:
            return self.multi_period_plan_change(
                MultiPeriodInput(
                    effective_change_date=request.change_date,
                    current_date=request.current_date,
                    billing_cycle=request.billing_cycle,
                    billing_anchor_day=request.billing_anchor_day,
                    old_plan=request.old_plan,
                    new_plan=request.new_plan,
                ),
                correlation_id=correlation_id,
            )

        # Anchor day is validated on both routes.
        anchor_errors = validate_anchor_day(request.billing_anchor_day)
        if anchor_errors:
            with LogContext.bind(correlation_id=correlation_id, scenario="plan_change_single"):
                return self._rejected("plan_change_single", anchor_errors)

        return self.single_period_plan_change(
            SinglePeriodPlanChangeInput(
                period_start=request.open_period_start,
                period_end=request.open_period_end,
                change_date=request.change_date,
                old_plan=request.old_plan,
                new_plan=request.new_plan,
            ),
            correlation_id=correlation_id,
        )
