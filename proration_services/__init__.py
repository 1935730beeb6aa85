"""
proration_services -- scenario orchestration over the proration engines.

Usage:
    from proration_services import ProrationService, ServiceEndInput
"""

from proration_services.proration_service import (
    MultiPeriodInput,
    PlanChangeRequest,
    ProrationOutcome,
    ProrationService,
    ServiceEndInput,
    ServiceStartInput,
    SinglePeriodPlanChangeInput,
)

__all__ = [
    "MultiPeriodInput",
    "PlanChangeRequest",
    "ProrationOutcome",
    "ProrationService",
    "ServiceEndInput",
    "ServiceStartInput",
    "SinglePeriodPlanChangeInput",
]
