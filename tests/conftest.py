"""
Pytest fixtures for the proration engine test suite.

Provides:
- Structured logging configuration and log capture
- Standard plans and instants shared by engine and service tests
"""

import json
import logging
from datetime import datetime
from decimal import Decimal
from io import StringIO

import pytest

from proration_config import get_active_config
from proration_kernel.domain.values import BillingCycle, Plan
from proration_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from proration_services import ProrationService


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture proration_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            compute_service_end(...)
            logs = captured_logs()
            assert any(r["message"] == "service_end_computed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("proration_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def basic_plan():
    return Plan(name="Basic", price=Decimal("50"), cycle=BillingCycle.MONTHLY)


@pytest.fixture
def premium_plan():
    return Plan(name="Premium", price=Decimal("200"), cycle=BillingCycle.MONTHLY)


@pytest.fixture
def january_2024():
    """The 31-day monthly period [2024-01-01, 2024-02-01)."""
    return datetime(2024, 1, 1), datetime(2024, 2, 1)


# =============================================================================
# Service fixtures
# =============================================================================


@pytest.fixture
def default_config():
    return get_active_config()


@pytest.fixture
def proration_service(default_config):
    return ProrationService(default_config)
