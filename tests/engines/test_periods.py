"""
Tests for the billing period generator.

Covers:
- Retroactive multi-period enumeration
- Anchor-day reconstruction (walk back) for every cycle
- Anchor stability across short months
- Single-period and boundary cases
- Iteration cap as a distinct internal invariant violation
- Engine trace emission
"""

from datetime import date, datetime, timezone

import pytest

from proration_engines.periods import generate_billing_periods
from proration_kernel.domain.calendar import period_end
from proration_kernel.domain.values import BillingCycle, BillingPeriod
from proration_kernel.exceptions import InternalInvariantViolation, PeriodGenerationError


def _bounds(periods):
    return [(p.start, p.end) for p in periods]


class TestMonthlyGeneration:
    """Monthly cycle enumeration."""

    def test_two_months_back_yields_three_periods(self):
        """Change two months before the current date spans three periods."""
        periods = generate_billing_periods(
            datetime(2024, 1, 15), datetime(2024, 3, 15), BillingCycle.MONTHLY, 1
        )

        assert _bounds(periods) == [
            (datetime(2024, 1, 1), datetime(2024, 2, 1)),
            (datetime(2024, 2, 1), datetime(2024, 3, 1)),
            (datetime(2024, 3, 1), datetime(2024, 4, 1)),
        ]

    def test_effective_on_anchor_equal_to_boundary(self):
        """effective == current period end still yields one period."""
        periods = generate_billing_periods(
            datetime(2024, 3, 1), datetime(2024, 3, 1), BillingCycle.MONTHLY, 1
        )
        assert _bounds(periods) == [(datetime(2024, 3, 1), datetime(2024, 4, 1))]

    def test_boundary_on_period_end_is_exclusive(self):
        periods = generate_billing_periods(
            datetime(2024, 1, 16), datetime(2024, 2, 1), BillingCycle.MONTHLY, 1
        )
        assert _bounds(periods) == [(datetime(2024, 1, 1), datetime(2024, 2, 1))]

    def test_walks_back_when_anchor_after_effective_day(self):
        periods = generate_billing_periods(
            datetime(2024, 1, 10), datetime(2024, 1, 20), BillingCycle.MONTHLY, 15
        )
        assert _bounds(periods) == [
            (datetime(2023, 12, 15), datetime(2024, 1, 15)),
            (datetime(2024, 1, 15), datetime(2024, 2, 15)),
        ]

    def test_anchor_31_clamped_start_chains_by_period_end(self):
        """Once Feb 29 is a period start, later boundaries follow period_end."""
        periods = generate_billing_periods(
            datetime(2024, 2, 10), datetime(2024, 4, 5), BillingCycle.MONTHLY, 31
        )
        assert _bounds(periods) == [
            (datetime(2024, 1, 31), datetime(2024, 2, 29)),
            (datetime(2024, 2, 29), datetime(2024, 3, 29)),
            (datetime(2024, 3, 29), datetime(2024, 4, 29)),
        ]

    def test_leap_day_start_ends_one_month_later(self):
        periods = generate_billing_periods(
            datetime(2024, 2, 29, 12), datetime(2024, 3, 15), BillingCycle.MONTHLY, 31
        )
        assert _bounds(periods) == [(datetime(2024, 2, 29), datetime(2024, 3, 29))]
        assert periods[0].total_seconds == 29 * 86_400

    def test_period_ending_before_effective_date_is_skipped(self):
        """Anchor 31 walks back from Mar 31 to Feb 29, whose period ends Mar 29."""
        periods = generate_billing_periods(
            datetime(2024, 3, 30), datetime(2024, 3, 30), BillingCycle.MONTHLY, 31
        )
        assert _bounds(periods) == [(datetime(2024, 3, 29), datetime(2024, 4, 29))]

    @pytest.mark.parametrize("cycle", list(BillingCycle))
    @pytest.mark.parametrize("anchor_day", [1, 29, 30, 31])
    def test_every_end_is_period_end_of_its_start(self, cycle, anchor_day):
        periods = generate_billing_periods(
            datetime(2023, 11, 30, 9), datetime(2025, 3, 1), cycle, anchor_day
        )
        assert all(p.end == period_end(p.start, cycle) for p in periods)

    def test_time_of_day_on_effective_date(self):
        periods = generate_billing_periods(
            datetime(2024, 1, 1, 12), datetime(2024, 1, 20), BillingCycle.MONTHLY, 1
        )
        assert periods[0].start == datetime(2024, 1, 1)

    def test_accepts_dates(self):
        periods = generate_billing_periods(
            date(2024, 1, 15), date(2024, 1, 20), BillingCycle.MONTHLY, 1
        )
        assert _bounds(periods) == [(datetime(2024, 1, 1), datetime(2024, 2, 1))]

    def test_timezone_aware_instants(self):
        periods = generate_billing_periods(
            datetime(2024, 1, 15, tzinfo=timezone.utc),
            datetime(2024, 2, 15, tzinfo=timezone.utc),
            BillingCycle.MONTHLY,
            1,
        )
        assert len(periods) == 2
        assert all(p.start.tzinfo is timezone.utc for p in periods)


class TestLongerCycles:
    """Quarterly, semiannual and annual cycles."""

    def test_quarterly(self):
        periods = generate_billing_periods(
            datetime(2024, 2, 10), datetime(2024, 6, 1), BillingCycle.QUARTERLY, 1
        )
        assert _bounds(periods) == [
            (datetime(2024, 2, 1), datetime(2024, 5, 1)),
            (datetime(2024, 5, 1), datetime(2024, 8, 1)),
        ]

    def test_semiannual_walks_back_a_full_cycle(self):
        periods = generate_billing_periods(
            datetime(2024, 3, 5), datetime(2024, 3, 20), BillingCycle.SEMIANNUAL, 10
        )
        assert _bounds(periods) == [
            (datetime(2023, 9, 10), datetime(2024, 3, 10)),
            (datetime(2024, 3, 10), datetime(2024, 9, 10)),
        ]

    def test_annual(self):
        periods = generate_billing_periods(
            datetime(2022, 6, 15), datetime(2024, 6, 15), BillingCycle.ANNUAL, 1
        )
        assert _bounds(periods) == [
            (datetime(2022, 6, 1), datetime(2023, 6, 1)),
            (datetime(2023, 6, 1), datetime(2024, 6, 1)),
            (datetime(2024, 6, 1), datetime(2025, 6, 1)),
        ]


class TestStructuralGuarantees:
    """Contiguity and containment of generated periods."""

    def test_contiguous_and_increasing(self):
        periods = generate_billing_periods(
            datetime(2023, 1, 15), datetime(2024, 1, 15), BillingCycle.MONTHLY, 15
        )
        for current, following in zip(periods, periods[1:]):
            assert current.end == following.start
            assert current.start < current.end
        assert len(periods) == 12

    def test_first_period_contains_effective_date(self):
        effective = datetime(2024, 5, 17, 8, 30)
        periods = generate_billing_periods(
            effective, datetime(2024, 9, 1), BillingCycle.MONTHLY, 20
        )
        assert periods[0].start <= effective < periods[0].end

    def test_returns_immutable_tuple(self):
        periods = generate_billing_periods(
            datetime(2024, 1, 15), datetime(2024, 1, 20), BillingCycle.MONTHLY, 1
        )
        assert isinstance(periods, tuple)
        assert all(isinstance(p, BillingPeriod) for p in periods)


class TestIterationCap:
    """The iteration cap is an internal invariant violation."""

    def test_forward_cap_raises(self):
        with pytest.raises(PeriodGenerationError) as exc_info:
            generate_billing_periods(
                datetime(2000, 1, 15), datetime(2024, 1, 1), BillingCycle.MONTHLY, 1
            )
        assert exc_info.value.direction == "forward"
        assert exc_info.value.code == "PERIOD_GENERATION_CAP_EXCEEDED"
        assert exc_info.value.iterations == 100

    def test_backward_cap_raises(self):
        with pytest.raises(PeriodGenerationError) as exc_info:
            generate_billing_periods(
                datetime(2024, 1, 10),
                datetime(2024, 2, 1),
                BillingCycle.MONTHLY,
                20,
                max_iterations=0,
            )
        assert exc_info.value.direction == "backward"

    def test_cap_is_not_a_validation_error(self):
        with pytest.raises(InternalInvariantViolation):
            generate_billing_periods(
                datetime(2024, 1, 15),
                datetime(2024, 6, 1),
                BillingCycle.MONTHLY,
                1,
                max_iterations=3,
            )

    def test_exactly_at_cap_succeeds(self):
        periods = generate_billing_periods(
            datetime(2024, 1, 15),
            datetime(2024, 3, 15),
            BillingCycle.MONTHLY,
            1,
            max_iterations=3,
        )
        assert len(periods) == 3

    def test_cap_logged_as_error(self, captured_logs):
        with pytest.raises(PeriodGenerationError):
            generate_billing_periods(
                datetime(2024, 1, 15),
                datetime(2024, 6, 1),
                BillingCycle.MONTHLY,
                1,
                max_iterations=2,
            )
        records = [r for r in captured_logs() if r["message"] == "period_generation_cap_exceeded"]
        assert records
        assert records[0]["level"] == "ERROR"
        assert records[0]["direction"] == "forward"


class TestTracing:
    """Engine trace emission."""

    def test_trace_emitted(self, captured_logs):
        generate_billing_periods(
            datetime(2024, 1, 15), datetime(2024, 3, 15), BillingCycle.MONTHLY, 1
        )
        traces = [r for r in captured_logs() if r["message"] == "PRORATION_ENGINE_TRACE"]
        assert traces
        assert traces[0]["engine_name"] == "periods"
        assert len(traces[0]["input_fingerprint"]) == 16

    def test_completion_logged(self, captured_logs):
        generate_billing_periods(
            datetime(2024, 1, 15), datetime(2024, 3, 15), BillingCycle.MONTHLY, 1
        )
        completed = [r for r in captured_logs() if r["message"] == "period_generation_completed"]
        assert completed[0]["period_count"] == 3
