"""Payoff planner tests"""
from decimal import Decimal

import pytest

from config.constants import PAYOFF_TIMELINE_COLUMNS, PayoffStrategy
from core.errors import InsufficientLoans, InvalidBudget, InvalidLoanTerms, PayoffUnreachable
from core.loan import Loan
from core.payoff import minimum_payment_for, plan


def _principal_paid(result):
    paid = sum(sum(s.payments.values()) for s in result.snapshots)
    return paid - result.summary.total_interest_paid


class TestMinimumPayment:
    def test_defaults_to_standard_payment(self, loan_a):
        assert minimum_payment_for(loan_a) == Decimal("304.22")

    def test_explicit_minimum(self, loan_a):
        assert minimum_payment_for(loan_a.replace(minimum_payment=400)) == Decimal("400")


class TestAvalanche:
    def test_extra_goes_to_highest_rate_first(self, payoff_loans):
        """the 20% loan takes the whole extra budget until it is retired"""
        result = plan(payoff_loans, 100, "avalanche")
        retired = result.retired_in("high")
        assert retired < 24

        for snap in result.snapshots[:retired - 1]:
            assert snap.extra_applied["high"] == Decimal("100")
            assert snap.extra_applied["low"] == 0
        # leftover in the retiring month cascades to the next loan
        last = result.snapshots[retired - 1]
        assert last.extra_applied["high"] + last.extra_applied["low"] == Decimal("100")
        assert last.remaining_balances["high"] == 0

    def test_saves_interest_against_baseline(self, payoff_loans):
        result = plan(payoff_loans, 100, PayoffStrategy.AVALANCHE)
        summary = result.summary
        assert summary.strategy == PayoffStrategy.AVALANCHE
        assert summary.total_interest_paid < summary.baseline_interest
        assert summary.interest_saved_vs_minimum_only > 0
        assert summary.interest_saved_vs_minimum_only == summary.baseline_interest - summary.total_interest_paid
        assert summary.months_to_payoff < summary.baseline_months
        assert summary.months_saved == summary.baseline_months - summary.months_to_payoff

    @pytest.mark.parametrize("extra", [1, 25, 100, 500, 5000])
    def test_never_worse_than_minimum_only(self, payoff_loans, extra):
        summary = plan(payoff_loans, extra, "avalanche").summary
        assert summary.total_interest_paid <= summary.baseline_interest

    def test_rate_ties_broken_by_id(self):
        loans = [
            Loan(id="b", principal=1000, annual_rate_percent=10, term_months=12),
            Loan(id="a", principal=1000, annual_rate_percent=10, term_months=12),
        ]
        first = plan(loans, 50, "avalanche").snapshots[0]
        assert first.extra_applied["a"] == Decimal("50")
        assert first.extra_applied["b"] == 0


class TestSnowball:
    def test_extra_goes_to_smallest_balance_first(self, payoff_loans):
        result = plan(payoff_loans, 100, "snowball")
        first = result.snapshots[0]
        assert first.extra_applied["low"] == Decimal("100")
        assert first.extra_applied["high"] == 0
        assert result.payoff_order[0][0] == "low"

    def test_cascade_within_month(self):
        loans = [
            Loan(id="tiny", principal=100, annual_rate_percent=10, term_months=12),
            Loan(id="big", principal=5000, annual_rate_percent=5, term_months=60),
        ]
        first = plan(loans, 500, "snowball").snapshots[0]
        assert first.remaining_balances["tiny"] == 0
        assert first.extra_applied["big"] > 0
        assert first.extra_applied["tiny"] + first.extra_applied["big"] == Decimal("500")

    def test_roll_over_minimums_is_faster(self, payoff_loans):
        plain = plan(payoff_loans, 100, "snowball")
        rolled = plan(payoff_loans, 100, "snowball", roll_over_minimums=True)
        assert rolled.summary.months_to_payoff <= plain.summary.months_to_payoff
        assert rolled.summary.total_interest_paid <= plain.summary.total_interest_paid
        # the baseline never rolls over
        assert rolled.summary.baseline_interest == plain.summary.baseline_interest


class TestPlanInvariants:
    def test_strategies_retire_same_principal(self, payoff_loans):
        snowball = plan(payoff_loans, 150, "snowball")
        avalanche = plan(payoff_loans, 150, "avalanche")
        assert snowball.summary.total_principal_retired == avalanche.summary.total_principal_retired
        assert _principal_paid(snowball) == Decimal("7000")
        assert _principal_paid(avalanche) == Decimal("7000")

    def test_retired_loans_stay_at_zero(self, payoff_loans):
        result = plan(payoff_loans, 300, "avalanche")
        retired = result.retired_in("high")
        for snap in result.snapshots[retired:]:
            assert snap.remaining_balances["high"] == 0
            assert snap.payments["high"] == 0

    def test_ends_when_all_retired(self, payoff_loans):
        result = plan(payoff_loans, 100, "avalanche")
        assert result.snapshots[-1].total_balance == 0
        assert all(s.total_balance > 0 for s in result.snapshots[:-1])
        assert {loan_id for loan_id, _ in result.payoff_order} == {"high", "low"}
        assert result.summary.months_to_payoff == len(result.snapshots)

    def test_interest_to_date_accumulates(self, payoff_loans):
        result = plan(payoff_loans, 100, "snowball")
        running = Decimal("0")
        for snap in result.snapshots:
            running += sum(snap.interest.values())
            assert snap.total_interest_paid_to_date == running

    def test_zero_extra_matches_baseline(self, payoff_loans):
        summary = plan(payoff_loans, 0, "snowball").summary
        assert summary.interest_saved_vs_minimum_only == 0
        assert summary.months_saved == 0

    def test_zero_rate_loan(self):
        loans = [Loan(id="z", principal=1200, annual_rate_percent=0, term_months=12)]
        summary = plan(loans, 100, "avalanche").summary
        assert summary.total_interest_paid == 0
        assert summary.months_to_payoff == 6

    def test_deterministic(self, payoff_loans):
        assert plan(payoff_loans, 100, "avalanche") == plan(payoff_loans, 100, "avalanche")

    def test_timeline_frame(self, payoff_loans):
        result = plan(payoff_loans, 100, "avalanche")
        timeline = result.timeline
        assert list(timeline.columns) == PAYOFF_TIMELINE_COLUMNS
        assert len(timeline) == 2 * result.summary.months_to_payoff
        # the full budget is spent every month except possibly the last
        months = result.summary.months_to_payoff
        assert 100 * (months - 1) <= timeline["extra_applied"].sum() <= 100 * months


class TestPlanErrors:
    def test_negative_budget(self, payoff_loans):
        with pytest.raises(InvalidBudget):
            plan(payoff_loans, -1, "snowball")

    def test_non_numeric_budget(self, payoff_loans):
        with pytest.raises(InvalidBudget):
            plan(payoff_loans, "lots", "snowball")

    def test_unknown_strategy(self, payoff_loans):
        with pytest.raises(ValueError, match="strategy"):
            plan(payoff_loans, 100, "random")

    def test_no_loans(self):
        with pytest.raises(InsufficientLoans):
            plan([], 100, "snowball")

    def test_duplicate_ids(self, loan_a):
        with pytest.raises(InvalidLoanTerms):
            plan([loan_a, loan_a], 100, "snowball")

    def test_minimum_below_interest_is_unreachable(self):
        loans = [Loan(id="trap", principal=10000, annual_rate_percent=24, term_months=60, minimum_payment=50)]
        with pytest.raises(PayoffUnreachable) as excinfo:
            plan(loans, 0, "avalanche")
        assert excinfo.value.horizon_months == 1200
        assert excinfo.value.remaining_balance > 10000

    def test_custom_horizon(self, payoff_loans):
        with pytest.raises(PayoffUnreachable):
            plan(payoff_loans, 0, "snowball", horizon_months=6)

    def test_extra_clears_loan_minimums_cannot(self):
        """minimums below the interest never finish, but the extra budget does"""
        loans = [Loan(id="cc", principal=10000, annual_rate_percent=24, term_months=60, minimum_payment=50)]
        result = plan(loans, 1000, "avalanche")
        summary = result.summary
        assert summary.months_to_payoff < 13
        assert result.snapshots[-1].total_balance == 0
        assert summary.baseline_reachable is False
        assert summary.baseline_months is None
        assert summary.baseline_interest is None
        assert summary.interest_saved_vs_minimum_only is None
        assert summary.months_saved is None

    def test_baseline_reachable_flag(self, payoff_loans):
        assert plan(payoff_loans, 100, "snowball").summary.baseline_reachable is True
