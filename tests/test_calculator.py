"""Amortization calculator tests"""
import math
from datetime import date
from decimal import Decimal

import pytest

from config.constants import AMORTIZATION_COLUMNS, FeePolicy
from core.calculator import amortize, calc_effective_apr, calc_monthly_payment
from core.errors import InvalidLoanTerms
from core.loan import Loan


class TestMonthlyPayment:
    """Standard payment"""

    def test_basic_calculation(self):
        """10000 over 36 months at 6% -> about 304.22"""
        assert calc_monthly_payment(10000, 6, 36) == Decimal("304.22")

    def test_zero_rate(self):
        assert calc_monthly_payment(120000, 0, 12) == Decimal("10000.00")

    def test_single_payment(self):
        # one period: principal plus one month of interest
        assert calc_monthly_payment(1000, 12, 1) == Decimal("1010.00")

    def test_large_loan(self):
        payment = calc_monthly_payment(1_000_000, 3.45, 360)
        assert Decimal("4450") < payment < Decimal("4475")

    @pytest.mark.parametrize("principal, rate, term", [
        (0, 5, 12),
        (1000, -1, 12),
        (1000, 5, 0),
    ])
    def test_invalid_inputs(self, principal, rate, term):
        with pytest.raises(InvalidLoanTerms):
            calc_monthly_payment(principal, rate, term)


class TestAmortize:
    """Schedule generation"""

    def test_reference_loan(self, loan_a):
        result = amortize(loan_a)
        assert result.monthly_payment == Decimal("304.22")
        assert float(result.total_interest) == pytest.approx(951.9, abs=0.25)
        assert result.total_paid == result.total_interest + Decimal("10000")
        assert result.payoff_period == 36

    def test_schedule_shape(self, loan_a):
        result = amortize(loan_a)
        assert len(result.rows) == 36
        assert result.rows[0].period == 1
        assert result.rows[-1].period == 36
        assert result.rows[-1].remaining_balance == 0
        # every payment but the last is the standard payment
        assert {row.payment_amount for row in result.rows[:-1]} == {Decimal("304.22")}

    def test_principal_sums_exactly(self, loan_a):
        result = amortize(loan_a)
        assert sum(row.principal_portion for row in result.rows) == Decimal("10000")
        assert result.total_principal == loan_a.principal
        assert result.rows[-1].cumulative_principal == loan_a.principal

    @pytest.mark.parametrize("principal, rate, term", [
        (12345.67, 7.25, 60),
        (999.99, 19.99, 7),
        (250000, 4.1, 360),
        (100, 0, 3),
        (10000, 0, 7),
        (0.05, 3, 10),
    ])
    def test_principal_never_drifts(self, principal, rate, term):
        loan = Loan(id="x", principal=principal, annual_rate_percent=rate, term_months=term)
        result = amortize(loan)
        assert sum(row.principal_portion for row in result.rows) == loan.principal
        assert result.rows[-1].remaining_balance == 0
        assert all(row.principal_portion >= 0 for row in result.rows)

    def test_interest_is_balance_times_rate(self, loan_a):
        result = amortize(loan_a)
        first = result.rows[0]
        assert first.interest_portion == Decimal("50.00")
        assert first.principal_portion == Decimal("254.22")
        second = result.rows[1]
        assert second.interest_portion == (first.remaining_balance * Decimal("0.005")).quantize(Decimal("0.01"))

    def test_zero_rate(self):
        loan = Loan(id="z", principal=120000, annual_rate_percent=0, term_months=12)
        result = amortize(loan)
        assert result.total_interest == 0
        assert all(row.interest_portion == 0 for row in result.rows)
        assert all(row.payment_amount == row.principal_portion for row in result.rows)
        assert sum(row.principal_portion for row in result.rows) == Decimal("120000")

    def test_zero_rate_uneven_split(self):
        loan = Loan(id="z", principal=10000, annual_rate_percent=0, term_months=3)
        payments = [row.payment_amount for row in amortize(loan).rows]
        assert payments == [Decimal("3333.33"), Decimal("3333.33"), Decimal("3333.34")]

    def test_single_payment_term(self):
        loan = Loan(id="one", principal=1000, annual_rate_percent=12, term_months=1)
        result = amortize(loan)
        assert len(result.rows) == 1
        assert result.rows[0].payment_amount == Decimal("1010.00")
        assert result.total_interest == Decimal("10.00")

    def test_idempotent(self, loan_a):
        assert amortize(loan_a) == amortize(loan_a)

    def test_higher_rate_costs_more(self, loan_a, loan_b):
        assert amortize(loan_b).total_interest > amortize(loan_a).total_interest

    def test_schedule_frame(self, loan_a):
        sch = amortize(loan_a).schedule
        assert list(sch.columns) == AMORTIZATION_COLUMNS
        assert len(sch) == 36
        assert sch.iloc[-1]["remaining_balance"] == 0.0
        assert sch["principal_portion"].sum() == pytest.approx(10000)
        assert sch["due_date"].isna().all()


class TestFeesAndDates:
    def test_prepaid_fees_added_to_total_cost(self):
        loan = Loan(id="f", principal=10000, annual_rate_percent=6, term_months=36, fees_upfront=500)
        result = amortize(loan)
        assert result.financed_amount == Decimal("10000")
        assert result.total_cost == result.total_paid + Decimal("500")

    def test_financed_fees_amortized(self):
        loan = Loan(
            id="f", principal=10000, annual_rate_percent=6, term_months=36,
            fees_upfront=500, fee_policy=FeePolicy.FINANCED,
        )
        result = amortize(loan)
        assert result.financed_amount == Decimal("10500")
        assert result.total_principal == Decimal("10500")
        assert result.total_cost == result.total_paid

    def test_due_dates_follow_start_date(self):
        loan = Loan(id="d", principal=3000, annual_rate_percent=5, term_months=3, start_date=date(2024, 1, 31))
        result = amortize(loan)
        assert [row.due_date for row in result.rows] == [
            date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31),
        ]
        assert result.payoff_date == date(2024, 3, 31)
        assert result.schedule.iloc[1]["due_date"] == "2024-02-29"

    def test_no_start_date_no_payoff_date(self, loan_a):
        assert amortize(loan_a).payoff_date is None


class TestEffectiveApr:
    """Effective APR via IRR"""

    def test_close_to_nominal_without_fees(self, loan_a):
        assert calc_effective_apr(loan_a) == pytest.approx(6.0, abs=0.01)

    def test_zero_rate_zero_fees(self):
        loan = Loan(id="z", principal=1200, annual_rate_percent=0, term_months=12)
        assert calc_effective_apr(loan) == pytest.approx(0.0, abs=1e-4)

    def test_fees_raise_apr(self, loan_a):
        with_fees = loan_a.replace(fees_upfront=500)
        assert calc_effective_apr(with_fees) > calc_effective_apr(loan_a) + 1

    def test_financed_fees_raise_apr(self, loan_a):
        financed = loan_a.replace(fees_upfront=500, fee_policy=FeePolicy.FINANCED)
        assert calc_effective_apr(financed) > 6.5

    def test_zero_rate_with_fees_is_positive(self):
        loan = Loan(id="z", principal=1200, annual_rate_percent=0, term_months=12, fees_upfront=60)
        assert calc_effective_apr(loan) > 5

    def test_tiny_net_proceeds_solved(self):
        """a cent of proceeds repaid with 101000 a month later"""
        loan = Loan(id="f", principal=100000, annual_rate_percent=12, term_months=1, fees_upfront="99999.99")
        result = amortize(loan)
        assert result.total_paid == Decimal("101000.00")
        assert 1e9 < result.effective_apr < math.inf

    def test_unbounded_apr_is_infinite(self):
        loan = Loan(id="f", principal=100000, annual_rate_percent=12, term_months=1,
                    fees_upfront="99999.999999999")
        assert calc_effective_apr(loan) == math.inf

    def test_long_term_with_tiny_proceeds(self):
        loan = Loan(id="f", principal=10000, annual_rate_percent=5, term_months=600, fees_upfront="9999.99")
        apr = calc_effective_apr(loan)
        assert apr > 1000
