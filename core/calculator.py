"""Core calculation: standard payment, amortization schedule, effective APR."""
import logging
import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Tuple

import numpy as np
import pandas as pd
from scipy import optimize

from config.constants import AMORTIZATION_COLUMNS, FeePolicy
from config.settings import MAX_MONTHLY_IRR, RATE_PRECISION
from core.errors import InvalidLoanTerms
from core.loan import Loan, check_loan
from core.money import ZERO, monthly_rate, round_money, to_decimal
from utils.date_utils import get_due_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AmortizationRow:
    period: int
    payment_amount: Decimal
    principal_portion: Decimal
    interest_portion: Decimal
    remaining_balance: Decimal
    cumulative_principal: Decimal
    cumulative_interest: Decimal
    due_date: Optional[date] = None


@dataclass(frozen=True)
class AmortizationResult:
    """Schedule and totals for one loan. Amounts are cent-rounded Decimals."""

    loan_id: str
    financed_amount: Decimal
    monthly_payment: Decimal
    rows: Tuple[AmortizationRow, ...]
    total_interest: Decimal
    total_paid: Decimal
    total_cost: Decimal
    payoff_period: int
    effective_apr: float
    payoff_date: Optional[date] = None

    @property
    def total_principal(self) -> Decimal:
        return sum((row.principal_portion for row in self.rows), ZERO)

    def row_at(self, period: int) -> Optional[AmortizationRow]:
        """Row for a 1-based period, or None for period 0 and past payoff."""
        if 1 <= period <= len(self.rows):
            return self.rows[period - 1]
        return None

    @property
    def schedule(self) -> pd.DataFrame:
        records = [{
            "period": row.period,
            "due_date": row.due_date.strftime("%Y-%m-%d") if row.due_date else None,
            "payment_amount": float(row.payment_amount),
            "principal_portion": float(row.principal_portion),
            "interest_portion": float(row.interest_portion),
            "remaining_balance": float(row.remaining_balance),
            "cumulative_principal": float(row.cumulative_principal),
            "cumulative_interest": float(row.cumulative_interest),
        } for row in self.rows]
        return pd.DataFrame(records, columns=AMORTIZATION_COLUMNS)


def calc_monthly_payment(principal, annual_rate_percent, term_months: int) -> Decimal:
    """Standard fixed payment, rounded to cents.

        payment = P * r * (1 + r)^n / ((1 + r)^n - 1)

    With a zero rate this is ``P / n``; with ``n == 1`` it reduces to
    ``P * (1 + r)``.
    """
    principal = to_decimal(principal)
    if principal <= 0:
        raise InvalidLoanTerms("Principal must be greater than 0")
    if term_months < 1:
        raise InvalidLoanTerms("Term must be at least 1 month")
    rate = to_decimal(annual_rate_percent)
    if rate < 0:
        raise InvalidLoanTerms("Annual rate cannot be negative")

    r = monthly_rate(rate)
    if r == 0:
        return round_money(principal / term_months)
    factor = (1 + r) ** term_months
    return round_money(principal * r * factor / (factor - 1))


def _irr_apr(net_proceeds: Decimal, payments: Iterable[Decimal]) -> float:
    """Nominal APR (monthly IRR x 12, in percent) of borrowing ``net_proceeds``.

    Returns ``math.inf`` when the proceeds are so small next to the payments
    that no monthly rate up to ``MAX_MONTHLY_IRR`` discounts them to zero.
    """
    cash_flows = np.array([-float(net_proceeds)] + [float(p) for p in payments])
    periods = np.arange(len(cash_flows))

    def npv(rate):
        with np.errstate(over="ignore"):
            return float(np.sum(cash_flows / (1 + rate) ** periods))

    # npv(-0.5) > 0 whenever payments cover the proceeds; widen the upper bound until it flips
    upper = 1.0
    while npv(upper) > 0:
        if upper >= MAX_MONTHLY_IRR:
            logger.warning("Effective APR unbounded for net proceeds %s", net_proceeds)
            return math.inf
        upper *= 10
    try:
        monthly_irr = optimize.brentq(npv, -0.5, upper)
    except (ValueError, RuntimeError) as exc:
        raise InvalidLoanTerms(f"Cannot solve effective APR: {exc}") from exc
    return round(monthly_irr * 12 * 100, RATE_PRECISION) + 0.0


def amortize(loan: Loan) -> AmortizationResult:
    """Full amortization schedule for one loan.

    Interest each period is the remaining balance times the monthly rate,
    rounded to cents; the principal portion is the payment minus interest.
    The last period takes whatever balance is left, so the principal column
    always sums to the financed amount exactly.
    """
    check_loan(loan)
    basis = loan.financed_amount
    r = loan.monthly_rate
    term = loan.term_months
    payment = calc_monthly_payment(basis, loan.annual_rate_percent, term)

    rows = []
    remaining = basis
    cum_principal = ZERO
    cum_interest = ZERO

    for period in range(1, term + 1):
        interest = round_money(remaining * r)
        if period == term:
            prin = remaining
        else:
            prin = min(payment - interest, remaining)
        amount = prin + interest

        remaining -= prin
        cum_principal += prin
        cum_interest += interest

        rows.append(AmortizationRow(
            period=period,
            payment_amount=amount,
            principal_portion=prin,
            interest_portion=interest,
            remaining_balance=remaining,
            cumulative_principal=cum_principal,
            cumulative_interest=cum_interest,
            due_date=get_due_date(loan.start_date, period) if loan.start_date else None,
        ))
        # tiny balances can be cleared early by the cent-rounded payment
        if remaining == 0:
            break

    total_paid = sum((row.payment_amount for row in rows), ZERO)
    total_cost = total_paid
    if loan.fee_policy == FeePolicy.PREPAID:
        total_cost += loan.fees_upfront

    result = AmortizationResult(
        loan_id=loan.id,
        financed_amount=basis,
        monthly_payment=payment,
        rows=tuple(rows),
        total_interest=cum_interest,
        total_paid=total_paid,
        total_cost=total_cost,
        payoff_period=len(rows),
        effective_apr=_irr_apr(loan.net_proceeds, (row.payment_amount for row in rows)),
        payoff_date=rows[-1].due_date,
    )
    logger.debug(
        "Amortized loan %s: payment=%s periods=%d interest=%s apr=%.4f",
        loan.id, payment, result.payoff_period, cum_interest, result.effective_apr,
    )
    return result


def calc_effective_apr(loan: Loan) -> float:
    """Effective APR of a loan, folding upfront fees into the rate."""
    return amortize(loan).effective_apr
