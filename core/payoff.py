"""Debt payoff planning: snowball and avalanche simulations.

The simulation runs month by month. Every active loan first receives its
minimum payment; the shared extra budget then goes to the loan the strategy
puts first, and whatever is left after retiring it cascades down the order
within the same month. A minimum-only baseline (no extra budget) is run
alongside to report the interest saved. When the minimums alone never
retire the loans the baseline fields of the summary are ``None``.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from config.constants import PAYOFF_TIMELINE_COLUMNS, PayoffStrategy
from config.settings import PAYOFF_HORIZON_MONTHS
from core.calculator import calc_monthly_payment
from core.errors import InsufficientLoans, InvalidBudget, PayoffUnreachable
from core.loan import Loan, check_loan, check_unique_ids
from core.money import ZERO, round_money, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PayoffSnapshot:
    """State at the end of one simulated month. Dicts follow input loan order."""

    month: int
    remaining_balances: Dict[str, Decimal]
    payments: Dict[str, Decimal]
    extra_applied: Dict[str, Decimal]
    interest: Dict[str, Decimal]
    total_interest_paid_to_date: Decimal

    @property
    def total_balance(self) -> Decimal:
        return sum(self.remaining_balances.values(), ZERO)


@dataclass(frozen=True)
class PayoffSummary:
    strategy: PayoffStrategy
    months_to_payoff: int
    total_interest_paid: Decimal
    interest_saved_vs_minimum_only: Optional[Decimal]
    baseline_months: Optional[int]
    baseline_interest: Optional[Decimal]
    months_saved: Optional[int]
    total_principal_retired: Decimal

    @property
    def baseline_reachable(self) -> bool:
        return self.baseline_months is not None


@dataclass(frozen=True)
class PayoffPlan:
    strategy: PayoffStrategy
    monthly_extra: Decimal
    loan_ids: Tuple[str, ...]
    snapshots: Tuple[PayoffSnapshot, ...]
    summary: PayoffSummary
    payoff_order: Tuple[Tuple[str, int], ...]  # (loan id, month retired)

    @property
    def timeline(self) -> pd.DataFrame:
        records = []
        for snap in self.snapshots:
            for loan_id in self.loan_ids:
                records.append({
                    "month": snap.month,
                    "loan_id": loan_id,
                    "payment": float(snap.payments[loan_id]),
                    "extra_applied": float(snap.extra_applied[loan_id]),
                    "interest": float(snap.interest[loan_id]),
                    "remaining_balance": float(snap.remaining_balances[loan_id]),
                    "total_interest_paid_to_date": float(snap.total_interest_paid_to_date),
                })
        return pd.DataFrame(records, columns=PAYOFF_TIMELINE_COLUMNS)

    def retired_in(self, loan_id: str) -> int:
        for retired_id, month in self.payoff_order:
            if retired_id == loan_id:
                return month
        raise KeyError(loan_id)


@dataclass
class _Account:
    """Mutable working copy of one loan during a simulation."""

    id: str
    rate_percent: Decimal
    monthly_rate: Decimal
    minimum_payment: Decimal
    balance: Decimal
    retired: bool = False


def minimum_payment_for(loan: Loan) -> Decimal:
    """The loan's own minimum payment, or its standard amortized payment."""
    if loan.minimum_payment is not None:
        return loan.minimum_payment
    return calc_monthly_payment(loan.financed_amount, loan.annual_rate_percent, loan.term_months)


def _order(accounts: List[_Account], strategy: PayoffStrategy) -> List[_Account]:
    active = [a for a in accounts if a.balance > 0]
    if strategy == PayoffStrategy.SNOWBALL:
        return sorted(active, key=lambda a: (a.balance, a.id))
    return sorted(active, key=lambda a: (-a.rate_percent, a.id))


def _simulate(
    loans: Sequence[Loan],
    monthly_extra: Decimal,
    strategy: PayoffStrategy,
    horizon_months: int,
    roll_over_minimums: bool,
) -> Tuple[List[PayoffSnapshot], List[Tuple[str, int]]]:
    accounts = [
        _Account(
            id=loan.id,
            rate_percent=loan.annual_rate_percent,
            monthly_rate=loan.monthly_rate,
            minimum_payment=minimum_payment_for(loan),
            balance=loan.financed_amount,
        )
        for loan in loans
    ]
    snapshots: List[PayoffSnapshot] = []
    payoff_order: List[Tuple[str, int]] = []
    total_interest = ZERO
    freed_minimums = ZERO
    month = 0

    while any(a.balance > 0 for a in accounts):
        if month >= horizon_months:
            remaining = sum((a.balance for a in accounts), ZERO)
            raise PayoffUnreachable(
                f"Loans not paid off within {horizon_months} months "
                f"(remaining balance {remaining}); payments too low",
                horizon_months=horizon_months,
                remaining_balance=float(remaining),
            )
        month += 1
        payments = {a.id: ZERO for a in accounts}
        extra = {a.id: ZERO for a in accounts}
        interest = {a.id: ZERO for a in accounts}

        # minimum payments, capped at what is owed
        for a in accounts:
            if a.balance <= 0:
                continue
            accrued = round_money(a.balance * a.monthly_rate)
            paid = min(a.minimum_payment, a.balance + accrued)
            a.balance = a.balance + accrued - paid
            payments[a.id] = paid
            interest[a.id] = accrued
            total_interest += accrued

        # extra budget, cascading down the strategy order
        pool = monthly_extra + (freed_minimums if roll_over_minimums else ZERO)
        for a in _order(accounts, strategy):
            if pool <= 0:
                break
            applied = min(pool, a.balance)
            a.balance -= applied
            pool -= applied
            extra[a.id] += applied
            payments[a.id] += applied

        for a in accounts:
            if a.balance <= 0 and not a.retired:
                a.balance = ZERO
                a.retired = True
                payoff_order.append((a.id, month))
                freed_minimums += a.minimum_payment

        snapshots.append(PayoffSnapshot(
            month=month,
            remaining_balances={a.id: a.balance for a in accounts},
            payments=payments,
            extra_applied=extra,
            interest=interest,
            total_interest_paid_to_date=total_interest,
        ))

    return snapshots, payoff_order


def plan(
    loans: Sequence[Loan],
    monthly_extra,
    strategy,
    horizon_months: int = PAYOFF_HORIZON_MONTHS,
    roll_over_minimums: bool = False,
) -> PayoffPlan:
    """Simulate paying off ``loans`` with ``monthly_extra`` on top of the minimums.

    ``strategy`` is a :class:`PayoffStrategy` or its string value. Raises
    ``InvalidBudget`` for a negative budget and ``PayoffUnreachable`` when
    the loans are still open after ``horizon_months``. A baseline that never
    finishes leaves the baseline fields of the summary as ``None``.
    """
    loans = list(loans)
    if not loans:
        raise InsufficientLoans("At least one loan is required to plan a payoff")
    for loan in loans:
        check_loan(loan)
    check_unique_ids(loans)

    try:
        strategy = PayoffStrategy(strategy)
    except ValueError:
        raise ValueError(f"Invalid debt payoff strategy: {strategy!r}") from None

    try:
        extra = to_decimal(monthly_extra)
    except (TypeError, ValueError) as exc:
        raise InvalidBudget(f"Monthly extra must be a number: {exc}") from exc
    if extra < 0:
        raise InvalidBudget(f"Monthly extra cannot be negative, got {extra}")

    snapshots, payoff_order = _simulate(loans, extra, strategy, horizon_months, roll_over_minimums)
    total_interest = snapshots[-1].total_interest_paid_to_date
    try:
        baseline, _ = _simulate(loans, ZERO, strategy, horizon_months, False)
    except PayoffUnreachable as exc:
        logger.debug("Minimum-only baseline not reachable: %s", exc)
        baseline_months = baseline_interest = interest_saved = months_saved = None
    else:
        baseline_months = len(baseline)
        baseline_interest = baseline[-1].total_interest_paid_to_date
        interest_saved = baseline_interest - total_interest
        months_saved = baseline_months - len(snapshots)

    summary = PayoffSummary(
        strategy=strategy,
        months_to_payoff=len(snapshots),
        total_interest_paid=total_interest,
        interest_saved_vs_minimum_only=interest_saved,
        baseline_months=baseline_months,
        baseline_interest=baseline_interest,
        months_saved=months_saved,
        total_principal_retired=sum((loan.financed_amount for loan in loans), ZERO),
    )
    logger.debug(
        "%s plan for %d loans: %d months, interest %s (saved %s)",
        strategy.value, len(loans), summary.months_to_payoff,
        total_interest, summary.interest_saved_vs_minimum_only,
    )
    return PayoffPlan(
        strategy=strategy,
        monthly_extra=extra,
        loan_ids=tuple(loan.id for loan in loans),
        snapshots=tuple(snapshots),
        summary=summary,
        payoff_order=tuple(payoff_order),
    )
