"""Side-by-side comparison of two or more loans."""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from itertools import combinations
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from config.constants import COMPARISON_SERIES_COLUMNS, COMPARISON_SUMMARY_COLUMNS
from config.settings import DEFAULT_CHECKPOINT_INTERVAL
from core.calculator import AmortizationResult, amortize
from core.errors import InsufficientLoans
from core.loan import Loan, check_unique_ids
from core.red_flags import LoanWarning, RedFlagThresholds, evaluate

logger = logging.getLogger(__name__)

DIFF_METRICS = ("total_interest", "effective_apr", "monthly_payment", "total_cost")


@dataclass(frozen=True)
class LoanDifference:
    """One metric compared between two loans; ``difference`` is second minus first."""

    metric: str
    first_id: str
    second_id: str
    first_value: float
    second_value: float
    difference: float
    percent_difference: Optional[float]
    higher_id: Optional[str]


@dataclass(frozen=True)
class ComparisonSeries:
    loan_ids: Tuple[str, ...]
    results: Dict[str, AmortizationResult]
    checkpoints: Tuple[int, ...]
    series: pd.DataFrame
    summary: pd.DataFrame
    differences: Tuple[LoanDifference, ...]
    best_options: Dict[str, str]
    monthly_payment_range: Tuple[float, float]
    total_cost_range: Tuple[float, float]
    potential_savings: float
    warnings: Dict[str, List[LoanWarning]] = field(default_factory=dict)

    def differences_for(self, metric: str) -> List[LoanDifference]:
        return [d for d in self.differences if d.metric == metric]


def checkpoint_periods(shortest_term: int, interval: int = DEFAULT_CHECKPOINT_INTERVAL) -> List[int]:
    """Period 0, every ``interval`` months, and the shortest term itself."""
    if interval < 1:
        raise ValueError("Checkpoint interval must be at least 1 month")
    points = [0] + list(range(interval, shortest_term + 1, interval))
    if points[-1] != shortest_term:
        points.append(shortest_term)
    return points


def _metric_value(result: AmortizationResult, metric: str) -> float:
    value = getattr(result, metric)
    return float(value)


def _diff(metric: str, first: AmortizationResult, second: AmortizationResult) -> LoanDifference:
    a = _metric_value(first, metric)
    b = _metric_value(second, metric)
    difference = round(b - a, 4)
    percent = round(difference / a * 100, 2) if a != 0 else None
    if b > a:
        higher = second.loan_id
    elif a > b:
        higher = first.loan_id
    else:
        higher = None
    return LoanDifference(
        metric=metric,
        first_id=first.loan_id,
        second_id=second.loan_id,
        first_value=a,
        second_value=b,
        difference=difference,
        percent_difference=percent,
        higher_id=higher,
    )


def _resample(result: AmortizationResult, checkpoints: Sequence[int]) -> List[Dict]:
    rows = []
    for period in checkpoints:
        row = result.row_at(period)
        if row is None:
            balance, cum_p, cum_i = result.financed_amount, Decimal(0), Decimal(0)
        else:
            balance, cum_p, cum_i = row.remaining_balance, row.cumulative_principal, row.cumulative_interest
        rows.append({
            "period": period,
            "loan_id": result.loan_id,
            "remaining_balance": float(balance),
            "cumulative_principal": float(cum_p),
            "cumulative_interest": float(cum_i),
        })
    return rows


def compare(
    loans: Sequence[Loan],
    checkpoint_interval: int = DEFAULT_CHECKPOINT_INTERVAL,
    thresholds: Optional[RedFlagThresholds] = None,
) -> ComparisonSeries:
    """
    Compare loans on a common checkpoint grid.

    Every loan is amortized independently, then sampled at the same periods
    (never past the shortest loan's payoff) so the series can be charted
    together. Pairwise differences follow input order.
    """
    loans = list(loans)
    if len(loans) < 2:
        raise InsufficientLoans(f"At least two loans are required to compare, got {len(loans)}")
    check_unique_ids(loans)

    results = {loan.id: amortize(loan) for loan in loans}
    shortest = min(r.payoff_period for r in results.values())
    checkpoints = checkpoint_periods(shortest, checkpoint_interval)

    series_rows = []
    for loan in loans:
        series_rows.extend(_resample(results[loan.id], checkpoints))
    series = pd.DataFrame(series_rows, columns=COMPARISON_SERIES_COLUMNS)

    warnings = {loan.id: evaluate(loan, thresholds) for loan in loans}

    summary = pd.DataFrame([{
        "loan_id": loan.id,
        "name": loan.name,
        "principal": float(loan.principal),
        "annual_rate_percent": float(loan.annual_rate_percent),
        "term_months": loan.term_months,
        "fees_upfront": float(loan.fees_upfront),
        "monthly_payment": float(results[loan.id].monthly_payment),
        "total_interest": float(results[loan.id].total_interest),
        "total_paid": float(results[loan.id].total_paid),
        "total_cost": float(results[loan.id].total_cost),
        "effective_apr": results[loan.id].effective_apr,
        "warnings": len(warnings[loan.id]),
    } for loan in loans], columns=COMPARISON_SUMMARY_COLUMNS)

    differences = tuple(
        _diff(metric, results[a.id], results[b.id])
        for a, b in combinations(loans, 2)
        for metric in DIFF_METRICS
    )

    # idxmin returns the first minimum, so ties go to the earlier loan
    indexed = summary.set_index("loan_id")
    best_options = {
        "lowest_payment": indexed["monthly_payment"].idxmin(),
        "lowest_total": indexed["total_cost"].idxmin(),
        "lowest_interest": indexed["total_interest"].idxmin(),
    }
    payment_range = (float(summary["monthly_payment"].min()), float(summary["monthly_payment"].max()))
    cost_range = (float(summary["total_cost"].min()), float(summary["total_cost"].max()))

    logger.debug("Compared %d loans on %d checkpoints", len(loans), len(checkpoints))
    return ComparisonSeries(
        loan_ids=tuple(loan.id for loan in loans),
        results=results,
        checkpoints=tuple(checkpoints),
        series=series,
        summary=summary,
        differences=differences,
        best_options=best_options,
        monthly_payment_range=payment_range,
        total_cost_range=cost_range,
        potential_savings=round(cost_range[1] - cost_range[0], 2),
        warnings=warnings,
    )
