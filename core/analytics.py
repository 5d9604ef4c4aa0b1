"""Portfolio-level metrics and recommendations for a set of loans."""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import pandas as pd

from config.settings import (
    RECOMMEND_FEE_RATIO,
    RECOMMEND_HIGH_RATE,
    RECOMMEND_LONG_TERM_MONTHS,
    RECOMMEND_RATE_SPREAD,
)
from core.calculator import amortize
from core.loan import Loan, check_unique_ids
from core.red_flags import RedFlagThresholds, evaluate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoanAnalytics:
    loan_count: int
    total_loan_value: float
    average_rate: float
    weighted_average_rate: float
    total_monthly_payments: float
    total_interest: float
    potential_red_flags: int
    loans_by_type: Dict[str, Dict[str, float]] = field(default_factory=dict)
    recommendations: List[str] = field(default_factory=list)


def generate_recommendations(loans: Sequence[Loan]) -> List[str]:
    """Plain-language advice for a set of loans."""
    if not loans:
        return ["Add loan options to compare and find the best deal"]

    recommendations = []
    if any(float(loan.annual_rate_percent) > RECOMMEND_HIGH_RATE for loan in loans):
        recommendations.append(
            "Consider shopping around for better rates - some of your loans have high rates"
        )
    if any(float(loan.fees_upfront) > float(loan.principal) * RECOMMEND_FEE_RATIO for loan in loans):
        recommendations.append(
            "Look for lenders with lower fees to reduce your total borrowing cost"
        )
    if any(loan.term_months > RECOMMEND_LONG_TERM_MONTHS for loan in loans):
        recommendations.append("Consider shorter loan terms to pay less interest over time")

    if len(loans) >= 2:
        recommendations.append("Compare the total cost, not just monthly payments")
        recommendations.append(
            "Check if lenders offer rate discounts for autopay or existing customers"
        )

    rates = [float(loan.annual_rate_percent) for loan in loans]
    if max(rates) - min(rates) > RECOMMEND_RATE_SPREAD:
        recommendations.append(
            "There's a significant difference in rates - choose the lowest rate to save money"
        )
    return recommendations


def summarize_portfolio(
    loans: Sequence[Loan], thresholds: Optional[RedFlagThresholds] = None
) -> LoanAnalytics:
    """Aggregate metrics across loans; an empty list gives zeros."""
    loans = list(loans)
    check_unique_ids(loans)
    if not loans:
        return LoanAnalytics(
            loan_count=0,
            total_loan_value=0.0,
            average_rate=0.0,
            weighted_average_rate=0.0,
            total_monthly_payments=0.0,
            total_interest=0.0,
            potential_red_flags=0,
            recommendations=generate_recommendations(loans),
        )

    results = [amortize(loan) for loan in loans]
    df = pd.DataFrame({
        "loan_type": [loan.loan_type.value for loan in loans],
        "principal": [float(loan.principal) for loan in loans],
        "rate": [float(loan.annual_rate_percent) for loan in loans],
        "monthly_payment": [float(r.monthly_payment) for r in results],
        "total_interest": [float(r.total_interest) for r in results],
    })

    total_value = df["principal"].sum()
    weighted = (df["rate"] * df["principal"]).sum() / total_value
    by_type = df.groupby("loan_type")["principal"].agg(["count", "sum"])
    loans_by_type = {
        loan_type: {"count": int(row["count"]), "total_value": round(float(row["sum"]), 2)}
        for loan_type, row in by_type.iterrows()
    }
    red_flags = sum(len(evaluate(loan, thresholds)) for loan in loans)

    logger.debug("Summarized %d loans, %d red flag(s)", len(loans), red_flags)
    return LoanAnalytics(
        loan_count=len(loans),
        total_loan_value=round(float(total_value), 2),
        average_rate=round(float(df["rate"].mean()), 4),
        weighted_average_rate=round(float(weighted), 4),
        total_monthly_payments=round(float(df["monthly_payment"].sum()), 2),
        total_interest=round(float(df["total_interest"].sum()), 2),
        potential_red_flags=red_flags,
        loans_by_type=loans_by_type,
        recommendations=generate_recommendations(loans),
    )
