"""Heuristic warnings about predatory loan terms.

The checks are advisory: they annotate a valid loan and never stop it from
being calculated. Each check runs independently and warnings come back in
the order of ``CHECKS``.
"""
import logging
from dataclasses import dataclass
from typing import ClassVar, List, Optional

from config.constants import Severity, WarningKind
from config.settings import (
    DEFAULT_APR_GAP_POINTS,
    DEFAULT_EXCESSIVE_FEE_RATIO,
    DEFAULT_HIGH_RATE_CEILING,
    DEFAULT_MAJOR_FEE_RATIO,
    DEFAULT_PAYDAY_RATE,
    DEFAULT_PREDATORY_RATE,
)
from core.calculator import calc_effective_apr
from core.loan import Loan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RedFlagThresholds:
    apr_gap_points: float = DEFAULT_APR_GAP_POINTS
    high_rate_ceiling: float = DEFAULT_HIGH_RATE_CEILING
    predatory_rate: float = DEFAULT_PREDATORY_RATE
    payday_rate: float = DEFAULT_PAYDAY_RATE
    excessive_fee_ratio: float = DEFAULT_EXCESSIVE_FEE_RATIO
    major_fee_ratio: float = DEFAULT_MAJOR_FEE_RATIO


@dataclass(frozen=True)
class LoanWarning:
    kind: ClassVar[WarningKind]

    loan_id: str
    message: str
    value: float
    threshold: float
    severity: Severity = Severity.WARNING


@dataclass(frozen=True)
class FeeLoadWarning(LoanWarning):
    kind: ClassVar[WarningKind] = WarningKind.FEE_LOAD


@dataclass(frozen=True)
class HighRateWarning(LoanWarning):
    kind: ClassVar[WarningKind] = WarningKind.HIGH_RATE


@dataclass(frozen=True)
class ExcessiveFeesWarning(LoanWarning):
    kind: ClassVar[WarningKind] = WarningKind.EXCESSIVE_FEES


def check_fee_load(loan: Loan, thresholds: RedFlagThresholds) -> Optional[LoanWarning]:
    if loan.fees_upfront == 0:
        return None
    apr = calc_effective_apr(loan)
    gap = apr - float(loan.annual_rate_percent)
    if gap <= thresholds.apr_gap_points:
        return None
    return FeeLoadWarning(
        loan_id=loan.id,
        message=(
            f"Fees raise the effective APR to {apr:.2f}%, "
            f"{gap:.2f} points above the stated {float(loan.annual_rate_percent):.2f}%"
        ),
        value=round(gap, 4),
        threshold=thresholds.apr_gap_points,
    )


def check_high_rate(loan: Loan, thresholds: RedFlagThresholds) -> Optional[LoanWarning]:
    rate = float(loan.annual_rate_percent)
    if rate <= thresholds.high_rate_ceiling:
        return None
    if rate > thresholds.payday_rate:
        message = f"Payday-loan rate levels ({rate:.2f}% > {thresholds.payday_rate}%), extremely dangerous"
        severity = Severity.CRITICAL
    elif rate > thresholds.predatory_rate:
        message = f"Rate exceeds {thresholds.predatory_rate}%, likely predatory lending"
        severity = Severity.CRITICAL
    else:
        message = f"Very high rate (> {thresholds.high_rate_ceiling}%), possible predatory lending"
        severity = Severity.WARNING
    return HighRateWarning(
        loan_id=loan.id,
        message=message,
        value=rate,
        threshold=thresholds.high_rate_ceiling,
        severity=severity,
    )


def check_excessive_fees(loan: Loan, thresholds: RedFlagThresholds) -> Optional[LoanWarning]:
    ratio = float(loan.fees_upfront / loan.principal)
    if ratio <= thresholds.excessive_fee_ratio:
        return None
    return ExcessiveFeesWarning(
        loan_id=loan.id,
        message=(
            f"Upfront fees are {ratio * 100:.1f}% of the principal "
            f"(limit {thresholds.excessive_fee_ratio * 100:.1f}%)"
        ),
        value=round(ratio, 6),
        threshold=thresholds.excessive_fee_ratio,
        severity=Severity.CRITICAL if ratio > thresholds.major_fee_ratio else Severity.WARNING,
    )


CHECKS = (check_fee_load, check_high_rate, check_excessive_fees)


def evaluate(loan: Loan, thresholds: Optional[RedFlagThresholds] = None) -> List[LoanWarning]:
    """All warnings for one loan, in check order. Empty when nothing looks off."""
    thresholds = thresholds or RedFlagThresholds()
    warnings = [w for w in (check(loan, thresholds) for check in CHECKS) if w is not None]
    logger.debug("Loan %s: %d red flag(s)", loan.id, len(warnings))
    return warnings
