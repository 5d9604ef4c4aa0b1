"""Loan terms: the immutable input to every calculator."""
import numbers
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

import pandas as pd

from config.constants import LOAN_COLUMNS, REQUIRED_LOAN_COLUMNS, FeePolicy, LoanType
from config.settings import MAX_ANNUAL_RATE, MAX_PRINCIPAL, MAX_TERM_MONTHS
from core.errors import InvalidLoanTerms
from core.money import ZERO, monthly_rate, to_decimal
from utils.id_generator import generate_loan_id


def validate_loan_terms(
    principal,
    annual_rate_percent,
    term_months,
    fees_upfront=0,
    minimum_payment=None,
    max_term_months: int = MAX_TERM_MONTHS,
    max_annual_rate: float = MAX_ANNUAL_RATE,
    max_principal: float = MAX_PRINCIPAL,
) -> Tuple[bool, str]:
    """Check loan terms, returning (is_valid, error_message)."""
    try:
        principal = to_decimal(principal)
        rate = to_decimal(annual_rate_percent)
        fees = to_decimal(fees_upfront)
        minimum = to_decimal(minimum_payment) if minimum_payment is not None else None
    except (TypeError, ValueError) as exc:
        return False, str(exc)

    if principal <= 0:
        return False, "Principal must be greater than 0"
    if principal > to_decimal(max_principal):
        return False, f"Principal cannot exceed {max_principal:,}"

    if rate < 0:
        return False, "Annual rate cannot be negative"
    if rate > to_decimal(max_annual_rate):
        return False, f"Annual rate cannot exceed {max_annual_rate}%"

    if isinstance(term_months, bool) or not isinstance(term_months, numbers.Integral):
        return False, f"Term must be a whole number of months, got {term_months!r}"
    if not 1 <= term_months <= max_term_months:
        return False, f"Term must be between 1 and {max_term_months} months"

    if fees < 0:
        return False, "Fees cannot be negative"
    if fees >= principal:
        return False, "Fees must be less than the principal"

    if minimum is not None and minimum <= 0:
        return False, "Minimum payment must be greater than 0"

    return True, ""


@dataclass(frozen=True)
class Loan:
    """One loan's terms. Monetary fields are normalized to ``Decimal``.

    Construction validates every invariant and raises ``InvalidLoanTerms``
    instead of clamping. Use :meth:`replace` to derive an edited loan.
    """

    id: str
    principal: Decimal
    annual_rate_percent: Decimal
    term_months: int
    fees_upfront: Decimal = ZERO
    minimum_payment: Optional[Decimal] = None
    name: str = ""
    loan_type: LoanType = LoanType.PERSONAL
    fee_policy: FeePolicy = FeePolicy.PREPAID
    start_date: Optional[date] = None

    def __post_init__(self):
        if self.id is None or not str(self.id).strip():
            raise InvalidLoanTerms("Loan id cannot be empty")
        ok, message = validate_loan_terms(
            self.principal, self.annual_rate_percent, self.term_months,
            self.fees_upfront, self.minimum_payment,
        )
        if not ok:
            raise InvalidLoanTerms(f"Loan {self.id!r}: {message}")
        try:
            loan_type = LoanType(self.loan_type)
            fee_policy = FeePolicy(self.fee_policy)
        except ValueError as exc:
            raise InvalidLoanTerms(f"Loan {self.id!r}: {exc}") from exc
        if self.start_date is not None and not isinstance(self.start_date, date):
            raise InvalidLoanTerms(f"Loan {self.id!r}: start_date must be a date")

        set_ = object.__setattr__
        set_(self, "id", str(self.id))
        set_(self, "principal", to_decimal(self.principal))
        set_(self, "annual_rate_percent", to_decimal(self.annual_rate_percent))
        set_(self, "term_months", int(self.term_months))
        set_(self, "fees_upfront", to_decimal(self.fees_upfront))
        if self.minimum_payment is not None:
            set_(self, "minimum_payment", to_decimal(self.minimum_payment))
        set_(self, "loan_type", loan_type)
        set_(self, "fee_policy", fee_policy)

    @property
    def monthly_rate(self) -> Decimal:
        return monthly_rate(self.annual_rate_percent)

    @property
    def financed_amount(self) -> Decimal:
        """Balance that is actually amortized."""
        if self.fee_policy == FeePolicy.FINANCED:
            return self.principal + self.fees_upfront
        return self.principal

    @property
    def net_proceeds(self) -> Decimal:
        """Cash the borrower receives at origination."""
        if self.fee_policy == FeePolicy.FINANCED:
            return self.principal
        return self.principal - self.fees_upfront

    def replace(self, **changes) -> "Loan":
        """Return a new, re-validated loan with some terms changed."""
        return replace(self, **changes)


def check_loan(loan: Loan) -> None:
    """Re-run validation on an existing loan value."""
    if not isinstance(loan, Loan):
        raise InvalidLoanTerms(f"Expected a Loan, got {type(loan).__name__}")
    ok, message = validate_loan_terms(
        loan.principal, loan.annual_rate_percent, loan.term_months,
        loan.fees_upfront, loan.minimum_payment,
    )
    if not ok:
        raise InvalidLoanTerms(f"Loan {loan.id!r}: {message}")


def check_unique_ids(loans: Iterable[Loan]) -> None:
    seen = set()
    for loan in loans:
        if loan.id in seen:
            raise InvalidLoanTerms(f"Duplicate loan id: {loan.id!r}")
        seen.add(loan.id)


def _cell(row: dict, key: str, default=None):
    value = row.get(key, default)
    if value is None:
        return default
    try:
        if pd.isna(value):
            return default
    except (TypeError, ValueError):
        pass
    if isinstance(value, str) and not value.strip():
        return default
    return value


def loans_from_frame(df: pd.DataFrame) -> List[Loan]:
    """Build loans from a table with ``LOAN_COLUMNS`` columns.

    Only ``REQUIRED_LOAN_COLUMNS`` must be present; other columns outside
    ``LOAN_COLUMNS`` are ignored and a missing ``id`` gets a generated one.
    """
    missing = set(REQUIRED_LOAN_COLUMNS) - set(df.columns)
    if missing:
        raise InvalidLoanTerms(f"Missing loan columns: {', '.join(sorted(missing))}")

    loans = []
    for row in df.reindex(columns=LOAN_COLUMNS).to_dict("records"):
        term = _cell(row, "term_months")
        if isinstance(term, float) and term.is_integer():
            term = int(term)
        start = _cell(row, "start_date")
        if isinstance(start, datetime):
            start = start.date()
        elif start is not None and not isinstance(start, date):
            start = pd.to_datetime(start).date()
        loans.append(Loan(
            id=str(_cell(row, "id") or generate_loan_id()),
            principal=_cell(row, "principal"),
            annual_rate_percent=_cell(row, "annual_rate_percent"),
            term_months=term,
            fees_upfront=_cell(row, "fees_upfront", 0),
            minimum_payment=_cell(row, "minimum_payment"),
            name=str(_cell(row, "name", "")),
            loan_type=_cell(row, "loan_type", LoanType.PERSONAL.value),
            fee_policy=_cell(row, "fee_policy", FeePolicy.PREPAID.value),
            start_date=start,
        ))
    return loans
