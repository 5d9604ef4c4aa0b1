"""Errors raised by the loan engine.

All of them are deterministic input failures: calling again with the same
arguments fails the same way.
"""


class LoanEngineError(ValueError):
    """Base class for loan engine errors."""


class InvalidLoanTerms(LoanEngineError):
    """Loan terms violate an invariant (non-positive principal, negative rate...)."""


class InsufficientLoans(LoanEngineError):
    """Too few loans were supplied for the requested operation."""


class InvalidBudget(LoanEngineError):
    """The monthly extra-payment budget is negative."""


class PayoffUnreachable(LoanEngineError):
    """The payoff simulation did not retire every loan within the horizon."""

    def __init__(self, message: str, horizon_months: int, remaining_balance: float):
        super().__init__(message)
        self.horizon_months = horizon_months
        self.remaining_balance = remaining_balance
