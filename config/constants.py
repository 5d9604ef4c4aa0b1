from enum import Enum


class LoanType(str, Enum):
    PERSONAL = "personal"
    AUTO = "auto"
    MORTGAGE = "mortgage"
    STUDENT = "student"
    CREDIT_CARD = "credit_card"
    OTHER = "other"

    @property
    def label(self) -> str:
        return {
            "personal": "Personal loan",
            "auto": "Auto loan",
            "mortgage": "Mortgage",
            "student": "Student loan",
            "credit_card": "Credit card",
            "other": "Other",
        }[self.value]


class FeePolicy(str, Enum):
    PREPAID = "prepaid"  # fees paid at origination, borrower nets principal - fees
    FINANCED = "financed"  # fees rolled into the amortized balance

    @property
    def label(self) -> str:
        return {
            "prepaid": "Paid upfront",
            "financed": "Added to balance",
        }[self.value]


class PayoffStrategy(str, Enum):
    SNOWBALL = "snowball"  # smallest balance first
    AVALANCHE = "avalanche"  # highest rate first

    @property
    def label(self) -> str:
        return {
            "snowball": "Snowball (smallest balance first)",
            "avalanche": "Avalanche (highest rate first)",
        }[self.value]


class Severity(str, Enum):
    WARNING = "warning"
    CRITICAL = "critical"


class WarningKind(str, Enum):
    FEE_LOAD = "fee_load"
    HIGH_RATE = "high_rate"
    EXCESSIVE_FEES = "excessive_fees"

    @property
    def label(self) -> str:
        return {
            "fee_load": "Fees inflate the effective APR",
            "high_rate": "High interest rate",
            "excessive_fees": "Excessive upfront fees",
        }[self.value]


# DataFrame column definitions
REQUIRED_LOAN_COLUMNS = ["principal", "annual_rate_percent", "term_months"]

LOAN_COLUMNS = [
    "id", "name", "loan_type", "principal", "annual_rate_percent",
    "term_months", "fees_upfront", "minimum_payment", "fee_policy", "start_date",
]

AMORTIZATION_COLUMNS = [
    "period", "due_date", "payment_amount", "principal_portion",
    "interest_portion", "remaining_balance",
    "cumulative_principal", "cumulative_interest",
]

COMPARISON_SERIES_COLUMNS = [
    "period", "loan_id", "remaining_balance",
    "cumulative_principal", "cumulative_interest",
]

COMPARISON_SUMMARY_COLUMNS = [
    "loan_id", "name", "principal", "annual_rate_percent", "term_months",
    "fees_upfront", "monthly_payment", "total_interest", "total_paid",
    "total_cost", "effective_apr", "warnings",
]

PAYOFF_TIMELINE_COLUMNS = [
    "month", "loan_id", "payment", "extra_applied", "interest",
    "remaining_balance", "total_interest_paid_to_date",
]
