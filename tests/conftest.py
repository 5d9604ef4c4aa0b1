import sys
import pytest
from pathlib import Path

# make the project root importable
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from core.loan import Loan  # noqa: E402


@pytest.fixture
def loan_a():
    return Loan(id="a", principal=10000, annual_rate_percent=6, term_months=36)


@pytest.fixture
def loan_b():
    return Loan(id="b", principal=10000, annual_rate_percent=9, term_months=36)


@pytest.fixture
def payoff_loans():
    return [
        Loan(id="high", principal=5000, annual_rate_percent=20, term_months=24),
        Loan(id="low", principal=2000, annual_rate_percent=5, term_months=24),
    ]
