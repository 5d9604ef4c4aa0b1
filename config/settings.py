# Rounding
AMOUNT_PRECISION = 2
RATE_PRECISION = 4

# Effective APR search; beyond this monthly IRR the APR is reported as infinite
MAX_MONTHLY_IRR = 1e12

# Loan validation limits
MAX_TERM_MONTHS = 600
MAX_ANNUAL_RATE = 100.0
MAX_PRINCIPAL = 10_000_000

# Red flag thresholds
DEFAULT_APR_GAP_POINTS = 1.0  # effective APR minus nominal rate, percentage points
DEFAULT_HIGH_RATE_CEILING = 25.0
DEFAULT_PREDATORY_RATE = 36.0
DEFAULT_PAYDAY_RATE = 50.0
DEFAULT_EXCESSIVE_FEE_RATIO = 0.03  # fees / principal
DEFAULT_MAJOR_FEE_RATIO = 0.10

# Recommendation thresholds (portfolio analytics)
RECOMMEND_HIGH_RATE = 15.0
RECOMMEND_FEE_RATIO = 0.03
RECOMMEND_LONG_TERM_MONTHS = 60
RECOMMEND_RATE_SPREAD = 5.0

# Comparison
DEFAULT_CHECKPOINT_INTERVAL = 6

# Payoff simulation
PAYOFF_HORIZON_MONTHS = 1200
