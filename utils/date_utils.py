import calendar
from datetime import date

from dateutil.relativedelta import relativedelta


def get_due_date(first_due: date, period: int) -> date:
    """Due date of the given 1-based period when period 1 falls on ``first_due``."""
    target = first_due + relativedelta(months=period - 1)
    # keep the original day of month when the target month is long enough
    max_day = calendar.monthrange(target.year, target.month)[1]
    return target.replace(day=min(first_due.day, max_day))
