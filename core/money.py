"""Decimal helpers shared by the calculators."""
import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from config.settings import AMOUNT_PRECISION

CENT = Decimal(1).scaleb(-AMOUNT_PRECISION)
ZERO = Decimal("0")


def to_decimal(value) -> Decimal:
    """Convert int/float/str/Decimal to Decimal; floats go through ``str`` to avoid binary noise."""
    if isinstance(value, bool) or value is None:
        raise TypeError(f"Not a number: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValueError(f"Not a finite number: {value!r}")
        result = Decimal(str(value))
    else:
        try:
            result = Decimal(str(value).strip().replace(",", ""))
        except InvalidOperation as exc:
            raise ValueError(f"Not a number: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


def round_money(value: Decimal) -> Decimal:
    """Round half-up to cents."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def monthly_rate(annual_rate_percent: Decimal) -> Decimal:
    return annual_rate_percent / Decimal(1200)
