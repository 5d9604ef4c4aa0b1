def fmt_amount(value: float, symbol: str = "$") -> str:
    """Format money: 1234567.891 -> $1,234,567.89"""
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def fmt_rate(value: float) -> str:
    """Format a percentage rate: 6.5 -> 6.50%"""
    return f"{value:.2f}%"


def fmt_months(months: int) -> str:
    """Format a month count: 38 -> 3 yr 2 mo"""
    years = months // 12
    remain = months % 12
    if remain == 0:
        return f"{years} yr"
    if years == 0:
        return f"{remain} mo"
    return f"{years} yr {remain} mo"
