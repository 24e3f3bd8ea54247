def format_number(value: float, decimals: int = 2) -> str:
    """Format with thousands separators, e.g. 12345.678 -> '12,345.68'."""
    return f"{value:,.{decimals}f}"


def format_percentage(value: float, decimals: int = 1) -> str:
    return f"{value:,.{decimals}f}%"
