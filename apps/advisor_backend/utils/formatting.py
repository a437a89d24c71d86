from typing import Optional


def format_money(value: Optional[float], placeholder: str = "N/A") -> str:
    """Render an amount as dollars with thousands separators, e.g. ``$1,234.50``."""
    if value is None:
        return placeholder
    amount = round(float(value), 2)
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"
