"""
Formatting utilities.
"""

from typing import Any


def format_currency(amount: float, currency: str = "GBP") -> str:
    """
    Format an amount as whole-unit currency.

    Args:
        amount: The amount in whole units (e.g., pounds, not pence).
        currency: Currency code (default GBP).

    Returns:
        Formatted currency string.
    """
    symbols = {
        "GBP": "£",
        "USD": "$",
        "EUR": "€",
    }
    symbol = symbols.get(currency, currency + " ")
    return f"{symbol}{int(round(amount)):,}"


def format_percent(value: float, decimals: int = 1) -> str:
    """
    Format a fraction (0.25) as a percentage ("25.0%").

    Args:
        value: The fraction.
        decimals: Number of decimal places.

    Returns:
        Formatted percentage string.
    """
    return f"{value * 100:.{decimals}f}%"


def format_value(value: Any) -> str:
    """
    Render a cell value for review messages.

    Whole-number floats drop their ".0" so spreadsheet numbers read as
    entered: 2390.0 -> "2390".
    """
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, str):
        return value.strip()
    return str(value)
