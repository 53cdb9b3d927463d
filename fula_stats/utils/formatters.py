"""Shared formatting utilities for the dashboard surfaces."""

from datetime import datetime
from typing import Optional, Union

from rich.console import Console

# Shared console instance
console = Console()

Number = Union[int, float]


def to_display_units(amount: Optional[int], decimals: int = 18) -> Optional[float]:
    """
    Convert a base-unit integer to a float for display only.

    The float is never fed back into arithmetic; authoritative values stay
    integers.
    """
    if amount is None:
        return None
    return amount / 10**decimals


def format_number(value: Optional[Number], decimals: int = 2) -> str:
    """
    Format a magnitude with compact B/M/K notation.

    Args:
        value: Number to format (None renders as "-")
        decimals: Digits after the decimal point

    Returns:
        "1.23B", "450.00M", "12.50K" or "999.99"
    """
    if value is None:
        return "-"

    num = float(value)
    if num != num:  # NaN
        return "-"

    if num >= 1e9:
        return f"{num / 1e9:.{decimals}f}B"
    elif num >= 1e6:
        return f"{num / 1e6:.{decimals}f}M"
    elif num >= 1e3:
        return f"{num / 1e3:.{decimals}f}K"

    return f"{num:,.{decimals}f}"


def format_token_amount(
    amount: Optional[int], decimals: int = 18, symbol: str = "FULA"
) -> str:
    """
    Format a base-unit token amount, e.g. 450000000 * 10**18 -> "450.00M FULA".

    Zero renders as "0.00 FULA".
    """
    if amount is None:
        return "-"
    return f"{format_number(to_display_units(amount, decimals))} {symbol}"


def format_count(value: Optional[int]) -> str:
    """Comma-grouped integer, e.g. 12345 -> "12,345"."""
    if value is None:
        return "-"
    return f"{value:,}"


def format_address(address: str, length: int = 10) -> str:
    """
    Format an Ethereum address to show first and last characters.

    Args:
        address: Ethereum address
        length: Total visible characters (default: 10)

    Returns:
        Formatted address like "0x1234...5678"
    """
    if not address:
        return "N/A"
    if len(address) <= length:
        return address
    return f"{address[:6]}...{address[-4:]}"


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """Format a datetime like "Oct 17, 2026, 09:15:02 AM"."""
    moment = moment or datetime.now()
    return moment.strftime("%b %d, %Y, %I:%M:%S %p")
