"""Formatting utilities for currency, percentages and dates."""

from __future__ import annotations

from typing import Optional, Union

import pandas as pd

from .normalization import parse_date


def format_currency(amount: Union[float, int], include_sign: bool = True) -> str:
    """Format a currency amount with proper formatting.

    Args:
        amount: The amount to format
        include_sign: Whether to include the dollar sign

    Returns:
        Formatted currency string (e.g., "$1,234.56" or "1,234.56")

    Example:
        >>> format_currency(1234.56)
        '$1,234.56'
        >>> format_currency(-50)
        '-$50.00'
        >>> format_currency(1234.56, include_sign=False)
        '1,234.56'
    """
    formatted = f"{abs(amount):,.2f}"
    if include_sign:
        formatted = f"${formatted}"
    return f"-{formatted}" if amount < 0 else formatted


def escape_dollar_for_markdown(amount: float) -> str:
    """Format a dollar amount and escape the dollar sign for markdown rendering.

    Example:
        >>> escape_dollar_for_markdown(1234.56)
        '\\\\$1,234.56'
    """
    return format_currency(amount).replace("$", "\\$")


def format_percent(value: float) -> str:
    """Round to a whole percent, e.g. ``format_percent(79.6) == '80%'``."""
    return f"{int(round(value))}%"


def format_date(value) -> str:
    """``Mar 5, 2024`` style label; empty string for missing dates."""
    parsed = parse_date(value)
    if parsed is None:
        return ''
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"


def month_label(year: int, month: Union[str, int]) -> str:
    """``March 2024`` style label for a calendar month."""
    return pd.Timestamp(year=int(year), month=int(month), day=1).strftime('%B %Y')


def overage_label(spent: float, limit: float) -> Optional[str]:
    """``"+$10.00 over"`` when ``spent`` exceeds ``limit``, else ``None``."""
    if spent <= limit:
        return None
    return f"+{format_currency(spent - limit)} over"


def days_left_label(days: int) -> str:
    if days < 0:
        return f"{-days} day{'s' if days != -1 else ''} overdue"
    if days == 0:
        return "Due today"
    return f"{days} day{'s' if days != 1 else ''} left"
