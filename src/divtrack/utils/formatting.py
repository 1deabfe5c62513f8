"""
Display formatting for CLI output.
"""
from __future__ import annotations

from typing import Optional


def fmt_int(x: Optional[int]) -> str:
    """Format integer with comma separators, or 'n/a'."""
    if x is None or not isinstance(x, (int, float)):
        return "n/a"
    return f"{int(x):,}"


def fmt_money(x: Optional[float], show_cents: bool = True) -> str:
    if x is None or not isinstance(x, (int, float)):
        return "n/a"
    if show_cents:
        return f"{float(x):,.2f}"
    return f"{float(x):,.0f}"


def fmt_signed_money(x: Optional[float]) -> str:
    if x is None or not isinstance(x, (int, float)):
        return "n/a"
    return f"{float(x):+,.2f}"


def fmt_pct(x: Optional[float], decimals: int = 2) -> str:
    """Format a value that is already in percent (5.0 -> 5.00%)."""
    if x is None or not isinstance(x, (int, float)):
        return "n/a"
    return f"{float(x):.{decimals}f}%"


def fmt_signed_pct(x: Optional[float], decimals: int = 2) -> str:
    if x is None or not isinstance(x, (int, float)):
        return "n/a"
    return f"{float(x):+.{decimals}f}%"


def pnl_style(x: float) -> str:
    return "green" if x >= 0 else "red"

