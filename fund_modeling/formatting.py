"""
formatting.py — Display strings for calculator output.

Calculators return inf/nan for degenerate inputs; every formatter here renders
those as a neutral placeholder instead of "NaNx" or "Infinity%".

Depends on: metrics.py, config.py
"""
from __future__ import annotations

from typing import Optional

from fund_modeling.config import get_settings
from fund_modeling.metrics import is_finite


def _placeholder(placeholder: Optional[str]) -> str:
    return placeholder if placeholder is not None else get_settings().placeholder


def format_currency(
    value: Optional[float],
    compact: bool = False,
    placeholder: Optional[str] = None,
) -> str:
    """
    US-dollar amount with no decimals, e.g. "$1,250,000".

    compact=True gives "$1.3M" / "$250K" style labels for charts.
    """
    if not is_finite(value):
        return _placeholder(placeholder)
    if compact:
        magnitude = abs(value)
        sign = "-" if value < 0 else ""
        if magnitude >= 1e9:
            return f"{sign}${magnitude / 1e9:.1f}B"
        if magnitude >= 1e6:
            return f"{sign}${magnitude / 1e6:.1f}M"
        if magnitude >= 1e3:
            return f"{sign}${magnitude / 1e3:.0f}K"
    if value < 0:
        return f"-${-value:,.0f}"
    return f"${value:,.0f}"


def format_multiple(value: Optional[float], placeholder: Optional[str] = None) -> str:
    """Return multiple such as "2.50x"."""
    if not is_finite(value):
        return _placeholder(placeholder)
    return f"{value:.2f}x"


def format_percentage(
    value: Optional[float],
    decimals: int = 1,
    placeholder: Optional[str] = None,
) -> str:
    """Fraction as a percentage: 0.125 -> "12.5%"."""
    if not is_finite(value):
        return _placeholder(placeholder)
    return f"{value * 100:.{decimals}f}%"


def format_variance(value: Optional[float], placeholder: Optional[str] = None) -> str:
    """Signed percentage-point variance: 7.5 -> "+7.5%"."""
    if not is_finite(value):
        return _placeholder(placeholder)
    return f"{value:+.1f}%"
