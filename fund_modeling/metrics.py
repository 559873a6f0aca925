"""
metrics.py — Pure mathematical functions for fund modeling.

No imports from within this library. All functions are stateless and
have no side effects. Safe to import from any module.
"""
from __future__ import annotations

import math
from datetime import date
from typing import Optional

import numpy as np
import numpy.typing as npt
from scipy import optimize


DAYS_PER_YEAR = 365


# ---------------------------------------------------------------------------
# Arithmetic helpers
# ---------------------------------------------------------------------------

def safe_div(numerator: float, denominator: float) -> float:
    """
    IEEE-754 division: returns inf/nan instead of raising on a zero denominator.

    The fund calculators propagate degenerate results rather than guarding
    them; the presentation layer decides how to show them.
    """
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.divide(np.float64(numerator), np.float64(denominator)))


def safe_pow(base: float, exponent: float) -> float:
    """Power that yields nan (not an exception) for negative bases."""
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        return float(np.power(np.float64(base), np.float64(exponent)))


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer with halves rounded up.

    Python's round() uses banker's rounding (round(0.5) == 0); bucket counts
    need round(0.5) == 1.
    """
    return int(math.floor(value + 0.5))


def is_finite(value: Optional[float]) -> bool:
    """True for real, finite numbers; False for None, nan and +/-inf."""
    if value is None:
        return False
    try:
        return math.isfinite(value)
    except TypeError:
        return False


# ---------------------------------------------------------------------------
# IRR
# ---------------------------------------------------------------------------

def calc_irr(
    cashflows: npt.NDArray[np.float64],
    periods: Optional[npt.NDArray[np.float64]] = None,
    guess: float = 0.10,
    tol: float = 1e-8,
) -> float:
    """
    Compute Internal Rate of Return using Newton-Raphson with Brent fallback.

    Parameters
    ----------
    cashflows:
        Array of cash flows. Negative = outflows, positive = inflows.
    periods:
        Time periods (years by default). If None, assumes [0, 1, 2, ...].
    guess:
        Initial guess for Newton-Raphson.
    tol:
        Convergence tolerance.

    Returns
    -------
    float
        IRR as a decimal (e.g. 0.25 = 25%). Returns nan if no solution found.
    """
    cashflows = np.asarray(cashflows, dtype=np.float64)
    if periods is None:
        periods = np.arange(len(cashflows), dtype=np.float64)
    else:
        periods = np.asarray(periods, dtype=np.float64)

    if len(cashflows) != len(periods):
        raise ValueError("cashflows and periods must have the same length")

    # Need at least one sign change
    if not (np.any(cashflows > 0) and np.any(cashflows < 0)):
        return float("nan")

    def npv_func(r: float) -> float:
        return float(np.sum(cashflows / (1 + r) ** periods))

    def dnpv_func(r: float) -> float:
        return float(np.sum(-periods * cashflows / (1 + r) ** (periods + 1)))

    try:
        result = optimize.newton(
            npv_func, x0=guess, fprime=dnpv_func, tol=tol, maxiter=500
        )
        if -1 < result < 100:
            return float(result)
    except (RuntimeError, ValueError, OverflowError, ZeroDivisionError):
        pass

    # Brent fallback — bracket search
    try:
        lo, hi = -0.999, 100.0
        if npv_func(lo) * npv_func(hi) < 0:
            result = optimize.brentq(npv_func, lo, hi, xtol=tol, maxiter=1000)
            return float(result)
    except ValueError:
        pass

    return float("nan")


def calc_xirr(
    amounts: list[float],
    dates: list[date],
) -> float:
    """
    IRR over dated cash flows, with time measured in 365-day years from the
    earliest date. Returns nan when there is no sign change or no solution.
    """
    if not amounts:
        return float("nan")
    if len(amounts) != len(dates):
        raise ValueError("amounts and dates must have the same length")
    start = min(dates)
    periods = np.array(
        [(d - start).days / DAYS_PER_YEAR for d in dates], dtype=np.float64
    )
    return calc_irr(np.array(amounts, dtype=np.float64), periods=periods)


def calc_simple_irr(
    current_value: float,
    invested: float,
    years_held: float,
) -> float:
    """
    Single-period compounding approximation of IRR.

    IRR = (current_value / invested) ^ (1 / years_held) - 1

    Returns nan when the holding period or invested amount is not positive.
    """
    if years_held <= 0 or invested <= 0:
        return float("nan")
    return safe_pow(current_value / invested, 1.0 / years_held) - 1


def days_between(start: date, end: date) -> int:
    """Whole days from start to end (negative if end precedes start)."""
    return (end - start).days


# ---------------------------------------------------------------------------
# Basic return multiples
# ---------------------------------------------------------------------------

def calc_tvpi(
    invested: float,
    nav: float,
    distributions: float,
) -> float:
    """
    Total Value to Paid-In capital (TVPI).

    TVPI = (NAV + cumulative distributions) / total invested

    Zero when nothing has been invested yet.
    """
    if invested <= 0:
        return 0.0
    return (nav + distributions) / invested


def calc_dpi(invested: float, distributions: float) -> float:
    """Distributions to Paid-In capital (DPI). Zero when nothing invested."""
    if invested <= 0:
        return 0.0
    return distributions / invested


def calc_moic(invested: float, total_value: float, default: float = 1.0) -> float:
    """Multiple on Invested Capital; `default` when nothing was invested."""
    if invested <= 0:
        return default
    return total_value / invested


# ---------------------------------------------------------------------------
# Variance
# ---------------------------------------------------------------------------

def calc_variance_pct(actual: float, target: float) -> float:
    """
    Percentage deviation of an actual value from its modeled target.

    variance = (actual - target) / target * 100

    Zero when the target is not positive (nothing to compare against).
    """
    if target <= 0:
        return 0.0
    return (actual - target) / target * 100
