"""
scenarios.py — What-if revaluation of a deployed fund's portfolio.

Applies a global value multiplier, an exit percentage and optional per-company
exit valuations to the current investments, and reports the resulting
TVPI / DPI. Nothing is persisted.

Depends on: metrics.py, models.py
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

import pandas as pd

from fund_modeling.metrics import calc_dpi, calc_tvpi, is_finite
from fund_modeling.models import Investment


@dataclass(frozen=True)
class ScenarioOutcome:
    """Portfolio totals under one what-if scenario."""

    global_multiplier: float
    exit_pct: float
    total_invested: float
    scenario_value: float
    realized_value: float
    unrealized_value: float
    tvpi: float
    dpi: float
    company_values: tuple[tuple[str, float], ...] = ()

    def to_frame(self) -> pd.DataFrame:
        """Columns: company, scenario_value"""
        return pd.DataFrame(list(self.company_values), columns=["company", "scenario_value"])


def _or_default(value: Optional[float], default: float) -> float:
    # Blank, zero and non-numeric inputs fall back to the neutral default.
    if value is None or not is_finite(value) or value == 0:
        return default
    return float(value)


def scenario_value(
    inv: Investment,
    global_multiplier: float = 1.0,
    override_valuation: Optional[float] = None,
) -> float:
    """
    Value of one investment under the scenario.

    An override exit valuation is taken as-is (the multiplier does not apply);
    otherwise the markup or, failing that, the check is scaled by the multiplier.
    """
    if override_valuation is not None and is_finite(override_valuation):
        return override_valuation * inv.ownership
    if inv.marked_up_valuation is not None:
        return inv.marked_up_valuation * inv.ownership * global_multiplier
    return inv.check_size * global_multiplier


def simulate_scenario(
    investments: Iterable[Investment],
    global_multiplier: Optional[float] = 1.0,
    exit_pct: Optional[float] = 100.0,
    overrides: Optional[Mapping[str, float]] = None,
) -> ScenarioOutcome:
    """
    Revalue the portfolio under a what-if scenario.

    Parameters
    ----------
    investments:
        Investments of one fund.
    global_multiplier:
        Scales marked-up (or cost) value. Invalid input falls back to 1.0.
    exit_pct:
        Share of scenario value treated as realized, 0–100. Invalid or zero
        input falls back to 100.
    overrides:
        Investment id → hypothetical exit valuation of the whole company.
    """
    multiplier = _or_default(global_multiplier, 1.0)
    exit_fraction = _or_default(exit_pct, 100.0) / 100
    overrides = overrides or {}

    investments = list(investments)
    total_invested = float(sum(inv.check_size for inv in investments))
    company_values = tuple(
        (
            inv.company_name,
            scenario_value(inv, multiplier, overrides.get(inv.id) if inv.id else None),
        )
        for inv in investments
    )
    total_value = float(sum(v for _, v in company_values))
    realized = total_value * exit_fraction

    return ScenarioOutcome(
        global_multiplier=multiplier,
        exit_pct=exit_fraction * 100,
        total_invested=total_invested,
        scenario_value=total_value,
        realized_value=realized,
        unrealized_value=total_value - realized,
        tvpi=calc_tvpi(total_invested, total_value, 0.0),
        dpi=calc_dpi(total_invested, realized),
        company_values=company_values,
    )
