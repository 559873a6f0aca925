"""
deployment.py — Capital deployment arithmetic for a hypothetical fund.

Depends only on: metrics.py, models.py
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Union

import numpy as np
import pandas as pd

from fund_modeling.metrics import is_finite, safe_div
from fund_modeling.models import FundModel


@dataclass(frozen=True)
class CapitalDeployment:
    """
    How a fund's committed capital turns into initial checks and reserves.

    Fees are a flat annual drag over the whole hold period, not a
    declining-base schedule.
    """

    management_fees: float
    recycled_capital: float
    investable_capital: float
    initial_allocation: float
    reserve_allocation: float
    number_of_initial_investments: Union[int, float]  # float only when non-finite
    ownership_per_investment: float

    @property
    def is_degenerate(self) -> bool:
        """True when any figure is non-finite or investable capital is negative."""
        values = asdict(self).values()
        if not all(is_finite(v) for v in values):
            return True
        return self.investable_capital < 0

    def to_dict(self) -> dict[str, float]:
        return asdict(self)

    def allocation_frame(self) -> pd.DataFrame:
        """
        Capital allocation table for charts.

        Columns: component, amount
        """
        return pd.DataFrame(
            {
                "component": [
                    "Management Fees",
                    "Initial Checks",
                    "Reserves",
                    "Recycled Capital",
                ],
                "amount": [
                    self.management_fees,
                    self.initial_allocation,
                    self.reserve_allocation,
                    self.recycled_capital,
                ],
            }
        )


def calc_capital_deployment(model: FundModel) -> CapitalDeployment:
    """
    Compute fee drag, recycling, investable capital and the initial/reserve split.

    Inputs are assumed validated. A degenerate model (e.g. a zero check size
    edited in after construction) yields inf/nan rather than raising.
    """
    fund_size = model.fund_size
    management_fees = fund_size * (model.mgmt_fee_pct / 100) * model.hold_period_years
    recycled_capital = fund_size * (model.recycling_rate_pct / 100)
    investable_capital = fund_size - management_fees + recycled_capital

    initial_allocation = investable_capital * (1 - model.reserve_ratio_pct / 100)
    reserve_allocation = investable_capital * (model.reserve_ratio_pct / 100)

    raw_count = float(np.floor(safe_div(initial_allocation, model.avg_initial_check)))
    number_of_initial_investments: Union[int, float] = (
        int(raw_count) if is_finite(raw_count) else raw_count
    )

    return CapitalDeployment(
        management_fees=management_fees,
        recycled_capital=recycled_capital,
        investable_capital=investable_capital,
        initial_allocation=initial_allocation,
        reserve_allocation=reserve_allocation,
        number_of_initial_investments=number_of_initial_investments,
        ownership_per_investment=safe_div(
            model.avg_initial_check, model.avg_entry_valuation
        ),
    )
