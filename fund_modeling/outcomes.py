"""
outcomes.py — Power law outcome buckets and modeled fund returns.

A fixed allocation table spreads the initial investments over six outcome
buckets, each with a fixed average return multiple. Bucket counts are rounded
independently, so their sum may differ from the investment count by a few
units; that drift is expected.

Depends on: metrics.py, models.py, deployment.py
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import pandas as pd

from fund_modeling.deployment import CapitalDeployment, calc_capital_deployment
from fund_modeling.metrics import is_finite, round_half_up, safe_div, safe_pow
from fund_modeling.models import FundModel


@dataclass(frozen=True)
class OutcomeBand:
    """One row of the static outcome table."""

    name: str
    label: str
    share: float  # fraction of initial investments
    avg_return: float  # average exit multiple on the initial check


# Shares sum to 1.0; the last two bands are the "top performers" (10x+).
OUTCOME_TABLE: tuple[OutcomeBand, ...] = (
    OutcomeBand("total_loss", "Total Loss", 0.45, 0.0),
    OutcomeBand("partial_loss", "Partial Loss", 0.25, 0.3),
    OutcomeBand("breakeven", "Breakeven", 0.15, 1.2),
    OutcomeBand("modest", "Modest", 0.10, 3.5),
    OutcomeBand("good", "Good", 0.04, 12.0),
    OutcomeBand("great", "Great", 0.01, 45.0),
)

TOP_BUCKETS: tuple[str, ...] = ("good", "great")

REALIZATION_RATE = 0.65  # share of exit value assumed distributed (DPI)
FOLLOW_ON_USAGE = 0.8  # share of reserves actually deployed
FOLLOW_ON_ELIGIBLE_SHARE = 0.6  # share of companies that get follow-ons
EXIT_TIMING_FACTOR = 1.2  # average years-to-exit relative to hold period


# ---------------------------------------------------------------------------
# Buckets
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PortfolioOutcomeBucket:
    """Derived count and exit value of one outcome band. Never persisted."""

    name: str
    label: str
    share: float
    avg_return: float
    count: int
    exit_value: float


@dataclass(frozen=True)
class PortfolioOutcomes:
    """Outcome buckets for a given number of initial investments."""

    number_of_investments: Union[int, float]
    avg_initial_check: float
    buckets: tuple[PortfolioOutcomeBucket, ...]

    def __getitem__(self, name: str) -> PortfolioOutcomeBucket:
        for bucket in self.buckets:
            if bucket.name == name:
                return bucket
        raise KeyError(name)

    @property
    def total_count(self) -> int:
        """Sum of bucket counts (may differ slightly from the investment count)."""
        return sum(b.count for b in self.buckets)

    @property
    def weighted_exit_value(self) -> float:
        return float(sum(b.exit_value for b in self.buckets))

    @property
    def top_performer_count(self) -> int:
        return sum(self[name].count for name in TOP_BUCKETS)

    @property
    def top_performer_value(self) -> float:
        return float(sum(self[name].exit_value for name in TOP_BUCKETS))

    def to_frame(self) -> pd.DataFrame:
        """
        Bucket table.

        Columns: bucket, label, share, avg_return, count, exit_value
        """
        return pd.DataFrame(
            {
                "bucket": [b.name for b in self.buckets],
                "label": [b.label for b in self.buckets],
                "share": [b.share for b in self.buckets],
                "avg_return": [b.avg_return for b in self.buckets],
                "count": [b.count for b in self.buckets],
                "exit_value": [b.exit_value for b in self.buckets],
            }
        )


def _bucket_count(n: Union[int, float], share: float) -> int:
    # A non-finite investment count (degenerate model) yields empty buckets.
    if not is_finite(n):
        return 0
    return round_half_up(n * share)


def simulate_outcomes(
    number_of_investments: Union[int, float],
    avg_initial_check: float,
    table: tuple[OutcomeBand, ...] = OUTCOME_TABLE,
) -> PortfolioOutcomes:
    """
    Apply the outcome table to an investment count.

    Each bucket's count is round(N × share), rounding halves up, computed
    independently of the other buckets.
    """
    buckets = []
    for band in table:
        count = _bucket_count(number_of_investments, band.share)
        buckets.append(
            PortfolioOutcomeBucket(
                name=band.name,
                label=band.label,
                share=band.share,
                avg_return=band.avg_return,
                count=count,
                exit_value=count * band.avg_return * avg_initial_check,
            )
        )
    return PortfolioOutcomes(
        number_of_investments=number_of_investments,
        avg_initial_check=avg_initial_check,
        buckets=tuple(buckets),
    )


# ---------------------------------------------------------------------------
# Modeled returns
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FundMetrics:
    """Modeled fund-level return metrics. Non-finite values are possible."""

    weighted_exit_value: float
    tvpi: float
    dpi: float
    moic: float
    irr: float
    concentration_ratio: float
    top_performers: int


def calc_model_returns(
    model: FundModel,
    deployment: CapitalDeployment,
    outcomes: PortfolioOutcomes,
) -> FundMetrics:
    """
    Derive TVPI / DPI / MOIC / IRR from the bucketed exit value.

        TVPI = exit value / investable capital
        DPI  = exit value × 0.65 / investable capital
        MOIC = exit value / fund size
        IRR  = (exit value / investable capital)^(1 / hold period) - 1
    """
    wev = outcomes.weighted_exit_value
    investable = deployment.investable_capital
    tvpi = safe_div(wev, investable)
    return FundMetrics(
        weighted_exit_value=wev,
        tvpi=tvpi,
        dpi=safe_div(wev * REALIZATION_RATE, investable),
        moic=safe_div(wev, model.fund_size),
        irr=safe_pow(tvpi, safe_div(1.0, model.hold_period_years)) - 1,
        concentration_ratio=safe_div(outcomes.top_performer_value, wev),
        top_performers=outcomes.top_performer_count,
    )


@dataclass(frozen=True)
class FollowOnPlan:
    """Fixed-ratio follow-on heuristics drawn from the reserve pool."""

    follow_on_deployment: float
    follow_on_eligible: int
    avg_follow_on_per_company: float


def calc_follow_on(deployment: CapitalDeployment) -> FollowOnPlan:
    """80% of reserves go to the 60% of companies that earn a follow-on."""
    n = deployment.number_of_initial_investments
    follow_on_deployment = deployment.reserve_allocation * FOLLOW_ON_USAGE
    return FollowOnPlan(
        follow_on_deployment=follow_on_deployment,
        follow_on_eligible=_bucket_count(n, FOLLOW_ON_ELIGIBLE_SHARE),
        avg_follow_on_per_company=safe_div(
            follow_on_deployment, n * FOLLOW_ON_ELIGIBLE_SHARE
        ),
    )


# ---------------------------------------------------------------------------
# One-shot recomputation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ModelMetrics:
    """Everything the model dashboard shows, recomputed from one FundModel."""

    model: FundModel
    deployment: CapitalDeployment
    outcomes: PortfolioOutcomes
    returns: FundMetrics
    follow_on: FollowOnPlan
    avg_years_to_exit: int

    @property
    def is_degenerate(self) -> bool:
        return self.deployment.is_degenerate or not is_finite(self.returns.tvpi)

    def summary(self) -> dict[str, float | int | str]:
        """Flat dict of headline figures."""
        d = self.deployment
        r = self.returns
        return {
            "name": self.model.name,
            "fund_size": self.model.fund_size,
            "management_fees": d.management_fees,
            "recycled_capital": d.recycled_capital,
            "investable_capital": d.investable_capital,
            "initial_allocation": d.initial_allocation,
            "reserve_allocation": d.reserve_allocation,
            "number_of_initial_investments": d.number_of_initial_investments,
            "ownership_per_investment": d.ownership_per_investment,
            "weighted_exit_value": r.weighted_exit_value,
            "tvpi": r.tvpi,
            "dpi": r.dpi,
            "moic": r.moic,
            "irr": r.irr,
            "concentration_ratio": r.concentration_ratio,
            "top_performers": r.top_performers,
            "follow_on_deployment": self.follow_on.follow_on_deployment,
            "follow_on_eligible": self.follow_on.follow_on_eligible,
            "avg_follow_on_per_company": self.follow_on.avg_follow_on_per_company,
            "avg_years_to_exit": self.avg_years_to_exit,
        }


def recompute(model: FundModel) -> ModelMetrics:
    """
    Recompute every modeled figure from scratch. Nothing is memoized; callers
    that want a cache can key one on model.fingerprint().
    """
    deployment = calc_capital_deployment(model)
    outcomes = simulate_outcomes(
        deployment.number_of_initial_investments, model.avg_initial_check
    )
    return ModelMetrics(
        model=model,
        deployment=deployment,
        outcomes=outcomes,
        returns=calc_model_returns(model, deployment, outcomes),
        follow_on=calc_follow_on(deployment),
        avg_years_to_exit=round_half_up(model.hold_period_years * EXIT_TIMING_FACTOR),
    )
