"""
reconciliation.py — Actual fund performance and variance against the model.

Two independent calculations over a fund's investment records:

    calc_actual_metrics  — TVPI / DPI / MOIC / simple IRR from investments alone
    calc_variance        — check-size and entry-valuation variance vs a FundModel

reconcile() bundles both and reports an explicit "no baseline" state when the
fund has no linked model.

Depends on: metrics.py, models.py
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Literal, Optional

import numpy as np
import pandas as pd

from fund_modeling.metrics import (
    DAYS_PER_YEAR,
    calc_dpi,
    calc_moic,
    calc_simple_irr,
    calc_tvpi,
    calc_variance_pct,
    calc_xirr,
    days_between,
)
from fund_modeling.models import Fund, FundModel, Investment


DEFAULT_VARIANCE_THRESHOLD_PCT = 5.0

VarianceStatus = Literal["above target", "below target", "on track"]
VarianceIcon = Literal["up", "down", "flat"]


# ---------------------------------------------------------------------------
# Per-investment valuation
# ---------------------------------------------------------------------------

def current_fair_value(inv: Investment) -> float:
    """
    Latest known valuation scaled by the check's ownership-equivalent fraction.

    Without a markup this is exactly the check size.
    """
    if inv.marked_up_valuation is None:
        return inv.check_size
    return inv.marked_up_valuation * (inv.check_size / inv.entry_valuation)


def current_value(inv: Investment) -> float:
    """
    Value used for the per-investment IRR: realized proceeds if any, else the
    markup scaled by ownership, else the check size.
    """
    if inv.realized_return is not None:
        return inv.realized_return
    if inv.marked_up_valuation is not None:
        return inv.marked_up_valuation * inv.ownership
    return inv.check_size


def investment_irr(inv: Investment, as_of: date) -> float:
    """
    Simple compounding IRR of one investment held until as_of.

    nan for a non-positive holding period.
    """
    days_held = days_between(inv.investment_date, as_of)
    if days_held <= 0:
        return float("nan")
    return calc_simple_irr(current_value(inv), inv.check_size, days_held / DAYS_PER_YEAR)


# ---------------------------------------------------------------------------
# (a) Actual-only metrics
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ActualMetrics:
    """Performance computed from investment records, independent of any model."""

    investment_count: int
    total_invested: float
    total_fair_value: float
    total_realized: float
    tvpi: float
    dpi: float
    irr: float  # arithmetic mean of per-investment simple IRRs
    irr_sample_size: int
    xirr: float  # cash-flow weighted, reported alongside the simple IRR
    moic_priced: float
    moic_all: float
    priced_count: int
    safe_count: int  # SAFE or untyped
    priced_marked_up_count: int
    avg_check_size: float
    unrealized_gain: float
    unrealized_multiple: float
    deployment_ratio_pct: Optional[float] = None
    remaining_capital: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return self.investment_count == 0


def _subset_moic(investments: list[Investment]) -> float:
    invested = sum(inv.check_size for inv in investments)
    value = sum(current_fair_value(inv) for inv in investments)
    return calc_moic(invested, value, default=1.0)


def _portfolio_xirr(investments: list[Investment], as_of: date) -> float:
    """Checks out on their dates; realized proceeds plus fair value back at as_of."""
    amounts = [-inv.check_size for inv in investments]
    dates = [inv.investment_date for inv in investments]
    terminal = sum(
        current_fair_value(inv) if inv.realized_return is None else inv.realized_return
        for inv in investments
    )
    if terminal > 0:
        amounts.append(terminal)
        dates.append(as_of)
    return calc_xirr(amounts, dates)


def calc_actual_metrics(
    investments: Iterable[Investment],
    fund: Optional[Fund] = None,
    as_of: Optional[date] = None,
) -> ActualMetrics:
    """
    Compute realized, unrealized and fair-value metrics for a set of investments.

    Parameters
    ----------
    investments:
        The fund's investment records.
    fund:
        Optional fund, enabling deployment ratio and remaining capital.
    as_of:
        Valuation date for holding periods. Defaults to today.

    Returns
    -------
    ActualMetrics
        All-zero (and 1.0x MOIC) for an empty portfolio; never raises.
    """
    investments = list(investments)
    as_of = as_of or date.today()

    total_invested = float(sum(inv.check_size for inv in investments))
    total_fair_value = float(sum(current_fair_value(inv) for inv in investments))
    total_realized = float(sum(inv.realized_return or 0.0 for inv in investments))

    irrs = np.array([investment_irr(inv, as_of) for inv in investments], dtype=np.float64)
    irrs = irrs[np.isfinite(irrs)]
    avg_irr = float(irrs.mean()) if len(irrs) > 0 else 0.0

    priced = [inv for inv in investments if inv.valuation_type == "priced"]

    deployment_ratio_pct = None
    remaining_capital = None
    if fund is not None:
        deployment_ratio_pct = total_invested / fund.fund_size * 100
        remaining_capital = fund.fund_size - total_invested

    return ActualMetrics(
        investment_count=len(investments),
        total_invested=total_invested,
        total_fair_value=total_fair_value,
        total_realized=total_realized,
        tvpi=calc_tvpi(total_invested, total_fair_value, total_realized),
        dpi=calc_dpi(total_invested, total_realized),
        irr=avg_irr,
        irr_sample_size=int(len(irrs)),
        xirr=_portfolio_xirr(investments, as_of),
        moic_priced=_subset_moic(priced),
        moic_all=_subset_moic(investments),
        priced_count=len(priced),
        safe_count=len(investments) - len(priced),
        priced_marked_up_count=sum(1 for inv in priced if inv.is_marked_up),
        avg_check_size=total_invested / len(investments) if investments else 0.0,
        unrealized_gain=total_fair_value - total_invested,
        unrealized_multiple=total_fair_value / total_invested if total_invested > 0 else 0.0,
        deployment_ratio_pct=deployment_ratio_pct,
        remaining_capital=remaining_capital,
    )


def investments_frame(
    investments: Iterable[Investment],
    as_of: Optional[date] = None,
) -> pd.DataFrame:
    """
    Company-level breakdown.

    Columns: company, valuation_type, check_size, entry_valuation, ownership,
             fair_value, realized, total_value, irr, portfolio_weight
    """
    investments = list(investments)
    if not investments:
        return pd.DataFrame()
    as_of = as_of or date.today()
    total_invested = sum(inv.check_size for inv in investments)

    rows = []
    for inv in investments:
        fair_value = current_fair_value(inv)
        realized = inv.realized_return or 0.0
        rows.append(
            {
                "company": inv.company_name,
                "valuation_type": inv.valuation_type,
                "check_size": inv.check_size,
                "entry_valuation": inv.entry_valuation,
                "ownership": inv.ownership,
                "fair_value": fair_value,
                "realized": realized,
                "total_value": fair_value + realized,
                "irr": investment_irr(inv, as_of),
                "portfolio_weight": inv.check_size / total_invested,
            }
        )
    return pd.DataFrame(rows)


# ---------------------------------------------------------------------------
# (b) Variance vs model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VarianceFlag:
    """Classification of one variance against the fixed threshold."""

    variance_pct: float
    status: VarianceStatus
    icon: VarianceIcon

    @property
    def is_flagged(self) -> bool:
        return self.status != "on track"


def classify_variance(
    variance_pct: float,
    threshold: float = DEFAULT_VARIANCE_THRESHOLD_PCT,
) -> VarianceFlag:
    """Flag variances beyond ±threshold percentage points; otherwise on track."""
    if variance_pct > threshold:
        return VarianceFlag(variance_pct, "above target", "up")
    if variance_pct < -threshold:
        return VarianceFlag(variance_pct, "below target", "down")
    return VarianceFlag(variance_pct, "on track", "flat")


@dataclass(frozen=True)
class InvestmentVariance:
    company_name: str
    investment_id: Optional[str]
    check_size_variance: VarianceFlag
    valuation_variance: VarianceFlag


@dataclass(frozen=True)
class ModelVariance:
    """Actual averages against the model's assumptions."""

    modeled_check: float
    actual_avg_check: float
    modeled_entry_valuation: float
    actual_avg_entry_valuation: float
    check_size_variance: VarianceFlag
    valuation_variance: VarianceFlag
    per_investment: tuple[InvestmentVariance, ...] = field(default_factory=tuple)

    @property
    def check_size_variance_pct(self) -> float:
        return self.check_size_variance.variance_pct

    @property
    def valuation_variance_pct(self) -> float:
        return self.valuation_variance.variance_pct


def calc_variance(
    model: FundModel,
    investments: Iterable[Investment],
    threshold: float = DEFAULT_VARIANCE_THRESHOLD_PCT,
) -> ModelVariance:
    """
    Compare average check size and entry valuation against the model.

        variance % = (actual - modeled) / modeled × 100

    With no investments the actual averages are zero.
    """
    investments = list(investments)
    n = len(investments)
    avg_check = sum(inv.check_size for inv in investments) / n if n else 0.0
    avg_valuation = sum(inv.entry_valuation for inv in investments) / n if n else 0.0

    per_investment = tuple(
        InvestmentVariance(
            company_name=inv.company_name,
            investment_id=inv.id,
            check_size_variance=classify_variance(
                calc_variance_pct(inv.check_size, model.avg_initial_check), threshold
            ),
            valuation_variance=classify_variance(
                calc_variance_pct(inv.entry_valuation, model.avg_entry_valuation),
                threshold,
            ),
        )
        for inv in investments
    )

    return ModelVariance(
        modeled_check=model.avg_initial_check,
        actual_avg_check=avg_check,
        modeled_entry_valuation=model.avg_entry_valuation,
        actual_avg_entry_valuation=avg_valuation,
        check_size_variance=classify_variance(
            calc_variance_pct(avg_check, model.avg_initial_check), threshold
        ),
        valuation_variance=classify_variance(
            calc_variance_pct(avg_valuation, model.avg_entry_valuation), threshold
        ),
        per_investment=per_investment,
    )


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------

NO_BASELINE = "no model to compare"


@dataclass(frozen=True)
class Reconciliation:
    """Actual metrics plus, when a model is linked, variance against it."""

    fund: Fund
    actual: ActualMetrics
    variance: Optional[ModelVariance]

    @property
    def has_baseline(self) -> bool:
        return self.variance is not None

    @property
    def status(self) -> str:
        if self.variance is None:
            return NO_BASELINE
        flagged = [
            f
            for f in (self.variance.check_size_variance, self.variance.valuation_variance)
            if f.is_flagged
        ]
        return "variance flagged" if flagged else "on track"

    @property
    def check_size_variance_pct(self) -> Optional[float]:
        return None if self.variance is None else self.variance.check_size_variance_pct

    @property
    def valuation_variance_pct(self) -> Optional[float]:
        return None if self.variance is None else self.variance.valuation_variance_pct


def reconcile(
    fund: Fund,
    investments: Iterable[Investment],
    model: Optional[FundModel] = None,
    as_of: Optional[date] = None,
    threshold: float = DEFAULT_VARIANCE_THRESHOLD_PCT,
) -> Reconciliation:
    """
    Reconcile a deployed fund's investments against its originating model.

    The model defaults to fund.fund_model when one was joined in. Without a
    model only the actual metrics are populated.
    """
    investments = list(investments)
    model = model if model is not None else fund.fund_model
    variance = calc_variance(model, investments, threshold) if model is not None else None
    return Reconciliation(
        fund=fund,
        actual=calc_actual_metrics(investments, fund=fund, as_of=as_of),
        variance=variance,
    )
