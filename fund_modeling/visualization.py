"""
visualization.py — Plotly figure factories for fund models and deployed funds.

Depends on: deployment.py, outcomes.py, progression.py, reconciliation.py
All functions return plotly.graph_objects.Figure objects. Non-finite values
are dropped before plotting.
"""
from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

import numpy as np
import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from fund_modeling.deployment import CapitalDeployment
from fund_modeling.models import Investment
from fund_modeling.outcomes import PortfolioOutcomes
from fund_modeling.progression import (
    BASE_SCENARIO,
    BEAR_SCENARIO,
    BULL_SCENARIO,
    FundScenario,
    ValuationProgression,
)
from fund_modeling.reconciliation import (
    DEFAULT_VARIANCE_THRESHOLD_PCT,
    ModelVariance,
    investments_frame,
)


# ---------------------------------------------------------------------------
# Theme
# ---------------------------------------------------------------------------

_VC_COLORS = {
    "background": "#0D1117",
    "paper": "#161B22",
    "grid": "#21262D",
    "text": "#C9D1D9",
    "text_secondary": "#8B949E",
    "accent": "#58A6FF",
    "positive": "#3FB950",
    "negative": "#F85149",
    "neutral": "#FFA657",
}

_PALETTE = [
    "#58A6FF", "#3FB950", "#FFA657", "#F85149",
    "#A371F7", "#39D353", "#FF7B72", "#79C0FF",
]

_PLOTLY_TEMPLATE = "plotly_dark"


def _apply_vc_theme(fig: go.Figure) -> go.Figure:
    """Dark VC styling, applied in place and returned for chaining."""
    fig.update_layout(
        template=_PLOTLY_TEMPLATE,
        paper_bgcolor=_VC_COLORS["paper"],
        plot_bgcolor=_VC_COLORS["background"],
        font=dict(
            family="Inter, -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif",
            color=_VC_COLORS["text"],
            size=12,
        ),
        title_font=dict(size=16, color=_VC_COLORS["text"]),
        legend=dict(
            bgcolor=_VC_COLORS["paper"],
            bordercolor=_VC_COLORS["grid"],
            borderwidth=1,
            font=dict(color=_VC_COLORS["text_secondary"]),
        ),
    )
    fig.update_xaxes(gridcolor=_VC_COLORS["grid"], zerolinecolor=_VC_COLORS["grid"])
    fig.update_yaxes(gridcolor=_VC_COLORS["grid"], zerolinecolor=_VC_COLORS["grid"])
    return fig


def _finite_rows(df: pd.DataFrame, column: str) -> pd.DataFrame:
    values = pd.to_numeric(df[column], errors="coerce")
    return df[np.isfinite(values.to_numpy(dtype=np.float64))]


# ---------------------------------------------------------------------------
# Fund model
# ---------------------------------------------------------------------------

def plot_capital_allocation(
    deployment: CapitalDeployment,
    title: str = "Capital Allocation",
) -> go.Figure:
    """Donut of fees, initial checks, reserves and recycled capital."""
    df = _finite_rows(deployment.allocation_frame(), "amount")
    df = df[df["amount"] > 0]
    fig = go.Figure(
        go.Pie(
            labels=df["component"],
            values=df["amount"],
            hole=0.45,
            marker=dict(colors=_PALETTE[: len(df)]),
            hovertemplate="%{label}<br>$%{value:,.0f}<br>%{percent}<extra></extra>",
        )
    )
    fig.update_layout(title=title)
    return _apply_vc_theme(fig)


def plot_outcome_distribution(
    outcomes: PortfolioOutcomes,
    title: str = "Portfolio Outcome Distribution",
) -> go.Figure:
    """
    Company count per outcome bucket (bars) with exit value on a second axis.
    """
    df = _finite_rows(outcomes.to_frame(), "exit_value")
    fig = make_subplots(specs=[[{"secondary_y": True}]])

    bar_colors = [
        _VC_COLORS["negative"] if r < 1 else _VC_COLORS["positive"]
        for r in df["avg_return"]
    ]
    fig.add_trace(
        go.Bar(
            x=df["label"],
            y=df["count"],
            name="Companies",
            marker_color=bar_colors,
            hovertemplate="%{x}<br>%{y} companies<extra></extra>",
        ),
        secondary_y=False,
    )
    fig.add_trace(
        go.Scatter(
            x=df["label"],
            y=df["exit_value"],
            name="Exit Value",
            mode="lines+markers",
            line=dict(color=_VC_COLORS["neutral"], width=2),
            hovertemplate="%{x}<br>$%{y:,.0f}<extra></extra>",
        ),
        secondary_y=True,
    )
    fig.update_layout(title=title, xaxis_title="Outcome")
    fig.update_yaxes(title_text="Companies", secondary_y=False)
    fig.update_yaxes(title_text="Exit Value ($)", secondary_y=True)
    return _apply_vc_theme(fig)


def plot_valuation_progression(
    entry_valuation: float,
    scenarios: Optional[list[FundScenario]] = None,
    title: str = "Valuation Progression by Scenario",
) -> go.Figure:
    """One line per scenario: stage valuation against cumulative years."""
    scenarios = scenarios or [BEAR_SCENARIO, BASE_SCENARIO, BULL_SCENARIO]
    fig = go.Figure()
    for scenario in scenarios:
        df = ValuationProgression.from_scenario(scenario).to_frame(entry_valuation)
        df = _finite_rows(df, "valuation")
        fig.add_trace(
            go.Scatter(
                x=df["cumulative_years"],
                y=df["valuation"],
                mode="lines+markers",
                name=scenario.name,
                line=dict(color=scenario.color, width=2),
                text=df["stage"],
                hovertemplate=(
                    "%{text}<br>Year %{x:.1f}<br>$%{y:,.0f}<extra>"
                    + scenario.name
                    + "</extra>"
                ),
            )
        )
    fig.update_layout(
        title=title,
        xaxis_title="Years from Entry",
        yaxis_title="Company Valuation ($)",
        yaxis_type="log",
    )
    return _apply_vc_theme(fig)


# ---------------------------------------------------------------------------
# Deployed fund
# ---------------------------------------------------------------------------

def plot_portfolio_breakdown(
    investments: Iterable[Investment],
    as_of: Optional[date] = None,
    title: str = "Portfolio Breakdown",
) -> go.Figure:
    """
    Treemap of capital by company plus cost vs current value bars.
    """
    df = investments_frame(investments, as_of=as_of)
    if df.empty:
        return go.Figure()
    df = _finite_rows(df, "total_value")

    fig = make_subplots(
        rows=1,
        cols=2,
        specs=[[{"type": "treemap"}, {"type": "bar"}]],
        subplot_titles=["Capital by Company", "Cost vs Current Value"],
    )
    fig.add_trace(
        go.Treemap(
            labels=df["company"],
            parents=[""] * len(df),
            values=df["check_size"],
            textinfo="label+percent root",
            hovertemplate="%{label}<br>$%{value:,.0f}<extra></extra>",
            marker=dict(colors=[_PALETTE[i % len(_PALETTE)] for i in range(len(df))]),
        ),
        row=1,
        col=1,
    )
    fig.add_trace(
        go.Bar(
            x=df["company"],
            y=df["check_size"],
            name="Invested",
            marker_color=_VC_COLORS["text_secondary"],
        ),
        row=1,
        col=2,
    )
    fig.add_trace(
        go.Bar(
            x=df["company"],
            y=df["total_value"],
            name="Current Value",
            marker_color=_VC_COLORS["accent"],
        ),
        row=1,
        col=2,
    )
    fig.update_layout(title=title, barmode="group")
    return _apply_vc_theme(fig)


def plot_model_vs_actual(
    variance: ModelVariance,
    threshold: float = DEFAULT_VARIANCE_THRESHOLD_PCT,
    title: str = "Model vs Actual",
) -> go.Figure:
    """
    Per-investment check-size and entry-valuation variance, with the
    on-track band shaded.
    """
    rows = [
        {
            "company": v.company_name,
            "check_size": v.check_size_variance.variance_pct,
            "entry_valuation": v.valuation_variance.variance_pct,
        }
        for v in variance.per_investment
    ]
    rows.append(
        {
            "company": "Portfolio Average",
            "check_size": variance.check_size_variance_pct,
            "entry_valuation": variance.valuation_variance_pct,
        }
    )
    df = pd.DataFrame(rows)

    fig = go.Figure()
    for column, name, color in (
        ("check_size", "Check Size", _VC_COLORS["accent"]),
        ("entry_valuation", "Entry Valuation", _VC_COLORS["neutral"]),
    ):
        finite = _finite_rows(df, column)
        fig.add_trace(
            go.Bar(
                x=finite["company"],
                y=finite[column],
                name=name,
                marker_color=color,
                hovertemplate="%{x}<br>%{y:+.1f}%<extra>" + name + "</extra>",
            )
        )
    fig.add_hrect(
        y0=-threshold,
        y1=threshold,
        fillcolor=_VC_COLORS["positive"],
        opacity=0.08,
        line_width=0,
    )
    fig.add_hline(y=0, line_color=_VC_COLORS["text_secondary"], line_width=1)
    fig.update_layout(
        title=title,
        yaxis_title="Variance vs Model (%)",
        barmode="group",
    )
    return _apply_vc_theme(fig)
