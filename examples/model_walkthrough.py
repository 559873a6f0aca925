"""
model_walkthrough.py — Size a hypothetical fund and simulate its outcomes.

Run:
    python examples/model_walkthrough.py
"""
from __future__ import annotations

from fund_modeling import (
    BASE_SCENARIO,
    BEAR_SCENARIO,
    BULL_SCENARIO,
    FundModel,
    ValuationProgression,
    compare_scenarios,
    recompute,
)
from fund_modeling import visualization as viz
from fund_modeling.formatting import format_currency, format_multiple, format_percentage


def main() -> None:
    # -------------------------------------------------------------------
    # 1. Describe the fund
    # -------------------------------------------------------------------
    model = FundModel(
        name="Acme Ventures Fund I",
        fund_size=100_000_000,
        avg_entry_valuation=10_000_000,
        avg_initial_check=1_000_000,
        gp_commit=1_000_000,
        reserve_ratio_pct=50,
        recycling_rate_pct=20,
        hold_period_years=7,
        mgmt_fee_pct=2.5,
        carry_pct=20,
    )

    # -------------------------------------------------------------------
    # 2. Recompute every modeled figure
    # -------------------------------------------------------------------
    metrics = recompute(model)
    d = metrics.deployment
    r = metrics.returns

    print("=" * 60)
    print(f"  {model.name} — Capital Deployment")
    print("=" * 60)
    print(f"  Management Fees:     {format_currency(d.management_fees):>18}")
    print(f"  Recycled Capital:    {format_currency(d.recycled_capital):>18}")
    print(f"  Investable Capital:  {format_currency(d.investable_capital):>18}")
    print(f"  Initial Checks:      {format_currency(d.initial_allocation):>18}")
    print(f"  Reserves:            {format_currency(d.reserve_allocation):>18}")
    print(f"  Initial Investments: {d.number_of_initial_investments:>18}")
    print(f"  Ownership / Deal:    {format_percentage(d.ownership_per_investment):>18}")
    print("-" * 60)
    print(f"  Weighted Exit Value: {format_currency(r.weighted_exit_value):>18}")
    print(f"  TVPI:                {format_multiple(r.tvpi):>18}")
    print(f"  DPI:                 {format_multiple(r.dpi):>18}")
    print(f"  MOIC:                {format_multiple(r.moic):>18}")
    print(f"  IRR:                 {format_percentage(r.irr):>18}")
    print(f"  Top-2 Concentration: {format_percentage(r.concentration_ratio):>18}")
    print(f"  Avg Years to Exit:   {metrics.avg_years_to_exit:>18}")
    print("=" * 60)

    # -------------------------------------------------------------------
    # 3. Outcome buckets
    # -------------------------------------------------------------------
    print("\nOutcome Distribution:")
    print(metrics.outcomes.to_frame()[["label", "count", "exit_value"]].to_string(index=False))

    # -------------------------------------------------------------------
    # 4. Valuation progression: edit a copy of the Base case
    # -------------------------------------------------------------------
    progression = (
        ValuationProgression.from_scenario(BASE_SCENARIO)
        .add_stage()
        .update_stage(5, "stage", "Secondary Sale")
    )
    print(f"\n{progression!r}")
    print(progression.to_frame(model.avg_entry_valuation).to_string(index=False))

    print("\nExit valuations by scenario:")
    print(compare_scenarios(model.avg_entry_valuation).to_string())

    # -------------------------------------------------------------------
    # 5. Visualize
    # -------------------------------------------------------------------
    viz.plot_capital_allocation(d).show()
    viz.plot_outcome_distribution(metrics.outcomes).show()
    viz.plot_valuation_progression(
        model.avg_entry_valuation, [BEAR_SCENARIO, BASE_SCENARIO, BULL_SCENARIO]
    ).show()


if __name__ == "__main__":
    main()
