"""
model_vs_actual.py — Deploy a model, log investments and reconcile.

Run:
    python examples/model_vs_actual.py
"""
from __future__ import annotations

from datetime import date

from fund_modeling import (
    CallerContext,
    FundModel,
    FundModelingService,
    InMemoryFundStore,
    simulate_scenario,
)
from fund_modeling import visualization as viz
from fund_modeling.formatting import (
    format_currency,
    format_multiple,
    format_percentage,
    format_variance,
)
from fund_modeling.logging_config import configure_logging


def main() -> None:
    configure_logging()

    service = FundModelingService(InMemoryFundStore())
    gp = CallerContext(user_id="gp-1")

    # -------------------------------------------------------------------
    # 1. Save and deploy a model
    # -------------------------------------------------------------------
    model = service.save_fund_model(
        gp,
        FundModel(
            name="Acme Ventures Fund I Model",
            fund_size=50_000_000,
            avg_entry_valuation=12_000_000,
            avg_initial_check=750_000,
            reserve_ratio_pct=45,
            recycling_rate_pct=10,
        ),
    )
    fund = service.deploy_fund(gp, model.id, "Acme Ventures Fund I", date(2021, 3, 1))

    # -------------------------------------------------------------------
    # 2. Log real investments (ownership in percent)
    # -------------------------------------------------------------------
    rows = [
        ("Northwind AI", 10_000_000, 700_000, date(2021, 4, 12), 7.0, 28_000_000, None, "priced"),
        ("Harbor Health", 15_000_000, 900_000, date(2021, 9, 1), None, None, None, "priced"),
        ("Ledgerly", 8_000_000, 500_000, date(2022, 2, 15), None, None, 1_600_000, "priced"),
        ("Orbital Labs", 14_000_000, 800_000, date(2023, 1, 20), None, None, None, "safe"),
    ]
    for company, entry, check, when, pct, markup, realized, kind in rows:
        service.record_investment(
            gp, fund.id, company, entry, check, when,
            ownership_pct=pct,
            marked_up_valuation=markup,
            realized_return=realized,
            valuation_type=kind,
        )

    # -------------------------------------------------------------------
    # 3. Reconcile against the model
    # -------------------------------------------------------------------
    dash = service.fund_dashboard(gp, fund.id, as_of=date(2024, 6, 30))
    actual = dash.reconciliation.actual
    variance = dash.reconciliation.variance

    print("=" * 60)
    print(f"  {fund.name} — Model vs Actual ({dash.reconciliation.status})")
    print("=" * 60)
    print(f"  Invested:            {format_currency(actual.total_invested):>18}")
    print(f"  Fair Value:          {format_currency(actual.total_fair_value):>18}")
    print(f"  Realized:            {format_currency(actual.total_realized):>18}")
    print(f"  TVPI:                {format_multiple(actual.tvpi):>18}")
    print(f"  DPI:                 {format_multiple(actual.dpi):>18}")
    print(f"  IRR (avg simple):    {format_percentage(actual.irr):>18}")
    print(f"  XIRR:                {format_percentage(actual.xirr):>18}")
    print(f"  Deployed:            {format_percentage(actual.deployment_ratio_pct / 100):>18}")
    if variance is not None:
        print("-" * 60)
        print(
            f"  Check Size Variance: {format_variance(variance.check_size_variance_pct):>18}"
            f"  ({variance.check_size_variance.status})"
        )
        print(
            f"  Valuation Variance:  {format_variance(variance.valuation_variance_pct):>18}"
            f"  ({variance.valuation_variance.status})"
        )
    print("=" * 60)

    # -------------------------------------------------------------------
    # 4. What-if: everything doubles, half of it exits
    # -------------------------------------------------------------------
    what_if = simulate_scenario(dash.investments, global_multiplier=2.0, exit_pct=50)
    print(f"\nWhat-if TVPI {format_multiple(what_if.tvpi)}, DPI {format_multiple(what_if.dpi)}")

    # -------------------------------------------------------------------
    # 5. Visualize
    # -------------------------------------------------------------------
    viz.plot_portfolio_breakdown(dash.investments, as_of=dash.as_of).show()
    if variance is not None:
        viz.plot_model_vs_actual(variance).show()


if __name__ == "__main__":
    main()
