"""Tests for fund_modeling.reconciliation — actual metrics and variance."""
from __future__ import annotations

import math
from datetime import date

import pytest

from fund_modeling.models import Fund, FundModel, Investment
from fund_modeling.reconciliation import (
    NO_BASELINE,
    calc_actual_metrics,
    calc_variance,
    classify_variance,
    current_fair_value,
    investment_irr,
    investments_frame,
    reconcile,
)


def _inv(**overrides) -> Investment:
    params = dict(
        fund_id="fund-1",
        company_name="Co",
        entry_valuation=5_000_000,
        check_size=250_000,
        investment_date=date(2021, 1, 1),
    )
    params.update(overrides)
    return Investment(**params)


class TestCurrentFairValue:
    def test_no_markup_equals_check_exactly(self):
        assert current_fair_value(_inv()) == 250_000

    def test_markup_scales_check(self):
        assert current_fair_value(_inv(marked_up_valuation=7_500_000)) == pytest.approx(375_000)

    @pytest.mark.parametrize("check, entry", [(333_333, 7_777_777), (1, 3), (125_000, 1_000_001)])
    def test_identity_for_awkward_numbers(self, check, entry):
        assert current_fair_value(_inv(check_size=check, entry_valuation=entry)) == check


class TestInvestmentIrr:
    def test_three_year_markup(self, as_of):
        irr = investment_irr(_inv(marked_up_valuation=7_500_000), as_of)
        assert irr == pytest.approx(1.5 ** (1 / 3) - 1)

    def test_realized_return_preferred(self, as_of):
        irr = investment_irr(_inv(realized_return=2_000_000, marked_up_valuation=7_500_000), as_of)
        assert irr == pytest.approx(8 ** (1 / 3) - 1)

    def test_same_day_investment_is_nan(self, as_of):
        assert math.isnan(investment_irr(_inv(investment_date=as_of), as_of))

    def test_future_dated_investment_is_nan(self, as_of):
        assert math.isnan(investment_irr(_inv(investment_date=date(2025, 1, 1)), as_of))


class TestActualMetrics:
    def test_portfolio_totals(self, investments, fund, as_of):
        m = calc_actual_metrics(investments, fund=fund, as_of=as_of)
        assert m.investment_count == 4
        assert m.total_invested == pytest.approx(2_550_000)
        assert m.total_fair_value == pytest.approx(2_675_000)
        assert m.total_realized == pytest.approx(3_000_000)
        assert m.tvpi == pytest.approx(5_675_000 / 2_550_000)
        assert m.dpi == pytest.approx(3_000_000 / 2_550_000)

    def test_mean_simple_irr(self, investments, as_of):
        m = calc_actual_metrics(investments, as_of=as_of)
        expected = ((1.5 ** (1 / 3) - 1) + (3 ** (1 / 3) - 1) + 0.0 + 0.0) / 4
        assert m.irr == pytest.approx(expected)
        assert m.irr_sample_size == 4

    def test_zero_duration_excluded_from_irr(self, investments, as_of):
        today = _inv(company_name="Today", investment_date=as_of, marked_up_valuation=50_000_000)
        with_today = calc_actual_metrics(investments + [today], as_of=as_of)
        without = calc_actual_metrics(investments, as_of=as_of)
        assert with_today.irr == pytest.approx(without.irr)
        assert with_today.irr_sample_size == 4

    def test_moic_subsets(self, investments, as_of):
        m = calc_actual_metrics(investments, as_of=as_of)
        assert m.moic_priced == pytest.approx(2_175_000 / 2_050_000)
        assert m.moic_all == pytest.approx(2_675_000 / 2_550_000)
        assert m.priced_count == 3
        assert m.safe_count == 1
        assert m.priced_marked_up_count == 1

    def test_untyped_counts_as_safe_and_in_moic_all(self, as_of):
        m = calc_actual_metrics([_inv(marked_up_valuation=10_000_000)], as_of=as_of)
        assert m.safe_count == 1
        assert m.priced_count == 0
        assert m.moic_priced == 1.0
        assert m.moic_all == pytest.approx(2.0)

    def test_unrealized_and_deployment(self, investments, fund, as_of):
        m = calc_actual_metrics(investments, fund=fund, as_of=as_of)
        assert m.unrealized_gain == pytest.approx(125_000)
        assert m.unrealized_multiple == pytest.approx(2_675_000 / 2_550_000)
        assert m.avg_check_size == pytest.approx(637_500)
        assert m.deployment_ratio_pct == pytest.approx(2.55)
        assert m.remaining_capital == pytest.approx(97_450_000)

    def test_no_fund_means_no_deployment_figures(self, investments, as_of):
        m = calc_actual_metrics(investments, as_of=as_of)
        assert m.deployment_ratio_pct is None
        assert m.remaining_capital is None

    def test_empty_portfolio(self, fund, as_of):
        m = calc_actual_metrics([], fund=fund, as_of=as_of)
        assert m.is_empty
        assert m.tvpi == 0
        assert m.dpi == 0
        assert m.irr == 0
        assert m.moic_priced == 1.0
        assert m.moic_all == 1.0
        assert m.avg_check_size == 0
        assert m.unrealized_multiple == 0
        assert m.remaining_capital == pytest.approx(100_000_000)
        assert math.isnan(m.xirr)

    def test_xirr_alongside_simple_irr(self, as_of):
        m = calc_actual_metrics(
            [_inv(investment_date=date(2023, 1, 1), realized_return=500_000)], as_of=as_of
        )
        assert m.irr == pytest.approx(1.0)
        assert m.xirr == pytest.approx(1.0, rel=1e-4)


class TestClassifyVariance:
    @pytest.mark.parametrize(
        "value, status, icon",
        [
            (7.5, "above target", "up"),
            (-7.5, "below target", "down"),
            (5.0, "on track", "flat"),
            (-5.0, "on track", "flat"),
            (0.0, "on track", "flat"),
        ],
    )
    def test_threshold(self, value, status, icon):
        flag = classify_variance(value)
        assert flag.status == status
        assert flag.icon == icon
        assert flag.is_flagged == (status != "on track")

    def test_custom_threshold(self):
        assert classify_variance(7.5, threshold=10).status == "on track"


class TestCalcVariance:
    def test_averages_against_model(self, base_model: FundModel, investments):
        v = calc_variance(base_model, investments)
        assert v.actual_avg_check == pytest.approx(637_500)
        assert v.check_size_variance_pct == pytest.approx(-36.25)
        assert v.check_size_variance.status == "below target"
        assert v.actual_avg_entry_valuation == pytest.approx(7_250_000)
        assert v.valuation_variance_pct == pytest.approx(-27.5)

    def test_per_investment(self, base_model: FundModel, investments):
        v = calc_variance(base_model, investments)
        beta = next(p for p in v.per_investment if p.company_name == "BetaHealth")
        assert beta.check_size_variance.status == "on track"
        assert beta.valuation_variance.variance_pct == pytest.approx(0.0)

    def test_above_target(self, base_model: FundModel):
        v = calc_variance(base_model, [_inv(check_size=1_075_000, entry_valuation=10_000_000)])
        assert v.check_size_variance_pct == pytest.approx(7.5)
        assert v.check_size_variance.status == "above target"


class TestReconcile:
    def test_no_linked_model(self, fund: Fund, investments, as_of):
        r = reconcile(fund, investments, as_of=as_of)
        assert not r.has_baseline
        assert r.status == NO_BASELINE
        assert r.variance is None
        assert r.check_size_variance_pct is None
        assert r.actual.tvpi == pytest.approx(5_675_000 / 2_550_000)

    def test_joined_model_used_by_default(self, fund: Fund, base_model, investments, as_of):
        fund.fund_model = base_model
        r = reconcile(fund, investments, as_of=as_of)
        assert r.has_baseline
        assert r.status == "variance flagged"
        assert r.check_size_variance_pct == pytest.approx(-36.25)

    def test_on_track(self, fund: Fund, base_model, as_of):
        inv = _inv(check_size=1_020_000, entry_valuation=9_800_000)
        r = reconcile(fund, [inv], model=base_model, as_of=as_of)
        assert r.status == "on track"

    def test_empty_fund_with_model(self, fund: Fund, base_model, as_of):
        r = reconcile(fund, [], model=base_model, as_of=as_of)
        assert r.actual.tvpi == 0
        assert r.check_size_variance_pct == pytest.approx(-100.0)


class TestFrames:
    def test_investments_frame(self, investments, as_of):
        df = investments_frame(investments, as_of=as_of)
        assert len(df) == 4
        assert df["portfolio_weight"].sum() == pytest.approx(1.0)
        alpha = df.set_index("company").loc["AlphaAI"]
        assert alpha["fair_value"] == pytest.approx(375_000)

    def test_empty_frame(self):
        assert investments_frame([]).empty
