"""Tests for fund_modeling.scenarios — what-if portfolio revaluation."""
from __future__ import annotations

import math

import pytest

from fund_modeling.scenarios import scenario_value, simulate_scenario


class TestScenarioValue:
    def test_markup_scaled_by_multiplier(self, investments):
        alpha = investments[0]
        assert scenario_value(alpha, 2.0) == pytest.approx(750_000)

    def test_cost_scaled_by_multiplier(self, investments):
        gamma = investments[2]
        assert scenario_value(gamma, 1.5) == pytest.approx(1_200_000)

    def test_override_ignores_multiplier(self, investments):
        gamma = investments[2]
        assert scenario_value(gamma, 3.0, override_valuation=40_000_000) == pytest.approx(4_000_000)


class TestSimulateScenario:
    def test_neutral_scenario_is_fair_value(self, investments):
        s = simulate_scenario(investments)
        assert s.total_invested == pytest.approx(2_550_000)
        assert s.scenario_value == pytest.approx(2_675_000)
        assert s.realized_value == pytest.approx(2_675_000)
        assert s.unrealized_value == pytest.approx(0.0)

    def test_multiplier_and_partial_exit(self, investments):
        s = simulate_scenario(investments, global_multiplier=2.0, exit_pct=50)
        assert s.scenario_value == pytest.approx(5_350_000)
        assert s.realized_value == pytest.approx(2_675_000)
        assert s.unrealized_value == pytest.approx(2_675_000)
        assert s.tvpi == pytest.approx(5_350_000 / 2_550_000)
        assert s.dpi == pytest.approx(2_675_000 / 2_550_000)

    def test_override_by_investment_id(self, investments):
        s = simulate_scenario(investments, overrides={"inv-gamma": 40_000_000})
        assert s.scenario_value == pytest.approx(2_675_000 - 800_000 + 4_000_000)

    @pytest.mark.parametrize("bad", [None, 0, math.nan])
    def test_invalid_inputs_fall_back(self, investments, bad):
        s = simulate_scenario(investments, global_multiplier=bad, exit_pct=bad)
        assert s.global_multiplier == 1.0
        assert s.exit_pct == pytest.approx(100.0)

    def test_empty_portfolio(self):
        s = simulate_scenario([])
        assert s.tvpi == 0
        assert s.dpi == 0
        assert s.to_frame().empty

    def test_to_frame(self, investments):
        df = simulate_scenario(investments, global_multiplier=2.0).to_frame()
        assert list(df.columns) == ["company", "scenario_value"]
        assert len(df) == 4
