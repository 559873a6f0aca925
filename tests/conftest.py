"""
conftest.py — Shared pytest fixtures for the fund_modeling test suite.
"""
from __future__ import annotations

from datetime import date

import pytest
import structlog

from fund_modeling.config import get_settings
from fund_modeling.context import CallerContext
from fund_modeling.models import Fund, FundModel, Investment
from fund_modeling.service import FundModelingService
from fund_modeling.store import InMemoryFundStore


AS_OF = date(2024, 1, 1)


@pytest.fixture(autouse=True)
def _fresh_settings_and_logging():
    """Settings are re-read per test and structlog is left unconfigured."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    structlog.reset_defaults()


@pytest.fixture
def as_of() -> date:
    return AS_OF


@pytest.fixture
def base_model() -> FundModel:
    """$100M fund, 2.5% fees over 7 years, 20% recycling, 50% reserves."""
    return FundModel(
        name="Benchmark Model I",
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


@pytest.fixture
def fund() -> Fund:
    return Fund(
        name="Benchmark Fund I",
        fund_size=100_000_000,
        check_size=1_000_000,
        reserve_ratio=0.5,
        planned_investments=100,
        id="fund-1",
        deployment_date=date(2020, 1, 1),
    )


@pytest.fixture
def investments() -> list[Investment]:
    """A small mixed portfolio: one markup, one exit, one at cost, one SAFE."""
    return [
        Investment(
            fund_id="fund-1",
            company_name="AlphaAI",
            entry_valuation=5_000_000,
            check_size=250_000,
            investment_date=date(2021, 1, 1),
            marked_up_valuation=7_500_000,
            valuation_type="priced",
            id="inv-alpha",
        ),
        Investment(
            fund_id="fund-1",
            company_name="BetaHealth",
            entry_valuation=10_000_000,
            check_size=1_000_000,
            investment_date=date(2021, 1, 1),
            realized_return=3_000_000,
            valuation_type="priced",
            id="inv-beta",
        ),
        Investment(
            fund_id="fund-1",
            company_name="GammaFintech",
            entry_valuation=8_000_000,
            check_size=800_000,
            investment_date=date(2022, 1, 1),
            valuation_type="priced",
            id="inv-gamma",
        ),
        Investment(
            fund_id="fund-1",
            company_name="DeltaSaaS",
            entry_valuation=6_000_000,
            check_size=500_000,
            investment_date=date(2023, 1, 1),
            valuation_type="safe",
            id="inv-delta",
        ),
    ]


@pytest.fixture
def store() -> InMemoryFundStore:
    return InMemoryFundStore()


@pytest.fixture
def service(store: InMemoryFundStore) -> FundModelingService:
    return FundModelingService(store)


@pytest.fixture
def alice() -> CallerContext:
    return CallerContext(user_id="alice")


@pytest.fixture
def bob() -> CallerContext:
    return CallerContext(user_id="bob")


@pytest.fixture
def admin() -> CallerContext:
    return CallerContext.admin()
