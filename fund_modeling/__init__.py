"""
fund_modeling — Fund modeling and portfolio-construction engine for VC funds.

Public API surface:

    from fund_modeling import FundModel, Fund, Investment, ValuationStage
    from fund_modeling import calc_capital_deployment, recompute
    from fund_modeling import ValuationProgression, BEAR_SCENARIO, BASE_SCENARIO, BULL_SCENARIO
    from fund_modeling import calc_actual_metrics, calc_variance, reconcile
    from fund_modeling import InMemoryFundStore, FundModelingService, CallerContext
    from fund_modeling import metrics
    from fund_modeling import visualization as viz
"""
from __future__ import annotations

# Records
from fund_modeling.models import Fund, FundModel, Investment, ValuationStage

# Calculators
from fund_modeling.deployment import CapitalDeployment, calc_capital_deployment
from fund_modeling.progression import (
    BASE_SCENARIO,
    BEAR_SCENARIO,
    BULL_SCENARIO,
    PRESET_SCENARIOS,
    FundScenario,
    ValuationProgression,
    compare_scenarios,
    get_scenario,
)
from fund_modeling.outcomes import (
    OUTCOME_TABLE,
    FundMetrics,
    ModelMetrics,
    PortfolioOutcomes,
    calc_model_returns,
    recompute,
    simulate_outcomes,
)
from fund_modeling.reconciliation import (
    ActualMetrics,
    ModelVariance,
    Reconciliation,
    calc_actual_metrics,
    calc_variance,
    classify_variance,
    current_fair_value,
    reconcile,
)
from fund_modeling.scenarios import ScenarioOutcome, simulate_scenario
from fund_modeling.allocation import AllocationTarget, allocation_summary

# Persistence and service layer
from fund_modeling.context import CallerContext
from fund_modeling.store import FundStore, InMemoryFundStore
from fund_modeling.service import FundModelingService

# Errors
from fund_modeling.exceptions import (
    FundModelingError,
    ModelInUseError,
    PermissionDeniedError,
    RecordNotFoundError,
    ValidationError,
)

# Submodules available for direct import
from fund_modeling import formatting
from fund_modeling import metrics
from fund_modeling import visualization

__version__ = "0.1.0"

__all__ = [
    # Records
    "Fund",
    "FundModel",
    "Investment",
    "ValuationStage",
    # Deployment
    "CapitalDeployment",
    "calc_capital_deployment",
    # Progression
    "FundScenario",
    "ValuationProgression",
    "BEAR_SCENARIO",
    "BASE_SCENARIO",
    "BULL_SCENARIO",
    "PRESET_SCENARIOS",
    "compare_scenarios",
    "get_scenario",
    # Outcomes
    "OUTCOME_TABLE",
    "PortfolioOutcomes",
    "FundMetrics",
    "ModelMetrics",
    "simulate_outcomes",
    "calc_model_returns",
    "recompute",
    # Reconciliation
    "ActualMetrics",
    "ModelVariance",
    "Reconciliation",
    "calc_actual_metrics",
    "calc_variance",
    "classify_variance",
    "current_fair_value",
    "reconcile",
    # What-if and allocation
    "ScenarioOutcome",
    "simulate_scenario",
    "AllocationTarget",
    "allocation_summary",
    # Service
    "CallerContext",
    "FundStore",
    "InMemoryFundStore",
    "FundModelingService",
    # Errors
    "FundModelingError",
    "ValidationError",
    "RecordNotFoundError",
    "ModelInUseError",
    "PermissionDeniedError",
    # Submodules
    "formatting",
    "metrics",
    "visualization",
    # Version
    "__version__",
]
