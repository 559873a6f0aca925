"""Service layer: permissions, form-style input and dashboards over a FundStore.

Every entry point takes an explicit CallerContext. The calculators never see
it; the service resolves records, checks access and hands plain records to
the pure functions in deployment / outcomes / reconciliation.
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

import pandas as pd

from fund_modeling.config import Settings, get_settings
from fund_modeling.context import CallerContext
from fund_modeling.exceptions import InvalidFieldError, PermissionDeniedError, RecordNotFoundError
from fund_modeling.logging_config import LogContext, get_logger
from fund_modeling.models import Fund, FundModel, Investment
from fund_modeling.outcomes import ModelMetrics, recompute
from fund_modeling.progression import ValuationProgression, get_scenario
from fund_modeling.reconciliation import Reconciliation, investments_frame, reconcile
from fund_modeling.store import FundStore

logger = get_logger(__name__)


def ownership_fraction(ownership_pct: Optional[float]) -> Optional[float]:
    """Convert form ownership (percent, 0 < pct <= 100) to a fraction."""
    if ownership_pct is None:
        return None
    if isinstance(ownership_pct, bool) or not isinstance(ownership_pct, numbers.Real):
        raise InvalidFieldError("ownership_percentage", ownership_pct, "must be a number")
    if not 0 < ownership_pct <= 100:
        raise InvalidFieldError(
            "ownership_percentage", ownership_pct, "must be between 0 and 100"
        )
    return ownership_pct / 100


@dataclass(frozen=True)
class ModelDashboard:
    """Everything shown for one hypothetical fund model."""

    metrics: ModelMetrics
    progression: ValuationProgression
    progression_frame: pd.DataFrame
    allocation_frame: pd.DataFrame
    outcome_frame: pd.DataFrame


@dataclass(frozen=True)
class FundDashboard:
    """Everything shown for one deployed fund."""

    fund: Fund
    investments: list[Investment]
    reconciliation: Reconciliation
    investments_frame: pd.DataFrame
    as_of: date


class FundModelingService:
    """
    Application entry points over a FundStore.

    Admins see every record. Other callers see and edit only what they
    created, plus funds listed in CallerContext.owned_fund_ids.
    """

    def __init__(self, store: FundStore, settings: Optional[Settings] = None) -> None:
        self.store = store
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Access helpers
    # ------------------------------------------------------------------

    def _require_model(self, ctx: CallerContext, model_id: str, action: str) -> FundModel:
        model = self.store.load_fund_model(model_id)
        if model is None:
            raise RecordNotFoundError("FundModel", model_id)
        if not ctx.can_access(model.created_by):
            logger.warning("permission_denied", user_id=ctx.user_id, action=action, model_id=model_id)
            raise PermissionDeniedError(action, f"fund model {model_id}")
        return model

    def _require_fund(self, ctx: CallerContext, fund_id: str, action: str) -> Fund:
        fund = self.store.get_fund(fund_id)
        if fund is None:
            raise RecordNotFoundError("Fund", fund_id)
        if not ctx.can_access(fund.created_by, fund.id):
            logger.warning("permission_denied", user_id=ctx.user_id, action=action, fund_id=fund_id)
            raise PermissionDeniedError(action, f"fund {fund_id}")
        return fund

    def _require_investment(
        self, ctx: CallerContext, investment_id: str, action: str
    ) -> Investment:
        inv = self.store.get_investment(investment_id)
        if inv is None:
            raise RecordNotFoundError("Investment", investment_id)
        self._require_fund(ctx, inv.fund_id, action)
        return inv

    # ------------------------------------------------------------------
    # Fund models
    # ------------------------------------------------------------------

    def save_fund_model(self, ctx: CallerContext, model: FundModel) -> FundModel:
        """Insert a new model stamped with the caller, or update one they own."""
        with LogContext(user_id=ctx.user_id):
            if model.id is not None:
                existing = self._require_model(ctx, model.id, "update")
                model.created_by = existing.created_by
                model.created_at = existing.created_at
            else:
                model.created_by = ctx.user_id
            self.store.save_fund_model(model)
            return model

    def get_fund_model(self, ctx: CallerContext, model_id: str) -> FundModel:
        return self._require_model(ctx, model_id, "view")

    def list_fund_models(self, ctx: CallerContext) -> list[FundModel]:
        return [m for m in self.store.list_fund_models() if ctx.can_access(m.created_by)]

    def delete_fund_model(self, ctx: CallerContext, model_id: str) -> None:
        with LogContext(user_id=ctx.user_id):
            self._require_model(ctx, model_id, "delete")
            self.store.delete_fund_model(model_id)

    # ------------------------------------------------------------------
    # Funds
    # ------------------------------------------------------------------

    def deploy_fund(
        self,
        ctx: CallerContext,
        model_id: str,
        name: str,
        deployment_date: Optional[date] = None,
    ) -> Fund:
        """Turn a saved model into an active fund that investments can be logged against."""
        with LogContext(user_id=ctx.user_id):
            model = self._require_model(ctx, model_id, "deploy")
            return self.store.deploy_fund(model, name, deployment_date, created_by=ctx.user_id)

    def create_fund(
        self,
        ctx: CallerContext,
        name: str,
        fund_size: float,
        check_size: float,
        reserve_ratio_pct: float,
        planned_investments: int,
        deployment_date: Optional[date] = None,
    ) -> Fund:
        """Manual fund setup; reserve ratio is entered in percent."""
        if isinstance(reserve_ratio_pct, bool) or not isinstance(reserve_ratio_pct, numbers.Real):
            raise InvalidFieldError("reserve_ratio_pct", reserve_ratio_pct, "must be a number")
        if not 0 <= reserve_ratio_pct <= 100:
            raise InvalidFieldError(
                "reserve_ratio_pct", reserve_ratio_pct, "must be between 0 and 100"
            )
        fund = Fund(
            name=name,
            fund_size=fund_size,
            check_size=check_size,
            reserve_ratio=reserve_ratio_pct / 100,
            planned_investments=planned_investments,
            deployment_date=deployment_date or date.today(),
            created_by=ctx.user_id,
        )
        with LogContext(user_id=ctx.user_id):
            return self.store.create_fund(fund)

    def get_fund(self, ctx: CallerContext, fund_id: str) -> Fund:
        return self._require_fund(ctx, fund_id, "view")

    def list_funds(self, ctx: CallerContext, include_model: bool = False) -> list[Fund]:
        return [
            f
            for f in self.store.list_active_funds(include_model=include_model)
            if ctx.can_access(f.created_by, f.id)
        ]

    def delete_fund(self, ctx: CallerContext, fund_id: str) -> None:
        with LogContext(user_id=ctx.user_id):
            self._require_fund(ctx, fund_id, "delete")
            self.store.delete_fund(fund_id)

    # ------------------------------------------------------------------
    # Investments
    # ------------------------------------------------------------------

    def record_investment(
        self,
        ctx: CallerContext,
        fund_id: str,
        company_name: str,
        entry_valuation: float,
        check_size: float,
        investment_date: Any,
        ownership_pct: Optional[float] = None,
        marked_up_valuation: Optional[float] = None,
        realized_return: Optional[float] = None,
        valuation_type: Optional[str] = None,
    ) -> Investment:
        """
        Log a real investment against a fund.

        ownership_pct is in percent; when omitted it is derived from
        check_size / entry_valuation.
        """
        with LogContext(user_id=ctx.user_id):
            self._require_fund(ctx, fund_id, "add investment")
            return self.store.create_investment(
                fund_id,
                {
                    "company_name": company_name,
                    "entry_valuation": entry_valuation,
                    "check_size": check_size,
                    "investment_date": investment_date,
                    "ownership_percentage": ownership_fraction(ownership_pct),
                    "marked_up_valuation": marked_up_valuation,
                    "realized_return": realized_return,
                    "valuation_type": valuation_type,
                },
            )

    def update_investment(
        self, ctx: CallerContext, investment_id: str, **fields: Any
    ) -> Investment:
        """Partial update; ownership_pct (percent) is accepted in place of the fraction."""
        if "ownership_pct" in fields:
            fields["ownership_percentage"] = ownership_fraction(fields.pop("ownership_pct"))
        with LogContext(user_id=ctx.user_id):
            self._require_investment(ctx, investment_id, "update investment")
            return self.store.update_investment(investment_id, fields)

    def delete_investment(self, ctx: CallerContext, investment_id: str) -> None:
        with LogContext(user_id=ctx.user_id):
            self._require_investment(ctx, investment_id, "delete investment")
            self.store.delete_investment(investment_id)

    def list_investments(self, ctx: CallerContext, fund_id: str) -> list[Investment]:
        self._require_fund(ctx, fund_id, "view")
        return self.store.list_investments(fund_id)

    # ------------------------------------------------------------------
    # Dashboards
    # ------------------------------------------------------------------

    def model_dashboard(
        self,
        ctx: CallerContext,
        model: FundModel,
        scenario: Optional[str] = None,
    ) -> ModelDashboard:
        """Recompute every modeled figure for an (unsaved or saved) model."""
        if model.id is not None and model.created_by is not None:
            if not ctx.can_access(model.created_by):
                raise PermissionDeniedError("view", f"fund model {model.id}")
        metrics = recompute(model)
        progression = ValuationProgression.from_scenario(
            get_scenario(scenario or self.settings.default_scenario)
        )
        if metrics.is_degenerate:
            logger.debug("model_degenerate", model_name=model.name, user_id=ctx.user_id)
        return ModelDashboard(
            metrics=metrics,
            progression=progression,
            progression_frame=progression.to_frame(model.avg_entry_valuation),
            allocation_frame=metrics.deployment.allocation_frame(),
            outcome_frame=metrics.outcomes.to_frame(),
        )

    def fund_dashboard(
        self,
        ctx: CallerContext,
        fund_id: str,
        as_of: Optional[date] = None,
    ) -> FundDashboard:
        """Actual metrics for a fund, reconciled against its model when one is linked."""
        fund = self._require_fund(ctx, fund_id, "view")
        if fund.fund_model_id is not None:
            fund.fund_model = self.store.load_fund_model(fund.fund_model_id)
        investments = self.store.list_investments(fund_id)
        as_of = as_of or date.today()
        result = reconcile(
            fund,
            investments,
            as_of=as_of,
            threshold=self.settings.variance_threshold_pct,
        )
        logger.info(
            "fund_dashboard_built",
            fund_id=fund_id,
            user_id=ctx.user_id,
            investments=len(investments),
            status=result.status,
        )
        return FundDashboard(
            fund=fund,
            investments=investments,
            reconciliation=result,
            investments_frame=investments_frame(investments, as_of=as_of),
            as_of=as_of,
        )
