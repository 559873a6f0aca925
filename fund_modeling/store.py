"""Persistence interface for fund models, deployed funds and investments.

FundStore is the abstract collaborator the service layer talks to.
InMemoryFundStore is a complete reference implementation backed by dicts;
records are copied on the way in and out so callers never share state with
the store.
"""

from __future__ import annotations

import copy
import dataclasses
import math
import uuid
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Mapping, Optional

from fund_modeling.exceptions import InvalidFieldError, ModelInUseError, RecordNotFoundError
from fund_modeling.logging_config import get_logger
from fund_modeling.models import Fund, FundModel, Investment

logger = get_logger(__name__)

_IMMUTABLE_INVESTMENT_FIELDS = frozenset({"id", "fund_id"})


def planned_investment_count(model: FundModel) -> int:
    """How many initial checks the fund can write at the model's average check."""
    return int(math.floor(model.fund_size / model.avg_initial_check))


def fund_from_model(
    model: FundModel,
    name: str,
    deployment_date: Optional[date] = None,
    created_by: Optional[str] = None,
) -> Fund:
    """Build (but do not save) the Fund record a deployment creates."""
    return Fund(
        name=name,
        fund_size=model.fund_size,
        check_size=model.avg_initial_check,
        reserve_ratio=model.reserve_ratio_pct / 100,
        planned_investments=planned_investment_count(model),
        fund_model_id=model.id,
        deployment_date=deployment_date or date.today(),
        deployed_capital=0.0,
        status="active",
        created_by=created_by,
    )


class FundStore(ABC):
    # -- fund models ------------------------------------------------------

    @abstractmethod
    def load_fund_model(self, model_id: str) -> FundModel | None:
        pass

    @abstractmethod
    def save_fund_model(self, model: FundModel) -> str:
        """Insert (no id) or update (existing id); returns the id."""

    @abstractmethod
    def delete_fund_model(self, model_id: str) -> None:
        """Raises ModelInUseError while any fund links the model."""

    @abstractmethod
    def list_fund_models(self) -> list[FundModel]:
        """Newest first by created_at."""

    # -- funds ------------------------------------------------------------

    @abstractmethod
    def deploy_fund(
        self,
        model: FundModel,
        name: str,
        deployment_date: Optional[date] = None,
        created_by: Optional[str] = None,
    ) -> Fund:
        pass

    @abstractmethod
    def create_fund(self, fund: Fund) -> Fund:
        pass

    @abstractmethod
    def get_fund(self, fund_id: str) -> Fund | None:
        pass

    @abstractmethod
    def list_active_funds(self, include_model: bool = False) -> list[Fund]:
        """Active funds, newest first; include_model joins fund.fund_model."""

    @abstractmethod
    def delete_fund(self, fund_id: str) -> None:
        """Delete a fund and every investment recorded against it."""

    # -- investments ------------------------------------------------------

    @abstractmethod
    def list_investments(self, fund_id: str) -> list[Investment]:
        """Newest investment_date first."""

    @abstractmethod
    def get_investment(self, investment_id: str) -> Investment | None:
        pass

    @abstractmethod
    def create_investment(self, fund_id: str, fields: Mapping[str, Any]) -> Investment:
        pass

    @abstractmethod
    def update_investment(self, investment_id: str, fields: Mapping[str, Any]) -> Investment:
        """Apply a partial update; the merged record is re-validated."""

    @abstractmethod
    def delete_investment(self, investment_id: str) -> None:
        pass


class InMemoryFundStore(FundStore):
    """Dict-backed FundStore, for tests and single-process use."""

    def __init__(self) -> None:
        self._models: dict[str, FundModel] = {}
        self._funds: dict[str, Fund] = {}
        self._investments: dict[str, Investment] = {}

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    # -- fund models ------------------------------------------------------

    def load_fund_model(self, model_id: str) -> FundModel | None:
        model = self._models.get(model_id)
        return copy.deepcopy(model) if model is not None else None

    def save_fund_model(self, model: FundModel) -> str:
        stored = copy.deepcopy(model)
        stored.validate()
        if stored.id is None:
            stored.id = self._new_id()
            logger.info("fund_model_created", model_id=stored.id, name=stored.name)
        else:
            logger.info("fund_model_saved", model_id=stored.id, name=stored.name)
        self._models[stored.id] = stored
        model.id = stored.id
        return stored.id

    def delete_fund_model(self, model_id: str) -> None:
        if model_id not in self._models:
            raise RecordNotFoundError("FundModel", model_id)
        linked = [f.id for f in self._funds.values() if f.fund_model_id == model_id]
        if linked:
            raise ModelInUseError(model_id, linked)
        del self._models[model_id]
        logger.info("fund_model_deleted", model_id=model_id)

    def list_fund_models(self) -> list[FundModel]:
        models = sorted(self._models.values(), key=lambda m: m.created_at, reverse=True)
        return [copy.deepcopy(m) for m in models]

    # -- funds ------------------------------------------------------------

    def deploy_fund(
        self,
        model: FundModel,
        name: str,
        deployment_date: Optional[date] = None,
        created_by: Optional[str] = None,
    ) -> Fund:
        if model.id is None or model.id not in self._models:
            raise RecordNotFoundError("FundModel", str(model.id))
        fund = self.create_fund(fund_from_model(model, name, deployment_date, created_by))
        logger.info(
            "fund_deployed",
            fund_id=fund.id,
            model_id=model.id,
            planned_investments=fund.planned_investments,
        )
        return fund

    def create_fund(self, fund: Fund) -> Fund:
        stored = copy.deepcopy(fund)
        stored.fund_model = None
        stored.id = stored.id or self._new_id()
        self._funds[stored.id] = stored
        logger.info("fund_created", fund_id=stored.id, name=stored.name)
        return copy.deepcopy(stored)

    def get_fund(self, fund_id: str) -> Fund | None:
        fund = self._funds.get(fund_id)
        return copy.deepcopy(fund) if fund is not None else None

    def list_active_funds(self, include_model: bool = False) -> list[Fund]:
        funds = [copy.deepcopy(f) for f in self._funds.values() if f.is_active]
        funds.sort(key=lambda f: f.created_at, reverse=True)
        if include_model:
            for fund in funds:
                if fund.fund_model_id is not None:
                    fund.fund_model = self.load_fund_model(fund.fund_model_id)
        return funds

    def delete_fund(self, fund_id: str) -> None:
        if fund_id not in self._funds:
            raise RecordNotFoundError("Fund", fund_id)
        orphaned = [i for i, inv in self._investments.items() if inv.fund_id == fund_id]
        for investment_id in orphaned:
            del self._investments[investment_id]
        del self._funds[fund_id]
        logger.info("fund_deleted", fund_id=fund_id, investments_deleted=len(orphaned))

    # -- investments ------------------------------------------------------

    def list_investments(self, fund_id: str) -> list[Investment]:
        investments = [
            copy.deepcopy(inv) for inv in self._investments.values() if inv.fund_id == fund_id
        ]
        investments.sort(key=lambda inv: inv.investment_date, reverse=True)
        return investments

    def get_investment(self, investment_id: str) -> Investment | None:
        inv = self._investments.get(investment_id)
        return copy.deepcopy(inv) if inv is not None else None

    def create_investment(self, fund_id: str, fields: Mapping[str, Any]) -> Investment:
        if fund_id not in self._funds:
            raise RecordNotFoundError("Fund", fund_id)
        known = {f.name for f in dataclasses.fields(Investment)}
        for name in fields:
            if name not in known:
                raise InvalidFieldError(name, fields[name], "is not an investment field")
        values = {k: v for k, v in fields.items() if k not in _IMMUTABLE_INVESTMENT_FIELDS}
        inv = Investment(fund_id=fund_id, id=self._new_id(), **values)
        self._investments[inv.id] = inv
        logger.info(
            "investment_created",
            investment_id=inv.id,
            fund_id=fund_id,
            company=inv.company_name,
            check_size=inv.check_size,
        )
        return copy.deepcopy(inv)

    def update_investment(self, investment_id: str, fields: Mapping[str, Any]) -> Investment:
        current = self._investments.get(investment_id)
        if current is None:
            raise RecordNotFoundError("Investment", investment_id)
        known = {f.name for f in dataclasses.fields(Investment)}
        for name in fields:
            if name not in known or name in _IMMUTABLE_INVESTMENT_FIELDS:
                raise InvalidFieldError(name, fields[name], "cannot be updated")
        # replace() re-runs __post_init__, so the merged record is re-validated
        updated = dataclasses.replace(current, **fields)
        self._investments[investment_id] = updated
        logger.info(
            "investment_updated", investment_id=investment_id, fields=sorted(fields)
        )
        return copy.deepcopy(updated)

    def delete_investment(self, investment_id: str) -> None:
        if self._investments.pop(investment_id, None) is None:
            raise RecordNotFoundError("Investment", investment_id)
        logger.info("investment_deleted", investment_id=investment_id)
