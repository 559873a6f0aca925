"""Tests for fund_modeling.store — the in-memory FundStore."""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest
from structlog.testing import capture_logs

from fund_modeling.exceptions import (
    InvalidFieldError,
    ModelInUseError,
    RecordNotFoundError,
)
from fund_modeling.models import Fund, FundModel
from fund_modeling.store import InMemoryFundStore, fund_from_model


def _investment_fields(**overrides) -> dict:
    fields = dict(
        company_name="AlphaAI",
        entry_valuation=5_000_000,
        check_size=250_000,
        investment_date=date(2022, 6, 1),
    )
    fields.update(overrides)
    return fields


class TestFundModels:
    def test_save_assigns_id(self, store: InMemoryFundStore, base_model: FundModel):
        model_id = store.save_fund_model(base_model)
        assert model_id
        assert base_model.id == model_id
        assert store.load_fund_model(model_id).name == "Benchmark Model I"

    def test_save_existing_updates(self, store: InMemoryFundStore, base_model: FundModel):
        model_id = store.save_fund_model(base_model)
        base_model.avg_initial_check = 750_000
        assert store.save_fund_model(base_model) == model_id
        assert store.load_fund_model(model_id).avg_initial_check == 750_000
        assert len(store.list_fund_models()) == 1

    def test_save_revalidates(self, store: InMemoryFundStore, base_model: FundModel):
        base_model.fund_size = -1
        with pytest.raises(InvalidFieldError):
            store.save_fund_model(base_model)

    def test_loaded_model_is_a_copy(self, store: InMemoryFundStore, base_model: FundModel):
        model_id = store.save_fund_model(base_model)
        loaded = store.load_fund_model(model_id)
        loaded.name = "Changed"
        assert store.load_fund_model(model_id).name == "Benchmark Model I"

    def test_missing_model_is_none(self, store: InMemoryFundStore):
        assert store.load_fund_model("nope") is None

    def test_list_newest_first(self, store: InMemoryFundStore):
        now = datetime.now(timezone.utc)
        for i, name in enumerate(["Old", "New"]):
            store.save_fund_model(
                FundModel(name, 10_000_000, 5_000_000, 100_000,
                          created_at=now + timedelta(minutes=i))
            )
        assert [m.name for m in store.list_fund_models()] == ["New", "Old"]

    def test_list_mixes_naive_and_aware_timestamps(self, store: InMemoryFundStore):
        store.save_fund_model(
            FundModel("Naive", 10_000_000, 5_000_000, 100_000,
                      created_at=datetime(2020, 1, 1))
        )
        store.save_fund_model(FundModel("Aware", 10_000_000, 5_000_000, 100_000))
        assert [m.name for m in store.list_fund_models()] == ["Aware", "Naive"]

    def test_delete_unlinked_model(self, store: InMemoryFundStore, base_model: FundModel):
        model_id = store.save_fund_model(base_model)
        store.delete_fund_model(model_id)
        assert store.load_fund_model(model_id) is None

    def test_delete_linked_model_refused(self, store: InMemoryFundStore, base_model: FundModel):
        model_id = store.save_fund_model(base_model)
        fund = store.deploy_fund(base_model, "Fund I")
        with pytest.raises(ModelInUseError) as exc:
            store.delete_fund_model(model_id)
        assert exc.value.context["fund_ids"] == [fund.id]

    def test_delete_missing_model(self, store: InMemoryFundStore):
        with pytest.raises(RecordNotFoundError):
            store.delete_fund_model("nope")


class TestDeployFund:
    def test_deploy_copies_model_fields(self, store: InMemoryFundStore, base_model: FundModel):
        store.save_fund_model(base_model)
        fund = store.deploy_fund(base_model, "Fund I", date(2024, 2, 1), created_by="alice")
        assert fund.id
        assert fund.fund_size == 100_000_000
        assert fund.check_size == 1_000_000
        assert fund.reserve_ratio == pytest.approx(0.5)
        assert fund.planned_investments == 100
        assert fund.fund_model_id == base_model.id
        assert fund.status == "active"
        assert fund.deployed_capital == 0
        assert fund.deployment_date == date(2024, 2, 1)
        assert fund.created_by == "alice"

    def test_planned_investments_floor(self, base_model: FundModel):
        base_model.avg_initial_check = 3_000_000
        assert fund_from_model(base_model, "F").planned_investments == 33

    def test_deploy_unsaved_model(self, store: InMemoryFundStore, base_model: FundModel):
        with pytest.raises(RecordNotFoundError):
            store.deploy_fund(base_model, "Fund I")

    def test_deploy_logs_event(self, store: InMemoryFundStore, base_model: FundModel):
        store.save_fund_model(base_model)
        with capture_logs() as logs:
            fund = store.deploy_fund(base_model, "Fund I")
        deployed = [e for e in logs if e["event"] == "fund_deployed"]
        assert deployed and deployed[0]["fund_id"] == fund.id
        assert deployed[0]["log_level"] == "info"


class TestFunds:
    def test_list_active_with_model(self, store: InMemoryFundStore, base_model: FundModel):
        store.save_fund_model(base_model)
        store.deploy_fund(base_model, "Fund I")
        funds = store.list_active_funds(include_model=True)
        assert len(funds) == 1
        assert funds[0].fund_model.name == "Benchmark Model I"
        assert store.list_active_funds()[0].fund_model is None

    def test_inactive_funds_hidden(self, store: InMemoryFundStore, fund: Fund):
        fund.status = "closed"
        store.create_fund(fund)
        assert store.list_active_funds() == []
        assert store.get_fund(fund.id).status == "closed"

    def test_delete_fund_cascades(self, store: InMemoryFundStore, fund: Fund):
        store.create_fund(fund)
        inv = store.create_investment(fund.id, _investment_fields())
        store.delete_fund(fund.id)
        assert store.get_fund(fund.id) is None
        assert store.get_investment(inv.id) is None
        assert store.list_investments(fund.id) == []

    def test_delete_missing_fund(self, store: InMemoryFundStore):
        with pytest.raises(RecordNotFoundError):
            store.delete_fund("nope")


class TestInvestments:
    def test_create_and_list_newest_first(self, store: InMemoryFundStore, fund: Fund):
        store.create_fund(fund)
        store.create_investment(fund.id, _investment_fields(company_name="Old", investment_date=date(2021, 1, 1)))
        store.create_investment(fund.id, _investment_fields(company_name="New", investment_date=date(2023, 1, 1)))
        assert [i.company_name for i in store.list_investments(fund.id)] == ["New", "Old"]

    def test_create_for_missing_fund(self, store: InMemoryFundStore):
        with pytest.raises(RecordNotFoundError):
            store.create_investment("nope", _investment_fields())

    def test_create_validates(self, store: InMemoryFundStore, fund: Fund):
        store.create_fund(fund)
        with pytest.raises(InvalidFieldError):
            store.create_investment(fund.id, _investment_fields(entry_valuation=0))

    def test_create_rejects_unknown_field(self, store: InMemoryFundStore, fund: Fund):
        store.create_fund(fund)
        with pytest.raises(InvalidFieldError) as exc:
            store.create_investment(fund.id, _investment_fields(sector="AI"))
        assert exc.value.context["field"] == "sector"
        assert store.list_investments(fund.id) == []

    def test_update_is_partial_and_revalidated(self, store: InMemoryFundStore, fund: Fund):
        store.create_fund(fund)
        inv = store.create_investment(fund.id, _investment_fields())
        updated = store.update_investment(inv.id, {"marked_up_valuation": 7_500_000})
        assert updated.marked_up_valuation == 7_500_000
        assert updated.check_size == 250_000
        with pytest.raises(InvalidFieldError):
            store.update_investment(inv.id, {"check_size": -5})
        assert store.get_investment(inv.id).check_size == 250_000

    def test_update_cannot_move_investment(self, store: InMemoryFundStore, fund: Fund):
        store.create_fund(fund)
        inv = store.create_investment(fund.id, _investment_fields())
        with pytest.raises(InvalidFieldError):
            store.update_investment(inv.id, {"fund_id": "other"})
        with pytest.raises(InvalidFieldError):
            store.update_investment(inv.id, {"sector": "SaaS"})

    def test_update_missing(self, store: InMemoryFundStore):
        with pytest.raises(RecordNotFoundError):
            store.update_investment("nope", {"check_size": 1})

    def test_delete_investment(self, store: InMemoryFundStore, fund: Fund):
        store.create_fund(fund)
        inv = store.create_investment(fund.id, _investment_fields())
        store.delete_investment(inv.id)
        with pytest.raises(RecordNotFoundError):
            store.delete_investment(inv.id)
