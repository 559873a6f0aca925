"""
models.py — Validated record types for fund models, funds and investments.

Every record checks its own fields at construction time, so out-of-range
values are rejected at the boundary instead of surfacing as NaN deep inside
the calculators.

Depends only on: exceptions.py
"""
from __future__ import annotations

import hashlib
import json
import math
import numbers
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Literal, Optional

from fund_modeling.exceptions import CheckSizeError, InvalidFieldError


ValuationType = Literal["safe", "priced"]
VALUATION_TYPES: tuple[str, ...] = ("safe", "priced")


# ---------------------------------------------------------------------------
# Field checks
# ---------------------------------------------------------------------------

def _number(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidFieldError(name, value, "must be a number")
    value = float(value)
    if not math.isfinite(value):
        raise InvalidFieldError(name, value, "must be finite")
    return value


def _positive(name: str, value: Any) -> float:
    value = _number(name, value)
    if value <= 0:
        raise InvalidFieldError(name, value, "must be greater than zero")
    return value


def _non_negative(name: str, value: Any) -> float:
    value = _number(name, value)
    if value < 0:
        raise InvalidFieldError(name, value, "cannot be negative")
    return value


def _bounded(name: str, value: Any, low: float, high: float) -> float:
    value = _number(name, value)
    if not low <= value <= high:
        raise InvalidFieldError(name, value, f"must be between {low:g} and {high:g}")
    return value


def _name(name: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidFieldError(name, value, "is required")
    return value.strip()


def _as_date(name: str, value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            pass
    raise InvalidFieldError(name, value, "must be an ISO date")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(name: str, value: Any) -> datetime:
    """Aware UTC timestamp; naive values are taken to be UTC already."""
    if not isinstance(value, datetime):
        raise InvalidFieldError(name, value, "must be a datetime")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# FundModel (hypothetical, pre-deployment)
# ---------------------------------------------------------------------------

@dataclass
class FundModel:
    """
    Hypothetical fund parameters edited before any capital is deployed.

    Percent fields are on a 0–100 scale (2.5 means 2.5%).
    """

    name: str
    fund_size: float
    avg_entry_valuation: float
    avg_initial_check: float
    gp_commit: float = 0.0
    reserve_ratio_pct: float = 50.0
    recycling_rate_pct: float = 0.0
    hold_period_years: float = 7.0
    mgmt_fee_pct: float = 2.0
    carry_pct: float = 20.0
    id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Re-check every field; raises ValidationError on the first problem."""
        self.name = _name("name", self.name)
        self.fund_size = _positive("fund_size", self.fund_size)
        self.gp_commit = _non_negative("gp_commit", self.gp_commit)
        self.avg_entry_valuation = _positive(
            "avg_entry_valuation", self.avg_entry_valuation
        )
        self.avg_initial_check = _positive("avg_initial_check", self.avg_initial_check)
        if self.avg_initial_check >= self.fund_size:
            raise CheckSizeError(self.avg_initial_check, self.fund_size)
        self.reserve_ratio_pct = _bounded("reserve_ratio_pct", self.reserve_ratio_pct, 0, 100)
        self.recycling_rate_pct = _bounded(
            "recycling_rate_pct", self.recycling_rate_pct, 0, 100
        )
        self.hold_period_years = _positive("hold_period_years", self.hold_period_years)
        self.mgmt_fee_pct = _bounded("mgmt_fee_pct", self.mgmt_fee_pct, 0, 100)
        self.carry_pct = _bounded("carry_pct", self.carry_pct, 0, 100)
        self.created_at = _as_utc("created_at", self.created_at)

    def sizing(self) -> dict[str, float]:
        """The numeric inputs every calculator reads."""
        return {
            "gp_commit": self.gp_commit,
            "fund_size": self.fund_size,
            "avg_entry_valuation": self.avg_entry_valuation,
            "avg_initial_check": self.avg_initial_check,
            "reserve_ratio_pct": self.reserve_ratio_pct,
            "recycling_rate_pct": self.recycling_rate_pct,
            "hold_period_years": self.hold_period_years,
            "mgmt_fee_pct": self.mgmt_fee_pct,
            "carry_pct": self.carry_pct,
        }

    def fingerprint(self) -> str:
        """Stable hash of the sizing fields, usable as an explicit cache key."""
        payload = json.dumps(self.sizing(), sort_keys=True)
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# ValuationStage
# ---------------------------------------------------------------------------

@dataclass
class ValuationStage:
    """One funding round in a valuation progression."""

    stage: str
    valuation_multiple: float  # relative to entry valuation
    success_rate: float  # probability of advancing to the next stage
    time_to_next: float  # years; 0 at the terminal stage
    exit_probability: float

    def __post_init__(self) -> None:
        self.stage = _name("stage", self.stage)
        self.valuation_multiple = _non_negative(
            "valuation_multiple", self.valuation_multiple
        )
        self.success_rate = _bounded("success_rate", self.success_rate, 0, 1)
        self.time_to_next = _non_negative("time_to_next", self.time_to_next)
        self.exit_probability = _bounded("exit_probability", self.exit_probability, 0, 1)


# ---------------------------------------------------------------------------
# Fund (deployed)
# ---------------------------------------------------------------------------

@dataclass
class Fund:
    """A deployed fund that real investments are logged against."""

    name: str
    fund_size: float
    check_size: float
    reserve_ratio: float  # fraction, 0–1
    planned_investments: int
    fund_model_id: Optional[str] = None
    deployment_date: Optional[date] = None
    deployed_capital: float = 0.0
    status: str = "active"
    id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    # Populated by listings that join the originating model; never persisted.
    fund_model: Optional[FundModel] = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.name = _name("name", self.name)
        self.fund_size = _positive("fund_size", self.fund_size)
        self.check_size = _positive("check_size", self.check_size)
        if self.check_size >= self.fund_size:
            raise CheckSizeError(self.check_size, self.fund_size)
        self.reserve_ratio = _bounded("reserve_ratio", self.reserve_ratio, 0, 1)
        if isinstance(self.planned_investments, bool) or not isinstance(
            self.planned_investments, numbers.Integral
        ):
            raise InvalidFieldError(
                "planned_investments", self.planned_investments, "must be an integer"
            )
        if self.planned_investments <= 0:
            raise InvalidFieldError(
                "planned_investments", self.planned_investments, "must be positive"
            )
        self.planned_investments = int(self.planned_investments)
        self.deployed_capital = _non_negative("deployed_capital", self.deployed_capital)
        if self.deployment_date is not None:
            self.deployment_date = _as_date("deployment_date", self.deployment_date)
        self.created_at = _as_utc("created_at", self.created_at)

    @property
    def is_active(self) -> bool:
        return self.status == "active"


# ---------------------------------------------------------------------------
# Investment (actual)
# ---------------------------------------------------------------------------

@dataclass
class Investment:
    """A real check written by a deployed fund."""

    fund_id: str
    company_name: str
    entry_valuation: float
    check_size: float
    investment_date: date
    ownership_percentage: Optional[float] = None  # fraction; None = derive
    marked_up_valuation: Optional[float] = None
    realized_return: Optional[float] = None
    valuation_type: Optional[ValuationType] = None
    id: Optional[str] = None

    def __post_init__(self) -> None:
        self.company_name = _name("company_name", self.company_name)
        self.entry_valuation = _positive("entry_valuation", self.entry_valuation)
        self.check_size = _positive("check_size", self.check_size)
        self.investment_date = _as_date("investment_date", self.investment_date)
        if self.ownership_percentage is not None:
            self.ownership_percentage = _bounded(
                "ownership_percentage", self.ownership_percentage, 0, 1
            )
            if self.ownership_percentage == 0:
                raise InvalidFieldError(
                    "ownership_percentage", self.ownership_percentage, "must be positive"
                )
        if self.marked_up_valuation is not None:
            self.marked_up_valuation = _positive(
                "marked_up_valuation", self.marked_up_valuation
            )
        if self.realized_return is not None:
            self.realized_return = _non_negative("realized_return", self.realized_return)
        if self.valuation_type is not None and self.valuation_type not in VALUATION_TYPES:
            raise InvalidFieldError(
                "valuation_type", self.valuation_type, "must be 'safe' or 'priced'"
            )

    @property
    def ownership(self) -> float:
        """Explicit ownership if supplied, otherwise check / entry valuation."""
        if self.ownership_percentage is not None:
            return self.ownership_percentage
        return self.check_size / self.entry_valuation

    @property
    def is_marked_up(self) -> bool:
        return self.marked_up_valuation is not None

    @property
    def is_realized(self) -> bool:
        return self.realized_return is not None
