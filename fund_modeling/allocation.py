"""
allocation.py — Portfolio construction targets by stage, sector and geography.

Depends on: nothing in this library
"""
from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Literal, Optional

import pandas as pd


AllocationStatus = Literal["over limit", "on target", "off target"]

TARGET_TOLERANCE_PCT = 5.0


@dataclass
class AllocationTarget:
    """Target and current share (percent of the portfolio) for one category."""

    category: str
    target: float
    current: float
    limit: Optional[float] = None  # hard maximum, percent

    @property
    def status(self) -> AllocationStatus:
        if self.limit is not None and self.current > self.limit:
            return "over limit"
        if abs(self.current - self.target) <= TARGET_TOLERANCE_PCT:
            return "on target"
        return "off target"

    @property
    def gap(self) -> float:
        """Current minus target, in percentage points."""
        return self.current - self.target


DEFAULT_STAGE_TARGETS = [
    AllocationTarget("Pre-Seed", 15, 15),
    AllocationTarget("Seed", 40, 35),
    AllocationTarget("Series A", 35, 30),
    AllocationTarget("Series B+", 10, 20),
]

DEFAULT_SECTOR_TARGETS = [
    AllocationTarget("SaaS", 25, 25, limit=30),
    AllocationTarget("FinTech", 20, 20, limit=25),
    AllocationTarget("HealthTech", 15, 15, limit=20),
    AllocationTarget("AI/ML", 20, 20, limit=25),
    AllocationTarget("Other", 20, 20, limit=25),
]

DEFAULT_GEOGRAPHY_TARGETS = [
    AllocationTarget("North America", 60, 60, limit=70),
    AllocationTarget("Europe", 25, 25, limit=30),
    AllocationTarget("Asia-Pacific", 10, 10, limit=15),
    AllocationTarget("Other", 5, 5, limit=10),
]


def default_targets() -> dict[str, list[AllocationTarget]]:
    """Fresh, editable copies of the starting stage / sector / geography targets."""
    return {
        "stage": copy.deepcopy(DEFAULT_STAGE_TARGETS),
        "sector": copy.deepcopy(DEFAULT_SECTOR_TARGETS),
        "geography": copy.deepcopy(DEFAULT_GEOGRAPHY_TARGETS),
    }


def allocation_summary(targets: list[AllocationTarget]) -> tuple[pd.DataFrame, bool]:
    """
    Tabulate targets and report whether the current allocation totals 100%.

    Returns
    -------
    (DataFrame, bool)
        Columns: category, target, current, limit, gap, status
    """
    df = pd.DataFrame(
        {
            "category": [t.category for t in targets],
            "target": [t.target for t in targets],
            "current": [t.current for t in targets],
            "limit": [t.limit for t in targets],
            "gap": [t.gap for t in targets],
            "status": [t.status for t in targets],
        }
    )
    total = sum(t.current for t in targets)
    return df, abs(total - 100.0) < 1e-9
