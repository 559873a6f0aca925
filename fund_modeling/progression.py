"""
progression.py — Valuation progression stages and the Bear/Base/Bull presets.

The stage success and exit probabilities are benchmark data shown next to the
model. They do not feed the outcome distribution in outcomes.py.

Depends only on: models.py, exceptions.py
"""
from __future__ import annotations

import copy
import numbers
from dataclasses import dataclass, field, fields
from typing import Any, Literal, Optional, Union

import numpy as np
import pandas as pd

from fund_modeling.exceptions import InvalidFieldError
from fund_modeling.models import ValuationStage


ScenarioKind = Literal["bear", "base", "bull", "custom"]

# Defaults for a freshly appended stage
NEW_STAGE_MULTIPLE_STEP = 1.5
NEW_STAGE_SUCCESS_RATE = 0.5
NEW_STAGE_TIME_TO_NEXT = 2.0
NEW_STAGE_EXIT_PROBABILITY = 0.1

_STAGE_FIELDS = frozenset(f.name for f in fields(ValuationStage))


# ---------------------------------------------------------------------------
# Scenario definitions
# ---------------------------------------------------------------------------

@dataclass
class FundScenario:
    """
    A named set of valuation stages describing one market environment.
    """

    name: str
    description: str
    kind: ScenarioKind
    stages: list[ValuationStage] = field(default_factory=list)
    color: str = "#636EFA"


def _stages(rows: list[tuple[str, float, float, float, float]]) -> list[ValuationStage]:
    return [ValuationStage(*row) for row in rows]


# (stage, valuation_multiple, success_rate, time_to_next, exit_probability)
BEAR_SCENARIO = FundScenario(
    name="Bear Case",
    description="Economic downturn, lower valuations, higher failure rates",
    kind="bear",
    stages=_stages(
        [
            ("Entry (Seed/A)", 1.0, 1.0, 2.0, 0.10),
            ("Series B", 2.1, 0.45, 2.5, 0.25),
            ("Series C+", 4.8, 0.30, 3.0, 0.35),
            ("Growth/Pre-IPO", 9.5, 0.20, 3.5, 0.70),
            ("Exit", 15.0, 0.14, 0.0, 1.0),
        ]
    ),
    color="#EF553B",
)

BASE_SCENARIO = FundScenario(
    name="Base Case",
    description="Market consensus, moderate growth, typical success rates",
    kind="base",
    stages=_stages(
        [
            ("Entry (Seed/A)", 1.0, 1.0, 1.5, 0.05),
            ("Series B", 3.2, 0.65, 2.0, 0.15),
            ("Series C+", 8.5, 0.45, 2.5, 0.25),
            ("Growth/Pre-IPO", 22.0, 0.30, 3.0, 0.60),
            ("Exit", 45.0, 0.18, 0.0, 1.0),
        ]
    ),
    color="#636EFA",
)

BULL_SCENARIO = FundScenario(
    name="Bull Case",
    description="Strong market conditions, high valuations, accelerated timelines",
    kind="bull",
    stages=_stages(
        [
            ("Entry (Seed/A)", 1.0, 1.0, 1.0, 0.02),
            ("Series B", 4.8, 0.80, 1.5, 0.08),
            ("Series C+", 14.5, 0.65, 2.0, 0.15),
            ("Growth/Pre-IPO", 38.0, 0.45, 2.5, 0.50),
            ("Exit", 85.0, 0.28, 0.0, 1.0),
        ]
    ),
    color="#00CC96",
)

PRESET_SCENARIOS: dict[str, FundScenario] = {
    s.kind: s for s in (BEAR_SCENARIO, BASE_SCENARIO, BULL_SCENARIO)
}


def get_scenario(kind: str) -> FundScenario:
    """Private copy of a built-in preset, by kind ('bear', 'base' or 'bull')."""
    try:
        return copy.deepcopy(PRESET_SCENARIOS[kind])
    except KeyError:
        raise InvalidFieldError(
            "scenario", kind, f"must be one of {sorted(PRESET_SCENARIOS)}"
        ) from None


# ---------------------------------------------------------------------------
# ValuationProgression
# ---------------------------------------------------------------------------

class ValuationProgression:
    """
    Ordered, editable list of valuation stages owned by one model editor.

    The list never drops below one stage. Supports method chaining:

        progression = (
            ValuationProgression.from_scenario(BASE_SCENARIO)
            .add_stage()
            .update_stage(5, "stage", "Secondary")
        )
    """

    def __init__(
        self,
        stages: Optional[list[ValuationStage]] = None,
        scenario_name: str = "Custom",
    ) -> None:
        self._stages: list[ValuationStage] = copy.deepcopy(stages) if stages else []
        if not self._stages:
            self._stages = [ValuationStage("Stage 1", 1.0, 1.0, 0.0, 1.0)]
        self.scenario_name = scenario_name

    @classmethod
    def from_scenario(cls, scenario: FundScenario) -> "ValuationProgression":
        return cls(scenario.stages, scenario_name=scenario.name)

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    @property
    def stages(self) -> list[ValuationStage]:
        """A deep copy of the current stages; edit through the methods below."""
        return copy.deepcopy(self._stages)

    def add_stage(self) -> "ValuationProgression":
        """Append a stage stepping the last valuation multiple up by 1.5x."""
        multiple = (
            self._stages[-1].valuation_multiple * NEW_STAGE_MULTIPLE_STEP
            if self._stages
            else 1.0
        )
        self._stages.append(
            ValuationStage(
                stage=f"Stage {len(self._stages) + 1}",
                valuation_multiple=multiple,
                success_rate=NEW_STAGE_SUCCESS_RATE,
                time_to_next=NEW_STAGE_TIME_TO_NEXT,
                exit_probability=NEW_STAGE_EXIT_PROBABILITY,
            )
        )
        return self

    def remove_stage(self, index: int) -> "ValuationProgression":
        """Remove the stage at index; ignored if it is the only stage left."""
        if len(self._stages) > 1:
            del self._stages[index]
        return self

    def update_stage(self, index: int, field_name: str, value: Any) -> "ValuationProgression":
        """
        Replace one field of one stage.

        No cross-field validation is applied: a success rate above 1 is kept
        as entered.
        """
        if field_name not in _STAGE_FIELDS:
            raise InvalidFieldError(
                "field", field_name, f"must be one of {sorted(_STAGE_FIELDS)}"
            )
        stage = copy.copy(self._stages[index])
        setattr(stage, field_name, value)
        self._stages[index] = stage
        return self

    def apply_scenario(self, scenario: FundScenario) -> "ValuationProgression":
        """Replace the whole stage list with a private copy of the scenario's."""
        self._stages = copy.deepcopy(scenario.stages)
        self.scenario_name = scenario.name
        return self

    # ------------------------------------------------------------------
    # Read-side
    # ------------------------------------------------------------------

    def display_valuation(
        self,
        stage: Union[int, ValuationStage],
        entry_valuation: float,
    ) -> float:
        """Entry valuation scaled by the stage multiple."""
        if isinstance(stage, numbers.Integral):
            stage = self._stages[stage]
        return entry_valuation * stage.valuation_multiple

    def to_frame(self, entry_valuation: float) -> pd.DataFrame:
        """
        Stage table for display.

        Columns: position, stage, valuation_multiple, valuation, success_rate,
                 cumulative_survival, time_to_next, cumulative_years,
                 exit_probability

        cumulative_survival is the product of success rates up to and
        including each stage.
        """
        success = np.array([s.success_rate for s in self._stages], dtype=np.float64)
        times = np.array([s.time_to_next for s in self._stages], dtype=np.float64)
        return pd.DataFrame(
            {
                "position": np.arange(1, len(self._stages) + 1),
                "stage": [s.stage for s in self._stages],
                "valuation_multiple": [s.valuation_multiple for s in self._stages],
                "valuation": [
                    self.display_valuation(s, entry_valuation) for s in self._stages
                ],
                "success_rate": success,
                "cumulative_survival": np.cumprod(success),
                "time_to_next": times,
                "cumulative_years": np.concatenate([[0.0], np.cumsum(times)[:-1]]),
                "exit_probability": [s.exit_probability for s in self._stages],
            }
        )

    def __len__(self) -> int:
        return len(self._stages)

    def __repr__(self) -> str:
        return (
            f"ValuationProgression(scenario={self.scenario_name!r}, "
            f"n_stages={len(self._stages)})"
        )


def compare_scenarios(
    entry_valuation: float,
    scenarios: Optional[list[FundScenario]] = None,
) -> pd.DataFrame:
    """
    Side-by-side stage valuations for several scenarios.

    Rows are stages; columns are one valuation per scenario name.
    """
    scenarios = scenarios or [BEAR_SCENARIO, BASE_SCENARIO, BULL_SCENARIO]
    frames = []
    for scenario in scenarios:
        df = ValuationProgression.from_scenario(scenario).to_frame(entry_valuation)
        frames.append(df.set_index("stage")["valuation"].rename(scenario.name))
    return pd.concat(frames, axis=1)
