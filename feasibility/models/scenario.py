"""Named scenarios and the multiplier table applied to base inputs."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict


class ScenarioName(str, Enum):
    """Scenarios produced for every cashflow grid."""

    BASE = "base"
    OPTIMISTIC = "optimistic"
    PESSIMISTIC = "pessimistic"
    CUSTOM = "custom"


@dataclass(frozen=True)
class ScenarioMultipliers:
    """Uniform adjustments applied to base inputs before allocation.

    The IRR multiplier is carried with the set but the scenario builder
    does not apply it; it is reported alongside the scenario for reference.
    """

    construction_cost_multiplier: float = 1.0  # Applies to construction and soft costs
    sale_price_multiplier: float = 1.0  # Applies to gross revenue
    irr_multiplier: float = 1.0


IDENTITY_MULTIPLIERS = ScenarioMultipliers()

# Scenario table: add a row here to introduce a new named scenario
SCENARIO_MULTIPLIERS: Dict[str, ScenarioMultipliers] = {
    ScenarioName.BASE.value: IDENTITY_MULTIPLIERS,
    ScenarioName.OPTIMISTIC.value: ScenarioMultipliers(
        construction_cost_multiplier=0.9,  # 10% cost reduction
        sale_price_multiplier=1.15,  # 15% price increase
        irr_multiplier=1.2,
    ),
    ScenarioName.PESSIMISTIC.value: ScenarioMultipliers(
        construction_cost_multiplier=1.2,  # 20% cost increase
        sale_price_multiplier=0.9,  # 10% price reduction
        irr_multiplier=0.8,
    ),
    ScenarioName.CUSTOM.value: ScenarioMultipliers(
        construction_cost_multiplier=1.05,
        sale_price_multiplier=0.95,
        irr_multiplier=1.0,
    ),
}


def get_scenario_multipliers(scenario: str | ScenarioName) -> ScenarioMultipliers:
    """Look up the multiplier set for a scenario name.

    Unknown names fall back to the base (identity) set.
    """
    key = scenario.value if isinstance(scenario, ScenarioName) else str(scenario)
    return SCENARIO_MULTIPLIERS.get(key, IDENTITY_MULTIPLIERS)
