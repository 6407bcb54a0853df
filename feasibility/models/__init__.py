"""Data models for the feasibility engine."""

from .lookups import (
    RepaymentStyle,
    EscrowTrigger,
    ZakatBasis,
    PhaseTemplate,
    PHASED_CONSTRUCTION,
    PHASED_SOFT_COSTS,
    RegionalRates,
    REGIONAL_RATES,
    get_regional_rates,
)
from .scenario import (
    ScenarioName,
    ScenarioMultipliers,
    IDENTITY_MULTIPLIERS,
    SCENARIO_MULTIPLIERS,
    get_scenario_multipliers,
)
from .inputs import (
    LoanFacility,
    FeasibilityInputs,
    safe_number,
    parse_date,
)

__all__ = [
    "RepaymentStyle",
    "EscrowTrigger",
    "ZakatBasis",
    "PhaseTemplate",
    "PHASED_CONSTRUCTION",
    "PHASED_SOFT_COSTS",
    "RegionalRates",
    "REGIONAL_RATES",
    "get_regional_rates",
    "ScenarioName",
    "ScenarioMultipliers",
    "IDENTITY_MULTIPLIERS",
    "SCENARIO_MULTIPLIERS",
    "get_scenario_multipliers",
    "LoanFacility",
    "FeasibilityInputs",
    "safe_number",
    "parse_date",
]
