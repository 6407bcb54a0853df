"""Scenario grid runner.

Runs every named scenario through the single cashflow pipeline
(build_scenario_cashflows) and optionally persists the resulting grid.
"""

import logging
import time
from typing import Dict, Iterable, Optional

from .calculations.cashflow import CashflowGrid, build_scenario_cashflows
from .calculations.metrics import ScenarioSummary, format_comparison_table, summarize
from .models.inputs import FeasibilityInputs
from .models.scenario import SCENARIO_MULTIPLIERS, ScenarioMultipliers, get_scenario_multipliers
from .storage.records import RecordStore, save_cashflow_grid

logger = logging.getLogger(__name__)


def make_version_label() -> str:
    """Default version label from the current time in milliseconds."""
    return f"v{int(time.time() * 1000)}"


def generate_cashflow_grid(
    inputs: FeasibilityInputs,
    version_label: Optional[str] = None,
    scenarios: Optional[Iterable[str]] = None,
    custom: Optional[ScenarioMultipliers] = None,
) -> CashflowGrid:
    """Build cashflows for each named scenario.

    Args:
        inputs: Project assumptions, shared by all scenarios.
        version_label: Label for the grid. Defaults to a timestamp label.
        scenarios: Scenario names to run. Defaults to every entry in
            SCENARIO_MULTIPLIERS.
        custom: Overrides the multipliers of the "custom" scenario.

    Returns:
        CashflowGrid keyed by scenario name.
    """
    names = list(scenarios) if scenarios is not None else list(SCENARIO_MULTIPLIERS)
    grid = CashflowGrid(version_label=version_label or make_version_label())

    for name in names:
        multipliers = custom if (name == "custom" and custom is not None) else get_scenario_multipliers(name)
        grid.scenarios[name] = build_scenario_cashflows(inputs, multipliers)

    logger.debug(
        "Generated grid %s: %d scenarios x %d periods",
        grid.version_label, len(grid.scenarios), grid.period_count,
    )
    return grid


def summarize_grid(grid: CashflowGrid) -> Dict[str, ScenarioSummary]:
    """Summary metrics per scenario, in grid order."""
    return {name: summarize(series) for name, series in grid.scenarios.items()}


def generate_and_save(
    inputs: FeasibilityInputs,
    project_id: str,
    store: RecordStore,
    version_label: Optional[str] = None,
) -> CashflowGrid:
    """Generate a grid and persist it as the project's latest version.

    Raises:
        PersistenceError: If the store write fails. The grid is not
            retried; callers should re-issue the whole save.
    """
    grid = generate_cashflow_grid(inputs, version_label)
    save_cashflow_grid(store, project_id, grid, grid.version_label)
    return grid


def comparison_report(inputs: FeasibilityInputs) -> str:
    """Run every scenario and format the side-by-side comparison table."""
    grid = generate_cashflow_grid(inputs)
    return format_comparison_table(summarize_grid(grid))
