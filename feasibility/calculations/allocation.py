"""Allocation of lump totals across timeline periods.

All functions return float arrays sized to the timeline; index 0 is the
first period.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Sequence

import numpy as np

from ..models.lookups import PhaseTemplate

logger = logging.getLogger(__name__)


@dataclass
class Phase:
    """A sub-interval of the timeline carrying a share of a cost category."""

    name: str
    start_period: int  # 0-indexed
    duration_periods: int
    cost_percent_of_total: float  # 0-100

    @property
    def end_period(self) -> int:
        """Exclusive end index."""
        return self.start_period + self.duration_periods


def build_phases(templates: Iterable[PhaseTemplate], period_count: int) -> List[Phase]:
    """Resolve fractional phase templates against a timeline length.

    Start offsets and durations are rounded up, so short timelines still give
    every phase at least one period.

    Args:
        templates: Phase templates with start/duration as timeline fractions.
        period_count: Number of periods in the timeline.

    Returns:
        Concrete phases with integer start and duration.
    """
    return [
        Phase(
            name=t.name,
            start_period=math.ceil(period_count * t.start_pct),
            duration_periods=math.ceil(period_count * t.duration_pct),
            cost_percent_of_total=t.cost_percent,
        )
        for t in templates
    ]


def allocate_even(amount: float, period_count: int) -> np.ndarray:
    """Spread an amount evenly over every period.

    Args:
        amount: Total to allocate.
        period_count: Number of periods.

    Returns:
        Array of ``amount / period_count``; empty when there are no periods.
    """
    if period_count <= 0:
        return np.zeros(0)
    return np.full(period_count, amount / period_count, dtype=float)


def allocate_delayed(
    total: float,
    period_count: int,
    trigger_period: int,
    window: int,
) -> np.ndarray:
    """Amortize a total over a window starting at a trigger period.

    The window is clipped at the end of the timeline and the total is
    divided over the clipped window, so the full amount is always placed.
    Periods before the trigger are zero.

    Args:
        total: Amount to allocate.
        period_count: Number of periods in the timeline.
        trigger_period: First period receiving an allocation (0-indexed).
        window: Requested number of periods.

    Returns:
        Allocation array; all zeros if the trigger is outside the timeline.
    """
    allocation = np.zeros(max(period_count, 0))
    if trigger_period < 0 or trigger_period >= period_count:
        return allocation

    effective_window = min(window, period_count - trigger_period)
    if effective_window <= 0:
        return allocation

    allocation[trigger_period:trigger_period + effective_window] = total / effective_window
    return allocation


def allocate_phased(total: float, period_count: int, phases: Sequence[Phase]) -> np.ndarray:
    """Distribute a total across overlapping phases.

    Each phase receives ``total * cost_percent_of_total / 100`` spread evenly
    over its duration. Periods past the end of the timeline are dropped, and
    overlapping phases stack. Phase weights are not required to sum to 100.

    Args:
        total: Category total (e.g. construction cost).
        period_count: Number of periods in the timeline.
        phases: Phases to allocate across.

    Returns:
        Allocation array.
    """
    allocation = np.zeros(max(period_count, 0))

    weight_total = sum(p.cost_percent_of_total for p in phases)
    if phases and not math.isclose(weight_total, 100.0, abs_tol=1e-9):
        logger.debug("Phase weights sum to %.4f%%, not 100%%", weight_total)

    for phase in phases:
        if phase.duration_periods <= 0:
            continue
        phase_total = total * phase.cost_percent_of_total / 100
        per_period = phase_total / phase.duration_periods

        start = max(phase.start_period, 0)
        end = min(phase.end_period, period_count)
        if start < end:
            allocation[start:end] += per_period

    return allocation


def allocate_phased_equity(
    total_equity: float,
    construction: Sequence[float],
    land: Sequence[float],
    soft: Sequence[float],
) -> np.ndarray:
    """Allocate equity in proportion to each period's share of total cost.

    Args:
        total_equity: Equity to place.
        construction: Per-period construction cost.
        land: Per-period land cost.
        soft: Per-period soft costs.

    Returns:
        Allocation array; all zeros when total cost is zero.
    """
    period_costs = np.asarray(construction, dtype=float) + np.asarray(land, dtype=float) + np.asarray(soft, dtype=float)
    total_cost = period_costs.sum()

    if total_cost == 0:
        return np.zeros_like(period_costs)

    return period_costs / total_cost * total_equity
