"""Scenario builder: turns project inputs into a monthly cashflow series.

This is the single pipeline every scenario runs through:
timeline -> cost/revenue allocation -> loan schedule -> equity ->
compliance overlay -> cash balance.
"""

import logging
import math
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

import numpy as np

from ..models.inputs import FeasibilityInputs
from ..models.lookups import (
    DEFAULT_REVENUE_WINDOW_MONTHS,
    MIN_PERIODS_FOR_PHASING,
    MINIMUM_REVENUE_WINDOW_MONTHS,
    PHASED_CONSTRUCTION,
    PHASED_SOFT_COSTS,
    REVENUE_COMPLETION_START_PCT,
)
from ..models.scenario import IDENTITY_MULTIPLIERS, ScenarioMultipliers
from .allocation import (
    allocate_delayed,
    allocate_even,
    allocate_phased,
    allocate_phased_equity,
    build_phases,
)
from .compliance import (
    escrow_series,
    vat_on_costs,
    vat_recoverable,
    zakat_on_profit,
)
from .debt import build_loan_schedule
from .timeline import generate_timeline, period_label


logger = logging.getLogger(__name__)


@dataclass
class MonthlyCashflow:
    """All flows for one period of one scenario."""

    period: int  # 0-indexed
    label: str  # e.g. "Jan 2025"
    period_start: date

    # Costs
    construction_cost: float = 0.0
    land_cost: float = 0.0
    soft_costs: float = 0.0

    # Financing
    loan_drawn: float = 0.0
    loan_interest: float = 0.0
    loan_repayment: float = 0.0
    equity_injected: float = 0.0

    # Revenue
    revenue: float = 0.0
    revenue_residential: float = 0.0
    revenue_retail: float = 0.0
    revenue_office: float = 0.0

    # Results
    profit: float = 0.0  # Revenue - costs - interest, before levies
    net_cashflow: float = 0.0
    cash_balance: float = 0.0

    # Compliance
    zakat_due: float = 0.0
    vat_on_costs: float = 0.0
    vat_recoverable: float = 0.0
    escrow_reserved: float = 0.0
    escrow_released: float = 0.0

    @property
    def cash_in(self) -> float:
        return (
            self.loan_drawn + self.equity_injected + self.revenue
            + self.vat_recoverable + self.escrow_released
        )

    @property
    def cash_out(self) -> float:
        return (
            self.construction_cost + self.land_cost + self.soft_costs
            + self.loan_interest + self.loan_repayment + self.zakat_due
            + self.vat_on_costs + self.escrow_reserved
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["period_start"] = self.period_start.isoformat()
        return data


@dataclass
class CashflowGrid:
    """Cashflow series for every scenario of one run.

    All scenarios share the same timeline, so period counts and labels line
    up across ``scenarios``.
    """

    scenarios: Dict[str, List[MonthlyCashflow]] = field(default_factory=dict)
    version_label: Optional[str] = None

    @property
    def scenario_names(self) -> List[str]:
        return list(self.scenarios)

    @property
    def period_count(self) -> int:
        for series in self.scenarios.values():
            return len(series)
        return 0

    @property
    def labels(self) -> List[str]:
        for series in self.scenarios.values():
            return [row.label for row in series]
        return []

    def get(self, scenario: str) -> List[MonthlyCashflow]:
        """Series for a scenario; empty if it was not run."""
        return self.scenarios.get(scenario, [])


def is_phased(inputs: FeasibilityInputs, period_count: int) -> bool:
    """Whether phased allocation applies to this run."""
    return inputs.phasing_enabled and period_count > MIN_PERIODS_FOR_PHASING


def allocate_revenue(total_revenue: float, period_count: int, phased: bool) -> np.ndarray:
    """Place sales revenue at the back of the timeline.

    Phased projects start selling at 75% of the timeline over the remaining
    periods (at least three). Otherwise revenue falls in the final six
    periods, ending on the completion month.
    """
    if phased:
        start = math.ceil(period_count * REVENUE_COMPLETION_START_PCT)
        window = max(MINIMUM_REVENUE_WINDOW_MONTHS, period_count - start)
        return allocate_delayed(total_revenue, period_count, start, window)

    trigger = max(0, period_count - DEFAULT_REVENUE_WINDOW_MONTHS)
    return allocate_delayed(total_revenue, period_count, trigger, DEFAULT_REVENUE_WINDOW_MONTHS)


def build_scenario_cashflows(
    inputs: FeasibilityInputs,
    multipliers: ScenarioMultipliers = IDENTITY_MULTIPLIERS,
) -> List[MonthlyCashflow]:
    """Build the monthly cashflow series for one scenario.

    Construction and soft costs are scaled by the cost multiplier, revenue by
    the sale price multiplier. Land is never adjusted and lands entirely in
    the first period. Missing inputs are treated as zero; nothing here raises
    for an incomplete project.

    Args:
        inputs: Project assumptions.
        multipliers: Scenario adjustments.

    Returns:
        One MonthlyCashflow per period, in timeline order.

    Example:
        >>> series = build_scenario_cashflows(inputs, get_scenario_multipliers("base"))
        >>> series[0].loan_drawn
        6000000.0
    """
    timeline = generate_timeline(inputs.start_date, inputs.completion_date)
    n = len(timeline)
    phased = is_phased(inputs, n)

    # Scenario-adjusted totals
    construction_total = inputs.construction_cost * multipliers.construction_cost_multiplier
    soft_total = inputs.soft_costs * multipliers.construction_cost_multiplier
    land_total = inputs.land_cost
    revenue_total = (
        inputs.total_gfa_sqm * inputs.average_sale_price * multipliers.sale_price_multiplier
    )
    total_cost = construction_total + land_total + soft_total

    logger.debug(
        "Building %d periods (phased=%s): cost=%.2f revenue=%.2f",
        n, phased, total_cost, revenue_total,
    )

    # Costs
    if phased:
        construction = allocate_phased(construction_total, n, build_phases(PHASED_CONSTRUCTION, n))
        soft = allocate_phased(soft_total, n, build_phases(PHASED_SOFT_COSTS, n))
    else:
        construction = allocate_even(construction_total, n)
        soft = allocate_even(soft_total, n)

    land = np.zeros(n)
    if n > 0:
        land[0] = land_total

    # Revenue and segments
    revenue = allocate_revenue(revenue_total, n, phased)
    shares = inputs.segment_shares
    split_segments = sum(shares.values()) > 0

    # Financing
    loan = build_loan_schedule(inputs.loan, n)
    equity_total = max(0.0, total_cost - inputs.loan.principal)
    # Equity tracks costs whenever phasing is on, even on short timelines
    if inputs.phasing_enabled:
        equity = allocate_phased_equity(equity_total, construction, land, soft)
    else:
        equity = allocate_even(equity_total, n)

    interest = np.asarray(loan.interest, dtype=float)
    profit = revenue - construction - land - soft - interest

    # Compliance overlay
    zeros = np.zeros(n)
    vat_paid = vat_on_costs(construction, land, soft, inputs.vat_rate) if inputs.vat_applicable else zeros
    vat_back = vat_recoverable(vat_paid) if inputs.vat_applicable else zeros
    zakat = zakat_on_profit(profit, inputs.zakat_rate) if inputs.zakat_applicable else zeros
    if inputs.escrow_required:
        escrow_in, escrow_out = escrow_series(total_cost, inputs.escrow_pct, n)
    else:
        escrow_in, escrow_out = zeros, zeros

    series: List[MonthlyCashflow] = []
    balance = 0.0

    for i, period_start in enumerate(timeline):
        row = MonthlyCashflow(
            period=i,
            label=period_label(period_start),
            period_start=period_start,
            construction_cost=float(construction[i]),
            land_cost=float(land[i]),
            soft_costs=float(soft[i]),
            loan_drawn=loan.drawn[i],
            loan_interest=loan.interest[i],
            loan_repayment=loan.repayment[i],
            equity_injected=float(equity[i]),
            revenue=float(revenue[i]),
            profit=float(profit[i]),
            zakat_due=float(zakat[i]),
            vat_on_costs=float(vat_paid[i]),
            vat_recoverable=float(vat_back[i]),
            escrow_reserved=float(escrow_in[i]),
            escrow_released=float(escrow_out[i]),
        )
        if split_segments:
            row.revenue_residential = row.revenue * shares["residential"]
            row.revenue_retail = row.revenue * shares["retail"]
            row.revenue_office = row.revenue * shares["office"]

        row.net_cashflow = row.cash_in - row.cash_out
        balance += row.net_cashflow
        row.cash_balance = balance
        series.append(row)

    return series
