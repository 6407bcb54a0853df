"""Summary metrics and scenario comparison."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np
import numpy_financial as npf

from ..models.lookups import (
    EXCELLENT_IRR,
    EXCELLENT_PROFIT_MARGIN,
    EXCELLENT_ROI,
    GOOD_IRR,
    GOOD_PROFIT_MARGIN,
    GOOD_ROI,
    HIGH_RISK_IRR,
    HIGH_RISK_PROFIT_MARGIN,
    LOW_ROI_THRESHOLD,
    MEDIUM_RISK_IRR,
    MEDIUM_RISK_PROFIT_MARGIN,
)
from .cashflow import MonthlyCashflow


@dataclass
class ScenarioSummary:
    """Headline metrics for one scenario series.

    Percentages are expressed as percent values (12.5 = 12.5%).
    """

    total_revenue: float = 0.0
    total_costs: float = 0.0  # Construction + land + soft + interest
    net_profit: float = 0.0
    profit_margin: float = 0.0
    final_cash_balance: float = 0.0
    irr: float = 0.0  # Ratio-based approximation, not a root solve
    roi: float = 0.0
    payback_period: int = 0  # 1-based period of break-even
    irr_solved: Optional[float] = None  # Annualized IRR of net cashflows


@dataclass
class ScenarioDelta:
    """Differences of one scenario against a baseline (other - base)."""

    revenue: float
    net_profit: float
    irr: float
    roi: float
    profit_margin: float


class RiskLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class RiskAssessment:
    level: RiskLevel
    flags: List[str] = field(default_factory=list)


def approximate_irr(net_cashflows: Sequence[float]) -> float:
    """Annualized ratio of total inflows to total outflows.

    ``(returns / investment) ** (1 / years) - 1`` as a percentage. This is a
    rough return indicator that ignores timing inside the horizon; use
    :func:`solve_irr` for a discounted-cashflow IRR.

    Args:
        net_cashflows: Monthly net cashflows.

    Returns:
        Percentage; 0 when there are no outflows.
    """
    if len(net_cashflows) == 0:
        return 0.0

    investment = abs(sum(cf for cf in net_cashflows if cf < 0))
    returns = sum(cf for cf in net_cashflows if cf > 0)
    if investment == 0:
        return 0.0

    years = len(net_cashflows) / 12
    return ((returns / investment) ** (1 / years) - 1) * 100


def solve_irr(net_cashflows: Sequence[float]) -> Optional[float]:
    """Annualized IRR of monthly cashflows via numpy-financial.

    Returns:
        Percentage, or None when the series never changes sign or the
        solver does not converge.
    """
    flows = np.asarray(net_cashflows, dtype=float)
    if flows.size == 0 or not (np.any(flows < 0) and np.any(flows > 0)):
        return None

    try:
        monthly_irr = npf.irr(flows)
    except (ValueError, ArithmeticError):
        return None

    if monthly_irr is None or np.isnan(monthly_irr):
        return None
    return float(((1 + monthly_irr) ** 12 - 1) * 100)


def payback_period(net_cashflows: Sequence[float]) -> int:
    """First 1-based period where cumulative net cashflow is non-negative.

    Returns the series length when break-even is never reached.
    """
    cumulative = 0.0
    for i, cf in enumerate(net_cashflows):
        cumulative += cf
        if cumulative >= 0:
            return i + 1
    return len(net_cashflows)


def summarize(series: Sequence[MonthlyCashflow]) -> ScenarioSummary:
    """Calculate summary metrics from a scenario's cashflow series.

    Args:
        series: Monthly cashflows in period order.

    Returns:
        ScenarioSummary; all zeros for an empty series.
    """
    if not series:
        return ScenarioSummary()

    total_revenue = sum(row.revenue for row in series)
    total_costs = sum(
        row.construction_cost + row.land_cost + row.soft_costs + row.loan_interest
        for row in series
    )
    net_profit = total_revenue - total_costs
    profit_margin = net_profit / total_revenue * 100 if total_revenue > 0 else 0.0

    total_equity = sum(row.equity_injected for row in series)
    roi = net_profit / total_equity * 100 if total_equity > 0 else 0.0

    net_cashflows = [row.net_cashflow for row in series]

    return ScenarioSummary(
        total_revenue=total_revenue,
        total_costs=total_costs,
        net_profit=net_profit,
        profit_margin=profit_margin,
        final_cash_balance=series[-1].cash_balance,
        irr=approximate_irr(net_cashflows),
        roi=roi,
        payback_period=payback_period(net_cashflows),
        irr_solved=solve_irr(net_cashflows),
    )


def compare_summaries(base: ScenarioSummary, other: ScenarioSummary) -> ScenarioDelta:
    """Deltas of ``other`` against ``base``."""
    return ScenarioDelta(
        revenue=other.total_revenue - base.total_revenue,
        net_profit=other.net_profit - base.net_profit,
        irr=other.irr - base.irr,
        roi=other.roi - base.roi,
        profit_margin=other.profit_margin - base.profit_margin,
    )


def assess_risk(summary: ScenarioSummary) -> RiskAssessment:
    """Grade a scenario against the IRR, margin and ROI thresholds.

    Any high-risk flag makes the scenario high risk; otherwise any
    medium-risk flag makes it medium.
    """
    flags: List[str] = []
    high = False
    medium = False

    if summary.irr < HIGH_RISK_IRR:
        flags.append(f"IRR {summary.irr:.1f}% below {HIGH_RISK_IRR:.0f}%")
        high = True
    elif summary.irr < MEDIUM_RISK_IRR:
        flags.append(f"IRR {summary.irr:.1f}% below {MEDIUM_RISK_IRR:.0f}%")
        medium = True

    if summary.profit_margin < HIGH_RISK_PROFIT_MARGIN:
        flags.append(f"Profit margin {summary.profit_margin:.1f}% below {HIGH_RISK_PROFIT_MARGIN:.0f}%")
        high = True
    elif summary.profit_margin < MEDIUM_RISK_PROFIT_MARGIN:
        flags.append(f"Profit margin {summary.profit_margin:.1f}% below {MEDIUM_RISK_PROFIT_MARGIN:.0f}%")
        medium = True

    if summary.roi < LOW_ROI_THRESHOLD:
        flags.append(f"ROI {summary.roi:.1f}% below {LOW_ROI_THRESHOLD:.0f}%")
        medium = True

    if high:
        level = RiskLevel.HIGH
    elif medium:
        level = RiskLevel.MEDIUM
    else:
        level = RiskLevel.LOW

    return RiskAssessment(level=level, flags=flags)


def _grade(value: float, excellent: float, good: float) -> str:
    if value >= excellent:
        return "excellent"
    if value >= good:
        return "good"
    return "below target"


def benchmark_kpis(summary: ScenarioSummary) -> Dict[str, str]:
    """Grade IRR, ROI and profit margin against the KPI benchmarks."""
    return {
        "irr": _grade(summary.irr, EXCELLENT_IRR, GOOD_IRR),
        "roi": _grade(summary.roi, EXCELLENT_ROI, GOOD_ROI),
        "profit_margin": _grade(summary.profit_margin, EXCELLENT_PROFIT_MARGIN, GOOD_PROFIT_MARGIN),
    }


def format_comparison_table(summaries: Mapping[str, ScenarioSummary]) -> str:
    """Format scenario summaries side by side as a text table.

    Args:
        summaries: Summary per scenario name, in display order.

    Returns:
        Formatted string table.
    """
    names = list(summaries)
    width = 25 + 16 * len(names)

    def row(label: str, values: List[str]) -> str:
        return f"{label:<25}" + "".join(f"{v:>16}" for v in values)

    def solved(value: Optional[float]) -> str:
        return "n/a" if value is None else f"{value:.2f}%"

    s: Dict[str, ScenarioSummary] = dict(summaries)
    lines = [
        "=" * width,
        "SCENARIO COMPARISON",
        "=" * width,
        "",
        row("Metric", [n.title() for n in names]),
        "-" * width,
        row("Total Revenue", [f"{s[n].total_revenue:,.0f}" for n in names]),
        row("Total Costs", [f"{s[n].total_costs:,.0f}" for n in names]),
        row("Net Profit", [f"{s[n].net_profit:,.0f}" for n in names]),
        row("Profit Margin", [f"{s[n].profit_margin:.2f}%" for n in names]),
        row("Final Cash Balance", [f"{s[n].final_cash_balance:,.0f}" for n in names]),
        "",
        row("IRR (approx.)", [f"{s[n].irr:.2f}%" for n in names]),
        row("IRR (solved)", [solved(s[n].irr_solved) for n in names]),
        row("ROI", [f"{s[n].roi:.2f}%" for n in names]),
        row("Payback (months)", [f"{s[n].payback_period:d}" for n in names]),
        "=" * width,
    ]

    return "\n".join(lines)
