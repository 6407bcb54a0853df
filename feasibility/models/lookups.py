"""Lookup tables for default rates, phase templates, and regional levies."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple


class RepaymentStyle(Enum):
    """How loan principal is returned to the lender."""

    BULLET = "bullet"
    EQUAL_INSTALLMENT = "equal_installment"
    INTEREST_ONLY = "interest_only"


# Aliases accepted when reading repayment styles from external form data
REPAYMENT_STYLE_ALIASES: Dict[str, RepaymentStyle] = {
    "bullet": RepaymentStyle.BULLET,
    "equal": RepaymentStyle.EQUAL_INSTALLMENT,
    "equal_installment": RepaymentStyle.EQUAL_INSTALLMENT,
    "interest_only": RepaymentStyle.INTEREST_ONLY,
}


class EscrowTrigger(Enum):
    """Condition that releases escrowed funds in schedule projections."""

    CONSTRUCTION_PERCENT = "construction_percent"
    MONTH_BASED = "month_based"
    MILESTONE_BASED = "milestone_based"


class ZakatBasis(Enum):
    """Taxable base used for a project-level Zakat assessment."""

    NET_PROFIT = "net_profit"
    GROSS_REVENUE = "gross_revenue"
    ASSET_VALUE = "asset_value"


# Default rates (decimal fractions)
DEFAULT_ZAKAT_RATE = 0.025

# Default timelines (months)
DEFAULT_PROJECT_DURATION_MONTHS = 24  # Fallback horizon when completion date is missing

# Phased allocation only kicks in above this many periods
MIN_PERIODS_FOR_PHASING = 6

# Revenue recognition
REVENUE_COMPLETION_START_PCT = 0.75  # Phased projects start selling at 75% of timeline
DEFAULT_REVENUE_WINDOW_MONTHS = 6
MINIMUM_REVENUE_WINDOW_MONTHS = 3


@dataclass(frozen=True)
class PhaseTemplate:
    """Phase timing expressed as fractions of the timeline length."""

    name: str
    start_pct: float  # Start offset as share of timeline
    duration_pct: float  # Duration as share of timeline
    cost_percent: float  # Share of category total (0-100)


# Construction cost phasing (percentages sum to 100)
PHASED_CONSTRUCTION: Tuple[PhaseTemplate, ...] = (
    PhaseTemplate("Foundation", start_pct=0.0, duration_pct=0.25, cost_percent=30),
    PhaseTemplate("Structure", start_pct=0.2, duration_pct=0.4, cost_percent=45),
    PhaseTemplate("Finishing", start_pct=0.6, duration_pct=0.35, cost_percent=25),
)

# Soft cost phasing (percentages sum to 100)
PHASED_SOFT_COSTS: Tuple[PhaseTemplate, ...] = (
    PhaseTemplate("Design", start_pct=0.0, duration_pct=0.3, cost_percent=40),
    PhaseTemplate("Permits", start_pct=0.1, duration_pct=0.2, cost_percent=20),
    PhaseTemplate("Management", start_pct=0.0, duration_pct=1.0, cost_percent=40),
)


@dataclass(frozen=True)
class RegionalRates:
    """Jurisdiction-specific levies."""

    vat_rate: float
    zakat_rate: float
    currency: str


REGIONAL_RATES: Dict[str, RegionalRates] = {
    "UAE": RegionalRates(vat_rate=0.05, zakat_rate=0.025, currency="AED"),
    "KSA": RegionalRates(vat_rate=0.15, zakat_rate=0.025, currency="SAR"),
}


def get_regional_rates(region: str = "UAE") -> RegionalRates:
    """Get VAT/Zakat rates for a region code, falling back to UAE."""
    return REGIONAL_RATES.get(region.upper(), REGIONAL_RATES["UAE"])


# Saudi compliance defaults
SAUDI_ESCROW_PCT = 0.20
SAUDI_MIN_PROJECT_VALUE_FOR_ESCROW = 10_000_000  # SAR
SAUDI_ZAKAT_NISAB_THRESHOLD = 85_000  # SAR (approximate)

# Risk thresholds (percent values, matching summary metric units)
HIGH_RISK_IRR = 15.0
MEDIUM_RISK_IRR = 20.0
HIGH_RISK_PROFIT_MARGIN = 15.0
MEDIUM_RISK_PROFIT_MARGIN = 25.0
LOW_ROI_THRESHOLD = 5.0

# KPI benchmarks (percent values)
EXCELLENT_IRR = 25.0
GOOD_IRR = 20.0
EXCELLENT_ROI = 40.0
GOOD_ROI = 25.0
EXCELLENT_PROFIT_MARGIN = 35.0
GOOD_PROFIT_MARGIN = 25.0
