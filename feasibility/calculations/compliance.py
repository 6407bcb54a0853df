"""VAT, Zakat and escrow overlays.

Each levy is toggle-gated by the caller; every function here is pure and
takes rates as decimal fractions (0.05 = 5%).
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Tuple

import numpy as np

from ..models.lookups import (
    DEFAULT_ZAKAT_RATE,
    SAUDI_ESCROW_PCT,
    SAUDI_MIN_PROJECT_VALUE_FOR_ESCROW,
    SAUDI_ZAKAT_NISAB_THRESHOLD,
    EscrowTrigger,
    ZakatBasis,
)
from .timeline import add_months, month_start


# === Per-period overlay (cashflow path) ===

def vat_on_costs(
    construction: np.ndarray,
    land: np.ndarray,
    soft: np.ndarray,
    rate: float,
) -> np.ndarray:
    """VAT paid on each period's costs."""
    return (np.asarray(construction) + np.asarray(land) + np.asarray(soft)) * rate


def vat_recoverable(vat_paid: np.ndarray) -> np.ndarray:
    """Input VAT recovered in the same period it is paid.

    Full, same-period recovery is a simplifying assumption; there is no
    partial-recovery or lag model.
    """
    return np.array(vat_paid, dtype=float, copy=True)


def zakat_on_profit(profit: np.ndarray, rate: float) -> np.ndarray:
    """Zakat on each period's profit; loss-making periods owe nothing."""
    return np.where(np.asarray(profit) > 0, np.asarray(profit) * rate, 0.0)


def escrow_series(
    total_project_cost: float,
    pct: float,
    period_count: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """Reserve escrow up front and release it on the final period.

    Args:
        total_project_cost: Base for the escrow amount.
        pct: Escrow share (decimal).
        period_count: Number of periods in the timeline.

    Returns:
        Tuple of (reserved, released) arrays.
    """
    reserved = np.zeros(max(period_count, 0))
    released = np.zeros(max(period_count, 0))
    if period_count <= 0:
        return reserved, released

    amount = total_project_cost * pct
    reserved[0] = amount
    released[-1] = amount
    return reserved, released


# === Schedule projection (reporting path) ===

@dataclass
class EscrowConfig:
    """Escrow account terms for schedule projection."""

    enabled: bool = False
    pct: float = 0.0  # Share of revenue held (decimal)
    trigger: EscrowTrigger = EscrowTrigger.CONSTRUCTION_PERCENT
    trigger_details: str = ""  # Milestone name for milestone_based
    # Construction percent (0-100) or month number, depending on trigger
    release_threshold: float = 0.0


@dataclass
class EscrowRelease:
    """A single projected (or evaluated) escrow release."""

    release_date: date
    release_amount: float
    release_percentage: float  # 0-100
    trigger: EscrowTrigger
    trigger_details: str
    construction_progress: Optional[float] = None
    milestone_achieved: Optional[str] = None
    is_projected: bool = True


@dataclass
class EscrowReleaseCheck:
    """Outcome of checking a release condition against current progress."""

    can_release: bool
    release_percentage: float
    release_amount: float


@dataclass
class ProjectProgress:
    """Observed project progress used to evaluate escrow triggers."""

    construction_percent: float = 0.0
    current_month: int = 0
    completed_milestones: List[str] = field(default_factory=list)


def escrow_amount(total_revenue: float, pct: float) -> float:
    """Amount held in escrow for the projection path."""
    return total_revenue * pct


def project_escrow_schedule(
    total_amount: float,
    config: EscrowConfig,
    start: date,
    duration_months: int,
) -> List[EscrowRelease]:
    """Project when escrowed funds will be released.

    - construction_percent: four equal 25% releases at 25/50/75/100% of the
      duration.
    - month_based: one full release at the threshold month.
    - milestone_based: one full release at 75% of the duration.

    This projection is independent of the per-period ``escrow_series`` used
    in cashflows; the two are not reconciled.

    Args:
        total_amount: Revenue base for the escrow amount.
        config: Escrow terms.
        start: Project start date.
        duration_months: Project duration in months.

    Returns:
        Projected releases in date order.
    """
    amount = escrow_amount(total_amount, config.pct)
    first = month_start(start)
    releases: List[EscrowRelease] = []

    if config.trigger == EscrowTrigger.CONSTRUCTION_PERCENT:
        for percent in (25, 50, 75, 100):
            offset = int(percent / 100 * duration_months)
            releases.append(EscrowRelease(
                release_date=add_months(first, offset),
                release_amount=amount * 0.25,
                release_percentage=25.0,
                trigger=config.trigger,
                trigger_details=f"{percent}% construction complete",
                construction_progress=float(percent),
            ))

    elif config.trigger == EscrowTrigger.MONTH_BASED:
        offset = int(config.release_threshold)
        releases.append(EscrowRelease(
            release_date=add_months(first, offset),
            release_amount=amount,
            release_percentage=100.0,
            trigger=config.trigger,
            trigger_details=f"Month {offset}",
        ))

    elif config.trigger == EscrowTrigger.MILESTONE_BASED:
        offset = int(0.75 * duration_months)
        releases.append(EscrowRelease(
            release_date=add_months(first, offset),
            release_amount=amount,
            release_percentage=100.0,
            trigger=config.trigger,
            trigger_details=config.trigger_details,
            milestone_achieved=config.trigger_details,
        ))

    return releases


def evaluate_escrow_release(
    total_escrow: float,
    config: EscrowConfig,
    progress: ProjectProgress,
) -> EscrowReleaseCheck:
    """Check whether escrow can be released given current progress.

    Construction triggers release the achieved percentage (capped at 100)
    once the threshold is met; month and milestone triggers release in full.
    """
    can_release = False
    release_pct = 0.0

    if config.trigger == EscrowTrigger.CONSTRUCTION_PERCENT:
        if progress.construction_percent > 0 and progress.construction_percent >= config.release_threshold:
            can_release = True
            release_pct = min(100.0, progress.construction_percent)

    elif config.trigger == EscrowTrigger.MONTH_BASED:
        if progress.current_month > 0 and progress.current_month >= config.release_threshold:
            can_release = True
            release_pct = 100.0

    elif config.trigger == EscrowTrigger.MILESTONE_BASED:
        if config.trigger_details in progress.completed_milestones:
            can_release = True
            release_pct = 100.0

    release_amount = total_escrow * release_pct / 100 if can_release else 0.0
    return EscrowReleaseCheck(
        can_release=can_release,
        release_percentage=release_pct,
        release_amount=release_amount,
    )


# === Project-level Zakat ===

@dataclass
class ZakatConfig:
    """Zakat assessment terms."""

    applicable: bool = False
    rate: float = DEFAULT_ZAKAT_RATE  # Decimal
    basis: ZakatBasis = ZakatBasis.NET_PROFIT
    exclude_losses: bool = True
    nisab: float = 0.0  # Bases below this owe nothing


@dataclass
class ProjectFinancials:
    """Project totals a Zakat basis is drawn from."""

    total_revenue: float = 0.0
    total_costs: float = 0.0
    net_profit: float = 0.0
    asset_value: float = 0.0


@dataclass
class ZakatAssessment:
    zakat_amount: float
    taxable_base: float
    effective_rate: float


@dataclass
class ZakatSummary:
    """Zakat position for reporting."""

    is_applicable: bool
    basis: ZakatBasis
    taxable_base: float
    zakat_rate: float
    zakat_amount: float
    net_profit_after_zakat: float
    effective_impact: float  # Percent of net profit consumed by Zakat


def calculate_zakat_amount(config: ZakatConfig, financials: ProjectFinancials) -> ZakatAssessment:
    """Assess Zakat on the configured basis.

    Args:
        config: Zakat terms.
        financials: Project totals.

    Returns:
        ZakatAssessment; all zeros when Zakat is not applicable.
    """
    if not config.applicable:
        return ZakatAssessment(zakat_amount=0.0, taxable_base=0.0, effective_rate=0.0)

    if config.basis == ZakatBasis.NET_PROFIT:
        taxable_base = max(0.0, financials.net_profit)
        if config.exclude_losses and financials.net_profit < 0:
            taxable_base = 0.0
    elif config.basis == ZakatBasis.GROSS_REVENUE:
        taxable_base = financials.total_revenue
    else:
        taxable_base = financials.asset_value

    if taxable_base < config.nisab:
        return ZakatAssessment(zakat_amount=0.0, taxable_base=taxable_base, effective_rate=config.rate)

    return ZakatAssessment(
        zakat_amount=taxable_base * config.rate,
        taxable_base=taxable_base,
        effective_rate=config.rate,
    )


def zakat_summary(financials: ProjectFinancials, config: ZakatConfig) -> ZakatSummary:
    """Summarize the Zakat assessment and its impact on profit."""
    assessment = calculate_zakat_amount(config, financials)
    impact = (
        assessment.zakat_amount / financials.net_profit * 100
        if financials.net_profit > 0 else 0.0
    )
    return ZakatSummary(
        is_applicable=config.applicable,
        basis=config.basis,
        taxable_base=assessment.taxable_base,
        zakat_rate=config.rate,
        zakat_amount=assessment.zakat_amount,
        net_profit_after_zakat=financials.net_profit - assessment.zakat_amount,
        effective_impact=impact,
    )


def compliance_status(escrow: EscrowConfig, zakat: ZakatConfig) -> str:
    """Overall compliance level: "full", "partial" or "none"."""
    if escrow.enabled and zakat.applicable:
        return "full"
    if escrow.enabled or zakat.applicable:
        return "partial"
    return "none"


def monthly_zakat(profit: float, config: ZakatConfig) -> float:
    """Zakat on a single period's profit under the given terms."""
    if not config.applicable or profit <= 0:
        return 0.0
    return profit * config.rate



def saudi_compliance_defaults(project_value: float) -> Tuple[EscrowConfig, ZakatConfig]:
    """Escrow and Zakat terms for a Saudi off-plan project.

    Escrow is only mandated at or above the minimum project value.
    """
    escrow = EscrowConfig(
        enabled=project_value >= SAUDI_MIN_PROJECT_VALUE_FOR_ESCROW,
        pct=SAUDI_ESCROW_PCT,
        trigger=EscrowTrigger.CONSTRUCTION_PERCENT,
        release_threshold=25.0,
    )
    zakat = ZakatConfig(
        applicable=True,
        rate=DEFAULT_ZAKAT_RATE,
        basis=ZakatBasis.NET_PROFIT,
        nisab=SAUDI_ZAKAT_NISAB_THRESHOLD,
    )
    return escrow, zakat
