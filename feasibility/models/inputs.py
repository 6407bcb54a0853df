"""Input model for a feasibility run."""

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional

from .lookups import REPAYMENT_STYLE_ALIASES, RepaymentStyle, get_regional_rates


def safe_number(value: Any, default: float = 0.0) -> float:
    """Coerce a value to a finite float.

    None, non-numeric strings, NaN and infinities all become ``default``.
    """
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def safe_int(value: Any, default: int = 0) -> int:
    """Coerce a value to a non-negative integer (floored)."""
    return max(0, int(math.floor(safe_number(value, float(default)))))


def parse_date(value: Any) -> Optional[date]:
    """Parse a date, datetime or ISO string ("2025-01" or "2025-01-15").

    Returns None for anything that is not a recognizable date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        for fmt, width in (("%Y-%m-%d", 10), ("%Y-%m", 7)):
            try:
                return datetime.strptime(text[:width], fmt).date()
            except ValueError:
                continue
    return None


def parse_bool(value: Any, default: bool = False) -> bool:
    """Read a form flag; strings like "false", "0" and "no" are False."""
    if value is None:
        return default
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("true", "1", "yes", "y", "on"):
            return True
        if text in ("false", "0", "no", "n", "off", ""):
            return False
        return default
    return bool(value)


def parse_repayment_style(value: Any) -> RepaymentStyle:
    """Resolve a repayment style from an enum or alias, defaulting to bullet."""
    if isinstance(value, RepaymentStyle):
        return value
    if isinstance(value, str):
        return REPAYMENT_STYLE_ALIASES.get(value.strip().lower(), RepaymentStyle.BULLET)
    return RepaymentStyle.BULLET


@dataclass
class LoanFacility:
    """Single senior loan facility."""

    principal: float = 0.0
    annual_rate: float = 0.0  # Decimal (0.08 = 8%)
    term_periods: int = 0  # 0 = runs to the end of the timeline
    repayment_style: RepaymentStyle = RepaymentStyle.BULLET
    grace_periods: int = 0

    @property
    def monthly_rate(self) -> float:
        """Monthly interest rate."""
        return self.annual_rate / 12

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "LoanFacility":
        """Build a facility from loosely-typed data; missing numbers become zero."""
        data = data or {}
        return cls(
            principal=safe_number(data.get("principal")),
            annual_rate=safe_number(data.get("annual_rate")),
            term_periods=safe_int(data.get("term_periods")),
            repayment_style=parse_repayment_style(data.get("repayment_style")),
            grace_periods=safe_int(data.get("grace_periods")),
        )


@dataclass
class FeasibilityInputs:
    """Complete assumptions for one feasibility run.

    Every numeric field defaults to zero so a partially filled form still
    produces a (possibly empty) projection rather than an error.
    """

    # === Timing ===
    start_date: Optional[date] = None  # None = current month
    completion_date: Optional[date] = None  # None = start + default horizon
    phasing_enabled: bool = False

    # === Costs ===
    construction_cost: float = 0.0
    land_cost: float = 0.0
    soft_costs: float = 0.0

    # === Revenue ===
    total_gfa_sqm: float = 0.0
    average_sale_price: float = 0.0  # Per sqm of GFA
    # Segment shares of revenue (0-1); all zero leaves segments unreported
    residential_share: float = 0.0
    retail_share: float = 0.0
    office_share: float = 0.0

    # === Financing ===
    loan: LoanFacility = field(default_factory=LoanFacility)

    # === Compliance toggles (rates as decimals) ===
    escrow_required: bool = False
    escrow_pct: float = 0.0
    zakat_applicable: bool = False
    zakat_rate: float = 0.0
    vat_applicable: bool = False
    vat_rate: float = 0.0

    @property
    def total_revenue(self) -> float:
        """Gross sales revenue before scenario adjustment."""
        return self.total_gfa_sqm * self.average_sale_price

    @property
    def total_cost(self) -> float:
        """Construction + land + soft costs before scenario adjustment."""
        return self.construction_cost + self.land_cost + self.soft_costs

    @property
    def segment_shares(self) -> Dict[str, float]:
        """Revenue split by segment."""
        return {
            "residential": self.residential_share,
            "retail": self.retail_share,
            "office": self.office_share,
        }

    def validate(self) -> list[str]:
        """Validate inputs and return list of warnings.

        The engine runs regardless; these are advisory messages for the caller.

        Returns:
            List of warning messages. Empty if inputs look sane.
        """
        warnings = []

        for name in ("construction_cost", "land_cost", "soft_costs",
                     "total_gfa_sqm", "average_sale_price"):
            value = getattr(self, name)
            if value < 0:
                warnings.append(f"{name} must be non-negative, got {value:,.2f}")

        if self.start_date and self.completion_date and self.completion_date < self.start_date:
            warnings.append(
                f"completion_date {self.completion_date} precedes start_date {self.start_date}"
            )

        for name in ("escrow_pct", "zakat_rate", "vat_rate"):
            value = getattr(self, name)
            if not 0 <= value <= 1:
                warnings.append(f"{name} must be 0-1, got {value}")

        if not 0 <= self.loan.annual_rate <= 1:
            warnings.append(f"loan.annual_rate must be 0-1, got {self.loan.annual_rate}")
        if self.loan.principal < 0:
            warnings.append(f"loan.principal must be non-negative, got {self.loan.principal:,.2f}")

        share_sum = self.residential_share + self.retail_share + self.office_share
        if share_sum > 0 and not 0.99 <= share_sum <= 1.01:
            warnings.append(f"revenue segment shares must sum to 1.0, got {share_sum:.2f}")

        return warnings

    def with_regional_rates(self, region: str) -> "FeasibilityInputs":
        """Copy with VAT and Zakat rates taken from a region's levies."""
        rates = get_regional_rates(region)
        inputs = self.copy()
        inputs.vat_rate = rates.vat_rate
        inputs.zakat_rate = rates.zakat_rate
        return inputs

    def copy(self) -> "FeasibilityInputs":
        """Create a copy with an independent loan facility."""
        return FeasibilityInputs.from_dict(self.to_dict())

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible primitives."""
        return {
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "completion_date": self.completion_date.isoformat() if self.completion_date else None,
            "phasing_enabled": self.phasing_enabled,
            "construction_cost": self.construction_cost,
            "land_cost": self.land_cost,
            "soft_costs": self.soft_costs,
            "total_gfa_sqm": self.total_gfa_sqm,
            "average_sale_price": self.average_sale_price,
            "residential_share": self.residential_share,
            "retail_share": self.retail_share,
            "office_share": self.office_share,
            "loan": {
                "principal": self.loan.principal,
                "annual_rate": self.loan.annual_rate,
                "term_periods": self.loan.term_periods,
                "repayment_style": self.loan.repayment_style.value,
                "grace_periods": self.loan.grace_periods,
            },
            "escrow_required": self.escrow_required,
            "escrow_pct": self.escrow_pct,
            "zakat_applicable": self.zakat_applicable,
            "zakat_rate": self.zakat_rate,
            "vat_applicable": self.vat_applicable,
            "vat_rate": self.vat_rate,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "FeasibilityInputs":
        """Build inputs from loosely-typed data (form payloads, stored snapshots).

        Missing or malformed numbers become zero, unparseable dates become
        None, and unknown keys are ignored.
        """
        data = data or {}
        return cls(
            start_date=parse_date(data.get("start_date")),
            completion_date=parse_date(data.get("completion_date")),
            phasing_enabled=parse_bool(data.get("phasing_enabled")),
            construction_cost=safe_number(data.get("construction_cost")),
            land_cost=safe_number(data.get("land_cost")),
            soft_costs=safe_number(data.get("soft_costs")),
            total_gfa_sqm=safe_number(data.get("total_gfa_sqm")),
            average_sale_price=safe_number(data.get("average_sale_price")),
            residential_share=safe_number(data.get("residential_share")),
            retail_share=safe_number(data.get("retail_share")),
            office_share=safe_number(data.get("office_share")),
            loan=LoanFacility.from_dict(data.get("loan")),
            escrow_required=parse_bool(data.get("escrow_required")),
            escrow_pct=safe_number(data.get("escrow_pct")),
            zakat_applicable=parse_bool(data.get("zakat_applicable")),
            zakat_rate=safe_number(data.get("zakat_rate")),
            vat_applicable=parse_bool(data.get("vat_applicable")),
            vat_rate=safe_number(data.get("vat_rate")),
        )
