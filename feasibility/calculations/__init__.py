"""Calculation modules for the feasibility engine."""

from .timeline import generate_timeline, period_label, add_months
from .allocation import (
    Phase,
    allocate_even,
    allocate_delayed,
    allocate_phased,
    allocate_phased_equity,
    build_phases,
)
from .debt import LoanSchedule, build_loan_schedule
from .compliance import (
    vat_on_costs,
    vat_recoverable,
    zakat_on_profit,
    escrow_series,
    EscrowConfig,
    EscrowRelease,
    ProjectProgress,
    project_escrow_schedule,
    evaluate_escrow_release,
    ZakatConfig,
    ProjectFinancials,
    calculate_zakat_amount,
    zakat_summary,
    compliance_status,
    saudi_compliance_defaults,
)
from .cashflow import MonthlyCashflow, CashflowGrid, build_scenario_cashflows
from .metrics import (
    ScenarioSummary,
    ScenarioDelta,
    RiskLevel,
    summarize,
    compare_summaries,
    assess_risk,
    benchmark_kpis,
    format_comparison_table,
)

__all__ = [
    "generate_timeline",
    "period_label",
    "add_months",
    "Phase",
    "allocate_even",
    "allocate_delayed",
    "allocate_phased",
    "allocate_phased_equity",
    "build_phases",
    "LoanSchedule",
    "build_loan_schedule",
    "vat_on_costs",
    "vat_recoverable",
    "zakat_on_profit",
    "escrow_series",
    "EscrowConfig",
    "EscrowRelease",
    "ProjectProgress",
    "project_escrow_schedule",
    "evaluate_escrow_release",
    "ZakatConfig",
    "ProjectFinancials",
    "calculate_zakat_amount",
    "zakat_summary",
    "compliance_status",
    "saudi_compliance_defaults",
    "MonthlyCashflow",
    "CashflowGrid",
    "build_scenario_cashflows",
    "ScenarioSummary",
    "ScenarioDelta",
    "RiskLevel",
    "summarize",
    "compare_summaries",
    "assess_risk",
    "benchmark_kpis",
    "format_comparison_table",
]
