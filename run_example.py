#!/usr/bin/env python3
"""Example script: run every scenario for a reference project and export it."""

import logging
import sys
from datetime import date
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from feasibility.calculations.metrics import assess_risk, benchmark_kpis, format_comparison_table
from feasibility.export import generate_cashflow_excel
from feasibility.models.inputs import FeasibilityInputs, LoanFacility
from feasibility.models.lookups import RepaymentStyle
from feasibility.scenarios import generate_cashflow_grid, summarize_grid
from feasibility.storage.snapshots import (
    InMemoryKeyValueStore,
    SnapshotStore,
    capture_snapshot,
    make_snapshot_name,
)


def get_reference_inputs() -> FeasibilityInputs:
    """Two-year residential project with a bullet construction loan."""
    return FeasibilityInputs(
        start_date=date(2025, 1, 1),
        completion_date=date(2026, 12, 1),
        phasing_enabled=True,
        construction_cost=10_000_000,
        land_cost=2_000_000,
        soft_costs=1_500_000,
        total_gfa_sqm=5_000,
        average_sale_price=3_000,
        residential_share=0.8,
        retail_share=0.2,
        loan=LoanFacility(
            principal=6_000_000,
            annual_rate=0.08,
            term_periods=24,
            repayment_style=RepaymentStyle.BULLET,
            grace_periods=2,
        ),
        vat_applicable=True,
        vat_rate=0.05,
        zakat_applicable=True,
        zakat_rate=0.025,
    )


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    inputs = get_reference_inputs()
    for warning in inputs.validate():
        print(f"WARNING: {warning}")

    grid = generate_cashflow_grid(inputs)
    summaries = summarize_grid(grid)

    print(format_comparison_table(summaries))
    print()

    for name, summary in summaries.items():
        risk = assess_risk(summary)
        print(f"{name.title():<12} risk: {risk.level.value.upper()}")
        for flag in risk.flags:
            print(f"  - {flag}")
        grades = ", ".join(f"{kpi} {grade}" for kpi, grade in benchmark_kpis(summary).items())
        print(f"  benchmarks: {grades}")

    # Snapshot the base case and show what a store export looks like
    store = SnapshotStore(InMemoryKeyValueStore())
    store.add(capture_snapshot(make_snapshot_name("Base"), inputs, grid.get("base")))
    print(f"\nSaved {len(store.load().items)} snapshot(s)")

    output = Path("feasibility_cashflows.xlsx")
    output.write_bytes(generate_cashflow_excel(grid))
    print(f"Workbook written to {output}")


if __name__ == "__main__":
    main()
