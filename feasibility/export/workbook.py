"""Cashflow grid export - pandas frames and an Excel workbook.

The workbook carries a Summary sheet comparing scenarios and one sheet per
scenario with the full period-by-period cashflow.
"""

import io
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.utils.dataframe import dataframe_to_rows

from ..calculations.cashflow import CashflowGrid
from ..calculations.metrics import summarize

# Column order and display names for per-scenario sheets
CASHFLOW_COLUMNS = {
    "label": "Period",
    "construction_cost": "Construction",
    "land_cost": "Land",
    "soft_costs": "Soft Costs",
    "loan_drawn": "Loan Drawn",
    "loan_interest": "Interest",
    "loan_repayment": "Repayment",
    "equity_injected": "Equity",
    "revenue": "Revenue",
    "profit": "Profit",
    "vat_on_costs": "VAT Paid",
    "vat_recoverable": "VAT Recovered",
    "zakat_due": "Zakat",
    "escrow_reserved": "Escrow Reserved",
    "escrow_released": "Escrow Released",
    "net_cashflow": "Net Cashflow",
    "cash_balance": "Cash Balance",
}


@dataclass
class WorkbookConfig:
    """Configuration for workbook generation."""
    project_name: str = "Development Feasibility"
    include_summary: bool = True


def grid_to_dataframe(grid: CashflowGrid) -> pd.DataFrame:
    """Flatten a grid into a long-form frame, one row per scenario and period."""
    records = []
    for scenario, series in grid.scenarios.items():
        for row in series:
            record = row.to_dict()
            record["scenario"] = scenario
            records.append(record)

    df = pd.DataFrame.from_records(records)
    if df.empty:
        return df

    leading = ["scenario", "period", "label", "period_start"]
    return df[leading + [c for c in df.columns if c not in leading]]


def _add_header_style(ws, row: int, cols: int) -> None:
    """Apply header styling to a row."""
    header_fill = PatternFill(start_color="1F4E79", end_color="1F4E79", fill_type="solid")
    header_font = Font(color="FFFFFF", bold=True)

    for col in range(1, cols + 1):
        cell = ws.cell(row=row, column=col)
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal="center")


def _add_section_header(ws, title: str, row: int) -> int:
    """Add a section header and return next row."""
    ws.cell(row=row, column=1, value=title)
    ws.cell(row=row, column=1).font = Font(bold=True, size=14)
    return row + 1


def _create_summary_sheet(ws, grid: CashflowGrid, config: WorkbookConfig) -> None:
    row = _add_section_header(ws, config.project_name, 1)
    ws.cell(row=row, column=1, value=f"Version: {grid.version_label or '-'}")
    ws.cell(row=row + 1, column=1, value=f"Generated: {datetime.now():%Y-%m-%d %H:%M}")
    row += 3

    names = grid.scenario_names
    headers = ["Metric"] + [n.title() for n in names]
    for col, header in enumerate(headers, 1):
        ws.cell(row=row, column=col, value=header)
    _add_header_style(ws, row, len(headers))
    row += 1

    summaries = [summarize(grid.get(n)) for n in names]
    metrics = [
        ("Total Revenue", "total_revenue", "#,##0"),
        ("Total Costs", "total_costs", "#,##0"),
        ("Net Profit", "net_profit", "#,##0"),
        ("Profit Margin (%)", "profit_margin", "0.00"),
        ("Final Cash Balance", "final_cash_balance", "#,##0"),
        ("IRR approx. (%)", "irr", "0.00"),
        ("IRR solved (%)", "irr_solved", "0.00"),
        ("ROI (%)", "roi", "0.00"),
        ("Payback (months)", "payback_period", "0"),
    ]
    for label, attr, fmt in metrics:
        ws.cell(row=row, column=1, value=label)
        for col, summary in enumerate(summaries, 2):
            value = getattr(summary, attr)
            cell = ws.cell(row=row, column=col, value="n/a" if value is None else value)
            cell.number_format = fmt
        row += 1

    ws.column_dimensions["A"].width = 25
    for col in range(2, len(headers) + 1):
        ws.column_dimensions[get_column_letter(col)].width = 18


def _create_scenario_sheet(ws, df: pd.DataFrame) -> None:
    frame = df[list(CASHFLOW_COLUMNS)].rename(columns=CASHFLOW_COLUMNS)

    for r, values in enumerate(dataframe_to_rows(frame, index=False, header=True), 1):
        for c, value in enumerate(values, 1):
            cell = ws.cell(row=r, column=c, value=value)
            if r > 1 and c > 1:
                cell.number_format = "#,##0"
    _add_header_style(ws, 1, len(CASHFLOW_COLUMNS))
    ws.freeze_panes = "B2"

    ws.column_dimensions["A"].width = 12
    for col in range(2, len(CASHFLOW_COLUMNS) + 1):
        ws.column_dimensions[get_column_letter(col)].width = 15


def generate_cashflow_excel(
    grid: CashflowGrid,
    config: Optional[WorkbookConfig] = None,
) -> bytes:
    """Generate an Excel workbook for a cashflow grid.

    Args:
        grid: Grid to export.
        config: Optional configuration for the workbook.

    Returns:
        Excel file as bytes
    """
    if config is None:
        config = WorkbookConfig()

    wb = Workbook()

    # Remove default sheet
    wb.remove(wb.active)

    if config.include_summary:
        ws = wb.create_sheet("Summary")
        _create_summary_sheet(ws, grid, config)

    df = grid_to_dataframe(grid)
    for name in grid.scenario_names:
        ws = wb.create_sheet(name.title()[:31])
        _create_scenario_sheet(ws, df[df["scenario"] == name])

    output = io.BytesIO()
    wb.save(output)
    output.seek(0)
    return output.getvalue()
