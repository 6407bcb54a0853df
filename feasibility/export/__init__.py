"""Export module for workbooks and snapshot comparisons."""

from .workbook import (
    WorkbookConfig,
    grid_to_dataframe,
    generate_cashflow_excel,
)
from .comparison import export_comparison_csv

__all__ = [
    "WorkbookConfig",
    "grid_to_dataframe",
    "generate_cashflow_excel",
    "export_comparison_csv",
]
