"""Versioned persistence of cashflow grids as flat rows.

One row per (project, scenario, period) carrying every MonthlyCashflow field
plus ``version_label`` and ``is_latest``. Saving a grid marks all earlier
rows for the project as not latest, then inserts the new version.
"""

import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Protocol

from ..calculations.cashflow import CashflowGrid, MonthlyCashflow
from ..errors import PersistenceError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class RecordStore(Protocol):
    """Minimal table-like storage for cashflow rows."""

    def mark_not_latest(self, project_id: str) -> None:
        ...

    def insert_rows(self, rows: List[Row]) -> None:
        ...

    def select_rows(self, project_id: str, version_label: Optional[str] = None) -> List[Row]:
        """Rows for a project: the given version, or the latest rows."""
        ...

    def version_labels(self, project_id: str) -> List[str]:
        """Distinct version labels for a project, oldest first."""
        ...


class InMemoryRecordStore:
    """RecordStore backed by a list, for tests and single-process use."""

    def __init__(self) -> None:
        self.rows: List[Row] = []

    def mark_not_latest(self, project_id: str) -> None:
        for row in self.rows:
            if row["project_id"] == project_id:
                row["is_latest"] = False

    def insert_rows(self, rows: List[Row]) -> None:
        self.rows.extend(dict(row) for row in rows)

    def select_rows(self, project_id: str, version_label: Optional[str] = None) -> List[Row]:
        if version_label is None:
            return [dict(r) for r in self.rows if r["project_id"] == project_id and r["is_latest"]]
        return [
            dict(r) for r in self.rows
            if r["project_id"] == project_id and r["version_label"] == version_label
        ]

    def version_labels(self, project_id: str) -> List[str]:
        labels: List[str] = []
        for row in self.rows:
            if row["project_id"] == project_id and row["version_label"] not in labels:
                labels.append(row["version_label"])
        return labels


def grid_to_rows(project_id: str, grid: CashflowGrid, version_label: str) -> List[Row]:
    """Flatten a grid to one row per scenario and period."""
    rows: List[Row] = []
    for scenario, series in grid.scenarios.items():
        for cashflow in series:
            row = cashflow.to_dict()
            row.update({
                "project_id": project_id,
                "scenario": scenario,
                "version_label": version_label,
                "is_latest": True,
            })
            rows.append(row)
    return rows


def _row_to_cashflow(row: Row) -> MonthlyCashflow:
    fields = {k: v for k, v in row.items()
              if k not in ("project_id", "scenario", "version_label", "is_latest")}
    start = fields.get("period_start")
    if isinstance(start, str):
        fields["period_start"] = date.fromisoformat(start)
    return MonthlyCashflow(**fields)


def rows_to_grid(rows: Iterable[Row]) -> CashflowGrid:
    """Rebuild a grid from stored rows, ordering each scenario by period."""
    grid = CashflowGrid()
    for row in sorted(rows, key=lambda r: r["period"]):
        grid.scenarios.setdefault(row["scenario"], []).append(_row_to_cashflow(row))
        grid.version_label = row.get("version_label")
    return grid


def save_cashflow_grid(
    store: RecordStore,
    project_id: str,
    grid: CashflowGrid,
    version_label: str,
) -> int:
    """Persist a grid as the project's latest version.

    The write is not transactional: if the insert fails after earlier rows
    were flipped, callers should re-issue the full save.

    Args:
        store: Record store.
        project_id: Owning project.
        grid: Grid to persist.
        version_label: Label recorded on every row.

    Returns:
        Number of rows inserted.

    Raises:
        PersistenceError: If the store fails.
    """
    rows = grid_to_rows(project_id, grid, version_label)
    try:
        store.mark_not_latest(project_id)
        store.insert_rows(rows)
    except Exception as e:
        logger.error("Failed to save cashflow grid %s for project %s: %s", version_label, project_id, e)
        raise PersistenceError(f"Could not save cashflow grid for project {project_id}") from e

    logger.debug("Saved %d rows for project %s (%s)", len(rows), project_id, version_label)
    return len(rows)


def load_cashflow_grid(
    store: RecordStore,
    project_id: str,
    version_label: Optional[str] = None,
) -> Optional[CashflowGrid]:
    """Load the latest grid, or a specific version.

    Returns:
        The grid, or None when no rows exist.

    Raises:
        PersistenceError: If the store fails.
    """
    try:
        rows = store.select_rows(project_id, version_label)
    except Exception as e:
        logger.error("Failed to load cashflow grid for project %s: %s", project_id, e)
        raise PersistenceError(f"Could not load cashflow grid for project {project_id}") from e

    if not rows:
        return None
    return rows_to_grid(rows)


def list_versions(store: RecordStore, project_id: str) -> List[str]:
    """Version labels for a project, newest first."""
    try:
        labels = store.version_labels(project_id)
    except Exception as e:
        logger.error("Failed to list versions for project %s: %s", project_id, e)
        raise PersistenceError(f"Could not list versions for project {project_id}") from e
    return list(reversed(labels))
