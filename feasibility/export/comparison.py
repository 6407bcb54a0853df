"""CSV comparison of saved snapshots."""

import csv
import io
from typing import List, Optional, Sequence

from ..storage.snapshots import SERIES_FIELDS, ScenarioSnapshot

KPI_LABELS = (
    ("irr_annual", "IRR (%)"),
    ("tvpi", "TVPI"),
    ("dpi", "DPI"),
    ("rvpi", "RVPI"),
    ("moic", "MOIC"),
    ("gp_clawback_last", "GP Clawback (Last)"),
)


def _fmt(value: Optional[float]) -> str:
    return "N/A" if value is None else repr(float(value))


def _at(values: List[float], i: int) -> float:
    return values[i] if i < len(values) else 0.0


def export_comparison_csv(snapshots: Sequence[ScenarioSnapshot]) -> str:
    """Side-by-side CSV of snapshot KPIs and series.

    The first snapshot is the baseline; with more than one snapshot each
    row gets a "Δ vs <baseline>" column per other snapshot.

    Returns:
        CSV text; empty string when there are no snapshots.
    """
    if not snapshots:
        return ""

    base = snapshots[0]
    others = snapshots[1:]
    names = [s.name for s in snapshots]
    delta_headers = [f"Δ vs {base.name}" for _ in others]

    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")

    writer.writerow(["Comparison"] + names)
    writer.writerow(["Created"] + [s.created_at for s in snapshots])
    writer.writerow([])

    writer.writerow(["KPIs"])
    writer.writerow(["Metric"] + names + delta_headers)
    for key, label in KPI_LABELS:
        values = [getattr(s.summary, key) for s in snapshots]
        deltas = []
        for s in others:
            current = getattr(s.summary, key)
            baseline = getattr(base.summary, key)
            deltas.append("N/A" if current is None or baseline is None else _fmt(current - baseline))
        writer.writerow([label] + [_fmt(v) for v in values] + deltas)
    writer.writerow([])

    max_periods = max(s.traces.period_count for s in snapshots)
    for series_name in SERIES_FIELDS:
        writer.writerow([f"{series_name.replace('_', ' ', 1)} Series"])
        writer.writerow(["Period"] + names + delta_headers)
        baseline = getattr(base.traces, series_name)
        for i in range(max_periods):
            values = [_at(getattr(s.traces, series_name), i) for s in snapshots]
            deltas = [
                _fmt(_at(getattr(s.traces, series_name), i) - _at(baseline, i))
                for s in others
            ]
            writer.writerow([f"Period {i + 1}"] + [_fmt(v) for v in values] + deltas)
        writer.writerow([])

    return out.getvalue()
