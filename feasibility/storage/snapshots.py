"""Named, timestamped scenario snapshots kept in a key-value store.

The whole collection is stored as one JSON document under a single key:
``{"version": 1, "items": [...]}``. Snapshots are never edited in place
beyond rename; duplicate and delete are the only other mutations.
"""

import json
import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from ..calculations.cashflow import MonthlyCashflow
from ..calculations.metrics import solve_irr
from ..errors import PersistenceError, SnapshotImportError
from ..models.inputs import FeasibilityInputs, safe_number

logger = logging.getLogger(__name__)

SCENARIO_NAMESPACE = "feasly.scenarios.v1"
STATE_VERSION = 1
UNNAMED_SNAPSHOT = "Unnamed Snapshot"

KPI_FIELDS = ("irr_annual", "tvpi", "dpi", "rvpi", "moic", "gp_clawback_last")
SERIES_FIELDS = ("calls_total", "dists_total", "gp_promote", "gp_clawback")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _optional_number(value: Any) -> Optional[float]:
    """Finite number or None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return float(value)


def _number_list(values: Any) -> List[float]:
    if not isinstance(values, (list, tuple)):
        return []
    return [safe_number(v) for v in values]


# === Data model ===

@dataclass
class SnapshotSummary:
    irr_annual: Optional[float] = None  # Percent; None when not solvable
    tvpi: float = 0.0
    dpi: float = 0.0
    rvpi: float = 0.0
    moic: float = 0.0
    gp_clawback_last: float = 0.0

    @classmethod
    def from_dict(cls, data: Any) -> "SnapshotSummary":
        data = data if isinstance(data, Mapping) else {}
        irr = data.get("irr_annual", data.get("irr_pa"))
        return cls(
            irr_annual=_optional_number(irr),
            tvpi=safe_number(data.get("tvpi")),
            dpi=safe_number(data.get("dpi")),
            rvpi=safe_number(data.get("rvpi")),
            moic=safe_number(data.get("moic")),
            gp_clawback_last=safe_number(data.get("gp_clawback_last")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in KPI_FIELDS}


@dataclass
class SnapshotTraces:
    """Per-period series captured with a snapshot."""

    period_count: int = 0
    calls_total: List[float] = field(default_factory=list)
    dists_total: List[float] = field(default_factory=list)
    gp_promote: List[float] = field(default_factory=list)
    gp_clawback: List[float] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "SnapshotTraces":
        data = data if isinstance(data, Mapping) else {}
        count = data.get("period_count", data.get("T"))
        return cls(
            period_count=max(0, math.floor(safe_number(count))),
            calls_total=_number_list(data.get("calls_total")),
            dists_total=_number_list(data.get("dists_total")),
            gp_promote=_number_list(data.get("gp_promote")),
            gp_clawback=_number_list(data.get("gp_clawback")),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"period_count": self.period_count}
        for name in SERIES_FIELDS:
            data[name] = list(getattr(self, name))
        return data

    @property
    def length(self) -> int:
        """Longest captured series."""
        return max(len(getattr(self, name)) for name in SERIES_FIELDS)


@dataclass
class ScenarioSnapshot:
    """Point-in-time capture of inputs and headline results."""

    id: str
    name: str
    created_at: str  # ISO-8601
    inputs: Dict[str, Any] = field(default_factory=dict)
    summary: SnapshotSummary = field(default_factory=SnapshotSummary)
    traces: SnapshotTraces = field(default_factory=SnapshotTraces)
    note: Optional[str] = None

    def sanitized(self) -> "ScenarioSnapshot":
        """Copy with every numeric coerced to a finite value."""
        return ScenarioSnapshot.from_dict(self.to_dict())

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "created_at": self.created_at,
            "inputs": self.inputs,
            "summary": self.summary.to_dict(),
            "traces": self.traces.to_dict(),
        }
        if self.note is not None:
            data["note"] = self.note
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScenarioSnapshot":
        """Build a snapshot from stored data, coercing bad numbers to zero."""
        note = data.get("note")
        inputs = data.get("inputs")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            created_at=str(data.get("created_at") or data.get("createdAt") or _now_iso()),
            inputs=dict(inputs) if isinstance(inputs, Mapping) else {},
            summary=SnapshotSummary.from_dict(data.get("summary")),
            traces=SnapshotTraces.from_dict(data.get("traces")),
            note=str(note) if note else None,
        )


@dataclass
class SnapshotState:
    version: int = STATE_VERSION
    items: List[ScenarioSnapshot] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"version": self.version, "items": [s.to_dict() for s in self.items]}

    def find(self, snapshot_id: str) -> Optional[ScenarioSnapshot]:
        for item in self.items:
            if item.id == snapshot_id:
                return item
        return None


@dataclass
class SnapshotDiff:
    """Deltas of snapshot b against snapshot a (b - a)."""

    kpi: Dict[str, Optional[float]]
    series: Dict[str, List[float]]


# === Key-value backends ===

class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class InMemoryKeyValueStore:
    def __init__(self) -> None:
        self.data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class JsonFileStore:
    """Key-value store persisted as a single JSON object on disk."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except json.JSONDecodeError:
            logger.warning("Overwriting unreadable store file %s", self.path)
            data = {}
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# === Store ===

class SnapshotStore:
    """Snapshot collection persisted under one key.

    Every operation reloads the collection, applies the change, writes it
    back, and returns the new state.

    Example:
        >>> store = SnapshotStore(InMemoryKeyValueStore())
        >>> state = store.add(capture_snapshot("Base 8%", inputs, series))
        >>> len(state.items)
        1
    """

    def __init__(self, kv_store: KeyValueStore, key: str = SCENARIO_NAMESPACE) -> None:
        self.kv_store = kv_store
        self.key = key

    def load(self) -> SnapshotState:
        """Current state; empty when nothing is stored or the blob is corrupt."""
        try:
            raw = self.kv_store.get(self.key)
        except (OSError, ValueError) as e:
            logger.warning("Could not read snapshots from %s: %s", self.key, e)
            return SnapshotState()

        if not raw:
            return SnapshotState()

        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Discarding corrupt snapshot blob under %s: %s", self.key, e)
            return SnapshotState()

        if not isinstance(parsed, dict) or parsed.get("version") != STATE_VERSION:
            logger.warning("Discarding snapshot blob with unknown version under %s", self.key)
            return SnapshotState()

        items = parsed.get("items")
        if not isinstance(items, list):
            return SnapshotState()
        return SnapshotState(items=_valid_items(items))

    def save(self, state: SnapshotState) -> None:
        """Write the full state.

        Raises:
            PersistenceError: If the backing store fails.
        """
        try:
            self.kv_store.set(self.key, json.dumps(state.to_dict()))
        except Exception as e:
            logger.error("Failed to persist snapshots under %s: %s", self.key, e)
            raise PersistenceError(f"Could not save snapshots under {self.key}") from e

    def add(self, snapshot: ScenarioSnapshot) -> SnapshotState:
        """Append a sanitized snapshot.

        A blank name becomes "Unnamed Snapshot" and a blank id gets a fresh
        uuid4, so the stored item survives the next load.
        """
        state = self.load()
        item = snapshot.sanitized()
        item.name = (item.name or "").strip() or UNNAMED_SNAPSHOT
        if not (item.id or "").strip():
            item.id = str(uuid.uuid4())
        state.items.append(item)
        self.save(state)
        return state

    def rename(self, snapshot_id: str, name: str) -> SnapshotState:
        """Rename a snapshot; blank names become "Unnamed Snapshot"."""
        state = self.load()
        item = state.find(snapshot_id)
        if item is None:
            logger.debug("Rename ignored, no snapshot %s", snapshot_id)
            return state
        item.name = name.strip() or UNNAMED_SNAPSHOT
        self.save(state)
        return state

    def duplicate(self, snapshot_id: str, new_name: Optional[str] = None) -> SnapshotState:
        """Copy a snapshot under a fresh id and timestamp."""
        state = self.load()
        original = state.find(snapshot_id)
        if original is None:
            logger.debug("Duplicate ignored, no snapshot %s", snapshot_id)
            return state

        copy = ScenarioSnapshot.from_dict(original.to_dict())
        copy.id = str(uuid.uuid4())
        copy.name = new_name or f"{original.name} (Copy)"
        copy.created_at = _now_iso()

        state.items.append(copy)
        self.save(state)
        return state

    def delete(self, snapshot_id: str) -> SnapshotState:
        state = self.load()
        remaining = [s for s in state.items if s.id != snapshot_id]
        if len(remaining) == len(state.items):
            logger.debug("Delete ignored, no snapshot %s", snapshot_id)
            return state
        state.items = remaining
        self.save(state)
        return state

    def export_all(self) -> str:
        """Full state as indented JSON."""
        return json.dumps(self.load().to_dict(), indent=2)

    def import_all(self, text: str) -> SnapshotState:
        """Replace the stored state with an exported document.

        Items missing an id or name are skipped; missing numbers become zero
        and a missing IRR becomes None.

        Raises:
            SnapshotImportError: If the document is not valid JSON, has an
                unsupported version, or ``items`` is not a list.
            PersistenceError: If the new state cannot be saved.
        """
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            raise SnapshotImportError(f"Import failed: invalid JSON ({e.msg})") from e

        if not isinstance(parsed, dict):
            raise SnapshotImportError("Import failed: invalid JSON format")
        if parsed.get("version") != STATE_VERSION:
            raise SnapshotImportError(f"Import failed: unsupported version {parsed.get('version')!r}")
        if not isinstance(parsed.get("items"), list):
            raise SnapshotImportError("Import failed: items must be a list")

        state = SnapshotState(items=_valid_items(parsed["items"]))
        self.save(state)
        return state

    def diff(self, a: ScenarioSnapshot, b: ScenarioSnapshot) -> SnapshotDiff:
        return diff_snapshots(a, b)


def _valid_items(items: Sequence[Any]) -> List[ScenarioSnapshot]:
    valid: List[ScenarioSnapshot] = []
    for item in items:
        if isinstance(item, Mapping) and item.get("id") and item.get("name"):
            valid.append(ScenarioSnapshot.from_dict(item))
        else:
            logger.warning("Skipping snapshot without id or name")
    return valid


def _pad(values: List[float], length: int) -> List[float]:
    return list(values) + [0.0] * (length - len(values))


def diff_snapshots(a: ScenarioSnapshot, b: ScenarioSnapshot) -> SnapshotDiff:
    """KPI and per-period deltas of ``b`` against ``a``.

    The IRR delta is None if either side has no IRR. Series are compared
    over the longer of the two traces, zero-padding the shorter.
    """
    kpi: Dict[str, Optional[float]] = {}
    for name in KPI_FIELDS:
        va = getattr(a.summary, name)
        vb = getattr(b.summary, name)
        kpi[name] = None if va is None or vb is None else vb - va

    length = max(a.traces.length, b.traces.length)
    series: Dict[str, List[float]] = {}
    for name in SERIES_FIELDS:
        sa = _pad(getattr(a.traces, name), length)
        sb = _pad(getattr(b.traces, name), length)
        series[name] = [y - x for x, y in zip(sa, sb)]

    return SnapshotDiff(kpi=kpi, series=series)


# === Capture ===

def make_snapshot_name(base: Optional[str] = None, now: Optional[datetime] = None) -> str:
    """Default snapshot name, e.g. "Base - Mar 4, 14:05"."""
    now = now or datetime.now()
    stamp = f"{now:%b} {now.day}, {now:%H:%M}"
    if base:
        return f"{base} - {stamp}"
    return f"Snapshot {stamp}"


def capture_snapshot(
    name: str,
    inputs: FeasibilityInputs,
    series: Sequence[MonthlyCashflow],
    note: Optional[str] = None,
) -> ScenarioSnapshot:
    """Snapshot a scenario's inputs and equity-level results.

    Capital calls are the equity injected each period. Distributions are
    the positive part of net cashflow excluding equity, and residual value
    is the positive final cash balance. This engine has no GP waterfall, so
    promote and clawback series are zero.

    Args:
        name: Snapshot name.
        inputs: Inputs the series was built from.
        series: Scenario cashflow series.
        note: Optional free-text note.

    Returns:
        A new snapshot with a fresh id and timestamp.
    """
    calls = [row.equity_injected for row in series]
    dists = [max(0.0, row.net_cashflow - row.equity_injected) for row in series]
    nav = max(0.0, series[-1].cash_balance) if series else 0.0

    total_calls = sum(calls)
    total_dists = sum(dists)
    if total_calls > 0:
        dpi = total_dists / total_calls
        rvpi = nav / total_calls
    else:
        dpi = rvpi = 0.0
    tvpi = dpi + rvpi

    return ScenarioSnapshot(
        id=str(uuid.uuid4()),
        name=name.strip() or UNNAMED_SNAPSHOT,
        created_at=_now_iso(),
        inputs=inputs.to_dict(),
        summary=SnapshotSummary(
            irr_annual=solve_irr([row.net_cashflow for row in series]),
            tvpi=tvpi,
            dpi=dpi,
            rvpi=rvpi,
            moic=tvpi,
            gp_clawback_last=0.0,
        ),
        traces=SnapshotTraces(
            period_count=len(series),
            calls_total=calls,
            dists_total=dists,
            gp_promote=[0.0] * len(series),
            gp_clawback=[0.0] * len(series),
        ),
        note=note,
    )
