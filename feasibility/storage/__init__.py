"""Persistence contracts: cashflow records, snapshots and share tokens."""

from .records import (
    RecordStore,
    InMemoryRecordStore,
    save_cashflow_grid,
    load_cashflow_grid,
    list_versions,
)
from .snapshots import (
    SCENARIO_NAMESPACE,
    ScenarioSnapshot,
    SnapshotSummary,
    SnapshotTraces,
    SnapshotState,
    SnapshotDiff,
    KeyValueStore,
    InMemoryKeyValueStore,
    JsonFileStore,
    SnapshotStore,
    diff_snapshots,
    make_snapshot_name,
    capture_snapshot,
)
from .share import encode_snapshot, decode_snapshot

__all__ = [
    "RecordStore",
    "InMemoryRecordStore",
    "save_cashflow_grid",
    "load_cashflow_grid",
    "list_versions",
    "SCENARIO_NAMESPACE",
    "ScenarioSnapshot",
    "SnapshotSummary",
    "SnapshotTraces",
    "SnapshotState",
    "SnapshotDiff",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileStore",
    "SnapshotStore",
    "diff_snapshots",
    "make_snapshot_name",
    "capture_snapshot",
    "encode_snapshot",
    "decode_snapshot",
]
