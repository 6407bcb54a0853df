"""Tests for the scenario snapshot store."""

import json
import math
from datetime import datetime

import pytest

from feasibility.calculations.cashflow import build_scenario_cashflows
from feasibility.errors import PersistenceError, SnapshotImportError
from feasibility.storage.snapshots import (
    SCENARIO_NAMESPACE,
    InMemoryKeyValueStore,
    JsonFileStore,
    ScenarioSnapshot,
    SnapshotStore,
    SnapshotSummary,
    SnapshotTraces,
    capture_snapshot,
    diff_snapshots,
    make_snapshot_name,
)


def make_snapshot(snapshot_id="s1", name="Base", irr=12.5, calls=None):
    return ScenarioSnapshot(
        id=snapshot_id,
        name=name,
        created_at="2025-03-04T14:05:00+00:00",
        inputs={"construction_cost": 10_000_000},
        summary=SnapshotSummary(irr_annual=irr, tvpi=1.5, dpi=1.2, rvpi=0.3, moic=1.5),
        traces=SnapshotTraces(
            period_count=3,
            calls_total=calls if calls is not None else [100.0, 50.0, 0.0],
            dists_total=[0.0, 0.0, 225.0],
            gp_promote=[0.0, 0.0, 0.0],
            gp_clawback=[0.0, 0.0, 0.0],
        ),
    )


class FailingKeyValueStore(InMemoryKeyValueStore):
    def set(self, key, value):
        raise OSError("quota exceeded")


class TestLoad:
    """Tests for reading state."""

    def test_empty_store(self, snapshot_store):
        state = snapshot_store.load()

        assert state.version == 1
        assert state.items == []

    def test_corrupt_blob_gives_empty_state(self):
        kv = InMemoryKeyValueStore()
        kv.set(SCENARIO_NAMESPACE, "{not json")

        assert SnapshotStore(kv).load().items == []

    def test_unknown_version_gives_empty_state(self):
        kv = InMemoryKeyValueStore()
        kv.set(SCENARIO_NAMESPACE, json.dumps({"version": 2, "items": []}))

        assert SnapshotStore(kv).load().items == []


class TestMutations:
    """Tests for add, rename, duplicate and delete."""

    def test_add_sanitizes_numbers(self, snapshot_store):
        snapshot = make_snapshot()
        snapshot.summary.tvpi = math.nan
        snapshot.traces.period_count = -3
        snapshot.traces.calls_total = [1.0, math.inf]

        state = snapshot_store.add(snapshot)
        stored = state.items[0]

        assert stored.summary.tvpi == 0
        assert stored.traces.period_count == 0
        assert stored.traces.calls_total == [1.0, 0.0]

    def test_add_persists(self, snapshot_store):
        snapshot_store.add(make_snapshot())

        assert [s.id for s in snapshot_store.load().items] == ["s1"]

    def test_add_blank_name_survives_reload(self, snapshot_store):
        snapshot_store.add(make_snapshot(name="   "))

        items = snapshot_store.load().items

        assert [s.name for s in items] == ["Unnamed Snapshot"]
        assert items[0].id == "s1"

    def test_add_blank_id_gets_fresh_id(self, snapshot_store):
        state = snapshot_store.add(make_snapshot(snapshot_id=""))

        loaded = snapshot_store.load().items
        assert len(loaded) == 1
        assert loaded[0].id == state.items[0].id != ""

    def test_rename(self, snapshot_store):
        snapshot_store.add(make_snapshot())

        state = snapshot_store.rename("s1", "  Downside  ")

        assert state.items[0].name == "Downside"

    def test_blank_rename_uses_placeholder(self, snapshot_store):
        snapshot_store.add(make_snapshot())

        assert snapshot_store.rename("s1", "   ").items[0].name == "Unnamed Snapshot"

    def test_duplicate_gets_new_identity(self, snapshot_store):
        snapshot_store.add(make_snapshot())

        state = snapshot_store.duplicate("s1")
        original, copy = state.items

        assert copy.id != original.id
        assert copy.name == "Base (Copy)"
        assert copy.created_at != original.created_at
        assert copy.summary == original.summary
        assert copy.traces == original.traces

    def test_duplicate_with_name(self, snapshot_store):
        snapshot_store.add(make_snapshot())

        assert snapshot_store.duplicate("s1", "Alt").items[-1].name == "Alt"

    def test_delete(self, snapshot_store):
        snapshot_store.add(make_snapshot("s1"))
        snapshot_store.add(make_snapshot("s2"))

        state = snapshot_store.delete("s1")

        assert [s.id for s in state.items] == ["s2"]

    def test_unknown_ids_leave_state_unchanged(self, snapshot_store):
        snapshot_store.add(make_snapshot())
        before = snapshot_store.load()

        snapshot_store.rename("missing", "X")
        snapshot_store.duplicate("missing")
        snapshot_store.delete("missing")

        assert snapshot_store.load() == before

    def test_write_failure_raises_persistence_error(self):
        store = SnapshotStore(FailingKeyValueStore())

        with pytest.raises(PersistenceError):
            store.add(make_snapshot())


class TestImportExport:
    """Tests for JSON export and import."""

    def test_round_trip(self, snapshot_store):
        snapshot_store.add(make_snapshot("s1"))
        snapshot_store.add(make_snapshot("s2", name="No IRR", irr=None))
        before = snapshot_store.load()

        other = SnapshotStore(InMemoryKeyValueStore())
        imported = other.import_all(snapshot_store.export_all())

        assert imported.items == before.items
        assert other.load().items == before.items

    def test_export_is_indented(self, snapshot_store):
        snapshot_store.add(make_snapshot())

        assert "\n  " in snapshot_store.export_all()

    def test_rejects_unknown_version(self, snapshot_store):
        with pytest.raises(SnapshotImportError, match="version"):
            snapshot_store.import_all(json.dumps({"version": 2, "items": []}))

    def test_rejects_non_list_items(self, snapshot_store):
        with pytest.raises(SnapshotImportError, match="items"):
            snapshot_store.import_all(json.dumps({"version": 1, "items": {}}))

    def test_rejects_invalid_json(self, snapshot_store):
        with pytest.raises(ValueError):
            snapshot_store.import_all("not json")

    def test_skips_items_without_id_or_name(self, snapshot_store):
        text = json.dumps({"version": 1, "items": [
            {"id": "a", "name": "Kept"},
            {"id": "b"},
            {"name": "No id"},
            "garbage",
        ]})

        state = snapshot_store.import_all(text)

        assert [s.id for s in state.items] == ["a"]

    def test_coerces_missing_values(self, snapshot_store):
        text = json.dumps({"version": 1, "items": [
            {"id": "a", "name": "Sparse", "summary": {"irr_pa": "high", "tvpi": None}},
        ]})

        item = snapshot_store.import_all(text).items[0]

        assert item.summary.irr_annual is None
        assert item.summary.tvpi == 0
        assert item.traces.calls_total == []
        assert item.created_at

    def test_accepts_legacy_field_names(self, snapshot_store):
        text = json.dumps({"version": 1, "items": [{
            "id": "a", "name": "Legacy", "createdAt": "2024-01-01T00:00:00Z",
            "summary": {"irr_pa": 9.5},
            "traces": {"T": 12.7},
        }]})

        item = snapshot_store.import_all(text).items[0]

        assert item.created_at == "2024-01-01T00:00:00Z"
        assert item.summary.irr_annual == 9.5
        assert item.traces.period_count == 12


class TestDiff:
    """Tests for snapshot comparison."""

    def test_kpi_deltas(self):
        a = make_snapshot("a", irr=10.0)
        b = make_snapshot("b", irr=14.0)

        diff = diff_snapshots(a, b)

        assert diff.kpi["irr_annual"] == pytest.approx(4.0)
        assert diff.kpi["tvpi"] == 0

    def test_symmetry(self):
        a = make_snapshot("a", irr=10.3)
        b = make_snapshot("b", irr=14.9)

        assert diff_snapshots(a, b).kpi["irr_annual"] == -diff_snapshots(b, a).kpi["irr_annual"]

    def test_missing_irr_gives_none(self):
        diff = diff_snapshots(make_snapshot("a", irr=None), make_snapshot("b", irr=5.0))

        assert diff.kpi["irr_annual"] is None

    def test_shorter_trace_is_zero_padded(self):
        a = make_snapshot("a", calls=[100.0])
        b = make_snapshot("b", calls=[100.0, 50.0, 25.0])

        diff = diff_snapshots(a, b)

        assert diff.series["calls_total"] == [0.0, 50.0, 25.0]

    def test_store_diff_delegates(self, snapshot_store):
        a = make_snapshot("a", irr=10.0)
        b = make_snapshot("b", irr=12.0)

        assert snapshot_store.diff(a, b) == diff_snapshots(a, b)


class TestCapture:
    """Tests for capturing a snapshot from a scenario series."""

    def test_capture_from_series(self, reference_inputs):
        series = build_scenario_cashflows(reference_inputs)

        snapshot = capture_snapshot("Base case", reference_inputs, series)

        assert snapshot.traces.period_count == 24
        assert sum(snapshot.traces.calls_total) == pytest.approx(4_000_000)
        assert snapshot.summary.tvpi == pytest.approx(snapshot.summary.dpi + snapshot.summary.rvpi)
        assert snapshot.summary.moic == snapshot.summary.tvpi
        assert snapshot.inputs["construction_cost"] == 10_000_000
        assert snapshot.traces.gp_promote == [0.0] * 24

    def test_capture_survives_store_round_trip(self, snapshot_store, reference_inputs):
        snapshot = capture_snapshot("Base case", reference_inputs, build_scenario_cashflows(reference_inputs))
        snapshot_store.add(snapshot)

        assert snapshot_store.load().items == [snapshot]

    def test_unique_ids(self, reference_inputs):
        series = build_scenario_cashflows(reference_inputs)

        assert capture_snapshot("a", reference_inputs, series).id != capture_snapshot("b", reference_inputs, series).id


class TestJsonFileStore:
    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "state" / "snapshots.json"
        SnapshotStore(JsonFileStore(path)).add(make_snapshot())

        assert [s.id for s in SnapshotStore(JsonFileStore(path)).load().items] == ["s1"]

    def test_corrupt_file_gives_empty_state(self, tmp_path):
        path = tmp_path / "snapshots.json"
        path.write_text("{broken", encoding="utf-8")

        assert SnapshotStore(JsonFileStore(path)).load().items == []


class TestSnapshotName:
    def test_with_base(self):
        assert make_snapshot_name("Base", datetime(2025, 3, 4, 14, 5)) == "Base - Mar 4, 14:05"

    def test_without_base(self):
        assert make_snapshot_name(now=datetime(2025, 3, 4, 9, 0)) == "Snapshot Mar 4, 09:00"
