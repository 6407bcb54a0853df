"""Tests for versioned cashflow record storage."""

import pytest

from feasibility.errors import PersistenceError
from feasibility.scenarios import generate_cashflow_grid
from feasibility.storage.records import (
    InMemoryRecordStore,
    list_versions,
    load_cashflow_grid,
    save_cashflow_grid,
)


class FailingRecordStore(InMemoryRecordStore):
    def insert_rows(self, rows):
        raise OSError("disk full")


class TestSaveAndLoad:
    """Tests for round-tripping grids through the record store."""

    def test_one_row_per_scenario_and_period(self, reference_inputs):
        store = InMemoryRecordStore()
        grid = generate_cashflow_grid(reference_inputs, version_label="v1")

        inserted = save_cashflow_grid(store, "proj-1", grid, "v1")

        assert inserted == 4 * 24
        assert {row["scenario"] for row in store.rows} == {"base", "optimistic", "pessimistic", "custom"}
        assert all(row["is_latest"] for row in store.rows)

    def test_load_latest_rebuilds_grid(self, reference_inputs):
        store = InMemoryRecordStore()
        grid = generate_cashflow_grid(reference_inputs, version_label="v1")
        save_cashflow_grid(store, "proj-1", grid, "v1")

        loaded = load_cashflow_grid(store, "proj-1")

        assert loaded.version_label == "v1"
        assert loaded.scenario_names == grid.scenario_names
        assert loaded.get("base") == grid.get("base")

    def test_new_version_supersedes_old(self, reference_inputs):
        store = InMemoryRecordStore()
        save_cashflow_grid(store, "proj-1", generate_cashflow_grid(reference_inputs, "v1"), "v1")
        reference_inputs.construction_cost = 12_000_000
        save_cashflow_grid(store, "proj-1", generate_cashflow_grid(reference_inputs, "v2"), "v2")

        latest = load_cashflow_grid(store, "proj-1")
        first = load_cashflow_grid(store, "proj-1", version_label="v1")

        assert latest.version_label == "v2"
        assert first.version_label == "v1"
        assert sum(r.construction_cost for r in latest.get("base")) == pytest.approx(12_000_000)
        assert sum(r.construction_cost for r in first.get("base")) == pytest.approx(10_000_000)
        assert not any(r["is_latest"] for r in store.rows if r["version_label"] == "v1")

    def test_rows_ordered_by_period(self, reference_inputs):
        store = InMemoryRecordStore()
        save_cashflow_grid(store, "proj-1", generate_cashflow_grid(reference_inputs, "v1"), "v1")
        store.rows.reverse()

        loaded = load_cashflow_grid(store, "proj-1")

        assert [r.period for r in loaded.get("base")] == list(range(24))

    def test_other_projects_untouched(self, reference_inputs):
        store = InMemoryRecordStore()
        grid = generate_cashflow_grid(reference_inputs, "v1")
        save_cashflow_grid(store, "proj-1", grid, "v1")
        save_cashflow_grid(store, "proj-2", grid, "v1")

        assert load_cashflow_grid(store, "proj-1") is not None
        assert all(r["is_latest"] for r in store.rows if r["project_id"] == "proj-1")

    def test_missing_project_returns_none(self):
        assert load_cashflow_grid(InMemoryRecordStore(), "nope") is None


class TestVersions:
    def test_newest_first(self, reference_inputs):
        store = InMemoryRecordStore()
        for label in ("v1", "v2", "v3"):
            save_cashflow_grid(store, "proj-1", generate_cashflow_grid(reference_inputs, label), label)

        assert list_versions(store, "proj-1") == ["v3", "v2", "v1"]


class TestFailures:
    def test_store_failure_wrapped(self, reference_inputs):
        grid = generate_cashflow_grid(reference_inputs, "v1")

        with pytest.raises(PersistenceError) as exc_info:
            save_cashflow_grid(FailingRecordStore(), "proj-1", grid, "v1")

        assert isinstance(exc_info.value.__cause__, OSError)
