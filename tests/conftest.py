"""Pytest configuration and shared fixtures."""

import pytest
import sys
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from feasibility.storage.snapshots import InMemoryKeyValueStore, SnapshotStore
from tests.fixtures.test_inputs import (
    get_reference_inputs,
    get_phased_inputs,
    get_compliance_inputs,
)


@pytest.fixture
def reference_inputs():
    """Two-year even-allocation project with a bullet loan."""
    return get_reference_inputs()


@pytest.fixture
def phased_inputs():
    """Reference project with phasing enabled."""
    return get_phased_inputs()


@pytest.fixture
def compliance_inputs():
    """Reference project with every compliance overlay enabled."""
    return get_compliance_inputs()


@pytest.fixture
def snapshot_store():
    """Snapshot store over an empty in-memory backend."""
    return SnapshotStore(InMemoryKeyValueStore())
