"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

import pytest

# Make tests/fakes.py importable from every test directory
sys.path.insert(0, str(Path(__file__).parent))


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    return tmp_path / "items.db"


@pytest.fixture
def temp_config_path(tmp_path: Path) -> Path:
    return tmp_path / "settings.yml"


@pytest.fixture
def temp_snapshot_path(tmp_path: Path) -> Path:
    return tmp_path / "state" / "snapshots.json"


@pytest.fixture
def records():
    from fakes import make_records

    return make_records(1000)
