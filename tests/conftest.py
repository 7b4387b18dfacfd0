"""Pytest configuration and fixtures for test suite."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))


@pytest.fixture
def memory_persistence():
    """Empty in-memory ledger storage."""
    from database.trip_persistence import InMemoryTripPersistence
    return InMemoryTripPersistence()


@pytest.fixture
def store(memory_persistence):
    """Day tracker backed by in-memory storage."""
    from tracker.day_tracker import DayTrackerStore
    return DayTrackerStore(memory_persistence)


@pytest.fixture
def ledger_db_path(tmp_path):
    """Path for a throwaway SQLite ledger."""
    return tmp_path / "data" / "day_tracker.db"


@pytest.fixture
def make_trip():
    """Build a TripRecord without going through a store."""
    from models.trip import TripRecord

    counter = {"n": 0}

    def _make(country_code, start_date, end_date, country_name="", **kwargs):
        counter["n"] += 1
        return TripRecord(
            id=kwargs.pop("id", f"trip_test_{counter['n']}"),
            country_code=country_code,
            country_name=country_name or country_code,
            start_date=start_date,
            end_date=end_date,
            **kwargs,
        )

    return _make
