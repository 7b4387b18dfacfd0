"""
Test suite for trip ledger persistence.

Tests cover:
- SQLite save/load round trip
- Versioned snapshot encoding
- Migration of untagged (version 0) blobs
- Reset-to-empty on corrupt, invalid or newer data
"""

import sqlite3

import pytest

from config.settings import Settings
from database.trip_persistence import (
    SCHEMA_VERSION,
    STORE_NAME,
    InMemoryTripPersistence,
    PersistenceError,
    SQLiteTripPersistence,
    decode_snapshot,
    encode_snapshot,
)
from tracker.day_tracker import DayTrackerStore, create_day_tracker


class TestSQLitePersistence:
    """Tests for the SQLite backend."""

    def test_creates_database_file(self, ledger_db_path):
        SQLiteTripPersistence(ledger_db_path)
        assert ledger_db_path.exists()

    def test_empty_load_returns_none(self, ledger_db_path):
        assert SQLiteTripPersistence(ledger_db_path).load() is None

    def test_round_trip(self, ledger_db_path, make_trip):
        persistence = SQLiteTripPersistence(ledger_db_path)
        trips = [make_trip("PT", "2024-03-01", "2024-03-31", "Portugal", notes="Lisbon")]
        persistence.save(encode_snapshot(trips))

        blob = SQLiteTripPersistence(ledger_db_path).load()
        assert blob["version"] == SCHEMA_VERSION
        assert decode_snapshot(blob) == trips

    def test_save_overwrites(self, ledger_db_path, make_trip):
        persistence = SQLiteTripPersistence(ledger_db_path)
        persistence.save(encode_snapshot([make_trip("PT", "2024-03-01", "2024-03-31")]))
        persistence.save(encode_snapshot([]))
        assert decode_snapshot(persistence.load()) == []

    def test_store_names_are_independent(self, ledger_db_path, make_trip):
        a = SQLiteTripPersistence(ledger_db_path, "alice-trips")
        b = SQLiteTripPersistence(ledger_db_path, "bob-trips")
        a.save(encode_snapshot([make_trip("PT", "2024-03-01", "2024-03-31")]))
        assert b.load() is None
        assert a.store_name == "alice-trips"

    def test_default_store_name(self, ledger_db_path):
        assert SQLiteTripPersistence(ledger_db_path).store_name == STORE_NAME

    def test_corrupt_json_raises_persistence_error(self, ledger_db_path):
        persistence = SQLiteTripPersistence(ledger_db_path)
        with sqlite3.connect(ledger_db_path) as conn:
            conn.execute(
                "INSERT INTO key_value_store VALUES (?, ?, ?, ?)",
                (STORE_NAME, 1, "{not json", "2024-01-01T00:00:00+00:00"),
            )
            conn.commit()
        with pytest.raises(PersistenceError):
            persistence.load()

    def test_store_over_corrupt_row_starts_empty_and_recovers(self, ledger_db_path):
        persistence = SQLiteTripPersistence(ledger_db_path)
        with sqlite3.connect(ledger_db_path) as conn:
            conn.execute(
                "INSERT INTO key_value_store VALUES (?, ?, ?, ?)",
                (STORE_NAME, 1, "{not json", "2024-01-01T00:00:00+00:00"),
            )
            conn.commit()

        store = DayTrackerStore(persistence)
        assert store.trips == []
        store.add_trip(country_code="PT", start_date="2024-03-01", end_date="2024-03-02")
        assert len(DayTrackerStore(persistence)) == 1


class TestUnusableDatabase:
    """A database file that is not SQLite must not stop the tracker starting."""

    def _write_garbage(self, path):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"this is not a sqlite database file at all" * 100)

    def test_backend_raises_persistence_error(self, ledger_db_path):
        self._write_garbage(ledger_db_path)
        with pytest.raises(PersistenceError):
            SQLiteTripPersistence(ledger_db_path)

    def test_path_under_a_file_raises_persistence_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        with pytest.raises(PersistenceError):
            SQLiteTripPersistence(blocker / "ledger.db")

    def test_tracker_falls_back_to_empty_memory_ledger(self, ledger_db_path):
        self._write_garbage(ledger_db_path)
        store = create_day_tracker(Settings(ledger_db_path=ledger_db_path))
        assert store.trips == []

        trip = store.add_trip(country_code="PT", start_date="2024-03-01", end_date="2024-03-02")
        assert store.trips == [trip]
        assert ledger_db_path.read_bytes().startswith(b"this is not a sqlite")


class TestSnapshotEncoding:
    """Tests for the versioned blob format."""

    def test_encode_shape(self, make_trip):
        blob = encode_snapshot([make_trip("DE", "2024-01-01", "2024-01-10", "Germany")])
        assert blob["version"] == 1
        (trip,) = blob["state"]["trips"]
        assert trip["country_code"] == "DE"
        assert trip["end_date"] == "2024-01-10"
        assert trip["days"] == 10
        assert trip["purpose"] == "work"

    def test_decode_none(self):
        assert decode_snapshot(None) == []

    @pytest.mark.parametrize("blob", [
        "not a dict",
        {"version": "1", "state": {"trips": []}},
        {"version": 1, "state": None},
        {"version": 1, "state": {"trips": "nope"}},
    ])
    def test_malformed_blob_yields_empty(self, blob):
        assert decode_snapshot(blob) == []

    def test_invalid_record_yields_empty(self):
        blob = {"version": 1, "state": {"trips": [
            {"id": "t1", "country_code": "DE", "country_name": "Germany",
             "start_date": "2024-01-10", "end_date": "2024-01-01"},
        ]}}
        assert decode_snapshot(blob) == []

    def test_newer_version_yields_empty(self):
        blob = {"version": SCHEMA_VERSION + 1, "state": {"trips": []}}
        assert decode_snapshot(blob) == []

    def test_newer_version_not_overwritten_on_load(self):
        blob = {"version": SCHEMA_VERSION + 1, "state": {"trips": [{"anything": True}]}}
        persistence = InMemoryTripPersistence(blob)
        DayTrackerStore(persistence)
        assert persistence.load() == blob
        assert persistence.save_count == 0

    def test_stored_days_are_rederived(self):
        blob = {"version": 1, "state": {"trips": [
            {"id": "t1", "country_code": "DE", "country_name": "Germany",
             "start_date": "2024-01-01", "end_date": "2024-01-10", "days": 3},
        ]}}
        (trip,) = decode_snapshot(blob)
        assert trip.days == 10


class TestMigration:
    """Tests for upgrading older stored data."""

    def test_untagged_camel_case_blob_migrated(self):
        legacy = {"trips": [
            {"id": "t1", "countryCode": "pt", "countryName": "Portugal",
             "startDate": "2024-03-01", "endDate": "2024-03-31", "purpose": "leisure"},
        ]}
        (trip,) = decode_snapshot(legacy)
        assert trip.country_code == "PT"
        assert trip.days == 31
        assert trip.purpose.value == "leisure"

    def test_explicit_version_zero_migrated(self):
        blob = {"version": 0, "state": {"trips": [
            {"id": "t1", "countryCode": "DE", "countryName": "Germany",
             "startDate": "2024-01-01", "endDate": "2024-01-02"},
        ]}}
        assert len(decode_snapshot(blob)) == 1

    def test_broken_legacy_blob_yields_empty(self):
        assert decode_snapshot({"version": 0, "state": {"trips": ["oops"]}}) == []

    def test_unknown_old_version_yields_empty(self):
        assert decode_snapshot({"version": -1, "state": {"trips": []}}) == []

    def test_migrated_ledger_saved_as_current_version(self):
        legacy = {"trips": [
            {"id": "t1", "countryCode": "DE", "countryName": "Germany",
             "startDate": "2024-01-01", "endDate": "2024-01-02"},
        ]}
        persistence = InMemoryTripPersistence(legacy)
        store = DayTrackerStore(persistence)
        store.add_trip(country_code="PT", start_date="2024-03-01", end_date="2024-03-02")
        blob = persistence.load()
        assert blob["version"] == SCHEMA_VERSION
        assert [t["id"] for t in blob["state"]["trips"]][0] == "t1"
