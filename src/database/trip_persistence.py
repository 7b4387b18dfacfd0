"""
Trip Ledger Persistence.

The day tracker keeps its whole trip collection as one JSON blob under a
fixed store key, tagged with a schema version:

    {"version": 1, "state": {"trips": [...]}}

Backends only load and save that blob. Decoding, version checks and
migrations happen in decode_snapshot() so every backend behaves the same:

- no blob                      -> empty ledger
- unreadable or malformed blob -> empty ledger (logged)
- older version                -> migrated step by step to SCHEMA_VERSION
- newer version                -> empty ledger (logged); the stored blob is
                                  left alone until the next mutation
"""

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol

from pydantic import ValidationError

from models.trip import TripRecord

logger = logging.getLogger(__name__)

STORE_NAME = "nomad-tax-planner-trips"
SCHEMA_VERSION = 1

DEFAULT_DB_PATH = Path(__file__).parent.parent.parent / "data" / "day_tracker.db"

Blob = Dict[str, Any]


class PersistenceError(Exception):
    """Raised when the ledger cannot be read from or written to storage."""
    pass


class TripPersistence(Protocol):
    """Durable key-value storage for the ledger blob."""

    def load(self) -> Optional[Blob]:
        ...

    def save(self, blob: Blob) -> None:
        ...


class InMemoryTripPersistence:
    """Keeps the blob in a dict; used in tests and for throwaway sessions."""

    def __init__(self, blob: Optional[Blob] = None):
        self._blob = json.loads(json.dumps(blob)) if blob is not None else None
        self.save_count = 0

    def load(self) -> Optional[Blob]:
        if self._blob is None:
            return None
        return json.loads(json.dumps(self._blob))

    def save(self, blob: Blob) -> None:
        # Round-trip through JSON so stored state matches what a durable backend would keep
        self._blob = json.loads(json.dumps(blob))
        self.save_count += 1


class SQLiteTripPersistence:
    """
    SQLite-backed storage for the ledger blob.

    One row per store key in a small key/value table.
    """

    def __init__(self, db_path: Optional[Path] = None, store_name: str = STORE_NAME):
        """
        Initialize persistence.

        Args:
            db_path: Path to SQLite database file. Defaults to data/day_tracker.db
            store_name: Row key the blob is stored under
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH
        self.store_name = store_name
        self._ensure_db_exists()

    def _ensure_db_exists(self):
        """
        Create database and table if they don't exist.

        Raises:
            PersistenceError: If the directory cannot be created or the file
                is not a usable SQLite database
        """
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS key_value_store (
                        store_key TEXT PRIMARY KEY,
                        version INTEGER NOT NULL,
                        data_json TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                """)
                conn.commit()
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Cannot open trip ledger at {self.db_path}: {e}")
            raise PersistenceError(f"Cannot open {self.db_path}: {e}") from e

    def load(self) -> Optional[Blob]:
        """
        Load the stored blob.

        Returns:
            The blob, or None if nothing has been saved yet

        Raises:
            PersistenceError: If the database or the stored JSON is unreadable
        """
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute(
                    "SELECT version, data_json FROM key_value_store WHERE store_key = ?",
                    (self.store_name,)
                )
                row = cursor.fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not read {self.store_name}: {e}") from e

        if row is None:
            return None

        version, data_json = row
        try:
            state = json.loads(data_json)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Stored data for {self.store_name} is not valid JSON") from e
        return {"version": version, "state": state}

    def save(self, blob: Blob) -> None:
        """
        Insert or replace the stored blob.

        Raises:
            PersistenceError: If the write fails
        """
        now = datetime.now(timezone.utc).isoformat()
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    INSERT INTO key_value_store (store_key, version, data_json, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(store_key) DO UPDATE SET
                        version = excluded.version,
                        data_json = excluded.data_json,
                        updated_at = excluded.updated_at
                """, (
                    self.store_name,
                    blob.get("version", SCHEMA_VERSION),
                    json.dumps(blob.get("state", {})),
                    now,
                ))
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to save {self.store_name}: {e}")
            raise PersistenceError(f"Could not write {self.store_name}: {e}") from e

        logger.debug(f"Saved {self.store_name} (version {blob.get('version')})")


# =============================================================================
# SNAPSHOT ENCODING AND MIGRATIONS
# =============================================================================

def _migrate_v0_to_v1(state: Blob) -> Blob:
    """Version 0 stored trips with camelCase keys and no version tag."""
    renames = {
        "countryCode": "country_code",
        "countryName": "country_name",
        "startDate": "start_date",
        "endDate": "end_date",
    }
    trips = []
    for trip in state.get("trips", []):
        trips.append({renames.get(k, k): v for k, v in trip.items()})
    return {"trips": trips}


# from_version -> migration producing from_version + 1
_MIGRATIONS: Dict[int, Callable[[Blob], Blob]] = {
    0: _migrate_v0_to_v1,
}


def encode_snapshot(trips: List[TripRecord]) -> Blob:
    """Build the versioned blob for a trip list."""
    return {
        "version": SCHEMA_VERSION,
        "state": {"trips": [trip.model_dump(mode="json") for trip in trips]},
    }


def decode_snapshot(blob: Optional[Blob]) -> List[TripRecord]:
    """
    Turn a stored blob back into trip records.

    Never raises: anything that cannot be trusted yields an empty list.
    """
    if blob is None:
        return []
    if not isinstance(blob, dict):
        logger.warning("Ignoring stored ledger: expected an object, got %s", type(blob).__name__)
        return []

    if "version" in blob:
        version = blob.get("version")
        state = blob.get("state")
    else:
        # Untagged blobs predate versioning
        version, state = 0, blob

    if not isinstance(version, int) or not isinstance(state, dict):
        logger.warning("Ignoring stored ledger: missing version or state")
        return []

    if version > SCHEMA_VERSION:
        logger.warning(
            "Ignoring stored ledger: schema version %s is newer than supported %s",
            version, SCHEMA_VERSION,
        )
        return []

    while version < SCHEMA_VERSION:
        migration = _MIGRATIONS.get(version)
        if migration is None:
            logger.warning("Ignoring stored ledger: no migration from version %s", version)
            return []
        logger.info("Migrating stored ledger from version %s to %s", version, version + 1)
        try:
            state = migration(state)
        except (AttributeError, TypeError) as e:
            logger.warning("Ignoring stored ledger: migration from version %s failed: %s", version, e)
            return []
        version += 1

    raw_trips = state.get("trips", [])
    if not isinstance(raw_trips, list):
        logger.warning("Ignoring stored ledger: trips is not a list")
        return []

    try:
        return [TripRecord.model_validate(raw) for raw in raw_trips]
    except ValidationError as e:
        logger.warning(f"Ignoring stored ledger: invalid trip record ({e.error_count()} errors)")
        return []
