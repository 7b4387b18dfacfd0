"""
Storage for the day tracker.

The trip ledger is kept as one versioned JSON blob behind a small
load/save port so tests can swap in an in-memory backend.
"""

from .trip_persistence import (
    SCHEMA_VERSION,
    STORE_NAME,
    InMemoryTripPersistence,
    PersistenceError,
    SQLiteTripPersistence,
    TripPersistence,
    decode_snapshot,
    encode_snapshot,
)

__all__ = [
    "SCHEMA_VERSION",
    "STORE_NAME",
    "InMemoryTripPersistence",
    "PersistenceError",
    "SQLiteTripPersistence",
    "TripPersistence",
    "decode_snapshot",
    "encode_snapshot",
]
