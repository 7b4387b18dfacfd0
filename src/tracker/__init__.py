"""Day tracking: the trip ledger and its per-country summaries."""

from .day_tracker import DayTrackerStore, create_day_tracker, generate_trip_id

__all__ = [
    "DayTrackerStore",
    "create_day_tracker",
    "generate_trip_id",
]
