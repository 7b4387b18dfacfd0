"""
Day Tracker Store.

Owns a traveller's trip collection and answers "how many days have I spent
where" questions, per calendar year or all time.

Year summaries split trips at year boundaries: a stay from 2023-12-20 to
2024-01-10 counts 12 days toward 2023 and 10 days toward 2024.

Every mutation rewrites the whole collection through the persistence port.
Mutations are serialised with a lock so one store instance can be shared
between request handlers for the same user.
"""

import logging
import threading
import uuid
from typing import Callable, Dict, Iterable, List, Optional, Union

from calculator.date_utils import days_between_inclusive, overlap_range, year_bounds
from config.settings import Settings, get_settings
from database.trip_persistence import (
    InMemoryTripPersistence,
    PersistenceError,
    SQLiteTripPersistence,
    TripPersistence,
    decode_snapshot,
    encode_snapshot,
)
from models.trip import CountrySummary, TripInput, TripRecord, TripUpdate
from rules.country_rules import get_country_name, normalize_country_code

logger = logging.getLogger(__name__)


def generate_trip_id() -> str:
    return f"trip_{uuid.uuid4().hex}"


def _sort_key(trip: TripRecord):
    return trip.start_date


class DayTrackerStore:
    """
    Trip ledger with CRUD operations and per-country aggregation.

    Usage:
        store = DayTrackerStore(SQLiteTripPersistence())
        store.add_trip(country_code="PT", start_date="2024-03-01", end_date="2024-03-31")
        store.get_country_summaries(2024)
    """

    def __init__(
        self,
        persistence: Optional[TripPersistence] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self._persistence = persistence if persistence is not None else InMemoryTripPersistence()
        self._id_factory = id_factory or generate_trip_id
        self._lock = threading.RLock()
        self._trips: List[TripRecord] = []
        self._issued_ids: set = set()
        self._load()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _load(self) -> None:
        try:
            blob = self._persistence.load()
        except PersistenceError as e:
            logger.warning(f"Trip storage unavailable, starting with an empty ledger: {e}")
            blob = None
        self._trips = sorted(decode_snapshot(blob), key=_sort_key)
        self._issued_ids = {trip.id for trip in self._trips}
        logger.info(f"Loaded {len(self._trips)} trips")

    def _save(self) -> None:
        self._persistence.save(encode_snapshot(self._trips))

    def _new_id(self) -> str:
        trip_id = self._id_factory()
        while trip_id in self._issued_ids:
            trip_id = self._id_factory()
        self._issued_ids.add(trip_id)
        return trip_id

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    @property
    def trips(self) -> List[TripRecord]:
        """Copy of all trips, ordered by start date."""
        with self._lock:
            return list(self._trips)

    def add_trip(self, trip: Optional[TripInput] = None, **fields) -> TripRecord:
        """
        Add a trip and derive its day count.

        Accepts a TripInput or the same fields as keyword arguments.

        Raises:
            InvalidDateRangeError: If end_date is before start_date
            pydantic.ValidationError: If fields are missing or malformed
        """
        data = trip if trip is not None else TripInput(**fields)
        days = days_between_inclusive(data.start_date, data.end_date)

        with self._lock:
            record = TripRecord(
                id=self._new_id(),
                country_code=data.country_code,
                country_name=data.country_name or get_country_name(data.country_code),
                start_date=data.start_date,
                end_date=data.end_date,
                days=days,
                purpose=data.purpose,
                notes=data.notes or None,
            )
            self._trips = sorted(self._trips + [record], key=_sort_key)
            logger.debug(f"Added trip {record.id}: {record.country_code} {record.days} days")
            self._save()
        return record

    def update_trip(
        self,
        trip_id: str,
        changes: Optional[Union[TripUpdate, Dict]] = None,
        **fields,
    ) -> Optional[TripRecord]:
        """
        Merge changes into a trip, recomputing days when a date changes.

        Returns:
            The updated trip, or None if no trip has that id

        Raises:
            InvalidDateRangeError: If the merged dates are reversed; the
                stored trip is left unchanged
        """
        if changes is None:
            changes = TripUpdate(**fields)
        elif isinstance(changes, dict):
            changes = TripUpdate(**changes)
        updates = changes.model_dump(exclude_unset=True)

        with self._lock:
            index = next((i for i, t in enumerate(self._trips) if t.id == trip_id), None)
            if index is None:
                logger.debug(f"update_trip: no trip {trip_id}")
                return None

            current = self._trips[index]
            merged = current.model_dump()
            merged.update(updates)
            if "start_date" in updates or "end_date" in updates:
                merged["days"] = days_between_inclusive(merged["start_date"], merged["end_date"])
            if "country_code" in updates and "country_name" not in updates:
                merged["country_name"] = get_country_name(merged["country_code"])

            updated = TripRecord(**merged)
            trips = list(self._trips)
            trips[index] = updated
            self._trips = sorted(trips, key=_sort_key)
            logger.debug(f"Updated trip {trip_id}: {sorted(updates)}")
            self._save()
        return updated

    def remove_trip(self, trip_id: str) -> bool:
        """Delete a trip by id. Unknown ids are ignored."""
        with self._lock:
            remaining = [t for t in self._trips if t.id != trip_id]
            if len(remaining) == len(self._trips):
                return False
            self._trips = remaining
            logger.debug(f"Removed trip {trip_id}")
            self._save()
        return True

    def clear_all_trips(self) -> None:
        with self._lock:
            count = len(self._trips)
            self._trips = []
            self._save()
        logger.info(f"Cleared {count} trips")

    def replace_trips(self, trips: Iterable[TripRecord]) -> None:
        """Replace the whole collection, e.g. from an import."""
        records = [TripRecord.model_validate(t.model_dump()) for t in trips]
        with self._lock:
            self._trips = sorted(records, key=_sort_key)
            self._issued_ids.update(t.id for t in records)
            self._save()
        logger.info(f"Replaced ledger with {len(records)} trips")

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_country_summaries(self, year: Optional[int] = None) -> List[CountrySummary]:
        """
        Total days per country.

        With a year, each trip contributes only its days inside that year and
        first/last visit dates are clipped to the year. Without one, full trip
        lengths and dates are used.

        Returns:
            Summaries ordered by total days, most first
        """
        window = year_bounds(year) if year is not None else None
        summaries: Dict[str, CountrySummary] = {}

        for trip in self.trips:
            if window is None:
                span = (trip.start_date, trip.end_date)
                days = trip.days
            else:
                span = overlap_range(trip.start_date, trip.end_date, *window)
                if span is None:
                    continue
                days = days_between_inclusive(*span)

            summary = summaries.get(trip.country_code)
            if summary is None:
                summaries[trip.country_code] = CountrySummary(
                    country_code=trip.country_code,
                    country_name=trip.country_name,
                    total_days=days,
                    trips=[trip],
                    first_visit=span[0],
                    last_visit=span[1],
                )
                continue

            summary.total_days += days
            summary.trips.append(trip)
            if span[0] < summary.first_visit:
                summary.first_visit = span[0]
            if span[1] > summary.last_visit:
                summary.last_visit = span[1]

        return sorted(summaries.values(), key=lambda s: -s.total_days)

    def get_total_days_in_country(self, country_code: str, year: Optional[int] = None) -> int:
        code = normalize_country_code(country_code)
        for summary in self.get_country_summaries(year):
            if summary.country_code == code:
                return summary.total_days
        return 0

    def get_trips_for_year(self, year: int) -> List[TripRecord]:
        """Trips touching the year at all, unclipped."""
        year_start, year_end = year_bounds(year)
        return [
            trip for trip in self.trips
            if trip.start_date <= year_end and trip.end_date >= year_start
        ]

    def get_total_days(self, year: Optional[int] = None) -> int:
        return sum(s.total_days for s in self.get_country_summaries(year))

    def get_years(self) -> List[int]:
        """Calendar years covered by any trip, most recent first."""
        years = set()
        for trip in self.trips:
            years.update(range(trip.start_date.year, trip.end_date.year + 1))
        return sorted(years, reverse=True)

    def __len__(self) -> int:
        return len(self._trips)

    def __repr__(self) -> str:
        return f"DayTrackerStore(trips={len(self._trips)})"


def create_day_tracker(settings: Optional[Settings] = None) -> DayTrackerStore:
    """
    Build a store backed by the configured SQLite ledger.

    If the database cannot be opened the store runs on in-memory storage
    for the rest of the session.
    """
    settings = settings or get_settings()
    try:
        persistence = SQLiteTripPersistence(settings.ledger_db_path, settings.store_name)
    except PersistenceError as e:
        logger.warning(f"Trip storage unavailable, using an in-memory ledger: {e}")
        persistence = InMemoryTripPersistence()
    return DayTrackerStore(persistence)
