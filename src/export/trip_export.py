"""Day Tracker Export and Import.

A year export is a JSON document the traveller can download and keep:

    {
      "exportDate": "2024-06-01T12:00:00+00:00",
      "year": 2024,
      "trips": [...],       # trips touching the year, unclipped
      "summaries": [...]    # per-country totals clipped to the year
    }

`exportDate` is the one camelCase key; `export_date` is also accepted on
import.

Importing the document replaces the ledger's trips; summarising the same
year again reproduces the exported totals.
"""

import json
import logging
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from models.trip import CountrySummary, TripRecord
from tracker.day_tracker import DayTrackerStore

logger = logging.getLogger(__name__)


class TripExportError(ValueError):
    """Raised when an export document cannot be read."""
    pass


class TripExport(BaseModel):
    """Downloadable snapshot of one year of travel."""

    model_config = ConfigDict(populate_by_name=True)

    export_date: datetime = Field(alias="exportDate", description="When the export was produced (UTC)")
    year: int
    trips: List[TripRecord] = Field(default_factory=list)
    summaries: List[CountrySummary] = Field(default_factory=list)


def export_filename(year: int) -> str:
    return f"nomad-tax-tracker-{year}.json"


def build_export(store: DayTrackerStore, year: int, now: Optional[datetime] = None) -> TripExport:
    """Collect a year's trips and summaries from the store."""
    return TripExport(
        export_date=now or datetime.now(timezone.utc),
        year=year,
        trips=store.get_trips_for_year(year),
        summaries=store.get_country_summaries(year),
    )


def export_json(store: DayTrackerStore, year: int, now: Optional[datetime] = None) -> str:
    """Serialize a year export with 2-space indentation."""
    document = build_export(store, year, now)
    logger.info(f"Exporting {len(document.trips)} trips for {year}")
    return json.dumps(document.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False)


def parse_export(payload: str) -> TripExport:
    """
    Parse an export document.

    Raises:
        TripExportError: If the payload is not valid JSON or not an export
    """
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise TripExportError(f"Export is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise TripExportError("Export must be a JSON object")
    try:
        return TripExport.model_validate(data)
    except ValidationError as e:
        raise TripExportError(f"Export has invalid content ({e.error_count()} errors)") from e


def import_json(store: DayTrackerStore, payload: str) -> TripExport:
    """
    Replace the store's trips with those in an export document.

    Returns:
        The parsed export, so callers can compare totals
    """
    document = parse_export(payload)
    store.replace_trips(document.trips)
    logger.info(f"Imported {len(document.trips)} trips from {document.year} export")
    return document
