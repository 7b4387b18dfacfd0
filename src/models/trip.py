"""
Trip records for the day tracker.

A trip is one stay in one country between two calendar dates (both
inclusive). The day count is always derived from the dates.
"""

from datetime import date
from enum import Enum
from typing import Any, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    computed_field,
    field_validator,
    model_validator,
)

from calculator.date_utils import days_between_inclusive, parse_date
from calculator.residency import RiskLevel, get_risk_level
from rules.country_rules import get_threshold_for_country, normalize_country_code


class TripPurpose(str, Enum):
    """Reason for a stay."""
    WORK = "work"
    LEISURE = "leisure"
    TRANSIT = "transit"


class _TripFields(BaseModel):
    @field_validator("country_code", check_fields=False)
    @classmethod
    def _normalize_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        code = normalize_country_code(v)
        if not code:
            raise ValueError("country_code must not be empty")
        return code


class TripInput(_TripFields):
    """Fields supplied when adding a trip."""

    country_code: str = Field(description="ISO 3166-1 alpha-2 code")
    country_name: str = Field(default="", description="Display name; looked up from the code if blank")
    start_date: date
    end_date: date
    purpose: TripPurpose = TripPurpose.WORK
    notes: Optional[str] = None


class TripUpdate(_TripFields):
    """Partial update; unset fields are left unchanged."""

    country_code: Optional[str] = None
    country_name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    purpose: Optional[TripPurpose] = None
    notes: Optional[str] = None

    @field_validator("country_code", "country_name", "start_date", "end_date", "purpose")
    @classmethod
    def _not_null(cls, v: Any, info: ValidationInfo) -> Any:
        # Only notes can be cleared; an explicit None for any other field is an error
        if v is None:
            raise ValueError(f"{info.field_name} cannot be set to None")
        return v


class TripRecord(_TripFields):
    """A stored trip. Immutable; edits produce a new record."""

    model_config = ConfigDict(frozen=True)

    id: str
    country_code: str
    country_name: str
    start_date: date
    end_date: date
    days: int = Field(default=1, ge=1, description="Inclusive day count, derived from the dates")
    purpose: TripPurpose = TripPurpose.WORK
    notes: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _derive_days(cls, data: Any) -> Any:
        # days is never independently settable
        if not isinstance(data, dict) or not data.get("start_date") or not data.get("end_date"):
            return data
        try:
            start = parse_date(data["start_date"])
            end = parse_date(data["end_date"])
        except (TypeError, ValueError):
            # Left to field validation to report
            return data
        return {**data, "days": days_between_inclusive(start, end)}


class CountrySummary(BaseModel):
    """Days spent in one country over a year or all time."""

    country_code: str
    country_name: str
    total_days: int = 0
    trips: List[TripRecord] = Field(default_factory=list)
    first_visit: date
    last_visit: date

    @computed_field
    @property
    def risk_level(self) -> RiskLevel:
        return get_risk_level(self.total_days, get_threshold_for_country(self.country_code))
