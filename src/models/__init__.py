from .trip import CountrySummary, TripInput, TripPurpose, TripRecord, TripUpdate

__all__ = [
    "CountrySummary",
    "TripInput",
    "TripPurpose",
    "TripRecord",
    "TripUpdate",
]
