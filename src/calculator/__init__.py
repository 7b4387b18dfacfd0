from .date_utils import (
    InvalidDateRangeError,
    days_between_inclusive,
    days_in_year,
    format_date,
    overlap_days,
    overlap_range,
    parse_date,
    year_bounds,
)
from .residency import (
    RiskLevel,
    ResidencyResult,
    SubstantialPresenceResult,
    calculate_multiple_residencies,
    calculate_residency_status,
    calculate_us_substantial_presence,
    get_risk_level,
)
from .feie import (
    FEIE_MAX_EXCLUSIONS,
    FEIEInput,
    FEIEResult,
    FEIETestType,
    OptimalTestPeriod,
    TestPeriodTrip,
    calculate_feie,
    calculate_feie_from_values,
    find_optimal_test_period,
    get_feie_max_exclusion,
)

__all__ = [
    "InvalidDateRangeError",
    "days_between_inclusive",
    "days_in_year",
    "format_date",
    "overlap_days",
    "overlap_range",
    "parse_date",
    "year_bounds",
    "RiskLevel",
    "ResidencyResult",
    "SubstantialPresenceResult",
    "calculate_multiple_residencies",
    "calculate_residency_status",
    "calculate_us_substantial_presence",
    "get_risk_level",
    "FEIE_MAX_EXCLUSIONS",
    "FEIEInput",
    "FEIEResult",
    "FEIETestType",
    "OptimalTestPeriod",
    "TestPeriodTrip",
    "calculate_feie",
    "calculate_feie_from_values",
    "find_optimal_test_period",
    "get_feie_max_exclusion",
]
