"""
Tax Residency Calculator.

Classifies how close a traveller is to becoming tax resident in a country
for a single year, from the number of days spent there.

General rule:
    percentage = min(100, round(100 * days / threshold))
    resident   = days >= threshold
    high       = percentage >= 90
    medium     = percentage >= 70
    low        = otherwise

United States (Substantial Presence Test, IRC Section 7701(b)):
    weighted = current + floor(prior / 3) + floor(second_prior / 6)
    resident = current >= 31 AND weighted >= 183

The 31-day floor applies even when the weighted total alone exceeds 183.
"""

from __future__ import annotations

import logging
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from calculator.date_utils import days_in_year
from calculator.decimal_math import percent_of
from rules.country_rules import CountryTaxRule, get_country_tax_rule, normalize_country_code

if TYPE_CHECKING:
    from models.trip import TripRecord

logger = logging.getLogger(__name__)

US_COUNTRY_CODE = "US"
SPT_MIN_CURRENT_YEAR_DAYS = 31
SPT_WEIGHTED_THRESHOLD = 183
SPT_PRIOR_YEAR_DIVISOR = 3
SPT_SECOND_PRIOR_YEAR_DIVISOR = 6

HIGH_RISK_PERCENT = 90
MEDIUM_RISK_PERCENT = 70


class RiskLevel(str, Enum):
    """Exposure to tax residency, in increasing severity."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    RESIDENT = "resident"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY: Dict[RiskLevel, int] = {
    RiskLevel.LOW: 0,
    RiskLevel.MEDIUM: 1,
    RiskLevel.HIGH: 2,
    RiskLevel.RESIDENT: 3,
}


class SubstantialPresenceResult(BaseModel):
    """Outcome of the US Substantial Presence Test."""

    model_config = ConfigDict(frozen=True)

    total_days: int = Field(description="Weighted three-year total")
    meets_threshold: bool
    current_year: int = Field(description="Current-year days (full weight)")
    prior_year: int = Field(description="Prior-year days after 1/3 weighting")
    second_prior_year: int = Field(description="Second prior-year days after 1/6 weighting")


class ResidencyResult(BaseModel):
    """Residency classification for one country and year."""

    model_config = ConfigDict(frozen=True)

    country_code: str
    country_name: str
    year: int
    days_spent: int = Field(description="Days compared with the threshold (weighted for the US)")
    threshold: int
    is_resident: bool
    days_remaining: int
    percentage_of_threshold: int = Field(ge=0, le=100)
    risk_level: RiskLevel
    warnings: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    tax_rule: CountryTaxRule


def _classify(days: int, threshold: int, is_resident: bool) -> Tuple[int, int, RiskLevel]:
    """Return (percentage, days_remaining, risk_level) for a day count."""
    percentage = min(100, percent_of(days, threshold))
    remaining = max(0, threshold - days)
    if is_resident:
        level = RiskLevel.RESIDENT
    elif percentage >= HIGH_RISK_PERCENT:
        level = RiskLevel.HIGH
    elif percentage >= MEDIUM_RISK_PERCENT:
        level = RiskLevel.MEDIUM
    else:
        level = RiskLevel.LOW
    return percentage, remaining, level


def get_risk_level(days: int, threshold: int) -> RiskLevel:
    """Risk level for a plain (unweighted) day count against a threshold."""
    return _classify(days, threshold, days >= threshold)[2]


def calculate_us_substantial_presence(
    current_year_days: int,
    prior_year_days: int,
    second_prior_year_days: int,
) -> SubstantialPresenceResult:
    """
    Apply the US Substantial Presence Test.

    Args:
        current_year_days: Days present in the current year
        prior_year_days: Days present in the preceding year
        second_prior_year_days: Days present two years before

    Returns:
        SubstantialPresenceResult with the weighted total and breakdown
    """
    for value in (current_year_days, prior_year_days, second_prior_year_days):
        if value < 0:
            raise ValueError(f"Day counts cannot be negative, got {value}")

    prior_weighted = prior_year_days // SPT_PRIOR_YEAR_DIVISOR
    second_prior_weighted = second_prior_year_days // SPT_SECOND_PRIOR_YEAR_DIVISOR
    weighted_total = current_year_days + prior_weighted + second_prior_weighted

    return SubstantialPresenceResult(
        total_days=weighted_total,
        meets_threshold=(
            current_year_days >= SPT_MIN_CURRENT_YEAR_DAYS
            and weighted_total >= SPT_WEIGHTED_THRESHOLD
        ),
        current_year=current_year_days,
        prior_year=prior_weighted,
        second_prior_year=second_prior_weighted,
    )


def calculate_residency_status(
    country_code: str,
    country_name: str,
    days_spent: int,
    year: Optional[int] = None,
    prior_year_days: int = 0,
    second_prior_year_days: int = 0,
) -> ResidencyResult:
    """
    Estimate tax residency risk for one country.

    Prior-year day counts are only used for the United States.

    Raises:
        ValueError: If any day count is negative
    """
    if days_spent < 0:
        raise ValueError(f"days_spent cannot be negative, got {days_spent}")
    if year is None:
        year = date.today().year

    rule = get_country_tax_rule(country_code, country_name)
    threshold = rule.residency_threshold
    code = normalize_country_code(country_code)

    warnings: List[str] = []
    recommendations: List[str] = []

    effective_days = days_spent
    is_resident = effective_days >= threshold

    if code == US_COUNTRY_CODE:
        spt = calculate_us_substantial_presence(days_spent, prior_year_days, second_prior_year_days)
        effective_days = spt.total_days
        is_resident = spt.meets_threshold

        warnings.append(
            f"Substantial Presence Test weighted total: {effective_days} days "
            f"(current year: {spt.current_year}, prior year weighted: {spt.prior_year}, "
            f"second prior weighted: {spt.second_prior_year})."
        )
        if days_spent < SPT_MIN_CURRENT_YEAR_DAYS:
            warnings.append(
                "You have fewer than 31 days in the current year, so the Substantial "
                "Presence Test is not met even if the weighted total exceeds 183."
            )
        if not is_resident and prior_year_days == 0 and second_prior_year_days == 0:
            recommendations.append(
                "Add prior-year day totals to improve accuracy for the US Substantial Presence Test."
            )

    percentage, days_remaining, risk_level = _classify(effective_days, threshold, is_resident)

    if risk_level is RiskLevel.RESIDENT:
        warnings.append(f"You have exceeded the {threshold}-day threshold and are likely a tax resident.")
        warnings.append("Consult a tax professional to understand your obligations.")
        recommendations.append("Review double tax treaty provisions between countries.")
        recommendations.append("Consider consulting with a tax professional.")
        recommendations.append("Gather documentation of your tax situation.")
    else:
        if risk_level is RiskLevel.HIGH:
            warnings.append(f"Only {days_remaining} days remaining before potential tax residency.")
            warnings.append("Consider limiting further time in this country.")
        elif risk_level is RiskLevel.MEDIUM:
            warnings.append(f"{days_remaining} days remaining - monitor your travel carefully.")
        recommendations.append(f"Keep trips under {days_remaining} more days to avoid residency.")
        if rule.special_rules:
            recommendations.append(f"Note: {rule.headline_rule}")

    logger.debug(
        "Residency %s %s: %d effective days, %d%% of %d, %s",
        code, year, effective_days, percentage, threshold, risk_level.value,
    )

    return ResidencyResult(
        country_code=code,
        country_name=country_name or rule.country_name,
        year=year,
        days_spent=effective_days,
        threshold=threshold,
        is_resident=is_resident,
        days_remaining=days_remaining,
        percentage_of_threshold=percentage,
        risk_level=risk_level,
        warnings=warnings,
        recommendations=recommendations,
        tax_rule=rule,
    )


def calculate_multiple_residencies(
    trips: Iterable["TripRecord"],
    year: Optional[int] = None,
) -> List[ResidencyResult]:
    """
    Evaluate every country visited in a year.

    Each trip contributes only the days that fall inside the year. Results
    are ordered resident, high, medium, low; ties keep first-visit order.
    """
    if year is None:
        year = date.today().year

    country_days: Dict[str, List] = {}
    for trip in trips:
        days = days_in_year(trip.start_date, trip.end_date, year)
        if days == 0:
            continue
        code = normalize_country_code(trip.country_code)
        entry = country_days.setdefault(code, [trip.country_name, 0])
        entry[1] += days

    results = [
        calculate_residency_status(code, name, days, year)
        for code, (name, days) in country_days.items()
    ]
    return sorted(results, key=lambda r: -r.risk_level.severity)
