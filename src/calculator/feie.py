"""
Foreign Earned Income Exclusion (FEIE) Calculator.

Physical Presence Test per IRC Section 911(d)(1)(B) and IRS Publication 54:
a US citizen or resident present in foreign countries for at least 330 full
days during a period of 12 consecutive months may exclude foreign earned
income up to the annual limit.

Qualification requires BOTH:
- at least 330 days outside the US, and
- a test period of at least 365 days.

The exclusion limit is pro-rated by the number of test-period days that fall
inside the tax year:

    pro_rated = round(max_exclusion * days_in_tax_year / 365)
    excludable = min(income, pro_rated) if qualified else 0
    taxable = max(0, income - excludable)

Spending more than 35 days in the US is reported as a warning only; it is
not a separate qualification gate.
"""

from __future__ import annotations

import logging
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from calculator.date_utils import (
    DateLike,
    days_between_inclusive,
    days_in_year,
    parse_date,
    year_bounds,
)
from calculator.decimal_math import format_money, prorate

logger = logging.getLogger(__name__)

PHYSICAL_PRESENCE_REQUIRED_DAYS = 330
TEST_PERIOD_DAYS = 365
US_DAYS_SAFE_MARGIN = 35
NEARLY_QUALIFIES_DAYS = 30

# Maximum exclusion per tax year (Rev. Proc. inflation adjustments)
FEIE_MAX_EXCLUSIONS: Dict[int, int] = {
    2020: 107600,
    2021: 108700,
    2022: 112000,
    2023: 120000,
    2024: 126500,
    2025: 130000,  # Estimated, update when official
}

# Latest confirmed year, used when the requested year is not in the table
FEIE_FALLBACK_YEAR = 2024


class FEIETestType(str, Enum):
    """Route used to qualify for the exclusion."""
    PHYSICAL_PRESENCE = "physical-presence"
    BONA_FIDE_RESIDENCE = "bona-fide-residence"


class FEIEInput(BaseModel):
    """Inputs for the Physical Presence Test calculation."""

    test_period_start: date = Field(description="First day of the 12-month test period")
    test_period_end: date = Field(description="Last day of the 12-month test period")
    days_outside_us: int = Field(ge=0, description="Full days outside the US, as reported")
    days_in_us: int = Field(default=0, ge=0, description="Days in the US during the period")
    foreign_earned_income: float = Field(default=0.0, ge=0, description="Foreign earned income in USD")
    tax_year: int = Field(description="Tax year the exclusion is claimed for")

    @field_validator("test_period_start", "test_period_end", mode="before")
    @classmethod
    def _parse_dates(cls, v):
        if isinstance(v, str):
            return parse_date(v)
        return v


class FEIEResult(BaseModel):
    """FEIE qualification and exclusion breakdown."""

    model_config = ConfigDict(frozen=True)

    qualifies: bool
    test_type: FEIETestType = FEIETestType.PHYSICAL_PRESENCE
    qualifying_days: int
    required_days: int
    days_short: int
    total_test_days: int
    days_in_tax_year: int
    max_exclusion: int
    pro_rated_exclusion: int
    excludable_amount: float
    taxable_amount: float
    explanation: str
    warnings: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class TestPeriodTrip(BaseModel):
    """A stay used when searching for a qualifying test period."""

    __test__ = False  # keep pytest from collecting this class

    start_date: date
    end_date: date
    in_us: bool = False


class OptimalTestPeriod(BaseModel):
    """Best 12-month window found for the Physical Presence Test."""

    model_config = ConfigDict(frozen=True)

    optimal_start: date
    optimal_end: date
    days_outside_us: int
    qualifies: bool


def get_feie_max_exclusion(year: int) -> int:
    """Maximum exclusion for a tax year, falling back to the latest confirmed year."""
    if year in FEIE_MAX_EXCLUSIONS:
        return FEIE_MAX_EXCLUSIONS[year]
    logger.debug("No FEIE limit for %s, using %s", year, FEIE_FALLBACK_YEAR)
    return FEIE_MAX_EXCLUSIONS[FEIE_FALLBACK_YEAR]


def _build_explanation(
    qualifies: bool,
    qualifying_days: int,
    days_short: int,
    total_test_days: int,
    days_in_tax_year: int,
    max_exclusion: int,
    pro_rated_exclusion: int,
    excludable_amount: float,
    tax_year: int,
) -> str:
    if qualifies:
        parts = [
            f"You qualify for the FEIE Physical Presence Test with {qualifying_days} days "
            f"outside the US ({PHYSICAL_PRESENCE_REQUIRED_DAYS} required)."
        ]
        if pro_rated_exclusion < max_exclusion:
            parts.append(
                f"Your exclusion is pro-rated to {format_money(pro_rated_exclusion)} based on "
                f"{days_in_tax_year} qualifying days in {tax_year}."
            )
        parts.append(
            f"You can exclude up to {format_money(excludable_amount)} of your foreign earned income."
        )
        return " ".join(parts)

    parts = ["You do not currently qualify for the FEIE Physical Presence Test."]
    if days_short > 0:
        parts.append(
            f"You need {days_short} more days outside the US to meet the "
            f"{PHYSICAL_PRESENCE_REQUIRED_DAYS}-day requirement."
        )
    if total_test_days < TEST_PERIOD_DAYS:
        parts.append(
            f"Your test period must be at least {TEST_PERIOD_DAYS} consecutive days "
            f"(yours is {total_test_days})."
        )
    return " ".join(parts)


def calculate_feie(data: FEIEInput) -> FEIEResult:
    """
    Determine Physical Presence Test qualification and the excludable amount.

    Args:
        data: Test period, reported day counts, income and tax year

    Returns:
        FEIEResult with qualification, amounts, explanation and advice

    Raises:
        InvalidDateRangeError: If the test period ends before it starts
    """
    total_test_days = days_between_inclusive(data.test_period_start, data.test_period_end)
    qualifying_days = data.days_outside_us
    required_days = PHYSICAL_PRESENCE_REQUIRED_DAYS
    days_short = max(0, required_days - qualifying_days)

    qualifies = qualifying_days >= required_days and total_test_days >= TEST_PERIOD_DAYS

    max_exclusion = get_feie_max_exclusion(data.tax_year)
    days_in_tax_year = days_in_year(data.test_period_start, data.test_period_end, data.tax_year)
    # Divisor stays 365 when a leap-year overlap is 366 days
    pro_rated_exclusion = prorate(max_exclusion, days_in_tax_year, TEST_PERIOD_DAYS)

    income = data.foreign_earned_income
    excludable_amount = min(income, pro_rated_exclusion) if qualifies else 0.0
    taxable_amount = max(0.0, income - excludable_amount)

    explanation = _build_explanation(
        qualifies, qualifying_days, days_short, total_test_days, days_in_tax_year,
        max_exclusion, pro_rated_exclusion, excludable_amount, data.tax_year,
    )

    warnings: List[str] = []
    if qualifies and income > max_exclusion:
        warnings.append(
            f"Your income ({format_money(income)}) exceeds the maximum exclusion. "
            f"{format_money(income - max_exclusion)} will remain taxable."
        )
    if qualifies and data.days_in_us > US_DAYS_SAFE_MARGIN:
        warnings.append(
            f"You spent {data.days_in_us} days in the US during your test period. "
            "Ensure these were for allowed purposes."
        )
    if not qualifies and days_short <= NEARLY_QUALIFIES_DAYS:
        warnings.append(
            f"You're close to qualifying! Only {days_short} more days needed outside the US."
        )
    if data.days_outside_us + data.days_in_us > total_test_days:
        logger.warning(
            "FEIE day counts exceed test period: %d outside + %d in US > %d days",
            data.days_outside_us, data.days_in_us, total_test_days,
        )
        warnings.append(
            f"Days outside the US ({data.days_outside_us}) plus days in the US "
            f"({data.days_in_us}) exceed the {total_test_days}-day test period. "
            "Double-check your travel dates."
        )

    recommendations: List[str] = []
    if qualifies:
        recommendations.append("File Form 2555 with your tax return to claim the exclusion.")
        recommendations.append("Keep records of your foreign residence and travel dates.")
        if excludable_amount < income:
            recommendations.append(
                "Consider the Foreign Tax Credit for income above the exclusion limit."
            )
    else:
        recommendations.append(
            f"Consider extending your time abroad to meet the {required_days}-day requirement."
        )
        recommendations.append("Alternatively, establish a bona fide residence in a foreign country.")
        recommendations.append("Consult a tax professional about the Bona Fide Residence Test.")

    logger.debug(
        "FEIE %s: qualifies=%s, %d/%d days, excludable=%s",
        data.tax_year, qualifies, qualifying_days, required_days, excludable_amount,
    )

    return FEIEResult(
        qualifies=qualifies,
        test_type=FEIETestType.PHYSICAL_PRESENCE,
        qualifying_days=qualifying_days,
        required_days=required_days,
        days_short=days_short,
        total_test_days=total_test_days,
        days_in_tax_year=days_in_tax_year,
        max_exclusion=max_exclusion,
        pro_rated_exclusion=pro_rated_exclusion,
        excludable_amount=excludable_amount,
        taxable_amount=taxable_amount,
        explanation=explanation,
        warnings=warnings,
        recommendations=recommendations,
    )


def find_optimal_test_period(
    trips: Iterable[TestPeriodTrip],
    tax_year: int,
) -> OptimalTestPeriod:
    """
    Evaluate the calendar year of tax_year as a Physical Presence window.

    Days outside the US are 365 less every US stay day that falls in the
    year. Only the calendar-year window is considered.
    """
    year_start, year_end = year_bounds(tax_year)
    us_days = sum(
        days_in_year(trip.start_date, trip.end_date, tax_year)
        for trip in trips
        if trip.in_us
    )
    days_outside = max(0, TEST_PERIOD_DAYS - us_days)
    return OptimalTestPeriod(
        optimal_start=year_start,
        optimal_end=year_end,
        days_outside_us=days_outside,
        qualifies=days_outside >= PHYSICAL_PRESENCE_REQUIRED_DAYS,
    )


def calculate_feie_from_values(
    test_period_start: DateLike,
    test_period_end: DateLike,
    days_outside_us: int,
    days_in_us: int,
    foreign_earned_income: float,
    tax_year: Optional[int] = None,
) -> FEIEResult:
    """Convenience wrapper taking primitives; tax_year defaults to the start year."""
    start = parse_date(test_period_start)
    return calculate_feie(FEIEInput(
        test_period_start=start,
        test_period_end=parse_date(test_period_end),
        days_outside_us=days_outside_us,
        days_in_us=days_in_us,
        foreign_earned_income=foreign_earned_income,
        tax_year=tax_year if tax_year is not None else start.year,
    ))
