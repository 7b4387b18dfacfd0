"""
Country Tax Residency Rules.

Static reference table of day-count residency thresholds per country.
Thresholds and test types live here only; the residency calculator reads
them through get_country_tax_rule() and never hard-codes a country's numbers.

Countries absent from the table resolve to the standard 183-day physical
presence test.

Sources: national revenue authority guidance as of the 2024 tax year.
Values here should be reviewed annually.
"""

from enum import Enum
from typing import Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_RESIDENCY_DAYS = 183


class ResidencyTestType(str, Enum):
    """How a country decides tax residency."""
    PHYSICAL_PRESENCE = "physical-presence"
    SUBSTANTIAL_PRESENCE = "substantial-presence"  # US weighted 3-year test
    STATUTORY_RESIDENCE = "statutory-residence"    # UK SRT
    FACTS_CIRCUMSTANCES = "facts-circumstances"


class CountryTaxRule(BaseModel):
    """Residency threshold and test description for one country."""

    model_config = ConfigDict(frozen=True)

    country_code: str = Field(description="ISO 3166-1 alpha-2 code")
    country_name: str = Field(description="Display name")
    residency_threshold: int = Field(gt=0, description="Days that trigger residency")
    test_type: ResidencyTestType = Field(description="Residency test applied")
    description: str = Field(default="", description="One-line summary of the test")
    special_rules: Tuple[str, ...] = Field(
        default=(),
        description="Notable rules; the first entry is the headline rule"
    )

    @property
    def headline_rule(self) -> str:
        return self.special_rules[0] if self.special_rules else ""


def _rule(code: str, name: str, threshold: int, test_type: ResidencyTestType,
          description: str, *special_rules: str) -> CountryTaxRule:
    return CountryTaxRule(
        country_code=code,
        country_name=name,
        residency_threshold=threshold,
        test_type=test_type,
        description=description,
        special_rules=special_rules,
    )


COUNTRY_TAX_RULES: Dict[str, CountryTaxRule] = {
    rule.country_code: rule
    for rule in (
        _rule(
            "US", "United States", 183, ResidencyTestType.SUBSTANTIAL_PRESENCE,
            "Uses Substantial Presence Test: 31 days current year + weighted average of 3 years",
            "Current year days count fully",
            "1/3 of prior year days count",
            "1/6 of second prior year days count",
            "Total must be ≥183 days",
        ),
        _rule(
            "GB", "United Kingdom", 183, ResidencyTestType.STATUTORY_RESIDENCE,
            "Statutory Residence Test with automatic overseas and UK tests",
            "183+ days = automatic UK resident",
            "Complex tie-breaker rules apply",
            "Consider available accommodation",
            "Family and work ties matter",
        ),
        _rule(
            "DE", "Germany", 183, ResidencyTestType.PHYSICAL_PRESENCE,
            "183-day rule with habitual abode consideration",
            "183+ days = tax resident",
            "Habitual abode can trigger residency",
            "Registration (Anmeldung) creates obligations",
            "Double tax treaties may apply",
        ),
        _rule(
            "PT", "Portugal", 183, ResidencyTestType.PHYSICAL_PRESENCE,
            "183-day rule with NHR regime available",
            "183+ days = tax resident",
            "NHR regime: 10-year tax benefits",
            "Habitual residence also triggers residency",
            "Remote workers may qualify for NHR",
        ),
        _rule(
            "TH", "Thailand", 180, ResidencyTestType.PHYSICAL_PRESENCE,
            "180-day rule (note: lower than most countries)",
            "180+ days = tax resident",
            "Foreign income taxed if remitted",
            "New 2024 rules on foreign income",
            "Consider LTR visa for tax benefits",
        ),
        _rule(
            "ES", "Spain", 183, ResidencyTestType.PHYSICAL_PRESENCE,
            "183-day rule with economic interests consideration",
            "183+ days = tax resident",
            "Main economic activities trigger residency",
            "Beckham Law for certain workers",
            "Wealth tax applies to residents",
        ),
        _rule(
            "NL", "Netherlands", 183, ResidencyTestType.FACTS_CIRCUMSTANCES,
            "Facts and circumstances test, no strict day count",
            "No automatic 183-day rule",
            "Permanent home location matters",
            "Economic and social ties considered",
            "30% ruling for expats",
        ),
        _rule(
            "SG", "Singapore", 183, ResidencyTestType.PHYSICAL_PRESENCE,
            "183-day rule with territorial taxation",
            "183+ days = tax resident",
            "Foreign income generally not taxed",
            "No capital gains tax",
            "Employment income taxed regardless",
        ),
    )
}

# Applied to any country not in COUNTRY_TAX_RULES
DEFAULT_TEST_TYPE = ResidencyTestType.PHYSICAL_PRESENCE
DEFAULT_DESCRIPTION = "Standard 183-day physical presence test"
DEFAULT_SPECIAL_RULES: Tuple[str, ...] = (
    "183+ days typically triggers tax residency",
    "Consult local tax authority for specifics",
    "Double tax treaties may apply",
)

# Countries offered for trip entry, code -> display name
ALL_COUNTRIES: Dict[str, str] = {
    "AE": "United Arab Emirates",
    "AR": "Argentina",
    "AT": "Austria",
    "AU": "Australia",
    "BE": "Belgium",
    "BG": "Bulgaria",
    "BR": "Brazil",
    "CA": "Canada",
    "CH": "Switzerland",
    "CL": "Chile",
    "CO": "Colombia",
    "CR": "Costa Rica",
    "CY": "Cyprus",
    "CZ": "Czech Republic",
    "DE": "Germany",
    "DK": "Denmark",
    "EE": "Estonia",
    "ES": "Spain",
    "FI": "Finland",
    "FR": "France",
    "GB": "United Kingdom",
    "GR": "Greece",
    "HK": "Hong Kong",
    "HR": "Croatia",
    "HU": "Hungary",
    "ID": "Indonesia",
    "IE": "Ireland",
    "IN": "India",
    "IT": "Italy",
    "JP": "Japan",
    "KR": "South Korea",
    "LT": "Lithuania",
    "LV": "Latvia",
    "MT": "Malta",
    "MX": "Mexico",
    "MY": "Malaysia",
    "NL": "Netherlands",
    "NO": "Norway",
    "NZ": "New Zealand",
    "PH": "Philippines",
    "PL": "Poland",
    "PT": "Portugal",
    "RO": "Romania",
    "SE": "Sweden",
    "SG": "Singapore",
    "TH": "Thailand",
    "TW": "Taiwan",
    "US": "United States",
    "VN": "Vietnam",
    "ZA": "South Africa",
}


def normalize_country_code(country_code: str) -> str:
    return (country_code or "").strip().upper()


def get_country_name(country_code: str) -> str:
    """Display name for a code; unknown codes are returned as given."""
    code = normalize_country_code(country_code)
    return ALL_COUNTRIES.get(code, code)


def get_country_tax_rule(country_code: str, country_name: str = "") -> CountryTaxRule:
    """
    Look up the residency rule for a country.

    Unknown codes get the default 183-day rule carrying the supplied
    code and name.
    """
    code = normalize_country_code(country_code)
    rule = COUNTRY_TAX_RULES.get(code)
    if rule is not None:
        return rule
    return CountryTaxRule(
        country_code=code,
        country_name=country_name or get_country_name(code),
        residency_threshold=DEFAULT_RESIDENCY_DAYS,
        test_type=DEFAULT_TEST_TYPE,
        description=DEFAULT_DESCRIPTION,
        special_rules=DEFAULT_SPECIAL_RULES,
    )


def get_threshold_for_country(country_code: str) -> int:
    return get_country_tax_rule(country_code).residency_threshold
