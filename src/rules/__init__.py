"""
Country residency rules.

Static, versionable reference data consumed by the residency calculator.
"""

from .country_rules import (
    ALL_COUNTRIES,
    COUNTRY_TAX_RULES,
    DEFAULT_RESIDENCY_DAYS,
    CountryTaxRule,
    ResidencyTestType,
    normalize_country_code,
    get_country_name,
    get_country_tax_rule,
    get_threshold_for_country,
)

__all__ = [
    'ALL_COUNTRIES',
    'COUNTRY_TAX_RULES',
    'DEFAULT_RESIDENCY_DAYS',
    'CountryTaxRule',
    'ResidencyTestType',
    'normalize_country_code',
    'get_country_name',
    'get_country_tax_rule',
    'get_threshold_for_country',
]
