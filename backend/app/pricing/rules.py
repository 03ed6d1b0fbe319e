"""
Static pricing rule tables.

Customs clearance is keyed by destination country, pickup fees by origin
country. Countries missing from a table use its ``default`` row.
"""

from dataclasses import dataclass

BASE_RATE = 0.05
TAX_RATE = 0.18
FREE_LINE_ITEMS = 5
SCHEDULED_PICKUP = "Scheduled Pickup"
DEFAULT_KEY = "default"

SERVICE_LEVEL_MULTIPLIERS: dict[str, float] = {
    "Standard": 1.0,
    "Express": 1.5,
    "Economy": 0.8,
    "Freight": 0.7,
}


@dataclass(frozen=True)
class ClearanceRule:
    base: float
    threshold: float
    formal_fee: float
    extra_line_item_fee: float
    special_commodity_fee: float


_EU_CLEARANCE = ClearanceRule(
    base=20, threshold=150, formal_fee=40, extra_line_item_fee=5, special_commodity_fee=30
)

CLEARANCE_RULES: dict[str, ClearanceRule] = {
    "IN": ClearanceRule(
        base=50, threshold=10000, formal_fee=2000, extra_line_item_fee=100, special_commodity_fee=1500
    ),
    "US": ClearanceRule(
        base=0, threshold=800, formal_fee=35, extra_line_item_fee=5, special_commodity_fee=25
    ),
    "GB": _EU_CLEARANCE,
    "FR": _EU_CLEARANCE,
    "DE": _EU_CLEARANCE,
    "IT": _EU_CLEARANCE,
    "ES": _EU_CLEARANCE,
    "NL": _EU_CLEARANCE,
    "BE": _EU_CLEARANCE,
    DEFAULT_KEY: ClearanceRule(
        base=30, threshold=100, formal_fee=50, extra_line_item_fee=5, special_commodity_fee=30
    ),
}

PICKUP_FEES: dict[str, float] = {
    "IN": 250,
    "US": 35,
    "GB": 25,
    "FR": 28,
    "DE": 30,
    "IT": 27,
    "ES": 26,
    "NL": 32,
    "BE": 29,
    "CN": 40,
    "JP": 50,
    "SG": 45,
    "AU": 55,
    "CA": 40,
    "MX": 38,
    "BR": 42,
    DEFAULT_KEY: 50,
}


def clearance_rule_for(country: str) -> ClearanceRule:
    return CLEARANCE_RULES.get(country.upper(), CLEARANCE_RULES[DEFAULT_KEY])


def pickup_fee_for(country: str) -> float:
    return PICKUP_FEES.get(country.upper(), PICKUP_FEES[DEFAULT_KEY])


def service_multiplier_for(service_level: str) -> float:
    return SERVICE_LEVEL_MULTIPLIERS.get(service_level, 1.0)
