"""Pure price derivation for a shipment draft. No I/O, never raises."""

import logging
import math

from pydantic import ValidationError

from app.pricing.rules import (
    BASE_RATE,
    FREE_LINE_ITEMS,
    SCHEDULED_PICKUP,
    TAX_RATE,
    clearance_rule_for,
    pickup_fee_for,
    service_multiplier_for,
)
from app.reconciliation_engine.normalizers import normalize_country
from app.schemas.draft import Product, ShipmentDraft
from app.schemas.pricing import PriceBreakdown

logger = logging.getLogger("shipdraft.pricing")


def _round_half_up(value: float) -> float:
    return float(math.floor(value + 0.5))


def product_value(product: Product) -> float:
    """Explicit totalValue when set, otherwise qty * unitPrice (missing -> 0)."""
    if product.total_value is not None and math.isfinite(product.total_value):
        return product.total_value
    return (product.qty or 0.0) * (product.unit_price or 0.0)


def compute_customs_value(draft: ShipmentDraft) -> tuple[float, int]:
    """Sum product values across all packages.

    Returns (customs_value, line_item_count).
    """
    total = 0.0
    count = 0
    for package in draft.packages:
        for product in package.products:
            total += product_value(product)
            count += 1
    return total, count


def calculate_clearance(
    destination_country: str,
    customs_value: float,
    line_item_count: int,
    special_commodity: bool = False,
) -> float:
    """Estimated customs clearance, rounded to the nearest whole unit."""
    rule = clearance_rule_for(destination_country)
    clearance = rule.base
    if customs_value > rule.threshold:
        clearance += rule.formal_fee
    clearance += rule.extra_line_item_fee * max(0, line_item_count - FREE_LINE_ITEMS)
    if special_commodity:
        clearance += rule.special_commodity_fee
    return _round_half_up(clearance)


def calculate_pickup_charge(origin_country: str, pickup_type: str) -> float:
    if pickup_type != SCHEDULED_PICKUP:
        return 0.0
    return float(pickup_fee_for(origin_country))


def price(draft: ShipmentDraft | dict) -> PriceBreakdown:
    """Derive the cost breakdown for a draft.

    customsValue comes from the products; when they carry no value the
    draft's stored customsValue is used. A non-positive customs value gives
    the all-zero breakdown.
    """
    if isinstance(draft, dict):
        try:
            draft = ShipmentDraft.model_validate(draft)
        except ValidationError as e:
            logger.warning("Pricing an unreadable draft as empty: %s", e.error_count())
            return PriceBreakdown.zero()

    customs_value, line_item_count = compute_customs_value(draft)
    if customs_value <= 0:
        customs_value = draft.customs_value or 0.0

    if not math.isfinite(customs_value) or customs_value <= 0:
        return PriceBreakdown.zero()

    destination = normalize_country(draft.consignee.country) or normalize_country(draft.shipper.country)
    origin = normalize_country(draft.shipper.country)

    base_price = customs_value * BASE_RATE
    service_charge = base_price * service_multiplier_for(draft.service_level)
    customs_clearance = calculate_clearance(
        destination, customs_value, line_item_count, draft.special_commodity
    )
    pickup_charge = calculate_pickup_charge(origin, draft.pickup_type)
    insurance = 0.0

    subtotal = base_price + service_charge + customs_clearance + pickup_charge + insurance
    tax = subtotal * TAX_RATE

    return PriceBreakdown(
        base_price=base_price,
        service_charge=service_charge,
        customs_clearance=customs_clearance,
        pickup_charge=pickup_charge,
        insurance=insurance,
        subtotal=subtotal,
        tax=tax,
        total=subtotal + tax,
        customs_value=customs_value,
        line_item_count=line_item_count,
    )
