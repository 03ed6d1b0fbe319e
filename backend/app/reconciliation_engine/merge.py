"""Merge extracted payloads into the canonical shipment draft.

All functions here are pure: they never mutate their inputs, never perform I/O
and never raise on malformed payloads. Structural anomalies degrade to
"field absent".

Precedence rules:
- merge_party: per field, a present extracted value wins; otherwise the
  current value is kept.
- merge_product / merge_package: present extracted values win over the base
  entity's values; the base contributes identity (``id``) and defaults only.
- merge_extracted: exactly one product/package shape is applied (see
  shapes.detect_shape) and it replaces the prior packages wholesale.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from app.reconciliation_engine.normalizers import (
    PACKAGE_ALIASES,
    PARTY_ALIASES,
    PRODUCT_ALIASES,
    TOP_LEVEL_ALIASES,
    as_text,
    canonicalize,
    is_present,
    normalize_country,
    normalize_export_reason,
    normalize_uom,
    parse_bool,
    parse_dimensions,
    parse_number,
)
from app.reconciliation_engine.shapes import (
    FlatShape,
    NestedShape,
    ShapeKind,
    SingularShape,
    detect_shape,
)
from app.schemas.draft import Package, Party, Product, ShipmentDraft, field_alias

logger = logging.getLogger("shipdraft.reconciliation")

DEFAULT_PRODUCT_NAME = "Extracted Product"

STRING_SCALARS = (
    "title",
    "mode",
    "shipmentType",
    "pickupType",
    "pickupLocation",
    "pickupDate",
    "pickupTimeEarliest",
    "pickupTimeLatest",
    "estimatedDropoffDate",
    "incoterm",
    "billTo",
    "paymentTiming",
    "paymentMethod",
    "reasonForExport",
    "specialInstructions",
    "currency",
    "serviceLevel",
)
BOOLEAN_SCALARS = ("insuranceRequired", "dangerousGoods", "specialCommodity")


@dataclass
class MergeResult:
    draft: ShipmentDraft
    filled_paths: list[str] = field(default_factory=list)
    shape: ShapeKind = ShapeKind.NONE


def _attributes(model: type[BaseModel]) -> dict[str, str]:
    """camelCase alias -> attribute name."""
    return {field_alias(name): name for name in model.model_fields}


_PARTY_ATTRS = _attributes(Party)
_PACKAGE_ATTRS = _attributes(Package)
_PRODUCT_ATTRS = _attributes(Product)
_DRAFT_ATTRS = _attributes(ShipmentDraft)


def synthesize_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12].upper()}"


def _usable_entries(value: Any) -> list[dict]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def merge_party(current: Party, raw: Any, prefix: str) -> tuple[Party, list[str]]:
    """Merge an extracted shipper/consignee block into ``current``.

    Legacy aliases (``name`` -> company, ``address`` -> address1) are folded
    by canonicalize. Country is stored as an ISO alpha-2 code; a consignee
    country the lookup cannot resolve is upper-cased as given.
    """
    fields = canonicalize(raw, PARTY_ALIASES)
    updates: dict[str, Any] = {}
    filled: list[str] = []

    for key, value in fields.items():
        if key == "country":
            text = normalize_country(value)
            if prefix == "consignee":
                text = text.upper()
        else:
            text = as_text(value)
        if not text:
            continue
        updates[_PARTY_ATTRS[key]] = text
        filled.append(f"{prefix}.{key}")

    return current.model_copy(update=updates), filled


def merge_product(
    base: Product,
    raw: Any,
    prefix: str,
    fallback_origin: str = "",
) -> tuple[Product, list[str]]:
    """Map one extracted product onto ``base``.

    totalValue is the extracted override when one was supplied, otherwise
    qty * unitPrice. originCountry falls back to ``fallback_origin``.
    """
    fields = canonicalize(raw, PRODUCT_ALIASES)
    updates: dict[str, Any] = {}
    filled: list[str] = []

    def put(key: str, value: Any) -> None:
        updates[_PRODUCT_ATTRS[key]] = value
        filled.append(f"{prefix}.{key}")

    for key in ("name", "description", "hsCode", "category"):
        text = as_text(fields.get(key))
        if text:
            put(key, text)

    uom = normalize_uom(fields.get("uom"))
    if uom:
        put("uom", uom)

    reason = normalize_export_reason(fields.get("reasonForExport"))
    if reason:
        put("reasonForExport", reason)

    origin = normalize_country(fields.get("originCountry"))
    if origin:
        put("originCountry", origin)

    for key in ("qty", "unitPrice"):
        number = parse_number(fields.get(key))
        if number is not None:
            put(key, number)

    explicit_total = parse_number(fields.get("totalValue"))
    if explicit_total is not None:
        put("totalValue", explicit_total)

    supplied_id = as_text(fields.get("id"))
    if supplied_id:
        updates["id"] = supplied_id

    product = base.model_copy(update=updates)

    derived: dict[str, Any] = {}
    if explicit_total is None:
        if product.qty is not None and product.unit_price is not None:
            derived["total_value"] = product.qty * product.unit_price
        else:
            derived["total_value"] = None
    if not product.id:
        derived["id"] = synthesize_id("PROD")
    if not product.name:
        derived["name"] = DEFAULT_PRODUCT_NAME
    if not product.origin_country and fallback_origin:
        derived["origin_country"] = fallback_origin

    return product.model_copy(update=derived), filled


def _merge_products(
    raws: list[dict],
    prior: list[Product],
    prefix: str,
    fallback_origin: str,
) -> tuple[list[Product], list[str]]:
    """Map extracted products, reusing prior ids position by position."""
    products: list[Product] = []
    filled: list[str] = []
    for index, raw in enumerate(raws):
        reused_id = prior[index].id if index < len(prior) else ""
        product, paths = merge_product(
            Product(id=reused_id), raw, f"{prefix}.products[{index}]", fallback_origin
        )
        products.append(product)
        filled.extend(paths)
    return products, filled


def merge_package(
    base: Package,
    raw: Any,
    prefix: str,
    *,
    fallback_origin: str = "",
    prior_products: list[Product] | None = None,
) -> tuple[Package, list[str]]:
    """Map package-level fields of an extracted package onto ``base``.

    Dimensions come from explicit length/width/height keys, or else from a
    free-text ``dimensions`` string ("L x W x H unit"). When
    ``prior_products`` is given, nested products are mapped and replace
    ``base.products``; otherwise products are left untouched.
    """
    fields = canonicalize(raw, PACKAGE_ALIASES)
    updates: dict[str, Any] = {}
    filled: list[str] = []

    def put(key: str, value: Any) -> None:
        updates[_PACKAGE_ATTRS[key]] = value
        filled.append(f"{prefix}.{key}")

    package_type = as_text(fields.get("type"))
    if package_type:
        put("type", package_type)

    for key in ("weight", "length", "width", "height"):
        number = parse_number(fields.get(key))
        if number is not None:
            put(key, number)

    for key in ("dimUnit", "weightUnit"):
        text = as_text(fields.get(key))
        if text:
            put(key, text)

    if not any(key in updates for key in ("length", "width", "height")):
        for key, value in parse_dimensions(fields.get("dimensions")).items():
            if _PACKAGE_ATTRS[key] not in updates:
                put(key, value)

    if "stackable" in fields:
        stackable = parse_bool(fields["stackable"])
        if stackable is not None:
            put("stackable", stackable)

    supplied_id = as_text(fields.get("id"))
    if supplied_id:
        updates["id"] = supplied_id

    if prior_products is not None:
        products, product_paths = _merge_products(
            _usable_entries(fields.get("products")), prior_products, prefix, fallback_origin
        )
        updates["products"] = products
        filled.extend(product_paths)

    package = base.model_copy(update=updates)
    if not package.id:
        package = package.model_copy(update={"id": synthesize_id("PKG")})
    return package, filled


def _merge_packages(
    current: ShipmentDraft, payload: dict, fallback_origin: str
) -> tuple[list[Package], list[str], ShapeKind]:
    shape = detect_shape(payload)
    existing = current.packages

    if isinstance(shape, NestedShape):
        packages: list[Package] = []
        filled: list[str] = []
        for index, raw in enumerate(shape.packages):
            prior = existing[index] if index < len(existing) else None
            package, paths = merge_package(
                Package(id=prior.id if prior else ""),
                raw,
                f"packages[{index}]",
                fallback_origin=fallback_origin,
                prior_products=prior.products if prior else [],
            )
            packages.append(package)
            filled.extend(paths)
        return packages, filled, shape.kind

    if isinstance(shape, (FlatShape, SingularShape)):
        raws = shape.products if isinstance(shape, FlatShape) else [shape.product]
        first = existing[0] if existing else Package(id=synthesize_id("PKG"))
        products, filled = _merge_products(raws, first.products, "packages[0]", fallback_origin)
        return [first.model_copy(update={"products": products})], filled, shape.kind

    dims_only = payload.get("package")
    if isinstance(dims_only, dict) and is_present(dims_only):
        packages = list(existing) or [Package()]
        first, filled = merge_package(packages[0], dims_only, "packages[0]")
        packages[0] = first
        return packages, filled, shape.kind

    return list(existing), [], shape.kind


def _merge_scalars(payload: dict) -> tuple[dict[str, Any], list[str]]:
    updates: dict[str, Any] = {}
    filled: list[str] = []

    for key in STRING_SCALARS:
        text = as_text(payload.get(key))
        if text:
            updates[_DRAFT_ATTRS[key]] = text
            filled.append(key)

    for key in BOOLEAN_SCALARS:
        if key in payload:
            flag = parse_bool(payload[key])
            if flag is not None:
                updates[_DRAFT_ATTRS[key]] = flag
                filled.append(key)

    if "customsValue" in payload:
        customs_value = parse_number(payload["customsValue"])
        if customs_value is not None:
            updates["customs_value"] = customs_value
            filled.append("customsValue")

    return updates, filled


def merge_extracted(current: ShipmentDraft, extracted: Any) -> MergeResult:
    """Merge an extraction payload into ``current``.

    Returns the new draft and the field paths actually overwritten. Identical
    inputs give identical drafts except for synthesized identifiers.
    """
    if not isinstance(extracted, dict):
        logger.warning("Ignoring non-object extraction payload (%s)", type(extracted).__name__)
        return MergeResult(draft=current)

    payload = canonicalize(extracted, TOP_LEVEL_ALIASES)
    filled: list[str] = []
    updates: dict[str, Any] = {}

    for role in ("shipper", "consignee"):
        party, paths = merge_party(getattr(current, role), payload.get(role), role)
        updates[role] = party
        filled.extend(paths)

    fallback_origin = updates["shipper"].country
    packages, package_paths, shape = _merge_packages(current, payload, fallback_origin)
    updates["packages"] = packages
    filled.extend(package_paths)

    scalar_updates, scalar_paths = _merge_scalars(payload)
    updates.update(scalar_updates)
    filled.extend(scalar_paths)

    draft = current.model_copy(update=updates, deep=True)
    filled_paths = list(dict.fromkeys(filled))

    logger.info("Merged extraction payload: shape=%s filled=%d", shape.value, len(filled_paths))
    logger.debug("Filled paths: %s", filled_paths)
    return MergeResult(draft=draft, filled_paths=filled_paths, shape=shape)
