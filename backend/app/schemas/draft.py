"""Canonical shipment-draft models.

Attributes are snake_case; the wire and persisted form is camelCase
(``hsCode``, ``customsValue``), which is also the notation used for
provenance field paths such as ``packages[0].products[1].hsCode``.
"""

import enum
import math

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.reconciliation_engine.normalizers import normalize_country


class DraftMode(str, enum.Enum):
    """How the draft is being filled in."""

    MANUAL = "manual"
    AUTO = "auto"


class DraftModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _optional_number(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


class Party(DraftModel):
    """Shipper or consignee contact/address record."""

    company: str = ""
    contact_name: str = ""
    phone: str = ""
    email: str = ""
    address1: str = ""
    address2: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = Field("", description="ISO 3166-1 alpha-2 code")
    tax_id: str = ""

    @field_validator("country")
    @classmethod
    def country_code(cls, value: str) -> str:
        return normalize_country(value)


class Product(DraftModel):
    id: str = ""
    name: str = ""
    description: str = ""
    hs_code: str = ""
    category: str = ""
    uom: str = ""
    qty: float | None = None
    unit_price: float | None = None
    total_value: float | None = None
    origin_country: str = ""
    reason_for_export: str = ""

    @field_validator("qty", "unit_price", "total_value", mode="before")
    @classmethod
    def coerce_numbers(cls, value: object) -> float | None:
        return _optional_number(value)

    @field_validator("origin_country")
    @classmethod
    def origin_country_code(cls, value: str) -> str:
        return normalize_country(value)


class Package(DraftModel):
    id: str = ""
    type: str = "Box"
    length: float | None = None
    width: float | None = None
    height: float | None = None
    dim_unit: str = "cm"
    weight: float | None = None
    weight_unit: str = "kg"
    stackable: bool = False
    products: list[Product] = Field(default_factory=list)

    @field_validator("length", "width", "height", "weight", mode="before")
    @classmethod
    def coerce_numbers(cls, value: object) -> float | None:
        return _optional_number(value)

    @field_validator("products", mode="before")
    @classmethod
    def products_list(cls, value: object) -> object:
        return value if isinstance(value, list) else []


class ShipmentDraft(DraftModel):
    """In-progress, unsubmitted shipment record."""

    title: str = ""
    mode: str = Field("", description="Mode of transport (Air, Sea, Road, ...)")
    shipment_type: str = ""
    shipper: Party = Field(default_factory=Party)
    consignee: Party = Field(default_factory=Party)
    packages: list[Package] = Field(default_factory=list)
    customs_value: float = 0.0
    currency: str = "USD"
    service_level: str = "Standard"
    pickup_type: str = ""
    pickup_location: str = ""
    pickup_date: str = ""
    pickup_time_earliest: str = ""
    pickup_time_latest: str = ""
    estimated_dropoff_date: str = ""
    incoterm: str = ""
    bill_to: str = ""
    payment_timing: str = ""
    payment_method: str = ""
    reason_for_export: str = ""
    special_instructions: str = ""
    insurance_required: bool | None = None
    dangerous_goods: bool | None = None
    special_commodity: bool = False

    @field_validator("packages", mode="before")
    @classmethod
    def packages_never_null(cls, value: object) -> object:
        return value if isinstance(value, list) else []

    @field_validator("customs_value", mode="before")
    @classmethod
    def customs_value_number(cls, value: object) -> float:
        return _optional_number(value) or 0.0

    @field_validator("shipper", "consignee", mode="before")
    @classmethod
    def party_object(cls, value: object) -> object:
        return value if isinstance(value, (dict, Party)) else {}

    def to_document(self) -> dict:
        """camelCase JSON-compatible form used for persistence and the API."""
        return self.model_dump(mode="json", by_alias=True)


def field_alias(name: str) -> str:
    """Translate a snake_case attribute name to its camelCase alias."""
    return to_camel(name)
