"""Pure normalization helpers for extracted payloads. No I/O.

Key aliasing for every entity lives here so the merge functions only ever see
canonical camelCase keys.
"""

import math
import re
from typing import Any

# ── Presence ──


def is_present(value: Any) -> bool:
    """True when a value carries usable data.

    Non-whitespace strings, any number or boolean, non-empty lists, and
    objects holding at least one present value (checked recursively).
    """
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (bool, int, float)):
        return True
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    if isinstance(value, dict):
        return any(is_present(v) for v in value.values())
    return True


# ── Key aliasing ──

TOP_LEVEL_ALIASES: dict[str, tuple[str, ...]] = {
    "shipper": ("shipper", "Shipper"),
    "consignee": ("consignee", "Consignee"),
    "packages": ("packages", "Packages"),
    "products": ("products", "Products"),
    "product": ("product", "Product"),
    "package": ("package", "Package"),
    "customsValue": ("customsValue", "CustomsValue"),
    "currency": ("currency", "Currency"),
    "serviceLevel": ("serviceLevel", "ServiceLevel"),
    "title": ("title", "shipmentTitle", "shipmentName"),
    "mode": ("mode",),
    "shipmentType": ("shipmentType",),
    "pickupType": ("pickupType",),
    "pickupLocation": ("pickupLocation", "pickupAddress"),
    "pickupDate": ("pickupDate",),
    "pickupTimeEarliest": ("pickupTimeEarliest", "pickupTimeStart"),
    "pickupTimeLatest": ("pickupTimeLatest", "pickupTimeEnd"),
    "estimatedDropoffDate": ("estimatedDropoffDate", "dropoffDate"),
    "incoterm": ("incoterm", "incoterms"),
    "billTo": ("billTo",),
    "paymentTiming": ("paymentTiming",),
    "paymentMethod": ("paymentMethod",),
    "reasonForExport": ("reasonForExport",),
    "specialInstructions": ("specialInstructions",),
    "insuranceRequired": ("insuranceRequired",),
    "dangerousGoods": ("dangerousGoods",),
    "specialCommodity": ("specialCommodity",),
}

PARTY_ALIASES: dict[str, tuple[str, ...]] = {
    "company": ("company", "name", "companyName", "Company", "Name"),
    "contactName": ("contactName", "contact", "ContactName"),
    "phone": ("phone", "Phone"),
    "email": ("email", "Email"),
    "address1": ("address1", "address", "addressLine1", "Address"),
    "address2": ("address2", "addressLine2"),
    "city": ("city", "City"),
    "state": ("state", "State"),
    "postalCode": ("postalCode", "zip", "PostalCode"),
    "country": ("country", "countryCode", "Country"),
    "taxId": ("taxId", "TaxId"),
}

PACKAGE_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id", "Id"),
    "type": ("type", "packageType", "Type"),
    "length": ("length", "Length"),
    "width": ("width", "Width"),
    "height": ("height", "Height"),
    "dimUnit": ("dimUnit", "DimensionUnit"),
    "weight": ("weight", "Weight"),
    "weightUnit": ("weightUnit", "WeightUnit"),
    "stackable": ("stackable", "Stackable"),
    "products": ("products", "Products"),
    "dimensions": ("dimensions", "Dimensions"),
}

PRODUCT_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id", "Id"),
    "name": ("name", "Name"),
    "description": ("description", "Description"),
    "hsCode": ("hsCode", "HsCode", "hs_code"),
    "category": ("category", "Category"),
    "uom": ("uom", "Unit", "unit"),
    "qty": ("qty", "Quantity", "quantity"),
    "unitPrice": ("unitPrice", "UnitPrice", "unitValue"),
    "totalValue": ("totalValue", "TotalValue", "value"),
    "originCountry": ("originCountry", "OriginCountry"),
    "reasonForExport": ("reasonForExport", "ExportReason", "exportReason"),
}

# Keys whose value counts when the key is present, even if falsy.
PRESENCE_OF_KEY_FIELDS = frozenset(
    {"insuranceRequired", "dangerousGoods", "specialCommodity", "stackable", "customsValue"}
)


def canonicalize(raw: Any, aliases: dict[str, tuple[str, ...]]) -> dict[str, Any]:
    """Fold key variants into canonical keys.

    For each canonical key the first alias holding a present value wins.
    Keys listed in PRESENCE_OF_KEY_FIELDS only need to be set (not None).
    Returns {} for anything that is not a dict.
    """
    if not isinstance(raw, dict):
        return {}

    result: dict[str, Any] = {}
    for canonical, candidates in aliases.items():
        for key in candidates:
            if key not in raw:
                continue
            value = raw[key]
            if canonical in PRESENCE_OF_KEY_FIELDS:
                if value is not None:
                    result[canonical] = value
                    break
            elif is_present(value):
                result[canonical] = value
                break
    return result


# ── Scalars ──

_LEADING_NUMBER = re.compile(r"^\s*([-+]?\d[\d,]*(?:\.\d+)?|[-+]?\.\d+)")


def parse_number(value: Any) -> float | None:
    """Parse a leading numeric value (``"12.5 kg"`` -> 12.5). None if absent."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        match = _LEADING_NUMBER.match(value)
        if not match:
            return None
        try:
            number = float(match.group(1).replace(",", ""))
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def parse_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "y", "1"):
            return True
        if lowered in ("false", "no", "n", "0"):
            return False
    return None


def as_text(value: Any) -> str:
    """Render a scalar as trimmed text; floats that are whole drop the ``.0``.

    Objects and lists are not scalars and render as "".
    """
    if value is None or not isinstance(value, (str, int, float)):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


# ── Enumerations ──

UOM_OPTIONS = ("kg", "lb", "pieces", "meters", "units", "sets")


def normalize_uom(value: Any) -> str:
    """Map a free-text unit of measure onto UOM_OPTIONS; unknown values pass through."""
    if not is_present(value):
        return ""
    text = as_text(value)
    lowered = text.lower()
    if "piece" in lowered or lowered == "pcs":
        return "pieces"
    if "kg" in lowered or "kilogram" in lowered:
        return "kg"
    if "lb" in lowered or "pound" in lowered:
        return "lb"
    if "meter" in lowered or lowered == "m":
        return "meters"
    if "unit" in lowered:
        return "units"
    if "set" in lowered:
        return "sets"
    return text


EXPORT_REASONS = {
    "gift": "Sending a gift",
    "sample gift": "Sending a gift",
    "sale": "Commercial Trade",
    "commercial": "Commercial Trade",
    "sample": "Sample/Prototype",
    "prototype": "Sample/Prototype",
    "return": "Return/Repair",
    "repair": "Return/Repair",
    "personal": "Personal Effects",
    "temporary": "Temporary Import",
    "exhibition": "Exhibition",
}


def normalize_export_reason(value: Any) -> str:
    """Exact (case-insensitive) match against EXPORT_REASONS; unknown values pass through."""
    if not is_present(value):
        return ""
    text = as_text(value)
    return EXPORT_REASONS.get(text.lower(), text)


COUNTRY_NAMES: dict[str, str] = {
    "US": "United States",
    "CA": "Canada",
    "MX": "Mexico",
    "BR": "Brazil",
    "AR": "Argentina",
    "GB": "United Kingdom",
    "IE": "Ireland",
    "FR": "France",
    "DE": "Germany",
    "NL": "Netherlands",
    "BE": "Belgium",
    "ES": "Spain",
    "PT": "Portugal",
    "IT": "Italy",
    "CH": "Switzerland",
    "SE": "Sweden",
    "NO": "Norway",
    "DK": "Denmark",
    "FI": "Finland",
    "PL": "Poland",
    "CN": "China",
    "IN": "India",
    "HK": "Hong Kong",
    "TW": "Taiwan",
    "JP": "Japan",
    "KR": "South Korea",
    "SG": "Singapore",
    "MY": "Malaysia",
    "TH": "Thailand",
    "VN": "Vietnam",
    "PH": "Philippines",
    "ID": "Indonesia",
    "AU": "Australia",
    "NZ": "New Zealand",
    "AE": "United Arab Emirates",
    "SA": "Saudi Arabia",
    "QA": "Qatar",
    "ZA": "South Africa",
    "KE": "Kenya",
    "NG": "Nigeria",
}

COUNTRY_ALIASES: dict[str, str] = {
    "usa": "US",
    "u.s.": "US",
    "u.s.a.": "US",
    "united states of america": "US",
    "america": "US",
    "uk": "GB",
    "great britain": "GB",
    "england": "GB",
    "uae": "AE",
    "prc": "CN",
    "republic of korea": "KR",
    "korea": "KR",
}

_CODE_BY_NAME = {name.lower(): code for code, name in COUNTRY_NAMES.items()}


def normalize_country(value: Any) -> str:
    """Resolve a country code or English name to an ISO alpha-2 code.

    Two-letter values are upper-cased; unrecognized longer values pass through.
    """
    if not is_present(value):
        return ""
    text = as_text(value)
    lowered = text.lower()
    if lowered in _CODE_BY_NAME:
        return _CODE_BY_NAME[lowered]
    if lowered in COUNTRY_ALIASES:
        return COUNTRY_ALIASES[lowered]
    if len(text) == 2 and text.isalpha():
        return text.upper()
    return text


# ── Dimensions ──

_DIMENSIONS = re.compile(
    r"(\d+(?:\.\d+)?)\s*[xX×]\s*(\d+(?:\.\d+)?)\s*[xX×]\s*(\d+(?:\.\d+)?)\s*([a-zA-Z]+)?"
)

DIM_UNITS = {"cm": "cm", "mm": "mm", "m": "m", "in": "in", "inch": "in", "inches": "in", "ft": "ft"}


def parse_dimensions(value: Any) -> dict[str, Any]:
    """Parse ``"L x W x H unit"`` into length/width/height (and dimUnit if recognised).

    Returns {} when three numeric groups cannot be found.
    """
    if not isinstance(value, str):
        return {}
    match = _DIMENSIONS.search(value)
    if not match:
        return {}
    parsed: dict[str, Any] = {
        "length": float(match.group(1)),
        "width": float(match.group(2)),
        "height": float(match.group(3)),
    }
    unit = (match.group(4) or "").lower()
    if unit in DIM_UNITS:
        parsed["dimUnit"] = DIM_UNITS[unit]
    return parsed
