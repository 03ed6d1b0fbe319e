from app.schemas.draft import DraftMode, Package, Party, Product, ShipmentDraft
from app.schemas.extraction import ExtractionError, ExtractionErrorKind, UploadedFile
from app.schemas.health import HealthResponse
from app.schemas.pricing import PriceBreakdown

__all__ = [
    "DraftMode",
    "Package",
    "Party",
    "Product",
    "ShipmentDraft",
    "ExtractionError",
    "ExtractionErrorKind",
    "UploadedFile",
    "HealthResponse",
    "PriceBreakdown",
]
