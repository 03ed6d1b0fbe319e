import enum
from dataclasses import dataclass

from pydantic import BaseModel, Field


class ExtractionErrorKind(str, enum.Enum):
    """Outcome classes for a failed extraction call."""

    TRANSPORT = "transport"
    HTTP_STATUS = "http_status"
    INVALID_RESPONSE = "invalid_response"
    EMPTY_RESPONSE = "empty_response"
    REJECTED = "rejected"
    NO_DATA = "no_data"


RETRYABLE_KINDS = frozenset({ExtractionErrorKind.TRANSPORT, ExtractionErrorKind.HTTP_STATUS})


@dataclass(frozen=True)
class ExtractionError:
    kind: ExtractionErrorKind
    message: str
    status_code: int | None = None

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS

    @property
    def is_soft(self) -> bool:
        """A soft failure: the service answered but found nothing usable."""
        return self.kind == ExtractionErrorKind.NO_DATA


@dataclass(frozen=True)
class UploadedFile:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


# Top-level payload keys the extraction service may return.
FIELDS_OF_INTEREST = (
    "shipper",
    "consignee",
    "products",
    "packages",
    "product",
    "package",
    "customsValue",
    "currency",
    "serviceLevel",
)


class ExtractionSummary(BaseModel):
    """Which fields of interest carried usable data in a response."""

    present: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)
