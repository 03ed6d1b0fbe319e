"""Request/response envelopes for the draft HTTP API."""

from pydantic import BaseModel, Field

from app.schemas.draft import DraftMode


class DraftStateResponse(BaseModel):
    mode: DraftMode
    shipment_draft: dict
    provenance_map: dict[str, bool] = Field(default_factory=dict)
    extraction_in_progress: bool = False
    extraction_error: str | None = None


class ModeUpdateRequest(BaseModel):
    mode: DraftMode


class ExtractionResultResponse(BaseModel):
    status: str = Field(..., description="merged, no_data or stale")
    shape: str | None = None
    filled_paths: list[str] = Field(default_factory=list)
    message: str | None = None
    state: DraftStateResponse


class ProvenanceResponse(BaseModel):
    provenance_map: dict[str, bool]
    auto_filled_count: int
