"""
Draft endpoints. The form layer reads draft + provenance and writes patches.

Document-assisted flow (POST /current/extract):
1. Validate uploads
2. Start an extraction request on the Draft Store (in-progress flag)
3. Submit files to the extraction service
4. Merge the payload (draft + provenance committed together)
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, UploadFile
from pydantic import ValidationError

from app.config import settings
from app.dependencies import get_draft_store, get_extraction_client
from app.draft_store.store import DraftIndexError, DraftStore
from app.schemas.api import (
    DraftStateResponse,
    ExtractionResultResponse,
    ModeUpdateRequest,
    ProvenanceResponse,
)
from app.schemas.extraction import ExtractionErrorKind
from app.schemas.pricing import PriceBreakdown
from app.services.document_service import UploadRejected, read_upload
from app.services.extraction_client import ExtractionClient

logger = logging.getLogger("shipdraft.api.drafts")

router = APIRouter()

_ERROR_STATUS = {
    ExtractionErrorKind.TRANSPORT: 502,
    ExtractionErrorKind.HTTP_STATUS: 502,
    ExtractionErrorKind.INVALID_RESPONSE: 422,
    ExtractionErrorKind.EMPTY_RESPONSE: 422,
    ExtractionErrorKind.REJECTED: 422,
}


def _state(store: DraftStore) -> DraftStateResponse:
    return DraftStateResponse(
        mode=store.mode,
        shipment_draft=store.draft.to_document(),
        provenance_map=store.provenance.to_dict(),
        extraction_in_progress=store.extraction_in_progress,
        extraction_error=store.extraction_error,
    )


@router.get("/current", response_model=DraftStateResponse)
async def get_draft(store: DraftStore = Depends(get_draft_store)) -> DraftStateResponse:
    return _state(store)


@router.put("/current", response_model=DraftStateResponse)
async def replace_draft(
    draft: dict[str, Any] = Body(...),
    store: DraftStore = Depends(get_draft_store),
) -> DraftStateResponse:
    """Replace the whole draft, e.g. when editing an existing shipment."""
    try:
        await store.replace_draft(draft)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _state(store)


@router.patch("/current", response_model=DraftStateResponse)
async def patch_draft(
    updates: dict[str, Any] = Body(...),
    store: DraftStore = Depends(get_draft_store),
) -> DraftStateResponse:
    """Shallow top-level patch of the draft."""
    try:
        await store.patch_draft(updates)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _state(store)


@router.patch(
    "/current/packages/{package_index}/products/{product_index}",
    response_model=DraftStateResponse,
)
async def patch_product(
    package_index: int,
    product_index: int,
    updates: dict[str, Any] = Body(...),
    store: DraftStore = Depends(get_draft_store),
) -> DraftStateResponse:
    try:
        await store.patch_product(package_index, product_index, updates)
    except DraftIndexError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _state(store)


@router.put("/current/mode", response_model=DraftStateResponse)
async def set_mode(
    request: ModeUpdateRequest,
    store: DraftStore = Depends(get_draft_store),
) -> DraftStateResponse:
    await store.set_mode(request.mode)
    return _state(store)


@router.delete("/current", response_model=DraftStateResponse)
async def clear_draft(store: DraftStore = Depends(get_draft_store)) -> DraftStateResponse:
    await store.clear()
    return _state(store)


@router.post("/current/extract", response_model=ExtractionResultResponse)
async def extract_into_draft(
    files: list[UploadFile],
    store: DraftStore = Depends(get_draft_store),
    client: ExtractionClient = Depends(get_extraction_client),
) -> ExtractionResultResponse:
    """Upload trade documents and merge the extracted data into the draft."""
    if store.extraction_in_progress:
        raise HTTPException(status_code=409, detail="An extraction is already in progress")

    try:
        uploads = [await read_upload(f, settings) for f in files]
    except UploadRejected as e:
        raise HTTPException(status_code=400, detail=str(e))

    seq = store.begin_extraction()
    try:
        data, error = await client.submit(uploads)
        if error is not None:
            store.end_extraction(seq, error.message)
            if error.is_soft:
                return ExtractionResultResponse(
                    status="no_data", message=error.message, state=_state(store)
                )
            raise HTTPException(status_code=_ERROR_STATUS[error.kind], detail=error.message)

        result = await store.merge_extracted(data, request_seq=seq)
        store.end_extraction(seq)
    finally:
        if store.extraction_in_progress and store.latest_request_seq == seq:
            store.end_extraction(seq, store.extraction_error)

    if result is None:
        return ExtractionResultResponse(
            status="stale",
            message="A newer extraction superseded this one",
            state=_state(store),
        )

    return ExtractionResultResponse(
        status="merged",
        shape=result.shape.value,
        filled_paths=result.filled_paths,
        state=_state(store),
    )


@router.get("/current/pricing", response_model=PriceBreakdown)
async def get_pricing(store: DraftStore = Depends(get_draft_store)) -> PriceBreakdown:
    return store.pricing()


@router.post("/current/reprice", response_model=PriceBreakdown)
async def reprice(store: DraftStore = Depends(get_draft_store)) -> PriceBreakdown:
    """Recompute pricing and write the product-derived customs value back to the draft."""
    return await store.reprice()


@router.get("/current/provenance", response_model=ProvenanceResponse)
async def get_provenance(store: DraftStore = Depends(get_draft_store)) -> ProvenanceResponse:
    provenance = store.provenance.to_dict()
    return ProvenanceResponse(provenance_map=provenance, auto_filled_count=len(provenance))


@router.get("/current/provenance/{path:path}")
async def is_auto_filled(path: str, store: DraftStore = Depends(get_draft_store)) -> dict:
    return {"path": path, "auto_filled": store.is_auto_filled(path)}
