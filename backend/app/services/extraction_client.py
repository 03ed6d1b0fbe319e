"""
Client for the external shipment-extraction service.

Uploads trade documents as multipart ``files`` and classifies the outcome:
- success: a JSON object with at least one usable field of interest
- soft failure (no_data): the service answered but nothing usable came back
- hard failures: transport error, non-2xx status, empty/unparsable body, or
  an explicit ``success: false``

submit() never raises and never touches the draft.
"""

import json
import logging
from typing import Any, Sequence

import httpx

from app.config import Settings
from app.reconciliation_engine.normalizers import is_present, parse_number
from app.schemas.extraction import (
    FIELDS_OF_INTEREST,
    ExtractionError,
    ExtractionErrorKind,
    ExtractionSummary,
    UploadedFile,
)

logger = logging.getLogger("shipdraft.extraction")

NO_DATA_MESSAGE = "No shipment data could be extracted from the documents"


def _field_has_data(key: str, value: Any) -> bool:
    if key == "customsValue":
        number = parse_number(value)
        return number is not None and number > 0
    return is_present(value)


def summarize_payload(payload: dict) -> ExtractionSummary:
    """Report which fields of interest carry usable data."""
    present = [key for key in FIELDS_OF_INTEREST if _field_has_data(key, payload.get(key))]
    missing = [key for key in FIELDS_OF_INTEREST if key not in present]
    return ExtractionSummary(present=present, missing=missing)


def has_usable_data(payload: Any) -> bool:
    return isinstance(payload, dict) and bool(summarize_payload(payload).present)


class ExtractionClient:
    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.url = settings.extraction_api_url.rstrip("/") + settings.extraction_endpoint_path
        self.timeout = settings.extraction_timeout_seconds
        self.transport = transport

    async def submit(
        self, files: Sequence[UploadedFile]
    ) -> tuple[dict | None, ExtractionError | None]:
        """Send documents for extraction.

        Returns (payload, None) on success or (None, ExtractionError).
        """
        multipart = [("files", (f.filename, f.content, f.content_type)) for f in files]
        logger.info("Submitting %d file(s) for extraction to %s", len(multipart), self.url)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, files=multipart)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error("Extraction request failed: %s", e)
            return None, ExtractionError(ExtractionErrorKind.TRANSPORT, f"Extraction request failed: {e}")

        return self._classify(response)

    def _classify(self, response: httpx.Response) -> tuple[dict | None, ExtractionError | None]:
        body = response.text
        logger.info("Extraction response status=%d bytes=%d", response.status_code, len(body))

        payload: Any = None
        if body.strip():
            try:
                payload = json.loads(body)
            except json.JSONDecodeError as e:
                if response.is_success:
                    logger.error("Extraction response was not valid JSON: %s", e)
                    return None, ExtractionError(
                        ExtractionErrorKind.INVALID_RESPONSE,
                        "Invalid response from server",
                        response.status_code,
                    )

        if not response.is_success:
            detail = payload.get("error") if isinstance(payload, dict) else None
            message = str(detail) if detail else f"Extraction service returned HTTP {response.status_code}"
            logger.error("Extraction service error: %s", message)
            return None, ExtractionError(ExtractionErrorKind.HTTP_STATUS, message, response.status_code)

        if payload is None:
            logger.error("Extraction response body was empty")
            return None, ExtractionError(
                ExtractionErrorKind.EMPTY_RESPONSE, "Empty response from server", response.status_code
            )

        if not isinstance(payload, dict):
            return None, ExtractionError(
                ExtractionErrorKind.INVALID_RESPONSE,
                "Invalid response from server",
                response.status_code,
            )

        if payload.get("success") is False:
            message = payload.get("error") or "Extraction failed"
            logger.warning("Extraction service rejected the documents: %s", message)
            return None, ExtractionError(ExtractionErrorKind.REJECTED, str(message), response.status_code)

        summary = summarize_payload(payload)
        if not summary.present:
            logger.warning("Extraction returned no usable data")
            return None, ExtractionError(ExtractionErrorKind.NO_DATA, NO_DATA_MESSAGE, response.status_code)

        logger.info("Extraction found usable data in: %s", ", ".join(summary.present))
        return payload, None
