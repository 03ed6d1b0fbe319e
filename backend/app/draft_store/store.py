"""DraftStore: single source of truth for the in-progress shipment draft.

Holds ``{mode, shipmentDraft, provenanceMap}`` plus transient extraction
status. Every mutation swaps in new immutable-by-convention objects and then
persists the three durable fields through the injected DraftStorage.

Flow for document-assisted filling:
1. begin_extraction() -> request sequence number, in-progress flag set
2. caller awaits the Extraction Client
3. merge_extracted(payload, request_seq) commits draft + provenance together,
   or discards the result if a newer request has been issued since
4. end_extraction(seq, error) clears the flag
"""

import logging
from typing import Any

from pydantic import ValidationError

from app.draft_store.migrations import (
    CURRENT_SCHEMA_VERSION,
    UnsupportedSchemaVersion,
    migrate_record,
)
from app.draft_store.provenance import ProvenanceMap
from app.draft_store.storage import DraftStorage
from app.pricing.calculator import compute_customs_value, price
from app.reconciliation_engine.merge import MergeResult, merge_extracted
from app.schemas.draft import DraftMode, Product, ShipmentDraft, field_alias
from app.schemas.pricing import PriceBreakdown

logger = logging.getLogger("shipdraft.draft_store")


class DraftIndexError(LookupError):
    """A package/product index does not exist in the current draft."""


def _to_aliases(model: type[ShipmentDraft] | type[Product], updates: dict[str, Any]) -> dict[str, Any]:
    """Accept snake_case or camelCase keys; return camelCase keys."""
    return {
        field_alias(key) if key in model.model_fields else key: value
        for key, value in updates.items()
    }


class DraftStore:
    """Explicit state container owned by the composition root."""

    def __init__(self, storage: DraftStorage, namespace: str):
        self.storage = storage
        self.namespace = namespace

        self.mode: DraftMode = DraftMode.MANUAL
        self.draft: ShipmentDraft = ShipmentDraft()
        self.provenance: ProvenanceMap = ProvenanceMap()

        self.extraction_in_progress = False
        self.extraction_error: str | None = None
        self._request_seq = 0

    # ── Persistence ──

    def to_record(self) -> dict:
        return {
            "schemaVersion": CURRENT_SCHEMA_VERSION,
            "mode": self.mode.value,
            "shipmentDraft": self.draft.to_document(),
            "provenanceMap": self.provenance.to_dict(),
        }

    async def _persist(self) -> None:
        await self.storage.save(self.namespace, self.to_record())

    async def load(self) -> bool:
        """Hydrate from storage. Returns False when nothing usable was stored."""
        record = await self.storage.load(self.namespace)
        if record is None:
            return False

        try:
            record = migrate_record(record)
            mode = DraftMode(record.get("mode", DraftMode.MANUAL.value))
            draft = ShipmentDraft.model_validate(record.get("shipmentDraft") or {})
            provenance_raw = record.get("provenanceMap") or {}
            if not isinstance(provenance_raw, dict):
                raise ValueError("provenanceMap is not an object")
        except (UnsupportedSchemaVersion, ValidationError, ValueError) as e:
            logger.warning("Discarding unreadable persisted draft (%s): %s", self.namespace, e)
            return False

        self.mode, self.draft, self.provenance = mode, draft, ProvenanceMap(provenance_raw)
        logger.info(
            "Loaded persisted draft namespace=%s packages=%d auto_filled=%d",
            self.namespace,
            len(draft.packages),
            len(self.provenance),
        )
        return True

    # ── Mutations ──

    async def set_mode(self, mode: DraftMode | str) -> None:
        self.mode = DraftMode(mode)
        await self._persist()

    async def replace_draft(self, draft: ShipmentDraft | dict) -> ShipmentDraft:
        """Swap in a whole draft (e.g. seeding from an existing shipment).

        Provenance is reset: none of the new values came from this session's
        extraction.
        """
        new_draft = draft if isinstance(draft, ShipmentDraft) else ShipmentDraft.model_validate(draft)
        self.draft, self.provenance = new_draft, ProvenanceMap()
        await self._persist()
        return self.draft

    async def patch_draft(self, updates: dict[str, Any]) -> ShipmentDraft:
        """Shallow top-level merge; raises ValidationError and leaves the draft as-is on bad input."""
        document = self.draft.to_document()
        document.update(_to_aliases(ShipmentDraft, updates))
        self.draft = ShipmentDraft.model_validate(document)
        await self._persist()
        return self.draft

    async def patch_product(
        self, package_index: int, product_index: int, updates: dict[str, Any]
    ) -> Product:
        """Patch one product; totalValue follows qty * unitPrice unless given explicitly."""
        if not 0 <= package_index < len(self.draft.packages):
            raise DraftIndexError(f"No package at index {package_index}")
        package = self.draft.packages[package_index]
        if not 0 <= product_index < len(package.products):
            raise DraftIndexError(f"No product at index {product_index} in package {package_index}")

        changes = _to_aliases(Product, updates)
        document = package.products[product_index].model_dump(mode="json", by_alias=True)
        document.update(changes)
        product = Product.model_validate(document)

        if "totalValue" not in changes and ({"qty", "unitPrice"} & changes.keys()):
            product = product.model_copy(
                update={"total_value": (product.qty or 0.0) * (product.unit_price or 0.0)}
            )

        products = list(package.products)
        products[product_index] = product
        packages = list(self.draft.packages)
        packages[package_index] = package.model_copy(update={"products": products})
        self.draft = self.draft.model_copy(update={"packages": packages})
        await self._persist()
        return product

    async def merge_extracted(
        self, payload: Any, request_seq: int | None = None
    ) -> MergeResult | None:
        """Merge an extraction payload, committing draft and provenance together.

        Returns None (and changes nothing) when ``request_seq`` belongs to a
        superseded extraction request.
        """
        if request_seq is not None and request_seq != self._request_seq:
            logger.info(
                "Discarding stale extraction result seq=%d (latest=%d)", request_seq, self._request_seq
            )
            return None

        result = merge_extracted(self.draft, payload)
        self.draft, self.provenance = result.draft, ProvenanceMap.from_paths(result.filled_paths)
        await self._persist()
        return result

    async def reprice(self) -> PriceBreakdown:
        """Recompute pricing and write the product-derived customsValue back."""
        derived_value, _ = compute_customs_value(self.draft)
        if derived_value > 0 and derived_value != self.draft.customs_value:
            self.draft = self.draft.model_copy(update={"customs_value": derived_value})
            await self._persist()
        return price(self.draft)

    async def clear(self) -> None:
        """Reset to the canonical empty draft."""
        self.draft, self.provenance = ShipmentDraft(), ProvenanceMap()
        self.extraction_error = None
        await self._persist()

    # ── Reads ──

    def is_auto_filled(self, path: str) -> bool:
        return self.provenance.is_auto_filled(path)

    def pricing(self) -> PriceBreakdown:
        return price(self.draft)

    # ── Extraction status ──

    def begin_extraction(self) -> int:
        """Start a new extraction request; older in-flight requests become stale."""
        self._request_seq += 1
        self.extraction_in_progress = True
        self.extraction_error = None
        return self._request_seq

    def end_extraction(self, request_seq: int, error: str | None = None) -> None:
        if request_seq != self._request_seq:
            return
        self.extraction_in_progress = False
        self.extraction_error = error

    @property
    def latest_request_seq(self) -> int:
        return self._request_seq
