"""Tests for the DraftStore state container."""

import pytest
from pydantic import ValidationError

from app.draft_store import DraftIndexError, DraftStore, InMemoryDraftStorage
from app.draft_store.migrations import CURRENT_SCHEMA_VERSION, UnsupportedSchemaVersion, migrate_record
from app.schemas.draft import DraftMode, ShipmentDraft

NAMESPACE = "test-drafts"


@pytest.mark.asyncio
class TestMutations:
    async def test_initial_state(self, draft_store):
        assert draft_store.mode == DraftMode.MANUAL
        assert draft_store.draft == ShipmentDraft()
        assert len(draft_store.provenance) == 0
        assert draft_store.extraction_in_progress is False

    async def test_every_mutation_persists(self, draft_store, memory_storage):
        await draft_store.set_mode("auto")
        await draft_store.patch_draft({"title": "Restock"})

        record = memory_storage.records[NAMESPACE]
        assert record["schemaVersion"] == CURRENT_SCHEMA_VERSION
        assert record["mode"] == "auto"
        assert record["shipmentDraft"]["title"] == "Restock"
        assert memory_storage.save_count == 2

    async def test_merge_commits_draft_and_provenance(self, draft_store, nested_payload):
        result = await draft_store.merge_extracted(nested_payload)

        assert draft_store.draft == result.draft
        assert draft_store.is_auto_filled("shipper.company") is True
        assert draft_store.is_auto_filled("title") is False
        assert set(draft_store.provenance.paths) == set(result.filled_paths)

    async def test_provenance_is_replaced_not_unioned(self, draft_store, nested_payload):
        await draft_store.merge_extracted(nested_payload)
        await draft_store.merge_extracted({"serviceLevel": "Economy"})

        assert draft_store.provenance.paths == ["serviceLevel"]
        assert draft_store.is_auto_filled("shipper.company") is False

    async def test_manual_patch_keeps_provenance(self, draft_store, nested_payload):
        await draft_store.merge_extracted(nested_payload)
        await draft_store.patch_draft({"shipper": {"company": "Typed by hand"}})

        assert draft_store.draft.shipper.company == "Typed by hand"
        assert draft_store.is_auto_filled("shipper.company") is True

    async def test_patch_accepts_snake_case(self, draft_store):
        await draft_store.patch_draft({"service_level": "Express", "customsValue": "250"})
        assert draft_store.draft.service_level == "Express"
        assert draft_store.draft.customs_value == 250

    async def test_patch_normalizes_country_names(self, draft_store, memory_storage):
        await draft_store.patch_draft(
            {"shipper": {"country": "India"}, "consignee": {"country": "united kingdom"}}
        )

        assert draft_store.draft.shipper.country == "IN"
        assert draft_store.draft.consignee.country == "GB"
        assert memory_storage.records[NAMESPACE]["shipmentDraft"]["shipper"]["country"] == "IN"

    async def test_replace_normalizes_country_names(self, draft_store):
        await draft_store.replace_draft(
            {
                "shipper": {"country": "Germany"},
                "packages": [{"products": [{"name": "Lamp", "originCountry": "china"}]}],
            }
        )

        assert draft_store.draft.shipper.country == "DE"
        assert draft_store.draft.packages[0].products[0].origin_country == "CN"

    async def test_patch_product_normalizes_origin(self, draft_store, nested_payload):
        await draft_store.merge_extracted(nested_payload)

        product = await draft_store.patch_product(0, 0, {"originCountry": "Japan"})

        assert product.origin_country == "JP"

    async def test_merge_after_manual_country_keeps_shipper(self, draft_store):
        await draft_store.patch_draft({"shipper": {"company": "Acme", "country": "India"}})
        before = draft_store.draft.shipper

        result = await draft_store.merge_extracted({"customsValue": 500})

        assert draft_store.draft.shipper == before
        assert result.filled_paths == ["customsValue"]

    async def test_bad_patch_leaves_draft_unchanged(self, draft_store, memory_storage):
        await draft_store.patch_draft({"title": "Kept"})

        with pytest.raises(ValidationError):
            await draft_store.patch_draft({"title": {"not": "a string"}})

        assert draft_store.draft.title == "Kept"
        assert memory_storage.save_count == 1

    async def test_replace_draft_resets_provenance(self, draft_store, nested_payload):
        await draft_store.merge_extracted(nested_payload)
        await draft_store.replace_draft({"title": "Existing shipment"})

        assert draft_store.draft.title == "Existing shipment"
        assert draft_store.draft.packages == []
        assert len(draft_store.provenance) == 0

    async def test_patch_product_recomputes_total(self, draft_store, nested_payload):
        await draft_store.merge_extracted(nested_payload)

        product = await draft_store.patch_product(0, 0, {"qty": 4})

        assert product.total_value == 400
        assert draft_store.draft.packages[0].products[0].total_value == 400
        assert draft_store.draft.packages[0].products[1].name == "Gadget"

    async def test_patch_product_explicit_total(self, draft_store, nested_payload):
        await draft_store.merge_extracted(nested_payload)

        product = await draft_store.patch_product(0, 0, {"qty": 4, "totalValue": 123})

        assert product.total_value == 123

    async def test_patch_product_bad_index(self, draft_store, nested_payload):
        await draft_store.merge_extracted(nested_payload)

        with pytest.raises(DraftIndexError):
            await draft_store.patch_product(5, 0, {"qty": 1})
        with pytest.raises(DraftIndexError):
            await draft_store.patch_product(0, 9, {"qty": 1})

    async def test_reprice_writes_back_customs_value(self, draft_store, india_express_draft):
        await draft_store.replace_draft(india_express_draft)

        breakdown = await draft_store.reprice()

        assert breakdown.total == pytest.approx(4908.8)
        assert draft_store.draft.customs_value == 15000

    async def test_clear(self, draft_store, nested_payload):
        await draft_store.set_mode(DraftMode.AUTO)
        await draft_store.merge_extracted(nested_payload)

        await draft_store.clear()

        assert draft_store.draft == ShipmentDraft()
        assert len(draft_store.provenance) == 0
        assert draft_store.mode == DraftMode.AUTO


@pytest.mark.asyncio
class TestExtractionRequests:
    async def test_begin_and_end(self, draft_store):
        seq = draft_store.begin_extraction()
        assert draft_store.extraction_in_progress is True

        draft_store.end_extraction(seq, "Empty response from server")

        assert draft_store.extraction_in_progress is False
        assert draft_store.extraction_error == "Empty response from server"

    async def test_stale_result_is_discarded(self, draft_store, nested_payload):
        first = draft_store.begin_extraction()
        second = draft_store.begin_extraction()

        stale = await draft_store.merge_extracted(nested_payload, request_seq=first)
        draft_store.end_extraction(first)

        assert stale is None
        assert draft_store.draft == ShipmentDraft()
        assert draft_store.extraction_in_progress is True

        fresh = await draft_store.merge_extracted({"currency": "EUR"}, request_seq=second)
        draft_store.end_extraction(second)

        assert fresh is not None
        assert draft_store.draft.currency == "EUR"
        assert draft_store.extraction_in_progress is False

    async def test_failed_extraction_keeps_draft(self, draft_store, nested_payload):
        await draft_store.merge_extracted(nested_payload)
        before = draft_store.draft

        seq = draft_store.begin_extraction()
        draft_store.end_extraction(seq, "Extraction request failed")

        assert draft_store.draft == before


@pytest.mark.asyncio
class TestLoad:
    async def test_round_trip_through_storage(self, draft_store, memory_storage, nested_payload):
        await draft_store.set_mode("auto")
        await draft_store.merge_extracted(nested_payload)

        restored = DraftStore(memory_storage, NAMESPACE)
        assert await restored.load() is True

        assert restored.mode == DraftMode.AUTO
        assert restored.draft == draft_store.draft
        assert restored.provenance == draft_store.provenance

    async def test_nothing_stored(self, draft_store):
        assert await draft_store.load() is False
        assert draft_store.draft == ShipmentDraft()

    async def test_legacy_record_is_migrated(self):
        storage = InMemoryDraftStorage(
            {
                NAMESPACE: {
                    "mode": "auto",
                    "shipmentDraft": {
                        "title": "Legacy",
                        "products": [{"name": "Old product", "qty": 2, "unitPrice": 5}],
                        "documents": ["invoice.pdf"],
                    },
                    "autoFilledFields": {"title": True},
                }
            }
        )
        store = DraftStore(storage, NAMESPACE)

        assert await store.load() is True
        assert store.draft.packages[0].products[0].name == "Old product"
        assert store.is_auto_filled("title") is True

    async def test_loaded_country_names_are_normalized(self):
        storage = InMemoryDraftStorage(
            {
                NAMESPACE: {
                    "schemaVersion": 1,
                    "mode": "manual",
                    "shipmentDraft": {"shipper": {"country": "United States"}, "consignee": {"country": "in"}},
                    "provenanceMap": {},
                }
            }
        )
        store = DraftStore(storage, NAMESPACE)

        assert await store.load() is True
        assert store.draft.shipper.country == "US"
        assert store.draft.consignee.country == "IN"

    async def test_unreadable_record_is_discarded(self):
        storage = InMemoryDraftStorage({NAMESPACE: {"schemaVersion": 1, "mode": "sideways"}})
        store = DraftStore(storage, NAMESPACE)

        assert await store.load() is False
        assert store.mode == DraftMode.MANUAL

    async def test_future_schema_is_discarded(self):
        storage = InMemoryDraftStorage({NAMESPACE: {"schemaVersion": 99, "mode": "auto"}})
        store = DraftStore(storage, NAMESPACE)

        assert await store.load() is False


class TestMigrations:
    def test_current_version_is_untouched(self):
        record = {"schemaVersion": CURRENT_SCHEMA_VERSION, "shipmentDraft": {"title": "x"}}
        assert migrate_record(record) == record

    def test_input_is_not_mutated(self):
        record = {"autoFilledFields": {"title": True}}
        migrate_record(record)
        assert record == {"autoFilledFields": {"title": True}}

    def test_legacy_products_join_existing_first_package(self):
        migrated = migrate_record(
            {"shipmentDraft": {"packages": [{"id": "PKG-1"}], "products": [{"name": "p"}]}}
        )
        assert migrated["shipmentDraft"]["packages"][0]["products"] == [{"name": "p"}]
        assert "products" not in migrated["shipmentDraft"]

    def test_rejects_newer_versions(self):
        with pytest.raises(UnsupportedSchemaVersion):
            migrate_record({"schemaVersion": CURRENT_SCHEMA_VERSION + 1})
