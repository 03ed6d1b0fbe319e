"""Schema versioning for persisted draft records.

Version 0 is the untagged legacy layout: provenance under ``autoFilledFields``
and an unused top-level ``products`` list inside the draft.
"""

import copy
import logging

logger = logging.getLogger("shipdraft.draft_store.migrations")

CURRENT_SCHEMA_VERSION = 1


def _v0_to_v1(record: dict) -> dict:
    if "provenanceMap" not in record and isinstance(record.get("autoFilledFields"), dict):
        record["provenanceMap"] = record.pop("autoFilledFields")
    record.pop("autoFilledFields", None)

    draft = record.get("shipmentDraft")
    if isinstance(draft, dict):
        legacy_products = draft.pop("products", None)
        draft.pop("documents", None)
        if isinstance(legacy_products, list) and legacy_products:
            packages = draft.get("packages")
            if not isinstance(packages, list) or not packages:
                draft["packages"] = [{"products": legacy_products}]
            elif isinstance(packages[0], dict) and not packages[0].get("products"):
                packages[0]["products"] = legacy_products

    record["schemaVersion"] = 1
    return record


MIGRATIONS = {
    0: _v0_to_v1,
}


class UnsupportedSchemaVersion(ValueError):
    pass


def migrate_record(record: dict) -> dict:
    """Upgrade a persisted record to CURRENT_SCHEMA_VERSION.

    Returns a new dict; raises UnsupportedSchemaVersion for records written
    by a newer release.
    """
    migrated = copy.deepcopy(record)
    version = migrated.get("schemaVersion", 0)
    if not isinstance(version, int) or version > CURRENT_SCHEMA_VERSION:
        raise UnsupportedSchemaVersion(f"Unsupported draft schema version: {version!r}")

    while version < CURRENT_SCHEMA_VERSION:
        logger.info("Migrating persisted draft from schema v%d", version)
        migrated = MIGRATIONS[version](migrated)
        version = migrated["schemaVersion"]
    return migrated
