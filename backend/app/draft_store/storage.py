"""Durable key-value storage for the draft record.

The Draft Store only talks to the DraftStorage protocol, so tests can swap in
InMemoryDraftStorage while the service runs on SqlDraftStorage.
"""

import copy
import logging
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.draft import DraftDocument

logger = logging.getLogger("shipdraft.draft_store.storage")


class DraftStorage(Protocol):
    async def load(self, namespace: str) -> dict | None: ...

    async def save(self, namespace: str, record: dict) -> None: ...

    async def delete(self, namespace: str) -> None: ...


class InMemoryDraftStorage:
    """Process-local storage; records are deep-copied in and out."""

    def __init__(self, records: dict[str, dict] | None = None):
        self.records: dict[str, dict] = copy.deepcopy(records) if records else {}
        self.save_count = 0

    async def load(self, namespace: str) -> dict | None:
        record = self.records.get(namespace)
        return copy.deepcopy(record) if record is not None else None

    async def save(self, namespace: str, record: dict) -> None:
        self.records[namespace] = copy.deepcopy(record)
        self.save_count += 1

    async def delete(self, namespace: str) -> None:
        self.records.pop(namespace, None)


class SqlDraftStorage:
    """SQLAlchemy-backed storage: one ``draft_documents`` row per namespace."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def load(self, namespace: str) -> dict | None:
        async with self.session_factory() as session:
            row = await session.get(DraftDocument, namespace)
            if row is None:
                return None
            record = dict(row.payload or {})
            record.setdefault("schemaVersion", row.schema_version)
            return record

    async def save(self, namespace: str, record: dict) -> None:
        async with self.session_factory() as session:
            row = await session.get(DraftDocument, namespace)
            if row is None:
                row = DraftDocument(namespace=namespace)
                session.add(row)
            row.schema_version = int(record.get("schemaVersion", 0))
            row.payload = copy.deepcopy(record)
            await session.commit()
        logger.debug("Persisted draft namespace=%s", namespace)

    async def delete(self, namespace: str) -> None:
        async with self.session_factory() as session:
            row = await session.get(DraftDocument, namespace)
            if row is not None:
                await session.delete(row)
                await session.commit()
