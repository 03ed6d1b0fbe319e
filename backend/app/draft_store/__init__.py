from app.draft_store.provenance import ProvenanceMap, resolve_path
from app.draft_store.storage import DraftStorage, InMemoryDraftStorage, SqlDraftStorage
from app.draft_store.store import DraftIndexError, DraftStore

__all__ = [
    "DraftIndexError",
    "DraftStore",
    "DraftStorage",
    "InMemoryDraftStorage",
    "SqlDraftStorage",
    "ProvenanceMap",
    "resolve_path",
]
