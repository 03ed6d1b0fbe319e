from fastapi import Request

from app.config import settings
from app.database import get_db
from app.draft_store.store import DraftStore
from app.services.extraction_client import ExtractionClient

# Re-export get_db for use in Depends()
get_db = get_db


def get_draft_store(request: Request) -> DraftStore:
    return request.app.state.draft_store


def get_extraction_client() -> ExtractionClient:
    return ExtractionClient(settings)
