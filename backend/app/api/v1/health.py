from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.dependencies import get_db, get_draft_store
from app.draft_store.store import DraftStore
from app.schemas.health import HealthResponse

router = APIRouter()

VERSION = "0.1.0"


@router.get("/health", response_model=HealthResponse)
async def health_check(
    db: AsyncSession = Depends(get_db),
    store: DraftStore = Depends(get_draft_store),
) -> HealthResponse:
    # Check database
    db_status = "healthy"
    try:
        await db.execute(text("SELECT 1"))
    except Exception:
        db_status = "unhealthy"

    # Check draft persistence
    draft_store_status = "healthy"
    try:
        await store.storage.load(store.namespace)
    except Exception:
        draft_store_status = "unhealthy"

    overall = "healthy" if db_status == "healthy" and draft_store_status == "healthy" else "degraded"

    return HealthResponse(
        status=overall,
        database=db_status,
        draft_store=draft_store_status,
        timestamp=datetime.now(timezone.utc),
        environment=settings.environment,
        version=VERSION,
    )
