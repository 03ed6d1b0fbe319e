from fastapi import APIRouter

from app.api.v1 import drafts, health

api_router = APIRouter()

api_router.include_router(health.router, prefix="/v1", tags=["health"])
api_router.include_router(drafts.router, prefix="/v1/drafts", tags=["drafts"])
