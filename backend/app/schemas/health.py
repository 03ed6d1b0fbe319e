from datetime import datetime

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    database: str
    draft_store: str
    timestamp: datetime
    environment: str
    version: str
