from app.models.base import Base, TimestampMixin
from app.models.draft import DraftDocument

__all__ = [
    "Base",
    "TimestampMixin",
    "DraftDocument",
]
