"""Search history model."""

from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, Integer, String, Text, DateTime
from ..database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SearchHistory(Base):
    """One row per non-empty search query.

    ``filters`` holds the JSON-serialized facet set used with the query.
    """

    __tablename__ = "search_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    query = Column(String(500), nullable=False)
    filters = Column(Text, nullable=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    results_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
