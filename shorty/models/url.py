from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from shorty.database.connection import Base


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite stores DateTime without an offset."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class URLMapping(Base):
    """
    Mapping from a short code to its original URL.

    Rows are created once, read on every redirect and only ever mutated
    through ``visit_count`` (by the visit aggregator flush).

    Note: ``long_url`` is not unique. Deduplication happens with
    a lookup before insert, so two concurrent first-time submissions of the
    same URL can still produce two rows.
    """
    __tablename__ = "url_mapping"

    short_code = Column(String, primary_key=True)
    long_url = Column(String, nullable=False, index=True)
    visit_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow)
