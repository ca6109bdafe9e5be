"""
Persistent store for short code mappings.

The store owns the session factory and hands out one short-lived session per
operation, so request handlers and the background flush thread never share a
session. Every SQLAlchemy failure leaves this module as ``StorageError``.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from shorty.exceptions import NotFoundError, StorageError
from shorty.models.url import URLMapping, utcnow

logger = logging.getLogger(__name__)


class MappingStore:
    """Store object wrapping the database connection for URL mappings."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(str(e)) from e
        finally:
            db.close()

    def find_code_by_long_url(self, long_url: str) -> Optional[str]:
        """Return the earliest short code created for ``long_url``, if any."""
        with self._session() as db:
            row = (
                db.query(URLMapping.short_code)
                .filter(URLMapping.long_url == long_url)
                .order_by(URLMapping.created_at.asc())
                .first()
            )
            return row.short_code if row else None

    def get_long_url(self, short_code: str) -> str:
        """Primary key lookup; raises NotFoundError for unknown codes."""
        with self._session() as db:
            row = (
                db.query(URLMapping.long_url)
                .filter(URLMapping.short_code == short_code)
                .first()
            )
        if row is None:
            raise NotFoundError(short_code)
        return row.long_url

    def get_mapping(self, short_code: str) -> URLMapping:
        with self._session() as db:
            mapping = db.get(URLMapping, short_code)
            if mapping is None:
                raise NotFoundError(short_code)
            # Detach so attributes stay readable after the session closes
            db.expunge(mapping)
            return mapping

    def exists(self, short_code: str) -> bool:
        with self._session() as db:
            query = db.query(URLMapping).filter(URLMapping.short_code == short_code)
            return db.query(query.exists()).scalar()

    def insert(self, short_code: str, long_url: str) -> bool:
        """
        Insert a new mapping.

        Returns:
            True if the row was written, False if ``short_code`` was taken
            between the existence check and the insert.
        """
        with self._session() as db:
            db.add(URLMapping(
                short_code=short_code,
                long_url=long_url,
                visit_count=0,
                created_at=utcnow(),
            ))
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.warning("Short code '%s' was taken during insert", short_code)
                return False
        return True

    def increment_visits(self, short_code: str, amount: int) -> int:
        """
        Add ``amount`` to the persisted visit count.

        Returns:
            Number of rows affected (0 when the code no longer exists)
        """
        with self._session() as db:
            result = db.execute(
                update(URLMapping)
                .where(URLMapping.short_code == short_code)
                .values(visit_count=URLMapping.visit_count + amount)
            )
            db.commit()
            return result.rowcount

    def count_links(self) -> int:
        with self._session() as db:
            return db.query(func.count(URLMapping.short_code)).scalar()

    def total_visits(self, created_since: Optional[datetime] = None) -> int:
        """Sum of persisted visit counts, optionally for links created since a time."""
        with self._session() as db:
            query = db.query(func.coalesce(func.sum(URLMapping.visit_count), 0))
            if created_since is not None:
                query = query.filter(URLMapping.created_at >= created_since)
            return int(query.scalar())

    def most_visited(self, limit: int = 10) -> List[URLMapping]:
        with self._session() as db:
            rows = (
                db.query(URLMapping)
                .order_by(URLMapping.visit_count.desc(), URLMapping.created_at.asc())
                .limit(limit)
                .all()
            )
            db.expunge_all()
            return rows

    def most_recent(self, limit: int = 10) -> List[URLMapping]:
        with self._session() as db:
            rows = (
                db.query(URLMapping)
                .order_by(URLMapping.created_at.desc())
                .limit(limit)
                .all()
            )
            db.expunge_all()
            return rows
