"""
Bounded removal of expired session rows.

Runs opportunistically inside a save's transaction. Rows are eligible once
`expiredAt <= now`, tombstoned or not; a tombstone stays in place until then
so a late save cannot re-create a destroyed session.
"""

import logging
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from sessionstore.db.models.session_record import SessionRecord

logger = logging.getLogger(__name__)


class CleanupEngine:
    """Deletes at most `limit` expired rows per invocation."""

    def __init__(self, limit: int = 0, use_subquery: bool = True):
        self.limit = limit or 0
        self.use_subquery = use_subquery

    @property
    def enabled(self) -> bool:
        return self.limit > 0

    def _expired_ids(self, now: int):
        # Oldest deadline first; id breaks ties deterministically
        return (
            select(SessionRecord.id)
            .where(SessionRecord.is_expired(now))
            .order_by(SessionRecord.expired_at.asc(), SessionRecord.id.asc())
            .limit(self.limit)
        )

    def purge(self, db: Session, now: int) -> int:
        """
        Delete a bounded batch of expired rows.

        Args:
            db: Open DB session; the caller commits
            now: Current time in epoch milliseconds

        Returns:
            Number of rows deleted
        """
        if not self.enabled:
            return 0

        if self.use_subquery:
            deleted = self._purge_by_subquery(db, now)
        else:
            deleted = self._purge_two_phase(db, now)

        if deleted:
            logger.debug("Cleaned up expired sessions", extra={
                "deleted": deleted,
                "limit": self.limit,
                "strategy": "subquery" if self.use_subquery else "two-phase",
            })
        return deleted

    def _purge_by_subquery(self, db: Session, now: int) -> int:
        # The inner select is materialised by the engine; the outer delete
        # re-checks expiry so a row refreshed meanwhile survives.
        stmt = (
            delete(SessionRecord)
            .where(SessionRecord.id.in_(self._expired_ids(now)))
            .where(SessionRecord.is_expired(now))
            .execution_options(synchronize_session=False)
        )
        return db.execute(stmt).rowcount or 0

    def _purge_two_phase(self, db: Session, now: int) -> int:
        ids: List[str] = list(db.scalars(self._expired_ids(now)))
        if not ids:
            return 0

        # ids are bound parameters, never interpolated
        stmt = (
            delete(SessionRecord)
            .where(SessionRecord.id.in_(ids))
            .where(SessionRecord.is_expired(now))
            .execution_options(synchronize_session=False)
        )
        return db.execute(stmt).rowcount or 0
