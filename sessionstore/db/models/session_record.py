import time
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, String, Text, and_
from sqlalchemy.ext.hybrid import hybrid_method
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql.elements import ColumnElement

from sessionstore.db.base import Base


def now_ms() -> int:
    """Current time in epoch milliseconds"""
    return int(time.time() * 1000)


class SessionRecord(Base):
    """One persisted session, keyed by the session id."""

    __tablename__ = "session"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    # Serialized payload, replaced wholesale on every save
    json: Mapped[str] = mapped_column(Text, nullable=False)
    # Absolute deadline in epoch milliseconds
    expired_at: Mapped[int] = mapped_column(
        "expiredAt", BigInteger, nullable=False, index=True
    )
    # Tombstone; set by destroy, physically removed by cleanup
    destroyed_at: Mapped[Optional[datetime]] = mapped_column(
        "destroyedAt", DateTime(timezone=True), nullable=True
    )

    @hybrid_method
    def is_live(self, now: int) -> bool:
        return self.destroyed_at is None and self.expired_at > now

    @is_live.inplace.expression
    @classmethod
    def _is_live_expression(cls, now: int) -> ColumnElement[bool]:
        return and_(cls.destroyed_at.is_(None), cls.expired_at > now)

    @hybrid_method
    def is_expired(self, now: int) -> bool:
        return self.expired_at <= now

    @is_expired.inplace.expression
    @classmethod
    def _is_expired_expression(cls, now: int) -> ColumnElement[bool]:
        return cls.expired_at <= now

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<SessionRecord(expired_at={self.expired_at}, destroyed={self.destroyed_at is not None})>"
