"""Database models"""

from sessionstore.db.models.session_record import SessionRecord, now_ms

__all__ = [
    "SessionRecord",
    "now_ms",
]
