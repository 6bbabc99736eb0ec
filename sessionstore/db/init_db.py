"""Create the session table and its expiry index"""

import logging

from sqlalchemy.engine import Engine

from sessionstore.db.base import Base
from sessionstore.db.models.session_record import SessionRecord

logger = logging.getLogger(__name__)


def init_database(engine: Engine) -> None:
    """Create the session table if it does not exist"""
    try:
        logger.info("Creating session table...")
        Base.metadata.create_all(
            bind=engine,
            tables=[SessionRecord.__table__],
            checkfirst=True,
        )
        logger.info("Session table ready", extra={"table": SessionRecord.__tablename__})

    except Exception as e:
        logger.error(f"Error initializing database: {e}", extra={
            "error_type": type(e).__name__,
            "database_url": "[REDACTED]"  # Don't log connection strings
        })
        raise
