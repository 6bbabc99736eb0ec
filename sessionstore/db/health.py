"""
Database helper utilities for the session store.

Provides dialect detection and a health check for the session table.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

# Dialects that reject LIMIT inside an IN (...) subquery
_NO_LIMIT_SUBQUERY_DIALECTS = {"mysql", "mariadb"}


def get_database_type(engine: Engine) -> str:
    """
    Get the database type of an engine.

    Returns:
        str: Database type ('sqlite', 'postgresql', etc.)
    """
    return engine.dialect.name


def supports_limit_subquery(dialect_name: Optional[str]) -> bool:
    """Whether cleanup can delete by a LIMITed subquery on this dialect"""
    if not dialect_name:
        return True
    return dialect_name.lower() not in _NO_LIMIT_SUBQUERY_DIALECTS


def check_database_health(engine: Engine, table_name: str = "session") -> Dict[str, Any]:
    """
    Perform database health check.

    Args:
        engine: Engine to probe
        table_name: Session table expected to exist

    Returns:
        Dict containing health status and the last error, if any
    """
    health: Dict[str, Any] = {
        "status": "healthy",
        "database_type": get_database_type(engine),
        "connected": False,
        "table_present": False,
        "last_error": None,
    }

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            health["connected"] = True
            health["table_present"] = inspect(conn).has_table(table_name)

        if not health["table_present"]:
            health["status"] = "warning"
            health["last_error"] = f"Table {table_name!r} not found - run setup_database"

    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        health["status"] = "unhealthy"
        health["last_error"] = str(e)

    return health
