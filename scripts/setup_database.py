#!/usr/bin/env python3
"""
Database setup script for the session store.

Creates the session table for the configured DATABASE_URL and reports health.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from sessionstore.core.config import settings
from sessionstore.core.logging_config import init_store_logging
from sessionstore.db.health import check_database_health, get_database_type
from sessionstore.db.init_db import init_database
from sessionstore.db.session import create_db_engine


def main() -> bool:
    """Create the session table based on configuration"""
    init_store_logging(settings)
    print("Session Store Database Setup")
    print("=" * 40)

    engine = create_db_engine(settings.DATABASE_URL)
    print(f"Database Type: {get_database_type(engine)}")

    if settings.DATABASE_URL.startswith("sqlite:///./"):
        Path(settings.DATABASE_URL[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)

    try:
        init_database(engine)
        print("Session table initialized successfully!")

        health = check_database_health(engine)
        print(f"Health Status: {health['status']}")
        if health['status'] != 'healthy':
            print(f"Warning: {health['last_error']}")
        return health['status'] == 'healthy'

    except Exception as e:
        print(f"Database initialization failed: {e}")
        return False
    finally:
        engine.dispose()


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
